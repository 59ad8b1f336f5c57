"""LLM clients: one-shot Vertex generations and the streaming interviewer chat."""

from .client import VertexRestClient, LLMRequestError
from .stream import StreamingChatClient, StreamFrameDecoder, ChatStreamError, extract_delta

__all__ = [
    "VertexRestClient", "LLMRequestError",
    "StreamingChatClient", "StreamFrameDecoder", "ChatStreamError", "extract_delta",
]
