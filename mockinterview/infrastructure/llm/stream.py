"""
Streaming chat client for the live interviewer.

Talks to an endpoint that answers with a text/event-stream of
``data: {"choices": [{"delta": {"content": ...}}]}`` frames ending in
``data: [DONE]``.
"""
import json
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import httpx

from ...config import STREAM_DATA_PREFIX, STREAM_DONE_SENTINEL

logger = logging.getLogger("chat_stream")

UpdateCallback = Callable[[str], None]


class ChatStreamError(RuntimeError):
    """Raised when a chat stream cannot be opened or read."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def extract_delta(frame: Any) -> Optional[str]:
    """Pull the incremental text out of one decoded frame."""
    try:
        content = frame["choices"][0]["delta"].get("content")
    except (KeyError, IndexError, TypeError, AttributeError):
        return None
    return content if isinstance(content, str) else None


class StreamFrameDecoder:
    """
    Incremental decoder for newline-delimited ``data:`` frames.

    Network chunks are fed in as they arrive; only complete lines are
    decoded, so a frame split across chunk boundaries is held until the rest
    of it shows up. A complete line whose JSON does not parse is pushed back
    and retried with the next chunk; it is dropped once later frames have
    arrived behind it, or when the stream closes.
    """

    def __init__(self):
        self._buffer = ""
        self.finished = False

    def feed(self, chunk: str) -> List[str]:
        """Add a chunk and return the text fragments it completed."""
        if self.finished:
            return []
        self._buffer += chunk
        return self._drain(final=False)

    def close(self) -> List[str]:
        """Flush whatever is left when the stream ends without a sentinel."""
        if self.finished or not self._buffer.strip():
            self._buffer = ""
            return []
        if not self._buffer.endswith("\n"):
            self._buffer += "\n"
        fragments = self._drain(final=True)
        self._buffer = ""
        return fragments

    def _drain(self, final: bool) -> List[str]:
        fragments: List[str] = []
        while not self.finished:
            newline = self._buffer.find("\n")
            if newline == -1:
                break
            line = self._buffer[:newline]
            self._buffer = self._buffer[newline + 1:]

            if line.endswith("\r"):
                line = line[:-1]
            if not line.strip() or line.startswith(":"):
                continue
            if not line.startswith(STREAM_DATA_PREFIX):
                continue

            payload = line[len(STREAM_DATA_PREFIX):].strip()
            if payload == STREAM_DONE_SENTINEL:
                self.finished = True
                break

            try:
                frame = json.loads(payload)
            except json.JSONDecodeError:
                if final or "\n" in self._buffer:
                    logger.warning("Dropping unparseable stream frame: %r", line[:200])
                    continue
                self._buffer = line + "\n" + self._buffer
                break

            fragment = extract_delta(frame)
            if fragment:
                fragments.append(fragment)
        return fragments


class StreamingChatClient:
    """Streams one assistant reply per call. Never retries on its own."""

    def __init__(self,
                 endpoint_url: str,
                 api_key: Optional[str] = None,
                 http_client: Optional[httpx.AsyncClient] = None,
                 timeout: Optional[float] = None):
        self.endpoint_url = endpoint_url
        self.api_key = api_key
        self._http_client = http_client
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    @staticmethod
    def _error_message(status_code: int, body: bytes) -> str:
        try:
            data = json.loads(body.decode("utf-8", errors="replace"))
        except ValueError:
            data = None
        if isinstance(data, dict) and data.get("error"):
            return str(data["error"])
        return f"Failed to get response (HTTP {status_code})"

    async def stream_reply(self,
                           messages: Sequence[Mapping[str, str]],
                           system_prompt: str,
                           on_update: Optional[UpdateCallback] = None) -> str:
        """
        Stream the assistant reply for the given history.

        Args:
            messages: Full chat history as role/content mappings, oldest first
            system_prompt: Instruction built for this turn
            on_update: Called with the accumulated reply after every fragment

        Returns:
            The complete reply text

        Raises:
            ChatStreamError: On non-2xx status, empty body or transport failure
        """
        payload = {
            "messages": [{"role": m["role"], "content": m["content"]} for m in messages],
            "systemPrompt": system_prompt,
        }

        owns_client = self._http_client is None
        client = self._http_client or httpx.AsyncClient(timeout=self.timeout)
        reply = ""
        received_any = False
        decoder = StreamFrameDecoder()

        try:
            async with client.stream("POST", self.endpoint_url, json=payload,
                                     headers=self._headers()) as response:
                if not response.is_success:
                    body = await response.aread()
                    logger.error("Chat endpoint returned %s", response.status_code)
                    raise ChatStreamError(
                        self._error_message(response.status_code, body),
                        status_code=response.status_code,
                    )

                async for chunk in response.aiter_text():
                    if not chunk:
                        continue
                    received_any = True
                    for fragment in decoder.feed(chunk):
                        reply += fragment
                        if on_update:
                            on_update(reply)
                    if decoder.finished:
                        break

                for fragment in decoder.close():
                    reply += fragment
                    if on_update:
                        on_update(reply)
        except httpx.HTTPError as e:
            logger.error("Chat stream failed: %s", e)
            raise ChatStreamError(f"Chat request failed: {e}") from e
        finally:
            if owns_client:
                await client.aclose()

        if not received_any:
            raise ChatStreamError("No response body")

        logger.debug("Streamed reply (%d chars)", len(reply))
        return reply
