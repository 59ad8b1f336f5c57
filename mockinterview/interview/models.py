"""
Data models for the interview call.
"""
from dataclasses import dataclass, field
from typing import Optional, List, Tuple, Iterable, Literal

from ..config import TRANSCRIPT_SEPARATOR

MessageRole = Literal["user", "assistant"]


@dataclass
class Message:
    """One entry of the chat history sent to the model."""
    role: MessageRole
    content: str

    def to_dict(self) -> dict:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class TranscriptEntry:
    """A finalized, human-readable transcript line."""
    speaker: str
    content: str

    def __str__(self) -> str:
        return f"{self.speaker}: {self.content}"


def _dedupe(items: Iterable[str]) -> Tuple[str, ...]:
    seen = []
    for item in items:
        item = item.strip()
        if item and item not in seen:
            seen.append(item)
    return tuple(seen)


@dataclass
class Session:
    """One interview attempt.

    The question list is fixed for the session's lifetime; only the question
    cursor moves, and only forwards.
    """
    role: str
    interview_type: str
    questions: Tuple[str, ...] = ()
    tech_stack: Tuple[str, ...] = ()
    level: str = ""
    interview_id: Optional[str] = None
    user_name: str = "Candidate"
    current_question_index: int = 0

    def __post_init__(self):
        self.questions = tuple(self.questions)
        self.tech_stack = _dedupe(self.tech_stack)
        if self.current_question_index < 0:
            raise ValueError("current_question_index must be >= 0")

    @property
    def last_question_index(self) -> int:
        return max(0, len(self.questions) - 1)

    @property
    def current_question(self) -> Optional[str]:
        if 0 <= self.current_question_index < len(self.questions):
            return self.questions[self.current_question_index]
        return None

    def advance_question(self) -> int:
        """Move the cursor forward by one, capped at the last question."""
        if self.current_question_index < self.last_question_index:
            self.current_question_index += 1
        return self.current_question_index


@dataclass
class CallResult:
    """What the call leaves behind once it ends."""
    transcript: List[TranscriptEntry] = field(default_factory=list)
    messages: List[Message] = field(default_factory=list)
    questions_reached: int = 0

    @property
    def transcript_text(self) -> str:
        return TRANSCRIPT_SEPARATOR.join(str(entry) for entry in self.transcript)
