"""
Structured state and wire schemas for the interview engine.
"""
import json
from dataclasses import dataclass, asdict
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


@dataclass
class CallState:
    """Single source of truth for the call.

    One instance lives for the orchestrator's lifetime and is shared by
    reference with every adapter callback, so delayed callbacks always read
    current values rather than the values at scheduling time.
    """
    active: bool = False
    muted: bool = False
    speaking: bool = False
    listening: bool = False
    processing: bool = False

    def can_listen(self) -> bool:
        """Whether a capture attempt may start right now."""
        return self.active and not self.muted and not self.speaking and not self.processing

    def reset(self) -> None:
        self.active = False
        self.muted = False
        self.speaking = False
        self.listening = False
        self.processing = False

    def snapshot(self) -> Dict[str, bool]:
        return asdict(self)


class _WireModel(BaseModel):
    """Base for camelCase JSON contracts."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class QuestionRequest(_WireModel):
    role: str
    type: str
    level: str = ""
    tech_stack: List[str] = Field(default_factory=list, alias="techStack")
    num_questions: int = Field(default=5, ge=1, le=20, alias="numQuestions")


class QuestionResponse(_WireModel):
    questions: List[str]


class FeedbackRequest(_WireModel):
    role: str
    type: str
    tech_stack: List[str] = Field(default_factory=list, alias="techStack")
    transcript: str


class InterviewFeedback(_WireModel):
    """Scored feedback report for one interview."""
    overall_score: int = Field(alias="overallScore", ge=0, le=100)
    category_scores: Dict[str, int] = Field(default_factory=dict, alias="categoryScores")
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    final_assessment: str = Field(default="", alias="finalAssessment")

    @field_validator("overall_score", mode="before")
    @classmethod
    def _round_overall(cls, value):
        return round(value) if isinstance(value, float) else value

    @field_validator("category_scores", mode="before")
    @classmethod
    def _round_categories(cls, value):
        if isinstance(value, dict):
            return {k: round(v) if isinstance(v, float) else v for k, v in value.items()}
        return value

    @field_validator("category_scores")
    @classmethod
    def _categories_in_range(cls, value: Dict[str, int]) -> Dict[str, int]:
        for name, score in value.items():
            if not 0 <= score <= 100:
                raise ValueError(f"category score {name}={score} outside 0-100")
        return value

    @classmethod
    def fallback(cls) -> "InterviewFeedback":
        """Deterministic report used when the model output cannot be parsed."""
        return cls(
            overall_score=75,
            category_scores={
                "technicalKnowledge": 75,
                "communication": 78,
                "problemSolving": 72,
                "culturalFit": 80,
            },
            strengths=[
                "Showed enthusiasm for the role",
                "Communicated clearly",
                "Demonstrated relevant experience",
            ],
            improvements=[
                "Could provide more specific examples",
                "Consider elaborating on technical details",
            ],
            final_assessment=(
                "The candidate showed good potential and communicated effectively. "
                "With more practice and specific examples, they would be a strong "
                "contender for the position."
            ),
        )

    def to_wire(self) -> Dict:
        return self.model_dump(by_alias=True)


def fallback_questions(role: str) -> List[str]:
    """Generic question set used when generated questions cannot be parsed."""
    return [
        f"Tell me about your experience with {role}.",
        f"What interests you about this {role} position?",
        "Describe a challenging project you've worked on.",
        "How do you approach problem-solving?",
        "Where do you see yourself in 5 years?",
    ]


def _extract_json(raw_response: str, opener: str, closer: str):
    """
    Parse JSON from raw model text, tolerating prose around the payload.

    Raises:
        ValueError: If no JSON of the expected shape can be extracted
    """
    start = raw_response.find(opener)
    end = raw_response.rfind(closer)
    if start != -1 and end != -1 and end > start:
        candidate = raw_response[start:end + 1]
    else:
        candidate = raw_response
    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        raise ValueError(f"Could not extract valid JSON from LLM response: {raw_response!r}")


def parse_generated_questions(raw_response: str) -> List[str]:
    """
    Parse the question generator's output into a list of questions.

    Raises:
        ValueError: If the output is not a non-empty JSON array of strings
    """
    data = _extract_json(raw_response, "[", "]")
    if isinstance(data, dict):
        data = data.get("questions")
    try:
        questions = QuestionResponse(questions=data).questions
    except ValidationError as e:
        raise ValueError(f"Invalid question list: {e}")
    questions = [q.strip() for q in questions if q.strip()]
    if not questions:
        raise ValueError("Question list is empty")
    return questions


def parse_feedback(raw_response: str) -> InterviewFeedback:
    """
    Parse the feedback generator's output into a validated report.

    Raises:
        ValueError: If the output does not match the feedback contract
    """
    data = _extract_json(raw_response, "{", "}")
    if not isinstance(data, dict):
        raise ValueError(f"Feedback must be a JSON object, got {type(data).__name__}")
    try:
        return InterviewFeedback.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid feedback structure: {e}")

