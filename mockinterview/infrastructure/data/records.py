"""
Persisted interview and feedback records.
"""
from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional, Any

STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETED = "completed"


@dataclass
class InterviewRecord:
    """One stored interview setup and its lifecycle status."""
    id: str
    user_id: str
    role: str
    type: str
    level: str
    tech_stack: List[str] = field(default_factory=list)
    questions: List[str] = field(default_factory=list)
    status: str = STATUS_IN_PROGRESS
    created_at: str = ""
    updated_at: str = ""
    finished_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class FeedbackRecord:
    """Stored feedback report for a finished interview."""
    id: str
    interview_id: str
    user_id: str
    overall_score: int
    category_scores: Dict[str, int] = field(default_factory=dict)
    strengths: List[str] = field(default_factory=list)
    improvements: List[str] = field(default_factory=list)
    final_assessment: Optional[str] = None
    created_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
