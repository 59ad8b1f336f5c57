"""
File-backed storage for interviews and their feedback.
One JSON document per interview keeps the setup and the feedback together.
"""
import os
import json
import uuid
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Any, Sequence

from .records import InterviewRecord, FeedbackRecord, STATUS_IN_PROGRESS, STATUS_COMPLETED

logger = logging.getLogger("interview_store")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class InterviewStore:
    """
    CRUD surface over interview documents on disk.

    Lookups that miss return None and write failures return None/False after
    logging, so callers can degrade instead of aborting a finished call.
    """

    def __init__(self, data_dir: str = "./_interviews", user_id: str = "local"):
        self.data_dir = data_dir
        self.user_id = user_id
        os.makedirs(self.data_dir, exist_ok=True)

    def _get_path(self, interview_id: str) -> str:
        return os.path.join(self.data_dir, f"{interview_id}.json")

    def _load(self, interview_id: str) -> Optional[Dict[str, Any]]:
        path = self._get_path(interview_id)
        if not os.path.exists(path):
            return None
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load interview {interview_id}: {e}")
            return None

    def _save(self, interview_id: str, document: Dict[str, Any]) -> bool:
        path = self._get_path(interview_id)
        tmp_path = path + ".tmp"
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(document, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
            return True
        except OSError as e:
            logger.error(f"Failed to save interview {interview_id}: {e}")
            return False

    def create_interview(self,
                         role: str,
                         interview_type: str,
                         level: str,
                         tech_stack: Sequence[str],
                         questions: Sequence[str]) -> Optional[InterviewRecord]:
        """Create a new in-progress interview."""
        timestamp = _now()
        record = InterviewRecord(
            id=uuid.uuid4().hex,
            user_id=self.user_id,
            role=role,
            type=interview_type,
            level=level,
            tech_stack=list(tech_stack),
            questions=list(questions),
            status=STATUS_IN_PROGRESS,
            created_at=timestamp,
            updated_at=timestamp,
        )
        if not self._save(record.id, {"interview": record.to_dict(), "feedback": None}):
            return None
        logger.info(f"Created interview {record.id} ({role}, {interview_type})")
        return record

    def get_interview(self, interview_id: str) -> Optional[InterviewRecord]:
        document = self._load(interview_id)
        if not document:
            return None
        return InterviewRecord(**document["interview"])

    def list_interviews(self) -> List[InterviewRecord]:
        """All of this user's interviews, newest first."""
        records = []
        for filename in os.listdir(self.data_dir):
            if filename.endswith('.json'):
                record = self.get_interview(filename[:-5])
                if record and record.user_id == self.user_id:
                    records.append(record)
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    def update_interview_status(self, interview_id: str, status: str) -> bool:
        """
        Change an interview's status.

        Completing stamps ``finished_at``; moving back to in-progress (a
        retake) clears it along with any stored feedback.
        """
        document = self._load(interview_id)
        if not document:
            logger.warning(f"Cannot update unknown interview: {interview_id}")
            return False

        interview = document["interview"]
        interview["status"] = status
        interview["updated_at"] = _now()
        if status == STATUS_COMPLETED:
            interview["finished_at"] = interview["updated_at"]
        elif status == STATUS_IN_PROGRESS:
            interview["finished_at"] = None
            document["feedback"] = None

        return self._save(interview_id, document)

    def save_feedback(self, interview_id: str, feedback: Dict[str, Any]) -> Optional[FeedbackRecord]:
        """
        Store a feedback report (camelCase wire shape) and mark the interview completed.
        """
        document = self._load(interview_id)
        if not document:
            logger.warning(f"Cannot save feedback for unknown interview: {interview_id}")
            return None

        record = FeedbackRecord(
            id=uuid.uuid4().hex,
            interview_id=interview_id,
            user_id=self.user_id,
            overall_score=feedback["overallScore"],
            category_scores=dict(feedback.get("categoryScores") or {}),
            strengths=list(feedback.get("strengths") or []),
            improvements=list(feedback.get("improvements") or []),
            final_assessment=feedback.get("finalAssessment"),
            created_at=_now(),
        )
        document["feedback"] = record.to_dict()
        if not self._save(interview_id, document):
            return None

        self.update_interview_status(interview_id, STATUS_COMPLETED)
        logger.info(f"Saved feedback for interview {interview_id} (score {record.overall_score})")
        return record

    def get_feedback(self, interview_id: str) -> Optional[FeedbackRecord]:
        document = self._load(interview_id)
        if not document or not document.get("feedback"):
            return None
        return FeedbackRecord(**document["feedback"])
