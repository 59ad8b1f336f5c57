"""
Service classes for the interview system.
"""
import asyncio
import logging
from typing import List, Optional, Sequence

from .models import Session
from .prompts import InterviewPrompts
from .schemas import (
    QuestionRequest, FeedbackRequest, InterviewFeedback,
    fallback_questions, parse_generated_questions, parse_feedback
)
from .events import InterviewEventBus, NoticeEvent, NoticeLevel, ErrorOccurredEvent
from ..infrastructure.data import InterviewStore

logger = logging.getLogger("services")


class QuestionGenerator:
    """Generates the fixed question list for a new interview."""

    def __init__(self, llm_client, temperature: float = 0.7):
        self.llm_client = llm_client
        self.temperature = temperature

    def generate(self, request: QuestionRequest) -> List[str]:
        """
        Ask the model for ``request.num_questions`` questions.

        Malformed output falls back to the generic question set; transport
        errors propagate so the caller can ask the user to try again.
        """
        prompt = InterviewPrompts.question_generation(
            role=request.role,
            interview_type=request.type,
            level=request.level,
            tech_stack=request.tech_stack,
            num_questions=request.num_questions,
        )
        raw = self.llm_client.generate_content(prompt, temperature=self.temperature)

        try:
            questions = parse_generated_questions(raw)
        except ValueError as e:
            logger.warning(f"Question generation returned malformed output, using fallback: {e}")
            return fallback_questions(request.role)

        logger.info(f"Generated {len(questions)} questions for {request.role}")
        return questions


class FeedbackGenerator:
    """Scores a finished interview from its transcript."""

    def __init__(self, llm_client, temperature: float = 0.3):
        self.llm_client = llm_client
        self.temperature = temperature

    def generate(self, request: FeedbackRequest) -> InterviewFeedback:
        """
        Ask the model for a feedback report.

        Malformed output falls back to the fixed report; transport errors
        propagate.
        """
        prompt = InterviewPrompts.feedback(
            role=request.role,
            interview_type=request.type,
            tech_stack=request.tech_stack,
            transcript=request.transcript,
        )
        raw = self.llm_client.generate_content(prompt, temperature=self.temperature)

        try:
            feedback = parse_feedback(raw)
        except ValueError as e:
            logger.warning(f"Feedback generation returned malformed output, using fallback: {e}")
            return InterviewFeedback.fallback()

        logger.info(f"Generated feedback (overall score {feedback.overall_score})")
        return feedback


class InterviewSetupService:
    """Creates an interview: generate questions, then persist the record."""

    def __init__(self, question_generator: QuestionGenerator, store: Optional[InterviewStore] = None):
        self.question_generator = question_generator
        self.store = store

    def create_session(self,
                       role: str,
                       interview_type: str,
                       level: str,
                       tech_stack: Sequence[str],
                       num_questions: int,
                       user_name: str = "Candidate") -> Session:
        request = QuestionRequest(
            role=role,
            type=interview_type,
            level=level,
            tech_stack=list(tech_stack),
            num_questions=num_questions,
        )
        questions = self.question_generator.generate(request)

        session = Session(
            role=role,
            interview_type=interview_type,
            level=level,
            tech_stack=tuple(request.tech_stack),
            questions=tuple(questions),
            user_name=user_name,
        )
        if self.store is not None:
            record = self.store.create_interview(
                role, interview_type, level, session.tech_stack, session.questions
            )
            session.interview_id = record.id if record else None
        return session


class FeedbackHandoff:
    """
    Completion collaborator: turns the joined transcript into a stored report.

    Pass ``handle`` as the orchestrator's ``on_complete`` callback.
    """

    def __init__(self,
                 session: Session,
                 feedback_generator: FeedbackGenerator,
                 store: Optional[InterviewStore] = None,
                 event_bus: Optional[InterviewEventBus] = None):
        self.session = session
        self.feedback_generator = feedback_generator
        self.store = store
        self.event_bus = event_bus
        self.feedback: Optional[InterviewFeedback] = None

    def _notice(self, message: str, level: NoticeLevel = NoticeLevel.INFO) -> None:
        if self.event_bus:
            self.event_bus.emit(NoticeEvent(self.session.interview_id, message, level))

    async def handle(self, transcript: str) -> Optional[InterviewFeedback]:
        self._notice("Generating feedback...")
        request = FeedbackRequest(
            role=self.session.role,
            type=self.session.interview_type,
            tech_stack=list(self.session.tech_stack),
            transcript=transcript,
        )
        try:
            feedback = await asyncio.to_thread(self.feedback_generator.generate, request)
        except Exception as e:
            logger.error(f"Feedback generation failed: {e}")
            if self.event_bus:
                self.event_bus.emit(ErrorOccurredEvent(
                    self.session.interview_id, type(e).__name__, str(e), "feedback"))
            self._notice("Failed to generate feedback. Please try again.", NoticeLevel.ERROR)
            return None

        self.feedback = feedback
        if self.store is not None and self.session.interview_id:
            saved = self.store.save_feedback(self.session.interview_id, feedback.to_wire())
            if saved is None:
                self._notice("Feedback could not be saved.", NoticeLevel.WARNING)

        self._notice("Interview completed! Feedback generated.")
        return feedback
