"""
Mock Interview: voice-driven mock interviews with streamed AI interviewer replies.

Generates interview questions with an LLM, runs a turn-based voice or text call
with the candidate, and scores the transcript into a feedback report.
"""

__version__ = "1.0.0"

# Main entry points
from .interview.orchestrator import InterviewOrchestrator
from .interview.models import Session, CallResult

__all__ = ["InterviewOrchestrator", "Session", "CallResult"]
