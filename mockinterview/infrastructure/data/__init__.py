"""
Persistence for interviews and their feedback reports.
"""

from .records import InterviewRecord, FeedbackRecord, STATUS_IN_PROGRESS, STATUS_COMPLETED
from .interview_store import InterviewStore

__all__ = [
    'InterviewRecord',
    'FeedbackRecord',
    'STATUS_IN_PROGRESS',
    'STATUS_COMPLETED',
    'InterviewStore',
]
