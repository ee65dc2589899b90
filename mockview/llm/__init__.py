"""
LLM client and prompt management for the AI interviewer.

Provides the interface to an OpenAI-compatible API for questions,
follow-ups and final feedback.
"""

from .client import InterviewClient, InterviewError
from .models import InterviewContext, InterviewFeedback, InterviewTurn, JobDetails, TranscriptMessage
from .pipeline import InterviewPipeline

__all__ = [
    "InterviewClient",
    "InterviewContext",
    "InterviewError",
    "InterviewFeedback",
    "InterviewPipeline",
    "InterviewTurn",
    "JobDetails",
    "TranscriptMessage",
]
