"""
Interview pipeline for orchestrating an AI mock interview.

Manages context building, LLM interaction, and transcript storage.
"""

import logging
from typing import TYPE_CHECKING

from ..config import MockviewSettings
from .client import InterviewClient, InterviewError
from .models import InterviewContext, InterviewFeedback, InterviewTurn

if TYPE_CHECKING:
    from ..db import Database, SessionRecord

logger = logging.getLogger(__name__)


class InterviewPipeline:
    """Pipeline for running interview sessions with the AI interviewer."""

    def __init__(self, config: MockviewSettings, database: "Database"):
        """Initialize the interview pipeline."""
        self.config = config
        self.database = database
        self.llm_client = InterviewClient(config)

    def _get_session(self, session_id: int) -> "SessionRecord":
        session = self.database.get_session(session_id)
        if session is None:
            raise InterviewError(f"Session {session_id} not found")
        return session

    def _build_context(self, session_id: int) -> InterviewContext:
        """Build interview context from the stored session and transcript."""
        session = self._get_session(session_id)
        return InterviewContext(
            resume=session.resume,
            job=session.job,
            conversation=self.database.get_transcript(session_id),
        )

    def start(self, session_id: int) -> str:
        """Ask the opening question (or resume an interrupted interview)."""
        session = self._get_session(session_id)
        if session.status == "completed":
            raise InterviewError(f"Session {session_id} is already completed")

        question = self.llm_client.next_question(self._build_context(session_id))
        self.database.append_message(session_id, "assistant", question)
        if session.status == "pending":
            self.database.update_status(session_id, "in-progress")
        return question

    def answer(self, session_id: int, text: str) -> InterviewTurn:
        """Record a candidate answer and get the interviewer's reply."""
        if not text or not text.strip():
            raise InterviewError("Answer cannot be empty")

        self.database.append_message(session_id, "user", text.strip())
        turn = self.llm_client.continue_interview(self._build_context(session_id))
        self.database.append_message(session_id, "assistant", turn.message)

        if turn.end:
            logger.info(f"Interviewer ended session {session_id}")
        return turn

    def finish(self, session_id: int) -> InterviewFeedback:
        """Generate, store and return the final evaluation."""
        feedback = self.llm_client.generate_feedback(self._build_context(session_id))
        self.database.record_feedback(session_id, feedback)
        logger.info(f"Session {session_id} completed with rating {feedback.rating}/10")
        return feedback
