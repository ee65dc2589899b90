"""
LLM client for the AI interviewer.

Uses the OpenAI-compatible chat completions API.
"""

import json
import logging
import os
from typing import Optional

from openai import OpenAI
from pydantic import ValidationError

from ..config import MockviewSettings
from .models import InterviewContext, InterviewFeedback, InterviewTurn
from .prompts import get_continuation_prompt, get_evaluation_prompt, get_question_prompt

logger = logging.getLogger(__name__)

END_MARKERS = (
    "this concludes our interview",
    "we'll now prepare your feedback",
    "we’ll now prepare your feedback",
)


class InterviewError(Exception):
    """Raised when the LLM cannot produce a usable reply."""
    pass


def strip_code_fence(content: str) -> str:
    """Remove a markdown code block wrapper, if any."""
    content = content.strip()
    if content.startswith("```"):
        content = content.strip("`").strip()
        if content.startswith("json"):
            content = content[4:].strip()
    return content


class InterviewClient:
    """Client for interviewer LLM interactions."""

    def __init__(self, config: MockviewSettings):
        """Initialize LLM client with configuration."""
        self.config = config
        self.client = OpenAI(
            base_url=config.llm.base_url,
            # Local OpenAI-compatible servers accept any key
            api_key=config.llm.api_key or os.environ.get("OPENAI_API_KEY", "not-needed"),
        )

    def _complete(self, system_prompt: str, user_prompt: str, temperature: float) -> str:
        """Single chat completion; returns stripped content."""
        response = self.client.chat.completions.create(
            model=self.config.llm.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            timeout=self.config.llm.timeout,
        )
        content = (response.choices[0].message.content or "").strip()
        if not content:
            raise InterviewError("Empty response from LLM")
        return content

    def _complete_with_retries(self, system_prompt: str, user_prompt: str, temperature: float) -> str:
        max_retries = self.config.llm.max_retries
        last_error = None

        for attempt in range(max_retries):
            try:
                return self._complete(system_prompt, user_prompt, temperature)
            except Exception as e:
                last_error = f"LLM call failed: {e}"
                logger.warning(f"Interview LLM attempt {attempt + 1}/{max_retries} failed: {e}")
                continue

        raise InterviewError(f"No reply after {max_retries} attempts. Last error: {last_error}")

    def next_question(self, context: InterviewContext) -> str:
        """Generate the next interviewer question."""
        system_prompt, user_prompt = get_question_prompt(context)
        return self._complete_with_retries(system_prompt, user_prompt, temperature=0.7)

    def continue_interview(self, context: InterviewContext) -> InterviewTurn:
        """Generate the next question, or the closing statement when done."""
        system_prompt, user_prompt = get_continuation_prompt(context)
        message = self._complete_with_retries(system_prompt, user_prompt, temperature=0.7)
        lower = message.lower()
        return InterviewTurn(end=any(marker in lower for marker in END_MARKERS), message=message)

    def generate_feedback(self, context: InterviewContext) -> InterviewFeedback:
        """
        Generate the structured evaluation.

        Raises:
            InterviewError: If no valid JSON evaluation is returned
        """
        system_prompt, user_prompt = get_evaluation_prompt(context)
        max_retries = self.config.llm.max_retries
        last_error: Optional[str] = None

        for attempt in range(max_retries):
            try:
                content = strip_code_fence(self._complete(system_prompt, user_prompt, temperature=0.2))
                return InterviewFeedback(**json.loads(content))

            except (json.JSONDecodeError, ValidationError) as e:
                last_error = f"Invalid feedback JSON: {e}"
                continue

            except Exception as e:
                last_error = f"LLM call failed: {e}"
                continue

        raise InterviewError(f"Failed to generate feedback after {max_retries} attempts. Last error: {last_error}")
