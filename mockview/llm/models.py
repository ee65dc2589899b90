"""
Pydantic models for LLM input/output.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class JobDetails(BaseModel):
    """The role the candidate is interviewing for."""

    title: Optional[str] = None
    description: Optional[str] = None
    yoe_required: Optional[str] = Field(
        None,
        description="Years of experience required (e.g., '2+ years')"
    )


class TranscriptMessage(BaseModel):
    """One turn of the interview."""

    role: Literal["assistant", "user"]
    content: str


class InterviewContext(BaseModel):
    """Context provided to the LLM for each interview call."""

    resume: str
    job: JobDetails
    conversation: List[TranscriptMessage] = []

    @property
    def question_count(self) -> int:
        return sum(1 for m in self.conversation if m.role == "assistant")


class InterviewTurn(BaseModel):
    """Interviewer reply to a candidate answer."""

    end: bool
    message: str


class InterviewFeedback(BaseModel):
    """LLM output schema for the final evaluation."""

    overall: str = Field(
        ...,
        description="2-3 paragraph summary of overall performance"
    )
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    rating: float = Field(..., ge=1, le=10, description="Overall rating (1-10)")
    technical_score: Optional[float] = Field(None, ge=1, le=10, alias="technicalScore")
    problem_solving_score: Optional[float] = Field(None, ge=1, le=10, alias="problemSolvingScore")
    communication_score: Optional[float] = Field(None, ge=1, le=10, alias="communicationScore")
    suggestions: str = Field(
        ...,
        description="Actionable suggestions for improvement"
    )

    model_config = {"populate_by_name": True}
