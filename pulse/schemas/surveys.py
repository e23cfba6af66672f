import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

QuestionType = Literal["likert", "text", "multiple_choice", "rating", "yes_no", "numeric"]
SurveyStatus = Literal["draft", "published", "archived"]
SurveyCategory = Literal[
    "engagement",
    "culture",
    "leadership",
    "satisfaction",
    "wellbeing",
    "performance",
    "custom",
]
SurveyFrequency = Literal["weekly", "monthly", "quarterly", "biannually", "annually", "onetime"]


# ---------------------------------------------------------------------------
# Question schemas
# ---------------------------------------------------------------------------


class QuestionCreate(BaseModel):
    """Single question in a survey."""

    type: QuestionType
    text: str = Field(..., min_length=1, max_length=1000)
    options: list[str] | None = Field(
        None,
        description="Answer options (required for multiple_choice, ignored for others)",
    )
    required: bool = True


class QuestionAdd(QuestionCreate):
    position: int | None = Field(None, ge=0, description="0-based insert position; appended when omitted")


class QuestionUpdate(BaseModel):
    type: QuestionType | None = None
    text: str | None = Field(None, min_length=1, max_length=1000)
    options: list[str] | None = None
    required: bool | None = None


class QuestionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    position: int
    type: QuestionType
    text: str
    options: list[str] | None
    required: bool


class QuestionOrder(BaseModel):
    question_ids: list[uuid.UUID]


# ---------------------------------------------------------------------------
# Survey CRUD schemas
# ---------------------------------------------------------------------------


class SurveyCreate(BaseModel):
    org_id: uuid.UUID
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    category: SurveyCategory = "engagement"
    frequency: SurveyFrequency = "quarterly"
    created_by: str | None = Field(None, max_length=255)
    questions: list[QuestionCreate] = Field(default_factory=list)


class SurveyUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    category: SurveyCategory | None = None
    frequency: SurveyFrequency | None = None
    total_invited: int | None = Field(None, ge=0)


class SurveyDuplicate(BaseModel):
    created_by: str | None = Field(None, max_length=255)


class SurveySummary(BaseModel):
    id: uuid.UUID
    org_id: uuid.UUID
    title: str
    description: str | None
    status: SurveyStatus
    category: SurveyCategory
    frequency: SurveyFrequency
    created_at: datetime
    updated_at: datetime
    responses: int = 0


class SurveyDetailResponse(SurveySummary):
    created_by: str | None
    total_invited: int = 0
    completion_rate: float = 0.0
    questions: list[QuestionResponse]


class SurveyListResponse(BaseModel):
    items: list[SurveySummary]
    total: int


# ---------------------------------------------------------------------------
# Invitations and responses
# ---------------------------------------------------------------------------


class InvitationRequest(BaseModel):
    count: int = Field(..., ge=1)


class ResponseSubmission(BaseModel):
    """Submit answers to a survey."""

    respondent: str | None = Field(None, max_length=255)
    answers: dict[str, Any] = Field(
        ...,
        description="Map of question id to answer value",
    )


class SurveyResponseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    survey_id: uuid.UUID
    respondent: str | None
    answers: dict[str, Any]
    completed_at: datetime | None
    created_at: datetime


class SurveyResponseListResponse(BaseModel):
    items: list[SurveyResponseSchema]
    total: int
