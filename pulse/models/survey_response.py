import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pulse.core.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SurveyResponse(Base):
    """One respondent's answers to a survey.

    The answers field is a JSON dict keyed by question id (as string):
        {
            "<question uuid>": 4,              # likert / rating (1-5)
            "<question uuid>": "Free text",    # text
            "<question uuid>": "Option A",     # multiple_choice
            "<question uuid>": true,           # yes_no
            "<question uuid>": 42              # numeric
        }
    """

    __tablename__ = "survey_responses"
    __table_args__ = (Index("ix_survey_responses_survey_id", "survey_id"),)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    survey_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("surveys.id", ondelete="CASCADE"), nullable=False
    )
    respondent: Mapped[str | None] = mapped_column(String(255))
    answers: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    survey: Mapped["Survey"] = relationship(back_populates="responses")

    def __repr__(self) -> str:
        completed = "complete" if self.completed_at else "partial"
        return f"<SurveyResponse survey={self.survey_id} ({completed})>"
