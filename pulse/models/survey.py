import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pulse.core.database import Base

SURVEY_STATUSES = ("draft", "published", "archived")

SURVEY_CATEGORIES = (
    "engagement",
    "culture",
    "leadership",
    "satisfaction",
    "wellbeing",
    "performance",
    "custom",
)

SURVEY_FREQUENCIES = ("weekly", "monthly", "quarterly", "biannually", "annually", "onetime")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Survey(Base):
    """Survey definition owned by an organization.

    Questions live in ``survey_questions`` and are kept ordered by their
    ``position`` column. Submitted answers live in ``survey_responses``; the
    response count is always derived from those rows and never stored here.
    """

    __tablename__ = "surveys"
    __table_args__ = (
        Index("ix_surveys_org_id", "org_id"),
        Index("ix_surveys_status", "status"),
        Index("ix_surveys_org_status", "org_id", "status"),
        CheckConstraint("total_invited >= 0", name="ck_surveys_total_invited_non_negative"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    org_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("organizations.id"), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(
        Enum(*SURVEY_STATUSES, name="survey_status"),
        nullable=False,
        default="draft",
        server_default="draft",
    )
    category: Mapped[str] = mapped_column(
        Enum(*SURVEY_CATEGORIES, name="survey_category"),
        nullable=False,
        default="engagement",
    )
    frequency: Mapped[str] = mapped_column(
        Enum(*SURVEY_FREQUENCIES, name="survey_frequency"),
        nullable=False,
        default="quarterly",
    )
    created_by: Mapped[str | None] = mapped_column(String(255))
    total_invited: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    organization: Mapped["Organization"] = relationship(back_populates="surveys")
    questions: Mapped[list["Question"]] = relationship(
        back_populates="survey",
        order_by="Question.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
    )
    responses: Mapped[list["SurveyResponse"]] = relationship(
        back_populates="survey",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Survey {self.title} ({self.status})>"
