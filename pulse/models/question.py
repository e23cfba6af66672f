import uuid

from sqlalchemy import Boolean, Enum, ForeignKey, Index, Integer, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pulse.core.database import Base

QUESTION_TYPES = ("likert", "text", "multiple_choice", "rating", "yes_no", "numeric")


class Question(Base):
    """A single question of a survey, numbered Q1, Q2, ... by ``position``.

    ``options`` holds the answer choices for multiple_choice questions and is
    null for every other type.
    """

    __tablename__ = "survey_questions"
    __table_args__ = (Index("ix_survey_questions_survey_position", "survey_id", "position"),)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    survey_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("surveys.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    type: Mapped[str] = mapped_column(Enum(*QUESTION_TYPES, name="question_type"), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    options: Mapped[list | None] = mapped_column(JSONB)
    required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    survey: Mapped["Survey"] = relationship(back_populates="questions")

    def __repr__(self) -> str:
        return f"<Question Q{self.position + 1} ({self.type})>"
