"""add organizations, surveys, survey_questions and survey_responses tables

Revision ID: c1d2e3f4a5b6
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "c1d2e3f4a5b6"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SURVEY_STATUS = ("draft", "published", "archived")
SURVEY_CATEGORY = (
    "engagement", "culture", "leadership", "satisfaction",
    "wellbeing", "performance", "custom",
)
SURVEY_FREQUENCY = ("weekly", "monthly", "quarterly", "biannually", "annually", "onetime")
QUESTION_TYPE = ("likert", "text", "multiple_choice", "rating", "yes_no", "numeric")


def _enum(values: tuple, name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*values, name=name, create_type=False)


def upgrade() -> None:
    bind = op.get_bind()
    for values, name in (
        (SURVEY_STATUS, "survey_status"),
        (SURVEY_CATEGORY, "survey_category"),
        (SURVEY_FREQUENCY, "survey_frequency"),
        (QUESTION_TYPE, "question_type"),
    ):
        _enum(values, name).create(bind, checkfirst=True)

    op.create_table(
        "organizations",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "surveys",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("org_id", sa.UUID(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", _enum(SURVEY_STATUS, "survey_status"), server_default="draft", nullable=False),
        sa.Column("category", _enum(SURVEY_CATEGORY, "survey_category"), nullable=False),
        sa.Column("frequency", _enum(SURVEY_FREQUENCY, "survey_frequency"), nullable=False),
        sa.Column("created_by", sa.String(length=255), nullable=True),
        sa.Column("total_invited", sa.Integer(), server_default="0", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("total_invited >= 0", name="ck_surveys_total_invited_non_negative"),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_surveys_org_id", "surveys", ["org_id"], unique=False)
    op.create_index("ix_surveys_status", "surveys", ["status"], unique=False)
    op.create_index("ix_surveys_org_status", "surveys", ["org_id", "status"], unique=False)

    op.create_table(
        "survey_questions",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("survey_id", sa.UUID(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("type", _enum(QUESTION_TYPE, "question_type"), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("options", postgresql.JSONB(), nullable=True),
        sa.Column("required", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["survey_id"], ["surveys.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_survey_questions_survey_position", "survey_questions", ["survey_id", "position"], unique=False
    )

    op.create_table(
        "survey_responses",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("survey_id", sa.UUID(), nullable=False),
        sa.Column("respondent", sa.String(length=255), nullable=True),
        sa.Column("answers", postgresql.JSONB(), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["survey_id"], ["surveys.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_survey_responses_survey_id", "survey_responses", ["survey_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_survey_responses_survey_id", table_name="survey_responses")
    op.drop_table("survey_responses")

    op.drop_index("ix_survey_questions_survey_position", table_name="survey_questions")
    op.drop_table("survey_questions")

    op.drop_index("ix_surveys_org_status", table_name="surveys")
    op.drop_index("ix_surveys_status", table_name="surveys")
    op.drop_index("ix_surveys_org_id", table_name="surveys")
    op.drop_table("surveys")

    op.drop_table("organizations")

    for name in ("question_type", "survey_frequency", "survey_category", "survey_status"):
        op.execute(f"DROP TYPE IF EXISTS {name}")
