"""Survey workflow service — CRUD, lifecycle transitions, questions, and responses.

Every mutating operation validates its input before touching the session and
stamps ``updated_at`` on the survey it changes. Errors are raised as the
domain exceptions in :mod:`pulse.services.exceptions`; translating them to
HTTP responses is the endpoint layer's job.
"""

import csv
import io
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from pulse.core.config import settings
from pulse.models import Organization, Question, Survey, SurveyResponse
from pulse.models.question import QUESTION_TYPES
from pulse.models.survey import SURVEY_CATEGORIES, SURVEY_FREQUENCIES, SURVEY_STATUSES
from pulse.services.aggregation import ResponseAggregate
from pulse.services.exceptions import (
    OrganizationNotFoundError,
    QuestionNotFoundError,
    SurveyArchivedError,
    SurveyNotFoundError,
    SurveyNotPublishedError,
    SurveyValidationError,
)

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 255

SURVEY_UPDATABLE_FIELDS = frozenset({"title", "description", "category", "frequency", "total_invited"})
QUESTION_UPDATABLE_FIELDS = frozenset({"type", "text", "options", "required"})

MIN_CHOICE_OPTIONS = 2
MAX_CHOICE_OPTIONS = 10

# Likert and rating answers share a 1-5 scale
SCALE_MIN = 1
SCALE_MAX = 5


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _touch(survey: Survey) -> None:
    survey.updated_at = _now()


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _validate_title(title: str | None) -> list[str]:
    if title is None or not title.strip():
        return ["Title must not be empty"]
    if len(title.strip()) > TITLE_MAX_LENGTH:
        return [f"Title must be at most {TITLE_MAX_LENGTH} characters"]
    return []


def _validate_tags(category: str | None, frequency: str | None) -> list[str]:
    errors: list[str] = []
    if category is not None and category not in SURVEY_CATEGORIES:
        errors.append(f"Unknown category '{category}'")
    if frequency is not None and frequency not in SURVEY_FREQUENCIES:
        errors.append(f"Unknown frequency '{frequency}'")
    return errors


def _validate_question(index: int, question: dict) -> list[str]:
    """Validate one question definition, return list of errors."""
    errors: list[str] = []
    label = f"Question {index + 1}"

    q_type = question.get("type")
    if q_type not in QUESTION_TYPES:
        errors.append(f"{label}: unknown question type '{q_type}'")

    text = question.get("text")
    if not isinstance(text, str) or not text.strip():
        errors.append(f"{label}: text must not be empty")

    if q_type == "multiple_choice":
        opts = question.get("options")
        if not opts or len(opts) < MIN_CHOICE_OPTIONS:
            errors.append(f"{label}: multiple_choice requires at least {MIN_CHOICE_OPTIONS} options")
        if opts and len(opts) > MAX_CHOICE_OPTIONS:
            errors.append(f"{label}: multiple_choice supports at most {MAX_CHOICE_OPTIONS} options")
        if opts and len(set(opts)) != len(opts):
            errors.append(f"{label}: multiple_choice options must be unique")
    return errors


def _normalize_question(question: dict) -> dict:
    q_type = question["type"]
    return {
        "type": q_type,
        "text": question["text"].strip(),
        # options only mean something for multiple_choice
        "options": list(question["options"]) if q_type == "multiple_choice" else None,
        "required": bool(question.get("required", True)),
    }


def _validate_scale(label: str, value: Any) -> str | None:
    message = f"{label}: answer must be an integer between {SCALE_MIN} and {SCALE_MAX}"
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return message
    try:
        score = float(value)
    except ValueError:
        return message
    if not score.is_integer() or score < SCALE_MIN or score > SCALE_MAX:
        return message
    return None


def validate_answers(survey: Survey, answers: dict[str, Any]) -> list[str]:
    """Validate submitted answers against the survey's questions.

    Answers are keyed by question id. Unknown ids are rejected so that a
    response can never reference a question from another survey.
    """
    errors: list[str] = []
    known_ids = {str(q.id) for q in survey.questions}

    for key in answers:
        if key not in known_ids:
            errors.append(f"Unknown question id '{key}'")

    for question in survey.questions:
        label = f"Q{question.position + 1}"
        value = answers.get(str(question.id))

        if value is None or (isinstance(value, str) and not value.strip()):
            if question.required:
                errors.append(f"{label} ('{question.text}') is required")
            continue

        if question.type in ("likert", "rating"):
            error = _validate_scale(label, value)
            if error:
                errors.append(error)
        elif question.type == "multiple_choice":
            if value not in (question.options or []):
                errors.append(f"{label}: '{value}' is not a valid option")
        elif question.type == "yes_no":
            if not (isinstance(value, bool) or value in ("yes", "no")):
                errors.append(f"{label}: yes_no answer must be true/false or yes/no")
        elif question.type == "numeric":
            if isinstance(value, bool):
                errors.append(f"{label}: numeric answer must be a number")
                continue
            try:
                float(value)
            except (ValueError, TypeError):
                errors.append(f"{label}: numeric answer must be a number")
        elif question.type == "text":
            if not isinstance(value, str):
                errors.append(f"{label}: text answer must be a string")

    return errors


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def get_survey(db: Session, survey_id: uuid.UUID, for_update: bool = False) -> Survey:
    """Return a survey with its ordered questions, or raise SurveyNotFoundError.

    ``for_update`` takes a row lock so writes that compare responses against
    ``total_invited`` run one at a time.
    """
    survey = db.get(Survey, survey_id, with_for_update=for_update)
    if survey is None:
        raise SurveyNotFoundError(survey_id)
    return survey


def list_surveys(
    db: Session,
    org_id: uuid.UUID | None = None,
    status: str | None = None,
) -> tuple[list[Survey], int]:
    """Return every survey matching the filters, newest first."""
    if status is not None and status not in SURVEY_STATUSES:
        raise SurveyValidationError(f"Unknown status '{status}'")

    query = select(Survey)
    count_query = select(func.count()).select_from(Survey)

    if org_id is not None:
        query = query.where(Survey.org_id == org_id)
        count_query = count_query.where(Survey.org_id == org_id)
    if status is not None:
        query = query.where(Survey.status == status)
        count_query = count_query.where(Survey.status == status)

    total = db.execute(count_query).scalar_one()
    surveys = db.execute(query.order_by(Survey.created_at.desc(), Survey.title)).scalars().all()
    return list(surveys), total


def count_responses(db: Session, survey_id: uuid.UUID) -> int:
    return db.execute(
        select(func.count()).select_from(SurveyResponse).where(SurveyResponse.survey_id == survey_id)
    ).scalar_one()


def response_counts(db: Session, survey_ids: list[uuid.UUID]) -> dict[uuid.UUID, int]:
    """Return response counts for many surveys in one query. Missing ids count zero."""
    if not survey_ids:
        return {}
    rows = db.execute(
        select(SurveyResponse.survey_id, func.count())
        .where(SurveyResponse.survey_id.in_(survey_ids))
        .group_by(SurveyResponse.survey_id)
    ).all()
    counts = {survey_id: 0 for survey_id in survey_ids}
    counts.update({survey_id: count for survey_id, count in rows})
    return counts


def get_aggregate(db: Session, survey: Survey) -> ResponseAggregate:
    return ResponseAggregate(
        responses=count_responses(db, survey.id),
        total_invited=survey.total_invited,
    )


# ---------------------------------------------------------------------------
# Survey CRUD and lifecycle
# ---------------------------------------------------------------------------


def create_survey(
    db: Session,
    org_id: uuid.UUID,
    title: str,
    category: str,
    frequency: str,
    description: str | None = None,
    created_by: str | None = None,
    questions: list[dict] | None = None,
) -> Survey:
    """Create a survey in ``draft`` status."""
    questions = questions or []

    errors = _validate_title(title)
    if category is None or frequency is None:
        errors.append("Category and frequency are required")
    errors.extend(_validate_tags(category, frequency))
    if len(questions) > settings.MAX_QUESTIONS_PER_SURVEY:
        errors.append(f"A survey supports at most {settings.MAX_QUESTIONS_PER_SURVEY} questions")
    for i, question in enumerate(questions):
        errors.extend(_validate_question(i, question))
    if errors:
        raise SurveyValidationError(errors)

    if db.get(Organization, org_id) is None:
        raise OrganizationNotFoundError(org_id)

    now = _now()
    survey = Survey(
        org_id=org_id,
        title=title.strip(),
        description=description,
        category=category,
        frequency=frequency,
        created_by=created_by,
        status="draft",
        total_invited=0,
        created_at=now,
        updated_at=now,
        questions=[Question(**_normalize_question(q)) for q in questions],
    )
    db.add(survey)
    db.commit()
    db.refresh(survey)

    logger.info("Created survey %s (%s) for org %s", survey.id, survey.title, org_id)
    return survey


def update_survey(db: Session, survey_id: uuid.UUID, fields: dict[str, Any]) -> Survey:
    """Apply a partial update. Status is changed only through the lifecycle operations."""
    survey = get_survey(db, survey_id, for_update="total_invited" in fields)

    if survey.status == "archived":
        logger.warning("Rejected update of archived survey %s", survey_id)
        raise SurveyArchivedError("update")

    if not fields:
        raise SurveyValidationError("No fields to update")

    unknown = sorted(set(fields) - SURVEY_UPDATABLE_FIELDS)
    if unknown:
        raise SurveyValidationError(f"Cannot update field(s): {', '.join(unknown)}")

    errors: list[str] = []
    if "title" in fields:
        errors.extend(_validate_title(fields["title"]))
    for tag in ("category", "frequency"):
        if tag in fields and fields[tag] is None:
            errors.append(f"{tag.capitalize()} cannot be cleared")
    errors.extend(_validate_tags(fields.get("category"), fields.get("frequency")))
    if "total_invited" in fields:
        total_invited = fields["total_invited"]
        if total_invited is None or total_invited < 0:
            errors.append("total_invited must be zero or greater")
        else:
            responses = count_responses(db, survey.id)
            if total_invited < responses:
                errors.append(
                    f"total_invited ({total_invited}) cannot be lower than the "
                    f"{responses} response(s) already collected"
                )
    if errors:
        raise SurveyValidationError(errors)

    for field, value in fields.items():
        if field == "title":
            value = value.strip()
        setattr(survey, field, value)
    _touch(survey)

    db.commit()
    db.refresh(survey)
    logger.info("Updated survey %s (%s)", survey.id, ", ".join(sorted(fields)))
    return survey


def publish_survey(db: Session, survey_id: uuid.UUID) -> Survey:
    """Move a draft survey to ``published``. Publishing twice is a no-op."""
    survey = get_survey(db, survey_id)

    if survey.status == "archived":
        logger.warning("Rejected publish of archived survey %s", survey_id)
        raise SurveyArchivedError("publish")
    if survey.status == "published":
        return survey
    if not survey.questions:
        raise SurveyValidationError("Cannot publish a survey without questions")

    survey.status = "published"
    _touch(survey)
    db.commit()
    db.refresh(survey)

    logger.info("Published survey %s", survey.id)
    return survey


def archive_survey(db: Session, survey_id: uuid.UUID) -> Survey:
    """Archive a survey from any state. Archiving twice is a no-op."""
    survey = get_survey(db, survey_id)

    if survey.status == "archived":
        return survey

    survey.status = "archived"
    _touch(survey)
    db.commit()
    db.refresh(survey)

    logger.info("Archived survey %s", survey.id)
    return survey


def delete_survey(db: Session, survey_id: uuid.UUID) -> None:
    """Delete a survey together with its questions and responses."""
    survey = get_survey(db, survey_id)
    db.delete(survey)
    db.commit()
    logger.info("Deleted survey %s", survey_id)


def _copy_title(title: str) -> str:
    suffix = settings.DUPLICATE_TITLE_SUFFIX
    return title[: TITLE_MAX_LENGTH - len(suffix)] + suffix


def duplicate_survey(db: Session, survey_id: uuid.UUID, created_by: str | None = None) -> Survey:
    """Copy a survey and its questions into a fresh draft with no responses."""
    source = get_survey(db, survey_id)

    now = _now()
    copy = Survey(
        org_id=source.org_id,
        title=_copy_title(source.title),
        description=source.description,
        category=source.category,
        frequency=source.frequency,
        created_by=created_by if created_by is not None else source.created_by,
        status="draft",
        total_invited=0,
        created_at=now,
        updated_at=now,
        questions=[
            Question(
                type=q.type,
                text=q.text,
                options=list(q.options) if q.options is not None else None,
                required=q.required,
            )
            for q in source.questions
        ],
    )
    db.add(copy)
    db.commit()
    db.refresh(copy)

    logger.info("Duplicated survey %s as %s", source.id, copy.id)
    return copy


# ---------------------------------------------------------------------------
# Questions
# ---------------------------------------------------------------------------


def _find_question(survey: Survey, question_id: uuid.UUID) -> Question:
    for question in survey.questions:
        if question.id == question_id:
            return question
    raise QuestionNotFoundError(question_id)


def get_question(db: Session, survey_id: uuid.UUID, question_id: uuid.UUID) -> Question:
    return _find_question(get_survey(db, survey_id), question_id)


def add_question(
    db: Session,
    survey_id: uuid.UUID,
    question: dict,
    position: int | None = None,
) -> Question:
    """Append a question, or insert it at ``position`` (0-based) and renumber."""
    survey = get_survey(db, survey_id)
    if survey.status == "archived":
        raise SurveyArchivedError("edit questions of")

    count = len(survey.questions)
    errors = _validate_question(count if position is None else position, question)
    if count >= settings.MAX_QUESTIONS_PER_SURVEY:
        errors.append(f"A survey supports at most {settings.MAX_QUESTIONS_PER_SURVEY} questions")
    if position is not None and not 0 <= position <= count:
        errors.append(f"Position must be between 0 and {count}")
    if errors:
        raise SurveyValidationError(errors)

    new_question = Question(**_normalize_question(question))
    if position is None:
        survey.questions.append(new_question)
    else:
        survey.questions.insert(position, new_question)
    _touch(survey)

    db.commit()
    db.refresh(new_question)
    logger.info("Added question %s to survey %s", new_question.id, survey.id)
    return new_question


def update_question(
    db: Session,
    survey_id: uuid.UUID,
    question_id: uuid.UUID,
    fields: dict[str, Any],
) -> Question:
    survey = get_survey(db, survey_id)
    question = _find_question(survey, question_id)
    if survey.status == "archived":
        raise SurveyArchivedError("edit questions of")

    if not fields:
        raise SurveyValidationError("No fields to update")
    unknown = sorted(set(fields) - QUESTION_UPDATABLE_FIELDS)
    if unknown:
        raise SurveyValidationError(f"Cannot update field(s): {', '.join(unknown)}")
    cleared = sorted(field for field in ("type", "text", "required") if field in fields and fields[field] is None)
    if cleared:
        raise SurveyValidationError([f"{field.capitalize()} cannot be cleared" for field in cleared])

    merged = {
        "type": question.type,
        "text": question.text,
        "options": question.options,
        "required": question.required,
        **fields,
    }
    errors = _validate_question(question.position, merged)
    if errors:
        raise SurveyValidationError(errors)

    for field, value in _normalize_question(merged).items():
        setattr(question, field, value)
    _touch(survey)

    db.commit()
    db.refresh(question)
    logger.info("Updated question %s of survey %s (%s)", question.id, survey.id, ", ".join(sorted(fields)))
    return question


def remove_question(db: Session, survey_id: uuid.UUID, question_id: uuid.UUID) -> None:
    survey = get_survey(db, survey_id)
    question = _find_question(survey, question_id)
    if survey.status == "archived":
        raise SurveyArchivedError("edit questions of")

    survey.questions.remove(question)
    survey.questions.reorder()
    _touch(survey)

    db.commit()
    logger.info("Removed question %s from survey %s", question_id, survey_id)


def reorder_questions(db: Session, survey_id: uuid.UUID, question_ids: list[uuid.UUID]) -> list[Question]:
    """Reorder questions to match ``question_ids``, which must name each question once."""
    survey = get_survey(db, survey_id)
    if survey.status == "archived":
        raise SurveyArchivedError("edit questions of")

    current = {q.id: q for q in survey.questions}
    if len(question_ids) != len(current) or set(question_ids) != set(current):
        raise SurveyValidationError("question_ids must list every question of the survey exactly once")

    survey.questions = [current[question_id] for question_id in question_ids]
    survey.questions.reorder()
    _touch(survey)

    db.commit()
    db.refresh(survey)
    return list(survey.questions)


# ---------------------------------------------------------------------------
# Invitations and responses
# ---------------------------------------------------------------------------


def invite_respondents(db: Session, survey_id: uuid.UUID, count: int) -> Survey:
    """Raise the survey's invited count by ``count``."""
    survey = get_survey(db, survey_id, for_update=True)
    if survey.status == "archived":
        raise SurveyArchivedError("invite respondents to")
    if count < 1:
        raise SurveyValidationError("Invitation count must be at least 1")

    survey.total_invited += count
    _touch(survey)
    db.commit()
    db.refresh(survey)

    logger.info("Invited %d respondent(s) to survey %s (total %d)", count, survey.id, survey.total_invited)
    return survey


def submit_response(
    db: Session,
    survey_id: uuid.UUID,
    answers: dict[str, Any],
    respondent: str | None = None,
) -> SurveyResponse:
    """Record a completed response to a published survey.

    A response is refused once every invited respondent has answered, so the
    aggregate never reports more responses than invitations. The survey row is
    locked until commit so concurrent submissions cannot both take the last slot.
    """
    survey = get_survey(db, survey_id, for_update=True)

    if survey.status == "archived":
        logger.warning("Rejected response to archived survey %s", survey_id)
        raise SurveyArchivedError("submit responses to")
    if survey.status != "published":
        raise SurveyNotPublishedError()

    errors = validate_answers(survey, answers)
    if errors:
        raise SurveyValidationError(errors)

    responses = count_responses(db, survey.id)
    if responses >= survey.total_invited:
        raise SurveyValidationError(
            f"All {survey.total_invited} invited respondent(s) have already responded"
        )

    now = _now()
    record = SurveyResponse(
        survey_id=survey.id,
        respondent=respondent,
        answers={key: value for key, value in answers.items() if value is not None},
        completed_at=now,
        created_at=now,
    )
    db.add(record)
    _touch(survey)
    db.commit()
    db.refresh(record)

    logger.info("Recorded response %s for survey %s", record.id, survey.id)
    return record


def list_responses(db: Session, survey_id: uuid.UUID) -> list[SurveyResponse]:
    """Return every response to a survey, newest first."""
    get_survey(db, survey_id)
    return list(
        db.execute(
            select(SurveyResponse)
            .where(SurveyResponse.survey_id == survey_id)
            .order_by(SurveyResponse.created_at.desc())
        )
        .scalars()
        .all()
    )


def export_responses_csv(db: Session, survey_id: uuid.UUID) -> str:
    """Render all responses as CSV, one column per question in survey order."""
    survey = get_survey(db, survey_id)

    responses = (
        db.execute(
            select(SurveyResponse)
            .where(SurveyResponse.survey_id == survey_id)
            .order_by(SurveyResponse.created_at.asc())
        )
        .scalars()
        .all()
    )
    questions = list(survey.questions)

    output = io.StringIO()
    writer = csv.writer(output)

    # Header row: response_id, respondent, Q1 text, Q2 text, ..., completed_at
    header = ["response_id", "respondent"]
    for q in questions:
        header.append(f"Q{q.position + 1}: {q.text}")
    header.append("completed_at")
    writer.writerow(header)

    for resp in responses:
        row = [str(resp.id), resp.respondent or ""]
        for q in questions:
            answer = resp.answers.get(str(q.id))
            row.append("" if answer is None else str(answer))
        row.append(resp.completed_at.isoformat() if resp.completed_at else "")
        writer.writerow(row)

    return output.getvalue()
