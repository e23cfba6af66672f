"""Survey API — CRUD, lifecycle actions, questions, invitations, responses, and CSV export."""

import uuid
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from pulse.core.database import get_db
from pulse.models import Survey
from pulse.schemas.surveys import (
    InvitationRequest,
    QuestionAdd,
    QuestionOrder,
    QuestionResponse,
    QuestionUpdate,
    ResponseSubmission,
    SurveyCreate,
    SurveyDetailResponse,
    SurveyDuplicate,
    SurveyListResponse,
    SurveyResponseListResponse,
    SurveyResponseSchema,
    SurveyStatus,
    SurveySummary,
    SurveyUpdate,
)
from pulse.services.exceptions import NotFoundError, SurveyError, SurveyValidationError
from pulse.services.surveys import (
    add_question,
    archive_survey,
    create_survey,
    delete_survey,
    duplicate_survey,
    export_responses_csv,
    get_aggregate,
    get_survey,
    invite_respondents,
    list_responses,
    list_surveys,
    publish_survey,
    remove_question,
    reorder_questions,
    response_counts,
    submit_response,
    update_question,
    update_survey,
)

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _http_error(exc: SurveyError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, SurveyValidationError):
        return HTTPException(status_code=422, detail=str(exc))
    return HTTPException(status_code=409, detail=str(exc))


def _to_detail(db: Session, survey: Survey) -> SurveyDetailResponse:
    aggregate = get_aggregate(db, survey)
    return SurveyDetailResponse(
        id=survey.id,
        org_id=survey.org_id,
        title=survey.title,
        description=survey.description,
        status=survey.status,
        category=survey.category,
        frequency=survey.frequency,
        created_by=survey.created_by,
        created_at=survey.created_at,
        updated_at=survey.updated_at,
        responses=aggregate.responses,
        total_invited=aggregate.total_invited,
        completion_rate=aggregate.completion_rate,
        questions=[QuestionResponse.model_validate(q) for q in survey.questions],
    )


# ---------------------------------------------------------------------------
# Survey CRUD
# ---------------------------------------------------------------------------


@router.post("/", response_model=SurveyDetailResponse, status_code=201)
def create_survey_endpoint(payload: SurveyCreate, db: Session = Depends(get_db)):
    try:
        survey = create_survey(
            db,
            org_id=payload.org_id,
            title=payload.title,
            category=payload.category,
            frequency=payload.frequency,
            description=payload.description,
            created_by=payload.created_by,
            questions=[q.model_dump() for q in payload.questions],
        )
    except SurveyError as exc:
        raise _http_error(exc) from exc
    return _to_detail(db, survey)


@router.get("/", response_model=SurveyListResponse)
def list_surveys_endpoint(
    status: SurveyStatus | None = Query(None),
    org_id: uuid.UUID | None = Query(None),
    db: Session = Depends(get_db),
):
    surveys, total = list_surveys(db, org_id=org_id, status=status)
    counts = response_counts(db, [s.id for s in surveys])

    items = [
        SurveySummary(
            id=s.id,
            org_id=s.org_id,
            title=s.title,
            description=s.description,
            status=s.status,
            category=s.category,
            frequency=s.frequency,
            created_at=s.created_at,
            updated_at=s.updated_at,
            responses=counts.get(s.id, 0),
        )
        for s in surveys
    ]
    return SurveyListResponse(items=items, total=total)


@router.get("/{survey_id}", response_model=SurveyDetailResponse)
def get_survey_endpoint(survey_id: uuid.UUID, db: Session = Depends(get_db)):
    try:
        survey = get_survey(db, survey_id)
    except SurveyError as exc:
        raise _http_error(exc) from exc
    return _to_detail(db, survey)


@router.patch("/{survey_id}", response_model=SurveyDetailResponse)
def update_survey_endpoint(
    survey_id: uuid.UUID,
    payload: SurveyUpdate,
    db: Session = Depends(get_db),
):
    try:
        survey = update_survey(db, survey_id, payload.model_dump(exclude_unset=True))
    except SurveyError as exc:
        raise _http_error(exc) from exc
    return _to_detail(db, survey)


@router.delete("/{survey_id}", status_code=204)
def delete_survey_endpoint(survey_id: uuid.UUID, db: Session = Depends(get_db)):
    try:
        delete_survey(db, survey_id)
    except SurveyError as exc:
        raise _http_error(exc) from exc


# ---------------------------------------------------------------------------
# Lifecycle actions
# ---------------------------------------------------------------------------


@router.post("/{survey_id}/publish", response_model=SurveyDetailResponse)
def publish_survey_endpoint(survey_id: uuid.UUID, db: Session = Depends(get_db)):
    try:
        survey = publish_survey(db, survey_id)
    except SurveyError as exc:
        raise _http_error(exc) from exc
    return _to_detail(db, survey)


@router.post("/{survey_id}/archive", response_model=SurveyDetailResponse)
def archive_survey_endpoint(survey_id: uuid.UUID, db: Session = Depends(get_db)):
    try:
        survey = archive_survey(db, survey_id)
    except SurveyError as exc:
        raise _http_error(exc) from exc
    return _to_detail(db, survey)


@router.post("/{survey_id}/duplicate", response_model=SurveyDetailResponse, status_code=201)
def duplicate_survey_endpoint(
    survey_id: uuid.UUID,
    payload: SurveyDuplicate | None = None,
    db: Session = Depends(get_db),
):
    created_by = payload.created_by if payload is not None else None
    try:
        survey = duplicate_survey(db, survey_id, created_by=created_by)
    except SurveyError as exc:
        raise _http_error(exc) from exc
    return _to_detail(db, survey)


# ---------------------------------------------------------------------------
# Questions
# ---------------------------------------------------------------------------


@router.post("/{survey_id}/questions", response_model=QuestionResponse, status_code=201)
def add_question_endpoint(
    survey_id: uuid.UUID,
    payload: QuestionAdd,
    db: Session = Depends(get_db),
):
    question = payload.model_dump(exclude={"position"})
    try:
        return add_question(db, survey_id, question, position=payload.position)
    except SurveyError as exc:
        raise _http_error(exc) from exc


@router.put("/{survey_id}/questions/order", response_model=list[QuestionResponse])
def reorder_questions_endpoint(
    survey_id: uuid.UUID,
    payload: QuestionOrder,
    db: Session = Depends(get_db),
):
    try:
        return reorder_questions(db, survey_id, payload.question_ids)
    except SurveyError as exc:
        raise _http_error(exc) from exc


@router.patch("/{survey_id}/questions/{question_id}", response_model=QuestionResponse)
def update_question_endpoint(
    survey_id: uuid.UUID,
    question_id: uuid.UUID,
    payload: QuestionUpdate,
    db: Session = Depends(get_db),
):
    try:
        return update_question(db, survey_id, question_id, payload.model_dump(exclude_unset=True))
    except SurveyError as exc:
        raise _http_error(exc) from exc


@router.delete("/{survey_id}/questions/{question_id}", status_code=204)
def remove_question_endpoint(
    survey_id: uuid.UUID,
    question_id: uuid.UUID,
    db: Session = Depends(get_db),
):
    try:
        remove_question(db, survey_id, question_id)
    except SurveyError as exc:
        raise _http_error(exc) from exc


# ---------------------------------------------------------------------------
# Invitations and responses
# ---------------------------------------------------------------------------


@router.post("/{survey_id}/invitations", response_model=SurveyDetailResponse)
def invite_respondents_endpoint(
    survey_id: uuid.UUID,
    payload: InvitationRequest,
    db: Session = Depends(get_db),
):
    try:
        survey = invite_respondents(db, survey_id, payload.count)
    except SurveyError as exc:
        raise _http_error(exc) from exc
    return _to_detail(db, survey)


@router.post("/{survey_id}/responses", response_model=SurveyResponseSchema, status_code=201)
def submit_response_endpoint(
    survey_id: uuid.UUID,
    payload: ResponseSubmission,
    db: Session = Depends(get_db),
):
    try:
        return submit_response(db, survey_id, payload.answers, respondent=payload.respondent)
    except SurveyError as exc:
        raise _http_error(exc) from exc


@router.get("/{survey_id}/responses", response_model=SurveyResponseListResponse)
def list_responses_endpoint(survey_id: uuid.UUID, db: Session = Depends(get_db)):
    try:
        responses = list_responses(db, survey_id)
    except SurveyError as exc:
        raise _http_error(exc) from exc
    return SurveyResponseListResponse(items=responses, total=len(responses))


@router.get("/{survey_id}/responses/download")
def download_responses_endpoint(survey_id: uuid.UUID, db: Session = Depends(get_db)):
    """Export all survey responses as CSV."""
    try:
        survey = get_survey(db, survey_id)
        content = export_responses_csv(db, survey_id)
    except SurveyError as exc:
        raise _http_error(exc) from exc

    # Header values must be latin-1; the title travels only in the RFC 5987 form.
    fallback = f"survey_{survey_id}.csv"
    filename = quote(f"survey_{survey.title.replace(' ', '_')}_{survey_id}.csv", safe="")
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{filename}",
        },
    )
