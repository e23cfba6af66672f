"""Dashboard summary — the counts behind the admin dashboard cards."""

import uuid

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from pulse.models import Organization, Survey, SurveyResponse
from pulse.models.survey import SURVEY_STATUSES
from pulse.services.aggregation import completion_rate


def dashboard_summary(db: Session, org_id: uuid.UUID | None = None) -> dict:
    """Aggregate survey, organization, and response counts.

    With ``org_id`` the survey and response figures are limited to that
    organization; the organization count is always global.
    """
    status_query = select(Survey.status, func.count()).group_by(Survey.status)
    invited_query = select(func.coalesce(func.sum(Survey.total_invited), 0))
    responses_query = select(func.count()).select_from(SurveyResponse).join(Survey)

    if org_id is not None:
        status_query = status_query.where(Survey.org_id == org_id)
        invited_query = invited_query.where(Survey.org_id == org_id)
        responses_query = responses_query.where(Survey.org_id == org_id)

    surveys_by_status = {status: 0 for status in SURVEY_STATUSES}
    for status, count in db.execute(status_query).all():
        surveys_by_status[status] = count

    total_invited = db.execute(invited_query).scalar_one()
    total_responses = db.execute(responses_query).scalar_one()
    organizations = db.execute(select(func.count()).select_from(Organization)).scalar_one()

    return {
        "total_surveys": sum(surveys_by_status.values()),
        "surveys_by_status": surveys_by_status,
        "organizations": organizations,
        "total_responses": total_responses,
        "total_invited": total_invited,
        "completion_rate": completion_rate(total_responses, total_invited),
    }
