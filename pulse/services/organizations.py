"""Organization (tenant) service."""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from pulse.models import Organization, Survey
from pulse.services.exceptions import (
    OrganizationInUseError,
    OrganizationNotFoundError,
    SurveyValidationError,
)

logger = logging.getLogger(__name__)


def get_organization(db: Session, org_id: uuid.UUID) -> Organization:
    org = db.get(Organization, org_id)
    if org is None:
        raise OrganizationNotFoundError(org_id)
    return org


def count_surveys(db: Session, org_id: uuid.UUID) -> int:
    return db.execute(select(func.count()).select_from(Survey).where(Survey.org_id == org_id)).scalar_one()


def list_organizations(db: Session) -> list[tuple[Organization, int]]:
    """Return every organization with its survey count, alphabetically."""
    survey_count = (
        select(Survey.org_id, func.count(Survey.id).label("survey_count"))
        .group_by(Survey.org_id)
        .subquery()
    )
    rows = db.execute(
        select(Organization, func.coalesce(survey_count.c.survey_count, 0))
        .outerjoin(survey_count, survey_count.c.org_id == Organization.id)
        .order_by(Organization.name)
    ).all()
    return [(org, count) for org, count in rows]


def create_organization(db: Session, name: str) -> Organization:
    if name is None or not name.strip():
        raise SurveyValidationError("Organization name must not be empty")

    now = datetime.now(timezone.utc)
    org = Organization(name=name.strip(), created_at=now, updated_at=now)
    db.add(org)
    db.commit()
    db.refresh(org)

    logger.info("Created organization %s (%s)", org.id, org.name)
    return org


def delete_organization(db: Session, org_id: uuid.UUID) -> None:
    """Delete an organization that no longer owns any survey."""
    org = get_organization(db, org_id)

    surveys = count_surveys(db, org_id)
    if surveys:
        raise OrganizationInUseError(surveys)

    db.delete(org)
    db.commit()
    logger.info("Deleted organization %s", org_id)
