import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pulse.core.database import get_db
from pulse.schemas.dashboard import DashboardSummary
from pulse.services.dashboard import dashboard_summary

router = APIRouter()


@router.get("/", response_model=DashboardSummary)
def get_dashboard(
    org_id: uuid.UUID | None = Query(None),
    db: Session = Depends(get_db),
):
    return dashboard_summary(db, org_id=org_id)
