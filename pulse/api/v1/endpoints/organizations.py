"""Organization (tenant) API."""

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from pulse.core.database import get_db
from pulse.schemas.organizations import (
    OrganizationCreate,
    OrganizationListResponse,
    OrganizationResponse,
)
from pulse.services.exceptions import (
    OrganizationInUseError,
    OrganizationNotFoundError,
    SurveyValidationError,
)
from pulse.services.organizations import (
    count_surveys,
    create_organization,
    delete_organization,
    get_organization,
    list_organizations,
)

router = APIRouter()


@router.post("/", response_model=OrganizationResponse, status_code=201)
def create_organization_endpoint(payload: OrganizationCreate, db: Session = Depends(get_db)):
    try:
        return create_organization(db, payload.name)
    except SurveyValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.get("/", response_model=OrganizationListResponse)
def list_organizations_endpoint(db: Session = Depends(get_db)):
    rows = list_organizations(db)
    items = [
        OrganizationResponse(
            id=org.id,
            name=org.name,
            created_at=org.created_at,
            updated_at=org.updated_at,
            survey_count=survey_count,
        )
        for org, survey_count in rows
    ]
    return OrganizationListResponse(items=items, total=len(items))


@router.get("/{org_id}", response_model=OrganizationResponse)
def get_organization_endpoint(org_id: uuid.UUID, db: Session = Depends(get_db)):
    try:
        org = get_organization(db, org_id)
    except OrganizationNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    return OrganizationResponse(
        id=org.id,
        name=org.name,
        created_at=org.created_at,
        updated_at=org.updated_at,
        survey_count=count_surveys(db, org.id),
    )


@router.delete("/{org_id}", status_code=204)
def delete_organization_endpoint(org_id: uuid.UUID, db: Session = Depends(get_db)):
    try:
        delete_organization(db, org_id)
    except OrganizationNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except OrganizationInUseError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
