"""
Prospects router - CRM lead management.

All endpoints require an authenticated operator.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from app.deps import get_current_user, get_prospect_service
from app.schemas.prospect import (
    AssignProspect,
    FollowUpCreate,
    Prospect,
    ProspectCreate,
    ProspectStats,
    ProspectUpdate,
)
from app.schemas.user import User
from app.services.prospect_service import ProspectService


# ---------------------------------------------------------------------------
# ROUTER SETUP
# ---------------------------------------------------------------------------
router = APIRouter(prefix="/prospects", tags=["prospects"])


@router.get("", response_model=List[Prospect])
def list_prospects(
    prospects: ProspectService = Depends(get_prospect_service),
    current_user: User = Depends(get_current_user),
):
    return prospects.get_all_prospects()


# Declared before /{prospect_id} so "stats" is not taken for an id
@router.get("/stats", response_model=ProspectStats)
def prospect_stats(
    prospects: ProspectService = Depends(get_prospect_service),
    current_user: User = Depends(get_current_user),
):
    """Counts by status, platform and assignee; every status/platform present."""
    return prospects.get_prospects_stats()


@router.get("/user/{user_id}", response_model=List[Prospect])
def prospects_by_user(
    user_id: str,
    prospects: ProspectService = Depends(get_prospect_service),
    current_user: User = Depends(get_current_user),
):
    return prospects.get_prospects_by_user(user_id)


@router.post("", response_model=Prospect, status_code=status.HTTP_201_CREATED)
def create_prospect(
    payload: ProspectCreate,
    prospects: ProspectService = Depends(get_prospect_service),
    current_user: User = Depends(get_current_user),
):
    return prospects.create_prospect(payload)


@router.get("/{prospect_id}", response_model=Prospect)
def get_prospect(
    prospect_id: str,
    prospects: ProspectService = Depends(get_prospect_service),
    current_user: User = Depends(get_current_user),
):
    return prospects.get_prospect_by_id(prospect_id)


@router.patch("/{prospect_id}", response_model=Prospect)
def update_prospect(
    prospect_id: str,
    payload: ProspectUpdate,
    prospects: ProspectService = Depends(get_prospect_service),
    current_user: User = Depends(get_current_user),
):
    return prospects.update_prospect(prospect_id, payload)


@router.delete("/{prospect_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_prospect(
    prospect_id: str,
    prospects: ProspectService = Depends(get_prospect_service),
    current_user: User = Depends(get_current_user),
):
    prospects.delete_prospect(prospect_id)
    return None


@router.post("/{prospect_id}/assign", response_model=Prospect)
def assign_prospect(
    prospect_id: str,
    payload: AssignProspect,
    prospects: ProspectService = Depends(get_prospect_service),
    current_user: User = Depends(get_current_user),
):
    return prospects.assign_prospect_to_user(prospect_id, payload.user_id)


@router.post("/{prospect_id}/follow-ups", response_model=Prospect)
def add_follow_up(
    prospect_id: str,
    payload: FollowUpCreate,
    prospects: ProspectService = Depends(get_prospect_service),
    current_user: User = Depends(get_current_user),
):
    """Prepend a follow-up note; the author defaults to the caller."""
    usuario = payload.usuario if "usuario" in payload.model_fields_set else current_user.full_name
    return prospects.add_follow_up(prospect_id, payload.nota, usuario)
