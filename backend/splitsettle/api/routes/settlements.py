"""
Settlement plan and settlement lifecycle routes.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Optional
from splitsettle.db.session import get_db
from splitsettle.models.user import User
from splitsettle.schemas.settlement import (
    SettlementCreate, SettlementHistoryResponse, SettlementPlanResponse,
    SettlementResponse, SettlementVerify
)
from splitsettle.api.dependencies import get_current_user, get_currency_service
from splitsettle.services.currency_service import CurrencyService
from splitsettle.services import settlement_service

router = APIRouter(prefix="/settlements", tags=["settlements"])


@router.get("/{group_id}/plan", response_model=SettlementPlanResponse)
async def get_settlement_plan(
    group_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    currency_service: CurrencyService = Depends(get_currency_service)
):
    """Compute who pays whom to settle the group."""
    return settlement_service.generate_settlement_plan(group_id, current_user.id, db, currency_service)


@router.get("/{group_id}/history", response_model=SettlementHistoryResponse)
async def get_settlement_history(
    group_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List a group's settlement records, newest first."""
    history = settlement_service.get_settlement_history(group_id, current_user.id, db)
    return SettlementHistoryResponse(
        group_id=history["group_id"],
        group_name=history["group_name"],
        settlements=[SettlementResponse.model_validate(s) for s in history["settlements"]]
    )


@router.post("/{group_id}", response_model=SettlementResponse, status_code=status.HTTP_201_CREATED)
async def create_settlement(
    group_id: int,
    settlement_data: SettlementCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    currency_service: CurrencyService = Depends(get_currency_service)
):
    """Record a planned transfer as a pending settlement."""
    return settlement_service.create_settlement(
        group_id, current_user.id, settlement_data, db, currency_service
    )


@router.get("/{group_id}/{settlement_id}", response_model=SettlementResponse)
async def get_settlement(
    group_id: int,
    settlement_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get a single settlement record."""
    return settlement_service.get_settlement(group_id, settlement_id, current_user.id, db)


@router.patch("/{group_id}/verify/{settlement_id}", response_model=SettlementResponse)
async def verify_settlement(
    group_id: int,
    settlement_id: int,
    body: Optional[SettlementVerify] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Payer or receiver confirms the payment happened."""
    notes = body.notes if body else None
    return settlement_service.verify_settlement(group_id, settlement_id, current_user.id, db, notes=notes)


@router.patch("/{group_id}/complete/{settlement_id}", response_model=SettlementResponse)
async def complete_settlement(
    group_id: int,
    settlement_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Receiver confirms the funds arrived."""
    return settlement_service.complete_settlement(group_id, settlement_id, current_user.id, db)
