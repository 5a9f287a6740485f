"""
Pydantic schemas for settlement plans and settlement records.
"""
from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator
from typing import List, Dict, Optional
from datetime import datetime
from decimal import Decimal
from splitsettle.models.settlement import SettlementStatus


class MemberSummary(BaseModel):
    """Public view of a group member."""
    id: int
    name: str
    email: str
    preferred_currency: str

    class Config:
        from_attributes = True


class MemberBalance(BaseModel):
    """A member's net position, shown in their preferred currency."""
    user: MemberSummary
    balance_reference: Decimal  # Signed, in reference currency
    balance: Decimal  # Absolute value, in preferred currency
    currency: str
    status: str  # "owed" or "owes"


class TransferLeg(BaseModel):
    """One side of a planned transfer in that member's preferred currency."""
    user: MemberSummary
    amount: Decimal
    currency: str


class PlannedTransfer(BaseModel):
    """Schema for a single transfer in a settlement plan."""
    from_: TransferLeg = Field(alias="from")
    to: TransferLeg
    amount_reference: Decimal
    description: str

    class Config:
        populate_by_name = True


class SettlementPlanResponse(BaseModel):
    """Schema for settlement plan response. Computed on every request."""
    message: str
    group_id: int
    group_name: str
    total_expenses: int  # Number of shared expenses
    total_amount_reference: Decimal
    reference_currency: str
    balances: Dict[int, MemberBalance]
    settlements: List[PlannedTransfer]
    transaction_count: int
    note: Optional[str] = None


class SettlementCreate(BaseModel):
    """Schema for recording a planned transfer as a pending settlement."""
    from_user_id: int
    to_user_id: int
    amount: Decimal = Field(gt=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    notes: Optional[str] = None

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()

    @model_validator(mode="after")
    def check_distinct_parties(self):
        if self.from_user_id == self.to_user_id:
            raise ValueError("Payer and receiver must be different members")
        return self


class SettlementVerify(BaseModel):
    """Schema for verifying a settlement."""
    notes: Optional[str] = None


class SettlementResponse(BaseModel):
    """Schema for settlement record response."""
    id: int
    group_id: int
    # Exposed as "from"/"to"; read from the ORM columns or back from the aliases
    from_user_id: int = Field(
        validation_alias=AliasChoices("from_user_id", "from"), serialization_alias="from"
    )
    to_user_id: int = Field(
        validation_alias=AliasChoices("to_user_id", "to"), serialization_alias="to"
    )
    amount: Decimal
    currency: str
    amount_reference: Decimal
    status: SettlementStatus
    verified_by: Optional[int] = None
    verified_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class SettlementHistoryResponse(BaseModel):
    """Schema for a group's settlement records."""
    group_id: int
    group_name: str
    settlements: List[SettlementResponse]
