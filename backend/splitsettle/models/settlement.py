"""
Settlement model for peer-to-peer payments between group members.
"""
import enum
from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey, Integer, Text, Enum as SQLEnum
from sqlalchemy.orm import relationship
from splitsettle.db.base import BaseModel


class SettlementStatus(str, enum.Enum):
    """Settlement lifecycle: pending -> verified -> completed."""
    PENDING = "pending"
    VERIFIED = "verified"
    COMPLETED = "completed"


class Settlement(BaseModel):
    """One payer -> payee payment tracked through verification."""
    __tablename__ = "settlements"

    group_id = Column(Integer, ForeignKey("groups.id"), nullable=False, index=True)
    from_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    to_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    amount_reference = Column(Numeric(15, 2), nullable=False)  # Amount in reference currency at creation
    status = Column(
        SQLEnum(SettlementStatus, values_callable=lambda e: [m.value for m in e]),
        default=SettlementStatus.PENDING,
        nullable=False,
        index=True,
    )
    verified_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    verified_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)

    # Relationships
    group = relationship("Group", back_populates="settlements")
    from_user = relationship("User", foreign_keys=[from_user_id])
    to_user = relationship("User", foreign_keys=[to_user_id])
