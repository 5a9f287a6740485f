"""
User model as seen by the settlement engine.
"""
from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship
from splitsettle.db.base import BaseModel


class User(BaseModel):
    """Group member with an optional preferred display currency."""
    __tablename__ = "users"

    name = Column(String(100), nullable=False)
    email = Column(String(100), unique=True, nullable=False, index=True)
    preferred_currency = Column(String(3), nullable=True)  # None -> reference currency
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    groups = relationship("GroupMember", back_populates="user", cascade="all, delete-orphan")
    expenses_paid = relationship("Expense", foreign_keys="Expense.payer_id", back_populates="payer")
