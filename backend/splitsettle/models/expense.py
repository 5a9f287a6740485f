"""
Expense model for tracking spending.
"""
import enum
from sqlalchemy import Column, String, Numeric, Date, ForeignKey, Integer, Text, Enum as SQLEnum
from sqlalchemy.orm import relationship
from splitsettle.db.base import BaseModel


class SplitType(str, enum.Enum):
    """How an expense is shared. ``none`` marks personal spending."""
    NONE = "none"
    EQUAL = "equal"
    PERCENTAGE = "percentage"
    CUSTOM = "custom"


class Expense(BaseModel):
    """Expense model representing a single spending event."""
    __tablename__ = "expenses"

    group_id = Column(Integer, ForeignKey("groups.id"), nullable=True, index=True)
    payer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    amount = Column(Numeric(15, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    split_type = Column(
        SQLEnum(SplitType, values_callable=lambda e: [m.value for m in e]),
        default=SplitType.NONE,
        nullable=False,
    )
    date = Column(Date, nullable=True, index=True)

    # Relationships
    group = relationship("Group", back_populates="expenses")
    payer = relationship("User", foreign_keys=[payer_id], back_populates="expenses_paid")
    splits = relationship(
        "ExpenseSplit",
        back_populates="expense",
        cascade="all, delete-orphan",
        order_by="ExpenseSplit.id",
    )


class ExpenseSplit(BaseModel):
    """A member's owed share of an expense, in the expense's currency."""
    __tablename__ = "expense_splits"

    expense_id = Column(Integer, ForeignKey("expenses.id"), nullable=False, index=True)
    member_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False, default=0)
    percentage = Column(Numeric(5, 2), nullable=True)  # Only for percentage splits

    # Relationships
    expense = relationship("Expense", back_populates="splits")
    member = relationship("User")
