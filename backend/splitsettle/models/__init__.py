"""Models package - Import all models for SQLAlchemy registration."""
from splitsettle.models.user import User
from splitsettle.models.group import Group, GroupMember
from splitsettle.models.expense import Expense, ExpenseSplit, SplitType
from splitsettle.models.settlement import Settlement, SettlementStatus

__all__ = [
    "User",
    "Group",
    "GroupMember",
    "Expense",
    "ExpenseSplit",
    "SplitType",
    "Settlement",
    "SettlementStatus",
]
