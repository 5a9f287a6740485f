"""
Lookups against the group, member and expense collaborators.

Group membership, expenses and user profiles are owned by other services;
the settlement engine only reads them through these functions.
"""
from typing import Dict, Iterable, List, Tuple
from sqlalchemy.orm import Session, selectinload
from splitsettle.core.exceptions import NotFound, Forbidden
from splitsettle.models.group import Group, GroupMember
from splitsettle.models.expense import Expense
from splitsettle.models.user import User


def get_group_membership(group_id: int, db: Session) -> Tuple[Group, List[int], int]:
    """Return the group, its member ids in join order, and the creator's id."""
    group = db.query(Group).filter(Group.id == group_id).first()
    if not group:
        raise NotFound("Group not found")

    member_ids = [
        row.user_id
        for row in db.query(GroupMember.user_id)
        .filter(GroupMember.group_id == group_id)
        .order_by(GroupMember.id)
        .all()
    ]
    return group, member_ids, group.created_by


def is_group_member(group_id: int, user_id: int, db: Session) -> bool:
    membership = db.query(GroupMember).filter(
        GroupMember.group_id == group_id,
        GroupMember.user_id == user_id
    ).first()
    return membership is not None


def check_group_access(group_id: int, user_id: int, db: Session) -> Group:
    """Check if user is a current member of the group."""
    group = db.query(Group).filter(Group.id == group_id).first()
    if not group:
        raise NotFound("Group not found")

    if not is_group_member(group_id, user_id, db):
        raise Forbidden("You are not a member of this group")

    return group


def list_group_expenses(group_id: int, db: Session) -> List[Expense]:
    """All expenses of a group, every split type included, oldest first."""
    return (
        db.query(Expense)
        .options(selectinload(Expense.splits))
        .filter(Expense.group_id == group_id)
        .order_by(Expense.id)
        .all()
    )


def get_members(member_ids: Iterable[int], db: Session) -> Dict[int, User]:
    member_ids = list(member_ids)
    if not member_ids:
        return {}
    users = db.query(User).filter(User.id.in_(member_ids)).all()
    return {user.id: user for user in users}


def preferred_currency(user: User, reference: str) -> str:
    """Member's display currency, falling back to the reference currency."""
    return (user.preferred_currency or reference).upper()
