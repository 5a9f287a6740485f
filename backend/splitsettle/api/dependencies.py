"""
Shared FastAPI dependencies.
"""
from functools import lru_cache
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from splitsettle.core.security import decode_access_token
from splitsettle.db.session import get_db
from splitsettle.models.user import User
from splitsettle.services.currency_service import CurrencyService, get_default_currency_service

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the acting user from the bearer token."""
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise unauthorized

    payload = decode_access_token(credentials.credentials)
    if not payload or payload.get("user_id") is None:
        raise unauthorized

    user = db.query(User).filter(User.id == payload["user_id"]).first()
    if not user:
        raise unauthorized

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive"
        )

    return user


@lru_cache
def get_currency_service() -> CurrencyService:
    """Currency service shared across requests; its rate table is immutable."""
    return get_default_currency_service()
