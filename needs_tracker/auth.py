from typing import Optional
from fastapi import Depends, Header, HTTPException, Security, status
from fastapi.security import APIKeyHeader
from sqlalchemy.orm import Session

from needs_tracker.constants import API_KEY
from needs_tracker.database import get_db
from needs_tracker.models import User
from needs_tracker.repositories.user_repository import UserRepository

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def verify_api_key(api_key: str = Security(api_key_header)):
    """Verify API key for authentication"""
    if not api_key or api_key != API_KEY:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API Key"
        )
    return api_key


async def get_current_user(
    x_user_id: Optional[str] = Header(None),
    x_subscription_tier: Optional[str] = Header(None),
    _: str = Depends(verify_api_key),
    db: Session = Depends(get_db)
) -> User:
    """
    Resolve the caller from gateway-supplied identity headers.

    The gateway has already authenticated the user; the row is created on
    first sight and its tier kept in sync with the header.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header"
        )
    return UserRepository.get_or_create(db, x_user_id.strip(), x_subscription_tier)
