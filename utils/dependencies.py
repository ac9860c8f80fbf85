from fastapi import Depends, Header
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Optional
from database import get_db
from models.user import User, UserRole
from utils.errors import AppError
from utils.security import verify_token, verify_token_silent
import logging

logger = logging.getLogger(__name__)


class AuthPayload(BaseModel):
    """Claims attached to an authenticated request"""
    user_id: int
    email: str
    role: UserRole


def _extract_bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[7:].strip()
    return token or None


def _payload_from_claims(claims: dict) -> AuthPayload:
    try:
        return AuthPayload(
            user_id=int(claims["sub"]),
            email=claims["email"],
            role=claims["role"],
        )
    except (KeyError, TypeError, ValueError):
        raise AppError.unauthorized("Invalid or expired token")


def get_bearer_token(authorization: Optional[str] = Header(None)) -> str:
    """Raw token from the Authorization header"""
    token = _extract_bearer(authorization)
    if token is None:
        raise AppError.unauthorized("Missing or invalid authorization header")
    return token


def authenticate(token: str = Depends(get_bearer_token)) -> AuthPayload:
    """Require a valid, unexpired token and return its claims"""
    return _payload_from_claims(verify_token(token))


def optional_auth(authorization: Optional[str] = Header(None)) -> Optional[AuthPayload]:
    """Same as authenticate, but an absent or bad token just means anonymous"""
    token = _extract_bearer(authorization)
    if token is None:
        return None
    claims = verify_token_silent(token)
    if claims is None:
        return None
    try:
        return _payload_from_claims(claims)
    except AppError:
        logger.debug("Ignoring token with malformed claims")
        return None


def require_role(*roles: UserRole):
    """Dependency factory restricting an endpoint to the given roles"""
    def checker(auth: AuthPayload = Depends(authenticate)) -> AuthPayload:
        if auth.role not in roles:
            raise AppError.forbidden()
        return auth
    return checker


def get_current_user(
    auth: AuthPayload = Depends(authenticate),
    db: Session = Depends(get_db)
) -> User:
    """Load the authenticated user's row"""
    user = db.query(User).filter(User.user_id == auth.user_id).first()
    if not user:
        raise AppError.not_found("User not found")
    return user
