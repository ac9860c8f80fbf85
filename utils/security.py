from datetime import timedelta
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from config import settings
from utils.errors import AppError
from utils.time_utils import utcnow
import uuid

# Password hashing
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt

    Bcrypt has a maximum password length of 72 bytes.
    Passwords longer than 72 bytes are truncated.
    """
    password_bytes = password.encode('utf-8')

    if len(password_bytes) > 72:
        password_bytes = password_bytes[:72]

    return pwd_context.hash(password_bytes)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash

    Truncates to 72 bytes to match hashing behavior.
    """
    password_bytes = plain_password.encode('utf-8')

    if len(password_bytes) > 72:
        password_bytes = password_bytes[:72]

    return pwd_context.verify(password_bytes, hashed_password)


def token_lifetime() -> timedelta:
    return timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed JWT

    Every token gets a random ``jti`` so two tokens issued for the same
    user within one second are still distinct session keys.
    """
    to_encode = data.copy()
    now = utcnow()
    expire = now + (expires_delta or token_lifetime())

    to_encode.update({"exp": expire, "iat": now, "jti": uuid.uuid4().hex})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_token(token: str) -> dict:
    """Verify and decode a JWT token

    Raises AppError(401) if the signature or expiry check fails.
    """
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise AppError.unauthorized("Invalid or expired token")


def verify_token_silent(token: str) -> Optional[dict]:
    """Verify and decode a JWT token, returning None when it is invalid"""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
