from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from pydantic import EmailStr, Field, StringConstraints, field_validator
from database import get_db
from models.user import User
from models.session import UserSession
from utils.errors import AppError
from utils.schemas import CamelModel
from utils.security import hash_password, verify_password, create_access_token, token_lifetime
from utils.dependencies import AuthPayload, authenticate, get_bearer_token, get_current_user
from utils.time_utils import utcnow
from typing import Annotated, Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


# ============================================================================
# SCHEMAS
# ============================================================================

# Passwords are hashed exactly as typed
Password = Annotated[str, StringConstraints(strip_whitespace=False)]


class RegisterRequest(CamelModel):
    email: EmailStr
    password: Password = Field(..., min_length=8)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        """Bcrypt only looks at the first 72 bytes"""
        if len(v.encode('utf-8')) > 72:
            raise ValueError('Password must be no longer than 72 bytes when encoded in UTF-8')
        return v


class LoginRequest(CamelModel):
    email: EmailStr
    password: Password = Field(..., min_length=1)


# ============================================================================
# HELPERS
# ============================================================================

def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _open_session(db: Session, user: User) -> str:
    """Issue a token and record it as a session row (caller commits)"""
    token = create_access_token(
        data={
            "sub": str(user.user_id),
            "email": user.email,
            "role": user.role.value,
        }
    )
    db.add(UserSession(
        user_id=user.user_id,
        token=token,
        expires_at=utcnow() + token_lifetime(),
    ))
    return token


# ============================================================================
# ROUTES
# ============================================================================

@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(request: RegisterRequest, db: Session = Depends(get_db)):
    """Create a worker account and sign it in

    Returns the new user and a bearer token.
    """
    email = _normalize_email(request.email)

    existing_user = db.query(User).filter(User.email == email).first()
    if existing_user:
        raise AppError.conflict("Email already registered")

    try:
        new_user = User(
            email=email,
            password_hash=hash_password(request.password),
            first_name=request.first_name,
            last_name=request.last_name,
            phone=request.phone,
        )
        db.add(new_user)
        db.flush()

        token = _open_session(db, new_user)
        db.commit()
        db.refresh(new_user)
    except Exception as e:
        logger.error(f"Registration error: {str(e)}", exc_info=True)
        db.rollback()
        raise

    logger.info(f"User registered successfully: {email}")

    return {
        "user": new_user.to_dict(),
        "token": token
    }


@router.post("/login")
def login(request: LoginRequest, db: Session = Depends(get_db)):
    """Verify credentials and issue a new session token

    Unknown email and wrong password get the same 401 so the response
    does not reveal which one was wrong.
    """
    email = _normalize_email(request.email)
    user = db.query(User).filter(User.email == email).first()

    if not user or not verify_password(request.password, user.password_hash):
        logger.warning(f"Failed login attempt for: {email}")
        raise AppError.unauthorized("Invalid email or password")

    try:
        # Prune this user's expired sessions before adding another
        db.query(UserSession).filter(
            UserSession.user_id == user.user_id,
            UserSession.expires_at < utcnow()
        ).delete(synchronize_session=False)

        token = _open_session(db, user)
        db.commit()
    except Exception as e:
        logger.error(f"Login error: {str(e)}", exc_info=True)
        db.rollback()
        raise

    logger.info(f"User logged in: {user.email}")

    return {
        "user": user.to_dict(),
        "token": token
    }


@router.get("/me")
def get_current_user_details(user: User = Depends(get_current_user)):
    """Profile of the token's owner"""
    return {"user": user.to_dict()}


@router.post("/logout")
def logout(
    auth: AuthPayload = Depends(authenticate),
    token: str = Depends(get_bearer_token),
    db: Session = Depends(get_db)
):
    """End the session for the presented token only

    Other sessions of the same user stay valid.
    """
    db.query(UserSession).filter(UserSession.token == token).delete(synchronize_session=False)
    db.commit()

    logger.info(f"User logged out: {auth.email}")
    return {"message": "Logged out"}
