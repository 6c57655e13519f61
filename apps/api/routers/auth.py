"""
Authentication API endpoints.

Provides:
- User registration
- Login (JWT token generation)
- Current user lookup
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
import logging

from core.auth import get_current_user
from core.database import get_db
from core.exceptions import ConflictError
from core.security import verify_password, get_password_hash, create_access_token
from models import User
from schemas import UserCreate, UserLogin, UserResponse, TokenResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/auth", tags=["auth"])


def _token_for(user: User) -> str:
    return create_access_token(data={"sub": str(user.id), "email": user.email})


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(
    user_data: UserCreate,
    db: Session = Depends(get_db)
):
    """
    Register a new user account.

    Issues a token immediately so the client can go straight to onboarding.
    """
    email = user_data.email.strip().lower()

    existing = db.query(User).filter(User.email == email).first()
    if existing:
        raise ConflictError("Email already registered")

    user = User(
        email=email,
        password_hash=get_password_hash(user_data.password),
        display_name=user_data.display_name or email.split("@")[0],
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(f"Registered user {user.id}")
    return TokenResponse(access_token=_token_for(user), user=UserResponse.model_validate(user))


@router.post("/login", response_model=TokenResponse)
def login(
    credentials: UserLogin,
    db: Session = Depends(get_db)
):
    """Authenticate and return a JWT valid for 30 days."""
    email = credentials.email.strip().lower()
    user = db.query(User).filter(User.email == email).first()

    if not user or not user.password_hash or not verify_password(credentials.password, user.password_hash):
        logger.info("Failed login attempt", extra={"extra_fields": {"email": email}})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return TokenResponse(access_token=_token_for(user), user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    return current_user
