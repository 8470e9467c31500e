"""Authentication endpoints

Provides endpoints for applicant registration, login and retrieving the
current user's profile.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.user import User
from .dependencies import CurrentActor, CurrentUser
from .jwt import create_access_token, get_jwt_expiry_minutes
from .password import hash_password, validate_password_strength, verify_password
from .roles import Role
from .schemas import LoginRequest, LoginResponse, MeResponse, RegisterRequest, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(
    data: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
):
    """Create an applicant account with the ``user`` role.

    Raises:
        HTTPException: 400 if the password is weak or the email is taken
    """
    is_valid, error_msg = validate_password_strength(data.password)
    if not is_valid:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error_msg)

    email = data.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"User with email {email} already exists",
        )

    user = User(
        email=email,
        name=data.name,
        role=Role.USER.value,
        password_hash=hash_password(data.password),
        status="ACTIVE",
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(f"Registered user {user.id}")
    return UserResponse.model_validate(user)


@router.post("/login", response_model=LoginResponse)
def login(
    credentials: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
):
    """Authenticate user and return JWT access token.

    Raises:
        HTTPException: 401 if credentials are invalid or account is disabled
    """
    user = db.query(User).filter(User.email == credentials.email.lower()).first()

    if not user or not verify_password(credentials.password, user.password_hash):
        logger.info("Login failed: invalid credentials")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"  # Generic message to prevent enumeration
        )

    if not user.is_active:
        logger.info(f"Login failed: account disabled user_id={user.id}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account is disabled"
        )

    access_token = create_access_token(
        user_id=user.id,
        role=user.role,
        email=user.email,
    )

    return LoginResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=get_jwt_expiry_minutes() * 60,
    )


@router.get("/me", response_model=MeResponse)
def get_me(current_user: CurrentUser, actor: CurrentActor):
    """Get current authenticated user information and resolved role."""
    return MeResponse(
        user=UserResponse.model_validate(current_user),
        role=actor.role.value,
    )
