"""Reviewer account management endpoints.

Admins manage junior reviewers and compliance officers; compliance officers
manage junior reviewers only. Deleting an account disables it and drops its
cached role so the change applies to tokens that are still valid.

Every create/delete records a user_role_changed activity entry.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..audit.service import ActivityEntry, ActivityLogger, ActivityType, TargetType
from ..auth.dependencies import get_role_resolver, require_roles
from ..auth.password import hash_password, validate_password_strength
from ..auth.role_resolver import RoleResolver
from ..auth.roles import MANAGEABLE_ROLES, Role, can_manage_role
from ..database import get_db
from ..dependencies import get_activity_logger
from ..domain.applications.state_machine import Actor
from ..models.user import User
from .schemas import AccountListResponse, AccountResponse, ReviewerCreate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["User Management"])

ACCOUNT_MANAGERS = require_roles(Role.ADMIN, Role.COMPLIANCE_OFFICER)


def _forbidden_role(target_role: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=f"You are not allowed to manage {target_role} accounts",
    )


@router.get("", response_model=AccountListResponse, summary="List manageable reviewer accounts")
def list_accounts(
    db: Session = Depends(get_db),
    actor: Actor = Depends(ACCOUNT_MANAGERS),
) -> AccountListResponse:
    """Active accounts whose role the actor may manage, newest first."""
    roles = sorted(role.value for role in MANAGEABLE_ROLES[actor.role])
    users = db.query(User).filter(
        User.role.in_(roles),
        User.status == "ACTIVE",
    ).order_by(User.created_at.desc()).all()

    return AccountListResponse(
        users=[AccountResponse.model_validate(user) for user in users],
        total=len(users),
    )


@router.post(
    "",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a reviewer account",
)
def create_account(
    data: ReviewerCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(ACCOUNT_MANAGERS),
    activity_logger: ActivityLogger = Depends(get_activity_logger),
) -> AccountResponse:
    """Create a reviewer account.

    Raises:
        400: Password does not meet strength requirements
        403: Actor may not create accounts with this role
        409: Email already exists
    """
    target_role = Role(data.role)
    if not can_manage_role(actor.role, target_role):
        raise _forbidden_role(target_role.value)

    is_valid, error_msg = validate_password_strength(data.password)
    if not is_valid:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error_msg)

    email = data.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"User with email {email} already exists",
        )

    new_user = User(
        email=email,
        name=data.name,
        role=target_role.value,
        password_hash=hash_password(data.password),
        status="ACTIVE",
    )

    try:
        db.add(new_user)
        db.commit()
        db.refresh(new_user)
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User creation failed due to constraint violation"
        )

    logger.info(f"Reviewer account created: user_id={new_user.id}, role={new_user.role}, by={actor.principal_id}")
    activity_logger.record(ActivityEntry(
        actor=actor,
        action_type=ActivityType.USER_ROLE_CHANGED,
        target_type=TargetType.USER,
        target_id=new_user.id,
        target_name=new_user.name,
        details=f"Created {new_user.role} account for {new_user.email}",
        metadata={"change": "created", "role": new_user.role, "email": new_user.email},
    ))

    return AccountResponse.model_validate(new_user)


@router.delete("/{user_id}", response_model=AccountResponse, summary="Disable a reviewer account")
def delete_account(
    user_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(ACCOUNT_MANAGERS),
    resolver: RoleResolver = Depends(get_role_resolver),
    activity_logger: ActivityLogger = Depends(get_activity_logger),
) -> AccountResponse:
    """Disable a reviewer account and invalidate its cached role.

    Raises:
        403: Actor may not manage accounts with the target's role
        404: Account not found or already disabled
    """
    user = db.query(User).filter(
        User.id == user_id,
        User.status == "ACTIVE",
    ).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User {user_id} not found",
        )

    try:
        target_role = Role(user.role)
    except ValueError:
        raise _forbidden_role(user.role)

    if not can_manage_role(actor.role, target_role):
        raise _forbidden_role(target_role.value)

    user.status = "DISABLED"
    db.commit()
    db.refresh(user)
    resolver.invalidate(user.id)

    logger.info(f"Reviewer account disabled: user_id={user.id}, by={actor.principal_id}")
    activity_logger.record(ActivityEntry(
        actor=actor,
        action_type=ActivityType.USER_ROLE_CHANGED,
        target_type=TargetType.USER,
        target_id=user.id,
        target_name=user.name,
        details=f"Disabled {user.role} account for {user.email}",
        metadata={"change": "disabled", "role": user.role, "email": user.email},
    ))

    return AccountResponse.model_validate(user)
