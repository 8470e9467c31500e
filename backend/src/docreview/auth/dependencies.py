"""FastAPI dependencies for authentication and authorization.

This module provides dependency injection functions for:
- Extracting and validating JWT tokens from requests
- Loading the current authenticated user
- Resolving the user's current role (role cache, then database)
- Enforcing role-based access control

The role claim inside the JWT is never trusted for authorization: roles are
re-resolved on every request so that account changes take effect immediately.

Usage:
    @app.get("/protected")
    def protected_endpoint(actor: Actor = Depends(get_current_actor)):
        return {"message": f"Hello {actor.display_name}"}

    @app.get("/admin-only")
    def admin_endpoint(actor: Actor = Depends(require_roles(Role.ADMIN))):
        return {"message": "Admin access granted"}
"""

from typing import Annotated, Callable

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from ..cache.role_cache import RoleCache
from ..database import get_db
from ..dependencies import get_role_cache
from ..domain.applications.state_machine import Actor
from ..models.user import User
from .jwt import decode_token
from .role_resolver import RoleResolver
from .roles import Role


# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


def get_role_resolver(
    db: Session = Depends(get_db),
    cache: RoleCache = Depends(get_role_cache),
) -> RoleResolver:
    return RoleResolver(db, cache)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Extract and validate JWT token, returning the authenticated user.

    Raises:
        HTTPException 401: If token is missing, invalid, expired, or user not found
        HTTPException 403: If user status is DISABLED
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing user ID claim",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    return user


def get_current_actor(
    user: User = Depends(get_current_user),
    resolver: RoleResolver = Depends(get_role_resolver),
) -> Actor:
    """Authenticated principal with its freshly resolved role."""
    return Actor(
        principal_id=user.id,
        role=resolver.resolve(user.id),
        display_name=user.name,
        email=user.email,
    )


def require_roles(*allowed_roles: Role) -> Callable:
    """Create a dependency that admits only the given roles.

    Example:
        @router.get("/users")
        def list_accounts(
            actor: Actor = Depends(require_roles(Role.ADMIN, Role.COMPLIANCE_OFFICER))
        ):
            ...
    """
    allowed = frozenset(allowed_roles)

    def role_dependency(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions. Required role: "
                       + ", ".join(sorted(role.value for role in allowed)),
            )
        return actor

    return role_dependency


# Type aliases for dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
CurrentActor = Annotated[Actor, Depends(get_current_actor)]
