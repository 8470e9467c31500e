"""Role resolution for authenticated principals.

Roles live on the user table. Resolution goes through the role cache first
and falls back to the database on a miss. Principals without an active user
row resolve to Role.USER.
"""

import logging

from sqlalchemy.orm import Session

from ..cache.role_cache import RoleCache
from ..models.user import User
from .roles import Role, parse_role

logger = logging.getLogger(__name__)


class RoleResolver:
    """Resolve a principal id to its current Role.

    Args:
        db: Database session used on cache misses
        cache: RoleCache (use NullRoleCache to disable caching)
    """

    def __init__(self, db: Session, cache: RoleCache):
        self.db = db
        self.cache = cache

    def resolve(self, principal_id: str) -> Role:
        cached = self.cache.get(principal_id)
        if cached:
            try:
                return parse_role(cached)
            except ValueError:
                logger.warning(f"Discarding invalid cached role for {principal_id}: {cached!r}")
                self.cache.delete(principal_id)

        user = self.db.query(User).filter(User.id == principal_id).first()
        if user is None or not user.is_active:
            return Role.USER

        try:
            role = parse_role(user.role)
        except ValueError:
            logger.error(f"User {principal_id} has unknown role {user.role!r}; treating as user")
            return Role.USER

        self.cache.set(principal_id, role.value)
        return role

    def invalidate(self, principal_id: str) -> None:
        """Drop a cached role after the user's role or status changed."""
        self.cache.delete(principal_id)
