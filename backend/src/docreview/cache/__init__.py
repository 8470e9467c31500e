"""Caching layer (role cache)."""

from .role_cache import RoleCache, RedisRoleCache, NullRoleCache, build_role_cache

__all__ = ["RoleCache", "RedisRoleCache", "NullRoleCache", "build_role_cache"]
