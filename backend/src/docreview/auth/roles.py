"""User roles and permission rules for the review workflow.

Roles:
- USER: Applicant. Submits applications and sees only their own.
- JUNIOR_REVIEWER: First review stage.
- COMPLIANCE_OFFICER: Second review stage, manages junior reviewer accounts.
- ADMIN: Acts at either stage, manages all reviewer accounts, reads activity logs.

Permission Matrix:
┌──────────────────────────────┬───────┬────────────┬────────┬──────┐
│ Action                       │ ADMIN │ COMPLIANCE │ JUNIOR │ USER │
├──────────────────────────────┼───────┼────────────┼────────┼──────┤
│ View all applications        │   ✓   │     ✓      │   ✓    │      │
│ Review at junior stage       │   ✓   │            │   ✓    │      │
│ Review at compliance stage   │   ✓   │     ✓      │        │      │
│ Manage junior reviewers      │   ✓   │     ✓      │        │      │
│ Manage compliance officers   │   ✓   │            │        │      │
│ View activity logs           │   ✓   │            │        │      │
└──────────────────────────────┴───────┴────────────┴────────┴──────┘
"""

from enum import Enum
from typing import Dict, FrozenSet


class Role(str, Enum):
    """Principal roles.

    Values are stored as TEXT in the database and must match exactly.
    """
    USER = "user"
    JUNIOR_REVIEWER = "junior_reviewer"
    COMPLIANCE_OFFICER = "compliance_officer"
    ADMIN = "admin"


REVIEWER_ROLES: FrozenSet[Role] = frozenset({
    Role.JUNIOR_REVIEWER,
    Role.COMPLIANCE_OFFICER,
    Role.ADMIN,
})

# Which account roles each role may create or delete
MANAGEABLE_ROLES: Dict[Role, FrozenSet[Role]] = {
    Role.ADMIN: frozenset({Role.JUNIOR_REVIEWER, Role.COMPLIANCE_OFFICER}),
    Role.COMPLIANCE_OFFICER: frozenset({Role.JUNIOR_REVIEWER}),
    Role.JUNIOR_REVIEWER: frozenset(),
    Role.USER: frozenset(),
}


def parse_role(value: str) -> Role:
    """Parse a stored role string.

    Raises:
        ValueError: If value is not one of the four known roles
    """
    return Role(value)


def is_reviewer(role: Role) -> bool:
    """True for every role that may view all applications."""
    return role in REVIEWER_ROLES


def can_manage_role(actor_role: Role, target_role: Role) -> bool:
    """Check whether actor_role may create or delete an account of target_role.

    Examples:
        >>> can_manage_role(Role.ADMIN, Role.COMPLIANCE_OFFICER)
        True
        >>> can_manage_role(Role.COMPLIANCE_OFFICER, Role.COMPLIANCE_OFFICER)
        False
    """
    return target_role in MANAGEABLE_ROLES.get(actor_role, frozenset())
