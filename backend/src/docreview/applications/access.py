"""Access Control Gate for applications.

Pure rule functions; routers turn a False into the matching HTTP error.

Rules:
- Applicants (role ``user``) see and list only their own applications.
- Reviewer roles see and list every application.
- Reviewer roles can always download the original document.
- The owner can download only after final approval: the sealed copy when
  one exists, otherwise the original.
- ``can_review`` is True iff the actor may act at the current stage.
"""

from typing import Optional

from ..auth.roles import Role, is_reviewer
from ..domain.applications.state_machine import Actor, stage_precheck
from ..domain.applications.status import ApplicationStatus
from ..models.application import Application


def is_owner(actor: Actor, application: Application) -> bool:
    return application.owner_id == actor.principal_id


def can_view(actor: Actor, application: Application) -> bool:
    return is_reviewer(actor.role) or is_owner(actor, application)


def can_list_all(actor: Actor) -> bool:
    return is_reviewer(actor.role)


def download_key(actor: Actor, application: Application) -> Optional[str]:
    """Object storage key the actor may download, or None.

    Examples:
        reviewer, any status          -> document_key
        owner, approved and sealed    -> sealed_document_key
        owner, approved, not sealed   -> document_key
        owner, not approved           -> None
    """
    if is_reviewer(actor.role):
        return application.document_key

    if not is_owner(actor, application):
        return None

    if application.status != ApplicationStatus.APPROVED.value:
        return None

    return application.sealed_document_key or application.document_key


def can_review(actor: Actor, application: Application) -> bool:
    if actor.role == Role.USER:
        return False
    return stage_precheck(actor.role, application.status) is None
