"""Applications API Router.

Endpoints:
- POST /applications: submit a new application (any authenticated principal)
- GET /applications: list applications (own for applicants, all for reviewers)
- GET /applications/{id}: detail with download URL and can_review flag
- POST /applications/{id}/review: approve or reject at the current stage
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..audit.service import ActivityLogger
from ..auth.dependencies import get_current_actor, require_roles
from ..auth.roles import Role
from ..config import Settings, get_settings
from ..dependencies import (
    get_activity_logger,
    get_application_store,
    get_object_storage,
    get_sealing_service,
)
from ..domain.applications.ports import ApplicationStorePort, NewApplication
from ..domain.applications.state_machine import Actor, RejectionReason, ReviewAction
from ..domain.applications.status import ApplicationStatus
from ..domain.documents.ports.object_storage_port import ObjectStoragePort
from ..domain.sealing.ports import SealingPort
from . import access
from .review_service import ReviewConflictError, ReviewRejectedError, ReviewService
from .schemas import (
    ApplicationCreate,
    ApplicationDetailResponse,
    ApplicationListResponse,
    ApplicationResponse,
    ReviewRequest,
    ReviewResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/applications", tags=["Applications"])

REJECTION_STATUS_CODES = {
    RejectionReason.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    RejectionReason.ALREADY_FINALIZED: status.HTTP_400_BAD_REQUEST,
    RejectionReason.DUPLICATE_REVIEW: status.HTTP_400_BAD_REQUEST,
    RejectionReason.WRONG_STAGE: status.HTTP_403_FORBIDDEN,
    RejectionReason.INVALID_STATE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

REQUEST_ACTIONS = {
    "approve": ReviewAction.APPROVE,
    "reject": ReviewAction.REJECT,
    ReviewAction.APPROVE.value: ReviewAction.APPROVE,
    ReviewAction.REJECT.value: ReviewAction.REJECT,
}

REVIEWER_ONLY = require_roles(Role.JUNIOR_REVIEWER, Role.COMPLIANCE_OFFICER, Role.ADMIN)


def get_review_service(
    store: ApplicationStorePort = Depends(get_application_store),
    sealing: SealingPort = Depends(get_sealing_service),
    activity_logger: ActivityLogger = Depends(get_activity_logger),
    settings: Settings = Depends(get_settings),
) -> ReviewService:
    return ReviewService(
        store=store,
        sealing=sealing,
        activity_logger=activity_logger,
        sealable_extensions=settings.sealable_extensions,
    )


@router.post(
    "",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit an application",
)
def create_application(
    data: ApplicationCreate,
    actor: Actor = Depends(get_current_actor),
    store: ApplicationStorePort = Depends(get_application_store),
):
    """Create an application in ``submitted`` status, step 1, with no reviews.

    The calling principal becomes the owner.
    """
    application = store.create(NewApplication(
        owner_id=actor.principal_id,
        full_name=data.full_name,
        guardian_name=data.guardian_name,
        age=data.age,
        phone=data.phone,
        email=str(data.email),
        address=data.address,
        national_id=data.national_id,
        typed_signature=data.typed_signature,
        document_type=data.document_type,
        required_by_date=data.required_by_date,
        department=data.department,
        document_key=data.document_key,
        document_filename=data.document_filename,
        document_size_bytes=data.document_size_bytes,
    ))
    return ApplicationResponse.model_validate(application)


@router.get("", response_model=ApplicationListResponse, summary="List applications")
def list_applications(
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status"),
    actor: Actor = Depends(get_current_actor),
    store: ApplicationStorePort = Depends(get_application_store),
):
    """Newest first. Applicants only see their own applications."""
    if access.can_list_all(actor):
        applications = store.list_all(status=status_filter)
    else:
        applications = store.list_by_owner(actor.principal_id, status=status_filter)

    items = [ApplicationResponse.model_validate(app) for app in applications]
    return ApplicationListResponse(items=items, count=len(items))


@router.get(
    "/{application_id}",
    response_model=ApplicationDetailResponse,
    summary="Get application detail",
)
def get_application(
    application_id: str,
    actor: Actor = Depends(get_current_actor),
    store: ApplicationStorePort = Depends(get_application_store),
    storage: ObjectStoragePort = Depends(get_object_storage),
    settings: Settings = Depends(get_settings),
):
    """Application detail with a presigned download URL when the actor may download.

    Raises:
        404: Application not found
        403: Applicant requesting someone else's application
    """
    application = store.get(application_id)
    if application is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Application {application_id} not found",
        )

    if not access.can_view(actor, application):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have access to this application",
        )

    key = access.download_key(actor, application)
    download_url = None
    if key is not None:
        download_url = storage.generate_presigned_url(
            key, expires_in_seconds=settings.PRESIGNED_URL_EXPIRY_SECONDS
        )

    return ApplicationDetailResponse(
        application=ApplicationResponse.model_validate(application),
        download_url=download_url,
        is_sealed_document=key is not None and key == application.sealed_document_key,
        can_review=access.can_review(actor, application),
    )


@router.post(
    "/{application_id}/review",
    response_model=ReviewResponse,
    summary="Approve or reject an application",
    description="""
    Apply a review at the application's current stage.

    **State Transitions:**
    - submitted / junior_review + approve → compliance_review (step 2)
    - submitted / junior_review + reject → rejected (step 1)
    - compliance_review + approve → approved (step 3, document sealed)
    - compliance_review + reject → rejected (step 2)
    """
)
def review_application(
    application_id: str,
    data: ReviewRequest,
    actor: Actor = Depends(REVIEWER_ONLY),
    service: ReviewService = Depends(get_review_service),
) -> ReviewResponse:
    """Apply one review action.

    Raises:
        400: Invalid action, already finalized, or duplicate review
        403: Role cannot act at the current stage
        404: Application not found
        409: Concurrent review won the race
    """
    action = REQUEST_ACTIONS.get(data.action.strip().lower())
    if action is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "invalid_action",
                "message": "Action must be 'approved' or 'rejected'",
            },
        )

    try:
        result = service.review(application_id, actor, action, data.comment)
    except ReviewRejectedError as e:
        raise HTTPException(
            status_code=REJECTION_STATUS_CODES[e.rejection.reason],
            detail={"error": e.rejection.reason.value, "message": e.rejection.message},
        )
    except ReviewConflictError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"error": "conflict", "message": str(e)},
        )

    return ReviewResponse(
        application_id=result.application_id,
        new_status=result.new_status.value,
        current_step=int(result.new_step),
        verification_code=result.verification_code,
        message=result.message,
    )
