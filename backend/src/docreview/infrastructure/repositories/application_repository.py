"""Application repository for database operations"""

import logging
from typing import List, Optional

from sqlalchemy import select, update, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...domain.applications.ports import ApplicationStorePort, NewApplication
from ...domain.applications.state_machine import ReviewRecord
from ...domain.applications.status import ApplicationStatus, WorkflowStep
from ...models.application import Application, ApplicationReview
from ...models.base import utcnow

logger = logging.getLogger(__name__)


class SqlAlchemyApplicationStore(ApplicationStorePort):
    """Repository for application and application_review rows.

    Every mutating method commits its own transaction so a review write is
    all-or-nothing: the status/step update and the review row land together.
    """

    def __init__(self, db: Session):
        """Initialize repository with database session.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def get(self, application_id: str) -> Optional[Application]:
        # populate_existing so a retry after a lost race sees the winner's write
        return self.db.execute(
            select(Application)
            .where(Application.id == application_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def create(self, data: NewApplication) -> Application:
        application = Application(
            owner_id=data.owner_id,
            full_name=data.full_name,
            guardian_name=data.guardian_name,
            age=data.age,
            phone=data.phone,
            email=data.email,
            address=data.address,
            national_id=data.national_id,
            typed_signature=data.typed_signature,
            document_type=data.document_type,
            required_by_date=data.required_by_date,
            department=data.department,
            document_key=data.document_key,
            document_filename=data.document_filename,
            document_size_bytes=data.document_size_bytes,
            status=ApplicationStatus.SUBMITTED.value,
            current_step=int(WorkflowStep.JUNIOR),
            review_count=0,
        )
        self.db.add(application)
        self.db.commit()
        self.db.refresh(application)

        logger.info(f"Created application {application.id} for owner {data.owner_id}")
        return application

    def append_review_conditionally(
        self,
        application_id: str,
        expected_status: ApplicationStatus,
        expected_review_count: int,
        new_status: ApplicationStatus,
        new_step: WorkflowStep,
        review: ReviewRecord,
    ) -> bool:
        """Apply a review decision only if nobody else got there first.

        Implementation:
        1. UPDATE application ... WHERE status = :expected AND review_count = :expected
        2. If exactly one row matched, INSERT the review with sequence = expected count
        3. Commit both, or roll back both

        Returns:
            bool: True if applied, False on a lost race
        """
        try:
            result = self.db.execute(
                update(Application)
                .where(
                    and_(
                        Application.id == application_id,
                        Application.status == expected_status.value,
                        Application.review_count == expected_review_count,
                    )
                )
                .values(
                    status=new_status.value,
                    current_step=int(new_step),
                    review_count=expected_review_count + 1,
                    updated_at=utcnow(),
                )
                .execution_options(synchronize_session=False)
            )

            if result.rowcount != 1:
                self.db.rollback()
                logger.info(
                    f"Conditional review write lost: application_id={application_id}, "
                    f"expected_status={expected_status.value}, "
                    f"expected_review_count={expected_review_count}"
                )
                return False

            self.db.add(ApplicationReview(
                application_id=application_id,
                sequence=expected_review_count,
                reviewer_role=review.reviewer_role.value,
                reviewer_id=review.reviewer_id,
                reviewer_name=review.reviewer_name,
                action=review.action.value,
                comment=review.comment,
                created_at=review.timestamp,
            ))
            self.db.commit()

        except IntegrityError:
            # Another writer inserted the same review sequence
            self.db.rollback()
            logger.info(f"Review sequence collision: application_id={application_id}")
            return False
        except Exception:
            self.db.rollback()
            raise

        return True

    def attach_sealed_document(
        self,
        application_id: str,
        sealed_document_key: str,
        verification_code: str,
    ) -> bool:
        try:
            result = self.db.execute(
                update(Application)
                .where(
                    and_(
                        Application.id == application_id,
                        Application.status == ApplicationStatus.APPROVED.value,
                        Application.verification_code.is_(None),
                    )
                )
                .values(
                    sealed_document_key=sealed_document_key,
                    verification_code=verification_code,
                    updated_at=utcnow(),
                )
                .execution_options(synchronize_session=False)
            )
            attached = result.rowcount == 1
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        if not attached:
            logger.warning(
                f"Sealed document not attached (not approved or already sealed): "
                f"application_id={application_id}"
            )
        return attached

    def list_all(self, status: Optional[ApplicationStatus] = None) -> List[Application]:
        query = select(Application)
        if status is not None:
            query = query.where(Application.status == status.value)
        query = query.order_by(Application.created_at.desc())
        return list(self.db.execute(query).scalars().all())

    def list_by_owner(
        self,
        owner_id: str,
        status: Optional[ApplicationStatus] = None,
    ) -> List[Application]:
        query = select(Application).where(Application.owner_id == owner_id)
        if status is not None:
            query = query.where(Application.status == status.value)
        query = query.order_by(Application.created_at.desc())
        return list(self.db.execute(query).scalars().all())
