# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Reenrollment service: the termly batch and per-student acceptance.

This module provides the ReenrollmentService class for:
- Re-validating the administrator password before a batch
- Moving every active enrollment into reenrollment in one transaction
- Previewing the reenrollment contract for a student
- Accepting a reenrollment: status, semester and contract in one transaction

Batch runs are keyed by (semester, year) in the reenrollment_batches
ledger, which is written in the same transaction as the status update.
"""

from __future__ import annotations

import logging

from sqlalchemy import exists, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.exceptions import (
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    SecretariaError,
    UnprocessableEntityError,
    ValidationError,
)
from src.domains.auth.credentials import CredentialStore
from src.domains.contract.service import ContractService
from src.domains.enrollment.service import EnrollmentNotFoundError
from src.infrastructure.database.models import (
    ArtifactKind,
    Enrollment,
    EnrollmentStatus,
    ReenrollmentBatch,
    UserRole,
)
from src.infrastructure.events import EventBus, EventTypes, get_event_bus
from src.models.contract import ContractResponse
from src.models.enrollment import EnrollmentResponse
from src.models.reenrollment import (
    ContractPreviewResponse,
    ReenrollmentAcceptResponse,
    ReenrollmentBatchResponse,
)
from src.utils.datetime import current_term, format_iso, utc_now

logger = logging.getLogger(__name__)

MIN_YEAR = 1900
MAX_YEAR = 9999


class ReenrollmentServiceError(SecretariaError):
    """Base exception for reenrollment service errors."""

    pass


class AdminNotFoundError(ReenrollmentServiceError, NotFoundError):
    """Raised when the administrator account does not exist."""

    default_code = "user_not_found"


class NotAdminError(ReenrollmentServiceError, ForbiddenError):
    """Raised when a non-admin tries to run the batch."""

    default_code = "admin_required"


class NotAStudentError(ReenrollmentServiceError, ForbiddenError):
    """Raised when the acting user is not linked to a student."""

    default_code = "student_required"


class EnrollmentOwnershipError(ReenrollmentServiceError, ForbiddenError):
    """Raised when a student acts on someone else's enrollment."""

    default_code = "enrollment_not_owned"


class NotAwaitingReenrollmentError(ReenrollmentServiceError, UnprocessableEntityError):
    """Raised when the enrollment is not in the reenrollment state."""

    default_code = "not_awaiting_reenrollment"


class BatchAlreadyProcessedError(ReenrollmentServiceError, ConflictError):
    """Raised when (semester, year) has already been batched."""

    default_code = "reenrollment_batch_exists"


class ReenrollmentAlreadyAcceptedError(ReenrollmentServiceError, ConflictError):
    """Raised when a concurrent acceptance won the enrollment first."""

    default_code = "reenrollment_already_accepted"


class ReenrollmentService:
    """Service for termly reenrollment.

    Attributes:
        db: Async database session.
        contracts: Contract service used for templates and contract rows.
        credentials: Credential store for admin re-authentication.
    """

    def __init__(
        self,
        db: AsyncSession,
        contracts: ContractService | None = None,
        credentials: CredentialStore | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        """Initialize reenrollment service.

        Args:
            db: Async database session.
            contracts: Contract service; built on the same session if omitted.
            credentials: Credential store; built on the same session if omitted.
            event_bus: Bus for lifecycle events.
        """
        self.db = db
        self._events = event_bus or get_event_bus()
        self.contracts = contracts or ContractService(db, event_bus=self._events)
        self.credentials = credentials or CredentialStore(db)

    async def validate_admin_password(self, admin_user_id: int, password: str) -> bool:
        """Re-validate an administrator's password.

        A wrong password returns False; it never raises.

        Raises:
            AdminNotFoundError: If the user does not exist.
            NotAdminError: If the user is not an administrator.
        """
        user = await self.credentials.find_user(admin_user_id)
        if user is None:
            raise AdminNotFoundError(f"User {admin_user_id} not found")

        if user.role != UserRole.ADMIN.value:
            logger.warning(
                "Reenrollment attempted by non-admin user %s (role %s)",
                admin_user_id,
                user.role,
            )
            raise NotAdminError("Only administrators can run the global reenrollment")

        valid = self.credentials.compare(password, user.password_hash)
        if not valid:
            logger.warning("Wrong password supplied for admin %s", admin_user_id)
        return valid

    async def process_global_reenrollment(
        self,
        semester: int,
        year: int,
        admin_user_id: int,
    ) -> ReenrollmentBatchResponse:
        """Move every active enrollment into reenrollment.

        All rows transition in one transaction together with the batch
        ledger row, or none do. With no active enrollments nothing is
        written and zero is reported.

        Args:
            semester: Term semester, 1 or 2.
            year: Four-digit term year.
            admin_user_id: Administrator running the batch.

        Returns:
            Count and ids of the enrollments moved.

        Raises:
            ValidationError: If semester or year are out of range.
            BatchAlreadyProcessedError: If this term was already batched.
            InternalError: If the transaction fails; nothing is changed.
        """
        if semester not in (1, 2):
            raise ValidationError("Semester must be 1 or 2", code="invalid_semester")
        if not MIN_YEAR <= year <= MAX_YEAR:
            raise ValidationError("Year must be a four-digit number", code="invalid_year")

        logger.info(
            "Starting global reenrollment: semester=%s, year=%s, admin=%s",
            semester,
            year,
            admin_user_id,
        )

        active_filter = (
            Enrollment.status == EnrollmentStatus.ACTIVE.value,
            Enrollment.deleted_at.is_(None),
        )
        result = await self.db.execute(select(exists().where(*active_filter)))

        if not result.scalar():
            logger.info("No active enrollments found; nothing to do")
            return ReenrollmentBatchResponse(
                total_affected=0,
                affected_ids=[],
                semester=semester,
                year=year,
            )

        try:
            existing = await self.db.execute(
                select(ReenrollmentBatch.id).where(
                    ReenrollmentBatch.semester == semester,
                    ReenrollmentBatch.year == year,
                )
            )
            if existing.scalar_one_or_none() is not None:
                raise BatchAlreadyProcessedError(
                    f"Reenrollment for {semester}/{year} has already been processed",
                    details={"semester": semester, "year": year},
                )

            now = utc_now()
            updated = await self.db.execute(
                update(Enrollment)
                .where(*active_filter)
                .values(status=EnrollmentStatus.REENROLLMENT.value, updated_at=now)
                .returning(Enrollment.id)
                .execution_options(synchronize_session=False)
            )
            affected_ids = sorted(updated.scalars().all())

            self.db.add(
                ReenrollmentBatch(
                    semester=semester,
                    year=year,
                    admin_user_id=admin_user_id,
                    total_affected=len(affected_ids),
                    enrollment_ids=affected_ids,
                    processed_at=now,
                )
            )
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            # Concurrent batch for the same term inserted its ledger row first
            raise BatchAlreadyProcessedError(
                f"Reenrollment for {semester}/{year} has already been processed",
                details={"semester": semester, "year": year},
            ) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                "Global reenrollment rolled back: semester=%s, year=%s, admin=%s: %s",
                semester,
                year,
                admin_user_id,
                str(e),
                exc_info=True,
            )
            raise InternalError("Failed to process global reenrollment. No changes were made.") from e
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Global reenrollment committed: %s enrollments moved to reenrollment",
            len(affected_ids),
        )
        await self._events.publish(
            EventTypes.Reenrollment.BATCH_PROCESSED,
            {
                "admin_id": admin_user_id,
                "total_affected": len(affected_ids),
                "semester": semester,
                "year": year,
                "processed_at": format_iso(now),
                "affected_enrollment_ids": affected_ids,
            },
            actor_id=admin_user_id,
        )

        return ReenrollmentBatchResponse(
            total_affected=len(affected_ids),
            affected_ids=affected_ids,
            semester=semester,
            year=year,
        )

    async def get_reenrollment_contract_preview(
        self,
        enrollment_id: int,
        student_user_id: int,
    ) -> ContractPreviewResponse:
        """Render the contract a student would accept. Read-only.

        Raises:
            NotAStudentError: If the user is not linked to a student.
            EnrollmentNotFoundError: If the enrollment does not exist.
            EnrollmentOwnershipError: If the enrollment belongs to someone else.
            NotAwaitingReenrollmentError: If it is not awaiting reenrollment.
            NoTemplateAvailableError: If no contract template resolves.
        """
        student_id = await self._resolve_student_id(student_user_id)
        enrollment = await self._get_enrollment(enrollment_id, with_relations=True)
        self._check_acceptable(enrollment, student_id)

        template = await self.contracts.resolve_template()
        semester = enrollment.current_semester + 1
        _, year = current_term()

        data = self.contracts.build_placeholder_map(
            enrollment.student,
            enrollment.course,
            semester,
            year,
        )
        html = self.contracts.render_placeholders(template.content, data)

        return ContractPreviewResponse(
            contract_html=html,
            enrollment_id=enrollment.id,
            semester=semester,
            year=year,
        )

    async def accept_reenrollment(
        self,
        enrollment_id: int,
        student_user_id: int,
    ) -> ReenrollmentAcceptResponse:
        """Accept a reenrollment.

        In one transaction the enrollment becomes active with its semester
        advanced by one, and an accepted contract row is created for the
        new semester. The status change is a conditional update, so of two
        concurrent acceptances only one succeeds.

        Raises:
            NotAStudentError: If the user is not linked to a student.
            EnrollmentNotFoundError: If the enrollment does not exist.
            EnrollmentOwnershipError: If the enrollment belongs to someone else.
            NotAwaitingReenrollmentError: If it is not awaiting reenrollment.
            NoTemplateAvailableError: If no contract template resolves.
            ReenrollmentAlreadyAcceptedError: If a concurrent call won.
            InternalError: If the transaction fails; nothing is changed.
        """
        student_id = await self._resolve_student_id(student_user_id)
        enrollment = await self._get_enrollment(enrollment_id, for_update=True)
        self._check_acceptable(enrollment, student_id)

        template = await self.contracts.resolve_template()
        _, year = current_term()

        try:
            result = await self.db.execute(
                update(Enrollment)
                .where(
                    Enrollment.id == enrollment_id,
                    Enrollment.status == EnrollmentStatus.REENROLLMENT.value,
                )
                .values(
                    status=EnrollmentStatus.ACTIVE.value,
                    current_semester=Enrollment.current_semester + 1,
                    updated_at=utc_now(),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise ReenrollmentAlreadyAcceptedError(
                    f"Enrollment {enrollment_id} is no longer awaiting reenrollment"
                )

            await self.db.refresh(enrollment)
            contract = await self.contracts.create_contract(
                ArtifactKind.RECORD,
                user_id=student_user_id,
                template=template,
                semester=enrollment.current_semester,
                year=year,
                enrollment_id=enrollment.id,
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                "Reenrollment acceptance rolled back: enrollment=%s, user=%s: %s",
                enrollment_id,
                student_user_id,
                str(e),
                exc_info=True,
            )
            raise InternalError("Failed to accept reenrollment. No changes were made.") from e
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(enrollment)
        await self.db.refresh(contract)

        logger.info(
            "Reenrollment accepted: enrollment=%s, semester=%s, contract=%s",
            enrollment.id,
            enrollment.current_semester,
            contract.id,
        )
        await self._events.publish(
            EventTypes.Reenrollment.ACCEPTED,
            {
                "enrollment_id": enrollment.id,
                "student_id": enrollment.student_id,
                "current_semester": enrollment.current_semester,
                "contract_id": contract.id,
                "semester": contract.semester,
                "year": contract.year,
            },
            actor_id=student_user_id,
        )

        return ReenrollmentAcceptResponse(
            enrollment=EnrollmentResponse.model_validate(enrollment),
            contract=ContractResponse.model_validate(contract),
        )

    async def _resolve_student_id(self, user_id: int) -> int:
        user = await self.credentials.find_user(user_id)
        if user is None or user.role != UserRole.STUDENT.value or user.student_id is None:
            raise NotAStudentError("Only students can access reenrollment")
        return user.student_id

    async def _get_enrollment(
        self,
        enrollment_id: int,
        with_relations: bool = False,
        for_update: bool = False,
    ) -> Enrollment:
        query = select(Enrollment).where(
            Enrollment.id == enrollment_id,
            Enrollment.deleted_at.is_(None),
        )
        if with_relations:
            query = query.options(
                selectinload(Enrollment.student),
                selectinload(Enrollment.course),
            )
        if for_update:
            query = query.with_for_update()

        result = await self.db.execute(query)
        enrollment = result.scalar_one_or_none()
        if not enrollment:
            raise EnrollmentNotFoundError(f"Enrollment {enrollment_id} not found")
        return enrollment

    @staticmethod
    def _check_acceptable(enrollment: Enrollment, student_id: int) -> None:
        if enrollment.student_id != student_id:
            raise EnrollmentOwnershipError("You are not allowed to access this enrollment")
        if enrollment.status != EnrollmentStatus.REENROLLMENT.value:
            raise NotAwaitingReenrollmentError(
                f"Enrollment is not awaiting reenrollment (current status: {enrollment.status})",
                details={"status": enrollment.status},
            )
