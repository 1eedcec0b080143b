# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment service: the enrollment state machine.

This module provides the EnrollmentService class for:
- Creating enrollments under the one-live-enrollment-per-student rule
- Activation, optionally gated on approved documents
- Generic status changes, cancellation and soft deletion
- Semester counter corrections and enrollment queries

Lifecycle:
    pending -> active -> reenrollment -> active (semester + 1)
    cancelled is reachable from every non-terminal state.

The reenrollment state is entered only through the reenrollment batch
and left only through acceptance; see src.domains.reenrollment.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.config.settings import EnrollmentSettings, get_settings
from src.core.exceptions import (
    ConflictError,
    InternalError,
    NotFoundError,
    SecretariaError,
    UnprocessableEntityError,
    ValidationError,
)
from src.domains.document.gate import DocumentGate, StudentNotFoundError
from src.infrastructure.database.models import (
    LIVE_STATUSES,
    Course,
    Enrollment,
    EnrollmentStatus,
    Student,
)
from src.infrastructure.events import EventBus, EventTypes, get_event_bus
from src.utils.datetime import utc_today

logger = logging.getLogger(__name__)

# Targets accepted by the generic status setter
SETTABLE_STATUSES: frozenset[str] = frozenset(
    {
        EnrollmentStatus.PENDING.value,
        EnrollmentStatus.ACTIVE.value,
        EnrollmentStatus.CANCELLED.value,
    }
)

TERMINAL_STATUSES: frozenset[str] = frozenset(
    {EnrollmentStatus.CANCELLED.value, EnrollmentStatus.COMPLETED.value}
)


class EnrollmentServiceError(SecretariaError):
    """Base exception for enrollment service errors."""

    pass


class EnrollmentNotFoundError(EnrollmentServiceError, NotFoundError):
    """Raised when an enrollment is not found."""

    default_code = "enrollment_not_found"


class CourseNotFoundError(EnrollmentServiceError, NotFoundError):
    """Raised when a course is not found."""

    default_code = "course_not_found"


class LiveEnrollmentExistsError(EnrollmentServiceError, ConflictError):
    """Raised when the student already holds a live enrollment."""

    default_code = "live_enrollment_exists"


class EnrollmentAlreadyCancelledError(EnrollmentServiceError, ConflictError):
    """Raised when cancelling an enrollment twice."""

    default_code = "enrollment_already_cancelled"


class InvalidTransitionError(EnrollmentServiceError, UnprocessableEntityError):
    """Raised when the current status does not allow the transition."""

    default_code = "invalid_status_transition"


class DocumentsNotApprovedError(EnrollmentServiceError, UnprocessableEntityError):
    """Raised when activation is gated on documents that are not approved."""

    default_code = "documents_not_approved"


class EnrollmentService:
    """Service owning the Enrollment entity and its transitions.

    Attributes:
        db: Async database session.
        settings: Enrollment lifecycle policy.
        gate: Document gate consulted on activation.
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: EnrollmentSettings | None = None,
        gate: DocumentGate | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        """Initialize enrollment service.

        Args:
            db: Async database session.
            settings: Lifecycle policy; read from the environment if omitted.
            gate: Document gate; built on the same session if omitted.
            event_bus: Bus for lifecycle events; the process-wide bus if omitted.
        """
        self.db = db
        self.settings = settings or get_settings().enrollment
        self.gate = gate or DocumentGate(db)
        self._events = event_bus or get_event_bus()

    async def create(
        self,
        student_id: int,
        course_id: int,
        enrollment_date: date | None = None,
        actor_id: int | None = None,
    ) -> Enrollment:
        """Enroll a student in a course.

        Args:
            student_id: Student identifier.
            course_id: Course identifier.
            enrollment_date: Defaults to today; must not be in the future.
            actor_id: User performing the action, for the audit trail.

        Returns:
            The new enrollment, in pending status with semester 0.

        Raises:
            ValidationError: If enrollment_date is in the future.
            StudentNotFoundError: If the student does not exist.
            CourseNotFoundError: If the course does not exist.
            LiveEnrollmentExistsError: If the student has a live enrollment.
        """
        today = utc_today()
        enrollment_date = enrollment_date or today
        if enrollment_date > today:
            raise ValidationError(
                "Enrollment date cannot be in the future",
                code="enrollment_date_in_future",
            )

        await self._get_student(student_id)
        await self._get_course(course_id)

        live = await self._find_live(student_id)
        if live is not None:
            raise self._live_conflict(live)

        enrollment = Enrollment(
            student_id=student_id,
            course_id=course_id,
            status=EnrollmentStatus.PENDING.value,
            enrollment_date=enrollment_date,
            current_semester=0,
        )
        self.db.add(enrollment)

        try:
            await self.db.commit()
        except IntegrityError as e:
            # Lost a race against a concurrent create for the same student
            await self.db.rollback()
            live = await self._find_live(student_id)
            if live is None:
                raise LiveEnrollmentExistsError("Student already has a live enrollment") from e
            raise self._live_conflict(live) from e
        except SQLAlchemyError as e:
            await self._fail("create enrollment", e)

        await self.db.refresh(enrollment)

        logger.info(
            "Created enrollment: id=%s, student=%s, course=%s",
            enrollment.id,
            student_id,
            course_id,
        )
        await self._publish(EventTypes.Enrollment.CREATED, enrollment, actor_id)
        return enrollment

    async def can_enroll(self, student_id: int) -> bool:
        """Check whether a student may receive a new enrollment.

        Returns False, never raises, when the student is missing.
        """
        student = await self._find_student(student_id)
        if student is None:
            return False
        return await self._find_live(student_id) is None

    async def validate_documents(self, student_id: int) -> bool:
        """Check that every mandatory document of the student is approved.

        Raises:
            StudentNotFoundError: If the student does not exist.
        """
        return await self.gate.validate_documents(student_id)

    async def activate_enrollment(
        self,
        enrollment_id: int,
        actor_id: int | None = None,
    ) -> Enrollment:
        """Activate a pending enrollment.

        Already active enrollments are returned unchanged. When the
        document gate is enforced, every mandatory document must be
        approved first.

        Raises:
            EnrollmentNotFoundError: If the enrollment does not exist.
            InvalidTransitionError: If the enrollment is not pending.
            DocumentsNotApprovedError: If the gate is enforced and unmet.
        """
        enrollment = await self._get_enrollment(enrollment_id)

        if enrollment.status == EnrollmentStatus.ACTIVE.value:
            logger.info("Enrollment %s is already active", enrollment_id)
            return enrollment

        if enrollment.status != EnrollmentStatus.PENDING.value:
            raise InvalidTransitionError(
                f"Cannot activate an enrollment in status '{enrollment.status}'",
                details={"status": enrollment.status},
            )

        if self.settings.enforce_document_gate:
            unmet = await self.gate.find_unmet_types(enrollment.student_id)
            if unmet:
                raise DocumentsNotApprovedError(
                    "Not all mandatory documents have been approved",
                    details={
                        "unmet_document_types": [
                            {"id": t.id, "name": t.name} for t in unmet
                        ]
                    },
                )

        enrollment.status = EnrollmentStatus.ACTIVE.value
        await self._commit(enrollment, "activate enrollment")

        logger.info("Activated enrollment %s", enrollment_id)
        await self._publish(EventTypes.Enrollment.ACTIVATED, enrollment, actor_id)
        return enrollment

    async def update_status(
        self,
        enrollment_id: int,
        new_status: str,
        actor_id: int | None = None,
    ) -> Enrollment:
        """Generic status setter for pending, active and cancelled.

        Activation goes through activate_enrollment and cancellation
        through cancel, so their rules apply here too.

        Raises:
            ValidationError: If new_status is not settable.
            EnrollmentNotFoundError: If the enrollment does not exist.
            InvalidTransitionError: If the current status forbids the change.
        """
        if new_status not in SETTABLE_STATUSES:
            raise ValidationError(
                f"Invalid status '{new_status}'. Accepted values: "
                f"{', '.join(sorted(SETTABLE_STATUSES))}",
                code="invalid_status",
            )

        if new_status == EnrollmentStatus.ACTIVE.value:
            return await self.activate_enrollment(enrollment_id, actor_id=actor_id)
        if new_status == EnrollmentStatus.CANCELLED.value:
            return await self.cancel(enrollment_id, actor_id=actor_id)

        enrollment = await self._get_enrollment(enrollment_id)
        if enrollment.status == new_status:
            return enrollment

        # Reviving a cancelled enrollment could break the one-live-enrollment rule
        if enrollment.status != EnrollmentStatus.ACTIVE.value:
            raise InvalidTransitionError(
                f"Cannot move an enrollment from '{enrollment.status}' to '{new_status}'",
                details={"status": enrollment.status, "target": new_status},
            )

        previous = enrollment.status
        enrollment.status = new_status
        await self._commit(enrollment, "update enrollment status")

        logger.info(
            "Enrollment %s status changed: %s -> %s",
            enrollment_id,
            previous,
            new_status,
        )
        await self._publish(
            EventTypes.Enrollment.STATUS_CHANGED,
            enrollment,
            actor_id,
            previous_status=previous,
        )
        return enrollment

    async def update_current_semester(
        self,
        enrollment_id: int,
        semester: int,
        actor_id: int | None = None,
    ) -> Enrollment:
        """Correct the semester counter of an enrollment.

        Raises:
            ValidationError: If semester is outside 0..max_semester.
            EnrollmentNotFoundError: If the enrollment does not exist.
        """
        if semester < 0 or semester > self.settings.max_semester:
            raise ValidationError(
                f"Semester must be between 0 and {self.settings.max_semester}",
                code="invalid_semester",
            )

        enrollment = await self._get_enrollment(enrollment_id)
        previous = enrollment.current_semester
        enrollment.current_semester = semester
        await self._commit(enrollment, "update current semester")

        logger.info(
            "Enrollment %s semester changed: %s -> %s",
            enrollment_id,
            previous,
            semester,
        )
        await self._publish(
            EventTypes.Enrollment.SEMESTER_UPDATED,
            enrollment,
            actor_id,
            previous_semester=previous,
        )
        return enrollment

    async def cancel(self, enrollment_id: int, actor_id: int | None = None) -> Enrollment:
        """Cancel an enrollment.

        Raises:
            EnrollmentNotFoundError: If the enrollment does not exist.
            EnrollmentAlreadyCancelledError: If it is already cancelled.
            InvalidTransitionError: If it is completed.
        """
        enrollment = await self._get_enrollment(enrollment_id)

        if enrollment.status == EnrollmentStatus.CANCELLED.value:
            raise EnrollmentAlreadyCancelledError(f"Enrollment {enrollment_id} is already cancelled")
        if enrollment.status in TERMINAL_STATUSES:
            raise InvalidTransitionError(
                f"Cannot cancel an enrollment in status '{enrollment.status}'",
                details={"status": enrollment.status},
            )

        previous = enrollment.status
        enrollment.status = EnrollmentStatus.CANCELLED.value
        await self._commit(enrollment, "cancel enrollment")

        logger.info("Cancelled enrollment %s (was %s)", enrollment_id, previous)
        await self._publish(
            EventTypes.Enrollment.CANCELLED,
            enrollment,
            actor_id,
            previous_status=previous,
        )
        return enrollment

    async def delete(self, enrollment_id: int, actor_id: int | None = None) -> None:
        """Soft delete an enrollment. Contracts are left untouched.

        Raises:
            EnrollmentNotFoundError: If the enrollment does not exist.
        """
        enrollment = await self._get_enrollment(enrollment_id)
        enrollment.soft_delete()
        await self._commit(enrollment, "delete enrollment", refresh=False)

        logger.info("Deleted enrollment %s", enrollment_id)
        await self._publish(EventTypes.Enrollment.DELETED, enrollment, actor_id)

    async def get_by_id(self, enrollment_id: int) -> Enrollment:
        """Get an enrollment with its student and course.

        Raises:
            EnrollmentNotFoundError: If the enrollment does not exist.
        """
        return await self._get_enrollment(enrollment_id, with_relations=True)

    async def get_by_student(self, student_id: int, status: str | None = None) -> list[Enrollment]:
        """List a student's enrollments, newest first."""
        query = self._detail_query().where(Enrollment.student_id == student_id)
        if status:
            query = query.where(Enrollment.status == status)
        result = await self.db.execute(query.order_by(Enrollment.created_at.desc(), Enrollment.id.desc()))
        return list(result.scalars().all())

    async def get_by_course(self, course_id: int, status: str | None = None) -> list[Enrollment]:
        """List a course's enrollments, newest first."""
        query = self._detail_query().where(Enrollment.course_id == course_id)
        if status:
            query = query.where(Enrollment.status == status)
        result = await self.db.execute(query.order_by(Enrollment.created_at.desc(), Enrollment.id.desc()))
        return list(result.scalars().all())

    async def get_pending_by_student(self, student_id: int) -> Enrollment | None:
        """Get the most recent enrollment awaiting the student's action."""
        query = (
            self._detail_query()
            .where(
                Enrollment.student_id == student_id,
                Enrollment.status.in_(
                    (EnrollmentStatus.PENDING.value, EnrollmentStatus.REENROLLMENT.value)
                ),
            )
            .order_by(Enrollment.created_at.desc(), Enrollment.id.desc())
            .limit(1)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    def _detail_query(self):
        return (
            select(Enrollment)
            .options(selectinload(Enrollment.student), selectinload(Enrollment.course))
            .where(Enrollment.deleted_at.is_(None))
        )

    @staticmethod
    def _live_conflict(live: Enrollment) -> LiveEnrollmentExistsError:
        return LiveEnrollmentExistsError(
            f"Student already has a {live.status} enrollment in course '{live.course.name}'",
            details={
                "enrollment_id": live.id,
                "course_id": live.course_id,
                "course_name": live.course.name,
                "status": live.status,
            },
        )

    async def _find_live(self, student_id: int) -> Enrollment | None:
        query = (
            select(Enrollment)
            .options(selectinload(Enrollment.course))
            .where(
                Enrollment.student_id == student_id,
                Enrollment.status.in_(LIVE_STATUSES),
                Enrollment.deleted_at.is_(None),
            )
            .limit(1)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def _get_enrollment(self, enrollment_id: int, with_relations: bool = False) -> Enrollment:
        query = self._detail_query() if with_relations else select(Enrollment).where(
            Enrollment.deleted_at.is_(None)
        )
        result = await self.db.execute(query.where(Enrollment.id == enrollment_id))
        enrollment = result.scalar_one_or_none()

        if not enrollment:
            raise EnrollmentNotFoundError(f"Enrollment {enrollment_id} not found")

        return enrollment

    async def _find_student(self, student_id: int) -> Student | None:
        result = await self.db.execute(
            select(Student).where(Student.id == student_id, Student.deleted_at.is_(None))
        )
        return result.scalar_one_or_none()

    async def _get_student(self, student_id: int) -> Student:
        student = await self._find_student(student_id)
        if not student:
            raise StudentNotFoundError(f"Student {student_id} not found")
        return student

    async def _get_course(self, course_id: int) -> Course:
        result = await self.db.execute(
            select(Course).where(Course.id == course_id, Course.deleted_at.is_(None))
        )
        course = result.scalar_one_or_none()
        if not course:
            raise CourseNotFoundError(f"Course {course_id} not found")
        return course

    async def _commit(self, enrollment: Enrollment, action: str, refresh: bool = True) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self._fail(action, e)
        if refresh:
            await self.db.refresh(enrollment)

    async def _fail(self, action: str, error: SQLAlchemyError) -> None:
        await self.db.rollback()
        logger.error("Failed to %s: %s", action, str(error), exc_info=True)
        raise InternalError(f"Failed to {action}") from error

    async def _publish(
        self,
        event_type: str,
        enrollment: Enrollment,
        actor_id: int | None,
        **extra: Any,
    ) -> None:
        await self._events.publish(
            event_type,
            {
                "enrollment_id": enrollment.id,
                "student_id": enrollment.student_id,
                "course_id": enrollment.course_id,
                "status": enrollment.status,
                "current_semester": enrollment.current_semester,
                **extra,
            },
            actor_id=actor_id,
        )
