# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Contract service: template resolution, contract creation and acceptance.

This module provides the ContractService class for:
- Resolving the contract template to use
- Building the placeholder map for a student and course
- Creating contracts of either artifact kind through one factory
- Generating first-enrollment PDF contracts
- Accepting contracts exactly once
- Contract queries and soft deletion

Both the first-enrollment path (PDF artifact, accepted later) and the
reenrollment path (record artifact, accepted on creation) go through
create_contract.
"""

from __future__ import annotations

import logging
import secrets
from datetime import date, datetime
from pathlib import Path
from typing import Any, Literal

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.config.settings import ContractSettings, get_settings
from src.core.exceptions import (
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    SecretariaError,
    UnprocessableEntityError,
)
from src.domains.contract.renderer import ContractArtifactWriter, PlaceholderRenderer
from src.infrastructure.database.models import (
    ArtifactKind,
    Contract,
    ContractTemplate,
    Course,
    Enrollment,
    EnrollmentStatus,
    Student,
    User,
    UserRole,
)
from src.infrastructure.documents.pdf import ArtifactWriteError, PdfContractWriter
from src.infrastructure.events import EventBus, EventTypes, get_event_bus
from src.utils.datetime import current_term, format_br_date, utc_now

logger = logging.getLogger(__name__)

UNSPECIFIED_COURSE = "Curso não especificado"
UNSPECIFIED_DURATION = "conforme currículo"
TEACHING_CONTRACT = "Contrato de Docência"


class ContractServiceError(SecretariaError):
    """Base exception for contract service errors."""

    pass


class ContractNotFoundError(ContractServiceError, NotFoundError):
    """Raised when a contract is not found."""

    default_code = "contract_not_found"


class TemplateNotFoundError(ContractServiceError, NotFoundError):
    """Raised when an explicitly requested template is missing or inactive."""

    default_code = "contract_template_not_found"


class NoTemplateAvailableError(ContractServiceError, UnprocessableEntityError):
    """Raised when no active contract template can be resolved."""

    default_code = "no_contract_template"


class UserNotFoundError(ContractServiceError, NotFoundError):
    """Raised when a user is not found."""

    default_code = "user_not_found"


class ContractAlreadyAcceptedError(ContractServiceError, ConflictError):
    """Raised when accepting a contract twice."""

    default_code = "contract_already_accepted"


class ContractOwnershipError(ContractServiceError, ForbiddenError):
    """Raised when a user acts on someone else's contract."""

    default_code = "contract_not_owned"


class InvalidContractUserError(ContractServiceError, UnprocessableEntityError):
    """Raised when contracts cannot be issued to the user's role."""

    default_code = "invalid_contract_user"


class ContractService:
    """Service for contract templates and contracts.

    Attributes:
        db: Async database session.
        settings: Contract generation settings.
        renderer: Placeholder renderer.
        writer: Artifact writer for PDF contracts.
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: ContractSettings | None = None,
        renderer: PlaceholderRenderer | None = None,
        writer: ContractArtifactWriter | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        """Initialize contract service.

        Args:
            db: Async database session.
            settings: Contract settings; read from the environment if omitted.
            renderer: Placeholder renderer.
            writer: PDF writer; a ReportLab writer on settings.output_dir if omitted.
            event_bus: Bus for lifecycle events.
        """
        self.db = db
        self.settings = settings or get_settings().contract
        self.renderer = renderer or PlaceholderRenderer()
        self.writer = writer or PdfContractWriter(self.settings.output_dir)
        self._events = event_bus or get_event_bus()

    # Templates and placeholders

    async def resolve_template(self, template_id: int | None = None) -> ContractTemplate:
        """Resolve the template to use for a new contract.

        Order: the explicit template_id, the configured default_template_id,
        the template flagged is_default, then the earliest active template.

        Raises:
            TemplateNotFoundError: If template_id is given but not active.
            NoTemplateAvailableError: If nothing resolves.
        """
        if template_id is not None:
            template = await self._find_active_template(template_id)
            if template is None:
                raise TemplateNotFoundError(f"Contract template {template_id} not found")
            return template

        if self.settings.default_template_id is not None:
            template = await self._find_active_template(self.settings.default_template_id)
            if template is not None:
                return template
            logger.warning(
                "Configured default contract template %s is missing or inactive",
                self.settings.default_template_id,
            )

        result = await self.db.execute(
            self._active_templates()
            .order_by(
                ContractTemplate.is_default.desc(),
                ContractTemplate.created_at.asc(),
                ContractTemplate.id.asc(),
            )
            .limit(1)
        )
        template = result.scalar_one_or_none()
        if template is None:
            raise NoTemplateAvailableError(
                "No contract template available. Configure an active template first."
            )
        return template

    def build_placeholder_map(
        self,
        student: Student | None,
        course: Course | None,
        semester: int,
        year: int,
        reference: date | datetime | None = None,
        student_name: str | None = None,
    ) -> dict[str, str]:
        """Build the values substituted into a contract template.

        Args:
            student: Student the contract is for, if known.
            course: Course of the enrollment, if any.
            semester: Semester printed on the contract.
            year: Year printed on the contract.
            reference: Date printed as currentDate; defaults to today.
            student_name: Fallback name when no Student row exists.
        """
        data = {
            "studentName": student.name if student else (student_name or ""),
            "studentId": str(student.id) if student else "",
            "studentCpf": (student.cpf or "") if student else "",
            "studentAddress": student.full_address if student else "",
            "courseName": course.name if course else UNSPECIFIED_COURSE,
            "courseId": str(course.id) if course else "0",
            "duration": f"{course.duration_semesters} semestres" if course else UNSPECIFIED_DURATION,
            "semester": str(semester),
            "year": str(year),
            "institutionName": self.settings.institution_name,
            "currentDate": format_br_date(reference or utc_now()),
        }
        return data

    def render_placeholders(self, content: str, data: dict[str, Any]) -> str:
        """Substitute {{key}} tokens in a template body."""
        return self.renderer.render(content, data)

    def list_placeholders(self, content: str) -> list[str]:
        """List the distinct placeholders used by a template body."""
        return self.renderer.list_placeholders(content)

    # Creation

    async def create_contract(
        self,
        kind: ArtifactKind,
        user_id: int,
        template: ContractTemplate,
        semester: int,
        year: int,
        enrollment_id: int | None = None,
        rendered: str | None = None,
    ) -> Contract:
        """Add a contract to the current transaction.

        PDF contracts get their rendered body written through the artifact
        writer and stay unaccepted. Record contracts carry no file and are
        accepted on creation. The caller owns the commit.

        Raises:
            ValueError: If a PDF contract is requested without a rendered body.
        """
        contract = Contract(
            user_id=user_id,
            enrollment_id=enrollment_id,
            template_id=template.id,
            artifact_kind=kind.value,
            semester=semester,
            year=year,
        )

        if kind is ArtifactKind.PDF:
            if rendered is None:
                raise ValueError("A rendered body is required for PDF contracts")
            file_name = f"contract_{user_id}_{semester}_{year}_{secrets.token_hex(4)}.pdf"
            contract.file_path = await self.writer.write(
                rendered,
                file_name,
                title=template.name,
            )
            contract.file_name = file_name
        else:
            contract.accepted_at = utc_now()

        self.db.add(contract)
        try:
            await self.db.flush()
        except SQLAlchemyError:
            self._discard_artifact(contract)
            raise
        return contract

    async def generate_contract(
        self,
        user_id: int,
        semester: int | None = None,
        year: int | None = None,
        template_id: int | None = None,
        enrollment_id: int | None = None,
        actor_id: int | None = None,
    ) -> Contract:
        """Generate a first-enrollment contract as a PDF.

        Semester and year default to the current term.

        Raises:
            UserNotFoundError: If the user does not exist.
            InvalidContractUserError: If the user is not a student or teacher.
            TemplateNotFoundError: If template_id is given but not active.
            NoTemplateAvailableError: If no template resolves.
            InternalError: If the contract cannot be stored.
        """
        user = await self._get_user(user_id)
        if user.role == UserRole.ADMIN.value:
            raise InvalidContractUserError("Contracts are issued to students and teachers only")

        default_semester, default_year = current_term()
        semester = semester or default_semester
        year = year or default_year

        template = await self.resolve_template(template_id)

        student, course, enrollment_id = await self._contract_subject(user, enrollment_id)
        data = self.build_placeholder_map(student, course, semester, year, student_name=user.name)
        if user.role == UserRole.TEACHER.value:
            data.update(courseName=TEACHING_CONTRACT, duration="1 semestre")

        rendered = self.render_placeholders(template.content, data)

        contract = None
        try:
            contract = await self.create_contract(
                ArtifactKind.PDF,
                user_id=user.id,
                template=template,
                semester=semester,
                year=year,
                enrollment_id=enrollment_id,
                rendered=rendered,
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            self._discard_artifact(contract)
            logger.error("Failed to store contract for user %s: %s", user_id, str(e), exc_info=True)
            raise InternalError("Failed to generate contract") from e
        except ArtifactWriteError as e:
            await self.db.rollback()
            logger.error(
                "Failed to write contract file for user %s: %s", user_id, e.message, exc_info=True
            )
            raise InternalError("Failed to generate contract") from e

        await self.db.refresh(contract)

        logger.info(
            "Generated contract %s for user %s (%s/%s, template %s)",
            contract.id,
            user_id,
            semester,
            year,
            template.id,
        )
        await self._events.publish(
            EventTypes.Contract.CREATED,
            self._event_payload(contract),
            actor_id=actor_id,
        )
        return contract

    # Acceptance

    async def accept_contract(self, contract_id: int, user_id: int) -> Contract:
        """Accept a contract on behalf of its owner.

        accepted_at is set with a conditional update, so of two
        concurrent acceptances only one succeeds.

        Raises:
            ContractNotFoundError: If the contract does not exist.
            ContractAlreadyAcceptedError: If it was already accepted.
            ContractOwnershipError: If user_id is not the owner.
        """
        contract = await self.get_by_id(contract_id)

        if contract.user_id != user_id:
            raise ContractOwnershipError("You are not allowed to accept this contract")
        if contract.accepted_at is not None:
            raise ContractAlreadyAcceptedError(
                "This contract has already been accepted",
                details={"accepted_at": contract.accepted_at.isoformat()},
            )

        accepted_at = utc_now()
        try:
            result = await self.db.execute(
                update(Contract)
                .where(Contract.id == contract_id, Contract.accepted_at.is_(None))
                .values(accepted_at=accepted_at)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                await self.db.rollback()
                raise ContractAlreadyAcceptedError("This contract has already been accepted")
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Failed to accept contract %s: %s", contract_id, str(e), exc_info=True)
            raise InternalError("Failed to accept contract") from e

        await self.db.refresh(contract)

        logger.info("Contract %s accepted by user %s", contract_id, user_id)
        await self._events.publish(
            EventTypes.Contract.ACCEPTED,
            self._event_payload(contract),
            actor_id=user_id,
        )
        return contract

    # Queries

    async def get_by_id(self, contract_id: int) -> Contract:
        """Get a contract.

        Raises:
            ContractNotFoundError: If the contract does not exist.
        """
        result = await self.db.execute(
            select(Contract).where(Contract.id == contract_id, Contract.deleted_at.is_(None))
        )
        contract = result.scalar_one_or_none()
        if not contract:
            raise ContractNotFoundError(f"Contract {contract_id} not found")
        return contract

    async def get_pending_by_user(self, user_id: int) -> list[Contract]:
        """List a user's contracts awaiting acceptance."""
        return await self._list(Contract.user_id == user_id, Contract.accepted_at.is_(None))

    async def get_accepted_by_user(self, user_id: int) -> list[Contract]:
        """List a user's accepted contracts."""
        return await self._list(Contract.user_id == user_id, Contract.accepted_at.is_not(None))

    async def get_all_by_user(self, user_id: int) -> list[Contract]:
        """List all of a user's contracts."""
        return await self._list(Contract.user_id == user_id)

    async def get_all(self, status: Literal["pending", "accepted"] | None = None) -> list[Contract]:
        """List every contract, optionally filtered by acceptance status."""
        if status == "pending":
            return await self._list(Contract.accepted_at.is_(None))
        if status == "accepted":
            return await self._list(Contract.accepted_at.is_not(None))
        return await self._list()

    async def get_by_period(self, user_id: int, semester: int, year: int) -> list[Contract]:
        """List a user's contracts for one semester and year."""
        return await self._list(
            Contract.user_id == user_id,
            Contract.semester == semester,
            Contract.year == year,
        )

    async def has_pending_contracts(self, user_id: int) -> bool:
        """Check if the user has any contract awaiting acceptance."""
        return await self.count_pending_contracts(user_id) > 0

    async def count_pending_contracts(self, user_id: int) -> int:
        """Count a user's contracts awaiting acceptance."""
        result = await self.db.execute(
            select(func.count(Contract.id)).where(
                Contract.user_id == user_id,
                Contract.accepted_at.is_(None),
                Contract.deleted_at.is_(None),
            )
        )
        return result.scalar_one()

    async def delete(self, contract_id: int, actor_id: int | None = None) -> None:
        """Soft delete a contract.

        Raises:
            ContractNotFoundError: If the contract does not exist.
        """
        contract = await self.get_by_id(contract_id)
        contract.soft_delete()
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Failed to delete contract %s: %s", contract_id, str(e), exc_info=True)
            raise InternalError("Failed to delete contract") from e

        logger.info("Deleted contract %s", contract_id)
        await self._events.publish(
            EventTypes.Contract.DELETED,
            self._event_payload(contract),
            actor_id=actor_id,
        )

    # Helpers

    def _active_templates(self):
        return select(ContractTemplate).where(
            ContractTemplate.is_active.is_(True),
            ContractTemplate.deleted_at.is_(None),
        )

    async def _find_active_template(self, template_id: int) -> ContractTemplate | None:
        result = await self.db.execute(
            self._active_templates().where(ContractTemplate.id == template_id)
        )
        return result.scalar_one_or_none()

    async def _list(self, *criteria: Any) -> list[Contract]:
        query = (
            select(Contract)
            .where(Contract.deleted_at.is_(None), *criteria)
            .order_by(Contract.created_at.desc(), Contract.id.desc())
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def _get_user(self, user_id: int) -> User:
        result = await self.db.execute(
            select(User).where(User.id == user_id, User.deleted_at.is_(None))
        )
        user = result.scalar_one_or_none()
        if not user:
            raise UserNotFoundError(f"User {user_id} not found")
        return user

    async def _contract_subject(
        self,
        user: User,
        enrollment_id: int | None,
    ) -> tuple[Student | None, Course | None, int | None]:
        """Find the student, course and enrollment a contract refers to."""
        if user.role != UserRole.STUDENT.value or user.student_id is None:
            return None, None, None

        query = (
            select(Enrollment)
            .options(selectinload(Enrollment.student), selectinload(Enrollment.course))
            .where(
                Enrollment.student_id == user.student_id,
                Enrollment.deleted_at.is_(None),
            )
        )
        if enrollment_id is not None:
            query = query.where(Enrollment.id == enrollment_id)
        else:
            query = query.where(
                Enrollment.status.in_(
                    (EnrollmentStatus.PENDING.value, EnrollmentStatus.ACTIVE.value)
                )
            ).order_by(Enrollment.created_at.desc())

        result = await self.db.execute(query.limit(1))
        enrollment = result.scalar_one_or_none()
        if enrollment is not None:
            return enrollment.student, enrollment.course, enrollment.id

        student_result = await self.db.execute(
            select(Student).where(Student.id == user.student_id)
        )
        return student_result.scalar_one_or_none(), None, None

    @staticmethod
    def _discard_artifact(contract: Contract | None) -> None:
        if contract is not None and contract.file_path:
            Path(contract.file_path).unlink(missing_ok=True)

    @staticmethod
    def _event_payload(contract: Contract) -> dict[str, Any]:
        return {
            "contract_id": contract.id,
            "user_id": contract.user_id,
            "enrollment_id": contract.enrollment_id,
            "template_id": contract.template_id,
            "artifact_kind": contract.artifact_kind,
            "semester": contract.semester,
            "year": contract.year,
        }
