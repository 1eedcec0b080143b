# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for Contract service."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from src.core.config.settings import ContractSettings
from src.core.exceptions import InternalError
from src.domains.contract import (
    ContractAlreadyAcceptedError,
    ContractNotFoundError,
    ContractOwnershipError,
    ContractService,
    InvalidContractUserError,
    NoTemplateAvailableError,
    TemplateNotFoundError,
)
from src.infrastructure.database.models import ArtifactKind
from src.infrastructure.documents import ArtifactWriteError
from src.infrastructure.events import EventTypes


def _result(value):
    """Build a mock execute() result returning value from scalar_one_or_none."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


@pytest.fixture
def mock_db():
    """Create mock database session."""
    db = AsyncMock()
    db.add = MagicMock()
    db.flush = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.execute = AsyncMock()
    return db


@pytest.fixture
def mock_writer():
    """Create mock artifact writer."""
    writer = MagicMock()
    writer.write = AsyncMock(return_value="uploads/contracts/contract.pdf")
    return writer


@pytest.fixture
def mock_bus():
    bus = MagicMock()
    bus.publish = AsyncMock()
    return bus


@pytest.fixture
def contract_service(mock_db, mock_writer, mock_bus):
    """Create contract service with mock collaborators."""
    return ContractService(
        db=mock_db,
        settings=ContractSettings(institution_name="Faculdade Exemplo"),
        writer=mock_writer,
        event_bus=mock_bus,
    )


@pytest.fixture
def sample_template():
    template = MagicMock()
    template.id = 1
    template.name = "Contrato padrão"
    template.content = "Contrato de {{studentName}} para {{courseName}}"
    return template


@pytest.fixture
def sample_contract():
    contract = MagicMock()
    contract.id = 7
    contract.user_id = 20
    contract.accepted_at = None
    contract.deleted_at = None
    return contract


class TestResolveTemplate:
    """Tests for template resolution order."""

    @pytest.mark.asyncio
    async def test_explicit_template(self, contract_service, mock_db, sample_template):
        mock_db.execute.return_value = _result(sample_template)

        assert await contract_service.resolve_template(1) is sample_template
        mock_db.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_explicit_template_missing(self, contract_service, mock_db):
        mock_db.execute.return_value = _result(None)

        with pytest.raises(TemplateNotFoundError) as exc_info:
            await contract_service.resolve_template(99)

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_configured_default_wins(self, mock_db, mock_writer, mock_bus, sample_template):
        service = ContractService(
            db=mock_db,
            settings=ContractSettings(default_template_id=5),
            writer=mock_writer,
            event_bus=mock_bus,
        )
        mock_db.execute.return_value = _result(sample_template)

        assert await service.resolve_template() is sample_template
        mock_db.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_configured_default_missing_falls_back(
        self, mock_db, mock_writer, mock_bus, sample_template
    ):
        service = ContractService(
            db=mock_db,
            settings=ContractSettings(default_template_id=5),
            writer=mock_writer,
            event_bus=mock_bus,
        )
        mock_db.execute.side_effect = [_result(None), _result(sample_template)]

        assert await service.resolve_template() is sample_template
        assert mock_db.execute.await_count == 2

    @pytest.mark.asyncio
    async def test_no_template(self, contract_service, mock_db):
        mock_db.execute.return_value = _result(None)

        with pytest.raises(NoTemplateAvailableError) as exc_info:
            await contract_service.resolve_template()

        assert exc_info.value.status_code == 422


class TestCreateContract:
    """Tests for the contract factory."""

    @pytest.mark.asyncio
    async def test_record_is_accepted_on_creation(
        self, contract_service, mock_db, mock_writer, sample_template
    ):
        contract = await contract_service.create_contract(
            ArtifactKind.RECORD,
            user_id=20,
            template=sample_template,
            semester=3,
            year=2025,
            enrollment_id=42,
        )

        assert contract.artifact_kind == "record"
        assert contract.accepted_at is not None
        assert contract.file_path is None
        mock_writer.write.assert_not_called()
        mock_db.flush.assert_awaited_once()
        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_pdf_is_written_and_unaccepted(
        self, contract_service, mock_writer, sample_template
    ):
        contract = await contract_service.create_contract(
            ArtifactKind.PDF,
            user_id=20,
            template=sample_template,
            semester=1,
            year=2025,
            rendered="Contrato de Maria",
        )

        assert contract.artifact_kind == "pdf"
        assert contract.accepted_at is None
        assert contract.file_path == "uploads/contracts/contract.pdf"
        assert contract.file_name.startswith("contract_20_1_2025_")
        mock_writer.write.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_pdf_requires_rendered_body(self, contract_service, sample_template):
        with pytest.raises(ValueError):
            await contract_service.create_contract(
                ArtifactKind.PDF,
                user_id=20,
                template=sample_template,
                semester=1,
                year=2025,
            )


class TestGenerateContract:
    """Tests for first-enrollment contract generation."""

    @pytest.mark.asyncio
    async def test_admin_cannot_receive_contract(self, contract_service, mock_db):
        admin = MagicMock()
        admin.id = 1
        admin.role = "admin"
        mock_db.execute.return_value = _result(admin)

        with pytest.raises(InvalidContractUserError):
            await contract_service.generate_contract(user_id=1)

    @pytest.mark.asyncio
    async def test_teacher_contract(
        self, contract_service, mock_db, mock_writer, mock_bus, sample_template
    ):
        teacher = MagicMock()
        teacher.id = 30
        teacher.name = "Prof. João"
        teacher.role = "teacher"
        teacher.student_id = None
        mock_db.execute.side_effect = [_result(teacher), _result(sample_template)]

        contract = await contract_service.generate_contract(user_id=30, semester=2, year=2025)

        rendered = mock_writer.write.await_args.args[0]
        assert rendered == "Contrato de Prof. João para Contrato de Docência"
        assert contract.semester == 2
        mock_db.commit.assert_awaited_once()
        assert mock_bus.publish.await_args.args[0] == EventTypes.Contract.CREATED

    @pytest.mark.asyncio
    async def test_storage_failure_discards_file(
        self, contract_service, mock_db, mock_writer, sample_template, tmp_path
    ):
        stored = tmp_path / "contract.pdf"
        stored.write_bytes(b"%PDF-1.4")
        mock_writer.write.return_value = str(stored)

        teacher = MagicMock()
        teacher.id = 30
        teacher.name = "Prof. João"
        teacher.role = "teacher"
        mock_db.execute.side_effect = [_result(teacher), _result(sample_template)]
        mock_db.commit.side_effect = OperationalError("INSERT", {}, Exception("down"))

        with pytest.raises(InternalError):
            await contract_service.generate_contract(user_id=30)

        mock_db.rollback.assert_awaited_once()
        assert not stored.exists()

    @pytest.mark.asyncio
    async def test_writer_failure_is_internal_error(
        self, contract_service, mock_db, mock_writer, mock_bus, sample_template
    ):
        """A file that cannot be written surfaces as an internal error."""
        disk_full = ArtifactWriteError("Failed to write contract PDF", OSError(28, "No space left"))
        mock_writer.write.side_effect = disk_full

        teacher = MagicMock()
        teacher.id = 30
        teacher.name = "Prof. João"
        teacher.role = "teacher"
        mock_db.execute.side_effect = [_result(teacher), _result(sample_template)]

        with pytest.raises(InternalError) as exc_info:
            await contract_service.generate_contract(user_id=30)

        assert exc_info.value.status_code == 500
        assert exc_info.value.__cause__ is disk_full
        mock_db.add.assert_not_called()
        mock_db.commit.assert_not_called()
        mock_db.rollback.assert_awaited_once()
        mock_bus.publish.assert_not_called()


class TestAcceptContract:
    """Tests for contract acceptance."""

    @pytest.mark.asyncio
    async def test_accept(self, contract_service, mock_db, mock_bus, sample_contract):
        update_result = MagicMock()
        update_result.rowcount = 1
        mock_db.execute.side_effect = [_result(sample_contract), update_result]

        await contract_service.accept_contract(7, user_id=20)

        mock_db.commit.assert_awaited_once()
        assert mock_bus.publish.await_args.args[0] == EventTypes.Contract.ACCEPTED

    @pytest.mark.asyncio
    async def test_accept_not_found(self, contract_service, mock_db):
        mock_db.execute.return_value = _result(None)

        with pytest.raises(ContractNotFoundError):
            await contract_service.accept_contract(404, user_id=20)

    @pytest.mark.asyncio
    async def test_accept_other_users_contract(self, contract_service, mock_db, sample_contract):
        """Ownership is checked before the accepted state."""
        sample_contract.accepted_at = datetime(2025, 2, 1, tzinfo=timezone.utc)
        mock_db.execute.return_value = _result(sample_contract)

        with pytest.raises(ContractOwnershipError):
            await contract_service.accept_contract(7, user_id=21)

    @pytest.mark.asyncio
    async def test_accept_twice(self, contract_service, mock_db, sample_contract):
        sample_contract.accepted_at = datetime(2025, 2, 1, tzinfo=timezone.utc)
        mock_db.execute.return_value = _result(sample_contract)

        with pytest.raises(ContractAlreadyAcceptedError) as exc_info:
            await contract_service.accept_contract(7, user_id=20)

        assert exc_info.value.status_code == 409
        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_concurrent_accept_loses(self, contract_service, mock_db, sample_contract):
        """The conditional update matching no row means another call won."""
        update_result = MagicMock()
        update_result.rowcount = 0
        mock_db.execute.side_effect = [_result(sample_contract), update_result]

        with pytest.raises(ContractAlreadyAcceptedError):
            await contract_service.accept_contract(7, user_id=20)

        mock_db.rollback.assert_awaited()
        mock_db.commit.assert_not_called()


class TestPendingContracts:
    """Tests for pending contract counting."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("count,expected", [(0, False), (2, True)])
    async def test_has_pending_contracts(self, contract_service, mock_db, count, expected):
        result = MagicMock()
        result.scalar_one.return_value = count
        mock_db.execute.return_value = result

        assert await contract_service.count_pending_contracts(20) == count
        assert await contract_service.has_pending_contracts(20) is expected
