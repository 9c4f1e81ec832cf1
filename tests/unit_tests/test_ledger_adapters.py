"""Tests for the Fabric sync and query adapters (scripted process runner)."""

import json

import pytest
from tests.fixtures.ledger_fixtures import exec_result

from ccd_api.ledger.query_adapter import FabricQueryAdapter
from ccd_api.ledger.query_adapter import parse_document_list
from ccd_api.ledger.sync_adapter import SYNC_FAILED_REASON
from ccd_api.ledger.sync_adapter import FabricSyncAdapter
from ccd_api.workflow.exceptions import ExternalToolError

FABRIC_DIR = "/opt/ccdigital/fabric-client"


@pytest.fixture
def sync_adapter(mock_runner):
    return FabricSyncAdapter(mock_runner, "node", "sync-db-to-ledger.js", FABRIC_DIR)


@pytest.fixture
def query_adapter(mock_runner):
    return FabricQueryAdapter(mock_runner, "node", "list-docs.js", FABRIC_DIR)


class TestFabricSyncAdapter:
    """Tests for FabricSyncAdapter."""

    @pytest.mark.asyncio
    async def test_sync_identity_command(self, sync_adapter, mock_runner):
        """The sync script is run for one identity in the Fabric client directory."""
        outcome = await sync_adapter.sync_identity("CC", "1019983896")

        assert outcome.ok
        assert outcome.reason is None
        mock_runner.execute.assert_awaited_once_with(
            ["node", "sync-db-to-ledger.js", "--person", "CC", "1019983896"], workdir=FABRIC_DIR
        )

    @pytest.mark.asyncio
    async def test_sync_all_command(self, sync_adapter, mock_runner):
        """A full resync passes --all."""
        await sync_adapter.sync_all()

        mock_runner.execute.assert_awaited_once_with(["node", "sync-db-to-ledger.js", "--all"], workdir=FABRIC_DIR)

    @pytest.mark.asyncio
    async def test_failure_reason_is_first_stderr_line(self, sync_adapter, mock_runner, mock_logger):
        """The first non-blank stderr line is the failure reason."""
        mock_runner.execute.return_value = exec_result(
            exit_code=1, stderr="\n  Error: DiscoveryService has failed  \n    at Gateway.connect"
        )

        outcome = await sync_adapter.sync_identity("CC", "1019983896")

        assert not outcome.ok
        assert outcome.reason == "Error: DiscoveryService has failed"
        assert outcome.result.exit_code == 1
        mock_logger["sync"].warning.assert_called_once()

    @pytest.mark.asyncio
    async def test_failure_without_stderr(self, sync_adapter, mock_runner):
        """A silent failure uses the generic reason."""
        mock_runner.execute.return_value = exec_result(exit_code=2)

        outcome = await sync_adapter.sync_identity("CC", "1019983896")

        assert outcome.reason == SYNC_FAILED_REASON

    @pytest.mark.asyncio
    async def test_timeout_is_a_failure(self, sync_adapter, mock_runner):
        """A timed out sync is not ok."""
        mock_runner.execute.return_value = exec_result(exit_code=-2, stderr="Command timed out after 120.0s", timed_out=True)

        outcome = await sync_adapter.sync_identity("CC", "1019983896")

        assert not outcome.ok
        assert outcome.result.timed_out


class TestFabricQueryAdapter:
    """Tests for FabricQueryAdapter."""

    @pytest.mark.asyncio
    async def test_list_documents(self, query_adapter, mock_runner):
        """The JSON array is read from between the tool banners."""
        rows = [
            {
                "docId": "DOC-55-7f3a",
                "title": "Cédula de ciudadanía",
                "issuingEntity": "Registraduría Nacional",
                "status": "VIGENTE",
                "createdAt": "2026-02-20T10:00:00Z",
                "sizeBytes": "2048",
                "filePath": "/srv/ccdigital/storage/juan/doc.pdf",
            },
            {"docId": 56, "title": None, "issuingEntity": "", "status": None, "sizeBytes": 10.0},
        ]
        mock_runner.execute.return_value = exec_result(stdout="Wallet cargada\n" + json.dumps(rows) + "\nGateway cerrado\n")

        docs = await query_adapter.list_documents("CC", "1019983896")

        mock_runner.execute.assert_awaited_once_with(["node", "list-docs.js", "CC", "1019983896"], workdir=FABRIC_DIR)
        assert [d.doc_id for d in docs] == ["DOC-55-7f3a", "56"]
        assert docs[0].size_bytes == 2048
        assert docs[0].file_path == "/srv/ccdigital/storage/juan/doc.pdf"
        assert docs[1].title is None
        assert docs[1].issuing_entity == "Fabric"
        assert docs[1].status == "Registrado"
        assert docs[1].size_bytes == 10

    @pytest.mark.asyncio
    async def test_no_array_means_no_documents(self, query_adapter, mock_runner):
        """Output without a JSON array is an empty listing."""
        mock_runner.execute.return_value = exec_result(stdout="No hay documentos para esta identidad\n")

        assert await query_adapter.list_documents("CC", "1019983896") == []

    @pytest.mark.asyncio
    async def test_tool_failure_raises(self, query_adapter, mock_runner):
        """A non-zero exit is an ExternalToolError carrying exit code and stderr."""
        mock_runner.execute.return_value = exec_result(exit_code=1, stderr="Error: access denied\nmore")

        with pytest.raises(ExternalToolError) as exc_info:
            await query_adapter.list_documents("CC", "1019983896")

        assert exc_info.value.message == "No fue posible consultar los documentos en Fabric: Error: access denied"
        assert exc_info.value.exit_code == 1
        assert "more" in exc_info.value.stderr

    @pytest.mark.asyncio
    async def test_find_document_by_id(self, query_adapter, mock_runner):
        """find_document picks the record with the given docId."""
        rows = [{"docId": "A", "title": "Uno"}, {"docId": "B", "title": "Dos"}]
        mock_runner.execute.return_value = exec_result(stdout=json.dumps(rows))

        found = await query_adapter.find_document("CC", "1019983896", " B ")

        assert found.title == "Dos"
        assert await query_adapter.find_document("CC", "1019983896", "Z") is None

    @pytest.mark.asyncio
    async def test_find_document_with_blank_id(self, query_adapter, mock_runner):
        """A blank docId never queries the ledger."""
        assert await query_adapter.find_document("CC", "1019983896", "  ") is None
        mock_runner.execute.assert_not_awaited()


class TestParseDocumentList:
    def test_invalid_json(self):
        with pytest.raises(ExternalToolError, match="Could not parse Fabric document listing"):
            parse_document_list("[{not json}]")

    def test_rows_must_be_objects(self):
        with pytest.raises(ExternalToolError):
            parse_document_list('["DOC-1", "DOC-2"]')

    @pytest.mark.parametrize("size_bytes", ["NaN", "Infinity", "-Infinity", '"1e400"', '"nan"'])
    def test_non_finite_size_is_dropped(self, size_bytes):
        """A size that is not a finite number leaves the row usable."""
        stdout = 'conectado\n[{"docId": "D1", "filePath": "juan/doc.pdf", "sizeBytes": %s}]' % size_bytes

        docs = parse_document_list(stdout)

        assert docs[0].doc_id == "D1"
        assert docs[0].file_path == "juan/doc.pdf"
        assert docs[0].size_bytes is None
