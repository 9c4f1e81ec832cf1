"""
Ledger Audit Adapter

Records and lists document access events on the Fabric ledger.
"""

import json
from typing import Any
from typing import Dict
from typing import List
from typing import Optional

from loguru import logger

from ccd_api.ledger.output_parsing import as_text
from ccd_api.ledger.output_parsing import cli_arg
from ccd_api.ledger.output_parsing import extract_json_array
from ccd_api.ledger.output_parsing import extract_json_object
from ccd_api.ledger.output_parsing import first_non_blank_line
from ccd_api.ledger.process_runner import ExecResult
from ccd_api.ledger.process_runner import ProcessRunner
from ccd_api.workflow.exceptions import ExternalToolError
from ccd_api.workflow.models.ledger import AuditCommand
from ccd_api.workflow.models.ledger import LedgerAuditEvent

# Positional argument order expected by the record script
RECORD_FIELDS = (
    "id_type",
    "id_number",
    "event_type",
    "request_id",
    "person_document_id",
    "doc_id",
    "document_title",
    "issuer_entity_id",
    "issuer_name",
    "action",
    "result",
    "reason",
    "actor_type",
    "actor_id",
    "source",
)


class FabricAuditAdapter:
    """Runs the Fabric access audit scripts (record and list)."""

    def __init__(
        self,
        runner: ProcessRunner,
        node_bin: str,
        record_script: str,
        list_script: str,
        workdir: Optional[str],
    ):
        self.runner = runner
        self.node_bin = node_bin
        self.record_script = record_script
        self.list_script = list_script
        self.workdir = workdir

    async def record_event(self, command: AuditCommand) -> LedgerAuditEvent:
        """
        Record one access event on-chain.

        Args:
            command: Event fields; blank values are sent as '-'

        Returns:
            The event as stored by the ledger (with its transaction id)

        Raises:
            ExternalToolError: If the script is not configured, fails, or prints no JSON object
        """
        self._validate_config()

        argv = [self.node_bin, self.record_script] + [cli_arg(getattr(command, field)) for field in RECORD_FIELDS]
        result = await self.runner.execute(argv, workdir=self.workdir)
        self._raise_on_failure(result, "No fue posible registrar auditoría en Fabric")

        json_text = extract_json_object(result.stdout)
        if json_text is None:
            raise ExternalToolError("El script de auditoría no devolvió JSON válido.", stderr=result.stderr)
        try:
            payload = json.loads(json_text)
        except json.JSONDecodeError as e:
            raise ExternalToolError("No se pudo parsear la respuesta de auditoría Fabric.") from e
        if not isinstance(payload, dict):
            raise ExternalToolError("No se pudo parsear la respuesta de auditoría Fabric.")

        event = to_audit_event(payload)
        logger.info(
            "Access audit event recorded on Fabric",
            tx_id=event.tx_id,
            event_type=event.event_type,
            request_id=event.request_id,
        )
        return event

    async def list_events_for_person(self, id_type: str, id_number: str) -> List[LedgerAuditEvent]:
        """List access events recorded for one identity."""
        self._validate_config()
        argv = [self.node_bin, self.list_script, "--person", cli_arg(id_type), cli_arg(id_number)]
        result = await self.runner.execute(argv, workdir=self.workdir)
        self._raise_on_failure(result, "No fue posible listar auditoría Fabric")
        return parse_event_list(result.stdout)

    async def list_all_events(self) -> List[LedgerAuditEvent]:
        """List every access event on the ledger."""
        self._validate_config()
        result = await self.runner.execute([self.node_bin, self.list_script, "--all"], workdir=self.workdir)
        self._raise_on_failure(result, "No fue posible listar auditoría Fabric global")
        return parse_event_list(result.stdout)

    def _validate_config(self):
        required = {
            "fabric_workdir": self.workdir,
            "fabric_node_bin": self.node_bin,
            "fabric_record_access_script": self.record_script,
            "fabric_list_access_script": self.list_script,
        }
        for name, value in required.items():
            if not value or not str(value).strip():
                raise ExternalToolError(f"Falta configurar {name}")

    @staticmethod
    def _raise_on_failure(result: ExecResult, message: str):
        if result.ok:
            return
        reason = first_non_blank_line(result.stderr, "Error de ejecución")
        logger.warning("Fabric audit script failed", exit_code=result.exit_code, reason=reason)
        raise ExternalToolError(f"{message}: {reason}", exit_code=result.exit_code, stderr=result.stderr)


def parse_event_list(stdout: str) -> List[LedgerAuditEvent]:
    """Parse the audit listing output (JSON array of objects)."""
    try:
        rows = json.loads(extract_json_array(stdout))
    except json.JSONDecodeError as e:
        raise ExternalToolError("No se pudo parsear listado de auditoría Fabric.") from e
    if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
        raise ExternalToolError("No se pudo parsear listado de auditoría Fabric.")
    return [to_audit_event(row) for row in rows]


def to_audit_event(row: Dict[str, Any]) -> LedgerAuditEvent:
    """Map a camelCase tool row onto LedgerAuditEvent."""
    return LedgerAuditEvent(
        tx_id=as_text(row.get("txId")),
        id_type=as_text(row.get("idType")),
        id_number=as_text(row.get("idNumber")),
        event_type=as_text(row.get("eventType")),
        request_id=as_text(row.get("requestId")),
        person_document_id=as_text(row.get("personDocumentId")),
        doc_id=as_text(row.get("docId")),
        document_title=as_text(row.get("documentTitle")),
        issuer_entity_id=as_text(row.get("issuerEntityId")),
        issuer_name=as_text(row.get("issuerName")),
        action=as_text(row.get("action")),
        result=as_text(row.get("result")),
        reason=as_text(row.get("reason")),
        actor_type=as_text(row.get("actorType")),
        actor_id=as_text(row.get("actorId")),
        source=as_text(row.get("source")),
        created_at=as_text(row.get("createdAt")),
    )
