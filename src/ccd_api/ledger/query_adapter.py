"""
Ledger Query Adapter

Lists the documents the Fabric ledger holds for one identity.
"""

import json
from typing import List
from typing import Optional

from loguru import logger

from ccd_api.ledger.output_parsing import as_optional_int
from ccd_api.ledger.output_parsing import extract_json_array
from ccd_api.ledger.output_parsing import first_non_blank_line
from ccd_api.ledger.process_runner import ProcessRunner
from ccd_api.workflow.exceptions import ExternalToolError
from ccd_api.workflow.models.ledger import LedgerDocumentView


class FabricQueryAdapter:
    """Runs `<node> <list_docs_script> <ID_TYPE> <ID_NUMBER>` and parses the JSON array it prints."""

    def __init__(self, runner: ProcessRunner, node_bin: str, list_docs_script: str, workdir: Optional[str]):
        self.runner = runner
        self.node_bin = node_bin
        self.list_docs_script = list_docs_script
        self.workdir = workdir

    async def list_documents(self, id_type: str, id_number: str) -> List[LedgerDocumentView]:
        """
        List on-chain documents of a person.

        Args:
            id_type: Identification type (CC, CE, ...)
            id_number: Identification number

        Returns:
            Ledger documents in tool order (empty if the tool printed no array)

        Raises:
            ExternalToolError: If the tool failed or printed unparseable JSON
        """
        argv = [self.node_bin, self.list_docs_script, str(id_type), str(id_number)]
        result = await self.runner.execute(argv, workdir=self.workdir)

        if not result.ok:
            reason = first_non_blank_line(result.stderr, "Error de ejecución")
            logger.warning(
                "Fabric document listing failed",
                id_type=id_type,
                id_number=id_number,
                exit_code=result.exit_code,
                reason=reason,
            )
            raise ExternalToolError(
                f"No fue posible consultar los documentos en Fabric: {reason}",
                exit_code=result.exit_code,
                stderr=result.stderr,
            )

        docs = parse_document_list(result.stdout)
        logger.debug("Fabric documents listed", id_type=id_type, id_number=id_number, count=len(docs))
        return docs

    async def find_document(self, id_type: str, id_number: str, doc_id: str) -> Optional[LedgerDocumentView]:
        """Return the on-chain document with the given docId, or None."""
        if not doc_id or not doc_id.strip():
            return None
        for doc in await self.list_documents(id_type, id_number):
            if doc.doc_id is not None and doc.doc_id.strip() == doc_id.strip():
                return doc
        return None


def parse_document_list(stdout: str) -> List[LedgerDocumentView]:
    """
    Parse the listing tool output into LedgerDocumentView objects.

    Raises:
        ExternalToolError: If the extracted text is not a JSON list of objects
    """
    try:
        payload = json.loads(extract_json_array(stdout))
    except json.JSONDecodeError as e:
        raise ExternalToolError(f"Could not parse Fabric document listing: {e}", stderr=stdout) from e

    if not isinstance(payload, list) or not all(isinstance(row, dict) for row in payload):
        raise ExternalToolError("Could not parse Fabric document listing: expected a list of objects", stderr=stdout)

    return [
        LedgerDocumentView(
            doc_id=_optional_text(row.get("docId")),
            title=_optional_text(row.get("title")),
            issuing_entity=_optional_text(row.get("issuingEntity")),
            status=_optional_text(row.get("status")),
            created_at=_optional_text(row.get("createdAt")),
            size_bytes=as_optional_int(row.get("sizeBytes")),
            file_path=_optional_text(row.get("filePath")),
        )
        for row in payload
    ]


def _optional_text(value) -> Optional[str]:
    if value is None:
        return None
    return str(value)
