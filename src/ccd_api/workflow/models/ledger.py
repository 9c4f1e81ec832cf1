"""
Ledger Models

Value objects read from the Fabric client tools. They are built per call and
never persisted or cached.
"""

import os
from datetime import datetime
from decimal import ROUND_HALF_UP
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel
from pydantic import field_validator

NOT_AVAILABLE = "No disponible"

_KB = Decimal(1024)
_MB = _KB * _KB
_GB = _MB * _KB


class LedgerDocumentView(BaseModel):
    """Document record as reported by the ledger listing tool."""

    doc_id: Optional[str] = None
    title: Optional[str] = None
    issuing_entity: str = "Fabric"
    status: str = "Registrado"
    created_at: Optional[str] = None  # raw text from the tool
    size_bytes: Optional[int] = None
    file_path: Optional[str] = None

    @field_validator("issuing_entity", mode="before")
    @classmethod
    def default_issuing_entity(cls, v):
        """Blank issuer is reported as the ledger itself."""
        if v is None or not str(v).strip():
            return "Fabric"
        return v

    @field_validator("status", mode="before")
    @classmethod
    def default_status(cls, v):
        """Blank status means the record is simply registered."""
        if v is None or not str(v).strip():
            return "Registrado"
        return v

    @property
    def created_at_human(self) -> str:
        """Creation time as YYYY-MM-DD HH:MM in local time, or the raw text if it is not ISO-8601."""
        if not self.created_at or not self.created_at.strip():
            return NOT_AVAILABLE
        raw = self.created_at.strip()
        try:
            parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            return self.created_at
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone()
        return parsed.strftime("%Y-%m-%d %H:%M")

    @property
    def size_human(self) -> str:
        """Size in B, KB, MB or GB with two decimals."""
        if self.size_bytes is None or self.size_bytes <= 0:
            return NOT_AVAILABLE
        size = Decimal(self.size_bytes)
        for unit, factor in (("GB", _GB), ("MB", _MB), ("KB", _KB)):
            if size >= factor:
                return f"{(size / factor).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)} {unit}"
        return f"{size} B"

    @property
    def file_name(self) -> str:
        if not self.file_path or not self.file_path.strip():
            return "documento"
        name = os.path.basename(self.file_path.replace("\\", "/").rstrip("/"))
        return name or "documento"


class LedgerAuditEvent(BaseModel):
    """Access audit transaction as reported by the ledger audit tools."""

    tx_id: str = ""
    id_type: str = ""
    id_number: str = ""
    event_type: str = ""
    request_id: str = ""
    person_document_id: str = ""
    doc_id: str = ""
    document_title: str = ""
    issuer_entity_id: str = ""
    issuer_name: str = ""
    action: str = ""
    result: str = ""
    reason: str = ""
    actor_type: str = ""
    actor_id: str = ""
    source: str = ""
    created_at: str = ""


class AuditCommand(BaseModel):
    """Access audit event to be recorded on the ledger."""

    id_type: str
    id_number: str
    event_type: str
    request_id: Optional[int] = None
    person_document_id: Optional[int] = None
    doc_id: Optional[str] = None
    document_title: Optional[str] = None
    issuer_entity_id: Optional[int] = None
    issuer_name: Optional[str] = None
    action: Optional[str] = None
    result: Optional[str] = None
    reason: Optional[str] = None
    actor_type: Optional[str] = None
    actor_id: Optional[str] = None
    source: Optional[str] = None


class DocumentBlockchainTrace(BaseModel):
    """On-chain reference of an approved document, ready for display."""

    network: str
    block_reference: str
    document_title: str
    issuing_entity: str
    status: str
    created_at_human: str
    size_human: str
    file_name: str
    file_path: str

    @classmethod
    def from_ledger_document(cls, doc: LedgerDocumentView) -> "DocumentBlockchainTrace":
        return cls(
            network="Hyperledger Fabric",
            block_reference=_or_default(doc.doc_id, "Sin referencia"),
            document_title=_or_default(doc.title, "Documento sin título"),
            issuing_entity=_or_default(doc.issuing_entity, "Entidad no identificada"),
            status=_or_default(doc.status, "Registrado"),
            created_at_human=_or_default(doc.created_at_human, NOT_AVAILABLE),
            size_human=_or_default(doc.size_human, NOT_AVAILABLE),
            file_name=_or_default(doc.file_name, "documento"),
            file_path=_or_default(doc.file_path, NOT_AVAILABLE),
        )


def _or_default(value: Optional[str], default: str) -> str:
    if value is None or not value.strip():
        return default
    return value.strip()
