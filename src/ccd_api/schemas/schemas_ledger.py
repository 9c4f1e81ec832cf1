"""Ledger administration API schemas (PascalCase response fields)."""

from typing import List
from typing import Optional

from pydantic import BaseModel
from pydantic import Field

from ccd_api.ledger.process_runner import ExecResult
from ccd_api.workflow.enums import IdType
from ccd_api.workflow.models.ledger import LedgerAuditEvent
from ccd_api.workflow.models.ledger import LedgerDocumentView


class SyncPersonBody(BaseModel):
    """Identity whose documents are pushed to Fabric."""

    id_type: IdType = Field(..., examples=["CC"])
    id_number: str = Field(..., min_length=1, examples=["1019983896"])


class ToolRunResponse(BaseModel):
    """Outcome of an external ledger tool run."""

    Message: str
    Ok: bool
    ExitCode: int
    TimedOut: bool
    Reason: Optional[str] = None
    Stdout: str
    Stderr: str

    @classmethod
    def from_result(cls, result: ExecResult, message: str, reason: Optional[str] = None) -> "ToolRunResponse":
        return cls(
            Message=message,
            Ok=result.ok,
            ExitCode=result.exit_code,
            TimedOut=result.timed_out,
            Reason=reason,
            Stdout=result.stdout,
            Stderr=result.stderr,
        )


class LedgerDocumentResponse(BaseModel):
    """Document as recorded on Fabric."""

    DocId: Optional[str]
    Title: Optional[str]
    IssuingEntity: str
    Status: str
    CreatedAt: str
    SizeBytes: Optional[int]
    Size: str
    FilePath: Optional[str]
    FileName: str

    @classmethod
    def from_view(cls, doc: LedgerDocumentView) -> "LedgerDocumentResponse":
        return cls(
            DocId=doc.doc_id,
            Title=doc.title,
            IssuingEntity=doc.issuing_entity,
            Status=doc.status,
            CreatedAt=doc.created_at_human,
            SizeBytes=doc.size_bytes,
            Size=doc.size_human,
            FilePath=doc.file_path,
            FileName=doc.file_name,
        )


class LedgerDocumentListResponse(BaseModel):
    """Documents recorded on Fabric for one identity."""

    Message: str
    Count: int
    Documents: List[LedgerDocumentResponse]


class LedgerAuditEventResponse(BaseModel):
    """Access audit transaction recorded on Fabric."""

    TxId: str
    EventType: str
    RequestId: str
    PersonDocumentId: str
    DocId: str
    DocumentTitle: str
    IssuerEntityId: str
    IssuerName: str
    Action: str
    Result: str
    Reason: str
    ActorType: str
    ActorId: str
    Source: str
    CreatedAt: str

    @classmethod
    def from_event(cls, event: LedgerAuditEvent) -> "LedgerAuditEventResponse":
        return cls(
            TxId=event.tx_id,
            EventType=event.event_type,
            RequestId=event.request_id,
            PersonDocumentId=event.person_document_id,
            DocId=event.doc_id,
            DocumentTitle=event.document_title,
            IssuerEntityId=event.issuer_entity_id,
            IssuerName=event.issuer_name,
            Action=event.action,
            Result=event.result,
            Reason=event.reason,
            ActorType=event.actor_type,
            ActorId=event.actor_id,
            Source=event.source,
            CreatedAt=event.created_at,
        )


class LedgerAuditListResponse(BaseModel):
    """Access audit events for one identity."""

    Message: str
    Count: int
    Events: List[LedgerAuditEventResponse]
