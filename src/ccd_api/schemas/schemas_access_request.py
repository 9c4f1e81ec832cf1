"""
Access Request API Schemas

Request bodies use snake_case; response models use PascalCase fields per the
existing API pattern.
"""

from datetime import datetime
from typing import List
from typing import Optional

from pydantic import BaseModel
from pydantic import Field

from ccd_api.workflow.models.access_request import AccessRequest
from ccd_api.workflow.models.ledger import DocumentBlockchainTrace


# ════════════════════════════════════════════════════════════════════════════
# Request Bodies
# ════════════════════════════════════════════════════════════════════════════


class CreateAccessRequestBody(BaseModel):
    """Body for creating an access request (the requesting organization comes from X-Entity-Id)."""

    person_id: int = Field(..., description="Document owner", examples=[12])
    purpose: str = Field(..., description="Reason for the request (max 300 characters)", examples=["Verificación laboral"])
    person_document_ids: List[int] = Field(..., description="Requested person documents", examples=[[101, 102]])


class DecisionBody(BaseModel):
    """Optional body for approve / reject."""

    decision_note: Optional[str] = Field(default=None, description="Decision note (max 300 characters)")


# ════════════════════════════════════════════════════════════════════════════
# Access Request Schemas
# ════════════════════════════════════════════════════════════════════════════


class AccessRequestItemResponse(BaseModel):
    """Requested document."""

    ItemId: Optional[int]
    PersonDocumentId: int
    DocumentTitle: Optional[str]


class AccessRequestResponse(BaseModel):
    """Access request details."""

    RequestId: int
    EntityId: int
    EntityName: Optional[str]
    PersonId: int
    PersonName: Optional[str]
    Purpose: str
    Status: str  # PENDIENTE, APROBADA, RECHAZADA, EXPIRADA
    RequestedAt: datetime
    DecidedAt: Optional[datetime]
    ExpiresAt: datetime
    DecisionNote: Optional[str]
    Items: List[AccessRequestItemResponse]

    @classmethod
    def from_model(cls, request: AccessRequest) -> "AccessRequestResponse":
        return cls(
            RequestId=request.id,
            EntityId=request.entity_id,
            EntityName=request.entity_name,
            PersonId=request.person_id,
            PersonName=request.person_display_name,
            Purpose=request.purpose,
            Status=request.status.value,
            RequestedAt=request.requested_at,
            DecidedAt=request.decided_at,
            ExpiresAt=request.expires_at,
            DecisionNote=request.decision_note,
            Items=[
                AccessRequestItemResponse(
                    ItemId=item.id,
                    PersonDocumentId=item.person_document_id,
                    DocumentTitle=item.document_title,
                )
                for item in request.items
            ],
        )


class AccessRequestDetailResponse(BaseModel):
    """Single access request."""

    Message: str
    AccessRequest: AccessRequestResponse


class AccessRequestListResponse(BaseModel):
    """List of access requests."""

    Message: str
    Count: int
    AccessRequests: List[AccessRequestResponse]


# ════════════════════════════════════════════════════════════════════════════
# Blockchain Trace Schema
# ════════════════════════════════════════════════════════════════════════════


class DocumentTraceResponse(BaseModel):
    """On-chain reference of an approved document."""

    Message: str
    Network: str
    BlockReference: str
    DocumentTitle: str
    IssuingEntity: str
    Status: str
    CreatedAt: str
    Size: str
    FileName: str
    FilePath: str

    @classmethod
    def from_trace(cls, trace: DocumentBlockchainTrace, message: str) -> "DocumentTraceResponse":
        return cls(
            Message=message,
            Network=trace.network,
            BlockReference=trace.block_reference,
            DocumentTitle=trace.document_title,
            IssuingEntity=trace.issuing_entity,
            Status=trace.status,
            CreatedAt=trace.created_at_human,
            Size=trace.size_human,
            FileName=trace.file_name,
            FilePath=trace.file_path,
        )
