"""
Workflow Models Module

All Pydantic models for the access request workflow:
- Database entity models (persons, entities, documents, access requests)
- Ledger value objects (never persisted)
"""

# Database Entity Models
from ccd_api.workflow.models.person import Person, IssuingEntity
from ccd_api.workflow.models.document import FileRecord, PersonDocument
from ccd_api.workflow.models.access_request import AccessRequest, AccessRequestItem

# Ledger Value Objects
from ccd_api.workflow.models.ledger import (
    LedgerDocumentView,
    LedgerAuditEvent,
    AuditCommand,
    DocumentBlockchainTrace,
)

__all__ = [
    # Entity models
    "Person",
    "IssuingEntity",
    "FileRecord",
    "PersonDocument",
    "AccessRequest",
    "AccessRequestItem",
    # Ledger models
    "LedgerDocumentView",
    "LedgerAuditEvent",
    "AuditCommand",
    "DocumentBlockchainTrace",
]
