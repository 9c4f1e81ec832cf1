"""
Workflow Enums

All enum types used throughout the access request workflow.
Values must match exactly with database constraints.
"""

from enum import Enum

# ════════════════════════════════════════════════════════════════════════════
# Identity Enums
# ════════════════════════════════════════════════════════════════════════════


class IdType(str, Enum):
    """National identification document types."""

    CC = "CC"  # Cédula de ciudadanía
    CE = "CE"  # Cédula de extranjería
    PA = "PA"  # Pasaporte
    NIT = "NIT"
    TI = "TI"  # Tarjeta de identidad
    PEP = "PEP"  # Permiso especial de permanencia
    OTRO = "OTRO"


# ════════════════════════════════════════════════════════════════════════════
# Document Enums
# ════════════════════════════════════════════════════════════════════════════


class ReviewStatus(str, Enum):
    """Issuer review status of a person document."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class PersonDocumentStatus(str, Enum):
    """Validity status of a person document."""

    VIGENTE = "VIGENTE"  # Valid
    VENCIDO = "VENCIDO"  # Expired
    EN_TRAMITE = "EN_TRÁMITE"  # In process
    ANULADO = "ANULADO"  # Voided


class FileStoredAs(str, Enum):
    """Storage backend of a document file."""

    BLOB = "BLOB"
    PATH = "PATH"
    S3 = "S3"


# ════════════════════════════════════════════════════════════════════════════
# Access Request Enums
# ════════════════════════════════════════════════════════════════════════════


class AccessRequestStatus(str, Enum):
    """Access request lifecycle status. Terminal states are never left."""

    PENDIENTE = "PENDIENTE"  # Pending
    APROBADA = "APROBADA"  # Approved
    RECHAZADA = "RECHAZADA"  # Rejected
    EXPIRADA = "EXPIRADA"  # Expired

    @property
    def is_terminal(self) -> bool:
        return self != AccessRequestStatus.PENDIENTE


class AuditEventType(str, Enum):
    """Ledger audit event types recorded by the service."""

    DOCUMENT_VIEW = "DOCUMENT_VIEW"


class AuditActorType(str, Enum):
    """Who performed the audited action."""

    ENTITY = "ENTITY"
    PERSON = "PERSON"
    SYSTEM = "SYSTEM"
