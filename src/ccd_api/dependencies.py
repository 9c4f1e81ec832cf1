"""FastAPI dependencies for accessing app state and caller identity."""

from fastapi import Header
from fastapi import HTTPException
from fastapi import Request
from fastapi import status

from ccd_api.ledger.audit_adapter import FabricAuditAdapter
from ccd_api.ledger.credential_adapter import IndyCredentialAdapter
from ccd_api.ledger.query_adapter import FabricQueryAdapter
from ccd_api.ledger.sync_adapter import FabricSyncAdapter
from ccd_api.settings import Settings
from ccd_api.workflow.access_request_service import AccessRequestService


def get_settings(request: Request) -> Settings:
    """
    Get application settings from request state.

    Parameters
    ----------
    request : Request
        FastAPI request object

    Returns
    -------
    Settings
        Application settings instance
    """
    return request.app.state.settings


def get_sync_adapter(request: Request) -> FabricSyncAdapter:
    """Get the Fabric sync adapter shared by the application."""
    return request.app.state.ledger_sync


def get_query_adapter(request: Request) -> FabricQueryAdapter:
    """Get the Fabric document listing adapter shared by the application."""
    return request.app.state.ledger_query


def get_audit_adapter(request: Request) -> FabricAuditAdapter:
    """Get the Fabric access audit adapter shared by the application."""
    return request.app.state.ledger_audit


def get_credential_adapter(request: Request) -> IndyCredentialAdapter:
    """Get the Indy credential issuer adapter shared by the application."""
    return request.app.state.indy_credentials


def get_access_request_service(request: Request) -> AccessRequestService:
    """
    Build the access request service for one request.

    Repositories are bound to the domain database pool; ledger adapters,
    file storage, clock and identity locks are shared application state.

    Parameters
    ----------
    request : Request
        FastAPI request object

    Returns
    -------
    AccessRequestService
        Service wired to the application collaborators
    """
    from ccd_api.workflow.db.repository_access_request import AccessRequestRepository
    from ccd_api.workflow.db.repository_issuing_entity import IssuingEntityRepository
    from ccd_api.workflow.db.repository_person import PersonRepository
    from ccd_api.workflow.db.repository_person_document import PersonDocumentRepository

    state = request.app.state
    pool = state.domain_db_pool.pool
    return AccessRequestService(
        access_requests=AccessRequestRepository(pool),
        persons=PersonRepository(pool),
        entities=IssuingEntityRepository(pool),
        person_documents=PersonDocumentRepository(pool),
        ledger_sync=state.ledger_sync,
        ledger_query=state.ledger_query,
        file_storage=state.file_storage,
        clock=state.clock,
        identity_locks=state.identity_locks,
        ledger_audit=state.ledger_audit,
    )


def _parse_identity_header(value: str, header_name: str) -> int:
    if not value or not value.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{header_name} header is required",
        )
    try:
        parsed = int(value.strip())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{header_name} must be a positive integer",
        )
    if parsed <= 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{header_name} must be a positive integer",
        )
    return parsed


async def get_entity_id(
    x_entity_id: str = Header(
        ...,
        alias="X-Entity-Id",
        description="<small>*Requesting organization id (set by the authentication layer)*</small>",
    ),
) -> int:
    """
    Extract the requesting organization id from the X-Entity-Id header.

    Raises
    ------
    HTTPException
        400 if the header is empty or not a positive integer
    """
    return _parse_identity_header(x_entity_id, "X-Entity-Id")


async def get_person_id(
    x_person_id: str = Header(
        ...,
        alias="X-Person-Id",
        description="<small>*Citizen id (set by the authentication layer)*</small>",
    ),
) -> int:
    """
    Extract the acting citizen id from the X-Person-Id header.

    Raises
    ------
    HTTPException
        400 if the header is empty or not a positive integer
    """
    return _parse_identity_header(x_person_id, "X-Person-Id")
