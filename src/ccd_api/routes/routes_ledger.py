"""
Ledger Administration Routes

Operator endpoints for the external ledger tools: resync documents to Fabric,
inspect on-chain documents and access audit events, and run the Indy issuer.
"""

from fastapi import APIRouter
from fastapi import Depends
from fastapi.responses import JSONResponse
from loguru import logger

from ccd_api.dependencies import get_audit_adapter
from ccd_api.dependencies import get_credential_adapter
from ccd_api.dependencies import get_query_adapter
from ccd_api.dependencies import get_sync_adapter
from ccd_api.ledger.audit_adapter import FabricAuditAdapter
from ccd_api.ledger.credential_adapter import IndyCredentialAdapter
from ccd_api.ledger.query_adapter import FabricQueryAdapter
from ccd_api.ledger.sync_adapter import FabricSyncAdapter
from ccd_api.ledger.sync_adapter import SyncOutcome
from ccd_api.schemas.schemas_ledger import LedgerAuditEventResponse
from ccd_api.schemas.schemas_ledger import LedgerAuditListResponse
from ccd_api.schemas.schemas_ledger import LedgerDocumentListResponse
from ccd_api.schemas.schemas_ledger import LedgerDocumentResponse
from ccd_api.schemas.schemas_ledger import SyncPersonBody
from ccd_api.schemas.schemas_ledger import ToolRunResponse
from ccd_api.workflow.enums import IdType

ROUTER_LEDGER = APIRouter(tags=["Ledger"], prefix="/ledger")


def _tool_response(response: ToolRunResponse) -> JSONResponse:
    """200 when the tool succeeded, 502 otherwise (body carries the tool output either way)."""
    return JSONResponse(status_code=200 if response.Ok else 502, content=response.model_dump())


def _sync_response(outcome: SyncOutcome, message: str) -> JSONResponse:
    return _tool_response(
        ToolRunResponse.from_result(
            outcome.result,
            message if outcome.ok else "Fabric sync failed",
            reason=outcome.reason,
        )
    )


@ROUTER_LEDGER.post(
    "/sync/person",
    response_model=ToolRunResponse,
    summary="Sync one person's documents to Fabric",
    responses={502: {"description": "Sync script failed"}},
)
async def sync_person(
    body: SyncPersonBody,
    ledger_sync: FabricSyncAdapter = Depends(get_sync_adapter),
):
    """Run the Fabric sync script for one identity."""
    outcome = await ledger_sync.sync_identity(body.id_type.value, body.id_number.strip())
    return _sync_response(outcome, "Person documents synced to Fabric")


@ROUTER_LEDGER.post(
    "/sync/all",
    response_model=ToolRunResponse,
    summary="Sync all documents to Fabric",
    responses={502: {"description": "Sync script failed"}},
)
async def sync_all(ledger_sync: FabricSyncAdapter = Depends(get_sync_adapter)):
    """Run the Fabric sync script for every person."""
    outcome = await ledger_sync.sync_all()
    return _sync_response(outcome, "All documents synced to Fabric")


@ROUTER_LEDGER.post(
    "/credentials/issue",
    response_model=ToolRunResponse,
    summary="Issue Indy credentials from the database",
    responses={502: {"description": "Issuer script failed or is not configured"}},
)
async def issue_credentials(indy: IndyCredentialAdapter = Depends(get_credential_adapter)):
    """Run the Indy issuer script once."""
    result = await indy.issue_from_db()
    message = "Indy credentials issued" if result.ok else "Indy credential issuance failed"
    return _tool_response(ToolRunResponse.from_result(result, message))


@ROUTER_LEDGER.get(
    "/documents/{id_type}/{id_number}",
    response_model=LedgerDocumentListResponse,
    summary="List documents recorded on Fabric for a person",
    responses={502: {"description": "Listing script failed"}},
)
async def list_ledger_documents(
    id_type: IdType,
    id_number: str,
    ledger_query: FabricQueryAdapter = Depends(get_query_adapter),
):
    """List on-chain documents of one identity."""
    docs = await ledger_query.list_documents(id_type.value, id_number)
    logger.info("Fabric documents listed", id_type=id_type.value, count=len(docs))
    return LedgerDocumentListResponse(
        Message=f"Found {len(docs)} document(s) on Fabric",
        Count=len(docs),
        Documents=[LedgerDocumentResponse.from_view(doc) for doc in docs],
    )


@ROUTER_LEDGER.get(
    "/audit/{id_type}/{id_number}",
    response_model=LedgerAuditListResponse,
    summary="List access audit events recorded on Fabric for a person",
    responses={502: {"description": "Audit script failed or is not configured"}},
)
async def list_ledger_audit_events(
    id_type: IdType,
    id_number: str,
    ledger_audit: FabricAuditAdapter = Depends(get_audit_adapter),
):
    """List on-chain access audit events of one identity."""
    events = await ledger_audit.list_events_for_person(id_type.value, id_number)
    return LedgerAuditListResponse(
        Message=f"Found {len(events)} audit event(s) on Fabric",
        Count=len(events),
        Events=[LedgerAuditEventResponse.from_event(event) for event in events],
    )
