"""
Access Request API Routes

REST API endpoints for consent-based document disclosure. Caller identity is
provided by the authentication layer through X-Entity-Id (organization) and
X-Person-Id (citizen) headers.
"""

from typing import Optional

from fastapi import APIRouter
from fastapi import Body
from fastapi import Depends
from fastapi import status
from fastapi.responses import FileResponse
from loguru import logger

from ccd_api.dependencies import get_access_request_service
from ccd_api.dependencies import get_entity_id
from ccd_api.dependencies import get_person_id
from ccd_api.schemas.schemas_access_request import AccessRequestDetailResponse
from ccd_api.schemas.schemas_access_request import AccessRequestListResponse
from ccd_api.schemas.schemas_access_request import AccessRequestResponse
from ccd_api.schemas.schemas_access_request import CreateAccessRequestBody
from ccd_api.schemas.schemas_access_request import DecisionBody
from ccd_api.schemas.schemas_access_request import DocumentTraceResponse
from ccd_api.workflow.access_request_service import AccessRequestService

ROUTER_ACCESS_REQUESTS = APIRouter(tags=["Access Requests"], prefix="/access-requests")

_ERROR_RESPONSES = {
    403: {"description": "Caller is not allowed to act on this request"},
    404: {"description": "Request, person, entity or document not found"},
    409: {"description": "Request state conflict or document not found on Fabric"},
    410: {"description": "Request expired"},
    422: {"description": "Invalid input"},
    503: {"description": "Fabric unavailable"},
}


@ROUTER_ACCESS_REQUESTS.post(
    "",
    response_model=AccessRequestDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an access request",
    responses={201: {"description": "Access request created (PENDIENTE)"}, **_ERROR_RESPONSES},
)
async def create_access_request(
    body: CreateAccessRequestBody,
    entity_id: int = Depends(get_entity_id),
    service: AccessRequestService = Depends(get_access_request_service),
):
    """Request access to approved documents of a person on behalf of the calling organization."""
    created = await service.create_request(entity_id, body.person_id, body.purpose, body.person_document_ids)
    return AccessRequestDetailResponse(
        Message="Access request created",
        AccessRequest=AccessRequestResponse.from_model(created),
    )


@ROUTER_ACCESS_REQUESTS.get(
    "/entity",
    response_model=AccessRequestListResponse,
    summary="List access requests made by the calling organization",
)
async def list_entity_access_requests(
    entity_id: int = Depends(get_entity_id),
    service: AccessRequestService = Depends(get_access_request_service),
):
    """List requests made by the organization, newest first."""
    requests = await service.list_for_entity(entity_id)
    return AccessRequestListResponse(
        Message=f"Found {len(requests)} access request(s)",
        Count=len(requests),
        AccessRequests=[AccessRequestResponse.from_model(r) for r in requests],
    )


@ROUTER_ACCESS_REQUESTS.get(
    "/person",
    response_model=AccessRequestListResponse,
    summary="List access requests addressed to the calling person",
)
async def list_person_access_requests(
    person_id: int = Depends(get_person_id),
    service: AccessRequestService = Depends(get_access_request_service),
):
    """List requests addressed to the citizen, newest first."""
    requests = await service.list_for_person(person_id)
    return AccessRequestListResponse(
        Message=f"Found {len(requests)} access request(s)",
        Count=len(requests),
        AccessRequests=[AccessRequestResponse.from_model(r) for r in requests],
    )


@ROUTER_ACCESS_REQUESTS.get(
    "/{request_id}",
    response_model=AccessRequestDetailResponse,
    summary="Get an access request",
    responses={404: {"description": "Access request not found"}},
)
async def get_access_request(
    request_id: int,
    service: AccessRequestService = Depends(get_access_request_service),
):
    """Get an access request with its items."""
    access_request = await service.get_by_id(request_id)
    return AccessRequestDetailResponse(
        Message="Access request retrieved",
        AccessRequest=AccessRequestResponse.from_model(access_request),
    )


@ROUTER_ACCESS_REQUESTS.post(
    "/{request_id}/approve",
    response_model=AccessRequestDetailResponse,
    summary="Approve an access request",
    responses=_ERROR_RESPONSES,
)
async def approve_access_request(
    request_id: int,
    body: Optional[DecisionBody] = Body(default=None),
    person_id: int = Depends(get_person_id),
    service: AccessRequestService = Depends(get_access_request_service),
):
    """
    Approve a pending request.

    The owner's documents are synced to Fabric and every requested document
    must be found on-chain before the approval is stored. On any ledger
    failure the request stays PENDIENTE and can be approved again later.
    """
    note = body.decision_note if body else None
    decided = await service.decide(request_id, person_id, approve=True, decision_note=note)
    return AccessRequestDetailResponse(
        Message="Access request approved",
        AccessRequest=AccessRequestResponse.from_model(decided),
    )


@ROUTER_ACCESS_REQUESTS.post(
    "/{request_id}/reject",
    response_model=AccessRequestDetailResponse,
    summary="Reject an access request",
    responses=_ERROR_RESPONSES,
)
async def reject_access_request(
    request_id: int,
    body: Optional[DecisionBody] = Body(default=None),
    person_id: int = Depends(get_person_id),
    service: AccessRequestService = Depends(get_access_request_service),
):
    """Reject a pending request. No ledger interaction."""
    note = body.decision_note if body else None
    decided = await service.decide(request_id, person_id, approve=False, decision_note=note)
    return AccessRequestDetailResponse(
        Message="Access request rejected",
        AccessRequest=AccessRequestResponse.from_model(decided),
    )


@ROUTER_ACCESS_REQUESTS.get(
    "/{request_id}/documents/{person_document_id}/view",
    response_class=FileResponse,
    summary="View an approved document",
    responses={200: {"description": "Document file (inline)"}, **_ERROR_RESPONSES},
)
async def view_approved_document(
    request_id: int,
    person_document_id: int,
    entity_id: int = Depends(get_entity_id),
    service: AccessRequestService = Depends(get_access_request_service),
):
    """Stream the latest file of an approved document after a fresh Fabric check."""
    handle = await service.load_approved_resource(entity_id, request_id, person_document_id)
    logger.debug("Streaming approved document", request_id=request_id, file_name=handle.file_name)
    return FileResponse(
        path=handle.path,
        media_type=handle.media_type,
        filename=handle.file_name,
        content_disposition_type="inline",
    )


@ROUTER_ACCESS_REQUESTS.get(
    "/{request_id}/documents/{person_document_id}/trace",
    response_model=DocumentTraceResponse,
    summary="Get the Fabric reference of an approved document",
    responses=_ERROR_RESPONSES,
)
async def trace_approved_document(
    request_id: int,
    person_document_id: int,
    entity_id: int = Depends(get_entity_id),
    service: AccessRequestService = Depends(get_access_request_service),
):
    """Return the on-chain record that backs an approved document."""
    trace = await service.load_approved_trace(entity_id, request_id, person_document_id)
    return DocumentTraceResponse.from_trace(trace, "Document trace retrieved")
