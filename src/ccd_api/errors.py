"""Error handling for the FastAPI application and access request workflow exceptions."""

import pydantic
from fastapi import Request
from fastapi import status
from fastapi.responses import JSONResponse
from loguru import logger

from ccd_api.monitoring.logger import log_response_info
from ccd_api.workflow.exceptions import ExpiredError
from ccd_api.workflow.exceptions import ExternalToolError
from ccd_api.workflow.exceptions import InvalidStateError
from ccd_api.workflow.exceptions import LedgerUnavailableError
from ccd_api.workflow.exceptions import NotFoundError
from ccd_api.workflow.exceptions import OutOfScopeError
from ccd_api.workflow.exceptions import UnauthorizedError
from ccd_api.workflow.exceptions import UnmatchedDocumentError
from ccd_api.workflow.exceptions import ValidationError

# Explicit exports
__all__ = [
    "WORKFLOW_ERROR_STATUS",
    "handle_broad_exceptions",
    "handle_external_tool_errors",
    "handle_pydantic_validation_errors",
    "handle_workflow_errors",
    "status_code_for",
]

# Workflow exception -> HTTP status (most specific class wins)
WORKFLOW_ERROR_STATUS = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    UnauthorizedError: status.HTTP_403_FORBIDDEN,
    OutOfScopeError: status.HTTP_403_FORBIDDEN,
    InvalidStateError: status.HTTP_409_CONFLICT,
    UnmatchedDocumentError: status.HTTP_409_CONFLICT,
    ExpiredError: status.HTTP_410_GONE,
    LedgerUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
    ValidationError: 422,
}


def status_code_for(exc: ValidationError) -> int:
    """Return the HTTP status of a workflow exception by walking its class hierarchy."""
    for cls in type(exc).__mro__:
        if cls in WORKFLOW_ERROR_STATUS:
            return WORKFLOW_ERROR_STATUS[cls]
    return 422


# fastapi docs on middlewares: https://fastapi.tiangolo.com/tutorial/middleware/
async def handle_broad_exceptions(request: Request, call_next):
    """Handle any exception that goes unhandled by a more specific exception handler."""
    try:
        return await call_next(request)
    except Exception as err:  # pylint: disable=broad-except
        error_response = {"detail": "Internal server error", "error_type": type(err).__name__}

        # Get request body from request state (set by RequestContextMiddleware)
        request_body = getattr(request.state, "request_body", None)

        logger.error(
            f"Unhandled exception: {type(err).__name__}: {str(err)}",
            http_status=500,
            http_method=request.method,
            url_path=str(request.url.path),
            error_type=type(err).__name__,
            error_message=str(err),
            request_body=request_body,
            response_body=error_response,
            exc_info=True,
        )

        response = JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_response,
        )
        log_response_info(response)
        return response


# fastapi docs on error handlers: https://fastapi.tiangolo.com/tutorial/handling-errors/
async def handle_pydantic_validation_errors(request: Request, exc: pydantic.ValidationError) -> JSONResponse:
    """Handle Pydantic validation errors."""
    errors = exc.errors(include_url=False)
    error_response = {
        "detail": [
            {
                "msg": error["msg"],
                "loc": [str(part) for part in error.get("loc", ())],
            }
            for error in errors
        ]
    }

    request_body = getattr(request.state, "request_body", None)

    logger.warning(
        f"Validation error: {len(errors)} validation errors",
        http_status=422,
        http_method=request.method,
        url_path=str(request.url.path),
        error_type="ValidationError",
        validation_errors=error_response["detail"],
        request_body=request_body,
    )

    response = JSONResponse(status_code=422, content=error_response)
    log_response_info(response)
    return response


async def handle_workflow_errors(request: Request, exc: ValidationError) -> JSONResponse:
    """
    Convert access request workflow exceptions to HTTP responses.

    Maps workflow exceptions to HTTP status codes:
    - NotFoundError -> 404 Not Found
    - UnauthorizedError, OutOfScopeError -> 403 Forbidden
    - InvalidStateError, UnmatchedDocumentError -> 409 Conflict
    - ExpiredError -> 410 Gone
    - LedgerUnavailableError -> 503 Service Unavailable
    - Other ValidationError -> 422 Unprocessable Content

    Parameters
    ----------
    request : Request
        FastAPI request object
    exc : ValidationError
        Workflow exception

    Returns
    -------
    JSONResponse
        HTTP response with the caller-facing message
    """
    http_status = status_code_for(exc)
    error_type = type(exc).__name__
    error_response = {"detail": exc.message, "error_type": error_type}

    request_body = getattr(request.state, "request_body", None)

    log = logger.error if http_status >= 500 else logger.warning
    log(
        f"Workflow error: {error_type}: {exc.message}",
        http_status=http_status,
        http_method=request.method,
        url_path=str(request.url.path),
        error_type=error_type,
        error_code=exc.code,
        request_body=request_body,
        response_body=error_response,
    )

    response = JSONResponse(status_code=http_status, content=error_response)
    log_response_info(response)
    return response


async def handle_external_tool_errors(request: Request, exc: ExternalToolError) -> JSONResponse:
    """
    Handle ledger tool failures raised directly from administrative routes.

    Returns
    -------
    JSONResponse
        502 Bad Gateway (upstream tool error)
    """
    error_type = type(exc).__name__
    error_response = {"detail": exc.message, "error_type": error_type}

    logger.error(
        f"External tool error: {exc.message}",
        http_status=502,
        http_method=request.method,
        url_path=str(request.url.path),
        error_type=error_type,
        exit_code=exc.exit_code,
        stderr=exc.stderr,
        response_body=error_response,
    )

    response = JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content=error_response)
    log_response_info(response)
    return response
