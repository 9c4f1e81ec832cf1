"""
Workflow Exceptions

Caller-facing failures of the access request workflow. Every rule violation is
a ``ValidationError`` subclass so the HTTP layer can map it to a status code
without inspecting messages.
"""

from typing import Optional


class ValidationError(Exception):
    """Base class for caller-facing workflow failures."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ValidationError):
    """Referenced request, person, entity or document does not exist."""

    code = "NOT_FOUND"


class UnauthorizedError(ValidationError):
    """Caller is not the owner (or requester) of the access request."""

    code = "UNAUTHORIZED"


class InvalidStateError(ValidationError):
    """Access request is not in the state the operation requires."""

    code = "INVALID_STATE"


class ExpiredError(ValidationError):
    """Access request is past its expiry."""

    code = "EXPIRED"


class OutOfScopeError(ValidationError):
    """Document is not part of the access request."""

    code = "OUT_OF_SCOPE"


class LedgerUnavailableError(ValidationError):
    """Ledger sync or query failed. The caller may retry later."""

    code = "LEDGER_UNAVAILABLE"


class UnmatchedDocumentError(ValidationError):
    """Document has no matching record on the ledger."""

    code = "UNMATCHED_DOCUMENT"


class ExternalToolError(Exception):
    """
    External ledger tool failed.

    Parameters
    ----------
    message : str
        Human readable failure summary
    exit_code : int, optional
        Process exit code, when the tool ran
    stderr : str, optional
        Captured standard error of the tool
    """

    def __init__(self, message: str, exit_code: Optional[int] = None, stderr: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code
        self.stderr = stderr


class IntegrityError(Exception):
    """Stored data violates a workflow invariant."""
