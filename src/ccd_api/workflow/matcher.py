"""
Document to Ledger Matcher

Decides which on-chain record corresponds to a local person document. The
stored file path is the primary key of the match; the catalog title is used
only when no candidate matches by path.
"""

from typing import Iterable
from typing import Optional

from ccd_api.workflow.models.document import FileRecord
from ccd_api.workflow.models.document import PersonDocument
from ccd_api.workflow.models.ledger import LedgerDocumentView


def normalize_path(path: Optional[str]) -> str:
    """Use forward slashes and strip surrounding whitespace."""
    if path is None:
        return ""
    return path.replace("\\", "/").strip()


def matches_file_path(ledger_path: Optional[str], local_path: Optional[str]) -> bool:
    """
    True if the ledger path refers to the local file.

    The ledger may store an absolute path while the database stores a relative
    one, so a suffix match is accepted. Blank paths never match.
    """
    ledger = normalize_path(ledger_path)
    local = normalize_path(local_path)
    if not ledger or not local:
        return False
    return ledger == local or ledger.endswith("/" + local) or ledger.endswith(local)


def matches_title(ledger_title: Optional[str], local_title: Optional[str]) -> bool:
    """Case-insensitive comparison of trimmed titles. Blank titles never match."""
    ledger = (ledger_title or "").strip()
    local = (local_title or "").strip()
    if not ledger or not local:
        return False
    return ledger.casefold() == local.casefold()


def find_matching_ledger_document(
    ledger_docs: Iterable[Optional[LedgerDocumentView]],
    local_doc: PersonDocument,
    local_file: Optional[FileRecord],
) -> Optional[LedgerDocumentView]:
    """
    Find the ledger record of a local document.

    Args:
        ledger_docs: Candidates in tool order (None entries are skipped)
        local_doc: Person document with its catalog title
        local_file: Latest stored file of the document, if any

    Returns:
        First candidate matching by path; if none does, first matching by title; else None
    """
    candidates = [doc for doc in ledger_docs if doc is not None]
    local_path = local_file.storage_path if local_file is not None else None

    for doc in candidates:
        if matches_file_path(doc.file_path, local_path):
            return doc

    for doc in candidates:
        if matches_title(doc.title, local_doc.title):
            return doc

    return None
