"""
Person Document Models

Database models for documents held by a person and their stored file versions.
"""

from typing import List
from typing import Optional

from pydantic import BaseModel

from ccd_api.workflow.enums import FileStoredAs
from ccd_api.workflow.enums import PersonDocumentStatus
from ccd_api.workflow.enums import ReviewStatus


class FileRecord(BaseModel):
    """Stored file version of a person document."""

    id: int
    person_document_id: int
    original_name: Optional[str] = None
    mime_type: Optional[str] = None
    byte_size: Optional[int] = None
    sha256_hex: Optional[str] = None
    stored_as: FileStoredAs = FileStoredAs.PATH
    storage_path: Optional[str] = None
    version: Optional[int] = None

    class Config:
        from_attributes = True


class PersonDocument(BaseModel):
    """Document held by a person, with its catalog title and file versions."""

    id: int
    person_id: int
    document_definition_id: Optional[int] = None
    title: Optional[str] = None  # catalog title (documents.title)
    review_status: ReviewStatus = ReviewStatus.PENDING
    status: Optional[PersonDocumentStatus] = None
    files: List[FileRecord] = []

    def latest_file(self) -> Optional[FileRecord]:
        """
        Return the file with the highest version.

        A missing version counts as 0. Files are ordered by id, so on ties the
        first one wins.

        Returns:
            Latest FileRecord, or None if the document has no files
        """
        latest = None
        for file in self.files:
            if latest is None or (file.version or 0) > (latest.version or 0):
                latest = file
        return latest

    class Config:
        from_attributes = True
