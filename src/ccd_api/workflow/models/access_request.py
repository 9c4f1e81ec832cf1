"""
Access Request Model

Database models for organization requests to view a person's documents.
"""

from datetime import datetime
from typing import List
from typing import Optional

from pydantic import BaseModel

from ccd_api.workflow.enums import AccessRequestStatus


class AccessRequestItem(BaseModel):
    """One requested document of an access request."""

    id: Optional[int] = None  # assigned on insert
    access_request_id: Optional[int] = None
    person_document_id: int
    document_title: Optional[str] = None

    class Config:
        from_attributes = True


class AccessRequest(BaseModel):
    """Access request database model."""

    id: Optional[int] = None  # assigned on insert
    entity_id: int
    person_id: int
    purpose: str
    status: AccessRequestStatus = AccessRequestStatus.PENDIENTE
    requested_at: datetime
    decided_at: Optional[datetime] = None
    expires_at: datetime
    decision_note: Optional[str] = None
    items: List[AccessRequestItem] = []

    # Display joins (read only)
    entity_name: Optional[str] = None
    person_display_name: Optional[str] = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at < now

    def includes_document(self, person_document_id: int) -> bool:
        return any(item.person_document_id == person_document_id for item in self.items)

    class Config:
        from_attributes = True
