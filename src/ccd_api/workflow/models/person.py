"""
Person and Issuing Entity Models

Database models for document owners and requesting organizations.
"""

from typing import Optional

from pydantic import BaseModel

from ccd_api.workflow.enums import IdType


class Person(BaseModel):
    """Document owner (citizen) database model."""

    id: int
    id_type: IdType
    id_number: str
    first_name: str
    last_name: str
    email: Optional[str] = None

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    class Config:
        from_attributes = True


class IssuingEntity(BaseModel):
    """Requesting organization database model."""

    id: int
    name: str
    status: Optional[str] = None  # PENDIENTE, APROBADA, ...

    class Config:
        from_attributes = True
