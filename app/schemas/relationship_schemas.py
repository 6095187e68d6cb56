from datetime import datetime
from pydantic import BaseModel, Field, field_validator
from typing import Optional


class RelationshipView(BaseModel):
    """
    Caller-facing projection of one edge, oriented to the keystone person.

    Every field is always present; missing person data shows up as "" or
    False, never as null.
    """

    relationship_id: str
    counterpart_id: str
    display_name: str
    profile_link: str
    is_deceased: bool
    keystone_display_name: str
    relationship_type: str


class RelationshipCreate(BaseModel):
    """Direct case entry of an edge between two existing persons"""

    person_id: int = Field(..., gt=0, description="Case subject owned by the actor's agency")
    related_person_id: int = Field(..., gt=0)
    relationship_type: Optional[str] = Field(None, max_length=100)
    is_restricted: bool = False


class RelationshipUpdate(BaseModel):
    """Metadata updates; omitted fields are left unchanged"""

    relationship_type: Optional[str] = Field(None, min_length=1, max_length=100)
    is_restricted: Optional[bool] = None
    contact_log_ids: Optional[list[str]] = None


class RelationshipResponse(BaseModel):
    """Stored relationship record"""

    model_config = {"from_attributes": True}

    id: int
    tenant_id: int
    source_person_id: int
    destination_person_id: int
    relationship_type: Optional[str]
    is_restricted: bool
    contact_log_ids: list[str]
    created_at: datetime
    updated_at: datetime

    @field_validator("contact_log_ids", mode="before")
    @classmethod
    def default_contact_logs(cls, value):
        return value or []
