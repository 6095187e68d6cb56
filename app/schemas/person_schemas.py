from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional

from app.models.person import PersonSource


class PersonCreate(BaseModel):
    """Direct case entry of a person"""

    first_name: Optional[str] = Field(None, max_length=100)
    middle_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    is_deceased: bool = False
    assigned_worker_id: Optional[str] = Field(None, max_length=255)
    tenant_id: Optional[int] = Field(
        None, gt=0, description="Owning agency; only used by administrators"
    )


class PartialPersonData(BaseModel):
    """
    Person data as returned by the external person-search feature.

    Every field may be missing. Shape is checked here; record invariants
    (a first or last name) are checked by the linking service after
    authorization. Unknown provider fields are ignored.
    """

    model_config = {"extra": "ignore"}

    person_id: Optional[int] = Field(None, gt=0, description="Existing person to link instead of creating one")
    external_source: Optional[str] = Field(None, max_length=100)
    external_id: Optional[str] = Field(None, max_length=255)
    first_name: Optional[str] = Field(None, max_length=100)
    middle_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    is_deceased: Optional[bool] = None
    relationship_type: Optional[str] = Field(None, max_length=100)


class PersonResponse(BaseModel):
    """Person profile with derived display fields"""

    id: int
    tenant_id: int
    first_name: Optional[str]
    middle_name: Optional[str]
    last_name: Optional[str]
    display_name: str
    profile_link: str
    is_deceased: bool
    is_retired: bool
    assigned_worker_id: Optional[str]
    source: PersonSource
    created_at: datetime
    updated_at: datetime
