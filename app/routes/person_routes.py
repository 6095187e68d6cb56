from typing import Literal, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_actor
from app.models.actor import Actor
from app.services.graph_service import GraphService
from app.services.linking_service import LinkingService
from app.services.person_service import PersonService, to_person_response
from app.schemas.person_schemas import PartialPersonData, PersonCreate, PersonResponse
from app.schemas.relationship_schemas import RelationshipView

router = APIRouter()


@router.post("", response_model=PersonResponse, status_code=status.HTTP_201_CREATED)
async def create_person(
    data: PersonCreate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """
    Create a person through direct case entry.

    - At least one of first_name / last_name is required
    - Workers create in their own agency; administrators pass tenant_id
    """
    service = PersonService(db)
    person = service.create_person(data, actor)
    return to_person_response(person)


@router.get("/{person_id}", response_model=PersonResponse)
async def get_person(
    person_id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """Get a person's profile"""
    service = PersonService(db)
    return to_person_response(service.get_person(person_id, actor))


@router.post("/{person_id}/retire", response_model=PersonResponse)
async def retire_person(
    person_id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """
    Retire (tombstone) a person.

    The record and its relationships are kept; it no longer renders a name
    or profile link in relationship views and can no longer be linked.
    """
    service = PersonService(db)
    return to_person_response(service.retire_person(person_id, actor))


@router.get("/{person_id}/relationships", response_model=list[RelationshipView])
async def list_relationships(
    person_id: int,
    sort: Optional[Literal["counterpart_name"]] = Query(None),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """
    Resolve the relationships of a keystone person.

    Returns only the edges the actor may see; each entry is oriented so
    that the counterpart is the other person. Entries are in load order
    unless sort=counterpart_name is given (unnamed counterparts last).

    - 404 if the person does not exist
    - 403 if the actor may not see the person
    """
    service = GraphService(db)
    return service.resolve_relationships(actor, person_id, sort=sort)


@router.post(
    "/{person_id}/links",
    response_model=RelationshipView,
    status_code=status.HTTP_201_CREATED,
)
async def link_person(
    person_id: int,
    data: PartialPersonData,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """
    Link a person from the search feature to the given case person.

    - Linking the same person again returns the existing relationship
    - 400 with the missing fields if neither first_name nor last_name is given
    """
    service = LinkingService(db)
    return service.link_person(actor, data, person_id)
