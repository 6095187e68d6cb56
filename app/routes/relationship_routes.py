from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_actor
from app.models.actor import Actor
from app.services.linking_service import LinkingService
from app.services.relationship_service import RelationshipService
from app.schemas.relationship_schemas import (
    RelationshipCreate,
    RelationshipUpdate,
    RelationshipResponse,
    RelationshipView,
)

router = APIRouter()


@router.post("", response_model=RelationshipView, status_code=status.HTTP_201_CREATED)
async def create_relationship(
    data: RelationshipCreate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """
    Relate two existing persons.

    Returns the view oriented from person_id. If the pair is already
    related in the case subject's agency, the existing edge is returned.
    """
    service = LinkingService(db)
    return service.link_existing_persons(actor, data)


@router.patch("/{relationship_id}", response_model=RelationshipResponse)
async def update_relationship(
    relationship_id: int,
    data: RelationshipUpdate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """Update relationship type, visibility or contact-log links"""
    service = RelationshipService(db)
    return service.update_relationship(relationship_id, data, actor)
