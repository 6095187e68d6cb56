import logging
from typing import Optional
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundException
from app.core.policy import Action, PolicyEngine, PolicyTarget
from app.database import store_errors
from app.models.actor import Actor
from app.models.relationship import Relationship
from app.repositories.relationship_repository import RelationshipRepository
from app.schemas.relationship_schemas import RelationshipUpdate
from app.services.graph_service import raise_for_decision

logger = logging.getLogger(__name__)


class RelationshipService:
    """Service layer for relationship metadata"""

    def __init__(self, db: Session, policy: Optional[PolicyEngine] = None):
        self.db = db
        self.policy = policy or PolicyEngine()
        self.repo = RelationshipRepository(db)

    def update_relationship(
        self, relationship_id: int, data: RelationshipUpdate, actor: Actor
    ) -> Relationship:
        """
        Update relationship type, visibility flag or contact-log links.

        Endpoints are never changed; an edge keeps pointing at the same two
        persons for its whole life.

        Raises:
            NotFoundException: If the relationship does not exist
            ForbiddenException: If the actor may not update it
        """
        with store_errors(self.db):
            tenant_id = self.repo.get_tenant_id(relationship_id)
            if tenant_id is None:
                raise NotFoundException(f"Relationship {relationship_id} not found")

            target = PolicyTarget(
                lambda: tenant_id, lambda: self.repo.get_by_id_with_endpoints(relationship_id)
            )
            raise_for_decision(
                self.policy.authorize(actor, target, Action.UPDATE_RELATIONSHIP),
                f"Not allowed to update relationship {relationship_id}",
            )
            relationship = target.resource
            if relationship is None:
                raise NotFoundException(f"Relationship {relationship_id} not found")

            if data.relationship_type is not None:
                relationship.relationship_type = data.relationship_type
            if data.is_restricted is not None:
                relationship.is_restricted = data.is_restricted
            if data.contact_log_ids is not None:
                # Keep first-seen order, drop duplicates
                relationship.contact_log_ids = list(dict.fromkeys(data.contact_log_ids))

            relationship = self.repo.update(relationship)

        logger.info("relationship_updated", extra={"relationship_id": relationship_id})
        return relationship
