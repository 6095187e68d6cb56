import logging
from typing import Optional
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundException, ForbiddenException
from app.core.policy import Action, Decision, PolicyEngine, PolicyTarget
from app.database import store_errors
from app.models.actor import Actor
from app.repositories.person_repository import PersonRepository
from app.repositories.relationship_repository import RelationshipRepository
from app.schemas.relationship_schemas import RelationshipView
from app.services.projection import orient, project_oriented, sort_views

logger = logging.getLogger(__name__)


def raise_for_decision(decision: Decision, message: str) -> None:
    """Turn a policy denial into ForbiddenException (never NotFound)"""
    if not decision.allowed:
        reason = decision.reason.value if decision.reason else None
        raise ForbiddenException(message, reason=reason)


class GraphService:
    """Resolves the relationships touching one keystone person"""

    def __init__(self, db: Session, policy: Optional[PolicyEngine] = None):
        self.db = db
        self.policy = policy or PolicyEngine()
        self.person_repo = PersonRepository(db)
        self.relationship_repo = RelationshipRepository(db)

    def resolve_relationships(
        self, actor: Actor, keystone_person_id: int, sort: Optional[str] = None
    ) -> list[RelationshipView]:
        """
        Resolve the edges of a keystone person into display-safe views.

        Args:
            actor: Requesting actor
            keystone_person_id: Person whose relationships are requested
            sort: None for load order, or "counterpart_name"

        Returns:
            Views for the edges the actor may see (possibly empty)

        Raises:
            NotFoundException: If the keystone person does not exist
            ForbiddenException: If the actor may not see the keystone person
            InfrastructureException: If the store is unavailable
        """
        with store_errors(self.db):
            keystone_tenant_id = self.person_repo.get_tenant_id(keystone_person_id)
            if keystone_tenant_id is None:
                raise NotFoundException(f"Person {keystone_person_id} not found")

            keystone_target = PolicyTarget.loaded(None, keystone_tenant_id)
            raise_for_decision(
                self.policy.authorize(actor, keystone_target, Action.VIEW_RELATIONSHIPS),
                f"Not allowed to view relationships of person {keystone_person_id}",
            )

            edges = self.relationship_repo.get_for_person(keystone_person_id)

        views = []
        for edge in edges:
            oriented = orient(edge, keystone_person_id)
            decision = self.policy.authorize(
                actor, PolicyTarget.loaded(edge, keystone_tenant_id), Action.VIEW_RELATIONSHIP
            )
            if not decision.allowed:
                logger.debug(
                    "relationship_edge_filtered",
                    extra={"relationship_id": edge.id, "reason": decision.reason.value},
                )
                continue
            views.append(project_oriented(oriented))

        logger.debug(
            "relationships_resolved",
            extra={
                "keystone_id": keystone_person_id,
                "loaded": len(edges),
                "visible": len(views),
            },
        )
        return sort_views(views, sort)
