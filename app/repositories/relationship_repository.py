from typing import Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from app.core.identifiers import pair_key
from app.models.relationship import Relationship


class RelationshipRepository:
    """Repository for Relationship data access"""

    def __init__(self, db: Session):
        self.db = db

    def _with_endpoints(self):
        return self.db.query(Relationship).options(
            joinedload(Relationship.source_person),
            joinedload(Relationship.destination_person),
        )

    def get_by_id(self, relationship_id: int) -> Optional[Relationship]:
        """Get relationship by ID"""
        return self.db.query(Relationship).filter(Relationship.id == relationship_id).first()

    def get_by_id_with_endpoints(self, relationship_id: int) -> Optional[Relationship]:
        """Get relationship by ID with both endpoint persons loaded in the same query"""
        return self._with_endpoints().filter(Relationship.id == relationship_id).first()

    def get_tenant_id(self, relationship_id: int) -> Optional[int]:
        """Load only the owning tenant of a relationship"""
        return (
            self.db.query(Relationship.tenant_id)
            .filter(Relationship.id == relationship_id)
            .scalar()
        )

    def get_for_person(self, person_id: int) -> list[Relationship]:
        """
        Get every relationship touching a person, in either direction.

        Both endpoint persons are eager-joined so that orienting and
        projecting the edges issues no further queries. Ordered by id,
        which is the store's natural load order.
        """
        return (
            self._with_endpoints()
            .filter(
                or_(
                    Relationship.source_person_id == person_id,
                    Relationship.destination_person_id == person_id,
                )
            )
            .order_by(Relationship.id)
            .all()
        )

    def find_by_pair(
        self, tenant_id: int, person_a_id: int, person_b_id: int
    ) -> Optional[Relationship]:
        """Find the edge for an unordered person pair within a tenant"""
        low, high = pair_key(person_a_id, person_b_id)
        return (
            self.db.query(Relationship)
            .filter(
                Relationship.tenant_id == tenant_id,
                Relationship.pair_low_id == low,
                Relationship.pair_high_id == high,
            )
            .first()
        )

    def create_no_commit(self, relationship: Relationship) -> Relationship:
        """
        Create relationship without committing (for atomic ops).

        Raises:
            IntegrityError: If an edge for the same pair already exists in the tenant
        """
        low, high = pair_key(relationship.source_person_id, relationship.destination_person_id)
        relationship.pair_low_id = low
        relationship.pair_high_id = high
        self.db.add(relationship)
        self.db.flush()
        return relationship

    def update(self, relationship: Relationship) -> Relationship:
        """Update a relationship"""
        self.db.commit()
        self.db.refresh(relationship)
        return relationship
