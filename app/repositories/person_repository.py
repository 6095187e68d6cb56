"""Repository for Person model operations."""

from sqlalchemy.orm import Session
from app.models.person import Person


class PersonRepository:
    """Repository for Person data access"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, person_id: int) -> Person | None:
        """Get person by ID (retired persons included)"""
        return self.db.query(Person).filter(Person.id == person_id).first()

    def get_tenant_id(self, person_id: int) -> int | None:
        """
        Load only the owning tenant of a person.

        Used by the policy engine's tenant check so that no person columns
        beyond tenant_id are read before the actor is cleared.

        Returns:
            Tenant ID or None if the person does not exist
        """
        return self.db.query(Person.tenant_id).filter(Person.id == person_id).scalar()

    def find_by_external_id(
        self, tenant_id: int, external_source: str, external_id: str
    ) -> Person | None:
        """Find a person previously ingested from the same search-provider record"""
        return (
            self.db.query(Person)
            .filter(
                Person.tenant_id == tenant_id,
                Person.external_source == external_source,
                Person.external_id == external_id,
            )
            .first()
        )

    def create(self, person: Person) -> Person:
        """Create new person"""
        self.db.add(person)
        self.db.commit()
        self.db.refresh(person)
        return person

    def create_no_commit(self, person: Person) -> Person:
        """Create person without committing (for atomic ops)"""
        self.db.add(person)
        self.db.flush()
        return person

    def update(self, person: Person) -> Person:
        """Update existing person"""
        self.db.commit()
        self.db.refresh(person)
        return person
