import logging
from typing import Callable, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.core.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from app.core.identifiers import same_id
from app.core.policy import Action, DenyReason, PolicyEngine
from app.database import store_errors
from app.models.actor import Actor
from app.models.person import Person, PersonSource
from app.models.relationship import Relationship
from app.repositories.person_repository import PersonRepository
from app.repositories.relationship_repository import RelationshipRepository
from app.schemas.person_schemas import PartialPersonData
from app.schemas.relationship_schemas import RelationshipCreate, RelationshipView
from app.services.person_service import (
    clean_name,
    load_authorized_person,
    require_renderable_name,
)
from app.services.projection import project

logger = logging.getLogger(__name__)


def _refuse_retired(person: Person) -> None:
    # Linking to a retired record is refused for every role until product
    # decides otherwise.
    if person.is_retired:
        raise ForbiddenException(
            f"Person {person.id} is retired and cannot be linked",
            reason=DenyReason.RETIRED_RECORD.value,
        )


def _refuse_match(person: Person, counterpart_pk: int, data: PartialPersonData) -> None:
    """
    Reject an existing person that cannot be the linked side of the edge.

    The match may be the counterpart itself (same search-provider identity)
    or a retired record; both are refused before anything is written.
    """
    if same_id(person.id, counterpart_pk):
        field = "person_id" if data.person_id is not None else "external_id"
        raise ValidationException("A person cannot be linked to itself", fields=[field])
    _refuse_retired(person)


class LinkingService:
    """
    Creates persons and relationships from search results or case entry.

    All writes for one link (the person and the edge) commit together.
    Edges are found or created on the unordered person pair, so repeated
    or concurrent links of the same pair converge on a single edge.
    """

    def __init__(self, db: Session, policy: Optional[PolicyEngine] = None):
        self.db = db
        self.policy = policy or PolicyEngine()
        self.person_repo = PersonRepository(db)
        self.relationship_repo = RelationshipRepository(db)

    def link_person(
        self, actor: Actor, data: PartialPersonData, counterpart_id: int
    ) -> RelationshipView:
        """
        Link a person found by the external search feature to a case person.

        The counterpart is the agency's case subject; the linked person is
        created in (or matched within) the counterpart's tenant.

        Args:
            actor: Requesting actor
            data: Possibly incomplete person data from the search provider
            counterpart_id: Existing person the new person is related to

        Returns:
            View of the edge, oriented with the counterpart as keystone

        Raises:
            NotFoundException: If counterpart_id (or data.person_id) does not exist
            ForbiddenException: If the actor may not link, or a person is retired
            ValidationException: If the payload has neither first nor last name,
                or resolves to the counterpart itself
            ConflictException: If a pair race could not be settled
            InfrastructureException: If the store is unavailable
        """
        with store_errors(self.db):
            counterpart = load_authorized_person(
                self.policy, self.person_repo, actor, counterpart_id, Action.CREATE_RELATIONSHIP
            )

            # Nothing is written unless the payload is renderable
            require_renderable_name(data.first_name, data.last_name)
            _refuse_retired(counterpart)

            tenant_id = counterpart.tenant_id
            counterpart_pk = counterpart.id

            if data.person_id is not None:
                if same_id(data.person_id, counterpart_id):
                    raise ValidationException(
                        "A person cannot be linked to itself", fields=["person_id"]
                    )
                existing = load_authorized_person(
                    self.policy, self.person_repo, actor, data.person_id, Action.VIEW_PERSON
                )
            else:
                existing = self._find_existing(data, tenant_id)
            if existing is not None:
                _refuse_match(existing, counterpart_pk, data)

            def write() -> tuple[Person, Relationship]:
                person = self._upsert_person(data, tenant_id, counterpart_pk)
                edge = self._find_or_create_edge(
                    tenant_id, counterpart_pk, person.id, data.relationship_type
                )
                return person, edge

            person, edge = self._commit_with_retry(write)

            # Reload so the view reflects what was committed
            self.db.refresh(person)
            edge = self.relationship_repo.get_by_id_with_endpoints(edge.id)

        return project(edge, counterpart_pk)

    def link_existing_persons(self, actor: Actor, data: RelationshipCreate) -> RelationshipView:
        """
        Directly relate two existing persons.

        The edge belongs to the case subject's tenant (data.person_id). The
        related person may belong to another agency; only its existence and
        tombstone state are checked.
        """
        if same_id(data.person_id, data.related_person_id):
            raise ValidationException(
                "A person cannot be linked to itself", fields=["related_person_id"]
            )

        with store_errors(self.db):
            subject = load_authorized_person(
                self.policy, self.person_repo, actor, data.person_id, Action.CREATE_RELATIONSHIP
            )
            related = self.person_repo.get_by_id(data.related_person_id)
            if related is None:
                raise NotFoundException(f"Person {data.related_person_id} not found")
            _refuse_retired(subject)
            _refuse_retired(related)

            tenant_id = subject.tenant_id
            subject_pk = subject.id
            related_pk = related.id

            def write() -> tuple[None, Relationship]:
                edge = self._find_or_create_edge(
                    tenant_id, subject_pk, related_pk, data.relationship_type
                )
                if data.is_restricted and not edge.is_restricted:
                    edge.is_restricted = True
                return None, edge

            _, edge = self._commit_with_retry(write)
            edge = self.relationship_repo.get_by_id_with_endpoints(edge.id)

        return project(edge, subject_pk)

    def _find_existing(self, data: PartialPersonData, tenant_id: int) -> Optional[Person]:
        """Person a link payload refers to, by person_id or by search-provider identity"""
        if data.person_id is not None:
            return self.person_repo.get_by_id(data.person_id)
        if data.external_source and data.external_id:
            return self.person_repo.find_by_external_id(
                tenant_id, data.external_source, data.external_id
            )
        return None

    def _upsert_person(self, data: PartialPersonData, tenant_id: int, counterpart_pk: int) -> Person:
        """Resolve the person for a link, updating provided fields on a match"""
        person = self._find_existing(data, tenant_id)

        if person is None:
            person = Person(
                tenant_id=tenant_id,
                first_name=clean_name(data.first_name),
                middle_name=clean_name(data.middle_name),
                last_name=clean_name(data.last_name),
                is_deceased=bool(data.is_deceased),
                source=PersonSource.PERSON_SEARCH,
                external_source=data.external_source,
                external_id=data.external_id,
            )
            return self.person_repo.create_no_commit(person)

        # Re-checked on every attempt
        _refuse_match(person, counterpart_pk, data)

        # Only overwrite what the payload actually carries
        for field in ("first_name", "middle_name", "last_name"):
            value = clean_name(getattr(data, field))
            if value is not None:
                setattr(person, field, value)
        if data.is_deceased is not None:
            person.is_deceased = data.is_deceased
        self.db.flush()
        return person

    def _find_or_create_edge(
        self,
        tenant_id: int,
        subject_id: int,
        related_id: int,
        relationship_type: Optional[str],
    ) -> Relationship:
        edge = self.relationship_repo.find_by_pair(tenant_id, subject_id, related_id)
        if edge is not None:
            if relationship_type and not edge.relationship_type:
                edge.relationship_type = relationship_type
            logger.info("relationship_link_existing", extra={"relationship_id": edge.id})
            return edge

        edge = Relationship(
            tenant_id=tenant_id,
            source_person_id=subject_id,
            destination_person_id=related_id,
            relationship_type=relationship_type,
            contact_log_ids=[],
        )
        edge = self.relationship_repo.create_no_commit(edge)
        logger.info(
            "relationship_linked",
            extra={"relationship_id": edge.id, "tenant_id": tenant_id},
        )
        return edge

    def _commit_with_retry(self, write: Callable[[], tuple]) -> tuple:
        """
        Run a person/edge write in one transaction.

        A uniqueness violation means a concurrent request created the same
        person or pair first; the transaction is rolled back and the write
        is repeated, which then finds the winner's rows.
        """
        attempts = max(1, settings.LINK_MAX_ATTEMPTS)
        for attempt in range(1, attempts + 1):
            try:
                result = write()
                self.db.commit()
                return result
            except IntegrityError:
                self.db.rollback()
                logger.info("relationship_link_conflict_retry", extra={"attempt": attempt})

        raise ConflictException("Relationship could not be linked, concurrent update in progress")
