import logging
from typing import Optional
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundException, ValidationException
from app.core.policy import Action, PolicyEngine, PolicyTarget
from app.database import store_errors
from app.models.actor import Actor
from app.models.base import utcnow
from app.models.person import Person, PersonSource
from app.repositories.person_repository import PersonRepository
from app.repositories.tenant_repository import TenantRepository
from app.schemas.person_schemas import PersonCreate, PersonResponse
from app.services.graph_service import raise_for_decision
from app.services.projection import display_name, profile_link

logger = logging.getLogger(__name__)


def clean_name(value: Optional[str]) -> Optional[str]:
    """Strip whitespace; blank names become None"""
    if value is None:
        return None
    value = value.strip()
    return value or None


def require_renderable_name(first_name: Optional[str], last_name: Optional[str]) -> None:
    """
    Enforce that a person carries a first or last name.

    Raises:
        ValidationException: Naming both fields when neither is present
    """
    if clean_name(first_name) is None and clean_name(last_name) is None:
        raise ValidationException(
            "Person requires a first name or a last name",
            fields=["first_name", "last_name"],
        )


def load_authorized_person(
    policy: PolicyEngine,
    person_repo: PersonRepository,
    actor: Actor,
    person_id: int,
    action: Action,
) -> Person:
    """
    Load a person the actor is allowed to act on.

    Only the tenant scalar is read before the policy engine has cleared the
    actor; the full record is read afterwards (once).

    Raises:
        NotFoundException: If the person does not exist
        ForbiddenException: If the policy engine denies the action
    """
    tenant_id = person_repo.get_tenant_id(person_id)
    if tenant_id is None:
        raise NotFoundException(f"Person {person_id} not found")

    target = PolicyTarget(lambda: tenant_id, lambda: person_repo.get_by_id(person_id))
    raise_for_decision(
        policy.authorize(actor, target, action),
        f"Not allowed to {action.value.replace('_', ' ')} {person_id}",
    )
    person = target.resource
    if person is None:
        raise NotFoundException(f"Person {person_id} not found")
    return person


def to_person_response(person: Person) -> PersonResponse:
    return PersonResponse(
        id=person.id,
        tenant_id=person.tenant_id,
        first_name=person.first_name,
        middle_name=person.middle_name,
        last_name=person.last_name,
        display_name=display_name(person),
        profile_link=profile_link(person),
        is_deceased=bool(person.is_deceased),
        is_retired=person.is_retired,
        assigned_worker_id=person.assigned_worker_id,
        source=person.source,
        created_at=person.created_at,
        updated_at=person.updated_at,
    )


class PersonService:
    """Service layer for person records entered directly by caseworkers"""

    def __init__(self, db: Session, policy: Optional[PolicyEngine] = None):
        self.db = db
        self.policy = policy or PolicyEngine()
        self.person_repo = PersonRepository(db)
        self.tenant_repo = TenantRepository(db)

    def create_person(self, data: PersonCreate, actor: Actor) -> Person:
        """
        Create a person through direct case entry.

        Workers always create in their own agency; administrators must name
        an existing tenant.

        Raises:
            ValidationException: If no name is given or an administrator omits tenant_id
            NotFoundException: If the named tenant does not exist
            ForbiddenException: If the actor may not create persons
        """
        tenant_id = data.tenant_id if actor.is_administrator() else actor.tenant_id

        with store_errors(self.db):
            raise_for_decision(
                self.policy.authorize(
                    actor, PolicyTarget.loaded(None, tenant_id), Action.CREATE_PERSON
                ),
                "Not allowed to create persons",
            )
            if tenant_id is None:
                raise ValidationException("tenant_id is required", fields=["tenant_id"])
            if not self.tenant_repo.exists(tenant_id):
                raise NotFoundException(f"Tenant {tenant_id} not found")

            require_renderable_name(data.first_name, data.last_name)

            person = Person(
                tenant_id=tenant_id,
                first_name=clean_name(data.first_name),
                middle_name=clean_name(data.middle_name),
                last_name=clean_name(data.last_name),
                is_deceased=data.is_deceased,
                assigned_worker_id=data.assigned_worker_id,
                source=PersonSource.CASE_ENTRY,
            )
            person = self.person_repo.create(person)

        logger.info("person_created", extra={"person_id": person.id, "tenant_id": tenant_id})
        return person

    def get_person(self, person_id: int, actor: Actor) -> Person:
        with store_errors(self.db):
            return load_authorized_person(
                self.policy, self.person_repo, actor, person_id, Action.VIEW_PERSON
            )

    def retire_person(self, person_id: int, actor: Actor) -> Person:
        """
        Tombstone a person. Retiring twice keeps the original timestamp.

        Edges touching the person are kept; they keep resolving with an
        empty display name.
        """
        with store_errors(self.db):
            person = load_authorized_person(
                self.policy, self.person_repo, actor, person_id, Action.RETIRE_PERSON
            )
            if person.is_retired:
                return person
            person.retired_at = utcnow()
            person = self.person_repo.update(person)

        logger.info("person_retired", extra={"person_id": person.id})
        return person
