"""
Policy engine for person and relationship access.

Every check runs in a fixed, short-circuiting order, cheapest first:

1. Administrator role  -> Allow (nothing is loaded)
2. Restricted role     -> Deny role_forbidden (nothing is loaded)
3. Tenant scalar       -> Deny tenant_mismatch (only resource.tenant_id is loaded)
4. Action rule         -> evaluated against the full resource, loaded last

Unauthorized actors therefore never cause a full resource to be
materialized. Evaluation is pure: a denial is returned as a Decision and
never raised; callers decide how to surface it.
"""

import logging
from dataclasses import dataclass
from enum import Enum as PyEnum
from typing import Any, Callable

from app.models.actor import Actor

logger = logging.getLogger(__name__)

_UNLOADED = object()


class Action(str, PyEnum):
    """Operations gated by the policy engine"""

    VIEW_PERSON = "view_person"
    VIEW_RELATIONSHIPS = "view_relationships"
    VIEW_RELATIONSHIP = "view_relationship"
    CREATE_PERSON = "create_person"
    CREATE_RELATIONSHIP = "create_relationship"
    UPDATE_RELATIONSHIP = "update_relationship"
    RETIRE_PERSON = "retire_person"


class DenyReason(str, PyEnum):
    ROLE_FORBIDDEN = "role_forbidden"
    TENANT_MISMATCH = "tenant_mismatch"
    NOT_ASSIGNED = "not_assigned"
    RETIRED_RECORD = "retired_record"


@dataclass(frozen=True)
class Decision:
    """Outcome of a policy evaluation: Allow, or Deny with a reason"""

    allowed: bool
    reason: DenyReason | None = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(allowed=True)


def deny(reason: DenyReason) -> Decision:
    return Decision(allowed=False, reason=reason)


class PolicyTarget:
    """
    Resource under evaluation, loaded lazily in two tiers.

    The tenant loader returns only the owning tenant id (a single scalar);
    the resource loader returns the full record. Each loader runs at most
    once, and only when the evaluation step that needs it is reached.
    """

    def __init__(
        self,
        tenant_loader: Callable[[], int | None],
        resource_loader: Callable[[], Any] | None = None,
    ):
        self._tenant_loader = tenant_loader
        self._resource_loader = resource_loader
        self._tenant_id: Any = _UNLOADED
        self._resource: Any = _UNLOADED

    @classmethod
    def loaded(cls, resource: Any, tenant_id: int | None) -> "PolicyTarget":
        """Target for a resource already in memory"""
        target = cls(lambda: tenant_id, lambda: resource)
        target._tenant_id = tenant_id
        target._resource = resource
        return target

    @property
    def tenant_id(self) -> int | None:
        if self._tenant_id is _UNLOADED:
            self._tenant_id = self._tenant_loader()
        return self._tenant_id

    @property
    def resource(self) -> Any:
        if self._resource is _UNLOADED:
            self._resource = self._resource_loader() if self._resource_loader else None
        return self._resource

    @property
    def resource_loaded(self) -> bool:
        return self._resource is not _UNLOADED


def _allow(actor: Actor, resource: Any) -> Decision:
    return ALLOW


def _assigned_to(actor: Actor, *persons: Any) -> bool:
    return any(
        person is not None and getattr(person, "assigned_worker_id", None) == actor.user_id
        for person in persons
    )


def _edge_rule(actor: Actor, edge: Any) -> Decision:
    """Actor must belong to the edge's tenant; restricted edges need an assignment"""
    if edge.tenant_id != actor.tenant_id:
        return deny(DenyReason.TENANT_MISMATCH)
    if edge.is_restricted and not _assigned_to(
        actor, getattr(edge, "source_person", None), getattr(edge, "destination_person", None)
    ):
        return deny(DenyReason.NOT_ASSIGNED)
    return ALLOW


def _retire_rule(actor: Actor, person: Any) -> Decision:
    assigned = getattr(person, "assigned_worker_id", None)
    if assigned is not None and assigned != actor.user_id:
        return deny(DenyReason.NOT_ASSIGNED)
    return ALLOW


RULES: dict[Action, Callable[[Actor, Any], Decision]] = {
    Action.VIEW_PERSON: _allow,
    Action.VIEW_RELATIONSHIPS: _allow,
    Action.VIEW_RELATIONSHIP: _edge_rule,
    Action.CREATE_PERSON: _allow,
    Action.CREATE_RELATIONSHIP: _allow,
    Action.UPDATE_RELATIONSHIP: _edge_rule,
    Action.RETIRE_PERSON: _retire_rule,
}

# Rules that never inspect the resource; the full record is not loaded for these
RESOURCE_FREE = {
    Action.VIEW_PERSON,
    Action.VIEW_RELATIONSHIPS,
    Action.CREATE_PERSON,
    Action.CREATE_RELATIONSHIP,
}


class PolicyEngine:
    """Evaluates (actor, resource, action) triples"""

    def __init__(self, rules: dict[Action, Callable[[Actor, Any], Decision]] | None = None):
        self.rules = rules or RULES

    def check_role(self, actor: Actor) -> Decision | None:
        """Steps 1-2: role shortcuts. Returns None when evaluation must continue."""
        if actor.is_administrator():
            return ALLOW
        if actor.is_restricted():
            return deny(DenyReason.ROLE_FORBIDDEN)
        return None

    def check_tenant(self, actor: Actor, tenant_id: int | None) -> Decision | None:
        """Step 3: compare the resource's tenant scalar to the actor's tenant."""
        if actor.tenant_id is None or tenant_id != actor.tenant_id:
            return deny(DenyReason.TENANT_MISMATCH)
        return None

    def check_rule(self, actor: Actor, target: PolicyTarget, action: Action) -> Decision:
        """Step 4: action-specific predicate against the full resource."""
        rule = self.rules[action]
        if action in RESOURCE_FREE:
            return rule(actor, None)
        resource = target.resource
        if resource is None:
            # Tenant resolved but the record vanished between loads
            return deny(DenyReason.TENANT_MISMATCH)
        return rule(actor, resource)

    def authorize(self, actor: Actor, target: PolicyTarget, action: Action) -> Decision:
        decision = self.check_role(actor)
        if decision is None:
            decision = self.check_tenant(actor, target.tenant_id)
        if decision is None:
            decision = self.check_rule(actor, target, action)

        if not decision.allowed:
            logger.info(
                "policy_denied",
                extra={
                    "user_id": actor.user_id,
                    "role": actor.role.value,
                    "action": action.value,
                    "reason": decision.reason.value if decision.reason else None,
                },
            )
        return decision
