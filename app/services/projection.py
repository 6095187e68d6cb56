"""
Null-safe projection of stored persons and relationships.

This module is the single exit gate for relationship reads. Whatever state
an endpoint person is in (missing, retired, nameless, partially ingested)
the caller receives a RelationshipView whose fields are all present: names
and links degrade to "" and the deceased flag to False. Nothing here raises
for incomplete person data.
"""

import logging
from dataclasses import dataclass
from typing import Any, NamedTuple

from app.config import settings
from app.core.exceptions import ValidationException
from app.core.identifiers import canonical_id, same_id
from app.schemas.relationship_schemas import RelationshipView

logger = logging.getLogger(__name__)


class DeceasedFlag(NamedTuple):
    """Deceased value plus whether it came from the record or the default"""

    value: bool
    recorded: bool


@dataclass(frozen=True)
class OrientedEdge:
    """
    Edge seen from the keystone's side.

    Computed once per edge by orient(); callers never compare endpoint ids
    themselves.
    """

    edge: Any
    keystone: Any
    counterpart: Any
    counterpart_id: str


def orient(edge: Any, keystone_id: object) -> OrientedEdge:
    """
    Split an edge into keystone side and counterpart.

    Ids are compared in canonical form, so an int keystone id matches a
    string endpoint id. A self-referencing edge yields the destination as
    counterpart.

    Raises:
        ValueError: If neither endpoint is the keystone
    """
    if same_id(edge.source_person_id, keystone_id):
        keystone = getattr(edge, "source_person", None)
        counterpart = getattr(edge, "destination_person", None)
        counterpart_id = edge.destination_person_id
    elif same_id(edge.destination_person_id, keystone_id):
        keystone = getattr(edge, "destination_person", None)
        counterpart = getattr(edge, "source_person", None)
        counterpart_id = edge.source_person_id
    else:
        raise ValueError(f"Relationship {edge.id} does not touch person {keystone_id}")

    return OrientedEdge(
        edge=edge,
        keystone=keystone,
        counterpart=counterpart,
        counterpart_id=canonical_id(counterpart_id),
    )


def is_displayable(person: Any) -> bool:
    """Person exists, is persisted, is not retired and has a first or last name"""
    if person is None or getattr(person, "id", None) is None:
        return False
    if getattr(person, "retired_at", None) is not None:
        return False
    return any(
        isinstance(name, str) and name.strip()
        for name in (getattr(person, "first_name", None), getattr(person, "last_name", None))
    )


def display_name(person: Any) -> str:
    if not is_displayable(person):
        return ""
    parts = (
        getattr(person, "first_name", None),
        getattr(person, "middle_name", None),
        getattr(person, "last_name", None),
    )
    return " ".join(part.strip() for part in parts if isinstance(part, str) and part.strip())


def profile_link(person: Any) -> str:
    if not is_displayable(person):
        return ""
    return f"{settings.PROFILE_LINK_BASE.rstrip('/')}/{canonical_id(person.id)}"


def deceased_flag(person: Any) -> DeceasedFlag:
    """
    Read the deceased flag without collapsing False into "unknown".

    An explicit False on the record comes back as recorded=True; a missing
    person or missing value falls back to False with recorded=False.
    """
    value = getattr(person, "is_deceased", None) if person is not None else None
    if value is None:
        return DeceasedFlag(value=False, recorded=False)
    return DeceasedFlag(value=bool(value), recorded=True)


def project_oriented(oriented: OrientedEdge) -> RelationshipView:
    """
    Build the view for an oriented edge.

    If either endpoint is missing, retired or nameless, the counterpart's
    display name and profile link are both "".
    """
    edge = oriented.edge
    counterpart = oriented.counterpart
    complete = is_displayable(counterpart) and is_displayable(oriented.keystone)

    if not complete:
        logger.debug(
            "projection_degraded",
            extra={"relationship_id": canonical_id(edge.id), "counterpart_id": oriented.counterpart_id},
        )

    return RelationshipView(
        relationship_id=canonical_id(edge.id),
        counterpart_id=oriented.counterpart_id,
        display_name=display_name(counterpart) if complete else "",
        profile_link=profile_link(counterpart) if complete else "",
        is_deceased=deceased_flag(counterpart).value,
        keystone_display_name=display_name(oriented.keystone),
        relationship_type=getattr(edge, "relationship_type", None) or "",
    )


def project(edge: Any, keystone_id: object) -> RelationshipView:
    """Orient an edge relative to the keystone and project it"""
    return project_oriented(orient(edge, keystone_id))


def sort_views(views: list[RelationshipView], sort: str | None) -> list[RelationshipView]:
    """
    Apply a caller-requested ordering; None keeps the store's load order.

    Empty display names sort last.
    """
    if sort is None:
        return views
    if sort == "counterpart_name":
        return sorted(views, key=lambda view: (view.display_name == "", view.display_name.casefold()))
    raise ValidationException(f"Unsupported sort: {sort}", fields=["sort"])
