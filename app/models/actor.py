"""Requesting actor passed explicitly through every policy and resolver call."""

from dataclasses import dataclass

from app.models.role import ActorRole


@dataclass(frozen=True)
class Actor:
    """
    Authenticated requester, built from trusted session token claims.

    Attributes:
        user_id: Token subject ('sub' claim)
        role: The actor's role
        tenant_id: Agency the actor belongs to (None for administrators)
    """

    user_id: str
    role: ActorRole
    tenant_id: int | None = None

    def is_administrator(self) -> bool:
        return self.role == ActorRole.ADMINISTRATOR

    def is_restricted(self) -> bool:
        return self.role == ActorRole.RESTRICTED

    def __repr__(self) -> str:
        return f"<Actor(user_id={self.user_id}, role={self.role.value}, tenant_id={self.tenant_id})>"
