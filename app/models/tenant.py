"""Tenant (agency) model for multi-tenant isolation."""

from sqlalchemy import String, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import TYPE_CHECKING

from app.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from app.models.person import Person


class Tenant(Base, TimestampMixin):
    """
    Agency owning case records; the unit of data isolation.

    Every Person is owned by exactly one tenant from creation. Relationships
    carry their own tenant, so an agency can associate its case subject with
    a person owned by another agency without ever gaining visibility into
    that agency's records.
    """

    __tablename__ = "tenants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Relationships
    persons: Mapped[list["Person"]] = relationship("Person", back_populates="tenant")

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, name='{self.name}')>"
