from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import String, Integer, Boolean, DateTime, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import TYPE_CHECKING
from app.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from app.models.tenant import Tenant


class PersonSource(str, PyEnum):
    """How the person record entered the system"""

    CASE_ENTRY = "case_entry"
    PERSON_SEARCH = "person_search"


class Person(Base, TimestampMixin):
    """
    Child, relative or worker known to an agency.

    Names are individually optional; at least one of first/last name is
    required when the record is created or linked. Persons are never
    deleted, only retired (retired_at set).
    """

    __tablename__ = "persons"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tenants.id"),
        nullable=False,
        index=True,  # Critical for multi-tenant queries
    )
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    middle_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_deceased: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    assigned_worker_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    source: Mapped[PersonSource] = mapped_column(
        Enum(PersonSource, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=PersonSource.CASE_ENTRY,
    )
    # Identity of the record at the external person-search provider
    external_source: Mapped[str | None] = mapped_column(String(100), nullable=True)
    external_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    retired_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # Relationships
    tenant: Mapped["Tenant"] = relationship("Tenant", back_populates="persons")

    __table_args__ = (
        UniqueConstraint("tenant_id", "external_source", "external_id", name="uq_person_external"),
    )

    @property
    def is_retired(self) -> bool:
        return self.retired_at is not None

    @property
    def full_name(self) -> str:
        parts = (self.first_name, self.middle_name, self.last_name)
        return " ".join(part.strip() for part in parts if part and part.strip())

    def __repr__(self) -> str:
        return f"<Person(id={self.id}, tenant_id={self.tenant_id}, retired={self.is_retired})>"
