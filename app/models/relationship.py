from sqlalchemy import String, Integer, Boolean, ForeignKey, JSON, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import TYPE_CHECKING
from app.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from app.models.person import Person


class Relationship(Base, TimestampMixin):
    """
    Edge between two persons ("A is related to B").

    Stored with a direction (source -> destination) but symmetric in
    meaning: pair_low_id/pair_high_id hold the unordered key, and the
    unique constraint allows one edge per pair within a tenant.
    Edges are never deleted.
    """

    __tablename__ = "relationships"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tenants.id"),
        nullable=False,
        index=True,
    )
    source_person_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("persons.id"), nullable=False, index=True
    )
    destination_person_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("persons.id"), nullable=False, index=True
    )
    pair_low_id: Mapped[int] = mapped_column(Integer, nullable=False)
    pair_high_id: Mapped[int] = mapped_column(Integer, nullable=False)
    relationship_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    # Visible only to the workers assigned to either endpoint
    is_restricted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    contact_log_ids: Mapped[list[str] | None] = mapped_column(JSON, nullable=True, default=list)

    # Relationships
    source_person: Mapped["Person"] = relationship("Person", foreign_keys=[source_person_id])
    destination_person: Mapped["Person"] = relationship(
        "Person", foreign_keys=[destination_person_id]
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "pair_low_id", "pair_high_id", name="uq_relationship_pair"),
        Index("ix_relationships_pair", "pair_low_id", "pair_high_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Relationship(id={self.id}, source={self.source_person_id}, "
            f"destination={self.destination_person_id}, tenant_id={self.tenant_id})>"
        )
