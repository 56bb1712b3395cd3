"""Entity ORM — one metadata record (a JSON-LD node) inside a collection.

Invariants:
    - (collection_id, eid) is unique: eid is the node's "@id" in the crate
    - etype is the node's "@type"
    - hierarchy is the parent folder eid for imported files/folders, else None
    - properties cascade on delete; incoming links are removed with the target

Design Decisions:
    - Properties in a separate table: multi-valued and linkable (ADR: graph shape)
    - updated_at bumped by the service layer on every write that touches the entity
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from crate_api.db.base import Base


class Entity(Base):
    """Metadata entity scoped to a collection."""
    __tablename__ = "entities"
    __table_args__ = (
        UniqueConstraint("collection_id", "eid", name="uq_entities_collection_eid"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    collection_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("collections.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    eid: Mapped[str] = mapped_column(String(1024), nullable=False)
    etype: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    hierarchy: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    collection: Mapped["Collection"] = relationship(
        "Collection", back_populates="entities",
    )
    properties: Mapped[list["Property"]] = relationship(
        "Property", back_populates="entity",
        foreign_keys="Property.entity_id",
        cascade="all, delete-orphan", lazy="selectin",
        order_by="Property.created_at",
    )
