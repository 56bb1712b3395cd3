"""Property ORM — a named value or link attached to an entity.

Invariants:
    - Always belongs to an Entity (entity_id FK)
    - Either value is set (literal) or tgt_entity_id is set (link), never both
    - Links never cross collections (enforced by the service layer)

Design Decisions:
    - value stored as text: crate literals are strings/numbers, serialized as given
    - tgt_entity loaded explicitly by queries (selectinload) so a link renders as
      {"@id": target eid}; the Entity <-> Property cycle defeats implicit eager loading
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from crate_api.db.base import Base


class Property(Base):
    """Literal value or link on an entity."""
    __tablename__ = "properties"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    entity_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("entities.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    value: Mapped[str | None] = mapped_column(Text, nullable=True)
    tgt_entity_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("entities.id", ondelete="CASCADE"),
        nullable=True, index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    entity: Mapped["Entity"] = relationship(
        "Entity", back_populates="properties", foreign_keys=[entity_id],
    )
    tgt_entity: Mapped["Entity | None"] = relationship(
        "Entity", foreign_keys=[tgt_entity_id],
    )
