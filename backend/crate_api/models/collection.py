"""Collection ORM — a group of entities described by one crate.

Invariants:
    - Every collection owns exactly one root dataset entity (eid "./")
    - Deleting a collection deletes its entities

Design Decisions:
    - Root dataset created by the service layer, not a DB trigger
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from crate_api.db.base import Base


class Collection(Base):
    """Collection aggregate root — owns entities."""
    __tablename__ = "collections"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    entities: Mapped[list["Entity"]] = relationship(
        "Entity", back_populates="collection",
        cascade="all, delete-orphan",
    )
