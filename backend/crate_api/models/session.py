"""Session ORM — per-login state blob, addressed by bearer token.

Invariants:
    - id is the bearer token presented by clients
    - data is a free-form JSON dict; data["current"] holds the loaded collection
      and data["rclone"] holds storage backend configuration
    - user_id is nullable: anonymous sessions exist but cannot configure storage

Design Decisions:
    - JSON column for data: several features write disjoint keys (ADR: schema-free session store)
    - data is always replaced wholesale (never mutated in place) so SQLAlchemy
      detects the change without MutableDict
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from crate_api.db.base import Base


class Session(Base):
    """User session with JSON state."""
    __tablename__ = "sessions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
    )
    data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    user: Mapped["User | None"] = relationship(
        "User", back_populates="sessions", lazy="selectin",
    )
