"""User ORM — a known account that sessions can belong to.

Invariants:
    - email is unique and non-nullable
    - Deleting a user deletes their sessions

Design Decisions:
    - Identity only: authentication itself happens upstream of this service
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from crate_api.db.base import Base


class User(Base):
    """Known user account."""
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True,
    )
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    sessions: Mapped[list["Session"]] = relationship(
        "Session", back_populates="user",
        cascade="all, delete-orphan",
    )
