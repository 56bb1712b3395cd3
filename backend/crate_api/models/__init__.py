"""ORM Models — SQLAlchemy declarative models for all persisted records.

Invariants:
    - All models inherit from Base (db/base.py)
    - Collection is the aggregate root for entities; entities own properties

Design Decisions:
    - One file per table for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs (ADR: standard SQLAlchemy pattern)
"""

from crate_api.models.user import User  # noqa: F401
from crate_api.models.session import Session  # noqa: F401
from crate_api.models.collection import Collection  # noqa: F401
from crate_api.models.entity import Entity  # noqa: F401
from crate_api.models.property import Property  # noqa: F401
