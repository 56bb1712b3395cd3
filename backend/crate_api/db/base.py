"""SQLAlchemy Declarative Base — shared base class for all ORM models.

Invariants:
    - Every table (users, sessions, collections, entities, properties) inherits from Base
    - Base is the single source of truth for table metadata

Design Decisions:
    - Base lives apart from the models so model modules can import each other freely
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all Crate API ORM models."""
    pass
