"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - CollectionId and EntityId wrap UUIDs (row ids, not crate @ids)
    - All valid states encoded as Enums — no raw string matching
    - The root dataset of every collection is eid "./" with etype "Dataset"

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

CollectionId = NewType("CollectionId", UUID)
EntityId = NewType("EntityId", UUID)


# ─── Well-known values ───────────────────────────────────────────

ROOT_DATASET_ALIAS = "RootDataset"
ROOT_DATASET_EID = "./"
DATASET_TYPE = "Dataset"
FILE_TYPE = "File"
HAS_PART = "hasPart"


# ─── Enums ───────────────────────────────────────────────────────

class CrateActionName(str, Enum):
    """Change kinds replayed onto the crate document after a write."""
    INSERT = "insert"
    UPDATE = "update"
    REMOVE = "remove"


class SortDirection(str, Enum):
    """Ordering direction for entity listings."""
    ASC = "asc"
    DESC = "desc"


class EntityOrderField(str, Enum):
    """Entity columns a listing may be ordered by."""
    EID = "eid"
    ETYPE = "etype"
    NAME = "name"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
