"""Collection Schemas — Pydantic models for collection creation and loading.

Invariants:
    - CollectionCreate.name: 1-255 chars, stripped, non-empty
    - CollectionLoad blocks are optional; missing ones are stored as {}
"""

from pydantic import BaseModel, Field, field_validator


class CollectionCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = Field(None, max_length=10_000)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v


class LocalCrate(BaseModel):
    """Local working copy of the collection's crate."""
    file: str | None = None


class RemoteCrate(BaseModel):
    """Storage target the crate is saved back to."""
    resource: str | None = None
    parent: str | None = None


class CollectionLoad(BaseModel):
    local: LocalCrate | None = None
    remote: RemoteCrate | None = None
