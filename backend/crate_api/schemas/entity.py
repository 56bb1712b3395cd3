"""Entity Schemas — request bodies for the entity, property and file routes.

Invariants:
    - Bodies are permissive: semantic checks (types, uniqueness, links) belong to
      the data layer so failures map to the route's own error status
    - Wire names stay camelCase (tgtEntityId); Python names are snake_case via aliases

Design Decisions:
    - Field "property" aliased to property_name: avoids shadowing the builtin in models
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class EntityCreate(BaseModel):
    """POST /entity — a JSON-LD style entity document."""
    entity: dict[str, Any] | None = None


class EntityUpdate(BaseModel):
    """PUT /entity/{id} — omitted fields are left unchanged."""
    name: str | None = None
    eid: str | None = None


class EntityLookup(BaseModel):
    """POST /entity/lookup — every provided field must match exactly."""
    hierarchy: str | None = None
    eid: str | None = None
    etype: str | None = None
    name: str | None = None


class PropertyCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    property_name: str | None = Field(None, alias="property")
    value: Any = None


class PropertyUpdate(BaseModel):
    value: Any = None


class AssociateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    property_name: str | None = Field(None, alias="property")
    tgt_entity_id: str | None = Field(None, alias="tgtEntityId")


class FilesImport(BaseModel):
    """POST /files — storage listing items: {"path", "isDir", "size", "mimeType", "modTime"}."""
    files: list[dict[str, Any]] | None = None
