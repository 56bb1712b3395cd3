"""Entity Data Access — collection-scoped CRUD for entities, properties and links.

Invariants:
    - Every query is scoped by collection_id — never returns cross-collection data
    - (collection_id, eid) is unique; violations raise ConflictError before hitting the DB
    - Links (tgt_entity_id) only point at entities of the same collection
    - The root dataset ("./") can be neither removed nor renamed to another eid
    - Functions commit their own writes and return plain dicts (JSON-ready, camelCase keys)

Design Decisions:
    - Module functions taking AsyncSession over a repository class: routes call them
      directly, tests call them with the test session
    - Explicit selectinload options on every entity query: async sessions cannot lazy-load
"""

import json
import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from crate_api.core.domain_types import (
    CollectionId, DATASET_TYPE, EntityId, EntityOrderField, ROOT_DATASET_EID,
    SortDirection,
)
from crate_api.core.errors import (
    BadRequestError, ConflictError, ResourceNotFoundError,
)
from crate_api.models.entity import Entity
from crate_api.models.property import Property

logger = logging.getLogger(__name__)

_ENTITY_LOAD = (
    selectinload(Entity.properties).selectinload(Property.tgt_entity),
)

# Keys of an incoming entity document that are not turned into properties.
_RESERVED_KEYS = frozenset({
    "@id", "@type", "@reverse", "id", "eid", "etype", "name",
    "hierarchy", "collectionId", "properties", "createdAt", "updatedAt",
})


def _now() -> datetime:
    return datetime.now(timezone.utc)


def as_uuid(value, label: str = "entity") -> uuid.UUID:
    """Parse an id from a path/body value, BadRequestError if malformed."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise BadRequestError(f"Invalid {label} id '{value}'")


# ─── Serialization ───────────────────────────────────────────────

def serialize_property(prop: Property) -> dict:
    return {
        "id": str(prop.id),
        "entityId": str(prop.entity_id),
        "property": prop.name,
        "value": prop.value,
        "tgtEntityId": str(prop.tgt_entity_id) if prop.tgt_entity_id else None,
        "tgtEid": prop.tgt_entity.eid if prop.tgt_entity_id and prop.tgt_entity else None,
        "createdAt": prop.created_at.isoformat() if prop.created_at else None,
    }


def serialize_entity(entity: Entity, with_properties: bool = False) -> dict:
    data = {
        "id": str(entity.id),
        "collectionId": str(entity.collection_id),
        "eid": entity.eid,
        "etype": entity.etype,
        "name": entity.name,
        "hierarchy": entity.hierarchy,
        "createdAt": entity.created_at.isoformat() if entity.created_at else None,
        "updatedAt": entity.updated_at.isoformat() if entity.updated_at else None,
    }
    if with_properties:
        data["properties"] = [serialize_property(p) for p in entity.properties]
    return data


# ─── Loading helpers ─────────────────────────────────────────────

async def load_entity(
    db: AsyncSession, collection_id: CollectionId, entity_id,
) -> Entity:
    """Load entity (properties + link targets) or raise ResourceNotFoundError.

    Always repopulates from the DB: collections already in the identity map
    would otherwise keep rows deleted earlier in the same session.
    """
    query = (
        select(Entity)
        .where(Entity.collection_id == collection_id)
        .where(Entity.id == as_uuid(entity_id))
        .options(*_ENTITY_LOAD)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(query)
    entity = result.scalar_one_or_none()
    if not entity:
        raise ResourceNotFoundError("Entity", str(entity_id))
    return entity


async def _entity_by_eid(
    db: AsyncSession, collection_id: CollectionId, eid: str,
) -> Entity | None:
    result = await db.execute(
        select(Entity)
        .where(Entity.collection_id == collection_id)
        .where(Entity.eid == eid),
    )
    return result.scalar_one_or_none()


async def _ensure_eid_free(
    db: AsyncSession, collection_id: CollectionId, eid: str,
) -> None:
    if await _entity_by_eid(db, collection_id, eid):
        raise ConflictError(
            f"An entity with @id '{eid}' already exists in this collection",
        )


async def _load_property(
    db: AsyncSession, collection_id: CollectionId, entity_id, property_id,
) -> Property:
    result = await db.execute(
        select(Property)
        .join(Entity, Property.entity_id == Entity.id)
        .where(Entity.collection_id == collection_id)
        .where(Property.entity_id == as_uuid(entity_id))
        .where(Property.id == as_uuid(property_id, "property"))
        .options(selectinload(Property.tgt_entity)),
    )
    prop = result.scalar_one_or_none()
    if not prop:
        raise ResourceNotFoundError("Property", str(property_id))
    return prop


async def _reload_property(db: AsyncSession, property_id: uuid.UUID) -> dict:
    result = await db.execute(
        select(Property)
        .where(Property.id == property_id)
        .options(selectinload(Property.tgt_entity))
        .execution_options(populate_existing=True),
    )
    return serialize_property(result.scalar_one())


async def _apply_value(
    db: AsyncSession, collection_id: CollectionId, prop: Property, value,
) -> None:
    """Set a property to a literal, or to a link when value is {"@id": eid}."""
    if isinstance(value, dict) and "@id" in value:
        target = await _entity_by_eid(db, collection_id, str(value["@id"]))
        if not target:
            raise BadRequestError(
                f"Cannot link to '{value['@id']}': no such entity in this collection",
            )
        prop.tgt_entity_id = target.id
        prop.value = None
        return
    if value is None:
        raise BadRequestError("A property value is required")
    if isinstance(value, (dict, list)):
        value = json.dumps(value)
    prop.value = str(value)
    prop.tgt_entity_id = None


def _property_name(property_name) -> str:
    if not isinstance(property_name, str) or not property_name.strip():
        raise BadRequestError("A property name is required")
    if property_name.startswith("@"):
        raise BadRequestError(f"'{property_name}' is reserved and cannot be set as a property")
    return property_name.strip()


_LIKE_ESCAPE = "\\"


def _escape_like(text: str) -> str:
    """Make % and _ in user text match literally."""
    return (
        text.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )


# ─── Reads ───────────────────────────────────────────────────────

async def get_entity(
    db: AsyncSession, collection_id: CollectionId, entity_id,
) -> dict:
    """Entity with its properties."""
    entity = await load_entity(db, collection_id, entity_id)
    return serialize_entity(entity, with_properties=True)


async def get_entities(
    db: AsyncSession,
    collection_id: CollectionId,
    filter: str | None = None,
    page: int = 0,
    limit: int = 10,
    order_by: list[str] | None = None,
    direction: str | None = None,
    max_limit: int = 100,
) -> dict:
    """Paged entity listing.

    filter matches (case-insensitively) on eid, etype or name. page is
    0-based. order_by names entity columns; anything else is rejected.
    """
    if page < 0:
        raise BadRequestError("page must be >= 0")
    limit = max(1, min(limit, max_limit))
    try:
        sort = SortDirection((direction or SortDirection.ASC.value).lower())
    except ValueError:
        raise BadRequestError(f"Unknown sort direction '{direction}'")

    columns = []
    for field_name in order_by or [EntityOrderField.EID.value]:
        try:
            column = getattr(Entity, EntityOrderField(field_name.strip()).value)
        except ValueError:
            raise BadRequestError(f"Cannot order entities by '{field_name}'")
        columns.append(column.desc() if sort is SortDirection.DESC else column.asc())

    conditions = [Entity.collection_id == collection_id]
    if filter:
        pattern = f"%{_escape_like(filter.lower())}%"
        conditions.append(or_(
            func.lower(Entity.eid).like(pattern, escape=_LIKE_ESCAPE),
            func.lower(Entity.etype).like(pattern, escape=_LIKE_ESCAPE),
            func.lower(Entity.name).like(pattern, escape=_LIKE_ESCAPE),
        ))

    total = (await db.execute(
        select(func.count()).select_from(Entity).where(*conditions),
    )).scalar_one()
    result = await db.execute(
        select(Entity).where(*conditions)
        .order_by(*columns).limit(limit).offset(page * limit),
    )
    return {
        "entities": [serialize_entity(e) for e in result.scalars().all()],
        "total": total,
    }


async def get_entity_properties(
    db: AsyncSession, collection_id: CollectionId, entity_id,
) -> dict:
    entity = await load_entity(db, collection_id, entity_id)
    return {"properties": [serialize_property(p) for p in entity.properties]}


async def find_entity(
    db: AsyncSession,
    collection_id: CollectionId,
    hierarchy: str | None = None,
    eid: str | None = None,
    etype: str | None = None,
    name: str | None = None,
) -> list[dict]:
    """Entities matching every provided field exactly, oldest first."""
    query = select(Entity).where(Entity.collection_id == collection_id)
    if hierarchy is not None:
        query = query.where(Entity.hierarchy == hierarchy)
    if eid is not None:
        query = query.where(Entity.eid == eid)
    if etype is not None:
        query = query.where(Entity.etype == etype)
    if name is not None:
        query = query.where(Entity.name == name)
    result = await db.execute(query.order_by(Entity.created_at, Entity.eid))
    return [serialize_entity(e) for e in result.scalars().all()]


async def find_root_dataset(
    db: AsyncSession, collection_id: CollectionId,
) -> dict | None:
    """Root dataset of the collection (last match wins), or None."""
    matches = await find_entity(
        db, collection_id, eid=ROOT_DATASET_EID, etype=DATASET_TYPE,
    )
    return matches[-1] if matches else None


# ─── Writes ──────────────────────────────────────────────────────

async def insert_entity(
    db: AsyncSession, collection_id: CollectionId, entity: dict | None,
) -> dict:
    """Create an entity from a JSON-LD style document.

    "@type"/"etype" is required; "@id"/"eid" defaults to "#<uuid>"; name
    defaults to the eid. Remaining keys become properties, with
    {"@id": ...} values turned into links.
    """
    if not isinstance(entity, dict):
        raise BadRequestError("You must provide an entity")
    etype = entity.get("@type") or entity.get("etype")
    if not etype:
        raise BadRequestError("An entity must have a type ('@type' or 'etype')")
    if isinstance(etype, list):
        etype = ", ".join(str(t) for t in etype)
    eid = entity.get("@id") or entity.get("eid") or f"#{uuid.uuid4()}"
    await _ensure_eid_free(db, collection_id, eid)

    row = Entity(
        collection_id=collection_id,
        eid=eid,
        etype=etype,
        name=entity.get("name") or eid,
        hierarchy=entity.get("hierarchy"),
    )
    db.add(row)
    await db.flush()

    for key, raw in entity.items():
        if key in _RESERVED_KEYS or key.startswith("@"):
            continue
        for value in raw if isinstance(raw, list) else [raw]:
            prop = Property(entity_id=row.id, name=key)
            await _apply_value(db, collection_id, prop, value)
            db.add(prop)

    await db.commit()
    logger.info(
        f"Inserted entity {eid} ({etype})",
        extra={"collection_id": str(collection_id), "entity_id": str(row.id)},
    )
    return serialize_entity(
        await load_entity(db, collection_id, row.id),
        with_properties=True,
    )


async def update_entity(
    db: AsyncSession,
    collection_id: CollectionId,
    entity_id,
    name: str | None = None,
    eid: str | None = None,
) -> dict:
    """Rename an entity and/or change its eid. Omitted fields are untouched.

    Returns {"entity": updated entity, "previousEid": eid before the call}.
    """
    entity = await load_entity(db, collection_id, entity_id)
    previous_eid = entity.eid
    if eid is not None and eid != entity.eid:
        if entity.eid == ROOT_DATASET_EID:
            raise BadRequestError("The root dataset @id cannot be changed")
        if not eid.strip():
            raise BadRequestError("An entity @id cannot be empty")
        await _ensure_eid_free(db, collection_id, eid)
        entity.eid = eid
    if name is not None:
        entity.name = name
    entity.updated_at = _now()
    await db.commit()
    return {
        "entity": serialize_entity(
            await load_entity(db, collection_id, entity.id),
            with_properties=True,
        ),
        "previousEid": previous_eid,
    }


async def remove_entity(
    db: AsyncSession, collection_id: CollectionId, entity_id,
) -> dict:
    """Delete entity, its properties and every link pointing at it.

    Returns {"updated": [ids of entities that linked to it], "removed": entity}.
    """
    entity = await load_entity(db, collection_id, entity_id)
    if entity.eid == ROOT_DATASET_EID:
        raise BadRequestError("The root dataset cannot be removed")
    removed = serialize_entity(entity, with_properties=True)

    result = await db.execute(
        select(Property).where(Property.tgt_entity_id == entity.id),
    )
    incoming = result.scalars().all()
    updated_ids: list[EntityId] = []
    for link in incoming:
        if link.entity_id != entity.id and link.entity_id not in updated_ids:
            updated_ids.append(EntityId(link.entity_id))
        await db.delete(link)

    if updated_ids:
        referrers = await db.execute(
            select(Entity).where(Entity.id.in_(updated_ids)),
        )
        for referrer in referrers.scalars().all():
            referrer.updated_at = _now()

    await db.delete(entity)
    await db.commit()
    logger.info(
        f"Removed entity {removed['eid']}",
        extra={"collection_id": str(collection_id), "entity_id": removed["id"]},
    )
    return {"updated": [str(i) for i in updated_ids], "removed": removed}


async def _touch(db: AsyncSession, collection_id: CollectionId, entity_id) -> Entity:
    entity = await load_entity(db, collection_id, entity_id)
    entity.updated_at = _now()
    return entity


async def attach_property(
    db: AsyncSession, collection_id: CollectionId, entity_id, property_name, value,
) -> dict:
    """Add a literal (or {"@id": eid} link) property to an entity."""
    name = _property_name(property_name)
    entity = await _touch(db, collection_id, entity_id)
    prop = Property(entity_id=entity.id, name=name)
    await _apply_value(db, collection_id, prop, value)
    db.add(prop)
    await db.commit()
    return await _reload_property(db, prop.id)


async def update_property(
    db: AsyncSession, collection_id: CollectionId, entity_id, property_id, value,
) -> dict:
    prop = await _load_property(db, collection_id, entity_id, property_id)
    await _apply_value(db, collection_id, prop, value)
    await _touch(db, collection_id, entity_id)
    await db.commit()
    return await _reload_property(db, prop.id)


async def remove_property(
    db: AsyncSession, collection_id: CollectionId, entity_id, property_id,
) -> None:
    prop = await _load_property(db, collection_id, entity_id, property_id)
    entity = await _touch(db, collection_id, entity_id)
    entity.properties.remove(prop)
    await db.delete(prop)
    await db.commit()


async def associate(
    db: AsyncSession,
    collection_id: CollectionId,
    entity_id,
    property_name,
    tgt_entity_id,
) -> dict:
    """Link entity -> target under property. Re-linking the same pair is a no-op."""
    name = _property_name(property_name)
    if not tgt_entity_id:
        raise BadRequestError("You must provide a tgtEntityId to associate")
    entity = await _touch(db, collection_id, entity_id)
    target = await load_entity(db, collection_id, tgt_entity_id)

    for existing in entity.properties:
        if existing.name == name and existing.tgt_entity_id == target.id:
            await db.commit()
            return serialize_property(existing)

    prop = Property(entity_id=entity.id, name=name, tgt_entity_id=target.id)
    db.add(prop)
    await db.commit()
    return await _reload_property(db, prop.id)
