"""Collections — create collections and load one into a session.

Invariants:
    - A new collection always gets its root dataset (eid "./", etype "Dataset")
    - Loading replaces session.data["current"] and keeps every other session key
    - session.data is reassigned, never mutated in place (JSON change tracking)
"""

import copy
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crate_api.core.domain_types import (
    CollectionId, DATASET_TYPE, ROOT_DATASET_EID,
)
from crate_api.core.errors import ResourceNotFoundError
from crate_api.core.session_context import build_current
from crate_api.models.collection import Collection
from crate_api.models.entity import Entity
from crate_api.models.session import Session
from crate_api.services.entities import as_uuid

logger = logging.getLogger(__name__)


def serialize_collection(collection: Collection) -> dict:
    return {
        "id": str(collection.id),
        "name": collection.name,
        "description": collection.description,
        "createdAt": collection.created_at.isoformat(),
    }


async def create_collection(
    db: AsyncSession, name: str, description: str | None = None,
) -> dict:
    collection = Collection(name=name, description=description)
    db.add(collection)
    await db.flush()
    db.add(Entity(
        collection_id=collection.id,
        eid=ROOT_DATASET_EID,
        etype=DATASET_TYPE,
        name=name,
    ))
    await db.commit()
    logger.info(
        f"Created collection '{name}'",
        extra={"collection_id": str(collection.id)},
    )
    return serialize_collection(collection)


async def get_collection_or_404(db: AsyncSession, collection_id) -> Collection:
    result = await db.execute(
        select(Collection).where(
            Collection.id == as_uuid(collection_id, "collection"),
        ),
    )
    collection = result.scalar_one_or_none()
    if not collection:
        raise ResourceNotFoundError("Collection", str(collection_id))
    return collection


async def load_collection(
    db: AsyncSession,
    session: Session,
    collection_id,
    local: dict | None = None,
    remote: dict | None = None,
) -> dict:
    """Make collection the session's current one. Returns the new "current" block."""
    collection = await get_collection_or_404(db, collection_id)
    data = copy.deepcopy(session.data or {})
    data["current"] = build_current(CollectionId(collection.id), local, remote)
    session.data = data
    await db.commit()
    logger.info(
        "Collection loaded into session",
        extra={"session_id": str(session.id), "collection_id": str(collection.id)},
    )
    return data["current"]
