"""File Import — adds a storage file listing to a collection as Dataset/File entities.

Invariants:
    - Existing eids are reused, never duplicated (import is idempotent)
    - Every newly created node is linked from its parent with a hasPart property
    - Top-level nodes hang off the root dataset, which must exist
    - One commit for the whole listing: a bad item aborts the import

Design Decisions:
    - Planning (core/file_tree.py) separated from persistence: the plan is pure and tested alone
    - Parents looked up in a local eid -> Entity map built as the plan is walked
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crate_api.core.domain_types import (
    CollectionId, DATASET_TYPE, HAS_PART, ROOT_DATASET_EID,
)
from crate_api.core.errors import BadRequestError, RootDatasetNotFoundError
from crate_api.core.file_tree import plan_file_tree
from crate_api.models.entity import Entity
from crate_api.models.property import Property

logger = logging.getLogger(__name__)


async def insert_files_and_folders(
    db: AsyncSession, collection_id: CollectionId, files: list[dict],
) -> dict:
    """Create folder and file entities for a storage listing.

    Returns {"created": n, "existing": m} for observability.
    """
    if not isinstance(files, list):
        raise BadRequestError("You must provide an array of files to add")
    try:
        plan = plan_file_tree(files)
    except ValueError as e:
        raise BadRequestError(str(e))

    wanted = {ROOT_DATASET_EID} | {node.eid for node in plan}
    result = await db.execute(
        select(Entity)
        .where(Entity.collection_id == collection_id)
        .where(Entity.eid.in_(wanted)),
    )
    known: dict[str, Entity] = {e.eid: e for e in result.scalars().all()}
    root = known.get(ROOT_DATASET_EID)
    if not root or root.etype != DATASET_TYPE:
        raise RootDatasetNotFoundError()

    created = 0
    for node in plan:
        if node.eid in known:
            continue
        parent = known[node.parent_eid]
        entity = Entity(
            collection_id=collection_id,
            eid=node.eid,
            etype=node.etype,
            name=node.name,
            hierarchy=parent.eid,
        )
        db.add(entity)
        await db.flush()
        for key, value in node.properties.items():
            db.add(Property(entity_id=entity.id, name=key, value=value))
        db.add(Property(
            entity_id=parent.id, name=HAS_PART, tgt_entity_id=entity.id,
        ))
        known[node.eid] = entity
        created += 1

    await db.commit()
    logger.info(
        f"Imported {created} new file/folder entities ({len(plan) - created} existing)",
        extra={"collection_id": str(collection_id)},
    )
    return {"created": created, "existing": len(plan) - created}
