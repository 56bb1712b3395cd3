"""Entity Routes — read and write entities, their properties and associations.

Invariants:
    - Every route is scoped to the collection loaded in the caller's session
    - No loaded collection: 403 ("No collection loaded" on read routes)
    - Read routes map any data-layer failure to a generic 403; the RootDataset
      404 is re-raised untouched
    - Write routes map any failure (data layer or crate sync) to 400 carrying its message
    - Every successful write syncs the crate unless the request is flagged X-Testing

Design Decisions:
    - "RootDataset" is an alias resolved per request to the "./" Dataset entity
    - An eid change is carried on the update action as previousEid so the crate
      node is re-keyed instead of duplicated
    - Crate sync runs after the data-layer commit: a sync failure reports 400 but
      the entity change stays persisted
"""

import logging

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from crate_api.config import get_settings
from crate_api.api.dependencies import (
    get_current_session, require_collection, require_loaded_collection,
)
from crate_api.core.crate_document import crate_action
from crate_api.core.domain_types import (
    CollectionId, CrateActionName, ROOT_DATASET_ALIAS,
)
from crate_api.core.errors import (
    BadRequestError, CrateApiError, ForbiddenError, RootDatasetNotFoundError,
)
from crate_api.infrastructure.database import get_db
from crate_api.models.session import Session
from crate_api.schemas.entity import (
    AssociateRequest, EntityCreate, EntityLookup, EntityUpdate,
    PropertyCreate, PropertyUpdate,
)
from crate_api.services import crate_sync, entities

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/entity", tags=["entities"])

MISSING_ENTITY_ID = (
    "You must provide an entityId to lookup or the special value 'RootDataset'"
)


def failure_message(error: Exception) -> str:
    """User-facing message for a failed write."""
    if isinstance(error, CrateApiError):
        return error.message
    if isinstance(error, SQLAlchemyError):
        return "Database operation failed"
    return str(error) or error.__class__.__name__


def _require_entity_id(entity_id: str) -> str:
    if not entity_id or not entity_id.strip():
        raise BadRequestError(MISSING_ENTITY_ID)
    return entity_id.strip()


async def _resolve_entity_id(
    db: AsyncSession, collection_id: CollectionId, entity_id: str,
) -> str:
    if entity_id != ROOT_DATASET_ALIAS:
        return entity_id
    root = await entities.find_root_dataset(db, collection_id)
    if not root:
        raise RootDatasetNotFoundError()
    return root["id"]


async def _sync(
    request: Request,
    db: AsyncSession,
    session: Session,
    collection_id: CollectionId,
    actions: list[dict],
) -> None:
    if not crate_sync.sync_wanted(request.headers):
        return
    await crate_sync.save_crate(
        db, session, session.user, collection_id, actions,
    )


def _entity_updated(entity_id: str) -> list[dict]:
    return [crate_action(CrateActionName.UPDATE, {"id": entity_id})]


# ─── Reads ───────────────────────────────────────────────────────

@router.get("")
async def get_entities_route(
    filter_text: str | None = Query(None, alias="filter"),
    page: int = Query(0),
    limit: int | None = Query(None),
    order_by: str | None = Query(None, alias="orderBy"),
    direction: str | None = Query(None),
    collection_id: CollectionId = Depends(require_loaded_collection),
    db: AsyncSession = Depends(get_db),
):
    """Paged listing of the collection's entities."""
    settings = get_settings()
    try:
        return await entities.get_entities(
            db,
            collection_id,
            filter=filter_text,
            page=page,
            limit=settings.entities_default_limit if limit is None else limit,
            order_by=order_by.split(",") if order_by else None,
            direction=direction,
            max_limit=settings.entities_max_limit,
        )
    except Exception as e:
        logger.error(f"get_entities_route: {e}")
        raise ForbiddenError()


@router.post("/lookup")
async def find_entity_route(
    body: EntityLookup | None = None,
    collection_id: CollectionId = Depends(require_loaded_collection),
    db: AsyncSession = Depends(get_db),
):
    """Entities matching every provided field."""
    find = body or EntityLookup()
    try:
        found = await entities.find_entity(
            db, collection_id,
            hierarchy=find.hierarchy, eid=find.eid,
            etype=find.etype, name=find.name,
        )
    except Exception as e:
        logger.error(f"find_entity_route: {e}")
        raise ForbiddenError()
    return {"entities": found}


@router.get("/{entity_id}")
async def get_entity_route(
    entity_id: str,
    collection_id: CollectionId = Depends(require_loaded_collection),
    db: AsyncSession = Depends(get_db),
):
    """Entity with its properties; entity_id may be 'RootDataset'."""
    entity_id = _require_entity_id(entity_id)
    try:
        resolved = await _resolve_entity_id(db, collection_id, entity_id)
        entity = await entities.get_entity(db, collection_id, resolved)
    except RootDatasetNotFoundError:
        raise
    except Exception as e:
        logger.error(f"get_entity_route: {e}")
        raise ForbiddenError()
    return {"entity": entity}


@router.get("/{entity_id}/properties")
async def get_entity_properties_route(
    entity_id: str,
    collection_id: CollectionId = Depends(require_loaded_collection),
    db: AsyncSession = Depends(get_db),
):
    entity_id = _require_entity_id(entity_id)
    try:
        resolved = await _resolve_entity_id(db, collection_id, entity_id)
        result = await entities.get_entity_properties(db, collection_id, resolved)
    except RootDatasetNotFoundError:
        raise
    except Exception as e:
        logger.error(f"get_entity_properties_route: {e}")
        raise ForbiddenError()
    return {"properties": result["properties"]}


# ─── Writes ──────────────────────────────────────────────────────

@router.post("")
async def post_entity_route(
    body: EntityCreate,
    request: Request,
    collection_id: CollectionId = Depends(require_collection),
    session: Session = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
):
    try:
        entity = await entities.insert_entity(db, collection_id, body.entity)
        await _sync(
            request, db, session, collection_id,
            [crate_action(CrateActionName.INSERT, entity)],
        )
    except Exception as e:
        logger.error(f"post_entity_route: {e}")
        raise BadRequestError(failure_message(e))
    return {"entity": entity}


@router.put("/{entity_id}")
async def put_entity_route(
    entity_id: str,
    body: EntityUpdate,
    request: Request,
    collection_id: CollectionId = Depends(require_collection),
    session: Session = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
):
    entity_id = _require_entity_id(entity_id)
    try:
        result = await entities.update_entity(
            db, collection_id, entity_id, name=body.name, eid=body.eid,
        )
        entity = result["entity"]
        await _sync(
            request, db, session, collection_id,
            [crate_action(
                CrateActionName.UPDATE,
                {**entity, "previousEid": result["previousEid"]},
            )],
        )
    except Exception as e:
        logger.error(f"put_entity_route: {e}")
        raise BadRequestError(failure_message(e))
    return {"entity": entity}


@router.delete("/{entity_id}")
async def delete_entity_route(
    entity_id: str,
    request: Request,
    collection_id: CollectionId = Depends(require_collection),
    session: Session = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
):
    entity_id = _require_entity_id(entity_id)
    try:
        result = await entities.remove_entity(db, collection_id, entity_id)
        actions = [
            crate_action(CrateActionName.UPDATE, {"id": referrer})
            for referrer in result["updated"]
        ]
        actions.append(crate_action(CrateActionName.REMOVE, result["removed"]))
        await _sync(request, db, session, collection_id, actions)
    except Exception as e:
        logger.error(f"delete_entity_route: {e}")
        raise BadRequestError(failure_message(e))
    return {}


@router.post("/{entity_id}/property")
async def post_entity_property_route(
    entity_id: str,
    body: PropertyCreate,
    request: Request,
    collection_id: CollectionId = Depends(require_collection),
    session: Session = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
):
    try:
        prop = await entities.attach_property(
            db, collection_id, entity_id, body.property_name, body.value,
        )
        await _sync(
            request, db, session, collection_id, _entity_updated(entity_id),
        )
    except Exception as e:
        logger.error(f"post_entity_property_route: {e}")
        raise BadRequestError(failure_message(e))
    return {"property": prop}


@router.put("/{entity_id}/property/{property_id}")
async def put_entity_property_route(
    entity_id: str,
    property_id: str,
    body: PropertyUpdate,
    request: Request,
    collection_id: CollectionId = Depends(require_collection),
    session: Session = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
):
    try:
        prop = await entities.update_property(
            db, collection_id, entity_id, property_id, body.value,
        )
        await _sync(
            request, db, session, collection_id, _entity_updated(entity_id),
        )
    except Exception as e:
        logger.error(f"put_entity_property_route: {e}")
        raise BadRequestError(failure_message(e))
    return {"property": prop}


@router.delete("/{entity_id}/property/{property_id}")
async def delete_entity_property_route(
    entity_id: str,
    property_id: str,
    request: Request,
    collection_id: CollectionId = Depends(require_collection),
    session: Session = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
):
    try:
        await entities.remove_property(db, collection_id, entity_id, property_id)
        await _sync(
            request, db, session, collection_id, _entity_updated(entity_id),
        )
    except Exception as e:
        logger.error(f"delete_entity_property_route: {e}")
        raise BadRequestError(failure_message(e))
    return {}


@router.put("/{entity_id}/associate")
async def put_entity_associate_route(
    entity_id: str,
    body: AssociateRequest,
    request: Request,
    collection_id: CollectionId = Depends(require_collection),
    session: Session = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
):
    """Link entity_id to tgtEntityId under the given property."""
    try:
        await entities.associate(
            db, collection_id, entity_id,
            body.property_name, body.tgt_entity_id,
        )
        await _sync(
            request, db, session, collection_id, _entity_updated(entity_id),
        )
    except Exception as e:
        logger.error(f"put_entity_associate_route: {e}")
        raise BadRequestError(failure_message(e))
    return {}
