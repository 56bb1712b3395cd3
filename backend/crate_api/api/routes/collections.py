"""Collections Routes — create a collection and load it into the caller's session.

Invariants:
    - Creating returns 201 with the collection; its root dataset exists immediately
    - Loading an unknown collection is 404
    - Loading stores {collectionId, local, remote} under session data "current"
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from crate_api.api.dependencies import get_current_session
from crate_api.infrastructure.database import get_db
from crate_api.models.session import Session
from crate_api.schemas.collection import CollectionCreate, CollectionLoad
from crate_api.services import collections

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/collections", tags=["collections"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_collection(
    body: CollectionCreate,
    session: Session = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
):
    collection = await collections.create_collection(
        db, body.name, body.description,
    )
    return {"collection": collection}


@router.post("/{collection_id}/load")
async def load_collection(
    collection_id: str,
    body: CollectionLoad | None = None,
    session: Session = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
):
    """Make this collection the session's current one."""
    load = body or CollectionLoad()
    current = await collections.load_collection(
        db,
        session,
        collection_id,
        local=load.local.model_dump(exclude_none=True) if load.local else None,
        remote=load.remote.model_dump(exclude_none=True) if load.remote else None,
    )
    return {"current": current}
