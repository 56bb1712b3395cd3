"""File Import Route — adds a storage listing to the loaded collection.

Invariants:
    - No loaded collection: 403
    - Missing "files": 400 before any data-layer call
    - Any data-layer failure: 400 carrying its message
    - Never triggers a crate sync (imports are bulk and synced on the next edit)
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from crate_api.api.dependencies import require_collection
from crate_api.api.routes.entity import failure_message
from crate_api.core.domain_types import CollectionId
from crate_api.core.errors import BadRequestError
from crate_api.infrastructure.database import get_db
from crate_api.schemas.entity import FilesImport
from crate_api.services.file_import import insert_files_and_folders

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/files", tags=["files"])


@router.post("")
async def post_files_route(
    body: FilesImport,
    collection_id: CollectionId = Depends(require_collection),
    db: AsyncSession = Depends(get_db),
):
    if body.files is None:
        raise BadRequestError("You must provide an array of files to add")
    try:
        await insert_files_and_folders(db, collection_id, body.files)
    except Exception as e:
        logger.error(f"post_files_route: {e}", exc_info=True)
        raise BadRequestError(failure_message(e))
    return {}
