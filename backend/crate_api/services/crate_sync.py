"""Crate Sync — writes entity changes back to the collection's crate after a mutation.

Invariants:
    - Crate location comes from session.data["current"] (local.file, remote.resource/parent)
    - The update step is timed and logged at DEBUG
    - Any failure is logged and surfaced as CrateSaveError with a generic message
    - Sync is skipped for requests flagged as testing or when disabled in settings

Design Decisions:
    - Manager built per call from a factory: routes and tests swap the factory,
      not the manager's internals
"""

import logging
import time
from functools import partial
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from crate_api.config import get_settings
from crate_api.core.domain_types import CollectionId
from crate_api.core.errors import CrateSaveError
from crate_api.core.repository_protocols import CrateManager, SessionLike
from crate_api.core.session_context import local_crate_file, remote_target
from crate_api.infrastructure.crate import LocalCrateManager
from crate_api.services import entities

logger = logging.getLogger(__name__)

TESTING_HEADER = "x-testing"


def default_manager_factory(db: AsyncSession) -> CrateManager:
    return LocalCrateManager(
        load_entity=partial(entities.get_entity, db),
        crate_file_name=get_settings().crate_file_name,
    )


manager_factory: Callable[[AsyncSession], CrateManager] = default_manager_factory


def sync_wanted(headers) -> bool:
    """False when the request is flagged as testing or sync is switched off."""
    if not get_settings().crate_sync_enabled:
        return False
    return not headers.get(TESTING_HEADER)


async def save_crate(
    db: AsyncSession,
    session: SessionLike,
    user: object | None,
    collection_id: CollectionId,
    actions: list[dict],
) -> None:
    """Replay actions onto the session's crate and save it to its target."""
    try:
        crate_mgr = manager_factory(db)
        local_file = local_crate_file(session.data)
        started = time.perf_counter()
        crate = await crate_mgr.update_crate(
            local_crate_file=local_file,
            collection_id=collection_id,
            actions=actions,
        )
        elapsed_ms = (time.perf_counter() - started) * 1000
        remote = remote_target(session.data)
        await crate_mgr.save_crate(
            session=session,
            user=user,
            resource=remote.resource,
            parent=remote.parent,
            local_file=local_file,
            crate=crate,
        )
        logger.debug(
            f"Crate update time: {elapsed_ms:.3f}ms",
            extra={
                "collection_id": str(collection_id),
                "duration_ms": round(elapsed_ms, 3),
                "action_count": len(actions),
            },
        )
    except Exception as e:
        logger.error(f"save_crate: error saving crate {e}")
        raise CrateSaveError("Error saving the crate back to the target")
