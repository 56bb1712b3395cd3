"""OneDrive Route — stores a user's OneDrive (rclone) configuration on their session.

Invariants:
    - Requires a session bound to a known user (401 otherwise)
    - Replaces data["rclone"] with {"onedrive": <body>}; every other key of
      session data is preserved
    - data is deep-copied and reassigned so the JSON column change is detected
"""

import copy
import logging
from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crate_api.api.dependencies import require_known_user
from crate_api.core.errors import ResourceNotFoundError
from crate_api.infrastructure.database import get_db
from crate_api.models.session import Session

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/onedrive", tags=["onedrive"])


@router.post("/configuration")
async def save_user_onedrive_configuration(
    configuration: dict[str, Any] = Body(default_factory=dict),
    current: Session = Depends(require_known_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(Session).where(Session.id == current.id))
    session = result.scalar_one_or_none()
    if not session:
        raise ResourceNotFoundError("Session", str(current.id))

    data = copy.deepcopy(session.data or {})
    data = {**data, "rclone": {"onedrive": configuration}}
    session.data = data
    await db.commit()
    logger.info(
        "Saved OneDrive configuration",
        extra={"session_id": str(session.id)},
    )
    return {}
