"""Request Dependencies — resolve the caller's session, user and loaded collection.

Invariants:
    - The bearer token is a session id; unknown or malformed tokens are 401
    - require_known_user rejects sessions without a user (401)
    - require_collection rejects sessions without a loaded collection (403)
    - All dependencies share the request's AsyncSession (FastAPI caches get_db per request)

Design Decisions:
    - Header parsing kept here, not in a middleware: routes declare what they need
"""

import uuid

from fastapi import Depends, Header
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crate_api.core.domain_types import CollectionId
from crate_api.core.errors import ForbiddenError, UnauthorizedError
from crate_api.core.session_context import current_collection_id
from crate_api.infrastructure.database import get_db
from crate_api.models.session import Session

NO_COLLECTION_LOADED = "No collection loaded"


def _extract_bearer_token(authorization: str | None) -> str:
    raw = (authorization or "").strip()
    if not raw:
        raise UnauthorizedError("Missing Authorization header")
    scheme, _, token = raw.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise UnauthorizedError("Authorization header must be 'Bearer <token>'")
    return token.strip()


async def get_current_session(
    authorization: str | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> Session:
    token = _extract_bearer_token(authorization)
    try:
        session_id = uuid.UUID(token)
    except ValueError:
        raise UnauthorizedError("Unknown session")
    result = await db.execute(select(Session).where(Session.id == session_id))
    session = result.scalar_one_or_none()
    if not session:
        raise UnauthorizedError("Unknown session")
    return session


async def require_known_user(
    session: Session = Depends(get_current_session),
) -> Session:
    if session.user_id is None or session.user is None:
        raise UnauthorizedError("A known user is required")
    return session


def collection_from(session: Session) -> CollectionId | None:
    return current_collection_id(session.data)


async def require_collection(
    session: Session = Depends(get_current_session),
) -> CollectionId:
    """Write routes: forbidden without a loaded collection."""
    collection_id = collection_from(session)
    if not collection_id:
        raise ForbiddenError()
    return collection_id


async def require_loaded_collection(
    session: Session = Depends(get_current_session),
) -> CollectionId:
    """Read routes: forbidden, with an explanatory message, without a loaded collection."""
    collection_id = collection_from(session)
    if not collection_id:
        raise ForbiddenError(NO_COLLECTION_LOADED)
    return collection_id
