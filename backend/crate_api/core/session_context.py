"""Session Context — reads the "current collection" block out of session data.

Invariants:
    - Session data is a JSON dict shaped {"current": {"collectionId", "local": {"file"},
      "remote": {"resource", "parent"}}, ...}
    - Every accessor tolerates missing levels and returns None instead of raising
    - Pure functions: no IO, no DB

Design Decisions:
    - Accessors over a typed model: session data is free-form JSON that other
      features (rclone configuration) also write into
"""

from dataclasses import dataclass
from uuid import UUID

from crate_api.core.domain_types import CollectionId


@dataclass(frozen=True)
class RemoteTarget:
    """Where a collection's crate is stored remotely."""
    resource: str | None = None
    parent: str | None = None


def _current(data: dict | None) -> dict:
    if not isinstance(data, dict):
        return {}
    current = data.get("current")
    return current if isinstance(current, dict) else {}


def current_collection_id(data: dict | None) -> CollectionId | None:
    """Collection loaded into the session, or None if nothing usable is loaded."""
    raw = _current(data).get("collectionId")
    if not raw:
        return None
    try:
        return CollectionId(UUID(str(raw)))
    except ValueError:
        return None


def local_crate_file(data: dict | None) -> str | None:
    local = _current(data).get("local")
    if not isinstance(local, dict):
        return None
    return local.get("file")


def remote_target(data: dict | None) -> RemoteTarget:
    remote = _current(data).get("remote")
    if not isinstance(remote, dict):
        return RemoteTarget()
    return RemoteTarget(
        resource=remote.get("resource"), parent=remote.get("parent"),
    )


def build_current(
    collection_id: CollectionId,
    local: dict | None = None,
    remote: dict | None = None,
) -> dict:
    """Build the "current" block stored when a collection is loaded."""
    return {
        "collectionId": str(collection_id),
        "local": dict(local or {}),
        "remote": dict(remote or {}),
    }
