"""Boundary Protocols — contracts between the route layer and its collaborators.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - Crate IO is accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: boundary methods are async because implementations do IO
"""

from typing import Protocol
from uuid import UUID

from crate_api.core.domain_types import CollectionId


class SessionLike(Protocol):
    """Structural contract for Session objects passed to the crate collaborators."""
    id: UUID
    user_id: UUID | None
    data: dict


class EntityLoader(Protocol):
    """Loads one entity (with properties) as a dict — implemented by the data layer."""
    async def __call__(
        self, collection_id: CollectionId, entity_id: str,
    ) -> dict: ...


class CrateUploader(Protocol):
    """Pushes a saved crate to its remote storage target."""
    async def upload(
        self,
        session: SessionLike,
        user: object | None,
        resource: str | None,
        parent: str | None,
        local_file: str | None,
        crate: dict,
    ) -> None: ...


class CrateManager(Protocol):
    """Contract for applying change actions to a crate and saving it."""
    async def update_crate(
        self,
        local_crate_file: str | None,
        collection_id: CollectionId,
        actions: list[dict],
    ) -> dict: ...

    async def save_crate(
        self,
        session: SessionLike,
        user: object | None,
        resource: str | None,
        parent: str | None,
        local_file: str | None,
        crate: dict,
    ) -> None: ...
