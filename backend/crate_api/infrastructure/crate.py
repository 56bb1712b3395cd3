"""Crate Manager — replays entity change actions onto a local RO-Crate file and saves it.

Invariants:
    - update_crate never writes; save_crate is the only method that touches disk
    - insert/update actions re-render the entity from the data layer (the action
      payload may only carry an id)
    - remove actions use the eid carried by the action (the entity is already gone)
    - An update carrying previousEid re-keys the old node and repoints links to it
    - Link targets missing from @graph are loaded and added, transitively, so a
      written crate never references a node it does not contain
    - A missing local crate file starts from an empty RO-Crate skeleton

Design Decisions:
    - File IO runs in a worker thread (anyio.to_thread): handlers stay non-blocking
    - Remote push delegated to a CrateUploader; the default one only logs because
      storage-backend transfer lives outside this service
"""

import anyio
import json
import logging
import os
from pathlib import Path

from crate_api.core.crate_document import (
    empty_crate, remove_node, rename_node, render_entity, upsert_node,
)
from crate_api.core.domain_types import CollectionId, CrateActionName
from crate_api.core.repository_protocols import (
    CrateUploader, EntityLoader, SessionLike,
)

logger = logging.getLogger(__name__)


class LoggingUploader:
    """Default uploader: records the target, transfers nothing."""

    async def upload(
        self, session, user, resource, parent, local_file, crate,
    ) -> None:
        if resource:
            logger.info(
                f"Crate ready for remote target '{resource}' (parent '{parent}')",
                extra={"session_id": str(session.id)},
            )


def _resolve_path(local_crate_file: str, crate_file_name: str) -> Path:
    path = Path(local_crate_file)
    if path.is_dir():
        return path / crate_file_name
    return path


def _read_crate(path: Path) -> dict:
    if not path.exists():
        return empty_crate()
    with path.open(encoding="utf-8") as fh:
        return json.load(fh)


def _write_crate(path: Path, crate: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8") as fh:
        json.dump(crate, fh, indent=2, ensure_ascii=False)
    os.replace(tmp, path)


class LocalCrateManager:
    """Crate manager backed by a JSON-LD file on local disk."""

    def __init__(
        self,
        load_entity: EntityLoader,
        uploader: CrateUploader | None = None,
        crate_file_name: str = "ro-crate-metadata.json",
    ):
        self.load_entity = load_entity
        self.uploader = uploader or LoggingUploader()
        self.crate_file_name = crate_file_name

    async def update_crate(
        self,
        local_crate_file: str | None,
        collection_id: CollectionId,
        actions: list[dict],
    ) -> dict:
        """Apply actions in order and return the updated crate document."""
        if local_crate_file:
            path = _resolve_path(local_crate_file, self.crate_file_name)
            crate = await anyio.to_thread.run_sync(_read_crate, path)
        else:
            crate = empty_crate()

        for action in actions:
            name = CrateActionName(action["name"])
            entity = action["entity"]
            if name is CrateActionName.REMOVE:
                remove_node(crate, entity["eid"])
                continue
            full = await self.load_entity(collection_id, str(entity["id"]))
            previous_eid = entity.get("previousEid")
            if previous_eid and previous_eid != full["eid"]:
                rename_node(crate, previous_eid, full["eid"])
            upsert_node(crate, render_entity(full))
            await self._add_missing_targets(crate, collection_id, full)
        return crate

    async def _add_missing_targets(
        self, crate: dict, collection_id: CollectionId, entity: dict,
    ) -> None:
        present = {node.get("@id") for node in crate.get("@graph", [])}
        pending = [entity]
        while pending:
            current = pending.pop()
            for prop in current.get("properties", []):
                if not prop.get("tgtEntityId") or prop.get("tgtEid") in present:
                    continue
                target = await self.load_entity(
                    collection_id, str(prop["tgtEntityId"]),
                )
                upsert_node(crate, render_entity(target))
                present.add(target["eid"])
                pending.append(target)

    async def save_crate(
        self,
        session: SessionLike,
        user: object | None,
        resource: str | None,
        parent: str | None,
        local_file: str | None,
        crate: dict,
    ) -> None:
        """Write the crate locally, then hand it to the uploader."""
        if local_file:
            path = _resolve_path(local_file, self.crate_file_name)
            await anyio.to_thread.run_sync(_write_crate, path, crate)
        await self.uploader.upload(
            session=session, user=user, resource=resource,
            parent=parent, local_file=local_file, crate=crate,
        )
