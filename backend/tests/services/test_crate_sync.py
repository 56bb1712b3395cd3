"""Crate Sync — tests for the save_crate helper.

Tests cover:
    - Crate location taken from session data
    - Failures surface as CrateSaveError with the generic message
    - sync_wanted honours the testing header and the settings switch
"""

from types import SimpleNamespace
from uuid import uuid4

import pytest

from crate_api.config import get_settings
from crate_api.core.errors import CrateSaveError
from crate_api.services import crate_sync


def _session(data):
    return SimpleNamespace(id=uuid4(), user_id=None, data=data)


async def test_save_crate_passes_session_locations(crate_recorder):
    collection_id = uuid4()
    session = _session({"current": {
        "collectionId": str(collection_id),
        "local": {"file": "/tmp/crate/ro-crate-metadata.json"},
        "remote": {"resource": "onedrive", "parent": "folder-9"},
    }})
    actions = [{"name": "update", "entity": {"id": "e-1"}}]

    await crate_sync.save_crate(None, session, "user", collection_id, actions)

    update = crate_recorder["updates"][0]
    assert update["local_crate_file"] == "/tmp/crate/ro-crate-metadata.json"
    assert update["collection_id"] == collection_id
    assert update["actions"] == actions
    save = crate_recorder["saves"][0]
    assert save["resource"] == "onedrive"
    assert save["parent"] == "folder-9"
    assert save["local_file"] == "/tmp/crate/ro-crate-metadata.json"
    assert save["user"] == "user"
    assert save["session"] is session


async def test_save_crate_wraps_failures(crate_recorder):
    crate_recorder["fail"] = OSError("disk full")
    with pytest.raises(CrateSaveError) as exc_info:
        await crate_sync.save_crate(None, _session({}), None, uuid4(), [])
    assert exc_info.value.message == "Error saving the crate back to the target"


def test_sync_wanted_skips_testing_requests():
    assert crate_sync.sync_wanted({}) is True
    assert crate_sync.sync_wanted({"x-testing": "true"}) is False


def test_sync_wanted_respects_settings(monkeypatch):
    monkeypatch.setattr(get_settings(), "crate_sync_enabled", False)
    assert crate_sync.sync_wanted({}) is False
