"""Collections Service — tests for creating and loading collections."""

import uuid

import pytest

from crate_api.core.errors import ResourceNotFoundError
from crate_api.services import collections, entities


async def test_create_collection_adds_root_dataset(test_db):
    collection = await collections.create_collection(test_db, "Field notes", "2024")
    root = await entities.find_root_dataset(test_db, uuid.UUID(collection["id"]))
    assert collection["name"] == "Field notes"
    assert root["name"] == "Field notes"


async def test_load_collection_keeps_other_session_keys(test_db, empty_session, seed_collection):
    empty_session.data = {"rclone": {"onedrive": {"token": "t"}}}
    await test_db.commit()

    current = await collections.load_collection(
        test_db, empty_session, seed_collection["id"],
        local={"file": "/tmp/x.json"},
    )

    assert current["collectionId"] == seed_collection["id"]
    assert empty_session.data["rclone"] == {"onedrive": {"token": "t"}}
    assert empty_session.data["current"]["local"] == {"file": "/tmp/x.json"}


async def test_load_unknown_collection_is_not_found(test_db, empty_session):
    with pytest.raises(ResourceNotFoundError):
        await collections.load_collection(test_db, empty_session, uuid.uuid4())
