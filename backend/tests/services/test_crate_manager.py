"""Local Crate Manager — tests for replaying actions onto a crate file on disk.

Tests cover:
    - Missing file starts from the RO-Crate skeleton
    - insert/update re-render from the loader; remove uses the action's eid
    - previousEid on an update re-keys the node; missing link targets are added
    - save_crate writes JSON (directory targets get the crate file name) and
      hands the crate to the uploader
"""

import json
from types import SimpleNamespace
from uuid import uuid4

from crate_api.core.crate_document import find_node
from crate_api.infrastructure.crate import LocalCrateManager


def _loader(entities_by_id):
    calls = []

    async def load(collection_id, entity_id):
        calls.append((collection_id, entity_id))
        return entities_by_id[entity_id]

    load.calls = calls
    return load


ALICE = {
    "id": "e-1", "eid": "#alice", "etype": "Person", "name": "Alice",
    "properties": [{"property": "email", "value": "a@example.org"}],
}


async def test_update_crate_without_file_uses_skeleton(tmp_path):
    loader = _loader({"e-1": ALICE})
    manager = LocalCrateManager(load_entity=loader)
    crate = await manager.update_crate(
        None, uuid4(), [{"name": "insert", "entity": {"id": "e-1"}}],
    )
    assert find_node(crate, "./") is not None
    assert find_node(crate, "#alice")["email"] == "a@example.org"


async def test_update_crate_reads_existing_file_and_removes(tmp_path):
    path = tmp_path / "ro-crate-metadata.json"
    path.write_text(json.dumps({
        "@context": "https://w3id.org/ro/crate/1.1/context",
        "@graph": [
            {"@id": "./", "@type": "Dataset", "author": {"@id": "#bob"}},
            {"@id": "#bob", "@type": "Person"},
        ],
    }))
    manager = LocalCrateManager(load_entity=_loader({}))

    crate = await manager.update_crate(
        str(path), uuid4(), [{"name": "remove", "entity": {"eid": "#bob"}}],
    )

    assert find_node(crate, "#bob") is None
    assert "author" not in find_node(crate, "./")


async def test_update_actions_reload_entity_from_loader():
    collection_id = uuid4()
    loader = _loader({"e-1": ALICE})
    manager = LocalCrateManager(load_entity=loader)
    await manager.update_crate(
        None, collection_id, [{"name": "update", "entity": {"id": "e-1"}}],
    )
    assert loader.calls == [(collection_id, "e-1")]


async def test_save_crate_writes_file_into_directory(tmp_path):
    uploads = []

    class _Uploader:
        async def upload(self, **kwargs):
            uploads.append(kwargs)

    manager = LocalCrateManager(load_entity=_loader({}), uploader=_Uploader())
    session = SimpleNamespace(id=uuid4(), user_id=None, data={})
    crate = {"@graph": [{"@id": "./"}]}

    await manager.save_crate(
        session=session, user=None, resource="onedrive", parent="p1",
        local_file=str(tmp_path), crate=crate,
    )

    written = json.loads((tmp_path / "ro-crate-metadata.json").read_text())
    assert written == crate
    assert uploads[0]["resource"] == "onedrive"
    assert uploads[0]["parent"] == "p1"


async def test_save_crate_without_local_file_only_uploads(tmp_path):
    manager = LocalCrateManager(load_entity=_loader({}))
    session = SimpleNamespace(id=uuid4(), user_id=None, data={})
    await manager.save_crate(
        session=session, user=None, resource=None, parent=None,
        local_file=None, crate={"@graph": []},
    )
    assert list(tmp_path.iterdir()) == []


async def test_update_crate_renames_from_file(tmp_path):
    path = tmp_path / "ro-crate-metadata.json"
    path.write_text(json.dumps({
        "@context": "https://w3id.org/ro/crate/1.1/context",
        "@graph": [
            {"@id": "./", "@type": "Dataset"},
            {"@id": "#alice", "@type": "Person"},
            {"@id": "#doc", "@type": "CreativeWork", "author": {"@id": "#alice"}},
        ],
    }))
    renamed = {**ALICE, "eid": "#lovelace"}
    manager = LocalCrateManager(load_entity=_loader({"e-1": renamed}))

    crate = await manager.update_crate(str(path), uuid4(), [
        {"name": "update", "entity": {"id": "e-1", "previousEid": "#alice"}},
    ])

    ids = [n["@id"] for n in crate["@graph"]]
    assert ids == ["./", "#lovelace", "#doc"]
    assert find_node(crate, "#doc")["author"] == {"@id": "#lovelace"}
    assert find_node(crate, "#lovelace")["email"] == "a@example.org"


async def test_update_crate_adds_missing_link_targets_transitively():
    root = {
        "id": "root", "eid": "./", "etype": "Dataset", "name": "Root",
        "properties": [{"property": "hasPart", "tgtEntityId": "d-1", "tgtEid": "data/"}],
    }
    folder = {
        "id": "d-1", "eid": "data/", "etype": "Dataset", "name": "data",
        "properties": [{"property": "hasPart", "tgtEntityId": "f-1", "tgtEid": "data/a.csv"}],
    }
    csv = {"id": "f-1", "eid": "data/a.csv", "etype": "File", "name": "a.csv", "properties": []}
    loader = _loader({"root": root, "d-1": folder, "f-1": csv})
    manager = LocalCrateManager(load_entity=loader)

    crate = await manager.update_crate(
        None, uuid4(), [{"name": "update", "entity": {"id": "root"}}],
    )

    assert find_node(crate, "./")["hasPart"] == {"@id": "data/"}
    assert find_node(crate, "data/")["hasPart"] == {"@id": "data/a.csv"}
    assert find_node(crate, "data/a.csv")["@type"] == "File"
    assert [c[1] for c in loader.calls] == ["root", "d-1", "f-1"]
