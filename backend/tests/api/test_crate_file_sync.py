"""Crate File Sync — write routes driven through the real crate manager.

Tests cover:
    - insert, update, delete, property changes and associate reflected in the
      crate file on disk
    - Changing an eid re-keys the node and repoints links to it
    - Nodes created by a file import reach the crate on the next entity edit
    - The written graph never references a node it does not contain
"""

import json

import pytest

BASE = "/api/v1/entity"


@pytest.fixture
async def crate_path(tmp_path, test_db, seed_session, seed_collection):
    """Point the loaded collection's local crate at a file under tmp_path."""
    path = tmp_path / "ro-crate-metadata.json"
    seed_session.data = {
        "current": {
            "collectionId": seed_collection["id"],
            "local": {"file": str(path)},
            "remote": {},
        },
    }
    await test_db.commit()
    return path


def _graph(path) -> dict[str, dict]:
    crate = json.loads(path.read_text())
    ids = [node["@id"] for node in crate["@graph"]]
    assert len(ids) == len(set(ids)), ids
    return {node["@id"]: node for node in crate["@graph"]}


def _assert_no_dangling_links(graph: dict[str, dict]) -> None:
    for node in graph.values():
        for key, value in node.items():
            if key.startswith("@"):
                continue
            for item in value if isinstance(value, list) else [value]:
                if isinstance(item, dict) and "@id" in item and key != "conformsTo":
                    assert item["@id"] in graph, (node["@id"], key, item)


async def _create(client, auth, entity):
    response = await client.post(BASE, json={"entity": entity}, headers=auth)
    assert response.status_code == 200, response.text
    return response.json()["entity"]


async def test_insert_writes_node(client, auth, crate_path):
    await _create(client, auth, {"@type": "Person", "@id": "#ada", "email": "ada@example.org"})

    graph = _graph(crate_path)
    assert graph["#ada"]["@type"] == "Person"
    assert graph["#ada"]["email"] == "ada@example.org"
    assert "./" in graph


async def test_eid_change_rekeys_node_and_links(client, auth, crate_path):
    ada = await _create(client, auth, {"@type": "Person", "@id": "#ada"})
    await _create(client, auth, {"@type": "CreativeWork", "@id": "#doc", "author": {"@id": "#ada"}})

    response = await client.put(f"{BASE}/{ada['id']}", json={"eid": "#lovelace"}, headers=auth)
    assert response.status_code == 200

    graph = _graph(crate_path)
    assert "#ada" not in graph
    assert graph["#lovelace"]["@type"] == "Person"
    assert graph["#doc"]["author"] == {"@id": "#lovelace"}
    _assert_no_dangling_links(graph)


async def test_delete_removes_node_and_references(client, auth, crate_path):
    ada = await _create(client, auth, {"@type": "Person", "@id": "#ada"})
    await _create(client, auth, {"@type": "CreativeWork", "@id": "#doc", "author": {"@id": "#ada"}})

    response = await client.delete(f"{BASE}/{ada['id']}", headers=auth)
    assert response.status_code == 200

    graph = _graph(crate_path)
    assert "#ada" not in graph
    assert "author" not in graph["#doc"]


async def test_property_changes_follow_the_entity(client, auth, crate_path):
    ada = await _create(client, auth, {"@type": "Person", "@id": "#ada"})
    url = f"{BASE}/{ada['id']}/property"

    prop = (await client.post(
        url, json={"property": "email", "value": "ada@example.org"}, headers=auth,
    )).json()["property"]
    assert _graph(crate_path)["#ada"]["email"] == "ada@example.org"

    await client.put(f"{url}/{prop['id']}", json={"value": "ada@lovelace.org"}, headers=auth)
    assert _graph(crate_path)["#ada"]["email"] == "ada@lovelace.org"

    await client.delete(f"{url}/{prop['id']}", headers=auth)
    assert "email" not in _graph(crate_path)["#ada"]


async def test_associate_writes_link(client, auth, crate_path):
    ada = await _create(client, auth, {"@type": "Person", "@id": "#ada"})
    doc = await _create(client, auth, {"@type": "CreativeWork", "@id": "#doc"})

    response = await client.put(
        f"{BASE}/{doc['id']}/associate",
        json={"property": "author", "tgtEntityId": ada["id"]},
        headers=auth,
    )
    assert response.status_code == 200

    graph = _graph(crate_path)
    assert graph["#doc"]["author"] == {"@id": "#ada"}
    _assert_no_dangling_links(graph)


async def test_imported_files_reach_crate_on_next_edit(client, auth, crate_path):
    imported = await client.post(
        "/api/v1/files", json={"files": [{"path": "data/a.csv", "size": 12}]}, headers=auth,
    )
    assert imported.status_code == 200
    assert not crate_path.exists()

    root_id = await _root_id(client, auth)
    response = await client.post(
        f"{BASE}/{root_id}/property",
        json={"property": "license", "value": "CC-BY-4.0"},
        headers=auth,
    )
    assert response.status_code == 200

    graph = _graph(crate_path)
    assert graph["./"]["hasPart"] == {"@id": "data/"}
    assert graph["data/"]["hasPart"] == {"@id": "data/a.csv"}
    assert graph["data/a.csv"]["contentSize"] == "12"
    _assert_no_dangling_links(graph)


async def _root_id(client, auth) -> str:
    response = await client.get(f"{BASE}/RootDataset", headers=auth)
    return response.json()["entity"]["id"]
