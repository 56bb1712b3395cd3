"""Collections Routes — tests for creating and loading collections."""

import uuid

URL = "/api/v1/collections"


async def test_create_then_load_collection(client, auth):
    created = await client.post(URL, json={"name": "  Survey 2024 "}, headers=auth)
    assert created.status_code == 201
    collection = created.json()["collection"]
    assert collection["name"] == "Survey 2024"

    loaded = await client.post(
        f"{URL}/{collection['id']}/load",
        json={"local": {"file": "/data/survey"}, "remote": {"resource": "onedrive"}},
        headers=auth,
    )
    assert loaded.status_code == 200
    assert loaded.json()["current"] == {
        "collectionId": collection["id"],
        "local": {"file": "/data/survey"},
        "remote": {"resource": "onedrive"},
    }

    root = await client.get("/api/v1/entity/RootDataset", headers=auth)
    assert root.json()["entity"]["name"] == "Survey 2024"


async def test_blank_name_is_400(client, auth):
    response = await client.post(URL, json={"name": "   "}, headers=auth)
    assert response.status_code == 400


async def test_load_unknown_collection_is_404(client, auth):
    response = await client.post(f"{URL}/{uuid.uuid4()}/load", headers=auth)
    assert response.status_code == 404
