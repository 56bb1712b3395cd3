"""OneDrive Route — tests for POST /api/v1/onedrive/configuration."""

from sqlalchemy import select

from crate_api.models.session import Session as SessionModel

URL = "/api/v1/onedrive/configuration"


async def _session_data(test_db, session_id) -> dict:
    result = await test_db.execute(
        select(SessionModel)
        .where(SessionModel.id == session_id)
        .execution_options(populate_existing=True),
    )
    return result.scalar_one().data


async def test_saves_configuration_and_keeps_current(client, auth, seed_session, test_db):
    config = {"token": {"access_token": "abc"}, "drive_id": "d1"}
    response = await client.post(URL, json=config, headers=auth)
    assert response.status_code == 200
    assert response.json() == {}

    data = await _session_data(test_db, seed_session.id)
    assert data["rclone"] == {"onedrive": config}
    assert "current" in data


async def test_replaces_previous_rclone_block(client, auth, seed_session, test_db):
    await client.post(URL, json={"drive_id": "old"}, headers=auth)
    await client.post(URL, json={"drive_id": "new"}, headers=auth)

    data = await _session_data(test_db, seed_session.id)
    assert data["rclone"] == {"onedrive": {"drive_id": "new"}}


async def test_session_without_user_is_401(client, test_db):
    anonymous = SessionModel(user_id=None, data={})
    test_db.add(anonymous)
    await test_db.commit()

    response = await client.post(
        URL, json={}, headers={"Authorization": f"Bearer {anonymous.id}"},
    )
    assert response.status_code == 401


async def test_missing_authorization_is_401(client):
    response = await client.post(URL, json={})
    assert response.status_code == 401
