"""End-to-end API tests through the FastAPI app with a SQLite session override."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.infrastructure.database.session import get_db_session
from app.main import create_app

ADMIN = {"X-User-Id": "u-admin", "X-User-Email": "admin@example.com", "X-User-Role": "admin"}
AUTHOR = {"X-User-Id": "u-author", "X-User-Email": "author@example.com", "X-User-Role": "user"}


@pytest_asyncio.fixture
async def client(session_factory):
    app = create_app()

    async def _session_override():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = _session_override
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test/api/v1") as client:
        yield client


async def _create_section(client, name: str, **fields) -> dict:
    response = await client.post("/sections", json={"name": name, **fields}, headers=ADMIN)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def _create_article(client, section_ids: list[str], **fields) -> dict:
    payload = {"title": "VPN setup", "content": "Install the client", "section_ids": section_ids, **fields}
    response = await client.post("/articles", json=payload, headers=AUTHOR)
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.mark.asyncio
async def test_section_lifecycle(client):
    section = await _create_section(client, "Human Resources", description="People stuff")
    assert section["slug"] == "human-resources"

    response = await client.get("/sections/tree")
    body = response.json()
    assert body["success"] is True
    assert [node["name"] for node in body["data"]] == ["Human Resources"]

    response = await client.request(
        "DELETE", f"/sections/{section['id']}", json={"confirmEmail": "ADMIN@example.com"}, headers=ADMIN
    )
    assert response.status_code == 200, response.text
    assert (await client.get("/sections/tree")).json()["data"] == []


@pytest.mark.asyncio
async def test_non_admin_cannot_create_sections(client):
    response = await client.post("/sections", json={"name": "Mine"}, headers=AUTHOR)
    assert response.status_code == 403
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_missing_identity_is_rejected(client):
    response = await client.post("/sections", json={"name": "Anonymous"})
    assert response.status_code == 401
    assert response.json()["message"] == "Authentication required"


@pytest.mark.asyncio
async def test_request_validation_uses_the_envelope(client):
    response = await client.post("/sections", json={"name": ""}, headers=ADMIN)
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"].startswith("name")


@pytest.mark.asyncio
async def test_unknown_section_is_404(client):
    response = await client.get("/sections/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {"success": False, "data": None, "message": "Section not found"}


@pytest.mark.asyncio
async def test_delete_guard_reports_dependents(client):
    section = await _create_section(client, "Docs")
    await _create_article(client, [section["id"]])

    response = await client.post(
        f"/sections/{section['id']}/delete-confirm", json={"confirm_email": "admin@example.com"}, headers=ADMIN
    )
    assert response.status_code == 400
    body = response.json()
    assert body["data"] == {"article_count": 1, "child_count": 0}
    assert "Please move or delete them first." in body["message"]

    mismatch = await client.post(
        f"/sections/{section['id']}/delete-confirm", json={"confirm_email": "x@example.com"}, headers=ADMIN
    )
    assert mismatch.status_code == 400


@pytest.mark.asyncio
async def test_article_flow_updates_section_counts(client):
    section = await _create_section(client, "Docs")
    article = await _create_article(client, [section["id"]], tags="VPN, remote")
    assert article["article_id"] == "AN-00100"
    assert article["tags"] == ["vpn", "remote"]
    assert article["comment_count"] == 0

    fetched = (await client.get(f"/sections/{section['id']}")).json()["data"]
    assert fetched["article_count"] == 1

    response = await client.post(f"/articles/{article['id']}/visibility", headers=AUTHOR)
    assert response.json()["data"]["hidden"] is True
    fetched = (await client.get(f"/sections/{section['id']}")).json()["data"]
    assert fetched["article_count"] == 0

    response = await client.get(f"/articles/by-number/{article['article_id']}")
    assert response.json()["data"]["id"] == article["id"]

    response = await client.get(f"/articles/{article['id']}", headers=ADMIN)
    assert response.json()["data"]["views"] == 1

    response = await client.delete(f"/articles/{article['id']}", headers=AUTHOR)
    assert response.status_code == 200
    assert (await client.get(f"/articles/{article['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_flash_information_requires_duration(client):
    flash = await _create_section(client, "Flash Information")

    response = await client.post(
        "/articles",
        json={"title": "Outage", "content": "Mail is down", "section_ids": [flash["id"]]},
        headers=AUTHOR,
    )
    assert response.status_code == 400

    article = await _create_article(client, [flash["id"]], temporary_duration="72h")
    assert article["is_temporary"] is True
    assert article["temporary_duration"] == "72h"
    assert article["expires_at"] is not None


@pytest.mark.asyncio
async def test_reorder_endpoint(client):
    a = await _create_section(client, "A", order=0)
    await _create_section(client, "B", order=1)

    response = await client.put(f"/sections/{a['id']}/reorder", json={"direction": "down"}, headers=ADMIN)
    assert response.status_code == 200
    assert [s["name"] for s in response.json()["data"]] == ["B", "A"]

    response = await client.put(f"/sections/{a['id']}/reorder", json={"direction": "down"}, headers=ADMIN)
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid move direction"


@pytest.mark.asyncio
async def test_cleanup_endpoint_is_admin_only(client):
    assert (await client.post("/articles/cleanup-expired", headers=AUTHOR)).status_code == 403

    response = await client.post("/articles/cleanup-expired", headers=ADMIN)
    assert response.status_code == 200
    assert response.json()["data"] == {"deleted": 0}


@pytest.mark.asyncio
async def test_search_endpoint(client):
    section = await _create_section(client, "Docs")
    vpn = await _create_article(client, [section["id"]], tags=["remote"])
    await _create_article(client, [section["id"]], title="Printer", content="Paper tray")

    response = await client.get("/articles/search", params={"q": "vpn"})
    assert response.status_code == 200
    assert [a["id"] for a in response.json()["data"]] == [vpn["id"]]

    response = await client.get("/articles/search", params={"q": "remote", "filter": "tag"})
    assert [a["id"] for a in response.json()["data"]] == [vpn["id"]]

    response = await client.get("/articles/search", params={"q": "vpn", "filter": "author"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_attachment_delete_endpoint(client):
    section = await _create_section(client, "Docs")
    attachment = {"originalname": "a.pdf", "filename": "a-1.pdf", "path": "uploads/a-1.pdf", "mimetype": "application/pdf"}
    article = await _create_article(client, [section["id"]], files=[attachment])
    assert article["file_count"] == 1

    response = await client.delete(f"/articles/{article['id']}/files/missing.pdf", headers=AUTHOR)
    assert response.status_code == 404

    response = await client.delete(f"/articles/{article['id']}/files/a-1.pdf", headers=AUTHOR)
    assert response.status_code == 200
    assert response.json()["data"]["files"] == []


@pytest.mark.asyncio
async def test_nested_attachment_names_are_rejected(client):
    section = await _create_section(client, "Docs")
    attachment = {"originalname": "a.txt", "filename": "sub/a.txt", "path": "uploads/sub/a.txt", "mimetype": "text/plain"}
    response = await client.post(
        "/articles",
        json={"title": "T", "content": "C", "section_ids": [section["id"]], "files": [attachment]},
        headers=AUTHOR,
    )
    assert response.status_code == 400
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_bulk_endpoints(client):
    section = await _create_section(client, "Docs")
    first = await _create_article(client, [section["id"]])
    second = await _create_article(client, [section["id"]], title="Second")
    body = {"articleIds": [first["id"], second["id"]]}

    response = await client.post("/articles/bulk/visibility", json={**body, "hidden": True}, headers=AUTHOR)
    assert response.status_code == 403

    response = await client.post("/articles/bulk/visibility", json={**body, "hidden": True}, headers=ADMIN)
    assert response.status_code == 200
    assert response.json()["data"] == {"affected": 2}
    assert (await client.get(f"/sections/{section['id']}")).json()["data"]["article_count"] == 0

    response = await client.post("/articles/bulk/delete", json=body, headers=ADMIN)
    assert response.json()["data"] == {"affected": 2}
    assert (await client.get(f"/articles/{first['id']}")).status_code == 404
