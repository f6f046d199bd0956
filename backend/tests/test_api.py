import asyncio
from datetime import datetime, timedelta, timezone

import pytest

import main
from auth import create_owner_token
from api.transfers.repositories import transfers_repository
from api.upload.controllers import upload_controller
from api.upload.services import upload_service


def _upload(client, data=b"hello api", name="hello.txt", **form):
    return client.post(
        "/api/transfers",
        files={"file": (name, data, "text/plain")},
        data=form,
    )


def _owner_headers(owner_id):
    return {"X-Owner-Token": create_owner_token(owner_id)}


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


class TestCreate:
    def test_multipart_upload(self, client):
        response = _upload(client, ttl_minutes="5")

        assert response.status_code == 201
        body = response.json()
        assert body["share_url"] == f"http://testserver/download/{body['link_id']}"
        assert body["file_name"] == "hello.txt"
        assert body["file_size_bytes"] == 9
        assert body["password_required"] is False
        assert body["manage_key"]
        assert "storage_path" not in body

    def test_streamed_put_upload(self, client):
        response = client.put(
            "/docs/report.txt",
            content=b"streamed body",
            headers={"X-TTL-Minutes": "60", "X-Password": "s3cr3t"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["file_name"] == "report.txt"
        assert body["password_required"] is True

    def test_owned_upload_has_no_manage_key(self, client):
        response = client.post(
            "/api/transfers",
            files={"file": ("a.txt", b"a", "text/plain")},
            headers=_owner_headers("alice"),
        )
        assert response.status_code == 201
        assert response.json()["manage_key"] is None
        assert transfers_repository.get(response.json()["link_id"]).owner_id == "alice"

    def test_missing_file_is_bad_request(self, client):
        response = client.post("/api/transfers", data={"ttl_minutes": "5"})
        assert response.status_code == 400

    def test_invalid_ttl_is_bad_request(self, client):
        assert _upload(client, ttl_minutes="7").status_code == 400
        assert _upload(client, ttl_minutes="soon").status_code == 400
        response = client.put("/a.txt", content=b"x", headers={"X-TTL-Minutes": "soon"})
        assert response.status_code == 400

    def test_too_large_upload(self, client, monkeypatch):
        monkeypatch.setattr(upload_service, "MAX_FILE_SIZE", 4)
        monkeypatch.setattr(upload_controller, "MAX_FILE_SIZE", 4)

        assert _upload(client, data=b"12345").status_code == 413
        assert client.put("/big.bin", content=b"12345").status_code == 413

    def test_invalid_owner_token_is_rejected(self, client):
        response = client.post(
            "/api/transfers",
            files={"file": ("a.txt", b"a", "text/plain")},
            headers={"X-Owner-Token": "alice.forged"},
        )
        assert response.status_code == 401


class TestMetadata:
    def test_safe_metadata(self, client):
        link_id = _upload(client, password="s3cr3t").json()["link_id"]

        response = client.get(f"/api/transfers/{link_id}")

        assert response.status_code == 200
        body = response.json()
        assert body["password_required"] is True
        assert body["download_count"] == 0
        assert "storage_path" not in body
        assert "credential_hash" not in body

    def test_unknown_and_expired(self, client, make_transfer):
        assert client.get("/api/transfers/missing").status_code == 404

        past = datetime.now(timezone.utc) - timedelta(minutes=5)
        expired = make_transfer(ttl_minutes=1, now=past)
        response = client.get(f"/api/transfers/{expired.link_id}")
        assert response.status_code == 410
        assert "file_name" not in response.text


class TestDownload:
    def test_download_unprotected(self, client):
        link_id = _upload(client, data=b"file bytes", name="notes.txt").json()["link_id"]

        response = client.get(f"/download/{link_id}")

        assert response.status_code == 200
        assert response.content == b"file bytes"
        assert response.headers["content-type"].startswith("text/plain")
        assert 'filename="notes.txt"' in response.headers["content-disposition"]
        assert response.headers["x-download-count"] == "1"

    def test_password_flow(self, client):
        link_id = _upload(client, password="s3cr3t").json()["link_id"]

        assert client.get(f"/download/{link_id}").status_code == 401

        wrong = client.post(f"/download/{link_id}", data={"password": "wrong"})
        assert wrong.status_code == 403
        assert wrong.json()["detail"] == "Incorrect password"
        assert client.get(f"/api/transfers/{link_id}").json()["download_count"] == 0

        right = client.post(f"/download/{link_id}", data={"password": "s3cr3t"})
        assert right.status_code == 200
        assert right.content == b"hello api"
        assert client.get(f"/api/transfers/{link_id}").json()["download_count"] == 1

    def test_expired_and_unknown(self, client, make_transfer):
        past = datetime.now(timezone.utc) - timedelta(minutes=5)
        expired = make_transfer(ttl_minutes=1, now=past, password="s3cr3t")

        assert client.post(f"/download/{expired.link_id}", data={"password": "s3cr3t"}).status_code == 410
        assert client.get("/download/missing").status_code == 404

    def test_non_ascii_file_name(self, client, make_transfer):
        created = make_transfer(file_name="résumé.txt")
        response = client.get(f"/download/{created.link_id}")
        assert 'filename="r?sum?.txt"' in response.headers["content-disposition"]
        assert "filename*=UTF-8''r%C3%A9sum%C3%A9.txt" in response.headers["content-disposition"]


class TestManagement:
    def test_owner_lists_and_deletes(self, client):
        headers = _owner_headers("alice")
        link_id = client.post(
            "/api/transfers",
            files={"file": ("a.txt", b"a", "text/plain")},
            headers=headers,
        ).json()["link_id"]
        _upload(client)

        listed = client.get("/api/transfers", headers=headers).json()
        assert [t["link_id"] for t in listed] == [link_id]

        assert client.delete(f"/api/transfers/{link_id}", headers=_owner_headers("bob")).status_code == 403
        assert client.delete(f"/api/transfers/{link_id}", headers=headers).status_code == 204
        assert client.get(f"/download/{link_id}").status_code == 404
        assert client.delete(f"/api/transfers/{link_id}", headers=headers).status_code == 404

    def test_manage_key_deletes_anonymous_upload(self, client):
        body = _upload(client).json()

        forbidden = client.delete(f"/api/transfers/{body['link_id']}", headers={"X-Manage-Key": "nope"})
        assert forbidden.status_code == 403
        assert client.get(f"/download/{body['link_id']}").status_code == 200

        response = client.delete(
            f"/api/transfers/{body['link_id']}", headers={"X-Manage-Key": body["manage_key"]}
        )
        assert response.status_code == 204

    @pytest.mark.parametrize("headers", [{}, {"X-Owner-Token": "bogus"}])
    def test_listing_requires_valid_owner_token(self, client, headers):
        assert client.get("/api/transfers", headers=headers).status_code == 401


def test_shutdown_waits_for_cleanup_task(monkeypatch):
    monkeypatch.setattr(main, "CLEANUP_INTERVAL_SECONDS", 60)

    async def run_app():
        async with main.lifespan(main.app):
            await asyncio.sleep(0)
        return [t for t in asyncio.all_tasks() if t is not asyncio.current_task()]

    assert asyncio.run(run_app()) == []
