"""
Media library and plain upload tests.

Uploads go to the session's temporary UPLOAD_DESTINATION.
"""

import io
import os

import pytest

from shopadmin.enums import MediaType


PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
MISSING_ID = "00000000-0000-4000-8000-000000000000"


def _file(name="photo.png", content=PNG_BYTES):
    return (io.BytesIO(content), name, "image/png")


def _upload(client, headers, media_type=MediaType.PRODUCT, **fields):
    data = {"file": _file(), "type": media_type, **fields}
    return client.post("/api/admin/media/upload", data=data, headers=headers, content_type="multipart/form-data")


def _on_disk(app, relative_path):
    return os.path.isfile(os.path.join(app.config["UPLOAD_DESTINATION"], relative_path))


class TestMediaLibrary:

    def test_upload_stores_file_and_row(self, app, client, admin_headers):
        resp = _upload(client, admin_headers, alt="Front view")
        assert resp.status_code == 201
        media = resp.json["data"]
        assert media["type"] == MediaType.PRODUCT
        assert media["original_name"] == "photo.png"
        assert media["size"] == len(PNG_BYTES)
        assert media["path"].startswith("products/")
        assert media["url"] == f"/uploads/{media['path']}"
        assert media["alt"] == "Front view"
        assert _on_disk(app, media["path"])

        served = client.get(media["url"])
        assert served.status_code == 200
        assert served.data == PNG_BYTES

    def test_rejects_non_images(self, client, admin_headers):
        data = {"file": (io.BytesIO(b"hello"), "notes.txt", "text/plain"), "type": MediaType.GENERAL}
        resp = client.post("/api/admin/media/upload", data=data, headers=admin_headers,
                           content_type="multipart/form-data")
        assert resp.status_code == 400
        assert resp.json["message"].startswith("Invalid file type")

    def test_missing_file_and_bad_type(self, client, admin_headers):
        resp = client.post("/api/admin/media/upload", data={"type": MediaType.GENERAL}, headers=admin_headers,
                           content_type="multipart/form-data")
        assert resp.status_code == 400
        assert resp.json["message"] == "No file uploaded"

        resp = _upload(client, admin_headers, media_type="poster")
        assert resp.status_code == 400
        assert "type must be one of: category, product, avatar, general" in resp.json["errors"]

    def test_bulk_upload(self, client, admin_headers):
        data = {"files": [_file("a.png"), _file("b.png")], "type": MediaType.GENERAL}
        resp = client.post("/api/admin/media/upload/bulk", data=data, headers=admin_headers,
                           content_type="multipart/form-data")
        assert resp.status_code == 201
        assert sorted(m["original_name"] for m in resp.json["data"]) == ["a.png", "b.png"]

    def test_bulk_upload_writes_nothing_when_one_file_fails(self, app, client, admin_headers):
        general_dir = os.path.join(app.config["UPLOAD_DESTINATION"], "general")
        before = set(os.listdir(general_dir)) if os.path.isdir(general_dir) else set()

        bad = (io.BytesIO(b"hello"), "notes.txt", "text/plain")
        data = {"files": [_file("a.png"), bad], "type": MediaType.GENERAL}
        resp = client.post("/api/admin/media/upload/bulk", data=data, headers=admin_headers,
                           content_type="multipart/form-data")
        assert resp.status_code == 400
        assert resp.json["message"].startswith("Invalid file type")

        after = set(os.listdir(general_dir)) if os.path.isdir(general_dir) else set()
        assert after == before
        listing = client.get("/api/admin/media", headers=admin_headers)
        assert listing.json["data"]["meta"]["total"] == 0

    def test_soft_delete_keeps_file(self, app, client, admin_headers):
        media = _upload(client, admin_headers).json["data"]

        resp = client.patch(f"/api/admin/media/{media['id']}/soft-delete", headers=admin_headers)
        assert resp.status_code == 200
        assert _on_disk(app, media["path"])
        assert client.get(f"/api/admin/media/{media['id']}", headers=admin_headers).status_code == 404

        resp = client.patch(f"/api/admin/media/{media['id']}/restore", headers=admin_headers)
        assert resp.json["data"]["deleted_at"] is None

        resp = client.patch(f"/api/admin/media/{media['id']}/restore", headers=admin_headers)
        assert resp.status_code == 400

    def test_hard_delete_removes_file(self, app, client, admin_headers):
        media = _upload(client, admin_headers).json["data"]

        resp = client.delete(f"/api/admin/media/{media['id']}", headers=admin_headers)
        assert resp.status_code == 200
        assert not _on_disk(app, media["path"])
        assert client.delete(f"/api/admin/media/{media['id']}", headers=admin_headers).status_code == 404

    def test_bulk_delete_accounting(self, app, client, admin_headers):
        media = _upload(client, admin_headers).json["data"]
        resp = client.delete("/api/admin/media/bulk", json={"ids": [media["id"], MISSING_ID]}, headers=admin_headers)
        assert resp.json["data"] == {"success": 1, "failed": 1, "failed_ids": [MISSING_ID]}
        assert not _on_disk(app, media["path"])

    def test_update_list_and_stats(self, client, admin_headers):
        first = _upload(client, admin_headers).json["data"]
        _upload(client, admin_headers, media_type=MediaType.CATEGORY)

        resp = client.patch(f"/api/admin/media/{first['id']}", json={"title": "Hero"}, headers=admin_headers)
        assert resp.json["data"]["title"] == "Hero"

        resp = client.patch(f"/api/admin/media/{first['id']}", json={"path": "../etc"}, headers=admin_headers)
        assert resp.status_code == 400

        resp = client.get("/api/admin/media?type=category", headers=admin_headers)
        assert resp.json["data"]["meta"]["total"] == 1

        stats = client.get("/api/admin/media/stats", headers=admin_headers).json["data"]
        assert stats["total"] == 2
        assert stats["by_type"][MediaType.PRODUCT] == 1
        assert stats["total_size"] == 2 * len(PNG_BYTES)


class TestPlainUpload:

    def test_avatar_open_to_any_authenticated_user(self, client, customer_headers):
        resp = client.post("/api/upload/avatar", data={"file": _file()}, headers=customer_headers,
                           content_type="multipart/form-data")
        assert resp.status_code == 201
        assert resp.json["data"]["path"].startswith("avatars/")

    def test_product_upload_needs_staff(self, client, customer_headers, admin_headers):
        resp = client.post("/api/upload/product", data={"file": _file()}, headers=customer_headers,
                           content_type="multipart/form-data")
        assert resp.status_code == 403

        resp = client.post("/api/upload/product", data={"file": _file()}, headers=admin_headers,
                           content_type="multipart/form-data")
        assert resp.status_code == 201

    def test_delete_upload(self, app, client, admin_headers):
        blob = client.post("/api/upload/general", data={"file": _file()}, headers=admin_headers,
                           content_type="multipart/form-data").json["data"]
        directory, filename = blob["path"].split("/")

        resp = client.delete(f"/api/upload/{directory}/{filename}", headers=admin_headers)
        assert resp.json["message"] == "File deleted successfully"
        assert not _on_disk(app, blob["path"])

        resp = client.delete(f"/api/upload/{directory}/{filename}", headers=admin_headers)
        assert resp.json["message"] == "File not found or already deleted"

    @pytest.mark.parametrize("directory", ["secrets", "uploads"])
    def test_unknown_directory(self, client, admin_headers, directory):
        resp = client.delete(f"/api/upload/{directory}/file.png", headers=admin_headers)
        assert resp.status_code == 404
