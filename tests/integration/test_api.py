"""
Integration tests for the HTTP API, run against a temporary content root.
"""

import re
import shutil
from unittest.mock import patch

import pytest
from PIL import Image
from starlette.requests import Request

pytestmark = pytest.mark.integration


def jpeg_part(data, filename="photo.jpg", field="photos", content_type="image/jpeg"):
    return (field, (filename, data, content_type))


class TestHealth:
    """Test cases for the probes."""

    def test_liveness(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert re.match(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$", response.json()["timestamp"])

    def test_readiness(self, client):
        response = client.get("/api/health/ready")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ready"
        assert body["checks"]["storage"]["status"] == "healthy"

    def test_readiness_flags_default_password_in_production(self, make_client):
        client = make_client(production=True, admin_password="admin123")

        assert client.get("/api/health/ready").json()["status"] == "not_ready"


class TestAbout:
    """Test cases for the About record."""

    def test_default_record(self, client):
        response = client.get("/api/about")

        assert response.status_code == 200
        assert response.json() == {
            "name": "",
            "profileImage": "",
            "bio": "",
            "gear": [],
            "social": {"email": "", "instagram": "", "twitter": ""},
        }

    def test_replace_requires_auth(self, client):
        response = client.put("/api/about", json={"name": "x"})

        assert response.status_code == 401
        assert response.json() == {"error": "Authentication required"}

    def test_wrong_password(self, client):
        response = client.put("/api/about", json={"name": "x"}, auth=("admin", "nope"))

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid credentials"}

    def test_replace_then_read(self, client, admin_auth):
        record = {"name": "Kiro", "bio": "hi", "gear": [], "social": {}, "profileImage": ""}

        assert client.put("/api/about", json=record, auth=admin_auth).json() == {"success": True}
        assert client.get("/api/about").json() == record

    def test_profile_photo(self, client, admin_auth, image_bytes):
        data = image_bytes()

        response = client.post("/api/about/photo", files=[jpeg_part(data, "me.jpg", field="photo")], auth=admin_auth)

        assert response.status_code == 200
        assert re.match(r"^/assets/profile\.jpg\?t=\d+$", response.json()["url"])
        assert client.get("/assets/profile.jpg").content == data


class TestJournals:
    """Test cases for the journal endpoints."""

    def test_create_and_get(self, client, admin_auth):
        response = client.post(
            "/api/journals",
            json={"id": "Trip 2024", "title": "Trip", "date": "2024-03-01", "description": "Spring"},
            auth=admin_auth,
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "id": "Trip_2024"}

        journal = client.get("/api/journals/Trip_2024").json()
        assert journal == {
            "id": "Trip_2024",
            "title": "Trip",
            "date": "2024-03-01",
            "description": "Spring",
            "cover": "/content/journals/Trip_2024/cover.jpg",
            "photos": [],
        }

    def test_create_requires_id(self, client, admin_auth):
        response = client.post("/api/journals", json={"title": "No id"}, auth=admin_auth)

        assert response.status_code == 400
        assert "error" in response.json()

    def test_create_requires_auth(self, client):
        assert client.post("/api/journals", json={"id": "x"}).status_code == 401

    def test_partial_update(self, client, admin_auth):
        client.post("/api/journals", json={"id": "trip", "title": "Trip", "description": "Long"}, auth=admin_auth)

        response = client.put("/api/journals/trip", json={"description": ""}, auth=admin_auth)

        assert response.json() == {"success": True}
        journal = client.get("/api/journals/trip").json()
        assert journal["title"] == "Trip"
        assert journal["description"] == ""

    def test_update_unknown_journal(self, client, admin_auth):
        response = client.put("/api/journals/ghost", json={"title": "x"}, auth=admin_auth)

        assert response.status_code == 404
        assert response.json() == {"error": "Journal not found"}

    def test_get_unknown_journal(self, client):
        assert client.get("/api/journals/ghost").json() == {"error": "Journal not found"}

    def test_listing_skips_corrupt_entries(self, client, admin_auth, app_config):
        client.post("/api/journals", json={"id": "older", "date": "2023-01-01"}, auth=admin_auth)
        client.post("/api/journals", json={"id": "newer", "date": "2024-01-01"}, auth=admin_auth)
        broken = app_config.journals_dir / "broken"
        broken.mkdir()
        (broken / "info.json").write_text("{", encoding="utf-8")

        response = client.get("/api/journals")

        assert response.status_code == 200
        assert [journal["id"] for journal in response.json()] == ["newer", "older"]

    def test_photo_upload_cover_and_delete(self, client, admin_auth, image_bytes):
        client.post("/api/journals", json={"id": "trip"}, auth=admin_auth)

        upload = client.post("/api/journals/trip/photos", files=[jpeg_part(image_bytes())], auth=admin_auth)
        cover = client.post(
            "/api/journals/trip/photos?type=cover", files=[jpeg_part(image_bytes(), "front.jpg")], auth=admin_auth
        )

        assert upload.json() == {"success": True, "count": 1}
        assert cover.json() == {"success": True, "count": 1}
        journal = client.get("/api/journals/trip").json()
        assert len(journal["photos"]) == 1
        name = journal["photos"][0]["name"]
        assert re.match(r"^\d{13}-photo\.jpg$", name)
        assert client.get(f"/content/journals/trip/{name}").status_code == 200
        assert client.get("/content/journals/trip/cover.jpg").status_code == 200

        assert client.delete(f"/api/journals/trip/photos/{name}", auth=admin_auth).json() == {"success": True}
        assert client.get("/api/journals/trip").json()["photos"] == []
        assert client.delete(f"/api/journals/trip/photos/{name}", auth=admin_auth).status_code == 404

    def test_upload_to_missing_journal(self, client, admin_auth, image_bytes):
        response = client.post("/api/journals/ghost/photos", files=[jpeg_part(image_bytes())], auth=admin_auth)

        assert response.status_code == 404

    def test_info_json_cannot_be_deleted(self, client, admin_auth):
        client.post("/api/journals", json={"id": "trip"}, auth=admin_auth)

        response = client.delete("/api/journals/trip/photos/info.json", auth=admin_auth)

        assert response.status_code == 400
        assert client.get("/api/journals/trip").status_code == 200

    def test_delete_journal(self, client, admin_auth, app_config):
        client.post("/api/journals", json={"id": "trip"}, auth=admin_auth)

        assert client.delete("/api/journals/trip", auth=admin_auth).json() == {"success": True}
        assert not (app_config.journals_dir / "trip").exists()
        assert client.delete("/api/journals/trip", auth=admin_auth).status_code == 404


class TestMoments:
    """Test cases for the moments photo wall."""

    def test_upload_list_thumbnail_delete(self, client, admin_auth, image_bytes, app_config):
        files = [jpeg_part(image_bytes(size=(800, 600)), "a.jpg"), jpeg_part(image_bytes(), "b.jpg")]

        response = client.post("/api/photos", files=files, auth=admin_auth)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["count"] == 2
        assert all(re.match(r"^\d{13}-[ab]\.jpg$", name) for name in body["files"])

        photos = client.get("/api/photos").json()
        assert sorted(photo["name"] for photo in photos) == sorted(body["files"])
        assert all(photo["url"] == f"/images/{photo['name']}" for photo in photos)

        assert client.app.state.services.thumbnails.wait(timeout=10) is True
        name = body["files"][0]
        thumbnail = client.get(f"/thumbnails/{name}")
        assert thumbnail.status_code == 200
        with Image.open(app_config.moments_thumbnails_dir / name) as image:
            assert image.size == (400, 400)

        assert client.delete(f"/api/photos/{name}", auth=admin_auth).json() == {"success": True}
        assert not (app_config.moments_images_dir / name).exists()
        assert not (app_config.moments_thumbnails_dir / name).exists()

        second = client.delete(f"/api/photos/{name}", auth=admin_auth)
        assert second.status_code == 404
        assert second.json() == {"error": "File not found"}

    def test_upload_requires_auth(self, client, image_bytes, app_config):
        response = client.post("/api/photos", files=[jpeg_part(image_bytes())])

        assert response.status_code == 401
        assert list(app_config.moments_images_dir.iterdir()) == []

    def test_oversize_upload_rejected(self, make_client, admin_auth, app_config):
        client = make_client(max_file_size=1024 * 1024)

        response = client.post("/api/photos", files=[jpeg_part(b"x" * (1024 * 1024 + 1))], auth=admin_auth)

        assert response.status_code == 400
        assert response.json() == {"error": "File too large. Maximum size is 1MB."}
        assert list(app_config.moments_images_dir.iterdir()) == []

    def test_too_many_files(self, make_client, admin_auth, image_bytes, app_config):
        client = make_client(max_files=2)
        files = [jpeg_part(image_bytes(), f"{i}.jpg") for i in range(3)]

        response = client.post("/api/photos", files=files, auth=admin_auth)

        assert response.status_code == 400
        assert response.json() == {"error": "Too many files. Maximum is 2 files."}
        assert list(app_config.moments_images_dir.iterdir()) == []

    def test_wrong_type(self, client, admin_auth):
        response = client.post(
            "/api/photos", files=[jpeg_part(b"GIF89a", "a.gif", content_type="image/gif")], auth=admin_auth
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid file type. Only JPEG, PNG and WebP are allowed."}

    def test_no_files(self, client, admin_auth):
        response = client.post("/api/photos", data={"note": "nothing"}, auth=admin_auth)

        assert response.status_code == 400
        assert response.json() == {"error": "No files uploaded"}

    def test_unreadable_directory(self, client, app_config):
        shutil.rmtree(app_config.moments_images_dir)

        response = client.get("/api/photos")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to read photos"}


class TestFrontendAndStatic:
    """Test cases for static serving and the single-page fallback."""

    def test_spa_fallback(self, client, app_config):
        (app_config.public_dir / "index.html").write_text("<html>app</html>", encoding="utf-8")

        response = client.get("/journal/some-trip")

        assert response.status_code == 200
        assert "app" in response.text
        assert response.headers["cache-control"] == "no-cache"

    def test_public_file_served(self, client, app_config):
        (app_config.public_dir / "index.html").write_text("<html>app</html>", encoding="utf-8")
        (app_config.public_dir / "robots.txt").write_text("User-agent: *", encoding="utf-8")

        assert client.get("/robots.txt").text == "User-agent: *"

    def test_missing_index(self, client):
        assert client.get("/anything").status_code == 404

    def test_unknown_api_route(self, client, app_config):
        (app_config.public_dir / "index.html").write_text("<html>app</html>", encoding="utf-8")

        response = client.get("/api/unknown")

        assert response.status_code == 404
        assert response.json() == {"error": "Not found"}

    def test_development_cache_header(self, client, app_config, write_image):
        write_image(app_config.moments_images_dir / "a.jpg")

        response = client.get("/images/a.jpg")

        assert response.status_code == 200
        assert response.headers["cache-control"] == "no-cache"

    def test_production_cache_header(self, make_client, app_config, write_image):
        write_image(app_config.moments_images_dir / "a.jpg")
        client = make_client(production=True)

        assert client.get("/images/a.jpg").headers["cache-control"] == "public, max-age=31536000"

    def test_missing_static_file(self, client):
        response = client.get("/images/nope.jpg")

        assert response.status_code == 404
        assert "error" in response.json()


class TestRateLimiting:
    """Test cases for per-client request limits."""

    def test_read_endpoints_limited(self, make_client):
        client = make_client(rate_limit_enabled=True, api_rate_limit=(2, 60))

        assert client.get("/api/journals").status_code == 200
        assert client.get("/api/journals").status_code == 200
        response = client.get("/api/journals")

        assert response.status_code == 429
        assert response.json() == {"error": "Too many requests, please try again later."}

    def test_health_not_limited(self, make_client):
        client = make_client(rate_limit_enabled=True, api_rate_limit=(1, 60))

        assert all(client.get("/api/health").status_code == 200 for _ in range(3))


class TestUploadNaming:
    """Test cases for on-disk names of uploaded photos."""

    def test_same_name_twice_in_one_request(self, client, admin_auth, image_bytes, app_config):
        files = [
            jpeg_part(image_bytes(size=(10, 10)), "IMG_0001.jpg"),
            jpeg_part(image_bytes(size=(20, 20)), "IMG_0001.jpg"),
        ]

        body = client.post("/api/photos", files=files, auth=admin_auth).json()
        client.app.state.services.thumbnails.wait(timeout=10)

        assert body["count"] == 2
        assert sorted(path.name for path in app_config.moments_images_dir.iterdir()) == sorted(body["files"])
        sizes = {(photo["width"], photo["height"]) for photo in client.get("/api/photos").json()}
        assert sizes == {(10, 10), (20, 20)}

    def test_long_name_round_trip(self, client, admin_auth, image_bytes):
        client.post("/api/photos", files=[jpeg_part(image_bytes(), "a" * 96 + ".jpg")], auth=admin_auth)
        client.app.state.services.thumbnails.wait(timeout=10)
        (photo,) = client.get("/api/photos").json()

        response = client.delete(f"/api/photos/{photo['name']}", auth=admin_auth)

        assert response.status_code == 200
        assert client.get("/api/photos").json() == []


class TestAdminGuard:
    """Test cases for rejecting unauthenticated writes before the body is read."""

    def test_upload_body_not_parsed_without_credentials(self, client, image_bytes, app_config):
        with patch.object(Request, "form", side_effect=AssertionError("request body was parsed")):
            response = client.post("/api/photos", files=[jpeg_part(image_bytes())])

        assert response.status_code == 401
        assert response.json() == {"error": "Authentication required"}
        assert list(app_config.moments_images_dir.iterdir()) == []

    def test_wrong_password_rejected_before_parsing(self, client, image_bytes):
        with patch.object(Request, "form", side_effect=AssertionError("request body was parsed")):
            response = client.post(
                "/api/journals/trip/photos", files=[jpeg_part(image_bytes())], auth=("admin", "wrong")
            )

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid credentials"}

    def test_malformed_header(self, client):
        response = client.delete("/api/journals/trip", headers={"Authorization": "Basic not-base64!"})

        assert response.status_code == 401
        assert response.json() == {"error": "Authentication required"}

    def test_public_reads_unaffected(self, client):
        assert client.get("/api/journals").status_code == 200
