"""API tests for project, asset and generation endpoints."""

from __future__ import annotations

from unittest.mock import AsyncMock

from copy_forge.core.generator import get_generator
from copy_forge.core.interpreter import get_asset_interpreter


def create_project(client, headers, **overrides):
    payload = {"name": "Summer Sale", "platform": "facebook", "variation_count": 2, **overrides}
    resp = client.post("/api/v1/projects", json=payload, headers=headers)
    assert resp.status_code == 201
    return resp.json()


class TestProjects:
    def test_create_and_get(self, client, headers):
        project = create_project(client, headers)
        assert project["status"] == "draft"
        assert project["system_prompt"]

        resp = client.get(f"/api/v1/projects/{project['id']}", headers=headers)
        assert resp.status_code == 200
        assert resp.json()["name"] == "Summer Sale"

    def test_requires_user_header(self, client):
        resp = client.get("/api/v1/projects")
        assert resp.status_code == 422

    def test_other_users_project_is_404(self, client, headers):
        project = create_project(client, headers)
        resp = client.get(f"/api/v1/projects/{project['id']}", headers={"X-User-Id": "someone-else"})
        assert resp.status_code == 404

    def test_list_is_scoped_to_user(self, client, headers):
        create_project(client, headers)
        create_project(client, {"X-User-Id": "user-2"})
        resp = client.get("/api/v1/projects", headers=headers)
        assert len(resp.json()) == 1

    def test_variation_count_bounds(self, client, headers):
        resp = client.post(
            "/api/v1/projects", json={"name": "x", "variation_count": 11}, headers=headers
        )
        assert resp.status_code == 422


class TestAssets:
    def test_add_asset_classifies_file(self, client, headers):
        project = create_project(client, headers)
        resp = client.post(
            f"/api/v1/projects/{project['id']}/assets",
            json={"remote_file_id": "id:1", "file_name": "hero.PNG", "remote_path": "/hero.PNG"},
            headers=headers,
        )
        assert resp.status_code == 201
        assert resp.json()["file_type"] == "image"
        assert resp.json()["mime_type"] == "image/png"

    def test_unsupported_file_is_400(self, client, headers):
        project = create_project(client, headers)
        resp = client.post(
            f"/api/v1/projects/{project['id']}/assets",
            json={"remote_file_id": "id:2", "file_name": "deck.pdf", "remote_path": "/deck.pdf"},
            headers=headers,
        )
        assert resp.status_code == 400

    def test_process_assets_uses_cache(self, client, app, headers):
        project = create_project(client, headers)
        client.post(
            f"/api/v1/projects/{project['id']}/assets",
            json={"remote_file_id": "id:1", "file_name": "hero.png", "remote_path": "/hero.png"},
            headers=headers,
        )
        interpreter = app.dependency_overrides[get_asset_interpreter]()
        interpreter.cache.put("id:1", "image", "A hero shot", "vision")

        resp = client.post(f"/api/v1/projects/{project['id']}/assets/process", headers=headers)

        assert resp.status_code == 200
        body = resp.json()
        assert body["total"] == 1
        assert body["from_cache"] == 1
        assert body["results"][0]["interpretation"] == "A hero shot"

    def test_process_without_dropbox_reports_download_failure(self, client, headers):
        project = create_project(client, headers)
        client.post(
            f"/api/v1/projects/{project['id']}/assets",
            json={"remote_file_id": "id:9", "file_name": "clip.mp4", "remote_path": "/clip.mp4"},
            headers=headers,
        )
        resp = client.post(f"/api/v1/projects/{project['id']}/assets/process", headers=headers)
        assert resp.status_code == 200
        result = resp.json()["results"][0]
        assert result["success"] is False
        assert result["failed_stage"] == "download"


class TestGenerate:
    def test_generate_and_list(self, client, headers):
        project = create_project(client, headers)

        resp = client.post(f"/api/v1/projects/{project['id']}/generate", headers=headers)

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "completed"
        assert len(body["generations"]) == 2
        assert body["generations"][0]["content"]["headline"] == "Rest Easy"

        listed = client.get(f"/api/v1/projects/{project['id']}/generations", headers=headers)
        assert [g["variation_number"] for g in listed.json()] == [1, 2]

        status = client.get(f"/api/v1/projects/{project['id']}", headers=headers).json()["status"]
        assert status == "completed"

    def test_upstream_failure_is_502(self, client, app, headers):
        from copy_forge.errors import UpstreamError

        project = create_project(client, headers)
        generator = app.dependency_overrides[get_generator]()
        generator._llm.generate_text = AsyncMock(side_effect=UpstreamError("Gemini returned 500"))

        resp = client.post(f"/api/v1/projects/{project['id']}/generate", headers=headers)

        assert resp.status_code == 502
        status = client.get(f"/api/v1/projects/{project['id']}", headers=headers).json()["status"]
        assert status == "failed"

    def test_generate_unknown_project_is_404(self, client, headers):
        resp = client.post("/api/v1/projects/nope/generate", headers=headers)
        assert resp.status_code == 404
