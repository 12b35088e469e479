"""API client for the CopyForge REST API."""

from __future__ import annotations

from typing import Any

import httpx


class CopyForgeClient:
    """HTTP client wrapping the CopyForge API endpoints."""

    def __init__(self, base_url: str = "http://localhost:8400", user_id: str | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        headers = {}
        if user_id:
            headers["X-User-Id"] = user_id
        # Generation and scraping run the full pipeline inline
        self._client = httpx.Client(base_url=f"{self.base_url}/api/v1", headers=headers, timeout=300)

    def _handle(self, resp: httpx.Response) -> Any:
        if resp.status_code >= 400:
            try:
                detail = resp.json().get("detail", resp.text)
            except ValueError:
                detail = resp.text
            raise RuntimeError(f"API error ({resp.status_code}): {detail}")
        if resp.status_code == 204:
            return None
        return resp.json()

    # --- Templates ---

    def list_templates(self, **params: Any) -> list[dict]:
        return self._handle(self._client.get("/templates", params=params))

    def get_default_template(self, platform: str) -> dict:
        return self._handle(self._client.get(f"/templates/default/{platform}"))

    def delete_template(self, template_id: str) -> None:
        self._handle(self._client.delete(f"/templates/{template_id}"))

    # --- Projects ---

    def list_projects(self) -> list[dict]:
        return self._handle(self._client.get("/projects"))

    def get_project(self, project_id: str) -> dict:
        return self._handle(self._client.get(f"/projects/{project_id}"))

    def create_project(self, data: dict) -> dict:
        return self._handle(self._client.post("/projects", json=data))

    def process_assets(self, project_id: str) -> dict:
        return self._handle(self._client.post(f"/projects/{project_id}/assets/process"))

    def generate(self, project_id: str) -> dict:
        return self._handle(self._client.post(f"/projects/{project_id}/generate"))

    # --- Landing pages ---

    def scrape(self, urls: list[str], use_cache: bool = True) -> dict:
        return self._handle(
            self._client.post("/landing-pages/scrape", json={"urls": urls, "use_cache": use_cache})
        )

    # --- Dropbox ---

    def dropbox_files(self, path: str = "", recursive: bool = True) -> list[dict]:
        return self._handle(
            self._client.get(
                "/integrations/dropbox/files", params={"path": path, "recursive": recursive}
            )
        )

    # --- Maintenance ---

    def cleanup(self) -> dict:
        return self._handle(self._client.post("/maintenance/cleanup"))

    def cache_stats(self) -> dict:
        return self._handle(self._client.get("/maintenance/cache-stats"))
