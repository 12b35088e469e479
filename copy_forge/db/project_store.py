"""Store layer for projects, their assets, and generation records."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

import structlog

from copy_forge.core.default_templates import DEFAULT_SYSTEM_PROMPT
from copy_forge.db.client import SupabaseClient, get_supabase_client
from copy_forge.db.models import AssetRow, GenerationRow, ProjectRow
from copy_forge.errors import NotFoundError

logger = structlog.get_logger()

PROJECT_STATUSES = ("draft", "processing", "completed", "failed")


class ProjectStore:
    """Store operations for ad copy projects."""

    def __init__(self, db: SupabaseClient) -> None:
        self.db = db

    # --- Projects ---

    def create_project(
        self,
        user_id: str,
        name: str,
        platform: str = "facebook",
        landing_page_urls: list[str] | None = None,
        system_prompt: str | None = None,
        variation_count: int = 3,
    ) -> ProjectRow:
        row = self.db.insert(
            "projects",
            {
                "user_id": user_id,
                "name": name,
                "platform": platform,
                "landing_page_urls": landing_page_urls or [],
                "system_prompt": system_prompt or DEFAULT_SYSTEM_PROMPT,
                "variation_count": variation_count,
                "status": "draft",
            },
        )
        logger.info("project.created", project_id=row["id"], platform=platform)
        return ProjectRow(**row)

    def get_project(self, project_id: str, user_id: str) -> ProjectRow:
        """Fetch a project owned by ``user_id``; anything else is NotFound."""
        rows = self.db.select("projects", filters={"id": project_id, "user_id": user_id}, limit=1)
        if not rows:
            raise NotFoundError(f"Project '{project_id}' not found")
        return ProjectRow(**rows[0])

    def list_projects(self, user_id: str) -> list[ProjectRow]:
        rows = self.db.select(
            "projects", filters={"user_id": user_id}, order_by="created_at", ascending=False
        )
        return [ProjectRow(**r) for r in rows]

    def set_status(self, project_id: str, status: str) -> None:
        if status not in PROJECT_STATUSES:
            raise ValueError(f"Invalid project status '{status}'")
        self.db.update_where("projects", {"id": project_id}, {"status": status})
        logger.info("project.status", project_id=project_id, status=status)

    # --- Assets ---

    def add_asset(
        self,
        project_id: str,
        remote_file_id: str,
        file_name: str,
        file_type: str,
        mime_type: str,
        remote_path: str,
        file_size: int = 0,
    ) -> AssetRow:
        existing = self.db.select(
            "assets", filters={"project_id": project_id, "remote_file_id": remote_file_id}, limit=1
        )
        if existing:
            return AssetRow(**existing[0])
        row = self.db.insert(
            "assets",
            {
                "project_id": project_id,
                "remote_file_id": remote_file_id,
                "file_name": file_name,
                "file_type": file_type,
                "mime_type": mime_type,
                "file_size": file_size,
                "remote_path": remote_path,
                "local_path": None,
            },
        )
        return AssetRow(**row)

    def list_assets(self, project_id: str) -> list[AssetRow]:
        rows = self.db.select("assets", filters={"project_id": project_id}, order_by="created_at")
        return [AssetRow(**r) for r in rows]

    def set_asset_local_path(self, asset_id: str, local_path: str | None) -> None:
        self.db.update_where("assets", {"id": asset_id}, {"local_path": local_path})

    # --- Generations ---

    def add_generation(self, data: dict[str, Any]) -> GenerationRow:
        return GenerationRow(**self.db.insert("ad_copy_generations", data))

    def list_generations(self, project_id: str) -> list[GenerationRow]:
        rows = self.db.select(
            "ad_copy_generations", filters={"project_id": project_id}, order_by="variation_number"
        )
        return [GenerationRow(**r) for r in rows]


@lru_cache
def get_project_store() -> ProjectStore:
    """Get cached project store instance."""
    return ProjectStore(get_supabase_client())
