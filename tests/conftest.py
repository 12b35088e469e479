"""Test fixtures: mock Supabase client, fixed clock, and an API client."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from copy_forge.db.client import SupabaseClient


class MockSupabaseClient(SupabaseClient):
    """In-memory mock of the Supabase client for testing."""

    def __init__(self):
        self._tables: dict[str, list[dict[str, Any]]] = {
            "credentials": [],
            "projects": [],
            "assets": [],
            "asset_interpretation_cache": [],
            "landing_page_cache": [],
            "prompt_templates": [],
            "ad_copy_generations": [],
            "audit_log": [],
        }

    @staticmethod
    def _matches(row: dict[str, Any], filters: dict[str, Any]) -> bool:
        return all(row.get(k) == v for k, v in filters.items())

    def insert(self, table: str, data: dict[str, Any]) -> dict[str, Any]:
        record = {
            "id": str(uuid4()),
            "created_at": datetime.now(timezone.utc).isoformat(),
            "updated_at": datetime.now(timezone.utc).isoformat(),
            **data,
        }
        self._tables.setdefault(table, []).append(record)
        return dict(record)

    def select(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        ascending: bool = True,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        rows = self._tables.get(table, [])
        if filters:
            rows = [r for r in rows if self._matches(r, filters)]
        if order_by:
            rows = sorted(rows, key=lambda r: r.get(order_by, 0), reverse=not ascending)
        if limit:
            rows = rows[:limit]
        return [dict(r) for r in rows]

    def update(self, table: str, id: str, data: dict[str, Any]) -> dict[str, Any]:
        for row in self._tables.get(table, []):
            if row["id"] == id:
                row.update(data)
                if "updated_at" not in data:
                    row["updated_at"] = datetime.now(timezone.utc).isoformat()
                return dict(row)
        raise ValueError(f"Row {id} not found in {table}")

    def update_where(
        self, table: str, filters: dict[str, Any], data: dict[str, Any]
    ) -> list[dict[str, Any]]:
        updated = []
        for row in self._tables.get(table, []):
            if self._matches(row, filters):
                row.update(data)
                updated.append(dict(row))
        return updated

    def delete(self, table: str, id: str) -> None:
        self._tables[table] = [r for r in self._tables.get(table, []) if r["id"] != id]

    def delete_where(self, table: str, filters: dict[str, Any]) -> int:
        before = self._tables.get(table, [])
        kept = [r for r in before if not self._matches(r, filters)]
        self._tables[table] = kept
        return len(before) - len(kept)

    def reset(self):
        for table in self._tables:
            self._tables[table] = []


class FixedClock:
    """Callable clock that tests can move forward."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta) -> None:
        self.now = self.now + delta


@pytest.fixture
def mock_db() -> MockSupabaseClient:
    """Fresh mock database for each test."""
    return MockSupabaseClient()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def user_id() -> str:
    return "user-1"


@pytest.fixture
def headers(user_id) -> dict[str, str]:
    return {"X-User-Id": user_id}


@pytest.fixture
def app(mock_db, tmp_path):
    """FastAPI test app with mocked dependencies."""
    from copy_forge.core.audit import AuditLogger, get_audit_logger
    from copy_forge.core.cleanup import CleanupMonitor, get_cleanup_monitor
    from copy_forge.core.generator import AdCopyGenerator, get_generator
    from copy_forge.core.interpretation_cache import InterpretationCache, get_interpretation_cache
    from copy_forge.core.interpreter import (
        AssetInterpreter,
        ProjectAssetProcessor,
        get_asset_interpreter,
        get_asset_processor,
    )
    from copy_forge.core.landing_cache import LandingPageCache, get_landing_page_cache
    from copy_forge.core.scraper import WebScraper, get_web_scraper
    from copy_forge.core.templates import PromptTemplateService, get_template_service
    from copy_forge.db.client import get_supabase_client
    from copy_forge.db.credential_store import CredentialStore, get_credential_store
    from copy_forge.db.project_store import ProjectStore, get_project_store
    from copy_forge.integrations.dropbox import DropboxGateway, get_dropbox_gateway
    from copy_forge.main import app as _app

    audit = AuditLogger(mock_db)
    projects = ProjectStore(mock_db)
    credentials = CredentialStore(mock_db, audit)
    interpretations = InterpretationCache(mock_db)
    landing = LandingPageCache(mock_db)
    templates = PromptTemplateService(mock_db, audit)
    renderer = AsyncMock(side_effect=RuntimeError("browser unavailable"))
    scraper = WebScraper(landing, renderer=renderer, batch_delay_seconds=0)
    gateway = DropboxGateway(credentials, client_id="cid", client_secret="secret",
                             temp_dir=tmp_path)
    interpreter = AssetInterpreter(interpretations, temp_dir=tmp_path)
    processor = ProjectAssetProcessor(projects, gateway, interpreter)
    llm = AsyncMock()
    llm.model = "gemini-test"
    llm.generate_text.return_value = "PRIMARY_TEXT: Sleep better tonight.\nHEADLINE: Rest Easy"
    generator = AdCopyGenerator(projects, templates, scraper, interpretations, llm=llm)
    monitor = CleanupMonitor(tmp_path)

    _app.dependency_overrides[get_supabase_client] = lambda: mock_db
    _app.dependency_overrides[get_audit_logger] = lambda: audit
    _app.dependency_overrides[get_project_store] = lambda: projects
    _app.dependency_overrides[get_credential_store] = lambda: credentials
    _app.dependency_overrides[get_interpretation_cache] = lambda: interpretations
    _app.dependency_overrides[get_landing_page_cache] = lambda: landing
    _app.dependency_overrides[get_template_service] = lambda: templates
    _app.dependency_overrides[get_web_scraper] = lambda: scraper
    _app.dependency_overrides[get_dropbox_gateway] = lambda: gateway
    _app.dependency_overrides[get_asset_interpreter] = lambda: interpreter
    _app.dependency_overrides[get_asset_processor] = lambda: processor
    _app.dependency_overrides[get_generator] = lambda: generator
    _app.dependency_overrides[get_cleanup_monitor] = lambda: monitor

    yield _app

    _app.dependency_overrides.clear()


@pytest.fixture
def client(app) -> TestClient:
    """HTTP test client."""
    return TestClient(app)
