"""Tests for template rendering and the template service."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from postgrest.exceptions import APIError

from copy_forge.core.audit import AuditLogger
from copy_forge.core.default_templates import DEFAULT_SYSTEM_PROMPT, SYSTEM_USER_ID
from copy_forge.core.templates import (
    NO_ASSETS,
    NO_LANDING_PAGES,
    TABLE,
    GenerationContext,
    PromptTemplateService,
    build_prompt_from_template,
)
from copy_forge.db.models import PromptSection, TemplateBody
from copy_forge.errors import NotFoundError, PermissionDeniedError


def section(id: str, content: str, order: int) -> PromptSection:
    return PromptSection(id=id, name=id.title(), content=content, order=order)


@pytest.fixture
def service(mock_db):
    return PromptTemplateService(mock_db, AuditLogger(mock_db))


class TestRendering:
    def test_sections_are_sorted_and_joined(self):
        body = TemplateBody(
            platform="facebook",
            system_prompt="SYSTEM",
            sections=[section("b", "second", 2), section("a", "first", 1)],
        )
        prompt = build_prompt_from_template(body, GenerationContext(project_name="P"))
        assert prompt == "SYSTEM\n\nfirst\n\nsecond"

    def test_placeholders_are_substituted(self):
        body = TemplateBody(
            platform="facebook",
            system_prompt="SYSTEM",
            sections=[
                section("s", "{projectName}|{variationType}|{variationCount}", 1),
                section("a", "{assetInterpretations}", 2),
                section("l", "{landingPageContent}", 3),
            ],
        )
        context = GenerationContext(
            project_name="Summer Sale",
            variation_count=3,
            variation_type="storytelling",
            asset_interpretations=["A red shoe", "A beach video"],
            landing_page_content=["Landing page text"],
        )
        prompt = build_prompt_from_template(body, context)
        assert "Summer Sale|storytelling|3" in prompt
        assert "Asset 1: A red shoe\nAsset 2: A beach video" in prompt
        assert "Page 1: Landing page text" in prompt

    def test_empty_lists_use_sentinels(self):
        body = TemplateBody(
            platform="facebook",
            system_prompt="S",
            sections=[section("a", "{assetInterpretations}", 1), section("l", "{landingPageContent}", 2)],
        )
        prompt = build_prompt_from_template(body, GenerationContext(project_name="P"))
        assert NO_ASSETS in prompt
        assert NO_LANDING_PAGES in prompt

    def test_unknown_placeholders_are_left_alone(self):
        body = TemplateBody(platform="facebook", system_prompt="S", sections=[section("x", "{brandVoice}", 1)])
        assert "{brandVoice}" in build_prompt_from_template(body, GenerationContext(project_name="P"))

    def test_rendering_is_deterministic(self):
        body = TemplateBody(
            platform="google",
            system_prompt="S",
            sections=[section("a", "{projectName}", 1), section("b", "{assetInterpretations}", 2)],
        )
        context = GenerationContext(project_name="P", asset_interpretations=["x"])
        assert build_prompt_from_template(body, context) == build_prompt_from_template(body, context)


class TestDefaults:
    def test_default_is_created_once(self, service, mock_db):
        first = service.get_default_template("facebook")
        second = service.get_default_template("facebook")

        assert first.id == second.id
        assert first.is_default is True
        assert first.user_id == SYSTEM_USER_ID
        assert first.name == "Default Facebook Template"
        assert first.template.system_prompt == DEFAULT_SYSTEM_PROMPT
        assert [s.order for s in first.template.sections] == [1, 2, 3, 4, 5, 6]
        assert len(mock_db.select(TABLE)) == 1

    def test_each_platform_has_its_own_default(self, service, mock_db):
        for platform in ("facebook", "google", "tiktok"):
            assert service.get_default_template(platform).template.platform == platform
        assert len(mock_db.select(TABLE)) == 3

    def test_race_loser_reads_the_winner(self, service, mock_db):
        winner = mock_db.insert(TABLE, {
            "user_id": SYSTEM_USER_ID,
            "name": "Default Google Template",
            "prompt_type": "ad_copy",
            "is_default": True,
            "template": {"platform": "google", "system_prompt": "S", "sections": []},
        })
        original_select = mock_db.select
        calls = {"n": 0}

        def select_missing_first(table, *args, **kwargs):
            calls["n"] += 1
            if calls["n"] == 1:
                return []
            return original_select(table, *args, **kwargs)

        def insert_conflict(table, data):
            raise APIError({"message": "duplicate key", "code": "23505"})

        with patch.object(mock_db, "select", side_effect=select_missing_first), \
             patch.object(mock_db, "insert", side_effect=insert_conflict):
            template = service.get_default_template("google")

        assert template.id == winner["id"]


class TestOwnership:
    def test_create_and_list(self, service):
        service.get_default_template("facebook")
        mine = service.create_template("user-1", "Mine", "facebook", [], "S")
        service.create_template("user-2", "Theirs", "facebook", [], "S")

        visible = service.list_templates("user-1")
        ids = {t.id for t in visible}
        assert mine.id in ids
        assert all(t.user_id in ("user-1", SYSTEM_USER_ID) for t in visible)
        assert len(visible) == 2

    def test_list_filters_by_platform(self, service):
        service.create_template("user-1", "FB", "facebook", [], "S")
        service.create_template("user-1", "TT", "tiktok", [], "S")
        assert [t.name for t in service.list_templates("user-1", platform="tiktok")] == ["TT"]

    def test_owner_can_update(self, service, mock_db):
        created = service.create_template("user-1", "Mine", "facebook", [], "S")
        updated = service.update_template(
            created.id, "user-1", name="Renamed", sections=[section("a", "x", 1)]
        )
        assert updated.name == "Renamed"
        assert updated.template.sections[0].content == "x"
        assert updated.template.system_prompt == "S"
        actions = [e["action"] for e in mock_db.select("audit_log")]
        assert actions == ["template.created", "template.updated"]

    def test_non_owner_cannot_update(self, service):
        created = service.create_template("user-1", "Mine", "facebook", [], "S")
        with pytest.raises(PermissionDeniedError):
            service.update_template(created.id, "user-2", name="Hijack")

    def test_default_cannot_be_deleted(self, service):
        default = service.get_default_template("facebook")
        with pytest.raises(PermissionDeniedError, match="Cannot delete default templates"):
            service.delete_template(default.id, SYSTEM_USER_ID)

    def test_non_owner_cannot_delete(self, service):
        created = service.create_template("user-1", "Mine", "facebook", [], "S")
        with pytest.raises(PermissionDeniedError):
            service.delete_template(created.id, "user-2")

    def test_owner_deletes(self, service):
        created = service.create_template("user-1", "Mine", "facebook", [], "S")
        service.delete_template(created.id, "user-1")
        with pytest.raises(NotFoundError):
            service.get_template(created.id)
