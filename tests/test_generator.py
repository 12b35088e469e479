"""Tests for the ad copy generator."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from copy_forge.core.audit import AuditLogger
from copy_forge.core.generator import AdCopyGenerator, estimate_tokens
from copy_forge.core.interpretation_cache import InterpretationCache
from copy_forge.core.scraper import ScrapedContent
from copy_forge.core.templates import NO_ASSETS, PromptTemplateService
from copy_forge.db.project_store import ProjectStore
from copy_forge.errors import NotFoundError, UpstreamError

FACEBOOK_OUTPUT = "PRIMARY_TEXT: Wake up rested.\nHEADLINE: Free Sleep Guide"


@pytest.fixture
def projects(mock_db):
    return ProjectStore(mock_db)


@pytest.fixture
def cache(mock_db):
    return InterpretationCache(mock_db)


@pytest.fixture
def scraper():
    s = MagicMock()
    s.scrape_multiple_urls = AsyncMock(return_value=[])
    return s


@pytest.fixture
def llm():
    client = MagicMock()
    client.model = "gemini-test"
    client.generate_text = AsyncMock(return_value=FACEBOOK_OUTPUT)
    return client


@pytest.fixture
def events():
    publisher = MagicMock()
    publisher.publish_generation_event = AsyncMock(return_value=True)
    return publisher


@pytest.fixture
def generator(mock_db, projects, cache, scraper, llm, events):
    templates = PromptTemplateService(mock_db, AuditLogger(mock_db))
    return AdCopyGenerator(projects, templates, scraper, cache, llm=llm, events=events)


def test_estimate_tokens():
    assert estimate_tokens("") == 0
    assert estimate_tokens("abcd") == 1
    assert estimate_tokens("abcde") == 2


class TestGenerateForProject:
    @pytest.mark.asyncio
    async def test_generates_each_variation(self, generator, projects, llm, events):
        project = projects.create_project("user-1", "Sleep Co", variation_count=3)

        run = await generator.generate_for_project(project.id, "user-1")

        assert run.status == "completed"
        assert [g.variation_number for g in run.generations] == [1, 2, 3]
        assert [g.variation_type for g in run.generations] == [
            "benefits",
            "pain_agitation",
            "storytelling",
        ]
        assert run.generations[0].content["headline"] == "Free Sleep Guide"
        assert run.generations[0].generation_metadata["model"] == "gemini-test"
        assert projects.get_project(project.id, "user-1").status == "completed"
        assert len(projects.list_generations(project.id)) == 3
        assert llm.generate_text.await_count == 3
        events.publish_generation_event.assert_awaited_once()
        assert events.publish_generation_event.call_args[0][1] == "completed"

    @pytest.mark.asyncio
    async def test_prompt_carries_variation_type_and_sentinels(self, generator, projects, llm):
        project = projects.create_project("user-1", "Sleep Co", variation_count=2)

        await generator.generate_for_project(project.id, "user-1")

        first_prompt = llm.generate_text.call_args_list[0][0][0]
        second_prompt = llm.generate_text.call_args_list[1][0][0]
        assert "PROJECT: Sleep Co" in first_prompt
        assert "VARIATION TYPE: benefits" in first_prompt
        assert "VARIATION TYPE: pain_agitation" in second_prompt
        assert NO_ASSETS in first_prompt

    @pytest.mark.asyncio
    async def test_asset_and_landing_context(self, generator, projects, cache, scraper, llm):
        project = projects.create_project(
            "user-1", "Sleep Co", landing_page_urls=["https://example.com"], variation_count=1
        )
        projects.add_asset(project.id, "id:1", "hero.jpg", "image", "image/jpeg", "/hero.jpg")
        projects.add_asset(project.id, "id:2", "promo.mp4", "video", "video/mp4", "/promo.mp4")
        cache.put("id:1", "image", "A cosy bedroom", "vision")
        scraper.scrape_multiple_urls.return_value = [
            ScrapedContent(
                url="https://example.com", title="Sleep Co", content="Best mattress",
                metadata={}, success=True, processing_time_ms=12,
            )
        ]

        await generator.generate_for_project(project.id, "user-1")

        prompt = llm.generate_text.call_args[0][0]
        assert "hero.jpg: A cosy bedroom" in prompt
        assert "promo.mp4: Asset interpretation not available (not processed yet)" in prompt
        assert "Landing page (https://example.com):\nTitle: Sleep Co\nContent: Best mattress" in prompt

    @pytest.mark.asyncio
    async def test_failed_landing_page_is_described(self, generator):
        generator.scraper.scrape_multiple_urls.return_value = [
            ScrapedContent.failed("https://example.com", "Failed to scrape content: timeout", 5)
        ]
        lines = await generator.build_landing_context(["https://example.com"])
        assert lines == [
            "Landing page (https://example.com): Failed to scrape content - "
            "Failed to scrape content: timeout"
        ]

    @pytest.mark.asyncio
    async def test_project_system_prompt_overrides_template(self, generator, projects, llm):
        project = projects.create_project(
            "user-1", "Sleep Co", system_prompt="You write for sleepy people.", variation_count=1
        )
        await generator.generate_for_project(project.id, "user-1")
        assert llm.generate_text.call_args[0][0].startswith("You write for sleepy people.")

    @pytest.mark.asyncio
    async def test_model_failure_marks_project_failed(self, generator, projects, llm, events):
        project = projects.create_project("user-1", "Sleep Co", variation_count=3)
        llm.generate_text.side_effect = [FACEBOOK_OUTPUT, UpstreamError("Gemini returned 500")]

        with pytest.raises(UpstreamError):
            await generator.generate_for_project(project.id, "user-1")

        assert projects.get_project(project.id, "user-1").status == "failed"
        assert projects.list_generations(project.id) == []
        assert events.publish_generation_event.call_args[0][1] == "failed"

    @pytest.mark.asyncio
    async def test_other_users_project_is_not_found(self, generator, projects):
        project = projects.create_project("user-1", "Sleep Co")
        with pytest.raises(NotFoundError):
            await generator.generate_for_project(project.id, "user-2")

    @pytest.mark.asyncio
    async def test_unlabelled_output_is_backfilled(self, generator, projects, llm):
        project = projects.create_project("user-1", "Sleep Co", variation_count=1)
        llm.generate_text.return_value = "I could not follow the format."

        run = await generator.generate_for_project(project.id, "user-1")

        assert run.generations[0].content["headline"] == "Free Offer: Transform Your Results 1"
