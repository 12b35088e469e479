"""Ad Copy Generator: context assembly, model calls, parsing, and persistence for a project run."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

import structlog

from copy_forge.core.ad_content import content_text, parse_ad_content, variation_type_for
from copy_forge.core.events import EventPublisher, get_event_publisher
from copy_forge.core.interpretation_cache import InterpretationCache, get_interpretation_cache
from copy_forge.core.scraper import WebScraper, get_web_scraper
from copy_forge.core.templates import (
    GenerationContext,
    PromptTemplateService,
    build_prompt_from_template,
    get_template_service,
)
from copy_forge.db.models import AssetRow, GenerationRow, ProjectRow, TemplateBody
from copy_forge.db.project_store import ProjectStore, get_project_store
from copy_forge.integrations.gemini import AD_COPY_GENERATION, GeminiClient

logger = structlog.get_logger()


def estimate_tokens(text: str) -> int:
    return math.ceil(len(text) / 4)


@dataclass
class GenerationRun:
    project_id: str
    status: str
    generations: list[GenerationRow] = field(default_factory=list)
    processing_time_ms: int = 0


class AdCopyGenerator:
    """Runs one project through context assembly, generation and persistence.

    The run is all-or-nothing: records are written only after every variation
    has a model response. Missing labels in a response are back-filled, but a
    failed model call or missing API key fails the run and leaves the project
    ``failed``. A project the caller does not own is never touched.
    """

    def __init__(
        self,
        projects: ProjectStore,
        templates: PromptTemplateService,
        scraper: WebScraper,
        cache: InterpretationCache,
        llm: GeminiClient | None = None,
        events: EventPublisher | None = None,
    ) -> None:
        self.projects = projects
        self.templates = templates
        self.scraper = scraper
        self.cache = cache
        self._llm = llm
        self.events = events

    def build_asset_context(self, assets: list[AssetRow]) -> list[str]:
        cached = self.cache.get_many([a.remote_file_id for a in assets])
        lines = []
        for asset in assets:
            entry = cached.get(asset.remote_file_id)
            if entry is not None:
                lines.append(f"{asset.file_name}: {entry.interpretation}")
            else:
                lines.append(
                    f"{asset.file_name}: Asset interpretation not available (not processed yet)"
                )
        return lines

    async def build_landing_context(self, urls: list[str]) -> list[str]:
        if not urls:
            return []
        results = await self.scraper.scrape_multiple_urls(urls)
        lines = []
        for result in results:
            if result.success:
                lines.append(
                    f"Landing page ({result.url}):\nTitle: {result.title}\nContent: {result.content}"
                )
            else:
                lines.append(
                    f"Landing page ({result.url}): Failed to scrape content - {result.error}"
                )
        return lines

    async def _generate_variation(
        self,
        llm: GeminiClient,
        project: ProjectRow,
        template_body: TemplateBody,
        context: GenerationContext,
        index: int,
    ) -> dict[str, Any]:
        number = index + 1
        variation_type = variation_type_for(index)
        context.variation_type = variation_type
        prompt = build_prompt_from_template(template_body, context)

        started = time.monotonic()
        raw = await llm.generate_text(prompt, AD_COPY_GENERATION)
        elapsed = int((time.monotonic() - started) * 1000)

        content = parse_ad_content(project.platform, raw, number, variation_type)
        logger.info(
            "generator.variation_done",
            project_id=project.id,
            variation=number,
            variation_type=variation_type,
        )
        return {
            "project_id": project.id,
            "variation_number": number,
            "platform": project.platform,
            "variation_type": variation_type,
            "content": content.model_dump(),
            "context": {
                "asset_interpretations": context.asset_interpretations,
                "landing_page_content": context.landing_page_content,
                "prompt": prompt,
            },
            "generation_metadata": {
                "model": llm.model,
                "temperature": AD_COPY_GENERATION.temperature,
                "tokens": estimate_tokens(raw or content_text(content)),
                "processing_time_ms": elapsed,
            },
        }

    async def generate_for_project(self, project_id: str, user_id: str) -> GenerationRun:
        project = self.projects.get_project(project_id, user_id)
        self.projects.set_status(project_id, "processing")
        started = time.monotonic()
        try:
            llm = self._llm or GeminiClient.from_settings()

            asset_lines = self.build_asset_context(self.projects.list_assets(project_id))
            landing_lines = await self.build_landing_context(project.landing_page_urls)

            template = self.templates.get_default_template(project.platform)
            body = template.template.model_copy()
            if project.system_prompt:
                body.system_prompt = project.system_prompt

            context = GenerationContext(
                project_name=project.name,
                variation_count=project.variation_count,
                asset_interpretations=asset_lines,
                landing_page_content=landing_lines,
            )
            # Sequential on purpose; any model failure aborts the whole run
            variations = []
            for index in range(project.variation_count):
                variations.append(
                    await self._generate_variation(llm, project, body, context, index)
                )

            rows = [self.projects.add_generation(v) for v in variations]
            self.projects.set_status(project_id, "completed")
        except Exception as e:
            logger.error("generator.failed", project_id=project_id, error=str(e))
            self.projects.set_status(project_id, "failed")
            await self._publish(project_id, "failed", {"error": str(e)})
            raise

        elapsed = int((time.monotonic() - started) * 1000)
        logger.info("generator.completed", project_id=project_id, variations=len(rows), ms=elapsed)
        await self._publish(
            project_id, "completed", {"variations": len(rows), "processing_time_ms": elapsed}
        )
        return GenerationRun(
            project_id=project_id, status="completed", generations=rows, processing_time_ms=elapsed
        )

    async def _publish(self, project_id: str, action: str, data: dict[str, Any]) -> None:
        if self.events is not None:
            await self.events.publish_generation_event(project_id, action, data)


@lru_cache
def get_generator() -> AdCopyGenerator:
    """Get cached ad copy generator instance."""
    return AdCopyGenerator(
        projects=get_project_store(),
        templates=get_template_service(),
        scraper=get_web_scraper(),
        cache=get_interpretation_cache(),
        events=get_event_publisher(),
    )
