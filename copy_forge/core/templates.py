"""Prompt Template Engine: stores per-platform section templates and renders them.

A template is a system prompt plus ordered sections. Rendering sorts sections by
``order``, substitutes the generation placeholders in each one, and joins
everything with blank lines. Placeholders it does not know are left untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

import structlog
from postgrest.exceptions import APIError

from copy_forge.core.audit import AuditLogger, get_audit_logger
from copy_forge.core.default_templates import (
    DEFAULT_PROMPT_TYPE,
    SYSTEM_USER_ID,
    default_template_name,
    seed_template_body,
)
from copy_forge.db.client import SupabaseClient, get_supabase_client
from copy_forge.db.models import PromptSection, PromptTemplateRow, TemplateBody
from copy_forge.errors import NotFoundError, PermissionDeniedError

logger = structlog.get_logger()

TABLE = "prompt_templates"
DEFAULT_VARIATION_TYPE = "benefits"
NO_ASSETS = "No assets provided."
NO_LANDING_PAGES = "No landing page content provided."


@dataclass
class GenerationContext:
    """Values substituted into a template for one variation."""
    project_name: str
    variation_count: int = 1
    variation_type: str | None = None
    asset_interpretations: list[str] = field(default_factory=list)
    landing_page_content: list[str] = field(default_factory=list)


def _numbered(items: list[str], label: str, empty: str) -> str:
    if not items:
        return empty
    return "\n".join(f"{label} {i}: {item}" for i, item in enumerate(items, 1))


def apply_placeholders(text: str, context: GenerationContext) -> str:
    replacements = {
        "{projectName}": context.project_name,
        "{variationCount}": str(context.variation_count),
        "{variationType}": context.variation_type or DEFAULT_VARIATION_TYPE,
        "{assetInterpretations}": _numbered(context.asset_interpretations, "Asset", NO_ASSETS),
        "{landingPageContent}": _numbered(context.landing_page_content, "Page", NO_LANDING_PAGES),
    }
    for placeholder, value in replacements.items():
        text = text.replace(placeholder, value)
    return text


def build_prompt_from_template(template: TemplateBody, context: GenerationContext) -> str:
    """Render the final prompt string. Pure: same inputs, same output."""
    parts = [template.system_prompt]
    for section in sorted(template.sections, key=lambda s: s.order):
        parts.append(apply_placeholders(section.content, context))
    return "\n\n".join(parts).strip()


class PromptTemplateService:
    """Template storage with ownership rules and self-healing defaults."""

    def __init__(self, db: SupabaseClient, audit: AuditLogger | None = None) -> None:
        self.db = db
        self.audit = audit

    def _defaults_for(self, platform: str, prompt_type: str) -> list[dict[str, Any]]:
        rows = self.db.select(
            TABLE,
            filters={"prompt_type": prompt_type, "is_default": True},
            order_by="created_at",
        )
        return [r for r in rows if (r.get("template") or {}).get("platform") == platform]

    def get_default_template(
        self, platform: str, prompt_type: str = DEFAULT_PROMPT_TYPE
    ) -> PromptTemplateRow:
        """Return the platform default, creating it from the built-in seed on first use."""
        matches = self._defaults_for(platform, prompt_type)
        if matches:
            return PromptTemplateRow(**matches[0])

        logger.info("templates.default_missing", platform=platform, prompt_type=prompt_type)
        try:
            self.db.insert(
                TABLE,
                {
                    "user_id": SYSTEM_USER_ID,
                    "name": default_template_name(platform),
                    "prompt_type": prompt_type,
                    "is_default": True,
                    "template": seed_template_body(platform),
                },
            )
        except APIError as e:
            # Unique (prompt_type, platform, is_default) index: someone else won the race
            logger.info("templates.default_race", platform=platform, error=str(e))

        # Re-read so concurrent creators converge on the oldest row
        matches = self._defaults_for(platform, prompt_type)
        if not matches:
            raise NotFoundError(f"Default template for '{platform}' could not be created")
        return PromptTemplateRow(**matches[0])

    def get_template(self, template_id: str) -> PromptTemplateRow:
        rows = self.db.select(TABLE, filters={"id": template_id}, limit=1)
        if not rows:
            raise NotFoundError(f"Template '{template_id}' not found")
        return PromptTemplateRow(**rows[0])

    def get_user_templates(
        self, user_id: str, prompt_type: str = DEFAULT_PROMPT_TYPE
    ) -> list[PromptTemplateRow]:
        rows = self.db.select(
            TABLE,
            filters={"user_id": user_id, "prompt_type": prompt_type},
            order_by="created_at",
            ascending=False,
        )
        return [PromptTemplateRow(**r) for r in rows]

    def list_templates(
        self, user_id: str, prompt_type: str | None = None, platform: str | None = None
    ) -> list[PromptTemplateRow]:
        """The user's own templates plus every default, optionally filtered."""
        filters = {"prompt_type": prompt_type} if prompt_type else {}
        rows = self.db.select(TABLE, filters=filters or None, order_by="created_at")
        visible = [r for r in rows if r.get("user_id") == user_id or r.get("is_default")]
        if platform:
            visible = [r for r in visible if (r.get("template") or {}).get("platform") == platform]
        return [PromptTemplateRow(**r) for r in visible]

    def create_template(
        self,
        user_id: str,
        name: str,
        platform: str,
        sections: list[PromptSection] | list[dict[str, Any]],
        system_prompt: str,
        prompt_type: str = DEFAULT_PROMPT_TYPE,
    ) -> PromptTemplateRow:
        body = TemplateBody(platform=platform, system_prompt=system_prompt, sections=sections)
        row = self.db.insert(
            TABLE,
            {
                "user_id": user_id,
                "name": name,
                "prompt_type": prompt_type,
                "is_default": False,
                "template": body.model_dump(),
            },
        )
        logger.info("templates.created", template_id=row["id"], platform=platform)
        if self.audit:
            self.audit.log("template.created", "prompt_template", row["id"], actor=user_id,
                           details={"name": name, "platform": platform})
        return PromptTemplateRow(**row)

    def _owned(self, template_id: str, user_id: str) -> PromptTemplateRow:
        template = self.get_template(template_id)
        if template.user_id != user_id:
            raise PermissionDeniedError("You don't have permission to modify this template")
        return template

    def update_template(
        self,
        template_id: str,
        user_id: str,
        name: str | None = None,
        sections: list[PromptSection] | list[dict[str, Any]] | None = None,
        system_prompt: str | None = None,
    ) -> PromptTemplateRow:
        existing = self._owned(template_id, user_id)
        body = existing.template.model_copy()
        if sections is not None:
            body.sections = [PromptSection.model_validate(s) for s in sections]
        if system_prompt is not None:
            body.system_prompt = system_prompt

        data: dict[str, Any] = {"template": body.model_dump()}
        if name is not None:
            data["name"] = name
        row = self.db.update(TABLE, template_id, data)
        changed = {"name": name, "sections": sections, "system_prompt": system_prompt}
        logger.info("templates.updated", template_id=template_id)
        if self.audit:
            self.audit.log("template.updated", "prompt_template", template_id, actor=user_id,
                           details={"fields": sorted(k for k, v in changed.items() if v is not None)})
        return PromptTemplateRow(**row)

    def delete_template(self, template_id: str, user_id: str) -> None:
        template = self.get_template(template_id)
        if template.is_default:
            raise PermissionDeniedError("Cannot delete default templates")
        if template.user_id != user_id:
            raise PermissionDeniedError("You don't have permission to delete this template")
        self.db.delete(TABLE, template_id)
        logger.info("templates.deleted", template_id=template_id)
        if self.audit:
            self.audit.log("template.deleted", "prompt_template", template_id, actor=user_id,
                           details={"name": template.name})


@lru_cache
def get_template_service() -> PromptTemplateService:
    """Get cached template service instance."""
    return PromptTemplateService(get_supabase_client(), get_audit_logger())
