"""Prompt template endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from copy_forge.api.deps import get_current_user_id, to_http
from copy_forge.api.models import (
    TemplateCreate,
    TemplatePreviewRequest,
    TemplatePreviewResponse,
    TemplateResponse,
    TemplateUpdate,
)
from copy_forge.core.generator import estimate_tokens
from copy_forge.core.templates import (
    GenerationContext,
    PromptTemplateService,
    build_prompt_from_template,
    get_template_service,
)
from copy_forge.db.models import PromptTemplateRow
from copy_forge.errors import CopyForgeError

router = APIRouter()


def _response(row: PromptTemplateRow) -> TemplateResponse:
    return TemplateResponse(**row.model_dump())


@router.get("", response_model=list[TemplateResponse])
async def list_templates(
    platform: str | None = None,
    prompt_type: str | None = None,
    user_id: str = Depends(get_current_user_id),
    service: PromptTemplateService = Depends(get_template_service),
) -> list[TemplateResponse]:
    """The caller's templates plus the shared defaults."""
    rows = service.list_templates(user_id, prompt_type=prompt_type, platform=platform)
    return [_response(r) for r in rows]


@router.get("/default/{platform}", response_model=TemplateResponse)
async def get_default_template(
    platform: str,
    service: PromptTemplateService = Depends(get_template_service),
) -> TemplateResponse:
    """Get the platform default, seeding it if it does not exist yet."""
    try:
        return _response(service.get_default_template(platform))
    except CopyForgeError as e:
        raise to_http(e)


@router.post("", response_model=TemplateResponse, status_code=201)
async def create_template(
    data: TemplateCreate,
    user_id: str = Depends(get_current_user_id),
    service: PromptTemplateService = Depends(get_template_service),
) -> TemplateResponse:
    row = service.create_template(
        user_id=user_id,
        name=data.name,
        platform=data.platform,
        sections=data.sections,
        system_prompt=data.system_prompt,
        prompt_type=data.prompt_type,
    )
    return _response(row)


@router.put("/{template_id}", response_model=TemplateResponse)
async def update_template(
    template_id: str,
    data: TemplateUpdate,
    user_id: str = Depends(get_current_user_id),
    service: PromptTemplateService = Depends(get_template_service),
) -> TemplateResponse:
    try:
        row = service.update_template(
            template_id,
            user_id,
            name=data.name,
            sections=data.sections,
            system_prompt=data.system_prompt,
        )
    except CopyForgeError as e:
        raise to_http(e)
    return _response(row)


@router.delete("/{template_id}", status_code=204)
async def delete_template(
    template_id: str,
    user_id: str = Depends(get_current_user_id),
    service: PromptTemplateService = Depends(get_template_service),
) -> None:
    """Delete a user template. Defaults cannot be deleted."""
    try:
        service.delete_template(template_id, user_id)
    except CopyForgeError as e:
        raise to_http(e)


@router.post("/{template_id}/preview", response_model=TemplatePreviewResponse)
async def preview_template(
    template_id: str,
    data: TemplatePreviewRequest,
    service: PromptTemplateService = Depends(get_template_service),
) -> TemplatePreviewResponse:
    """Render a template against sample values without calling the model."""
    try:
        template = service.get_template(template_id)
    except CopyForgeError as e:
        raise to_http(e)
    context = GenerationContext(
        project_name=data.project_name,
        variation_count=data.variation_count,
        variation_type=data.variation_type,
        asset_interpretations=data.asset_interpretations,
        landing_page_content=data.landing_page_content,
    )
    prompt = build_prompt_from_template(template.template, context)
    return TemplatePreviewResponse(
        template_id=template_id, prompt=prompt, estimated_tokens=estimate_tokens(prompt)
    )
