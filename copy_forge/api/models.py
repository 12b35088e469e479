"""Pydantic request/response models for the API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from copy_forge.db.models import Platform, PromptSection


# --- Projects ---


class ProjectCreate(BaseModel):
    """Create an ad copy project."""

    name: str = Field(..., min_length=1, max_length=200)
    platform: Platform = "facebook"
    landing_page_urls: list[str] = Field(default_factory=list)
    system_prompt: str | None = None
    variation_count: int = Field(3, ge=1, le=10)


class ProjectResponse(BaseModel):
    """Project response."""

    id: str
    user_id: str
    name: str
    platform: str
    landing_page_urls: list[str]
    system_prompt: str
    variation_count: int
    status: str
    created_at: datetime
    updated_at: datetime


class AssetCreate(BaseModel):
    """Attach a Dropbox file to a project."""

    remote_file_id: str
    file_name: str
    remote_path: str
    file_size: int = 0


class AssetResponse(BaseModel):
    id: str
    project_id: str
    remote_file_id: str
    file_name: str
    file_type: str
    mime_type: str
    file_size: int
    remote_path: str
    created_at: datetime


class InterpretationResponse(BaseModel):
    remote_file_id: str
    file_type: str
    interpretation: str
    processing_method: str
    success: bool
    error: str | None = None
    failed_stage: str | None = None
    from_cache: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)


class ProcessAssetsResponse(BaseModel):
    project_id: str
    total: int
    succeeded: int
    from_cache: int
    results: list[InterpretationResponse]


class GenerationResponse(BaseModel):
    id: str
    project_id: str
    variation_number: int
    platform: str
    variation_type: str
    content: dict[str, Any]
    generation_metadata: dict[str, Any]
    created_at: datetime


class GenerateResponse(BaseModel):
    project_id: str
    status: str
    processing_time_ms: int
    generations: list[GenerationResponse]


# --- Landing pages ---


class ScrapeRequest(BaseModel):
    urls: list[str] = Field(..., min_length=1, max_length=20)
    use_cache: bool = True


class ScrapedPageResponse(BaseModel):
    url: str
    title: str
    content: str
    metadata: dict[str, Any]
    success: bool
    error: str | None = None
    processing_time_ms: int


class ScrapeResponse(BaseModel):
    total: int
    succeeded: int
    from_cache: int
    results: list[ScrapedPageResponse]


# --- Templates ---


class TemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    platform: Platform
    system_prompt: str
    sections: list[PromptSection] = Field(default_factory=list)
    prompt_type: str = "ad_copy"


class TemplateUpdate(BaseModel):
    name: str | None = None
    system_prompt: str | None = None
    sections: list[PromptSection] | None = None


class TemplateResponse(BaseModel):
    id: str
    user_id: str
    name: str
    prompt_type: str
    is_default: bool
    template: dict[str, Any]
    created_at: datetime
    updated_at: datetime


class TemplatePreviewRequest(BaseModel):
    project_name: str = "Sample Project"
    variation_count: int = 3
    variation_type: str | None = None
    asset_interpretations: list[str] = Field(default_factory=list)
    landing_page_content: list[str] = Field(default_factory=list)


class TemplatePreviewResponse(BaseModel):
    template_id: str
    prompt: str
    estimated_tokens: int


# --- Integrations ---


class OAuthCallback(BaseModel):
    code: str


class AuthorizeUrlResponse(BaseModel):
    url: str


class CredentialResponse(BaseModel):
    id: str
    provider: str
    provider_account_id: str
    provider_account_email: str | None = None
    token_expires_at: datetime | None = None
    scope: str | None = None
    is_active: bool


class RemoteFileResponse(BaseModel):
    id: str
    name: str
    path: str
    size: int
    content_hash: str | None = None
    server_modified_at: str | None = None
    is_downloadable: bool
    file_type: str
    mime_type: str
