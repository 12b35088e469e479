"""Database models / type definitions.

These mirror the Supabase tables for type safety in Python code.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

FileType = Literal["image", "video"]
Platform = Literal["facebook", "google", "tiktok"]
ProjectStatus = Literal["draft", "processing", "completed", "failed"]
ProcessingMethod = Literal["vision", "speech-to-text"]


class CredentialRow(BaseModel):
    """Row from the credentials table."""

    id: str
    user_id: str
    provider: str
    provider_account_id: str
    provider_account_email: str | None = None
    access_token: str
    refresh_token: str | None = None
    token_expires_at: datetime | None = None
    scope: str | None = None
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


class ProjectRow(BaseModel):
    """Row from the projects table."""

    id: str
    user_id: str
    name: str
    platform: Platform = "facebook"
    landing_page_urls: list[str] = Field(default_factory=list)
    system_prompt: str = ""
    variation_count: int = 3
    status: ProjectStatus = "draft"
    created_at: datetime
    updated_at: datetime


class AssetRow(BaseModel):
    """Row from the assets table."""

    id: str
    project_id: str
    remote_file_id: str
    file_name: str
    file_type: FileType
    mime_type: str
    file_size: int = 0
    remote_path: str
    local_path: str | None = None
    created_at: datetime
    updated_at: datetime


class InterpretationCacheRow(BaseModel):
    """Row from the asset_interpretation_cache table (unique on remote_file_id)."""

    id: str
    remote_file_id: str
    file_type: FileType
    interpretation: str
    processing_method: ProcessingMethod
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime


class LandingPageCacheRow(BaseModel):
    """Row from the landing_page_cache table (unique on url)."""

    id: str
    url: str
    title: str | None = None
    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime


class PromptSection(BaseModel):
    """One ordered, placeholder-bearing section of a prompt template."""

    id: str
    name: str
    content: str
    editable: bool = True
    required: bool = False
    order: int


class TemplateBody(BaseModel):
    """The JSON ``template`` column of prompt_templates."""

    platform: str
    system_prompt: str
    sections: list[PromptSection] = Field(default_factory=list)


class PromptTemplateRow(BaseModel):
    """Row from the prompt_templates table."""

    id: str
    user_id: str
    name: str
    prompt_type: str = "ad_copy"
    is_default: bool = False
    template: TemplateBody
    created_at: datetime
    updated_at: datetime


class GenerationRow(BaseModel):
    """Row from the ad_copy_generations table."""

    id: str
    project_id: str
    variation_number: int
    platform: str
    variation_type: str
    content: dict[str, Any]
    context: dict[str, Any] = Field(default_factory=dict)
    generation_metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime
