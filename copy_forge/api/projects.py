"""Project, asset processing, and generation endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from copy_forge.api.deps import get_current_user_id, to_http
from copy_forge.api.models import (
    AssetCreate,
    AssetResponse,
    GenerateResponse,
    GenerationResponse,
    InterpretationResponse,
    ProcessAssetsResponse,
    ProjectCreate,
    ProjectResponse,
)
from copy_forge.core.generator import AdCopyGenerator, get_generator
from copy_forge.core.interpreter import ProjectAssetProcessor, get_asset_processor
from copy_forge.db.project_store import ProjectStore, get_project_store
from copy_forge.errors import CopyForgeError, ValidationError
from copy_forge.integrations.dropbox import get_file_type, get_mime_type

router = APIRouter()


@router.post("", response_model=ProjectResponse, status_code=201)
async def create_project(
    data: ProjectCreate,
    user_id: str = Depends(get_current_user_id),
    store: ProjectStore = Depends(get_project_store),
) -> ProjectResponse:
    """Create a draft project."""
    project = store.create_project(
        user_id=user_id,
        name=data.name,
        platform=data.platform,
        landing_page_urls=data.landing_page_urls,
        system_prompt=data.system_prompt,
        variation_count=data.variation_count,
    )
    return ProjectResponse(**project.model_dump())


@router.get("", response_model=list[ProjectResponse])
async def list_projects(
    user_id: str = Depends(get_current_user_id),
    store: ProjectStore = Depends(get_project_store),
) -> list[ProjectResponse]:
    return [ProjectResponse(**p.model_dump()) for p in store.list_projects(user_id)]


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    user_id: str = Depends(get_current_user_id),
    store: ProjectStore = Depends(get_project_store),
) -> ProjectResponse:
    try:
        project = store.get_project(project_id, user_id)
    except CopyForgeError as e:
        raise to_http(e)
    return ProjectResponse(**project.model_dump())


@router.post("/{project_id}/assets", response_model=AssetResponse, status_code=201)
async def add_asset(
    project_id: str,
    data: AssetCreate,
    user_id: str = Depends(get_current_user_id),
    store: ProjectStore = Depends(get_project_store),
) -> AssetResponse:
    """Attach a supported Dropbox media file to the project."""
    try:
        store.get_project(project_id, user_id)
    except CopyForgeError as e:
        raise to_http(e)
    file_type = get_file_type(data.file_name)
    if file_type == "unknown":
        raise to_http(ValidationError(f"Unsupported file type for '{data.file_name}'"))
    asset = store.add_asset(
        project_id=project_id,
        remote_file_id=data.remote_file_id,
        file_name=data.file_name,
        file_type=file_type,
        mime_type=get_mime_type(data.file_name),
        remote_path=data.remote_path,
        file_size=data.file_size,
    )
    return AssetResponse(**asset.model_dump())


@router.post("/{project_id}/assets/process", response_model=ProcessAssetsResponse)
async def process_assets(
    project_id: str,
    user_id: str = Depends(get_current_user_id),
    processor: ProjectAssetProcessor = Depends(get_asset_processor),
) -> ProcessAssetsResponse:
    """Download and interpret every project asset that has no fresh interpretation."""
    try:
        results = await processor.process_project_assets(project_id, user_id)
    except CopyForgeError as e:
        raise to_http(e)
    return ProcessAssetsResponse(
        project_id=project_id,
        total=len(results),
        succeeded=sum(1 for r in results if r.success),
        from_cache=sum(1 for r in results if r.from_cache),
        results=[InterpretationResponse(**vars(r)) for r in results],
    )


@router.post("/{project_id}/generate", response_model=GenerateResponse)
async def generate(
    project_id: str,
    user_id: str = Depends(get_current_user_id),
    generator: AdCopyGenerator = Depends(get_generator),
) -> GenerateResponse:
    """Generate ad copy variations for the project."""
    try:
        run = await generator.generate_for_project(project_id, user_id)
    except CopyForgeError as e:
        raise to_http(e)
    return GenerateResponse(
        project_id=run.project_id,
        status=run.status,
        processing_time_ms=run.processing_time_ms,
        generations=[GenerationResponse(**g.model_dump()) for g in run.generations],
    )


@router.get("/{project_id}/generations", response_model=list[GenerationResponse])
async def list_generations(
    project_id: str,
    user_id: str = Depends(get_current_user_id),
    store: ProjectStore = Depends(get_project_store),
) -> list[GenerationResponse]:
    try:
        store.get_project(project_id, user_id)
    except CopyForgeError as e:
        raise to_http(e)
    return [GenerationResponse(**g.model_dump()) for g in store.list_generations(project_id)]
