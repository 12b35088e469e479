"""Asset Interpreter: turns images and videos into text the copywriter model can use.

Images go to the vision model. Videos have their audio extracted and
transcribed. Results are written through to the interpretation cache, and a
fresh cache entry short-circuits everything.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any

import structlog

from copy_forge.config import get_settings
from copy_forge.core.interpretation_cache import InterpretationCache, get_interpretation_cache
from copy_forge.core.media import extracted_audio, probe_media
from copy_forge.core.speech import SpeechTranscriber
from copy_forge.core.vision import VisionAnalyzer
from copy_forge.db.models import AssetRow
from copy_forge.db.project_store import ProjectStore, get_project_store
from copy_forge.errors import ConfigurationError
from copy_forge.integrations.dropbox import DropboxGateway, get_dropbox_gateway
from copy_forge.integrations.gemini import GeminiClient
from copy_forge.utils.batch import process_sequentially
from copy_forge.utils.tempfiles import scoped_temp_file

logger = structlog.get_logger()

METHOD_VISION = "vision"
METHOD_SPEECH = "speech-to-text"


@dataclass
class AssetInput:
    remote_file_id: str
    file_path: str | Path
    file_type: str
    file_name: str


@dataclass
class InterpretationResult:
    """Outcome for one asset. Failures are values, not exceptions."""
    remote_file_id: str
    file_type: str
    interpretation: str
    processing_method: str
    success: bool
    error: str | None = None
    failed_stage: str | None = None
    from_cache: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def failure(
        cls, remote_file_id: str, file_type: str, stage: str, error: str, method: str = ""
    ) -> InterpretationResult:
        return cls(
            remote_file_id=remote_file_id,
            file_type=file_type,
            interpretation="",
            processing_method=method,
            success=False,
            error=error,
            failed_stage=stage,
        )


def describe_silent_video(file_name: str, duration: float) -> str:
    return (
        f'Video file "{file_name}" ({round(duration)}s duration) contains no detectable speech '
        "or audio content. This appears to be a silent video or contains only background "
        "music/sounds."
    )


def describe_transcript(file_name: str, duration: float, transcript: str) -> str:
    return f'Video content from "{file_name}" ({round(duration)}s duration): {transcript}'


class AssetInterpreter:
    """Dispatches assets by type and consults the interpretation cache first."""

    def __init__(
        self,
        cache: InterpretationCache,
        vision: VisionAnalyzer | None = None,
        transcriber: SpeechTranscriber | None = None,
        temp_dir: str | Path | None = None,
    ) -> None:
        self.cache = cache
        self.vision = vision
        self.transcriber = transcriber
        self.temp_dir = temp_dir

    def cached_result(self, remote_file_id: str) -> InterpretationResult | None:
        """The fresh cached interpretation as a result, or None on miss/stale."""
        cached = self.cache.get_fresh(remote_file_id)
        if cached is None:
            return None
        logger.info("interpreter.cache_hit", remote_file_id=remote_file_id)
        return InterpretationResult(
            remote_file_id=remote_file_id,
            file_type=cached.file_type,
            interpretation=cached.interpretation,
            processing_method=cached.processing_method,
            success=True,
            from_cache=True,
            metadata={**cached.metadata, "from_cache": True},
        )

    async def interpret_asset(
        self, remote_file_id: str, file_path: str | Path, file_type: str, file_name: str
    ) -> InterpretationResult:
        cached = self.cached_result(remote_file_id)
        if cached is not None:
            return cached

        started = time.monotonic()
        if file_type == "image":
            result = await self._interpret_image(remote_file_id, file_path, file_name)
        elif file_type == "video":
            result = await self._interpret_video(remote_file_id, file_path, file_name)
        else:
            return InterpretationResult.failure(
                remote_file_id, file_type, "dispatch", f"Unsupported file type '{file_type}'"
            )

        if not result.success:
            logger.warning(
                "interpreter.failed",
                remote_file_id=remote_file_id,
                stage=result.failed_stage,
                error=result.error,
            )
            return result

        result.metadata["processing_time_ms"] = int((time.monotonic() - started) * 1000)
        result.metadata["file_name"] = file_name
        self.cache.put(
            remote_file_id,
            file_type,
            result.interpretation,
            result.processing_method,
            result.metadata,
        )
        logger.info(
            "interpreter.interpreted",
            remote_file_id=remote_file_id,
            method=result.processing_method,
        )
        return result

    async def _interpret_image(
        self, remote_file_id: str, file_path: str | Path, file_name: str
    ) -> InterpretationResult:
        try:
            if self.vision is None:
                raise ConfigurationError("Vision analysis is not configured (GOOGLE_AI_API_KEY)")
            vision = await self.vision.analyze_marketing_image(file_path)
        except Exception as e:
            return InterpretationResult.failure(
                remote_file_id, "image", "vision", f"Image analysis failed: {e}", METHOD_VISION
            )
        return InterpretationResult(
            remote_file_id=remote_file_id,
            file_type="image",
            interpretation=vision.interpretation,
            processing_method=METHOD_VISION,
            success=True,
            metadata={"confidence": vision.confidence, **vision.metadata},
        )

    async def _interpret_video(
        self, remote_file_id: str, file_path: str | Path, file_name: str
    ) -> InterpretationResult:
        stage = "extraction"
        transcription = None
        try:
            media = await probe_media(file_path)
            duration = media["duration"]
            if media["has_audio"]:
                async with extracted_audio(file_path, self.temp_dir) as track:
                    duration = track.duration or duration
                    if duration > 0:
                        stage = "transcription"
                        if self.transcriber is None:
                            raise ConfigurationError("Speech-to-text is not configured")
                        transcription = await self.transcriber.transcribe(track.path, duration)
        except Exception as e:
            return InterpretationResult.failure(
                remote_file_id, "video", stage, f"Video processing failed: {e}", METHOD_SPEECH
            )

        metadata: dict[str, Any] = {"duration": duration, "media": media}
        if transcription is None or transcription.is_empty:
            interpretation = describe_silent_video(file_name, duration)
            metadata["confidence"] = 0.0
            metadata["speech_detected"] = False
        else:
            interpretation = describe_transcript(file_name, duration, transcription.transcript)
            metadata["confidence"] = transcription.confidence
            metadata["speech_detected"] = True
            metadata["transcription_method"] = transcription.method

        return InterpretationResult(
            remote_file_id=remote_file_id,
            file_type="video",
            interpretation=interpretation,
            processing_method=METHOD_SPEECH,
            success=True,
            metadata=metadata,
        )

    async def interpret_assets(self, assets: list[AssetInput]) -> list[InterpretationResult]:
        """Interpret assets one at a time, in order; failures are recorded per item."""

        async def _one(asset: AssetInput) -> InterpretationResult:
            return await self.interpret_asset(
                asset.remote_file_id, asset.file_path, asset.file_type, asset.file_name
            )

        def _failed(asset: AssetInput, e: Exception) -> InterpretationResult:
            return InterpretationResult.failure(asset.remote_file_id, asset.file_type, "internal", str(e))

        results = await process_sequentially(assets, _one, _failed, label="interpreter")
        logger.info(
            "interpreter.batch_complete",
            total=len(results),
            succeeded=sum(1 for r in results if r.success),
        )
        return results


class ProjectAssetProcessor:
    """Downloads and interprets every stale asset of a project."""

    def __init__(
        self, projects: ProjectStore, gateway: DropboxGateway, interpreter: AssetInterpreter
    ) -> None:
        self.projects = projects
        self.gateway = gateway
        self.interpreter = interpreter

    async def process_project_assets(
        self, project_id: str, user_id: str
    ) -> list[InterpretationResult]:
        self.projects.get_project(project_id, user_id)
        assets = self.projects.list_assets(project_id)

        async def _one(asset: AssetRow) -> InterpretationResult:
            cached = self.interpreter.cached_result(asset.remote_file_id)
            if cached is not None:
                return cached
            try:
                download = await self.gateway.download_file(user_id, asset.remote_path)
            except Exception as e:
                return InterpretationResult.failure(
                    asset.remote_file_id, asset.file_type, "download", str(e)
                )
            async with scoped_temp_file(download.temp_path) as path:
                self.projects.set_asset_local_path(asset.id, str(path))
                try:
                    return await self.interpreter.interpret_asset(
                        asset.remote_file_id, path, asset.file_type, asset.file_name
                    )
                finally:
                    self.projects.set_asset_local_path(asset.id, None)

        def _failed(asset: AssetRow, e: Exception) -> InterpretationResult:
            return InterpretationResult.failure(asset.remote_file_id, asset.file_type, "internal", str(e))

        return await process_sequentially(assets, _one, _failed, label="asset_processor")


@lru_cache
def get_asset_interpreter() -> AssetInterpreter:
    """Get cached asset interpreter instance."""
    settings = get_settings()
    vision = VisionAnalyzer(GeminiClient.from_settings()) if settings.google_ai_api_key else None
    transcriber = SpeechTranscriber.from_settings() if settings.has_google_cloud_credentials else None
    return AssetInterpreter(
        get_interpretation_cache(), vision=vision, transcriber=transcriber, temp_dir=settings.temp_dir
    )


@lru_cache
def get_asset_processor() -> ProjectAssetProcessor:
    """Get cached project asset processor instance."""
    return ProjectAssetProcessor(get_project_store(), get_dropbox_gateway(), get_asset_interpreter())
