"""Speech-to-text for extracted audio tracks (Google Cloud Speech)."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from uuid import uuid4

import structlog
from google.cloud import speech

from copy_forge.integrations.gcs import ObjectStore, load_google_credentials

logger = structlog.get_logger()

SHORT_AUDIO_LIMIT_SECONDS = 60
LANGUAGE_CODE = "en-US"
LONG_FORM_MODEL = "latest_long"


@dataclass
class Transcription:
    transcript: str
    confidence: float
    duration: float
    method: str
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.transcript.strip()


def _recognition_config(sample_rate: int, long_form: bool) -> speech.RecognitionConfig:
    kwargs: dict[str, Any] = {
        "encoding": speech.RecognitionConfig.AudioEncoding.LINEAR16,
        "sample_rate_hertz": sample_rate,
        "language_code": LANGUAGE_CODE,
        "enable_automatic_punctuation": True,
    }
    if long_form:
        kwargs["model"] = LONG_FORM_MODEL
        kwargs["use_enhanced"] = True
    return speech.RecognitionConfig(**kwargs)


def collect_results(results: Any) -> tuple[str, float, int]:
    """Join the best alternative of each segment; confidence is averaged across segments."""
    texts: list[str] = []
    confidences: list[float] = []
    for result in results:
        if not result.alternatives:
            continue
        best = result.alternatives[0]
        if best.transcript:
            texts.append(best.transcript.strip())
        confidences.append(best.confidence or 0.0)
    confidence = sum(confidences) / len(confidences) if confidences else 0.0
    return " ".join(texts).strip(), confidence, len(texts)


class SpeechTranscriber:
    """Short clips are transcribed inline; long ones via a temporary bucket upload."""

    def __init__(
        self,
        client: speech.SpeechClient,
        object_store: ObjectStore | None = None,
        sample_rate: int = 16000,
    ) -> None:
        self.client = client
        self.object_store = object_store
        self.sample_rate = sample_rate

    @classmethod
    def from_settings(cls) -> SpeechTranscriber:
        client = speech.SpeechClient(credentials=load_google_credentials())
        return cls(client, ObjectStore.from_settings())

    async def transcribe(self, audio_path: str | Path, duration: float) -> Transcription:
        if duration < SHORT_AUDIO_LIMIT_SECONDS:
            return await self.transcribe_short(audio_path, duration)
        return await self.transcribe_long(audio_path, duration)

    async def transcribe_short(self, audio_path: str | Path, duration: float) -> Transcription:
        started = time.monotonic()
        content = await asyncio.to_thread(Path(audio_path).read_bytes)
        response = await asyncio.to_thread(
            self.client.recognize,
            config=_recognition_config(self.sample_rate, long_form=False),
            audio=speech.RecognitionAudio(content=content),
        )
        transcript, confidence, segments = collect_results(response.results)
        logger.info("speech.transcribed", method="sync", segments=segments, duration=duration)
        return Transcription(
            transcript=transcript,
            confidence=confidence,
            duration=duration,
            method="sync",
            metadata={
                "segments": segments,
                "processing_time_ms": int((time.monotonic() - started) * 1000),
            },
        )

    async def transcribe_long(self, audio_path: str | Path, duration: float) -> Transcription:
        if self.object_store is None:
            raise RuntimeError("Long-form transcription needs an object store for the upload")

        started = time.monotonic()
        name = f"audio-{uuid4().hex}-{int(time.time() * 1000)}.wav"
        uri = await self.object_store.upload_file(audio_path, name)
        try:
            operation = await asyncio.to_thread(
                self.client.long_running_recognize,
                config=_recognition_config(self.sample_rate, long_form=True),
                audio=speech.RecognitionAudio(uri=uri),
            )
            response = await asyncio.to_thread(operation.result)
        finally:
            try:
                await self.object_store.delete(uri)
            except Exception as e:
                logger.warning("speech.upload_cleanup_failed", uri=uri, error=str(e))

        transcript, confidence, segments = collect_results(response.results)
        logger.info("speech.transcribed", method="long_running", segments=segments, duration=duration)
        return Transcription(
            transcript=transcript,
            confidence=confidence,
            duration=duration,
            method="long_running",
            metadata={
                "segments": segments,
                "gcs_uri": uri,
                "processing_time_ms": int((time.monotonic() - started) * 1000),
            },
        )
