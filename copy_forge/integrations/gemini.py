"""Gemini REST client: vision analysis and text generation."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from copy_forge.config import get_settings
from copy_forge.errors import ConfigurationError, UpstreamError
from copy_forge.utils.security import redact_secrets

logger = structlog.get_logger()

API_BASE = "https://generativelanguage.googleapis.com/v1beta"


@dataclass(frozen=True)
class GenerationConfig:
    """Sampling parameters sent with every text-generation call."""
    temperature: float = 0.8
    top_k: int = 40
    top_p: float = 0.95
    max_output_tokens: int = 2048

    def to_payload(self) -> dict[str, Any]:
        return {
            "temperature": self.temperature,
            "topK": self.top_k,
            "topP": self.top_p,
            "maxOutputTokens": self.max_output_tokens,
        }


AD_COPY_GENERATION = GenerationConfig()


class GeminiClient:
    """Thin async wrapper around ``models/{model}:generateContent``."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-flash",
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("GOOGLE_AI_API_KEY is required for Gemini calls")
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls) -> GeminiClient:
        settings = get_settings()
        return cls(api_key=settings.google_ai_api_key, model=settings.gemini_model)

    async def generate(
        self,
        parts: list[dict[str, Any]],
        config: GenerationConfig | None = None,
        stage: str = "generation",
    ) -> str:
        """Send one request and return the concatenated text of the first candidate."""
        body: dict[str, Any] = {"contents": [{"role": "user", "parts": parts}]}
        if config is not None:
            body["generationConfig"] = config.to_payload()

        url = f"{API_BASE}/models/{self.model}:generateContent"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(url, params={"key": self.api_key}, json=body)
        except httpx.HTTPError as e:
            raise UpstreamError(f"Gemini request failed: {redact_secrets(str(e))}", stage=stage) from e

        if not resp.is_success:
            raise UpstreamError(
                f"Gemini returned {resp.status_code}: {redact_secrets(resp.text[:200])}",
                status=resp.status_code,
                stage=stage,
            )

        data = resp.json()
        candidates = data.get("candidates") or []
        if not candidates:
            reason = (data.get("promptFeedback") or {}).get("blockReason", "no candidates")
            raise UpstreamError(f"Gemini returned no output ({reason})", stage=stage)
        content_parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(p.get("text", "") for p in content_parts).strip()

    async def generate_text(self, prompt: str, config: GenerationConfig | None = None) -> str:
        return await self.generate([{"text": prompt}], config or AD_COPY_GENERATION)

    async def analyze_image(self, image: bytes, mime_type: str, prompt: str) -> str:
        parts = [
            {"text": prompt},
            {"inline_data": {"mime_type": mime_type, "data": base64.b64encode(image).decode()}},
        ]
        return await self.generate(parts, stage="vision")
