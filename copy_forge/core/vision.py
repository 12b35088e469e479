"""Image interpretation via the Gemini vision model."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog

from copy_forge.errors import UpstreamError
from copy_forge.integrations.dropbox import get_mime_type
from copy_forge.integrations.gemini import GeminiClient

logger = structlog.get_logger()

# The vision API returns no calibrated confidence, so fixed values are reported.
MARKETING_CONFIDENCE = 0.9
TEXT_EXTRACTION_CONFIDENCE = 0.95

MARKETING_PROMPT = """Analyze this marketing image/banner and provide a detailed interpretation for ad copy generation. Focus on:

1. **Visual Elements**: What products, people, or objects are shown?
2. **Brand Elements**: Any logos, brand names, or brand colors visible?
3. **Text Content**: Any text, headlines, or slogans in the image?
4. **Emotional Tone**: What mood or feeling does the image convey?
5. **Target Audience**: Who appears to be the intended audience?
6. **Marketing Message**: What is the main marketing message or value proposition?
7. **Call-to-Action**: Any visible CTAs or action-oriented elements?
8. **Style & Aesthetic**: Modern, classic, minimalist, bold, etc.?

Provide a comprehensive analysis that would help a copywriter understand the context and write ad copy that aligns with this visual content.

Format your response as a detailed paragraph that captures all these elements in a natural, flowing description."""

TEXT_EXTRACTION_PROMPT = """Extract all visible text from this image. Include:
- Headlines and titles
- Body text and descriptions
- Button text and CTAs
- Brand names and logos
- Any other readable text

Format the extracted text clearly, maintaining the hierarchy and structure where possible.
If no text is visible, respond with "No readable text found in the image." """


@dataclass
class VisionResult:
    interpretation: str
    confidence: float
    metadata: dict[str, Any] = field(default_factory=dict)


class VisionAnalyzer:
    """Turns an image file into free-text marketing context."""

    def __init__(self, llm: GeminiClient) -> None:
        self.llm = llm

    async def _run(self, image_path: str | Path, prompt: str, confidence: float) -> VisionResult:
        path = Path(image_path)
        started = time.monotonic()
        image = await asyncio.to_thread(path.read_bytes)
        mime_type = get_mime_type(path.name)

        text = await self.llm.analyze_image(image, mime_type, prompt)
        if not text.strip():
            raise UpstreamError("No interpretation generated for the image", stage="vision")

        return VisionResult(
            interpretation=text.strip(),
            confidence=confidence,
            metadata={
                "model": self.llm.model,
                "processing_time_ms": int((time.monotonic() - started) * 1000),
                "image_size": len(image),
                "mime_type": mime_type,
            },
        )

    async def analyze_marketing_image(self, image_path: str | Path) -> VisionResult:
        result = await self._run(image_path, MARKETING_PROMPT, MARKETING_CONFIDENCE)
        logger.info("vision.analyzed", path=str(image_path), chars=len(result.interpretation))
        return result

    async def extract_text(self, image_path: str | Path) -> VisionResult:
        return await self._run(image_path, TEXT_EXTRACTION_PROMPT, TEXT_EXTRACTION_CONFIDENCE)
