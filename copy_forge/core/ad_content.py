"""Platform-shaped ad content and the parsers that pull it out of model output.

Model output is free text with labelled fields (``HEADLINE: ...``). Each field
runs from its label to the next known label or the end of the text. A field
the model left out is back-filled with a placeholder that names the variation,
so a sloppy response never fails a generation run.
"""

from __future__ import annotations

import re
from typing import Annotated, Callable, Literal, Union

from pydantic import BaseModel, Field

VARIATION_TYPES = ("benefits", "pain_agitation", "storytelling")


class FacebookAdContent(BaseModel):
    platform: Literal["facebook"] = "facebook"
    primary_text: str
    headline: str


class GoogleAdContent(BaseModel):
    platform: Literal["google"] = "google"
    headline: str
    description1: str
    description2: str | None = None
    path1: str | None = None
    path2: str | None = None


class TikTokAdContent(BaseModel):
    platform: Literal["tiktok"] = "tiktok"
    caption: str
    hashtags: list[str] = Field(default_factory=list)


AdContent = Annotated[
    Union[FacebookAdContent, GoogleAdContent, TikTokAdContent],
    Field(discriminator="platform"),
]


def variation_type_for(index: int) -> str:
    """Rotate benefits -> pain_agitation -> storytelling by zero-based index."""
    return VARIATION_TYPES[index % len(VARIATION_TYPES)]


_EMPHASIS = [
    re.compile(r"\*\*([^\n]+?)\*\*"),
    re.compile(r"___([^\n]+?)___"),
    re.compile(r"__([^\n]+?)__"),
    re.compile(r"\*([^*\n]+?)\*"),
]


def clean_text(text: str) -> str:
    """Strip markdown emphasis and normalise em/en dashes to hyphens."""
    for pattern in _EMPHASIS:
        text = pattern.sub(r"\1", text)
    text = text.replace("—", "-").replace("–", "-")
    return text.strip()


def extract_labeled_fields(text: str, labels: list[str]) -> dict[str, str]:
    """Map each label found at a line start to its text, up to the next label or end."""
    alternatives = "|".join(re.escape(label) for label in labels)
    pattern = re.compile(
        rf"^[ \t]*[*#]*[ \t]*({alternatives})[*]*[ \t]*:[ \t]*(.*?)(?=^[ \t]*[*#]*[ \t]*(?:{alternatives})[*]*[ \t]*:|\Z)",
        re.M | re.S | re.I,
    )
    fields: dict[str, str] = {}
    for match in pattern.finditer(text):
        label = match.group(1).upper()
        value = match.group(2).strip().lstrip("*").strip()
        if value and label not in fields:
            fields[label] = value
    return fields


def _field(fields: dict[str, str], *names: str) -> str | None:
    for name in names:
        if fields.get(name):
            return clean_text(fields[name])
    return None


def parse_facebook(text: str, number: int, variation_type: str) -> FacebookAdContent:
    fields = extract_labeled_fields(text, ["PRIMARY_TEXT", "BODY", "HEADLINE"])
    return FacebookAdContent(
        primary_text=_field(fields, "PRIMARY_TEXT", "BODY")
        or f"Compelling primary text for {variation_type} approach {number}",
        headline=_field(fields, "HEADLINE") or f"Free Offer: Transform Your Results {number}",
    )


def parse_google(text: str, number: int, variation_type: str) -> GoogleAdContent:
    fields = extract_labeled_fields(
        text, ["HEADLINE", "DESCRIPTION1", "DESCRIPTION_1", "DESCRIPTION2", "DESCRIPTION_2",
               "PATH1", "PATH2"],
    )
    return GoogleAdContent(
        headline=_field(fields, "HEADLINE") or f"Headline {number}",
        description1=_field(fields, "DESCRIPTION1", "DESCRIPTION_1")
        or f"Description for {variation_type} approach {number}",
        description2=_field(fields, "DESCRIPTION2", "DESCRIPTION_2"),
        path1=_field(fields, "PATH1"),
        path2=_field(fields, "PATH2"),
    )


def _hashtags(raw: str | None) -> list[str]:
    if not raw:
        return []
    tags = []
    for token in re.split(r"[\s,]+", raw):
        token = token.strip().lstrip("#")
        if token:
            tags.append(f"#{token}")
    return tags


def parse_tiktok(text: str, number: int, variation_type: str) -> TikTokAdContent:
    fields = extract_labeled_fields(text, ["CAPTION", "HASHTAGS"])
    return TikTokAdContent(
        caption=_field(fields, "CAPTION") or f"Caption for {variation_type} approach {number}",
        hashtags=_hashtags(fields.get("HASHTAGS")),
    )


_PARSERS: dict[str, Callable[[str, int, str], BaseModel]] = {
    "facebook": parse_facebook,
    "google": parse_google,
    "tiktok": parse_tiktok,
}

SUPPORTED_PLATFORMS = tuple(_PARSERS)


def parse_ad_content(
    platform: str, text: str, number: int, variation_type: str
) -> AdContent:
    """Parse model output for ``platform``; ``number`` is the 1-based variation number."""
    try:
        parser = _PARSERS[platform]
    except KeyError:
        raise ValueError(f"Unsupported platform '{platform}'") from None
    return parser(text, number, variation_type)


def content_text(content: AdContent) -> str:
    """Flatten content to plain text (used for token estimates)."""
    if isinstance(content, FacebookAdContent):
        return f"{content.primary_text}\n{content.headline}"
    if isinstance(content, GoogleAdContent):
        return "\n".join(
            v for v in (content.headline, content.description1, content.description2) if v
        )
    return f"{content.caption}\n{' '.join(content.hashtags)}"
