"""Built-in seed definitions for the per-platform default ad copy templates."""

from __future__ import annotations

from typing import Any

SYSTEM_USER_ID = "system"
DEFAULT_PROMPT_TYPE = "ad_copy"
DEFAULT_SYSTEM_PROMPT = (
    "You are an expert ad copywriter specialized in creating high-converting ad copy."
)

_ASSETS_SECTION = {
    "id": "assets",
    "name": "Asset Context",
    "content": "VISUAL/AUDIO ASSETS CONTEXT:\n{assetInterpretations}",
    "editable": False,
    "required": False,
}
_LANDING_SECTION = {
    "id": "landing_pages",
    "name": "Landing Page Content",
    "content": "LANDING PAGE CONTENT:\n{landingPageContent}",
    "editable": False,
    "required": False,
}

FACEBOOK_SECTIONS: list[dict[str, Any]] = [
    {
        "id": "intro",
        "name": "Introduction",
        "content": (
            "You are an experienced ad copywriter with extensive expertise in direct response "
            "copywriting. You produce persuasive, engaging Facebook ad copy that drives clicks, "
            "conversions, and overall campaign success.\n\n"
            "PROJECT: {projectName}\n\n"
            "TASK: Create Facebook ad copy following this EXACT structure:\n"
            "1. Primary Text (main paragraph)\n"
            "2. Headline (featuring free offering)\n\n"
            "VARIATION TYPE: {variationType}"
        ),
        "editable": True,
        "required": True,
        "order": 1,
    },
    {
        "id": "rules",
        "name": "Formatting Rules",
        "content": (
            "STRICT FORMATTING RULES:\n"
            "- Do NOT include dates, times, bold, italic, underline, or hyperlink formats\n"
            "- Do NOT use em dashes\n"
            "- Do NOT start Primary Text with a headline - go directly into the main paragraph\n"
            "- Use emojis ONLY in bullet points within Primary Text\n"
            "- Craft headlines that prominently feature the free offering (e.g., 'Free Online "
            "Summit: xxx', 'Free Webinar: xxx', 'Free eBook: xxx')"
        ),
        "editable": True,
        "required": True,
        "order": 2,
    },
    {
        "id": "structure",
        "name": "Primary Text Structure",
        "content": (
            "PRIMARY TEXT STRUCTURE:\n"
            "1. Start with a hook considering myths, goals, fears, or frustrations of the target "
            "audience\n"
            "2. Include compelling story or narrative (if available from context)\n"
            "3. Add emoji bullet list highlighting benefits/outcomes the audience will experience\n"
            "4. End with call-to-action paired with social proof or scarcity component"
        ),
        "editable": True,
        "required": True,
        "order": 3,
    },
    {**_ASSETS_SECTION, "order": 4},
    {**_LANDING_SECTION, "order": 5},
    {
        "id": "output_format",
        "name": "Output Format",
        "content": (
            "OUTPUT FORMAT:\n"
            "PRIMARY_TEXT: [Your primary text here - no headline, direct into main paragraph "
            "with hook, story, emoji bullets, and CTA with social proof/scarcity]\n\n"
            "HEADLINE: [Your headline featuring free offering]\n\n"
            "Generate the Facebook ad copy now:"
        ),
        "editable": True,
        "required": True,
        "order": 6,
    },
]

GOOGLE_SECTIONS: list[dict[str, Any]] = [
    {
        "id": "intro",
        "name": "Introduction",
        "content": (
            "You are an expert Google Ads copywriter. Create compelling, persuasive Google Ads "
            "copy that drives conversions and follows Google's advertising policies.\n\n"
            "PROJECT: {projectName}\n\n"
            "TASK: Create Google Ads copy with:\n"
            "1. Headline (30 characters max)\n"
            "2. Description 1 (90 characters max)\n"
            "3. Description 2 (90 characters max, optional)\n\n"
            "VARIATION TYPE: {variationType}"
        ),
        "editable": True,
        "required": True,
        "order": 1,
    },
    {
        "id": "rules",
        "name": "Google Ads Rules",
        "content": (
            "GOOGLE ADS REQUIREMENTS:\n"
            "- Headlines: Maximum 30 characters\n"
            "- Descriptions: Maximum 90 characters each\n"
            "- Include relevant keywords naturally\n"
            "- Clear call-to-action\n"
            "- Comply with Google Ads policies\n"
            "- Focus on benefits and value proposition"
        ),
        "editable": True,
        "required": True,
        "order": 2,
    },
    {**_ASSETS_SECTION, "order": 3},
    {**_LANDING_SECTION, "order": 4},
    {
        "id": "output_format",
        "name": "Output Format",
        "content": (
            "OUTPUT FORMAT:\n"
            "HEADLINE: [Your headline here - max 30 characters]\n\n"
            "DESCRIPTION1: [Your first description - max 90 characters]\n\n"
            "DESCRIPTION2: [Your second description - max 90 characters, optional]\n\n"
            "Generate the Google Ads copy now:"
        ),
        "editable": True,
        "required": True,
        "order": 5,
    },
]

TIKTOK_SECTIONS: list[dict[str, Any]] = [
    {
        "id": "intro",
        "name": "Introduction",
        "content": (
            "You are an expert TikTok ad copywriter. Create engaging, trendy TikTok ad copy that "
            "resonates with TikTok's young, dynamic audience.\n\n"
            "PROJECT: {projectName}\n\n"
            "TASK: Create TikTok ad copy with:\n"
            "1. Caption (engaging, conversational)\n"
            "2. Hashtags (relevant, trending)\n\n"
            "VARIATION TYPE: {variationType}"
        ),
        "editable": True,
        "required": True,
        "order": 1,
    },
    {
        "id": "rules",
        "name": "TikTok Style Guide",
        "content": (
            "TIKTOK BEST PRACTICES:\n"
            "- Use casual, conversational language\n"
            "- Include trending phrases and slang\n"
            "- Keep it authentic and relatable\n"
            "- Use relevant hashtags (5-10 max)\n"
            "- Include a clear call-to-action\n"
            "- Appeal to emotions and trends"
        ),
        "editable": True,
        "required": True,
        "order": 2,
    },
    {**_ASSETS_SECTION, "order": 3},
    {**_LANDING_SECTION, "order": 4},
    {
        "id": "output_format",
        "name": "Output Format",
        "content": (
            "OUTPUT FORMAT:\n"
            "CAPTION: [Your engaging TikTok caption here]\n\n"
            "HASHTAGS: [List of relevant hashtags separated by spaces]\n\n"
            "Generate the TikTok ad copy now:"
        ),
        "editable": True,
        "required": True,
        "order": 5,
    },
]

SEED_SECTIONS: dict[str, list[dict[str, Any]]] = {
    "facebook": FACEBOOK_SECTIONS,
    "google": GOOGLE_SECTIONS,
    "tiktok": TIKTOK_SECTIONS,
}


def default_template_name(platform: str) -> str:
    return f"Default {platform[:1].upper()}{platform[1:]} Template"


def seed_template_body(platform: str) -> dict[str, Any]:
    """Template JSON for a platform's default; unknown platforms get no sections."""
    return {
        "platform": platform,
        "system_prompt": DEFAULT_SYSTEM_PROMPT,
        "sections": [dict(s) for s in SEED_SECTIONS.get(platform, [])],
    }
