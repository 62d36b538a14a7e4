"""Prompt templates sent to Gemini."""

from typing import List

from models.video import CandidateVideo, VideoMetadata

TRUSTED_CHANNELS = [
    "3Blue1Brown",
    "Khan Academy",
    "Crash Course",
    "Professor Leonard",
    "Organic Chemistry Tutor",
]

DESCRIPTION_PREVIEW_CHARS = 150

_RESPONSE_FORMAT = """## RESPONSE FORMAT
Return ONLY valid JSON:
{{
  "overview": "{overview_hint}",
  "key_concepts": ["main_topic", "related_concept1", "related_concept2"],
  "search_queries": [
    {{"query": "specific topic beginner explanation channel_name", "difficulty": "beginner"}},
    {{"query": "specific topic detailed explanation channel_name", "difficulty": "intermediate"}},
    {{"query": "specific topic advanced applications", "difficulty": "advanced"}}
  ],
  "study_tip": "{tip_hint}"
}}"""


def _query_guidelines(source: str, example_topic: str, examples: List[str]) -> str:
    channels = ", ".join(f'"{name}"' for name in TRUSTED_CHANNELS)
    lines = [
        "## SEARCH QUERY GUIDELINES",
        "- **CRITICAL**: All queries must be about the SAME main topic, just at different depths",
        f"- Include trusted channel names ({channels})",
        f"- Be SPECIFIC - use the exact terminology from the {source}",
        f'- Example for "{example_topic}":',
        f'  - Beginner: "{examples[0]}"',
        f'  - Intermediate: "{examples[1]}"',
        f'  - Advanced: "{examples[2]}"',
    ]
    return "\n".join(lines)


def build_text_topic_prompt(text: str) -> str:
    """Topic analysis prompt for a pasted text passage."""
    guidelines = _query_guidelines(
        "text",
        "Fourier Transform",
        [
            "3Blue1Brown Fourier Transform visual introduction",
            "Khan Academy Fourier Transform step by step",
            "Fourier Transform applications signal processing",
        ],
    )
    response_format = _RESPONSE_FORMAT.format(
        overview_hint="A brief 2-3 sentence explanation of the concept in simple terms.",
        tip_hint="A helpful tip for understanding this topic",
    )
    return f"""You are Athena, an expert AI study companion designed to help students deeply understand difficult academic concepts.

## YOUR MISSION
A student is struggling to understand this text from their studies:
\"\"\"
{text}
\"\"\"

## ANALYSIS INSTRUCTIONS
1. **Identify the EXACT Topic**: What specific concept is being discussed? (e.g., "Fourier Transform", not just "frequency")
2. **Generate YouTube Search Queries**: Create 3 search queries that DIRECTLY explain this specific topic.

{guidelines}

{response_format}"""


def build_image_topic_prompt() -> str:
    """Topic analysis prompt sent alongside an uploaded image."""
    guidelines = _query_guidelines(
        "image",
        "Photosynthesis",
        [
            "Khan Academy photosynthesis simple explanation",
            "Professor Leonard photosynthesis detailed process",
            "Photosynthesis light-dependent reactions electron transport chain",
        ],
    )
    response_format = _RESPONSE_FORMAT.format(
        overview_hint="A brief 2-3 sentence explanation of the concept visible in the image.",
        tip_hint="A helpful tip for understanding this topic based on the image",
    )
    return f"""You are Athena, an expert AI study companion designed to help students deeply understand difficult academic concepts.

## YOUR MISSION
A student has uploaded an image (screenshot, textbook page, notes, etc.) that they're struggling to understand.
Analyze this image and help them learn.

## ANALYSIS INSTRUCTIONS
1. **Identify the EXACT Topic**: What specific concept or topic is shown in the image? (e.g., "Photosynthesis", not just "biology")
2. **Extract Key Information**: What are the main points or concepts visible?
3. **Generate YouTube Search Queries**: Create 3 search queries that DIRECTLY explain this specific topic.

{guidelines}

{response_format}"""


def build_relevance_prompt(
    main_topic: str,
    original_topic: str,
    videos: List[CandidateVideo],
    metadata: List[VideoMetadata],
) -> str:
    """Ask for one 0-10 score per video, aligned with the list order."""
    video_list = "\n".join(
        f'{i}: "{video.title}" - {meta.description[:DESCRIPTION_PREVIEW_CHARS]}'
        for i, (video, meta) in enumerate(zip(videos, metadata))
    )
    context = " ".join(original_topic.split())[:200]

    return f"""Does each video DIRECTLY teach "{main_topic}"? Rate 0-10 (10=perfect match, 0=unrelated).

The student is studying: "{context}"

Videos:
{video_list}

Be STRICT: Only videos that specifically explain "{main_topic}" should score 7+.
Generic or tangentially related videos should score low.

Return JSON only, one integer per video in the same order: {{"scores":[8,3,9,2,7,4]}}"""
