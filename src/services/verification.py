"""Relevance verification of candidate videos with Gemini."""

import asyncio
import logging
import time
from typing import List, Optional

from models.video import CandidateVideo, ScoredVideo, VideoMetadata, difficulty_rank, sort_by_difficulty
from services.ai_service import extract_json_payload
from services.prompts import build_relevance_prompt
from utils.errors import UpstreamParseError

logger = logging.getLogger(__name__)

RELEVANCE_THRESHOLD = 7
MIN_VERIFIED_VIDEOS = 2
DEFAULT_MAIN_TOPIC = "the topic"


def normalize_score(value) -> int:
    """Coerce one model score to an int in [0, 10]; anything else is 0."""
    if isinstance(value, bool):
        return 0
    try:
        score = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0
    if score < 0 or score > 10:
        return 0
    return score


def parse_scores(response_text: str) -> List[int]:
    """Read the ``{"scores": [...]}`` reply.

    Raises:
        UpstreamParseError: when the reply has no score list
    """
    payload = extract_json_payload(response_text)
    if isinstance(payload, dict):
        scores = payload.get("scores", [])
    elif isinstance(payload, list):
        scores = payload
    else:
        raise UpstreamParseError(f"Unexpected score payload: {payload!r}")

    if not isinstance(scores, list):
        raise UpstreamParseError(f"Scores are not a list: {scores!r}")
    return [normalize_score(score) for score in scores]


def select_verified(scored: List[ScoredVideo]) -> List[CandidateVideo]:
    """Keep videos at or above the threshold, relaxing to the top scorers when too few pass."""
    passed = [item for item in scored if item.score >= RELEVANCE_THRESHOLD]

    if len(passed) < MIN_VERIFIED_VIDEOS:
        logger.info(f"Only {len(passed)} videos passed, taking top {MIN_VERIFIED_VIDEOS} by score")
        # ties keep candidate order
        passed = sorted(scored, key=lambda item: item.score, reverse=True)[:MIN_VERIFIED_VIDEOS]

    passed.sort(key=lambda item: difficulty_rank(item.video.difficulty))
    return [item.video for item in passed]


async def verify_relevance(
    ai_service,
    youtube_service,
    original_topic: str,
    key_concepts: Optional[List[str]],
    videos: List[CandidateVideo],
) -> List[CandidateVideo]:
    """Score every candidate against the primary key concept and filter.

    Any failure of the scoring call returns the candidates unfiltered, sorted
    by difficulty.

    Args:
        ai_service: Object with an async ``generate(contents) -> str``
        youtube_service: Object with ``get_video_metadata(ids)``
        original_topic: What the learner is studying, used as prompt context
        key_concepts: Concepts from topic analysis; the first one is scored against
        videos: Candidates in merge order

    Returns:
        Verified videos, beginner first
    """
    if not videos:
        return []

    start_time = time.monotonic()

    loop = asyncio.get_running_loop()
    try:
        metadata_map = await loop.run_in_executor(
            None, youtube_service.get_video_metadata, [video.video_id for video in videos]
        )
    except Exception as e:
        logger.warning(f"Metadata fetch failed, verifying with titles only: {e}")
        metadata_map = {}

    metadata = [metadata_map.get(video.video_id) or VideoMetadata() for video in videos]

    main_topic = DEFAULT_MAIN_TOPIC
    if key_concepts and isinstance(key_concepts[0], str) and key_concepts[0].strip():
        main_topic = key_concepts[0].strip()

    prompt = build_relevance_prompt(main_topic, original_topic or DEFAULT_MAIN_TOPIC, videos, metadata)

    try:
        response_text = await ai_service.generate(prompt, temperature=0.1, max_output_tokens=256)
        scores = parse_scores(response_text)
    except Exception as e:
        logger.error(f"Verification failed, returning unfiltered: {e}")
        return sort_by_difficulty(videos)

    logger.info(f"Relevance scores for '{main_topic}': {scores}")

    scored = [
        ScoredVideo(
            video=video,
            score=scores[i] if i < len(scores) else 0,
            description=meta.description,
            tags=meta.tags,
        )
        for i, (video, meta) in enumerate(zip(videos, metadata))
    ]
    verified = select_verified(scored)

    elapsed_ms = (time.monotonic() - start_time) * 1000
    logger.info(f"Verified {len(videos)} -> {len(verified)} videos ({elapsed_ms:.0f}ms)")
    return verified
