"""Main Athena class for orchestrating a study session."""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

from models.session import SessionResult, StudyInput
from models.video import CandidateVideo, SearchQuery, sort_by_difficulty
from services.ai_service import AIService, extract_json_payload
from services.prompts import build_image_topic_prompt, build_text_topic_prompt
from services.verification import DEFAULT_MAIN_TOPIC, verify_relevance
from services.youtube_service import YouTubeService, merge_unique_videos
from utils.config import load_config
from utils.errors import InvalidInputError, MissingCredentialError, UpstreamParseError

logger = logging.getLogger(__name__)


def parse_search_queries(raw_queries: Any) -> List[SearchQuery]:
    """Turn the model's ``search_queries`` field into SearchQuery objects.

    Entries may be ``{"query", "difficulty"}`` objects or bare strings; bare
    strings are tagged intermediate and blank entries are dropped.
    """
    if not isinstance(raw_queries, list):
        return []

    queries = []
    for entry in raw_queries:
        if isinstance(entry, str):
            text, difficulty = entry, "intermediate"
        elif isinstance(entry, dict):
            text = entry.get("query") or entry.get("text") or ""
            difficulty = entry.get("difficulty") or "intermediate"
        else:
            continue
        if isinstance(text, str) and text.strip():
            queries.append(SearchQuery(text=text.strip(), difficulty=str(difficulty).strip().lower()))
    return queries


def dedupe_videos(videos: List[CandidateVideo]) -> List[CandidateVideo]:
    return merge_unique_videos([videos])


class StudySessionProcessor:
    """Central orchestrator for Athena study sessions."""

    def __init__(
        self,
        config: Optional[Dict] = None,
        ai_service: Optional[Any] = None,
        youtube_service: Optional[Any] = None,
    ):
        """Initialize the processor with configuration.

        Args:
            config: Settings from load_config()
            ai_service: Gemini capability; built from config when omitted
            youtube_service: Video provider capability; built from config when omitted
        """
        self.config = config if config is not None else load_config()

        timeout = self.config.get("request_timeout_seconds", 15.0)

        if ai_service is None:
            gemini_api_key = self.config.get("gemini_api_key")
            if not gemini_api_key:
                raise MissingCredentialError("Gemini API key is required")
            ai_service = AIService(
                gemini_api_key,
                self.config.get("gemini_model", "gemini-2.0-flash"),
                timeout_seconds=timeout,
            )
        self.ai_service = ai_service

        if youtube_service is None:
            youtube_service = YouTubeService(self.config.get("youtube_api_key"), timeout_seconds=timeout)
        self.youtube_service = youtube_service

        self.skip_verification = bool(self.config.get("skip_verification", False))
        self.videos_per_query = self.config.get("videos_per_query", 2)
        self.max_videos = self.config.get("max_videos", 4)

        mode = "fast (no verification)" if self.skip_verification else "verified"
        logger.info(f"Athena initialized, video path: {mode}")

    async def run_session(self, study_input: StudyInput) -> SessionResult:
        """Process one learner submission through the complete pipeline."""
        start_time = time.time()

        if study_input.has_text:
            contents = build_text_topic_prompt(study_input.text)
        elif study_input.has_image:
            contents = [AIService.image_part(study_input.image), build_image_topic_prompt()]
        else:
            raise InvalidInputError("Neither text nor image was provided")

        analysis = await self.analyze_topic(contents)

        overview = str(analysis.get("overview") or "")
        raw_concepts = analysis.get("key_concepts") or []
        if not isinstance(raw_concepts, list):
            raw_concepts = [raw_concepts]
        key_concepts = [str(c).strip() for c in raw_concepts if c is not None and str(c).strip()]
        study_tip = str(analysis.get("study_tip") or "")

        if study_input.has_text:
            original_topic = study_input.text
        else:
            original_topic = overview or DEFAULT_MAIN_TOPIC

        queries = parse_search_queries(analysis.get("search_queries"))
        videos: List[CandidateVideo] = []
        if queries:
            logger.info(f"Generated search queries: {[(q.difficulty, q.text) for q in queries]}")
            candidates = await self.search_all_queries(queries, self.videos_per_query)
            if candidates:
                videos = await self.select_videos(original_topic, key_concepts, candidates)
        else:
            logger.warning("Topic analysis returned no search queries")

        videos = dedupe_videos(videos)
        logger.info(f"Final video count: {len(videos)} ({time.time() - start_time:.1f}s)")

        return SessionResult(
            overview=overview,
            key_concepts=key_concepts,
            videos=videos,
            study_tip=study_tip,
        )

    async def analyze_topic(self, contents) -> Dict:
        """Ask Gemini for the overview, key concepts, study tip and search queries."""
        response_text = await self.ai_service.generate(contents, temperature=0.7, max_output_tokens=1024)
        logger.info("Topic analysis call successful")

        analysis = extract_json_payload(response_text)
        if not isinstance(analysis, dict):
            raise UpstreamParseError(f"Topic analysis is not a JSON object: {type(analysis).__name__}")
        return analysis

    async def search_youtube_videos(self, query: SearchQuery, limit: int) -> List[CandidateVideo]:
        """Search YouTube for one query without blocking the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, self.youtube_service.search_videos, query.text, limit, query.difficulty
        )

    async def search_all_queries(self, queries: List[SearchQuery], per_query_limit: int) -> List[CandidateVideo]:
        """Run every query concurrently and merge the results in query order."""
        results = await asyncio.gather(
            *(self.search_youtube_videos(query, per_query_limit) for query in queries),
            return_exceptions=True,
        )

        result_lists = []
        for query, result in zip(queries, results):
            if isinstance(result, BaseException):
                logger.error(f"Search failed for '{query.text}': {result}")
                continue
            result_lists.append(result)

        merged = merge_unique_videos(result_lists)
        logger.info(f"Collected {len(merged)} unique videos from {len(queries)} queries")
        return merged

    async def select_videos(
        self, original_topic: str, key_concepts: List[str], candidates: List[CandidateVideo]
    ) -> List[CandidateVideo]:
        """Order candidates by difficulty, verifying relevance unless the fast path is on."""
        if self.skip_verification:
            logger.info("Skipping verification for faster response")
            selected = sort_by_difficulty(candidates)
        else:
            selected = await verify_relevance(
                self.ai_service, self.youtube_service, original_topic, key_concepts, candidates
            )
        return selected[:self.max_videos]
