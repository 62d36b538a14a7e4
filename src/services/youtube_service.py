"""YouTube search service using the YouTube Data API v3."""

import logging
import re
from typing import Callable, Dict, Iterable, List, Optional

import httplib2
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from models.video import CandidateVideo, VideoMetadata
from utils.errors import ProviderUnavailableError
from utils.retry import RetryableError, classify_google_error, retry_api_call

logger = logging.getLogger(__name__)

YOUTUBE_API_SERVICE_NAME = "youtube"
YOUTUBE_API_VERSION = "v3"

# Fixed search profile: medium length, English, strict safe search
SEARCH_PROFILE = {
    "type": "video",
    "videoDuration": "medium",
    "relevanceLanguage": "en",
    "safeSearch": "strict",
}

# Extra hits requested per search to absorb eligibility filtering
SEARCH_OVERFETCH = 3

# YouTube allows up to 50 video IDs per request
MAX_IDS_PER_REQUEST = 50

DESCRIPTION_MAX_CHARS = 500

_DURATION_RE = re.compile(r"^PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?$")


def format_duration(iso_duration: Optional[str]) -> str:
    """Convert an ISO 8601 duration like PT1H2M3S to "1:02:03" or "M:SS".

    Returns "Unknown" for missing or unparseable input.
    """
    if not iso_duration or not isinstance(iso_duration, str):
        return "Unknown"

    match = _DURATION_RE.match(iso_duration.strip())
    if not match:
        return "Unknown"

    hours, minutes, seconds = (int(part or 0) for part in match.groups())

    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def parse_view_count(value) -> int:
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


def merge_unique_videos(result_lists: Iterable[List[CandidateVideo]]) -> List[CandidateVideo]:
    """Flatten per-query results in order, keeping the first occurrence of each video ID."""
    merged: List[CandidateVideo] = []
    seen_ids = set()

    for videos in result_lists:
        for video in videos:
            if video.video_id in seen_ids:
                continue
            seen_ids.add(video.video_id)
            merged.append(video)

    return merged


class YouTubeService:
    """Service for searching YouTube videos through the Data API.

    All public methods are best effort: a missing key or any provider failure
    yields an empty result instead of an exception.
    """

    def __init__(
        self,
        api_key: Optional[str],
        timeout_seconds: float = 15.0,
        http_factory: Optional[Callable[[], httplib2.Http]] = None,
    ):
        """Initialize YouTube search service.

        Args:
            api_key: YouTube Data API key; None disables video search
            timeout_seconds: Socket timeout for each request
            http_factory: Builds the HTTP transport for each client
        """
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self._http_factory = http_factory or (lambda: httplib2.Http(timeout=self.timeout_seconds))

        if not api_key:
            logger.warning("YOUTUBE_API_KEY not set, video search is disabled")

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def _client(self):
        # A fresh client per call; httplib2.Http is not thread safe
        return build(
            YOUTUBE_API_SERVICE_NAME,
            YOUTUBE_API_VERSION,
            developerKey=self.api_key,
            http=self._http_factory(),
            cache_discovery=False,
            static_discovery=True,
        )

    @retry_api_call(max_retries=2, base_delay=1.0)
    def _execute(self, request) -> Dict:
        try:
            return request.execute()
        except Exception as e:
            classified = classify_google_error(e)
            if classified is not e:
                raise classified from e
            raise

    def _request(self, request) -> Dict:
        """Execute with retries; any remaining failure becomes ProviderUnavailableError."""
        try:
            return self._execute(request)
        except (RetryableError, HttpError, OSError, httplib2.HttpLib2Error) as e:
            raise ProviderUnavailableError(f"YouTube request failed: {e}") from e

    def search_videos(self, query: str, limit: int = 2, difficulty: str = "intermediate") -> List[CandidateVideo]:
        """Search YouTube for embeddable, public videos matching the query.

        Args:
            query: Search text
            limit: Maximum number of videos to return
            difficulty: Tier attached to every returned video

        Returns:
            Up to ``limit`` videos in provider order
        """
        if not self.enabled:
            logger.warning("No YouTube API key, cannot search for videos")
            return []
        if not query or not query.strip() or limit <= 0:
            return []

        logger.info(f"Searching YouTube for: '{query}' ({difficulty})")

        try:
            youtube = self._client()
            search_response = self._request(
                youtube.search().list(
                    part="snippet",
                    q=query,
                    maxResults=limit + SEARCH_OVERFETCH,
                    **SEARCH_PROFILE,
                )
            )

            hits = [
                item for item in search_response.get("items", [])
                if item.get("id", {}).get("videoId")
            ]
            if not hits:
                logger.info(f"No results for query: {query}")
                return []

            video_ids = [item["id"]["videoId"] for item in hits]
            details_response = self._request(
                youtube.videos().list(
                    part="contentDetails,statistics,status",
                    id=",".join(video_ids),
                )
            )
            details_map = {item["id"]: item for item in details_response.get("items", []) if "id" in item}

            videos: List[CandidateVideo] = []
            filtered_count = 0
            for item in hits:
                video_id = item["id"]["videoId"]
                details = details_map.get(video_id)

                filter_reason = self._ineligible_reason(details)
                if filter_reason:
                    filtered_count += 1
                    logger.debug(f"Video {video_id} filtered: {filter_reason}")
                    continue

                videos.append(self._parse_video(item, details, difficulty))

                # Stop once we have enough videos
                if len(videos) >= limit:
                    break

            if filtered_count > 0:
                logger.info(f"Filtered out {filtered_count} videos that were not embeddable or public")
            logger.info(f"Found {len(videos)} valid videos for: '{query}'")
            return videos

        except ProviderUnavailableError as e:
            logger.warning(f"YouTube search failed for '{query}': {e}")
            return []
        except Exception as e:
            logger.error(f"Unexpected YouTube response for '{query}': {e}")
            return []

    @staticmethod
    def _ineligible_reason(details: Optional[Dict]) -> Optional[str]:
        if not details:
            return "no details returned"
        status = details.get("status", {})
        if not status.get("embeddable"):
            return "not embeddable"
        if status.get("privacyStatus") != "public":
            return f"privacy status {status.get('privacyStatus')!r}"
        return None

    @staticmethod
    def _parse_video(item: Dict, details: Dict, difficulty: str) -> CandidateVideo:
        video_id = item["id"]["videoId"]
        snippet = item.get("snippet", {})
        thumbnails = snippet.get("thumbnails", {})
        thumbnail = (thumbnails.get("medium") or thumbnails.get("default") or {}).get("url")

        return CandidateVideo(
            video_id=video_id,
            title=snippet.get("title", "Unknown Title"),
            channel=snippet.get("channelTitle", ""),
            url=f"https://www.youtube.com/watch?v={video_id}",
            thumbnail=thumbnail,
            duration=format_duration(details.get("contentDetails", {}).get("duration")),
            view_count=parse_view_count(details.get("statistics", {}).get("viewCount")),
            difficulty=difficulty,
        )

    def get_video_metadata(self, video_ids: List[str]) -> Dict[str, VideoMetadata]:
        """Fetch description and tags for a batch of videos.

        Returns:
            Mapping of video_id -> metadata; empty on a missing key or any failure
        """
        if not self.enabled or not video_ids:
            return {}

        metadata: Dict[str, VideoMetadata] = {}
        try:
            youtube = self._client()
            for i in range(0, len(video_ids), MAX_IDS_PER_REQUEST):
                batch_ids = video_ids[i:i + MAX_IDS_PER_REQUEST]
                response = self._request(
                    youtube.videos().list(part="snippet", id=",".join(batch_ids))
                )
                for item in response.get("items", []):
                    snippet = item.get("snippet", {})
                    metadata[item["id"]] = VideoMetadata(
                        description=(snippet.get("description") or "")[:DESCRIPTION_MAX_CHARS],
                        tags=list(snippet.get("tags") or []),
                    )
        except ProviderUnavailableError as e:
            logger.warning(f"YouTube metadata fetch failed for {len(video_ids)} videos: {e}")
            return {}
        except Exception as e:
            logger.error(f"Unexpected YouTube metadata response: {e}")
            return {}

        return metadata
