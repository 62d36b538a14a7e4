"""Shared fixtures for the Athena test suite."""

import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent / "src"))

from models.video import CandidateVideo, VideoMetadata  # noqa: E402


class FakeAIService:
    """Stands in for AIService: replays canned replies in call order."""

    def __init__(self, replies: List):
        self.replies = list(replies)
        self.calls = []

    async def generate(self, contents, temperature: float = 0.7, max_output_tokens: int = 1024) -> str:
        self.calls.append(contents)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, (dict, list)):
            return json.dumps(reply)
        return reply


class FakeYouTubeService:
    """Stands in for YouTubeService with per-query canned results."""

    def __init__(
        self,
        results: Optional[Dict[str, List[CandidateVideo]]] = None,
        metadata: Optional[Dict[str, VideoMetadata]] = None,
        failing_queries: Optional[set] = None,
    ):
        self.results = results or {}
        self.metadata = metadata or {}
        self.failing_queries = failing_queries or set()
        self.searches = []
        self.metadata_requests = []

    def search_videos(self, query: str, limit: int = 2, difficulty: str = "intermediate") -> List[CandidateVideo]:
        self.searches.append((query, limit, difficulty))
        if query in self.failing_queries:
            raise RuntimeError(f"search exploded for {query}")
        return [
            replace(video, difficulty=difficulty)
            for video in self.results.get(query, [])[:limit]
        ]

    def get_video_metadata(self, video_ids: List[str]) -> Dict[str, VideoMetadata]:
        self.metadata_requests.append(list(video_ids))
        return {vid: self.metadata[vid] for vid in video_ids if vid in self.metadata}


def make_video(video_id: str, difficulty: str = "intermediate", title: Optional[str] = None) -> CandidateVideo:
    return CandidateVideo(
        video_id=video_id,
        title=title or f"Video {video_id}",
        channel="Khan Academy",
        url=f"https://www.youtube.com/watch?v={video_id}",
        duration="10:00",
        view_count=1000,
        difficulty=difficulty,
        thumbnail=f"https://i.ytimg.com/vi/{video_id}/mqdefault.jpg",
    )


@pytest.fixture
def video_factory():
    return make_video


@pytest.fixture
def fake_ai_factory():
    return FakeAIService


@pytest.fixture
def fake_youtube_factory():
    return FakeYouTubeService


@pytest.fixture
def base_config() -> Dict:
    return {
        "gemini_api_key": "test-gemini-key",
        "youtube_api_key": "test-youtube-key",
        "gemini_model": "gemini-2.0-flash",
        "skip_verification": False,
        "videos_per_query": 2,
        "max_videos": 4,
        "request_timeout_seconds": 5.0,
        "host": "127.0.0.1",
        "port": 3001,
        "log_level": "INFO",
        "log_file": None,
    }
