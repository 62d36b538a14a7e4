"""Video-related data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class DifficultyTier(Enum):
    """Difficulty tier attached to a search query and its videos."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


DIFFICULTY_ORDER = {
    DifficultyTier.BEGINNER.value: 0,
    DifficultyTier.INTERMEDIATE.value: 1,
    DifficultyTier.ADVANCED.value: 2,
}


def difficulty_rank(difficulty: Optional[str]) -> int:
    """Ordinal rank of a tier; unknown tiers rank as intermediate."""
    return DIFFICULTY_ORDER.get(difficulty, DIFFICULTY_ORDER["intermediate"])


def sort_by_difficulty(videos: List["CandidateVideo"]) -> List["CandidateVideo"]:
    """Stable sort, beginner first."""
    return sorted(videos, key=lambda v: difficulty_rank(v.difficulty))


@dataclass(frozen=True)
class SearchQuery:
    """A YouTube search query produced by the model for one difficulty tier."""

    text: str
    difficulty: str = DifficultyTier.INTERMEDIATE.value


@dataclass(frozen=True)
class CandidateVideo:
    """Represents an eligible YouTube video found for a search query."""

    video_id: str
    title: str
    channel: str
    url: str
    duration: str  # "M:SS", "H:MM:SS" or "Unknown"
    view_count: int = 0
    difficulty: str = DifficultyTier.INTERMEDIATE.value
    thumbnail: Optional[str] = None

    def to_dict(self) -> dict:
        """Public JSON shape of a recommended video."""
        return {
            'title': self.title,
            'channel': self.channel,
            'url': self.url,
            'videoId': self.video_id,
            'thumbnail': self.thumbnail,
            'duration': self.duration,
            'viewCount': self.view_count,
            'difficulty': self.difficulty,
        }


@dataclass(frozen=True)
class VideoMetadata:
    """Extended snippet data used only to score relevance."""

    description: str = ""
    tags: List[str] = field(default_factory=list)


@dataclass
class ScoredVideo:
    """Represents a candidate with its AI relevance score."""

    video: CandidateVideo
    score: int  # 0-10 rating from the relevance check
    description: str = ""
    tags: List[str] = field(default_factory=list)
