"""Session input and result models for Athena."""

from dataclasses import dataclass, field
from typing import List, Optional

from models.video import CandidateVideo


@dataclass(frozen=True)
class StudyInput:
    """What the learner submitted: a text passage or an image."""

    text: Optional[str] = None
    image: Optional[str] = None  # data URL or bare base64

    @property
    def has_text(self) -> bool:
        return bool(self.text and self.text.strip())

    @property
    def has_image(self) -> bool:
        return bool(self.image and self.image.strip())


@dataclass
class SessionResult:
    """The payload returned for one study session."""

    overview: str
    key_concepts: List[str] = field(default_factory=list)
    videos: List[CandidateVideo] = field(default_factory=list)
    study_tip: str = ""

    def to_dict(self) -> dict:
        """Convert result to the JSON body returned to the client."""
        return {
            'overview': self.overview,
            'key_concepts': list(self.key_concepts),
            'videos': [video.to_dict() for video in self.videos],
            'study_tip': self.study_tip,
        }
