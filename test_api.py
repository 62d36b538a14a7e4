"""HTTP contract tests for the Athena API."""

import base64

import pytest
from fastapi.testclient import TestClient
from google.genai import errors as genai_errors

from api import create_app
from services.youtube_service import YouTubeService
from study_processor import StudySessionProcessor
from utils.errors import InvalidCredentialError

ANALYSIS = {
    "overview": "Entropy measures how spread out energy is.",
    "key_concepts": ["Entropy", "second law of thermodynamics"],
    "search_queries": [
        {"query": "Crash Course entropy", "difficulty": "beginner"},
        {"query": "Khan Academy entropy", "difficulty": "intermediate"},
        {"query": "entropy statistical mechanics", "difficulty": "advanced"},
    ],
    "study_tip": "Think of entropy as counting arrangements.",
}


@pytest.fixture
def make_client(base_config, fake_ai_factory):
    def _make(replies, youtube_service=None):
        processor = StudySessionProcessor(
            base_config,
            ai_service=fake_ai_factory(replies),
            youtube_service=youtube_service or YouTubeService(None),
        )
        return TestClient(create_app(processor))
    return _make


def test_health(make_client):
    response = make_client([]).get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_find_videos_without_youtube_key(make_client):
    response = make_client([ANALYSIS]).post("/api/find-videos", json={"text": "What is entropy?"})

    assert response.status_code == 200
    body = response.json()
    assert body == {
        "overview": ANALYSIS["overview"],
        "key_concepts": ANALYSIS["key_concepts"],
        "videos": [],
        "study_tip": ANALYSIS["study_tip"],
    }


def test_find_videos_returns_ordered_unique_videos(make_client, fake_youtube_factory, video_factory):
    youtube = fake_youtube_factory(results={
        "Crash Course entropy": [video_factory("e1"), video_factory("e2")],
        "Khan Academy entropy": [video_factory("e2"), video_factory("e3")],
        "entropy statistical mechanics": [video_factory("e4"), video_factory("e5")],
    })
    client = make_client([ANALYSIS, {"scores": [8, 9, 7, 9, 8]}], youtube_service=youtube)

    response = client.post("/api/find-videos", json={"text": "entropy"})

    assert response.status_code == 200
    videos = response.json()["videos"]
    assert [v["videoId"] for v in videos] == ["e1", "e2", "e3", "e4"]
    assert [v["difficulty"] for v in videos] == ["beginner", "beginner", "intermediate", "advanced"]
    assert set(videos[0]) == {"title", "channel", "url", "videoId", "thumbnail", "duration", "viewCount", "difficulty"}


@pytest.mark.parametrize("body", [{"text": ""}, {"text": "   "}, {}])
def test_find_videos_rejects_empty_text(make_client, body):
    response = make_client([]).post("/api/find-videos", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "Text is required"}


def test_find_videos_rejects_non_json_body(make_client):
    response = make_client([]).post(
        "/api/find-videos", content=b"not json", headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 400


def test_find_videos_parse_failure(make_client):
    response = make_client(["no json here"]).post("/api/find-videos", json={"text": "entropy"})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to parse AI response. Please try again."}


def test_find_videos_bad_credential(make_client):
    response = make_client([InvalidCredentialError("API key not valid")]).post(
        "/api/find-videos", json={"text": "entropy"}
    )

    assert response.status_code == 401
    assert "API key" in response.json()["error"]


def test_find_videos_unexpected_failure(make_client):
    error = genai_errors.ClientError(400, {"error": {"code": 400, "message": "bad request", "status": "INVALID_ARGUMENT"}})
    response = make_client([error]).post("/api/find-videos", json={"text": "entropy"})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to process request. Please try again."}


def test_find_videos_image(make_client):
    image = "data:image/png;base64," + base64.b64encode(b"\x89PNG fake image").decode()

    response = make_client([ANALYSIS]).post("/api/find-videos-image", json={"image": image})

    assert response.status_code == 200
    assert response.json()["overview"] == ANALYSIS["overview"]


@pytest.mark.parametrize(
    "body, message",
    [
        ({}, "Image is required"),
        ({"image": ""}, "Image is required"),
        ({"image": "data:image/png;base64,"}, "Image data is invalid"),
        ({"image": "%%%not-base64%%%"}, "Image data is invalid"),
    ],
)
def test_find_videos_image_rejects_bad_images(make_client, body, message):
    response = make_client([]).post("/api/find-videos-image", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": message}


def test_find_videos_image_parse_failure(make_client):
    image = base64.b64encode(b"\x89PNG fake image").decode()

    response = make_client(["```json\n{broken\n```"]).post("/api/find-videos-image", json={"image": image})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to parse image. Please try again."}


def test_cors_is_open(make_client):
    response = make_client([]).options(
        "/api/find-videos",
        headers={"Origin": "http://localhost:5173", "Access-Control-Request-Method": "POST"},
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
