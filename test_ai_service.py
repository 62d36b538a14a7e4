"""Tests for model reply parsing, image decoding and retry handling."""

import asyncio
import base64

import pytest

from services.ai_service import (
    AIService,
    decode_image_payload,
    extract_json_payload,
    strip_markdown_code_blocks,
)
from utils.errors import InvalidInputError, MissingCredentialError, UpstreamParseError
from utils.retry import NetworkError, retry_with_backoff

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image"


def test_strip_markdown_code_blocks_removes_json_fence():
    text = '```json\n{"overview": "x"}\n```'
    assert strip_markdown_code_blocks(text) == '{"overview": "x"}'


def test_strip_markdown_code_blocks_removes_bare_fence():
    assert strip_markdown_code_blocks('```\n[1, 2]\n```  ') == "[1, 2]"


def test_strip_markdown_code_blocks_leaves_plain_text():
    assert strip_markdown_code_blocks('  {"scores": [1]} \n') == '{"scores": [1]}'


def test_extract_json_payload_fenced_and_unfenced():
    assert extract_json_payload('```json\n{"scores": [8, 3]}\n```') == {"scores": [8, 3]}
    assert extract_json_payload('{"scores": [8, 3]}') == {"scores": [8, 3]}


@pytest.mark.parametrize("text", ["", "```json\n```", "Sorry, I cannot help with that.", '{"overview": '])
def test_extract_json_payload_malformed(text):
    with pytest.raises(UpstreamParseError):
        extract_json_payload(text)


def test_decode_image_payload_data_url():
    encoded = base64.b64encode(PNG_BYTES).decode()

    raw, mime = decode_image_payload(f"data:image/jpeg;base64,{encoded}")

    assert raw == PNG_BYTES
    assert mime == "image/jpeg"


def test_decode_image_payload_bare_base64_defaults_to_png():
    raw, mime = decode_image_payload(base64.b64encode(PNG_BYTES).decode())

    assert raw == PNG_BYTES
    assert mime == "image/png"


@pytest.mark.parametrize("image", ["", "data:image/png;base64,", "not base64 at all!!"])
def test_decode_image_payload_rejects_invalid(image):
    with pytest.raises(InvalidInputError) as exc_info:
        decode_image_payload(image)
    assert exc_info.value.status_code == 400


def test_ai_service_requires_api_key():
    with pytest.raises(MissingCredentialError):
        AIService("")


def test_retry_with_backoff_retries_coroutines(monkeypatch):
    attempts = []

    async def no_sleep(_delay):
        return None

    monkeypatch.setattr(asyncio, "sleep", no_sleep)

    @retry_with_backoff(max_retries=2, base_delay=0.01, exceptions=(NetworkError,))
    async def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise NetworkError("connection reset")
        return "ok"

    assert asyncio.run(flaky()) == "ok"
    assert len(attempts) == 3


def test_retry_with_backoff_gives_up(monkeypatch):
    monkeypatch.setattr("utils.retry.time.sleep", lambda _delay: None)
    calls = []

    @retry_with_backoff(max_retries=1, base_delay=0.01, exceptions=(NetworkError,))
    def always_down():
        calls.append(1)
        raise NetworkError("down")

    with pytest.raises(NetworkError):
        always_down()
    assert len(calls) == 2
