"""AI service for topic analysis and relevance scoring using Google GenAI."""

import base64
import binascii
import json
import logging
import re
from typing import Any, List, Tuple, Union

from google.genai import Client
from google.genai import errors as genai_errors
from google.genai import types

from utils.config import DEFAULT_GEMINI_MODEL
from utils.errors import (
    InvalidCredentialError,
    InvalidInputError,
    MissingCredentialError,
    UpstreamParseError,
)
from utils.retry import (
    APIRateLimitError,
    NetworkError,
    TemporaryServiceError,
    classify_google_error,
    retry_api_call,
)

logger = logging.getLogger(__name__)

Contents = Union[str, List[Union[str, types.Part]]]

_FENCE_RE = re.compile(r"```(?:json)?[ \t]*\n?", re.IGNORECASE)
_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?:;[^,]*)?,", re.IGNORECASE)


def strip_markdown_code_blocks(text: str) -> str:
    """Strip markdown code fences from AI response text.

    Args:
        text: Raw text that may contain ```json ... ``` fences

    Returns:
        Cleaned text with every fence marker removed
    """
    return _FENCE_RE.sub("", text or "").strip()


def extract_json_payload(text: str) -> Any:
    """Parse the structured payload out of a model reply.

    Raises:
        UpstreamParseError: when the cleaned text is empty or not valid JSON
    """
    cleaned = strip_markdown_code_blocks(text)
    if not cleaned:
        raise UpstreamParseError("AI response is empty")
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.debug(f"Raw AI response: {text}")
        raise UpstreamParseError(f"AI response is not valid JSON: {e}") from e


def decode_image_payload(image: str) -> Tuple[bytes, str]:
    """Decode a data URL or bare base64 string into bytes and a MIME type.

    Raises:
        InvalidInputError: when the payload is empty or not valid base64
    """
    mime_type = "image/png"
    data = (image or "").strip()

    match = _DATA_URL_RE.match(data)
    if match:
        mime_type = match.group("mime") or mime_type
        data = data[match.end():]
    elif "," in data:
        data = data.split(",", 1)[1]

    if not data:
        raise InvalidInputError("Image payload is empty", user_message="Image data is invalid")

    try:
        raw = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidInputError(f"Image is not valid base64: {e}", user_message="Image data is invalid") from e

    if not raw:
        raise InvalidInputError("Image payload decoded to nothing", user_message="Image data is invalid")
    return raw, mime_type


class AIService:
    """Service for Gemini calls: topic analysis and relevance scoring."""

    def __init__(self, api_key: str, model_name: str = DEFAULT_GEMINI_MODEL, timeout_seconds: float = 15.0):
        """Initialize Google GenAI client.

        Args:
            api_key: Google GenAI API key
            model_name: Gemini model to use
            timeout_seconds: Per-request timeout
        """
        if not api_key:
            raise MissingCredentialError("GEMINI_API_KEY is not set")

        self.api_key = api_key
        self.model_name = model_name
        self.client = Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(timeout_seconds * 1000)),
        )

        logger.info(f"Initialized AI service with model: {model_name}")

    @retry_api_call(max_retries=2, base_delay=1.0)
    async def generate(self, contents: Contents, temperature: float = 0.7, max_output_tokens: int = 1024) -> str:
        """Send one request to Gemini and return the reply text.

        Args:
            contents: A prompt string, or a list of image parts and prompt text
            temperature: Sampling temperature
            max_output_tokens: Reply length cap; smaller replies come back faster

        Returns:
            Raw reply text, possibly wrapped in code fences
        """
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model_name,
                contents=contents,
                config=types.GenerateContentConfig(
                    temperature=temperature,
                    max_output_tokens=max_output_tokens,
                ),
            )
        except genai_errors.APIError as e:
            logger.error(f"Gemini request failed ({e.code}): {e}")
            if e.code == 429:
                raise APIRateLimitError(f"Rate limit hit: {e}") from e
            if isinstance(e, genai_errors.ServerError):
                raise TemporaryServiceError(f"Gemini unavailable: {e}") from e
            if e.code in (401, 403) or "api key" in str(e).lower():
                raise InvalidCredentialError(f"Gemini rejected the API key: {e}") from e
            raise
        except Exception as e:
            logger.error(f"Gemini request failed: {e}")
            if "timed out" in str(e).lower() or "timeout" in type(e).__name__.lower():
                raise NetworkError(f"Network error: {e}") from e
            classified = classify_google_error(e)
            if classified is not e:
                raise classified from e
            raise

        text = response.text or ""
        if not text:
            logger.warning("AI response is empty")
        return text

    @staticmethod
    def image_part(image: str) -> types.Part:
        """Build an inline image part from a data URL or bare base64 string."""
        raw, mime_type = decode_image_payload(image)
        logger.info(f"Processing {mime_type} image, {len(raw)} bytes")
        return types.Part.from_bytes(data=raw, mime_type=mime_type)

    def list_models(self) -> List[str]:
        """Return the model names visible to the configured key."""
        return [model.name for model in self.client.models.list()]
