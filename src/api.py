"""HTTP surface for Athena."""

import logging
from typing import Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from models.session import StudyInput
from study_processor import StudySessionProcessor
from utils.errors import AthenaError, InvalidInputError, UpstreamParseError

logger = logging.getLogger(__name__)


class TextRequest(BaseModel):
    text: Optional[str] = None


class ImageRequest(BaseModel):
    image: Optional[str] = None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(processor: Optional[StudySessionProcessor] = None, config: Optional[Dict] = None) -> FastAPI:
    """Build the FastAPI application around one session processor."""
    processor = processor or StudySessionProcessor(config)

    app = FastAPI(title="Athena Study Companion")
    app.state.processor = processor

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AthenaError)
    async def athena_error_handler(_request: Request, exc: AthenaError):
        logger.warning(f"Request failed ({exc.status_code}): {exc}")
        return _error(exc.status_code, exc.user_message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(_request: Request, exc: RequestValidationError):
        logger.warning(f"Invalid request body: {exc.errors()}")
        return _error(400, "Invalid request body")

    async def run(study_input: StudyInput, parse_message: str, failure_message: str) -> JSONResponse:
        try:
            result = await processor.run_session(study_input)
        except UpstreamParseError as e:
            logger.error(f"Failed to parse AI response: {e}")
            return _error(e.status_code, parse_message)
        except AthenaError:
            raise
        except Exception as e:
            logger.exception(f"Session failed: {e}")
            return _error(500, failure_message)
        return JSONResponse(content=result.to_dict())

    @app.get("/api/health")
    async def health():
        return {"status": "ok", "message": "Athena server is running"}

    @app.post("/api/find-videos")
    async def find_videos(body: TextRequest):
        if not body.text or not body.text.strip():
            raise InvalidInputError("Empty text", user_message="Text is required")

        return await run(
            StudyInput(text=body.text),
            "Failed to parse AI response. Please try again.",
            "Failed to process request. Please try again.",
        )

    @app.post("/api/find-videos-image")
    async def find_videos_image(body: ImageRequest):
        if not body.image or not body.image.strip():
            raise InvalidInputError("Missing image", user_message="Image is required")

        return await run(
            StudyInput(image=body.image),
            "Failed to parse image. Please try again.",
            "Failed to process image. Please try again.",
        )

    return app
