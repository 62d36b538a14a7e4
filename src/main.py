"""Main application entry point for Athena."""

import argparse
import logging
import sys
from typing import List, Optional

import uvicorn

from utils.config import setup_logging, load_config, validate_config

logger = logging.getLogger(__name__)


def serve(config: dict) -> None:
    """Start the HTTP server."""
    from api import create_app

    app = create_app(config=config)

    logger.info(f"Athena server running on http://{config['host']}:{config['port']}")
    logger.info(f"Using model: {config['gemini_model']}")
    uvicorn.run(app, host=config["host"], port=config["port"], log_config=None)


def check_gemini(config: dict) -> bool:
    """Verify the Gemini key by listing the models it can see."""
    from services.ai_service import AIService

    try:
        service = AIService(config["gemini_api_key"], config["gemini_model"], config["request_timeout_seconds"])
        models = service.list_models()
    except Exception as e:
        logger.error(f"Gemini API error: {e}")
        return False

    logger.info(f"Gemini API reachable, {len(models)} models available")
    for name in models:
        logger.info(f"  {name}")
    return True


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    parser = argparse.ArgumentParser(prog="athena", description="Find study videos for confusing material.")
    parser.add_argument(
        "command",
        nargs="?",
        default="serve",
        choices=["serve", "check-gemini"],
        help="serve the API (default) or test the Gemini connection",
    )
    args = parser.parse_args(argv)

    config = load_config()
    setup_logging(config["log_level"], config.get("log_file"))

    config_errors = validate_config(config)
    if config_errors:
        logger.error("Configuration errors: " + "; ".join(config_errors))
        sys.exit(1)

    try:
        if args.command == "check-gemini":
            sys.exit(0 if check_gemini(config) else 1)
        serve(config)
    except KeyboardInterrupt:
        logger.info("Application interrupted by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Application error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
