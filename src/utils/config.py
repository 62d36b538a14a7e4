"""Configuration loading and validation for Athena."""

import os
import logging
from typing import Dict, List, Optional
from pathlib import Path
from dotenv import load_dotenv
from rich.logging import RichHandler

# Get the project root directory (parent of src)
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Load environment variables from .env file in project root
load_dotenv(PROJECT_ROOT / '.env')

DEFAULT_GEMINI_MODEL = 'gemini-2.0-flash'


def _env_flag(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).strip().lower() in {'1', 'true', 'yes', 'on'}


def load_config() -> Dict:
    """Load configuration from environment variables."""
    config = {
        # Required API keys
        'gemini_api_key': os.getenv('GEMINI_API_KEY'),

        # Optional: without it sessions still succeed with no videos
        'youtube_api_key': os.getenv('YOUTUBE_API_KEY'),

        # Model configuration
        'gemini_model': os.getenv('GEMINI_MODEL', DEFAULT_GEMINI_MODEL),

        # Pipeline settings
        'skip_verification': _env_flag('SKIP_VERIFICATION'),
        'videos_per_query': int(os.getenv('VIDEOS_PER_QUERY', '2')),
        'max_videos': int(os.getenv('MAX_VIDEOS', '4')),
        'request_timeout_seconds': float(os.getenv('REQUEST_TIMEOUT_SECONDS', '15')),

        # Server
        'host': os.getenv('HOST', '0.0.0.0'),
        'port': int(os.getenv('PORT', '3001')),

        # Logging
        'log_level': os.getenv('LOG_LEVEL', 'INFO'),
        'log_file': os.getenv('LOG_FILE'),
    }

    return config


def validate_config(config: Dict) -> List[str]:
    """Validate configuration and return list of errors."""
    errors = []

    # Check required API key
    if not config.get('gemini_api_key'):
        errors.append("GEMINI_API_KEY is required")

    port = config.get('port', 3001)
    if not isinstance(port, int) or not 0 < port < 65536:
        errors.append(f"PORT must be between 1 and 65535, got {port}")

    if config.get('request_timeout_seconds', 15) <= 0:
        errors.append("REQUEST_TIMEOUT_SECONDS must be positive")

    if config.get('videos_per_query', 2) < 0:
        errors.append("VIDEOS_PER_QUERY cannot be negative")

    # YouTube key is optional; sessions degrade to an empty video list

    return errors


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Set up logging configuration with Rich for beautiful terminal output."""
    # Clear any existing handlers
    logging.root.handlers.clear()

    # Rich handler for beautiful console output
    rich_handler = RichHandler(
        show_time=True,
        show_level=True,
        show_path=False,
        rich_tracebacks=True,
        markup=False  # Disable markup to avoid conflicts
    )
    handlers: List[logging.Handler] = [rich_handler]

    # Optional plain text log file, relative paths resolve from the project root
    if log_file:
        log_path = Path(log_file)
        if not log_path.is_absolute():
            log_path = PROJECT_ROOT / log_path
        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        handlers.append(file_handler)

    # Configure root logger
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        handlers=handlers,
        format="%(message)s"
    )

    # Suppress noisy third-party loggers
    noisy_loggers = [
        'httpx',
        'google_genai',
        'google_genai.models',
        'googleapiclient.discovery',
        'googleapiclient.discovery_cache',
        'urllib3.connectionpool',
        'uvicorn.access',
    ]

    for logger_name in noisy_loggers:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
