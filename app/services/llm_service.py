"""
Summarizer factory.

Builds a summarizer from settings for each ingestion run. A missing API key
or an SDK initialisation failure is a run-level error raised before any
announcement is processed.
"""

from app.config import settings
from app.exceptions import SummarizerUnavailable
from app.services.llm_providers.gemini_client import GeminiClient
from app.services.summarizer import Summarizer
from app.utils.logger import setup_logger

logger = setup_logger("llm_service_manager")


def _get_client_config() -> dict:
    config = {
        "api_key": settings.gemini_api_key,
        "default_model": settings.default_gemini_model,
    }
    logger.debug(
        f"Gemini config - model: {config['default_model']}, api_key: {config['api_key'][:5] + '...' if config['api_key'] else 'None'}"
    )
    return config


def get_summarizer() -> Summarizer:
    """Create a Gemini-backed summarizer, raising SummarizerUnavailable when it cannot be built."""
    config = _get_client_config()
    if not config.get("api_key"):
        logger.error("Cannot initialize Gemini client: API key missing.")
        raise SummarizerUnavailable(
            "Failed to initialize Gemini client: GEMINI_API_KEY is not configured"
        )

    try:
        client = GeminiClient(**config)
    except Exception as e:
        logger.error(f"Failed to initialize Gemini client: {e}", exc_info=True)
        raise SummarizerUnavailable(
            f"Failed to initialize Gemini client: {e}",
            context={"model": config["default_model"]},
        ) from e

    logger.info("Gemini client successfully initialized.")
    return client
