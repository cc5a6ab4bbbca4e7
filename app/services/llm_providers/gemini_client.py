import asyncio
import time
from pathlib import Path
from typing import Any

from google import genai
from google.genai import types

from app.config import settings
from app.exceptions import SummarizationError
from app.prompts import CONCALL_GUIDANCE_PROMPT, NO_GUIDANCE_ANSWER
from app.services.summarizer import Summarizer
from app.utils.logger import setup_logger

logger = setup_logger("gemini_client")

PDF_MIME_TYPE = "application/pdf"


class GeminiClient(Summarizer):
    """
    Summarizer implementation for Google Gemini API.
    """

    def __init__(
        self,
        api_key: str,
        default_model: str = settings.default_gemini_model,
        prompt: str | None = None,
        temperature: float = settings.summary_temperature,
        max_output_tokens: int = settings.summary_max_output_tokens,
    ):
        if not api_key:
            logger.error("Gemini API key is required but not provided")
            raise ValueError("Gemini API key is required.")

        self.api_key = api_key
        self.default_model = default_model
        self.prompt = prompt or settings.summary_prompt or CONCALL_GUIDANCE_PROMPT
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

        logger.debug(f"Initializing Gemini client with model: {default_model}")

        try:
            self._client = genai.Client(api_key=self.api_key)
            logger.info(
                f"Gemini client initialized successfully with api_key: {self.api_key[:5]}..., model: {self.default_model}"
            )
        except Exception as e:
            logger.error(f"Failed to configure Gemini SDK: {e}", exc_info=True)
            raise

    async def summarize_document(self, path: str | Path) -> str:
        path = Path(path)
        model_name = self.default_model

        try:
            document_bytes = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise SummarizationError(
                f"failed to read document {path}: {e}", context={"path": str(path)}
            ) from e

        logger.debug(
            f"summarize_document called for {path.name} ({len(document_bytes)} bytes) with model: {model_name}"
        )

        start_time = time.perf_counter()
        try:
            response = await self._client.aio.models.generate_content(
                model=model_name,
                contents=[
                    types.Part.from_bytes(data=document_bytes, mime_type=PDF_MIME_TYPE),
                    self.prompt,
                ],
                config=types.GenerateContentConfig(
                    temperature=self.temperature,
                    max_output_tokens=self.max_output_tokens,
                ),
            )
        except Exception as e:
            duration = time.perf_counter() - start_time
            logger.error(
                f"Gemini API error while summarizing {path.name} with model {model_name} after {duration:.4f}s: "
                f"{type(e).__name__}: {e}",
                exc_info=True,
            )
            raise SummarizationError(
                f"failed to summarize document: {e}",
                context={"path": str(path), "model": model_name},
            ) from e

        result_text = self._extract_text(response)
        duration = time.perf_counter() - start_time

        logger.info(
            f"Gemini summarize_document completed for model {model_name} in {duration:.4f}s, "
            f"input: {len(document_bytes)} bytes, output: {len(result_text)} chars"
        )
        if duration > 60:
            logger.warning(f"Slow API response: {duration:.4f}s for {path.name}")

        result_text = result_text.strip()
        if not result_text:
            logger.warning(
                f"Empty summary for {path.name}, recording '{NO_GUIDANCE_ANSWER}'"
            )
            return NO_GUIDANCE_ANSWER
        return result_text

    @staticmethod
    def _extract_text(response: Any) -> str:
        """Return response.text, reconstructing it from candidate parts when it is None."""
        result_text = getattr(response, "text", None)
        if result_text is not None:
            return result_text

        logger.warning("response.text is None, attempting to reconstruct from parts")
        candidates = getattr(response, "candidates", None)
        if not candidates:
            logger.error("No candidates found in response, cannot reconstruct text")
            return ""

        candidate = candidates[0]
        finish_reason = getattr(candidate, "finish_reason", None)
        if finish_reason is not None:
            logger.debug(f"Gemini candidate.finish_reason: {finish_reason}")
            if finish_reason == "MAX_TOKENS":
                logger.warning("Summary truncated due to max_output_tokens limit")
            elif finish_reason == "SAFETY":
                logger.warning("Summary blocked due to safety filters")

        content = getattr(candidate, "content", None)
        if not content or not content.parts:
            logger.warning("No parts found in candidate content to reconstruct text")
            return ""

        parts_with_text = [
            part.text for part in content.parts if getattr(part, "text", None)
        ]
        logger.debug(f"Reconstructed text from {len(parts_with_text)} parts")
        return "".join(parts_with_text)

    async def close(self):
        logger.debug("Gemini client close() called - no cleanup needed")
