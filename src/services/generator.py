"""Documentation generation via the Gemini API"""

import asyncio
import logging
import time
from typing import Any

import google.generativeai as genai

from src.config import AppConfig
from src.services.errors import GenerationFailedError, GenerationTimeoutError

logger = logging.getLogger(__name__)


class DocGenerator:
    """Send a rendered prompt to the model under a hard deadline"""

    def __init__(
        self,
        api_key: str | None = None,
        model_name: str = "gemini-1.5-flash-latest",
        temperature: float = 0.2,
        max_output_tokens: int = 2048,
        timeout_seconds: float = 45.0,
        model: Any | None = None,
    ):
        """
        Initialize generator

        Args:
            api_key: Gemini API key (ignored when model is given)
            model_name: Model identifier
            temperature: Sampling temperature, kept low for focused output
            max_output_tokens: Upper bound on generated tokens
            timeout_seconds: Deadline for one generation call
            model: Pre-built model exposing generate_content_async (tests)
        """
        self.model_name = model_name
        self.timeout_seconds = timeout_seconds

        if model is None:
            genai.configure(api_key=api_key)
            model = genai.GenerativeModel(
                model_name,
                generation_config=genai.GenerationConfig(
                    temperature=temperature,
                    max_output_tokens=max_output_tokens,
                ),
            )
        self.model = model

    @classmethod
    def from_app_config(cls, app_config: AppConfig) -> "DocGenerator":
        return cls(
            api_key=app_config.gemini_api_key,
            model_name=app_config.gemini_model,
            temperature=app_config.generation_temperature,
            max_output_tokens=app_config.generation_max_output_tokens,
            timeout_seconds=app_config.generation_timeout_seconds,
        )

    async def generate(self, prompt: str) -> str:
        """
        Generate documentation text for a prompt

        Args:
            prompt: Fully rendered prompt

        Returns:
            Raw model text

        Raises:
            GenerationTimeoutError: If the call exceeds the deadline
            GenerationFailedError: If the call errors or returns no text
        """
        logger.info(f"Sending {len(prompt)} char prompt to {self.model_name}")
        start_time = time.time()

        try:
            response = await asyncio.wait_for(
                self.model.generate_content_async(prompt), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Generation timed out after {self.timeout_seconds}s")
            raise GenerationTimeoutError(self.timeout_seconds) from e
        except Exception as e:
            logger.error(f"Generation call failed: {e}")
            raise GenerationFailedError(cause=e) from e

        text = _response_text(response)
        if not text or not text.strip():
            logger.error("Generation returned an empty response")
            raise GenerationFailedError()

        duration = time.time() - start_time
        logger.info(f"Documentation generated in {duration:.2f}s ({len(text)} chars)")
        return text


def _response_text(response: Any) -> str | None:
    """Extract text; the SDK raises ValueError when no candidate has text parts"""
    try:
        return response.text
    except (ValueError, AttributeError) as e:
        logger.warning(f"No text in generation response: {e}")
        return None
