"""LLM provider interface and Gemini implementation."""

from __future__ import annotations

import logging
import time
from typing import Protocol

from google import genai
from google.genai import types
from pydantic import BaseModel

from codepilot import config

logger = logging.getLogger(__name__)


class GenerationProvider(Protocol):
    """Protocol for text generation providers."""

    def generate(
        self,
        prompt: str,
        system: str | None = None,
        response_schema: type[BaseModel] | None = None,
    ) -> str:
        """Generate text from a prompt, returning the response string.

        When ``response_schema`` is given the provider should return JSON
        matching that model.
        """
        ...


class GeminiProvider:
    """Gemini implementation of text generation."""

    def __init__(
        self,
        api_key: str | None = None,
        generation_model: str | None = None,
    ) -> None:
        self._client = genai.Client(api_key=api_key or config.GEMINI_API_KEY)
        self._generation_model = generation_model or config.GEMINI_MODEL

    def generate(
        self,
        prompt: str,
        system: str | None = None,
        response_schema: type[BaseModel] | None = None,
    ) -> str:
        """Generate text using Gemini.

        Args:
            prompt: The user prompt.
            system: Optional system instruction.
            response_schema: Optional pydantic model; switches the call to
                JSON output constrained to that schema.

        Returns:
            The generated text response (a JSON document in schema mode).
        """
        logger.debug("Generate via %s (%d char prompt)", self._generation_model, len(prompt))
        t0 = time.perf_counter()
        gen_config = None
        if system or response_schema is not None:
            gen_config = types.GenerateContentConfig(
                system_instruction=system,
                response_mime_type="application/json" if response_schema is not None else None,
                response_schema=response_schema,
            )
        response = self._client.models.generate_content(
            model=self._generation_model,
            contents=prompt,
            config=gen_config,
        )
        logger.debug("Generate complete: %d chars, %.0fms", len(response.text or ""), (time.perf_counter() - t0) * 1000)
        return response.text or ""
