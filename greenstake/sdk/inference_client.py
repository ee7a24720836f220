"""
Hosted text-generation client.

Wraps the OpenAI SDK pointed at an OpenAI-compatible inference router.
"""

import logging
from typing import Optional

from openai import OpenAI, OpenAIError

from greenstake.config.loader import Settings
from greenstake.errors import InferenceError, InferenceUnavailableError

logger = logging.getLogger(__name__)


class InferenceClient:
    """Text-generation client for the forecast prompt.

    Without a token no SDK client is built and every call raises
    InferenceUnavailableError, so callers take their fallback path
    without a network round trip.
    """

    def __init__(
        self,
        model: str,
        base_url: str,
        token: Optional[str] = None,
        max_new_tokens: int = 10,
        temperature: float = 0.7,
    ):
        """Initialize the inference client.

        Args:
            model: Model identifier on the inference router (required)
            base_url: OpenAI-compatible endpoint URL (required)
            token: API token; None leaves the client unconfigured
            max_new_tokens: Upper bound on generated tokens
            temperature: Sampling temperature

        Raises:
            ValueError: If model or base_url is missing/empty
        """
        if not model or not model.strip():
            raise ValueError("model is required and cannot be empty")
        if not base_url or not base_url.strip():
            raise ValueError("base_url is required and cannot be empty")

        self.model = model
        self.base_url = base_url
        self.max_new_tokens = max_new_tokens
        self.temperature = temperature
        self.client = OpenAI(api_key=token, base_url=base_url) if token else None

    @classmethod
    def from_settings(cls, settings: Settings) -> "InferenceClient":
        return cls(
            model=settings.inference_model,
            base_url=settings.inference_base_url,
            token=settings.hf_token,
            max_new_tokens=settings.max_new_tokens,
            temperature=settings.temperature,
        )

    @property
    def configured(self) -> bool:
        return self.client is not None

    def generate(self, prompt: str) -> str:
        """Generate a completion for the prompt, without echoing the prompt.

        Args:
            prompt: Prompt text (required)

        Returns:
            Generated text

        Raises:
            ValueError: If prompt is empty
            InferenceUnavailableError: If no token is configured
            InferenceError: If the SDK call fails or returns no choices
        """
        if not prompt:
            raise ValueError("prompt is required and cannot be empty")
        if self.client is None:
            raise InferenceUnavailableError("No inference token configured")

        try:
            response = self.client.completions.create(
                model=self.model,
                prompt=prompt,
                max_tokens=self.max_new_tokens,
                temperature=self.temperature,
                echo=False,
            )
        except OpenAIError as e:
            raise InferenceError(f"Text generation failed: {e}") from e

        if not response.choices:
            raise InferenceError("Text generation returned no choices")

        text = response.choices[0].text or ""
        logger.debug("Generated %r with %s", text, self.model)
        return text
