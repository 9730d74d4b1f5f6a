"""Gemini transport: one generateContent call with one credential."""

import logging
from typing import Optional

import httpx
from google import genai
from google.genai import errors, types

from georeview.config import DEFAULT_MODEL
from georeview.errors import RateLimitedError, TransportError
from georeview.prompt import PromptPayload

logger = logging.getLogger(__name__)

RATE_LIMIT_STATUS = 429


def response_text(response) -> str:
    """Extract the generated text from a generateContent response."""
    if not response.candidates:
        raise TransportError("No candidates in response")

    candidate = response.candidates[0]
    parts = candidate.content.parts if candidate.content else None
    if not parts:
        raise TransportError("No parts in response")

    text = "".join(
        p.text for p in parts
        if getattr(p, "text", None) and not getattr(p, "thought", False)
    )
    if not text:
        raise TransportError("Empty text in response")
    return text


class GeminiTransport:
    """Sends a PromptPayload to Gemini using the google-genai SDK."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        *,
        timeout_s: float = 180.0,
        temperature: Optional[float] = None,
    ):
        self.model = model
        self.timeout_s = timeout_s
        self.temperature = temperature

    def _client(self, credential: str) -> genai.Client:
        return genai.Client(
            api_key=credential,
            http_options=types.HttpOptions(timeout=int(self.timeout_s * 1000)),
        )

    def _config(self) -> Optional[types.GenerateContentConfig]:
        if self.temperature is None:
            return None
        return types.GenerateContentConfig(temperature=self.temperature)

    def send(self, credential: str, payload: PromptPayload) -> str:
        """Issue one request and return the model's text.

        Raises:
            RateLimitedError: the endpoint answered with HTTP 429
            TransportError: any other API, network or envelope failure
        """
        logger.debug(f"Sending {len(payload.parts)} parts to {self.model}")
        client = self._client(credential)
        try:
            response = client.models.generate_content(
                model=self.model,
                contents=payload.to_parts(),
                config=self._config(),
            )
        except errors.APIError as e:
            if e.code == RATE_LIMIT_STATUS:
                raise RateLimitedError(f"Rate limited: {e.message}") from e
            raise TransportError(f"Gemini API error {e.code}: {e.message}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Gemini request failed: {e}") from e
        except ValueError as e:
            # Non-JSON bodies (proxies, error pages) surface as UnknownApiResponseError
            # or JSONDecodeError, both ValueError subclasses
            raise TransportError(f"Unreadable response from Gemini: {e}") from e

        return response_text(response)
