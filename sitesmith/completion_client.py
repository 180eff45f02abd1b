"""Async text-completion clients for the generation pipeline.

The pipeline only ever needs one operation from a model: send a prompt,
get text back. Two providers implement it over ``httpx``:

* ``GeminiClient`` -- Google's ``models/{model}:generateContent`` REST API.
* ``OllamaClient`` -- a local Ollama server's ``/api/generate``.

Both expose ``generate()``, which never raises and returns a structured
``CompletionResponse``, and ``complete()``, which returns the raw text or
raises ``TransportError``.

Typical usage::

    client = create_client(config.llm)
    text = await client.complete("Return a JSON object describing a todo app")
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import BaseModel, Field

from sitesmith.config import LLMConfig
from sitesmith.errors import TransportError

DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
DEFAULT_OLLAMA_MODEL = "qwen2.5-coder:14b"


class CompletionResponse(BaseModel):
    """Structured response from a completion call."""

    text: str = Field(default="", description="Generated text")
    model: str = Field(default="", description="Model that produced the response")
    success: bool = Field(default=True, description="Whether the request succeeded")
    error: str | None = Field(default=None, description="Error message on failure")


class CompletionClient:
    """Base class for providers.

    Subclasses implement ``_request`` (the HTTP round trip) and
    ``_extract_text`` (pulling the generated text out of the JSON body).
    """

    provider = ""

    def __init__(self, base_url: str, model: str, timeout: int = 120) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        """Return a fresh ``AsyncClient`` configured with our base URL and timeout."""
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout, connect=10.0),
        )

    async def _request(self, client: httpx.AsyncClient, prompt: str) -> httpx.Response:
        raise NotImplementedError

    @staticmethod
    def _extract_text(data: dict[str, Any]) -> str:
        raise NotImplementedError

    def _preflight_error(self) -> str | None:
        """Return an error message when the client cannot make requests at all."""
        return None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def generate(self, prompt: str) -> CompletionResponse:
        """Send ``prompt`` to the model.

        Returns:
            A ``CompletionResponse`` with the generated text or an error.
        """
        problem = self._preflight_error()
        if problem:
            return CompletionResponse(model=self.model, success=False, error=problem)

        try:
            async with self._client() as client:
                response = await self._request(client, prompt)
                response.raise_for_status()
                data = response.json()
                return CompletionResponse(
                    text=self._extract_text(data),
                    model=self.model,
                    success=True,
                )
        except httpx.ConnectError:
            return CompletionResponse(
                model=self.model,
                success=False,
                error=f"Cannot connect to {self.provider} at {self.base_url}.",
            )
        except httpx.TimeoutException:
            return CompletionResponse(
                model=self.model,
                success=False,
                error=f"Request to {self.provider} timed out after {self.timeout}s.",
            )
        except httpx.HTTPStatusError as exc:
            return CompletionResponse(
                model=self.model,
                success=False,
                error=(
                    f"{self.provider} returned HTTP {exc.response.status_code}: "
                    f"{exc.response.text[:500]}"
                ),
            )
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            return CompletionResponse(
                model=self.model,
                success=False,
                error=f"Unexpected response shape from {self.provider}: {exc!r}",
            )
        except Exception as exc:  # noqa: BLE001
            return CompletionResponse(
                model=self.model,
                success=False,
                error=f"Unexpected error during {self.provider} request: {exc}",
            )

    async def complete(self, prompt: str) -> str:
        """Return the generated text for ``prompt``.

        Raises:
            TransportError: If the request failed for any reason.
        """
        result = await self.generate(prompt)
        if not result.success:
            raise TransportError(result.error or f"{self.provider} request failed")
        return result.text


class GeminiClient(CompletionClient):
    """Client for the Gemini ``generateContent`` endpoint."""

    provider = "Gemini"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        model: str = DEFAULT_GEMINI_MODEL,
        timeout: int = 120,
    ) -> None:
        super().__init__(base_url, model, timeout)
        self.api_key = api_key

    def _preflight_error(self) -> str | None:
        if not self.api_key:
            return "GEMINI_API_KEY is not set"
        return None

    async def _request(self, client: httpx.AsyncClient, prompt: str) -> httpx.Response:
        return await client.post(
            f"/models/{self.model}:generateContent",
            params={"key": self.api_key},
            json={"contents": [{"parts": [{"text": prompt}]}]},
        )

    @staticmethod
    def _extract_text(data: dict[str, Any]) -> str:
        """Pull the text of the first candidate's first part."""
        return data["candidates"][0]["content"]["parts"][0]["text"]


class OllamaClient(CompletionClient):
    """Client for a local Ollama server."""

    provider = "Ollama"

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = DEFAULT_OLLAMA_MODEL,
        timeout: int = 120,
    ) -> None:
        super().__init__(base_url, model, timeout)

    async def _request(self, client: httpx.AsyncClient, prompt: str) -> httpx.Response:
        return await client.post(
            "/api/generate",
            json={"model": self.model, "prompt": prompt, "stream": False},
        )

    @staticmethod
    def _extract_text(data: dict[str, Any]) -> str:
        """Ollama's non-streaming response puts the full text in ``"response"``."""
        return data.get("response", "")

    async def is_available(self) -> bool:
        """Return ``True`` if the Ollama server responds to ``/api/tags``."""
        try:
            async with self._client() as client:
                response = await client.get("/api/tags")
                return response.status_code == 200
        except (httpx.ConnectError, httpx.TimeoutException):
            return False


def create_client(config: LLMConfig) -> CompletionClient:
    """Build the client selected by ``config.provider``."""
    if config.provider == "ollama":
        return OllamaClient(
            base_url=config.ollama_url,
            model=config.model or DEFAULT_OLLAMA_MODEL,
            timeout=config.timeout,
        )
    return GeminiClient(
        api_key=config.api_key,
        base_url=config.gemini_url,
        model=config.model or DEFAULT_GEMINI_MODEL,
        timeout=config.timeout,
    )
