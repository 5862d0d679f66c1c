"""OpenRouter chat-completions client forced to JSON output.

Provides:
- complete_json(): one chat completion with response_format=json_object
- generate(): complete_json() under a linear-backoff retry policy
- list_models(): the models available to the configured key

Usage:
    client = OpenRouterClient(api_key=settings.openrouter.api_key)
    raw = await client.generate(prompt)
    await client.close()
"""

import logging
from typing import Any, Optional

import httpx

from veoprompt.errors import (
    ConfigurationError,
    EmptyResponseError,
    ErrorKind,
    PipelineError,
    TerminalProviderError,
    TransientProviderError,
)
from veoprompt.services.retry import RetryPolicy

logger = logging.getLogger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_MODEL = "anthropic/claude-3.5-sonnet"

# Upstream error bodies are echoed to the user; keep them readable
_MAX_BODY_CHARS = 1000


def is_retryable_generation_error(exc: BaseException) -> bool:
    """Retry transient failures and empty answers; everything else is final."""
    return isinstance(exc, (TransientProviderError, EmptyResponseError))


def classify_http_error(status_code: int, body: str) -> PipelineError:
    """Map a non-2xx OpenRouter response onto the error taxonomy."""
    body = (body or "").strip()[:_MAX_BODY_CHARS]

    if status_code == 401:
        return TerminalProviderError(
            "The OpenRouter API key is invalid. Check OPENROUTER_API_KEY and retry.",
            kind=ErrorKind.INVALID_CREDENTIALS,
            detail=body or None,
        )
    if status_code == 402:
        return TerminalProviderError(
            "OpenRouter credits are exhausted. Add credits to your OpenRouter account and retry.",
            kind=ErrorKind.INSUFFICIENT_CREDITS,
            detail=body or None,
        )
    if status_code == 429:
        return TransientProviderError(
            "OpenRouter rate limit reached. Wait a moment and retry.",
            kind=ErrorKind.RATE_LIMITED,
            detail=body or None,
        )
    if status_code == 400:
        return TerminalProviderError(
            f"OpenRouter rejected the request as invalid: {body}. Check the model name and prompt size.",
            kind=ErrorKind.MALFORMED_REQUEST,
            detail=body or None,
        )
    if status_code >= 500:
        return TransientProviderError(
            f"OpenRouter server error (HTTP {status_code}). Retry in a moment.",
            kind=ErrorKind.UPSTREAM_FAILURE,
            detail=body or None,
        )
    return TerminalProviderError(
        f"OpenRouter API error (HTTP {status_code}): {body}. Check your OpenRouter settings.",
        kind=ErrorKind.GENERIC_FAILURE,
        detail=body or None,
    )


def extract_message_content(data: Any) -> str:
    """Return choices[0].message.content as text.

    Content may be a plain string or a list of typed parts
    (``{"type": "text", "text": ...}``); text parts are joined.

    Raises:
        EmptyResponseError: If there are no choices or the content is empty.
    """
    choices = data.get("choices") if isinstance(data, dict) else None
    if not choices:
        raise EmptyResponseError("OpenRouter returned no choices. Retry the request.")

    message = choices[0].get("message") or {}
    content = message.get("content")
    if isinstance(content, list):
        content = "".join(
            part.get("text", "") for part in content
            if isinstance(part, dict) and part.get("type", "text") == "text"
        )

    if not isinstance(content, str) or not content.strip():
        raise EmptyResponseError("OpenRouter returned an empty response. Retry the request.")
    return content


class OpenRouterClient:
    """Async client for the OpenRouter chat-completions API."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = OPENROUTER_BASE_URL,
        default_model: str = DEFAULT_MODEL,
        temperature: float = 0.2,
        site_url: str = "http://localhost:3000",
        app_title: str = "Veo 3 Prompt Generator",
        timeout: float = 120.0,
        retry_policy: Optional[RetryPolicy] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.default_model = default_model or DEFAULT_MODEL
        self.temperature = temperature
        self.site_url = site_url
        self.app_title = app_title
        self.timeout = timeout
        self.retry_policy = retry_policy or RetryPolicy.linear(
            max_retries=2, retryable=is_retryable_generation_error
        )
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout, connect=30.0),
                transport=self._transport,
            )
        return self._client

    def _headers(self) -> dict[str, str]:
        if not self.api_key:
            raise ConfigurationError(
                "OpenRouter API key is not configured. "
                "Set OPENROUTER_API_KEY (or openrouter.api_key in config.yaml) and restart."
            )
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": self.site_url,
            "X-Title": self.app_title,
        }

    async def complete_json(self, prompt: str, model: Optional[str] = None) -> str:
        """Run a single JSON-mode chat completion and return the raw content.

        Raises:
            TerminalProviderError: 401, 402, 400 and other 4xx responses.
            TransientProviderError: 429, 5xx and connection failures.
            EmptyResponseError: No choices or empty content.
        """
        selected_model = model or self.default_model
        headers = self._headers()
        body = {
            "model": selected_model,
            "messages": [{"role": "user", "content": prompt}],
            "response_format": {"type": "json_object"},
            "temperature": self.temperature,
        }

        logger.info(
            "POST %s/chat/completions model=%s prompt=%d chars",
            self.base_url, selected_model, len(prompt),
        )
        try:
            response = await self.client.post("/chat/completions", json=body, headers=headers)
        except httpx.TransportError as e:
            raise TransientProviderError(
                "Could not connect to OpenRouter. Check your network connection and retry.",
                kind=ErrorKind.CONNECTIVITY_FAILURE,
                detail=f"{type(e).__name__}: {e}",
            ) from e

        logger.info("  completion response: HTTP %d", response.status_code)
        if response.is_error:
            raise classify_http_error(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as e:
            raise TransientProviderError(
                "OpenRouter returned a response that is not JSON. Retry in a moment.",
                kind=ErrorKind.UPSTREAM_FAILURE,
                detail=response.text[:_MAX_BODY_CHARS],
            ) from e

        return extract_message_content(data)

    async def generate(self, prompt: str, model: Optional[str] = None) -> str:
        """complete_json() with linear backoff on retryable failures."""
        return await self.retry_policy.call(self.complete_json, prompt, model)

    async def list_models(self) -> list[dict]:
        """Return OpenRouter's model listing, or [] if it cannot be fetched."""
        try:
            headers = self._headers()
        except ConfigurationError as e:
            logger.warning(f"Cannot fetch available models: {e.message}")
            return []
        try:
            response = await self.client.get("/models", headers=headers)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Failed to fetch available models: {e}")
            return []
        models = data.get("data") if isinstance(data, dict) else None
        return models or []

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None
