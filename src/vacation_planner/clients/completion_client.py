"""Client for the external text-generation (chat completion) service."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import requests

from vacation_planner.clients.http_session import configure_session
from vacation_planner.utils.logging_utils import get_tagged_logger, setup_logging

logger = get_tagged_logger(__name__, tag="completion_client")

DEFAULT_BASE_URL = "http://llm-gateway:8080/v1"
DEFAULT_MODEL = "mistral-7b"
DEFAULT_TIMEOUT = 120  # seconds; generation is slow
DEFAULT_RETRIES = 2
DEFAULT_BACKOFF = 1.0

# Statuses meaning the model or endpoint is not offered in this deployment.
# A 403 only counts when its error code says so; otherwise it is an auth problem.
UNAVAILABLE_STATUSES = frozenset({404, 501})
UNAVAILABLE_ERROR_CODES = frozenset(
    {
        "model_not_found",
        "unsupported_model",
        "model_not_available",
        "unsupported_country_region_territory",
    }
)


class CompletionClientError(RuntimeError):
    """Raised when the completion service fails for reasons other than availability."""


@dataclass(frozen=True)
class CompletionSuccess:
    text: str


@dataclass(frozen=True)
class CompletionUnavailable:
    """The generation capability is not reachable from this deployment or region."""

    reason: str


@dataclass(frozen=True)
class CompletionFailure:
    error: CompletionClientError


CompletionResult = Union[CompletionSuccess, CompletionUnavailable, CompletionFailure]


@dataclass
class CompletionClientConfig:
    """
    Configuration container for CompletionClient.

    Attributes
    ----------
    base_url:
        Base URL of an OpenAI-compatible API (``/chat/completions`` is appended).
    api_key:
        Optional bearer token.
    timeout_seconds:
        Default HTTP timeout for requests.
    retries:
        Retry attempts for transient 5xx/429 errors.
    retry_backoff_seconds:
        Backoff factor for the retry adapter.
    """

    base_url: str = DEFAULT_BASE_URL
    api_key: Optional[str] = None
    timeout_seconds: int = DEFAULT_TIMEOUT
    retries: int = DEFAULT_RETRIES
    retry_backoff_seconds: float = DEFAULT_BACKOFF


class CompletionClient:
    """Thin wrapper that sends one prompt and returns a tagged result."""

    def __init__(
        self,
        config: CompletionClientConfig,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._config = config
        headers = {"Content-Type": "application/json"}
        if config.api_key:
            headers["Authorization"] = f"Bearer {config.api_key}"
        self._session = configure_session(
            session or requests.Session(),
            headers=headers,
            timeout_seconds=config.timeout_seconds,
            retries=config.retries,
            retry_backoff_seconds=config.retry_backoff_seconds,
        )

    def complete(self, model: str, prompt: str) -> CompletionResult:
        """Send ``prompt`` to ``model`` and classify the outcome."""
        url = f"{self._config.base_url.rstrip('/')}/chat/completions"
        body = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
        }
        logger.info(f"Requesting completion from model '{model}' ({len(prompt)} prompt chars)")
        try:
            resp = self._session.post(url, json=body)
        except requests.exceptions.RequestException as exc:
            logger.error(f"Completion request failed: {exc}")
            return CompletionFailure(CompletionClientError(f"Completion request failed: {exc}"))

        if not resp.ok:
            return self._classify_error(resp, model)

        try:
            text = self.extract_text(resp.json())
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            return CompletionFailure(CompletionClientError(f"Unexpected completion payload: {exc}"))
        logger.info(f"Received completion ({len(text)} chars)")
        return CompletionSuccess(text=text)

    @staticmethod
    def extract_text(payload: Dict[str, Any]) -> str:
        """Pull the first choice's message content out of the response body."""
        content = payload["choices"][0]["message"]["content"]
        if not isinstance(content, str):
            raise TypeError(f"Completion content is not text: {content!r}")
        return content

    @staticmethod
    def _error_code(resp: requests.Response) -> Optional[str]:
        try:
            error = (resp.json() or {}).get("error") or {}
        except ValueError:
            return None
        if isinstance(error, dict):
            return error.get("code") or error.get("type")
        return None

    def _classify_error(self, resp: requests.Response, model: str) -> CompletionResult:
        code = self._error_code(resp)
        if resp.status_code in UNAVAILABLE_STATUSES or code in UNAVAILABLE_ERROR_CODES:
            reason = f"model '{model}' unavailable (status={resp.status_code}, code={code})"
            logger.warning(f"Completion capability unavailable: {reason}")
            return CompletionUnavailable(reason=reason)

        logger.error(f"Completion service returned status={resp.status_code} code={code}")
        return CompletionFailure(
            CompletionClientError(f"Completion service error: status={resp.status_code} code={code}")
        )


def make_completion_client_from_env(
    session: Optional[requests.Session] = None,
) -> CompletionClient:
    """Convenient factory to construct a CompletionClient using environment variables."""
    config = CompletionClientConfig(
        base_url=os.getenv("COMPLETION_BASE_URL", DEFAULT_BASE_URL),
        api_key=os.getenv("COMPLETION_API_KEY"),
        timeout_seconds=int(os.getenv("COMPLETION_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT))),
    )
    return CompletionClient(config=config, session=session)


def main() -> None:
    """Manual test helper to send a single prompt."""
    setup_logging(level=os.getenv("LOG_LEVEL", "INFO"))
    client = make_completion_client_from_env()
    result = client.complete(os.getenv("COMPLETION_MODEL", DEFAULT_MODEL), "Say hello in five words.")
    logger.info(f"Result: {result!r}")


if __name__ == "__main__":
    main()
