"""
OpenAI-compatible chat completions client implementing ``TextAnalyzer``.
"""

from __future__ import annotations

from typing import Any, Dict

import structlog
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from siteprobe.config.config import LLMConfig
from siteprobe.crawler.http_client import HttpClient
from siteprobe.errors import CollaboratorError, ConfigurationError

logger = structlog.get_logger(__name__)

SERVICE = "text-analysis"


def is_transient(error: BaseException) -> bool:
    """Transport failures, rate limits and server errors are worth retrying."""
    if not isinstance(error, CollaboratorError):
        return False
    return error.status in (0, 429) or (error.status or 0) >= 500


class ChatCompletionsAnalyzer:
    """TextAnalyzer backed by a ``/chat/completions`` endpoint."""

    def __init__(self, client: HttpClient, config: LLMConfig) -> None:
        if not config.api_key:
            raise ConfigurationError("Text analysis API key is not configured")
        self.client = client
        self.config = config
        self.wait = wait_exponential(multiplier=1, min=1, max=10)

    def _payload(self, system: str, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.config.temperature,
            "response_format": {"type": "json_object"},
        }

    async def _complete_once(self, system: str, prompt: str) -> str:
        response = await self.client.request(
            "POST",
            f"{self.config.base_url.rstrip('/')}/chat/completions",
            headers={"Authorization": f"Bearer {self.config.api_key}", "Content-Type": "application/json"},
            json_body=self._payload(system, prompt),
            timeout=self.config.timeout,
            max_retries=0,
        )
        if response.status == 0:
            raise CollaboratorError(SERVICE, response.error or "no response", status=0)
        if not response.ok:
            raise CollaboratorError(SERVICE, f"HTTP {response.status}: {response.text[:200]}", status=response.status)

        try:
            payload = response.json()
            content = payload["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise CollaboratorError(SERVICE, f"Unexpected response shape: {e}", status=response.status) from e
        if not content:
            raise CollaboratorError(SERVICE, "No response content", status=response.status)
        return str(content)

    async def complete(self, system: str, prompt: str) -> str:
        """Return the model output, retrying transient failures."""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.config.max_attempts),
            wait=self.wait,
            retry=retry_if_exception(is_transient),
            reraise=True,
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.info("Retrying text analysis", attempt=attempt.retry_state.attempt_number)
                content = await self._complete_once(system, prompt)
        logger.debug("Text analysis completed", model=self.config.model, chars=len(content))
        return content
