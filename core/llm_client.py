# core/llm_client.py
import json
from typing import Any, Dict
import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)
from config.settings import settings
from util.functions import strip_code_fences
import logging
from util.timing import timed

logger = logging.getLogger(__name__)


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        code = exc.response.status_code
        return code == 429 or code >= 500
    return False


def _first_text(data: Dict[str, Any]) -> str:
    content = data.get("content") or []
    if content and isinstance(content, list):
        node = content[0]
        if isinstance(node, dict) and node.get("type") == "text":
            return node.get("text") or ""
    return ""


def parse_json_object(raw: str) -> Dict[str, Any]:
    """
    Parse a model reply that should be a single JSON object.
    Raises ValueError for anything else.
    """
    parsed = json.loads(strip_code_fences(raw))
    if not isinstance(parsed, dict):
        raise ValueError("expected a JSON object")
    return parsed


class LLMClient:
    """
    Thin Anthropic Messages API client over httpx.

    Transient failures (transport errors, 429, 5xx) are retried with exponential
    backoff up to `max_retries` attempts; everything else raises immediately.
    """

    def __init__(
        self,
        *,
        api_key: str,
        model: str = settings.ANTHROPIC_MODEL,
        api_url: str = settings.ANTHROPIC_API_URL,
        version: str = settings.ANTHROPIC_VERSION,
        temperature: float = settings.LLM_TEMPERATURE,
        timeout: float = settings.LLM_TIMEOUT_SECONDS,
        max_retries: int = settings.LLM_MAX_RETRIES,
        backoff: float = 0.5,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.model = model
        self._api_key = api_key
        self._api_url = api_url
        self._version = version
        self._temperature = temperature
        self._timeout = httpx.Timeout(timeout, connect=min(timeout, 10.0))
        self._max_retries = max(1, max_retries)
        self._backoff = backoff
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self._api_key,
            "anthropic-version": self._version,
            "content-type": "application/json",
        }

    async def _post_json(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST once. Raises for non-2xx. Returns parsed JSON dict or {} on parse failure.
        """
        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            r = await client.post(self._api_url, headers=self._headers(), json=payload)
            r.raise_for_status()
            try:
                return r.json()
            except ValueError:
                return {}

    async def complete(
        self, *, system: str, user: str, max_tokens: int = 400, op: str = "complete"
    ) -> str:
        """
        Send one system+user exchange and return the first text block ("" if none).
        """
        payload = {
            "model": self.model,
            "max_tokens": max_tokens,
            "system": system,
            "messages": [{"role": "user", "content": user}],
            "temperature": self._temperature,
        }
        data: Dict[str, Any] = {}
        with timed(logger, f"ai.{op}", model=self.model):
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._max_retries),
                wait=wait_exponential(multiplier=self._backoff, max=8),
                retry=retry_if_exception(_is_transient),
                reraise=True,
            ):
                with attempt:
                    n = attempt.retry_state.attempt_number
                    if n > 1:
                        logger.warning("ai.%s.retry attempt=%d", op, n)
                    data = await self._post_json(payload)
        return _first_text(data).strip()
