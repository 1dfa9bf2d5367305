"""OpenRouter chat-completions client for the script writer.

Multi-key round-robin, retry with exponential backoff on transient HTTP
errors and timeouts, and JSON helpers for the structured breakdown calls.
All LLM traffic goes through ``llm_call()`` / ``llm_json_call()``.
"""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
import re
from typing import Any

import httpx

from filmstudio.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

OPENROUTER_URL = f"{settings.OPENROUTER_BASE_URL}/chat/completions"

_RETRIABLE_STATUS = {408, 429, 500, 502, 503, 504}
_MAX_KEY_FAILURES = 3
_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class LLMError(Exception):
    """Structured LLM error with status code and retriable flag."""

    def __init__(self, message: str, status_code: int = 0, retriable: bool = False):
        super().__init__(message)
        self.status_code = status_code
        self.retriable = retriable


def mask_key(key: str) -> str:
    """Mask an API key for safe logging: show first 8 and last 4 chars."""
    if len(key) <= 16:
        return "***"
    return f"{key[:8]}...{key[-4:]}"


class KeyPool:
    """Round-robin over API keys, skipping keys with repeated auth failures."""

    def __init__(self, keys: list[str]):
        self.keys = keys
        self._cycle = itertools.cycle(keys) if keys else None
        self.failures: dict[str, int] = {k: 0 for k in keys}

    @classmethod
    def from_settings(cls) -> KeyPool:
        keys = [k.strip() for k in settings.OPENROUTER_API_KEYS.split(",") if k.strip()]
        if not keys and settings.OPENROUTER_API_KEY:
            keys = [settings.OPENROUTER_API_KEY]
        if not keys:
            logger.warning("No OpenRouter API keys configured, LLM calls will fail")
        return cls(keys)

    def next(self) -> str:
        if not self._cycle:
            raise LLMError("No OpenRouter API keys configured", retriable=False)
        for _ in range(len(self.keys)):
            key = next(self._cycle)
            if self.failures.get(key, 0) < _MAX_KEY_FAILURES:
                return key
        # every key is failing: start over rather than refuse
        for k in self.failures:
            self.failures[k] = 0
        return next(self._cycle)

    def mark_failed(self, key: str) -> int:
        self.failures[key] = self.failures.get(key, 0) + 1
        return self.failures[key]

    def mark_ok(self, key: str) -> None:
        self.failures[key] = 0


_key_pool: KeyPool | None = None
_http_client: httpx.AsyncClient | None = None


def _get_key_pool() -> KeyPool:
    global _key_pool
    if _key_pool is None:
        _key_pool = KeyPool.from_settings()
    return _key_pool


def _get_client() -> httpx.AsyncClient:
    global _http_client
    if _http_client is None or _http_client.is_closed:
        _http_client = httpx.AsyncClient(timeout=float(settings.LLM_TIMEOUT))
    return _http_client


async def close_client() -> None:
    global _http_client
    if _http_client is not None and not _http_client.is_closed:
        await _http_client.aclose()
    _http_client = None


async def llm_call(
    system_prompt: str,
    user_prompt: str,
    *,
    json_mode: bool = False,
    model: str | None = None,
    max_tokens: int = 8192,
    temperature: float = 0.8,
    caller: str = "unknown",
) -> str:
    """Send one chat completion and return the message content.

    Args:
        system_prompt: System message.
        user_prompt: User message.
        json_mode: If True, request JSON-format output.
        model: Override the default STORY_MODEL.
        max_tokens: Max tokens in response.
        temperature: Sampling temperature.
        caller: Identifier for logging.

    Raises:
        LLMError: On a non-retriable HTTP error or when retries are exhausted.
    """
    model = model or settings.STORY_MODEL
    pool = _get_key_pool()
    max_retries = settings.LLM_MAX_RETRIES
    last_error: LLMError | None = None

    body: dict[str, Any] = {
        "model": model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        "temperature": temperature,
        "max_tokens": max_tokens,
    }
    if json_mode:
        body["response_format"] = {"type": "json_object"}

    for attempt in range(1, max_retries + 1):
        key = pool.next()
        masked = mask_key(key)
        headers = {
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
            "X-Title": settings.APP_NAME,
        }

        logger.info(
            "[%s] LLM call attempt %d/%d model=%s key=%s json=%s",
            caller, attempt, max_retries, model, masked, json_mode,
        )

        try:
            response = await _get_client().post(OPENROUTER_URL, headers=headers, json=body)
        except httpx.TimeoutException:
            backoff = min(2 ** attempt, 30)
            logger.warning(
                "[%s] Timeout on attempt %d, backing off %ds", caller, attempt, backoff,
            )
            last_error = LLMError(
                f"LLM call timed out after {settings.LLM_TIMEOUT}s",
                status_code=408,
                retriable=True,
            )
            await asyncio.sleep(backoff)
            continue

        if response.status_code == 401:
            failures = pool.mark_failed(key)
            logger.warning(
                "[%s] 401 Unauthorized for key=%s (failures=%d), rotating",
                caller, masked, failures,
            )
            last_error = LLMError(f"API key {masked} unauthorized", status_code=401, retriable=True)
            continue

        if response.status_code in _RETRIABLE_STATUS:
            backoff = min(2 ** attempt, 30)
            logger.warning(
                "[%s] HTTP %d (retriable), backing off %ds",
                caller, response.status_code, backoff,
            )
            last_error = LLMError(
                f"HTTP {response.status_code}",
                status_code=response.status_code,
                retriable=True,
            )
            await asyncio.sleep(backoff)
            continue

        if response.is_error:
            logger.error("[%s] HTTP error %d", caller, response.status_code)
            raise LLMError(
                f"LLM HTTP error: {response.status_code}",
                status_code=response.status_code,
                retriable=False,
            )

        pool.mark_ok(key)
        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise LLMError(f"Malformed LLM response: {e}", retriable=False) from e
        logger.info("[%s] LLM response OK, length=%d", caller, len(content or ""))
        return content or ""

    raise last_error or LLMError("All LLM retry attempts exhausted", retriable=False)


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` fence if the model added one."""
    return _FENCE_RE.sub("", text.strip()).strip()


def parse_json_response(text: str) -> Any | None:
    """Parse model output as JSON; None if it is not valid JSON."""
    try:
        return json.loads(strip_code_fences(text))
    except (json.JSONDecodeError, TypeError):
        logger.warning("Failed to parse LLM JSON (length=%d)", len(text or ""))
        return None


async def llm_json_call(system_prompt: str, user_prompt: str, **kwargs: Any) -> Any | None:
    content = await llm_call(system_prompt, user_prompt, json_mode=True, **kwargs)
    return parse_json_response(content)


async def check_llm_health() -> dict[str, Any]:
    """Send a one-token prompt with every configured key."""
    pool = _get_key_pool()
    results: dict[str, Any] = {
        "total_keys": len(pool.keys),
        "working_keys": [],
        "failed_keys": [],
    }
    body = {
        "model": settings.STORY_MODEL,
        "messages": [{"role": "user", "content": "Hi"}],
        "max_tokens": 1,
    }
    for key in pool.keys:
        masked = mask_key(key)
        try:
            resp = await _get_client().post(
                OPENROUTER_URL,
                headers={"Authorization": f"Bearer {key}"},
                json=body,
            )
        except httpx.HTTPError as e:
            results["failed_keys"].append({"key": masked, "error": str(e)})
            continue
        if resp.status_code == 200:
            results["working_keys"].append(masked)
        else:
            results["failed_keys"].append({"key": masked, "status": resp.status_code})

    results["status"] = "ok" if results["working_keys"] else "all_keys_failed"
    return results
