from __future__ import annotations
"""Base generation service — timeout, optional retry/fallback and usage metrics.

Studio generation calls are single-shot by default (``max_retries=0``):
failures surface to the caller instead of being retried locally.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GenerationError(Exception):
    """An external image/video generation call failed."""

    def __init__(self, service: str, message: str):
        super().__init__(f"{service}: {message}")
        self.service = service


@dataclass
class GenResult(Generic[T]):
    """Standardized generation result."""
    data: T
    provider: str
    latency_ms: int
    cost_estimate: float
    retries_used: int
    fallback_used: bool = False


@dataclass
class GenServiceConfig:
    max_retries: int = 0
    retry_delay: float = 2.0
    timeout: float = 180.0
    fallback_enabled: bool = False


class BaseGenService(ABC, Generic[T]):
    """Abstract base class for generation services.

    Provides:
    - Timeout enforcement
    - Optional retry with linear backoff and an optional fallback
    - Cost and latency counters exposed through ``get_metrics``
    """

    service_name: str = "unknown"
    config: GenServiceConfig

    def __init__(self, config: GenServiceConfig | None = None):
        self.config = config or GenServiceConfig()
        self._total_calls = 0
        self._total_cost = 0.0
        self._total_errors = 0
        self._total_latency_ms = 0

    async def execute(self, **kwargs: Any) -> GenResult[T]:
        self._total_calls += 1
        start = time.monotonic()
        last_error: Exception | None = None

        for attempt in range(self.config.max_retries + 1):
            try:
                result = await asyncio.wait_for(
                    self._generate(**kwargs),
                    timeout=self.config.timeout,
                )
            except Exception as e:
                last_error = e
                self._total_errors += 1
                logger.warning(
                    "%s attempt %d/%d failed: %s",
                    self.service_name, attempt + 1, self.config.max_retries + 1, e,
                )
                if attempt < self.config.max_retries:
                    await asyncio.sleep(self.config.retry_delay * (attempt + 1))
                continue

            latency = int((time.monotonic() - start) * 1000)
            cost = self._estimate_cost(**kwargs)
            self._total_cost += cost
            self._total_latency_ms += latency
            return GenResult(
                data=result,
                provider=self.service_name,
                latency_ms=latency,
                cost_estimate=cost,
                retries_used=attempt,
            )

        if self.config.fallback_enabled:
            logger.info("%s: attempting fallback", self.service_name)
            result = await self._fallback(**kwargs)
            return GenResult(
                data=result,
                provider=f"{self.service_name}_fallback",
                latency_ms=int((time.monotonic() - start) * 1000),
                cost_estimate=0.0,
                retries_used=self.config.max_retries,
                fallback_used=True,
            )

        if isinstance(last_error, asyncio.TimeoutError):
            raise GenerationError(
                self.service_name, f"timed out after {self.config.timeout}s"
            ) from last_error
        raise GenerationError(self.service_name, str(last_error)) from last_error

    @abstractmethod
    async def _generate(self, **kwargs: Any) -> T:
        ...

    async def _fallback(self, **kwargs: Any) -> T:
        raise NotImplementedError(f"{self.service_name} has no fallback")

    def _estimate_cost(self, **kwargs: Any) -> float:
        return 0.0

    def get_metrics(self) -> dict[str, Any]:
        """Return usage statistics for this service."""
        succeeded = self._total_calls - self._total_errors
        return {
            "service": self.service_name,
            "total_calls": self._total_calls,
            "total_cost": round(self._total_cost, 4),
            "total_errors": self._total_errors,
            "error_rate": round(self._total_errors / max(self._total_calls, 1), 3),
            "avg_latency_ms": (
                round(self._total_latency_ms / max(succeeded, 1)) if succeeded > 0 else 0
            ),
        }
