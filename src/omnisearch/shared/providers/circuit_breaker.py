"""Circuit breaker — temporarily excludes failing providers from routing.

State machine (per provider, in memory only):
    HEALTHY   (no record)
    DEGRADED  (1 .. threshold-1 consecutive failures)
    OPEN      (failures >= threshold, blocked until cooldown_until)

Any success deletes the record.  Once the cooldown has elapsed the open
record is discarded on the next ``is_open`` check, so the provider gets a
clean slate.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

import structlog

from omnisearch.shared.observability.metrics import CIRCUIT_OPENED_TOTAL
from omnisearch.shared.providers.types import HealthStatus, ProviderHealth

logger = structlog.get_logger(__name__)

DEFAULT_FAILURE_THRESHOLD = 3
DEFAULT_COOLDOWN_SECONDS = 5 * 60.0


@dataclass
class CircuitRecord:
    failure_count: int = 0
    last_failure_time: float = 0.0
    cooldown_until: float = 0.0


class CircuitBreaker:
    """Process-wide circuit state keyed by provider name."""

    def __init__(
        self,
        *,
        failure_threshold: int = DEFAULT_FAILURE_THRESHOLD,
        cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS,
        clock: Callable[[], float] | None = None,
    ) -> None:
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        self._failure_threshold = failure_threshold
        self._cooldown = cooldown_seconds
        self._clock = clock or time.time

        self._records: dict[str, CircuitRecord] = {}
        self._lock = threading.Lock()

    @property
    def failure_threshold(self) -> int:
        return self._failure_threshold

    @property
    def cooldown_seconds(self) -> float:
        return self._cooldown

    def is_open(self, provider: str) -> bool:
        """True while ``provider`` is inside its cooldown window."""
        with self._lock:
            record = self._records.get(provider)
            if record is None:
                return False

            if record.cooldown_until > self._clock():
                return True

            # Cooldown elapsed: drop the stale open record
            if record.failure_count >= self._failure_threshold:
                del self._records[provider]
                logger.info(
                    "circuit_breaker_cooldown_expired",
                    provider=provider,
                    failures=record.failure_count,
                )
            return False

    def record_failure(self, provider: str) -> int:
        """Count a consecutive failure; opens the circuit at the threshold."""
        with self._lock:
            record = self._records.setdefault(provider, CircuitRecord())
            now = self._clock()
            record.failure_count += 1
            record.last_failure_time = now

            if record.failure_count >= self._failure_threshold:
                record.cooldown_until = now + self._cooldown
                CIRCUIT_OPENED_TOTAL.labels(provider=provider).inc()
                logger.warning(
                    "circuit_breaker_opened",
                    provider=provider,
                    failures=record.failure_count,
                    cooldown_s=self._cooldown,
                )
            return record.failure_count

    def record_success(self, provider: str) -> None:
        """Clear all failure state for ``provider``."""
        with self._lock:
            previous = self._records.pop(provider, None)
        if previous is not None:
            logger.info(
                "circuit_breaker_closed",
                provider=provider,
                previous_failures=previous.failure_count,
            )

    def reset(self, provider: str) -> None:
        """Force-clear the circuit (admin override)."""
        with self._lock:
            self._records.pop(provider, None)
        logger.info("circuit_breaker_force_reset", provider=provider)

    def failure_count(self, provider: str) -> int:
        with self._lock:
            record = self._records.get(provider)
            return record.failure_count if record else 0

    def health(self, provider: str) -> ProviderHealth:
        """Classify ``provider`` without mutating its record."""
        with self._lock:
            record = self._records.get(provider)
            if record is None:
                return ProviderHealth()

            if record.cooldown_until > self._clock():
                return ProviderHealth(
                    status=HealthStatus.DOWN,
                    failures=record.failure_count,
                    cooldown_until=datetime.fromtimestamp(
                        record.cooldown_until, tz=timezone.utc
                    ).isoformat(),
                )

            if record.failure_count > 0:
                return ProviderHealth(
                    status=HealthStatus.DEGRADED,
                    failures=record.failure_count,
                )

            return ProviderHealth()
