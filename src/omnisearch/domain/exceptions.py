"""Domain-specific exception hierarchy.

All exceptions inherit from ``DomainError`` so callers can catch the entire
family in one clause while still discriminating on subclass.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for all domain-layer errors."""

    def __init__(self, message: str, *, code: str = "DOMAIN_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(message)


# ── Validation ───────────────────────────────────────────────
class ValidationError(DomainError):
    """Input failed validation rules."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="VALIDATION_ERROR")


# ── Configuration ────────────────────────────────────────────
class ConfigurationError(DomainError):
    """A provider required for this call has no credential configured."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="CONFIGURATION_ERROR")


# ── External services ───────────────────────────────────────
class ProviderCallError(DomainError):
    """A search provider request failed (network, HTTP status, bad payload)."""

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        super().__init__(f"[{provider}] {message}", code="PROVIDER_ERROR")


class StorageError(DomainError):
    """The usage storage backend is unreachable or returned bad data."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="STORAGE_ERROR")


# ── Routing ──────────────────────────────────────────────────
class RoutingExhaustedError(DomainError):
    """Every candidate, including the paid fallback, failed or was unavailable."""

    def __init__(self, message: str, errors: dict[str, str] | None = None) -> None:
        self.errors = dict(errors or {})
        super().__init__(message, code="ROUTING_EXHAUSTED")
