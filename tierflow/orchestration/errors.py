"""Error taxonomy for the orchestration layer."""

from __future__ import annotations

from enum import Enum

from tierflow.orchestration.models import TierId


class OrchestrationError(Exception):
    """Base class for every error raised by tierflow."""


class ConfigurationError(OrchestrationError):
    """Fatal setup problem (missing assets, bad settings). Never retried."""


class TierErrorKind(str, Enum):
    NOT_INITIALIZED = "not_initialized"
    CONTEXT_OVERFLOW = "context_overflow"
    BACKEND = "backend"
    TIMEOUT = "timeout"
    INVALID_RESPONSE = "invalid_response"


class TierError(OrchestrationError):
    """A single tier call failed. May trigger the LOCAL -> CLOUD fallback."""

    def __init__(
        self,
        message: str,
        tier: TierId,
        kind: TierErrorKind = TierErrorKind.BACKEND,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.tier = tier
        self.kind = kind
        self.status_code = status_code

    def wrap(self, message: str) -> TierError:
        """Return a copy with a new message, keeping tier, kind and status."""
        return TierError(message, self.tier, self.kind, self.status_code)


class CompoundFailureError(OrchestrationError):
    """Both the primary LOCAL attempt and the CLOUD fallback failed."""

    def __init__(self, primary: TierError, fallback: TierError) -> None:
        super().__init__(
            f"Initial request failed ({primary.tier.value}: {primary.message}) "
            f"and Cloud fallback failed: {fallback.message}"
        )
        self.primary = primary
        self.fallback = fallback
