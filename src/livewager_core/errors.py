"""Error taxonomy — transport, provider and ledger validation failures."""

from __future__ import annotations


# ── Transport ─────────────────────────────────────────────────


class FetchError(Exception):
    """An outbound upstream call failed."""

    kind = "fetch"


class RateLimitedError(FetchError):
    """Upstream kept answering 429 after the full retry budget."""

    kind = "rate_limited"


class ForbiddenError(FetchError):
    """Upstream or proxy denied access (403). Not transient, never retried."""

    kind = "forbidden"


class NetworkError(FetchError):
    """Transport-level failure or an unexpected HTTP status.

    ``hint`` is ``"proxy"`` when the request went through a configured
    proxy (a misconfigured or undeployed intermediary is the likely cause),
    otherwise ``"network"``.
    """

    kind = "network"

    def __init__(self, message: str, *, hint: str = "network", status_code: int | None = None) -> None:
        super().__init__(message)
        self.hint = hint
        self.status_code = status_code


class InvalidPayloadError(FetchError):
    """A non-empty response body that is not valid JSON."""

    kind = "invalid_payload"


class FetchTimeoutError(FetchError):
    kind = "timeout"


# ── Provider ──────────────────────────────────────────────────


class ProviderError(Exception):
    kind = "provider"


class UpstreamRejectedError(ProviderError):
    """The payload carried an explicit failure flag."""

    kind = "upstream_rejected"


class NotFoundError(ProviderError):
    kind = "not_found"


# ── Ledger validation ─────────────────────────────────────────


class ValidationError(ValueError):
    """A caller contract violation on the wager ledger."""

    kind = "validation"


class InvalidStakeError(ValidationError):
    kind = "invalid_stake"


class InvalidPriceError(ValidationError):
    kind = "invalid_price"


class InvalidScoreFormatError(ValidationError):
    kind = "invalid_score_format"


class AlreadySettledError(ValidationError):
    kind = "already_settled"


class WagerNotFoundError(ValidationError):
    kind = "wager_not_found"


class InvalidLineError(ValidationError):
    """Handicap line is not a finite multiple of 0.25."""

    kind = "invalid_line"
