# airmetrics/core/errors.py
"""Error taxonomy shared by the pipeline and the HTTP layer."""


class AirMetricsError(Exception):
    status_code: int = 500
    code: str = "internal"

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    @property
    def status(self) -> str:
        # 4xx -> "fail" (culpa del cliente), resto -> "error"
        return "fail" if 400 <= self.status_code < 500 else "error"

    def to_dict(self) -> dict:
        return {"status": self.status, "code": self.code, "message": self.message}


class InvalidInput(AirMetricsError):
    """Missing or out-of-range parameter."""

    status_code = 400
    code = "invalid_input"


class NotFound(AirMetricsError):
    """Resolver or fetcher produced zero usable results."""

    status_code = 404
    code = "not_found"


class RateLimited(AirMetricsError):
    """Upstream provider answered 429; callers should back off."""

    status_code = 429
    code = "rate_limited"


class UpstreamUnavailable(AirMetricsError):
    """Transport failure, timeout or unexpected upstream response."""

    status_code = 502
    code = "upstream_unavailable"


class Internal(AirMetricsError):
    status_code = 500
    code = "internal"
