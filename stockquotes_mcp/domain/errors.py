"""
Domain error taxonomy for quote, search and history retrieval.
Every failure the service surfaces is one of these; transports only serialize them.
Zero external dependencies.
"""


class StockQuotesError(Exception):
    """Base class for all classified failures."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(StockQuotesError):
    status_code = 404
    code = "NOT_FOUND"


class RateLimitError(StockQuotesError):
    status_code = 429
    code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, message: str = "Rate limit exceeded. Please try again later") -> None:
        super().__init__(message)


class ValidationError(StockQuotesError):
    status_code = 400
    code = "VALIDATION_ERROR"


class UpstreamTimeoutError(StockQuotesError):
    status_code = 504
    code = "UPSTREAM_TIMEOUT"
