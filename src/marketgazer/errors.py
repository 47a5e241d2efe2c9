"""Exceptions surfaced to API clients as readable messages."""


class MarketGazerError(Exception):
    """Base error carrying a user-readable message and an HTTP status."""

    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidInputError(MarketGazerError):
    """Raised when a form value fails validation."""
    status_code = 400


class NotFoundError(MarketGazerError):
    """Raised when a stored record does not exist."""
    status_code = 404


class StockDataError(MarketGazerError):
    """Raised when quote or history data cannot be fetched."""
    status_code = 502


class ComparisonError(MarketGazerError):
    """Raised when the comparison batch cannot be built at all."""
    status_code = 502


class PredictionError(MarketGazerError):
    """Raised when the generative model gives no usable answer."""
    status_code = 502
