"""Exception hierarchy for the scanner."""


class DexarbError(Exception):
    """Base exception for scanner errors."""


class UnknownVenueError(DexarbError, KeyError):
    """Raised when a venue key is not in the registry."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Unknown venue: {key}")
        self.key = key

    def __str__(self) -> str:
        return f"Unknown venue: {self.key}"


class PriceSourceError(DexarbError):
    """Raised inside a price source when a quote cannot be produced."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class RateLimitedError(PriceSourceError):
    """Raised when an upstream API answers 429."""
