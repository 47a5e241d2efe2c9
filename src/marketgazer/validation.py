"""Form validation for symbols, timeframes and comparison input."""

from enum import Enum
from typing import List

from marketgazer.config import config
from marketgazer.errors import InvalidInputError


class Timeframe(str, Enum):
    """Coarse chart timeframe selectable in the search form."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @classmethod
    def parse(cls, value) -> "Timeframe":
        """Parse a timeframe, treating anything unknown as daily."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.DAILY


def validate_symbol(symbol: str) -> str:
    """Validate a single stock symbol.

    Args:
        symbol: Raw symbol as typed by the user

    Returns:
        Upper-cased symbol

    Raises:
        InvalidInputError: If the symbol is missing, not text or too long
    """
    if symbol is None:
        symbol = ""
    if not isinstance(symbol, str):
        raise InvalidInputError("Stock symbol must be text.")
    symbol = symbol.strip()
    if not symbol:
        raise InvalidInputError("Stock symbol is required.")
    if len(symbol) > config.market.max_symbol_length:
        raise InvalidInputError(
            f"Stock symbol must be {config.market.max_symbol_length} characters or less."
        )
    return symbol.upper()


def parse_comparison_symbols(text: str) -> List[str]:
    """Parse the comma-separated symbol list of the comparison form."""
    if not text:
        raise InvalidInputError("Please enter at least one stock symbol.")

    parts = text.split(",")
    max_len = config.market.max_symbol_length
    if not all(0 < len(p.strip()) <= max_len for p in parts):
        raise InvalidInputError(f"All symbols must be between 1 and {max_len} characters.")

    if len(parts) > config.market.max_compare_symbols:
        raise InvalidInputError(
            f"You can compare up to {config.market.max_compare_symbols} symbols at a time."
        )

    return [p.strip().upper() for p in parts]


def parse_symbol_list(symbols) -> List[str]:
    """Parse symbols sent either as a comma-separated string or a JSON list.

    Both forms share the comparison limit.
    """
    if isinstance(symbols, str):
        return parse_comparison_symbols(symbols)
    if not isinstance(symbols, list):
        raise InvalidInputError("Symbols must be a comma-separated string or a list of symbols.")
    if not symbols:
        raise InvalidInputError("Please enter at least one stock symbol.")
    if len(symbols) > config.market.max_compare_symbols:
        raise InvalidInputError(
            f"You can compare up to {config.market.max_compare_symbols} symbols at a time."
        )
    return [validate_symbol(s) for s in symbols]
