"""Ticker symbol validation for every boundary operation."""

from __future__ import annotations

import re
from typing import Iterable

VALID_SYMBOL = re.compile(r"^[A-Z]{1,5}$")
MAX_SYMBOLS_PER_RUN = 10


class InvalidSymbolsError(ValueError):
    """A batch contained symbols that failed validation; nothing was run."""

    def __init__(self, message: str, rejected: list[str] | None = None) -> None:
        super().__init__(message)
        self.rejected = rejected or []


def sanitize_symbol(symbol: str | None) -> str | None:
    """Uppercase and trim; ``None`` when the result is not a valid ticker."""
    if symbol is None:
        return None
    cleaned = symbol.strip().upper()
    return cleaned if VALID_SYMBOL.match(cleaned) else None


def validate_symbols(raw: str | Iterable[str], limit: int = MAX_SYMBOLS_PER_RUN) -> list[str]:
    """Validate a comma-separated string or a list of tickers.

    Blank entries are skipped and duplicates collapsed. Any invalid entry
    rejects the whole batch.
    """
    if isinstance(raw, str):
        candidates = raw.split(",")
    else:
        candidates = list(raw)

    accepted: list[str] = []
    rejected: list[str] = []
    for candidate in candidates:
        if not isinstance(candidate, str):
            rejected.append(repr(candidate))
            continue
        if not candidate.strip():
            continue
        symbol = sanitize_symbol(candidate)
        if symbol is None:
            rejected.append(candidate.strip())
        elif symbol not in accepted:
            accepted.append(symbol)

    if rejected:
        raise InvalidSymbolsError(f"Invalid symbols: {', '.join(rejected)}", rejected)
    if not accepted:
        raise InvalidSymbolsError("No symbols provided")
    if len(accepted) > limit:
        raise InvalidSymbolsError(f"At most {limit} symbols per run (got {len(accepted)})")
    return accepted
