"""
Input validation and normalization for quote, search and history requests.

Everything here runs before the cache or the upstream provider is touched, and
every rejection is a ValidationError with wording specific to the violated rule.
"""

import re
from datetime import date
from typing import Optional, Sequence

from stockquotes_mcp.domain.entities.stock_quote import DateRange
from stockquotes_mcp.domain.errors import ValidationError

MAX_TICKER_LENGTH = 10
MAX_RANGE_YEARS = 5

# The upstream source has no single "name" attribute.
NAME_SHORTHAND = "name"
NAME_FIELDS = ("shortName", "longName")

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def normalize_ticker(ticker: str) -> str:
    """Trim and upper-case *ticker*, enforcing 1 to 10 characters."""
    if not isinstance(ticker, str):
        raise ValidationError("ticker must be a string")
    symbol = ticker.strip().upper()
    if not symbol:
        raise ValidationError("ticker must be a non-empty string")
    if len(symbol) > MAX_TICKER_LENGTH:
        raise ValidationError(
            f"ticker '{symbol}' exceeds the maximum length of {MAX_TICKER_LENGTH} characters"
        )
    return symbol


def normalize_tickers(tickers: Sequence[str]) -> list[str]:
    """Normalize every ticker and drop duplicates, keeping first occurrences."""
    if isinstance(tickers, str) or not tickers:
        raise ValidationError("tickers must be a non-empty list of ticker symbols")
    return list(dict.fromkeys(normalize_ticker(t) for t in tickers))


def normalize_fields(fields: Optional[Sequence[str]]) -> Optional[tuple[str, ...]]:
    """Deduplicate requested fields and expand the ``name`` shorthand.

    Returns None when no field selection applies (the whole record is wanted).
    """
    if fields is None:
        return None
    if isinstance(fields, str):
        raise ValidationError("fields must be a list of field names")

    selected: list[str] = []
    for field in fields:
        if not isinstance(field, str) or not field.strip():
            raise ValidationError("fields must contain only non-empty strings")
        name = field.strip()
        expanded = NAME_FIELDS if name == NAME_SHORTHAND else (name,)
        for upstream_field in expanded:
            if upstream_field not in selected:
                selected.append(upstream_field)
    return tuple(selected) or None


def normalize_query(query: str) -> str:
    if not isinstance(query, str) or not query.strip():
        raise ValidationError("search query must be a non-empty string")
    return query.strip()


def parse_date_range(from_date: str, to_date: str, today: date) -> DateRange:
    """Validate a ``YYYY-MM-DD`` range against *today*.

    Raises:
        ValidationError: unparseable date, future start, inverted range, or a
            span longer than five years.
    """
    start = _parse_date("fromDate", from_date)
    end = _parse_date("toDate", to_date)

    if start > today:
        raise ValidationError(f"fromDate '{from_date}' cannot be in the future")
    if start > end:
        raise ValidationError(f"fromDate '{from_date}' must be on or before toDate '{to_date}'")
    if end > _add_years(start, MAX_RANGE_YEARS):
        raise ValidationError(
            f"Date range from {from_date} to {to_date} exceeds the maximum span of "
            f"{MAX_RANGE_YEARS} years"
        )
    return DateRange(from_date=start, to_date=end)


def quote_cache_key(symbol: str, fields: Optional[Sequence[str]]) -> str:
    return f"quote:{symbol}:{_fields_key(fields)}"


def quotes_cache_key(symbols: Sequence[str], fields: Optional[Sequence[str]]) -> str:
    return f"quotes:{','.join(sorted(symbols))}:{_fields_key(fields)}"


def search_cache_key(query: str) -> str:
    return f"search:{query}"


def _fields_key(fields: Optional[Sequence[str]]) -> str:
    return ",".join(sorted(fields)) if fields else "all"


def _parse_date(label: str, value: str) -> date:
    if not isinstance(value, str) or not _ISO_DATE.match(value):
        raise ValidationError(f"Invalid {label} '{value}': expected a date in YYYY-MM-DD format")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid {label} '{value}': not a valid calendar date") from exc


def _add_years(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year + years)
    except ValueError:
        # 29 February in a non-leap target year
        return day.replace(year=day.year + years, day=28)
