"""
Port (interface) for the upstream market data provider.
Infrastructure adapters (e.g. YFinanceMarketDataClient) must implement this interface.
The port owns no business logic: no caching, no classification, no serialization.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional, Sequence, Union

from stockquotes_mcp.domain.entities.upstream_records import RawBar, RawQuote, RawSearchMatch


class IMarketDataClient(ABC):
    @abstractmethod
    async def quote(
        self,
        symbols: Union[str, Sequence[str]],
        fields: Optional[Sequence[str]] = None,
    ) -> Union[RawQuote, list[RawQuote], None]:
        """Fetch quote records.

        A single symbol yields one record (or None when unknown); a sequence
        yields a list in upstream order. When *fields* is given, only those
        upstream attributes are kept.
        """
        ...

    @abstractmethod
    async def search(self, query: str) -> list[RawSearchMatch]:
        """Return the instruments matching a company name or ticker fragment."""
        ...

    @abstractmethod
    async def chart(self, symbol: str, start: date, end: date) -> list[RawBar]:
        """Return daily bars from *start* (inclusive) to *end* (exclusive)."""
        ...
