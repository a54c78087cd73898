"""
Transport strategy interface.
A strategy owns one way of exposing the MCP tools (stdio, HTTP) and its lifecycle.
"""

from abc import ABC, abstractmethod


class TransportStrategy(ABC):
    @property
    @abstractmethod
    def transport_type(self) -> str:
        """Short transport identifier, e.g. ``"stdio"`` or ``"http"``."""
        ...

    @abstractmethod
    async def connect(self) -> None:
        """Start serving; returns when the transport stops."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release transport resources. Safe to call more than once."""
        ...
