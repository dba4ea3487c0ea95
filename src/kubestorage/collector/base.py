"""
Base fetcher interface.

A fetcher is anything that can return the raw stats summary bytes for
one node. Collectors don't care whether that comes through the API
server proxy, straight from the kubelet, or from the fake kubelet.
"""

from abc import ABC, abstractmethod


class StatsFetcher(ABC):
    """Interface for all stats sources. Must be safe to call from several threads."""

    @abstractmethod
    def fetch(self) -> bytes:
        """Fetch one raw stats payload. Raises on any transport failure."""
        ...

    @abstractmethod
    def name(self) -> str:
        """Human-readable name for this source."""
        ...

    def close(self):
        pass
