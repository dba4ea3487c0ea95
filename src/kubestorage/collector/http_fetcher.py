"""
Fetcher for a directly reachable stats endpoint -- the kubelet's
read-only port, a port-forward, or the fake kubelet used in dev.

The base URL may be given with or without the /stats/summary suffix.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from kubestorage.collector.base import StatsFetcher
from kubestorage.errors import FetchError

log = logging.getLogger(__name__)

SUMMARY_PATH = "/stats/summary"


class HttpStatsFetcher(StatsFetcher):

    def __init__(
        self,
        base_url: str,
        timeout_seconds: Optional[float] = None,
        verify: bool = True,
    ):
        self._summary_url = base_url.rstrip("/")
        if not self._summary_url.endswith(SUMMARY_PATH):
            self._summary_url += SUMMARY_PATH

        # No timeout by default: a hung kubelet stalls the caller, it doesn't fail it
        self._client = httpx.Client(timeout=timeout_seconds, verify=verify)

    def fetch(self) -> bytes:
        try:
            response = self._client.get(self._summary_url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise FetchError(f"GET {self._summary_url} failed: {e}") from e

        log.debug("Fetched %d bytes from %s", len(response.content), self._summary_url)
        return response.content

    def name(self) -> str:
        return f"kubelet ({self._summary_url})"

    def close(self):
        self._client.close()
