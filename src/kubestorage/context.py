"""
Process-wide shared state, built once at startup and handed to every
collector: the metrics registry, the stats fetcher, and the settings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from prometheus_client import CollectorRegistry, Counter

from kubestorage.collector.base import StatsFetcher
from kubestorage.config import ExporterSettings

log = logging.getLogger(__name__)


@dataclass
class ExporterContext:
    fetcher: StatsFetcher
    settings: ExporterSettings = field(default_factory=ExporterSettings)
    registry: CollectorRegistry = field(default_factory=CollectorRegistry)
    decode_failures: Optional[Counter] = None

    def __post_init__(self):
        if self.decode_failures is None:
            self.decode_failures = Counter(
                "kubernetes_storage_metrics_decode_failures",
                "Stats payloads that could not be decoded and were treated as empty",
                ["collector"],
                registry=self.registry,
            )

    def close(self):
        self.fetcher.close()


def build_fetcher(settings: ExporterSettings) -> StatsFetcher:
    """Pick the fetcher for these settings. Raises ConfigError on bad credentials."""
    if settings.stats_url:
        from kubestorage.collector.http_fetcher import HttpStatsFetcher
        return HttpStatsFetcher(settings.stats_url)

    from kubestorage.collector.kube_fetcher import KubeProxyFetcher
    return KubeProxyFetcher.from_settings(
        in_cluster=settings.in_cluster,
        node_name=settings.node_name,
        kubeconfig=settings.kubeconfig,
    )
