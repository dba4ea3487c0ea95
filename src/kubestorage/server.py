"""
/metrics exposition and collector thread startup.
"""

from __future__ import annotations

import logging
import threading
from typing import List

from prometheus_client import start_http_server

from kubestorage.collector.scheduler import StorageCollector
from kubestorage.context import ExporterContext

log = logging.getLogger(__name__)


def start_metrics_server(context: ExporterContext, addr: str = "0.0.0.0"):
    """Serve the context's registry on /metrics in a background thread."""
    port = context.settings.port
    server, thread = start_http_server(port, addr=addr, registry=context.registry)
    log.info("Starting server listening on :%d", port)
    return server, thread


def start_collectors(collectors: List[StorageCollector]) -> List[threading.Thread]:
    threads = []
    for collector in collectors:
        thread = threading.Thread(
            target=collector.run_forever,
            name=f"{collector.name}-collector",
            daemon=True,
        )
        thread.start()
        threads.append(thread)
    return threads
