"""
Gauge tables for one metric family.

Every cycle the three tables are cleared completely and then filled
from the new records. Full reset is the only way series go away: a pod
that disappears from the stats summary simply isn't written back.
"""

from __future__ import annotations

import logging
from typing import Iterable

from prometheus_client import CollectorRegistry, Gauge

from kubestorage.collector.transform import MetricRecord, RecordTransformer

log = logging.getLogger(__name__)


class MetricSink:

    def __init__(self, transformer: RecordTransformer, registry: CollectorRegistry):
        prefix = transformer.metric_prefix
        labels = list(transformer.label_names)
        what = transformer.description
        self.label_names = transformer.label_names

        # Gauge() registers immediately; a second sink for the same family
        # raises ValueError (duplicated timeseries) right here at startup.
        self.used = Gauge(
            f"{prefix}_usage", f"Used to expose {what} metrics for pod", labels, registry=registry,
        )
        self.capacity = Gauge(
            f"{prefix}_capacity", f"Capacity to expose {what} metrics for pod", labels, registry=registry,
        )
        self.available = Gauge(
            f"{prefix}_available", f"Available to expose {what} metrics for pod", labels, registry=registry,
        )

    def reset(self):
        self.used.clear()
        self.capacity.clear()
        self.available.clear()

    def populate(self, records: Iterable[MetricRecord]) -> int:
        count = 0
        for record in records:
            self.used.labels(*record.labels).set(record.used)
            self.capacity.labels(*record.labels).set(record.capacity)
            self.available.labels(*record.labels).set(record.available)
            count += 1
        return count

    def apply(self, records: Iterable[MetricRecord]) -> int:
        """Reset, then populate. Returns how many records were written."""
        self.reset()
        return self.populate(records)
