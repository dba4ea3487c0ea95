"""
Snapshot -> record projections.

Each transformer knows one metric family layout (label names, metric
name prefix, help text) and how to flatten a StorageSnapshot into
MetricRecords for it. Transformers keep no state between snapshots.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Tuple

from kubestorage import JOB_NAME
from kubestorage.stats import StorageSnapshot

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricRecord:
    labels: Tuple[str, ...]  # same order as the transformer's label_names
    used: float
    capacity: float
    available: float

    def as_label_dict(self, label_names: Tuple[str, ...]) -> dict:
        return dict(zip(label_names, self.labels))


class RecordTransformer(ABC):
    """Strategy for one metric family."""

    kind: str = ""
    metric_prefix: str = ""
    label_names: Tuple[str, ...] = ()
    description: str = ""

    @abstractmethod
    def transform(self, snapshot: StorageSnapshot) -> List[MetricRecord]:
        ...


class EphemeralTransformer(RecordTransformer):
    """One record per pod, whether or not the kubelet has real numbers yet."""

    kind = "ephemeral"
    metric_prefix = "ephemeral_storage_pod"
    label_names = ("job", "pod", "namespace", "node")
    description = "Ephemeral Storage"

    def transform(self, snapshot: StorageSnapshot) -> List[MetricRecord]:
        node = snapshot.node_name
        records = []

        for pod in snapshot.pods:
            stats = pod.ephemeral
            if not pod.namespace or stats.is_empty():
                log.warning(
                    "pod %s/%s on %s has no metrics on its ephemeral storage usage",
                    pod.name, pod.namespace, node,
                )

            records.append(MetricRecord(
                labels=(JOB_NAME, pod.name, pod.namespace, node),
                used=stats.used,
                capacity=stats.capacity,
                available=stats.available,
            ))
            log.debug("pod %s/%s on %s with usedBytes: %f", pod.namespace, pod.name, node, stats.used)

        return records


class VolumeTransformer(RecordTransformer):
    """One record per PVC-backed volume. Other volume types are skipped."""

    kind = "volume"
    metric_prefix = "volume_storage_pod"
    label_names = ("job", "pod", "namespace", "node", "volume_name", "pvc_name")
    description = "Volume Storage"

    def transform(self, snapshot: StorageSnapshot) -> List[MetricRecord]:
        node = snapshot.node_name
        records = []

        for pod in snapshot.pods:
            for volume in pod.volumes:
                if not volume.pvc_name:
                    continue

                if not pod.namespace or volume.is_empty():
                    log.warning(
                        "pod %s/%s on %s has no metrics on its pvcRef storage usage",
                        pod.name, pod.namespace, node,
                    )

                records.append(MetricRecord(
                    labels=(JOB_NAME, pod.name, pod.namespace, node, volume.name, volume.pvc_name),
                    used=volume.used,
                    capacity=volume.capacity,
                    available=volume.available,
                ))
                log.debug(
                    "pod %s/%s on %s volume %s with usedBytes: %f",
                    pod.namespace, pod.name, node, volume.name, volume.used,
                )

        return records


TRANSFORMERS = {t.kind: t for t in (EphemeralTransformer(), VolumeTransformer())}
