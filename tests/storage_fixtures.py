"""Payload builders and fakes shared by the exporter tests."""

import json
from typing import List, Optional

from prometheus_client import CollectorRegistry

from kubestorage.collector.base import StatsFetcher


def pod(name, namespace="ns", used=0, capacity=0, available=0, volumes=None) -> dict:
    entry = {
        "podRef": {"name": name, "namespace": namespace},
        "ephemeral-storage": {
            "usedBytes": used,
            "capacityBytes": capacity,
            "availableBytes": available,
        },
    }
    if volumes is not None:
        entry["volume"] = volumes
    return entry


def volume(name, pvc: Optional[str] = None, used=0, capacity=0, available=0) -> dict:
    entry = {
        "name": name,
        "usedBytes": used,
        "capacityBytes": capacity,
        "availableBytes": available,
    }
    if pvc is not None:
        entry["pvcRef"] = {"name": pvc}
    return entry


def summary(node="n1", pods=None) -> bytes:
    return json.dumps({"node": {"nodeName": node}, "pods": pods or []}).encode()


def series(registry: CollectorRegistry, metric_name: str) -> List[dict]:
    """Label dicts of every sample currently exposed under metric_name."""
    found = []
    for family in registry.collect():
        for sample in family.samples:
            if sample.name == metric_name:
                found.append(dict(sample.labels))
    return found


class ScriptedFetcher(StatsFetcher):
    """Returns queued payloads in order; Exception instances are raised."""

    def __init__(self, *payloads):
        self.payloads = list(payloads)
        self.calls = 0
        self.closed = False

    def fetch(self) -> bytes:
        self.calls += 1
        item = self.payloads.pop(0) if len(self.payloads) > 1 else self.payloads[0]
        if isinstance(item, Exception):
            raise item
        return item

    def name(self) -> str:
        return "scripted"

    def close(self):
        self.closed = True
