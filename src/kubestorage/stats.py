"""
Kubelet stats summary model.

These mirror the subset of the kubelet /stats/summary document we care
about: node name, pod refs, ephemeral storage and per-volume usage.
Decoding is lenient the way the kubelet's own consumers are -- a field
with the wrong type or a missing field just reads as zero/empty.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple, Union

from kubestorage.errors import DecodeFailed

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class EphemeralStats:
    used: float = 0.0
    capacity: float = 0.0
    available: float = 0.0

    def is_empty(self) -> bool:
        return self.used == 0 and self.capacity == 0 and self.available == 0


@dataclass(frozen=True)
class VolumeEntry:
    name: str
    pvc_name: str = ""     # empty when the volume isn't backed by a PVC
    used: float = 0.0
    capacity: float = 0.0
    available: float = 0.0

    def is_empty(self) -> bool:
        return self.used == 0 and self.capacity == 0 and self.available == 0


@dataclass(frozen=True)
class PodEntry:
    name: str
    namespace: str
    ephemeral: EphemeralStats = field(default_factory=EphemeralStats)
    volumes: Tuple[VolumeEntry, ...] = ()


@dataclass(frozen=True)
class StorageSnapshot:
    """One decoded stats payload for a single node."""

    node_name: str = ""
    pods: Tuple[PodEntry, ...] = ()


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _as_float(value: Any) -> float:
    # bool is an int subclass, but the kubelet never sends one for bytes
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


def _parse_volume(raw: Dict[str, Any]) -> VolumeEntry:
    return VolumeEntry(
        name=_as_str(raw.get("name")),
        pvc_name=_as_str(_as_dict(raw.get("pvcRef")).get("name")),
        used=_as_float(raw.get("usedBytes")),
        capacity=_as_float(raw.get("capacityBytes")),
        available=_as_float(raw.get("availableBytes")),
    )


def _parse_pod(raw: Dict[str, Any]) -> PodEntry:
    pod_ref = _as_dict(raw.get("podRef"))
    storage = _as_dict(raw.get("ephemeral-storage"))
    volumes = raw.get("volume")
    if not isinstance(volumes, list):
        volumes = []

    return PodEntry(
        name=_as_str(pod_ref.get("name")),
        namespace=_as_str(pod_ref.get("namespace")),
        ephemeral=EphemeralStats(
            used=_as_float(storage.get("usedBytes")),
            capacity=_as_float(storage.get("capacityBytes")),
            available=_as_float(storage.get("availableBytes")),
        ),
        volumes=tuple(_parse_volume(v) for v in volumes if isinstance(v, dict)),
    )


def _reject_constant(name: str):
    # NaN and Infinity are Python extensions, not JSON
    raise ValueError(f"non-JSON constant {name}")


def parse_snapshot(payload: Union[bytes, str]) -> StorageSnapshot:
    """Decode a stats summary payload.

    Raises DecodeFailed when the payload isn't a JSON object at all.
    Anything below the top level is read leniently.
    """
    try:
        document = json.loads(payload, parse_constant=_reject_constant)
    except (ValueError, TypeError) as e:
        raise DecodeFailed(f"stats payload is not valid JSON: {e}") from e

    if not isinstance(document, dict):
        raise DecodeFailed(f"stats payload is a JSON {type(document).__name__}, not an object")

    pods = document.get("pods")
    if not isinstance(pods, list):
        pods = []

    return StorageSnapshot(
        node_name=_as_str(_as_dict(document.get("node")).get("nodeName")),
        pods=tuple(_parse_pod(p) for p in pods if isinstance(p, dict)),
    )


def decode_snapshot(
    payload: Union[bytes, str],
    on_failure: Optional[Callable[[DecodeFailed], None]] = None,
) -> StorageSnapshot:
    """Like parse_snapshot, but a bad payload reads as an empty snapshot.

    on_failure, if given, is called with the DecodeFailed before the
    empty snapshot is returned.
    """
    try:
        return parse_snapshot(payload)
    except DecodeFailed as e:
        log.debug("Discarding stats payload: %s", e)
        if on_failure is not None:
            on_failure(e)
        return StorageSnapshot()
