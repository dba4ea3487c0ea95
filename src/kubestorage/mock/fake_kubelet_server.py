"""
Fake kubelet /stats/summary server for testing without a cluster.

    python -m kubestorage.mock.fake_kubelet_server
    kubestorage --stats-url http://localhost:10255 snapshot

Serves the summary both at /stats/summary (kubelet read-only port) and
at /api/v1/nodes/<node>/proxy/stats/summary (API server proxy path).
Usage numbers creep up a little on every request.
"""

from __future__ import annotations

import json
import random
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Optional

NODE_NAME = "fake-node-1"

GIB = 1024 ** 3

# (name, namespace, ephemeral capacity GiB, [(volume, pvc or None, capacity GiB)])
_PODS = [
    ("postgres-0", "db", 100, [("data", "data-postgres-0", 50), ("kube-api-access", None, 0)]),
    ("redis-7d9f", "cache", 100, [("kube-api-access", None, 0)]),
    ("web-5c4b8", "frontend", 100, [("uploads", "web-uploads", 20), ("tmp", None, 0)]),
    ("batch-job-x2", "jobs", 100, []),
]

_lock = threading.Lock()
_tick = 0
_rng = random.Random(42)


def _volume_stats(name: str, pvc: Optional[str], capacity_gib: float, fill: float) -> dict:
    capacity = capacity_gib * GIB
    used = int(capacity * fill)
    entry = {
        "name": name,
        "availableBytes": capacity - used,
        "capacityBytes": capacity,
        "usedBytes": used,
    }
    if pvc:
        entry["pvcRef"] = {"name": pvc, "namespace": ""}
    return entry


def generate_summary(node_name: str = NODE_NAME) -> dict:
    """Build one stats summary document, advancing the fake clock."""
    global _tick
    with _lock:
        _tick += 1
        t = _tick
        jitter = [_rng.uniform(0.0, 0.02) for _ in _PODS]

    pods = []
    for i, (name, namespace, eph_gib, volumes) in enumerate(_PODS):
        fill = min(0.95, 0.1 + 0.15 * i + 0.001 * t + jitter[i])
        pods.append({
            "podRef": {"name": name, "namespace": namespace, "uid": f"uid-{i}"},
            "ephemeral-storage": _volume_stats("", None, eph_gib, fill / 4),
            "volume": [
                _volume_stats(vol, pvc, cap_gib, fill) for vol, pvc, cap_gib in volumes
            ],
        })

    # A pod the kubelet has only just admitted: no numbers yet
    pods.append({
        "podRef": {"name": "starting-pod", "namespace": "default", "uid": "uid-new"},
        "ephemeral-storage": {},
    })

    return {"node": {"nodeName": node_name}, "pods": pods}


class _SummaryHandler(BaseHTTPRequestHandler):
    def do_GET(self):
        path = self.path.split("?", 1)[0]
        node_name = NODE_NAME
        if path.startswith("/api/v1/nodes/") and path.endswith("/proxy/stats/summary"):
            node_name = path[len("/api/v1/nodes/"):-len("/proxy/stats/summary")]
        elif path != "/stats/summary":
            self.send_response(404)
            self.end_headers()
            return

        body = json.dumps(generate_summary(node_name)).encode()
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass  # Suppress request logging noise


def run_fake_server(host: str = "127.0.0.1", port: int = 10255):
    server = HTTPServer((host, port), _SummaryHandler)
    print(f"Fake kubelet stats server running at http://{host}:{port}/stats/summary")
    print("Press Ctrl+C to stop.\n")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    server.server_close()
    print("\nServer stopped.")


if __name__ == "__main__":
    run_fake_server()
