"""
Tests for the direct kubelet fetcher using the fake kubelet server.

Starts the fake server in a thread, points the fetcher at it, and
checks that the payload decodes into something sensible.
"""

import threading
import time
from http.server import HTTPServer

import pytest

from kubestorage.collector.http_fetcher import HttpStatsFetcher
from kubestorage.collector.transform import EphemeralTransformer, VolumeTransformer
from kubestorage.errors import FetchError
from kubestorage.mock.fake_kubelet_server import NODE_NAME, _SummaryHandler
from kubestorage.stats import parse_snapshot


def _start_test_server(port: int) -> HTTPServer:
    server = HTTPServer(("127.0.0.1", port), _SummaryHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    time.sleep(0.2)  # let it bind
    return server


def test_fetcher_reads_summary_from_fake_kubelet():
    server = _start_test_server(19881)
    try:
        fetcher = HttpStatsFetcher(base_url="http://127.0.0.1:19881")
        snap = parse_snapshot(fetcher.fetch())

        assert snap.node_name == NODE_NAME
        assert len(snap.pods) >= 4
        assert all(p.namespace for p in snap.pods)

        ephemeral = EphemeralTransformer().transform(snap)
        volumes = VolumeTransformer().transform(snap)
        assert len(ephemeral) == len(snap.pods)
        # only the PVC-backed volumes survive
        assert sorted(r.labels[5] for r in volumes) == ["data-postgres-0", "web-uploads"]

        fetcher.close()
    finally:
        server.shutdown()
        server.server_close()


def test_fetcher_accepts_full_summary_url():
    server = _start_test_server(19882)
    try:
        fetcher = HttpStatsFetcher(base_url="http://127.0.0.1:19882/stats/summary/")
        assert fetcher.fetch()
        fetcher.close()
    finally:
        server.shutdown()
        server.server_close()


def test_usage_changes_between_requests():
    server = _start_test_server(19883)
    try:
        fetcher = HttpStatsFetcher(base_url="http://127.0.0.1:19883")
        first = parse_snapshot(fetcher.fetch())
        second = parse_snapshot(fetcher.fetch())
        assert second.pods[0].volumes[0].used != first.pods[0].volumes[0].used
        fetcher.close()
    finally:
        server.shutdown()
        server.server_close()


def test_http_error_status_is_fetch_error():
    server = _start_test_server(19884)
    try:
        fetcher = HttpStatsFetcher(base_url="http://127.0.0.1:19884/nothing-here")
        with pytest.raises(FetchError):
            fetcher.fetch()
        fetcher.close()
    finally:
        server.shutdown()
        server.server_close()


def test_connection_refused_is_fetch_error():
    fetcher = HttpStatsFetcher(base_url="http://127.0.0.1:1")
    with pytest.raises(FetchError):
        fetcher.fetch()
    fetcher.close()


def test_fetcher_name_includes_url():
    fetcher = HttpStatsFetcher(base_url="http://localhost:10255")
    assert "localhost:10255/stats/summary" in fetcher.name()
    fetcher.close()
