"""Tests for the snapshot command's tables."""

from rich.console import Console

from kubestorage import JOB_NAME
from kubestorage.collector.transform import EphemeralTransformer, MetricRecord, VolumeTransformer
from kubestorage.report import build_table, format_bytes


def test_format_bytes():
    assert format_bytes(0) == "0 B"
    assert format_bytes(512) == "512 B"
    assert format_bytes(2048) == "2.0 KiB"
    assert format_bytes(5 * 1024 ** 3) == "5.0 GiB"
    assert format_bytes(3 * 1024 ** 6) == "3072.0 PiB"


def test_table_has_one_row_per_record():
    records = [
        MetricRecord((JOB_NAME, "a", "ns", "n1"), 100, 1000, 900),
        MetricRecord((JOB_NAME, "b", "ns", "n1"), 0, 0, 0),
    ]
    table = build_table(EphemeralTransformer(), records)
    assert table.row_count == 2
    # job is constant, so it isn't shown
    assert [c.header for c in table.columns][:3] == ["pod", "namespace", "node"]


def test_volume_table_renders():
    records = [MetricRecord((JOB_NAME, "a", "ns", "n1", "data", "pvc-a"), 10, 100, 90)]
    console = Console(record=True, width=160)
    console.print(build_table(VolumeTransformer(), records))
    text = console.export_text()
    assert "pvc-a" in text
    assert "Volume Storage" in text
