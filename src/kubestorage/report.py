"""
Rich tables for the one-shot `snapshot` command.
"""

from __future__ import annotations

from typing import List

from rich.table import Table

from kubestorage.collector.transform import MetricRecord, RecordTransformer

_UNITS = ("B", "KiB", "MiB", "GiB", "TiB", "PiB")


def format_bytes(value: float) -> str:
    size = float(value)
    unit = _UNITS[0]
    for unit in _UNITS[:-1]:
        if abs(size) < 1024:
            break
        size /= 1024
    else:
        unit = _UNITS[-1]
    return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"


def _color_for_usage(used: float, capacity: float) -> str:
    if capacity <= 0:
        return "dim"
    ratio = used / capacity
    if ratio >= 0.9:
        return "red"
    if ratio >= 0.75:
        return "yellow"
    return "green"


def build_table(transformer: RecordTransformer, records: List[MetricRecord]) -> Table:
    """One row per record; label columns minus the constant job label."""
    table = Table(
        title=f"{transformer.description} ({len(records)} series)",
        show_header=True,
        header_style="bold",
    )
    label_columns = [name for name in transformer.label_names if name != "job"]
    for name in label_columns:
        table.add_column(name)
    table.add_column("Used", justify="right")
    table.add_column("Capacity", justify="right")
    table.add_column("Available", justify="right")

    for record in records:
        labels = record.as_label_dict(transformer.label_names)
        color = _color_for_usage(record.used, record.capacity)
        table.add_row(
            *(labels[name] or "[dim]-[/dim]" for name in label_columns),
            f"[{color}]{format_bytes(record.used)}[/{color}]",
            format_bytes(record.capacity),
            format_bytes(record.available),
        )
    return table
