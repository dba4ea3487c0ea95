"""
Exporter settings and the small parsers behind them.

Values arrive as strings (CLI flags or environment variables). The
scrape interval uses Go duration syntax since that's what existing
deployments already set SCRAPE_DURATION to.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from kubestorage.errors import ConfigError

log = logging.getLogger(__name__)

DEFAULT_SCRAPE_INTERVAL = "15s"
DEFAULT_SCRAPE_SECONDS = 15.0
DEFAULT_METRICS_PORT = 9100

_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,  # micro sign
    "μs": 1e-6,  # greek mu
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_DURATION_PART_RE = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")

# zerolog level names -> logging levels. "disabled" sits above CRITICAL.
_LOG_LEVELS = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "panic": logging.CRITICAL,
    "disabled": logging.CRITICAL + 10,
}


def parse_duration(text: str) -> float:
    """Parse a Go-style duration ("15s", "1m30s", "250ms") into seconds.

    Raises ValueError on anything Go's time.ParseDuration would reject.
    """
    s = text.strip()
    if not s:
        raise ValueError("empty duration")

    sign = 1.0
    if s[0] in "+-":
        sign = -1.0 if s[0] == "-" else 1.0
        s = s[1:]

    if s == "0":
        return 0.0

    total = 0.0
    pos = 0
    while pos < len(s):
        match = _DURATION_PART_RE.match(s, pos)
        if match is None:
            raise ValueError(f"invalid duration {text!r}")
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()

    if pos == 0:
        raise ValueError(f"invalid duration {text!r}")
    return sign * total


def resolve_scrape_interval(text: Optional[str]) -> float:
    """Scrape interval in seconds. Bad values fall back to 15s with a warning."""
    if text is None:
        return DEFAULT_SCRAPE_SECONDS
    try:
        return parse_duration(text)
    except ValueError:
        log.warning("Invalid SCRAPE_DURATION '%s', using default %s", text, DEFAULT_SCRAPE_INTERVAL)
        return DEFAULT_SCRAPE_SECONDS


def parse_log_level(name: str) -> int:
    try:
        return _LOG_LEVELS[name.strip().lower()]
    except KeyError:
        raise ConfigError(
            f"Unknown log level {name!r} (expected one of: {', '.join(_LOG_LEVELS)})"
        ) from None


@dataclass(frozen=True)
class ExporterSettings:
    node_name: str = ""
    scrape_interval: float = DEFAULT_SCRAPE_SECONDS   # seconds
    in_cluster: bool = True
    kubeconfig: Optional[str] = None
    stats_url: Optional[str] = None    # direct kubelet URL; bypasses the API server
    port: int = DEFAULT_METRICS_PORT
    fetch_error_policy: str = "exit"   # "exit" or "retry"
    max_fetch_attempts: int = 5

    def validate(self) -> "ExporterSettings":
        """Startup checks. Returns self so it chains after construction."""
        if not self.stats_url and not self.node_name:
            raise ConfigError(
                "No node to observe: set CURRENT_NODE_NAME (--node) or STATS_URL (--stats-url)"
            )
        if not 0 < self.port < 65536:
            raise ConfigError(f"Metrics port out of range: {self.port}")
        if self.fetch_error_policy not in ("exit", "retry"):
            raise ConfigError(f"Unknown fetch error policy {self.fetch_error_policy!r}")
        if self.max_fetch_attempts < 1:
            raise ConfigError("max_fetch_attempts must be at least 1")
        return self
