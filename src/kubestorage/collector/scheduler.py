"""
The collection loop: fetch -> decode -> transform -> reset -> populate,
then sleep whatever is left of the scrape interval.

The sleep is compensated for the pipeline's own run time, so cycles
start roughly every `scrape_interval` seconds. A slow cycle is followed
immediately by the next one -- there's no catch-up burst and no
negative sleep.

What happens when the fetch fails is up to a FetchFailurePolicy. The
default ends the whole process and leaves the restart to whatever is
supervising it (kubelet, systemd, ...).
"""

from __future__ import annotations

import logging
import os
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

from kubestorage.collector.sink import MetricSink
from kubestorage.collector.transform import RecordTransformer
from kubestorage.context import ExporterContext
from kubestorage.errors import DecodeFailed
from kubestorage.stats import decode_snapshot

log = logging.getLogger(__name__)


class FetchFailurePolicy(ABC):
    """Decides what a collector does after a failed fetch.

    handle() returns normally to skip the current cycle. To stop, it
    has to take the process down itself.
    """

    @abstractmethod
    def handle(self, collector_name: str, error: Exception):
        ...

    def succeeded(self, collector_name: str):
        pass


class ExitOnFetchFailure(FetchFailurePolicy):

    def __init__(self, exit_func: Callable[[int], None] = os._exit):
        # os._exit, not sys.exit: the collectors run in worker threads and
        # SystemExit there would only end the thread
        self._exit = exit_func

    def handle(self, collector_name: str, error: Exception):
        log.error("ErrorBadRequest : %s (%s collector)", error, collector_name)
        for handler in logging.getLogger().handlers:
            handler.flush()
        self._exit(1)


class RetryOnFetchFailure(FetchFailurePolicy):
    """Keep the last exposed series and try again next cycle, up to a limit."""

    def __init__(self, max_attempts: int = 5, on_give_up: Optional[FetchFailurePolicy] = None):
        self.max_attempts = max_attempts
        self._on_give_up = on_give_up or ExitOnFetchFailure()
        self._consecutive = {}

    def handle(self, collector_name: str, error: Exception):
        attempts = self._consecutive.get(collector_name, 0) + 1
        self._consecutive[collector_name] = attempts
        log.warning(
            "Fetch failed for %s collector (attempt %d/%d): %s",
            collector_name, attempts, self.max_attempts, error,
        )
        if attempts >= self.max_attempts:
            log.error("Lost the stats endpoint after %d attempts, exiting", attempts)
            self._on_give_up.handle(collector_name, error)

    def succeeded(self, collector_name: str):
        self._consecutive[collector_name] = 0


def build_failure_policy(name: str, max_attempts: int = 5) -> FetchFailurePolicy:
    if name == "retry":
        return RetryOnFetchFailure(max_attempts=max_attempts)
    return ExitOnFetchFailure()


class StorageCollector:
    """One metric family's loop. Runs forever once started."""

    def __init__(
        self,
        context: ExporterContext,
        transformer: RecordTransformer,
        failure_policy: Optional[FetchFailurePolicy] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.context = context
        self.transformer = transformer
        # Registers the gauges, so a duplicate collector fails here
        self.sink = MetricSink(transformer, context.registry)
        self.failure_policy = failure_policy or ExitOnFetchFailure()
        self._clock = clock
        self._sleep = sleep

    @property
    def name(self) -> str:
        return self.transformer.kind

    @property
    def interval(self) -> float:
        return self.context.settings.scrape_interval

    def _count_decode_failure(self, error: DecodeFailed):
        # Indistinguishable from an empty node on the /metrics side
        self.context.decode_failures.labels(self.name).inc()

    def run_cycle(self) -> float:
        """Run the pipeline once. Returns elapsed seconds."""
        start = self._clock()

        try:
            payload = self.context.fetcher.fetch()
        except Exception as e:
            self.failure_policy.handle(self.name, e)
            return self._clock() - start
        self.failure_policy.succeeded(self.name)
        log.debug("Fetched stats from %s", self.context.fetcher.name())

        snapshot = decode_snapshot(payload, on_failure=self._count_decode_failure)
        records = self.transformer.transform(snapshot)
        written = self.sink.apply(records)
        log.debug("%s collector exposed %d series for node %r", self.name, written, snapshot.node_name)

        return self._clock() - start

    def tick(self) -> float:
        """One cycle plus the compensating sleep. Returns the sleep taken."""
        elapsed = self.run_cycle()
        adjust = max(0.0, self.interval - elapsed)
        log.debug("%s collector cycle took %.3fs, sleeping %.3fs", self.name, elapsed, adjust)
        if adjust > 0:
            self._sleep(adjust)
        return adjust

    def run_forever(self):
        log.debug("Starting %s metrics collection", self.transformer.description)
        while True:
            self.tick()
