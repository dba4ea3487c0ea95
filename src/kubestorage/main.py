"""
kubestorage entry point.

Usage:
    kubestorage --node worker-1                     Run the exporter (in-cluster)
    kubestorage --no-in-cluster --node worker-1     Run it with ~/.kube/config
    kubestorage --stats-url http://localhost:10255  Read a kubelet directly
    kubestorage --node worker-1 snapshot            Print one scrape and exit

Every option can also be set from the environment (CURRENT_NODE_NAME,
SCRAPE_DURATION, IN_CLUSTER, METRICS_PORT, LOG_LEVEL, ...).
"""

from __future__ import annotations

import logging

import click

from kubestorage import __version__
from kubestorage.collector.scheduler import StorageCollector, build_failure_policy
from kubestorage.collector.transform import TRANSFORMERS
from kubestorage.config import (
    DEFAULT_METRICS_PORT,
    DEFAULT_SCRAPE_INTERVAL,
    ExporterSettings,
    parse_log_level,
    resolve_scrape_interval,
)
from kubestorage.context import ExporterContext, build_fetcher
from kubestorage.errors import ConfigError
from kubestorage.server import start_collectors, start_metrics_server
from kubestorage.stats import decode_snapshot


log = logging.getLogger("kubestorage")


def configure_logging(level: int):
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    # kubernetes/urllib3 are very chatty at debug
    logging.getLogger("urllib3").setLevel(max(level, logging.INFO))
    logging.getLogger("kubernetes").setLevel(max(level, logging.INFO))


def make_fetcher(settings: ExporterSettings):
    try:
        return build_fetcher(settings)
    except ConfigError as e:
        raise click.ClickException(str(e))


def build_context(settings: ExporterSettings) -> ExporterContext:
    return ExporterContext(fetcher=make_fetcher(settings), settings=settings)


def run_exporter(settings: ExporterSettings):
    """Register metrics, start /metrics, start both collectors, then block."""
    context = build_context(settings)
    policy = build_failure_policy(settings.fetch_error_policy, settings.max_fetch_attempts)

    # Sinks register here, before any loop starts
    collectors = [
        StorageCollector(context, transformer, failure_policy=policy)
        for transformer in TRANSFORMERS.values()
    ]

    log.info(
        "Exporting storage metrics: source=%s, interval=%.1fs",
        context.fetcher.name(), settings.scrape_interval,
    )
    start_metrics_server(context)
    threads = start_collectors(collectors)

    try:
        for thread in threads:
            thread.join()
    except KeyboardInterrupt:
        pass
    finally:
        context.close()


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="kubestorage")
@click.option("--node", envvar="CURRENT_NODE_NAME", default="",
              help="Node whose kubelet stats to export")
@click.option("--interval", envvar="SCRAPE_DURATION", default=DEFAULT_SCRAPE_INTERVAL,
              help="Scrape interval as a duration (15s, 1m, 500ms)")
@click.option("--in-cluster/--no-in-cluster", envvar="IN_CLUSTER", default=True,
              help="Use the pod's service account instead of a kubeconfig")
@click.option("--kubeconfig", envvar="KUBECONFIG", default=None,
              help="Kubeconfig path when not in-cluster (default ~/.kube/config)")
@click.option("--stats-url", envvar="STATS_URL", default=None,
              help="Read /stats/summary from this URL instead of the API server proxy")
@click.option("--port", envvar="METRICS_PORT", default=DEFAULT_METRICS_PORT, type=int,
              help="Port to serve /metrics on")
@click.option("--log-level", envvar="LOG_LEVEL", default="info",
              help="trace, debug, info, warn, error, fatal, panic or disabled")
@click.option("--on-fetch-error", "fetch_error_policy", envvar="FETCH_ERROR_POLICY",
              type=click.Choice(["exit", "retry"]), default="exit",
              help="exit: stop the process on the first failed scrape; retry: give up after 5")
@click.option("--verbose", is_flag=True, default=False, help="Enable debug logging")
@click.pass_context
def cli(ctx, node: str, interval: str, in_cluster: bool, kubeconfig: str, stats_url: str,
        port: int, log_level: str, fetch_error_policy: str, verbose: bool):
    """Export pod ephemeral and PVC storage usage as Prometheus gauges."""
    try:
        level = logging.DEBUG if verbose else parse_log_level(log_level)
    except ConfigError as e:
        raise click.BadParameter(str(e), param_hint="--log-level")
    configure_logging(level)

    try:
        settings = ExporterSettings(
            node_name=node,
            scrape_interval=resolve_scrape_interval(interval),
            in_cluster=in_cluster,
            kubeconfig=kubeconfig,
            stats_url=stats_url,
            port=port,
            fetch_error_policy=fetch_error_policy,
        ).validate()
    except ConfigError as e:
        raise click.ClickException(str(e))

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings

    if ctx.invoked_subcommand is None:
        run_exporter(settings)


@cli.command()
@click.pass_context
def snapshot(ctx):
    """Scrape once and print what would be exported."""
    from rich.console import Console
    from kubestorage.report import build_table

    settings = ctx.obj["settings"]
    fetcher = make_fetcher(settings)

    try:
        payload = fetcher.fetch()
    except Exception as e:
        raise click.ClickException(f"Fetch failed: {e}")
    finally:
        fetcher.close()

    stats = decode_snapshot(payload)
    console = Console()
    console.print(f"\n[bold]Node:[/bold] {stats.node_name or '[dim](unknown)[/dim]'}"
                  f"  [dim]{len(stats.pods)} pods[/dim]")

    for transformer in TRANSFORMERS.values():
        records = transformer.transform(stats)
        if records:
            console.print(build_table(transformer, records))
        else:
            console.print(f"[dim]No {transformer.description.lower()} series.[/dim]")

    console.print()


if __name__ == "__main__":
    cli()
