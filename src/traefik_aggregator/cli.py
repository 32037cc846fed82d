"""traefik-aggregator CLI - Command line interface."""

from __future__ import annotations

import asyncio
import json
import signal
import sys

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from traefik_aggregator.core.logging import LOG_LEVELS, configure_logging

console = Console()

_shutdown_requested = False

BANNER = """
 traefik-aggregator
 One Traefik configuration from many Traefik instances
"""


def _load_config_or_exit(config_path: str):
    from traefik_aggregator.core.config import load_config
    from traefik_aggregator.core.exceptions import ConfigError

    try:
        return load_config(config_path)
    except ConfigError as e:
        console.print(Panel(f"[red]{e.message}[/red]", title=f"Error: {e.code}", border_style="red"))
        sys.exit(1)


@click.group(invoke_without_command=True)
@click.option(
    "--config", "-c",
    "config_path",
    envvar="CONFIG_PATH",
    default=None,
    help="Path to YAML or TOML config file (default: config.yml)",
)
@click.option(
    "--log-level",
    "-l",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Log level (default: log_level from the config file, else info)",
)
@click.pass_context
def main(ctx: click.Context, config_path: str | None, log_level: str | None):
    """traefik-aggregator - merge routers from several Traefik instances.

    Polls every configured downstream Traefik API, namespaces its routers by
    downstream name and serves the combined document for Traefik's HTTP
    provider.

    Examples:

        traefik-aggregator serve --config config.yml

        traefik-aggregator once --config config.yml

        traefik-aggregator healthcheck
    """
    from traefik_aggregator.core.config import get_settings

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path or get_settings().config_path
    ctx.obj["log_level"] = log_level

    if ctx.invoked_subcommand is None:
        console.print(BANNER, style="cyan")
        console.print("Usage: traefik-aggregator serve --config config.yml", style="yellow")
        console.print("\nCommands:", style="bold")
        console.print("  traefik-aggregator serve        Poll downstreams and serve the config", style="dim")
        console.print("  traefik-aggregator once         Run one cycle and print the config", style="dim")
        console.print("  traefik-aggregator config       Show or validate the config file", style="dim")
        console.print("  traefik-aggregator healthcheck  Probe a running instance", style="dim")
        console.print("  traefik-aggregator version      Show version information", style="dim")


@main.command()
@click.option(
    "--listen",
    envvar="TRAEFIK_AGGREGATOR_LISTEN_ADDR",
    default=None,
    help="host:port to serve on (default: 0.0.0.0:8080)",
)
@click.pass_context
def serve(ctx: click.Context, listen: str | None):
    """Poll downstreams and serve the aggregated configuration.

    Endpoints: /traefik-config, /health, /stats, /metrics.
    """
    from traefik_aggregator.core.config import get_settings

    cfg = _load_config_or_exit(ctx.obj["config_path"])
    configure_logging(ctx.obj["log_level"] or cfg.log_level)

    listen_addr = listen or get_settings().listen_addr
    console.print(BANNER, style="cyan")
    console.print(
        f"Serving {len(cfg.downstream)} downstream(s) on {listen_addr} "
        f"(poll every {cfg.poll_interval_seconds:g}s)",
        style="yellow",
    )

    _run_with_signal_handling(cfg, listen_addr)


def _run_with_signal_handling(cfg, listen_addr: str) -> None:
    """Run the server with clean shutdown on SIGINT/SIGTERM."""
    from traefik_aggregator.server.app import run_server

    global _shutdown_requested
    _shutdown_requested = False

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    main_task = loop.create_task(run_server(cfg, listen_addr))

    def signal_handler(sig: int, frame: object) -> None:
        global _shutdown_requested
        if _shutdown_requested:
            console.print("\n[red]Force shutdown![/red]")
            sys.exit(1)
        _shutdown_requested = True
        console.print("\n[yellow]Shutting down gracefully...[/yellow]")
        loop.call_soon_threadsafe(main_task.cancel)

    signal.signal(signal.SIGINT, signal_handler)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, signal_handler)

    try:
        loop.run_until_complete(main_task)
    except (asyncio.CancelledError, KeyboardInterrupt):
        pass
    finally:
        pending = asyncio.all_tasks(loop)
        for task in pending:
            task.cancel()
        if pending:
            loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        loop.close()


@main.command()
@click.option("--compact", is_flag=True, help="Print JSON without indentation")
@click.pass_context
def once(ctx: click.Context, compact: bool):
    """Run a single aggregation cycle and print the resulting document.

    Exits with status 2 if any downstream failed.
    """
    cfg = _load_config_or_exit(ctx.obj["config_path"])
    configure_logging(ctx.obj["log_level"] or "warning", stream=sys.stderr)

    document, report = asyncio.run(_aggregate_once(cfg))

    click.echo(json.dumps(document, indent=None if compact else 2))

    if report.failures:
        for failed in report.failures:
            click.echo(f"{failed.name}: {failed.error.message}", err=True)
        sys.exit(2)


async def _aggregate_once(cfg):
    from traefik_aggregator.aggregator.engine import Aggregator
    from traefik_aggregator.aggregator.fetch import create_client

    async with create_client(cfg) as client:
        aggregator = Aggregator(cfg, client)
        report = await aggregator.aggregate_configs()
    return aggregator.get_cached_config().to_dict(), report


@main.command()
@click.option(
    "--url",
    default="http://127.0.0.1:8080/health",
    show_default=True,
    help="Health endpoint to probe",
)
@click.option("--timeout", "-t", type=float, default=3.0, help="Request timeout in seconds (default: 3)")
def healthcheck(url: str, timeout: float):
    """Exit 0 if a running aggregator answers its health endpoint, else 1.

    Intended for container HEALTHCHECK instructions.
    """
    import httpx

    try:
        with httpx.Client(timeout=timeout) as client:
            response = client.get(url)
    except httpx.HTTPError as e:
        click.echo(f"unhealthy: {e}", err=True)
        sys.exit(1)

    if response.status_code != 200:
        click.echo(f"unhealthy: status {response.status_code}", err=True)
        sys.exit(1)

    click.echo("healthy")


@main.command()
def version():
    """Show version information."""
    from traefik_aggregator import __version__

    console.print(BANNER, style="cyan")
    console.print(f"[bold]Version:[/bold] {__version__}")
    console.print(f"[bold]Python:[/bold] {sys.version}")


@main.group()
def config():
    """Show or validate the configuration file.

    Examples:

        traefik-aggregator config show

        traefik-aggregator -c /etc/aggregator.yml config validate
    """
    pass


@config.command("show")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def config_show(ctx: click.Context, json_output: bool):
    """Show the configured downstreams."""
    cfg = _load_config_or_exit(ctx.obj["config_path"])

    if json_output:
        click.echo(json.dumps(cfg.model_dump(exclude={"downstream": {"__all__": {"api_key"}}}), indent=2))
        return

    console.print(f"[bold]Poll interval:[/bold] {cfg.poll_interval_seconds:g}s")
    timeout = cfg.http_timeout_seconds
    timeout_text = "none" if timeout is None else f"{timeout:g}s"
    console.print(f"[bold]HTTP timeout:[/bold] {timeout_text}")
    console.print(f"[bold]Log level:[/bold] {cfg.log_level}\n")

    table = Table(title="Downstreams")
    table.add_column("Name", style="cyan")
    table.add_column("API URL")
    table.add_column("Mode")
    table.add_column("Backend", style="dim")
    table.add_column("Cert Resolver", style="dim")
    table.add_column("Auth", justify="center")

    for ds in cfg.downstream:
        resolver = ""
        if ds.tls is not None:
            resolver = "(stripped)" if ds.tls.strip_resolver else ds.tls.cert_resolver
        table.add_row(
            ds.name,
            ds.api_url,
            "passthrough" if ds.passthrough else "routers",
            ds.backend_override or "-",
            resolver or "-",
            "yes" if ds.api_key else "no",
        )

    console.print(table)


@config.command("validate")
@click.pass_context
def config_validate(ctx: click.Context):
    """Validate the configuration file.

    Reports errors (the file cannot work as written) and warnings (settings
    that are ignored or fall back to defaults).
    """
    from traefik_aggregator.aggregator.fetch import build_api_url
    from traefik_aggregator.core.config import parse_duration
    from traefik_aggregator.core.exceptions import InvalidAddressError

    cfg = _load_config_or_exit(ctx.obj["config_path"])

    errors = []
    warnings = []

    if not cfg.downstream:
        warnings.append("no downstreams configured, the served document will be empty")

    seen: set[str] = set()
    for i, ds in enumerate(cfg.downstream):
        label = ds.name or f"downstream #{i + 1}"
        if not ds.name:
            errors.append(f"{label}: name must not be empty")
        elif ds.name in seen:
            warnings.append(f"{label}: duplicate name, later entries overwrite earlier ones")
        seen.add(ds.name)

        try:
            build_api_url(ds.api_url)
        except InvalidAddressError as e:
            errors.append(f"{label}: {e.message}")

        if ds.passthrough:
            ignored = [
                key
                for key in ("entrypoints", "middlewares", "ignore_entrypoints", "backend_override", "server_transport", "tls")
                if getattr(ds, key)
            ]
            if ds.wildcard_fix:
                ignored.append("wildcard_fix")
            if ignored:
                warnings.append(f"{label}: passthrough mode ignores {', '.join(ignored)}")

    for key in ("poll_interval", "http_timeout"):
        value = getattr(cfg, key)
        if not value:
            continue
        try:
            parse_duration(value)
        except ValueError:
            warnings.append(f"{key} ({value!r}) is not a valid duration, using default")

    if errors:
        console.print("[red bold]Configuration Errors:[/red bold]")
        for error in errors:
            console.print(f"  [red]x[/red] {error}")
        console.print()

    if warnings:
        console.print("[yellow bold]Configuration Warnings:[/yellow bold]")
        for warning in warnings:
            console.print(f"  [yellow]![/yellow] {warning}")
        console.print()

    if not errors and not warnings:
        console.print("[green]OK - Configuration is valid[/green]")
    elif not errors:
        console.print("[green]OK - Configuration is valid (with warnings)[/green]")
    else:
        console.print("[red]ERROR - Configuration has errors[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
