"""Command-line interface for advisory-handler."""

import json
import logging
import sys
from typing import Optional

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from advisory_handler import __version__
from advisory_handler.config import ConfigError, HandlerConfig, load_config
from advisory_handler.ingress import IncomingMessage, IngressOutcome, NotificationIngress
from advisory_handler.models import GenerationRequest
from advisory_handler.service import AdvisoryProcessingError, create_service
from advisory_handler.worker import IngressWorkerPool

console = Console(stderr=True)


def _setup_logging(level: str) -> None:
    """Route log records through rich on stderr."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _print_request(request: GenerationRequest, format: str) -> None:
    if format == "json":
        click.echo(json.dumps(request.to_dict(), indent=2))
        return

    table = Table(title=f"Generation request {request.id}")
    table.add_column("Generation")
    table.add_column("Type")
    table.add_column("Identifier")
    for generation in request.generations:
        table.add_row(generation.id, generation.target.kind.value, generation.target.identifier)
    Console().print(table)

    publishers = ", ".join(f"{p.name} ({p.version})" for p in request.publishers) or "none"
    Console().print(f"Publishers: {publishers}")


def _build_service(config: HandlerConfig):
    try:
        return create_service(config)
    except ValueError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        sys.exit(2)


@click.group()
@click.version_option(version=__version__, prog_name="advisory-handler")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to a YAML configuration file",
)
@click.option("--log-level", default=None, help="Override the configured log level")
@click.pass_context
def main(ctx: click.Context, config_path: Optional[str], log_level: Optional[str]) -> None:
    """advisory-handler - Request SBOM generations for Errata Tool advisories."""
    try:
        config = load_config(config_path)
    except ConfigError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(2)

    if log_level:
        config.log_level = log_level
    _setup_logging(config.log_level)
    ctx.obj = config


@main.command()
@click.argument("advisory_id")
@click.option(
    "--format",
    "-f",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format",
)
@click.pass_obj
def process(config: HandlerConfig, advisory_id: str, format: str) -> None:
    """Process ADVISORY_ID directly, bypassing the message filters."""
    service = _build_service(config)

    try:
        request = service.request_generations(advisory_id)
    except AdvisoryProcessingError as e:
        console.print(f"[red]{e}[/red]")
        if e.cause is not None:
            console.print(f"[dim]Caused by: {e.cause}[/dim]")
        sys.exit(1)

    _print_request(request, format)


@main.command()
@click.argument("file", type=click.File("rb"), default="-")
@click.option("--subject", default=None, help="Message subject property (defaults to the configured subject)")
@click.pass_obj
def ingest(config: HandlerConfig, file, subject: Optional[str]) -> None:
    """Feed a single notification body from FILE (or stdin) through the ingress."""
    ingress = NotificationIngress(_build_service(config), subject=config.subject)
    message = IncomingMessage(
        payload=file.read(),
        properties={"subject": subject or config.subject},
    )

    result = ingress.process(message)

    if result.outcome == IngressOutcome.PROCESSED and result.request is not None:
        console.print(f"[green]Advisory {result.advisory_id} processed[/green]")
        _print_request(result.request, "json")
    elif result.outcome == IngressOutcome.FAILED:
        console.print(f"[red]Advisory {result.advisory_id} failed: {result.error}[/red]")
    else:
        console.print(f"[yellow]Message dropped: {result.outcome.value}[/yellow]")


@main.command("serve-file")
@click.argument("file", type=click.File("r"))
@click.pass_obj
def serve_file(config: HandlerConfig, file) -> None:
    """Replay notifications from a JSON-lines FILE through the worker pool.

    Each line is an object with "properties" (transport metadata) and
    "body" (the notification body).
    """
    ingress = NotificationIngress(_build_service(config), subject=config.subject)
    pool = IngressWorkerPool(
        ingress,
        num_workers=config.worker_count,
        max_size=config.queue_size,
        drain_timeout=config.drain_timeout,
    )
    pool.start()

    submitted = 0
    for line_number, line in enumerate(file, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError as e:
            console.print(f"[yellow]Line {line_number}: invalid JSON, skipped ({e})[/yellow]")
            continue
        if not isinstance(record, dict):
            console.print(f"[yellow]Line {line_number}: expected an object, skipped[/yellow]")
            continue

        message = IncomingMessage(
            payload=json.dumps(record.get("body")).encode("utf-8"),
            properties=record.get("properties") or {},
        )
        if pool.submit(message):
            submitted += 1

    pool.join()
    pool.stop()

    stats = pool.stats
    console.print(
        f"Submitted {submitted} message(s): {stats['processed']} processed, "
        f"{stats['failed']} failed, {stats['skipped']} skipped, {stats['rejected']} rejected"
    )


@main.command("config")
@click.pass_obj
def show_config(config: HandlerConfig) -> None:
    """Print the effective configuration."""
    click.echo(yaml.safe_dump(config.to_dict(), sort_keys=False))


@main.command()
def version() -> None:
    """Show version information."""
    click.echo(f"advisory-handler version {__version__}")


if __name__ == "__main__":
    main()
