"""Scan command: run one scan pass to completion and report the outcome."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click

from landing_exporter.cli import configure_command_logging
from landing_exporter.cli.exit_codes import ExitCode
from landing_exporter.cli.output import error_exit, json_output
from landing_exporter.cli.wiring import build_scan_manager, load_config_or_exit

logger = logging.getLogger(__name__)


@click.command("scan")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Path to configuration file (default: ~/.landing-exporter/config.toml).",
)
@click.option(
    "--root",
    "root_path",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Landing root to scan (overrides [scanner] root_path).",
)
@click.option(
    "--env",
    type=click.Choice(["dev", "int", "prod"], case_sensitive=False),
    default=None,
    help="Environment to scan (overrides [scanner] env).",
)
@click.option(
    "--tenant",
    "-t",
    type=str,
    default=None,
    help="Scan a single tenant instead of every tenant.",
)
@click.option(
    "--json",
    "json_mode",
    is_flag=True,
    default=False,
    help="Output results as JSON.",
)
@click.pass_context
def scan_command(
    ctx: click.Context,
    config_path: Path | None,
    root_path: Path | None,
    env: str | None,
    tenant: str | None,
    json_mode: bool,
) -> None:
    """Run one scan pass and print the resulting metrics.

    Without --tenant every tenant of the configured environment is scanned,
    exactly like one cycle of the daemon. Failure scans also refresh the
    reasons_all.json and reasons_recent.json snapshots.

    \b
    Examples:
        landing-exporter scan --root /data/landing --env prod
        landing-exporter scan --tenant svc-a --json
    """
    configure_command_logging(ctx, config_path)

    config = load_config_or_exit(
        config_path, root_path=root_path, env=env, json_errors=json_mode
    )
    manager, sink = build_scan_manager(config)

    try:
        if tenant is not None:
            result = asyncio.run(manager.scan_all_types_for_tenant(tenant))
        else:
            scanned = asyncio.run(manager.discover_and_scan_all())
    except KeyboardInterrupt:
        error_exit("Scan interrupted.", ExitCode.INTERRUPTED, json_mode)

    metrics_text = sink.render().decode("utf-8")

    if tenant is not None:
        if not result.any_scan_queued:
            error_exit(
                f"No directories found for tenant '{tenant}' in env "
                f"'{config.scanner.env}'",
                ExitCode.TARGET_NOT_FOUND,
                json_mode,
            )
        if json_mode:
            json_output({"tenant": tenant, **result.to_dict(), "metrics": metrics_text})
        else:
            for message in result.messages:
                click.echo(message)
            click.echo("")
            click.echo(metrics_text, nl=False)
        sys.exit(ExitCode.SUCCESS)

    if json_mode:
        json_output({"tenants_scanned": scanned, "metrics": metrics_text})
    else:
        click.echo(f"Scanned {scanned} tenant(s) under {config.scanner.root_path}")
        click.echo("")
        click.echo(metrics_text, nl=False)
    sys.exit(ExitCode.SUCCESS)
