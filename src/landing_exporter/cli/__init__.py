"""CLI module for the landing exporter."""

from pathlib import Path

import click


@click.group()
@click.version_option(package_name="landing-exporter")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override log level (default: info).",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Override log file path.",
)
@click.option(
    "--log-json",
    is_flag=True,
    default=False,
    help="Use JSON log format.",
)
@click.pass_context
def main(
    ctx: click.Context,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """Landing exporter - failure, zombie and transcoded metrics for landing folders."""
    ctx.ensure_object(dict)
    # Logging is configured by each subcommand once its --config is known
    ctx.obj["log_options"] = {
        "level": log_level,
        "file": log_file,
        "format": "json" if log_json else None,
    }


def configure_command_logging(
    ctx: click.Context,
    config_path: Path | None,
    *,
    include_stderr: bool | None = None,
) -> None:
    """Configure logging for a subcommand from the group's log options."""
    from landing_exporter.config.logging_factory import configure_logging_from_cli

    options = (ctx.obj or {}).get("log_options", {})
    try:
        configure_logging_from_cli(
            config_path=config_path,
            include_stderr=include_stderr,
            **options,
        )
    except ValueError as e:
        from landing_exporter.cli.exit_codes import ExitCode
        from landing_exporter.cli.output import error_exit

        error_exit(f"Invalid logging configuration: {e}", ExitCode.CONFIG_ERROR)


# Defer import to avoid circular dependency
def _register_commands():
    from landing_exporter.cli.scan import scan_command
    from landing_exporter.cli.serve import serve_command

    main.add_command(scan_command)
    main.add_command(serve_command)


_register_commands()
