"""CLI entrypoint for pg-radar."""

import logging
import sys
from pathlib import Path

import rich_click as click

from pg_radar import __version__
from pg_radar.collector.errors import ConfigurationError
from pg_radar.config import DEFAULT_PORT
from pg_radar.controllers import CollectCommand, ExitCode, RadarCliController

click.rich_click.USE_MARKDOWN = True
CONTROLLER = RadarCliController()


class _LevelPrefixFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if record.levelno >= logging.ERROR:
            return f"ERROR: {message}"
        return message


@click.command()
@click.version_option(version=__version__, prog_name="pg-radar")
@click.option("-h", "--host", default=None, help="Database host. Defaults to PGHOST or localhost.")
@click.option(
    "-p",
    "--port",
    type=click.IntRange(min=1, max=65535),
    default=None,
    help=f"Database port. Defaults to PGPORT or {DEFAULT_PORT}.",
)
@click.option("-d", "--dbname", default=None, help="Database name. Defaults to `postgres`.")
@click.option("-U", "--username", default=None, help="Database user. Defaults to PGUSER.")
@click.option("--data-dir", default=None, help="PostgreSQL data directory.")
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for the archive. Defaults to PG_RADAR_OUTPUT_DIR or the current directory.",
)
@click.option(
    "--skip-system/--no-skip-system",
    default=False,
    show_default=True,
    help="Skip system data collection.",
)
@click.option(
    "--skip-postgres/--no-skip-postgres",
    default=False,
    show_default=True,
    help="Skip PostgreSQL data collection.",
)
@click.option(
    "-v",
    "--verbose",
    "verbosity",
    count=True,
    help="Verbose output; repeat (`-vv`) for per-collector detail.",
)
@click.pass_context
def pg_radar(  # noqa: PLR0913
    ctx: click.Context,
    host: str | None,
    port: int | None,
    dbname: str | None,
    username: str | None,
    data_dir: str | None,
    output_dir: Path | None,
    skip_system: bool,
    skip_postgres: bool,
    verbosity: int,
) -> None:
    """Collect PostgreSQL and system diagnostics into a zip archive."""

    _configure_logging(verbosity)
    command = CollectCommand(
        host=host,
        port=port,
        database=dbname,
        username=username,
        data_dir=data_dir,
        output_dir=output_dir,
        skip_system=skip_system,
        skip_postgres=skip_postgres,
        verbose=verbosity >= 1,
        very_verbose=verbosity >= 2,  # noqa: PLR2004
    )

    try:
        config = CONTROLLER.build_config(command)
    except ConfigurationError as error:
        click.echo(f"ERROR: {error}", err=True)
        click.echo(ctx.get_usage(), err=True)
        ctx.exit(ExitCode.USAGE_ERROR)

    if not command.verbose:
        click.echo("Collecting diagnostic data...", err=True)
    result = CONTROLLER.collect(config, platform=command.platform)
    _emit_lines(result.lines)
    if result.exit_code != ExitCode.OK:
        ctx.exit(result.exit_code)


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity >= 2:  # noqa: PLR2004
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_LevelPrefixFormatter("%(message)s"))
    logging.basicConfig(level=logging.WARNING, handlers=[handler], force=True)
    logging.getLogger("pg_radar").setLevel(level)


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line, err=True)


if __name__ == "__main__":  # pragma: no cover
    pg_radar()
