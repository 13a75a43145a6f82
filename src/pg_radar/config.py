"""Run configuration for a diagnostic collection session."""

from __future__ import annotations

import getpass
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from pg_radar.collector.errors import ConfigurationError

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 5432
DEFAULT_DATABASE = "postgres"
DEFAULT_USERNAME = "postgres"


@dataclass(frozen=True, slots=True)
class ConnectionSettings:
    """PostgreSQL connection parameters."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    database: str = ""
    username: str = DEFAULT_USERNAME
    password: str = ""
    data_dir: str = ""

    @property
    def database_name(self) -> str:
        return self.database or DEFAULT_DATABASE


@dataclass(frozen=True, slots=True)
class CollectionSettings:
    """Collection toggles and output location."""

    skip_system: bool = False
    skip_postgres: bool = False
    verbose: bool = False
    very_verbose: bool = False
    output_dir: Path = Path(".")


@dataclass(frozen=True, slots=True)
class RunConfig:
    """Read-only configuration shared by every task of one run."""

    connection: ConnectionSettings = field(default_factory=ConnectionSettings)
    collection: CollectionSettings = field(default_factory=CollectionSettings)
    db: Connection | None = None

    @classmethod
    def from_env(  # noqa: PLR0913
        cls,
        *,
        host: str | None = None,
        port: int | None = None,
        database: str | None = None,
        username: str | None = None,
        data_dir: str | None = None,
        output_dir: Path | None = None,
        skip_system: bool = False,
        skip_postgres: bool = False,
        verbose: bool = False,
        very_verbose: bool = False,
    ) -> RunConfig:
        """Merge explicit values over PG* environment variables and defaults."""

        return cls(
            connection=ConnectionSettings(
                host=host or os.getenv("PGHOST", "").strip() or DEFAULT_HOST,
                port=port if port is not None else _env_int("PGPORT", DEFAULT_PORT),
                database=database or "",
                username=username or os.getenv("PGUSER", "").strip() or _current_user(),
                password=os.getenv("PGPASSWORD", ""),
                data_dir=data_dir or "",
            ),
            collection=CollectionSettings(
                skip_system=skip_system,
                skip_postgres=skip_postgres,
                verbose=verbose or very_verbose,
                very_verbose=very_verbose,
                output_dir=output_dir or Path(os.getenv("PG_RADAR_OUTPUT_DIR", ".")),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error for flag combinations that collect nothing."""

        if self.collection.skip_system and self.collection.skip_postgres:
            raise ConfigurationError(
                "cannot use --skip-system and --skip-postgres together "
                "(nothing would be collected)",
            )
        if self.collection.skip_system and not self.connection.database:
            raise ConfigurationError("--skip-system requires PostgreSQL database (-d flag)")
        if self.connection.port <= 0:
            raise ConfigurationError(f"Invalid port: {self.connection.port}")


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return DEFAULT_USERNAME


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError as error:
        raise ConfigurationError(f"Invalid integer value for {name}: {value!r}") from error
