"""Configuration management for s3mover"""

import os
import tomllib
from collections.abc import Callable, Mapping
from dataclasses import dataclass, fields, replace
from datetime import tzinfo
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from s3mover.services.errors import ConfigError
from s3mover.services.log_service import LOG_FORMATS, LOG_LEVELS
from s3mover.services.payload import DEFAULT_GZIP_LEVEL

# Base directory for the project
BASE_DIR = Path(__file__).resolve().parent.parent
PYPROJECT_FILE = BASE_DIR / "pyproject.toml"
DIST_NAME = "s3mover"

# Every setting can be given as TRANSPORTER_<NAME> in the environment or .env
ENV_PREFIX = "TRANSPORTER_"
ENV_NAMES = {
    "src_dir": "SRC",
    "bucket": "BUCKET",
    "prefix": "PREFIX",
    "max_parallels": "PARALLELS",
    "gzip": "GZIP",
    "gzip_level": "GZIP_LEVEL",
    "time_format": "TIME_FORMAT",
    "time_zone": "TIME_ZONE",
    "stats_port": "PORT",
    "log_level": "LOG_LEVEL",
    "log_format": "LOG_FORMAT",
    "aws_profile": "AWS_PROFILE",
    "aws_region": "AWS_REGION",
    "endpoint_url": "ENDPOINT_URL",
}

DEFAULT_MAX_PARALLELS = 1
DEFAULT_STATS_PORT = 9898


def get_package_version() -> str:
    """Get the installed package version, falling back to pyproject.toml."""
    try:
        return version(DIST_NAME)
    except PackageNotFoundError:
        pass
    try:
        with open(PYPROJECT_FILE, "rb") as f:
            pyproject = tomllib.load(f)
        return str(pyproject.get("project", {}).get("version", "0.0.0"))
    except (OSError, tomllib.TOMLDecodeError):
        return "0.0.0"


def load_env_file(path: str | Path | None = None) -> bool:
    """Load a .env file into os.environ without overriding existing variables.

    Returns:
        True if a file was found and loaded
    """
    env_file = Path(path) if path else Path.cwd() / ".env"
    return load_dotenv(env_file)


def _parse_bool(value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in ("1", "true", "yes", "on"):
        return True
    if normalized in ("0", "false", "no", "off", ""):
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _optional_str(value: str) -> str | None:
    return value or None


_CONVERTERS: dict[str, Callable[[str], Any]] = {
    "max_parallels": int,
    "gzip": _parse_bool,
    "gzip_level": int,
    "stats_port": int,
    "aws_profile": _optional_str,
    "aws_region": _optional_str,
    "endpoint_url": _optional_str,
}


@dataclass(frozen=True)
class Settings:
    """Validated, immutable settings for one transporter process."""

    src_dir: str = ""
    bucket: str = ""
    prefix: str = ""
    max_parallels: int = DEFAULT_MAX_PARALLELS
    gzip: bool = False
    gzip_level: int = 0
    time_format: str = ""
    time_zone: str = ""
    stats_port: int = DEFAULT_STATS_PORT
    log_level: str = "info"
    log_format: str = "auto"
    aws_profile: str | None = None
    aws_region: str | None = None
    endpoint_url: str | None = None

    @classmethod
    def from_sources(
        cls,
        overrides: Mapping[str, Any] | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> "Settings":
        """Build validated settings.

        Priority order (highest to lowest):
        1. overrides (command-line flags; None values are ignored)
        2. TRANSPORTER_* environment variables
        3. Hardcoded defaults

        Raises:
            ConfigError: If a value cannot be parsed or fails validation
        """
        if environ is None:
            environ = os.environ

        values: dict[str, Any] = {}
        for name, suffix in ENV_NAMES.items():
            raw = environ.get(ENV_PREFIX + suffix)
            if raw is None or raw == "":
                continue
            convert = _CONVERTERS.get(name, str)
            try:
                values[name] = convert(raw)
            except ValueError as e:
                raise ConfigError(f"invalid {ENV_PREFIX + suffix}: {e}") from e

        known = {f.name for f in fields(cls)}
        for name, value in (overrides or {}).items():
            if name in known and value is not None:
                values[name] = value

        return cls(**values).validate()

    def validate(self) -> "Settings":
        """Check the settings and fill in dependent defaults.

        Returns:
            A validated copy (gzip_level defaulted when gzip is on)

        Raises:
            ConfigError: If the settings are invalid
        """
        if not self.bucket:
            raise ConfigError("bucket is required")
        if not self.prefix:
            raise ConfigError("prefix is required")
        if not self.src_dir:
            raise ConfigError("src is required")
        if self.max_parallels < 1:
            raise ConfigError("parallels must be at least 1")
        if not 0 <= self.stats_port <= 65535:
            raise ConfigError(f"invalid stats port: {self.stats_port}")
        if self.log_level.lower() not in LOG_LEVELS:
            raise ConfigError(f"log level must be one of {', '.join(LOG_LEVELS)}")
        if self.log_format not in LOG_FORMATS:
            raise ConfigError(f"log format must be one of {', '.join(LOG_FORMATS)}")

        settings = self
        if self.gzip:
            if self.gzip_level == 0:
                settings = replace(settings, gzip_level=DEFAULT_GZIP_LEVEL)
            if not 1 <= settings.gzip_level <= 9:
                raise ConfigError("gzip level must be between 1 and 9")

        # Resolve once so a bad zone fails at startup
        _ = settings.tz
        return settings

    @property
    def tz(self) -> tzinfo | None:
        """Time zone for object keys; None means process local time."""
        if not self.time_zone:
            return None
        try:
            return ZoneInfo(self.time_zone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigError(f"unknown time zone: {self.time_zone}") from e

    def all(self) -> dict[str, Any]:
        """Get all settings as a dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}
