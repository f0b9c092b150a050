"""s3mover command-line entry point.

Moves every file dropped into a directory to S3, then removes it locally.
Runs until SIGINT, SIGTERM or SIGQUIT.
"""

import argparse
import logging
import signal
import sys
import threading
from collections.abc import Sequence
from typing import Any

from botocore.exceptions import BotoCoreError

from s3mover.config import (
    DEFAULT_STATS_PORT,
    ENV_PREFIX,
    Settings,
    get_package_version,
    load_env_file,
)
from s3mover.services.errors import ConfigError
from s3mover.services.log_service import (
    LOG_FORMATS,
    LOG_LEVELS,
    configure_logging,
    get_log_service,
)
from s3mover.services.transporter import Transporter

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = ("SIGINT", "SIGTERM", "SIGQUIT")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser. Unset flags fall back to TRANSPORTER_* variables."""
    parser = argparse.ArgumentParser(
        prog="s3mover",
        description="Move files from a local directory to Amazon S3.",
        epilog=f"Every option can also be set as {ENV_PREFIX}<NAME>, e.g. {ENV_PREFIX}BUCKET.",
    )
    parser.add_argument("--src", dest="src_dir", help="source directory")
    parser.add_argument("--bucket", help="S3 bucket name")
    parser.add_argument("--prefix", help="S3 key prefix")
    parser.add_argument(
        "--parallels", dest="max_parallels", type=int, help="max parallel uploads (default 1)"
    )
    parser.add_argument(
        "--gzip", action="store_true", default=None, help="gzip objects before upload"
    )
    parser.add_argument("--gzip-level", type=int, help="gzip compression level 1-9 (default 6)")
    parser.add_argument(
        "--time-format", help="strftime pattern of the key's time part (default %%Y/%%m/%%d/%%H/%%M)"
    )
    parser.add_argument("--time-zone", help="IANA time zone for keys (default local time)")
    parser.add_argument(
        "--port",
        dest="stats_port",
        type=int,
        help=f"stats server port, 0 to disable (default {DEFAULT_STATS_PORT})",
    )
    parser.add_argument("--log-level", choices=LOG_LEVELS, help="log level (default info)")
    parser.add_argument("--log-format", choices=LOG_FORMATS, help="log format (default auto)")
    parser.add_argument("--aws-profile", help="AWS profile name")
    parser.add_argument("--aws-region", help="AWS region")
    parser.add_argument("--endpoint-url", help="endpoint of an S3-compatible store")
    parser.add_argument("--version", action="version", version=f"%(prog)s {get_package_version()}")
    return parser


def install_signal_handlers(stop_event: threading.Event) -> None:
    """Set stop_event when a shutdown signal arrives."""

    def handler(signum: int, _frame: Any) -> None:
        logger.info("Received signal %s, shutting down", signal.Signals(signum).name)
        stop_event.set()

    for name in SHUTDOWN_SIGNALS:
        sig = getattr(signal, name, None)
        if sig is not None:
            signal.signal(sig, handler)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the transporter until a shutdown signal arrives.

    Returns:
        Process exit status: 0 after a clean shutdown, 1 on a fatal error
    """
    load_env_file()
    args = build_parser().parse_args(argv)

    try:
        settings = Settings.from_sources(vars(args))
    except ConfigError as e:
        configure_logging()
        logger.error("%s", e)
        return 1

    configure_logging(settings.log_level, settings.log_format)
    get_log_service().info(
        "app",
        "app_started",
        f"s3mover v{get_package_version()} starting up",
        {"settings": settings.all()},
    )

    stop_event = threading.Event()
    install_signal_handlers(stop_event)

    try:
        transporter = Transporter(settings, stop_event=stop_event)
        transporter.run()
    except (ConfigError, BotoCoreError) as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
