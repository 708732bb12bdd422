"""Command line entry point for rotating-secrets.

Usage:
    python -m rotating_secrets check            # Run one rotation check, print status
    python -m rotating_secrets watch            # Poll until interrupted, logging rotations
    python -m rotating_secrets --version        # Show version and exit
"""

import argparse
import json
import logging
import sys
import time

from .config import settings
from .credentials import RotationCoordinator, SecretSourceReader

logger = logging.getLogger(__name__)


class LoggingAdapter:
    """Adapter that only reports rotations, for watching a secrets mount."""

    name = "log"

    def update(self, username: str, password: str) -> None:
        logger.info(f"Credentials rotated: user={username}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rotating-secrets",
        description="Watch volume-mounted database credentials for rotation",
    )
    parser.add_argument("--version", action="store_true", help="Show version and exit")
    parser.add_argument(
        "--secrets-path",
        default=settings.path,
        help=f"Directory holding username/password files (default: {settings.path})",
    )
    parser.add_argument(
        "--log-level", default=settings.log_level, help="Logging level (default: %(default)s)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("check", help="Run a single rotation check and print status")

    watch_parser = subparsers.add_parser("watch", help="Poll the secrets directory until interrupted")
    watch_parser.add_argument(
        "--interval-ms",
        type=int,
        default=settings.refresh_interval_ms,
        help="Delay between checks in milliseconds (default: %(default)s)",
    )

    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        from .version import __version__

        print(f"rotating-secrets {__version__}")
        return 0

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    coordinator = RotationCoordinator(SecretSourceReader(args.secrets_path))
    coordinator.register(LoggingAdapter())

    if args.command == "check":
        coordinator.tick()
        print(json.dumps(coordinator.get_status(), indent=2))
        return 0 if coordinator.credentials is not None else 1

    elif args.command == "watch":
        if args.interval_ms <= 0:
            parser.error("--interval-ms must be positive")
        coordinator.start(interval_ms=args.interval_ms)
        try:
            while coordinator.is_running:
                time.sleep(1.0)
        except KeyboardInterrupt:
            pass
        finally:
            coordinator.stop()
        return 0

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
