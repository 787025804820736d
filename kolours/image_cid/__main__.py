"""Kolour image CLI entry point."""

from kolours.core.config import settings
from kolours.core.logging import configure_logging
from kolours.image_cid.cli import cli


def main() -> None:
    """Configure logging and run the CLI."""
    configure_logging(level=settings.LOG_LEVEL, json_logs=settings.JSON_LOGS)
    cli()


if __name__ == "__main__":
    main()
