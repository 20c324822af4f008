import logging
import sys

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | int = "WARNING") -> None:
    """Send log records to stderr so they never mix with command output."""
    if isinstance(level, str):
        level = level.upper()
    logging.basicConfig(level=level, format=_FORMAT, stream=sys.stderr, force=True)
    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
