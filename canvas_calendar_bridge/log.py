import logging
import sys

_INITIALIZED = False


def configure_logging(level: str = "INFO") -> None:
    """Send log records to stderr. stdout carries the MCP stdio stream."""

    global _INITIALIZED
    if _INITIALIZED:
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)s [%(name)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.addHandler(handler)

    _INITIALIZED = True
    logging.getLogger(__name__).debug("Logging configured at %s", level.upper())


__all__ = ["configure_logging"]
