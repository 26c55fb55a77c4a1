"""Logging setup for chatstream.

Call `configure_logging()` once at startup (the CLI does this). Modules
retrieve their own logger with `logging.getLogger(__name__)`.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level: str = "INFO", console: Console = None) -> None:
    """
    Route all log records through a rich console handler.

    Args:
        level: Root log level name, e.g. "INFO" or "DEBUG".
        console: Console to write to. Defaults to stderr so that streamed
                 output on stdout stays clean.
    """
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    logging.basicConfig(
        level=level,
        format="%(name)s %(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )

    # Keep uvicorn in step with the application level
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(level)

    # SDK transports are chatty below WARNING
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)
