import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from . import config

LOG_FORMAT = "%(name)s - %(message)s"

_configured = False


def setup_logging(level: Optional[str] = None) -> None:
    """Attach a single rich console handler to the root logger; later calls are no-ops."""
    global _configured
    if _configured:
        return
    numeric_level = getattr(logging, str(level or config.LOG_LEVEL).upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(numeric_level)
    root.handlers.clear()
    # requests/urllib3 log every connection at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    handler = RichHandler(console=Console(stderr=True), show_path=False, markup=False, rich_tracebacks=True)
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    _configured = True
