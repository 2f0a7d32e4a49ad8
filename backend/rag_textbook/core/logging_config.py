"""
Logging setup: one console handler on the root logger.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
HANDLER_NAME = "rag_textbook"


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging once; later calls only adjust the level."""
    root = logging.getLogger()
    root.setLevel(level.upper())

    if any(h.get_name() == HANDLER_NAME for h in root.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    handler.set_name(HANDLER_NAME)
    root.addHandler(handler)

    # httpx logs every PostgREST request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
