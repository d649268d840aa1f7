import logging
import sys

from . import config

_configured = False


def get_logger(name: str) -> logging.Logger:
    global _configured
    if not _configured:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        root = logging.getLogger("sqlworkshop")
        root.setLevel(config.LOG_LEVEL)
        root.addHandler(handler)
        _configured = True
    return logging.getLogger(name)
