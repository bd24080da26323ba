import logging
import sys

from wingshop.config import settings


def get_logger(name: str) -> logging.Logger:
    """
    Return the named logger with a stdout handler prefixed by the upper-cased name,
    e.g. "[SHIPPING] no usable rates". Handlers are attached once per name.
    """
    log = logging.getLogger(f"wingshop.{name}")
    log.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    if not log.handlers:
        h = logging.StreamHandler(sys.stdout)
        h.setFormatter(logging.Formatter(f"[{name.upper()}] %(levelname)s %(message)s"))
        log.addHandler(h)
    return log
