import logging
import sys

from rmerch.config import settings

_FORMAT = "[%(name)s] %(levelname)s %(message)s"


def get_logger(name: str) -> logging.Logger:
    """
    Return a module logger writing to stdout.
    The handler is attached once per logger so repeated imports don't duplicate lines.
    """
    log = logging.getLogger(name)
    log.setLevel(settings.LOG_LEVEL.upper())
    if not log.handlers:
        h = logging.StreamHandler(sys.stdout)
        h.setFormatter(logging.Formatter(_FORMAT))
        log.addHandler(h)
        log.propagate = False
    return log
