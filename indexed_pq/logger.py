import logging
import sys


_FORMAT = "%(levelname)s %(asctime)s [%(name)s:%(lineno)d] %(message)s"
_DATE_FORMAT = "%m-%d %H:%M:%S"

_root_logger = logging.getLogger("indexed_pq")
_default_handler = None


def _setup_logger():
    global _default_handler
    _root_logger.setLevel(logging.INFO)
    if _default_handler is None:
        _default_handler = logging.StreamHandler(sys.stdout)
        _default_handler.flush = sys.stdout.flush
        _default_handler.setLevel(logging.DEBUG)
        _default_handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
        _root_logger.addHandler(_default_handler)
    _root_logger.propagate = False


_setup_logger()


def init_logger(name: str):
    """Return a logger under the ``indexed_pq`` namespace."""
    if not name.startswith("indexed_pq"):
        name = f"indexed_pq.{name}"
    return logging.getLogger(name)
