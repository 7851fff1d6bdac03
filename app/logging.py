"""
Logging: tek seferlik basicConfig (stdout). Servisler "pushcast.*" altında log yazar.
Seviye LOG_LEVEL ile gelir; uvicorn logger'ları aynı seviyeye çekilir.
"""
import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_ALIGNED = ("uvicorn", "uvicorn.error", "uvicorn.access", "pushcast")
# Her job çalıştırmasında INFO basar
_QUIET = ("apscheduler",)


def setup_logging(level: int | str = logging.INFO) -> None:
    if isinstance(level, str):
        level = level.upper()
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stdout, force=True)
    for name in _ALIGNED:
        logging.getLogger(name).setLevel(level)
    for name in _QUIET:
        logging.getLogger(name).setLevel(logging.WARNING)
