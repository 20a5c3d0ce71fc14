import logging
import sys
from typing import Optional


def configure_logging(level: Optional[str] = None) -> None:
    if level is None:
        from config import constants
        level = constants.LOG_LEVEL
    fmt = "%(asctime)s %(levelname)s %(name)s %(message)s"
    logging.basicConfig(
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
        format=fmt,
    )
    # aiortc/av are chatty at INFO while negotiating capture devices
    logging.getLogger("aiortc").setLevel(logging.WARNING)
    logging.getLogger("libav").setLevel(logging.ERROR)

    logging.getLogger("vocabary").info("Logging is configured.")
