import logging
from logging.handlers import RotatingFileHandler
from typing import Optional, Union


def configure_logging(level: Union[int, str] = logging.INFO, log_file: Optional[str] = None) -> None:
    logger = logging.getLogger()
    logger.setLevel(level)

    fmt = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s - %(message)s"
    )

    # Console
    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    # Rotating file (avoid filling SD card)
    if log_file:
        fh = RotatingFileHandler(
            log_file, maxBytes=2_000_000, backupCount=5
        )
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    # pyserial is chatty at DEBUG
    logging.getLogger("serial").setLevel(logging.WARNING)
