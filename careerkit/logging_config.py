import logging
import os
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

_HANDLER_TAG = '_careerkit_handler'


def setup_logging(log_dir: Optional[str] = None, level: Optional[str] = None) -> logging.Logger:
    """
    Configure console logging and, when a log directory is set, a rotating file log.

    Args:
        log_dir: Directory for ``careerkit_YYYYMMDD.log``. Defaults to
            $CAREERKIT_LOG_DIR; no file handler is added when neither is set.
        level: Log level name. Defaults to $CAREERKIT_LOG_LEVEL, then INFO.
    """
    logger = logging.getLogger('careerkit')
    logger.setLevel((level or os.getenv('CAREERKIT_LOG_LEVEL') or 'INFO').upper())

    # Only replace handlers this function added before
    for handler in [h for h in logger.handlers if getattr(h, _HANDLER_TAG, False)]:
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    setattr(console_handler, _HANDLER_TAG, True)
    logger.addHandler(console_handler)

    log_dir = log_dir or os.getenv('CAREERKIT_LOG_DIR')
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        log_filename = os.path.join(log_dir, f'careerkit_{datetime.now().strftime("%Y%m%d")}.log')
        file_handler = RotatingFileHandler(
            log_filename,
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        setattr(file_handler, _HANDLER_TAG, True)
        logger.addHandler(file_handler)

    # Set third-party loggers to WARNING to reduce noise
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("pdfminer").setLevel(logging.WARNING)

    return logger
