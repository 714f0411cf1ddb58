# src/mqtest/logging_setup.py

import logging
import logging.config
import os
from typing import Optional


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None):
    """
    Declarative logging setup for the harness and the scenarios.

    Console output always; a rotating file handler when log_file is given.
    """
    handlers = ['console']

    LOGGING_CONFIG = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            },
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'standard'
            }
        },
        'loggers': {
            'mqtest': {
                'handlers': handlers,
                'level': level,
                'propagate': False
            },
        },
        'root': {
            'handlers': handlers,
            'level': logging.ERROR,
        },
    }

    if log_file:
        log_directory = os.path.dirname(os.path.abspath(log_file))
        os.makedirs(log_directory, exist_ok=True)
        LOGGING_CONFIG['handlers']['file'] = {
            'class': 'logging.handlers.RotatingFileHandler',
            'formatter': 'standard',
            'filename': log_file,
            'maxBytes': 10485760,  # 10 MB
            'backupCount': 5,
            'encoding': 'utf8'
        }
        handlers.append('file')

    logging.config.dictConfig(LOGGING_CONFIG)
    return logging.getLogger("mqtest")
