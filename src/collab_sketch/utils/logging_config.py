"""
Logging Configuration for collaborative sketch sessions
"""

import logging
import logging.config
import sys
from pathlib import Path
from typing import Optional

from .config import Settings, get_settings


def setup_logging(settings: Optional[Settings] = None):
    """Setup application logging configuration"""
    settings = settings or get_settings()
    level = "DEBUG" if settings.DEBUG else settings.LOG_LEVEL.upper()

    handlers = {
        'console': {
            'level': level,
            'class': 'logging.StreamHandler',
            'formatter': 'detailed',
            'stream': sys.stdout
        }
    }

    if settings.LOG_DIR:
        logs_dir = Path(settings.LOG_DIR)
        logs_dir.mkdir(parents=True, exist_ok=True)

        handlers['file'] = {
            'level': 'INFO',
            'class': 'logging.handlers.RotatingFileHandler',
            'formatter': 'detailed',
            'filename': str(logs_dir / 'collab_sketch.log'),
            'maxBytes': 10 * 1024 * 1024,  # 10MB
            'backupCount': 5,
            'encoding': 'utf-8'
        }
        handlers['error_file'] = {
            'level': 'ERROR',
            'class': 'logging.handlers.RotatingFileHandler',
            'formatter': 'detailed',
            'filename': str(logs_dir / 'errors.log'),
            'maxBytes': 10 * 1024 * 1024,  # 10MB
            'backupCount': 3,
            'encoding': 'utf-8'
        }

    config = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'detailed': {
                'format': '[%(asctime)s] %(levelname)s [%(name)s:%(lineno)d] %(message)s',
                'datefmt': '%Y-%m-%d %H:%M:%S'
            }
        },
        'handlers': handlers,
        'loggers': {
            'collab_sketch': {
                'level': level,
                'handlers': list(handlers),
                'propagate': False
            }
        }
    }

    logging.config.dictConfig(config)

    logging.getLogger('asyncio').setLevel(logging.WARNING)
    logging.getLogger('PIL').setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"🚀 Collaborative sketch logging initialized - Level: {level}, Environment: {settings.ENVIRONMENT}")
