"""
Logging utilities for the MusicGen API

Configures stdlib logging and structlog on top of it.
"""

import logging
import logging.config
from typing import Optional

import structlog

DEFAULT_LOGGING_CONFIG = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'plain': {
            'format': '%(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'level': 'INFO',
            'formatter': 'plain',
            'stream': 'ext://sys.stdout'
        }
    },
    'root': {
        'level': 'INFO',
        'handlers': ['console'],
    },
    'loggers': {
        'uvicorn.access': {
            'level': 'WARNING',
        },
        'httpx': {
            'level': 'WARNING',
        },
    }
}


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """
    Setup logging configuration

    Args:
        log_level: Override log level
        log_format: 'json' (default) or 'console'
    """
    config = {
        **DEFAULT_LOGGING_CONFIG,
        'handlers': {k: dict(v) for k, v in DEFAULT_LOGGING_CONFIG['handlers'].items()},
        'root': dict(DEFAULT_LOGGING_CONFIG['root']),
    }

    if log_level:
        level = log_level.upper()
        config['root']['level'] = level
        for handler_config in config['handlers'].values():
            handler_config['level'] = level

    logging.config.dictConfig(config)

    if log_format == 'console':
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
