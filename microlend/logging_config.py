"""Logging configuration"""
import json
import logging
import sys
from datetime import datetime, timezone


class JsonFormatter(logging.Formatter):
    """One JSON object per log record"""

    def format(self, record):
        log_data = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)
        return json.dumps(log_data)


def setup_logging(level='INFO', format_type='standard'):
    """Configure the microlend loggers

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        format_type: 'standard' or 'json'
    """
    log_level = getattr(logging, str(level).upper(), logging.INFO)

    if format_type == 'json':
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S',
        )

    logger = logging.getLogger('microlend')
    logger.setLevel(log_level)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    # Quieter SQL engine output unless debugging
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)
    return logger
