"""JSON log output for applications that use the session store."""

import logging
from pythonjsonlogger import jsonlogger

FORMAT = '%(asctime)s %(levelname)s %(name)s %(message)s'


def setup_logger(level: int = logging.INFO) -> logging.Logger:
    """Send root logger records to stderr as JSON. Safe to call twice."""
    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers:
        if isinstance(handler.formatter, jsonlogger.JsonFormatter):
            return root
    log_handler = logging.StreamHandler()
    log_handler.setFormatter(jsonlogger.JsonFormatter(
        FORMAT, rename_fields={'levelname': 'level', 'asctime': 'timestamp'}
    ))
    root.addHandler(log_handler)
    return root
