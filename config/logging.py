"""
Structured logging configuration.

structlog produces the events; they are handed to the standard library
logging tree so that records from Flask, werkzeug and request-guard share one
handler. With ``LOG_FORMAT=json`` the handler formats records through
python-json-logger, with ``LOG_FORMAT=console`` through structlog's console
renderer.
"""

import logging
import sys
from typing import Any, Dict, List, Optional

import structlog
from flask import g, has_request_context, request
from pythonjsonlogger import jsonlogger
from structlog.types import EventDict, WrappedLogger

from config.settings import BaseConfig, get_config

SENSITIVE_KEYS = ('password', 'secret', 'token', 'authorization', 'credential', 'api_key')


class RequestGuardJSONFormatter(jsonlogger.JsonFormatter):
    """JSON formatter adding the service name to every record."""

    def __init__(self, service: str, *args, **kwargs):
        super().__init__('%(asctime)s %(name)s %(levelname)s %(message)s', *args, **kwargs)
        self.service = service

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record['service'] = self.service


def add_request_context(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add method, path and request id of the current Flask request, if any."""
    if has_request_context():
        event_dict.setdefault('method', request.method)
        event_dict.setdefault('path', request.path)
        request_id = g.get('request_id')
        if request_id:
            event_dict.setdefault('request_id', request_id)
    return event_dict


def filter_sensitive_data(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Mask values logged under credential-like keys."""
    for key in list(event_dict):
        if any(sensitive in key.lower() for sensitive in SENSITIVE_KEYS):
            event_dict[key] = '***'
    return event_dict


def _shared_processors() -> List[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        add_request_context,
        filter_sensitive_data,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def configure_logging(config: Optional[BaseConfig] = None) -> None:
    """
    Configure structlog and the root stdlib logger.

    Args:
        config: Application configuration; loaded from the environment when None
    """
    config = config or get_config()
    level = getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    if config.LOG_FORMAT.lower() == 'json':
        handler.setFormatter(RequestGuardJSONFormatter(service=config.APP_NAME))
        final_processor = structlog.stdlib.render_to_log_kwargs
    else:
        handler.setFormatter(logging.Formatter('%(message)s'))
        final_processor = structlog.dev.ConsoleRenderer()

    logging.basicConfig(level=level, handlers=[handler], force=True)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_shared_processors(),
            final_processor,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str):
    return structlog.get_logger(name)
