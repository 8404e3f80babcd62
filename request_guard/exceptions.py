"""
Exception hierarchy and Flask error handler registration for request-guard.

Two error channels are kept apart:

- Setup-time failures (a malformed JSON Schema, an invalid sanitization option)
  are raised as subclasses of ``RequestGuardError`` and must abort application
  initialization.
- Per-request validation failures are never raised. They are returned as a
  ``ValidationOutcome`` by ``request_guard.validation.dispatcher``.

Sanitization has no failure mode and therefore no exception type.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

import structlog
from flask import Flask, has_request_context, jsonify, request
from prometheus_client import Counter
from werkzeug.exceptions import BadRequest, RequestEntityTooLarge

logger = structlog.get_logger(__name__)

error_counter = Counter(
    'request_guard_errors_total',
    'Total number of request-guard errors by type',
    ['error_type', 'error_category']
)


class ErrorCategory(Enum):
    """Error categories used for log and metric labels."""

    CONFIGURATION = "configuration"
    SCHEMA = "schema"


class ErrorSeverity(Enum):
    """Error severity levels for monitoring and alerting."""

    HIGH = "high"
    CRITICAL = "critical"


class RequestGuardError(Exception):
    """
    Base exception class for all request-guard errors.

    Attributes:
        message: Human-readable error message
        code: Error code, defaults to the class name
        category: Error category for classification
        severity: Error severity level
        details: Additional error context
        http_status: Status code used when the error reaches a Flask handler
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.CONFIGURATION,
        severity: ErrorSeverity = ErrorSeverity.HIGH,
        details: Optional[Dict[str, Any]] = None,
        http_status: int = 500
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.category = category
        self.severity = severity
        self.details = details or {}
        self.http_status = http_status
        self.timestamp = datetime.utcnow().isoformat()

        self._log_error()
        error_counter.labels(
            error_type=self.code,
            error_category=self.category.value
        ).inc()

    def _log_error(self) -> None:
        log_data = {
            'error_code': self.code,
            'error_category': self.category.value,
            'error_severity': self.severity.value,
            'details': self.details,
        }
        if has_request_context():
            log_data['path'] = request.path
            log_data['method'] = request.method

        if self.severity is ErrorSeverity.CRITICAL:
            logger.critical(self.message, **log_data)
        else:
            logger.error(self.message, **log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format for JSON responses."""
        return {
            'error': self.message,
            'code': self.code,
            'category': self.category.value,
            'details': self.details,
            'timestamp': self.timestamp,
        }


class ConfigurationError(RequestGuardError):
    """Raised when sanitization or application configuration is invalid."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('category', ErrorCategory.CONFIGURATION)
        super().__init__(message, **kwargs)


class SchemaCompileError(RequestGuardError):
    """
    Raised when a JSON Schema cannot be compiled.

    This is a programmer error detected at setup; it is never produced while
    handling a request.
    """

    def __init__(self, message: str, location: Optional[str] = None, **kwargs):
        details = kwargs.pop('details', {}) or {}
        if location:
            details['location'] = location
        super().__init__(
            message,
            category=ErrorCategory.SCHEMA,
            severity=ErrorSeverity.CRITICAL,
            details=details,
            **kwargs
        )
        self.location = location


def register_error_handlers(app: Flask) -> None:
    """
    Register JSON error handlers for request-guard errors and for the request
    parsing failures that happen before sanitization runs.

    Args:
        app: Flask application instance
    """

    @app.errorhandler(RequestGuardError)
    def handle_request_guard_error(error: RequestGuardError):
        response = jsonify(error.to_dict())
        response.status_code = error.http_status
        return response

    @app.errorhandler(RequestEntityTooLarge)
    def handle_payload_too_large(error: RequestEntityTooLarge):
        logger.warning(
            "Request payload exceeds size limit",
            limit=app.config.get('MAX_CONTENT_LENGTH'),
            path=request.path
        )
        return jsonify({'error': 'Payload too large'}), 413

    @app.errorhandler(BadRequest)
    def handle_bad_request(error: BadRequest):
        logger.info("Malformed request rejected", description=error.description, path=request.path)
        return jsonify({'error': 'Malformed request', 'message': error.description}), 400
