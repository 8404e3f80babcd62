"""
Flask view decorators that sanitize and validate request data.

The request carrier is ``RequestData``: the JSON body, the query string and
the URL path parameters of the current request. Flask's own request objects
are read-only, so the sanitized carrier is stored on ``flask.g`` and the
sanitized path parameters are passed to the view as keyword arguments.

Usage:
    @app.post('/orders/<order_id>')
    @sanitize_request({'stripTags': True})
    @validate_request(body=ORDER_SCHEMA)
    def update_order(order_id):
        order = get_request_data().body
        ...

``sanitize_request`` must be applied above ``validate_request`` so that
validation sees the sanitized values.
"""

import functools
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, TypeVar

import structlog
from flask import Request, g, jsonify, request

from request_guard.sanitization import Sanitizer
from request_guard.sanitization.pipeline import Options
from request_guard.validation import RequestValidator, SchemaCompiler

F = TypeVar('F', bound=Callable[..., Any])

logger = structlog.get_logger(__name__)


@dataclass
class RequestData:
    """Structured values of one request, read and replaced field by field."""

    body: Any = None
    query: Dict[str, Any] = field(default_factory=dict)
    params: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_request(cls, req: Request) -> 'RequestData':
        """
        Read the carrier fields from a Flask request.

        A JSON body is parsed strictly; malformed JSON raises ``BadRequest``
        and an oversized payload raises ``RequestEntityTooLarge``. Non-JSON
        bodies yield None. Query keys given once map to a string, repeated
        keys map to a list of strings.
        """
        body = req.get_json() if req.is_json else None
        query = {
            key: values[0] if len(values) == 1 else values
            for key, values in req.args.lists()
        }
        return cls(body=body, query=query, params=dict(req.view_args or {}))

    def sanitized(self, sanitizer: Sanitizer) -> 'RequestData':
        return RequestData(
            body=sanitizer.sanitize(self.body),
            query=sanitizer.sanitize(self.query),
            params=sanitizer.sanitize(self.params),
        )


def get_request_data() -> RequestData:
    """
    Return the carrier for the current request.

    After ``sanitize_request`` has run this is the sanitized data; otherwise
    the raw request values are read and cached for the rest of the request.
    """
    data = g.get('request_data')
    if data is None:
        data = RequestData.from_request(request)
        g.request_data = data
    return data


def sanitize_request(options: Options = None) -> Callable[[F], F]:
    """
    Decorator sanitizing body, query and path parameters before the view runs.

    The sanitization pipeline is composed once, when the decorator is
    applied.

    Args:
        options: SanitizationConfig or option mapping (``trim``, ``escape``,
            ``stripTags``, ``removeDangerous``, ``escapeSql``,
            ``blockPathTraversal``, ``removeCrlf``, ``escapeShell``)
    """
    sanitizer = Sanitizer(options)

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            data = RequestData.from_request(request).sanitized(sanitizer)
            g.request_data = data

            for name, value in data.params.items():
                if name in kwargs:
                    kwargs[name] = value

            logger.debug(
                "Request data sanitized",
                endpoint=request.endpoint,
                steps=sanitizer.pipeline.names
            )
            return func(*args, **kwargs)

        return wrapper
    return decorator


def validate_request(
    body: Optional[Mapping[str, Any]] = None,
    query: Optional[Mapping[str, Any]] = None,
    params: Optional[Mapping[str, Any]] = None,
    compiler: Optional[SchemaCompiler] = None
) -> Callable[[F], F]:
    """
    Decorator validating request data against per-location JSON Schemas.

    Schemas are compiled when the decorator is applied, so a malformed schema
    fails at import/setup time with ``SchemaCompileError``. On failure the view
    is not called and a 400 response is returned:

        {"error": "Invalid request", "location": "body",
         "details": [{"field": "/id", "message": "..."}]}

    Args:
        body: JSON Schema for the request body
        query: JSON Schema for the query string
        params: JSON Schema for the URL path parameters
        compiler: Schema engine; a strict ``SchemaCompiler`` by default
    """
    validator = RequestValidator(
        compiler or SchemaCompiler(),
        body=body,
        query=query,
        params=params
    )

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            outcome = validator.validate(get_request_data())
            if not outcome:
                return jsonify(outcome.to_response()), 400
            return func(*args, **kwargs)

        return wrapper
    return decorator
