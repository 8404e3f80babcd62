"""
Multi-location request validation.

``RequestValidator`` binds an optional compiled schema to each request
location and checks them in the fixed order body, query, params. Validation
stops at the first location that fails and reports every error of that
location; locations after it are not validated. A location with no schema
passes.

Failures are returned as a ``ValidationOutcome`` and never raised. The only
exception this module produces is ``SchemaCompileError``, at construction.
"""

from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

import structlog
from prometheus_client import Counter

from .compiler import CompiledValidator, SchemaCompiler
from .errors import FieldError, format_errors

logger = structlog.get_logger(__name__)

validation_failures = Counter(
    'request_guard_validation_failures_total',
    'Total number of requests rejected by schema validation',
    ['location']
)


class ValidationLocation(Enum):
    """Request locations, declared in validation order."""

    BODY = "body"
    QUERY = "query"
    PARAMS = "params"


class ValidationOutcome:
    """
    Result of validating one request.

    A passing outcome has no location and no errors. A failing outcome names
    the first failing location and carries all of its errors.
    """

    __slots__ = ('location', 'errors')

    def __init__(
        self,
        location: Optional[ValidationLocation] = None,
        errors: Tuple[FieldError, ...] = ()
    ):
        self.location = location
        self.errors = tuple(errors)

    @classmethod
    def success(cls) -> 'ValidationOutcome':
        return cls()

    @classmethod
    def failure(cls, location: ValidationLocation, errors: Tuple[FieldError, ...]) -> 'ValidationOutcome':
        return cls(location=location, errors=errors)

    @property
    def passed(self) -> bool:
        return self.location is None

    def __bool__(self) -> bool:
        return self.passed

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, ValidationOutcome):
            return NotImplemented
        return (self.location, self.errors) == (other.location, other.errors)

    def __repr__(self) -> str:
        if self.passed:
            return "ValidationOutcome(passed)"
        return f"ValidationOutcome(location={self.location.value!r}, errors={list(self.errors)!r})"

    def to_response(self) -> Dict[str, Any]:
        """Render a failing outcome as the 400 response body."""
        if self.passed:
            raise ValueError("A passing outcome has no failure response")
        return {
            'error': 'Invalid request',
            'location': self.location.value,
            'details': [error.to_dict() for error in self.errors],
        }


class RequestValidator:
    """
    Validates request data against per-location JSON Schemas.

    Schemas are compiled once, when the validator is built, through the
    supplied ``SchemaCompiler``. A malformed schema raises
    ``SchemaCompileError`` immediately.

    Args:
        compiler: Schema engine used to compile the schemas
        body: JSON Schema for the request body
        query: JSON Schema for the query string
        params: JSON Schema for the URL path parameters

    Example:
        validator = RequestValidator(SchemaCompiler(), body=ORDER_SCHEMA)
        outcome = validator.validate(request_data)
        if not outcome:
            return jsonify(outcome.to_response()), 400
    """

    def __init__(
        self,
        compiler: SchemaCompiler,
        body: Optional[Mapping[str, Any]] = None,
        query: Optional[Mapping[str, Any]] = None,
        params: Optional[Mapping[str, Any]] = None
    ):
        schemas = {
            ValidationLocation.BODY: body,
            ValidationLocation.QUERY: query,
            ValidationLocation.PARAMS: params,
        }
        self._validators: Tuple[Tuple[ValidationLocation, CompiledValidator], ...] = tuple(
            (location, compiler.compile(schema, location=location.value))
            for location, schema in schemas.items()
            if schema is not None
        )

    @property
    def locations(self) -> Tuple[ValidationLocation, ...]:
        """Locations that have a schema bound, in validation order."""
        return tuple(location for location, _ in self._validators)

    def validate(self, carrier: Any) -> ValidationOutcome:
        """
        Validate an object exposing ``body``, ``query`` and ``params``.

        Args:
            carrier: Request data carrier, see ``request_guard.middleware.RequestData``

        Returns:
            ValidationOutcome for the first failing location, or a pass
        """
        return self.validate_values(
            body=carrier.body,
            query=carrier.query,
            params=carrier.params
        )

    def validate_values(self, body: Any = None, query: Any = None, params: Any = None) -> ValidationOutcome:
        values = {
            ValidationLocation.BODY: body,
            ValidationLocation.QUERY: query,
            ValidationLocation.PARAMS: params,
        }
        for location, validator in self._validators:
            report = validator(values[location])
            if not report.valid:
                errors = format_errors(report.errors)
                validation_failures.labels(location=location.value).inc()
                logger.warning(
                    "Request validation failed",
                    location=location.value,
                    error_count=len(errors)
                )
                return ValidationOutcome.failure(location, errors)

        return ValidationOutcome.success()
