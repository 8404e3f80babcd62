"""JSON Schema validation of request body, query string and path parameters."""

from .compiler import (
    CompiledValidator,
    RawError,
    SchemaCompiler,
    ValidationReport,
    to_json_pointer,
)
from .dispatcher import RequestValidator, ValidationLocation, ValidationOutcome
from .errors import ROOT_FIELD, FieldError, format_error, format_errors, format_message

__all__ = [
    'CompiledValidator',
    'FieldError',
    'RawError',
    'ROOT_FIELD',
    'RequestValidator',
    'SchemaCompiler',
    'ValidationLocation',
    'ValidationOutcome',
    'ValidationReport',
    'format_error',
    'format_errors',
    'format_message',
    'to_json_pointer',
]
