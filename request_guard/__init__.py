"""
request-guard: sanitization and JSON Schema validation of Flask request data.

String leaves of the request body, query string and path parameters are run
through an ordered pipeline of injection-neutralizing transforms, then the
sanitized values are validated against per-location JSON Schemas.
"""

from request_guard.exceptions import (
    ConfigurationError,
    RequestGuardError,
    SchemaCompileError,
    register_error_handlers,
)
from request_guard.middleware import (
    RequestData,
    get_request_data,
    sanitize_request,
    validate_request,
)
from request_guard.sanitization import (
    PIPELINE_ORDER,
    SanitizationConfig,
    SanitizationPipeline,
    Sanitizer,
    block_path_traversal,
    compose_pipeline,
    escape_html,
    escape_shell,
    escape_sql,
    remove_crlf,
    remove_dangerous_patterns,
    sanitize_object,
    sanitize_value,
    strip_html_tags,
    trim,
    walk,
)
from request_guard.validation import (
    FieldError,
    RequestValidator,
    SchemaCompiler,
    ValidationLocation,
    ValidationOutcome,
    format_errors,
)

__version__ = '1.0.0'

__all__ = [
    'ConfigurationError',
    'FieldError',
    'PIPELINE_ORDER',
    'RequestData',
    'RequestGuardError',
    'RequestValidator',
    'SanitizationConfig',
    'SanitizationPipeline',
    'Sanitizer',
    'SchemaCompileError',
    'SchemaCompiler',
    'ValidationLocation',
    'ValidationOutcome',
    'block_path_traversal',
    'compose_pipeline',
    'escape_html',
    'escape_shell',
    'escape_sql',
    'format_errors',
    'get_request_data',
    'register_error_handlers',
    'remove_crlf',
    'remove_dangerous_patterns',
    'sanitize_object',
    'sanitize_request',
    'sanitize_value',
    'strip_html_tags',
    'trim',
    'validate_request',
    'walk',
]
