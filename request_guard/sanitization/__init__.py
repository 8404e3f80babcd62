"""Ordered, configurable sanitization of nested request data."""

from .config import DEFAULT_CONFIG, OPTION_ALIASES, SanitizationConfig
from .pipeline import (
    PIPELINE_ORDER,
    SanitizationPipeline,
    Sanitizer,
    compose_pipeline,
    sanitize_object,
    sanitize_value,
)
from .transforms import (
    TRANSFORMS,
    TransformStep,
    block_path_traversal,
    escape_html,
    escape_shell,
    escape_sql,
    remove_crlf,
    remove_dangerous_patterns,
    strip_html_tags,
    trim,
)
from .walker import NodeKind, classify, walk

__all__ = [
    'DEFAULT_CONFIG',
    'OPTION_ALIASES',
    'PIPELINE_ORDER',
    'NodeKind',
    'SanitizationConfig',
    'SanitizationPipeline',
    'Sanitizer',
    'TRANSFORMS',
    'TransformStep',
    'block_path_traversal',
    'classify',
    'compose_pipeline',
    'escape_html',
    'escape_shell',
    'escape_sql',
    'remove_crlf',
    'remove_dangerous_patterns',
    'sanitize_object',
    'sanitize_value',
    'strip_html_tags',
    'trim',
    'walk',
]
