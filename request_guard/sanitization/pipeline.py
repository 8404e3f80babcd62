"""
Composition of sanitization transforms into an ordered pipeline.

The order in which enabled transforms run is fixed by ``PIPELINE_ORDER`` and
does not depend on how the configuration was declared. Rewriting steps
(CRLF removal, traversal stripping, dangerous pattern and tag removal) run on
the raw text before any escaping, and HTML escaping always runs last so that
no earlier rewrite can reintroduce unescaped markup.
"""

from typing import Any, Mapping, Optional, Tuple, Union

import structlog
from prometheus_client import Counter

from .config import DEFAULT_CONFIG, SanitizationConfig
from .transforms import TRANSFORMS, TransformStep
from .walker import walk

logger = structlog.get_logger(__name__)

sanitized_payloads = Counter(
    'request_guard_sanitized_payloads_total',
    'Total number of structured values passed through a sanitizer'
)

PIPELINE_ORDER: Tuple[str, ...] = (
    'trim',
    'remove_crlf',
    'block_path_traversal',
    'remove_dangerous',
    'strip_tags',
    'escape_sql',
    'escape_shell',
    'escape_html',
)

Options = Union[SanitizationConfig, Mapping[str, Any], None]


class SanitizationPipeline:
    """An ordered, immutable sequence of transform steps."""

    __slots__ = ('_steps',)

    def __init__(self, steps: Tuple[TransformStep, ...] = ()):
        self._steps = tuple(steps)

    @property
    def steps(self) -> Tuple[TransformStep, ...]:
        return self._steps

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(step.name for step in self._steps)

    def apply(self, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        for step in self._steps:
            value = step(value)
        return value

    __call__ = apply

    def __len__(self) -> int:
        return len(self._steps)

    def __repr__(self) -> str:
        return f"SanitizationPipeline({' -> '.join(self.names) or 'identity'})"


def compose_pipeline(config: SanitizationConfig) -> SanitizationPipeline:
    """
    Select the transforms enabled by ``config`` in pipeline order.

    Args:
        config: Sanitization toggles

    Returns:
        SanitizationPipeline containing only the enabled steps
    """
    steps = tuple(
        TRANSFORMS[name] for name in PIPELINE_ORDER if config.enabled(name)
    )
    pipeline = SanitizationPipeline(steps)
    logger.debug("Sanitization pipeline composed", steps=pipeline.names)
    return pipeline


def resolve_config(options: Options = None) -> SanitizationConfig:
    if options is None:
        return DEFAULT_CONFIG
    if isinstance(options, SanitizationConfig):
        return options
    return SanitizationConfig.from_options(options)


class Sanitizer:
    """
    Sanitizer bound to one configuration.

    The pipeline is composed once at construction; instances hold no mutable
    state and can be shared across threads.

    Example:
        sanitizer = Sanitizer({'stripTags': True})
        clean = sanitizer.sanitize(request.get_json())
    """

    def __init__(self, options: Options = None):
        self.config = resolve_config(options)
        self.pipeline = compose_pipeline(self.config)

    def sanitize_value(self, value: Any) -> Any:
        """Sanitize a single value; non-strings are returned unchanged."""
        return self.pipeline.apply(value)

    def sanitize(self, data: Any) -> Any:
        """Sanitize every string leaf of a nested structure."""
        sanitized_payloads.inc()
        return walk(data, self.pipeline)


def sanitize_value(value: Any, options: Options = None) -> Any:
    """Sanitize a single value with the given options."""
    return Sanitizer(options).sanitize_value(value)


def sanitize_object(data: Any, options: Options = None) -> Any:
    """Recursively sanitize request data with the given options."""
    return Sanitizer(options).sanitize(data)
