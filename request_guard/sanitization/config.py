"""
Sanitization configuration record.

``SanitizationConfig`` enumerates every toggle the pipeline understands.
Options arriving from application configuration are resolved by name through
``OPTION_ALIASES``; keys that are not recognized are kept in ``extras`` so
that newer configuration files keep working with older code, but nothing in
the pipeline reads them.
"""

from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from request_guard.exceptions import ConfigurationError

# External option name -> SanitizationConfig field.
OPTION_ALIASES: Dict[str, str] = {
    'trim': 'trim',
    'escape': 'escape_html',
    'escapeHtml': 'escape_html',
    'escape_html': 'escape_html',
    'stripTags': 'strip_tags',
    'strip_tags': 'strip_tags',
    'removeDangerous': 'remove_dangerous',
    'remove_dangerous': 'remove_dangerous',
    'escapeSql': 'escape_sql',
    'escape_sql': 'escape_sql',
    'blockPathTraversal': 'block_path_traversal',
    'block_path_traversal': 'block_path_traversal',
    'removeCrlf': 'remove_crlf',
    'remove_crlf': 'remove_crlf',
    'escapeShell': 'escape_shell',
    'escape_shell': 'escape_shell',
}


@dataclass(frozen=True)
class SanitizationConfig:
    """
    Immutable set of sanitization toggles.

    Attributes:
        trim: Strip leading/trailing whitespace (default on)
        escape_html: Escape HTML special characters (default on)
        strip_tags: Remove anything shaped like a tag (default off)
        remove_dangerous: Remove script blocks and event handlers (default on)
        escape_sql: MySQL-style string literal escaping (default off)
        block_path_traversal: Strip '../' and encoded variants (default off)
        remove_crlf: Remove CR/LF characters (default off)
        escape_shell: Backslash-escape shell metacharacters (default off)
        extras: Unrecognized options, accepted and ignored
    """

    trim: bool = True
    escape_html: bool = True
    strip_tags: bool = False
    remove_dangerous: bool = True
    escape_sql: bool = False
    block_path_traversal: bool = False
    remove_crlf: bool = False
    escape_shell: bool = False
    extras: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self):
        for toggle in self.toggle_names():
            value = getattr(self, toggle)
            if not isinstance(value, bool):
                raise ConfigurationError(
                    f"Sanitization option '{toggle}' must be a boolean, "
                    f"got {type(value).__name__}",
                    details={'option': toggle}
                )
        if not isinstance(self.extras, MappingProxyType):
            object.__setattr__(self, 'extras', MappingProxyType(dict(self.extras)))

    @classmethod
    def toggle_names(cls):
        return tuple(f.name for f in fields(cls) if f.name != 'extras')

    @classmethod
    def from_options(
        cls,
        options: Optional[Mapping[str, Any]] = None,
        **kwargs: Any
    ) -> 'SanitizationConfig':
        """
        Build a config from external option names.

        Both the camelCase names used by request configuration files
        (``escape``, ``stripTags``, ``escapeSql``...) and the field names are
        accepted. An option explicitly set to None keeps its default.

        Args:
            options: Mapping of option name to value
            **kwargs: Additional options, applied after ``options``

        Returns:
            SanitizationConfig with unknown keys collected in ``extras``
        """
        merged: Dict[str, Any] = dict(options or {})
        merged.update(kwargs)

        toggles: Dict[str, bool] = {}
        extras: Dict[str, Any] = {}
        for key, value in merged.items():
            name = OPTION_ALIASES.get(key)
            if name is None:
                extras[key] = value
            elif value is not None:
                toggles[name] = value

        return cls(extras=MappingProxyType(extras), **toggles)

    def enabled(self, toggle: str) -> bool:
        return getattr(self, toggle)

    def to_dict(self) -> Dict[str, Any]:
        data = {toggle: getattr(self, toggle) for toggle in self.toggle_names()}
        data['extras'] = dict(self.extras)
        return data


DEFAULT_CONFIG = SanitizationConfig()
