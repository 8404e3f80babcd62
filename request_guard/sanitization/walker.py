"""
Recursive application of a sanitization pipeline to deserialized request data.

Values are classified into a closed set of node kinds and handled per kind.
Only string leaves are transformed. Sequences keep their length, order and
type; mappings keep their exact key set and key order, and keys themselves
are never rewritten.

The input is expected to be a tree, as produced by JSON or query string
parsing. Cyclic structures are not detected.
"""

from enum import Enum
from typing import Any, Callable, Mapping


class NodeKind(Enum):
    NULL = "null"
    SCALAR = "scalar"
    STRING = "string"
    SEQUENCE = "sequence"
    MAPPING = "mapping"


def classify(value: Any) -> NodeKind:
    """Return the node kind of a deserialized value."""
    if value is None:
        return NodeKind.NULL
    if isinstance(value, str):
        return NodeKind.STRING
    if isinstance(value, (list, tuple)):
        return NodeKind.SEQUENCE
    if isinstance(value, Mapping):
        return NodeKind.MAPPING
    return NodeKind.SCALAR


def walk(value: Any, transform: Callable[[str], str]) -> Any:
    """
    Apply ``transform`` to every string leaf of ``value``.

    Args:
        value: Deserialized request data
        transform: String transform, usually a ``SanitizationPipeline``

    Returns:
        A new structure of the same shape; None and non-string scalars are
        returned as-is
    """
    kind = classify(value)

    if kind is NodeKind.STRING:
        return transform(value)
    if kind is NodeKind.SEQUENCE:
        return type(value)(walk(item, transform) for item in value)
    if kind is NodeKind.MAPPING:
        return {key: walk(item, transform) for key, item in value.items()}
    # NULL and SCALAR
    return value
