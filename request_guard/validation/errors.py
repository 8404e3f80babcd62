"""
Normalization of schema validator errors into field/message pairs.

Messages for the common keywords are rendered from the failing keyword and
its parameters in one fixed wording (``must have required property 'id'``,
``must be >= 0``...). Errors from any other keyword keep the validator's own
message.
"""

from typing import Any, Callable, Dict, Iterable, NamedTuple, Tuple

from .compiler import RawError

ROOT_FIELD = "(root)"


def _type_message(params: Any) -> str:
    if isinstance(params, (list, tuple)):
        return f"must be {','.join(params)}"
    return f"must be {params}"


MESSAGE_TEMPLATES: Dict[str, Callable[[Any], str]] = {
    'required': lambda params: f"must have required property '{params['missingProperty']}'",
    'type': _type_message,
    'minimum': lambda params: f"must be >= {params}",
    'maximum': lambda params: f"must be <= {params}",
    'exclusiveMinimum': lambda params: f"must be > {params}",
    'exclusiveMaximum': lambda params: f"must be < {params}",
    'minLength': lambda params: f"must NOT have fewer than {params} characters",
    'maxLength': lambda params: f"must NOT have more than {params} characters",
    'minItems': lambda params: f"must NOT have fewer than {params} items",
    'maxItems': lambda params: f"must NOT have more than {params} items",
    'minProperties': lambda params: f"must NOT have fewer than {params} properties",
    'maxProperties': lambda params: f"must NOT have more than {params} properties",
    'multipleOf': lambda params: f"must be multiple of {params}",
    'pattern': lambda params: f'must match pattern "{params}"',
    'format': lambda params: f'must match format "{params}"',
    'enum': lambda params: "must be equal to one of the allowed values",
    'const': lambda params: "must be equal to constant",
    'additionalProperties': lambda params: "must NOT have additional properties",
    'uniqueItems': lambda params: "must NOT have duplicate items",
}


class FieldError(NamedTuple):
    """
    A validation error attached to a field.

    ``field`` is a JSON pointer into the validated value, or ``ROOT_FIELD``
    when the error concerns the value as a whole.
    """

    field: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {'field': self.field, 'message': self.message}


def format_message(error: RawError) -> str:
    template = MESSAGE_TEMPLATES.get(error.keyword)
    if template is None:
        return error.message
    if error.keyword == 'required' and not isinstance(error.params, dict):
        return error.message
    return template(error.params)


def format_error(error: RawError) -> FieldError:
    return FieldError(field=error.instance_path or ROOT_FIELD, message=format_message(error))


def format_errors(errors: Iterable[RawError] = ()) -> Tuple[FieldError, ...]:
    """Format raw validator errors, keeping the validator's order."""
    return tuple(format_error(error) for error in errors or ())
