"""
JSON Schema compilation using jsonschema.

``SchemaCompiler`` is the schema engine: it is created explicitly at setup and
handed to whatever needs compiled validators, so no module-level validator
singleton exists. Compilation is strict: the schema is checked against its
metaschema, and both an unrecognized ``$schema`` and keywords unknown to the
selected draft are rejected. Compiled validators collect every error
(never first-error-only), never coerce types, and check ``format`` through
``jsonschema.FormatChecker``.
"""

from typing import Any, Dict, Iterator, Mapping, NamedTuple, Optional, Tuple, Type

import structlog
from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError
from jsonschema.protocols import Validator
from jsonschema.validators import validator_for

from request_guard.exceptions import SchemaCompileError

logger = structlog.get_logger(__name__)

# Keywords that are legal in any schema but have no validator function of
# their own: annotations, and companions read by another keyword ('if').
ANNOTATION_KEYWORDS = frozenset({
    '$schema', '$id', 'id', '$ref', '$comment', '$anchor', '$defs',
    'definitions', 'title', 'description', 'default', 'examples',
    'readOnly', 'writeOnly', 'deprecated', 'contentMediaType',
    'contentEncoding', 'contentSchema', 'then', 'else',
    'minContains', 'maxContains', '$vocabulary', '$dynamicAnchor',
    '$recursiveAnchor',
})

# Keywords whose value is a single subschema.
SUBSCHEMA_KEYWORDS = (
    'additionalProperties', 'additionalItems', 'contains', 'propertyNames',
    'if', 'then', 'else', 'not', 'unevaluatedProperties', 'unevaluatedItems',
)
# Keywords whose value maps names to subschemas.
SUBSCHEMA_MAP_KEYWORDS = (
    'properties', 'patternProperties', 'definitions', '$defs',
    'dependentSchemas',
)
# Keywords whose value is a list of subschemas.
SUBSCHEMA_LIST_KEYWORDS = ('allOf', 'anyOf', 'oneOf', 'prefixItems')


class RawError(NamedTuple):
    """A single error reported by a compiled validator."""

    instance_path: str
    message: str
    keyword: Optional[str] = None
    params: Any = None


class ValidationReport(NamedTuple):
    valid: bool
    errors: Tuple[RawError, ...] = ()


def to_json_pointer(path) -> str:
    """Render a jsonschema path deque as a JSON pointer ('' for the root)."""
    return ''.join(
        '/' + str(part).replace('~', '~0').replace('/', '~1') for part in path
    )


class CompiledValidator:
    """
    Validator produced by ``SchemaCompiler.compile``.

    Calling the instance validates data and returns a ``ValidationReport``.
    Instances are immutable and safe to share between threads.
    """

    def __init__(self, schema: Mapping[str, Any], validator: Validator):
        self.schema = schema
        self._validator = validator

    def iter_errors(self, data: Any) -> Iterator[RawError]:
        """
        Yield every error for ``data`` in validator order.

        ``params`` is the failing keyword's value, except for ``required``
        where it is ``{'missingProperty': name}``. jsonschema reports one
        ``required`` error per missing property, in the order the schema
        lists them.
        """
        missing: Dict[Tuple[Any, ...], Iterator[str]] = {}
        for error in self._validator.iter_errors(data):
            params = error.validator_value
            if error.validator == 'required':
                key = (tuple(error.absolute_path), tuple(error.absolute_schema_path))
                if key not in missing:
                    missing[key] = iter([
                        name for name in error.validator_value if name not in error.instance
                    ])
                params = {'missingProperty': next(missing[key], None)}
            yield RawError(
                instance_path=to_json_pointer(error.absolute_path),
                message=error.message,
                keyword=error.validator,
                params=params,
            )

    def __call__(self, data: Any) -> ValidationReport:
        errors = tuple(self.iter_errors(data))
        return ValidationReport(valid=not errors, errors=errors)


class SchemaCompiler:
    """
    Schema engine with strict compilation and full error collection.

    Args:
        validator_class: jsonschema validator class; defaults to the class
            matching each schema's ``$schema`` (Draft 7 when absent)
        strict: Reject keywords unknown to the validator class and
            unrecognized ``$schema`` values
        check_formats: Validate ``format`` keywords
    """

    def __init__(
        self,
        validator_class: Optional[Type[Validator]] = None,
        strict: bool = True,
        check_formats: bool = True
    ):
        self.validator_class = validator_class
        self.strict = strict
        self.check_formats = check_formats

    def compile(self, schema: Mapping[str, Any], location: Optional[str] = None) -> CompiledValidator:
        """
        Compile a JSON Schema document.

        Args:
            schema: JSON Schema document
            location: Request location the schema is bound to, for error context

        Returns:
            CompiledValidator for the schema

        Raises:
            SchemaCompileError: When the schema is malformed
        """
        if not isinstance(schema, Mapping):
            raise SchemaCompileError(
                f"Schema must be a JSON object, got {type(schema).__name__}",
                location=location
            )

        validator_class = self.validator_class or self._select_validator_class(schema, location)

        try:
            validator_class.check_schema(schema)
        except SchemaError as e:
            raise SchemaCompileError(
                f"Invalid JSON schema: {e.message}",
                location=location,
                details={'schema_path': to_json_pointer(e.absolute_path)}
            ) from e

        if self.strict:
            unknown = dict(self._find_unknown_keywords(schema, validator_class.VALIDATORS))
            if unknown:
                raise SchemaCompileError(
                    f"Unknown keyword(s) in strict mode: {sorted(set(unknown.values()))}",
                    location=location,
                    details={'unknown_keywords': unknown}
                )

        format_checker = validator_class.FORMAT_CHECKER if self.check_formats else None
        validator = validator_class(schema, format_checker=format_checker)

        logger.info(
            "JSON schema compiled",
            location=location,
            validator=validator_class.__name__,
            strict=self.strict
        )
        return CompiledValidator(schema, validator)

    def _select_validator_class(self, schema: Mapping[str, Any], location: Optional[str]) -> Type[Validator]:
        """
        Pick the validator class named by ``$schema``; Draft 7 when absent.

        An unrecognized ``$schema`` is a compile error in strict mode and
        falls back to Draft 7 otherwise.
        """
        if '$schema' not in schema:
            return Draft7Validator

        dialect = schema['$schema']
        validator_class = validator_for(schema, default=None) if isinstance(dialect, str) else None
        if validator_class is not None:
            return validator_class

        if self.strict:
            raise SchemaCompileError(
                f"Unknown $schema: {dialect!r}",
                location=location,
                details={'$schema': dialect}
            )
        logger.warning("Unknown $schema, validating as Draft 7", location=location, dialect=dialect)
        return Draft7Validator

    def _find_unknown_keywords(
        self,
        schema: Any,
        known: Mapping[str, Any],
        path: str = ''
    ) -> Iterator[Tuple[str, str]]:
        """Yield (schema path, keyword) for keywords the draft does not define."""
        if not isinstance(schema, Mapping):
            return

        for keyword in schema:
            if keyword not in known and keyword not in ANNOTATION_KEYWORDS:
                yield f"{path}/{keyword}", keyword

        for keyword in SUBSCHEMA_KEYWORDS:
            if keyword in schema:
                yield from self._find_unknown_keywords(schema[keyword], known, f"{path}/{keyword}")

        for keyword in SUBSCHEMA_MAP_KEYWORDS:
            subschemas = schema.get(keyword)
            if isinstance(subschemas, Mapping):
                for name, subschema in subschemas.items():
                    yield from self._find_unknown_keywords(subschema, known, f"{path}/{keyword}/{name}")

        for keyword in SUBSCHEMA_LIST_KEYWORDS:
            subschemas = schema.get(keyword)
            if isinstance(subschemas, list):
                for index, subschema in enumerate(subschemas):
                    yield from self._find_unknown_keywords(subschema, known, f"{path}/{keyword}/{index}")

        items = schema.get('items')
        if isinstance(items, list):
            for index, subschema in enumerate(items):
                yield from self._find_unknown_keywords(subschema, known, f"{path}/items/{index}")
        else:
            yield from self._find_unknown_keywords(items, known, f"{path}/items")

        dependencies = schema.get('dependencies')
        if isinstance(dependencies, Mapping):
            for name, dependency in dependencies.items():
                yield from self._find_unknown_keywords(dependency, known, f"{path}/dependencies/{name}")

    def compile_all(self, schemas: Mapping[str, Optional[Mapping[str, Any]]]) -> Dict[str, CompiledValidator]:
        """Compile every non-empty schema of a location -> schema mapping."""
        return {
            location: self.compile(schema, location=location)
            for location, schema in schemas.items()
            if schema is not None
        }
