"""
Tests for schema compilation, error formatting and multi-location request
validation.
"""

from unittest.mock import Mock

import pytest
from jsonschema import Draft202012Validator

from request_guard.exceptions import ErrorSeverity, SchemaCompileError
from request_guard.middleware import RequestData
from request_guard.schemas import ORDER_QUERY_SCHEMA, ORDER_SCHEMA
from request_guard.validation import (
    ROOT_FIELD,
    FieldError,
    RawError,
    RequestValidator,
    SchemaCompiler,
    ValidationLocation,
    ValidationOutcome,
    ValidationReport,
    format_errors,
    format_message,
    to_json_pointer,
)

pytestmark = pytest.mark.unit


class TestSchemaCompiler:

    def test_valid_data_passes(self, compiler, valid_order):
        report = compiler.compile(ORDER_SCHEMA)(valid_order)
        assert report.valid is True
        assert report.errors == ()

    def test_required_property_reported_at_root(self, compiler, required_id_schema):
        report = compiler.compile(required_id_schema)({})
        assert report.valid is False
        assert len(report.errors) == 1
        assert report.errors[0].instance_path == ""
        assert report.errors[0].message == "'id' is a required property"
        assert report.errors[0].keyword == "required"
        assert report.errors[0].params == {'missingProperty': 'id'}

    def test_each_missing_property_named_in_schema_order(self, compiler):
        report = compiler.compile(ORDER_SCHEMA)({})
        assert [error.params for error in report.errors] == [
            {'missingProperty': 'id'},
            {'missingProperty': 'items'},
            {'missingProperty': 'total'},
        ]

    def test_missing_property_in_nested_objects(self, compiler, valid_order):
        valid_order['items'] = [{'sku': 'A'}, {'quantity': 1}]
        report = compiler.compile(ORDER_SCHEMA)(valid_order)
        assert [(error.instance_path, error.params) for error in report.errors] == [
            ("/items/0", {'missingProperty': 'quantity'}),
            ("/items/1", {'missingProperty': 'sku'}),
        ]

    def test_nested_error_path(self, compiler, valid_order):
        valid_order['items'][0]['quantity'] = 0
        report = compiler.compile(ORDER_SCHEMA)(valid_order)
        assert [error.instance_path for error in report.errors] == ["/items/0/quantity"]

    def test_all_errors_collected(self, compiler):
        report = compiler.compile(ORDER_SCHEMA)({'id': 5, 'total': -1})
        paths = [error.instance_path for error in report.errors]
        assert len(paths) == 3
        assert set(paths) == {"", "/id", "/total"}

    def test_no_type_coercion(self, compiler):
        validator = compiler.compile({"type": "integer"})
        assert validator("5").valid is False
        assert validator(5).valid is True

    def test_format_checked(self, compiler):
        validator = compiler.compile({"type": "string", "format": "email"})
        assert validator("not-an-email").valid is False
        assert validator("user@example.com").valid is True

    def test_format_check_can_be_disabled(self):
        validator = SchemaCompiler(check_formats=False).compile({"type": "string", "format": "email"})
        assert validator("not-an-email").valid is True

    @pytest.mark.parametrize("schema", [
        {"type": "strin"},
        {"type": "object", "required": "id"},
        {"type": "object", "properties": {"id": {"minLength": -1}}},
    ])
    def test_malformed_schema_rejected(self, compiler, schema):
        with pytest.raises(SchemaCompileError) as exc_info:
            compiler.compile(schema, location="body")
        assert exc_info.value.location == "body"
        assert exc_info.value.details['location'] == "body"
        assert exc_info.value.severity == ErrorSeverity.CRITICAL

    @pytest.mark.parametrize("schema", [["type", "object"], "object", None])
    def test_non_object_schema_rejected(self, compiler, schema):
        with pytest.raises(SchemaCompileError):
            compiler.compile(schema)

    def test_unknown_keyword_rejected_in_strict_mode(self, compiler):
        schema = {
            "type": "object",
            "properties": {"id": {"type": "string", "minLenght": 1}},
        }
        with pytest.raises(SchemaCompileError) as exc_info:
            compiler.compile(schema)
        assert exc_info.value.details['unknown_keywords'] == {
            '/properties/id/minLenght': 'minLenght'
        }

    def test_unknown_keyword_in_array_items(self, compiler):
        schema = {"type": "array", "items": {"type": "string", "maxLen": 3}}
        with pytest.raises(SchemaCompileError):
            compiler.compile(schema)

    def test_unknown_keyword_allowed_when_not_strict(self):
        validator = SchemaCompiler(strict=False).compile({"type": "string", "minLenght": 1})
        assert validator("").valid is True

    def test_annotations_and_conditionals_accepted(self, compiler):
        schema = {
            "$schema": "http://json-schema.org/draft-07/schema#",
            "title": "Conditional",
            "description": "Requires a reason when cancelled",
            "type": "object",
            "if": {"properties": {"status": {"const": "cancelled"}}},
            "then": {"required": ["reason"]},
            "else": {"properties": {"reason": {"type": "null"}}},
        }
        validator = compiler.compile(schema)
        assert validator({"status": "cancelled"}).valid is False
        assert validator({"status": "cancelled", "reason": "late"}).valid is True

    @pytest.mark.parametrize("schema", [
        {
            "$schema": "http://json-schema.org/draft-04/schema#",
            "id": "http://example.com/order",
            "type": "object",
            "required": ["id"],
        },
        {
            "$schema": "http://json-schema.org/draft-06/schema#",
            "$id": "http://example.com/order",
            "type": "object",
            "propertyNames": {"maxLength": 8},
        },
        {
            "$schema": "http://json-schema.org/draft-07/schema#",
            "type": "object",
            "properties": {"id": {"type": "string", "readOnly": True}},
        },
        {
            "$schema": "https://json-schema.org/draft/2019-09/schema",
            "$recursiveAnchor": True,
            "type": "object",
            "properties": {"child": {"$recursiveRef": "#"}},
            "dependentRequired": {"total": ["items"]},
        },
        {
            "$schema": "https://json-schema.org/draft/2020-12/schema",
            "$dynamicAnchor": "node",
            "type": "object",
            "properties": {"child": {"$dynamicRef": "#node"}},
        },
        {
            "$schema": "https://json-schema.org/draft/2020-12/schema",
            "$vocabulary": {"https://json-schema.org/draft/2020-12/vocab/core": True},
            "type": "object",
        },
    ])
    def test_core_keywords_of_every_draft_accepted(self, compiler, schema):
        validator = compiler.compile(schema)
        assert validator({}).valid is ("required" not in schema)

    def test_unknown_dollar_schema_rejected_in_strict_mode(self, compiler):
        schema = {"$schema": "http://example.com/custom-meta", "type": "object"}
        with pytest.raises(SchemaCompileError) as exc_info:
            compiler.compile(schema, location="body")
        assert exc_info.value.details['$schema'] == "http://example.com/custom-meta"

    def test_non_string_dollar_schema_rejected(self, compiler):
        with pytest.raises(SchemaCompileError):
            compiler.compile({"$schema": 7, "type": "object"})

    def test_unknown_dollar_schema_validated_as_draft7_when_not_strict(self):
        schema = {"$schema": "http://example.com/custom-meta", "type": "object"}
        validator = SchemaCompiler(strict=False).compile(schema)
        assert validator({}).valid is True
        assert validator([]).valid is False

    def test_schema_draft_selected_from_dollar_schema(self, compiler):
        schema = {
            "$schema": "https://json-schema.org/draft/2020-12/schema",
            "type": "array",
            "prefixItems": [{"type": "integer"}],
        }
        validator = compiler.compile(schema)
        assert validator(["x"]).valid is False
        assert validator([1, "x"]).valid is True

    def test_explicit_validator_class(self):
        compiler = SchemaCompiler(validator_class=Draft202012Validator)
        validator = compiler.compile({"type": "array", "prefixItems": [{"type": "string"}]})
        assert validator([1]).valid is False

    def test_compile_all_skips_missing_schemas(self, compiler, required_id_schema):
        validators = compiler.compile_all({'body': required_id_schema, 'query': None})
        assert list(validators) == ['body']

    def test_compiled_validator_is_reusable(self, compiler, required_id_schema):
        validator = compiler.compile(required_id_schema)
        assert validator({}).valid is False
        assert validator({'id': 1}).valid is True
        assert validator({}).valid is False

    @pytest.mark.parametrize("path,pointer", [
        ([], ""),
        (["items", 0, "sku"], "/items/0/sku"),
        (["a/b", "c~d"], "/a~1b/c~0d"),
    ])
    def test_json_pointer(self, path, pointer):
        assert to_json_pointer(path) == pointer


class TestFormatErrors:

    def test_root_error_field_keeps_message_without_keyword(self):
        errors = format_errors([RawError("", "unrecognized failure")])
        assert errors == (FieldError(ROOT_FIELD, "unrecognized failure"),)
        assert errors[0].field == "(root)"

    def test_nested_error_field_and_order(self):
        errors = format_errors([
            RawError("/items/0/sku", "first"),
            RawError("/total", "second"),
        ])
        assert [error.field for error in errors] == ["/items/0/sku", "/total"]
        assert [error.message for error in errors] == ["first", "second"]

    def test_empty(self):
        assert format_errors([]) == ()
        assert format_errors(None) == ()

    def test_to_dict(self):
        assert FieldError("/id", "bad").to_dict() == {'field': "/id", 'message': "bad"}

    @pytest.mark.parametrize("error,message", [
        (RawError("", "'id' is a required property", "required", {'missingProperty': 'id'}),
         "must have required property 'id'"),
        (RawError("/id", "5 is not of type 'string'", "type", "string"), "must be string"),
        (RawError("/n", "x", "type", ["string", "null"]), "must be string,null"),
        (RawError("/total", "-1 is less than the minimum of 0", "minimum", 0), "must be >= 0"),
        (RawError("/id", "'' is too short", "minLength", 1), "must NOT have fewer than 1 characters"),
        (RawError("/items", "[] is too short", "minItems", 1), "must NOT have fewer than 1 items"),
        (RawError("", "Additional properties are not allowed", "additionalProperties", False),
         "must NOT have additional properties"),
        (RawError("/dry_run", "'maybe' is not one of ['true', 'false']", "enum", ["true", "false"]),
         "must be equal to one of the allowed values"),
        (RawError("/code", "'a' does not match '^[0-9]+$'", "pattern", "^[0-9]+$"),
         'must match pattern "^[0-9]+$"'),
        (RawError("/email", "'x' is not a 'email'", "format", "email"), 'must match format "email"'),
    ])
    def test_keyword_messages(self, error, message):
        assert format_message(error) == message

    def test_other_keywords_keep_validator_message(self):
        error = RawError("", "{} is not valid under any of the given schemas", "anyOf", [])
        assert format_message(error) == "{} is not valid under any of the given schemas"

    def test_required_without_missing_property_keeps_message(self):
        error = RawError("", "'id' is a required property", "required", ["id"])
        assert format_message(error) == "'id' is a required property"


class TestValidationOutcome:

    def test_success(self):
        outcome = ValidationOutcome.success()
        assert outcome.passed
        assert bool(outcome) is True
        assert outcome.location is None
        assert outcome.errors == ()

    def test_failure(self):
        errors = (FieldError("/id", "bad"),)
        outcome = ValidationOutcome.failure(ValidationLocation.QUERY, errors)
        assert not outcome
        assert outcome.location is ValidationLocation.QUERY
        assert outcome == ValidationOutcome(ValidationLocation.QUERY, errors)

    def test_failure_response(self):
        outcome = ValidationOutcome.failure(
            ValidationLocation.BODY, (FieldError("(root)", "must have required property 'id'"),)
        )
        assert outcome.to_response() == {
            'error': 'Invalid request',
            'location': 'body',
            'details': [{'field': '(root)', 'message': "must have required property 'id'"}],
        }

    def test_success_has_no_response(self):
        with pytest.raises(ValueError):
            ValidationOutcome.success().to_response()


class TestRequestValidator:

    def test_missing_required_body_field(self, compiler, required_id_schema):
        validator = RequestValidator(compiler, body=required_id_schema)
        outcome = validator.validate_values(body={})
        assert outcome == ValidationOutcome.failure(
            ValidationLocation.BODY,
            (FieldError("(root)", "must have required property 'id'"),)
        )

    def test_no_schemas_always_passes(self, compiler):
        validator = RequestValidator(compiler)
        assert validator.locations == ()
        assert validator.validate_values(body="anything", query=[1], params=None).passed

    def test_unbound_location_not_checked(self, compiler, required_id_schema):
        validator = RequestValidator(compiler, query=required_id_schema)
        outcome = validator.validate_values(body={'unexpected': True}, query={'id': "1"})
        assert outcome.passed

    def test_body_checked_before_query(self, compiler, valid_order):
        validator = RequestValidator(compiler, body=ORDER_SCHEMA, query=ORDER_QUERY_SCHEMA)
        outcome = validator.validate_values(body={}, query={'dry_run': "maybe"})
        assert outcome.location is ValidationLocation.BODY
        assert {error.field for error in outcome.errors} == {"(root)"}
        assert len(outcome.errors) == 3

    def test_query_failure_when_body_passes(self, compiler, valid_order):
        validator = RequestValidator(compiler, body=ORDER_SCHEMA, query=ORDER_QUERY_SCHEMA)
        outcome = validator.validate_values(body=valid_order, query={'dry_run': "maybe"})
        assert outcome.location is ValidationLocation.QUERY
        assert [error.field for error in outcome.errors] == ["/dry_run"]

    def test_params_validated_last(self, compiler):
        params_schema = {
            "type": "object",
            "properties": {"item_id": {"type": "string", "pattern": "^[0-9]+$"}},
        }
        validator = RequestValidator(compiler, query={"type": "object"}, params=params_schema)
        assert validator.locations == (ValidationLocation.QUERY, ValidationLocation.PARAMS)
        outcome = validator.validate_values(query={}, params={'item_id': "abc"})
        assert outcome.location is ValidationLocation.PARAMS
        assert outcome.errors[0].field == "/item_id"

    def test_stops_at_first_failing_location(self):
        body_check = Mock(return_value=ValidationReport(False, (RawError("/id", "bad"),)))
        query_check = Mock(return_value=ValidationReport(True))
        validators = {'body': body_check, 'query': query_check}
        compiler = Mock()
        compiler.compile.side_effect = lambda schema, location=None: validators[location]

        validator = RequestValidator(compiler, body={}, query={})
        outcome = validator.validate_values(body={'id': 1}, query={})

        assert outcome.location is ValidationLocation.BODY
        body_check.assert_called_once_with({'id': 1})
        query_check.assert_not_called()

    def test_schemas_compiled_once(self, required_id_schema):
        compiler = Mock(wraps=SchemaCompiler())
        validator = RequestValidator(compiler, body=required_id_schema, params={"type": "object"})
        for _ in range(3):
            validator.validate_values(body={'id': 1}, params={})
        assert compiler.compile.call_count == 2

    def test_malformed_schema_fails_at_construction(self, compiler):
        with pytest.raises(SchemaCompileError) as exc_info:
            RequestValidator(compiler, query={"type": "strin"})
        assert exc_info.value.location == "query"

    def test_validate_reads_carrier(self, compiler, required_id_schema):
        validator = RequestValidator(compiler, body=required_id_schema)
        assert validator.validate(RequestData(body={'id': "1"})).passed
        assert not validator.validate(RequestData(body=None))
