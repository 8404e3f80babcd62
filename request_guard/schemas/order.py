"""JSON Schema for the example order payload."""

ORDER_SCHEMA = {
    "type": "object",
    "required": ["id", "items", "total"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "items": {
            "type": "array",
            "minItems": 1,
            "items": {
                "type": "object",
                "required": ["sku", "quantity"],
                "properties": {
                    "sku": {"type": "string", "minLength": 1},
                    "quantity": {"type": "integer", "minimum": 1},
                },
                "additionalProperties": False,
            },
        },
        "total": {"type": "number", "minimum": 0},
    },
    "additionalProperties": False,
}

ORDER_QUERY_SCHEMA = {
    "type": "object",
    "properties": {
        "dry_run": {"type": "string", "enum": ["true", "false"]},
    },
    "additionalProperties": False,
}
