"""
Flask application factory.

Wires configuration, structured logging and error handlers, and registers an
example order endpoint that sanitizes and validates its input before echoing
it back.
"""

from typing import Any, Optional

import structlog
from flask import Flask, jsonify

from config import configure_logging, get_config
from request_guard.exceptions import register_error_handlers
from request_guard.middleware import get_request_data, sanitize_request, validate_request
from request_guard.schemas import ORDER_QUERY_SCHEMA, ORDER_SCHEMA
from request_guard.validation import SchemaCompiler

logger = structlog.get_logger(__name__)


def create_app(config_name: Optional[str] = None, **config_overrides: Any) -> Flask:
    """
    Create the Flask application.

    Args:
        config_name: Environment configuration name (development, testing, production)
        **config_overrides: Flask configuration values applied last

    Returns:
        Configured Flask application

    Raises:
        ConfigurationError: If the configuration is invalid
        SchemaCompileError: If a route schema is malformed
    """
    config = get_config(config_name)
    configure_logging(config)

    app = Flask(__name__)
    app.config.update(config.to_flask_config())
    app.config.update(config_overrides)
    # Echoed payloads keep the key order of the request.
    app.json.sort_keys = False

    register_error_handlers(app)

    compiler = SchemaCompiler(
        strict=app.config['SCHEMA_STRICT'],
        check_formats=app.config['SCHEMA_CHECK_FORMATS']
    )
    sanitization_options = app.config['SANITIZATION']

    @app.get('/health')
    def health():
        return jsonify({'status': 'ok'})

    @app.post('/order')
    @sanitize_request(sanitization_options)
    @validate_request(body=ORDER_SCHEMA, query=ORDER_QUERY_SCHEMA, compiler=compiler)
    def create_order():
        data = get_request_data()
        return jsonify({'success': True, 'data': data.body})

    logger.info(
        "Application created",
        config=type(config).__name__,
        max_content_length=app.config['MAX_CONTENT_LENGTH']
    )
    return app
