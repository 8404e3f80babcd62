"""
Shared pytest fixtures.

Provides the application built by the factory with the testing
configuration, a test client, and a bare Flask application for tests that
register their own decorated routes.
"""

import pytest
from flask import Flask

from request_guard.app import create_app
from request_guard.exceptions import register_error_handlers
from request_guard.validation import SchemaCompiler


@pytest.fixture(scope="session")
def flask_app():
    """Application created through the factory with the testing configuration."""
    return create_app('testing')


@pytest.fixture(scope="function")
def client(flask_app):
    with flask_app.test_client() as test_client:
        yield test_client


@pytest.fixture(scope="function")
def bare_app():
    """Flask application with error handlers only; tests add their own routes."""
    app = Flask(__name__)
    app.config['TESTING'] = True
    register_error_handlers(app)
    return app


@pytest.fixture(scope="function")
def compiler():
    return SchemaCompiler()


@pytest.fixture
def required_id_schema():
    return {"type": "object", "required": ["id"]}


@pytest.fixture
def valid_order():
    return {
        "id": "ORD-1",
        "items": [{"sku": "SKU-1", "quantity": 2}],
        "total": 19.5,
    }
