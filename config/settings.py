"""
Application configuration classes.

Environment variables are loaded from a ``.env`` file through python-dotenv
and read into environment-specific configuration classes. The sanitization
toggles applied to incoming requests are configured here as ``SANITIZE_*``
variables, and the request payload limit as ``MAX_CONTENT_LENGTH``; the
payload limit is enforced by Flask before any sanitization runs.
"""

import logging
import os
from typing import Any, Dict, Optional

from dotenv import find_dotenv, load_dotenv

from request_guard.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

TRUE_VALUES = ('true', '1', 'yes', 'on')
FALSE_VALUES = ('false', '0', 'no', 'off')

# Environment variable -> sanitization option, with defaults.
SANITIZATION_ENV_OPTIONS = {
    'SANITIZE_TRIM': ('trim', True),
    'SANITIZE_ESCAPE_HTML': ('escape', True),
    'SANITIZE_STRIP_TAGS': ('stripTags', False),
    'SANITIZE_REMOVE_DANGEROUS': ('removeDangerous', True),
    'SANITIZE_ESCAPE_SQL': ('escapeSql', False),
    'SANITIZE_BLOCK_PATH_TRAVERSAL': ('blockPathTraversal', False),
    'SANITIZE_REMOVE_CRLF': ('removeCrlf', False),
    'SANITIZE_ESCAPE_SHELL': ('escapeShell', False),
}


class EnvironmentManager:
    """
    Loads the ``.env`` file once and reads typed environment variables.

    Existing process environment values take precedence over the file.
    """

    def __init__(self, env_file: Optional[str] = None):
        self.env_file = env_file or find_dotenv(usecwd=True)
        if self.env_file:
            load_dotenv(self.env_file, override=False)
            logger.info("Environment variables loaded from %s", self.env_file)

    def get_bool(self, key: str, default: bool) -> bool:
        value = os.getenv(key)
        if value is None:
            return default
        normalized = value.strip().lower()
        if normalized in TRUE_VALUES:
            return True
        if normalized in FALSE_VALUES:
            return False
        raise ConfigurationError(
            f"Environment variable '{key}' must be a boolean, got '{value}'",
            details={'variable': key}
        )

    def get_int(self, key: str, default: int) -> int:
        value = os.getenv(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError as e:
            raise ConfigurationError(
                f"Environment variable '{key}' must be an integer, got '{value}'",
                details={'variable': key}
            ) from e

    def get_str(self, key: str, default: str) -> str:
        return os.getenv(key, default)


class BaseConfig:
    """Settings shared by every environment."""

    DEBUG = False
    TESTING = False

    def __init__(self, env: Optional[EnvironmentManager] = None):
        env = env or EnvironmentManager()

        self.APP_NAME = env.get_str('APP_NAME', 'request-guard')
        # 1 MiB; larger payloads are rejected with 413 before sanitization.
        self.MAX_CONTENT_LENGTH = env.get_int('MAX_CONTENT_LENGTH', 1024 * 1024)

        self.LOG_LEVEL = env.get_str('LOG_LEVEL', 'INFO')
        self.LOG_FORMAT = env.get_str('LOG_FORMAT', 'json')

        self.SCHEMA_STRICT = env.get_bool('SCHEMA_STRICT', True)
        self.SCHEMA_CHECK_FORMATS = env.get_bool('SCHEMA_CHECK_FORMATS', True)

        self.SANITIZATION = {
            option: env.get_bool(variable, default)
            for variable, (option, default) in SANITIZATION_ENV_OPTIONS.items()
        }

    def to_flask_config(self) -> Dict[str, Any]:
        return {
            key: getattr(self, key)
            for key in dir(self)
            if key.isupper()
        }


class DevelopmentConfig(BaseConfig):
    """Local development settings."""

    DEBUG = True

    def __init__(self, env: Optional[EnvironmentManager] = None):
        env = env or EnvironmentManager()
        super().__init__(env)
        self.LOG_FORMAT = env.get_str('LOG_FORMAT', 'console')


class TestingConfig(BaseConfig):
    """Settings for the automated test suite."""

    DEBUG = True
    TESTING = True

    def __init__(self, env: Optional[EnvironmentManager] = None):
        super().__init__(env)
        self.LOG_LEVEL = 'WARNING'
        self.LOG_FORMAT = 'console'


class ProductionConfig(BaseConfig):
    """Production settings."""


CONFIG_MAPPING = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
}


def get_config(config_name: Optional[str] = None) -> BaseConfig:
    """
    Return the configuration instance for an environment.

    Args:
        config_name: Configuration name; defaults to FLASK_ENV, then 'production'

    Returns:
        Environment-specific configuration instance

    Raises:
        ConfigurationError: When the configuration name is unknown
    """
    config_name = config_name or os.getenv('FLASK_ENV', 'production')

    config_class = CONFIG_MAPPING.get(config_name.lower())
    if config_class is None:
        available = ', '.join(CONFIG_MAPPING)
        raise ConfigurationError(
            f"Invalid configuration name '{config_name}'. "
            f"Available configurations: {available}"
        )

    logger.info("Configuration '%s' loaded", config_name)
    return config_class()
