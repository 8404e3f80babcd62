"""
Configuration package: environment-specific settings and logging setup.

Usage:
    from config import get_config, configure_logging

    config = get_config('production')
    configure_logging(config)
"""

from config.logging import configure_logging, get_logger
from config.settings import (
    BaseConfig,
    DevelopmentConfig,
    EnvironmentManager,
    ProductionConfig,
    TestingConfig,
    get_config,
)

__all__ = [
    'BaseConfig',
    'DevelopmentConfig',
    'EnvironmentManager',
    'ProductionConfig',
    'TestingConfig',
    'configure_logging',
    'get_config',
    'get_logger',
]
