"""Configuration module for managing system settings."""

from config.settings import (
    ServerConfig,
    ClientConfig,
    Config,
    parse_port,
)

__all__ = [
    'ServerConfig',
    'ClientConfig',
    'Config',
    'parse_port',
]
