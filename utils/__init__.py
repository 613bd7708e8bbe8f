"""Utility modules for logging and exception handling."""

from utils.logging import setup_logging, get_logger
from utils.exceptions import (
    ChatError,
    InvalidHeaderError,
    MessageTooLargeError,
    ConnectionClosedError,
    ConfigurationError,
)

__all__ = [
    'setup_logging',
    'get_logger',
    'ChatError',
    'InvalidHeaderError',
    'MessageTooLargeError',
    'ConnectionClosedError',
    'ConfigurationError',
]
