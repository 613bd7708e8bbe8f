"""Custom exception classes for the chat system."""


class ChatError(Exception):
    """Base exception class for all chat-related errors."""
    pass


class InvalidHeaderError(ChatError):
    """Exception raised when a frame header is not a valid body length."""
    pass


class MessageTooLargeError(ChatError):
    """Exception raised when a message body exceeds the maximum body length."""
    pass


class ConnectionClosedError(ChatError):
    """Exception raised when writing to a connection that is already closed."""
    pass


class ConfigurationError(ChatError):
    """Exception raised when configuration is invalid or missing."""
    pass
