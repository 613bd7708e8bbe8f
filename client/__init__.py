"""Client module: chat connection and console I/O."""

from client.chat_client import ChatClient
from client.console import ConsoleInput, print_message

__all__ = [
    'ChatClient',
    'ConsoleInput',
    'print_message',
]
