"""Console input and output for the chat client."""

from typing import Optional, TextIO
import sys
import threading

from client.chat_client import ChatClient
from protocol.messages import ChatMessage
from utils.exceptions import ConnectionClosedError, MessageTooLargeError
from utils.logging import get_logger

logger = get_logger(__name__)


def print_message(message: ChatMessage, stream: Optional[TextIO] = None) -> None:
    """Write a received body as one line."""
    out = stream if stream is not None else sys.stdout
    out.write(message.text() + '\n')
    out.flush()


class ConsoleInput(threading.Thread):
    """
    Reads lines from a blocking stream and hands them to the client.
    
    Runs on its own thread so the event loop never blocks on input.
    Closes the client however the thread ends.
    """
    
    def __init__(self, client: ChatClient, stream: Optional[TextIO] = None):
        super().__init__(name="console-input", daemon=True)
        self._client = client
        self._stream = stream if stream is not None else sys.stdin
    
    def run(self) -> None:
        try:
            for line in self._stream:
                try:
                    message = ChatMessage.from_text(line)
                except (MessageTooLargeError, UnicodeError) as e:
                    logger.warning(f"Line not sent: {e}")
                    continue
                
                try:
                    self._client.write(message)
                except ConnectionClosedError as e:
                    logger.debug(f"Stopping console input: {e}")
                    return
            
            logger.debug("Console input reached end of stream")
        finally:
            self._close_client()
    
    def _close_client(self) -> None:
        try:
            self._client.close()
        except ConnectionClosedError as e:
            logger.debug(f"Client already gone: {e}")
