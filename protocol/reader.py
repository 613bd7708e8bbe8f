"""Inbound frame reader driving the header/body read state machine."""

import asyncio

from protocol.constants import HEADER_LENGTH
from protocol.framing import decode_header
from protocol.messages import ChatMessage
from protocol.states import ReadState
from utils.exceptions import ConnectionClosedError

# Failures that leave a connection unusable
READ_ERRORS = (asyncio.IncompleteReadError, ConnectionError, OSError)


class FrameReader:
    """
    Reads whole frames from a stream.
    
    Moves AWAIT_HEADER -> AWAIT_BODY -> AWAIT_HEADER for every frame.
    Any failure, including a malformed header, moves it to CLOSED for good.
    """
    
    def __init__(self, reader: asyncio.StreamReader):
        self._reader = reader
        self._state = ReadState.AWAIT_HEADER
        self._body_length = 0
    
    @property
    def state(self) -> ReadState:
        return self._state
    
    async def read_message(self) -> ChatMessage:
        """
        Read the next complete frame.
        
        Returns:
            The received message
            
        Raises:
            InvalidHeaderError: If the header is malformed or too large
            asyncio.IncompleteReadError: If the peer closed mid-stream
            ConnectionError: On socket errors
            ConnectionClosedError: If the reader is already closed
        """
        if self._state is ReadState.CLOSED:
            raise ConnectionClosedError("Reader is closed")
        
        try:
            header = await self._reader.readexactly(HEADER_LENGTH)
            self._body_length = decode_header(header)
            self._state = ReadState.AWAIT_BODY
            
            body = await self._reader.readexactly(self._body_length)
            self._state = ReadState.AWAIT_HEADER
        except BaseException:
            self._state = ReadState.CLOSED
            raise
        
        return ChatMessage(body=body)
    
    def close(self) -> None:
        self._state = ReadState.CLOSED
