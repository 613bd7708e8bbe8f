"""Chat client connection: reads broadcasts and writes user messages."""

from typing import Callable, Optional, Tuple
import asyncio
import contextlib

from protocol.messages import ChatMessage
from protocol.outbound import OutboundQueue
from protocol.reader import FrameReader, READ_ERRORS
from protocol.states import ReadState
from utils.exceptions import ConnectionClosedError, InvalidHeaderError
from utils.logging import get_logger

logger = get_logger(__name__)

MessageSink = Callable[[ChatMessage], None]


class ChatClient:
    """
    Client side of a chat connection.
    
    Reads frames from the server and hands each one to an output sink.
    Outgoing messages go through an outbound queue owned by the event
    loop; ``write`` and ``close`` may be called from any thread and are
    posted to the loop.
    """
    
    def __init__(self, output: MessageSink):
        """
        Initialize client.
        
        Args:
            output: Called on the event loop with every received message
        """
        self._output = output
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._frames: Optional[FrameReader] = None
        self._outbound: Optional[OutboundQueue] = None
        self._read_task: Optional[asyncio.Task] = None
        self._closing_task: Optional[asyncio.Task] = None
        self._closed_event = asyncio.Event()
        self._closed: bool = False
    
    @property
    def connected(self) -> bool:
        return self._writer is not None and not self._closed
    
    @property
    def state(self) -> ReadState:
        if self._frames is None:
            return ReadState.CLOSED if self._closed else ReadState.AWAIT_HEADER
        return self._frames.state
    
    async def connect(self, address: Tuple[str, int]) -> None:
        """
        Connect to a resolved server endpoint and start reading.
        
        Args:
            address: (ip, port) of the server
            
        Raises:
            OSError: If the connection cannot be established
        """
        host, port = address[0], address[1]
        logger.info(f"Connecting to {host}:{port}")
        
        reader, writer = await asyncio.open_connection(host, port)
        self._loop = asyncio.get_running_loop()
        self._writer = writer
        self._frames = FrameReader(reader)
        self._outbound = OutboundQueue(writer, self._on_write_failure, name="Client")
        self._read_task = asyncio.create_task(self._read_loop())
        
        logger.info(f"Connected to {host}:{port}")
    
    def write(self, message: ChatMessage) -> None:
        """
        Queue a message for the server. Safe to call from any thread.
        
        Raises:
            ConnectionClosedError: If the client is not connected or its loop has stopped
        """
        loop = self._require_loop()
        try:
            loop.call_soon_threadsafe(self._do_write, message)
        except RuntimeError as e:
            raise ConnectionClosedError(f"Client event loop is not running: {e}")
    
    def close(self, flush: bool = True) -> None:
        """
        Close the connection. Safe to call from any thread.
        
        Args:
            flush: Send frames already queued before closing
        """
        loop = self._require_loop()
        try:
            loop.call_soon_threadsafe(self._begin_close, flush)
        except RuntimeError:
            logger.debug("Client event loop already stopped")
    
    async def wait_closed(self) -> None:
        """Wait until the connection is closed."""
        await self._closed_event.wait()
        if self._read_task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await self._read_task
        if self._writer is not None:
            with contextlib.suppress(*READ_ERRORS):
                await self._writer.wait_closed()
    
    def _require_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            raise ConnectionClosedError("Client is not connected")
        return self._loop
    
    def _do_write(self, message: ChatMessage) -> None:
        if self._closed:
            logger.debug("Dropping message written after close")
            return
        self._outbound.enqueue(message)
    
    def _begin_close(self, flush: bool) -> None:
        if self._closed or self._closing_task is not None:
            return
        if flush and self._outbound is not None and self._outbound.pending:
            self._closing_task = asyncio.create_task(self._flush_then_close())
        else:
            self._do_close()
    
    async def _flush_then_close(self) -> None:
        await self._outbound.join()
        self._do_close()
    
    def _do_close(self) -> None:
        if self._closed:
            return
        self._closed = True
        
        if self._frames is not None:
            self._frames.close()
        if self._outbound is not None:
            self._outbound.close()
        if self._writer is not None:
            self._writer.close()
        
        task = self._read_task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
        
        self._closed_event.set()
        logger.info("Connection closed")
    
    async def _read_loop(self) -> None:
        """Read frames and pass each body to the output sink until the connection fails."""
        try:
            while True:
                message = await self._frames.read_message()
                logger.debug(f"Received frame of {message.body_length} bytes")
                self._output(message)
                
        except asyncio.IncompleteReadError:
            logger.info("Server closed the connection")
        except InvalidHeaderError as e:
            logger.warning(f"Malformed frame from server: {e}")
        except READ_ERRORS as e:
            logger.warning(f"Connection error during read: {e}")
        except asyncio.CancelledError:
            logger.debug("Read loop cancelled")
            raise
        finally:
            self._do_close()
    
    def _on_write_failure(self, error: BaseException) -> None:
        logger.warning(f"Connection error during write: {error}")
        self._do_close()
