"""Server-side session handling one participant connection."""

from itertools import count
from typing import Optional
import asyncio
import contextlib

from protocol.messages import ChatMessage
from protocol.outbound import OutboundQueue
from protocol.reader import FrameReader, READ_ERRORS
from protocol.states import ReadState
from server.room import ChatRoom
from utils.exceptions import InvalidHeaderError
from utils.logging import get_logger

logger = get_logger(__name__)

_session_ids = count(1)


class Session:
    """
    One accepted connection taking part in a chat room.
    
    Joins the room before its first read, relays every frame it reads to
    the room and writes whatever the room delivers to it through its own
    outbound queue. Any read or write failure closes the session.
    """
    
    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        room: ChatRoom,
    ):
        """
        Initialize session for an accepted connection.
        
        Args:
            reader: Stream reader of the connection
            writer: Stream writer of the connection
            room: Room shared by all sessions of the server
        """
        self._id: int = next(_session_ids)
        self._peer = writer.get_extra_info('peername')
        self._room = room
        self._writer = writer
        self._frames = FrameReader(reader)
        self._outbound = OutboundQueue(writer, self._on_write_failure, name=self.name)
        self._read_task: Optional[asyncio.Task] = None
        self._closed: bool = False
    
    @property
    def id(self) -> int:
        return self._id
    
    @property
    def name(self) -> str:
        return f"Session {self._id}"
    
    @property
    def peer(self):
        return self._peer
    
    @property
    def state(self) -> ReadState:
        return self._frames.state
    
    @property
    def closed(self) -> bool:
        return self._closed
    
    def __repr__(self) -> str:
        return f"<Session id={self._id} peer={self._peer} closed={self._closed}>"
    
    def start(self) -> asyncio.Task:
        """
        Join the room and start reading frames.
        
        Returns:
            The task running the read loop
        """
        logger.info(f"{self.name}: Started for {self._peer}")
        self._room.join(self)
        self._read_task = asyncio.create_task(self._read_loop())
        return self._read_task
    
    def deliver(self, message: ChatMessage) -> None:
        """Queue a message for this participant; no-op once closed."""
        if self._closed:
            return
        self._outbound.enqueue(message)
    
    def close(self) -> None:
        """Leave the room, drop unsent frames and close the socket. Idempotent."""
        if self._closed:
            return
        self._closed = True
        
        self._frames.close()
        self._room.leave(self)
        self._outbound.close()
        self._writer.close()
        
        task = self._read_task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
        
        logger.info(f"{self.name}: Closed")
    
    async def wait_closed(self) -> None:
        """Wait until the read loop ended and the socket is closed."""
        if self._read_task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await self._read_task
        with contextlib.suppress(*READ_ERRORS):
            await self._writer.wait_closed()
    
    async def _read_loop(self) -> None:
        """Read frames and hand each one to the room until the connection fails."""
        try:
            while True:
                message = await self._frames.read_message()
                logger.debug(f"{self.name}: Received frame of {message.body_length} bytes")
                self._room.deliver(message)
                
        except asyncio.IncompleteReadError as e:
            if e.partial:
                logger.warning(f"{self.name}: Peer disconnected mid-frame")
            else:
                logger.info(f"{self.name}: Peer disconnected")
        except InvalidHeaderError as e:
            logger.warning(f"{self.name}: Malformed frame: {e}")
        except READ_ERRORS as e:
            logger.warning(f"{self.name}: Connection error during read: {e}")
        except asyncio.CancelledError:
            logger.debug(f"{self.name}: Read loop cancelled")
            raise
        finally:
            self.close()
    
    def _on_write_failure(self, error: BaseException) -> None:
        logger.warning(f"{self.name}: Connection error during write: {error}")
        self.close()
