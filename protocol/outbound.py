"""Per-connection outbound frame queue."""

from collections import deque
from typing import Callable, Deque, Optional
import asyncio

from protocol.messages import ChatMessage
from utils.logging import get_logger

logger = get_logger(__name__)


class OutboundQueue:
    """
    Ordered queue of frames waiting to be written to one connection.
    
    At most one write is in flight at a time: a single flush task writes
    the head frame, waits for the transport to drain, pops the frame and
    moves on to the next one. Frames therefore reach the wire in exactly
    the order they were enqueued, and never interleave.
    
    All methods except ``join`` must be called from the event loop thread.
    """
    
    def __init__(
        self,
        writer: asyncio.StreamWriter,
        on_failure: Callable[[BaseException], None],
        name: str = "connection",
    ):
        """
        Initialize queue for a connection.
        
        Args:
            writer: Stream writer of the owning connection
            on_failure: Called once with the error if a write fails
            name: Connection label used in log messages
        """
        self._writer = writer
        self._on_failure = on_failure
        self._name = name
        self._frames: Deque[ChatMessage] = deque()
        self._flush_task: Optional[asyncio.Task] = None
        self._idle = asyncio.Event()
        self._idle.set()
        self._closed = False
    
    @property
    def pending(self) -> int:
        """Number of frames not yet confirmed as written, including the one in flight."""
        return len(self._frames)
    
    @property
    def in_flight(self) -> bool:
        return self._flush_task is not None
    
    @property
    def closed(self) -> bool:
        return self._closed
    
    def enqueue(self, message: ChatMessage) -> bool:
        """
        Append a frame to the tail and start writing if idle.
        
        Args:
            message: Frame to send
            
        Returns:
            False if the queue was already closed and the frame was dropped
        """
        if self._closed:
            logger.debug(f"{self._name}: Dropping frame for closed connection")
            return False
        
        self._frames.append(message)
        if self._flush_task is None:
            self._idle.clear()
            self._flush_task = asyncio.get_running_loop().create_task(self._flush())
        return True
    
    async def join(self) -> None:
        """Wait until every queued frame is written or the queue is closed."""
        await self._idle.wait()
    
    def close(self) -> None:
        """Discard unsent frames and stop the in-flight write."""
        if self._closed:
            return
        self._closed = True
        
        dropped = len(self._frames)
        self._frames.clear()
        if dropped:
            logger.debug(f"{self._name}: Discarded {dropped} unsent frame(s)")
        
        task = self._flush_task
        if task is not None and task is not asyncio.current_task():
            task.cancel()
        self._idle.set()
    
    async def _flush(self) -> None:
        """Write frames head first until the queue is empty."""
        try:
            while self._frames:
                message = self._frames[0]
                self._writer.write(message.data)
                await self._writer.drain()
                self._on_send_complete()
                
        except asyncio.CancelledError:
            logger.debug(f"{self._name}: Flush cancelled")
            raise
        except (ConnectionError, OSError) as e:
            logger.warning(f"{self._name}: Write failed: {e}")
            self.close()
            self._on_failure(e)
        finally:
            self._flush_task = None
            if not self._frames:
                self._idle.set()
    
    def _on_send_complete(self) -> None:
        # The head frame leaves the queue only once fully handed to the transport
        if self._frames:
            sent = self._frames.popleft()
            logger.debug(f"{self._name}: Sent frame of {sent.body_length} bytes")
