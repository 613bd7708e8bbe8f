"""Chat server accepting connections into a shared room."""

from typing import List, Optional, Set
import asyncio
import socket

from config.settings import ServerConfig
from server.room import ChatRoom
from server.session import Session
from utils.logging import get_logger

logger = get_logger(__name__)


class ChatServer:
    """
    Accepts connections on every configured port and binds each one to
    a new session in the server's single room.
    """
    
    def __init__(self, config: ServerConfig, room: Optional[ChatRoom] = None):
        """
        Initialize server with configuration.
        
        Args:
            config: Server configuration
            room: Room to bind sessions to (default: a new empty room)
        """
        self._config: ServerConfig = config
        self._room: ChatRoom = room if room is not None else ChatRoom()
        self._listeners: List[socket.socket] = []
        self._sessions: Set[Session] = set()
        self._accept_tasks: Set[asyncio.Task] = set()
        self._session_tasks: Set[asyncio.Task] = set()
        self._running: bool = False
        
        logger.info(
            f"ChatServer initialized with host={config.host}, ports={config.ports}"
        )
    
    @property
    def room(self) -> ChatRoom:
        return self._room
    
    @property
    def sessions(self) -> Set[Session]:
        return set(self._sessions)
    
    @property
    def bound_ports(self) -> List[int]:
        """Ports actually bound, useful when port 0 was configured."""
        return [listener.getsockname()[1] for listener in self._listeners]
    
    @property
    def running(self) -> bool:
        return self._running
    
    async def start(self) -> None:
        """
        Bind all listening sockets and start accepting connections.
        
        Returns once every listener is bound; accepting continues in
        background tasks until stop() is called.
        
        Raises:
            OSError: If a listening socket cannot be bound
        """
        if self._running:
            logger.warning("Chat server is already running")
            return
        
        try:
            for port in self._config.ports:
                self._listeners.append(self._bind(self._config.host, port))
        except OSError:
            self._close_listeners()
            raise
        
        self._running = True
        for listener in self._listeners:
            task = asyncio.create_task(self._accept_loop(listener))
            self._accept_tasks.add(task)
            task.add_done_callback(self._accept_tasks.discard)
        
        logger.info(f"Chat server listening on {self._config.host}:{self.bound_ports}")
    
    async def stop(self) -> None:
        """
        Stop the server gracefully.
        
        Stops accepting, closes the listening sockets and every live session.
        """
        logger.info("Stopping chat server...")
        self._running = False
        
        for task in list(self._accept_tasks):
            task.cancel()
        if self._accept_tasks:
            await asyncio.gather(*self._accept_tasks, return_exceptions=True)
        self._close_listeners()
        
        sessions = list(self._sessions)
        for session in sessions:
            session.close()
        if sessions:
            await asyncio.gather(
                *(session.wait_closed() for session in sessions),
                return_exceptions=True,
            )
        self._sessions.clear()
        
        logger.info("Chat server stopped")
    
    def _bind(self, host: str, port: int) -> socket.socket:
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            listener.bind((host, port))
            listener.listen()
            listener.setblocking(False)
        except OSError:
            listener.close()
            raise
        return listener
    
    def _close_listeners(self) -> None:
        for listener in self._listeners:
            try:
                listener.close()
            except OSError as e:
                logger.warning(f"Error closing listener: {e}")
        self._listeners.clear()
    
    async def _accept_loop(self, listener: socket.socket) -> None:
        """
        Accept connections until the server stops.
        
        A failed accept is logged and accepting continues.
        
        Args:
            listener: Bound, non-blocking listening socket
        """
        loop = asyncio.get_running_loop()
        port = listener.getsockname()[1]
        
        while self._running:
            try:
                conn, addr = await loop.sock_accept(listener)
            except asyncio.CancelledError:
                logger.debug(f"Accept loop on port {port} cancelled")
                raise
            except OSError as e:
                if not self._running:
                    break
                logger.error(f"Error accepting connection on port {port}: {e}", exc_info=True)
                continue
            
            logger.info(f"New connection from {addr} on port {port}")
            try:
                await self._start_session(conn)
            except OSError as e:
                logger.warning(f"Could not start session for {addr}: {e}")
                conn.close()
    
    async def _start_session(self, conn: socket.socket) -> Session:
        reader, writer = await asyncio.open_connection(sock=conn)
        session = Session(reader, writer, self._room)
        self._sessions.add(session)
        
        task = session.start()
        self._session_tasks.add(task)
        
        def _forget(done: asyncio.Task) -> None:
            self._session_tasks.discard(done)
            self._sessions.discard(session)
        
        task.add_done_callback(_forget)
        return session
