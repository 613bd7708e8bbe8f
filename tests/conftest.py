"""
pytest configuration and fixtures.
"""

import asyncio
from typing import AsyncGenerator, Callable, List, Optional
import pytest
import pytest_asyncio

from config.settings import ServerConfig
from protocol.constants import HEADER_LENGTH
from protocol.framing import decode_header, encode_frame
from protocol.messages import ChatMessage
from server.server import ChatServer

TIMEOUT = 5.0


class RecordingWriter:
    """Stand-in for asyncio.StreamWriter that records writes."""
    
    def __init__(self, fail_on: Optional[int] = None, drain_delay: float = 0):
        self.chunks: List[bytes] = []
        self.fail_on = fail_on
        self.drain_delay = drain_delay
        self.draining = False
        self.overlapping_writes = 0
        self.closed = False
    
    def write(self, data: bytes) -> None:
        if self.draining:
            self.overlapping_writes += 1
        self.chunks.append(data)
    
    async def drain(self) -> None:
        self.draining = True
        try:
            await asyncio.sleep(self.drain_delay)
            if self.fail_on is not None and len(self.chunks) >= self.fail_on:
                raise ConnectionResetError("Connection lost")
        finally:
            self.draining = False
    
    def close(self) -> None:
        self.closed = True
    
    async def wait_closed(self) -> None:
        pass
    
    def get_extra_info(self, name, default=None):
        if name == 'peername':
            return ('127.0.0.1', 50000)
        return default


class ChatPeer:
    """Raw protocol peer talking to a server over TCP."""
    
    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        self.reader = reader
        self.writer = writer
    
    async def send(self, body: bytes) -> None:
        self.writer.write(encode_frame(body))
        await self.writer.drain()
    
    async def send_raw(self, data: bytes) -> None:
        self.writer.write(data)
        await self.writer.drain()
    
    async def receive(self) -> bytes:
        header = await asyncio.wait_for(self.reader.readexactly(HEADER_LENGTH), TIMEOUT)
        body_length = decode_header(header)
        return await asyncio.wait_for(self.reader.readexactly(body_length), TIMEOUT)
    
    async def receive_many(self, count: int) -> List[bytes]:
        return [await self.receive() for _ in range(count)]
    
    async def is_closed_by_server(self) -> bool:
        """True once the server closed the connection (EOF or reset)."""
        try:
            data = await asyncio.wait_for(self.reader.read(), TIMEOUT)
        except ConnectionError:
            return True
        return data == b''
    
    async def close(self) -> None:
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except ConnectionError:
            pass


async def wait_until(predicate: Callable[[], bool], timeout: float = TIMEOUT) -> None:
    """Poll until predicate holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not reached in time")
        await asyncio.sleep(0.01)


@pytest.fixture
def waiter():
    """Access to wait_until from tests."""
    return wait_until


@pytest.fixture
def recording_writer() -> RecordingWriter:
    return RecordingWriter()


@pytest.fixture
def make_writer() -> Callable[..., RecordingWriter]:
    return RecordingWriter


@pytest.fixture
def hello() -> ChatMessage:
    return ChatMessage.from_body(b"hello")


@pytest_asyncio.fixture
async def chat_server() -> AsyncGenerator[ChatServer, None]:
    """Chat server on an OS-chosen localhost port."""
    server = ChatServer(ServerConfig(host="127.0.0.1", ports=[0]))
    await server.start()
    
    yield server
    
    await server.stop()


@pytest_asyncio.fixture
async def connect(chat_server: ChatServer):
    """Factory opening raw peers to the test server."""
    peers: List[ChatPeer] = []
    
    async def _connect(wait_joined: bool = True) -> ChatPeer:
        expected = chat_server.room.participant_count + 1
        reader, writer = await asyncio.open_connection("127.0.0.1", chat_server.bound_ports[0])
        peer = ChatPeer(reader, writer)
        peers.append(peer)
        if wait_joined:
            await wait_until(lambda: chat_server.room.participant_count >= expected)
        return peer
    
    yield _connect
    
    for peer in peers:
        await peer.close()
