"""
Integration tests running the chat server on localhost.
"""

import asyncio
import pytest

from config.settings import ServerConfig
from protocol.constants import MAX_BODY_LENGTH, MAX_RECENT_MESSAGES
from server.server import ChatServer


class TestBroadcast:
    """Tests for history replay and broadcast over real connections."""
    
    @pytest.mark.asyncio
    async def test_history_replay_then_broadcast(self, chat_server, connect, waiter):
        """Test that a late joiner first gets history, then live messages."""
        a = await connect()
        await a.send(b"hello")
        assert await a.receive() == b"hello"
        
        b = await connect()
        assert await b.receive() == b"hello"
        
        await a.send(b"world")
        assert await a.receive() == b"world"
        assert await b.receive() == b"world"
    
    @pytest.mark.asyncio
    async def test_sender_gets_echo(self, connect):
        a = await connect()
        await a.send(b"echo me")
        
        assert await a.receive() == b"echo me"
    
    @pytest.mark.asyncio
    async def test_empty_body(self, connect):
        a = await connect()
        await a.send(b"")
        
        assert await a.receive() == b""
    
    @pytest.mark.asyncio
    async def test_burst_arrives_in_order(self, connect):
        """Test that many frames reach another peer whole and in order."""
        a = await connect()
        b = await connect()
        bodies = [f"line {i}".encode() * 20 for i in range(200)]
        
        for body in bodies:
            a.writer.write(b"%4d" % len(body) + body)
        await a.writer.drain()
        
        assert await b.receive_many(len(bodies)) == bodies
        assert await a.receive_many(len(bodies)) == bodies
    
    @pytest.mark.asyncio
    async def test_only_most_recent_history_replayed(self, chat_server, connect):
        """Test that after 101 messages a newcomer sees messages 2 through 101."""
        total = MAX_RECENT_MESSAGES + 1
        a = await connect()
        for i in range(1, total + 1):
            await a.send(f"message {i}".encode())
        assert len(await a.receive_many(total)) == total
        
        b = await connect()
        replay = await b.receive_many(MAX_RECENT_MESSAGES)
        
        assert replay == [f"message {i}".encode() for i in range(2, total + 1)]
        
        await a.send(b"after")
        assert await b.receive() == b"after"


class TestFrameLimits:
    """Tests for body length admission."""
    
    @pytest.mark.asyncio
    async def test_max_length_body_accepted(self, connect):
        a = await connect()
        body = b"x" * MAX_BODY_LENGTH
        
        await a.send(body)
        assert await a.receive() == body
    
    @pytest.mark.asyncio
    async def test_oversized_body_closes_connection(self, chat_server, connect, waiter):
        """Test that announcing one byte over the limit gets the peer disconnected."""
        a = await connect()
        body = b"x" * (MAX_BODY_LENGTH + 1)
        
        await a.send_raw(b"%4d" % len(body) + body)
        
        assert await a.is_closed_by_server()
        await waiter(lambda: chat_server.room.participant_count == 0)
        assert chat_server.room.history == ()
    
    @pytest.mark.asyncio
    async def test_malformed_header_closes_only_that_connection(self, chat_server, connect):
        good = await connect()
        bad = await connect()
        
        await bad.send_raw(b"nope")
        assert await bad.is_closed_by_server()
        
        await good.send(b"still here")
        assert await good.receive() == b"still here"


class TestConnectionFailures:
    """Tests for containment of per-connection failures."""
    
    @pytest.mark.asyncio
    async def test_disconnected_participant_does_not_block_others(self, chat_server, connect, waiter):
        a = await connect()
        b = await connect()
        gone = await connect()
        
        gone.writer.transport.abort()
        
        await a.send(b"anyone?")
        assert await a.receive() == b"anyone?"
        assert await b.receive() == b"anyone?"
        await waiter(lambda: chat_server.room.participant_count == 2)
    
    @pytest.mark.asyncio
    async def test_session_removed_after_disconnect(self, chat_server, connect, waiter):
        a = await connect()
        await waiter(lambda: len(chat_server.sessions) == 1)
        
        await a.close()
        
        await waiter(lambda: len(chat_server.sessions) == 0)
        assert chat_server.room.participant_count == 0


class TestChatServerLifecycle:
    """Tests for starting and stopping the acceptor."""
    
    @pytest.mark.asyncio
    async def test_multiple_ports_share_one_room(self, waiter):
        server = ChatServer(ServerConfig(host="127.0.0.1", ports=[0, 0]))
        await server.start()
        try:
            first_port, second_port = server.bound_ports
            assert first_port != second_port
            
            r1, w1 = await asyncio.open_connection("127.0.0.1", first_port)
            r2, w2 = await asyncio.open_connection("127.0.0.1", second_port)
            await waiter(lambda: server.room.participant_count == 2)
            
            w1.write(b"   5hello")
            await w1.drain()
            
            assert await asyncio.wait_for(r1.readexactly(9), 5) == b"   5hello"
            assert await asyncio.wait_for(r2.readexactly(9), 5) == b"   5hello"
            
            w1.close()
            w2.close()
        finally:
            await server.stop()
    
    @pytest.mark.asyncio
    async def test_failed_accept_does_not_stop_acceptor(self, monkeypatch, waiter):
        """Test that accepting goes on after one accept call fails."""
        loop = asyncio.get_running_loop()
        real_accept = loop.sock_accept
        calls = []
        
        async def flaky_accept(sock):
            calls.append(sock)
            if len(calls) == 1:
                raise OSError(24, "Too many open files")
            return await real_accept(sock)
        
        monkeypatch.setattr(loop, "sock_accept", flaky_accept)
        server = ChatServer(ServerConfig(host="127.0.0.1", ports=[0]))
        await server.start()
        try:
            await waiter(lambda: len(calls) >= 2)
            assert server.running
            
            reader, writer = await asyncio.open_connection("127.0.0.1", server.bound_ports[0])
            writer.write(b"   2hi")
            await writer.drain()
            
            assert await asyncio.wait_for(reader.readexactly(6), 5) == b"   2hi"
            writer.close()
        finally:
            await server.stop()
    
    @pytest.mark.asyncio
    async def test_stop_closes_sessions(self, connect, chat_server):
        a = await connect()
        
        await chat_server.stop()
        
        assert not chat_server.running
        assert chat_server.sessions == set()
        assert await a.is_closed_by_server()
    
    @pytest.mark.asyncio
    async def test_bind_failure_raises(self, chat_server):
        taken = chat_server.bound_ports[0]
        other = ChatServer(ServerConfig(host="127.0.0.1", ports=[taken]))
        
        with pytest.raises(OSError):
            await other.start()
        assert other.bound_ports == []
