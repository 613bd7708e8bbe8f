"""Server module: chat room, sessions and connection acceptor."""

from server.room import ChatParticipant, ChatRoom
from server.session import Session
from server.server import ChatServer

__all__ = [
    'ChatParticipant',
    'ChatRoom',
    'Session',
    'ChatServer',
]
