"""Protocol module for frame encoding, decoding, and per-connection I/O."""

from protocol.constants import HEADER_LENGTH, MAX_BODY_LENGTH, MAX_RECENT_MESSAGES
from protocol.framing import encode_header, decode_header, encode_frame
from protocol.messages import ChatMessage
from protocol.states import ReadState
from protocol.outbound import OutboundQueue
from protocol.reader import FrameReader, READ_ERRORS

__all__ = [
    'HEADER_LENGTH',
    'MAX_BODY_LENGTH',
    'MAX_RECENT_MESSAGES',
    'encode_header',
    'decode_header',
    'encode_frame',
    'ChatMessage',
    'ReadState',
    'OutboundQueue',
    'FrameReader',
    'READ_ERRORS',
]
