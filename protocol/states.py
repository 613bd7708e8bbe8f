"""Read state definitions shared by server sessions and clients."""

from enum import Enum


class ReadState(Enum):
    """States of the inbound read state machine."""
    
    AWAIT_HEADER = 'await_header'   # Reading the fixed-width length prefix
    AWAIT_BODY = 'await_body'       # Reading the announced number of body bytes
    CLOSED = 'closed'               # Terminal; connection is unusable
