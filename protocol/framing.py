"""Frame header encoding and decoding functions."""

from protocol.constants import (
    HEADER_LENGTH,
    MAX_BODY_LENGTH,
    HEADER_ENCODING,
    HEADER_PAD,
)
from utils.exceptions import InvalidHeaderError, MessageTooLargeError


def encode_header(body_length: int) -> bytes:
    """
    Render a body length as a fixed-width decimal header.
    
    Args:
        body_length: Number of body bytes, 0 <= body_length <= MAX_BODY_LENGTH
        
    Returns:
        Header bytes of exactly HEADER_LENGTH characters
        
    Raises:
        TypeError: If body_length is not an int
        ValueError: If body_length is negative
        MessageTooLargeError: If body_length exceeds MAX_BODY_LENGTH
    """
    if not isinstance(body_length, int) or isinstance(body_length, bool):
        raise TypeError(f"Body length must be an int, got {body_length!r}")
    if body_length < 0:
        raise ValueError(f"Body length must be non-negative, got {body_length}")
    if body_length > MAX_BODY_LENGTH:
        raise MessageTooLargeError(
            f"Body length {body_length} exceeds limit {MAX_BODY_LENGTH}"
        )
    return str(body_length).rjust(HEADER_LENGTH, HEADER_PAD).encode(HEADER_ENCODING)


def decode_header(header: bytes) -> int:
    """
    Parse a header into the body length it announces.
    
    This is the only admission check on inbound traffic, so anything
    that is not a plain decimal length within bounds is rejected.
    
    Args:
        header: Exactly HEADER_LENGTH raw bytes
        
    Returns:
        Declared body length
        
    Raises:
        InvalidHeaderError: If the header is malformed or the length is too large
    """
    if len(header) != HEADER_LENGTH:
        raise InvalidHeaderError(
            f"Header must be {HEADER_LENGTH} bytes, got {len(header)}"
        )
    
    text = header.strip()
    if not text or not text.isdigit():
        raise InvalidHeaderError(f"Header is not a decimal length: {header!r}")
    
    body_length = int(text)
    if body_length > MAX_BODY_LENGTH:
        raise InvalidHeaderError(
            f"Declared body length {body_length} exceeds limit {MAX_BODY_LENGTH}"
        )
    return body_length


def encode_frame(body: bytes) -> bytes:
    """Build header plus body for one frame."""
    return encode_header(len(body)) + body
