"""Message structure definitions."""

from dataclasses import dataclass

from protocol.constants import HEADER_LENGTH, MAX_BODY_LENGTH
from protocol.framing import encode_header, decode_header
from utils.exceptions import InvalidHeaderError, MessageTooLargeError


@dataclass(frozen=True)
class ChatMessage:
    """One chat frame: a body and the header derived from its length."""
    
    body: bytes
    
    def __post_init__(self):
        if len(self.body) > MAX_BODY_LENGTH:
            raise MessageTooLargeError(
                f"Body size {len(self.body)} exceeds limit {MAX_BODY_LENGTH}"
            )
    
    @classmethod
    def from_body(cls, body: bytes) -> 'ChatMessage':
        """
        Build a message from raw body bytes.
        
        Args:
            body: Payload bytes
            
        Returns:
            ChatMessage instance
            
        Raises:
            MessageTooLargeError: If body exceeds MAX_BODY_LENGTH
        """
        return cls(body=bytes(body))
    
    @classmethod
    def from_text(cls, line: str) -> 'ChatMessage':
        """
        Build a message from a console line.
        
        The trailing newline is not part of the body.
        """
        return cls.from_body(line.rstrip('\r\n').encode('utf-8'))
    
    @classmethod
    def parse(cls, data: bytes) -> 'ChatMessage':
        """
        Parse a complete frame (header plus body).
        
        Args:
            data: Raw bytes of exactly one frame
            
        Returns:
            Parsed ChatMessage instance
            
        Raises:
            InvalidHeaderError: If the header is malformed or disagrees with the data
        """
        body_length = decode_header(data[:HEADER_LENGTH])
        body = data[HEADER_LENGTH:]
        if len(body) != body_length:
            raise InvalidHeaderError(
                f"Header declares {body_length} bytes but frame carries {len(body)}"
            )
        return cls(body=body)
    
    @property
    def body_length(self) -> int:
        return len(self.body)
    
    @property
    def header(self) -> bytes:
        return encode_header(self.body_length)
    
    @property
    def data(self) -> bytes:
        """Serialized frame as it goes on the wire."""
        return self.header + self.body
    
    def __len__(self) -> int:
        return HEADER_LENGTH + self.body_length
    
    def text(self) -> str:
        """Body decoded for display; undecodable bytes are replaced."""
        return self.body.decode('utf-8', errors='replace')
