"""Protocol constants for chat framing.

These are protocol-level constants that should not be changed
without updating both client and server implementations.
"""

# Width in bytes of the length prefix preceding every body
HEADER_LENGTH = 4

# Maximum body size in bytes; larger declared lengths are rejected at decode
MAX_BODY_LENGTH = 512

# Header text is ASCII decimal, right-justified and padded with spaces
HEADER_ENCODING = 'ascii'
HEADER_PAD = ' '

# Number of delivered messages a room replays to new participants
MAX_RECENT_MESSAGES = 100
