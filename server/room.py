"""Chat room broadcasting delivered messages to every participant."""

from collections import deque
from typing import Deque, Protocol, Set, Tuple

from protocol.constants import MAX_RECENT_MESSAGES
from protocol.messages import ChatMessage
from utils.logging import get_logger

logger = get_logger(__name__)


class ChatParticipant(Protocol):
    """Anything the room can hand a message to."""
    
    def deliver(self, message: ChatMessage) -> None:
        ...


class ChatRoom:
    """
    Single broadcast domain shared by all sessions of a server.
    
    Keeps the most recent messages and replays them to every participant
    that joins, so a newcomer sees the recent conversation before any new
    message. Runs on the event loop thread only, so no locking is needed.
    """
    
    def __init__(self, max_recent: int = MAX_RECENT_MESSAGES):
        """
        Initialize an empty room.
        
        Args:
            max_recent: Number of delivered messages kept for replay
        """
        self._participants: Set[ChatParticipant] = set()
        self._recent: Deque[ChatMessage] = deque(maxlen=max_recent)
    
    @property
    def participant_count(self) -> int:
        return len(self._participants)
    
    @property
    def history(self) -> Tuple[ChatMessage, ...]:
        """Snapshot of the recent history, oldest first."""
        return tuple(self._recent)
    
    def __contains__(self, participant: object) -> bool:
        return participant in self._participants
    
    def join(self, participant: ChatParticipant) -> None:
        """
        Add a participant and replay the recent history to it.
        
        Args:
            participant: Newly connected participant
        """
        self._participants.add(participant)
        logger.debug(
            f"Participant joined, replaying {len(self._recent)} message(s); "
            f"{len(self._participants)} participant(s) in room"
        )
        for message in list(self._recent):
            self._deliver_to(participant, message)
    
    def leave(self, participant: ChatParticipant) -> None:
        """Remove a participant; does nothing if it already left."""
        if participant in self._participants:
            self._participants.discard(participant)
            logger.debug(f"Participant left; {len(self._participants)} participant(s) in room")
    
    def deliver(self, message: ChatMessage) -> None:
        """
        Record a message in the history and broadcast it to everyone,
        the sender included.
        
        Args:
            message: Message received from one of the participants
        """
        logger.info(f"[{message.text()}]")
        
        self._recent.append(message)
        for participant in list(self._participants):
            self._deliver_to(participant, message)
    
    def _deliver_to(self, participant: ChatParticipant, message: ChatMessage) -> None:
        # One failing participant must not stop the broadcast
        try:
            participant.deliver(message)
        except Exception as e:
            logger.warning(f"Delivery to participant {participant!r} failed: {e}", exc_info=True)
