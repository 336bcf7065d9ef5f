"""Agent Friend storage layer -- transcript store and its record model."""

from agent_friend.storage.database import NullTranscriptStore, TranscriptStore, open_store
from agent_friend.storage.models import MessageRecord

__all__ = [
    "MessageRecord",
    "NullTranscriptStore",
    "TranscriptStore",
    "open_store",
]
