"""In-memory conversation store, one entry per normalized sender id."""

import logging
from typing import Optional

from lead_orchestrator.schemas.lead_schema import Conversation

logger = logging.getLogger(__name__)


class ConversationStore:
    """
    Owns every Conversation for the process lifetime.

    Conversations are created lazily on the first inbound message and never
    removed. Callers mutate a conversation only from a job running under that
    sender's serial queue slot; the store itself does no locking.
    """

    def __init__(self) -> None:
        self._conversations: dict[str, Conversation] = {}

    def get_or_create(self, sender_id: str, reply_address: str = "") -> Conversation:
        conversation = self._conversations.get(sender_id)
        if conversation is None:
            conversation = Conversation(sender_id=sender_id, reply_address=reply_address)
            self._conversations[sender_id] = conversation
            logger.info("New conversation created for %s", sender_id)
        elif reply_address:
            conversation.reply_address = reply_address
        return conversation

    def get(self, sender_id: str) -> Optional[Conversation]:
        return self._conversations.get(sender_id)

    def all(self) -> list[Conversation]:
        return list(self._conversations.values())

    def __contains__(self, sender_id: object) -> bool:
        return sender_id in self._conversations

    def __len__(self) -> int:
        return len(self._conversations)
