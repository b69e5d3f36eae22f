"""
Plain-text transcripts and handoff snapshots.

One file per sender, rewritten after every mutation, plus one immutable
snapshot per handoff. Files are the human-readable record of each lead;
the in-memory store remains the source of truth.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from lead_orchestrator.config import StorageConfig, settings
from lead_orchestrator.schemas.lead_schema import Conversation
from lead_orchestrator.utils import filename_timestamp, sanitize_for_filename, utcnow

logger = logging.getLogger(__name__)


def build_transcript(conversation: Conversation) -> str:
    """Header block with identity, fields and handoff state, then the message log."""
    pending = conversation.pending_handoff
    pending_text = json.dumps(pending.model_dump(mode="json")) if pending else "null"
    header = (
        "LEAD\n"
        f"- phone: {conversation.sender_id}\n"
        f"- name: {conversation.name or 'sin_nombre'}\n"
        f"- zone: {conversation.zone or 'sin_zona'}\n"
        f"- intent: {conversation.intent_summary or 'sin_detalle'}\n"
        f"- availability: {conversation.availability or 'sin_disponibilidad'}\n"
        f"- state: {conversation.state.value}\n"
        f"- createdAt: {conversation.created_at.isoformat()}\n"
        f"- handedOff: {str(conversation.handed_off).lower()}\n"
        f"- pendingHandoff: {pending_text}\n\n"
    )
    body = "\n".join(
        f"[{m.timestamp.isoformat()}] {m.origin.value}: {m.text}"
        for m in conversation.messages
    )
    return header + body + "\n"


class TranscriptWriter:
    """Writes transcripts and snapshots under the configured directories."""

    def __init__(
        self,
        storage: Optional[StorageConfig] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        storage = storage or settings.storage
        self.conversations_dir = Path(storage.conversations_dir)
        self.leads_dir = Path(storage.leads_dir)
        self._clock = clock
        for directory in (self.conversations_dir, self.leads_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def transcript_path(self, conversation: Conversation) -> Path:
        return self.conversations_dir / f"{sanitize_for_filename(conversation.sender_id)}.txt"

    def write(self, conversation: Conversation) -> Optional[Path]:
        """Overwrite the sender's transcript with the current state.

        Returns None when the file could not be written; the in-memory
        conversation is unaffected and processing continues.
        """
        path = self.transcript_path(conversation)
        try:
            path.write_text(build_transcript(conversation), encoding="utf-8")
        except OSError as exc:
            logger.error("Transcript write failed for %s: %s", conversation.sender_id, exc)
            return None
        return path

    def save_snapshot(self, conversation: Conversation, tag: str) -> Path:
        """Write an immutable copy of the transcript for a handoff event."""
        stem = "_".join([
            filename_timestamp(self._clock()),
            sanitize_for_filename(tag),
            sanitize_for_filename(conversation.sender_id),
            sanitize_for_filename(conversation.name or "sin_nombre"),
            sanitize_for_filename(conversation.zone or "sin_zona"),
        ])
        path = self.leads_dir / f"{stem}.txt"
        suffix = 1
        while path.exists():
            path = self.leads_dir / f"{stem}_{suffix}.txt"
            suffix += 1
        path.write_text(build_transcript(conversation), encoding="utf-8")
        logger.info("Handoff snapshot saved: %s", path.name)
        return path
