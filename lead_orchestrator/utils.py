"""Shared utilities used across the lead orchestrator."""

import re
from datetime import datetime, timezone
from typing import Optional

UNKNOWN_SENDER = "unknown"
MAX_FILENAME_PART = 40


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_sender(value: Optional[str]) -> str:
    """Reduce a transport address to its digits, the stable conversation key.

    Examples:
        >>> normalize_sender("whatsapp:+54 9 341 555-1234")
        '5493415551234'
        >>> normalize_sender("")
        'unknown'
    """
    digits = re.sub(r"[^\d]", "", str(value or ""))
    return digits or UNKNOWN_SENDER


def sanitize_for_filename(value: Optional[str]) -> str:
    """Make a value safe to embed in a file name.

    Examples:
        >>> sanitize_for_filename("Ana María")
        'ana_mara'
        >>> sanitize_for_filename("")
        'na'
    """
    cleaned = re.sub(r"\s+", "_", str(value or "").strip().lower())
    cleaned = re.sub(r"[^a-z0-9_\-]", "", cleaned)
    return cleaned[:MAX_FILENAME_PART] or "na"


def filename_timestamp(moment: datetime) -> str:
    """Format a datetime as ``YYYYmmdd_HHMMSS`` for snapshot file names."""
    return moment.strftime("%Y%m%d_%H%M%S")
