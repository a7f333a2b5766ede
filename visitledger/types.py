"""
Data types for museum visit records.
"""

import random
import re
import string
import time
from dataclasses import dataclass, replace
from typing import Optional


# Store layout: one registry blob plus one record blob per visit
REGISTRY_KEY = "visit_keys"
RECORD_KEY_PREFIX = "visit_"

DEFAULT_DURATION = 30  # minutes
DEFAULT_AUDIO_GUIDE = "Generated with FHE"
# Label shown for records written before the audio guide field existed
FALLBACK_AUDIO_GUIDE = "Custom Tour"

_ID_SUFFIX_ALPHABET = string.digits + string.ascii_lowercase
_ID_SUFFIX_LENGTH = 7

_LEADING_INT_RE = re.compile(r'^[+-]?[0-9]+')


def record_key(visit_id: str) -> str:
    """Store key holding the serialized record for a visit id."""
    return f"{RECORD_KEY_PREFIX}{visit_id}"


def now_epoch() -> int:
    """Current time in whole seconds since the epoch."""
    return int(time.time())


def new_visit_id(now_ms: Optional[int] = None) -> str:
    """Generate a visit id: ``<epoch-ms>-<7 random base36 chars>``."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(random.choices(_ID_SUFFIX_ALPHABET, k=_ID_SUFFIX_LENGTH))
    return f"{now_ms}-{suffix}"


def parse_duration(text) -> int:
    """Parse a duration in minutes from user input.

    Takes the leading integer of the stripped text, like ``parseInt``.
    Anything that yields no positive number falls back to DEFAULT_DURATION.
    """
    if isinstance(text, int) and not isinstance(text, bool):
        return text if text > 0 else DEFAULT_DURATION
    if not isinstance(text, str):
        return DEFAULT_DURATION
    match = _LEADING_INT_RE.match(text.strip())
    if not match:
        return DEFAULT_DURATION
    value = int(match.group(0))
    return value if value > 0 else DEFAULT_DURATION


@dataclass(frozen=True)
class Visit:
    """
    A single museum visit as resolved from the record store.

    ``encrypted_path`` is an opaque ciphertext blob and is never decoded here.
    ``timestamp`` and ``visitor`` are fixed at creation; ``audio_guide`` is the
    only field a later write may change.
    """
    id: str
    encrypted_path: str
    duration: int
    timestamp: int
    visitor: str
    audio_guide: str = DEFAULT_AUDIO_GUIDE

    @property
    def short_id(self) -> str:
        """Abbreviated id for list display."""
        return self.id[:4]

    def with_audio_guide(self, label: str) -> "Visit":
        return replace(self, audio_guide=label)


@dataclass
class VisitDraft:
    """Form input for a visit that has not been submitted yet."""
    path: str = ""
    duration: str = ""
    preferences: str = ""

    def missing_fields(self) -> list[str]:
        """Names of required fields that are still empty."""
        missing = []
        if not self.path:
            missing.append("path")
        if not self.duration:
            missing.append("duration")
        return missing


@dataclass(frozen=True)
class VisitStats:
    """Aggregate figures over the resolved visit set."""
    count: int
    total_duration: int
    average_duration: int


@dataclass(frozen=True)
class DurationBar:
    """One row of the recent-durations chart."""
    label: str
    duration: int
    ratio: float
