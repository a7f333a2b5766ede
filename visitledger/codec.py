"""
Serialization of visit records to and from the per-key store blobs.

A record is a compact UTF-8 JSON object::

    {"path": ..., "duration": ..., "timestamp": ..., "visitor": ..., "audioGuide": ...}

The visit id is not part of the blob; it comes from the registry entry the
record was resolved through.
"""

import json
from typing import Any

from .errors import ParseFailure
from .types import FALLBACK_AUDIO_GUIDE, Visit, record_key


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class VisitCodec:
    """Encode and decode visit records."""

    @staticmethod
    def encode(visit: Visit) -> bytes:
        payload = {
            "path": visit.encrypted_path,
            "duration": visit.duration,
            "timestamp": visit.timestamp,
            "visitor": visit.visitor,
            "audioGuide": visit.audio_guide,
        }
        return json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")

    @staticmethod
    def decode(visit_id: str, data: bytes) -> Visit:
        """
        Decode a record blob into a Visit.

        Raises:
            ParseFailure: if the blob is not a well-formed record. The caller
                decides whether that is fatal; enumeration skips the key.
        """
        key = record_key(visit_id)
        try:
            obj = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ParseFailure(key, str(e)) from e

        if not isinstance(obj, dict):
            raise ParseFailure(key, f"expected object, got {type(obj).__name__}")

        path = obj.get("path")
        duration = obj.get("duration")
        timestamp = obj.get("timestamp")
        visitor = obj.get("visitor")
        if not isinstance(path, str):
            raise ParseFailure(key, "missing or invalid 'path'")
        if not _is_int(duration):
            raise ParseFailure(key, "missing or invalid 'duration'")
        if not _is_int(timestamp):
            raise ParseFailure(key, "missing or invalid 'timestamp'")
        if not isinstance(visitor, str):
            raise ParseFailure(key, "missing or invalid 'visitor'")

        audio_guide = obj.get("audioGuide") or FALLBACK_AUDIO_GUIDE
        if not isinstance(audio_guide, str):
            raise ParseFailure(key, "invalid 'audioGuide'")

        return Visit(
            id=visit_id,
            encrypted_path=path,
            duration=duration,
            timestamp=timestamp,
            visitor=visitor,
            audio_guide=audio_guide,
        )
