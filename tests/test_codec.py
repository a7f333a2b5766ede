"""Tests for visitledger.codec: record blob encoding."""

import json

import pytest

from visitledger.codec import VisitCodec
from visitledger.errors import ParseFailure
from visitledger.types import FALLBACK_AUDIO_GUIDE

from conftest import make_visit


class TestEncode:
    def test_field_names_and_order(self):
        data = VisitCodec.encode(make_visit(duration=45))
        obj = json.loads(data)
        assert list(obj) == ["path", "duration", "timestamp", "visitor", "audioGuide"]
        assert obj["duration"] == 45
        assert obj["path"] == "FHE-e30="

    def test_id_not_in_blob(self):
        obj = json.loads(VisitCodec.encode(make_visit()))
        assert "id" not in obj

    def test_deterministic(self):
        visit = make_visit()
        assert VisitCodec.encode(visit) == VisitCodec.encode(visit)

    def test_non_ascii_is_utf8(self):
        data = VisitCodec.encode(make_visit(visitor="Zoë"))
        assert "Zoë".encode("utf-8") in data


class TestDecode:
    def test_decode_uses_registry_id(self):
        visit = make_visit(id="1-aaaaaaa")
        decoded = VisitCodec.decode("1-aaaaaaa", VisitCodec.encode(visit))
        assert decoded == visit

    def test_missing_audio_guide_falls_back(self):
        data = json.dumps({
            "path": "FHE-x", "duration": 10, "timestamp": 5, "visitor": "0xA",
        }).encode()
        assert VisitCodec.decode("v", data).audio_guide == FALLBACK_AUDIO_GUIDE

    @pytest.mark.parametrize("data", [
        b"not json",
        b"\xff\xfe",
        b"[1, 2, 3]",
        b'{"path": "x", "duration": "10", "timestamp": 1, "visitor": "a"}',
        b'{"path": "x", "duration": 10, "visitor": "a"}',
        b'{"duration": 10, "timestamp": 1, "visitor": "a"}',
        b'{"path": "x", "duration": true, "timestamp": 1, "visitor": "a"}',
        b'{"path": "x", "duration": 10, "timestamp": 1, "visitor": null}',
    ])
    def test_malformed_raises_parse_failure(self, data):
        with pytest.raises(ParseFailure) as exc_info:
            VisitCodec.decode("bad", data)
        assert exc_info.value.key == "visit_bad"
