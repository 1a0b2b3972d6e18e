"""URL codec: round trips, tolerance of URL noise and corrupted input."""

import base64
import json
import re
import zlib

import pytest

from kings_cooking.errors import CodecError
from kings_cooking.game_engine import GameEngine
from kings_cooking.models import OFF_BOARD, PieceType
from kings_cooking.sync.codec import (
    compress,
    decode_payload,
    decompress,
    encode_payload,
    get_compression_stats,
    payload_to_json,
)
from kings_cooking.sync.payloads import (
    DeltaMove,
    DeltaPayload,
    FullStatePayload,
    ResyncRequestPayload,
)


def _raw_fragment(data) -> str:
    """Encode arbitrary JSON the way the codec does, bypassing validation."""
    return _raw_text_fragment(json.dumps(data))


def _raw_text_fragment(text: str) -> str:
    packed = zlib.compress(text.encode("utf-8"))
    return base64.urlsafe_b64encode(packed).decode("ascii").rstrip("=")


@pytest.fixture
def played_state(default_state):
    engine = GameEngine.from_state(default_state)
    assert engine.make_move((2, 0), (0, 0)).success  # capture
    assert engine.make_move((0, 1), (2, 0)).success  # knight jumps into the gap
    assert engine.make_move((0, 0), (1, 0)).success
    return engine.get_game_state()


class TestRoundTrip:
    def test_full_state_round_trip(self, played_state):
        fragment = compress(FullStatePayload(game_state=played_state, player_name="Alice"))
        assert fragment is not None

        decoded = decompress(fragment)
        assert isinstance(decoded, FullStatePayload)
        assert decoded.player_name == "Alice"
        assert decoded.game_state.model_dump() == played_state.model_dump()
        assert decoded.game_state.checksum == played_state.checksum
        assert [m.from_pos for m in decoded.game_state.move_history] == [
            (2, 0), (0, 1), (0, 0)
        ]

    def test_delta_round_trip_with_off_board_target(self):
        payload = DeltaPayload(
            move=DeltaMove(from_pos=(1, 0), to=OFF_BOARD),
            turn=4,
            checksum="0123456789abcdef",
        )
        decoded = decompress(compress(payload))
        assert isinstance(decoded, DeltaPayload)
        assert decoded.move.from_pos == (1, 0)
        assert decoded.move.to == OFF_BOARD
        assert decoded.move.promotion is None
        assert decoded.turn == 4

    def test_delta_with_promotion(self):
        payload = DeltaPayload(
            move=DeltaMove(from_pos=(1, 1), to=(2, 1), promotion=PieceType.QUEEN),
            turn=0,
            checksum="abc",
        )
        decoded = decode_payload(encode_payload(payload))
        assert decoded.move.promotion == PieceType.QUEEN
        assert decoded.move.to == (2, 1)

    def test_resync_round_trip(self):
        decoded = decompress(compress(ResyncRequestPayload(player_name="Bob")))
        assert isinstance(decoded, ResyncRequestPayload)
        assert decoded.player_name == "Bob"
        assert decoded.message is None

    def test_accepts_mappings(self):
        data = {"type": "resync_request", "message": "please"}
        decoded = decompress(compress(data))
        assert decoded.message == "please"


class TestEncoding:
    def test_fragment_is_url_safe(self, played_state):
        fragment = encode_payload(FullStatePayload(game_state=played_state))
        assert re.fullmatch(r"[A-Za-z0-9_-]+", fragment)

    def test_encoding_is_deterministic(self, played_state):
        payload = FullStatePayload(game_state=played_state)
        assert encode_payload(payload) == encode_payload(payload.model_copy(deep=True))

    def test_wire_format_uses_camel_case(self, played_state):
        text = payload_to_json(FullStatePayload(game_state=played_state))
        data = json.loads(text)
        assert "gameState" in data
        assert "lightCourt" in data["gameState"]
        assert "moveCount" in data["gameState"]["moveHistory"][0]["piece"]
        assert data["gameState"]["moveHistory"][0]["from"] == [2, 0]

    def test_compression_level_from_settings(self, default_state, monkeypatch):
        from kings_cooking.config import get_settings

        payload = FullStatePayload(game_state=default_state)
        monkeypatch.setenv("KINGS_COOKING_COMPRESSION_LEVEL", "0")
        get_settings.cache_clear()
        stored = encode_payload(payload)
        assert len(stored) > len(encode_payload(payload, level=9))
        assert decode_payload(stored).game_state.checksum == default_state.checksum

    def test_compression_stats(self, played_state):
        stats = get_compression_stats(FullStatePayload(game_state=played_state))
        assert stats.compressed_size < stats.original_size
        assert 0 < stats.ratio < 1
        assert stats.savings_percent > 0


class TestDecodingTolerance:
    def test_leading_hash_and_whitespace(self, default_state):
        fragment = encode_payload(FullStatePayload(game_state=default_state))
        for text in (f"#{fragment}", f"  {fragment}\n", f" #{fragment} "):
            assert decompress(text) is not None

    @pytest.mark.parametrize("text", ["", "#", "   ", "not base64 at all!!", "@@@@"])
    def test_garbage_returns_none(self, text):
        assert decompress(text) is None

    def test_truncated_fragment_returns_none(self, played_state):
        fragment = encode_payload(FullStatePayload(game_state=played_state))
        assert decompress(fragment[: len(fragment) // 2]) is None

    def test_valid_encoding_of_invalid_schema_returns_none(self):
        bad = {"type": "delta", "move": {"from": [0, 0], "to": [1, 0]}, "turn": -1, "checksum": "x"}
        assert decompress(_raw_fragment(bad)) is None

    def test_out_of_range_position_returns_none(self):
        bad = {"type": "delta", "move": {"from": [0, 3], "to": [1, 0]}, "turn": 0, "checksum": "x"}
        assert decompress(_raw_fragment(bad)) is None

    def test_unknown_payload_type_returns_none(self):
        assert decompress(_raw_fragment({"type": "chat", "text": "hi"})) is None

    def test_non_json_returns_none(self):
        packed = zlib.compress(b"\xff\xfe not json")
        fragment = base64.urlsafe_b64encode(packed).decode("ascii").rstrip("=")
        assert decompress(fragment) is None

    def test_compress_returns_none_for_invalid_payload(self):
        assert compress({"type": "full_state"}) is None

    @pytest.mark.parametrize("value", [None, 42, "delta", ["delta"], object()])
    def test_compress_returns_none_for_non_payloads(self, value):
        assert compress(value) is None

    def test_deeply_nested_json_returns_none(self):
        fragment = _raw_text_fragment("[" * 200000)
        assert len(fragment) < 2000
        assert decompress(fragment) is None


class TestStrictDecoding:
    def test_stage_is_reported(self):
        with pytest.raises(CodecError) as excinfo:
            decode_payload("@@@@")
        assert excinfo.value.context["stage"] == "base64"

    def test_validation_stage(self):
        with pytest.raises(CodecError) as excinfo:
            decode_payload(_raw_fragment({"type": "resync_request", "playerName": ""}))
        assert excinfo.value.context["stage"] == "validate"

    def test_empty_input(self):
        with pytest.raises(CodecError) as excinfo:
            decode_payload("#")
        assert excinfo.value.context["stage"] == "input"

    def test_nesting_too_deep_is_a_json_error(self):
        with pytest.raises(CodecError) as excinfo:
            decode_payload(_raw_text_fragment("[" * 200000 + "]" * 200000))
        assert excinfo.value.context["stage"] == "json"

    @pytest.mark.parametrize("value", [None, 3.5, object()])
    def test_encoding_non_payload_is_a_serialize_error(self, value):
        with pytest.raises(CodecError) as excinfo:
            encode_payload(value)
        assert excinfo.value.context["stage"] == "serialize"
