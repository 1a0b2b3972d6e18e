"""Share-link builders and parsers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..config import get_settings
from ..errors import CodecError
from ..models import GameState, MoveTarget, PieceType, PlayerColor, Position
from .codec import decode_payload, encode_payload
from .payloads import (
    DeltaMove,
    DeltaPayload,
    FullStatePayload,
    ResyncRequestPayload,
    UrlPayload,
)

__all__ = [
    "ParseResult",
    "build_complete_url",
    "build_delta_url",
    "build_full_state_url",
    "build_resync_url",
    "extract_fragment",
    "extract_opponent_name",
    "parse_url_hash",
]


def build_full_state_url(state: GameState, player_name: Optional[str] = None) -> str:
    """``#fragment`` holding ``state`` as a full_state payload."""
    payload = FullStatePayload(game_state=state, player_name=player_name)
    return f"#{encode_payload(payload)}"


def build_delta_url(
    from_pos: Position,
    to: MoveTarget,
    turn: int,
    checksum: str,
    player_name: Optional[str] = None,
    promotion: Optional[PieceType] = None,
) -> str:
    """``#fragment`` for one move made from the state at ``turn``/``checksum``."""
    payload = DeltaPayload(
        move=DeltaMove(from_pos=from_pos, to=to, promotion=promotion),
        turn=turn,
        checksum=checksum,
        player_name=player_name,
    )
    return f"#{encode_payload(payload)}"


def build_resync_url(
    player_name: Optional[str] = None, message: Optional[str] = None
) -> str:
    payload = ResyncRequestPayload(player_name=player_name, message=message)
    return f"#{encode_payload(payload)}"


def build_complete_url(hash_fragment: str, base_url: Optional[str] = None) -> str:
    """Join a base URL (without trailing slash) and a fragment."""
    if base_url is None:
        base_url = get_settings().base_url
    base = base_url.partition("#")[0]
    if base.endswith("/"):
        base = base[:-1]
    fragment = hash_fragment if hash_fragment.startswith("#") else f"#{hash_fragment}"
    return f"{base}{fragment}"


def extract_fragment(url_or_fragment: str) -> str:
    """Fragment part of a full URL; bare fragments are returned stripped."""
    text = url_or_fragment.strip()
    if "#" in text:
        return text.partition("#")[2]
    return text


@dataclass
class ParseResult:
    success: bool
    payload: Optional[UrlPayload] = None
    error: Optional[str] = None


def parse_url_hash(url_or_fragment: str) -> ParseResult:
    """Decode the payload in a share link into a ParseResult."""
    fragment = extract_fragment(url_or_fragment)
    if not fragment.strip():
        return ParseResult(success=False, error="Empty hash fragment")
    try:
        payload = decode_payload(fragment)
    except CodecError:
        return ParseResult(
            success=False,
            error="Failed to decompress or validate payload. The URL may be corrupted.",
        )
    return ParseResult(success=True, payload=payload)


def extract_opponent_name(
    payload: UrlPayload, my_color: Optional[PlayerColor] = None
) -> Optional[str]:
    """Name of the peer that produced ``payload``.

    For full_state payloads the opponent is the other side of ``my_color``;
    without a color the game creator (light) is assumed.
    """
    if isinstance(payload, FullStatePayload):
        if payload.player_name:
            return payload.player_name
        if my_color is None:
            return payload.game_state.light_player.name
        return payload.game_state.player_for(my_color.opponent).name
    return payload.player_name
