"""Transport messages carried in the URL fragment.

Three payload kinds share a ``type`` discriminator:

- ``full_state``: the complete game state, used for game creation and resync;
- ``delta``: one move plus the sender's pre-move turn and checksum;
- ``resync_request``: asks the peer to send its ``full_state``.
"""

from __future__ import annotations

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from ..models import MAX_PLAYER_NAME_LENGTH, GameState, MoveTarget, PieceType, Position

__all__ = [
    "DeltaMove",
    "DeltaPayload",
    "FullStatePayload",
    "PayloadType",
    "ResyncRequestPayload",
    "URL_PAYLOAD_ADAPTER",
    "UrlPayload",
]

PayloadType = Literal["full_state", "delta", "resync_request"]

PlayerName = Annotated[str, Field(min_length=1, max_length=MAX_PLAYER_NAME_LENGTH)]


class DeltaMove(BaseModel):
    """Move carried by a delta payload; ``promotion`` completes a pawn move."""
    from_pos: Position = Field(alias="from")
    to: MoveTarget
    promotion: Optional[PieceType] = None

    class Config:
        populate_by_name = True


class FullStatePayload(BaseModel):
    type: Literal["full_state"] = "full_state"
    game_state: GameState = Field(alias="gameState")
    player_name: Optional[PlayerName] = Field(None, alias="playerName")

    class Config:
        populate_by_name = True


class DeltaPayload(BaseModel):
    """Single move relative to the state identified by ``turn``/``checksum``."""
    type: Literal["delta"] = "delta"
    move: DeltaMove
    turn: int = Field(ge=0)
    checksum: str = Field(min_length=1)
    player_name: Optional[PlayerName] = Field(None, alias="playerName")

    class Config:
        populate_by_name = True


class ResyncRequestPayload(BaseModel):
    type: Literal["resync_request"] = "resync_request"
    player_name: Optional[PlayerName] = Field(None, alias="playerName")
    message: Optional[str] = Field(None, max_length=200)

    class Config:
        populate_by_name = True


UrlPayload = Annotated[
    Union[FullStatePayload, DeltaPayload, ResyncRequestPayload],
    Field(discriminator="type"),
]

URL_PAYLOAD_ADAPTER: TypeAdapter[UrlPayload] = TypeAdapter(UrlPayload)
