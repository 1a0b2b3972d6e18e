"""
Pydantic Models for King's Cooking Game State
Field aliases match the camelCase wire format carried in share URLs.
"""

from pydantic import BaseModel, Field
from typing import Annotated, List, Literal, Optional, Tuple, Union
from enum import Enum


STATE_VERSION = "1.0.0"
BOARD_SIZE = 3
OFF_BOARD = "off_board"
MAX_PLAYER_NAME_LENGTH = 20


class PieceType(str, Enum):
    """Piece type enumeration"""
    ROOK = "rook"
    KNIGHT = "knight"
    BISHOP = "bishop"
    QUEEN = "queen"
    PAWN = "pawn"


class PlayerColor(str, Enum):
    """Side enumeration. Light always moves first."""
    LIGHT = "light"
    DARK = "dark"

    @property
    def opponent(self) -> "PlayerColor":
        return PlayerColor.DARK if self is PlayerColor.LIGHT else PlayerColor.LIGHT


class GameStatus(str, Enum):
    """Game status enumeration"""
    PLAYING = "playing"
    LIGHT_WINS = "light_wins"
    DARK_WINS = "dark_wins"
    DRAW = "draw"


class GameWinner(str, Enum):
    """Winner enumeration; DRAW is set together with GameStatus.DRAW"""
    LIGHT = "light"
    DARK = "dark"
    DRAW = "draw"


PROMOTION_TYPES = (
    PieceType.QUEEN,
    PieceType.ROOK,
    PieceType.BISHOP,
    PieceType.KNIGHT,
)

Coordinate = Annotated[int, Field(ge=0, le=BOARD_SIZE - 1)]
# (row, col); serialized as a two element JSON array
Position = Tuple[Coordinate, Coordinate]
MoveTarget = Union[Position, Literal["off_board"]]


class Piece(BaseModel):
    """A piece on the board, in a court, or captured.

    ``position`` is None exactly when the piece is off the board.
    """
    id: str = Field(min_length=1)
    type: PieceType
    owner: PlayerColor
    position: Optional[Position] = None
    move_count: int = Field(0, ge=0, alias="moveCount")

    class Config:
        populate_by_name = True

    @property
    def is_on_board(self) -> bool:
        return self.position is not None


class PlayerInfo(BaseModel):
    """Player descriptor"""
    id: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=MAX_PLAYER_NAME_LENGTH)


class Move(BaseModel):
    """Move history record.

    ``piece`` is a snapshot of the moving piece taken before the move was
    applied. ``promoted_to`` is set only for completed pawn promotions.
    """
    from_pos: Position = Field(alias="from")
    to: MoveTarget
    piece: Piece
    captured: Optional[Piece] = None
    promoted_to: Optional[PieceType] = Field(None, alias="promotedTo")

    class Config:
        populate_by_name = True
        frozen = True

    @property
    def is_off_board(self) -> bool:
        return self.to == OFF_BOARD


BoardRow = Annotated[
    List[Optional[Piece]],
    Field(min_length=BOARD_SIZE, max_length=BOARD_SIZE),
]


class GameState(BaseModel):
    """Complete game state.

    Court and captured arrays are keyed by the color of the pieces they hold:
    ``light_court`` holds light pieces that scored through the dark edge,
    ``captured_light`` holds light pieces taken by dark.
    """
    version: str = STATE_VERSION
    game_id: str = Field(alias="gameId", min_length=1)
    board: List[BoardRow] = Field(min_length=BOARD_SIZE, max_length=BOARD_SIZE)
    current_player: PlayerColor = Field(PlayerColor.LIGHT, alias="currentPlayer")
    current_turn: int = Field(0, ge=0, alias="currentTurn")
    light_player: PlayerInfo = Field(alias="lightPlayer")
    dark_player: PlayerInfo = Field(alias="darkPlayer")
    light_court: List[Piece] = Field(default_factory=list, alias="lightCourt")
    dark_court: List[Piece] = Field(default_factory=list, alias="darkCourt")
    captured_light: List[Piece] = Field(
        default_factory=list, alias="capturedLight"
    )
    captured_dark: List[Piece] = Field(
        default_factory=list, alias="capturedDark"
    )
    status: GameStatus = GameStatus.PLAYING
    winner: Optional[GameWinner] = None
    move_history: List[Move] = Field(default_factory=list, alias="moveHistory")
    checksum: str = ""

    class Config:
        populate_by_name = True

    @property
    def is_terminal(self) -> bool:
        return self.status != GameStatus.PLAYING

    def court_for(self, color: PlayerColor) -> List[Piece]:
        """Scoring court holding pieces of ``color``."""
        return self.light_court if color == PlayerColor.LIGHT else self.dark_court

    def captured_for(self, color: PlayerColor) -> List[Piece]:
        """Captured array holding pieces of ``color``."""
        if color == PlayerColor.LIGHT:
            return self.captured_light
        return self.captured_dark

    def player_for(self, color: PlayerColor) -> PlayerInfo:
        return self.light_player if color == PlayerColor.LIGHT else self.dark_player
