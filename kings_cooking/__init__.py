"""King's Cooking: 3x3 variant-chess engine with URL-relayed peer sync."""

from .game_engine import (
    GameEngine,
    MoveErrorCode,
    MoveResult,
    apply_move,
    apply_promotion,
    create_initial_state,
)
from .models import (
    OFF_BOARD,
    GameState,
    GameStatus,
    GameWinner,
    Move,
    Piece,
    PieceType,
    PlayerColor,
    PlayerInfo,
)

__version__ = "0.1.0"

__all__ = [
    "OFF_BOARD",
    "GameEngine",
    "GameState",
    "GameStatus",
    "GameWinner",
    "Move",
    "MoveErrorCode",
    "MoveResult",
    "Piece",
    "PieceType",
    "PlayerColor",
    "PlayerInfo",
    "apply_move",
    "apply_promotion",
    "create_initial_state",
]
