"""Pre-game piece selection and initial placement.

Each side fields exactly three pieces on its home row. The pool follows a
standard chess set (no king): at most two rooks, knights and bishops, one
queen and eight pawns per side.
"""
from __future__ import annotations

import random
import uuid
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple, TypeVar

from ..board_manager import Board, BoardManager
from ..models import BOARD_SIZE, Piece, PieceType, PlayerColor
from .geometry import BoardGeometry

T = TypeVar("T")

__all__ = [
    "DEFAULT_PIECES",
    "FirstMover",
    "PIECE_POOL",
    "SelectionMode",
    "assign_sides",
    "create_board_with_pieces",
    "create_default_board",
    "generate_random_pieces",
    "get_available_pieces",
    "resolve_selection",
    "validate_selection",
]

PIECE_POOL: Dict[PieceType, int] = {
    PieceType.ROOK: 2,
    PieceType.KNIGHT: 2,
    PieceType.BISHOP: 2,
    PieceType.QUEEN: 1,
    PieceType.PAWN: 8,
}

DEFAULT_PIECES: Tuple[PieceType, PieceType, PieceType] = (
    PieceType.ROOK,
    PieceType.KNIGHT,
    PieceType.BISHOP,
)


class SelectionMode(str, Enum):
    """How the two sides obtain their pieces."""
    MIRRORED = "mirrored"
    INDEPENDENT = "independent"
    RANDOM = "random"


class FirstMover(str, Enum):
    """Which player takes the light side. Light always moves first."""
    PLAYER1 = "player1"
    PLAYER2 = "player2"


def assign_sides(player1: T, player2: T, first_mover: FirstMover) -> Tuple[T, T]:
    """Order a per-player pair as ``(light, dark)``.

    Works for names, PlayerInfo records or piece line-ups alike.
    """
    if FirstMover(first_mover) == FirstMover.PLAYER1:
        return player1, player2
    return player2, player1


def get_available_pieces(selected: Sequence[PieceType]) -> List[PieceType]:
    """Piece types that can still be added without exceeding the pool."""
    counts = {piece_type: 0 for piece_type in PIECE_POOL}
    for piece_type in selected:
        counts[PieceType(piece_type)] += 1
    return [t for t, limit in PIECE_POOL.items() if counts[t] < limit]


def validate_selection(selected: Sequence[PieceType]) -> List[PieceType]:
    """Return ``selected`` as PieceTypes or raise ValueError if it is illegal."""
    if len(selected) != BOARD_SIZE:
        raise ValueError(
            f"Exactly {BOARD_SIZE} pieces must be selected, got {len(selected)}"
        )
    chosen: List[PieceType] = []
    for piece_type in selected:
        piece_type = PieceType(piece_type)
        if piece_type not in get_available_pieces(chosen):
            raise ValueError(f"Piece pool exhausted for {piece_type.value}")
        chosen.append(piece_type)
    return chosen


def generate_random_pieces(seed: str) -> List[PieceType]:
    """Pick three pieces deterministically from ``seed``.

    The same seed always yields the same selection, so both peers can derive
    a random line-up from a shared value (typically the game id).
    """
    rng = random.Random(seed)
    selected: List[PieceType] = []
    for _ in range(BOARD_SIZE):
        selected.append(rng.choice(get_available_pieces(selected)))
    return selected


def resolve_selection(
    mode: SelectionMode,
    light_pieces: Optional[Sequence[PieceType]] = None,
    dark_pieces: Optional[Sequence[PieceType]] = None,
    seed: Optional[str] = None,
) -> Tuple[List[PieceType], List[PieceType]]:
    """Turn a selection mode and the players' choices into two line-ups.

    - mirrored: light chooses, dark receives the same pieces;
    - independent: both sides choose;
    - random: both sides receive the same seeded random pieces.
    """
    mode = SelectionMode(mode)
    if mode == SelectionMode.RANDOM:
        pieces = generate_random_pieces(seed if seed is not None else uuid.uuid4().hex)
        return list(pieces), list(pieces)

    if light_pieces is None:
        raise ValueError(f"{mode.value} selection requires light pieces")
    light = validate_selection(light_pieces)

    if mode == SelectionMode.MIRRORED:
        return light, list(light)

    if dark_pieces is None:
        raise ValueError("independent selection requires dark pieces")
    return light, validate_selection(dark_pieces)


def _place_row(board: Board, pieces: Sequence[PieceType], color: PlayerColor) -> None:
    row = BoardGeometry.home_row(color)
    for col, piece_type in enumerate(pieces):
        board[row][col] = Piece(
            id=str(uuid.uuid4()),
            type=PieceType(piece_type),
            owner=color,
            position=(row, col),
            move_count=0,
        )


def create_board_with_pieces(
    light_pieces: Sequence[PieceType], dark_pieces: Sequence[PieceType]
) -> Board:
    """Board with light on row 2 and dark on row 0, columns in selection order."""
    board = BoardManager.empty_board()
    _place_row(board, validate_selection(light_pieces), PlayerColor.LIGHT)
    _place_row(board, validate_selection(dark_pieces), PlayerColor.DARK)
    return board


def create_default_board() -> Board:
    """Rook, knight and bishop for each side."""
    return create_board_with_pieces(DEFAULT_PIECES, DEFAULT_PIECES)
