"""Coordinate helpers for the 3×3 board.

Rows are numbered from the dark side: dark pieces start on row 0 and light
pieces on row 2. "Forward" for light is toward row 0, for dark toward row 2,
and each side scores by leaving the board across its opponent's edge.
"""
from __future__ import annotations

from typing import Iterator, Tuple

from ..models import BOARD_SIZE, PieceType, PlayerColor, Position

__all__ = [
    "BoardGeometry",
    "DIAGONAL_DIRECTIONS",
    "KNIGHT_OFFSETS",
    "ORTHOGONAL_DIRECTIONS",
]

Direction = Tuple[int, int]

ORTHOGONAL_DIRECTIONS: Tuple[Direction, ...] = ((0, 1), (0, -1), (1, 0), (-1, 0))
DIAGONAL_DIRECTIONS: Tuple[Direction, ...] = ((1, 1), (1, -1), (-1, 1), (-1, -1))
KNIGHT_OFFSETS: Tuple[Direction, ...] = (
    (2, 1), (2, -1), (-2, 1), (-2, -1),
    (1, 2), (1, -2), (-1, 2), (-1, -2),
)

# The only column a diagonal can cross on its way off a 3-wide board edge
# without first leaving through a side edge.
MIDDLE_COLUMN = BOARD_SIZE // 2


class BoardGeometry:
    """Pure coordinate math shared by move generation and validation."""

    @staticmethod
    def in_bounds(row: int, col: int) -> bool:
        return 0 <= row < BOARD_SIZE and 0 <= col < BOARD_SIZE

    @staticmethod
    def all_positions() -> Iterator[Position]:
        for row in range(BOARD_SIZE):
            for col in range(BOARD_SIZE):
                yield (row, col)

    @staticmethod
    def forward(color: PlayerColor) -> int:
        """Row delta of one step toward the opponent's edge."""
        return -1 if color == PlayerColor.LIGHT else 1

    @staticmethod
    def home_row(color: PlayerColor) -> int:
        return BOARD_SIZE - 1 if color == PlayerColor.LIGHT else 0

    @staticmethod
    def opponent_home_row(color: PlayerColor) -> int:
        """Row the opponent starts on; also the pawn promotion row."""
        return 0 if color == PlayerColor.LIGHT else BOARD_SIZE - 1

    @staticmethod
    def is_beyond_opponent_edge(color: PlayerColor, row: int) -> bool:
        """True if ``row`` lies off the board past the opponent's edge."""
        if color == PlayerColor.LIGHT:
            return row < 0
        return row > BOARD_SIZE - 1

    @staticmethod
    def is_promotion_row(piece_type: PieceType, color: PlayerColor, row: int) -> bool:
        return (
            piece_type == PieceType.PAWN
            and row == BoardGeometry.opponent_home_row(color)
        )

    @staticmethod
    def ray(position: Position, direction: Direction) -> Iterator[Position]:
        """Squares along ``direction`` from ``position`` (exclusive) to the edge."""
        dr, dc = direction
        row, col = position[0] + dr, position[1] + dc
        while BoardGeometry.in_bounds(row, col):
            yield (row, col)
            row += dr
            col += dc

    @staticmethod
    def format_position(position: Position | None) -> str:
        if position is None:
            return "[?,?]"
        return f"[{position[0]},{position[1]}]"
