"""Board-level helpers for the King's Cooking engine.

Callers pass in board grids or ``GameState`` instances and receive derived
views; nothing in this module mutates its arguments.
"""
from __future__ import annotations

from collections import Counter
from typing import Iterator, List, Optional

from .models import BOARD_SIZE, GameState, Piece, PlayerColor, Position

__all__ = ["Board", "BoardManager"]

Board = List[List[Optional[Piece]]]


class BoardManager:
    """Helper for board-level queries used by the rules engine.

    Provides:

    - piece lookup and iteration over the 3×3 grid,
    - per-side piece counts,
    - the piece id inventory used by the conservation invariant, and
    - canonical state hashing (delegated to ``rules.core``).
    """

    @staticmethod
    def empty_board() -> Board:
        return [[None] * BOARD_SIZE for _ in range(BOARD_SIZE)]

    @staticmethod
    def is_valid_position(position: object) -> bool:
        """Return True if ``position`` is an in-bounds ``(row, col)`` pair."""
        if not isinstance(position, (tuple, list)) or len(position) != 2:
            return False
        row, col = position
        if isinstance(row, bool) or isinstance(col, bool):
            return False
        if not isinstance(row, int) or not isinstance(col, int):
            return False
        return 0 <= row < BOARD_SIZE and 0 <= col < BOARD_SIZE

    @staticmethod
    def get_piece(position: Position | None, board: Board) -> Piece | None:
        """Return the piece at ``position`` or ``None`` if empty/off-board."""
        if position is None or not BoardManager.is_valid_position(position):
            return None
        return board[position[0]][position[1]]

    @staticmethod
    def iter_pieces(board: Board) -> Iterator[Piece]:
        """Yield board pieces in row-major order."""
        for row in board:
            for cell in row:
                if cell is not None:
                    yield cell

    @staticmethod
    def get_player_pieces(board: Board, color: PlayerColor) -> List[Piece]:
        return [p for p in BoardManager.iter_pieces(board) if p.owner == color]

    @staticmethod
    def count_pieces_on_board(
        board: Board, color: PlayerColor | None = None
    ) -> int:
        if color is None:
            return sum(1 for _ in BoardManager.iter_pieces(board))
        return len(BoardManager.get_player_pieces(board, color))

    @staticmethod
    def is_board_empty(board: Board) -> bool:
        return next(BoardManager.iter_pieces(board), None) is None

    @staticmethod
    def off_board_pieces(state: GameState) -> List[Piece]:
        """Pieces held in courts or captured arrays."""
        return [
            *state.light_court,
            *state.dark_court,
            *state.captured_light,
            *state.captured_dark,
        ]

    @staticmethod
    def piece_id_inventory(state: GameState) -> Counter:
        """Multiset of piece ids across board, courts and captured arrays.

        The inventory is constant over the lifetime of a game; moves relocate
        pieces but never create or destroy them.
        """
        ids = [p.id for p in BoardManager.iter_pieces(state.board)]
        ids.extend(p.id for p in BoardManager.off_board_pieces(state))
        return Counter(ids)

    @staticmethod
    def find_piece(state: GameState, piece_id: str) -> Piece | None:
        for piece in BoardManager.iter_pieces(state.board):
            if piece.id == piece_id:
                return piece
        for piece in BoardManager.off_board_pieces(state):
            if piece.id == piece_id:
                return piece
        return None

    @staticmethod
    def hash_game_state(state: GameState) -> str:
        """
        Canonical checksum of a GameState.

        Delegates to ``rules.core.hash_game_state`` so the engine, the sync
        protocol and tests share a single implementation.
        """
        from .rules.core import hash_game_state as core_hash_game_state

        return core_hash_game_state(state)
