"""Legal move generation for each piece type.

Every function here is pure: it reads a board grid and returns positions or
booleans. Turn ownership is checked by the engine, not here; on-board move
lists treat the piece standing on ``position`` as the mover.
"""
from __future__ import annotations

from typing import Iterable, List, Tuple

from ..board_manager import Board, BoardManager
from ..models import OFF_BOARD, MoveTarget, Piece, PieceType, PlayerColor, Position
from .geometry import (
    DIAGONAL_DIRECTIONS,
    KNIGHT_OFFSETS,
    MIDDLE_COLUMN,
    ORTHOGONAL_DIRECTIONS,
    BoardGeometry,
    Direction,
)

__all__ = ["MoveGenerator"]


class MoveGenerator:
    """Per-piece on-board moves and off-board (scoring) eligibility."""

    @staticmethod
    def get_valid_moves(position: Position, board: Board) -> List[Position]:
        """Destinations the piece on ``position`` may move to on the board.

        Squares held by the mover's own pieces are excluded; squares held by
        opponent pieces are included as captures. Returns an empty list for
        an empty square.
        """
        piece = BoardManager.get_piece(position, board)
        if piece is None:
            return []

        if piece.type == PieceType.ROOK:
            return MoveGenerator._sliding_moves(
                position, piece.owner, board, ORTHOGONAL_DIRECTIONS
            )
        if piece.type == PieceType.BISHOP:
            return MoveGenerator._sliding_moves(
                position, piece.owner, board, DIAGONAL_DIRECTIONS
            )
        if piece.type == PieceType.QUEEN:
            return MoveGenerator._sliding_moves(
                position,
                piece.owner,
                board,
                ORTHOGONAL_DIRECTIONS + DIAGONAL_DIRECTIONS,
            )
        if piece.type == PieceType.KNIGHT:
            return MoveGenerator._knight_moves(position, piece.owner, board)
        if piece.type == PieceType.PAWN:
            return MoveGenerator._pawn_moves(position, piece.owner, board)
        raise ValueError(f"Unknown piece type: {piece.type}")

    @staticmethod
    def can_move_off_board(position: Position, piece: Piece, board: Board) -> bool:
        """True if ``piece`` standing on ``position`` may leave the board.

        A piece scores by exiting across its opponent's edge:

        - rook: the straight file toward the opponent's edge is empty;
        - knight: some L offset lands beyond the opponent's edge;
        - bishop: already on the opponent's home row, or a clear diagonal
          leaves the board through the middle column of the opponent's edge;
        - queen: rook rule or bishop rule;
        - pawn: never (pawns promote instead).
        """
        if not BoardManager.is_valid_position(position):
            return False

        if piece.type == PieceType.ROOK:
            return MoveGenerator._has_straight_exit(position, piece.owner, board)
        if piece.type == PieceType.KNIGHT:
            return MoveGenerator._has_knight_exit(position, piece.owner)
        if piece.type == PieceType.BISHOP:
            return MoveGenerator._has_diagonal_exit(position, piece.owner, board)
        if piece.type == PieceType.QUEEN:
            return MoveGenerator._has_straight_exit(
                position, piece.owner, board
            ) or MoveGenerator._has_diagonal_exit(position, piece.owner, board)
        return False

    @staticmethod
    def get_all_moves(
        board: Board, color: PlayerColor
    ) -> List[Tuple[Position, MoveTarget]]:
        """Every legal ``(from, to)`` action for ``color``, off-board included."""
        actions: List[Tuple[Position, MoveTarget]] = []
        for piece in BoardManager.get_player_pieces(board, color):
            origin = piece.position
            for dest in MoveGenerator.get_valid_moves(origin, board):
                actions.append((origin, dest))
            if MoveGenerator.can_move_off_board(origin, piece, board):
                actions.append((origin, OFF_BOARD))
        return actions

    @staticmethod
    def has_any_legal_move(board: Board, color: PlayerColor) -> bool:
        for piece in BoardManager.get_player_pieces(board, color):
            if MoveGenerator.get_valid_moves(piece.position, board):
                return True
            if MoveGenerator.can_move_off_board(piece.position, piece, board):
                return True
        return False

    # ------------------------------------------------------------------
    # On-board movement
    # ------------------------------------------------------------------

    @staticmethod
    def _sliding_moves(
        position: Position,
        owner: PlayerColor,
        board: Board,
        directions: Iterable[Direction],
    ) -> List[Position]:
        moves: List[Position] = []
        for direction in directions:
            for square in BoardGeometry.ray(position, direction):
                occupant = BoardManager.get_piece(square, board)
                if occupant is None:
                    moves.append(square)
                    continue
                if occupant.owner != owner:
                    moves.append(square)
                break
        return moves

    @staticmethod
    def _knight_moves(
        position: Position, owner: PlayerColor, board: Board
    ) -> List[Position]:
        moves: List[Position] = []
        for dr, dc in KNIGHT_OFFSETS:
            row, col = position[0] + dr, position[1] + dc
            if not BoardGeometry.in_bounds(row, col):
                continue
            occupant = board[row][col]
            if occupant is None or occupant.owner != owner:
                moves.append((row, col))
        return moves

    @staticmethod
    def _pawn_moves(
        position: Position, owner: PlayerColor, board: Board
    ) -> List[Position]:
        moves: List[Position] = []
        row = position[0] + BoardGeometry.forward(owner)
        if not BoardGeometry.in_bounds(row, position[1]):
            return moves

        if board[row][position[1]] is None:
            moves.append((row, position[1]))

        for dc in (-1, 1):
            col = position[1] + dc
            if not BoardGeometry.in_bounds(row, col):
                continue
            occupant = board[row][col]
            if occupant is not None and occupant.owner != owner:
                moves.append((row, col))
        return moves

    # ------------------------------------------------------------------
    # Off-board eligibility
    # ------------------------------------------------------------------

    @staticmethod
    def _has_straight_exit(
        position: Position, owner: PlayerColor, board: Board
    ) -> bool:
        direction = (BoardGeometry.forward(owner), 0)
        return all(
            BoardManager.get_piece(square, board) is None
            for square in BoardGeometry.ray(position, direction)
        )

    @staticmethod
    def _has_knight_exit(position: Position, owner: PlayerColor) -> bool:
        return any(
            BoardGeometry.is_beyond_opponent_edge(owner, position[0] + dr)
            for dr, _ in KNIGHT_OFFSETS
        )

    @staticmethod
    def _has_diagonal_exit(
        position: Position, owner: PlayerColor, board: Board
    ) -> bool:
        if position[0] == BoardGeometry.opponent_home_row(owner):
            return True

        forward = BoardGeometry.forward(owner)
        for dc in (-1, 1):
            last = position
            blocked = False
            for square in BoardGeometry.ray(position, (forward, dc)):
                if BoardManager.get_piece(square, board) is not None:
                    blocked = True
                    break
                last = square
            if blocked:
                continue
            next_row, next_col = last[0] + forward, last[1] + dc
            # The diagonal must leave across the opponent edge, not a side
            # edge, and its last square must be the middle column.
            if not BoardGeometry.is_beyond_opponent_edge(owner, next_row):
                continue
            if last[1] == MIDDLE_COLUMN:
                return True
        return False
