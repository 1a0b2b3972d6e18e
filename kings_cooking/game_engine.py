"""Core game engine for King's Cooking.

The rules are exposed two ways:

1. Pure functions (``create_initial_state``, ``apply_move``,
   ``apply_promotion``) that take a ``GameState`` and return a
   ``MoveResult`` holding a fresh state. The input state is never mutated.
2. ``GameEngine``, a thin stateful wrapper that keeps the last accepted
   state and re-derives everything else from it. The sync protocol and the
   CLI use this surface.

Rejected moves are reported as values (``MoveResult.success is False`` with a
``MoveErrorCode``); callers that prefer exceptions use
``MoveResult.raise_for_error``.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

from .board_manager import Board, BoardManager
from .config import get_settings
from .errors import InvalidMoveError
from .metrics import GAMES_COMPLETED, MOVES_TOTAL, PROMOTIONS_TOTAL
from .models import (
    OFF_BOARD,
    PROMOTION_TYPES,
    GameState,
    Move,
    MoveTarget,
    Piece,
    PieceType,
    PlayerColor,
    PlayerInfo,
    Position,
)
from .rules.core import assert_state_invariants, hash_game_state
from .rules.geometry import BoardGeometry
from .rules.movement import MoveGenerator
from .rules.setup import create_default_board
from .rules.victory import VictoryEvaluator, VictoryResult

logger = logging.getLogger(__name__)

__all__ = [
    "GAME_OVER_ERROR",
    "GameEngine",
    "MoveErrorCode",
    "MoveResult",
    "apply_move",
    "apply_promotion",
    "create_initial_state",
]

GAME_OVER_ERROR = "Game is over"


class MoveErrorCode(str, Enum):
    """Machine-readable reason a move was rejected."""
    NO_PIECE = "no_piece"
    NOT_YOUR_TURN = "not_your_turn"
    ILLEGAL_DESTINATION = "illegal_destination"
    CANNOT_EXIT = "cannot_exit"
    GAME_OVER = "game_over"
    INVALID_PROMOTION = "invalid_promotion"
    INVALID_POSITION = "invalid_position"


@dataclass
class MoveResult:
    """
    Outcome of a move or promotion attempt.

    On success ``game_state`` is the new state. On rejection ``game_state``
    is a copy of the unchanged input state and ``error``/``code`` describe why.
    ``requires_promotion`` marks a pawn move onto its promotion row that must
    be completed with ``apply_promotion``; it is not an error.
    """
    success: bool
    game_state: Optional[GameState] = None
    error: Optional[str] = None
    code: Optional[MoveErrorCode] = None
    requires_promotion: bool = False
    from_pos: Optional[Position] = None
    to: Optional[MoveTarget] = None
    captured: Optional[Piece] = None

    def raise_for_error(self) -> "MoveResult":
        """Raise InvalidMoveError for a rejected move, else return self."""
        if self.success or self.requires_promotion:
            return self
        raise InvalidMoveError(
            self.error or "Move rejected",
            move_error_code=self.code.value if self.code else None,
            context={"from": self.from_pos, "to": self.to},
        )


PositionLike = Union[Position, Sequence[int]]
TargetLike = Union[PositionLike, str]


def _normalize_position(position: object) -> Optional[Position]:
    if not BoardManager.is_valid_position(position):
        return None
    row, col = position  # type: ignore[misc]
    return (row, col)


def _normalize_target(to: object) -> Optional[MoveTarget]:
    if to == OFF_BOARD:
        return OFF_BOARD
    return _normalize_position(to)


def _reject(
    state: GameState,
    code: MoveErrorCode,
    error: str,
    from_pos: object = None,
    to: object = None,
) -> MoveResult:
    MOVES_TOTAL.labels(outcome="rejected").inc()
    logger.debug(f"Move rejected ({code.value}): {error}")
    return MoveResult(
        success=False,
        game_state=state.model_copy(deep=True),
        error=error,
        code=code,
        from_pos=from_pos,  # type: ignore[arg-type]
        to=to,  # type: ignore[arg-type]
    )


def _format_target(to: MoveTarget) -> str:
    if to == OFF_BOARD:
        return OFF_BOARD
    return BoardGeometry.format_position(to)  # type: ignore[arg-type]


def _validate(
    state: GameState, from_pos: object, to: object
) -> Union[MoveResult, Tuple[Piece, Position, MoveTarget]]:
    """Return ``(piece, from, to)`` for a legal action or a rejection."""
    if state.is_terminal:
        return _reject(state, MoveErrorCode.GAME_OVER, GAME_OVER_ERROR, from_pos, to)

    origin = _normalize_position(from_pos)
    if origin is None:
        return _reject(
            state,
            MoveErrorCode.INVALID_POSITION,
            f"Invalid source position: {from_pos!r}",
            from_pos,
            to,
        )
    target = _normalize_target(to)
    if target is None:
        return _reject(
            state,
            MoveErrorCode.INVALID_POSITION,
            f"Invalid destination: {to!r}",
            origin,
            to,
        )

    piece = BoardManager.get_piece(origin, state.board)
    if piece is None:
        return _reject(
            state,
            MoveErrorCode.NO_PIECE,
            f"No piece at {BoardGeometry.format_position(origin)}",
            origin,
            target,
        )
    if piece.owner != state.current_player:
        return _reject(
            state,
            MoveErrorCode.NOT_YOUR_TURN,
            f"Not your turn: {state.current_player.value} to move",
            origin,
            target,
        )

    if target == OFF_BOARD:
        if not MoveGenerator.can_move_off_board(origin, piece, state.board):
            return _reject(
                state,
                MoveErrorCode.CANNOT_EXIT,
                f"{piece.type.value} at {BoardGeometry.format_position(origin)} "
                "cannot move off the board",
                origin,
                target,
            )
    elif target not in MoveGenerator.get_valid_moves(origin, state.board):
        return _reject(
            state,
            MoveErrorCode.ILLEGAL_DESTINATION,
            f"Illegal move for {piece.type.value}: "
            f"{BoardGeometry.format_position(origin)} -> {_format_target(target)}",
            origin,
            target,
        )

    return piece, origin, target


def _needs_promotion(piece: Piece, to: MoveTarget) -> bool:
    if to == OFF_BOARD:
        return False
    return BoardGeometry.is_promotion_row(piece.type, piece.owner, to[0])


def _commit(
    state: GameState,
    from_pos: Position,
    to: MoveTarget,
    promoted_to: Optional[PieceType] = None,
) -> MoveResult:
    """Apply a validated action to a copy of ``state``."""
    new_state = state.model_copy(deep=True)
    mover = new_state.board[from_pos[0]][from_pos[1]]
    assert mover is not None
    snapshot = mover.model_copy(deep=True)
    captured: Optional[Piece] = None

    new_state.board[from_pos[0]][from_pos[1]] = None
    mover.move_count += 1

    if to == OFF_BOARD:
        mover.position = None
        # Scored pieces are indexed by their own color.
        new_state.court_for(mover.owner).append(mover)
    else:
        row, col = to
        target = new_state.board[row][col]
        if target is not None:
            target.position = None
            new_state.captured_for(target.owner).append(target)
            captured = target.model_copy(deep=True)
        mover.position = (row, col)
        if promoted_to is not None:
            mover.type = promoted_to
        new_state.board[row][col] = mover

    new_state.move_history.append(
        Move(
            from_pos=from_pos,
            to=to,
            piece=snapshot,
            captured=captured,
            promoted_to=promoted_to,
        )
    )
    new_state.current_player = state.current_player.opponent
    new_state.current_turn = state.current_turn + 1

    victory = VictoryEvaluator.check_game_end(new_state)
    if victory.game_over:
        new_state.status = victory.status
        new_state.winner = victory.winner
        GAMES_COMPLETED.labels(result=victory.status.value).inc()
        logger.info(f"Game {new_state.game_id} finished: {victory.reason}")

    new_state.checksum = hash_game_state(new_state)

    if get_settings().strict_invariants:
        assert_state_invariants(new_state)

    MOVES_TOTAL.labels(outcome="applied").inc()
    logger.debug(
        f"Applied {snapshot.owner.value} {snapshot.type.value} "
        f"{BoardGeometry.format_position(from_pos)} -> {_format_target(to)} "
        f"(turn {new_state.current_turn}, checksum {new_state.checksum})"
    )
    return MoveResult(
        success=True,
        game_state=new_state,
        from_pos=from_pos,
        to=to,
        captured=captured,
    )


def create_initial_state(
    light_player: PlayerInfo,
    dark_player: PlayerInfo,
    board: Optional[Board] = None,
    game_id: Optional[str] = None,
) -> GameState:
    """Fresh turn-0 state; ``board`` defaults to rook/knight/bishop each side.

    The supplied board is copied and each piece's position is set to its
    cell, so callers may pass pieces built without positions.
    """
    if board is None:
        board = create_default_board()

    grid: Board = BoardManager.empty_board()
    for row_idx, row in enumerate(board):
        for col_idx, piece in enumerate(row):
            if piece is None:
                continue
            grid[row_idx][col_idx] = piece.model_copy(
                deep=True, update={"position": (row_idx, col_idx)}
            )

    state = GameState(
        game_id=game_id or str(uuid.uuid4()),
        board=grid,
        light_player=light_player,
        dark_player=dark_player,
    )
    state.checksum = hash_game_state(state)
    logger.debug(f"Created game {state.game_id} (checksum {state.checksum})")
    return state


def apply_move(state: GameState, from_pos: PositionLike, to: TargetLike) -> MoveResult:
    """Validate and apply one move to ``state``.

    A legal pawn move onto its promotion row is not applied; the result has
    ``requires_promotion=True`` and the caller completes it with
    ``apply_promotion``.
    """
    checked = _validate(state, from_pos, to)
    if isinstance(checked, MoveResult):
        return checked
    piece, origin, target = checked

    if _needs_promotion(piece, target):
        MOVES_TOTAL.labels(outcome="promotion_required").inc()
        return MoveResult(
            success=False,
            game_state=state.model_copy(deep=True),
            requires_promotion=True,
            from_pos=origin,
            to=target,
        )

    return _commit(state, origin, target)


def apply_promotion(
    state: GameState,
    from_pos: PositionLike,
    to: PositionLike,
    piece_type: Union[PieceType, str],
) -> MoveResult:
    """Complete a pawn move onto the promotion row as ``piece_type``."""
    checked = _validate(state, from_pos, to)
    if isinstance(checked, MoveResult):
        return checked
    piece, origin, target = checked

    if not _needs_promotion(piece, target):
        return _reject(
            state,
            MoveErrorCode.INVALID_PROMOTION,
            f"{piece.type.value} move to {_format_target(target)} is not a promotion",
            origin,
            target,
        )
    try:
        new_type = PieceType(piece_type)
    except ValueError:
        new_type = None
    if new_type not in PROMOTION_TYPES:
        return _reject(
            state,
            MoveErrorCode.INVALID_PROMOTION,
            f"Cannot promote to {piece_type!r}; choose one of "
            f"{', '.join(t.value for t in PROMOTION_TYPES)}",
            origin,
            target,
        )

    result = _commit(state, origin, target, promoted_to=new_type)
    PROMOTIONS_TOTAL.labels(piece_type=new_type.value).inc()
    return result


def _adopt(state: GameState) -> GameState:
    """Copy of ``state`` whose checksum matches its contents.

    Resumed states may carry a stale or empty checksum field.
    """
    adopted = state.model_copy(deep=True)
    checksum = hash_game_state(adopted)
    if adopted.checksum != checksum:
        if adopted.checksum:
            logger.warning(
                f"Game {adopted.game_id}: stored checksum {adopted.checksum} "
                f"does not match contents, using {checksum}"
            )
        adopted.checksum = checksum
    return adopted


class GameEngine:
    """Stateful wrapper over the pure engine functions.

    Holds the last accepted ``GameState``. Every query is derived from that
    state, so an engine restored with ``from_state`` behaves exactly like the
    one that produced the state.
    """

    def __init__(
        self,
        light_player: PlayerInfo,
        dark_player: PlayerInfo,
        initial_state: Optional[GameState] = None,
        board: Optional[Board] = None,
    ):
        if initial_state is not None:
            self._state = _adopt(initial_state)
        else:
            self._state = create_initial_state(light_player, dark_player, board=board)

    @classmethod
    def from_state(cls, state: GameState) -> "GameEngine":
        return cls(state.light_player, state.dark_player, initial_state=state)

    def to_state(self) -> GameState:
        return self._state.model_copy(deep=True)

    def get_game_state(self) -> GameState:
        """Copy of the current state; mutating it does not affect the engine."""
        return self._state.model_copy(deep=True)

    def get_checksum(self) -> str:
        return self._state.checksum

    def restore(self, state: GameState) -> None:
        """Replace the current state with a copy of ``state``."""
        self._state = _adopt(state)

    @property
    def current_player(self) -> PlayerColor:
        return self._state.current_player

    def make_move(self, from_pos: PositionLike, to: TargetLike) -> MoveResult:
        result = apply_move(self._state, from_pos, to)
        if result.success:
            self._state = result.game_state  # type: ignore[assignment]
        return result

    def promote_pawn(
        self,
        from_pos: PositionLike,
        to: PositionLike,
        piece_type: Union[PieceType, str],
    ) -> MoveResult:
        result = apply_promotion(self._state, from_pos, to, piece_type)
        if result.success:
            self._state = result.game_state  # type: ignore[assignment]
        return result

    def get_valid_moves(self, position: PositionLike) -> List[Position]:
        origin = _normalize_position(position)
        if origin is None:
            return []
        return MoveGenerator.get_valid_moves(origin, self._state.board)

    def can_move_off_board(self, position: PositionLike) -> bool:
        origin = _normalize_position(position)
        if origin is None:
            return False
        piece = BoardManager.get_piece(origin, self._state.board)
        if piece is None:
            return False
        return MoveGenerator.can_move_off_board(origin, piece, self._state.board)

    def check_game_end(self) -> VictoryResult:
        return VictoryEvaluator.check_game_end(self._state)
