"""
Shared pytest fixtures for the King's Cooking tests.

Factory fixtures build pieces, players, boards and game states with
deterministic ids so that checksums are reproducible across runs.
"""

from pathlib import Path
import sys
from typing import Callable, Dict, Optional, Tuple

import pytest

# Make `import kings_cooking` work when pytest runs from a checkout without
# an editable install.
PACKAGE_ROOT = Path(__file__).resolve().parents[1]
if str(PACKAGE_ROOT) not in sys.path:
    sys.path.insert(0, str(PACKAGE_ROOT))

from kings_cooking.board_manager import Board, BoardManager
from kings_cooking.config import get_settings
from kings_cooking.game_engine import create_initial_state
from kings_cooking.models import (
    GameState,
    Piece,
    PieceType,
    PlayerColor,
    PlayerInfo,
    Position,
)
from kings_cooking.rules.core import hash_game_state
from kings_cooking.rules.setup import DEFAULT_PIECES, create_board_with_pieces


Placements = Dict[Position, Tuple[PieceType, PlayerColor]]


def make_piece(
    piece_type: PieceType,
    owner: PlayerColor,
    position: Optional[Position] = None,
    piece_id: Optional[str] = None,
    move_count: int = 0,
) -> Piece:
    if piece_id is None:
        where = f"{position[0]}{position[1]}" if position is not None else "x"
        piece_id = f"{owner.value}-{piece_type.value}-{where}"
    return Piece(
        id=piece_id,
        type=piece_type,
        owner=owner,
        position=position,
        move_count=move_count,
    )


def make_board(placements: Placements) -> Board:
    board = BoardManager.empty_board()
    for (row, col), (piece_type, owner) in placements.items():
        board[row][col] = make_piece(piece_type, owner, (row, col))
    return board


def make_state(
    placements: Optional[Placements] = None,
    current_player: PlayerColor = PlayerColor.LIGHT,
    game_id: str = "game-1",
    **updates,
) -> GameState:
    """GameState with a consistent checksum.

    Without ``placements`` the default rook/knight/bishop line-up is used.
    """
    board = make_board(placements) if placements is not None else None
    state = create_initial_state(
        PlayerInfo(id="p-light", name="Alice"),
        PlayerInfo(id="p-dark", name="Bob"),
        board=board,
        game_id=game_id,
    )
    if board is None:
        state = _with_stable_ids(state)
    updates["current_player"] = current_player
    state = state.model_copy(update=updates)
    state.checksum = hash_game_state(state)
    return state


def _with_stable_ids(state: GameState) -> GameState:
    for row in state.board:
        for piece in row:
            if piece is not None:
                piece.id = f"{piece.owner.value}-{piece.type.value}-{piece.position[0]}{piece.position[1]}"
    return state


# =============================================================================
# SETTINGS ISOLATION
# =============================================================================


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """Each test sees settings derived from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# =============================================================================
# FACTORY FIXTURES
# =============================================================================


@pytest.fixture
def player_factory() -> Callable[..., PlayerInfo]:
    """Factory for creating PlayerInfo instances."""

    def _create_player(name: str = "Alice", player_id: Optional[str] = None) -> PlayerInfo:
        return PlayerInfo(id=player_id or f"p-{name.lower()}", name=name)

    return _create_player


@pytest.fixture
def piece_factory() -> Callable[..., Piece]:
    """Factory for creating Piece instances with deterministic ids."""
    return make_piece


@pytest.fixture
def board_factory() -> Callable[[Placements], Board]:
    """Factory for 3x3 boards from ``{(row, col): (type, owner)}``."""
    return make_board


@pytest.fixture
def state_factory() -> Callable[..., GameState]:
    """Factory for GameState instances with recomputed checksums."""
    return make_state


@pytest.fixture
def default_state() -> GameState:
    """Turn-0 state with the default line-up and stable ids."""
    return make_state()


@pytest.fixture
def default_board() -> Board:
    return create_board_with_pieces(DEFAULT_PIECES, DEFAULT_PIECES)
