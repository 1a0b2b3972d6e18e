"""Canonical serialization, hashing and invariant checks for GameState.

The checksum produced here is the integrity primitive of the URL sync
protocol: two peers holding logically identical states must compute the same
string on any platform, so hashing goes through a canonical JSON form with
sorted keys and no insignificant whitespace.
"""
from __future__ import annotations

import hashlib
import json
from typing import Any, Dict, List

from ..board_manager import BoardManager
from ..errors import InvalidStateError
from ..models import BOARD_SIZE, GameState, GameStatus, GameWinner, PlayerColor

__all__ = [
    "CHECKSUM_LENGTH",
    "assert_state_invariants",
    "canonical_json",
    "canonical_state_dict",
    "hash_game_state",
    "summarize_board",
    "validate_state_invariants",
]

CHECKSUM_LENGTH = 16

_STATUS_WINNER = {
    GameStatus.PLAYING: None,
    GameStatus.LIGHT_WINS: GameWinner.LIGHT,
    GameStatus.DARK_WINS: GameWinner.DARK,
    GameStatus.DRAW: GameWinner.DRAW,
}


def canonical_json(data: Any) -> str:
    """Serialize JSON-compatible data with sorted keys and compact separators."""
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=True)


def canonical_state_dict(state: GameState) -> Dict[str, Any]:
    """Wire-format dict of ``state`` without the checksum field."""
    return state.model_dump(mode="json", by_alias=True, exclude={"checksum"})


def hash_game_state(state: GameState) -> str:
    """Deterministic checksum of every field of ``state`` except ``checksum``."""
    payload = canonical_json(canonical_state_dict(state)).encode("utf-8")
    return hashlib.sha256(payload).hexdigest()[:CHECKSUM_LENGTH]


def summarize_board(state: GameState) -> Dict[str, Any]:
    """Compact, human-readable summary used by logs and the CLI."""
    rows: List[str] = []
    for row in state.board:
        cells = []
        for piece in row:
            if piece is None:
                cells.append(".")
                continue
            letter = "n" if piece.type.value == "knight" else piece.type.value[0]
            cells.append(letter.upper() if piece.owner == PlayerColor.LIGHT else letter)
        rows.append("".join(cells))
    return {
        "rows": rows,
        "turn": state.current_turn,
        "to_move": state.current_player.value,
        "light_court": len(state.light_court),
        "dark_court": len(state.dark_court),
        "captured_light": len(state.captured_light),
        "captured_dark": len(state.captured_dark),
        "status": state.status.value,
    }


def validate_state_invariants(state: GameState) -> List[str]:
    """Return a list of invariant violations (empty when ``state`` is sound)."""
    violations: List[str] = []

    if state.current_turn != len(state.move_history):
        violations.append(
            f"current_turn {state.current_turn} != move history length "
            f"{len(state.move_history)}"
        )

    for row_idx in range(BOARD_SIZE):
        for col_idx in range(BOARD_SIZE):
            piece = state.board[row_idx][col_idx]
            if piece is None:
                continue
            if piece.position != (row_idx, col_idx):
                violations.append(
                    f"piece {piece.id} stored at ({row_idx},{col_idx}) "
                    f"reports position {piece.position}"
                )

    holders = (
        ("light_court", state.light_court, PlayerColor.LIGHT),
        ("dark_court", state.dark_court, PlayerColor.DARK),
        ("captured_light", state.captured_light, PlayerColor.LIGHT),
        ("captured_dark", state.captured_dark, PlayerColor.DARK),
    )
    for name, pieces, color in holders:
        for piece in pieces:
            if piece.owner != color:
                violations.append(
                    f"{piece.owner.value} piece {piece.id} stored in {name}"
                )
            if piece.position is not None:
                violations.append(
                    f"off-board piece {piece.id} in {name} has position "
                    f"{piece.position}"
                )

    duplicates = [
        piece_id
        for piece_id, count in BoardManager.piece_id_inventory(state).items()
        if count > 1
    ]
    if duplicates:
        violations.append(f"duplicate piece ids: {sorted(duplicates)}")

    expected_winner = _STATUS_WINNER[state.status]
    if state.winner != expected_winner:
        violations.append(
            f"winner {state.winner} inconsistent with status {state.status.value}"
        )

    return violations


def assert_state_invariants(state: GameState) -> None:
    """Raise InvalidStateError if ``state`` violates a structural invariant."""
    violations = validate_state_invariants(state)
    if violations:
        raise InvalidStateError(
            "Game state violates invariants",
            context={"game_id": state.game_id, "violations": "; ".join(violations)},
        )
