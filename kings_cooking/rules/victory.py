"""Victory detection.

Scoring rule: a side scores one point for each of its pieces that left the
board across the opponent's edge (its court). Captured pieces never score.

The game ends when:

1. either side has no pieces left on the board; the other side's remaining
   on-board pieces then score automatically, or
2. the side to move has no legal action (no on-board move and no off-board
   exit); courts are compared as they stand.

The higher score wins; equal scores are a draw.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from ..board_manager import BoardManager
from ..models import GameState, GameStatus, GameWinner, PlayerColor
from .movement import MoveGenerator

__all__ = ["VictoryEvaluator", "VictoryResult"]


@dataclass
class VictoryResult:
    """Outcome of an end-of-game check.

    Attributes:
        game_over: Whether the position is terminal.
        winner: LIGHT, DARK or DRAW when terminal, otherwise None.
        score: Points per side keyed by color value.
        reason: Short human-readable explanation.
    """
    game_over: bool
    winner: Optional[GameWinner] = None
    score: Dict[str, int] = field(default_factory=dict)
    reason: str = ""

    @property
    def status(self) -> GameStatus:
        if not self.game_over:
            return GameStatus.PLAYING
        if self.winner == GameWinner.LIGHT:
            return GameStatus.LIGHT_WINS
        if self.winner == GameWinner.DARK:
            return GameStatus.DARK_WINS
        return GameStatus.DRAW


class VictoryEvaluator:
    """Classifies terminal states for the engine."""

    @staticmethod
    def current_score(state: GameState) -> Dict[str, int]:
        """Pieces delivered to each side's court so far."""
        return {
            PlayerColor.LIGHT.value: len(state.light_court),
            PlayerColor.DARK.value: len(state.dark_court),
        }

    @staticmethod
    def check_game_end(state: GameState) -> VictoryResult:
        light_on_board = BoardManager.count_pieces_on_board(
            state.board, PlayerColor.LIGHT
        )
        dark_on_board = BoardManager.count_pieces_on_board(
            state.board, PlayerColor.DARK
        )

        if light_on_board == 0 or dark_on_board == 0:
            light_score = len(state.light_court) + light_on_board
            dark_score = len(state.dark_court) + dark_on_board
            if light_on_board == 0 and dark_on_board == 0:
                detail = "all pieces off the board"
            elif light_on_board == 0:
                detail = "light has no pieces left; dark pieces auto-score"
            else:
                detail = "dark has no pieces left; light pieces auto-score"
            return VictoryEvaluator._decide(light_score, dark_score, detail)

        if not MoveGenerator.has_any_legal_move(state.board, state.current_player):
            return VictoryEvaluator._decide(
                len(state.light_court),
                len(state.dark_court),
                f"{state.current_player.value} has no legal moves",
            )

        return VictoryResult(
            game_over=False, score=VictoryEvaluator.current_score(state)
        )

    @staticmethod
    def _decide(light_score: int, dark_score: int, detail: str) -> VictoryResult:
        score = {
            PlayerColor.LIGHT.value: light_score,
            PlayerColor.DARK.value: dark_score,
        }
        if light_score > dark_score:
            return VictoryResult(
                game_over=True,
                winner=GameWinner.LIGHT,
                score=score,
                reason=f"Light wins {light_score}-{dark_score} ({detail})",
            )
        if dark_score > light_score:
            return VictoryResult(
                game_over=True,
                winner=GameWinner.DARK,
                score=score,
                reason=f"Dark wins {dark_score}-{light_score} ({detail})",
            )
        return VictoryResult(
            game_over=True,
            winner=GameWinner.DRAW,
            score=score,
            reason=f"Draw {light_score}-{dark_score} ({detail})",
        )
