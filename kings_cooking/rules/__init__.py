"""Rules layer (pure logic).

- Movement, scoring, victory and hashing live here.
- No I/O: nothing in this package touches transports, URLs or clocks.
"""

from .core import assert_state_invariants, hash_game_state, validate_state_invariants
from .movement import MoveGenerator
from .victory import VictoryEvaluator, VictoryResult

__all__ = [
    "MoveGenerator",
    "VictoryEvaluator",
    "VictoryResult",
    "assert_state_invariants",
    "hash_game_state",
    "validate_state_invariants",
]
