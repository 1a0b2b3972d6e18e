"""
Property-based tests over random playouts.

Random line-ups (from seeded piece selection) are played out with randomly
chosen legal actions; after every accepted move the piece inventory, the
state invariants and the checksum must still hold.
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from kings_cooking.board_manager import BoardManager
from kings_cooking.game_engine import apply_move, apply_promotion, create_initial_state
from kings_cooking.models import PieceType, PlayerInfo
from kings_cooking.rules.core import hash_game_state, validate_state_invariants
from kings_cooking.rules.movement import MoveGenerator
from kings_cooking.rules.setup import (
    PIECE_POOL,
    create_board_with_pieces,
    generate_random_pieces,
)
from kings_cooking.sync.codec import compress, decompress
from kings_cooking.sync.payloads import FullStatePayload


def _new_state(light_seed: str, dark_seed: str):
    board = create_board_with_pieces(
        generate_random_pieces(light_seed), generate_random_pieces(dark_seed)
    )
    return create_initial_state(
        PlayerInfo(id="a", name="Alice"),
        PlayerInfo(id="b", name="Bob"),
        board=board,
        game_id="property-game",
    )


def _playout(state, choices):
    """Yield each successive state of a random playout."""
    for choice in choices:
        if state.is_terminal:
            return
        actions = MoveGenerator.get_all_moves(state.board, state.current_player)
        if not actions:
            return
        from_pos, to = actions[choice % len(actions)]
        result = apply_move(state, from_pos, to)
        if result.requires_promotion:
            result = apply_promotion(state, from_pos, to, PieceType.QUEEN)
        assert result.success, result.error
        state = result.game_state
        yield state


@settings(max_examples=60, deadline=None)
@given(
    light_seed=st.text(max_size=8),
    dark_seed=st.text(max_size=8),
    choices=st.lists(st.integers(min_value=0, max_value=10_000), max_size=30),
)
def test_random_playouts_preserve_invariants(light_seed, dark_seed, choices):
    state = _new_state(light_seed, dark_seed)
    inventory = BoardManager.piece_id_inventory(state)

    for turn, next_state in enumerate(_playout(state, choices), start=1):
        assert BoardManager.piece_id_inventory(next_state) == inventory
        assert validate_state_invariants(next_state) == []
        assert next_state.checksum == hash_game_state(next_state)
        assert next_state.current_turn == turn == len(next_state.move_history)


@settings(max_examples=40, deadline=None)
@given(
    light_seed=st.text(max_size=8),
    dark_seed=st.text(max_size=8),
    choices=st.lists(st.integers(min_value=0, max_value=10_000), max_size=12),
)
def test_replaying_history_reproduces_checksum(light_seed, dark_seed, choices):
    start = _new_state(light_seed, dark_seed)
    final = start
    for final in _playout(start, choices):
        pass

    replayed = start
    for move in final.move_history:
        if move.promoted_to is not None:
            result = apply_promotion(replayed, move.from_pos, move.to, move.promoted_to)
        else:
            result = apply_move(replayed, move.from_pos, move.to)
        assert result.success
        replayed = result.game_state

    assert replayed.checksum == final.checksum


@given(seed=st.text(max_size=16))
def test_random_selection_is_deterministic_and_within_pool(seed):
    pieces = generate_random_pieces(seed)
    assert pieces == generate_random_pieces(seed)
    assert len(pieces) == 3
    for piece_type in set(pieces):
        assert pieces.count(piece_type) <= PIECE_POOL[piece_type]


@settings(max_examples=30, deadline=None)
@given(
    seed=st.text(max_size=8),
    choices=st.lists(st.integers(min_value=0, max_value=10_000), max_size=15),
    name=st.one_of(st.none(), st.text(min_size=1, max_size=20)),
)
def test_full_state_survives_codec(seed, choices, name):
    state = _new_state(seed, seed)
    for state in _playout(state, choices):
        pass

    decoded = decompress(compress(FullStatePayload(game_state=state, player_name=name)))
    assert isinstance(decoded, FullStatePayload)
    assert decoded.player_name == name
    assert decoded.game_state.model_dump() == state.model_dump()
    assert hash_game_state(decoded.game_state) == state.checksum
