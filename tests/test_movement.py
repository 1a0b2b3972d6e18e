"""Move generation and off-board eligibility per piece type."""

import pytest

from kings_cooking.models import OFF_BOARD, PieceType, PlayerColor
from kings_cooking.rules.movement import MoveGenerator

LIGHT = PlayerColor.LIGHT
DARK = PlayerColor.DARK


def _exit(board, position):
    piece = board[position[0]][position[1]]
    return MoveGenerator.can_move_off_board(position, piece, board)


class TestRook:
    def test_center_rook_reaches_both_sides_of_empty_row(self, board_factory):
        board = board_factory({(1, 1): (PieceType.ROOK, LIGHT)})
        moves = MoveGenerator.get_valid_moves((1, 1), board)
        assert (1, 0) in moves
        assert (1, 2) in moves
        assert set(moves) == {(1, 0), (1, 2), (0, 1), (2, 1)}

    @pytest.mark.parametrize("owner", [LIGHT, DARK])
    def test_center_rook_exits_when_file_is_clear(self, board_factory, owner):
        board = board_factory({(1, 1): (PieceType.ROOK, owner)})
        assert _exit(board, (1, 1))

    def test_blocked_file_prevents_exit_but_allows_capture(self, board_factory):
        board = board_factory(
            {
                (1, 1): (PieceType.ROOK, LIGHT),
                (0, 1): (PieceType.KNIGHT, DARK),
            }
        )
        assert not _exit(board, (1, 1))
        assert (0, 1) in MoveGenerator.get_valid_moves((1, 1), board)

    def test_own_pieces_block_and_are_never_targets(self, default_board):
        moves = MoveGenerator.get_valid_moves((2, 0), default_board)
        assert set(moves) == {(1, 0), (0, 0)}
        assert (2, 1) not in moves

    def test_exit_is_toward_opponent_edge_only(self, board_factory):
        # Dark rook on row 1 with a light piece below it cannot exit even
        # though the file toward row 0 is empty.
        board = board_factory(
            {
                (1, 0): (PieceType.ROOK, DARK),
                (2, 0): (PieceType.BISHOP, LIGHT),
            }
        )
        assert not _exit(board, (1, 0))


class TestKnight:
    def test_moves_filtered_to_board(self, board_factory):
        board = board_factory({(2, 1): (PieceType.KNIGHT, LIGHT)})
        assert set(MoveGenerator.get_valid_moves((2, 1), board)) == {(0, 0), (0, 2)}

    def test_jumps_over_pieces(self, default_board):
        moves = MoveGenerator.get_valid_moves((2, 1), default_board)
        # Both landing squares hold dark pieces: captures.
        assert set(moves) == {(0, 0), (0, 2)}

    def test_home_row_knight_cannot_exit(self, board_factory):
        board = board_factory({(2, 1): (PieceType.KNIGHT, LIGHT)})
        assert not _exit(board, (2, 1))

    @pytest.mark.parametrize("row", [0, 1])
    def test_light_knight_exits_from_forward_rows(self, board_factory, row):
        board = board_factory({(row, 0): (PieceType.KNIGHT, LIGHT)})
        assert _exit(board, (row, 0))

    def test_dark_knight_exits_past_row_two(self, board_factory):
        board = board_factory({(1, 1): (PieceType.KNIGHT, DARK)})
        assert _exit(board, (1, 1))
        board = board_factory({(0, 1): (PieceType.KNIGHT, DARK)})
        assert not _exit(board, (0, 1))


class TestBishop:
    def test_slides_diagonally(self, board_factory):
        board = board_factory({(1, 1): (PieceType.BISHOP, LIGHT)})
        assert set(MoveGenerator.get_valid_moves((1, 1), board)) == {
            (0, 0), (0, 2), (2, 0), (2, 2)
        }

    def test_exits_from_opponent_home_row(self, board_factory):
        board = board_factory({(0, 2): (PieceType.BISHOP, LIGHT)})
        assert _exit(board, (0, 2))
        board = board_factory({(2, 0): (PieceType.BISHOP, DARK)})
        assert _exit(board, (2, 0))

    def test_exits_through_middle_column(self, board_factory):
        board = board_factory({(1, 0): (PieceType.BISHOP, LIGHT)})
        assert _exit(board, (1, 0))

    def test_corner_diagonal_does_not_exit(self, board_factory):
        board = board_factory({(2, 0): (PieceType.BISHOP, LIGHT)})
        assert not _exit(board, (2, 0))
        board = board_factory({(1, 1): (PieceType.BISHOP, LIGHT)})
        assert not _exit(board, (1, 1))

    def test_blocked_diagonal_does_not_exit(self, board_factory):
        board = board_factory(
            {
                (1, 0): (PieceType.BISHOP, LIGHT),
                (0, 1): (PieceType.ROOK, DARK),
            }
        )
        assert not _exit(board, (1, 0))
        assert (0, 1) in MoveGenerator.get_valid_moves((1, 0), board)


class TestQueen:
    def test_combines_rook_and_bishop_moves(self, board_factory):
        board = board_factory({(1, 1): (PieceType.QUEEN, LIGHT)})
        moves = set(MoveGenerator.get_valid_moves((1, 1), board))
        assert len(moves) == 8

    def test_exits_by_diagonal_when_file_is_blocked(self, board_factory):
        board = board_factory(
            {
                (1, 0): (PieceType.QUEEN, LIGHT),
                (0, 0): (PieceType.ROOK, DARK),
            }
        )
        assert _exit(board, (1, 0))

    def test_no_exit_when_both_rules_fail(self, board_factory):
        board = board_factory(
            {
                (1, 1): (PieceType.QUEEN, LIGHT),
                (0, 1): (PieceType.ROOK, DARK),
            }
        )
        assert not _exit(board, (1, 1))


class TestPawn:
    def test_advances_one_square(self, board_factory):
        board = board_factory({(1, 1): (PieceType.PAWN, LIGHT)})
        assert MoveGenerator.get_valid_moves((1, 1), board) == [(0, 1)]

    def test_dark_pawn_advances_toward_row_two(self, board_factory):
        board = board_factory({(1, 1): (PieceType.PAWN, DARK)})
        assert MoveGenerator.get_valid_moves((1, 1), board) == [(2, 1)]

    def test_blocked_pawn_captures_diagonally(self, board_factory):
        board = board_factory(
            {
                (1, 1): (PieceType.PAWN, LIGHT),
                (0, 1): (PieceType.ROOK, DARK),
                (0, 0): (PieceType.KNIGHT, DARK),
                (0, 2): (PieceType.BISHOP, LIGHT),
            }
        )
        assert MoveGenerator.get_valid_moves((1, 1), board) == [(0, 0)]

    def test_pawn_never_exits(self, board_factory):
        board = board_factory({(0, 1): (PieceType.PAWN, LIGHT)})
        assert not _exit(board, (0, 1))
        assert MoveGenerator.get_valid_moves((0, 1), board) == []


class TestAggregateQueries:
    def test_empty_square_has_no_moves(self, board_factory):
        assert MoveGenerator.get_valid_moves((1, 1), board_factory({})) == []

    def test_get_all_moves_includes_off_board_actions(self, board_factory):
        board = board_factory(
            {
                (1, 1): (PieceType.ROOK, LIGHT),
                (2, 2): (PieceType.ROOK, DARK),
            }
        )
        actions = MoveGenerator.get_all_moves(board, LIGHT)
        assert ((1, 1), OFF_BOARD) in actions
        assert all(origin == (1, 1) for origin, _ in actions)

    def test_has_any_legal_move_detects_stalemate(self, board_factory):
        board = board_factory(
            {
                (1, 1): (PieceType.PAWN, LIGHT),
                (0, 1): (PieceType.PAWN, DARK),
            }
        )
        assert not MoveGenerator.has_any_legal_move(board, LIGHT)
        assert not MoveGenerator.has_any_legal_move(board, DARK)
