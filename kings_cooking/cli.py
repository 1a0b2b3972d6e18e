#!/usr/bin/env python
"""Command line front end for King's Cooking share links.

Usage:
    kings-cooking new --player1 Alice --player2 Bob --mode random --seed abc
    kings-cooking new --player1 Alice --player2 Bob --first-mover player2
    kings-cooking show "https://kings-cooking.example/#eJy..."
    kings-cooking move URL 2,0 1,0
    kings-cooking move URL 1,1 off --delta
    kings-cooking sync LOCAL_URL INCOMING_URL

Positions are written ``row,col``; ``off`` (or ``off_board``) is the
off-board destination. Exit codes: 0 success, 1 rejected move or payload,
2 usage error.
"""

from __future__ import annotations

import argparse
import logging
import sys
import uuid
from typing import Optional, Sequence

from .config import get_settings
from .errors import ConfigurationError, KingsCookingError
from .game_engine import create_initial_state
from .logging_config import setup_logging
from .models import (
    MAX_PLAYER_NAME_LENGTH,
    OFF_BOARD,
    GameState,
    MoveTarget,
    PieceType,
    PlayerInfo,
    Position,
)
from .rules.core import summarize_board
from .rules.setup import (
    DEFAULT_PIECES,
    FirstMover,
    SelectionMode,
    assign_sides,
    create_board_with_pieces,
    resolve_selection,
)
from .sync.payloads import DeltaPayload, FullStatePayload, ResyncRequestPayload
from .sync.protocol import SyncProtocol, SyncStatus
from .sync.transport import InMemoryTransport
from .sync.urls import (
    build_complete_url,
    build_delta_url,
    build_full_state_url,
    build_resync_url,
    extract_fragment,
    parse_url_hash,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_REJECTED = 1
EXIT_USAGE = 2


def parse_position(text: str) -> Position:
    parts = text.replace(" ", "").split(",")
    if len(parts) != 2:
        raise argparse.ArgumentTypeError(f"expected ROW,COL, got {text!r}")
    try:
        row, col = int(parts[0]), int(parts[1])
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected integers, got {text!r}") from None
    if not (0 <= row <= 2 and 0 <= col <= 2):
        raise argparse.ArgumentTypeError(f"position out of range: {text!r}")
    return (row, col)


def parse_target(text: str) -> MoveTarget:
    if text.strip().lower() in {"off", OFF_BOARD}:
        return OFF_BOARD
    return parse_position(text)


def _piece_type(text: str) -> PieceType:
    try:
        return PieceType(text.strip().lower())
    except ValueError:
        choices = ", ".join(t.value for t in PieceType)
        raise argparse.ArgumentTypeError(
            f"unknown piece {text!r} (choose from {choices})"
        ) from None


def _player_name(text: str) -> str:
    name = text.strip()
    if not name:
        raise argparse.ArgumentTypeError("player name must not be empty")
    if len(name) > MAX_PLAYER_NAME_LENGTH:
        raise argparse.ArgumentTypeError(
            f"player name {name!r} is longer than {MAX_PLAYER_NAME_LENGTH} characters"
        )
    return name


def _print_state(state: GameState) -> None:
    summary = summarize_board(state)
    print(f"Game:     {state.game_id}")
    print(f"Players:  {state.light_player.name} (light) vs {state.dark_player.name} (dark)")
    print(f"Turn:     {summary['turn']}  ({summary['to_move']} to move)")
    print(f"Status:   {summary['status']}" + (f"  winner={state.winner.value}" if state.winner else ""))
    print("Board:")
    for idx, row in enumerate(summary["rows"]):
        print(f"  {idx} {' '.join(row)}")
    print(f"Courts:   light={summary['light_court']} dark={summary['dark_court']}")
    print(f"Captured: light={summary['captured_light']} dark={summary['captured_dark']}")
    print(f"Checksum: {state.checksum}")


def _share(fragment: str) -> str:
    return build_complete_url(fragment, get_settings().base_url)


def _load_local(url: str) -> Optional[SyncProtocol]:
    """Protocol primed with the full_state link ``url``, or None on error."""
    parsed = parse_url_hash(url)
    if not parsed.success:
        print(f"error: {parsed.error}", file=sys.stderr)
        return None
    if not isinstance(parsed.payload, FullStatePayload):
        print(
            f"error: expected a full_state link, got {parsed.payload.type}",
            file=sys.stderr,
        )
        return None
    protocol = SyncProtocol(InMemoryTransport(), debounce_seconds=0.0)
    result = protocol.handle_payload(parsed.payload)
    if not result.success:
        print(f"error: {result.error}", file=sys.stderr)
        return None
    return protocol


def cmd_new(args: argparse.Namespace) -> int:
    """Create a game. Player 1 is the creator and sends the first link."""
    game_id = str(uuid.uuid4())
    try:
        player1_pieces, player2_pieces = resolve_selection(
            args.mode,
            light_pieces=args.player1_pieces or list(DEFAULT_PIECES),
            dark_pieces=args.player2_pieces or list(DEFAULT_PIECES),
            seed=args.seed or game_id,
        )
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_USAGE

    first_mover = FirstMover(args.first_mover)
    light_name, dark_name = assign_sides(args.player1, args.player2, first_mover)
    light_pieces, dark_pieces = assign_sides(player1_pieces, player2_pieces, first_mover)
    state = create_initial_state(
        PlayerInfo(id=str(uuid.uuid4()), name=light_name),
        PlayerInfo(id=str(uuid.uuid4()), name=dark_name),
        board=create_board_with_pieces(light_pieces, dark_pieces),
        game_id=game_id,
    )
    logger.info(
        f"New game {game_id}: first mover {first_mover.value}, "
        f"light={[p.value for p in light_pieces]} dark={[p.value for p in dark_pieces]}"
    )
    print(_share(build_full_state_url(state, player_name=args.player1)))
    return EXIT_OK


def cmd_show(args: argparse.Namespace) -> int:
    parsed = parse_url_hash(args.url)
    if not parsed.success:
        print(f"error: {parsed.error}", file=sys.stderr)
        return EXIT_REJECTED

    payload = parsed.payload
    print(f"Payload:  {payload.type}")
    if payload.player_name:
        print(f"From:     {payload.player_name}")
    if isinstance(payload, FullStatePayload):
        _print_state(payload.game_state)
    elif isinstance(payload, DeltaPayload):
        move = payload.move
        to = move.to if move.to == OFF_BOARD else f"{move.to[0]},{move.to[1]}"
        line = f"Move:     {move.from_pos[0]},{move.from_pos[1]} -> {to}"
        if move.promotion:
            line += f" (promote to {move.promotion.value})"
        print(line)
        print(f"Turn:     {payload.turn}")
        print(f"Checksum: {payload.checksum}")
    elif isinstance(payload, ResyncRequestPayload):
        print(f"Message:  {payload.message or 'full state resync requested'}")
    return EXIT_OK


def cmd_move(args: argparse.Namespace) -> int:
    protocol = _load_local(args.url)
    if protocol is None:
        return EXIT_REJECTED
    engine = protocol.engine
    before = engine.get_game_state()

    if args.promote is not None:
        result = engine.promote_pawn(args.from_pos, args.to, args.promote)
    else:
        result = engine.make_move(args.from_pos, args.to)

    if result.requires_promotion:
        print(
            "error: pawn reaches the promotion row; repeat with --promote "
            "queen|rook|bishop|knight",
            file=sys.stderr,
        )
        return EXIT_REJECTED
    if not result.success:
        print(f"error: {result.error}", file=sys.stderr)
        return EXIT_REJECTED

    state = result.game_state
    mover = before.player_for(before.current_player).name
    if args.delta:
        fragment = build_delta_url(
            result.from_pos,
            result.to,
            before.current_turn,
            before.checksum,
            player_name=mover,
            promotion=args.promote,
        )
    else:
        fragment = build_full_state_url(state, player_name=mover)

    if state.is_terminal:
        print(f"Game over: {engine.check_game_end().reason}", file=sys.stderr)
    print(_share(fragment))
    return EXIT_OK


def cmd_sync(args: argparse.Namespace) -> int:
    protocol = _load_local(args.local_url)
    if protocol is None:
        return EXIT_REJECTED

    result = protocol.handle_fragment(extract_fragment(args.incoming_url))
    if result.success:
        print(_share(build_full_state_url(result.game_state)))
        return EXIT_OK
    if result.status == SyncStatus.RESYNC_REQUESTED:
        print(result.error, file=sys.stderr)
        print(_share(build_full_state_url(protocol.get_game_state())))
        return EXIT_OK

    print(f"error: {result.error}", file=sys.stderr)
    if result.needs_resync:
        print(_share(build_resync_url(message="Checksum mismatch, please resend")))
    return EXIT_REJECTED


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kings-cooking",
        description="Create, inspect and relay King's Cooking share links",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    new = sub.add_parser("new", help="Start a new game and print its link")
    new.add_argument("--player1", required=True, type=_player_name, help="Your name")
    new.add_argument("--player2", required=True, type=_player_name, help="Opponent's name")
    new.add_argument(
        "--first-mover",
        choices=[mover.value for mover in FirstMover],
        default=FirstMover.PLAYER1.value,
        help="Who plays light and moves first (default: player1)",
    )
    new.add_argument(
        "--mode",
        choices=[mode.value for mode in SelectionMode],
        default=SelectionMode.MIRRORED.value,
        help="Piece selection mode (default: mirrored)",
    )
    new.add_argument("--player1-pieces", nargs=3, type=_piece_type, metavar="PIECE")
    new.add_argument("--player2-pieces", nargs=3, type=_piece_type, metavar="PIECE")
    new.add_argument("--seed", help="Seed for random selection (default: game id)")
    new.set_defaults(func=cmd_new)

    show = sub.add_parser("show", help="Decode and print a share link")
    show.add_argument("url")
    show.set_defaults(func=cmd_show)

    move = sub.add_parser("move", help="Apply a move to a full_state link")
    move.add_argument("url")
    move.add_argument("from_pos", type=parse_position, metavar="FROM")
    move.add_argument("to", type=parse_target, metavar="TO")
    move.add_argument("--promote", type=_piece_type, help="Promotion piece for a pawn")
    move.add_argument("--delta", action="store_true", help="Emit a delta link")
    move.set_defaults(func=cmd_move)

    sync = sub.add_parser("sync", help="Apply an incoming link to a local full_state link")
    sync.add_argument("local_url")
    sync.add_argument("incoming_url")
    sync.set_defaults(func=cmd_sync)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = get_settings()
    except ConfigurationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_USAGE

    setup_logging("kings_cooking", level=logging.DEBUG if args.verbose else settings.log_level)

    try:
        return args.func(args)
    except KingsCookingError as exc:
        logger.error(f"{args.command} failed: {exc}")
        print(f"error: {exc.message}", file=sys.stderr)
        return EXIT_REJECTED


if __name__ == "__main__":
    sys.exit(main())
