"""URL-relayed synchronization between two peers.

Each peer keeps its own ``GameEngine``. Payloads arrive through a transport
(a URL fragment the other player sent) and are handled as follows:

- ``delta``: applied only when the sender's pre-move turn and checksum match
  the receiver's current state. A mismatch is a divergence; the move is not
  applied and the receiver should send a ``resync_request``.
- ``full_state``: replaces the local state wholesale, provided the embedded
  checksum matches a recomputation over the transmitted state.
- ``resync_request``: the receiver should answer with its ``full_state``.

Expected outcomes (divergence, corrupted links, illegal moves) are returned
as ``SyncResult`` values. ``SyncResult.raise_for_status`` converts failures
into exceptions for callers that prefer them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from ..board_manager import BoardManager
from ..config import get_settings
from ..errors import (
    CodecError,
    DivergenceError,
    ResyncRequestedError,
    SyncError,
)
from ..game_engine import GameEngine, MoveResult, apply_move, apply_promotion
from ..metrics import PAYLOADS_RECEIVED, STATE_DIVERGENCES
from ..models import BOARD_SIZE, GameState, MoveTarget, PieceType, Position
from ..rules.core import hash_game_state, validate_state_invariants
from .codec import compress, decompress
from .payloads import (
    DeltaMove,
    DeltaPayload,
    FullStatePayload,
    ResyncRequestPayload,
    UrlPayload,
)
from .transport import DebouncedWriter, TimerFactory, Transport

logger = logging.getLogger(__name__)

__all__ = [
    "DivergenceKind",
    "SyncProtocol",
    "SyncResult",
    "SyncStatus",
    "VerificationResult",
    "check_state_consistency",
    "get_divergence_message",
    "verify_state_before_send",
]

MAX_PIECES = 2 * BOARD_SIZE


class SyncStatus(str, Enum):
    APPLIED = "applied"
    REPLACED = "replaced"
    DIVERGED = "diverged"
    REJECTED = "rejected"
    RESYNC_REQUESTED = "resync_requested"
    INVALID = "invalid"


class DivergenceKind(str, Enum):
    CHECKSUM = "checksum"
    TURN = "turn"
    HISTORY = "history"
    CORRUPTION = "corruption"


_DIVERGENCE_MESSAGES = {
    DivergenceKind.CHECKSUM: (
        "Your game state has diverged from your opponent's. "
        "Request the full state from your opponent."
    ),
    DivergenceKind.TURN: (
        "Turn number mismatch: you may have missed one or more moves. "
        "Request the full state from your opponent."
    ),
    DivergenceKind.HISTORY: (
        "Move history is incomplete or corrupted. "
        "The full state from your opponent is required."
    ),
    DivergenceKind.CORRUPTION: (
        "Game state corruption detected. "
        "Start a new game or request the full state from your opponent."
    ),
}


def get_divergence_message(kind: DivergenceKind) -> str:
    return _DIVERGENCE_MESSAGES[DivergenceKind(kind)]


@dataclass
class SyncResult:
    """Outcome of handling one incoming payload.

    Attributes:
        status: What happened to the payload.
        game_state: Local state after handling (unchanged on failure).
        error: Human-readable reason for any non-success status.
        payload: The decoded payload, when decoding succeeded.
        opponent_name: Player name carried by the payload, if any.
        expected_checksum: Checksum the peer moved from (divergence only).
        actual_checksum: Local checksum at the time of divergence.
    """
    status: SyncStatus
    game_state: Optional[GameState] = None
    error: Optional[str] = None
    payload: Optional[UrlPayload] = None
    opponent_name: Optional[str] = None
    expected_checksum: Optional[str] = None
    actual_checksum: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status in (SyncStatus.APPLIED, SyncStatus.REPLACED)

    @property
    def needs_resync(self) -> bool:
        return self.status == SyncStatus.DIVERGED

    def raise_for_status(self) -> "SyncResult":
        """Raise the matching SyncError subclass unless the payload applied."""
        if self.success:
            return self
        message = self.error or self.status.value
        if self.status == SyncStatus.DIVERGED:
            raise DivergenceError(
                message,
                expected_checksum=self.expected_checksum,
                actual_checksum=self.actual_checksum,
            )
        if self.status == SyncStatus.RESYNC_REQUESTED:
            raise ResyncRequestedError(message)
        if self.status == SyncStatus.INVALID:
            raise CodecError(message, stage="decode")
        raise SyncError(message, context={"status": self.status.value})


@dataclass
class VerificationResult:
    valid: bool
    error: Optional[str] = None
    violations: List[str] = field(default_factory=list)


def check_state_consistency(state: GameState) -> VerificationResult:
    """Internal consistency of ``state`` (no peer information involved)."""
    if state.current_turn != len(state.move_history):
        return VerificationResult(
            valid=False,
            error=(
                f"Turn number ({state.current_turn}) does not match move "
                f"history length ({len(state.move_history)})"
            ),
        )

    total = sum(BoardManager.piece_id_inventory(state).values())
    if total > MAX_PIECES:
        return VerificationResult(
            valid=False,
            error=f"Too many pieces: {total} (expected max {MAX_PIECES})",
        )

    violations = validate_state_invariants(state)
    if violations:
        return VerificationResult(
            valid=False,
            error=get_divergence_message(DivergenceKind.CORRUPTION),
            violations=violations,
        )
    return VerificationResult(valid=True)


def verify_state_before_send(
    state: GameState, opponent_last_checksum: Optional[str]
) -> VerificationResult:
    """Check the local state before generating a link for the opponent.

    Nothing can be checked on the first move, or before the opponent has
    sent anything.
    """
    if not opponent_last_checksum or state.current_turn == 0:
        return VerificationResult(valid=True)

    if not state.move_history:
        return VerificationResult(
            valid=False,
            error=(
                f"Expected move history for turn {state.current_turn}, but "
                f"history is empty. {get_divergence_message(DivergenceKind.HISTORY)}"
            ),
        )

    return check_state_consistency(state)


class SyncProtocol:
    """Applies incoming payloads to a local engine and publishes outgoing ones.

    Outgoing state updates are debounced; game creation and resync traffic
    are written immediately. Call ``close`` when the peer goes away so no
    stale write fires later.
    """

    def __init__(
        self,
        transport: Transport,
        engine: Optional[GameEngine] = None,
        player_name: Optional[str] = None,
        debounce_seconds: Optional[float] = None,
        timer_factory: Optional[TimerFactory] = None,
    ):
        if debounce_seconds is None:
            debounce_seconds = get_settings().debounce_seconds
        self._transport = transport
        self._engine = engine
        self.player_name = player_name
        self._writer = DebouncedWriter(
            transport, debounce_seconds, timer_factory=timer_factory
        )

    @property
    def engine(self) -> Optional[GameEngine]:
        return self._engine

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def writer(self) -> DebouncedWriter:
        return self._writer

    def get_game_state(self) -> Optional[GameState]:
        if self._engine is None:
            return None
        return self._engine.get_game_state()

    # ------------------------------------------------------------------
    # Incoming
    # ------------------------------------------------------------------

    def receive(self) -> SyncResult:
        """Read the transport and handle whatever payload it holds."""
        fragment = self._transport.read()
        if fragment is None:
            return SyncResult(
                status=SyncStatus.INVALID,
                game_state=self.get_game_state(),
                error="No payload in transport",
            )
        return self.handle_fragment(fragment)

    def handle_fragment(self, fragment: str) -> SyncResult:
        payload = decompress(fragment)
        if payload is None:
            PAYLOADS_RECEIVED.labels(payload_type="unknown", outcome="invalid").inc()
            return SyncResult(
                status=SyncStatus.INVALID,
                game_state=self.get_game_state(),
                error="Failed to decompress or validate payload. The URL may be corrupted.",
            )
        return self.handle_payload(payload)

    def handle_payload(self, payload: UrlPayload) -> SyncResult:
        if isinstance(payload, DeltaPayload):
            result = self._handle_delta(payload)
        elif isinstance(payload, FullStatePayload):
            result = self._handle_full_state(payload)
        elif isinstance(payload, ResyncRequestPayload):
            result = self._handle_resync_request(payload)
        else:
            raise TypeError(f"Unsupported payload: {type(payload).__name__}")

        result.payload = payload
        if result.opponent_name is None:
            result.opponent_name = payload.player_name
        PAYLOADS_RECEIVED.labels(
            payload_type=payload.type, outcome=result.status.value
        ).inc()
        return result

    def _handle_delta(self, payload: DeltaPayload) -> SyncResult:
        if self._engine is None:
            return SyncResult(
                status=SyncStatus.REJECTED,
                error="No current game. Use a full_state payload to initialize the game.",
            )

        state = self._engine.get_game_state()
        local_checksum = hash_game_state(state)

        if payload.turn != state.current_turn:
            return self._diverged(
                state,
                payload,
                local_checksum,
                f"Turn mismatch. Expected turn {state.current_turn}, "
                f"received turn {payload.turn}.",
            )
        if payload.checksum != local_checksum:
            return self._diverged(
                state,
                payload,
                local_checksum,
                f"Checksum mismatch. Expected {local_checksum}, got "
                f"{payload.checksum}. Game states have diverged.",
            )

        move = payload.move
        if move.promotion is not None:
            result = self._engine.promote_pawn(move.from_pos, move.to, move.promotion)
        else:
            result = self._engine.make_move(move.from_pos, move.to)

        if result.requires_promotion:
            return SyncResult(
                status=SyncStatus.REJECTED,
                game_state=state,
                error="Invalid move: pawn promotion requires a piece type",
            )
        if not result.success:
            return SyncResult(
                status=SyncStatus.REJECTED,
                game_state=state,
                error=f"Invalid move: {result.error}",
            )
        return SyncResult(
            status=SyncStatus.APPLIED, game_state=self._engine.get_game_state()
        )

    def _diverged(
        self,
        state: GameState,
        payload: DeltaPayload,
        local_checksum: str,
        error: str,
    ) -> SyncResult:
        STATE_DIVERGENCES.inc()
        logger.warning(
            f"Game {state.game_id} diverged at turn {state.current_turn}: {error}"
        )
        return SyncResult(
            status=SyncStatus.DIVERGED,
            game_state=state,
            error=error,
            expected_checksum=payload.checksum,
            actual_checksum=local_checksum,
        )

    def _handle_full_state(self, payload: FullStatePayload) -> SyncResult:
        incoming = payload.game_state
        previous = self.get_game_state()

        expected = hash_game_state(incoming)
        if expected != incoming.checksum:
            logger.warning(
                f"Rejected full state for game {incoming.game_id}: checksum "
                f"{incoming.checksum} does not match {expected}"
            )
            return SyncResult(
                status=SyncStatus.REJECTED,
                game_state=previous,
                error=(
                    f"Checksum mismatch in full state. Expected {expected}, got "
                    f"{incoming.checksum}. State may have been tampered with."
                ),
            )

        consistency = check_state_consistency(incoming)
        if not consistency.valid:
            return SyncResult(
                status=SyncStatus.REJECTED,
                game_state=previous,
                error=f"Inconsistent full state: {consistency.error}",
            )

        self._engine = GameEngine.from_state(incoming)
        logger.info(
            f"Loaded full state for game {incoming.game_id} at turn "
            f"{incoming.current_turn}"
        )
        return SyncResult(
            status=SyncStatus.REPLACED, game_state=self._engine.get_game_state()
        )

    def _handle_resync_request(self, payload: ResyncRequestPayload) -> SyncResult:
        message = payload.message or "Opponent requested full state resync"
        sender = f" from {payload.player_name}" if payload.player_name else ""
        logger.info(f"Resync request received{sender}")
        return SyncResult(
            status=SyncStatus.RESYNC_REQUESTED,
            game_state=self.get_game_state(),
            error=(
                f"Resync request received{sender}: {message}. "
                "Please send your full game state to opponent."
            ),
        )

    # ------------------------------------------------------------------
    # Outgoing
    # ------------------------------------------------------------------

    def start_game(self, engine: GameEngine) -> Optional[str]:
        """Adopt ``engine`` and publish its state immediately."""
        self._engine = engine
        return self.publish_new_game()

    def publish_new_game(self) -> Optional[str]:
        return self._publish_full_state(immediate=True)

    def publish_state(self) -> Optional[str]:
        """Schedule a debounced full_state write of the current state."""
        return self._publish_full_state(immediate=False)

    def respond_to_resync(self) -> Optional[str]:
        return self._publish_full_state(immediate=True)

    def request_resync(self, message: Optional[str] = None) -> Optional[str]:
        payload = ResyncRequestPayload(player_name=self.player_name, message=message)
        return self._publish(payload, immediate=True)

    def publish_move(
        self,
        from_pos: Position,
        to: MoveTarget,
        turn: int,
        checksum: str,
        promotion: Optional[PieceType] = None,
    ) -> Optional[str]:
        """Schedule a debounced delta for a move made from ``turn``/``checksum``."""
        payload = self._delta_payload(from_pos, to, turn, checksum, promotion)
        return self._publish(payload, immediate=False)

    def play_move(
        self,
        from_pos: Position,
        to: MoveTarget,
        promotion: Optional[PieceType] = None,
    ) -> MoveResult:
        """Apply a local move and publish it as a delta on success.

        The delta is built and encoded before the engine is updated; if that
        fails, SyncError is raised and the local game is unchanged.
        """
        if self._engine is None:
            raise SyncError("No current game to move in")
        if self._writer.closed:
            raise SyncError("Cannot publish a move after close")

        before = self._engine.get_game_state()
        if promotion is not None:
            result = apply_promotion(before, from_pos, to, promotion)
        else:
            result = apply_move(before, from_pos, to)
        if not result.success:
            return result

        try:
            payload = self._delta_payload(
                result.from_pos,  # type: ignore[arg-type]
                result.to,  # type: ignore[arg-type]
                before.current_turn,
                hash_game_state(before),
                promotion,
            )
        except PydanticValidationError as exc:
            raise SyncError(
                f"Move delta could not be built: {exc.error_count()} validation error(s)",
                context={"player_name": self.player_name},
            ) from exc
        fragment = compress(payload)
        if fragment is None:
            raise SyncError("Move delta could not be encoded")

        self._engine.restore(result.game_state)  # type: ignore[arg-type]
        self._writer.schedule(fragment)
        return result

    def flush(self) -> bool:
        return self._writer.flush()

    def close(self) -> None:
        self._writer.close()

    def _publish_full_state(self, immediate: bool) -> Optional[str]:
        if self._engine is None:
            raise SyncError("No current game to publish")
        payload = FullStatePayload(
            game_state=self._engine.get_game_state(), player_name=self.player_name
        )
        return self._publish(payload, immediate=immediate)

    def _delta_payload(
        self,
        from_pos: Position,
        to: MoveTarget,
        turn: int,
        checksum: str,
        promotion: Optional[PieceType],
    ) -> DeltaPayload:
        return DeltaPayload(
            move=DeltaMove(from_pos=from_pos, to=to, promotion=promotion),
            turn=turn,
            checksum=checksum,
            player_name=self.player_name,
        )

    def _publish(self, payload: UrlPayload, immediate: bool) -> Optional[str]:
        fragment = compress(payload)
        if fragment is None:
            return None
        if immediate:
            self._writer.write_immediate(fragment)
        else:
            self._writer.schedule(fragment)
        return fragment
