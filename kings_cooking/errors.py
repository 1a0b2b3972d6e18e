"""
King's Cooking Error Hierarchy

Unified exception hierarchy for the rules engine and the URL sync protocol.
All custom exceptions inherit from KingsCookingError for easy catching and
filtering.

Expected, recoverable conditions (illegal moves, corrupted links, diverged
states) are returned as values by the engine and protocol. These exceptions
are raised for programmer errors, broken invariants, and by explicit opt-in
helpers such as ``SyncResult.raise_for_status``.

Usage:
    from kings_cooking.errors import DivergenceError, InvalidStateError

    try:
        result.raise_for_status()
    except DivergenceError as e:
        logger.warning(f"Peer state diverged: {e.message}")
"""

from typing import Any

__all__ = [
    "CodecError",
    "ConfigurationError",
    "DivergenceError",
    "InvalidMoveError",
    "InvalidStateError",
    "KingsCookingError",
    "ResyncRequestedError",
    "RulesViolationError",
    "SyncError",
    "ValidationError",
]


class KingsCookingError(Exception):
    """Base exception for all King's Cooking errors.

    Attributes:
        code: Machine-readable error code for categorization
        message: Human-readable error description
        context: Additional context for debugging
    """
    code: str = "KINGS_COOKING_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"[{self.code}] {self.message} ({ctx})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Game Rules Errors
# =============================================================================


class RulesViolationError(KingsCookingError):
    """Invalid move per game rules.

    Attributes:
        rule_ref: Short reference to the rule that was violated
            (e.g., "bishop-middle-column-exit")
    """
    code: str = "RULES_VIOLATION"

    def __init__(
        self,
        message: str,
        rule_ref: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        self.rule_ref = rule_ref
        if rule_ref:
            self.context["rule_ref"] = rule_ref


class InvalidStateError(KingsCookingError):
    """Corrupted or unexpected game state.

    Raised when the game state is in a configuration that cannot be reached
    through normal play (duplicate piece ids, history/turn mismatch, pieces
    stored under the wrong color).
    """
    code: str = "INVALID_STATE"


class InvalidMoveError(KingsCookingError):
    """Move that cannot be applied to the current state.

    Used when a rejected MoveResult is converted to an exception.
    """
    code: str = "INVALID_MOVE"

    def __init__(
        self,
        message: str,
        move_error_code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        if move_error_code:
            self.context["move_error_code"] = move_error_code


# =============================================================================
# Transport / Sync Errors
# =============================================================================


class CodecError(KingsCookingError):
    """Payload could not be encoded to or decoded from a URL fragment."""
    code: str = "CODEC_ERROR"

    def __init__(
        self,
        message: str,
        stage: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        if stage:
            self.context["stage"] = stage


class SyncError(KingsCookingError):
    """Base class for peer synchronization failures."""
    code: str = "SYNC_ERROR"


class DivergenceError(SyncError):
    """Local state does not match the state the peer moved from.

    Raised when the checksum (or turn) carried by a delta payload differs
    from the receiver's own state. The delta must never be applied; the
    receiver should ask the peer for a full state resync.
    """
    code: str = "STATE_DIVERGENCE"

    def __init__(
        self,
        message: str,
        expected_checksum: str | None = None,
        actual_checksum: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        if expected_checksum is not None:
            self.context["expected_checksum"] = expected_checksum
        if actual_checksum is not None:
            self.context["actual_checksum"] = actual_checksum


class ResyncRequestedError(SyncError):
    """The peer asked for a full state resync."""
    code: str = "RESYNC_REQUESTED"


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(KingsCookingError):
    """Base class for validation errors."""
    code: str = "VALIDATION_ERROR"


class ConfigurationError(ValidationError):
    """Invalid configuration."""
    code: str = "CONFIGURATION_ERROR"

    def __init__(
        self,
        message: str,
        variable: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        if variable:
            self.context["variable"] = variable
