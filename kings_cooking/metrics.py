"""Prometheus metrics for the King's Cooking engine.

Counters and histograms are created once at import time so that the engine,
codec and sync protocol can record telemetry without managing their own
metric instances. Nothing here starts an exporter; applications that want to
scrape these call ``prometheus_client.start_http_server`` themselves.
"""

from __future__ import annotations

from typing import Final

from prometheus_client import Counter, Histogram


MOVES_TOTAL: Final[Counter] = Counter(
    "kings_cooking_moves_total",
    (
        "Total move attempts handled by the engine, labeled by outcome "
        "(applied, rejected, promotion_required)."
    ),
    labelnames=("outcome",),
)

PROMOTIONS_TOTAL: Final[Counter] = Counter(
    "kings_cooking_promotions_total",
    "Total completed pawn promotions, labeled by the chosen piece type.",
    labelnames=("piece_type",),
)

GAMES_COMPLETED: Final[Counter] = Counter(
    "kings_cooking_games_completed_total",
    "Total games that reached a terminal status, labeled by result.",
    labelnames=("result",),
)

CODEC_OPERATIONS: Final[Counter] = Counter(
    "kings_cooking_codec_operations_total",
    (
        "Total URL codec operations, labeled by operation "
        "(compress, decompress) and outcome (ok, error)."
    ),
    labelnames=("operation", "outcome"),
)

PAYLOAD_SIZE: Final[Histogram] = Histogram(
    "kings_cooking_payload_size_chars",
    "Length of encoded URL fragments in characters, labeled by payload type.",
    labelnames=("payload_type",),
    # Browsers start to truncate URLs somewhere past 2k characters.
    buckets=(64, 128, 256, 512, 1024, 2048, 4096),
)

PAYLOADS_RECEIVED: Final[Counter] = Counter(
    "kings_cooking_payloads_received_total",
    "Total payloads handled by the sync protocol, labeled by type and outcome.",
    labelnames=("payload_type", "outcome"),
)

STATE_DIVERGENCES: Final[Counter] = Counter(
    "kings_cooking_state_divergences_total",
    "Total delta payloads rejected because local and peer state diverged.",
)

TRANSPORT_WRITES: Final[Counter] = Counter(
    "kings_cooking_transport_writes_total",
    "Total transport writes, labeled by mode (debounced, immediate).",
    labelnames=("mode",),
)
