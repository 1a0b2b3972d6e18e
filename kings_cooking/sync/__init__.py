"""URL-fragment state synchronization.

- ``payloads``: the three message kinds.
- ``codec``: canonical JSON + zlib + URL-safe base64.
- ``transport``: injected transports and the debounced writer.
- ``urls``: share-link builders and parsers.
- ``protocol``: divergence detection and publish policy.
"""

from .codec import compress, decode_payload, decompress, encode_payload
from .payloads import (
    DeltaMove,
    DeltaPayload,
    FullStatePayload,
    ResyncRequestPayload,
    UrlPayload,
)
from .protocol import (
    SyncProtocol,
    SyncResult,
    SyncStatus,
    check_state_consistency,
    verify_state_before_send,
)
from .transport import DebouncedWriter, InMemoryTransport, Transport, UrlFragmentTransport

__all__ = [
    "DebouncedWriter",
    "DeltaMove",
    "DeltaPayload",
    "FullStatePayload",
    "InMemoryTransport",
    "ResyncRequestPayload",
    "SyncProtocol",
    "SyncResult",
    "SyncStatus",
    "Transport",
    "UrlFragmentTransport",
    "UrlPayload",
    "check_state_consistency",
    "compress",
    "decode_payload",
    "decompress",
    "encode_payload",
    "verify_state_before_send",
]
