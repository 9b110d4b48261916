"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - ConnectionId wraps UUID; never use a bare UUID for a connection handle
    - NoteColor is a closed palette; DEFAULT_COLOR is its canonical member
    - All valid states encoded as Enums, no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

ConnectionId = NewType("ConnectionId", UUID)


# ─── Limits ──────────────────────────────────────────────────────

MESSAGE_MAX_LENGTH = 500
NOTES_LIST_LIMIT = 1000


# ─── Enums ───────────────────────────────────────────────────────

class NoteColor(str, Enum):
    """Fixed sticky-note palette."""
    PINK = "pink"
    PURPLE = "purple"
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"


DEFAULT_COLOR = NoteColor.YELLOW


class LivenessState(str, Enum):
    """Heartbeat state of a registered connection.

    ALIVE -> PROBING on each sweep, PROBING -> ALIVE on pong,
    PROBING at the next sweep -> evicted.
    """
    ALIVE = "alive"
    PROBING = "probing"


class SnapshotPolicy(str, Enum):
    """How a newly joined connection hydrates history."""
    PUSH = "push"   # server sends {"type": "initial"} on connect
    PULL = "pull"   # client calls GET /api/sticky-notes itself


class FrameType(str, Enum):
    """Realtime channel control frames."""
    INITIAL = "initial"
    PING = "ping"
    PONG = "pong"
    ERROR = "error"
