"""Note — immutable signed message record and its wire representation.

Invariants:
    - NoteDraft is validated on construction: message 1-500 chars, signature and
      wallet_address non-empty strings, color within the palette
    - Note is frozen; timestamp is assigned by the store and never changes
    - to_payload() is the single wire shape for REST responses and broadcasts

Design Decisions:
    - Frozen dataclasses over ORM rows: core never sees SQLAlchemy objects
    - camelCase walletAddress only at the wire boundary; snake_case in Python
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from noteboard.core.domain_types import DEFAULT_COLOR, MESSAGE_MAX_LENGTH, NoteColor
from noteboard.core.errors import NoteValidationError


@dataclass(frozen=True)
class NoteDraft:
    """Candidate note before the store assigns its timestamp."""
    message: str
    signature: str
    wallet_address: str
    color: NoteColor = DEFAULT_COLOR

    def __post_init__(self):
        for name in ("message", "signature", "wallet_address"):
            value = getattr(self, name)
            if not isinstance(value, str):
                raise NoteValidationError(f"{name} must be a string", name)
            if not value:
                raise NoteValidationError(f"{name} is required", name)
        if len(self.message) > MESSAGE_MAX_LENGTH:
            raise NoteValidationError(
                f"message exceeds {MESSAGE_MAX_LENGTH} characters", "message",
            )
        if self.color is None:
            object.__setattr__(self, "color", DEFAULT_COLOR)
        elif not isinstance(self.color, NoteColor):
            try:
                object.__setattr__(self, "color", NoteColor(self.color))
            except ValueError:
                raise NoteValidationError(
                    f"color must be one of {[c.value for c in NoteColor]}", "color",
                )

    def stamp(self, timestamp: datetime | None = None) -> "Note":
        """Freeze the draft into a stored Note at the given (or current) time."""
        return Note(
            message=self.message,
            signature=self.signature,
            wallet_address=self.wallet_address,
            color=self.color,
            timestamp=timestamp or datetime.now(timezone.utc),
        )


@dataclass(frozen=True)
class Note:
    """Stored note. Unique by signature."""
    message: str
    signature: str
    wallet_address: str
    color: NoteColor
    timestamp: datetime

    def to_payload(self) -> dict:
        """Wire representation shared by REST and the realtime channel."""
        ts = self.timestamp
        if ts.tzinfo is None:
            # SQLite drops tzinfo; stored values are always UTC
            ts = ts.replace(tzinfo=timezone.utc)
        return {
            "message": self.message,
            "signature": self.signature,
            "walletAddress": self.wallet_address,
            "color": self.color.value,
            "timestamp": ts.isoformat(),
        }
