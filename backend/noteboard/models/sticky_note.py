"""StickyNote ORM — persists one signed note.

Invariants:
    - signature is unique (index uq_sticky_notes_signature), the dedup key
    - message is at most 500 chars, non-nullable
    - color is one of NoteColor, default yellow
    - timestamp is assigned at insert time and never updated
    - Rows are append-only: nothing in the service updates or deletes them

Design Decisions:
    - Integer surrogate id: breaks timestamp ties so newest-first is deterministic
    - Composite (timestamp, id) index serves the newest-first listing query
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from noteboard.core.domain_types import DEFAULT_COLOR, NoteColor
from noteboard.core.note import Note
from noteboard.db.base import Base


class StickyNote(Base):
    """Sticky note row."""
    __tablename__ = "sticky_notes"
    __table_args__ = (
        Index("uq_sticky_notes_signature", "signature", unique=True),
        Index("ix_sticky_notes_timestamp_id", "timestamp", "id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    signature: Mapped[str] = mapped_column(String(512), nullable=False)
    wallet_address: Mapped[str] = mapped_column(String(128), nullable=False)
    color: Mapped[str] = mapped_column(
        String(10), nullable=False, default=DEFAULT_COLOR.value,
    )
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def to_domain(self) -> Note:
        return Note(
            message=self.message,
            signature=self.signature,
            wallet_address=self.wallet_address,
            color=NoteColor(self.color),
            timestamp=self.timestamp,
        )
