"""Note Schemas — Pydantic models with field-level validation for API boundaries.

Invariants:
    - NoteCreate.message: 1-500 chars, string only (no coercion from numbers)
    - signature and walletAddress: required non-empty strings
    - color: palette member; omitted, null or "" all mean DEFAULT_COLOR

Design Decisions:
    - StrictStr: a numeric signature is a client bug, not something to coerce
    - walletAddress alias keeps the camelCase wire name while Python stays snake_case
"""

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator

from noteboard.core.domain_types import DEFAULT_COLOR, MESSAGE_MAX_LENGTH, NoteColor
from noteboard.core.note import NoteDraft


class NoteCreate(BaseModel):
    """Note submission — validated before it reaches the hub."""
    model_config = ConfigDict(populate_by_name=True)

    message: StrictStr = Field(min_length=1, max_length=MESSAGE_MAX_LENGTH)
    signature: StrictStr = Field(min_length=1)
    wallet_address: StrictStr = Field(min_length=1, alias="walletAddress")
    color: NoteColor | None = None

    @field_validator("color", mode="before")
    @classmethod
    def empty_color_means_default(cls, v):
        return None if v == "" else v

    def to_draft(self) -> NoteDraft:
        return NoteDraft(
            message=self.message,
            signature=self.signature,
            wallet_address=self.wallet_address,
            color=self.color or DEFAULT_COLOR,
        )
