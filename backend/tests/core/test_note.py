"""Note — draft validation and wire representation.

Tests cover:
    - Required fields, length cap, type checks, palette
    - Default color when omitted
    - to_payload() camelCase keys and UTC timestamps
"""

from datetime import datetime, timezone

import pytest

from noteboard.core.domain_types import DEFAULT_COLOR, NoteColor
from noteboard.core.errors import NoteValidationError
from noteboard.core.note import Note, NoteDraft


def test_draft_defaults_to_canonical_color():
    draft = NoteDraft(message="hi", signature="s", wallet_address="0xabc")
    assert draft.color is DEFAULT_COLOR
    assert draft.color is NoteColor.YELLOW


def test_draft_coerces_color_string():
    draft = NoteDraft(message="hi", signature="s", wallet_address="0x", color="pink")
    assert draft.color is NoteColor.PINK


def test_draft_none_color_means_default():
    draft = NoteDraft(message="hi", signature="s", wallet_address="0x", color=None)
    assert draft.color is DEFAULT_COLOR


def test_draft_rejects_unknown_color():
    with pytest.raises(NoteValidationError) as exc:
        NoteDraft(message="hi", signature="s", wallet_address="0x", color="orange")
    assert exc.value.field == "color"
    assert exc.value.http_status == 400


def test_draft_accepts_500_characters():
    draft = NoteDraft(message="x" * 500, signature="s", wallet_address="0x")
    assert len(draft.message) == 500


def test_draft_rejects_501_characters():
    with pytest.raises(NoteValidationError) as exc:
        NoteDraft(message="x" * 501, signature="s", wallet_address="0x")
    assert exc.value.field == "message"


@pytest.mark.parametrize("field", ["message", "signature", "wallet_address"])
def test_draft_requires_non_empty_fields(field):
    kwargs = {"message": "hi", "signature": "s", "wallet_address": "0x"}
    kwargs[field] = ""
    with pytest.raises(NoteValidationError) as exc:
        NoteDraft(**kwargs)
    assert exc.value.field == field


def test_draft_rejects_non_string_signature():
    with pytest.raises(NoteValidationError):
        NoteDraft(message="hi", signature=123, wallet_address="0x")


def test_stamp_fixes_timestamp():
    ts = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    note = NoteDraft(message="hi", signature="s", wallet_address="0x").stamp(ts)
    assert note.timestamp == ts
    assert note.color is DEFAULT_COLOR


def test_payload_uses_wire_field_names():
    ts = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    note = Note("hi", "sig1", "0xabc", NoteColor.PINK, ts)
    assert note.to_payload() == {
        "message": "hi",
        "signature": "sig1",
        "walletAddress": "0xabc",
        "color": "pink",
        "timestamp": "2024-01-02T03:04:05+00:00",
    }


def test_payload_treats_naive_timestamp_as_utc():
    note = Note("hi", "sig1", "0xabc", NoteColor.BLUE, datetime(2024, 1, 2, 3, 4, 5))
    assert note.to_payload()["timestamp"].endswith("+00:00")


def test_note_is_immutable():
    note = NoteDraft(message="hi", signature="s", wallet_address="0x").stamp()
    with pytest.raises(AttributeError):
        note.message = "changed"
