"""
Minimal CSV Codec.

Line-oriented comma-separated decoding and encoding for user import/export.

The decoder implements a deliberately small grammar: every line is one row,
a double quote toggles quoted mode (so commas inside quotes are kept) and is
never part of the value, and ``""`` is *not* unescaped.  The encoder quotes
a value only when it contains a comma, a double quote or a newline.
"""

from __future__ import annotations

from typing import Mapping, Sequence, Union

from pydantic import BaseModel

__all__ = [
    "EXPORT_HEADERS",
    "TEMPLATE_HEADERS",
    "TEMPLATE_SAMPLE_ROW",
    "decode_csv",
    "encode_csv",
    "encode_field",
    "generate_user_template",
]

CsvRecord = Union[Mapping[str, object], BaseModel]

TEMPLATE_HEADERS: tuple[str, ...] = (
    "email",
    "first_name",
    "last_name",
    "role",
    "department",
    "employee_id",
    "student_id",
    "phone_number",
)

TEMPLATE_SAMPLE_ROW: tuple[str, ...] = (
    "john.doe@university.edu",
    "John",
    "Doe",
    "student",
    "Computer Science",
    "",
    "CS2024001",
    "+1234567890",
)

EXPORT_HEADERS: tuple[str, ...] = TEMPLATE_HEADERS + ("is_active", "created_at", "last_login")

_QUOTE_TRIGGERS: tuple[str, ...] = (",", '"', "\n")


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _split_line(line: str) -> list[str]:
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)

    fields.append("".join(current).strip())
    return fields


def decode_csv(text: str) -> list[list[str]]:
    """Parse *text* into rows of trimmed field strings.

    Blank lines are dropped.  ``\\r\\n`` line endings are tolerated because
    the trailing ``\\r`` is removed with the rest of the field whitespace.

    >>> decode_csv('a,"b, c"\\n\\nd,e')
    [['a', 'b, c'], ['d', 'e']]
    """
    return [_split_line(line) for line in text.split("\n") if line.strip()]


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def encode_field(value: object) -> str:
    """Render one value, quoting it only when it would break the row."""
    text = "" if value is None else str(value)
    if any(trigger in text for trigger in _QUOTE_TRIGGERS):
        return '"' + text.replace('"', '""') + '"'
    return text


def _as_mapping(record: CsvRecord) -> Mapping[str, object]:
    if isinstance(record, BaseModel):
        return record.model_dump()
    return record


def encode_csv(records: Sequence[CsvRecord], header_order: Sequence[str]) -> str:
    """Serialise *records* under *header_order*.

    Produces the header line followed by one line per record, joined with
    ``\\n`` and without a trailing newline.  Columns missing from a record
    are written as empty values.
    """
    lines: list[str] = [",".join(encode_field(header) for header in header_order)]
    for record in records:
        values = _as_mapping(record)
        lines.append(
            ",".join(encode_field(values.get(header)) for header in header_order)
        )
    return "\n".join(lines)


def generate_user_template() -> str:
    """The two-line import template: header plus one sample student."""
    return "\n".join([",".join(TEMPLATE_HEADERS), ",".join(TEMPLATE_SAMPLE_ROW)])
