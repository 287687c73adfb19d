"""
app/mappers/field_resolution.py

Ordered field lookup and value coercion for untyped OData records.

The same logical field appears under different names across protocol
versions, so every lookup takes an ordered tuple of alternatives.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from app.config import DEFAULT_EXTERNAL_SOURCE, DEFAULT_ODATA_BASE_URL

UNKNOWN_NAME = "Unknown"

RawRecord = Mapping[str, Any]

_MS_DATE_PATTERN = re.compile(r"^/Date\((-?\d+)([+-]\d{4})?\)/$")
_TRUE_STRINGS = {"1", "true", "yes", "y", "t"}
_FALSE_STRINGS = {"0", "false", "no", "n", "f"}


class MissingIdentifierError(ValueError):
    """
    Raised when no identifier field of a raw record carries a value.
    """

    def __init__(self, entity_kind: str, fields: Sequence[str]) -> None:
        self.entity_kind = entity_kind
        self.fields = tuple(fields)
        super().__init__(
            f"{entity_kind}: record has no identifier (checked {', '.join(self.fields)})"
        )


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def first_present(raw: RawRecord, fields: Sequence[str]) -> Any | None:
    """
    Return the first non-blank value among ``fields``, or None.
    """

    for name in fields:
        value = raw.get(name)
        if not _is_blank(value):
            return value
    return None


def _id_to_str(value: Any) -> str:
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def resolve_identifier(raw: RawRecord, fields: Sequence[str], entity_kind: str) -> str:
    value = first_present(raw, fields)
    if value is None:
        raise MissingIdentifierError(entity_kind, fields)
    return _id_to_str(value)


def optional_identifier(raw: RawRecord, fields: Sequence[str]) -> str | None:
    value = first_present(raw, fields)
    return None if value is None else _id_to_str(value)


def resolve_text(raw: RawRecord, fields: Sequence[str], default: str | None = None) -> str | None:
    value = first_present(raw, fields)
    if value is None:
        return default
    return str(value).strip()


def resolve_name(raw: RawRecord, fields: Sequence[str]) -> str:
    resolved = resolve_text(raw, fields, UNKNOWN_NAME)
    return resolved if resolved is not None else UNKNOWN_NAME


def parse_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return None
        try:
            return int(stripped)
        except ValueError:
            try:
                as_float = float(stripped)
            except ValueError:
                return None
            return int(as_float) if as_float.is_integer() else None
    return None


def parse_bool(value: Any) -> bool | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    return None


def parse_datetime(value: Any) -> datetime | None:
    """
    Parse OData v4 ISO strings and v2 ``/Date(ms)/`` literals into UTC-aware
    datetimes. Unparseable values yield None.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    match = _MS_DATE_PATTERN.match(text)
    if match:
        return datetime.fromtimestamp(int(match.group(1)) / 1000, tz=timezone.utc)

    normalized = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def resolve_datetime(raw: RawRecord, fields: Sequence[str]) -> datetime | None:
    for name in fields:
        parsed = parse_datetime(raw.get(name))
        if parsed is not None:
            return parsed
    return None


def resolve_is_current(
    raw: RawRecord,
    flag_fields: Sequence[str],
    end_fields: Sequence[str] = (),
) -> bool:
    """
    Use the first explicit flag field when present, else infer current
    status from the absence of every end-date field.
    """

    for name in flag_fields:
        flag = parse_bool(raw.get(name))
        if flag is not None:
            return flag
    return all(_is_blank(raw.get(name)) for name in end_fields)


def build_source_url(base_url: str, entity_set: str, external_id: str) -> str:
    return f"{base_url.rstrip('/')}/{entity_set}({external_id})"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class MappingContext:
    """
    Values every mapper stamps onto its output.
    """

    base_url: str = DEFAULT_ODATA_BASE_URL
    external_source: str = DEFAULT_EXTERNAL_SOURCE
    clock: Callable[[], datetime] = utc_now

    def now(self) -> datetime:
        return self.clock()

    def source_url(self, entity_set: str, external_id: str) -> str:
        return build_source_url(self.base_url, entity_set, external_id)
