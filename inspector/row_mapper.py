"""
Row Mapper

Translates a raw stored key and value into the display strings shown in the
inspector table. The inspector knows nothing about the schema of the data it
browses; callers with structured payloads plug in their own mapper.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_KIND = "RAW"
TIMESTAMP_PLACEHOLDER = "--:--:--"
ENTITY_ID_PLACEHOLDER = "--------"
DEFAULT_NAMESPACE = "default"
DEFAULT_SCORES = "-"

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_INTEGER_RE = re.compile(r'[+-]?[0-9]+')


@dataclass
class DisplayRecord:
    """One row of the inspector table. Every field is a display string."""
    key: str
    kind: str = DEFAULT_KIND
    timestamp: str = TIMESTAMP_PLACEHOLDER
    entity_id: str = ENTITY_ID_PLACEHOLDER
    namespace: str = DEFAULT_NAMESPACE
    detail: str = ""
    scores: str = DEFAULT_SCORES


def decode_key(key: Union[bytes, str]) -> str:
    if isinstance(key, str):
        return key
    return bytes(key).decode('utf-8', errors='replace')


def size_detail(value: bytes) -> str:
    return f"Size: {len(value)} bytes"


def format_nanos(raw: str) -> Optional[str]:
    """
    Format a nanosecond epoch string as local HH:MM:SS.

    Returns None when ``raw`` is not a signed 64-bit integer or is outside the
    range the platform clock can represent.
    """
    if not _INTEGER_RE.fullmatch(raw):
        return None
    nanos = int(raw)
    if nanos < _INT64_MIN or nanos > _INT64_MAX:
        return None
    try:
        return datetime.fromtimestamp(nanos // 1_000_000_000).strftime("%H:%M:%S")
    except (OverflowError, OSError, ValueError):
        return None


class RowMapper(ABC):
    """
    Maps a stored entry to a DisplayRecord.

    Implementations must not raise on unexpected input; fall back to the
    default field values instead.
    """

    @abstractmethod
    def map(self, key: Union[bytes, str], value: bytes) -> DisplayRecord:
        pass

    def __call__(self, key: Union[bytes, str], value: bytes) -> DisplayRecord:
        return self.map(key, value)


class DefaultRowMapper(RowMapper):
    """
    Key-based metadata extraction for keys shaped like
    ``namespace:entity:timestamp_nanos:id``.

    The segment positions and separator are constructor arguments because the
    layout is a naming convention of the writing application, not something
    the store enforces. Subclass and override ``map`` (calling
    ``base_record``) to add payload-derived fields.
    """

    def __init__(self, separator: str = ":", namespace_index: int = 1,
                 timestamp_index: int = 2, entity_index: int = 3,
                 entity_id_length: int = 8):
        self.separator = separator
        self.namespace_index = namespace_index
        self.timestamp_index = timestamp_index
        self.entity_index = entity_index
        self.entity_id_length = entity_id_length
        self.min_segments = max(4, namespace_index + 1, timestamp_index + 1, entity_index + 1)

    def base_record(self, key: Union[bytes, str], value: bytes) -> DisplayRecord:
        key_text = decode_key(key)
        record = DisplayRecord(key=key_text, detail=size_detail(value))

        parts = key_text.split(self.separator)
        if len(parts) < self.min_segments:
            return record

        record.namespace = parts[self.namespace_index]

        formatted = format_nanos(parts[self.timestamp_index])
        if formatted is not None:
            record.timestamp = formatted

        record.entity_id = parts[self.entity_index][:self.entity_id_length]
        return record

    def map(self, key: Union[bytes, str], value: bytes) -> DisplayRecord:
        return self.base_record(key, value)


class FunctionRowMapper(RowMapper):
    """Adapts a plain ``func(key: str, value: bytes) -> DisplayRecord``."""

    def __init__(self, func: Callable[[str, bytes], DisplayRecord]):
        self.func = func

    def map(self, key: Union[bytes, str], value: bytes) -> DisplayRecord:
        return self.func(decode_key(key), value)


MapperLike = Union[RowMapper, Callable[[str, bytes], DisplayRecord], None]


def as_row_mapper(mapper: MapperLike) -> RowMapper:
    """Resolve None, a RowMapper or a bare callable to a RowMapper."""
    if mapper is None:
        return DefaultRowMapper()
    if isinstance(mapper, RowMapper):
        return mapper
    if callable(mapper):
        return FunctionRowMapper(mapper)
    raise TypeError(f"Expected a RowMapper or callable, got {type(mapper).__name__}")
