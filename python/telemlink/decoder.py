"""Stateless decoder for the bridge's line-oriented text protocol."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Union

# Wire format: "<YYYYMMDDhhmmss>\t<free text with tagged values>"
TIMESTAMP_LEN = 14
_TIMESTAMP_RE = re.compile(r"[0-9]{%d}" % TIMESTAMP_LEN)
_NUMBER = r"([+-]?[0-9]+(?:\.[0-9]+)?)"

# (attribute, wire tag) in display order
FIELD_TAGS = (
    ("p", "P"),
    ("t1", "T1"),
    ("depth", "Depth"),
    ("alt", "Alt"),
    ("t2", "T2"),
)

_FIELD_PATTERNS = {
    attr: re.compile(re.escape(tag) + ":" + _NUMBER)
    for attr, tag in FIELD_TAGS
}


@dataclass(frozen=True)
class Timestamp:
    year: str
    month: str
    day: str
    hour: str
    minute: str
    second: str

    def __str__(self) -> str:
        return (f"{self.year}-{self.month}-{self.day} "
                f"{self.hour}:{self.minute}:{self.second}")


@dataclass(frozen=True)
class SensorFields:
    """Tagged values found in a data line, kept as the captured text."""

    p: str | None = None
    t1: str | None = None
    depth: str | None = None
    alt: str | None = None
    t2: str | None = None

    @property
    def complete(self) -> bool:
        return all(getattr(self, attr) is not None for attr, _ in FIELD_TAGS)

    def items(self) -> list[tuple[str, str | None]]:
        """Return (wire tag, value) pairs in display order."""
        return [(tag, getattr(self, attr)) for attr, tag in FIELD_TAGS]

    def as_floats(self) -> dict[str, float]:
        """Numeric view of the fields that are present, keyed by attribute."""
        return {
            attr: float(getattr(self, attr))
            for attr, _ in FIELD_TAGS
            if getattr(self, attr) is not None
        }


@dataclass(frozen=True)
class Informational:
    text: str


@dataclass(frozen=True)
class StructuredReading:
    raw_timestamp: str
    timestamp: Timestamp
    fields: SensorFields
    raw_remainder: str


@dataclass(frozen=True)
class FallbackReading:
    """A timestamped line missing at least one tagged field."""

    raw_timestamp: str
    timestamp: Timestamp
    fields: SensorFields
    raw_remainder: str

    @property
    def text(self) -> str:
        return f"{self.raw_timestamp}\t{self.raw_remainder}"


ClassifiedRecord = Union[Informational, StructuredReading, FallbackReading]


def parse_timestamp(ts: str) -> Timestamp:
    """Slice a 14-digit timestamp positionally.

    No calendar validation is done: ``20231305...`` keeps month "13".
    """
    return Timestamp(
        year=ts[0:4],
        month=ts[4:6],
        day=ts[6:8],
        hour=ts[8:10],
        minute=ts[10:12],
        second=ts[12:14],
    )


def extract_fields(text: str) -> SensorFields:
    """Search *text* independently for each tagged value (first match wins)."""
    found: dict[str, str] = {}
    for attr, pattern in _FIELD_PATTERNS.items():
        m = pattern.search(text)
        if m:
            found[attr] = m.group(1)
    return SensorFields(**found)


def decode_line(line: str) -> ClassifiedRecord | None:
    """Classify a single line. Returns None for blank lines."""
    if not line.strip():
        return None

    if not ("0" <= line[0] <= "9"):
        return Informational(line)

    parts = line.split("\t")
    if len(parts) < 2:
        return Informational(line)

    # Anything after the second tab-separated part is dropped
    timestamp_str, data_str = parts[0], parts[1]
    if not _TIMESTAMP_RE.fullmatch(timestamp_str):
        return Informational(line)

    timestamp = parse_timestamp(timestamp_str)
    fields = extract_fields(data_str)
    if fields.complete:
        return StructuredReading(timestamp_str, timestamp, fields, data_str)
    return FallbackReading(timestamp_str, timestamp, fields, data_str)


def decode(payload: str) -> Iterator[ClassifiedRecord]:
    """Decode a received payload into records, in line order.

    A payload may carry any number of newline-delimited lines; blank lines
    produce nothing. Decoding never fails: lines that do not fully parse
    degrade to :class:`Informational` or :class:`FallbackReading`.
    """
    for line in payload.split("\n"):
        record = decode_line(line)
        if record is not None:
            yield record
