"""Bounded record retention for display shells.

The session only emits events; how much of the stream to keep on screen is
decided here. Records go into a rolling deque, and each structured reading
also lands in fixed-size numpy buffers so plots can pull whole series
without copying record objects.
"""

from __future__ import annotations

from collections import deque

import numpy as np

from .decoder import FIELD_TAGS, ClassifiedRecord, StructuredReading

FIELD_NAMES = tuple(attr for attr, _ in FIELD_TAGS)
_FIELD_INDEX = {name: i for i, name in enumerate(FIELD_NAMES)}


class ReadingHistory:
    """Rolling window of received records and sensor samples."""

    DEFAULT_MAX_RECORDS = 10_000
    DEFAULT_MAX_SAMPLES = 10_000

    def __init__(self, max_records: int = DEFAULT_MAX_RECORDS,
                 max_samples: int = DEFAULT_MAX_SAMPLES) -> None:
        if max_samples <= 0:
            raise ValueError("max_samples must be positive")
        self.max_samples = max_samples
        self._records: deque[ClassifiedRecord] = deque(maxlen=max_records)
        self._seq = np.zeros(max_samples, dtype=np.int64)
        self._values = np.full((max_samples, len(FIELD_NAMES)), np.nan,
                               dtype=np.float64)
        self._total = 0  # structured readings ever appended

    def append(self, record: ClassifiedRecord) -> None:
        self._records.append(record)
        if not isinstance(record, StructuredReading):
            return
        vals = record.fields.as_floats()
        i = self._total % self.max_samples
        self._seq[i] = self._total
        self._values[i] = [vals[name] for name in FIELD_NAMES]
        self._total += 1

    def extend(self, records) -> None:
        for record in records:
            self.append(record)

    @property
    def records(self) -> list[ClassifiedRecord]:
        return list(self._records)

    @property
    def total_samples(self) -> int:
        return self._total

    @property
    def truncated_samples(self) -> int:
        """Samples discarded by the rolling window."""
        return max(0, self._total - self.max_samples)

    def __len__(self) -> int:
        return min(self._total, self.max_samples)

    def _order(self) -> np.ndarray:
        n = len(self)
        if self._total <= self.max_samples:
            return np.arange(n)
        start = self._total % self.max_samples
        return np.concatenate((np.arange(start, self.max_samples),
                               np.arange(0, start)))

    def series(self, name: str) -> tuple[np.ndarray, np.ndarray]:
        """Return (sample_numbers, values) for one field, oldest first."""
        try:
            col = _FIELD_INDEX[name]
        except KeyError:
            raise KeyError(f"unknown field {name!r}; "
                           f"expected one of {', '.join(FIELD_NAMES)}") from None
        order = self._order()
        return self._seq[order], self._values[order, col]

    def latest(self) -> dict[str, float] | None:
        """Most recent sample as {field: value}, or None before any reading."""
        if self._total == 0:
            return None
        row = self._values[(self._total - 1) % self.max_samples]
        return {name: float(v) for name, v in zip(FIELD_NAMES, row)}

    def clear(self) -> None:
        self._records.clear()
        self._values.fill(np.nan)
        self._seq.fill(0)
        self._total = 0
