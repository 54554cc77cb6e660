"""In-memory record store indexed by subject id."""
from __future__ import annotations

import logging
from typing import Dict, Protocol, Sequence

from .models import Measurement, SignalType


class RecordSource(Protocol):
    """Protocol for anything the evaluator can read subject histories from."""

    def get_records(self, subject_id: int, start_time: int, end_time: int) -> Sequence[Measurement]:
        ...

    def get_all_subjects(self) -> Sequence["Subject"]:
        ...


class Subject:
    """A monitored subject and its append-only measurement history."""

    def __init__(self, subject_id: int) -> None:
        self.subject_id = subject_id
        self._records: list[Measurement] = []

    @property
    def records(self) -> list[Measurement]:
        return list(self._records)

    def add_record(self, value: float, label: str, timestamp: int) -> Measurement:
        measurement = Measurement(
            subject_id=self.subject_id,
            value=float(value),
            signal_type=SignalType.from_label(label),
            timestamp=int(timestamp),
            label=label,
        )
        self._records.append(measurement)
        return measurement

    def get_records(self, start_time: int, end_time: int) -> list[Measurement]:
        """Records with ``start_time <= timestamp <= end_time``, in insertion order."""

        return [record for record in self._records if start_time <= record.timestamp <= end_time]

    def __repr__(self) -> str:  # pragma: no cover - convenience only
        return f"<Subject id={self.subject_id} records={len(self._records)}>"


class RecordStore:
    """Explicitly constructed store of subject histories.

    Use as a context manager, or call :meth:`close` when done; a closed
    store still answers queries with empty results but rejects writes.
    """

    def __init__(self) -> None:
        self._subjects: Dict[int, Subject] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("RecordStore is closed")

    def add_measurement(self, subject_id: int, value: float, label: str, timestamp: int) -> Measurement:
        self._ensure_open()
        subject = self._subjects.get(subject_id)
        if subject is None:
            subject = Subject(subject_id)
            self._subjects[subject_id] = subject
        return subject.add_record(value, label, timestamp)

    def add_subject(self, subject: Subject) -> None:
        """Add or replace a subject."""

        self._ensure_open()
        self._subjects[subject.subject_id] = subject

    def get_subject(self, subject_id: int) -> Subject | None:
        return self._subjects.get(subject_id)

    def get_records(self, subject_id: int, start_time: int, end_time: int) -> list[Measurement]:
        subject = self._subjects.get(subject_id)
        if subject is None:
            return []
        return subject.get_records(start_time, end_time)

    def get_all_subjects(self) -> list[Subject]:
        return list(self._subjects.values())

    def reset(self) -> None:
        """Remove all stored subject data."""

        self._subjects.clear()

    def close(self) -> None:
        if self._closed:
            return
        logging.debug(f"Closing record store with {len(self._subjects)} subject(s)")
        self._subjects.clear()
        self._closed = True

    def __enter__(self) -> "RecordStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __len__(self) -> int:
        return len(self._subjects)
