"""Load raw text records into a :class:`~vital_alerts.store.RecordStore`.

Two formats are understood. Record files hold one labelled record per line::

    Patient ID: 1, Timestamp: 1743760000000, Label: ECG, Data: 0.5

Stream messages carry the bare fields, comma separated::

    1,1743760000000,OxygenSaturation,97%

Malformed input is logged and skipped, never raised.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Sequence

import pandas as pd

from models.record_models import MeasurementMessage

from .models import Measurement, SignalType
from .store import RecordStore

_FIELDS = ["subject_id", "timestamp", "label", "value"]
_MANUAL_LABELS = {"alert", "manualalert"}
_INTEGER_TEXT = r"[+-]?\d+"


def _empty_frame() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "subject_id": pd.Series(dtype="int64"),
            "timestamp": pd.Series(dtype="int64"),
            "label": pd.Series(dtype=object),
            "value": pd.Series(dtype="float64"),
        }
    )


def _integer_mask(text: pd.Series, bits: int) -> pd.Series:
    """Rows holding plain integer text that fits a signed ``bits``-bit integer."""

    matches = text.str.fullmatch(_INTEGER_TEXT, na=False).astype(bool)
    limit = 2 ** (bits - 1)
    in_range = text[matches].map(lambda raw: -limit <= int(raw) < limit)
    return matches & in_range.reindex(text.index, fill_value=False).astype(bool)


def parse_record_lines(lines: Iterable[str]) -> pd.DataFrame:
    """Parse labelled record lines, dropping the malformed ones.

    Percent signs are stripped from values. Manual alert lines whose data is
    not numeric are kept with a value of 0.0.
    """

    raw = pd.Series(list(lines), dtype=object)
    if raw.empty:
        return _empty_frame()
    raw = raw[raw.str.strip() != ""]
    if raw.empty:
        return _empty_frame()

    fields = raw.str.split(r",\s*", regex=True)
    well_formed = fields[fields.str.len() == len(_FIELDS)]
    if well_formed.empty:
        return _empty_frame()

    frame = pd.DataFrame(well_formed.tolist(), columns=_FIELDS, index=well_formed.index)
    for column in _FIELDS:
        frame[column] = frame[column].str.split(":", n=1).str[1].str.strip()

    # ids and timestamps stay text until validated so large values keep every digit
    value = pd.to_numeric(frame["value"].str.replace("%", "", regex=False), errors="coerce")
    label = frame["label"]

    manual = label.str.lower().isin(_MANUAL_LABELS)
    value = value.mask(manual & value.isna(), 0.0)

    valid = (
        _integer_mask(frame["subject_id"], 32)
        & _integer_mask(frame["timestamp"], 64)
        & value.notna()
        & label.notna()
        & (label != "")
    )
    if not valid.any():
        return _empty_frame()

    return pd.DataFrame(
        {
            "subject_id": frame.loc[valid, "subject_id"].map(int).astype("int64"),
            "timestamp": frame.loc[valid, "timestamp"].map(int).astype("int64"),
            "label": label[valid],
            "value": value[valid].astype("float64"),
        }
    ).reset_index(drop=True)


class FileRecordReader:
    """Reads every ``*.txt`` record file under a directory."""

    def __init__(self, directory: Path | str) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def iter_files(self) -> list[Path]:
        if not self._directory.is_dir():
            logging.error(f"Invalid record directory: {self._directory}")
            return []
        return sorted(path for path in self._directory.rglob("*.txt") if path.is_file())

    def read_file(self, path: Path) -> pd.DataFrame:
        try:
            lines = path.read_text().splitlines()
        except (OSError, UnicodeDecodeError) as exc:
            logging.error(f"Error reading record file {path}: {exc}")
            return _empty_frame()

        frame = parse_record_lines(lines)
        skipped = sum(1 for line in lines if line.strip()) - len(frame)
        if skipped:
            logging.warning(f"Skipped {skipped} malformed record line(s) in {path}")
        return frame

    def read_into(self, store: RecordStore) -> int:
        """Load all record files into ``store``; return the number of records stored."""

        stored = 0
        for path in self.iter_files():
            frame = self.read_file(path)
            for row in frame.itertuples(index=False):
                store.add_measurement(int(row.subject_id), float(row.value), str(row.label), int(row.timestamp))
            stored += len(frame)
        logging.info(f"Loaded {stored} record(s) from {self._directory}")
        return stored


def parse_stream_message(message: str) -> Measurement | None:
    """Decode one stream message, or ``None`` when it is malformed."""

    try:
        payload = MeasurementMessage.from_message(message)
    except ValueError as exc:
        logging.warning(f"Failed to parse message {message!r}: {exc}")
        return None
    return Measurement(
        subject_id=payload.subjectId,
        value=payload.measurementValue,
        signal_type=SignalType.from_label(payload.recordType),
        timestamp=payload.timestamp,
        label=payload.recordType,
    )


def store_stream_message(store: RecordStore, message: str) -> bool:
    """Decode ``message`` and append it to ``store``; False when it was dropped."""

    measurement = parse_stream_message(message)
    if measurement is None:
        return False
    store.add_measurement(measurement.subject_id, measurement.value, measurement.label, measurement.timestamp)
    logging.debug(
        f"Stored subject={measurement.subject_id} {measurement.label}={measurement.value:.2f} at {measurement.timestamp}"
    )
    return True


def load_stream_messages(store: RecordStore, messages: Sequence[str]) -> int:
    """Store every well-formed message; return how many were kept."""

    return sum(store_stream_message(store, message) for message in messages)
