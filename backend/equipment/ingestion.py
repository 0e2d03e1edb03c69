"""
CSV ingestion for equipment uploads.

The flow for one file is:

    raw file -> records -> resolve_columns (once) -> normalize_row (per row)
             -> is_retained (per row) -> summarize (once)

Everything in here is plain Python plus Pandas for reading the file, so the
functions can be tested without a database.  Persisting the result is the
job of `equipment.services`.
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import asdict, dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Sequence

import pandas as pd

from .exceptions import FileTooLargeError, InvalidFormatError

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"

MAX_UPLOAD_BYTES = 10 * 1024 * 1024

# Canonical field -> header substrings that identify it.  Order matters in
# both directions: fields are resolved top to bottom, and a header that gets
# picked for one field is not offered to the fields after it.
COLUMN_SYNONYMS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "name": ("equipment name", "name", "equipment"),
        "type": ("type", "equipment type"),
        "flowrate": ("flowrate", "flow rate", "flow"),
        "pressure": ("pressure", "press"),
        "temperature": ("temperature", "temp"),
    }
)

NUMERIC_FIELDS = ("flowrate", "pressure", "temperature")

# Name Pandas makes up for a column whose header cell is empty.
PLACEHOLDER_HEADER = re.compile(r"^Unnamed: \d+$")

RawRecord = Mapping[str, str]
ColumnMapping = Mapping[str, str]


@dataclass(frozen=True)
class NormalizedRow:
    equipment_name: str = UNKNOWN
    equipment_type: str = UNKNOWN
    flowrate: float | None = None
    pressure: float | None = None
    temperature: float | None = None

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class UploadSummary:
    avg_flowrate: float = 0.0
    avg_pressure: float = 0.0
    avg_temperature: float = 0.0
    type_distribution: dict[str, int] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """Shape stored in `Upload.summary` and returned by the API."""
        return {
            "avgFlowrate": self.avg_flowrate,
            "avgPressure": self.avg_pressure,
            "avgTemperature": self.avg_temperature,
            "typeDistribution": dict(self.type_distribution),
        }


@dataclass(frozen=True)
class ParsedUpload:
    """Result of parsing one file; nothing here has been saved yet."""

    filename: str
    columns: ColumnMapping
    rows: list[NormalizedRow]
    summary: UploadSummary

    @property
    def record_count(self) -> int:
        return len(self.rows)


def resolve_columns(headers: Sequence[str]) -> ColumnMapping:
    """
    Map each canonical field to the first header that mentions one of its
    synonyms (case-insensitive substring match).

    Fields with no matching header are simply missing from the result; the
    row normalizer falls back to "Unknown" / None for those.
    """
    claimed: set[str] = set()
    mapping: dict[str, str] = {}

    for canonical, synonyms in COLUMN_SYNONYMS.items():
        for header in headers:
            if header in claimed:
                continue
            lowered = header.lower()
            if any(synonym in lowered for synonym in synonyms):
                mapping[canonical] = header
                claimed.add(header)
                break

    return MappingProxyType(mapping)


def parse_number(raw: Any) -> float | None:
    """
    Turn a CSV cell into a float, or None if it is not a usable number.

    NaN and infinity are treated like garbage text: they would poison the
    averages and the database columns, so they become None as well.
    """
    if raw is None:
        return None
    text = str(raw).strip()
    # float() accepts "1_000", plain decimal notation does not.
    if not text or "_" in text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def _text_or_unknown(raw: Any) -> str:
    if raw is None:
        return UNKNOWN
    text = str(raw).strip()
    return text or UNKNOWN


def normalize_row(record: RawRecord, columns: ColumnMapping) -> NormalizedRow:
    """Build one canonical row from one CSV record."""
    name_header = columns.get("name")
    type_header = columns.get("type")

    numbers: dict[str, float | None] = {}
    for canonical in NUMERIC_FIELDS:
        header = columns.get(canonical)
        numbers[canonical] = parse_number(record.get(header)) if header else None

    return NormalizedRow(
        equipment_name=_text_or_unknown(record.get(name_header)) if name_header else UNKNOWN,
        equipment_type=_text_or_unknown(record.get(type_header)) if type_header else UNKNOWN,
        **numbers,
    )


def is_retained(row: NormalizedRow) -> bool:
    """Rows with neither a name nor a type are blank or junk lines."""
    return not (row.equipment_name == UNKNOWN and row.equipment_type == UNKNOWN)


def _average(column: pd.Series) -> float:
    value = pd.to_numeric(column, errors="coerce").mean()
    if pd.isna(value):
        # An empty column reports 0 rather than None so the dashboards can
        # always format the number.
        return 0.0
    return float(value)


def summarize(rows: Sequence[NormalizedRow]) -> UploadSummary:
    """Let Pandas do the averaging and counting; nulls are skipped by `mean()`."""
    df = pd.DataFrame(
        [row.as_dict() for row in rows],
        columns=["equipment_name", "equipment_type", *NUMERIC_FIELDS],
    )
    type_counts = df["equipment_type"].value_counts()
    return UploadSummary(
        avg_flowrate=_average(df["flowrate"]),
        avg_pressure=_average(df["pressure"]),
        avg_temperature=_average(df["temperature"]),
        type_distribution={
            str(equipment_type): int(count) for equipment_type, count in type_counts.items()
        },
    )


def check_upload_file(uploaded_file, max_bytes: int = MAX_UPLOAD_BYTES) -> None:
    """Cheap checks done before the file content is touched."""
    name = getattr(uploaded_file, "name", "") or ""
    if not name.lower().endswith(".csv"):
        raise InvalidFormatError()

    size = getattr(uploaded_file, "size", None)
    if size is not None and size > max_bytes:
        raise FileTooLargeError(
            f"File is too large. Maximum size is {max_bytes // (1024 * 1024)} MB."
        )


def read_records(uploaded_file) -> tuple[list[str], list[dict[str, str]]]:
    """
    Read the CSV into (headers, records) with every cell kept as raw text.

    `dtype=str` and `keep_default_na=False` stop Pandas from guessing types,
    so "N/A" or "" arrive untouched and the normalizer decides what they mean.
    """
    try:
        df = pd.read_csv(
            uploaded_file,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            index_col=False,
        )
    except (pd.errors.EmptyDataError, pd.errors.ParserError, UnicodeDecodeError) as exc:
        logger.warning("Could not read CSV %r: %s", getattr(uploaded_file, "name", "?"), exc)
        raise InvalidFormatError() from exc

    # Excel likes to prepend a BOM to the first header.  Empty header cells
    # come back as "Unnamed: N"; turn them back into "" so they match nothing.
    headers = [
        "" if PLACEHOLDER_HEADER.match(str(col)) else str(col).lstrip("\ufeff").strip()
        for col in df.columns
    ]

    records: list[dict[str, str]] = []
    for values in df.itertuples(index=False, name=None):
        record: dict[str, str] = {}
        for header, value in zip(headers, values):
            # Short lines come back as NaN even with keep_default_na=False.
            record.setdefault(header, value if isinstance(value, str) else "")
        records.append(record)
    return headers, records


def parse_upload(uploaded_file, max_bytes: int = MAX_UPLOAD_BYTES) -> ParsedUpload:
    """Validate, read, normalize and summarize one uploaded CSV file."""
    check_upload_file(uploaded_file, max_bytes=max_bytes)

    headers, records = read_records(uploaded_file)
    columns = resolve_columns(headers)

    rows = [
        row
        for row in (normalize_row(record, columns) for record in records)
        if is_retained(row)
    ]
    if not rows:
        logger.warning(
            "No usable rows in %r (%d records, columns=%s)",
            uploaded_file.name,
            len(records),
            dict(columns),
        )
        raise InvalidFormatError()

    logger.info(
        "Parsed %r: kept %d of %d records, columns=%s",
        uploaded_file.name,
        len(rows),
        len(records),
        dict(columns),
    )
    return ParsedUpload(
        filename=uploaded_file.name,
        columns=columns,
        rows=rows,
        summary=summarize(rows),
    )
