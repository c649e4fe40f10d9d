"""
Shift feed loader.

Reads the scheduling collaborator's shift export (CSV with a header row,
an .xlsx workbook, a JSON array, or JSON Lines) into ``WorkShift``
records.  Missing fields and unparseable dates become ``None``; hours or
status text that cannot be parsed is kept as text.  Either way the
aggregation step reports the record instead of the whole file failing.

Recognised columns: ``shift_id``, ``contractor_id``, ``role``, ``date``,
``hours`` (or ``start`` + ``end`` ISO timestamps), ``status``,
``institution``, ``notes``.
"""

from __future__ import annotations

import csv
import json
from collections.abc import Iterator
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any
from uuid import NAMESPACE_URL, UUID, uuid4, uuid5

import openpyxl

from payroll_kernel.domain.money import to_decimal
from payroll_kernel.logging_config import get_logger
from payroll_modules.contractor_pay.models import ShiftStatus, WorkShift

logger = get_logger("modules.contractor_pay.feed")


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _text(value: Any) -> str | None:
    return None if _blank(value) else str(value).strip()


def _parse_shift_id(value: Any) -> UUID:
    if _blank(value):
        return uuid4()
    try:
        return UUID(str(value).strip())
    except ValueError:
        # Scheduler ids that are not UUIDs map to a stable UUID.
        return uuid5(NAMESPACE_URL, f"shift:{str(value).strip()}")


def _parse_date(value: Any) -> date | None:
    if _blank(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def _parse_datetime(value: Any) -> datetime | None:
    if _blank(value):
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).strip())
    except ValueError:
        return None


def _parse_hours(value: Any) -> Decimal | str | None:
    if _blank(value):
        return None
    try:
        return to_decimal(value)
    except ValueError:
        # Kept as text; validate_shift rejects it with the value it saw.
        return str(value).strip()


def _parse_status(value: Any) -> ShiftStatus | str:
    if _blank(value):
        return ShiftStatus.COMPLETED
    raw = str(value).strip().lower().replace("-", "_").replace(" ", "_")
    try:
        return ShiftStatus(raw)
    except ValueError:
        # Left as text; validate_shift rejects it per contractor.
        return raw


def record_to_shift(record: dict[str, Any]) -> WorkShift:
    """Convert one feed record (keys case-insensitive) to a ``WorkShift``."""
    row = {str(k).strip().lower(): v for k, v in record.items() if k is not None}
    shift_id = _parse_shift_id(row.get("shift_id", row.get("id")))
    status = _parse_status(row.get("status"))

    start = _parse_datetime(row.get("start"))
    end = _parse_datetime(row.get("end"))
    if _blank(row.get("hours")) and start is not None and end is not None:
        derived = WorkShift.from_times(
            contractor_id=_text(row.get("contractor_id")),
            role=_text(row.get("role")),
            start=start,
            end=end,
            institution=_text(row.get("institution")),
            notes=_text(row.get("notes")),
            shift_id=shift_id,
        )
        return WorkShift(
            shift_id=derived.shift_id,
            contractor_id=derived.contractor_id,
            role=derived.role,
            work_date=_parse_date(row.get("date")) or derived.work_date,
            hours=derived.hours,
            status=status,
            institution=derived.institution,
            notes=derived.notes,
        )

    return WorkShift(
        shift_id=shift_id,
        contractor_id=_text(row.get("contractor_id")),
        role=_text(row.get("role")),
        work_date=_parse_date(row.get("date", row.get("work_date"))),
        hours=_parse_hours(row.get("hours")),
        status=status,
        institution=_text(row.get("institution")),
        notes=_text(row.get("notes")),
    )


def _read_workbook(path: Path) -> Iterator[dict[str, Any]]:
    """First worksheet; row 1 is the header, blank rows are skipped."""
    wb = openpyxl.load_workbook(path, read_only=True, data_only=True)
    try:
        rows = wb.worksheets[0].iter_rows(values_only=True)
        header = next(rows, None)
        if header is None:
            return
        keys = [_text(cell) or f"column_{i + 1}" for i, cell in enumerate(header)]
        for row in rows:
            if all(_blank(cell) for cell in row):
                continue
            yield dict(zip(keys, row))
    finally:
        wb.close()


def _read_records(path: Path, encoding: str) -> Iterator[dict[str, Any]]:
    suffix = path.suffix.lower()
    if suffix == ".csv":
        enc = "utf-8-sig" if encoding.lower() == "utf-8" else encoding
        with path.open("r", encoding=enc, newline="") as f:
            yield from csv.DictReader(f)
    elif suffix == ".xlsx":
        yield from _read_workbook(path)
    elif suffix in (".jsonl", ".ndjson"):
        with path.open("r", encoding=encoding) as f:
            for line in f:
                line = line.strip()
                if line:
                    item = json.loads(line)
                    if isinstance(item, dict):
                        yield item
    elif suffix == ".json":
        with path.open("r", encoding=encoding) as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get("shifts", [])
        if not isinstance(data, list):
            raise ValueError(f"{path}: expected a JSON array of shift records")
        yield from (item for item in data if isinstance(item, dict))
    else:
        raise ValueError(f"Unsupported shift feed format: {path.suffix or path.name}")


def load_shift_feed(path: str | Path, encoding: str = "utf-8") -> tuple[WorkShift, ...]:
    """Load every record of a shift feed file.

    Raises:
        ValueError: for an unsupported file type or a malformed JSON document.
        OSError: if the file cannot be read.
    """
    path = Path(path)
    shifts = tuple(record_to_shift(record) for record in _read_records(path, encoding))
    logger.info("shift_feed_loaded", extra={
        "path": str(path),
        "record_count": len(shifts),
    })
    return shifts
