"""
Business logic for sick‑leave records.

The record set is reference data: it is built once when the application
starts, held in a tuple of frozen dataclasses and never changed
afterwards.  Because nothing writes to it, any number of requests may
read it concurrently without locking.

Each record's ``days`` value is computed here from its start and end
dates.  A ``days`` value present in the raw input is ignored.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from ..core.config import Settings
from ..core.errors import InternalError
from ..schemas.leave import LeaveRead


logger = logging.getLogger(__name__)

# Raw wire name -> attribute name.  ``days`` is derived and never read.
RAW_FIELDS = {
    "serviceCode": "service_code",
    "idNumber": "id_number",
    "name": "name",
    "reportDate": "report_date",
    "startDate": "start_date",
    "endDate": "end_date",
    "doctorName": "doctor_name",
    "jobTitle": "job_title",
}

SEED_LEAVES: Tuple[Mapping[str, str], ...] = (
    {
        "serviceCode": "GSL25021372778",
        "idNumber": "1088576044",
        "name": "عبدالإله سليمان عبدالله الهديلج",
        "reportDate": "2025-02-24",
        "startDate": "2025-02-09",
        "endDate": "2025-02-24",
        "doctorName": "هدى مصطفى خضر دحبور",
        "jobTitle": "استشاري",
    },
    {
        "serviceCode": "GSL25021898579",
        "idNumber": "1088576044",
        "name": "عبدالإله سليمان عبدالله الهديلج",
        "reportDate": "2025-03-26",
        "startDate": "2025-02-25",
        "endDate": "2025-03-26",
        "doctorName": "جمال راشد السر محمد احمد",
        "jobTitle": "استشاري",
    },
    {
        "serviceCode": "GSL25022385036",
        "idNumber": "1088576044",
        "name": "عبدالإله سليمان عبدالله الهديلج",
        "reportDate": "2025-04-17",
        "startDate": "2025-03-27",
        "endDate": "2025-04-17",
        "doctorName": "جمال راشد السر محمد احمد",
        "jobTitle": "استشاري",
    },
    {
        "serviceCode": "GSL25022884602",
        "idNumber": "1088576044",
        "name": "عبدالإله سليمان عبدالله الهديلج",
        "reportDate": "2025-04-18",
        "startDate": "2025-04-18",
        "endDate": "2025-05-15",
        "doctorName": "هدى مصطفى خضر دحبور",
        "jobTitle": "استشاري",
    },
    {
        "serviceCode": "GSL25023345012",
        "idNumber": "1088576044",
        "name": "عبدالإله سليمان عبدالله الهديلج",
        "reportDate": "2025-05-16",
        "startDate": "2025-05-16",
        "endDate": "2025-06-12",
        "doctorName": "هدى مصطفى خضر دحبور",
        "jobTitle": "استشاري",
    },
    {
        "serviceCode": "GSL25062955824",
        "idNumber": "1088576044",
        "name": "عبدالإله سليمان عبدالله الهديلج",
        "reportDate": "2025-06-13",
        "startDate": "2025-06-13",
        "endDate": "2025-07-11",
        "doctorName": "هدى مصطفى خضر دبحور",
        "jobTitle": "استشاري",
    },
    {
        "serviceCode": "GSL25071678945",
        "idNumber": "1088576044",
        "name": "عبدالإله سليمان عبدالله الهديلج",
        "reportDate": "2025-07-12",
        "startDate": "2025-07-12",
        "endDate": "2025-07-31",
        "doctorName": "عبدالعزيز فهد الروقي",
        "jobTitle": "استشاري",
    },
)


ISO_DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def _parse_date(value: Any) -> Optional[date]:
    if not isinstance(value, str) or not ISO_DATE_PATTERN.fullmatch(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def calc_days(start: Any, end: Any) -> int:
    """Return the inclusive number of days from ``start`` to ``end``.

    Both values are ISO ``YYYY-MM-DD`` date strings and are compared as
    plain dates, so the result does not depend on any time zone.  ``0``
    is returned when either date cannot be parsed or when ``end`` falls
    before ``start``.  A single day leave yields ``1``.
    """
    start_date = _parse_date(start)
    end_date = _parse_date(end)
    if start_date is None or end_date is None or end_date < start_date:
        return 0
    return (end_date - start_date).days + 1


@dataclass(frozen=True)
class LeaveRecord:
    """A single sick‑leave record as held by the store.

    ``id_number`` is used as a match key only; use :func:`redact` before
    returning a record to a caller.
    """

    service_code: str
    id_number: str
    name: str
    report_date: str
    start_date: str
    end_date: str
    doctor_name: str
    job_title: str
    days: int

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "LeaveRecord":
        """Build a record from a raw mapping, computing ``days``."""
        missing = [key for key in RAW_FIELDS if key not in raw]
        if missing:
            raise InternalError(f"Leave record is missing fields: {', '.join(missing)}")
        values = {attr: raw[key] for key, attr in RAW_FIELDS.items()}
        for attr, value in values.items():
            if not isinstance(value, str):
                raise InternalError(f"Leave record field {attr} must be a string")
        return cls(days=calc_days(values["start_date"], values["end_date"]), **values)


def redact(record: LeaveRecord) -> LeaveRead:
    """Return the public view of ``record`` without its id number."""
    return LeaveRead(
        service_code=record.service_code,
        name=record.name,
        report_date=record.report_date,
        start_date=record.start_date,
        end_date=record.end_date,
        doctor_name=record.doctor_name,
        job_title=record.job_title,
        days=record.days,
    )


class LeaveStore:
    """Read‑only collection of leave records.

    The store exposes lookups only; there is no way to add, change or
    remove a record once it has been built.
    """

    def __init__(self, records: Iterable[LeaveRecord]) -> None:
        self._records: Tuple[LeaveRecord, ...] = tuple(records)

    @classmethod
    def from_raw(cls, raw_records: Iterable[Mapping[str, Any]]) -> "LeaveStore":
        return cls(LeaveRecord.from_raw(raw) for raw in raw_records)

    def __len__(self) -> int:
        return len(self._records)

    def find_one(self, service_code: str, id_number: str) -> Optional[LeaveRecord]:
        """Return the record matching both keys exactly, or ``None``.

        Matching is case sensitive.  If more than one record matched, the
        first one in store order would be returned.
        """
        logger.info("Leave lookup for service code %s", service_code)
        for record in self._records:
            if record.service_code == service_code and record.id_number == id_number:
                return record
        return None

    def list_all(self) -> List[LeaveRead]:
        """Return every record in store order, redacted."""
        return [redact(record) for record in self._records]


def load_raw_records(path: str) -> List[Mapping[str, Any]]:
    """Read raw leave records from a JSON file holding an array of objects."""
    try:
        with Path(path).open(encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, ValueError) as e:
        raise InternalError(f"Cannot read leave data from {path}: {e}") from e
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise InternalError(f"Leave data in {path} must be a JSON array of objects")
    return data


def load_default_store(app_settings: Settings) -> LeaveStore:
    """Build the application's store once at startup.

    Uses ``settings.leave_data_file`` when configured, otherwise the
    built‑in records.
    """
    if app_settings.leave_data_file:
        raw_records: Iterable[Mapping[str, Any]] = load_raw_records(app_settings.leave_data_file)
        source = app_settings.leave_data_file
    else:
        raw_records = SEED_LEAVES
        source = "built-in records"
    store = LeaveStore.from_raw(raw_records)
    logger.info("Loaded %d leave records from %s", len(store), source)
    return store
