"""Per-contract submission status storage."""

from __future__ import annotations

import asyncio
import fcntl
import json
from collections.abc import Iterable, Mapping
from dataclasses import fields as dataclass_fields
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Protocol

from .exceptions import ValidationError
from .models import RentalContract, SubmissionRecord, SubmissionStatus
from .util import parse_timestamp

_RECORD_FIELDS = frozenset(f.name for f in dataclass_fields(SubmissionRecord)) - {"contract_id"}


class StatusStore(Protocol):
    """Key-value store of submission records keyed by contract id.

    No transaction spans a remote call and the write that follows it.
    """

    async def get(self, contract_id: str) -> SubmissionRecord | None: ...

    async def upsert(self, contract_id: str, fields: Mapping[str, Any]) -> SubmissionRecord: ...

    async def query_by_status(
        self,
        statuses: Iterable[SubmissionStatus],
    ) -> list[SubmissionRecord]: ...


def merge_record(
    contract_id: str,
    current: SubmissionRecord | None,
    changes: Mapping[str, Any],
) -> SubmissionRecord:
    if not isinstance(contract_id, str) or not contract_id:
        raise ValidationError("contract_id must be a non-empty string.")
    unknown = set(changes) - _RECORD_FIELDS
    if unknown:
        raise ValidationError(f"Unknown record fields: {', '.join(sorted(unknown))}.")
    updates = dict(changes)
    if "status" in updates:
        updates["status"] = SubmissionStatus(updates["status"])
    record = replace(current or SubmissionRecord(contract_id=contract_id), **updates)
    if record.status is SubmissionStatus.SUBMITTED and record.remote_id is None:
        raise ValidationError("A submitted record requires a remote_id.")
    return record


class InMemoryStatusStore:
    """Status store kept in process memory."""

    def __init__(self, records: Iterable[SubmissionRecord] = ()) -> None:
        self._records: dict[str, SubmissionRecord] = {
            record.contract_id: record for record in records
        }
        self._lock = asyncio.Lock()

    async def get(self, contract_id: str) -> SubmissionRecord | None:
        return self._records.get(contract_id)

    async def upsert(self, contract_id: str, fields: Mapping[str, Any]) -> SubmissionRecord:
        async with self._lock:
            record = merge_record(contract_id, self._records.get(contract_id), fields)
            self._records[contract_id] = record
            return record

    async def query_by_status(
        self,
        statuses: Iterable[SubmissionStatus],
    ) -> list[SubmissionRecord]:
        wanted = {SubmissionStatus(status) for status in statuses}
        return [record for record in self._records.values() if record.status in wanted]


def _dump_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


def _load_datetime(value: Any) -> datetime | None:
    if value is None:
        return None
    return parse_timestamp(value)


def contract_to_dict(contract: RentalContract) -> dict[str, Any]:
    return {
        f.name: _dump_value(getattr(contract, f.name)) for f in dataclass_fields(RentalContract)
    }


def contract_from_dict(data: Mapping[str, Any]) -> RentalContract:
    total_cost = data.get("total_cost")
    if isinstance(total_cost, str):
        total_cost = Decimal(total_cost)
    return RentalContract(
        customer_vat_number=data["customer_vat_number"],
        license_plate=data["license_plate"],
        make_model=data.get("make_model", ""),
        pickup_at=parse_timestamp(data["pickup_at"]),
        dropoff_at=_load_datetime(data.get("dropoff_at")),
        vehicle_year=data.get("vehicle_year"),
        start_km=data.get("start_km"),
        total_cost=total_cost,
        branch=data.get("branch"),
    )


def record_to_dict(record: SubmissionRecord) -> dict[str, Any]:
    return {
        "contract_id": record.contract_id,
        "status": record.status.value,
        "remote_id": record.remote_id,
        "error_text": record.error_text,
        "invoice_mark": record.invoice_mark,
        "submitted_at": _dump_value(record.submitted_at),
        "updated_at": _dump_value(record.updated_at),
        "declaration": (
            contract_to_dict(record.declaration) if record.declaration is not None else None
        ),
    }


def record_from_dict(data: Mapping[str, Any]) -> SubmissionRecord:
    declaration = data.get("declaration")
    return SubmissionRecord(
        contract_id=data["contract_id"],
        status=SubmissionStatus(data.get("status") or SubmissionStatus.NONE),
        remote_id=data.get("remote_id"),
        error_text=data.get("error_text"),
        invoice_mark=data.get("invoice_mark"),
        submitted_at=_load_datetime(data.get("submitted_at")),
        updated_at=_load_datetime(data.get("updated_at")),
        declaration=contract_from_dict(declaration) if declaration else None,
    )


class JsonFileStatusStore:
    """Status store persisted as a single JSON document.

    File access runs in a worker thread under an advisory ``flock``.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, dict[str, Any]]:
        if not self._path.exists():
            return {}
        with open(self._path, encoding="utf-8") as f:
            fcntl.flock(f, fcntl.LOCK_SH)
            try:
                raw = f.read()
            finally:
                fcntl.flock(f, fcntl.LOCK_UN)
        if not raw.strip():
            return {}
        data = json.loads(raw)
        return data.get("records", {})

    def _write(self, records: Mapping[str, dict[str, Any]]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "a+", encoding="utf-8") as f:
            fcntl.flock(f, fcntl.LOCK_EX)
            try:
                f.seek(0)
                f.truncate()
                f.write(json.dumps({"records": records}, indent=2, ensure_ascii=False) + "\n")
            finally:
                fcntl.flock(f, fcntl.LOCK_UN)

    async def get(self, contract_id: str) -> SubmissionRecord | None:
        records = await asyncio.to_thread(self._read)
        data = records.get(contract_id)
        return record_from_dict(data) if data is not None else None

    async def upsert(self, contract_id: str, fields: Mapping[str, Any]) -> SubmissionRecord:
        async with self._lock:
            records = await asyncio.to_thread(self._read)
            current = records.get(contract_id)
            record = merge_record(
                contract_id,
                record_from_dict(current) if current is not None else None,
                fields,
            )
            records[contract_id] = record_to_dict(record)
            await asyncio.to_thread(self._write, records)
            return record

    async def query_by_status(
        self,
        statuses: Iterable[SubmissionStatus],
    ) -> list[SubmissionRecord]:
        wanted = {SubmissionStatus(status) for status in statuses}
        records = await asyncio.to_thread(self._read)
        loaded = (record_from_dict(data) for data in records.values())
        return [record for record in loaded if record.status in wanted]
