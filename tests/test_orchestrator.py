from __future__ import annotations

import asyncio
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

import pytest
from lxml import etree

from pyaadeclient.config import AADEConfig
from pyaadeclient.const import NOT_CONFIGURED_NOTE
from pyaadeclient.exceptions import NetworkError, TransportError
from pyaadeclient.models import (
    Environment,
    InvoiceKind,
    RentalContract,
    ResyncError,
    SubmissionRecord,
    SubmissionStatus,
)
from pyaadeclient.orchestrator import INVALID_VAT_ERROR, SubmissionOrchestrator
from pyaadeclient.service import AADEService
from pyaadeclient.store import InMemoryStatusStore

NOW = datetime(2024, 6, 1, 10, 0, tzinfo=UTC)
PICKUP = datetime(2024, 6, 1, 9, 0, tzinfo=UTC)
DROPOFF = datetime(2024, 6, 4, 9, 0, tzinfo=UTC)


def _response(status: str = "Success", body: str = "") -> str:
    return (
        "<ResponseDoc><response>"
        f"<statusCode>{status}</statusCode>{body}"
        "</response></ResponseDoc>"
    )


def _new_id(dcl_id: int) -> str:
    return _response(body=f"<newClientDclID>{dcl_id}</newClientDclID>")


INVALID_PLATE = _response(
    "ValidationError",
    "<errors><code>E1</code><message>Invalid plate</message></errors>",
)


class _FakeTransport:
    def __init__(self, results: list[object] | None = None) -> None:
        self._results = list(results or [])
        self.calls: list[tuple[str, str, dict[str, object]]] = []

    async def post(self, path: str, body: str | None = None, **kwargs: object) -> str:
        return self._next("POST", path, body=body, **kwargs)

    async def get(self, path: str, **kwargs: object) -> str:
        return self._next("GET", path, **kwargs)

    def _next(self, method: str, path: str, **kwargs: object) -> str:
        self.calls.append((method, path, kwargs))
        result = self._results[len(self.calls) - 1]
        if isinstance(result, Exception):
            raise result
        return result  # type: ignore[return-value]


class _RecordingStore(InMemoryStatusStore):
    def __init__(self, records: list[SubmissionRecord] | None = None) -> None:
        super().__init__(records or [])
        self.upserts: list[tuple[str, dict[str, Any]]] = []

    async def upsert(self, contract_id: str, fields: Mapping[str, Any]) -> SubmissionRecord:
        self.upserts.append((contract_id, dict(fields)))
        return await super().upsert(contract_id, fields)

    def writes_with_status(self, status: SubmissionStatus) -> list[tuple[str, dict[str, Any]]]:
        return [entry for entry in self.upserts if entry[1].get("status") == status]


def _config(**overrides: object) -> AADEConfig:
    values = {
        "user_id": "user",
        "subscription_key": "key",
        "environment": Environment.DEVELOPMENT,
        "entity_vat_number": "999999999",
    }
    values.update(overrides)
    return AADEConfig(**values)  # type: ignore[arg-type]


def _contract(**overrides: object) -> RentalContract:
    values = {
        "customer_vat_number": "123456789",
        "license_plate": "ABC-1234",
        "make_model": "Toyota Yaris",
        "pickup_at": PICKUP,
        "dropoff_at": DROPOFF,
        "vehicle_year": 2022,
        "start_km": 15000,
        "total_cost": 250,
    }
    values.update(overrides)
    return RentalContract(**values)  # type: ignore[arg-type]


def _orchestrator(
    transport: _FakeTransport,
    store: InMemoryStatusStore | None = None,
    config: AADEConfig | None = None,
) -> SubmissionOrchestrator:
    config = config or _config()
    service = AADEService(transport, config)  # type: ignore[arg-type]
    return SubmissionOrchestrator(
        service,
        store if store is not None else _RecordingStore(),
        config,
        clock=lambda: NOW,
    )


@pytest.mark.asyncio
async def test_submit_success_scenario() -> None:
    transport = _FakeTransport([_new_id(555)])
    store = _RecordingStore()
    orchestrator = _orchestrator(transport, store)

    result = await orchestrator.submit("contract-1", _contract())

    assert result.success is True
    assert result.remote_id == 555
    record = await store.get("contract-1")
    assert record is not None
    assert record.status is SubmissionStatus.SUBMITTED
    assert record.remote_id == 555
    assert record.submitted_at == NOW
    assert record.error_text is None
    submitted = store.writes_with_status(SubmissionStatus.SUBMITTED)
    assert len(submitted) == 1
    assert submitted[0][1]["remote_id"] == 555


@pytest.mark.asyncio
async def test_submit_sends_rental_declaration() -> None:
    transport = _FakeTransport([_new_id(555)])
    await _orchestrator(transport).submit("contract-1", _contract())

    method, path, kwargs = transport.calls[0]
    assert (method, path) == ("POST", "SendClient")
    root = etree.fromstring(str(kwargs["body"]).encode("utf-8"))
    assert root.findtext("clientServiceType") == "1"
    assert root.findtext("entityVatNumber") == "999999999"
    assert root.findtext("customerVatNumber") == "123456789"
    assert root.findtext("comments") == "Ενοικίαση ABC-1234"
    assert root.findtext("RentalType/vehiclePlateNumber") == "ABC-1234"
    assert root.findtext("RentalType/vehicleBrand") == "Toyota"
    assert root.findtext("RentalType/vehicleModel") == "Yaris"
    assert root.findtext("RentalType/startDateTime") == "2024-06-01T09:00:00.000Z"
    assert root.findtext("RentalType/estimatedEndDateTime") == "2024-06-04T09:00:00.000Z"


@pytest.mark.asyncio
async def test_submit_omits_model_for_single_word_make() -> None:
    transport = _FakeTransport([_new_id(1)])
    await _orchestrator(transport).submit("contract-1", _contract(make_model="Fiat"))

    body = str(transport.calls[0][2]["body"])
    assert "<vehicleBrand>Fiat</vehicleBrand>" in body
    assert "vehicleModel" not in body


@pytest.mark.asyncio
async def test_submit_domain_error_scenario() -> None:
    transport = _FakeTransport([INVALID_PLATE])
    store = _RecordingStore()
    orchestrator = _orchestrator(transport, store)

    result = await orchestrator.submit("contract-1", _contract())

    assert result.success is False
    assert result.error == "Invalid plate"
    record = await store.get("contract-1")
    assert record is not None
    assert record.status is SubmissionStatus.ERROR
    assert record.error_text == "Invalid plate"
    assert store.writes_with_status(SubmissionStatus.SUBMITTED) == []


@pytest.mark.asyncio
async def test_submit_rejects_ten_digit_vat_without_transport_call() -> None:
    transport = _FakeTransport([])
    store = _RecordingStore()

    result = await _orchestrator(transport, store).submit(
        "contract-1",
        _contract(customer_vat_number="1234567890"),
    )

    assert result.success is False
    assert result.error == INVALID_VAT_ERROR
    assert len(transport.calls) == 0
    assert store.upserts == []


@pytest.mark.asyncio
async def test_submit_is_advisory_when_not_configured() -> None:
    transport = _FakeTransport([])
    store = _RecordingStore()

    result = await _orchestrator(transport, store, _config(subscription_key="")).submit(
        "contract-1",
        _contract(),
    )

    assert result.success is True
    assert result.note == NOT_CONFIGURED_NOTE
    assert transport.calls == []
    assert store.upserts == []


@pytest.mark.asyncio
async def test_submit_transport_error_persists_error() -> None:
    transport = _FakeTransport([TransportError("HTTP 500: Internal Server Error", status=500)])
    store = _RecordingStore()

    result = await _orchestrator(transport, store).submit("contract-1", _contract())

    assert result.success is False
    assert result.error == "HTTP 500: Internal Server Error"
    record = await store.get("contract-1")
    assert record is not None
    assert record.status is SubmissionStatus.ERROR
    assert record.error_text == "HTTP 500: Internal Server Error"
    assert record.declaration == _contract()


@pytest.mark.asyncio
async def test_submit_unexpected_exception_persists_error() -> None:
    transport = _FakeTransport([RuntimeError("socket exploded")])
    store = _RecordingStore()

    result = await _orchestrator(transport, store).submit("contract-1", _contract())

    assert result.success is False
    assert result.error == "socket exploded"
    record = await store.get("contract-1")
    assert record is not None
    assert record.status is SubmissionStatus.ERROR


@pytest.mark.asyncio
async def test_submit_protocol_error_persists_error() -> None:
    transport = _FakeTransport(["<html>gateway</html>"])
    store = _RecordingStore()

    result = await _orchestrator(transport, store).submit("contract-1", _contract())

    assert result.success is False
    record = await store.get("contract-1")
    assert record is not None
    assert record.status is SubmissionStatus.ERROR


@pytest.mark.asyncio
async def test_submit_success_without_remote_id_is_an_error() -> None:
    transport = _FakeTransport([_response()])
    store = _RecordingStore()

    result = await _orchestrator(transport, store).submit("contract-1", _contract())

    assert result.success is False
    record = await store.get("contract-1")
    assert record is not None
    assert record.status is SubmissionStatus.ERROR
    assert record.remote_id is None


@pytest.mark.asyncio
async def test_submit_writes_pending_before_remote_call() -> None:
    transport = _FakeTransport([_new_id(555)])
    store = _RecordingStore()

    await _orchestrator(transport, store).submit("contract-1", _contract())

    statuses = [fields.get("status") for _, fields in store.upserts]
    assert statuses == [SubmissionStatus.PENDING, SubmissionStatus.SUBMITTED]


@pytest.mark.asyncio
async def test_submit_retries_after_error() -> None:
    store = _RecordingStore(
        [
            SubmissionRecord(
                contract_id="contract-1",
                status=SubmissionStatus.ERROR,
                error_text="Invalid plate",
            )
        ]
    )
    transport = _FakeTransport([_new_id(556)])

    result = await _orchestrator(transport, store).submit("contract-1", _contract())

    assert result.success is True
    record = await store.get("contract-1")
    assert record is not None
    assert record.status is SubmissionStatus.SUBMITTED
    assert record.error_text is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status",
    [SubmissionStatus.SUBMITTED, SubmissionStatus.COMPLETED, SubmissionStatus.CANCELLED],
)
async def test_submit_refuses_active_or_terminal_records(status: SubmissionStatus) -> None:
    store = _RecordingStore(
        [SubmissionRecord(contract_id="contract-1", status=status, remote_id=555)]
    )
    transport = _FakeTransport([])

    result = await _orchestrator(transport, store).submit("contract-1", _contract())

    assert result.success is False
    assert transport.calls == []
    assert store.upserts == []


@pytest.mark.asyncio
async def test_submit_rejects_naive_pickup_without_call() -> None:
    transport = _FakeTransport([])
    store = _RecordingStore()

    result = await _orchestrator(transport, store).submit(
        "contract-1",
        _contract(pickup_at=datetime(2024, 6, 1, 9), dropoff_at=None),
    )

    assert result.success is False
    assert transport.calls == []
    assert store.upserts == []


@pytest.mark.asyncio
async def test_submit_rejects_concurrent_submission_for_same_contract() -> None:
    release = asyncio.Event()

    class _SlowTransport(_FakeTransport):
        async def post(self, path: str, body: str | None = None, **kwargs: object) -> str:
            await release.wait()
            return await super().post(path, body, **kwargs)

    transport = _SlowTransport([_new_id(555)])
    orchestrator = _orchestrator(transport)

    first = asyncio.create_task(orchestrator.submit("contract-1", _contract()))
    await asyncio.sleep(0)
    second = await orchestrator.submit("contract-1", _contract())
    release.set()
    first_result = await first

    assert second.success is False
    assert first_result.success is True
    assert len(transport.calls) == 1


@pytest.mark.asyncio
async def test_complete_success() -> None:
    store = _RecordingStore(
        [SubmissionRecord("contract-1", SubmissionStatus.SUBMITTED, remote_id=555)]
    )
    transport = _FakeTransport(
        [_response(body="<updatedClientDclID>555</updatedClientDclID>")]
    )

    result = await _orchestrator(transport, store).complete(
        "contract-1",
        555,
        final_amount=310.5,
        end_km=15800,
        completion_time=DROPOFF,
        invoice_kind=InvoiceKind.INVOICE,
    )

    assert result.success is True
    record = await store.get("contract-1")
    assert record is not None
    assert record.status is SubmissionStatus.COMPLETED
    assert record.updated_at == NOW
    root = etree.fromstring(str(transport.calls[0][2]["body"]).encode("utf-8"))
    assert transport.calls[0][1] == "UpdateClient"
    assert root.findtext("initialDclId") == "555"
    assert root.findtext("amount") == "310.5"
    assert root.findtext("invoiceKind") == "2"
    assert root.findtext("endKm") == "15800"
    assert root.findtext("actualEndDateTime") == "2024-06-04T09:00:00.000Z"
    assert root.findtext("comments") == "Ολοκλήρωση ενοικίασης"


@pytest.mark.asyncio
async def test_complete_failure_persists_error() -> None:
    store = _RecordingStore(
        [SubmissionRecord("contract-1", SubmissionStatus.SUBMITTED, remote_id=555)]
    )
    transport = _FakeTransport(
        [
            _response(
                "ValidationError",
                "<errors><code>E9</code><message>Amount missing</message></errors>",
            )
        ]
    )

    result = await _orchestrator(transport, store).complete(
        "contract-1", 555, 100, 15800, DROPOFF, InvoiceKind.RECEIPT
    )

    assert result.success is False
    assert result.error == "Amount missing"
    record = await store.get("contract-1")
    assert record is not None
    assert record.status is SubmissionStatus.ERROR
    assert record.error_text == "Amount missing"
    assert record.remote_id == 555


@pytest.mark.asyncio
async def test_complete_requires_remote_id() -> None:
    transport = _FakeTransport([])
    result = await _orchestrator(transport).complete(
        "contract-1", None, 100, 15800, DROPOFF, InvoiceKind.RECEIPT
    )
    assert result.success is False
    assert transport.calls == []


@pytest.mark.asyncio
async def test_complete_rejects_invalid_invoice_kind() -> None:
    transport = _FakeTransport([])
    result = await _orchestrator(transport).complete("contract-1", 555, 100, 15800, DROPOFF, 7)
    assert result.success is False
    assert transport.calls == []


@pytest.mark.asyncio
async def test_cancel_without_remote_id_makes_no_call() -> None:
    transport = _FakeTransport([])
    store = _RecordingStore()

    result = await _orchestrator(transport, store).cancel("contract-1", None)

    assert result.success is False
    assert result.error
    assert len(transport.calls) == 0
    assert store.upserts == []


@pytest.mark.asyncio
async def test_cancel_success() -> None:
    store = _RecordingStore(
        [SubmissionRecord("contract-1", SubmissionStatus.SUBMITTED, remote_id=555)]
    )
    transport = _FakeTransport([_response(body="<cancellationID>42</cancellationID>")])

    result = await _orchestrator(transport, store).cancel("contract-1", 555)

    assert result.success is True
    method, path, kwargs = transport.calls[0]
    assert (method, path) == ("POST", "CancelClient")
    assert kwargs["params"] == {"DCLID": 555, "entityVatNumber": "999999999"}
    record = await store.get("contract-1")
    assert record is not None
    assert record.status is SubmissionStatus.CANCELLED


@pytest.mark.asyncio
async def test_cancel_failure_keeps_status() -> None:
    store = _RecordingStore(
        [SubmissionRecord("contract-1", SubmissionStatus.SUBMITTED, remote_id=555)]
    )
    transport = _FakeTransport([NetworkError("Network request failed: boom")])

    result = await _orchestrator(transport, store).cancel("contract-1", 555)

    assert result.success is False
    assert result.error == "Network request failed: boom"
    record = await store.get("contract-1")
    assert record is not None
    assert record.status is SubmissionStatus.SUBMITTED
    assert record.error_text == "Network request failed: boom"


@pytest.mark.asyncio
async def test_cancel_refuses_terminal_record() -> None:
    store = _RecordingStore(
        [SubmissionRecord("contract-1", SubmissionStatus.COMPLETED, remote_id=555)]
    )
    transport = _FakeTransport([])

    result = await _orchestrator(transport, store).cancel("contract-1", 555)

    assert result.success is False
    assert transport.calls == []


@pytest.mark.asyncio
async def test_correlate_records_invoice_mark_only() -> None:
    store = _RecordingStore(
        [SubmissionRecord("contract-1", SubmissionStatus.COMPLETED, remote_id=555)]
    )
    transport = _FakeTransport([_response()])

    result = await _orchestrator(transport, store).correlate_with_invoice(
        "contract-1", 555, "400001234567890"
    )

    assert result.success is True
    assert store.upserts == [
        ("contract-1", {"invoice_mark": "400001234567890", "updated_at": NOW})
    ]
    record = await store.get("contract-1")
    assert record is not None
    assert record.status is SubmissionStatus.COMPLETED
    assert record.invoice_mark == "400001234567890"


@pytest.mark.asyncio
async def test_correlate_failure_changes_nothing() -> None:
    store = _RecordingStore(
        [SubmissionRecord("contract-1", SubmissionStatus.COMPLETED, remote_id=555)]
    )
    transport = _FakeTransport(
        [
            _response(
                "ValidationError",
                "<errors><code>E3</code><message>Unknown mark</message></errors>",
            )
        ]
    )

    result = await _orchestrator(transport, store).correlate_with_invoice(
        "contract-1", 555, "bad"
    )

    assert result.success is False
    assert result.error == "Unknown mark"
    assert store.upserts == []


@pytest.mark.asyncio
async def test_resync_continues_after_failure() -> None:
    store = _RecordingStore(
        [
            SubmissionRecord("c1", SubmissionStatus.PENDING, declaration=_contract()),
            SubmissionRecord("c2", SubmissionStatus.PENDING, declaration=_contract()),
            SubmissionRecord("c3", SubmissionStatus.NONE, declaration=_contract()),
            SubmissionRecord("c4", SubmissionStatus.SUBMITTED, remote_id=9),
        ]
    )
    transport = _FakeTransport(
        [
            _new_id(101),
            TransportError("HTTP 502: Bad Gateway", status=502, reason="Bad Gateway"),
            _new_id(103),
        ]
    )

    result = await _orchestrator(transport, store).resync_pending()

    assert result.success_count == 2
    assert result.error_count == 1
    assert result.errors == [ResyncError(contract_id="c2", error="HTTP 502: Bad Gateway")]
    assert len(transport.calls) == 3
    third = await store.get("c3")
    assert third is not None
    assert third.status is SubmissionStatus.SUBMITTED
    assert third.remote_id == 103


@pytest.mark.asyncio
async def test_resync_survives_store_failures() -> None:
    class _FlakyStore(_RecordingStore):
        async def upsert(self, contract_id: str, fields: Mapping[str, Any]) -> SubmissionRecord:
            if contract_id == "c1":
                raise OSError("disk full")
            return await super().upsert(contract_id, fields)

    store = _FlakyStore(
        [
            SubmissionRecord("c1", SubmissionStatus.PENDING, declaration=_contract()),
            SubmissionRecord("c2", SubmissionStatus.PENDING, declaration=_contract()),
        ]
    )
    transport = _FakeTransport([_new_id(102)])

    result = await _orchestrator(transport, store).resync_pending()

    assert result.success_count == 1
    assert result.errors == [ResyncError(contract_id="c1", error="disk full")]


@pytest.mark.asyncio
async def test_resync_reports_records_without_declaration() -> None:
    store = _RecordingStore([SubmissionRecord("c1", SubmissionStatus.PENDING)])
    transport = _FakeTransport([])

    result = await _orchestrator(transport, store).resync_pending()

    assert result.success_count == 0
    assert result.error_count == 1
    assert result.errors[0].contract_id == "c1"
    assert transport.calls == []


@pytest.mark.asyncio
async def test_resync_skips_when_not_configured() -> None:
    store = _RecordingStore(
        [SubmissionRecord("c1", SubmissionStatus.PENDING, declaration=_contract())]
    )
    transport = _FakeTransport([])

    result = await _orchestrator(transport, store, _config(entity_vat_number="")).resync_pending()

    assert (result.success_count, result.error_count, result.errors) == (0, 0, [])
    assert transport.calls == []


def test_check_submittable() -> None:
    orchestrator = _orchestrator(_FakeTransport([]))
    assert orchestrator.check_submittable(_contract()) is None
    assert orchestrator.check_submittable(_contract(customer_vat_number="12")) == INVALID_VAT_ERROR
    assert orchestrator.check_submittable(_contract(license_plate=" ")) is not None

    unconfigured = _orchestrator(_FakeTransport([]), config=_config(user_id=""))
    assert unconfigured.check_submittable(_contract()) is not None


class _FailingStore(_RecordingStore):
    def __init__(
        self,
        records: list[SubmissionRecord] | None = None,
        *,
        fail_status: SubmissionStatus | None = None,
        fail_all_writes: bool = False,
        fail_reads: bool = False,
    ) -> None:
        super().__init__(records)
        self._fail_status = fail_status
        self._fail_all_writes = fail_all_writes
        self._fail_reads = fail_reads

    async def get(self, contract_id: str) -> SubmissionRecord | None:
        if self._fail_reads:
            raise OSError("store unavailable")
        return await super().get(contract_id)

    async def upsert(self, contract_id: str, fields: Mapping[str, Any]) -> SubmissionRecord:
        if self._fail_all_writes or (
            self._fail_status is not None and fields.get("status") == self._fail_status
        ):
            self.upserts.append((contract_id, dict(fields)))
            raise OSError("store unavailable")
        return await super().upsert(contract_id, fields)

    async def query_by_status(self, statuses):  # type: ignore[no-untyped-def]
        if self._fail_reads:
            raise OSError("store unavailable")
        return await super().query_by_status(statuses)


@pytest.mark.asyncio
async def test_submit_returns_remote_id_when_status_write_fails() -> None:
    transport = _FakeTransport([_new_id(555)])
    store = _FailingStore(fail_status=SubmissionStatus.SUBMITTED)

    result = await _orchestrator(transport, store).submit("contract-1", _contract())

    assert result.success is True
    assert result.remote_id == 555
    assert result.note is not None
    assert "store unavailable" in result.note
    assert len(transport.calls) == 1


@pytest.mark.asyncio
async def test_submit_fails_without_call_when_pending_write_fails() -> None:
    transport = _FakeTransport([])
    store = _FailingStore(fail_status=SubmissionStatus.PENDING)

    result = await _orchestrator(transport, store).submit("contract-1", _contract())

    assert result.success is False
    assert result.error == "store unavailable"
    assert transport.calls == []


@pytest.mark.asyncio
async def test_submit_fails_when_status_lookup_fails() -> None:
    transport = _FakeTransport([])
    store = _FailingStore(fail_reads=True)

    result = await _orchestrator(transport, store).submit("contract-1", _contract())

    assert result.success is False
    assert result.error == "store unavailable"
    assert transport.calls == []


@pytest.mark.asyncio
async def test_submit_reports_remote_error_when_error_write_fails() -> None:
    transport = _FakeTransport([INVALID_PLATE])
    store = _FailingStore(fail_status=SubmissionStatus.ERROR)

    result = await _orchestrator(transport, store).submit("contract-1", _contract())

    assert result.success is False
    assert result.error == "Invalid plate"


@pytest.mark.asyncio
async def test_complete_succeeds_when_status_write_fails() -> None:
    store = _FailingStore(
        [SubmissionRecord("contract-1", SubmissionStatus.SUBMITTED, remote_id=555)],
        fail_status=SubmissionStatus.COMPLETED,
    )
    transport = _FakeTransport(
        [_response(body="<updatedClientDclID>555</updatedClientDclID>")]
    )

    result = await _orchestrator(transport, store).complete(
        "contract-1", 555, 100, 15800, DROPOFF, InvoiceKind.RECEIPT
    )

    assert result.success is True
    assert result.note is not None
    assert "store unavailable" in result.note


@pytest.mark.asyncio
async def test_cancel_fails_without_call_when_status_lookup_fails() -> None:
    transport = _FakeTransport([])
    store = _FailingStore(fail_reads=True)

    result = await _orchestrator(transport, store).cancel("contract-1", 555)

    assert result.success is False
    assert result.error == "store unavailable"
    assert transport.calls == []


@pytest.mark.asyncio
async def test_correlate_succeeds_when_invoice_mark_write_fails() -> None:
    transport = _FakeTransport([_response()])
    store = _FailingStore(fail_all_writes=True)

    result = await _orchestrator(transport, store).correlate_with_invoice(
        "contract-1", 555, "400001234567890"
    )

    assert result.success is True
    assert result.note is not None


@pytest.mark.asyncio
async def test_resync_reports_query_failure() -> None:
    transport = _FakeTransport([])
    store = _FailingStore(fail_reads=True)

    result = await _orchestrator(transport, store).resync_pending()

    assert (result.success_count, result.error_count) == (0, 0)
    assert result.error == "store unavailable"
    assert transport.calls == []


@pytest.mark.asyncio
async def test_submit_sends_dropoff_equal_to_pickup() -> None:
    transport = _FakeTransport([_new_id(555)])

    result = await _orchestrator(transport).submit("contract-1", _contract(dropoff_at=PICKUP))

    assert result.success is True
    body = str(transport.calls[0][2]["body"])
    assert "<estimatedEndDateTime>2024-06-01T09:00:00.000Z</estimatedEndDateTime>" in body
