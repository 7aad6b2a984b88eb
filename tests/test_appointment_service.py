"""Tests for the appointment update and cancellation flows."""

from datetime import UTC, date, datetime, timedelta, timezone
from uuid import uuid4

import pytest

from app.core.exceptions import (
    BadRequestException,
    BaseDateUnavailableException,
    InvalidTimeFormatException,
    LookupFailedException,
    NoUpdateDataException,
    NotFoundException,
    StatusUpdateFailedException,
)
from app.schemas.appointments import AppointmentCreate, AppointmentStatus
from app.services import time_normalizer
from app.services.appointment_service import AppointmentService

FIXED_NOW = datetime(2024, 3, 9, 18, 0, tzinfo=UTC)


@pytest.fixture
def service(store, mock_logger) -> AppointmentService:
    return AppointmentService(store, logger=mock_logger, clock=lambda: FIXED_NOW)


# ============================================================================
# Status
# ============================================================================


def test_known_statuses() -> None:
    """Test known status values map to their members."""
    assert AppointmentStatus("scheduled") is AppointmentStatus.SCHEDULED
    assert AppointmentStatus("cancelled") is AppointmentStatus.CANCELLED
    assert AppointmentStatus.CANCELLED.name == "CANCELLED"


def test_unknown_status_passes_through() -> None:
    """Test free-form statuses are kept as an OTHER value."""
    status = AppointmentStatus("confirmed")

    assert status.name == "OTHER"
    assert status.value == "confirmed"
    assert status == "confirmed"
    assert status != AppointmentStatus.CANCELLED


# ============================================================================
# Update
# ============================================================================


@pytest.mark.asyncio
async def test_empty_update_is_rejected(service, store, scheduled_appointment) -> None:
    """Test an empty payload fails without writing."""
    with pytest.raises(NoUpdateDataException):
        await service.update_appointment(scheduled_appointment["id"], {})

    assert store.writes == []


@pytest.mark.asyncio
async def test_clock_time_uses_persisted_date(service, store, scheduled_appointment) -> None:
    """Test start_time HH:MM takes the persisted date_time's date."""
    result = await service.update_appointment(scheduled_appointment["id"], {"start_time": "15:30"})

    assert result.start_time == datetime(2024, 3, 10, 15, 30, tzinfo=UTC)
    assert store.updates() == [{"start_time": datetime(2024, 3, 10, 15, 30, tzinfo=UTC)}]


@pytest.mark.asyncio
async def test_clock_time_prefers_payload_date(service, store, scheduled_appointment) -> None:
    """Test start/end HH:MM take the date of a date_time sent alongside."""
    result = await service.update_appointment(
        scheduled_appointment["id"],
        {"date_time": "2024-04-02T00:00:00Z", "start_time": "09:00", "end_time": "09:30"},
    )

    assert result.date_time == datetime(2024, 4, 2, tzinfo=UTC)
    assert result.start_time == datetime(2024, 4, 2, 9, 0, tzinfo=UTC)
    assert result.end_time == datetime(2024, 4, 2, 9, 30, tzinfo=UTC)
    assert len(store.writes) == 1


@pytest.mark.asyncio
async def test_full_timestamps_need_no_lookup(service, store, scheduled_appointment) -> None:
    """Test full timestamps are written without reading the record first."""
    store.fail_find_one()

    result = await service.update_appointment(
        scheduled_appointment["id"],
        {"start_time": "2024-03-10T10:00:00Z"},
    )

    assert result.start_time == datetime(2024, 3, 10, 10, 0, tzinfo=UTC)


@pytest.mark.asyncio
async def test_malformed_time_aborts_update(service, store, scheduled_appointment) -> None:
    """Test a malformed time field aborts before any write."""
    with pytest.raises(InvalidTimeFormatException):
        await service.update_appointment(
            scheduled_appointment["id"],
            {"notes": "moved", "end_time": "half past three"},
        )

    assert store.writes == []


@pytest.mark.asyncio
async def test_null_date_time_is_rejected(service, store, scheduled_appointment) -> None:
    """Test date_time cannot be cleared."""
    with pytest.raises(InvalidTimeFormatException):
        await service.update_appointment(scheduled_appointment["id"], {"date_time": None})

    assert store.writes == []


@pytest.mark.asyncio
async def test_base_date_lookup_failure(service, store, scheduled_appointment) -> None:
    """Test a failing base date lookup aborts the update."""
    store.fail_find_one()

    with pytest.raises(BaseDateUnavailableException):
        await service.update_appointment(scheduled_appointment["id"], {"start_time": "15:30"})

    assert store.writes == []


@pytest.mark.asyncio
async def test_base_date_missing_record(service, store) -> None:
    """Test a clock time on an unknown appointment has no base date."""
    with pytest.raises(BaseDateUnavailableException):
        await service.update_appointment(uuid4(), {"end_time": "10:00"})

    assert store.writes == []


@pytest.mark.asyncio
async def test_update_unknown_appointment(service, store) -> None:
    """Test updating an unknown appointment raises NotFound."""
    with pytest.raises(NotFoundException):
        await service.update_appointment(uuid4(), {"notes": "hello"})

    assert len(store.writes) == 1


@pytest.mark.asyncio
async def test_plain_update_single_write(service, store, scheduled_appointment) -> None:
    """Test a non-cancelling update is a single write with free-form status."""
    result = await service.update_appointment(
        scheduled_appointment["id"],
        {"status": "confirmed", "notes": "Bring previous results"},
    )

    assert result.status == "confirmed"
    assert result.notes == "Bring previous results"
    assert result.cancelled_at is None
    assert store.updates() == [{"status": "confirmed", "notes": "Bring previous results"}]


@pytest.mark.asyncio
async def test_cancelled_at_ignored_without_cancellation(service, store, scheduled_appointment) -> None:
    """Test cancelled_at is not written unless the status becomes cancelled."""
    with pytest.raises(NoUpdateDataException):
        await service.update_appointment(
            scheduled_appointment["id"],
            {"cancelled_at": "2024-03-01T00:00:00Z"},
        )

    assert store.writes == []


# ============================================================================
# Cancellation through update
# ============================================================================


@pytest.mark.asyncio
async def test_update_to_cancelled_uses_two_writes(service, store, scheduled_appointment) -> None:
    """Test status=cancelled writes the status, then cancelled_at."""
    result = await service.update_appointment(scheduled_appointment["id"], {"status": "cancelled"})

    assert result.status == "cancelled"
    assert store.updates() == [
        {"status": "cancelled"},
        {"cancelled_at": FIXED_NOW},
    ]


@pytest.mark.asyncio
async def test_update_to_cancelled_honors_cancelled_at(service, store, scheduled_appointment) -> None:
    """Test an explicit cancelled_at is kept out of the status write and used after."""
    await service.update_appointment(
        scheduled_appointment["id"],
        {"status": "cancelled", "cancelled_at": "2024-03-08T12:00:00Z"},
    )

    assert store.updates() == [
        {"status": "cancelled"},
        {"cancelled_at": datetime(2024, 3, 8, 12, 0, tzinfo=UTC)},
    ]


@pytest.mark.asyncio
async def test_update_to_cancelled_merges_other_fields(service, store, scheduled_appointment) -> None:
    """Test other normalized fields are written with the status."""
    result = await service.update_appointment(
        scheduled_appointment["id"],
        {"status": "cancelled", "notes": "Patient called", "end_time": "11:00"},
    )

    first_write = store.updates()[0]
    assert first_write == {
        "status": "cancelled",
        "notes": "Patient called",
        "end_time": datetime(2024, 3, 10, 11, 0, tzinfo=UTC),
    }
    assert result.notes == "Patient called"


@pytest.mark.asyncio
async def test_update_already_cancelled_writes_nothing(service, store, cancelled_appointment) -> None:
    """Test status=cancelled on a cancelled appointment is a no-op."""
    result = await service.update_appointment(cancelled_appointment["id"], {"status": "cancelled"})

    assert result.status == "cancelled"
    assert result.cancelled_at == cancelled_appointment["cancelled_at"]
    assert store.writes == []


# ============================================================================
# Dedicated cancel
# ============================================================================


@pytest.mark.asyncio
async def test_cancel_scheduled(service, store, mock_logger, scheduled_appointment) -> None:
    """Test cancelling a scheduled appointment."""
    response = await service.cancel_appointment(scheduled_appointment["id"])

    assert response.message == "Appointment cancelled successfully"
    assert response.appointment.status == "cancelled"
    assert store.updates() == [{"status": "cancelled"}, {"cancelled_at": FIXED_NOW}]

    persisted = store.collections["appointments"][scheduled_appointment["id"]]
    assert persisted["cancelled_at"] == FIXED_NOW
    mock_logger.warning.assert_not_called()


@pytest.mark.asyncio
async def test_cancel_is_idempotent(service, store, scheduled_appointment) -> None:
    """Test cancelling twice returns the same record and writes nothing more."""
    await service.cancel_appointment(scheduled_appointment["id"])
    writes_after_first = len(store.writes)
    first = await service.get_appointment(scheduled_appointment["id"])

    second = await service.cancel_appointment(scheduled_appointment["id"])

    assert second.message == "Appointment already cancelled"
    assert second.appointment == first
    assert len(store.writes) == writes_after_first


@pytest.mark.asyncio
async def test_cancel_unknown(service, store) -> None:
    """Test cancelling an unknown appointment raises NotFound."""
    with pytest.raises(NotFoundException):
        await service.cancel_appointment(uuid4())

    assert store.writes == []


@pytest.mark.asyncio
async def test_cancel_lookup_failure(service, store, scheduled_appointment) -> None:
    """Test a failing read is reported as LookupFailed."""
    store.fail_find_one()

    with pytest.raises(LookupFailedException) as exc_info:
        await service.cancel_appointment(scheduled_appointment["id"])

    assert exc_info.value.status_code == 500
    assert store.writes == []


@pytest.mark.asyncio
async def test_cancel_status_write_failure(service, store, scheduled_appointment) -> None:
    """Test a failing status write fails the whole operation."""
    store.fail_update(lambda values: "status" in values)

    with pytest.raises(StatusUpdateFailedException) as exc_info:
        await service.cancel_appointment(scheduled_appointment["id"])

    assert exc_info.value.status_code == 500
    # No cancelled_at write after the failed status write
    assert store.updates() == [{"status": "cancelled"}]


@pytest.mark.asyncio
async def test_cancel_deleted_between_read_and_write(service, store, scheduled_appointment) -> None:
    """Test a record removed before the status write raises NotFound."""
    original_update = store.update

    async def delete_then_update(collection, filters, values):
        store.collections[collection].clear()
        return await original_update(collection, filters, values)

    store.update = delete_then_update

    with pytest.raises(NotFoundException):
        await service.cancel_appointment(scheduled_appointment["id"])


@pytest.mark.asyncio
async def test_cancelled_at_failure_is_tolerated(
    service, store, mock_logger, scheduled_appointment
) -> None:
    """Test a failing cancelled_at write still reports success."""
    store.fail_update(lambda values: "cancelled_at" in values)

    response = await service.cancel_appointment(scheduled_appointment["id"])

    assert response.appointment.status == "cancelled"
    persisted = store.collections["appointments"][scheduled_appointment["id"]]
    assert persisted["status"] == "cancelled"
    assert persisted["cancelled_at"] is None

    mock_logger.warning.assert_called_once()
    assert mock_logger.warning.call_args.args[0] == "appointment_cancelled_at_write_failed"


@pytest.mark.asyncio
async def test_cancelled_at_unexpected_error_is_tolerated(
    service, store, mock_logger, scheduled_appointment
) -> None:
    """Test any error in the cancelled_at write is contained."""
    store.fail_update(lambda values: "cancelled_at" in values, exc=TimeoutError("timed out"))

    response = await service.cancel_appointment(scheduled_appointment["id"])

    assert response.appointment.status == "cancelled"
    mock_logger.warning.assert_called_once()


# ============================================================================
# Create / read / delete
# ============================================================================


@pytest.mark.asyncio
async def test_create_requires_fields(service, store) -> None:
    """Test patient, doctor and date/time are required."""
    with pytest.raises(BadRequestException):
        await service.create_appointment(AppointmentCreate(patient_id=uuid4()))

    assert store.writes == []


@pytest.mark.asyncio
async def test_create_defaults_to_scheduled(service, store) -> None:
    """Test new appointments are scheduled with derived start/end times."""
    data = AppointmentCreate(
        patient_id=uuid4(),
        doctor_id=uuid4(),
        date_time="2024-05-20T00:00:00Z",
        start_time="14:00",
        end_time="14:30",
    )

    result = await service.create_appointment(data)

    assert result.status == "scheduled"
    assert result.start_time == datetime(2024, 5, 20, 14, 0, tzinfo=UTC)
    assert result.end_time == datetime(2024, 5, 20, 14, 30, tzinfo=UTC)


@pytest.mark.asyncio
async def test_create_rejects_clock_time_date(service) -> None:
    """Test date_time must carry a date on creation."""
    data = AppointmentCreate(patient_id=uuid4(), doctor_id=uuid4(), date_time="14:00")

    with pytest.raises(BaseDateUnavailableException):
        await service.create_appointment(data)


@pytest.mark.asyncio
async def test_date_range(service, store) -> None:
    """Test appointments are filtered by an inclusive date range."""
    for day in (1, 5, 9):
        store.seed(
            "appointments",
            patient_id=uuid4(),
            doctor_id=uuid4(),
            date_time=datetime(2024, 3, day, tzinfo=UTC),
            status="scheduled",
        )

    result = await service.list_by_date_range("2024-03-01T00:00:00Z", "2024-03-05T00:00:00Z")

    assert [item.date_time.day for item in result] == [1, 5]


@pytest.mark.asyncio
async def test_date_range_requires_bounds(service) -> None:
    """Test both bounds are required."""
    with pytest.raises(BadRequestException):
        await service.list_by_date_range("2024-03-01T00:00:00Z", None)


@pytest.mark.asyncio
async def test_delete_unknown(service) -> None:
    """Test deleting an unknown appointment raises NotFound."""
    with pytest.raises(NotFoundException):
        await service.delete_appointment(uuid4())


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["status", "patient_id", "doctor_id"])
async def test_required_column_cannot_be_cleared(service, store, scheduled_appointment, field) -> None:
    """Test nulling a required column is rejected before any write."""
    with pytest.raises(BadRequestException) as exc_info:
        await service.update_appointment(scheduled_appointment["id"], {field: None})

    assert exc_info.value.message == f"{field} cannot be null"
    assert store.writes == []


@pytest.mark.asyncio
async def test_invalid_status_is_rejected(service, store, scheduled_appointment) -> None:
    """Test a status that is not a string is rejected before any write."""
    with pytest.raises(BadRequestException):
        await service.update_appointment(scheduled_appointment["id"], {"status": 42})

    assert store.writes == []


@pytest.mark.asyncio
async def test_clock_time_keeps_local_date(service, store, monkeypatch) -> None:
    """Test clock times land on the local calendar date of date_time."""
    tokyo = timezone(timedelta(hours=9), "JST")
    monkeypatch.setattr(time_normalizer, "default_zone", lambda: tokyo)
    appointment = store.seed(
        "appointments",
        patient_id=uuid4(),
        doctor_id=uuid4(),
        date_time=datetime(2024, 3, 1, tzinfo=UTC),
        status="scheduled",
    )

    result = await service.update_appointment(
        appointment["id"],
        {"date_time": "2024-03-10T08:00", "start_time": "09:00"},
    )

    # 08:00 in Tokyo on the 10th is still the 9th in UTC
    assert result.date_time == datetime(2024, 3, 9, 23, 0, tzinfo=UTC)
    assert result.start_time == datetime(2024, 3, 10, 0, 0, tzinfo=UTC)
    assert result.start_time.astimezone(tokyo).date() == date(2024, 3, 10)


# ============================================================================
# Reads
# ============================================================================


@pytest.mark.asyncio
async def test_reads_embed_doctor_summary(service, store) -> None:
    """Test listings and lookups carry the doctor's id, name and specialty."""
    doctor = store.seed("doctors", name="Dr. Ana Ruiz", email="ana@clinic.test", specialty="Cardiology")
    booked = store.seed(
        "appointments",
        patient_id=uuid4(),
        doctor_id=doctor["id"],
        date_time=datetime(2024, 3, 10, tzinfo=UTC),
        status="scheduled",
    )
    orphan = store.seed(
        "appointments",
        patient_id=uuid4(),
        doctor_id=uuid4(),
        date_time=datetime(2024, 3, 11, tzinfo=UTC),
        status="confirmed",
    )

    listed = await service.list_appointments()
    fetched = await service.get_appointment(booked["id"])

    assert [item.id for item in listed] == [booked["id"], orphan["id"]]
    assert listed[0].doctor is not None
    assert listed[0].doctor.name == "Dr. Ana Ruiz"
    assert listed[0].doctor.specialty == "Cardiology"
    assert listed[1].doctor is None
    assert listed[1].status.name == "OTHER"
    assert fetched.doctor is not None
    assert fetched.doctor.id == doctor["id"]
