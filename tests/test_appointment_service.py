import asyncio
from datetime import datetime

import pytest

from app.core.errors import (
    ConflictError,
    MalformedTimeError,
    NotFoundError,
    QuotaExceededError,
    RepositoryError,
    ValidationError,
)
from app.models.appointment import Appointment
from app.services.appointment_service import BookingGuard
from app.services.slot_service import get_open_slots_for_date
from app.services.time_utils import TimeSlot, utc_to_local

from conftest import (
    NOW_UTC,
    SUNDAY,
    TODAY,
    TOMORROW,
    InMemoryAppointmentRepository,
    InMemoryBlockedDateStore,
    RecordingNotifier,
    make_settings,
)


def _guard(repo, blocked=None, notifier=None, settings=None, **kwargs) -> BookingGuard:
    return BookingGuard(
        repo,
        blocked or InMemoryBlockedDateStore(),
        notifier,
        settings=settings or make_settings(),
        clock=lambda: NOW_UTC,
        **kwargs,
    )


def _reserve(guard: BookingGuard, time_slot="10:00", service=5, day=TOMORROW, owner="user-1", name="Amar"):
    return guard.reserve(name, "061 234 567", service, day, time_slot, owner)


def test_reserve_commits_and_stores_utc(repo) -> None:
    appointment = asyncio.run(_reserve(_guard(repo)))

    assert appointment.id in repo.appointments
    assert appointment.appointment_time == datetime(2026, 6, 11, 8, 0)
    assert appointment.appointment_end == datetime(2026, 6, 11, 8, 30)
    assert appointment.user_id == "user-1"
    assert repo.profiles["user-1"] == ("Amar", "061 234 567")


def test_reserve_accepts_time_slot_values(repo) -> None:
    appointment = asyncio.run(_reserve(_guard(repo), time_slot=TimeSlot(9, 0)))

    assert appointment.appointment_time == datetime(2026, 6, 11, 7, 0)


def test_reserve_rejects_taken_slot_without_writing(repo) -> None:
    repo.add(service=5, appointment_time=datetime(2026, 6, 11, 8, 0))

    with pytest.raises(ConflictError):
        asyncio.run(_reserve(_guard(repo)))
    assert repo.inserts == 0


def test_reserve_rejects_service_running_into_next_booking(repo) -> None:
    repo.add(service=3, appointment_time=datetime(2026, 6, 11, 8, 10))  # 10:10 local

    with pytest.raises(ConflictError):
        asyncio.run(_reserve(_guard(repo), service=3))
    assert repo.inserts == 0


def test_reserve_allows_adjacent_booking(repo) -> None:
    repo.add(service=5, appointment_time=datetime(2026, 6, 11, 8, 0))

    appointment = asyncio.run(_reserve(_guard(repo), time_slot="09:30"))

    assert appointment.appointment_end == datetime(2026, 6, 11, 8, 0)


def test_fourth_upcoming_appointment_hits_quota(repo) -> None:
    guard = _guard(repo)
    for slot in ("09:00", "10:00", "11:00"):
        asyncio.run(_reserve(guard, time_slot=slot))
    inserts = repo.inserts

    with pytest.raises(QuotaExceededError) as exc:
        asyncio.run(_reserve(guard, time_slot="12:00"))
    assert exc.value.reason == "quota_exceeded"
    assert repo.inserts == inserts


def test_past_appointments_do_not_count_toward_quota(repo) -> None:
    for day in (1, 2, 3):
        repo.add(service=5, appointment_time=datetime(2026, 6, day, 8, 0), user_id="user-1")

    appointment = asyncio.run(_reserve(_guard(repo)))

    assert appointment.id is not None


@pytest.mark.parametrize(
    ("kwargs", "reason"),
    [
        ({"name": " "}, "missing_field"),
        ({"owner": ""}, "missing_field"),
        ({"service": 42}, "unknown_service"),
        ({"time_slot": "10:15"}, "malformed_time"),
        ({"time_slot": "07:30"}, "malformed_time"),
        ({"time_slot": "18:30"}, "malformed_time"),
        ({"day": SUNDAY}, "day_unavailable"),
        ({"day": datetime(2026, 6, 25).date()}, "day_unavailable"),
        ({"day": TODAY, "time_slot": "14:00"}, "malformed_time"),
    ],
)
def test_reserve_validation(repo, kwargs, reason) -> None:
    with pytest.raises(ValidationError) as exc:
        asyncio.run(_reserve(_guard(repo), **kwargs))
    assert exc.value.reason == reason
    assert repo.inserts == 0


def test_reserve_rejects_unparseable_time(repo) -> None:
    with pytest.raises(MalformedTimeError):
        asyncio.run(_reserve(_guard(repo), time_slot="25:00"))


def test_reserve_rejects_blocked_date(repo) -> None:
    guard = _guard(repo, blocked=InMemoryBlockedDateStore([TOMORROW]))

    with pytest.raises(ValidationError) as exc:
        asyncio.run(_reserve(guard))
    assert exc.value.reason == "day_unavailable"


def test_later_today_is_bookable(repo) -> None:
    appointment = asyncio.run(_reserve(_guard(repo), day=TODAY, time_slot="14:30"))

    assert appointment.appointment_time == datetime(2026, 6, 10, 12, 30)


async def _race(repo) -> list:
    guard = _guard(repo)
    return await asyncio.gather(
        _reserve(guard, owner="user-1", name="Amar"),
        _reserve(guard, owner="user-2", name="Emir"),
        return_exceptions=True,
    )


def test_concurrent_reservations_storage_constraint(repo) -> None:
    results = asyncio.run(_race(repo))

    committed = [r for r in results if isinstance(r, Appointment)]
    conflicts = [r for r in results if isinstance(r, ConflictError)]
    assert len(committed) == 1
    assert len(conflicts) == 1
    assert len(repo.appointments) == 1


def test_concurrent_reservations_confirm_after_write() -> None:
    repo = InMemoryAppointmentRepository(enforce_unique_start=False)

    results = asyncio.run(_race(repo))

    committed = [r for r in results if isinstance(r, Appointment)]
    conflicts = [r for r in results if isinstance(r, ConflictError)]
    assert len(committed) == 1
    assert len(conflicts) == 1
    assert list(repo.appointments) == [committed[0].id]


def test_profile_failure_does_not_undo_booking(repo) -> None:
    repo.fail_profile = True

    appointment = asyncio.run(_reserve(_guard(repo)))

    assert appointment.id in repo.appointments


def test_repository_timeout_is_repository_error(repo) -> None:
    class SlowRepository(InMemoryAppointmentRepository):
        async def list_for_owner(self, owner_user_id, from_time, limit):
            await asyncio.sleep(1)
            return []

    guard = _guard(SlowRepository(), settings=make_settings(repository_timeout_seconds=0.01))

    with pytest.raises(RepositoryError):
        asyncio.run(_reserve(guard))


def test_backend_failure_is_repository_error(repo) -> None:
    class BrokenRepository(InMemoryAppointmentRepository):
        async def list_for_date_range(self, start, end):
            raise OSError("connection reset")

    with pytest.raises(RepositoryError):
        asyncio.run(_reserve(_guard(BrokenRepository())))


def test_cancel_records_deletes_and_notifies(repo, notifier) -> None:
    existing = repo.add(service=3, appointment_time=datetime(2026, 6, 11, 8, 0), phone_number="061222333")

    record = asyncio.run(_guard(repo, notifier=notifier).cancel(existing.id, canceled_by_admin=True))

    assert record.original_id == existing.id
    assert record.canceled_by_admin is True
    assert record.appointment_end == existing.appointment_end
    assert record.created_at == existing.created_at
    assert repo.cancellations == [record]
    assert existing.id not in repo.appointments
    assert len(notifier.sent) == 1
    phone, message = notifier.sent[0]
    assert phone == "061222333"
    assert "Fade" in message
    assert "11.06.2026. u 10:00" in message


def test_cancel_missing_appointment_is_a_no_op(repo, notifier) -> None:
    assert asyncio.run(_guard(repo, notifier=notifier).cancel(999, canceled_by_admin=True)) is None
    assert notifier.sent == []


def test_customer_cannot_cancel_someone_elses_appointment(repo) -> None:
    existing = repo.add(service=5, appointment_time=datetime(2026, 6, 11, 8, 0), user_id="user-2")

    with pytest.raises(NotFoundError):
        asyncio.run(_guard(repo).cancel(existing.id, owner_user_id="user-1"))
    assert existing.id in repo.appointments


def test_customer_cancels_own_appointment(repo) -> None:
    existing = repo.add(service=5, appointment_time=datetime(2026, 6, 11, 8, 0), user_id="user-1")

    record = asyncio.run(_guard(repo).cancel(existing.id, owner_user_id="user-1"))

    assert record.canceled_by_admin is False
    assert existing.id not in repo.appointments


def test_audit_failure_still_deletes(repo) -> None:
    repo.fail_cancellation_record = True
    existing = repo.add(service=5, appointment_time=datetime(2026, 6, 11, 8, 0))

    asyncio.run(_guard(repo).cancel(existing.id, canceled_by_admin=True))

    assert existing.id not in repo.appointments
    assert repo.cancellations == []


def test_notification_failure_is_swallowed(repo) -> None:
    existing = repo.add(service=5, appointment_time=datetime(2026, 6, 11, 8, 0))

    record = asyncio.run(_guard(repo, notifier=RecordingNotifier(fail=True)).cancel(existing.id, True))

    assert record is not None
    assert existing.id not in repo.appointments


def test_notification_is_deferred_when_scheduler_given(repo, notifier) -> None:
    deferred = []
    existing = repo.add(service=5, appointment_time=datetime(2026, 6, 11, 8, 0))
    guard = _guard(repo, notifier=notifier, defer=lambda func, *args: deferred.append((func, args)))

    asyncio.run(guard.cancel(existing.id, True))

    assert notifier.sent == []
    assert len(deferred) == 1
    func, args = deferred[0]
    asyncio.run(func(*args))
    assert len(notifier.sent) == 1


def test_upcoming_for_owner_is_limited(repo) -> None:
    for hour in (7, 8, 9, 10):
        repo.add(service=5, appointment_time=datetime(2026, 6, 11, hour, 0), user_id="user-1")
    repo.add(service=5, appointment_time=datetime(2026, 6, 1, 8, 0), user_id="user-1")

    upcoming = asyncio.run(_guard(repo).list_upcoming_for_owner("user-1"))

    assert [a.appointment_time.hour for a in upcoming] == [7, 8, 9]


def test_last_window_day_rejects_times_past_the_cutoff(repo) -> None:
    last_day = datetime(2026, 6, 17).date()

    with pytest.raises(ValidationError) as exc:
        asyncio.run(_reserve(_guard(repo), day=last_day, time_slot="18:00"))
    assert exc.value.reason == "day_unavailable"
    assert repo.inserts == 0

    appointment = asyncio.run(_reserve(_guard(repo), day=last_day, time_slot="14:30"))
    assert appointment.appointment_time == datetime(2026, 6, 17, 12, 30)


def test_listing_and_reserve_agree_on_last_window_day(repo, blocked) -> None:
    settings = make_settings()
    last_day = datetime(2026, 6, 17).date()
    now = utc_to_local(NOW_UTC, settings.tz)
    offered = asyncio.run(get_open_slots_for_date(repo, blocked, last_day, 5, now=now, settings=settings))

    assert str(offered[-1]) == "14:30"
    with pytest.raises(ValidationError):
        asyncio.run(_reserve(_guard(repo), day=last_day, time_slot="15:00"))
