import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import date, datetime, timedelta
from typing import Any, TypeVar

from app.core.config import Settings
from app.core.errors import (
    BookingError,
    ConflictError,
    NotFoundError,
    QuotaExceededError,
    RepositoryError,
    ValidationError,
)
from app.models.appointment import Appointment, AppointmentCreate, CanceledAppointment
from app.services import catalog
from app.services.repository import AppointmentRepository, BlockedDateStore
from app.services.slot_service import (
    booking_window,
    business_hours,
    interval_for,
    intervals_for_day,
    is_available,
    is_bookable_day,
)
from app.services.sms_service import NotificationSender, build_cancellation_message
from app.services.time_utils import (
    TimeSlot,
    ceil_to_grid,
    local_day_bounds_utc,
    local_to_utc,
    to_naive_utc,
    utc_naive_now,
    utc_to_local,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

Defer = Callable[..., Any]


class BookingGuard:
    """Validates and commits reservations and cancellations for one shop.

    Every decision is made against a fresh read of the repository; nothing is
    cached between calls. ``defer`` schedules the post-cancel SMS (FastAPI's
    ``BackgroundTasks.add_task`` in the HTTP layer); without it the SMS is
    awaited inline. ``clock`` returns the current naive UTC instant.
    """

    def __init__(
        self,
        repository: AppointmentRepository,
        blocked_dates: BlockedDateStore,
        notifier: NotificationSender | None = None,
        *,
        settings: Settings,
        defer: Defer | None = None,
        clock: Callable[[], datetime] = utc_naive_now,
    ) -> None:
        self.repository = repository
        self.blocked_dates = blocked_dates
        self.notifier = notifier
        self.settings = settings
        self.defer = defer
        self.clock = clock

    async def _call(self, operation: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(operation, timeout=self.settings.repository_timeout_seconds)
        except BookingError:
            raise
        except asyncio.TimeoutError as e:
            logger.error("Repository call timed out after %ss", self.settings.repository_timeout_seconds)
            raise RepositoryError() from e
        except Exception as e:
            logger.exception("Repository call failed: %s", e)
            raise RepositoryError() from e

    def _local_now(self) -> datetime:
        return utc_to_local(self.clock(), self.settings.tz)

    async def _day_appointments(self, day: date) -> list[Appointment]:
        start_utc, end_utc = local_day_bounds_utc(day, self.settings.tz)
        return await self._call(self.repository.list_for_date_range(start_utc, end_utc))

    async def _validate_slot(self, day: date, time_slot: TimeSlot | str) -> TimeSlot:
        slot = TimeSlot.parse(time_slot) if isinstance(time_slot, str) else time_slot
        business_start, business_end = business_hours(self.settings)
        granularity = self.settings.slot_granularity_minutes
        if not business_start.minutes <= slot.minutes < business_end.minutes:
            raise ValidationError("The selected time is outside working hours.", reason="malformed_time")
        if ceil_to_grid(slot.minutes, granularity, business_start.minutes) != slot.minutes:
            raise ValidationError(
                f"Appointments start every {granularity} minutes.", reason="malformed_time"
            )

        now = self._local_now()
        window = booking_window(now, self.settings.booking_window_days, self.settings.min_booking_date)
        blocked = await self._call(self.blocked_dates.list_from(window.start.date()))
        if not is_bookable_day(day, window, blocked, self.settings.closed_weekdays):
            raise ValidationError("Booking is not possible on the selected day.", reason="day_unavailable")
        cutoff = window.closing_minutes(day, granularity)
        if cutoff is not None and slot.minutes >= cutoff:
            raise ValidationError("The selected time is beyond the booking window.", reason="day_unavailable")
        if local_to_utc(day, slot, self.settings.tz) < to_naive_utc(now):
            raise ValidationError("The selected time has already passed.", reason="malformed_time")
        return slot

    async def reserve(
        self,
        customer_name: str,
        customer_phone: str,
        service_type: int,
        day: date,
        time_slot: TimeSlot | str,
        owner_user_id: str,
    ) -> Appointment:
        customer_name = (customer_name or "").strip()
        customer_phone = (customer_phone or "").strip()
        if not customer_name or not customer_phone or not owner_user_id or day is None or time_slot is None:
            raise ValidationError(reason="missing_field")
        if not catalog.is_known(service_type):
            raise ValidationError("Please choose a service.", reason="unknown_service")

        upcoming = await self._call(
            self.repository.list_for_owner(owner_user_id, self.clock(), self.settings.max_upcoming_per_user)
        )
        if len(upcoming) >= self.settings.max_upcoming_per_user:
            raise QuotaExceededError()

        slot = await self._validate_slot(day, time_slot)
        duration = catalog.duration_of(service_type)
        tz = self.settings.tz
        _, business_end = business_hours(self.settings)

        booked = intervals_for_day(await self._day_appointments(day), day, tz)
        if not is_available(slot, duration, booked, business_end):
            logger.info("Slot %s %s no longer free for %d min", day, slot, duration)
            raise ConflictError()

        start_utc = local_to_utc(day, slot, tz)
        appointment = await self._call(
            self.repository.insert(
                AppointmentCreate(
                    name=customer_name,
                    phone_number=customer_phone,
                    service=int(service_type),
                    appointment_time=start_utc,
                    appointment_end=start_utc + timedelta(minutes=duration),
                    user_id=owner_user_id,
                )
            )
        )

        await self._confirm_after_write(appointment, day)
        logger.info("Appointment %s booked for %s at %s by %s", appointment.id, day, slot, owner_user_id)

        try:
            await self._call(self.repository.upsert_profile(owner_user_id, customer_name, customer_phone))
        except RepositoryError:
            logger.warning("Profile update for %s failed; appointment %s kept", owner_user_id, appointment.id)
        return appointment

    async def _confirm_after_write(self, appointment: Appointment, day: date) -> None:
        """Back out if a racing reservation for an overlapping interval won."""
        tz = self.settings.tz
        mine = interval_for(appointment, tz)
        for other in await self._day_appointments(day):
            if other.id == appointment.id or not interval_for(other, tz).overlaps(mine):
                continue
            if (other.created_at, other.id) < (appointment.created_at, appointment.id):
                logger.warning(
                    "Appointment %s overlaps earlier appointment %s; rolling back", appointment.id, other.id
                )
                try:
                    await self._call(self.repository.delete(appointment.id))
                except NotFoundError:
                    pass
                raise ConflictError()

    async def cancel(
        self,
        appointment_id: int,
        canceled_by_admin: bool = False,
        *,
        owner_user_id: str | None = None,
    ) -> CanceledAppointment | None:
        """Move an appointment to the cancellation log and delete it.

        Returns None when the appointment is already gone. With
        ``owner_user_id`` only that customer's own appointment can be canceled.
        """
        try:
            appointment = await self._call(self.repository.get_by_id(appointment_id))
            if owner_user_id is not None and appointment.user_id != owner_user_id:
                raise NotFoundError()
        except NotFoundError:
            if owner_user_id is not None:
                raise
            logger.info("Appointment %s already canceled", appointment_id)
            return None

        record = CanceledAppointment(
            original_id=appointment.id,
            name=appointment.name,
            phone_number=appointment.phone_number,
            service=appointment.service,
            appointment_time=appointment.appointment_time,
            appointment_end=appointment.appointment_end,
            user_id=appointment.user_id,
            created_at=appointment.created_at,
            canceled_by_admin=canceled_by_admin,
        )
        try:
            await self._call(self.repository.insert_cancellation_record(record))
        except RepositoryError:
            logger.warning("Recording cancellation of appointment %s failed; deleting anyway", appointment_id)

        try:
            await self._call(self.repository.delete(appointment_id))
        except NotFoundError:
            logger.info("Appointment %s vanished during cancel", appointment_id)
            return None
        logger.info("Appointment %s canceled (by_admin=%s)", appointment_id, canceled_by_admin)

        if self.notifier is not None:
            message = build_cancellation_message(appointment, canceled_by_admin, self.settings)
            if self.defer is not None:
                self.defer(self._notify, appointment.phone_number, message, appointment_id)
            else:
                await self._notify(appointment.phone_number, message, appointment_id)
        return record

    async def _notify(self, phone_number: str, message: str, appointment_id: int) -> None:
        try:
            await self.notifier.send(phone_number, message)
        except Exception as e:
            logger.warning("Cancellation SMS for appointment %s failed: %s", appointment_id, e)

    async def list_upcoming_for_owner(self, owner_user_id: str) -> list[Appointment]:
        return await self._call(
            self.repository.list_for_owner(owner_user_id, self.clock(), self.settings.max_upcoming_per_user)
        )

    async def list_for_range(self, start: datetime, end: datetime) -> list[Appointment]:
        return await self._call(self.repository.list_for_date_range(to_naive_utc(start), to_naive_utc(end)))
