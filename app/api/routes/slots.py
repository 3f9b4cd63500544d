from collections.abc import Callable
from datetime import date, datetime

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_appointment_repository, get_blocked_date_store, get_clock
from app.api.schemas.appointment import AvailableSlotsResponse, BookingWindowResponse, ServiceInfo
from app.core.config import settings
from app.services import catalog
from app.services.repository import AppointmentRepository, BlockedDateStore
from app.services.slot_service import booking_window, get_open_slots_for_date
from app.services.time_utils import utc_to_local

router = APIRouter(tags=["slots"])


@router.get("/services", response_model=list[ServiceInfo])
async def list_services() -> list[ServiceInfo]:
    return [ServiceInfo(id=s.id, label=s.label, duration_minutes=s.duration_minutes) for s in catalog.services()]


@router.get("/slots/window", response_model=BookingWindowResponse)
async def get_booking_window(
    blocked_dates: BlockedDateStore = Depends(get_blocked_date_store),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> BookingWindowResponse:
    """Days a customer can pick in the date picker (shop-local)."""
    now = utc_to_local(clock(), settings.tz)
    window = booking_window(now, settings.booking_window_days, settings.min_booking_date)
    blocked = await blocked_dates.list_from(window.start.date())
    return BookingWindowResponse(
        start_date=window.start.date(),
        end_date=window.last_bookable_day,
        closed_weekdays=settings.closed_weekdays,
        blocked_dates=[d for d in blocked if d <= window.last_bookable_day],
    )


@router.get("/slots/available", response_model=AvailableSlotsResponse)
async def available_slots(
    date_param: date = Query(..., alias="date"),
    service: int | None = Query(None),
    repository: AppointmentRepository = Depends(get_appointment_repository),
    blocked_dates: BlockedDateStore = Depends(get_blocked_date_store),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> AvailableSlotsResponse:
    """Free start times for the given shop-local date, optionally for one service."""
    slots = await get_open_slots_for_date(
        repository,
        blocked_dates,
        date_param,
        service,
        now=utc_to_local(clock(), settings.tz),
        settings=settings,
    )
    return AvailableSlotsResponse(
        date=date_param.isoformat(),
        service=service,
        slots=[str(s) for s in slots],
    )
