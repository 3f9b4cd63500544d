import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_admin_user_id, get_booking_guard, get_current_user_id
from app.api.schemas.appointment import BookAppointmentRequest
from app.models.appointment import Appointment, AppointmentPublic
from app.services import catalog
from app.services.appointment_service import BookingGuard

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/appointments", tags=["appointments"])


def _to_public(a: Appointment) -> AppointmentPublic:
    return AppointmentPublic(
        id=a.id,
        name=a.name,
        phone_number=a.phone_number,
        service=a.service,
        service_name=catalog.label_of(a.service),
        duration_minutes=catalog.duration_of(a.service),
        appointment_time=a.appointment_time,
        appointment_end=a.appointment_end,
        user_id=a.user_id,
    )


@router.post("", response_model=AppointmentPublic, status_code=status.HTTP_201_CREATED)
async def book_appointment(
    body: BookAppointmentRequest,
    guard: BookingGuard = Depends(get_booking_guard),
    user_id: str = Depends(get_current_user_id),
) -> AppointmentPublic:
    appointment = await guard.reserve(
        customer_name=body.name,
        customer_phone=body.phone_number,
        service_type=body.service,
        day=body.date,
        time_slot=body.time,
        owner_user_id=user_id,
    )
    return _to_public(appointment)


@router.get("", response_model=list[AppointmentPublic])
async def list_my_appointments(
    guard: BookingGuard = Depends(get_booking_guard),
    user_id: str = Depends(get_current_user_id),
) -> list[AppointmentPublic]:
    return [_to_public(a) for a in await guard.list_upcoming_for_owner(user_id)]


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_my_appointment(
    appointment_id: int,
    guard: BookingGuard = Depends(get_booking_guard),
    user_id: str = Depends(get_current_user_id),
) -> None:
    await guard.cancel(appointment_id, canceled_by_admin=False, owner_user_id=user_id)


@router.get("/admin", response_model=list[AppointmentPublic])
async def list_appointments_admin(
    start: datetime = Query(...),
    end: datetime = Query(...),
    guard: BookingGuard = Depends(get_booking_guard),
    admin_id: str = Depends(get_admin_user_id),
) -> list[AppointmentPublic]:
    """All appointments starting in [start, end); naive values are taken as UTC."""
    return [_to_public(a) for a in await guard.list_for_range(start, end)]


@router.delete("/admin/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_appointment_admin(
    appointment_id: int,
    guard: BookingGuard = Depends(get_booking_guard),
    admin_id: str = Depends(get_admin_user_id),
) -> None:
    record = await guard.cancel(appointment_id, canceled_by_admin=True)
    if record is None:
        logger.info("Admin %s canceled already removed appointment %s", admin_id, appointment_id)
