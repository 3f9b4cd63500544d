from datetime import date

from pydantic import BaseModel


class ServiceInfo(BaseModel):
    id: int
    label: str
    duration_minutes: int


class AvailableSlotsResponse(BaseModel):
    date: str  # YYYY-MM-DD, shop-local
    service: int | None = None
    slots: list[str]  # "HH:MM", shop-local


class BookingWindowResponse(BaseModel):
    start_date: date
    end_date: date
    closed_weekdays: list[int]
    blocked_dates: list[date]


class BookAppointmentRequest(BaseModel):
    name: str
    phone_number: str
    service: int
    date: date
    time: str  # "HH:MM", shop-local
