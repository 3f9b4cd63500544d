from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


def _utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


class AppointmentBase(SQLModel):
    name: str
    phone_number: str
    service: int
    # Naive UTC instant; converted to shop-local time only at the edges
    appointment_time: datetime
    user_id: str = Field(index=True)


class Appointment(AppointmentBase, table=True):
    __tablename__ = "appointments"
    id: int | None = Field(default=None, primary_key=True)
    # Same start twice is rejected here; overlapping ranges by the exclusion constraint
    appointment_time: datetime = Field(unique=True, index=True)
    appointment_end: datetime
    created_at: datetime = Field(default_factory=_utc_naive_now)


class AppointmentCreate(AppointmentBase):
    appointment_end: datetime


class CanceledAppointment(SQLModel, table=True):
    """Append-only audit of removed appointments."""

    __tablename__ = "canceled_appointments"
    id: int | None = Field(default=None, primary_key=True)
    original_id: int = Field(index=True)
    name: str
    phone_number: str
    service: int
    appointment_time: datetime
    appointment_end: datetime
    user_id: str
    # when the appointment was booked
    created_at: datetime
    canceled_by_admin: bool = False
    canceled_at: datetime = Field(default_factory=_utc_naive_now)


class AppointmentPublic(SQLModel):
    id: int
    name: str
    phone_number: str
    service: int
    service_name: str
    duration_minutes: int
    appointment_time: datetime
    appointment_end: datetime
    user_id: str
