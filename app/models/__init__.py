from app.models.user import User
from app.models.appointment import (
    Appointment,
    AppointmentCreate,
    AppointmentPublic,
    CanceledAppointment,
)
from app.models.blocked_date import BlockedDate
from app.models.announcement import Announcement, AnnouncementCreate, AnnouncementPublic

__all__ = [
    "User",
    "Appointment",
    "AppointmentCreate",
    "AppointmentPublic",
    "CanceledAppointment",
    "BlockedDate",
    "Announcement",
    "AnnouncementCreate",
    "AnnouncementPublic",
]
