from collections.abc import Callable
from datetime import datetime

from fastapi import BackgroundTasks, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.db import get_session
from app.core.security import decode_access_token
from app.services.appointment_service import BookingGuard
from app.services.repository import (
    AppointmentRepository,
    BlockedDateStore,
    SqlAppointmentRepository,
    SqlBlockedDateStore,
)
from app.services.sms_service import NotificationSender, TwilioSmsSender
from app.services.time_utils import utc_naive_now

security = HTTPBearer(auto_error=False)


def get_clock() -> Callable[[], datetime]:
    """Current instant as naive UTC; overridden in tests."""
    return utc_naive_now


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str:
    """Opaque owner id from the bearer token issued by the phone login flow."""
    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user_id = decode_access_token(credentials.credentials)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id


async def get_admin_user_id(user_id: str = Depends(get_current_user_id)) -> str:
    if user_id not in settings.admin_user_ids_list:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to manage the shop",
        )
    return user_id


def get_appointment_repository(session: AsyncSession = Depends(get_session)) -> AppointmentRepository:
    return SqlAppointmentRepository(session)


def get_blocked_date_store(session: AsyncSession = Depends(get_session)) -> BlockedDateStore:
    return SqlBlockedDateStore(session)


def get_notifier() -> NotificationSender:
    return TwilioSmsSender(settings)


def get_booking_guard(
    background_tasks: BackgroundTasks,
    repository: AppointmentRepository = Depends(get_appointment_repository),
    blocked_dates: BlockedDateStore = Depends(get_blocked_date_store),
    notifier: NotificationSender = Depends(get_notifier),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> BookingGuard:
    # SMS goes out after the response (and the commit) via BackgroundTasks
    return BookingGuard(
        repository,
        blocked_dates,
        notifier,
        settings=settings,
        defer=background_tasks.add_task,
        clock=clock,
    )
