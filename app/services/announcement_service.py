from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError, ValidationError
from app.models.announcement import Announcement, AnnouncementCreate
from app.services.time_utils import to_naive_utc


def _validated(data: AnnouncementCreate) -> AnnouncementCreate:
    description = data.description.strip()
    if not description:
        raise ValidationError("Announcement text is required.", reason="missing_field")
    start, end = to_naive_utc(data.start_date), to_naive_utc(data.end_date)
    if end <= start:
        raise ValidationError("Announcement must end after it starts.", reason="malformed_time")
    return AnnouncementCreate(start_date=start, end_date=end, description=description)


async def list_active_announcements(session: AsyncSession, now: datetime) -> list[Announcement]:
    now = to_naive_utc(now)
    result = await session.execute(
        select(Announcement)
        .where(Announcement.start_date <= now, Announcement.end_date > now)
        .order_by(Announcement.start_date)
    )
    return list(result.scalars().all())


async def list_announcements(session: AsyncSession) -> list[Announcement]:
    result = await session.execute(select(Announcement).order_by(Announcement.start_date))
    return list(result.scalars().all())


async def create_announcement(session: AsyncSession, data: AnnouncementCreate) -> Announcement:
    announcement = Announcement.model_validate(_validated(data))
    session.add(announcement)
    await session.flush()
    await session.refresh(announcement)
    return announcement


async def update_announcement(session: AsyncSession, announcement_id: int, data: AnnouncementCreate) -> Announcement:
    announcement = await session.get(Announcement, announcement_id)
    if announcement is None:
        raise NotFoundError("Announcement not found.")
    clean = _validated(data)
    announcement.start_date = clean.start_date
    announcement.end_date = clean.end_date
    announcement.description = clean.description
    session.add(announcement)
    await session.flush()
    return announcement


async def delete_announcement(session: AsyncSession, announcement_id: int) -> None:
    announcement = await session.get(Announcement, announcement_id)
    if announcement is None:
        raise NotFoundError("Announcement not found.")
    await session.delete(announcement)
    await session.flush()
