from collections.abc import Callable
from datetime import datetime

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_admin_user_id, get_clock, get_session
from app.models.announcement import AnnouncementCreate, AnnouncementPublic
from app.services.announcement_service import (
    create_announcement,
    delete_announcement,
    list_active_announcements,
    list_announcements,
    update_announcement,
)

router = APIRouter(prefix="/announcements", tags=["announcements"])


@router.get("", response_model=list[AnnouncementPublic])
async def active_announcements(
    session: AsyncSession = Depends(get_session),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> list[AnnouncementPublic]:
    """Announcements to show on the booking page right now."""
    return await list_active_announcements(session, clock())


@router.get("/all", response_model=list[AnnouncementPublic])
async def all_announcements(
    session: AsyncSession = Depends(get_session),
    admin_id: str = Depends(get_admin_user_id),
) -> list[AnnouncementPublic]:
    return await list_announcements(session)


@router.post("", response_model=AnnouncementPublic, status_code=status.HTTP_201_CREATED)
async def add_announcement(
    body: AnnouncementCreate,
    session: AsyncSession = Depends(get_session),
    admin_id: str = Depends(get_admin_user_id),
) -> AnnouncementPublic:
    return await create_announcement(session, body)


@router.put("/{announcement_id}", response_model=AnnouncementPublic)
async def edit_announcement(
    announcement_id: int,
    body: AnnouncementCreate,
    session: AsyncSession = Depends(get_session),
    admin_id: str = Depends(get_admin_user_id),
) -> AnnouncementPublic:
    return await update_announcement(session, announcement_id, body)


@router.delete("/{announcement_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_announcement(
    announcement_id: int,
    session: AsyncSession = Depends(get_session),
    admin_id: str = Depends(get_admin_user_id),
) -> None:
    await delete_announcement(session, announcement_id)
