from datetime import datetime

from sqlmodel import Field, SQLModel


class AnnouncementBase(SQLModel):
    start_date: datetime
    end_date: datetime
    description: str


class Announcement(AnnouncementBase, table=True):
    __tablename__ = "announcements"
    id: int | None = Field(default=None, primary_key=True)


class AnnouncementCreate(AnnouncementBase):
    pass


class AnnouncementPublic(AnnouncementBase):
    id: int
