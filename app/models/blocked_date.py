import datetime as dt

from sqlmodel import Field, SQLModel


class BlockedDate(SQLModel, table=True):
    """A whole calendar day the shop is closed (vacation, holiday)."""

    __tablename__ = "blocked_dates"
    date: dt.date = Field(primary_key=True)
