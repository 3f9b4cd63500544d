from datetime import datetime

from sqlmodel import Field, SQLModel


class User(SQLModel, table=True):
    """Customer profile keyed by the identity provider's user id."""

    __tablename__ = "users"
    id: str = Field(primary_key=True)
    name: str | None = None
    phone_number: str | None = None
    updated_at: datetime | None = None
