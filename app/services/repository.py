import logging
from datetime import UTC, date, datetime
from typing import Protocol

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError, NotFoundError, RepositoryError
from app.models.appointment import Appointment, AppointmentCreate, CanceledAppointment
from app.models.blocked_date import BlockedDate
from app.models.user import User

logger = logging.getLogger(__name__)


class AppointmentRepository(Protocol):
    async def list_for_date_range(self, start: datetime, end: datetime) -> list[Appointment]: ...

    async def list_for_owner(self, owner_user_id: str, from_time: datetime, limit: int) -> list[Appointment]: ...

    async def insert(self, data: AppointmentCreate) -> Appointment: ...

    async def get_by_id(self, appointment_id: int) -> Appointment: ...

    async def delete(self, appointment_id: int) -> None: ...

    async def insert_cancellation_record(self, record: CanceledAppointment) -> None: ...

    async def upsert_profile(self, owner_user_id: str, name: str, phone_number: str) -> None: ...


class BlockedDateStore(Protocol):
    async def list_from(self, from_date: date) -> list[date]: ...


class SqlAppointmentRepository:
    """AppointmentRepository over one request-scoped AsyncSession.

    Writes are flushed, not committed; the session owner commits.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_for_date_range(self, start: datetime, end: datetime) -> list[Appointment]:
        try:
            result = await self.session.execute(
                select(Appointment)
                .where(Appointment.appointment_time >= start, Appointment.appointment_time < end)
                .order_by(Appointment.appointment_time)
            )
        except SQLAlchemyError as e:
            raise RepositoryError() from e
        return list(result.scalars().all())

    async def list_for_owner(self, owner_user_id: str, from_time: datetime, limit: int) -> list[Appointment]:
        try:
            result = await self.session.execute(
                select(Appointment)
                .where(Appointment.user_id == owner_user_id, Appointment.appointment_time >= from_time)
                .order_by(Appointment.appointment_time)
                .limit(limit)
            )
        except SQLAlchemyError as e:
            raise RepositoryError() from e
        return list(result.scalars().all())

    async def insert(self, data: AppointmentCreate) -> Appointment:
        appointment = Appointment.model_validate(data)
        try:
            async with self.session.begin_nested():
                self.session.add(appointment)
            await self.session.refresh(appointment)
        except IntegrityError as e:
            # unique start or overlapping range rejected by the database
            logger.info("Insert rejected by constraint at %s: %s", data.appointment_time, e.orig)
            raise ConflictError() from e
        except SQLAlchemyError as e:
            raise RepositoryError() from e
        return appointment

    async def get_by_id(self, appointment_id: int) -> Appointment:
        try:
            appointment = await self.session.get(Appointment, appointment_id)
        except SQLAlchemyError as e:
            raise RepositoryError() from e
        if appointment is None:
            raise NotFoundError()
        return appointment

    async def delete(self, appointment_id: int) -> None:
        try:
            result = await self.session.execute(delete(Appointment).where(Appointment.id == appointment_id))
            await self.session.flush()
        except SQLAlchemyError as e:
            raise RepositoryError() from e
        if not result.rowcount:
            raise NotFoundError()

    async def insert_cancellation_record(self, record: CanceledAppointment) -> None:
        try:
            async with self.session.begin_nested():
                self.session.add(record)
        except SQLAlchemyError as e:
            raise RepositoryError() from e

    async def upsert_profile(self, owner_user_id: str, name: str, phone_number: str) -> None:
        try:
            async with self.session.begin_nested():
                await self.session.merge(
                    User(
                        id=owner_user_id,
                        name=name,
                        phone_number=phone_number,
                        updated_at=datetime.now(UTC).replace(tzinfo=None),
                    )
                )
        except SQLAlchemyError as e:
            raise RepositoryError() from e


class SqlBlockedDateStore:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_from(self, from_date: date) -> list[date]:
        try:
            result = await self.session.execute(
                select(BlockedDate.date).where(BlockedDate.date >= from_date).order_by(BlockedDate.date)
            )
        except SQLAlchemyError as e:
            raise RepositoryError() from e
        return [row[0] for row in result.all()]
