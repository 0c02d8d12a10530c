"""
Slot persistence.

All reads go straight to the database. Every mutation runs under the
application-wide write lock, which orders writers within one process; across
processes each write is a conditional UPDATE decided by its row count.
"""

import asyncio
import datetime as dt
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, List, Optional

from sqlalchemy import case, func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from models import Slot

Step = Callable[["SlotStore"], Awaitable[None]]

ORDERING = (Slot.date, Slot.time, Slot.group_name)


@dataclass(frozen=True)
class PublicSlot:
    id: int
    date: dt.date
    time: str
    group: str
    occupied: bool


class SlotStore:
    def __init__(self, session: AsyncSession, write_lock: asyncio.Lock):
        self._session = session
        self._write_lock = write_lock
        self._in_transaction = False

    # --- Reads ---

    async def list_all(self) -> List[Slot]:
        statement = (
            select(Slot)
            .order_by(*ORDERING)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(statement)
        return list(result.scalars().all())

    async def list_public(self) -> List[PublicSlot]:
        statement = select(
            Slot.id,
            Slot.date,
            Slot.time,
            Slot.group_name,
            case((Slot.user_name.is_not(None), True), else_=False),
        ).order_by(*ORDERING)
        result = await self._session.execute(statement)
        return [
            PublicSlot(id=id_, date=date, time=time, group=group, occupied=bool(occupied))
            for id_, date, time, group, occupied in result.all()
        ]

    async def find_by_code(self, code: str) -> Optional[Slot]:
        statement = (
            select(Slot)
            .where(Slot.secret_code == code)
            .order_by(Slot.id)
            .limit(1)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(statement)
        return result.scalars().first()

    async def get(self, slot_id: int, for_update: bool = False) -> Optional[Slot]:
        statement = (
            select(Slot)
            .where(Slot.id == slot_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            # No-op on SQLite; moves there rely on conditional writes instead
            statement = statement.with_for_update()
        result = await self._session.execute(statement)
        return result.scalars().first()

    async def count(self) -> int:
        result = await self._session.execute(select(func.count()).select_from(Slot))
        return result.scalar_one()

    # --- Writes ---

    @asynccontextmanager
    async def transaction(self):
        """All-or-nothing scope; writes issued inside it join it."""
        if self._in_transaction:
            yield self
            return

        async with self._write_lock:
            self._in_transaction = True
            try:
                yield self
                await self._session.commit()
            except BaseException:
                await self._session.rollback()
                raise
            finally:
                self._in_transaction = False

    async def run_transaction(self, steps: Iterable[Step]) -> None:
        async with self.transaction():
            for step in steps:
                await step(self)

    async def conditional_claim(self, slot_id: int, name: str, code: str) -> bool:
        # Single UPDATE ... WHERE user_name IS NULL: the database decides the race.
        statement = (
            update(Slot)
            .where(Slot.id == slot_id, Slot.user_name.is_(None))
            .values(user_name=name, secret_code=code)
        )
        async with self.transaction():
            result = await self._session.execute(statement)
        return result.rowcount == 1

    async def release(self, slot_id: int) -> None:
        statement = (
            update(Slot)
            .where(Slot.id == slot_id)
            .values(user_name=None, secret_code=None)
        )
        async with self.transaction():
            await self._session.execute(statement)

    async def release_held(self, slot_id: int, code: str) -> bool:
        # Clears the slot only while it still carries this code.
        statement = (
            update(Slot)
            .where(Slot.id == slot_id, Slot.secret_code == code)
            .values(user_name=None, secret_code=None)
        )
        async with self.transaction():
            result = await self._session.execute(statement)
        return result.rowcount == 1

    async def add_all(self, slots: Iterable[Slot]) -> None:
        async with self.transaction():
            self._session.add_all(list(slots))
