import datetime as dt
import logging
from typing import Iterable, Iterator, List

from models import Slot
from store import SlotStore

logger = logging.getLogger(__name__)

SLOT_MINUTES = 15

# (days of March, group, start, end) - end is exclusive
SCHEDULE = [
    (("03", "04", "10", "11"), "Группа 1", "10:00", "11:30"),
    (("03", "04", "10", "11"), "Группа 2", "11:00", "12:00"),
    (("05", "12"), "Группа 1", "10:00", "11:00"),
    (("05", "12"), "Группа 2", "17:15", "18:15"),
    (("06",), "Группа 1", "12:00", "13:00"),
    (("16", "17"), "Группа 1", "10:00", "11:30"),
    (("16", "17"), "Группа 2", "17:00", "18:30"),
]


def _minutes(clock: str) -> int:
    hours, minutes = clock.split(":")
    return int(hours) * 60 + int(minutes)


def generate_slots(dates: Iterable[dt.date], group: str, start: str, end: str) -> Iterator[Slot]:
    """Yield one free slot every 15 minutes in [start, end) for each date."""
    for day in dates:
        current = _minutes(start)
        while current < _minutes(end):
            yield Slot(
                date=day,
                time=f"{current // 60:02d}:{current % 60:02d}",
                group_name=group,
            )
            current += SLOT_MINUTES


def default_catalog(year: int) -> List[Slot]:
    slots = []
    for days, group, start, end in SCHEDULE:
        dates = [dt.date(year, 3, int(day)) for day in days]
        slots.extend(generate_slots(dates, group, start, end))
    return slots


async def seed_if_empty(store: SlotStore, year: int) -> int:
    if await store.count() > 0:
        return 0

    logger.info("Seeding database...")
    catalog = default_catalog(year)
    await store.add_all(catalog)
    logger.info(f"Database seeded with {len(catalog)} slots.")
    return len(catalog)
