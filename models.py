import datetime as dt
from typing import Optional
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, UniqueConstraint, func


class Slot(SQLModel, table=True):
    __tablename__ = "slots"
    __table_args__ = (
        # The catalog is fixed: one row per (date, time, group)
        UniqueConstraint("date", "time", "group_name", name="unique_slot"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    date: dt.date = Field(index=True)
    time: str  # "HH:MM"
    group_name: str
    # Both set (held) or both NULL (free)
    user_name: Optional[str] = None
    secret_code: Optional[str] = Field(default=None, index=True)
    created_at: Optional[dt.datetime] = Field(
        default=None,
        sa_column=Column(DateTime, server_default=func.current_timestamp()),
    )

    @property
    def is_booked(self) -> bool:
        return self.user_name is not None
