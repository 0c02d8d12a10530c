import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from models import Slot
from store import PublicSlot


# --- Requests (JSON keys follow the web client) ---

class RequestBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class BookRequest(RequestBody):
    slot_id: Optional[int] = Field(default=None, alias="slotId")
    user_name: Optional[str] = Field(default=None, alias="userName")
    secret_code: Optional[str] = Field(default=None, alias="secretCode")


class MyBookingRequest(RequestBody):
    secret_code: Optional[str] = Field(default=None, alias="secretCode")


class MoveRequest(RequestBody):
    old_slot_id: Optional[int] = Field(default=None, alias="oldSlotId")
    new_slot_id: Optional[int] = Field(default=None, alias="newSlotId")
    secret_code: Optional[str] = Field(default=None, alias="secretCode")


class LoginRequest(RequestBody):
    login: Optional[str] = None
    password: Optional[str] = None


class CancelRequest(RequestBody):
    slot_id: Optional[int] = Field(default=None, alias="slotId")


# --- Responses ---

class PublicSlotOut(BaseModel):
    id: int
    date: dt.date
    time: str
    group: str
    is_booked: int  # 0 | 1

    @classmethod
    def from_public(cls, slot: PublicSlot) -> "PublicSlotOut":
        return cls(
            id=slot.id,
            date=slot.date,
            time=slot.time,
            group=slot.group,
            is_booked=int(slot.occupied),
        )


class SlotOut(BaseModel):
    id: int
    date: dt.date
    time: str
    group: str
    user_name: Optional[str]
    secret_code: Optional[str]
    created_at: Optional[dt.datetime]

    @classmethod
    def from_slot(cls, slot: Slot) -> "SlotOut":
        return cls(
            id=slot.id,
            date=slot.date,
            time=slot.time,
            group=slot.group_name,
            user_name=slot.user_name,
            secret_code=slot.secret_code,
            created_at=slot.created_at,
        )


class SuccessOut(BaseModel):
    success: bool = True


class TokenOut(BaseModel):
    token: str
