"""
Book / move / cancel.

A slot is claimed only through ``SlotStore.conditional_claim``, so the store
(not this module) is what decides which of two racing requests wins. A move
runs as a single store transaction: if anything fails after the target slot
was written, the whole move is rolled back.
"""

import logging
from typing import Optional

from errors import Conflict, Forbidden, NotFound, ValidationError, storage_errors
from models import Slot
from store import SlotStore

logger = logging.getLogger(__name__)


def _clean(value: Optional[str]) -> str:
    return value.strip() if isinstance(value, str) else ""


class BookingEngine:
    def __init__(self, store: SlotStore):
        self.store = store

    async def book(self, slot_id: Optional[int], name: Optional[str], code: Optional[str]) -> None:
        name, code = _clean(name), _clean(code)
        if not slot_id or not name or not code:
            raise ValidationError("Missing fields")

        with storage_errors("Failed to book slot"):
            claimed = await self.store.conditional_claim(slot_id, name, code)

        if not claimed:
            logger.info(f"Booking rejected: slot {slot_id} already held")
            raise Conflict("Slot already booked")
        logger.info(f"Slot {slot_id} booked")

    async def find_booking(self, code: Optional[str]) -> Slot:
        code = _clean(code)
        if not code:
            raise ValidationError("Code required")

        with storage_errors("Error fetching booking"):
            slot = await self.store.find_by_code(code)
        if slot is None:
            raise NotFound("Booking not found")
        return slot

    async def move(self, old_slot_id: Optional[int], new_slot_id: Optional[int], code: Optional[str]) -> None:
        code = _clean(code)
        if not old_slot_id or not new_slot_id or not code:
            raise ValidationError("Missing fields")

        holder = {}

        async def verify_ownership(store: SlotStore):
            old_slot = await store.get(old_slot_id, for_update=True)
            if old_slot is None or old_slot.secret_code != code:
                raise Forbidden("Invalid booking or code")
            holder["name"] = old_slot.user_name

        async def verify_target(store: SlotStore):
            new_slot = await store.get(new_slot_id, for_update=True)
            if new_slot is None:
                raise NotFound("Target slot not found")
            if new_slot.is_booked:
                raise Conflict("Target slot is occupied")

        async def occupy_target(store: SlotStore):
            if not await store.conditional_claim(new_slot_id, holder["name"], code):
                raise Conflict("Target slot is occupied")

        async def release_source(store: SlotStore):
            # Another writer may have moved this booking since verify_ownership
            if not await store.release_held(old_slot_id, code):
                raise Forbidden("Invalid booking or code")

        try:
            with storage_errors("Move failed"):
                await self.store.run_transaction(
                    [verify_ownership, verify_target, occupy_target, release_source]
                )
        except (Forbidden, Conflict, NotFound) as exc:
            logger.info(f"Move {old_slot_id} -> {new_slot_id} rejected: {exc.detail}")
            raise
        logger.info(f"Booking moved from slot {old_slot_id} to slot {new_slot_id}")

    async def cancel(self, slot_id: Optional[int]) -> None:
        if not slot_id:
            raise ValidationError("Missing fields")

        # Idempotent: releasing a free (or unknown) slot changes nothing.
        with storage_errors("Failed to cancel"):
            await self.store.release(slot_id)
        logger.info(f"Slot {slot_id} cancelled by admin")
