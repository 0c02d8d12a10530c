from typing import List

from errors import storage_errors
from models import Slot
from store import PublicSlot, SlotStore


class PublicQueryService:
    """Read-only views of the catalog."""

    def __init__(self, store: SlotStore):
        self.store = store

    async def public_slots(self) -> List[PublicSlot]:
        with storage_errors("Failed to fetch slots"):
            return await self.store.list_public()

    async def admin_slots(self) -> List[Slot]:
        # Callers must have passed require_admin
        with storage_errors("Failed to fetch slots"):
            return await self.store.list_all()
