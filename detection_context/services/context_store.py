"""
Context Store Service

Reads and writes per-detection context entries in the shared collection.
"""

import asyncio
from typing import Optional, Protocol

from detection_context.core.errors import StoreUnavailableError
from detection_context.core.logging import get_logger
from detection_context.schemas.context import ContextEntry

logger = get_logger(__name__)


class Collection(Protocol):
    async def list_keys(self, composite_id: str) -> list[str]: ...

    async def read(self, object_key: str) -> dict: ...

    async def write(self, object_key: str, record: dict) -> dict: ...

    async def delete(self, object_key: str) -> dict: ...


class ContextStore:
    def __init__(self, collection: Collection):
        self.collection = collection

    async def list_entries(self, detection_id: str) -> list[ContextEntry]:
        """
        List every entry stored for a detection.

        Entries that fail to read are logged and left out; a partial view
        is returned rather than nothing. Listing failures raise
        StoreUnavailableError.
        """
        try:
            keys = await self.collection.list_keys(detection_id)
        except Exception as e:
            logger.error(f"Listing context entries for {detection_id} failed: {e}")
            raise StoreUnavailableError(str(e)) from e

        results = await asyncio.gather(*(self._read(key) for key in keys))
        return [entry for entry in results if entry is not None]

    async def _read(self, object_key: str) -> Optional[ContextEntry]:
        try:
            record = await self.collection.read(object_key)
            if not record:
                return None
            entry = ContextEntry.model_validate(record)
        except Exception as e:
            logger.warning(f"Dropping context entry {object_key}: {e}")
            return None

        entry.object_key = object_key
        return entry

    async def write_entry(self, object_key: str, entry: ContextEntry) -> None:
        entry.object_key = object_key
        try:
            await self.collection.write(object_key, entry.to_record())
        except Exception as e:
            logger.error(f"Writing context entry {object_key} failed: {e}")
            raise StoreUnavailableError(str(e)) from e

    async def delete_entry(self, object_key: str) -> None:
        try:
            await self.collection.delete(object_key)
        except Exception as e:
            logger.error(f"Deleting context entry {object_key} failed: {e}")
            raise StoreUnavailableError(str(e)) from e
