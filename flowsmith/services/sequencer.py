"""Per-entity request sequence numbers for builder sync.

Push and pull take a ticket before their remote call and ask ``try_apply``
before writing the response back. A response holding an older ticket than the
last one applied for the same record is stale and must be dropped.
"""
import asyncio
from collections import defaultdict
from typing import Dict

from flowsmith.core.errors import RaceCondition
from flowsmith.core.logging import log_fields, logger


class RequestSequencer:
    def __init__(self) -> None:
        self._issued: Dict[str, int] = defaultdict(int)
        self._applied: Dict[str, int] = defaultdict(int)
        self._lock = asyncio.Lock()

    async def issue(self, entity_id: str) -> int:
        async with self._lock:
            self._issued[entity_id] += 1
            return self._issued[entity_id]

    async def try_apply(self, entity_id: str, seq: int) -> bool:
        async with self._lock:
            last = self._applied[entity_id]
            if seq < last:
                logger.warning(
                    f"Discarding stale response for {entity_id}",
                    extra=log_fields(race=RaceCondition.CONCURRENT_PATCH.value, entity_id=entity_id, seq=seq, last_applied=last),
                )
                return False
            self._applied[entity_id] = seq
            return True

    async def last_applied(self, entity_id: str) -> int:
        async with self._lock:
            return self._applied.get(entity_id, 0)

    async def forget(self, entity_id: str) -> None:
        """Drop the counters of a record that no longer exists."""
        async with self._lock:
            self._issued.pop(entity_id, None)
            self._applied.pop(entity_id, None)

    def __len__(self) -> int:
        return len(self._issued)


sync_sequencer = RequestSequencer()
