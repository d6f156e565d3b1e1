from __future__ import annotations

import logging
import threading
from typing import Protocol

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from uxpulse.models import TelemetryEventRecord
from uxpulse.schemas.events import TelemetryEvent


logger = logging.getLogger(__name__)


class EventStore(Protocol):
    """Append-only, insertion-ordered log of raw telemetry events."""

    async def append(self, event: TelemetryEvent) -> None: ...

    async def list_events(self) -> list[TelemetryEvent]: ...

    async def count(self) -> int: ...

    async def reset(self) -> int: ...


class InMemoryEventStore:
    """Volatile event log guarded by a single writer lock."""

    def __init__(self) -> None:
        self._events: list[TelemetryEvent] = []
        self._lock = threading.Lock()

    async def append(self, event: TelemetryEvent) -> None:
        with self._lock:
            self._events.append(event)

    async def list_events(self) -> list[TelemetryEvent]:
        with self._lock:
            return list(self._events)

    async def count(self) -> int:
        with self._lock:
            return len(self._events)

    async def reset(self) -> int:
        with self._lock:
            cleared = len(self._events)
            self._events.clear()
        logger.info("Cleared %d events from the in-memory log", cleared)
        return cleared


class SqlEventStore:
    """Event log persisted through SQLAlchemy; order follows the row id."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def append(self, event: TelemetryEvent) -> None:
        record = TelemetryEventRecord(
            session_id=event.session_id,
            page=event.current_page,
            event_type=event.event_type,
            payload=event.model_dump(mode="json", by_alias=True, exclude_none=True),
        )
        async with self._session_factory() as session:
            session.add(record)
            await session.commit()

    async def list_events(self) -> list[TelemetryEvent]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(TelemetryEventRecord.payload).order_by(TelemetryEventRecord.id)
            )
            payloads = result.scalars().all()
        return [TelemetryEvent.model_validate(payload) for payload in payloads]

    async def count(self) -> int:
        async with self._session_factory() as session:
            result = await session.execute(select(func.count(TelemetryEventRecord.id)))
            return int(result.scalar_one())

    async def reset(self) -> int:
        async with self._session_factory() as session:
            result = await session.execute(delete(TelemetryEventRecord))
            cleared = result.rowcount or 0
            await session.commit()
        logger.info("Deleted %d persisted telemetry events", cleared)
        return cleared
