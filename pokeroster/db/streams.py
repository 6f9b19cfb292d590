"""
Table-level change notification for reactive queries.

Sessions created by `Database` record which tables each flush or DML
statement touched. After a successful commit the touched table names are
published here, and every subscription watching one of them is woken.

A subscription is a latch, not a queue: several commits between two reads
collapse into a single wake-up, and a commit that lands while the subscriber
is re-querying is never lost.
"""

import asyncio
from collections.abc import Iterable
from itertools import chain
from typing import Any

from sqlalchemy import event
from sqlalchemy.orm import ORMExecuteState, Session, UOWTransaction

TOUCHED_TABLES = "touched_tables"


class TrackingSession(Session):
    """Session that records the tables it writes to in `session.info`."""

    pass


def _touched(session: Session) -> set[str]:
    touched: set[str] = session.info.setdefault(TOUCHED_TABLES, set())
    return touched


@event.listens_for(TrackingSession, "after_flush")
def _track_flushed_tables(session: Session, _flush_context: UOWTransaction) -> None:
    # new/dirty/deleted still hold the pre-flush state here
    touched = _touched(session)
    for obj in chain(session.new, session.dirty, session.deleted):
        table = getattr(obj, "__table__", None)
        if table is not None:
            touched.add(table.name)


@event.listens_for(TrackingSession, "do_orm_execute")
def _track_statement_tables(state: ORMExecuteState) -> None:
    if not (state.is_insert or state.is_update or state.is_delete):
        return
    table: Any = getattr(state.statement, "table", None)
    if table is not None:
        _touched(state.session).add(table.name)


@event.listens_for(TrackingSession, "after_rollback")
def _discard_touched_tables(session: Session) -> None:
    session.info.pop(TOUCHED_TABLES, None)


class Subscription:
    """Wake-up latch for one watcher of a set of tables."""

    def __init__(self, notifier: "ChangeNotifier", tables: frozenset[str]) -> None:
        self.tables = tables
        self._notifier = notifier
        self._changed = asyncio.Event()
        self.closed = False

    def signal(self) -> None:
        self._changed.set()

    async def wait(self) -> None:
        """Wait for the next change, then re-arm."""
        await self._changed.wait()
        self._changed.clear()

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._notifier.unsubscribe(self)


class ChangeNotifier:
    """Fan-out of committed table changes to open subscriptions."""

    def __init__(self) -> None:
        self._subscriptions: set[Subscription] = set()

    def subscribe(self, tables: Iterable[str]) -> Subscription:
        subscription = Subscription(self, frozenset(tables))
        self._subscriptions.add(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        self._subscriptions.discard(subscription)

    def publish(self, tables: Iterable[str]) -> None:
        """Wake every subscription watching any of `tables`."""
        changed = set(tables)
        if not changed:
            return
        for subscription in list(self._subscriptions):
            if subscription.tables & changed:
                subscription.signal()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)
