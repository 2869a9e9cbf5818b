# app/ticket/store.py
"""
In-process ticket storage.

The store owns the ordered ticket collection and the identity counter.
Every method runs under one lock, so FastAPI's threadpool can call it from
several requests at once. Tickets handed out are copies; mutate through
the store only.
"""
import secrets
import string
import threading
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

from fastapi import Request

from app.ticket.models import DEFAULT_PRIORITY, Photo, Ticket, TicketStatus

_BASE36 = string.digits + string.ascii_uppercase


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


class TicketStore:
    MUTABLE_FIELDS = frozenset({"status", "notes", "operator", "assignee"})

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self._tickets: list[Ticket] = []
        self._counter = 1
        # display numbers issued during the current millisecond
        self._issued_millis = -1
        self._issued_numbers: set[str] = set()

    def _next_identity(self, now: datetime) -> tuple[str, str]:
        millis = int(now.timestamp() * 1000)
        ticket_id = f"ticket_{millis}_{self._counter}"
        self._counter += 1

        while True:
            suffix = "".join(secrets.choice(_BASE36) for _ in range(4))
            number = f"TKT-{to_base36(millis)}-{suffix}"
            if number not in self._issued_numbers and self._find(number) is None:
                return ticket_id, number

    def _remember_number(self, now: datetime, number: str) -> None:
        millis = int(now.timestamp() * 1000)
        if millis != self._issued_millis:
            self._issued_millis = millis
            self._issued_numbers = set()
        self._issued_numbers.add(number)

    def _find(self, key: str) -> Ticket | None:
        for ticket in self._tickets:
            if ticket.matches(key):
                return ticket
        return None

    def create(
        self,
        *,
        name: str,
        division: str,
        description: str,
        priority: str = DEFAULT_PRIORITY,
        photo: Photo | None = None,
    ) -> Ticket:
        with self._lock:
            now = self._clock()
            ticket_id, number = self._next_identity(now)
            ticket = Ticket(
                id=ticket_id,
                ticket_number=number,
                name=name,
                division=division,
                description=description,
                priority=priority,
                photo=photo,
                created_at=now,
                updated_at=now,
            )
            self._tickets.append(ticket)
            self._remember_number(now, number)
            return replace(ticket)

    def get(self, key: str) -> Ticket | None:
        with self._lock:
            ticket = self._find(key)
            return replace(ticket) if ticket else None

    def update(self, key: str, changes: dict[str, Any]) -> Ticket | None:
        unknown = set(changes) - self.MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be changed: {', '.join(sorted(unknown))}")

        with self._lock:
            ticket = self._find(key)
            if ticket is None:
                return None
            for field, value in changes.items():
                if field == "status":
                    value = TicketStatus(value)
                setattr(ticket, field, value)
            ticket.updated_at = max(self._clock(), ticket.created_at)
            return replace(ticket)

    def remove(self, key: str) -> Ticket | None:
        with self._lock:
            for index, ticket in enumerate(self._tickets):
                if ticket.matches(key):
                    del self._tickets[index]
                    return ticket
            return None

    def all(self) -> list[Ticket]:
        """Snapshot of every ticket, in insertion order."""
        with self._lock:
            return [replace(t) for t in self._tickets]

    def count(self) -> int:
        with self._lock:
            return len(self._tickets)

    def purge_older_than(self, cutoff: datetime) -> int:
        with self._lock:
            before = len(self._tickets)
            kept = [t for t in self._tickets if t.created_at > cutoff]
            self._tickets = kept
            return before - len(kept)


def get_store(request: Request) -> TicketStore:
    store = getattr(request.app.state, "ticket_store", None)
    if store is None:
        raise RuntimeError("ticket_store not initialized")
    return store
