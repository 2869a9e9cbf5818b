# app/ticket/services.py
import base64
from collections import Counter
from datetime import datetime, timedelta, timezone

from fastapi import UploadFile
from loguru import logger

from app.core.errors import PayloadTooLarge, TicketNotFound, TicketValidationError, UnsupportedMediaType
from app.ticket.models import DEFAULT_PRIORITY, Photo, Ticket, TicketStatus
from app.ticket.schemas import TicketAction, TicketStats, TicketUpdate
from app.ticket.store import TicketStore

REQUIRED_FIELDS = ("name", "division", "description")


def list_tickets(
    store: TicketStore,
    status: str | None = None,
    page: int = 1,
    limit: int = 50,
) -> tuple[list[Ticket], int]:
    """Return one page of tickets, newest first, and the filtered total."""
    items = store.all()
    if status and status != "all":
        items = [t for t in items if t.status.value == status]
    items.sort(key=lambda t: t.created_at, reverse=True)
    start = (page - 1) * limit
    return items[start:start + limit], len(items)


def get_ticket(store: TicketStore, key: str) -> Ticket:
    ticket = store.get(key)
    if ticket is None:
        raise TicketNotFound()
    return ticket


def read_photo(upload: UploadFile | None, max_size: int) -> Photo | None:
    """Validate an uploaded image and encode it for storage."""
    if upload is None or not upload.filename:
        return None

    content_type = upload.content_type or ""
    if not content_type.startswith("image/"):
        raise UnsupportedMediaType()

    raw = upload.file.read(max_size + 1)
    if len(raw) > max_size:
        raise PayloadTooLarge(f"File too large. Maximum {max_size / (1024 * 1024):g}MB")

    return Photo(
        data=base64.b64encode(raw).decode("ascii"),
        content_type=content_type,
        size=len(raw),
    )


def create_ticket(
    store: TicketStore,
    *,
    name: str | None,
    division: str | None,
    description: str | None,
    priority: str | None = None,
    photo: Photo | None = None,
) -> Ticket:
    values = {
        "name": (name or "").strip(),
        "division": (division or "").strip(),
        "description": (description or "").strip(),
    }
    missing = [f for f in REQUIRED_FIELDS if not values[f]]
    if missing:
        raise TicketValidationError(f"Missing required fields: {', '.join(missing)}")

    ticket = store.create(
        **values,
        priority=(priority or "").strip() or DEFAULT_PRIORITY,
        photo=photo,
    )
    logger.info("New ticket created: {}", ticket.ticket_number)
    return ticket


def update_ticket(store: TicketStore, key: str, payload: TicketUpdate | None = None) -> Ticket:
    # no body is an empty patch; only updatedAt moves
    changes = payload.model_dump(exclude_unset=True, exclude_none=True) if payload else {}
    ticket = store.update(key, changes)
    if ticket is None:
        raise TicketNotFound()
    return ticket


def _force_status(store: TicketStore, key: str, status: TicketStatus, payload: TicketAction | None) -> Ticket:
    changes = payload.model_dump(exclude_unset=True, exclude_none=True) if payload else {}
    changes["status"] = status
    ticket = store.update(key, changes)
    if ticket is None:
        raise TicketNotFound()
    return ticket


def resolve_ticket(store: TicketStore, key: str, payload: TicketAction | None = None) -> Ticket:
    return _force_status(store, key, TicketStatus.RESOLVED, payload)


def decline_ticket(store: TicketStore, key: str, payload: TicketAction | None = None) -> Ticket:
    return _force_status(store, key, TicketStatus.DECLINED, payload)


def delete_ticket(store: TicketStore, key: str) -> Ticket:
    ticket = store.remove(key)
    if ticket is None:
        raise TicketNotFound()
    return ticket


def get_stats(store: TicketStore) -> TicketStats:
    by_status: Counter[TicketStatus] = Counter()
    by_priority: Counter[str] = Counter()
    tickets = store.all()
    for ticket in tickets:
        by_status[ticket.status] += 1
        by_priority[ticket.priority] += 1

    return TicketStats(
        total_tickets=len(tickets),
        unresolved_tickets=by_status[TicketStatus.UNRESOLVED],
        in_progress_tickets=by_status[TicketStatus.IN_PROGRESS],
        resolved_tickets=by_status[TicketStatus.RESOLVED],
        declined_tickets=by_status[TicketStatus.DECLINED],
        by_priority=dict(by_priority),
    )


def purge_expired(store: TicketStore, retention_days: int, now: datetime | None = None) -> int:
    now = now or datetime.now(timezone.utc)
    removed = store.purge_older_than(now - timedelta(days=retention_days))
    logger.info("Cleanup completed. Removed: {}, total tickets: {}", removed, store.count())
    return removed
