# app/ticket/schemas.py
from dataclasses import asdict
from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.ticket.models import Ticket, TicketStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PhotoOut(CamelModel):
    data: str
    content_type: str
    size: int


class TicketOut(CamelModel):
    id: str
    ticket_number: str
    name: str
    division: str
    priority: str
    description: str
    status: TicketStatus
    assignee: str
    notes: str
    operator: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_ticket(cls, ticket: Ticket):
        return cls.model_validate(asdict(ticket))


class TicketWithPhoto(TicketOut):
    photo: PhotoOut | None = None


class TicketPage(CamelModel):
    rows: list[TicketWithPhoto]
    total_pages: int
    current_page: int
    total: int


class TicketCreated(CamelModel):
    message: str
    ticket: TicketOut
    ticket_id: str


class TicketMessage(CamelModel):
    message: str
    ticket: TicketWithPhoto


# Absent fields are left untouched; an explicit "" overwrites.
class TicketUpdate(CamelModel):
    status: TicketStatus | None = None
    notes: str | None = None
    operator: str | None = None
    assignee: str | None = None


class TicketAction(CamelModel):
    notes: str | None = None
    operator: str | None = None


class TicketStats(CamelModel):
    total_tickets: int
    unresolved_tickets: int
    in_progress_tickets: int
    resolved_tickets: int
    declined_tickets: int
    by_priority: dict[str, int]
