# app/ticket/models.py
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class TicketStatus(str, Enum):
    UNRESOLVED = "Unresolved"
    IN_PROGRESS = "InProgress"
    RESOLVED = "Resolved"
    DECLINED = "Declined"


DEFAULT_PRIORITY = "Normal"


@dataclass(frozen=True)
class Photo:
    data: str  # base64
    content_type: str
    size: int


@dataclass
class Ticket:
    id: str
    ticket_number: str
    name: str
    division: str
    description: str
    created_at: datetime
    updated_at: datetime
    priority: str = DEFAULT_PRIORITY
    status: TicketStatus = TicketStatus.UNRESOLVED
    assignee: str = ""
    notes: str = ""
    operator: str = ""
    photo: Photo | None = field(default=None)

    def matches(self, key: str) -> bool:
        return self.id == key or self.ticket_number == key
