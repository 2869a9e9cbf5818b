# app/ticket/routes.py
import math

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from app.core.config import Settings, get_settings
from app.ticket.schemas import (
    TicketAction,
    TicketCreated,
    TicketMessage,
    TicketOut,
    TicketPage,
    TicketUpdate,
    TicketWithPhoto,
)
from app.ticket import services as ticket_service
from app.ticket.store import TicketStore, get_store

router = APIRouter(prefix="/api/tickets", tags=["Tickets"])


@router.get("", response_model=TicketPage)
def list_all(
    status: str | None = Query(default=None, description="Filter by status, or 'all'"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1),
    store: TicketStore = Depends(get_store),
):
    rows, total = ticket_service.list_tickets(store, status=status, page=page, limit=limit)
    return TicketPage(
        rows=[TicketWithPhoto.from_ticket(t) for t in rows],
        total_pages=math.ceil(total / limit),
        current_page=page,
        total=total,
    )


@router.get("/{ticket_id}", response_model=TicketOut)
def get(ticket_id: str, store: TicketStore = Depends(get_store)):
    return TicketOut.from_ticket(ticket_service.get_ticket(store, ticket_id))


@router.post("", response_model=TicketCreated, status_code=201)
def create(
    name: str | None = Form(default=None),
    division: str | None = Form(default=None),
    description: str | None = Form(default=None),
    priority: str | None = Form(default=None),
    photo: UploadFile | None = File(default=None),
    store: TicketStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    image = ticket_service.read_photo(photo, settings.MAX_UPLOAD_SIZE)
    ticket = ticket_service.create_ticket(
        store,
        name=name,
        division=division,
        description=description,
        priority=priority,
        photo=image,
    )
    return TicketCreated(
        message="Ticket created successfully",
        ticket=TicketOut.from_ticket(ticket),
        ticket_id=ticket.id,
    )


@router.put("/{ticket_id}", response_model=TicketMessage)
def update(ticket_id: str, ticket: TicketUpdate | None = None, store: TicketStore = Depends(get_store)):
    updated = ticket_service.update_ticket(store, ticket_id, ticket)
    return TicketMessage(message="Ticket updated successfully", ticket=TicketWithPhoto.from_ticket(updated))


@router.post("/{ticket_id}/resolve", response_model=TicketMessage)
def resolve(ticket_id: str, action: TicketAction | None = None, store: TicketStore = Depends(get_store)):
    resolved = ticket_service.resolve_ticket(store, ticket_id, action)
    return TicketMessage(message="Ticket resolved successfully", ticket=TicketWithPhoto.from_ticket(resolved))


@router.post("/{ticket_id}/decline", response_model=TicketMessage)
def decline(ticket_id: str, action: TicketAction | None = None, store: TicketStore = Depends(get_store)):
    declined = ticket_service.decline_ticket(store, ticket_id, action)
    return TicketMessage(message="Ticket declined successfully", ticket=TicketWithPhoto.from_ticket(declined))


@router.delete("/{ticket_id}", response_model=TicketMessage)
def delete(ticket_id: str, store: TicketStore = Depends(get_store)):
    deleted = ticket_service.delete_ticket(store, ticket_id)
    return TicketMessage(message="Ticket deleted successfully", ticket=TicketWithPhoto.from_ticket(deleted))
