# app/dashboard/routes.py
from fastapi import APIRouter, Depends

from app.ticket import services as ticket_service
from app.ticket.schemas import TicketStats
from app.ticket.store import TicketStore, get_store

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


@router.get("/stats", response_model=TicketStats)
def stats(store: TicketStore = Depends(get_store)):
    return ticket_service.get_stats(store)
