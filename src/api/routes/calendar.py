"""Reservation calendar endpoints.

The local store is a cache of provider state: records are written only after
the provider confirms a create or update, and removed only after it confirms
a delete.
"""

import logging

from fastapi import APIRouter, Depends, Query, status

from api.dependencies import get_calendar_service, get_event_store
from api.models.requests import EventOwner, ReservationFields
from api.models.responses import DeleteEventResponse
from core.errors import NotFoundError, ProviderError, ValidationError
from core.event_store import EventStore
from services.calendar import CalendarService, parse_start

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/calendar", tags=["calendar"])

REQUIRED_FIELDS = [
    "date",
    "time",
    "partySize",
    "email",
    "restaurantName",
    "restaurantAddress",
    "name",
]


def validate_event_fields(fields: dict, required: list[str]) -> None:
    """Raise a 400 naming every required field that is absent or blank."""
    missing = []
    for name in required:
        value = fields.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(name)
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}", data={"required": required}
        )


def validate_reservation(fields: dict) -> None:
    """Check field values that the provider call depends on."""
    party_size = fields.get("partySize")
    if party_size is not None and party_size <= 0:
        raise ValidationError("partySize must be a positive integer")
    parse_start(fields["date"], fields["time"])


def resolve_event(store: EventStore, identifier: str, user_id: str | None) -> tuple[str, dict]:
    """
    Resolve an event id or reservation name to (store key, record).

    Raises:
        ValidationError: userId missing where keys are tenant-scoped
        NotFoundError: nothing stored under the identifier
    """
    if store.strategy.requires_user and not user_id:
        raise ValidationError(
            "Missing required fields: userId", data={"required": ["userId", "eventId"]}
        )

    key = store.key_for(identifier, user_id)
    record = store.get(key)
    if record is None:
        key = store.get_key_by_name(identifier, user_id)
        record = store.get(key)

    if record is None or (user_id and record.get("userId") not in (None, user_id)):
        raise NotFoundError("Event not found")
    return key, record


@router.post("/events", status_code=status.HTTP_201_CREATED)
async def create_event(
    body: ReservationFields,
    store: EventStore = Depends(get_event_store),
    calendar: CalendarService = Depends(get_calendar_service),
):
    """Create a reservation on the provider calendar, then cache its id."""
    fields = body.provided()
    required = REQUIRED_FIELDS + (["userId"] if store.strategy.requires_user else [])
    validate_event_fields({**fields, "userId": body.userId}, required)
    validate_reservation(fields)

    created = await calendar.create_event(fields)
    event_id = created.get("id") if created else None
    if not event_id:
        raise ProviderError("Failed to create event", 500)

    record = {**fields, "eventId": event_id}
    if body.userId:
        record["userId"] = body.userId
    store.save(store.key_for(event_id, body.userId), record)

    logger.info("Calendar event created successfully", extra={"event_id": event_id})
    return created


@router.put("/events/{identifier}")
async def update_event(
    identifier: str,
    body: ReservationFields | None = None,
    user_id: str | None = Query(None, alias="userId"),
    store: EventStore = Depends(get_event_store),
    calendar: CalendarService = Depends(get_calendar_service),
):
    """Merge partial fields over the stored reservation and push them to the provider."""
    body = body or ReservationFields()
    user_id = body.userId or user_id
    key, record = resolve_event(store, identifier, user_id)

    merged = {**record, **body.provided()}
    validate_event_fields(merged, REQUIRED_FIELDS)
    validate_reservation(merged)

    updated = await calendar.update_event(record["eventId"], merged)
    store.save(key, merged)

    logger.info("Calendar event updated successfully", extra={"event_id": record["eventId"]})
    return updated


@router.delete("/events/{identifier}", response_model=DeleteEventResponse)
async def delete_event(
    identifier: str,
    body: EventOwner | None = None,
    user_id: str | None = Query(None, alias="userId"),
    store: EventStore = Depends(get_event_store),
    calendar: CalendarService = Depends(get_calendar_service),
):
    """Delete the reservation from the provider, then drop it from the store."""
    user_id = (body.userId if body else None) or user_id
    key, record = resolve_event(store, identifier, user_id)

    result = await calendar.delete_event(record["eventId"])
    store.remove(key)

    logger.info("Calendar event deleted successfully", extra={"event_id": record["eventId"]})
    return result


@router.get("/events")
async def list_events(store: EventStore = Depends(get_event_store)) -> list[dict]:
    return store.list_all()


@router.get("/events/monthly")
async def list_monthly_events(
    store: EventStore = Depends(get_event_store),
) -> dict[str, list[dict]]:
    """Events bucketed into previous, current and next month."""
    return store.list_by_month()


@router.get("/users/{user_id}/events")
async def list_user_events(
    user_id: str, store: EventStore = Depends(get_event_store)
) -> list[dict]:
    return store.list_by_user(user_id)
