"""
Reservation events on an MS Graph calendar.
"""

import logging
from datetime import datetime, timedelta

import httpx
from msgraph import GraphServiceClient
from msgraph.generated.models.attendee import Attendee
from msgraph.generated.models.attendee_type import AttendeeType
from msgraph.generated.models.body_type import BodyType
from msgraph.generated.models.date_time_time_zone import DateTimeTimeZone
from msgraph.generated.models.email_address import EmailAddress
from msgraph.generated.models.event import Event
from msgraph.generated.models.item_body import ItemBody
from msgraph.generated.models.location import Location

from core.config import (
    CALENDAR_ID,
    CALENDAR_TIMEZONE,
    CALENDAR_USER_ID,
    REMINDER_MINUTES,
    RESERVATION_DURATION_MINUTES,
    ConfigError,
)
from core.errors import ProviderError, ProviderUnavailableError, ValidationError
from core.graph_client import get_graph_client

logger = logging.getLogger(__name__)

TIME_FORMATS = ("%H:%M", "%H:%M:%S")


def parse_start(date_str: str, time_str: str) -> datetime:
    """
    Combine a YYYY-MM-DD date and HH:MM time into a naive wall-clock datetime.

    Raises:
        ValidationError: if either part does not parse
    """
    try:
        day = datetime.strptime(str(date_str).strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid date '{date_str}', expected YYYY-MM-DD")

    for fmt in TIME_FORMATS:
        try:
            clock = datetime.strptime(str(time_str).strip(), fmt).time()
            break
        except ValueError:
            continue
    else:
        raise ValidationError(f"Invalid time '{time_str}', expected HH:MM (24-hour)")

    return datetime.combine(day, clock)


def format_readable_time(start: datetime) -> str:
    """Format as e.g. 'Sunday, June 1, 7:00 PM'."""
    hour = start.hour % 12 or 12
    return f"{start:%A, %B} {start.day}, {hour}:{start:%M %p}"


def build_event(
    fields: dict,
    *,
    time_zone: str = CALENDAR_TIMEZONE,
    duration_minutes: int = RESERVATION_DURATION_MINUTES,
    reminder_minutes: int = REMINDER_MINUTES,
    updated: bool = False,
) -> Event:
    """Build the MS Graph event resource for a reservation."""
    start = parse_start(fields["date"], fields["time"])
    end = start + timedelta(minutes=duration_minutes)

    verb = "updated" if updated else "confirmed"
    description = (
        f"Reservation {verb} for {fields['name']} on {format_readable_time(start)} "
        f"for {fields['partySize']} people. We look forward to serving you!"
    )

    return Event(
        subject=f"Reservation for {fields['name']}",
        body=ItemBody(content_type=BodyType.Text, content=description),
        location=Location(
            display_name=f"{fields['restaurantName']}, {fields['restaurantAddress']}"
        ),
        start=DateTimeTimeZone(
            date_time=start.isoformat(timespec="seconds"), time_zone=time_zone
        ),
        end=DateTimeTimeZone(date_time=end.isoformat(timespec="seconds"), time_zone=time_zone),
        attendees=[
            Attendee(
                email_address=EmailAddress(address=fields["email"], name=fields["name"]),
                type=AttendeeType.Required,
            )
        ],
        is_reminder_on=True,
        reminder_minutes_before_start=reminder_minutes,
    )


def serialize_event(event: Event) -> dict:
    """Flatten an MS Graph event into a JSON-friendly dict."""

    def _when(value: DateTimeTimeZone | None) -> dict | None:
        if value is None:
            return None
        return {"dateTime": value.date_time, "timeZone": value.time_zone}

    attendees = []
    for attendee in event.attendees or []:
        if attendee.email_address and attendee.email_address.address:
            attendees.append(attendee.email_address.address)

    return {
        "id": event.id,
        "subject": event.subject,
        "description": event.body.content if event.body else None,
        "location": event.location.display_name if event.location else None,
        "start": _when(event.start),
        "end": _when(event.end),
        "attendees": attendees,
        "webLink": event.web_link,
    }


def to_provider_error(exc: Exception, action: str) -> ProviderError:
    """Map an SDK/transport failure to a ProviderError with the provider's status."""
    if isinstance(exc, ProviderError):
        return exc
    if isinstance(exc, ConfigError):
        return ProviderError(str(exc), 500)
    if isinstance(exc, httpx.RequestError):
        return ProviderUnavailableError(f"Calendar provider unreachable: {exc}")

    status_code = getattr(exc, "response_status_code", None) or 500
    message = getattr(getattr(exc, "error", None), "message", None) or str(exc)
    return ProviderError(
        f"Failed to {action} calendar event: {message or type(exc).__name__}", status_code
    )


class CalendarService:
    """Create, update and delete reservation events on one MS Graph calendar."""

    def __init__(
        self,
        graph: GraphServiceClient | None = None,
        user_id: str = CALENDAR_USER_ID,
        calendar_id: str = CALENDAR_ID,
        time_zone: str = CALENDAR_TIMEZONE,
    ):
        self._graph = graph
        self.user_id = user_id
        self.calendar_id = calendar_id
        self.time_zone = time_zone

    @property
    def graph(self) -> GraphServiceClient:
        if self._graph is None:
            self._graph = get_graph_client()
        return self._graph

    def _events(self):
        if not self.user_id:
            raise ConfigError("Calendar provider not configured: CALENDAR_USER_ID")
        user = self.graph.users.by_user_id(self.user_id)
        if self.calendar_id:
            return user.calendars.by_calendar_id(self.calendar_id).events
        return user.events

    async def create_event(self, fields: dict) -> dict:
        """Insert a reservation event; returns the provider's event."""
        resource = build_event(fields, time_zone=self.time_zone)
        try:
            created = await self._events().post(resource)
        except Exception as e:
            logger.error("Failed to create calendar event", extra={"error": str(e)})
            raise to_provider_error(e, "create")

        if created is None or not created.id:
            raise ProviderError("Failed to create event", 500)

        logger.info("Calendar event created", extra={"event_id": created.id})
        return serialize_event(created)

    async def update_event(self, event_id: str, fields: dict) -> dict:
        """Replace a reservation event's details; returns the provider's event."""
        resource = build_event(fields, time_zone=self.time_zone, updated=True)
        try:
            updated = await self._events().by_event_id(event_id).patch(resource)
        except Exception as e:
            logger.error(
                "Failed to update calendar event", extra={"event_id": event_id, "error": str(e)}
            )
            raise to_provider_error(e, "update")

        logger.info("Calendar event updated", extra={"event_id": event_id})
        if updated is None:
            return {**serialize_event(resource), "id": event_id}
        return serialize_event(updated)

    async def delete_event(self, event_id: str) -> dict:
        """Delete a reservation event; returns a confirmation."""
        try:
            await self._events().by_event_id(event_id).delete()
        except Exception as e:
            logger.error(
                "Failed to delete calendar event", extra={"event_id": event_id, "error": str(e)}
            )
            raise to_provider_error(e, "delete")

        logger.info("Calendar event deleted", extra={"event_id": event_id})
        return {"success": True, "eventId": event_id}
