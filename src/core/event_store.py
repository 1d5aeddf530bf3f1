"""
In-memory store for reservation events.

Maps a provider-issued event id (optionally scoped by tenant) to the last
known reservation fields, with an optional secondary name index so callers
can resolve a human-facing key to the provider id.

The store is process-lifetime only. Every method is synchronous, so each call
runs atomically on the event loop; sequences spanning an awaited provider
call are not.
"""

import calendar
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

KEY_SEPARATOR = "_"


def escape_user_id(user_id: str) -> str:
    """Percent-encode the separator so a userId never spans into the next key part."""
    return user_id.replace("%", "%25").replace(KEY_SEPARATOR, "%5F")


class InvalidArgument(ValueError):
    """Raised when a required store key is empty or absent."""


@dataclass(frozen=True)
class KeyStrategy:
    """
    How records are keyed.

    primary_key() derives the store key from a provider event id (and userId);
    index_key() derives the optional secondary key from a name (and userId).
    """

    name: str
    indexes_names: bool = False
    requires_user: bool = False

    def primary_key(self, event_id: str | None, user_id: str | None = None) -> str:
        if not event_id:
            raise InvalidArgument("eventId is required")
        if self.requires_user:
            if not user_id:
                raise InvalidArgument("userId is required")
            return f"{escape_user_id(user_id)}{KEY_SEPARATOR}{event_id}"
        return event_id

    def index_key(self, name: str | None, user_id: str | None = None) -> str | None:
        if not self.indexes_names or not name:
            return None
        if self.requires_user:
            if not user_id:
                return None
            return f"{escape_user_id(user_id)}{KEY_SEPARATOR}{name}"
        return name

    def record_index_key(self, record: dict | None) -> str | None:
        """Secondary key for a stored record, or None."""
        if not record:
            return None
        return self.index_key(record.get("name"), record.get("userId"))

    def user_prefix(self, user_id: str) -> str | None:
        """Primary-key prefix owned by a user, when keys are tenant-scoped."""
        if self.requires_user:
            return f"{escape_user_id(user_id)}{KEY_SEPARATOR}"
        return None


BY_ID = KeyStrategy(name="id")
BY_NAME = KeyStrategy(name="name", indexes_names=True)
BY_USER = KeyStrategy(name="user", indexes_names=True, requires_user=True)

KEY_STRATEGIES = {strategy.name: strategy for strategy in (BY_ID, BY_NAME, BY_USER)}


def get_key_strategy(name: str) -> KeyStrategy:
    """Look up a key strategy by its configured name."""
    try:
        return KEY_STRATEGIES[name]
    except KeyError:
        valid = ", ".join(sorted(KEY_STRATEGIES))
        raise ValueError(f"Unknown event key strategy '{name}' (expected one of: {valid})")


def parse_event_date(value: Any) -> date | None:
    """Parse a record's YYYY-MM-DD date; None when absent or malformed."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        return None


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _month_bounds(year: int, month: int) -> tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


class EventStore:
    """Event records keyed by a KeyStrategy, with an optional name index."""

    def __init__(self, strategy: KeyStrategy = BY_NAME):
        self.strategy = strategy
        self._events: dict[str, dict] = {}
        self._index: dict[str, str] = {}  # secondary key -> primary key

    def __len__(self) -> int:
        return len(self._events)

    def __contains__(self, key: object) -> bool:
        return key in self._events

    def key_for(self, event_id: str | None, user_id: str | None = None) -> str:
        """Primary key for a provider event id under this store's strategy."""
        return self.strategy.primary_key(event_id, user_id)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def save(self, key: str | None, data: dict | None = None) -> bool:
        """
        Upsert a record.

        When the record's secondary key changes, the old index entry is
        dropped and the new one added in the same call.

        Raises:
            InvalidArgument: if key is empty or absent
        """
        if not key:
            raise InvalidArgument("eventId is required")

        record = {"eventId": key, **(data or {})}
        previous = self._events.get(key)

        old_index = self.strategy.record_index_key(previous)
        new_index = self.strategy.record_index_key(record)
        if old_index and old_index != new_index and self._index.get(old_index) == key:
            del self._index[old_index]

        self._events[key] = record
        if new_index:
            self._index[new_index] = key
        return True

    def remove(self, key: str | None) -> bool:
        """Delete a record and its index entry. Returns whether it existed."""
        if not key:
            return False

        record = self._events.pop(key, None)
        if record is None:
            return False

        index = self.strategy.record_index_key(record)
        if index and self._index.get(index) == key:
            del self._index[index]
        return True

    def remove_by_name(self, name: str | None, user_id: str | None = None) -> bool:
        """Delete the record indexed under a name. Returns whether it existed."""
        key = self.get_key_by_name(name, user_id)
        if key is None:
            return False
        return self.remove(key)

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def get(self, key: str | None) -> dict | None:
        if not key:
            return None
        record = self._events.get(key)
        return dict(record) if record is not None else None

    def get_key_by_name(self, name: str | None, user_id: str | None = None) -> str | None:
        index = self.strategy.index_key(name, user_id)
        if index is None:
            return None
        return self._index.get(index)

    def get_by_name(self, name: str | None, user_id: str | None = None) -> dict | None:
        return self.get(self.get_key_by_name(name, user_id))

    def list_all(self) -> list[dict]:
        return [dict(record) for record in self._events.values()]

    def list_by_user(self, user_id: str | None) -> list[dict]:
        """All records owned by a user (key prefix scan for tenant keys)."""
        if not user_id:
            return []

        prefix = self.strategy.user_prefix(user_id)
        if prefix is not None:
            return [
                dict(record)
                for key, record in self._events.items()
                if key.startswith(prefix)
            ]
        return [dict(record) for record in self._events.values() if record.get("userId") == user_id]

    def list_by_date_range(self, start: date | None, end: date | None) -> list[dict]:
        """Records dated within [start, end]. Unparseable dates are skipped."""
        if start is None or end is None:
            return []

        matches = []
        for record in self._events.values():
            event_date = parse_event_date(record.get("date"))
            if event_date is not None and start <= event_date <= end:
                matches.append(dict(record))
        return matches

    def list_by_month(self, today: date | None = None) -> dict[str, list[dict]]:
        """
        Bucket records into the previous, current and next calendar month.

        Records with unparseable dates appear in no bucket.
        """
        today = today or date.today()
        buckets = {}
        for label, delta in (("previousMonth", -1), ("currentMonth", 0), ("nextMonth", 1)):
            year, month = _shift_month(today.year, today.month, delta)
            buckets[label] = self.list_by_date_range(*_month_bounds(year, month))
        return buckets
