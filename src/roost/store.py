"""Record store — an immutable, process-wide directory of user records.

Seeded once at startup, read-only afterwards, so concurrent requests can
share one instance without locking. Lookup is a linear scan; the
directory is small by construction.

Usage::

    store = default_store()
    store.list_all()        # every record, details stripped
    store.get_by_id("2")    # full record, or RecordNotFound
"""

from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Any

from roost.errors import ConfigurationError, RecordNotFound


@dataclass(frozen=True, slots=True)
class RecordDetails:
    """Free-text detail block, only exposed on the get-one read path."""

    bio: str = ""
    notes: str = ""


@dataclass(frozen=True, slots=True)
class Record:
    """A user-like record."""

    id: str
    name: str
    email: str
    details: RecordDetails | None = None

    def summary(self) -> Record:
        """This record without its detail block."""
        return replace(self, details=None)

    def to_dict(self) -> dict[str, Any]:
        """JSON shape. ``details`` is omitted when absent."""
        data: dict[str, Any] = {"id": self.id, "name": self.name, "email": self.email}
        if self.details is not None:
            data["details"] = {"bio": self.details.bio, "notes": self.details.notes}
        return data


class RecordStore:
    """Read-only record directory."""

    __slots__ = ("_records",)

    def __init__(self, records: Iterable[Record]) -> None:
        frozen = tuple(records)
        seen: set[str] = set()
        for record in frozen:
            if record.id in seen:
                msg = f"Duplicate record id {record.id!r} in seed data."
                raise ConfigurationError(msg)
            seen.add(record.id)
        self._records: tuple[Record, ...] = frozen

    def __len__(self) -> int:
        return len(self._records)

    def list_all(self) -> list[Record]:
        """Every record, in seed order, with the detail block removed."""
        return [record.summary() for record in self._records]

    def get_by_id(self, record_id: str) -> Record:
        """The full record for *record_id*.

        Raises ``RecordNotFound`` when no record matches.
        """
        for record in self._records:
            if record.id == record_id:
                return record
        raise RecordNotFound(record_id)


SEED_RECORDS: tuple[Record, ...] = (
    Record(
        id="1",
        name="Alice Archer",
        email="alice@example.com",
        details=RecordDetails(bio="Keeps the lights on.", notes="Prefers email."),
    ),
    Record(
        id="2",
        name="Bob Brewer",
        email="bob@example.com",
        details=RecordDetails(bio="Brews the coffee.", notes="On call Tuesdays."),
    ),
    Record(
        id="3",
        name="Carol Chen",
        email="carol@example.com",
        details=RecordDetails(bio="Writes the docs.", notes=""),
    ),
    Record(
        id="4",
        name="Dave Dunn",
        email="dave@example.com",
    ),
)


def default_store() -> RecordStore:
    """A store seeded with ``SEED_RECORDS``."""
    return RecordStore(SEED_RECORDS)
