"""Client directory: lookup, filtering and sorting of client records."""

from __future__ import annotations

import datetime as dt
import logging
import secrets
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Protocol, Sequence

from .errors import ValidationError
from .popover import InteractionBus, Popover

logger = logging.getLogger(__name__)

SORT_KEYS = ("name", "last_repair_date", "total_repairs")
SORT_DIRECTIONS = ("asc", "desc")


@dataclass(frozen=True)
class Client:
    id: str
    name: str
    mobile: str
    email: str | None = None
    last_repair_date: dt.date | None = None
    total_repairs: int = 0
    address: str | None = None
    join_date: dt.date | None = None
    notes: str | None = None

    def matches(self, term: str) -> bool:
        if not term:
            return True
        needle = term.lower()
        return (
            needle in self.name.lower()
            or term in self.mobile
            or (self.email is not None and needle in self.email.lower())
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "mobile": self.mobile,
            "email": self.email,
            "last_repair_date": _isoformat(self.last_repair_date),
            "total_repairs": self.total_repairs,
            "address": self.address,
            "join_date": _isoformat(self.join_date),
            "notes": self.notes,
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Client":
        return cls(
            id=str(data["id"]),
            name=data["name"],
            mobile=data["mobile"],
            email=data.get("email") or None,
            last_repair_date=_parse_date(data.get("last_repair_date")),
            total_repairs=int(data.get("total_repairs") or 0),
            address=data.get("address") or None,
            join_date=_parse_date(data.get("join_date")),
            notes=data.get("notes") or None,
        )


def _isoformat(value: dt.date | None) -> str | None:
    return value.isoformat() if value else None


def _parse_date(value: Any) -> dt.date | None:
    if not value:
        return None
    if isinstance(value, dt.date):
        return value
    return dt.date.fromisoformat(str(value)[:10])


def _sort_value(client: Client, key: str) -> Any:
    if key == "name":
        return client.name.lower()
    if key == "last_repair_date":
        return client.last_repair_date or dt.date.min
    return client.total_repairs


def sort_clients(results: Iterable[Client], key: str, direction: str = "asc") -> list[Client]:
    """Stable sort; equal keys keep their incoming order in both directions."""

    if key not in SORT_KEYS:
        raise ValidationError(f"Unknown sort key: {key}")
    if direction not in SORT_DIRECTIONS:
        raise ValidationError(f"Unknown sort direction: {direction}")
    return sorted(results, key=lambda client: _sort_value(client, key), reverse=direction == "desc")


class ClientRepository(Protocol):
    def load(self) -> list[Client]:
        ...

    def save(self, client: Client) -> Client:
        ...


class InMemoryClientRepository:
    def __init__(self, clients: Iterable[Client] = ()) -> None:
        self._clients: dict[str, Client] = {}
        for client in clients:
            self.save(client)

    def load(self) -> list[Client]:
        return list(self._clients.values())

    def save(self, client: Client) -> Client:
        self._clients[client.id] = client
        return client


@dataclass
class SortState:
    key: str = "name"
    direction: str = "asc"

    def toggle(self, key: str) -> None:
        if key not in SORT_KEYS:
            raise ValidationError(f"Unknown sort key: {key}")
        if key == self.key:
            self.direction = "desc" if self.direction == "asc" else "asc"
        else:
            self.key = key
            self.direction = "asc"

    def indicator(self, key: str) -> str | None:
        return self.direction if key == self.key else None


@dataclass
class ClientDirectory:
    """Read-mostly view over a :class:`ClientRepository`."""

    repository: ClientRepository
    sort_state: SortState = field(default_factory=SortState)

    def __post_init__(self) -> None:
        self._clients: list[Client] = list(self.repository.load())

    @property
    def clients(self) -> list[Client]:
        return list(self._clients)

    def get(self, client_id: str) -> Client | None:
        for client in self._clients:
            if client.id == client_id:
                return client
        return None

    def search(self, term: str = "", clients: Sequence[Client] | None = None) -> list[Client]:
        source = self._clients if clients is None else clients
        return [client for client in source if client.matches(term or "")]

    def sort(
        self, results: Iterable[Client], key: str | None = None, direction: str | None = None
    ) -> list[Client]:
        return sort_clients(
            results, key or self.sort_state.key, direction or self.sort_state.direction
        )

    def toggle_sort(self, key: str) -> SortState:
        self.sort_state.toggle(key)
        return self.sort_state

    def query(self, term: str = "") -> list[Client]:
        """Filter then order with the directory's current sort state."""

        return self.sort(self.search(term))

    def add_or_select(self, candidate: Client | Mapping[str, Any]) -> Client:
        """Return a picked client as is, or create one from a new-client form."""

        if isinstance(candidate, Client):
            return candidate
        name = str(candidate.get("name") or "").strip()
        mobile = str(candidate.get("mobile") or "").strip()
        if not name or not mobile:
            raise ValidationError("Please fill in name and mobile number")
        email = str(candidate.get("email") or "").strip() or None
        client = Client(id=self._new_id(), name=name, mobile=mobile, email=email)
        saved = self.repository.save(client)
        self._clients.append(saved)
        logger.info("Client added: %s (%s)", saved.name, saved.id)
        return saved

    def _new_id(self) -> str:
        existing = {client.id for client in self._clients}
        while True:
            candidate = secrets.token_hex(8)
            if candidate not in existing:
                return candidate

    def summary(self) -> dict[str, int]:
        return {
            "clients": len(self._clients),
            "total_repairs": sum(client.total_repairs for client in self._clients),
        }


def sample_clients() -> list[Client]:
    """The shop's demo client list."""

    rows = [
        {
            "id": "1",
            "name": "Sarah Johnson",
            "mobile": "+1 (555) 123-4567",
            "email": "sarah.johnson@email.com",
            "last_repair_date": "2024-01-15",
            "total_repairs": 8,
            "address": "123 Main St, Anytown, ST 12345",
            "join_date": "2022-03-15",
            "notes": "Prefers gold jewelry repairs. Very particular about finish quality.",
        },
        {
            "id": "2",
            "name": "Michael Chen",
            "mobile": "+1 (555) 987-6543",
            "email": "michael.chen@email.com",
            "last_repair_date": "2024-01-10",
            "total_repairs": 12,
            "address": "456 Oak Ave, Somewhere, ST 67890",
            "join_date": "2021-11-08",
            "notes": "Regular customer. Often brings vintage watches for repair.",
        },
        {
            "id": "3",
            "name": "Emily Rodriguez",
            "mobile": "+1 (555) 456-7890",
            "email": "emily.rodriguez@email.com",
            "last_repair_date": "2024-01-08",
            "total_repairs": 5,
            "address": "789 Pine Rd, Elsewhere, ST 13579",
            "join_date": "2023-06-20",
        },
        {
            "id": "4",
            "name": "David Thompson",
            "mobile": "+1 (555) 321-0987",
            "email": "david.thompson@email.com",
            "last_repair_date": "2023-12-20",
            "total_repairs": 15,
            "join_date": "2020-09-12",
            "notes": "Collector of antique jewelry. Requires specialized restoration techniques.",
        },
        {
            "id": "5",
            "name": "Lisa Wang",
            "mobile": "+1 (555) 654-3210",
            "email": "lisa.wang@email.com",
            "last_repair_date": "2024-01-12",
            "total_repairs": 3,
            "join_date": "2023-10-05",
        },
        {
            "id": "6",
            "name": "Robert Martinez",
            "mobile": "+1 (555) 789-0123",
            "email": "robert.martinez@email.com",
            "last_repair_date": "2023-11-28",
            "total_repairs": 7,
            "address": "321 Elm St, Nowhere, ST 24680",
            "join_date": "2022-07-30",
            "notes": "Prefers silver jewelry. Quick turnaround preferred.",
        },
    ]
    return [Client.from_mapping(row) for row in rows]


class ClientLookup(Popover):
    """The pick-or-create client modal used by the intake form."""

    def __init__(self, directory: ClientDirectory, bus: InteractionBus | None = None) -> None:
        super().__init__(bus)
        self.directory = directory
        self.term = ""
        self.adding_new = False

    def open(self) -> None:
        self.term = ""
        self.adding_new = False
        super().open()

    def results(self) -> list[Client]:
        return self.directory.search(self.term)

    def choose(self, candidate: Client | Mapping[str, Any]) -> Client:
        client = self.directory.add_or_select(candidate)
        self.close()
        return client
