"""Core orchestration logic for the jewellery repair shop."""

from __future__ import annotations

import datetime as dt
import logging
from pathlib import Path
from typing import Any, Callable

from .collaborators import LocalImageStore, LoggingTicketService
from .database import SQLiteClientRepository
from .directory import (
    Client,
    ClientDirectory,
    ClientLookup,
    InMemoryClientRepository,
    SortState,
    sample_clients,
)
from .errors import NotFoundError
from .orders import RepairOrderForm
from .popover import InteractionBus

logger = logging.getLogger(__name__)


class RepairShopSystem:
    """High level façade that exposes application level behaviours.

    One instance serves one shop session: a single client directory and a
    single repair draft at a time.
    """

    def __init__(
        self,
        db_path: str | Path | None = None,
        *,
        upload_folder: str | Path | None = None,
        seed_sample_clients: bool = True,
        ticket_service: Any = None,
        clock: Callable[[], dt.date] = dt.date.today,
    ) -> None:
        if db_path is None:
            self.repository = InMemoryClientRepository(
                sample_clients() if seed_sample_clients else ()
            )
        else:
            self.repository = SQLiteClientRepository(db_path)
            if seed_sample_clients:
                self.repository.seed(sample_clients())
        self.directory = ClientDirectory(self.repository)
        self.bus = InteractionBus()
        self.lookup = ClientLookup(self.directory, self.bus)
        self.image_store = LocalImageStore(upload_folder) if upload_folder else None
        self.ticket_service = ticket_service or LoggingTicketService()
        self.clock = clock
        self.submitted_orders: list[dict] = []
        self.form = self.new_repair()

    # ------------------------------------------------------------------
    # Clients
    # ------------------------------------------------------------------
    def get_client(self, client_id: str) -> Client:
        client = self.directory.get(client_id)
        if client is None:
            raise NotFoundError("Client not found")
        return client

    def list_clients(
        self, *, term: str = "", sort_key: str | None = None, direction: str | None = None
    ) -> list[Client]:
        results = self.directory.search(term)
        return self.directory.sort(results, sort_key, direction)

    def toggle_sort(self, key: str) -> SortState:
        return self.directory.toggle_sort(key)

    def add_client(self, *, name: str, mobile: str, email: str | None = None) -> Client:
        return self.directory.add_or_select({"name": name, "mobile": mobile, "email": email})

    # ------------------------------------------------------------------
    # Repairs
    # ------------------------------------------------------------------
    def new_repair(self, *, client_id: str | None = None) -> RepairOrderForm:
        self.bus.dismiss_all()
        form = RepairOrderForm(
            image_store=self.image_store,
            ticket_service=self.ticket_service,
            bus=self.bus,
            clock=self.clock,
        )
        if client_id is not None:
            form.pick_client(self.get_client(client_id))
        self.form = form
        return form

    def pick_client(self, client_id: str) -> Client:
        client = self.lookup.choose(self.get_client(client_id))
        self.form.pick_client(client)
        return client

    def pick_new_client(self, *, name: str, mobile: str, email: str | None = None) -> Client:
        client = self.lookup.choose({"name": name, "mobile": mobile, "email": email})
        self.form.pick_client(client)
        return client

    def submit_repair(self) -> dict:
        order = self.form.submit()
        self.submitted_orders.append(order)
        return order

    def close(self) -> None:
        self.bus.dismiss_all()
        if isinstance(self.repository, SQLiteClientRepository):
            self.repository.close()
