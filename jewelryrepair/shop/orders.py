"""The new-repair intake form and its submission rules."""

from __future__ import annotations

import datetime as dt
import enum
import logging
from decimal import Decimal
from typing import Any, Callable

from .datefield import DateField
from .directory import Client
from .errors import FormClosedError, SubmissionError, ValidationError
from .ledger import LineItem, LineItemLedger, format_money, parse_amount
from .popover import InteractionBus

logger = logging.getLogger(__name__)

MISSING_CUSTOMER = "missing customer details"
INCOMPLETE_ITEM = "incomplete repair item"


class OrderStatus(str, enum.Enum):
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    READY_FOR_PICKUP = "Ready for Pickup"

    @classmethod
    def parse(cls, value: Any) -> "OrderStatus":
        if isinstance(value, cls):
            return value
        for status in cls:
            if value in (status.value, status.name):
                return status
        raise ValidationError(f"Unknown status: {value}")


class FormState(str, enum.Enum):
    EDITING = "editing"
    VALIDATING = "validating"
    ACCEPTED = "accepted"
    SUBMITTED = "submitted"


class RepairOrderForm:
    """One repair order draft from first keystroke to printed tickets.

    A rejected submit returns the form to ``EDITING`` with the error raised
    to the caller. Once ``SUBMITTED`` the draft is frozen; start a new form
    for the next order.
    """

    def __init__(
        self,
        *,
        image_store: Any = None,
        ticket_service: Any = None,
        bus: InteractionBus | None = None,
        clock: Callable[[], dt.date] = dt.date.today,
    ) -> None:
        self.ticket_service = ticket_service
        self.client_name = ""
        self.client_mobile = ""
        self.items = LineItemLedger(image_store)
        self.amount_paid = Decimal("0")
        self.due_date = DateField(bus=bus, clock=clock)
        self.status = OrderStatus.PENDING
        self.state = FormState.EDITING

    def _ensure_editable(self) -> None:
        if self.state is FormState.SUBMITTED:
            raise FormClosedError("This repair has already been submitted")

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------
    def set_customer(self, *, name: str | None = None, mobile: str | None = None) -> None:
        self._ensure_editable()
        if name is not None:
            self.client_name = str(name)
        if mobile is not None:
            self.client_mobile = str(mobile)

    def pick_client(self, client: Client) -> None:
        self.set_customer(name=client.name, mobile=client.mobile)

    def set_amount_paid(self, value: Any) -> None:
        self._ensure_editable()
        self.amount_paid = parse_amount(value)

    def set_status(self, value: Any) -> None:
        self._ensure_editable()
        self.status = OrderStatus.parse(value)

    def add_item(self) -> LineItem:
        self._ensure_editable()
        return self.items.add_item()

    def remove_item(self, item_id: str) -> None:
        self._ensure_editable()
        self.items.remove_item(item_id)

    def update_item(self, item_id: str, field: str, value: Any) -> None:
        self._ensure_editable()
        self.items.update_item(item_id, field, value)

    def update_fields(self, item_id: str, changes: dict[str, Any]) -> None:
        self._ensure_editable()
        self.items.update_fields(item_id, changes)

    def attach_image(self, item_id: str, upload: Any) -> str | None:
        self._ensure_editable()
        return self.items.attach_image(item_id, upload)

    # ------------------------------------------------------------------
    # Totals
    # ------------------------------------------------------------------
    def total(self) -> Decimal:
        return self.items.total()

    def balance(self) -> Decimal:
        return self.total() - self.amount_paid

    @property
    def is_overpaid(self) -> bool:
        return self.balance() < 0

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------
    def validate(self) -> None:
        if not self.client_name.strip() or not self.client_mobile.strip():
            raise ValidationError(MISSING_CUSTOMER)
        if self.items.incomplete_items():
            raise ValidationError(INCOMPLETE_ITEM)

    def submit(self) -> dict:
        self._ensure_editable()
        self.state = FormState.VALIDATING
        try:
            self.validate()
        except ValidationError:
            self.state = FormState.EDITING
            raise
        self.state = FormState.ACCEPTED
        order = self.to_dict()
        if self.ticket_service is not None:
            try:
                self.ticket_service.submit_order(order)
            except SubmissionError:
                logger.warning("Ticket service rejected repair for %s", self.client_name)
                self.state = FormState.EDITING
                raise
        self.state = FormState.SUBMITTED
        logger.info("Repair submitted for %s, total %s", self.client_name, order["total"])
        return order

    def to_dict(self) -> dict:
        selected = self.due_date.selected
        return {
            "client_name": self.client_name,
            "client_mobile": self.client_mobile,
            "items": [item.to_dict() for item in self.items],
            "amount_paid": str(self.amount_paid),
            "total": str(self.total()),
            "balance": str(self.balance()),
            "is_overpaid": self.is_overpaid,
            "display": {
                "amount_paid": format_money(self.amount_paid),
                "total": format_money(self.total()),
                "balance": format_money(self.balance()),
            },
            "due_date": selected.isoformat() if selected else None,
            "status": self.status.value,
            "state": self.state.value,
        }
