"""Calendar picker state and its date arithmetic.

Months are zero based (0 = January .. 11 = December) throughout this module
and weekdays run 0 = Sunday .. 6 = Saturday, matching the picker grid.
"""

from __future__ import annotations

import calendar
import datetime as dt
import logging
from typing import Callable

from .errors import ValidationError
from .popover import InteractionBus, Popover

logger = logging.getLogger(__name__)

MONTH_NAMES = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]
WEEKDAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
PLACEHOLDER = "Select due date"


def days_in_month(month: int, year: int) -> int:
    """Return the number of days in ``month`` of ``year``, leap years included."""

    _check_month(month)
    return calendar.monthrange(year, month + 1)[1]


def first_weekday(month: int, year: int) -> int:
    """Return the weekday of the 1st, 0 = Sunday .. 6 = Saturday."""

    _check_month(month)
    return (dt.date(year, month + 1, 1).weekday() + 1) % 7


def format_display_date(value: dt.date | None) -> str:
    if value is None:
        return ""
    return f"{MONTH_NAMES[value.month - 1][:3]} {value.day}, {value.year}"


def _check_month(month: int) -> None:
    if not 0 <= month <= 11:
        raise ValidationError(f"Month must be between 0 and 11, got {month}")


class DateField(Popover):
    """A selected date plus the month/year cursor used to pick it.

    The cursor only drives navigation; moving it never changes ``selected``.
    Selection, ``today`` and ``clear`` apply whether or not the picker is
    still open, so an outside dismissal delivered by the same interaction
    cannot swallow them.
    """

    def __init__(
        self,
        selected: dt.date | None = None,
        *,
        bus: InteractionBus | None = None,
        clock: Callable[[], dt.date] = dt.date.today,
    ) -> None:
        super().__init__(bus)
        self._clock = clock
        self.selected = selected
        anchor = selected or clock()
        self.cursor_month = anchor.month - 1
        self.cursor_year = anchor.year

    @property
    def cursor(self) -> tuple[int, int]:
        return self.cursor_month, self.cursor_year

    def navigate(self, direction: str) -> None:
        if direction == "prev":
            self.cursor_month -= 1
            if self.cursor_month < 0:
                self.cursor_month = 11
                self.cursor_year -= 1
        elif direction == "next":
            self.cursor_month += 1
            if self.cursor_month > 11:
                self.cursor_month = 0
                self.cursor_year += 1
        else:
            raise ValidationError(f"Unknown direction: {direction!r}")

    def select_day(self, day: int) -> dt.date:
        limit = days_in_month(self.cursor_month, self.cursor_year)
        if not 1 <= day <= limit:
            raise ValidationError(f"Day must be between 1 and {limit}")
        self.selected = dt.date(self.cursor_year, self.cursor_month + 1, day)
        logger.debug("Date selected: %s", self.selected.isoformat())
        self.close()
        return self.selected

    def today(self) -> dt.date:
        current = self._clock()
        self.selected = current
        self.cursor_month = current.month - 1
        self.cursor_year = current.year
        self.close()
        return current

    def clear(self) -> None:
        self.selected = None
        self.close()

    # ------------------------------------------------------------------
    # Grid helpers
    # ------------------------------------------------------------------
    def calendar_cells(self) -> list[int | None]:
        """Leading blanks for the first week, then the day numbers."""

        padding = first_weekday(self.cursor_month, self.cursor_year)
        total = days_in_month(self.cursor_month, self.cursor_year)
        return [None] * padding + list(range(1, total + 1))

    def is_selected(self, day: int) -> bool:
        return (
            self.selected is not None
            and self.selected.year == self.cursor_year
            and self.selected.month == self.cursor_month + 1
            and self.selected.day == day
        )

    def is_today(self, day: int) -> bool:
        current = self._clock()
        return (
            current.year == self.cursor_year
            and current.month == self.cursor_month + 1
            and current.day == day
        )

    def month_label(self) -> str:
        return f"{MONTH_NAMES[self.cursor_month]} {self.cursor_year}"

    def display_value(self) -> str:
        return format_display_date(self.selected) or PLACEHOLDER

    def to_dict(self) -> dict:
        return {
            "selected": self.selected.isoformat() if self.selected else None,
            "display": self.display_value(),
            "is_open": self.is_open,
            "cursor": {"month": self.cursor_month, "year": self.cursor_year},
            "month_label": self.month_label(),
            "weekdays": WEEKDAY_NAMES,
            "cells": self.calendar_cells(),
        }
