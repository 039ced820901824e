import datetime as dt
import unittest

from jewelryrepair.shop.datefield import DateField, days_in_month, first_weekday
from jewelryrepair.shop.errors import ValidationError
from jewelryrepair.shop.popover import InteractionBus, Popover

TODAY = dt.date(2024, 1, 15)


def fixed_clock() -> dt.date:
    return TODAY


class CalendarArithmeticTestCase(unittest.TestCase):
    def test_days_in_month(self) -> None:
        self.assertEqual(days_in_month(1, 2024), 29)
        self.assertEqual(days_in_month(1, 2023), 28)
        self.assertEqual(days_in_month(1, 1900), 28)
        self.assertEqual(days_in_month(1, 2000), 29)
        self.assertEqual(days_in_month(0, 2024), 31)
        self.assertEqual(days_in_month(3, 2024), 30)
        self.assertEqual(days_in_month(11, 2023), 31)

    def test_first_weekday_is_sunday_based(self) -> None:
        self.assertEqual(first_weekday(0, 2024), 1)  # Monday
        self.assertEqual(first_weekday(1, 2024), 4)  # Thursday
        self.assertEqual(first_weekday(8, 2024), 0)  # Sunday
        self.assertEqual(first_weekday(5, 2024), 6)  # Saturday

    def test_month_out_of_range(self) -> None:
        with self.assertRaises(ValidationError):
            days_in_month(12, 2024)
        with self.assertRaises(ValidationError):
            first_weekday(-1, 2024)


class DateFieldTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.bus = InteractionBus()
        self.field = DateField(bus=self.bus, clock=fixed_clock)

    def test_cursor_starts_at_today_or_selection(self) -> None:
        self.assertEqual(self.field.cursor, (0, 2024))
        self.assertIsNone(self.field.selected)
        seeded = DateField(dt.date(2023, 6, 3), clock=fixed_clock)
        self.assertEqual(seeded.cursor, (5, 2023))

    def test_navigate_rolls_over_year_boundaries(self) -> None:
        self.field.navigate("prev")
        self.assertEqual(self.field.cursor, (11, 2023))
        self.field.navigate("next")
        self.assertEqual(self.field.cursor, (0, 2024))
        for _ in range(11):
            self.field.navigate("next")
        self.assertEqual(self.field.cursor, (11, 2024))
        self.field.navigate("next")
        self.assertEqual(self.field.cursor, (0, 2025))

    def test_navigate_never_touches_selection(self) -> None:
        self.field.select_day(20)
        self.field.navigate("next")
        self.field.navigate("next")
        self.assertEqual(self.field.selected, dt.date(2024, 1, 20))
        with self.assertRaises(ValidationError):
            self.field.navigate("sideways")

    def test_select_day_respects_leap_years(self) -> None:
        self.field.navigate("next")
        self.assertEqual(self.field.select_day(29), dt.date(2024, 2, 29))
        for _ in range(12):
            self.field.navigate("prev")
        self.assertEqual(self.field.cursor, (1, 2023))
        with self.assertRaises(ValidationError):
            self.field.select_day(29)
        self.assertEqual(self.field.selected, dt.date(2024, 2, 29))

    def test_select_today_and_clear_close_the_picker(self) -> None:
        self.field.open()
        self.field.select_day(3)
        self.assertFalse(self.field.is_open)

        self.field.navigate("next")
        self.field.navigate("next")
        self.field.open()
        self.assertEqual(self.field.today(), TODAY)
        self.assertEqual(self.field.cursor, (0, 2024))
        self.assertFalse(self.field.is_open)

        self.field.open()
        self.field.clear()
        self.assertIsNone(self.field.selected)
        self.assertFalse(self.field.is_open)

    def test_calendar_cells_pad_the_first_week(self) -> None:
        self.field.navigate("next")
        cells = self.field.calendar_cells()
        self.assertEqual(cells[:5], [None, None, None, None, 1])
        self.assertEqual(cells[-1], 29)
        self.assertEqual(len(cells), 33)

    def test_labels_and_highlights(self) -> None:
        self.assertEqual(self.field.display_value(), "Select due date")
        self.assertEqual(self.field.month_label(), "January 2024")
        self.field.select_day(15)
        self.assertEqual(self.field.display_value(), "Jan 15, 2024")
        self.assertTrue(self.field.is_selected(15))
        self.assertTrue(self.field.is_today(15))
        self.field.navigate("next")
        self.assertFalse(self.field.is_selected(15))
        self.assertFalse(self.field.is_today(15))

    def test_to_dict_lists_sunday_first_weekdays(self) -> None:
        state = self.field.to_dict()
        self.assertEqual(state["weekdays"][0], "Sun")
        self.assertEqual(len(state["weekdays"]), 7)
        self.assertEqual(state["cells"][:2], [None, 1])


class OutsideDismissTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.bus = InteractionBus()
        self.field = DateField(bus=self.bus, clock=fixed_clock)

    def test_outside_interaction_closes_and_unsubscribes(self) -> None:
        self.field.open()
        self.assertEqual(self.bus.subscriber_count, 1)
        self.bus.dispatch(self.field)
        self.assertTrue(self.field.is_open)
        self.bus.dispatch(None)
        self.assertFalse(self.field.is_open)
        self.assertEqual(self.bus.subscriber_count, 0)

    def test_every_close_path_releases_the_subscription(self) -> None:
        for action in (lambda: self.field.select_day(1), self.field.today, self.field.clear, self.field.close):
            self.field.open()
            action()
            self.assertEqual(self.bus.subscriber_count, 0)

    def test_open_twice_subscribes_once(self) -> None:
        self.field.open()
        self.field.open()
        self.assertEqual(self.bus.subscriber_count, 1)
        self.field.toggle()
        self.assertFalse(self.field.is_open)
        self.assertEqual(self.bus.subscriber_count, 0)

    def test_selection_wins_over_simultaneous_dismiss(self) -> None:
        self.field.open()
        self.bus.dispatch(None)
        self.field.select_day(9)
        self.assertEqual(self.field.selected, dt.date(2024, 1, 9))
        self.assertFalse(self.field.is_open)

    def test_dismiss_all_closes_every_popover(self) -> None:
        other = Popover(self.bus)
        other.open()
        self.field.open()
        self.bus.dismiss_all()
        self.assertFalse(other.is_open)
        self.assertFalse(self.field.is_open)
        self.assertEqual(self.bus.subscriber_count, 0)


if __name__ == "__main__":
    unittest.main()
