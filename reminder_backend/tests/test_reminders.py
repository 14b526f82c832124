import itertools
import unittest
from datetime import date
from unittest.mock import MagicMock

from reminder_backend.errors import NotFoundError, ValidationError
from reminder_backend.reminders import (
    ReminderStore,
    parse_day,
    reminder_occurs_on,
)
from reminder_backend.sheet_setup import initialize_sheets
from reminder_backend.sheets import InMemorySheetsClient

NOW = "2024-03-05T06:00:00.000Z"


def make_store(client):
    ids = itertools.count(100)
    return ReminderStore(
        client,
        now_iso=lambda: NOW,
        new_id=lambda: str(next(ids)),
        sleep=MagicMock(),
    )


class ReminderStoreTests(unittest.TestCase):
    def setUp(self):
        self.client = InMemorySheetsClient()
        initialize_sheets(self.client, archive_sheet_name="ArchivedThoughts")
        self.store = make_store(self.client)

    def _add_reminder(self, **overrides):
        payload = {
            "childId": "100",
            "title": "Drink water",
            "category": "喝水",
            "reminderType": "daily",
            "reminderTime": "2024-03-04T08:00:00",
        }
        payload.update(overrides)
        return self.store.add_reminder(payload)

    def test_default_categories_are_listed_in_order(self):
        categories = self.store.list_categories()
        self.assertEqual(len(categories), 9)
        self.assertEqual(categories[0]["name"], "喝水")
        self.assertEqual([c["order"] for c in categories], list(range(1, 10)))

    def test_add_and_list_children(self):
        child = self.store.add_child("Mia", 5, birthday="2019-01-01")
        self.assertEqual(child["id"], "100")
        self.assertEqual(child["age"], "5")
        self.assertEqual(child["status"], "active")

        children = self.store.list_children()
        self.assertEqual(len(children), 1)
        self.assertEqual(children[0]["name"], "Mia")
        self.assertEqual(children[0]["birthday"], "2019-01-01")
        self.assertEqual(children[0]["avatar"], "")

    def test_add_child_requires_name_and_age(self):
        with self.assertRaises(ValidationError) as ctx:
            self.store.add_child("", "5")
        self.assertEqual(ctx.exception.message, "Name and age are required")
        with self.assertRaises(ValidationError):
            self.store.add_child("Mia", None)

    def test_update_child_keeps_blank_name_and_clears_avatar(self):
        child = self.store.add_child("Mia", "5", avatar="mia.png")
        updated = self.store.update_child(child["id"], {"name": "", "age": 6, "avatar": ""})
        self.assertEqual(updated["name"], "Mia")
        self.assertEqual(updated["age"], "6")
        self.assertEqual(updated["avatar"], "")
        self.assertEqual(self.store.list_children()[0]["age"], "6")

    def test_update_missing_child(self):
        with self.assertRaises(NotFoundError) as ctx:
            self.store.update_child("nope", {"name": "x"})
        self.assertEqual(ctx.exception.message, "Child not found")

    def test_add_reminder_defaults(self):
        reminder = self._add_reminder()
        self.assertTrue(reminder["enabled"])
        self.assertEqual(reminder["advanceMinutes"], 0)

        listed = self.store.list_reminders()
        self.assertEqual(len(listed), 1)
        self.assertIs(listed[0]["enabled"], True)
        self.assertEqual(listed[0]["advanceMinutes"], 0)

    def test_add_reminder_requires_fields(self):
        with self.assertRaises(ValidationError):
            self.store.add_reminder({"childId": "100", "title": "x"})

    def test_list_reminders_filters_by_child_and_day(self):
        self._add_reminder()
        self._add_reminder(reminderType="once", reminderTime="2024-03-05T09:00:00.000Z")
        self._add_reminder(reminderType="weekly", reminderTime="2024-03-04T08:00:00")
        self._add_reminder(childId="999")

        self.assertEqual(len(self.store.list_reminders(child_id="100")), 3)

        tuesday = self.store.list_reminders(child_id="100", day=date(2024, 3, 5))
        self.assertEqual(sorted(r["reminderType"] for r in tuesday), ["daily", "once"])

        next_monday = self.store.list_reminders(child_id="100", day=date(2024, 3, 11))
        self.assertEqual(sorted(r["reminderType"] for r in next_monday), ["daily", "weekly"])

    def test_update_reminder(self):
        reminder = self._add_reminder()
        updated = self.store.update_reminder(
            reminder["id"], {"title": "Water", "enabled": False, "advanceMinutes": "15"}
        )
        self.assertEqual(updated["title"], "Water")
        self.assertFalse(updated["enabled"])
        self.assertEqual(updated["advanceMinutes"], 15)

        listed = self.store.list_reminders()[0]
        self.assertEqual(listed["title"], "Water")
        self.assertFalse(listed["enabled"])
        self.assertEqual(listed["childId"], "100")

    def test_delete_reminder_removes_only_its_row(self):
        first = self._add_reminder(title="first")
        self._add_reminder(title="second")
        self.store.delete_reminder(first["id"])
        self.assertEqual([r["title"] for r in self.store.list_reminders()], ["second"])

        with self.assertRaises(NotFoundError) as ctx:
            self.store.delete_reminder(first["id"])
        self.assertEqual(ctx.exception.message, "Reminder not found")

    def test_add_record_sets_completed_time_only_when_completed(self):
        done = self.store.add_record(
            {"reminderId": "1", "childId": "100", "scheduledTime": NOW, "status": "completed"}
        )
        self.assertEqual(done["completedTime"], NOW)
        self.assertEqual(done["operator"], "User")

        pending = self.store.add_record({"reminderId": "1", "childId": "100", "scheduledTime": NOW})
        self.assertEqual(pending["status"], "pending")
        self.assertEqual(pending["completedTime"], "")

        with self.assertRaises(ValidationError):
            self.store.add_record({"reminderId": "1"})

    def test_list_records_filters(self):
        self.store.add_record({"reminderId": "1", "childId": "100", "scheduledTime": NOW})
        self.store.add_record(
            {"reminderId": "2", "childId": "100", "scheduledTime": "2024-03-06T06:00:00.000Z"}
        )
        self.store.add_record({"reminderId": "1", "childId": "7", "scheduledTime": NOW})

        self.assertEqual(len(self.store.list_records(child_id="100")), 2)
        self.assertEqual(len(self.store.list_records(reminder_id="1")), 2)
        on_day = self.store.list_records(child_id="100", day=date(2024, 3, 6))
        self.assertEqual([r["reminderId"] for r in on_day], ["2"])

    def test_statistics(self):
        water = self._add_reminder()
        teeth = self._add_reminder(title="Brush", category="刷牙")
        for status in ("completed", "skipped", "completed"):
            self.store.add_record(
                {"reminderId": water["id"], "childId": "100", "scheduledTime": NOW, "status": status}
            )
        self.store.add_record(
            {
                "reminderId": teeth["id"],
                "childId": "100",
                "scheduledTime": "2024-04-01T06:00:00.000Z",
            }
        )

        stats = self.store.statistics(child_id="100")
        self.assertEqual(stats["totalTasks"], 4)
        self.assertEqual(stats["completedTasks"], 2)
        self.assertEqual(stats["skippedTasks"], 1)
        self.assertEqual(stats["pendingTasks"], 1)
        self.assertEqual(stats["completionRate"], 50.0)
        self.assertEqual(
            stats["categoryStats"]["喝水"],
            {"total": 3, "completed": 2, "skipped": 1, "pending": 0},
        )
        self.assertEqual(stats["categoryStats"]["刷牙"]["pending"], 1)

        march = self.store.statistics(start=date(2024, 3, 1), end=date(2024, 3, 31))
        self.assertEqual(march["totalTasks"], 3)
        self.assertEqual(march["completionRate"], 66.67)

    def test_statistics_without_records(self):
        stats = self.store.statistics()
        self.assertEqual(stats["totalTasks"], 0)
        self.assertEqual(stats["completionRate"], 0)
        self.assertEqual(stats["categoryStats"], {})


class ReminderScheduleTests(unittest.TestCase):
    def test_parse_day(self):
        self.assertEqual(parse_day("2024-03-05T09:00:00.000Z"), date(2024, 3, 5))
        self.assertEqual(parse_day("2024-03-05"), date(2024, 3, 5))
        self.assertIsNone(parse_day("soon"))
        self.assertIsNone(parse_day(""))

    def test_unknown_type_or_time_never_occurs(self):
        day = date(2024, 3, 5)
        monthly = {"reminderType": "monthly", "reminderTime": "2024-03-05"}
        self.assertFalse(reminder_occurs_on(monthly, day))
        self.assertFalse(reminder_occurs_on({"reminderType": "once", "reminderTime": ""}, day))


if __name__ == "__main__":
    unittest.main()
