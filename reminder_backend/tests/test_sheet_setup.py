import unittest
from unittest.mock import MagicMock

from reminder_backend.sheet_setup import (
    DEFAULT_CATEGORIES,
    REMINDER_SHEET_HEADERS,
    default_category_rows,
    ensure_archive_sheet,
    initialize_sheets,
    resolve_journal_sheet,
)
from reminder_backend.sheets import InMemorySheetsClient
from reminder_backend.thoughts import ARCHIVE_HEADERS


class UnreachableClient(InMemorySheetsClient):
    """Fails the first `failures` sheet listings with a connection error."""

    failures = 100

    def list_sheets(self):
        if self.failures:
            self.failures -= 1
            raise ConnectionError("connection refused")
        return super().list_sheets()


class ResolveJournalSheetTests(unittest.TestCase):
    def test_case_insensitive_match(self):
        client = InMemorySheetsClient(sheets={"Sheet1": [], "thoughts": []})
        self.assertEqual(resolve_journal_sheet(client, "Thoughts"), "thoughts")

    def test_falls_back_to_first_sheet(self):
        client = InMemorySheetsClient(sheets={"Notes": [], "Other": []})
        with self.assertLogs("reminder_backend.sheet_setup", level="WARNING"):
            self.assertEqual(resolve_journal_sheet(client, "Thoughts"), "Notes")

    def test_empty_spreadsheet_keeps_preferred_name(self):
        self.assertEqual(resolve_journal_sheet(InMemorySheetsClient(), "Thoughts"), "Thoughts")

    def test_unreadable_titles_fall_back_to_preferred_name(self):
        client = UnreachableClient(sheets={"Notes": []})
        sleep = MagicMock()
        with self.assertLogs("reminder_backend.sheet_setup", level="ERROR"):
            self.assertEqual(resolve_journal_sheet(client, "Thoughts", sleep=sleep), "Thoughts")
        self.assertEqual([c.args[0] for c in sleep.call_args_list], [2.0, 4.0])


class InitializeSheetsTests(unittest.TestCase):
    def setUp(self):
        self.client = InMemorySheetsClient(sheets={"Thoughts": [["Content", "Timestamp", "Date"]]})

    def test_creates_archive_with_header(self):
        self.assertTrue(ensure_archive_sheet(self.client, "ArchivedThoughts"))
        self.assertEqual(self.client.sheets["ArchivedThoughts"], [ARCHIVE_HEADERS])
        bold = [r for r in self.client.requests_log if "updateCells" in r]
        self.assertEqual(len(bold), 1)
        self.assertEqual(
            bold[0]["updateCells"]["range"]["sheetId"],
            self.client.get_sheet_id("ArchivedThoughts"),
        )

    def test_creates_reminder_sheets_with_headers_and_categories(self):
        created = initialize_sheets(self.client, archive_sheet_name="ArchivedThoughts")
        self.assertEqual(
            created, ["ArchivedThoughts", "Children", "Reminders", "Records", "Categories"]
        )
        for name, headers in REMINDER_SHEET_HEADERS.items():
            self.assertEqual(self.client.sheets[name][0], headers)

        categories = self.client.sheets["Categories"]
        self.assertEqual(len(categories), 1 + len(DEFAULT_CATEGORIES))
        self.assertEqual(categories[1][:2], ["1", "喝水"])
        self.assertEqual(self.client.sheets["Children"], [REMINDER_SHEET_HEADERS["Children"]])

        add_requests = [r["addSheet"] for r in self.client.requests_log if "addSheet" in r]
        grid = add_requests[-1]["properties"]["gridProperties"]
        self.assertEqual(grid, {"rowCount": 1000, "columnCount": 20})

    def test_existing_sheets_are_left_alone(self):
        initialize_sheets(self.client, archive_sheet_name="ArchivedThoughts")
        self.client.sheets["Children"].append(["1", "Mia"])
        logged = len(self.client.requests_log)

        self.assertEqual(initialize_sheets(self.client, archive_sheet_name="ArchivedThoughts"), [])
        self.assertEqual(len(self.client.requests_log), logged)
        self.assertEqual(self.client.sheets["Children"][1], ["1", "Mia"])

    def test_only_missing_reminder_sheets_are_created(self):
        self.client.add_sheet("Children", [["custom"]])
        created = initialize_sheets(self.client, archive_sheet_name="ArchivedThoughts")
        self.assertNotIn("Children", created)
        self.assertEqual(self.client.sheets["Children"], [["custom"]])

    def test_transient_failure_is_retried(self):
        client = UnreachableClient(sheets={"Thoughts": []})
        client.failures = 1
        sleep = MagicMock()
        created = initialize_sheets(client, archive_sheet_name="ArchivedThoughts", sleep=sleep)
        self.assertEqual(created[0], "ArchivedThoughts")
        self.assertIn("Categories", created)
        sleep.assert_called_once_with(2.0)

    def test_persistent_failure_is_logged_and_skipped(self):
        client = UnreachableClient()
        with self.assertLogs("reminder_backend.sheet_setup", level="ERROR") as logs:
            created = initialize_sheets(
                client, archive_sheet_name="ArchivedThoughts", max_retries=1
            )
        self.assertEqual(created, [])
        self.assertEqual(len(logs.records), 2)
        self.assertEqual(client.sheets, {})

    def test_default_category_rows_carry_created_at(self):
        rows = default_category_rows("2024-01-01T00:00:00+00:00")
        self.assertEqual(len(rows), 9)
        self.assertEqual(rows[-1][:2], ["9", "其他"])
        self.assertEqual(rows[-1][-1], "2024-01-01T00:00:00+00:00")


if __name__ == "__main__":
    unittest.main()
