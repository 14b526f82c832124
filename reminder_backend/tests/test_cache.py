import unittest
from unittest.mock import MagicMock

from reminder_backend.cache import SheetCache


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class SheetCacheTests(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.loader = MagicMock(side_effect=lambda: [["a", "t1", "d1"]])
        self.cache = SheetCache(
            self.loader, ttl_seconds=30, clock=self.clock, sleep=MagicMock()
        )

    def test_cold_cache_fetches(self):
        self.assertFalse(self.cache.is_valid())
        self.assertEqual(self.cache.get(), [["a", "t1", "d1"]])
        self.assertEqual(self.loader.call_count, 1)
        self.assertTrue(self.cache.is_valid())

    def test_hit_within_ttl_returns_same_object(self):
        first = self.cache.get()
        self.clock.now += 29.9
        second = self.cache.get()
        self.assertIs(first, second)
        self.assertEqual(self.loader.call_count, 1)

    def test_expires_after_ttl(self):
        self.cache.get()
        self.clock.now += 30
        self.assertFalse(self.cache.is_valid())
        self.cache.get()
        self.assertEqual(self.loader.call_count, 2)

    def test_invalidate_forces_fetch_regardless_of_elapsed_time(self):
        self.cache.get()
        self.cache.invalidate()
        self.assertFalse(self.cache.is_valid())
        self.assertEqual(self.cache.last_fetch, 0.0)
        self.cache.get()
        self.assertEqual(self.loader.call_count, 2)

    def test_force_refresh_bypasses_and_stores(self):
        self.cache.get()
        self.cache.get(force_refresh=True)
        self.assertEqual(self.loader.call_count, 2)
        self.cache.get()
        self.assertEqual(self.loader.call_count, 2)

    def test_failed_fetch_is_retried_and_keeps_cache_cold(self):
        sleep = MagicMock()
        loader = MagicMock(side_effect=ConnectionError("refused"))
        cache = SheetCache(loader, ttl_seconds=30, max_retries=3, clock=self.clock, sleep=sleep)

        with self.assertRaises(ConnectionError):
            cache.get()

        self.assertEqual(loader.call_count, 3)
        self.assertFalse(cache.is_valid())

    def test_invalidate_during_load_discards_stale_snapshot(self):
        sheet = [["old"]]

        def load_then_write():
            snapshot = [list(row) for row in sheet]
            # A write lands and invalidates while this read is in flight.
            sheet.append(["new"])
            cache.invalidate()
            return snapshot

        loader = MagicMock(side_effect=load_then_write)
        cache = SheetCache(loader, ttl_seconds=30, clock=self.clock, sleep=MagicMock())

        self.assertEqual(cache.get(), [["old"]])
        self.assertFalse(cache.is_valid())

        loader.side_effect = lambda: [list(row) for row in sheet]
        self.assertEqual(cache.get(), [["old"], ["new"]])
        self.assertTrue(cache.is_valid())


if __name__ == "__main__":
    unittest.main()
