import unittest

from reminder_backend.rows import RowCoordinates, calculate_row_index, count_data_rows


class CalculateRowIndexTests(unittest.TestCase):
    def test_newest_item_maps_to_last_sheet_row(self):
        for total in range(1, 30):
            coords = calculate_row_index(0, total)
            self.assertEqual(coords.sheet_row_index, total + 1)

    def test_every_valid_index_maps_below_the_header(self):
        for total in range(1, 20):
            for index in range(total):
                coords = calculate_row_index(index, total)
                self.assertEqual(coords.sheet_row_index, total - index + 1)
                self.assertEqual(coords.data_row_index, total - index)
                self.assertEqual(coords.array_index, coords.data_row_index)
                self.assertGreaterEqual(coords.sheet_row_index, 2)

    def test_out_of_range_returns_none(self):
        self.assertIsNone(calculate_row_index(-1, 5))
        self.assertIsNone(calculate_row_index(5, 5))
        self.assertIsNone(calculate_row_index(0, 0))
        self.assertIsNone(calculate_row_index(100, 3))

    def test_oldest_item_maps_to_first_data_row(self):
        coords = calculate_row_index(4, 5)
        self.assertEqual(
            coords, RowCoordinates(data_row_index=1, sheet_row_index=2, array_index=1)
        )

    def test_delete_range_is_zero_based_and_end_exclusive(self):
        coords = calculate_row_index(0, 3)
        self.assertEqual(coords.sheet_row_index, 4)
        self.assertEqual(coords.delete_range, (3, 4))


class CountDataRowsTests(unittest.TestCase):
    def test_excludes_header(self):
        self.assertEqual(count_data_rows([["Content"], ["a"], ["b"]]), 2)

    def test_empty_sheet_has_no_data_rows(self):
        self.assertEqual(count_data_rows([]), 0)
        self.assertEqual(count_data_rows([["Content"]]), 0)


if __name__ == "__main__":
    unittest.main()
