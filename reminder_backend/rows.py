"""
Row addressing helpers for sheets that are shown newest-first.

Rows are appended at the bottom of a sheet but clients receive them reversed,
so index 0 on the client is the bottom-most data row. The mapping is only
valid against the exact sheet state the row count was read from: any append
or delete in between shifts every outstanding client index.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class RowCoordinates:
    # 1-based among data rows, counted from the top of the sheet.
    data_row_index: int
    # 1-based sheet row number including the header row.
    sheet_row_index: int
    # Position in a values.get result that still holds the header at 0.
    array_index: int

    @property
    def delete_range(self) -> tuple[int, int]:
        """0-based, end-exclusive row range for a deleteDimension request."""
        return self.sheet_row_index - 1, self.sheet_row_index


def calculate_row_index(
    frontend_index: int, total_data_rows: int
) -> Optional[RowCoordinates]:
    if frontend_index < 0 or frontend_index >= total_data_rows:
        return None

    data_row_index = total_data_rows - frontend_index
    return RowCoordinates(
        data_row_index=data_row_index,
        sheet_row_index=data_row_index + 1,
        array_index=data_row_index,
    )


def count_data_rows(rows: list) -> int:
    """Number of data rows in a values.get result that includes the header."""
    return max(len(rows) - 1, 0)
