"""Read-only view of the main execution trace."""

from typing import List

import galois

from primitives.field import FF, is_power_of_two, lift
from primitives.multilinear import MultiLinearPoly


class MainTrace:
    """Base field trace table, row-major with shape (num_rows, width).

    The number of rows must be a power of two and at least 2, so that every
    column is a multilinear polynomial with at least one variable.
    """

    def __init__(self, rows: galois.FieldArray):
        if not isinstance(rows, galois.FieldArray) or rows.ndim != 2:
            raise ValueError("trace must be a 2-d galois FieldArray")
        num_rows = rows.shape[0]
        if num_rows < 2 or not is_power_of_two(num_rows):
            raise ValueError(f"number of rows must be a power of two >= 2, got {num_rows}")
        self._rows = rows

    @classmethod
    def from_columns(cls, columns: List[galois.FieldArray]) -> "MainTrace":
        """Build a trace from equal-length base field columns."""
        if not columns:
            raise ValueError("trace must have at least one column")
        num_rows = len(columns[0])
        if any(len(col) != num_rows for col in columns):
            raise ValueError("all trace columns must have the same length")
        rows = FF.Zeros((num_rows, len(columns)))
        for i, col in enumerate(columns):
            rows[:, i] = col
        return cls(rows)

    def num_rows(self) -> int:
        return self._rows.shape[0]

    def width(self) -> int:
        return self._rows.shape[1]

    def column(self, idx: int) -> galois.FieldArray:
        return self._rows[:, idx]

    def row(self, idx: int) -> galois.FieldArray:
        return self._rows[idx, :]

    def to_multilinears(self, field) -> List[MultiLinearPoly]:
        """Lift every column into `field` as a MultiLinearPoly over the row index."""
        return [
            MultiLinearPoly.from_evaluations(lift(self.column(i), field))
            for i in range(self.width())
        ]
