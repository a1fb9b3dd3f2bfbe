"""Tests for the main trace table."""

import numpy as np
import pytest

from primitives.field import FF, FF2
from protocol.main_trace import MainTrace


class TestMainTrace:
    def test_from_columns(self) -> None:
        """Columns become the second axis of the row-major table."""
        trace = MainTrace.from_columns([FF([1, 2, 3, 4]), FF([5, 6, 7, 8])])
        assert trace.num_rows() == 4
        assert trace.width() == 2
        assert np.array_equal(trace.row(1), FF([2, 6]))
        assert np.array_equal(trace.column(1), FF([5, 6, 7, 8]))

    @pytest.mark.parametrize("num_rows", [1, 3, 6])
    def test_rejects_bad_row_counts(self, num_rows: int) -> None:
        """At least two rows, and a power of two."""
        with pytest.raises(ValueError):
            MainTrace(FF.Zeros((num_rows, 3)))

    def test_rejects_ragged_columns(self) -> None:
        with pytest.raises(ValueError):
            MainTrace.from_columns([FF([1, 2]), FF([1, 2, 3, 4])])

    def test_to_multilinears_lifts(self) -> None:
        """Column MLEs are lifted into the protocol field unchanged."""
        trace = MainTrace.from_columns([FF([1, 2]), FF([3, 4])])
        mls = trace.to_multilinears(FF2)
        assert all(ml.field is FF2 for ml in mls)
        assert np.array_equal(mls[1].evaluations, FF2([3, 4]))
        assert mls[0].num_variables() == 1
