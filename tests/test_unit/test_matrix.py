"""
Unit tests for the column-banded scaled matrix.
"""

import math

import numpy as np
import pytest

from arrowml.core.matrix import ScaledMatrix


class TestScaledMatrixColumns:
    """Test column storage, scaling and band semantics."""

    def test_set_column_rescales_by_maximum(self):
        m = ScaledMatrix(5, 3)
        m.set_column(1, 2, [0.25, 0.5])

        assert m[2, 1] == pytest.approx(0.5)
        assert m[3, 1] == pytest.approx(1.0)
        assert m.log_scale(1) == pytest.approx(math.log(0.5))

    def test_reads_outside_band_are_zero(self):
        m = ScaledMatrix(5, 3)
        m.set_column(0, 1, [1.0, 2.0])

        assert m[0, 0] == 0.0
        assert m[3, 0] == 0.0
        assert m.get(4, 0) == 0.0
        assert m.used_row_range(0) == (1, 3)

    def test_unfilled_columns_are_empty(self):
        m = ScaledMatrix(4, 4)
        assert m.used_row_range(2) == (0, 0)
        assert m[1, 2] == 0.0
        assert m.log_scale(2) == 0.0

    def test_zero_column_stored_empty(self):
        m = ScaledMatrix(4, 2)
        m.set_column(0, 1, [0.0, 0.0])

        assert m.used_row_range(0) == (0, 0)
        assert m.log_scale(0) == 0.0

    def test_rows_out_of_range(self):
        m = ScaledMatrix(3, 2)
        with pytest.raises(IndexError):
            m.set_column(0, 2, [1.0, 1.0])
        with pytest.raises(IndexError):
            m.set_column(0, -1, [1.0])

    def test_overwrite_replaces_band(self):
        m = ScaledMatrix(6, 1)
        m.set_column(0, 0, [1.0, 1.0, 1.0])
        m.set_column(0, 4, [3.0])

        assert m.used_row_range(0) == (4, 5)
        assert m[0, 0] == 0.0
        assert m[4, 0] == 1.0

    def test_dense_views(self):
        m = ScaledMatrix(4, 2)
        m.set_column(0, 0, [2.0])
        m.set_column(1, 2, [1.0, 4.0])

        np.testing.assert_allclose(m.dense_column(1), [0.0, 0.0, 0.25, 1.0])
        dense = m.to_dense()
        assert dense.shape == (4, 2)
        np.testing.assert_allclose(dense[:, 0], [1.0, 0.0, 0.0, 0.0])

    def test_true_values_recovered_from_scales(self):
        """Stored value times the product of scales gives the unscaled value."""
        m = ScaledMatrix(3, 3)
        raw = [[1e-200, 3e-200], [5e-250], [2e-300, 1e-301]]
        m.set_column(0, 0, raw[0])
        m.set_column(1, 1, raw[1])
        m.set_column(2, 1, raw[2])

        assert m[1, 0] * math.exp(m.log_scale(0)) == pytest.approx(3e-200)
        assert math.log(m[2, 2]) + m.log_scale(2) == pytest.approx(math.log(1e-301))


class TestScaledMatrixShape:
    """Test sizing and log-scale sums."""

    def test_null(self):
        m = ScaledMatrix.null()
        assert m.shape == (0, 0)
        assert m.log_prod_scales() == 0.0

    def test_reset_clears(self):
        m = ScaledMatrix(3, 3)
        m.set_column(1, 0, [2.0])
        m.reset(5, 2)

        assert m.rows == 5
        assert m.columns == 2
        assert m[0, 1] == 0.0
        assert m.log_prod_scales() == 0.0

    def test_negative_dimensions(self):
        with pytest.raises(ValueError):
            ScaledMatrix(-1, 2)

    def test_log_prod_scales_ranges(self):
        m = ScaledMatrix(2, 4)
        for col, peak in enumerate([2.0, 3.0, 5.0, 7.0]):
            m.set_column(col, 0, [peak])

        assert m.log_prod_scales() == pytest.approx(math.log(210.0))
        assert m.log_prod_scales(1, 3) == pytest.approx(math.log(15.0))
        assert m.log_prod_scales(2) == pytest.approx(math.log(35.0))
        assert m.log_prod_scales(2, 2) == 0.0
