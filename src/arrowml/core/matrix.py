"""
Column-banded, per-column rescaled matrices for forward-backward recursions.

Each column stores only the contiguous band of rows that the recursion
actually filled; every other row reads as zero. When a column is stored it is
divided by its largest value and the log of that divisor is kept, so stored
values stay in (0, 1] no matter how long the read or template is.
"""

import math

import numpy as np


_EMPTY = np.zeros(0)


class ScaledMatrix:
    """
    Dynamic-programming matrix with per-column log-scale factors.

    Rows are indexed by read position (0..I) and columns by template position
    (0..J). For an alpha (forward) matrix the true value of a cell is
    ``stored * exp(log_prod_scales(0, col + 1))``; for a beta (backward)
    matrix it is ``stored * exp(log_prod_scales(col, columns))``.

    Parameters
    ----------
    rows : int
        Number of rows (read length + 1)
    cols : int
        Number of columns (template length + 1)

    Examples
    --------
    >>> m = ScaledMatrix(4, 3)
    >>> m.set_column(0, 1, [0.5, 2.0])
    >>> m[2, 0]
    1.0
    >>> m.log_scale(0) == math.log(2.0)
    True
    >>> m[3, 0]
    0.0
    """

    def __init__(self, rows: int, cols: int):
        self.reset(rows, cols)

    @classmethod
    def null(cls) -> "ScaledMatrix":
        """Empty 0x0 matrix, used where no seed matrix is available."""
        return cls(0, 0)

    def reset(self, rows: int, cols: int) -> None:
        """
        Resize and clear the matrix in place.

        Parameters
        ----------
        rows : int
            New number of rows
        cols : int
            New number of columns
        """
        if rows < 0 or cols < 0:
            raise ValueError(f"Matrix dimensions must be non-negative, got ({rows}, {cols})")

        self._rows = rows
        self._cols = cols
        self._values = [_EMPTY] * cols
        self._begin = [0] * cols
        self._log_scales = np.zeros(cols)

    @property
    def rows(self) -> int:
        return self._rows

    @property
    def columns(self) -> int:
        return self._cols

    @property
    def shape(self) -> tuple[int, int]:
        return self._rows, self._cols

    def set_column(self, col: int, begin: int, values) -> None:
        """
        Store one column, rescaling it by its maximum.

        Parameters
        ----------
        col : int
            Column index
        begin : int
            Row index of ``values[0]``
        values : array-like
            Unscaled, non-negative values for rows ``begin .. begin + len(values)``

        Notes
        -----
        An all-zero (or empty) column is stored as an empty band with a
        log-scale of 0.
        """
        values = np.asarray(values, dtype=np.float64)
        end = begin + len(values)
        if begin < 0 or end > self._rows:
            raise IndexError(
                f"Rows [{begin}, {end}) out of range for matrix with {self._rows} rows"
            )

        peak = float(values.max()) if len(values) else 0.0
        if not peak > 0.0:
            self._values[col] = _EMPTY
            self._begin[col] = 0
            self._log_scales[col] = 0.0
            return

        self._values[col] = values / peak
        self._begin[col] = begin
        self._log_scales[col] = math.log(peak)

    def column(self, col: int) -> tuple[int, np.ndarray]:
        """Return ``(begin, values)`` for the stored band of a column."""
        return self._begin[col], self._values[col]

    def dense_column(self, col: int) -> np.ndarray:
        """Return a full-height copy of a column, zero outside the band."""
        out = np.zeros(self._rows)
        begin, values = self.column(col)
        out[begin:begin + len(values)] = values
        return out

    def to_dense(self) -> np.ndarray:
        """Return all stored (scaled) values as a ``(rows, columns)`` array."""
        out = np.zeros((self._rows, self._cols))
        for col in range(self._cols):
            begin, values = self.column(col)
            out[begin:begin + len(values), col] = values
        return out

    def used_row_range(self, col: int) -> tuple[int, int]:
        """Half-open row interval that was filled for a column."""
        begin = self._begin[col]
        return begin, begin + len(self._values[col])

    def get(self, row: int, col: int) -> float:
        begin = self._begin[col]
        values = self._values[col]
        if begin <= row < begin + len(values):
            return float(values[row - begin])
        return 0.0

    def __getitem__(self, key) -> float:
        row, col = key
        return self.get(row, col)

    def log_scale(self, col: int) -> float:
        return float(self._log_scales[col])

    def log_prod_scales(self, start: int = 0, end: int | None = None) -> float:
        """
        Sum of log-scales over the half-open column range ``[start, end)``.

        Parameters
        ----------
        start : int, default=0
            First column
        end : int, optional
            One past the last column (default: all columns)
        """
        if end is None:
            end = self._cols
        return float(np.sum(self._log_scales[start:end]))

    def __repr__(self) -> str:
        return f"ScaledMatrix(rows={self._rows}, columns={self._cols})"
