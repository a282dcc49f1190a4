"""
Banded, scaled forward-backward recursions for one read against a template.

The read-generating HMM has state ``(i, j)``: ``i`` read bases emitted and
``j`` template bases consumed. A read base is emitted either by a match
(which also consumes the next template base) or by an insertion (branch or
stick, which consumes no template base); a deletion consumes a template base
without emitting. The first read base must be matched to the first template
base and the last read base to the last template base, so insertions are only
possible in columns ``1 .. J-1`` and deletions only into columns ``2 .. J-1``.

All routines take the template explicitly, so they run unchanged against a
:class:`~arrowml.core.template.Template` or a virtually mutated view of it.
"""

import math
import warnings

import numpy as np

from ..models.base import ModelConfig, MoveType
from .matrix import ScaledMatrix


DEFAULT_SCORE_DIFF = 12.5

# Forward and backward log-likelihoods should agree to within this
LL_AGREEMENT_TOLERANCE = 1e-3

_EMPTY = np.zeros(0)


def _log(value: float) -> float:
    return math.log(value) if value > 0.0 else -math.inf


class Recursor:
    """
    Fills alpha (forward) and beta (backward) matrices for one encoded read.

    Parameters
    ----------
    model : ModelConfig
        Model supplying emission tables
    codes : array-like of int
        Encoded read (one emission code per read base)
    score_diff : float, default=12.5
        Band pruning threshold: rows whose value falls more than
        ``score_diff`` log units below the column maximum are dropped

    Notes
    -----
    Every column is stored as a band of rows. A column's candidate rows are
    the rows reachable from the previous column's band, extended through
    insertions for as long as values stay within the threshold; the band is
    then trimmed to the rows within the threshold of its maximum.
    """

    def __init__(self, model: ModelConfig, codes, score_diff: float = DEFAULT_SCORE_DIFF):
        if score_diff <= 0:
            raise ValueError(f"score_diff must be positive, got {score_diff}")

        self.model = model
        self.codes = np.asarray(codes, dtype=np.intp)
        self._codes = self.codes.tolist()
        self.score_diff = score_diff
        self._threshold = math.exp(-score_diff)

    @property
    def read_length(self) -> int:
        return len(self._codes)

    # ------------------------------------------------------------------
    # Per-column move weights
    # ------------------------------------------------------------------

    def _match_params(self, tpl, j: int) -> tuple[float, np.ndarray]:
        """Transition probability and emission table of a match into column ``j``."""
        curr = tpl[j - 1].idx
        if j == 1:
            return 1.0, self.model.emission_table(MoveType.MATCH, curr, curr)
        prev = tpl[j - 2]
        return prev.match, self.model.emission_table(MoveType.MATCH, prev.idx, curr)

    def _insertion_row(self, tpl, j: int) -> list[float]:
        """Insertion weight per emission code for column ``j`` (branch plus stick)."""
        params = tpl[j - 1]
        prev, curr = params.idx, tpl[j].idx
        table = (params.branch * self.model.emission_table(MoveType.BRANCH, prev, curr)
                 + params.stick * self.model.emission_table(MoveType.STICK, prev, curr))
        return table.tolist()

    def _trim(self, begin: int, values) -> tuple[int, np.ndarray]:
        values = np.asarray(values, dtype=np.float64)
        if not len(values):
            return 0, _EMPTY
        peak = values.max()
        if not peak > 0.0:
            return 0, _EMPTY

        keep = np.flatnonzero((values > 0.0) & (values >= peak * self._threshold))
        first, last = keep[0], keep[-1]
        return begin + int(first), values[first:last + 1]

    # ------------------------------------------------------------------
    # Single columns
    # ------------------------------------------------------------------

    def _alpha_column(self, tpl, j: int, prev: tuple[int, np.ndarray]) -> tuple[int, np.ndarray]:
        """Forward column ``j`` (``j >= 1``) from the stored band of column ``j - 1``."""
        n_rows = self.read_length
        n_cols = len(tpl)
        prev_begin, prev_values = prev
        if not len(prev_values):
            return 0, _EMPTY
        prev_end = prev_begin + len(prev_values)

        trans, emission = self._match_params(tpl, j)

        # the last template base is matched by the last read base only
        if j == n_cols:
            if not prev_begin <= n_rows - 1 < prev_end:
                return 0, _EMPTY
            value = prev_values[n_rows - 1 - prev_begin] * trans * emission[self._codes[n_rows - 1]]
            return self._trim(n_rows, [value])

        lo = prev_begin
        hi = min(prev_end + 1, n_rows + 1)
        base = np.zeros(hi - lo)

        # match from (i - 1, j - 1)
        if hi - lo > 1:
            base[1:] += prev_values[:hi - lo - 1] * trans * emission[self.codes[lo:hi - 1]]
        # deletion from (i, j - 1)
        if 2 <= j:
            base[:len(prev_values)] += prev_values * tpl[j - 2].deletion

        # insertion from (i - 1, j)
        insertion = self._insertion_row(tpl, j)
        codes = self._codes
        values = base.tolist()
        for k in range(1, len(values)):
            values[k] += values[k - 1] * insertion[codes[lo + k - 1]]

        peak = max(values)
        row = hi
        while row <= n_rows:
            value = values[-1] * insertion[codes[row - 1]]
            if value <= 0.0 or value < peak * self._threshold:
                break
            values.append(value)
            peak = max(peak, value)
            row += 1

        return self._trim(lo, values)

    def _beta_column(self, tpl, j: int, nxt: tuple[int, np.ndarray]) -> tuple[int, np.ndarray]:
        """Backward column ``j`` (``j < J``) from the stored band of column ``j + 1``."""
        n_cols = len(tpl)
        next_begin, next_values = nxt
        if not len(next_values):
            return 0, _EMPTY
        next_end = next_begin + len(next_values)

        trans, emission = self._match_params(tpl, j + 1)

        # the first read base is matched to the first template base
        if j == 0:
            if not next_begin <= 1 < next_end:
                return 0, _EMPTY
            value = next_values[1 - next_begin] * trans * emission[self._codes[0]]
            return self._trim(0, [value])

        lo = max(next_begin - 1, 0)
        hi = next_end
        base = np.zeros(hi - lo)

        # match to (i + 1, j + 1)
        count = next_end - 1 - lo
        if count > 0:
            base[:count] += (next_values[lo + 1 - next_begin:]
                             * trans * emission[self.codes[lo:next_end - 1]])
        # deletion to (i, j + 1)
        if j <= n_cols - 2:
            base[next_begin - lo:] += next_values * tpl[j - 1].deletion

        # insertion to (i + 1, j)
        insertion = self._insertion_row(tpl, j)
        codes = self._codes
        values = base.tolist()
        for k in range(len(values) - 2, -1, -1):
            values[k] += values[k + 1] * insertion[codes[lo + k]]

        peak = max(values)
        head = []
        carry = values[0]
        row = lo - 1
        while row >= 0:
            value = carry * insertion[codes[row]]
            if value <= 0.0 or value < peak * self._threshold:
                break
            head.append(value)
            peak = max(peak, value)
            carry = value
            row -= 1

        head.reverse()
        return self._trim(lo - len(head), head + values)

    # ------------------------------------------------------------------
    # Full fills
    # ------------------------------------------------------------------

    def fill_alpha(self, tpl, alpha: ScaledMatrix) -> float:
        """
        Fill the forward matrix for ``tpl``.

        ``alpha`` is reset to ``(I + 1, J + 1)``.

        Returns
        -------
        float
            Log-likelihood read off the final cell (counter-weighted)
        """
        n_rows, n_cols = self.read_length, len(tpl)
        alpha.reset(n_rows + 1, n_cols + 1)
        alpha.set_column(0, 0, [1.0])

        for j in range(1, n_cols + 1):
            begin, values = self._alpha_column(tpl, j, alpha.column(j - 1))
            alpha.set_column(j, begin, values)

        return _log(alpha[n_rows, n_cols]) + alpha.log_prod_scales()

    def fill_beta(self, tpl, beta: ScaledMatrix) -> float:
        """
        Fill the backward matrix for ``tpl``.

        Returns
        -------
        float
            Log-likelihood read off the initial cell (counter-weighted)
        """
        n_rows, n_cols = self.read_length, len(tpl)
        beta.reset(n_rows + 1, n_cols + 1)
        beta.set_column(n_cols, n_rows, [1.0])

        for j in range(n_cols - 1, -1, -1):
            begin, values = self._beta_column(tpl, j, beta.column(j + 1))
            beta.set_column(j, begin, values)

        return _log(beta[0, 0]) + beta.log_prod_scales()

    def fill_alpha_beta(self, tpl, alpha: ScaledMatrix, beta: ScaledMatrix) -> tuple[float, float]:
        """
        Fill both matrices and check that they agree.

        Returns
        -------
        tuple[float, float]
            Forward and backward log-likelihoods (counter-weighted)
        """
        ll_alpha = self.fill_alpha(tpl, alpha)
        ll_beta = self.fill_beta(tpl, beta)

        if math.isfinite(ll_alpha) and math.isfinite(ll_beta):
            if abs(ll_alpha - ll_beta) > LL_AGREEMENT_TOLERANCE:
                warnings.warn(
                    f"Forward and backward log-likelihoods disagree: "
                    f"{ll_alpha:.6f} vs {ll_beta:.6f}",
                    RuntimeWarning,
                )

        return ll_alpha, ll_beta

    # ------------------------------------------------------------------
    # Partial fills
    # ------------------------------------------------------------------

    def extend_alpha(self, tpl, alpha: ScaledMatrix, begin_col: int,
                     ext: ScaledMatrix, n_cols: int) -> None:
        """
        Recompute forward columns ``begin_col .. begin_col + n_cols - 1`` of ``tpl``.

        Column ``begin_col - 1`` of ``alpha`` seeds the recursion and must be
        valid for ``tpl``. The new columns are written to columns
        ``0 .. n_cols - 1`` of ``ext``; their true values carry the extra
        factor ``exp(alpha.log_prod_scales(0, begin_col))``.
        """
        if begin_col < 1 or begin_col + n_cols - 1 > len(tpl):
            raise ValueError(
                f"Cannot extend alpha over columns [{begin_col}, {begin_col + n_cols}) "
                f"of a template of length {len(tpl)}"
            )

        prev = alpha.column(begin_col - 1)
        for k in range(n_cols):
            begin, values = self._alpha_column(tpl, begin_col + k, prev)
            ext.set_column(k, begin, values)
            prev = ext.column(k)

    def extend_beta(self, tpl, beta: ScaledMatrix, last_col: int,
                    ext: ScaledMatrix, length_diff: int = 0) -> None:
        """
        Recompute backward columns ``last_col + length_diff`` down to 0 of ``tpl``.

        ``beta`` was filled for the template before an edit ending at
        ``last_col``; its column ``last_col + 1`` seeds the recursion. Column
        ``c`` of ``tpl`` is written to column ``c`` of ``ext``.
        """
        first_col = last_col + length_diff
        if first_col < 0 or last_col + 1 >= beta.columns:
            raise ValueError(f"Cannot extend beta from column {last_col}")

        nxt = beta.column(last_col + 1)
        for col in range(first_col, -1, -1):
            begin, values = self._beta_column(tpl, col, nxt)
            ext.set_column(col, begin, values)
            nxt = ext.column(col)

    def link_alpha_beta(self, tpl, ext: ScaledMatrix, ext_len: int, beta: ScaledMatrix,
                        beta_col: int, absolute_col: int) -> float:
        """
        Join a recomputed forward window to the unchanged backward suffix.

        Parameters
        ----------
        tpl : template
            Template the forward window was computed for
        ext : ScaledMatrix
            Forward window; its column ``ext_len - 1`` is column
            ``absolute_col - 1`` of ``tpl``
        ext_len : int
            Number of valid columns in ``ext``
        beta : ScaledMatrix
            Backward matrix; its column ``beta_col`` equals column
            ``absolute_col`` of ``tpl``
        beta_col, absolute_col : int
            Link column in ``beta`` and in ``tpl`` coordinates

        Returns
        -------
        float
            Log-likelihood, missing only the log-scales of the forward
            columns before the window
        """
        n_cols = len(tpl)
        if not 1 <= absolute_col <= n_cols:
            raise ValueError(f"Link column {absolute_col} outside template of length {n_cols}")

        alpha_begin, alpha_values = ext.column(ext_len - 1)
        if not len(alpha_values):
            return -math.inf
        rows = np.arange(alpha_begin, alpha_begin + len(alpha_values))

        trans, emission = self._match_params(tpl, absolute_col)
        beta_dense = beta.dense_column(beta_col)

        total = 0.0
        usable = rows + 1 < beta.rows
        if usable.any():
            r = rows[usable]
            total += float(np.sum(alpha_values[usable] * trans
                                  * emission[self.codes[r]] * beta_dense[r + 1]))
        if 2 <= absolute_col <= n_cols - 1:
            total += float(np.sum(alpha_values * tpl[absolute_col - 2].deletion * beta_dense[rows]))

        return (_log(total) + ext.log_prod_scales(0, ext_len)
                + beta.log_prod_scales(beta_col, beta.columns))
