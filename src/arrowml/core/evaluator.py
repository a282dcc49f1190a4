"""
Likelihood of one read given a template, with incremental mutation scoring.

An :class:`Evaluator` owns a template, an encoded read and the full forward
(alpha) and backward (beta) matrices. Testing a mutation recomputes only a
few columns around the edit and links them to the parts of alpha and beta
the edit leaves untouched.
"""

import math
from enum import Enum
from typing import Iterable

from ..io.reads import MappedRead
from ..models.base import ModelConfig
from ..models.registry import get_model
from .matrix import ScaledMatrix
from .mutation import Mutation
from .recursor import DEFAULT_SCORE_DIFF, Recursor, _log
from .template import Template


# Mutations closer than this to either end of the template cannot reuse
# enough of the alpha/beta matrices for windowed extension
EDGE_MARGIN = 3

# Forward columns recomputed for an interior single-base edit
EXTEND_WINDOW = 2

# Initial width of the scratch buffer used for partial recomputation
EXTEND_BUFFER_COLUMNS = 8


class AlphaBetaMismatch(RuntimeError):
    """The forward-backward matrices give no finite likelihood for the read."""

    def __init__(self, message: str = "alpha and beta could not be mated"):
        super().__init__(message)


class LinkStrategy(Enum):
    """How a mutation's likelihood is computed from the existing matrices."""
    INTERIOR = "interior"
    NEAR_END = "near_end"
    NEAR_BEGIN = "near_begin"
    FULL_REFILL = "full_refill"


class Evaluator:
    """
    Scores a read against a template and against edits of it.

    Parameters
    ----------
    template : str or Template
        Template sequence (the window the read is mapped to). A string is
        populated with the read's model.
    read : MappedRead
        Read to score
    score_diff : float, default=12.5
        Band pruning threshold in log units
    model : ModelConfig, optional
        Model to use (default: the read's model at the read's SNR). A
        Template already carries its model; passing a different one is an
        error.

    Raises
    ------
    AlphaBetaMismatch
        If the read has zero likelihood under the template
    ValueError
        If ``model`` differs from the model of a given Template

    Examples
    --------
    >>> read = MappedRead("r", "ACGTACGT", [1] * 8, [8, 10, 7, 9])
    >>> ev = Evaluator("ACGTACGT", read)
    >>> ev.log_likelihood(Mutation.substitution(4, "C")) < ev.log_likelihood()
    True
    """

    def __init__(self, template, read: MappedRead, score_diff: float = DEFAULT_SCORE_DIFF,
                 model: ModelConfig | None = None):
        if isinstance(template, Template):
            if model is not None and model is not template.model:
                raise ValueError(
                    f"Model {model!r} does not match the template's model {template.model!r}"
                )
            model = template.model
        else:
            if model is None:
                model = get_model(read.model, read.snr)
            template = Template(template, model)

        self._template = template
        self._read = read
        self.model = model
        self._recursor = Recursor(model, model.encode_read(read), score_diff)

        self._alpha = ScaledMatrix.null()
        self._beta = ScaledMatrix.null()
        self._ext = ScaledMatrix.null()
        self._refill()

        if not math.isfinite(self.log_likelihood()):
            raise AlphaBetaMismatch()

    @property
    def template(self) -> Template:
        return self._template

    @property
    def read(self) -> MappedRead:
        return self._read

    @property
    def alpha(self) -> ScaledMatrix:
        return self._alpha

    @property
    def beta(self) -> ScaledMatrix:
        return self._beta

    @property
    def score_diff(self) -> float:
        return self._recursor.score_diff

    def _refill(self) -> None:
        self._recursor.fill_alpha_beta(self._template, self._alpha, self._beta)
        self._ext.reset(self._alpha.rows, EXTEND_BUFFER_COLUMNS)

    def _scratch(self, n_cols: int) -> ScaledMatrix:
        if self._ext.columns < n_cols:
            self._ext.reset(self._alpha.rows, max(n_cols, 2 * self._ext.columns))
        return self._ext

    def strategy_for(self, mutation: Mutation) -> LinkStrategy:
        """Pick the recomputation strategy for a mutation of the current template."""
        at_begin = mutation.start < EDGE_MARGIN
        at_end = mutation.end + EDGE_MARGIN > len(self._template) + 1

        if at_begin and at_end:
            return LinkStrategy.FULL_REFILL
        if at_begin:
            return LinkStrategy.NEAR_BEGIN
        if at_end:
            return LinkStrategy.NEAR_END
        return LinkStrategy.INTERIOR

    def log_likelihood(self, mutation: Mutation | None = None) -> float:
        """
        Log-likelihood of the read given the template.

        Parameters
        ----------
        mutation : Mutation, optional
            Edit to score as if it were applied. The template and matrices
            are left untouched.

        Returns
        -------
        float
            Natural-log likelihood (``-inf`` if the read cannot be produced)
        """
        n_emissions = self._recursor.read_length
        if mutation is None:
            return (_log(self._beta[0, 0]) + self._beta.log_prod_scales()
                    + self.model.undo_counter_weights(n_emissions))

        vtpl = self._template.mutate(mutation)
        strategy = self.strategy_for(mutation)
        alpha, beta = self._alpha, self._beta
        diff = mutation.length_diff

        if strategy is LinkStrategy.INTERIOR:
            beta_link_col = 1 + mutation.end
            absolute_link_col = 1 + mutation.end + diff
            # the window starts one column early for deletions so it always spans
            # at least EXTEND_WINDOW columns
            ext_len = EXTEND_WINDOW + max(len(mutation.bases) - 1, 0)
            start_col = absolute_link_col - ext_len

            ext = self._scratch(ext_len)
            self._recursor.extend_alpha(vtpl, alpha, start_col, ext, ext_len)
            score = self._recursor.link_alpha_beta(vtpl, ext, ext_len, beta,
                                                   beta_link_col, absolute_link_col)
            score += alpha.log_prod_scales(0, start_col)

        elif strategy is LinkStrategy.NEAR_END:
            start_col = mutation.start - 1
            ext_len = len(vtpl) - start_col + 1

            ext = self._scratch(ext_len)
            self._recursor.extend_alpha(vtpl, alpha, start_col, ext, ext_len)
            score = (_log(ext[n_emissions, ext_len - 1]) + alpha.log_prod_scales(0, start_col)
                     + ext.log_prod_scales(0, ext_len))

        elif strategy is LinkStrategy.NEAR_BEGIN:
            ext_len = 1 + mutation.end + diff

            ext = self._scratch(ext_len)
            self._recursor.extend_beta(vtpl, beta, mutation.end, ext, diff)
            score = (_log(ext[0, 0]) + beta.log_prod_scales(mutation.end + 1, beta.columns)
                     + ext.log_prod_scales(0, ext_len))

        else:
            alpha_p = ScaledMatrix(n_emissions + 1, len(vtpl) + 1)
            score = self._recursor.fill_alpha(vtpl, alpha_p)

        return score + self.model.undo_counter_weights(n_emissions)

    def apply_mutation(self, mutation: Mutation) -> None:
        """Commit an edit to the template and refill alpha and beta."""
        self._template.apply_mutation(mutation)
        self._refill()

    def apply_mutations(self, mutations: Iterable[Mutation]) -> None:
        """
        Commit a batch of edits and refill alpha and beta once.

        Coordinates refer to the template before the batch.
        """
        self._template.apply_mutations(mutations)
        self._refill()

    def normal_parameters(self) -> tuple[float, float]:
        """Model-predicted mean and variance of the log-likelihood."""
        return self._template.normal_parameters()

    def z_score(self) -> float:
        """
        Standardised log-likelihood, ``(LL - mean) / sqrt(variance)``.

        Strongly negative values flag reads the template explains poorly.
        """
        mean, var = self.normal_parameters()
        return (self.log_likelihood() - mean) / math.sqrt(var)

    def __repr__(self) -> str:
        return (f"Evaluator(read={self._read.name!r}, template_length={len(self._template)}, "
                f"read_length={self._recursor.read_length})")
