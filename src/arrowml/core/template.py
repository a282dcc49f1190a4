"""
Candidate consensus templates.

A template is a sequence of :class:`~arrowml.models.base.TemplatePosition`
records populated by a chemistry model. Hypothetical edits are tested through
:class:`MutatedTemplate`, a read-only view that repopulates only the few
positions whose context the edit changes and reads every other position
through from the unmodified template.
"""

import math
from typing import Iterable, Iterator, Sequence

from ..models.base import ModelConfig, MomentType, MoveType, TemplatePosition
from .mutation import Mutation


class Template:
    """
    Mutable template owned by one evaluator.

    Parameters
    ----------
    sequence : str
        Template bases (A, C, G, T)
    model : ModelConfig
        Model that supplies transition parameters per context

    Examples
    --------
    >>> from arrowml.models import get_model
    >>> tpl = Template("ACGT", get_model("S/P1-C1.2", [8, 10, 7, 9]))
    >>> len(tpl), tpl[3].match
    (4, 1.0)
    """

    def __init__(self, sequence: str, model: ModelConfig):
        if not sequence:
            raise ValueError("Template sequence is empty")

        self.model = model
        self._sequence = sequence.upper()
        self._positions: tuple[TemplatePosition, ...] = tuple(model.populate(self._sequence))

    @property
    def sequence(self) -> str:
        return self._sequence

    @property
    def positions(self) -> tuple[TemplatePosition, ...]:
        return self._positions

    def __len__(self) -> int:
        return len(self._positions)

    def __getitem__(self, k: int) -> TemplatePosition:
        return self._positions[k]

    def __iter__(self) -> Iterator[TemplatePosition]:
        return iter(self._positions)

    def check_mutation(self, mutation: Mutation) -> None:
        """
        Validate that a mutation applies to this template.

        Raises
        ------
        ValueError
            If the edit is out of range or would leave an empty template
        """
        if mutation.end > len(self):
            raise ValueError(
                f"Mutation {mutation} is out of range for a template of length {len(self)}"
            )
        if len(self) + mutation.length_diff < 1:
            raise ValueError(f"Mutation {mutation} would leave an empty template")

    def mutate(self, mutation: Mutation) -> "MutatedTemplate":
        """
        Return a virtual copy of this template with ``mutation`` applied.

        The template itself is not modified. Positions from ``start - 1``
        through the last inserted base are repopulated, since their context
        (own base or next base) may have changed.

        Parameters
        ----------
        mutation : Mutation
            Edit in this template's coordinates

        Returns
        -------
        MutatedTemplate
            Read-only view of the edited template
        """
        self.check_mutation(mutation)

        lo = max(0, mutation.start - 1)
        # one base past the edit gives the last repopulated position its context
        tail = self._sequence[mutation.end:mutation.end + 1]
        window = self.model.populate(self._sequence[lo:mutation.start] + mutation.bases + tail)
        if tail:
            window = window[:-1]

        return MutatedTemplate(self, mutation, lo, window)

    def apply_mutation(self, mutation: Mutation) -> None:
        """Permanently apply one edit and repopulate every position."""
        self.check_mutation(mutation)
        self._set_sequence(mutation.apply_to(self._sequence))

    def apply_mutations(self, mutations: Iterable[Mutation]) -> None:
        """
        Permanently apply a batch of edits.

        All coordinates refer to the template before the batch; edits are
        applied from right to left so earlier coordinates stay valid.

        Raises
        ------
        ValueError
            If two edits overlap or one is out of range
        """
        ordered = sorted(mutations, key=lambda m: (m.start, m.end), reverse=True)
        for right, left in zip(ordered, ordered[1:]):
            if left.overlaps(right):
                raise ValueError(f"Overlapping mutations {left} and {right}")

        sequence = self._sequence
        for mutation in ordered:
            self.check_mutation(mutation)
            sequence = mutation.apply_to(sequence)
        if not sequence:
            raise ValueError("Mutations would leave an empty template")

        self._set_sequence(sequence)

    def _set_sequence(self, sequence: str) -> None:
        self._sequence = sequence
        self._positions = tuple(self.model.populate(sequence))

    def normal_parameters(self, start: int = 0, end: int | None = None) -> tuple[float, float]:
        """
        Expected mean and variance of a read's log-likelihood over a window.

        Every non-final position contributes one terminal move (a match with
        its emission, or a deletion) preceded by a geometric number of
        insertions (branch or stick, each with its emission). Contributions
        are treated as independent, so means and variances add. The first
        template base adds the emission of its forced match.

        Parameters
        ----------
        start, end : int
            Half-open window of template positions (default: whole template)

        Returns
        -------
        tuple[float, float]
            (mean, variance) of the log-likelihood
        """
        return normal_parameters(self._positions, self.model, start, end)

    def __repr__(self) -> str:
        seq = self._sequence if len(self._sequence) <= 20 else self._sequence[:17] + "..."
        return f"Template('{seq}', length={len(self)})"


class MutatedTemplate(Sequence):
    """
    Read-only view of a template with one edit applied.

    Positions before ``window_start`` come from the original template,
    positions in the window were repopulated for the edit, and positions after
    it come from the original template shifted by the edit's length change.
    """

    def __init__(self, template: Template, mutation: Mutation, window_start: int,
                 window: list[TemplatePosition]):
        self.model = template.model
        self.mutation = mutation
        self._source = template
        self._original = template.positions
        self._window = window
        self._window_start = window_start
        self._window_end = window_start + len(window)
        self._shift = mutation.length_diff
        self._length = len(template) + mutation.length_diff

    @property
    def sequence(self) -> str:
        return self.mutation.apply_to(self._source.sequence)

    def __len__(self) -> int:
        return self._length

    def __getitem__(self, k):
        if isinstance(k, slice):
            return [self[i] for i in range(*k.indices(self._length))]
        if k < 0:
            k += self._length
        if not 0 <= k < self._length:
            raise IndexError(f"template position {k} out of range")

        if k < self._window_start:
            return self._original[k]
        if k < self._window_end:
            return self._window[k - self._window_start]
        return self._original[k - self._shift]

    def __repr__(self) -> str:
        return f"MutatedTemplate({self.mutation}, length={self._length})"


def normal_parameters(positions: Sequence[TemplatePosition], model: ModelConfig,
                      start: int = 0, end: int | None = None) -> tuple[float, float]:
    """Mean and variance of the log-likelihood for positions ``[start, end)``."""
    if end is None:
        end = len(positions)
    if not 0 <= start < end <= len(positions):
        raise ValueError(f"Invalid window [{start}, {end}) for a template of length {len(positions)}")

    first = positions[start]
    e_m = model.expected_ll_for_emission(MoveType.MATCH, first.idx, first.idx, MomentType.FIRST)
    e2_m = model.expected_ll_for_emission(MoveType.MATCH, first.idx, first.idx, MomentType.SECOND)
    mean = e_m
    var = e2_m - e_m * e_m

    for k in range(start, end - 1):
        params = positions[k]
        prev, curr = params.idx, positions[k + 1].idx

        def moments(move):
            return (model.expected_ll_for_emission(move, prev, curr, MomentType.FIRST),
                    model.expected_ll_for_emission(move, prev, curr, MomentType.SECOND))

        e_m, e2_m = moments(MoveType.MATCH)
        e_b, e2_b = moments(MoveType.BRANCH)
        e_s, e2_s = moments(MoveType.STICK)

        l_m, l_b, l_s, l_d = (math.log(p) for p in
                              (params.match, params.branch, params.stick, params.deletion))

        # terminal move: match (with emission) or deletion
        p_end = params.match + params.deletion
        q_m, q_d = params.match / p_end, params.deletion / p_end
        e_x = q_m * (l_m + e_m) + q_d * l_d
        e2_x = q_m * (l_m * l_m + 2 * l_m * e_m + e2_m) + q_d * l_d * l_d

        # each insertion: branch or stick (with emission)
        p_ext = params.branch + params.stick
        r_b, r_s = params.branch / p_ext, params.stick / p_ext
        e_y = r_b * (l_b + e_b) + r_s * (l_s + e_s)
        e2_y = r_b * (l_b * l_b + 2 * l_b * e_b + e2_b) + r_s * (l_s * l_s + 2 * l_s * e_s + e2_s)

        # number of insertions is geometric with continuation probability p_ext
        n_mean = p_ext / (1.0 - p_ext)
        n_var = p_ext / (1.0 - p_ext) ** 2

        mean += e_x + n_mean * e_y
        var += (e2_x - e_x * e_x) + n_mean * (e2_y - e_y * e_y) + n_var * e_y * e_y

    return mean, var
