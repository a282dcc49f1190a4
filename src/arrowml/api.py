"""
High-level API for arrowml read scoring.

This module provides a simplified interface for scoring mapped reads against a
template and for ranking candidate template edits, with unified result
objects and automatic template loading.
"""

from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List, Union, Sequence
from pathlib import Path
import json
import math
import warnings

import numpy as np
from scipy.stats import norm

from .core.evaluator import AlphaBetaMismatch, Evaluator
from .core.mutation import Mutation, enumerate_mutations
from .core.recursor import DEFAULT_SCORE_DIFF
from .io.reads import MappedRead, read_reads_json
from .io.sequences import read_template, reverse_complement

try:
    import pandas as pd
    PANDAS_AVAILABLE = True
except ImportError:
    PANDAS_AVAILABLE = False


# Reads whose z-score falls below this are flagged as poorly fitting
DEFAULT_MIN_Z_SCORE = -3.4


def _require_pandas(method: str) -> None:
    if not PANDAS_AVAILABLE:
        raise ImportError(
            f"pandas is required for {method}(). "
            "Install with: pip install pandas"
        )


# =============================================================================
# Result objects
# =============================================================================

@dataclass
class ReadScore:
    """
    Likelihood of one read given the template.

    Attributes
    ----------
    name : str
        Read identifier
    log_likelihood : float
        Log-likelihood of the read under the model
    z_score : float
        Log-likelihood standardised by the model-predicted mean and variance
    mean, variance : float
        Model-predicted log-likelihood moments for the mapped window
    template_start, template_end : int
        Mapped template window
    strand : str
        Strand of the read

    Examples
    --------
    >>> score = ReadScore("r1", -12.0, 0.3, -12.5, 2.8, 0, 20, "+")
    >>> score.passes(-3.4)
    True
    """

    name: str
    log_likelihood: float
    z_score: float
    mean: float
    variance: float
    template_start: int
    template_end: int
    strand: str = "+"

    @property
    def p_value(self) -> float:
        """Lower-tail normal probability of the z-score."""
        return float(norm.cdf(self.z_score))

    def passes(self, min_z_score: float = DEFAULT_MIN_Z_SCORE) -> bool:
        """True if the read fits the template at least as well as ``min_z_score``."""
        return math.isfinite(self.z_score) and self.z_score >= min_z_score

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'log_likelihood': float(self.log_likelihood),
            'z_score': float(self.z_score),
            'p_value': self.p_value,
            'mean': float(self.mean),
            'variance': float(self.variance),
            'template_start': int(self.template_start),
            'template_end': int(self.template_end),
            'strand': self.strand,
        }


@dataclass
class ScoreResult:
    """
    Scores of a set of reads against one template.

    Attributes
    ----------
    template_length : int
        Length of the template the reads were scored against
    scores : list of ReadScore
        One entry per successfully scored read, in input order
    skipped : list of str
        Names of reads that could not be scored
    min_z_score : float
        Threshold below which reads are reported as poorly fitting
    score_diff : float
        Band pruning threshold used for every read

    Examples
    --------
    >>> from arrowml import score_reads
    >>> result = score_reads("template.fasta", "reads.json")
    >>> print(result.summary())
    >>> result.to_json("scores.json")
    """

    template_length: int
    scores: List[ReadScore]
    skipped: List[str] = field(default_factory=list)
    min_z_score: float = DEFAULT_MIN_Z_SCORE
    score_diff: float = DEFAULT_SCORE_DIFF

    @property
    def total_log_likelihood(self) -> float:
        """Sum of log-likelihoods over scored reads."""
        return float(sum(s.log_likelihood for s in self.scores))

    @property
    def poor_fits(self) -> List[ReadScore]:
        """Reads whose z-score falls below ``min_z_score``."""
        return [s for s in self.scores if not s.passes(self.min_z_score)]

    def summary(self) -> str:
        """
        Generate human-readable summary of the read scores.

        Returns
        -------
        str
            Formatted multi-line summary
        """
        lines = []
        lines.append("=" * 70)
        lines.append("READ SCORES")
        lines.append("=" * 70)
        lines.append("")
        lines.append(f"Template length:        {self.template_length}")
        lines.append(f"Reads scored:           {len(self.scores)}")
        lines.append(f"Reads skipped:          {len(self.skipped)}")
        lines.append(f"Total log-likelihood:   {self.total_log_likelihood:.6f}")
        lines.append(f"Poor fits (z < {self.min_z_score:g}): {len(self.poor_fits)}")
        lines.append("")

        if self.scores:
            lines.append(f"  {'read':<24} {'window':>14} {'strand':>6} {'lnL':>14} {'z':>9}")
            for s in self.scores:
                window = f"{s.template_start}-{s.template_end}"
                flag = "" if s.passes(self.min_z_score) else "  *"
                lines.append(
                    f"  {s.name:<24} {window:>14} {s.strand:>6} "
                    f"{s.log_likelihood:>14.4f} {s.z_score:>9.3f}{flag}"
                )

        if self.skipped:
            lines.append("")
            lines.append("SKIPPED:")
            for name in self.skipped:
                lines.append(f"  {name}")

        lines.append("")
        lines.append("=" * 70)

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Export results as a JSON-serializable dictionary."""
        return {
            'template_length': int(self.template_length),
            'total_log_likelihood': self.total_log_likelihood,
            'min_z_score': float(self.min_z_score),
            'score_diff': float(self.score_diff),
            'reads': [s.to_dict() for s in self.scores],
            'skipped': list(self.skipped),
        }

    def to_json(self, filepath: Optional[str] = None, indent: int = 2) -> str:
        """
        Export results as JSON.

        Parameters
        ----------
        filepath : str, optional
            If provided, write JSON to this file
        indent : int, default=2
            Indentation level for pretty printing

        Returns
        -------
        str
            JSON string representation
        """
        json_str = json.dumps(self.to_dict(), indent=indent)

        if filepath:
            with open(filepath, 'w') as f:
                f.write(json_str)

        return json_str

    def to_tsv(self) -> str:
        """Export per-read scores as tab-separated text with a header line."""
        fields = ['name', 'template_start', 'template_end', 'strand',
                  'log_likelihood', 'z_score', 'p_value']
        lines = ['\t'.join(fields)]
        for s in self.scores:
            row = s.to_dict()
            lines.append('\t'.join(str(row[f]) for f in fields))
        return '\n'.join(lines)

    def to_dataframe(self) -> 'pd.DataFrame':
        """
        Export per-read scores as a pandas DataFrame (one row per read).

        Raises
        ------
        ImportError
            If pandas is not installed
        """
        _require_pandas("to_dataframe")
        return pd.DataFrame([s.to_dict() for s in self.scores])

    def __str__(self) -> str:
        return self.summary()

    def __repr__(self) -> str:
        return (f"ScoreResult(reads={len(self.scores)}, skipped={len(self.skipped)}, "
                f"lnL={self.total_log_likelihood:.2f})")


@dataclass
class MutationScore:
    """
    Change in total log-likelihood for one candidate edit.

    Attributes
    ----------
    mutation : Mutation
        Edit in template coordinates
    delta : float
        Summed log-likelihood change over the reads covering the edit
    n_reads : int
        Number of reads covering the edit
    """

    mutation: Mutation
    delta: float
    n_reads: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.mutation.type.value,
            'start': int(self.mutation.start),
            'end': int(self.mutation.end),
            'bases': self.mutation.bases,
            'delta': float(self.delta),
            'n_reads': int(self.n_reads),
        }


@dataclass
class MutationScanResult:
    """
    Candidate edits of a template ranked by log-likelihood improvement.

    Attributes
    ----------
    template : str
        Template sequence the edits refer to
    scores : list of MutationScore
        Every scanned edit, best first
    n_reads : int
        Number of reads that contributed
    skipped : list of str
        Names of reads that could not be scored

    Examples
    --------
    >>> from arrowml import scan_mutations
    >>> result = scan_mutations("template.fasta", "reads.json")
    >>> for score in result.improving():
    ...     print(score.mutation, score.delta)
    """

    template: str
    scores: List[MutationScore]
    n_reads: int
    skipped: List[str] = field(default_factory=list)

    def improving(self, min_delta: float = 0.0) -> List[MutationScore]:
        """Edits that raise the total log-likelihood by more than ``min_delta``."""
        return [s for s in self.scores if s.delta > min_delta]

    def top(self, n: Optional[int] = 10, min_delta: Optional[float] = None) -> List[MutationScore]:
        """Best ``n`` edits (all if None), optionally only those improving by more than ``min_delta``."""
        scores = self.scores if min_delta is None else self.improving(min_delta)
        return scores[:n]

    def summary(self, n: int = 10, min_delta: Optional[float] = None) -> str:
        """
        Generate human-readable summary of the best candidate edits.

        The header counts always describe the whole scan.

        Parameters
        ----------
        n : int, default=10
            Number of edits to list
        min_delta : float, optional
            Only list edits improving the log-likelihood by more than this
        """
        lines = []
        lines.append("=" * 70)
        lines.append("MUTATION SCAN")
        lines.append("=" * 70)
        lines.append("")
        lines.append(f"Template length:     {len(self.template)}")
        lines.append(f"Reads:               {self.n_reads}")
        lines.append(f"Mutations scanned:   {len(self.scores)}")
        lines.append(f"Improving mutations: {len(self.improving())}")
        lines.append("")

        listed = self.top(n, min_delta)
        if listed:
            lines.append(f"  {'mutation':<20} {'delta lnL':>14} {'reads':>7}")
            for s in listed:
                lines.append(f"  {str(s.mutation):<20} {s.delta:>14.4f} {s.n_reads:>7}")

        lines.append("")
        lines.append("=" * 70)

        return "\n".join(lines)

    def to_dict(self, n: Optional[int] = None, min_delta: Optional[float] = None) -> Dict[str, Any]:
        """
        Convert to a dictionary.

        ``n`` and ``min_delta`` restrict the listed edits as in :meth:`top`;
        ``n_scanned`` and ``n_improving`` count the whole scan.
        """
        return {
            'template_length': len(self.template),
            'n_reads': int(self.n_reads),
            'n_scanned': len(self.scores),
            'n_improving': len(self.improving()),
            'skipped': list(self.skipped),
            'mutations': [s.to_dict() for s in self.top(n, min_delta)],
        }

    def to_json(self, filepath: Optional[str] = None, indent: int = 2,
                n: Optional[int] = None, min_delta: Optional[float] = None) -> str:
        """Export results as JSON, optionally writing them to ``filepath``."""
        json_str = json.dumps(self.to_dict(n, min_delta), indent=indent)

        if filepath:
            with open(filepath, 'w') as f:
                f.write(json_str)

        return json_str

    def to_tsv(self, n: Optional[int] = None, min_delta: Optional[float] = None) -> str:
        """Export scanned edits as tab-separated text with a header line."""
        fields = ['type', 'start', 'end', 'bases', 'delta', 'n_reads']
        lines = ['\t'.join(fields)]
        for s in self.top(n, min_delta):
            row = s.to_dict()
            lines.append('\t'.join(str(row[f]) for f in fields))
        return '\n'.join(lines)

    def to_dataframe(self) -> 'pd.DataFrame':
        """
        Export scanned edits as a pandas DataFrame.

        Raises
        ------
        ImportError
            If pandas is not installed
        """
        _require_pandas("to_dataframe")
        return pd.DataFrame([s.to_dict() for s in self.scores])

    def __str__(self) -> str:
        return self.summary()

    def __repr__(self) -> str:
        best = f", best={self.scores[0].mutation}" if self.scores else ""
        return f"MutationScanResult(mutations={len(self.scores)}{best})"


# =============================================================================
# Loading helpers
# =============================================================================

def _load_template(template: Union[str, Path]) -> str:
    return read_template(template)


def _load_reads(reads: Union[str, Path, MappedRead, Sequence[MappedRead]]) -> List[MappedRead]:
    if isinstance(reads, MappedRead):
        return [reads]
    if isinstance(reads, (str, Path)):
        path = Path(reads)
        if not path.exists():
            raise FileNotFoundError(f"Reads file not found: {path}")
        return read_reads_json(path)
    return list(reads)


def _read_window(template: str, read: MappedRead) -> tuple[int, int, str]:
    """Mapped window of ``template`` in the read's orientation."""
    start, end = read.template_window(len(template))
    window = template[start:end]
    if read.strand == "-":
        window = reverse_complement(window)
    return start, end, window


def _localize(mutation: Mutation, start: int, end: int, strand: str) -> Optional[Mutation]:
    """
    Express a template edit in the coordinates of a read's window.

    Returns None when the edit falls outside the window.
    """
    if mutation.start < start or mutation.end > end:
        return None
    if strand == "+":
        return mutation.shifted(-start)
    return Mutation(end - mutation.end, end - mutation.start,
                    reverse_complement(mutation.bases), mutation.type)


# =============================================================================
# Per-read workers (module level so they can run in worker processes)
# =============================================================================

def _score_one(task):
    template, read, score_diff = task
    try:
        evaluator = evaluate_read(template, read, score_diff=score_diff)
        mean, var = evaluator.normal_parameters()
        start, end = read.template_window(len(template))
        return ReadScore(
            name=read.name,
            log_likelihood=evaluator.log_likelihood(),
            z_score=evaluator.z_score(),
            mean=mean,
            variance=var,
            template_start=start,
            template_end=end,
            strand=read.strand,
        ), None
    except (AlphaBetaMismatch, ValueError) as e:
        return read.name, str(e)


def _scan_one(task):
    template, read, mutations, score_diff = task
    try:
        evaluator = evaluate_read(template, read, score_diff=score_diff)
    except (AlphaBetaMismatch, ValueError) as e:
        return read.name, None, str(e)

    start, end = read.template_window(len(template))
    baseline = evaluator.log_likelihood()
    deltas = np.full(len(mutations), np.nan)
    for k, mutation in enumerate(mutations):
        local = _localize(mutation, start, end, read.strand)
        if local is None or len(evaluator.template) + local.length_diff < 1:
            continue
        deltas[k] = evaluator.log_likelihood(local) - baseline
    return read.name, deltas, None


def _run(worker, tasks: list, n_jobs: int) -> list:
    if n_jobs == 1 or len(tasks) < 2:
        return [worker(task) for task in tasks]
    with ProcessPoolExecutor(max_workers=n_jobs if n_jobs > 0 else None) as executor:
        return list(executor.map(worker, tasks))


# =============================================================================
# Public API
# =============================================================================

def evaluate_read(
    template: Union[str, Path],
    read: MappedRead,
    score_diff: float = DEFAULT_SCORE_DIFF,
) -> Evaluator:
    """
    Build an evaluator for one read against its mapped window of a template.

    Parameters
    ----------
    template : str or Path
        Template sequence or FASTA file (first record is used)
    read : MappedRead
        Read to score. Its ``template_start``/``template_end`` select the
        window and ``strand == "-"`` scores it against the reverse complement.
    score_diff : float, default=12.5
        Band pruning threshold in log units

    Returns
    -------
    Evaluator
        Evaluator over the read's window, ready for mutation testing

    Raises
    ------
    AlphaBetaMismatch
        If the read has zero likelihood given the window
    ValueError
        If the read's model is unknown or its window lies off the template

    Examples
    --------
    >>> from arrowml import evaluate_read, MappedRead
    >>> read = MappedRead("r1", "ACGTTGCA", [1] * 8, [8, 10, 7, 9])
    >>> ev = evaluate_read("ACGTTGCA", read)
    >>> print(f"lnL = {ev.log_likelihood():.3f}, z = {ev.z_score():.2f}")
    """
    template_seq = _load_template(template)
    _, _, window = _read_window(template_seq, read)
    return Evaluator(window, read, score_diff=score_diff)


def score_reads(
    template: Union[str, Path],
    reads: Union[str, Path, MappedRead, Sequence[MappedRead]],
    score_diff: float = DEFAULT_SCORE_DIFF,
    min_z_score: float = DEFAULT_MIN_Z_SCORE,
    n_jobs: int = 1,
) -> ScoreResult:
    """
    Score reads against a template.

    Each read gets its own evaluator, so reads are independent and can be
    scored in parallel worker processes.

    Parameters
    ----------
    template : str or Path
        Template sequence or FASTA file
    reads : str, Path, MappedRead or list of MappedRead
        Reads, or a JSON file of reads
    score_diff : float, default=12.5
        Band pruning threshold in log units
    min_z_score : float, default=-3.4
        Reads below this z-score are reported as poor fits
    n_jobs : int, default=1
        Number of worker processes (``-1``: one per CPU)

    Returns
    -------
    ScoreResult
        Per-read scores and the names of skipped reads

    Notes
    -----
    Reads that cannot be scored (zero likelihood, window off the template,
    unknown model) are skipped with a ``UserWarning``.

    Examples
    --------
    >>> result = score_reads("template.fasta", "reads.json", n_jobs=4)
    >>> print(result.summary())
    >>> df = result.to_dataframe()
    """
    template_seq = _load_template(template)
    read_list = _load_reads(reads)

    tasks = [(template_seq, read, score_diff) for read in read_list]
    scores, skipped = [], []
    for outcome, error in _run(_score_one, tasks, n_jobs):
        if error is None:
            scores.append(outcome)
        else:
            warnings.warn(f"Skipping read {outcome!r}: {error}", UserWarning)
            skipped.append(outcome)

    return ScoreResult(
        template_length=len(template_seq),
        scores=scores,
        skipped=skipped,
        min_z_score=min_z_score,
        score_diff=score_diff,
    )


def scan_mutations(
    template: Union[str, Path],
    reads: Union[str, Path, MappedRead, Sequence[MappedRead]],
    mutations: Optional[Sequence[Mutation]] = None,
    score_diff: float = DEFAULT_SCORE_DIFF,
    n_jobs: int = 1,
) -> MutationScanResult:
    """
    Rank candidate template edits by their summed log-likelihood change.

    For every read, each edit inside the read's mapped window is scored
    against the read's evaluator without changing it; the changes are summed
    over the reads covering the edit.

    Parameters
    ----------
    template : str or Path
        Template sequence or FASTA file
    reads : str, Path, MappedRead or list of MappedRead
        Reads, or a JSON file of reads
    mutations : list of Mutation, optional
        Edits in template coordinates (default: every single-base
        substitution, insertion and deletion)
    score_diff : float, default=12.5
        Band pruning threshold in log units
    n_jobs : int, default=1
        Number of worker processes (``-1``: one per CPU)

    Returns
    -------
    MutationScanResult
        Edits sorted by decreasing ``delta``

    Examples
    --------
    >>> result = scan_mutations("ACGTTGCAAC", "reads.json")
    >>> best = result.scores[0]
    >>> print(best.mutation, best.delta)
    """
    template_seq = _load_template(template)
    read_list = _load_reads(reads)
    if mutations is None:
        mutations = enumerate_mutations(template_seq)
    mutations = list(mutations)

    tasks = [(template_seq, read, mutations, score_diff) for read in read_list]
    totals = np.zeros(len(mutations))
    coverage = np.zeros(len(mutations), dtype=int)
    skipped = []
    n_reads = 0
    for name, deltas, error in _run(_scan_one, tasks, n_jobs):
        if error is not None:
            warnings.warn(f"Skipping read {name!r}: {error}", UserWarning)
            skipped.append(name)
            continue
        n_reads += 1
        covered = ~np.isnan(deltas)
        totals[covered] += deltas[covered]
        coverage += covered

    scores = [
        MutationScore(mutation, float(totals[k]), int(coverage[k]))
        for k, mutation in enumerate(mutations)
        if coverage[k] > 0
    ]
    scores.sort(key=lambda s: s.delta, reverse=True)

    return MutationScanResult(
        template=template_seq,
        scores=scores,
        n_reads=n_reads,
        skipped=skipped,
    )
