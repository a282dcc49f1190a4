"""
arrowml: forward-backward scoring of sequencing reads against a template.

Scores how well a candidate consensus sequence explains noisy single-molecule
reads under a pair-HMM, and evaluates hypothetical template edits
incrementally without refilling the full alignment matrices.

Quick Start
-----------
Score reads against a template:

>>> from arrowml import score_reads
>>> result = score_reads("consensus.fasta", "reads.json")
>>> print(result.summary())

Rank candidate edits:

>>> from arrowml import scan_mutations
>>> result = scan_mutations("consensus.fasta", "reads.json")
>>> print(result.summary(n=5))

Examples
--------
>>> # Test a single edit against one read
>>> from arrowml import MappedRead, Mutation, evaluate_read
>>> read = MappedRead("r1", "ACGTTGCA", [1] * 8, [8, 10, 7, 9])
>>> ev = evaluate_read("ACGTAGCA", read)
>>> ev.log_likelihood(Mutation.substitution(4, "T")) > ev.log_likelihood()
True
"""

__version__ = "0.1.0"

# High-level API (simple interface)
from .api import (
    evaluate_read,
    score_reads,
    scan_mutations,
    ReadScore,
    ScoreResult,
    MutationScore,
    MutationScanResult,
)

# Core classes (expert use)
from .core.evaluator import AlphaBetaMismatch, Evaluator
from .core.mutation import Mutation, MutationType
from .core.template import Template

# I/O
from .io.reads import MappedRead

__all__ = [
    # Simple API - Start here!
    "evaluate_read",
    "score_reads",
    "scan_mutations",

    # Result objects
    "ReadScore",
    "ScoreResult",
    "MutationScore",
    "MutationScanResult",

    # Core (expert)
    "Evaluator",
    "AlphaBetaMismatch",
    "Mutation",
    "MutationType",
    "Template",

    # I/O
    "MappedRead",

    # Version
    "__version__",
]
