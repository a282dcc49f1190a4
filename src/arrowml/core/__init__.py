"""
Core forward-backward machinery.

This module provides the low-level routines behind read scoring:

- **Matrices**: column-banded, per-column rescaled DP matrices
- **Templates**: model-populated templates and virtual mutation views
- **Recursions**: banded forward/backward fills, extension and linking
- **Evaluator**: one read against one template, with mutation testing

These are expert-level classes typically not needed by end users.
The high-level API (:mod:`arrowml.api`) provides easier access.
"""

from arrowml.core.evaluator import AlphaBetaMismatch, Evaluator, LinkStrategy
from arrowml.core.matrix import ScaledMatrix
from arrowml.core.mutation import Mutation, MutationType, enumerate_mutations
from arrowml.core.recursor import Recursor
from arrowml.core.template import MutatedTemplate, Template

__all__ = [
    "AlphaBetaMismatch",
    "Evaluator",
    "LinkStrategy",
    "ScaledMatrix",
    "Mutation",
    "MutationType",
    "enumerate_mutations",
    "Recursor",
    "MutatedTemplate",
    "Template",
]
