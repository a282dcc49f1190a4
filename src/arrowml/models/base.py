"""
Base classes for chemistry models.

A model supplies, for every two-base context, the transition probabilities
of the read-generating HMM and the (counter-weighted) emission probabilities
of each move type over the discrete read alphabet.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import IntEnum
from typing import Sequence

import numpy as np


class MoveType(IntEnum):
    """HMM move types. Emission tables exist for all but DELETION."""
    MATCH = 0
    BRANCH = 1
    STICK = 2
    DELETION = 3


class MomentType(IntEnum):
    """Moment of the per-emission log-likelihood distribution."""
    FIRST = 0
    SECOND = 1


@dataclass(frozen=True)
class TemplatePosition:
    """
    One template base and the transition out of it.

    The probabilities describe the move from this position to the next one,
    in the context ``(base, next base)``; they sum to 1. The final position
    of a template is terminal: ``match=1`` and everything else 0.

    Attributes
    ----------
    base : str
        Template base at this position
    idx : int
        Two-bit code of ``base`` (A=0, C=1, G=2, T=3)
    match : float
        Probability of matching the next template base
    branch : float
        Probability of an insertion that copies the next template base
    stick : float
        Probability of an insertion of any other base
    deletion : float
        Probability of skipping the next template base
    """

    base: str
    idx: int
    match: float
    branch: float
    stick: float
    deletion: float


@dataclass(frozen=True)
class SNR:
    """Signal-to-noise ratios of the four sequencing channels."""

    A: float
    C: float
    G: float
    T: float

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "SNR":
        if len(values) != 4:
            raise ValueError(f"SNR needs 4 values (A, C, G, T), got {len(values)}")
        return cls(*(float(v) for v in values))

    def as_array(self) -> np.ndarray:
        return np.array([self.A, self.C, self.G, self.T])


class ModelConfig(ABC):
    """
    Abstract base class for chemistry models.

    Subclasses provide the model tables and register themselves under one or
    more names with :func:`arrowml.models.registry.register_model`.

    Attributes
    ----------
    counter_weight : float
        Constant multiplied into every emission probability so emissions do
        not drive the DP values towards zero faster than transitions
    n_outcomes : int
        Size of the discrete read alphabet
    """

    counter_weight: float = 1.0
    n_outcomes: int = 0

    def __init__(self, snr: SNR):
        self.snr = snr

    @classmethod
    @abstractmethod
    def names(cls) -> set[str]:
        """Names this model is registered under."""

    @abstractmethod
    def populate(self, sequence: str) -> list[TemplatePosition]:
        """
        Build template positions (with transition parameters) for a sequence.

        Parameters
        ----------
        sequence : str
            Template bases

        Returns
        -------
        list[TemplatePosition]
            One position per base; the last one is terminal
        """

    @abstractmethod
    def emission_table(self, move: MoveType, prev: int, curr: int) -> np.ndarray:
        """
        Counter-weighted emission probabilities over all outcomes.

        Parameters
        ----------
        move : MoveType
            MATCH, BRANCH or STICK
        prev, curr : int
            Two-bit codes of the context bases

        Returns
        -------
        np.ndarray, shape (n_outcomes,)
        """

    @abstractmethod
    def encode_read(self, read) -> np.ndarray:
        """Encode a mapped read into emission codes (one per base)."""

    @abstractmethod
    def expected_ll_for_emission(self, move: MoveType, prev: int, curr: int,
                                 moment: MomentType) -> float:
        """First or second moment of the emission log-likelihood in a context."""

    def emission_pr(self, move: MoveType, emission: int, prev: int, curr: int) -> float:
        """Counter-weighted probability of a single emission."""
        if move == MoveType.DELETION:
            raise ValueError("Deletions do not emit")
        return float(self.emission_table(move, prev, curr)[emission])

    def undo_counter_weights(self, n_emissions: int) -> float:
        """Log-likelihood correction cancelling the counter-weight of n emissions."""
        return -math.log(self.counter_weight) * n_emissions

    @property
    def name(self) -> str:
        return sorted(self.names())[0]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(snr={self.snr})"
