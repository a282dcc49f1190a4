"""
Template edits.
"""

from dataclasses import dataclass, field
from enum import Enum

from ..io.sequences import NUCLEOTIDES, encode_bases


class MutationType(str, Enum):
    """Kind of template edit."""
    INSERTION = "insertion"
    DELETION = "deletion"
    SUBSTITUTION = "substitution"


@dataclass(frozen=True, order=True)
class Mutation:
    """
    An edit replacing template bases ``[start, end)`` with ``bases``.

    Coordinates refer to the template before the edit. Insertions have
    ``start == end``; deletions have empty ``bases``; substitutions replace
    as many bases as they insert.

    Attributes
    ----------
    type : MutationType
        Kind of edit
    start : int
        First affected template position
    end : int
        One past the last replaced position
    bases : str
        Replacement bases

    Examples
    --------
    >>> m = Mutation.insertion(2, "G")
    >>> m.length_diff
    1
    >>> m.apply_to("AAAA")
    'AAGAA'
    >>> Mutation.deletion(1).apply_to("ACGT")
    'AGT'
    """

    start: int
    end: int
    bases: str = ""
    type: MutationType = field(default=MutationType.SUBSTITUTION, compare=False)

    def __post_init__(self):
        object.__setattr__(self, 'bases', self.bases.upper())
        object.__setattr__(self, 'type', MutationType(self.type))

        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid mutation range [{self.start}, {self.end})")
        if self.bases:
            encode_bases(self.bases, what="mutation")

        if self.type == MutationType.INSERTION:
            if self.start != self.end or not self.bases:
                raise ValueError("An insertion needs start == end and at least one base")
        elif self.type == MutationType.DELETION:
            if self.start == self.end or self.bases:
                raise ValueError("A deletion needs a non-empty range and no bases")
        elif len(self.bases) != self.end - self.start or not self.bases:
            raise ValueError(
                f"A substitution of [{self.start}, {self.end}) needs "
                f"{self.end - self.start} bases, got {len(self.bases)}"
            )

    @classmethod
    def insertion(cls, position: int, bases: str) -> "Mutation":
        """Insert ``bases`` before template position ``position``."""
        return cls(position, position, bases, MutationType.INSERTION)

    @classmethod
    def deletion(cls, position: int, length: int = 1) -> "Mutation":
        """Delete ``length`` bases starting at ``position``."""
        return cls(position, position + length, "", MutationType.DELETION)

    @classmethod
    def substitution(cls, position: int, bases: str) -> "Mutation":
        """Replace the bases starting at ``position`` with ``bases``."""
        return cls(position, position + len(bases), bases, MutationType.SUBSTITUTION)

    @property
    def length_diff(self) -> int:
        """New template length minus old template length."""
        return len(self.bases) - (self.end - self.start)

    def apply_to(self, sequence: str) -> str:
        """Return ``sequence`` with this edit applied."""
        if self.end > len(sequence):
            raise ValueError(
                f"Mutation [{self.start}, {self.end}) is out of range for a "
                f"template of length {len(sequence)}"
            )
        return sequence[:self.start] + self.bases + sequence[self.end:]

    def shifted(self, offset: int) -> "Mutation":
        """Same edit with coordinates moved by ``offset``."""
        return Mutation(self.start + offset, self.end + offset, self.bases, self.type)

    def overlaps(self, other: "Mutation") -> bool:
        """True if the two edits touch the same template bases or insertion slot."""
        if self.start == other.start:
            return True
        return self.start < other.end and other.start < self.end

    def __str__(self) -> str:
        if self.type == MutationType.INSERTION:
            return f"ins({self.start}, {self.bases})"
        if self.type == MutationType.DELETION:
            return f"del({self.start}, {self.end})"
        return f"sub({self.start}, {self.bases})"


def enumerate_mutations(sequence: str, start: int = 0, end: int | None = None) -> list[Mutation]:
    """
    All single-base edits of a template window.

    Generates, for every position in ``[start, end)``, the three substitutions
    to a different base and the deletion, and for every insertion slot in
    ``[start, end]`` the four insertions, skipping insertions that would
    duplicate the base before the slot (they give the same template as
    inserting before that base).

    Parameters
    ----------
    sequence : str
        Template sequence
    start, end : int
        Window of positions to mutate (default: whole template)

    Returns
    -------
    list[Mutation]
        Edits in position order

    Examples
    --------
    >>> len(enumerate_mutations("AC"))
    18
    """
    sequence = sequence.upper()
    if end is None:
        end = len(sequence)

    mutations = []
    for pos in range(start, end + 1):
        for base in NUCLEOTIDES:
            if pos > 0 and sequence[pos - 1] == base:
                continue
            mutations.append(Mutation.insertion(pos, base))
        if pos == end:
            break
        for base in NUCLEOTIDES:
            if base != sequence[pos]:
                mutations.append(Mutation.substitution(pos, base))
        mutations.append(Mutation.deletion(pos))

    return mutations
