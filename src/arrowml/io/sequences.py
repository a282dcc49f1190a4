"""
Nucleotide encoding and template sequence parsing.
"""

import re
from pathlib import Path

import numpy as np


# Nucleotide encoding (two bits per base)
NUCLEOTIDES = 'ACGT'
NUCLEOTIDE_TO_INDEX = {'A': 0, 'C': 1, 'G': 2, 'T': 3}
INDEX_TO_NUCLEOTIDE = {0: 'A', 1: 'C', 2: 'G', 3: 'T'}

# Byte -> 2-bit code lookup; 4 marks a character outside the alphabet
INVALID_BASE = 4
TRANSLATION_TABLE = np.full(256, INVALID_BASE, dtype=np.uint8)
for _base, _idx in NUCLEOTIDE_TO_INDEX.items():
    TRANSLATION_TABLE[ord(_base)] = _idx
    TRANSLATION_TABLE[ord(_base.lower())] = _idx

DNA_PATTERN = re.compile(r'^[ACGTacgt]+$')


def encode_bases(sequence: str, what: str = "sequence") -> np.ndarray:
    """
    Encode a nucleotide string as 2-bit base codes.

    Parameters
    ----------
    sequence : str
        Nucleotide sequence (A, C, G, T; case-insensitive)
    what : str
        Label used in the error message ("template", "read", ...)

    Returns
    -------
    np.ndarray, dtype uint8
        Base codes (A=0, C=1, G=2, T=3)

    Raises
    ------
    ValueError
        If the sequence contains a character other than A, C, G or T

    Examples
    --------
    >>> encode_bases("ACGT")
    array([0, 1, 2, 3], dtype=uint8)
    """
    raw = np.frombuffer(sequence.encode('ascii', errors='replace'), dtype=np.uint8)
    codes = TRANSLATION_TABLE[raw]
    if np.any(codes == INVALID_BASE):
        bad = sorted({sequence[i] for i in np.flatnonzero(codes == INVALID_BASE)})
        raise ValueError(f"invalid character in {what}: {', '.join(map(repr, bad))}")
    return codes


_COMPLEMENT = str.maketrans("ACGTacgt", "TGCAtgca")


def reverse_complement(sequence: str) -> str:
    """
    Reverse complement of a nucleotide sequence.

    Examples
    --------
    >>> reverse_complement("AACG")
    'CGTT'
    """
    return sequence.translate(_COMPLEMENT)[::-1]


def is_dna_sequence(value: str) -> bool:
    """Check if string is a plain nucleotide sequence (not a file path)."""
    return bool(value) and bool(DNA_PATTERN.match(value))


def read_fasta(filepath: Path | str) -> list[tuple[str, str]]:
    """
    Parse a FASTA file into ``(name, sequence)`` records.

    Sequence lines are concatenated and upper-cased; the name is the first
    whitespace-delimited token of the header.
    """
    filepath = Path(filepath)

    records = []
    name = None
    chunks: list[str] = []
    with open(filepath, 'r') as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            if line.startswith('>'):
                if name is not None:
                    records.append((name, ''.join(chunks).upper()))
                header = line[1:].split()
                name = header[0] if header else ''
                chunks = []
            else:
                if name is None:
                    raise ValueError(f"{filepath}: sequence data before first FASTA header")
                chunks.append(line)

    if name is not None:
        records.append((name, ''.join(chunks).upper()))

    return records


def read_template(value: Path | str) -> str:
    """
    Load a template sequence.

    Parameters
    ----------
    value : Path or str
        Either a nucleotide string or the path to a FASTA file, in which case
        the first record is used

    Returns
    -------
    str
        Upper-case template sequence

    Examples
    --------
    >>> read_template("acgtacgt")
    'ACGTACGT'
    """
    if isinstance(value, str) and is_dna_sequence(value):
        return value.upper()

    path = Path(value)
    if not path.exists():
        raise ValueError(f"Template is neither a nucleotide sequence nor an existing file: {value}")

    records = read_fasta(path)
    if not records:
        raise ValueError(f"No sequences found in {path}")

    sequence = records[0][1]
    encode_bases(sequence, what="template")
    return sequence
