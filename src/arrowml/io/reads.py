"""
Mapped sequencing reads and their JSON representation.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from .sequences import encode_bases


DEFAULT_MODEL = "S/P1-C1.2"


@dataclass(frozen=True)
class MappedRead:
    """
    A sequencing read mapped onto a window of a template.

    Attributes
    ----------
    name : str
        Read identifier
    seq : str
        Called bases (A, C, G, T)
    pulse_widths : tuple[int, ...]
        Per-base pulse widths in frames (each >= 1)
    snr : tuple[float, float, float, float]
        Signal-to-noise ratio of the A, C, G and T channels
    model : str
        Name of the chemistry model used to score the read
    strand : str
        "+" if the read follows the template, "-" if it follows its reverse complement
    template_start : int
        First template position covered by the read
    template_end : int, optional
        One past the last covered template position (None: template end)

    Examples
    --------
    >>> read = MappedRead("r1", "ACGT", (1, 1, 2, 1), (8.0, 10.0, 7.0, 9.0))
    >>> len(read)
    4
    """

    name: str
    seq: str
    pulse_widths: tuple[int, ...]
    snr: tuple[float, float, float, float]
    model: str = DEFAULT_MODEL
    strand: str = "+"
    template_start: int = 0
    template_end: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, 'seq', self.seq.upper())
        object.__setattr__(self, 'pulse_widths', tuple(int(pw) for pw in self.pulse_widths))
        object.__setattr__(self, 'snr', tuple(float(x) for x in self.snr))

        if not self.seq:
            raise ValueError(f"Read {self.name!r} is empty")
        if len(self.pulse_widths) != len(self.seq):
            raise ValueError(
                f"Read {self.name!r} has {len(self.seq)} bases but "
                f"{len(self.pulse_widths)} pulse widths"
            )
        if self.strand not in ("+", "-"):
            raise ValueError(f"Read {self.name!r}: strand must be '+' or '-', got {self.strand!r}")
        if len(self.snr) != 4:
            raise ValueError(f"Read {self.name!r}: snr must have 4 values (A, C, G, T), got {len(self.snr)}")
        if self.template_start < 0:
            raise ValueError(f"Read {self.name!r}: template_start must be >= 0")
        if self.template_end is not None and self.template_end <= self.template_start:
            raise ValueError(
                f"Read {self.name!r}: template_end ({self.template_end}) must be greater "
                f"than template_start ({self.template_start})"
            )
        encode_bases(self.seq, what="read")

    def __len__(self) -> int:
        return len(self.seq)

    def template_window(self, template_length: int) -> tuple[int, int]:
        """
        Resolve the mapped window against a template of the given length.

        Returns
        -------
        tuple[int, int]
            Half-open ``(start, end)`` window, clipped to the template
        """
        end = template_length if self.template_end is None else min(self.template_end, template_length)
        if self.template_start >= end:
            raise ValueError(
                f"Read {self.name!r} maps to [{self.template_start}, {self.template_end}) "
                f"which lies outside a template of length {template_length}"
            )
        return self.template_start, end

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MappedRead":
        """
        Build a read from a JSON-style dictionary.

        Recognised keys: ``name``, ``seq``, ``pw`` (or ``pulse_widths``),
        ``snr``, ``model``, ``strand``, ``template_start``, ``template_end``. Pulse widths
        default to 1 for every base.
        """
        try:
            seq = data['seq']
            snr = data['snr']
        except KeyError as e:
            raise ValueError(f"Read record is missing required field {e}") from None

        pulse_widths = data.get('pw', data.get('pulse_widths'))
        if pulse_widths is None:
            pulse_widths = [1] * len(seq)

        return cls(
            name=str(data.get('name', '')),
            seq=seq,
            pulse_widths=tuple(pulse_widths),
            snr=tuple(snr),
            model=data.get('model', DEFAULT_MODEL),
            strand=data.get('strand', "+"),
            template_start=int(data.get('template_start', 0)),
            template_end=data.get('template_end'),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            'name': self.name,
            'seq': self.seq,
            'pw': list(self.pulse_widths),
            'snr': list(self.snr),
            'model': self.model,
            'strand': self.strand,
            'template_start': self.template_start,
            'template_end': self.template_end,
        }


def read_reads_json(filepath: Path | str) -> list[MappedRead]:
    """
    Load mapped reads from a JSON file.

    The file holds either a list of read records or an object with a
    ``reads`` list; see :meth:`MappedRead.from_dict` for the record format.

    Examples
    --------
    >>> reads = read_reads_json("reads.json")
    >>> reads[0].name
    'read/0'
    """
    filepath = Path(filepath)

    with open(filepath, 'r') as f:
        data = json.load(f)

    if isinstance(data, dict):
        data = data.get('reads', [])
    if not isinstance(data, list):
        raise ValueError(f"{filepath}: expected a list of read records")

    reads = []
    for i, record in enumerate(data):
        if 'name' not in record:
            record = {**record, 'name': f"read/{i}"}
        reads.append(MappedRead.from_dict(record))
    return reads


def write_reads_json(reads: list[MappedRead], filepath: Path | str, indent: int = 2) -> None:
    """Write mapped reads to a JSON file readable by :func:`read_reads_json`."""
    with open(filepath, 'w') as f:
        json.dump([read.to_dict() for read in reads], f, indent=indent)
