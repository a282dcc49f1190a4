"""
Input/Output modules for templates and mapped reads.

This module provides:

- **Sequences**: nucleotide encoding, FASTA parsing, template loading
- **Reads**: the ``MappedRead`` record and its JSON format
"""

from arrowml.io.reads import MappedRead, read_reads_json, write_reads_json
from arrowml.io.sequences import encode_bases, read_fasta, read_template, reverse_complement

__all__ = [
    "MappedRead",
    "read_reads_json",
    "write_reads_json",
    "encode_bases",
    "read_fasta",
    "read_template",
    "reverse_complement",
]
