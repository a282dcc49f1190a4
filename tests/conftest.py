"""
Pytest configuration and shared fixtures.
"""

import json

import pytest
from typer.testing import CliRunner

from arrowml.io.reads import MappedRead
from arrowml.io.sequences import reverse_complement
from arrowml.models import SNR, get_model


READ_SNR = (10.0, 7.0, 5.0, 11.0)

# A template with one substitution error (position 8, C -> A)
TRUE_SEQUENCE = "GATTACAGCTTGCAAGTC"
DRAFT_TEMPLATE = "GATTACAGATTGCAAGTC"


def make_read(seq, name="read", pw=3, snr=READ_SNR, **kwargs):
    """Build a mapped read with a constant or per-base pulse width."""
    pulse_widths = [pw] * len(seq) if isinstance(pw, int) else list(pw)
    return MappedRead(name, seq, pulse_widths, snr, **kwargs)


@pytest.fixture
def snr():
    """Channel SNRs shared by the test reads."""
    return SNR(*READ_SNR)


@pytest.fixture
def model(snr):
    """The S/P1-C1.2 model at the test SNR."""
    return get_model("S/P1-C1.2", snr)


@pytest.fixture
def read_factory():
    """Factory for mapped reads."""
    return make_read


@pytest.fixture
def true_sequence():
    return TRUE_SEQUENCE


@pytest.fixture
def draft_template():
    return DRAFT_TEMPLATE


@pytest.fixture
def polishing_reads():
    """Error-free reads of the true sequence, on both strands and a sub-window."""
    return [
        make_read(TRUE_SEQUENCE, name="fwd/0"),
        make_read(TRUE_SEQUENCE, name="fwd/1", pw=[1, 2, 3] * 6),
        make_read(reverse_complement(TRUE_SEQUENCE), name="rev/0", strand="-"),
        make_read(TRUE_SEQUENCE[4:14], name="window/0", template_start=4, template_end=14),
    ]


@pytest.fixture
def reads_file(tmp_path, polishing_reads):
    """JSON file holding the polishing reads."""
    path = tmp_path / "reads.json"
    path.write_text(json.dumps({"reads": [r.to_dict() for r in polishing_reads]}))
    return path


@pytest.fixture
def template_fasta(tmp_path):
    """FASTA file holding the draft template."""
    path = tmp_path / "template.fasta"
    path.write_text(f">draft some description\n{DRAFT_TEMPLATE[:10]}\n{DRAFT_TEMPLATE[10:]}\n")
    return path


@pytest.fixture
def cli_runner():
    """CLI test runner for Typer apps."""
    return CliRunner()
