"""Score command implementation."""

import sys
import warnings
from pathlib import Path
from typing import Optional

from arrowml.api import score_reads
from arrowml.io.reads import read_reads_json
from arrowml.io.sequences import read_template


def run_score(
    template: str,
    reads: Path,
    score_diff: float,
    min_z_score: float,
    n_jobs: int,
    output: Optional[Path],
    format: str,
    quiet: bool,
):
    """Score reads against a template."""
    # Load data
    try:
        template_seq = read_template(template)
    except (OSError, ValueError) as e:
        print(f"Error: Could not load template from {template}", file=sys.stderr)
        print(f"Details: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        read_list = read_reads_json(reads)
    except (OSError, ValueError) as e:
        print(f"Error: Could not load reads from {reads}", file=sys.stderr)
        print(f"Details: {e}", file=sys.stderr)
        sys.exit(1)

    if not quiet:
        print("Scoring Reads", file=sys.stderr)
        print("=" * 80, file=sys.stderr)
        print(f"Template: {len(template_seq)} bp", file=sys.stderr)
        print(f"Reads:    {len(read_list)} ({reads})", file=sys.stderr)
        print(file=sys.stderr)

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        result = score_reads(
            template_seq,
            read_list,
            score_diff=score_diff,
            min_z_score=min_z_score,
            n_jobs=n_jobs,
        )

    if not quiet:
        for w in caught:
            print(f"Warning: {w.message}", file=sys.stderr)

    if not result.scores:
        print("Error: No read could be scored against the template", file=sys.stderr)
        sys.exit(1)

    # Format output
    if format == "json":
        output_text = result.to_json()
    elif format == "tsv":
        output_text = result.to_tsv()
    else:  # text
        output_text = result.summary()

    # Write output
    if output:
        with open(output, 'w') as f:
            f.write(output_text)
        if not quiet:
            print(f"\nResults written to {output}", file=sys.stderr)
    else:
        print(output_text)
