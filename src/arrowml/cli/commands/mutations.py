"""Mutations command implementation."""

import sys
import warnings
from pathlib import Path
from typing import Optional

from arrowml.api import scan_mutations
from arrowml.io.reads import read_reads_json
from arrowml.io.sequences import read_template


def run_mutations(
    template: str,
    reads: Path,
    top: int,
    min_delta: Optional[float],
    score_diff: float,
    n_jobs: int,
    output: Optional[Path],
    format: str,
    quiet: bool,
):
    """Rank single-base template edits by summed log-likelihood change."""
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
        print("Scanning Template Mutations", file=sys.stderr)
        print("=" * 80, file=sys.stderr)
        print(f"Template: {len(template_seq)} bp", file=sys.stderr)
        print(f"Reads:    {len(read_list)} ({reads})", file=sys.stderr)
        print(file=sys.stderr)

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        result = scan_mutations(
            template_seq,
            read_list,
            score_diff=score_diff,
            n_jobs=n_jobs,
        )

    if not quiet:
        for w in caught:
            print(f"Warning: {w.message}", file=sys.stderr)

    if result.n_reads == 0:
        print("Error: No read could be scored against the template", file=sys.stderr)
        sys.exit(1)

    # Format output; only the listed candidates are limited
    if format == "json":
        output_text = result.to_json(n=top, min_delta=min_delta)
    elif format == "tsv":
        output_text = result.to_tsv(n=top, min_delta=min_delta)
    else:  # text
        output_text = result.summary(n=top, min_delta=min_delta)

    # Write output
    if output:
        with open(output, 'w') as f:
            f.write(output_text)
        if not quiet:
            print(f"\nResults written to {output}", file=sys.stderr)
    else:
        print(output_text)
