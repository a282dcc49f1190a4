"""Main CLI application for arrowml."""

import typer
from pathlib import Path
from typing import Optional
from enum import Enum

from arrowml.api import DEFAULT_MIN_Z_SCORE
from arrowml.core.recursor import DEFAULT_SCORE_DIFF

app = typer.Typer(
    name="arrowml",
    help="Score sequencing reads against a consensus template and rank template edits",
    no_args_is_help=True,
)


class OutputFormat(str, Enum):
    """Output format."""
    TEXT = "text"
    JSON = "json"
    TSV = "tsv"


@app.command()
def score(
    template: str = typer.Option(
        ...,
        "--template", "-t",
        help="Template FASTA file (first record) or a nucleotide string",
    ),
    reads: Path = typer.Option(
        ...,
        "--reads", "-r",
        help="Mapped reads (JSON)",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    score_diff: float = typer.Option(
        DEFAULT_SCORE_DIFF,
        "--score-diff",
        help="Band pruning threshold (log units below the column maximum)",
        min=0.1,
    ),
    min_z_score: float = typer.Option(
        DEFAULT_MIN_Z_SCORE,
        "--min-z-score",
        help="Flag reads whose z-score falls below this value",
    ),
    jobs: int = typer.Option(
        1,
        "--jobs", "-j",
        help="Worker processes (-1: one per CPU)",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output", "-o",
        help="Output file (default: stdout)",
    ),
    format: OutputFormat = typer.Option(
        OutputFormat.TEXT,
        "--format",
        help="Output format",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet", "-q",
        help="Minimal output",
    ),
):
    """
    Score each read's log-likelihood and z-score against the template.

    Example:
        arrowml score -t consensus.fasta -r reads.json
        arrowml score -t consensus.fasta -r reads.json --format tsv -o scores.tsv
    """
    from .commands.score import run_score

    run_score(
        template=template,
        reads=reads,
        score_diff=score_diff,
        min_z_score=min_z_score,
        n_jobs=jobs,
        output=output,
        format=format.value,
        quiet=quiet,
    )


@app.command()
def mutations(
    template: str = typer.Option(
        ...,
        "--template", "-t",
        help="Template FASTA file (first record) or a nucleotide string",
    ),
    reads: Path = typer.Option(
        ...,
        "--reads", "-r",
        help="Mapped reads (JSON)",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    top: int = typer.Option(
        20,
        "--top", "-n",
        help="Number of candidate edits to report",
        min=1,
    ),
    min_delta: Optional[float] = typer.Option(
        None,
        "--min-delta",
        help="Only report edits improving the log-likelihood by more than this",
    ),
    score_diff: float = typer.Option(
        DEFAULT_SCORE_DIFF,
        "--score-diff",
        help="Band pruning threshold (log units below the column maximum)",
        min=0.1,
    ),
    jobs: int = typer.Option(
        1,
        "--jobs", "-j",
        help="Worker processes (-1: one per CPU)",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output", "-o",
        help="Output file (default: stdout)",
    ),
    format: OutputFormat = typer.Option(
        OutputFormat.TEXT,
        "--format",
        help="Output format",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet", "-q",
        help="Minimal output",
    ),
):
    """
    Rank every single-base substitution, insertion and deletion of the template.

    Each edit is scored against every read covering it without recomputing
    the full alignment; the log-likelihood changes are summed over reads.

    Example:
        arrowml mutations -t consensus.fasta -r reads.json --top 10
        arrowml mutations -t consensus.fasta -r reads.json --min-delta 0 --format json
    """
    from .commands.mutations import run_mutations

    run_mutations(
        template=template,
        reads=reads,
        top=top,
        min_delta=min_delta,
        score_diff=score_diff,
        n_jobs=jobs,
        output=output,
        format=format.value,
        quiet=quiet,
    )


@app.command()
def models():
    """
    List the registered chemistry models.

    Example:
        arrowml models
    """
    from arrowml.models import available_models

    for name in available_models():
        typer.echo(name)


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
