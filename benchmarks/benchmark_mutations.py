#!/usr/bin/env python3
"""
Benchmark incremental mutation scoring against full re-evaluation.

For a random template and a read simulated from it, every single-base edit
in a central window is scored twice: through the evaluator's existing
alpha/beta matrices, and by building a fresh evaluator for the edited
template.
"""

import argparse
import time

import numpy as np

from arrowml import Evaluator, MappedRead
from arrowml.core.mutation import enumerate_mutations


SNR = (10.0, 7.0, 5.0, 11.0)


def simulate_read(template: str, error_rate: float, rng: np.random.Generator) -> MappedRead:
    """Copy the template, introducing substitutions, insertions and deletions."""
    bases = []
    for base in template:
        u = rng.random()
        if u < error_rate / 3:
            continue
        if u < 2 * error_rate / 3:
            bases.append(rng.choice([b for b in "ACGT" if b != base]))
            continue
        if u < error_rate:
            bases.append(rng.choice(list("ACGT")))
        bases.append(base)
    seq = "".join(bases)
    pulse_widths = rng.integers(1, 4, size=len(seq)).tolist()
    return MappedRead("sim/0", seq, pulse_widths, SNR)


def benchmark_incremental(evaluator: Evaluator, mutations: list) -> tuple[float, np.ndarray]:
    start = time.time()
    scores = np.array([evaluator.log_likelihood(m) for m in mutations])
    return time.time() - start, scores


def benchmark_refill(template: str, read: MappedRead, mutations: list,
                     score_diff: float) -> tuple[float, np.ndarray]:
    start = time.time()
    scores = np.array([
        Evaluator(m.apply_to(template), read, score_diff=score_diff).log_likelihood()
        for m in mutations
    ])
    return time.time() - start, scores


def print_stats(label: str, elapsed: float, n: int):
    """Print benchmark statistics."""
    print(f"\n{label}:")
    print(f"  Total time:    {elapsed:.4f}s")
    print(f"  Per mutation:  {1000 * elapsed / n:.3f}ms")


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--length", type=int, default=300, help="Template length")
    parser.add_argument("--window", type=int, default=20, help="Positions to mutate")
    parser.add_argument("--error-rate", type=float, default=0.1)
    parser.add_argument("--score-diff", type=float, default=12.5)
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args()

    rng = np.random.default_rng(args.seed)
    template = "".join(rng.choice(list("ACGT"), size=args.length))
    read = simulate_read(template, args.error_rate, rng)

    mid = args.length // 2
    mutations = enumerate_mutations(template, mid - args.window // 2, mid + args.window // 2)

    print("=" * 70)
    print("Incremental vs Full Mutation Scoring")
    print("=" * 70)
    print(f"Template: {len(template)} bp, read: {len(read)} bp, mutations: {len(mutations)}")

    evaluator = Evaluator(template, read, score_diff=args.score_diff)

    print("\n[1/2] Scoring through existing alpha/beta...")
    inc_time, inc_scores = benchmark_incremental(evaluator, mutations)
    print_stats("Incremental", inc_time, len(mutations))

    print("\n[2/2] Scoring with a fresh evaluator per mutation...")
    full_time, full_scores = benchmark_refill(template, read, mutations, args.score_diff)
    print_stats("Full refill", full_time, len(mutations))

    print("\n" + "=" * 70)
    print("SUMMARY")
    print("=" * 70)
    print(f"  Speedup:             {full_time / inc_time:.1f}x")
    print(f"  Max |delta lnL|:     {np.max(np.abs(inc_scores - full_scores)):.2e}")
    print("=" * 70)


if __name__ == "__main__":
    main()
