"""Compare the three search strategies on the same seed.

Runs LAHC, the genetic algorithm and simulated annealing one after the
other with identical settings and a fresh context per strategy, then
prints a ranking and saves everything as one comparison run.

Output is organized in output/runs/ with timestamped directories.
"""

import argparse
from typing import Dict

from primefold.discovery import SearchConfig, SearchContext, SearchController, SearchMode
from primefold.discovery.controller import SearchResult
from primefold.utils.log import setup_logger
from primefold.utils.run_manager import RunManager


def run_comparison(
    mode: str = "primegen",
    iterations: int = 300,
    sample_size: int = 200,
    seed: int = 42,
    symmetry: bool = False,
) -> Dict[str, SearchResult]:
    """Run every strategy once and return their results by name.

    Args:
        mode: "primegen" or "primefold".
        iterations: Iterations per strategy.
        sample_size: Evaluator sample size.
        seed: Seed shared by all strategies.
        symmetry: Enforce symmetric (f, g) pairs in PrimeFold mode.

    Returns:
        Mapping from algorithm name to its SearchResult.
    """
    configs = {
        algorithm: SearchConfig(
            mode=SearchMode(mode),
            algorithm=algorithm,
            max_iterations=iterations,
            sample_size=sample_size,
            enforce_symmetry=symmetry,
        )
        for algorithm in ("lahc", "ga", "sa")
    }

    run = RunManager().create_run(
        run_type="comparison",
        description=f"{mode}_seed{seed}",
        config={"seed": seed, "strategies": {k: c.to_dict() for k, c in configs.items()}},
        tags=["comparison", mode],
    )
    setup_logger(run.log_path)

    print("=" * 70)
    print("SEARCH STRATEGY COMPARISON")
    print("=" * 70)
    print(f"Run ID: {run.metadata.run_id}")
    print(f"Mode: {mode}  Iterations: {iterations}  Seed: {seed}")
    print()

    results: Dict[str, SearchResult] = {}
    for algorithm, config in configs.items():
        print(f"Running {algorithm}...")
        controller = SearchController(SearchContext.create(seed=seed))
        result = controller.run(config)
        results[algorithm] = result
        run.save_checkpoint(result.to_dict(), algorithm)
        print(f"  best={result.best_score.total if result.best_score else float('nan'):.4f} "
              f"time={result.elapsed:.1f}s  {result.best_expr}")

    ranking = sorted(
        results.items(),
        key=lambda item: item[1].best_score.total if item[1].best_score else float("-inf"),
        reverse=True,
    )

    print()
    print("Ranking:")
    for place, (algorithm, result) in enumerate(ranking, start=1):
        total = result.best_score.total if result.best_score else float("nan")
        print(f"  {place}. {algorithm:<5} {total:.4f}")

    run.save_results({name: result.to_dict() for name, result in results.items()})
    run.complete(summary={
        "winner": ranking[0][0],
        "best_expr": ranking[0][1].best_expr,
        "best_score": ranking[0][1].best_score.total if ranking[0][1].best_score else None,
    })
    print(f"\nResults saved to {run.run_dir}")
    return results


def main():
    parser = argparse.ArgumentParser(description="Compare search strategies on one seed")
    parser.add_argument("--mode", choices=["primegen", "primefold"], default="primegen")
    parser.add_argument("--iterations", type=int, default=300)
    parser.add_argument("--sample-size", type=int, default=200)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--symmetry", action="store_true")
    args = parser.parse_args()

    run_comparison(
        mode=args.mode,
        iterations=args.iterations,
        sample_size=args.sample_size,
        seed=args.seed,
        symmetry=args.symmetry,
    )


if __name__ == "__main__":
    main()
