"""Command-line interface for primefold."""

from __future__ import annotations

import argparse
import signal
import sys
from pathlib import Path
from typing import Optional, Sequence

import numpy as np

from primefold.discovery.base import ALGORITHMS, SearchConfig
from primefold.discovery.candidate import Candidate, SearchMode
from primefold.discovery.context import SearchContext
from primefold.discovery.controller import ProgressReport, SearchController, SearchResult
from primefold.evaluation.config import FitnessConfig
from primefold.expression.parser import ExpressionSyntaxError, parse
from primefold.utils.log import setup_logger
from primefold.utils.run_manager import RunManager


def _format_score(score) -> str:
    return "n/a" if score is None else f"{score.total:.4f}"


def _load_fitness_config(path: Optional[str]) -> FitnessConfig:
    return FitnessConfig.from_json(path) if path else FitnessConfig()


def cmd_search(args: argparse.Namespace) -> int:
    """Run one search and print progress."""
    try:
        fitness_config = _load_fitness_config(args.fitness_config)
        config = SearchConfig(
            mode=SearchMode(args.mode),
            algorithm=args.algorithm,
            max_iterations=args.iterations,
            sample_size=args.sample_size,
            max_depth=args.max_depth,
            enforce_symmetry=args.symmetry,
            history_length=args.history_length,
            population_size=args.population_size,
            start_temperature=args.start_temp,
            cooling_rate=args.cooling_rate,
        )
    except (OSError, ValueError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    run = None
    if args.save:
        manager = RunManager(Path(args.output_dir) if args.output_dir else None)
        run = manager.create_run(
            "search",
            f"{config.algorithm}_{config.mode.value}",
            config={"search": config.to_dict(), "fitness": fitness_config.to_dict(), "seed": args.seed},
            tags=[config.algorithm, config.mode.value],
        )
    logger = setup_logger(run.log_path if run else None, verbose=args.verbose)

    context = SearchContext.create(seed=args.seed, fitness_config=fitness_config)
    controller = SearchController(context)

    def handle_signal(signum, frame):
        print("\n[SHUTDOWN] Stop requested, finishing current step...")
        controller.stop()

    print(f"Searching: algorithm={config.algorithm}, mode={config.mode.value}, "
          f"iterations={config.max_iterations}, seed={args.seed}")

    def on_progress(report: ProgressReport) -> None:
        if args.report_every and report.iteration % args.report_every == 0:
            print(f"  [{report.iteration:>6}/{report.max_iterations}] "
                  f"best={_format_score(report.best_score)}  {report.best_expr}")
        if run and args.checkpoint_interval and report.iteration % args.checkpoint_interval == 0:
            run.save_checkpoint({
                "iteration": report.iteration,
                "current": report.current_expr,
                "current_score": report.current_score.to_dict() if report.current_score else None,
                "best": report.best_expr,
                "best_score": report.best_score.to_dict() if report.best_score else None,
            }, f"iter_{report.iteration:06d}")

    previous_handlers = {
        sig: signal.signal(sig, handle_signal) for sig in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        result: SearchResult = controller.run(
            config, on_progress=on_progress, tick_interval=args.tick_interval
        )
    finally:
        for sig, handler in previous_handlers.items():
            signal.signal(sig, handler)

    print()
    print("=" * 60)
    print(f"SEARCH {result.status.value.upper()}")
    print("=" * 60)
    print(f"Iterations: {result.iterations}")
    print(f"Time: {result.elapsed:.1f}s")
    print(f"Best score: {_format_score(result.best_score)}")
    print(f"Best: {result.best_expr}")
    if result.best_score:
        for name, value in result.best_score.components.items():
            print(f"  {name}: {value:.4f}")

    cache_stats = context.oracle.stats()
    logger.debug("Prime cache: %s", cache_stats.to_dict())

    if run:
        run.save_results({**result.to_dict(), "prime_cache": cache_stats.to_dict()})
        run.complete(result.status.value, summary={
            "best_expr": result.best_expr,
            "best_score": result.best_score.total if result.best_score else None,
        })
        print(f"\nResults saved to {run.run_dir}")

    return 0


def cmd_score(args: argparse.Namespace) -> int:
    """Score a single candidate given on the command line."""
    try:
        candidate = Candidate.parse(args.candidate)
        fitness_config = _load_fitness_config(args.fitness_config)
    except ExpressionSyntaxError as e:
        print(f"Parse error: {e}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    setup_logger(verbose=args.verbose)
    context = SearchContext.create(seed=args.seed, fitness_config=fitness_config)
    evaluator = context.create_evaluator(candidate.mode, args.sample_size)
    score = evaluator.score(candidate)

    print(f"{candidate.key}")
    print(f"Mode: {candidate.mode.value}")
    print(f"Score: {score.total:.4f}{'' if score.valid else ' (insufficient data)'}")
    for name, value in score.components.items():
        print(f"  {name}: {value:.4f}")
    return 0


def cmd_parse(args: argparse.Namespace) -> int:
    """Parse an expression and show its canonical form and first values."""
    result = parse(args.expression)
    if not result.ok:
        print(f"Parse error: {result.error.message}", file=sys.stderr)
        return 1

    expr = result.expr
    print(f"Canonical: {expr.to_str()}")
    print(f"Size: {expr.size()}  Depth: {expr.depth()}")

    values = expr.evaluate(np.arange(1, args.count + 1))
    for n, value in enumerate(values, start=1):
        print(f"  f({n}) = {value:.6g}")
    return 0


def cmd_runs(args: argparse.Namespace) -> int:
    """List or clean up saved runs."""
    manager = RunManager(Path(args.output_dir) if args.output_dir else None)

    if args.cleanup:
        print(f"Cleaning up runs, keeping {args.keep} most recent...")
        deleted = manager.cleanup_old_runs(
            keep_count=args.keep, run_type=args.type, dry_run=not args.force
        )
        if not deleted:
            print("No runs to clean up")
            return 0
        action = "Deleted" if args.force else "Would delete"
        print(f"{action} {len(deleted)} runs:")
        for run_id in deleted:
            print(f"  - {run_id}")
        return 0

    runs = manager.list_runs(run_type=args.type, limit=args.limit)
    if not runs:
        print("No runs found")
        return 0

    print(f"{'Run ID':<50} {'Status':<10} {'Best':>8}  Expression")
    print("-" * 100)
    for run in runs:
        summary = run.metadata.summary or {}
        best = summary.get("best_score")
        best_text = f"{best:.4f}" if best is not None else "-"
        print(f"{run.metadata.run_id:<50} {run.metadata.status:<10} {best_text:>8}  "
              f"{summary.get('best_expr', '')}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="primefold",
        description="Search for arithmetic expressions that reveal prime structure",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    search_parser = subparsers.add_parser("search", help="Run a search")
    search_parser.add_argument("--mode", choices=[m.value for m in SearchMode],
                               default=SearchMode.PRIME_GEN.value, help="Search mode")
    search_parser.add_argument("--algorithm", "-a", choices=ALGORITHMS, default="lahc",
                               help="Search strategy")
    search_parser.add_argument("--iterations", "-n", type=int, default=1000, help="Maximum iterations")
    search_parser.add_argument("--sample-size", type=int, default=200, help="Sample size")
    search_parser.add_argument("--max-depth", type=int, default=3, help="Depth of random trees")
    search_parser.add_argument("--symmetry", action="store_true",
                               help="PrimeFold: always derive g(n) from f(n) by a symmetric transform")
    search_parser.add_argument("--history-length", type=int, default=50, help="LAHC history length")
    search_parser.add_argument("--population-size", type=int, default=10, help="GA population size")
    search_parser.add_argument("--start-temp", type=float, default=10.0, help="SA start temperature")
    search_parser.add_argument("--cooling-rate", type=float, default=0.99, help="SA cooling rate")
    search_parser.add_argument("--fitness-config", default=None, help="JSON file with fitness weights")
    search_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    search_parser.add_argument("--report-every", type=int, default=50,
                               help="Print progress every N iterations (0 = never)")
    search_parser.add_argument("--tick-interval", type=float, default=0.0,
                               help="Seconds to pause between iterations")
    search_parser.add_argument("--save", action="store_true", help="Save the run to a run directory")
    search_parser.add_argument("--output-dir", default=None, help="Base output directory")
    search_parser.add_argument("--checkpoint-interval", type=int, default=100,
                               help="Checkpoint every N iterations when saving (0 = never)")
    search_parser.add_argument("--verbose", "-v", action="store_true", help="Show debug logging")

    score_parser = subparsers.add_parser("score", help="Score one candidate")
    score_parser.add_argument("candidate", help='e.g. "n^2 + n + 41" or "f(n) = sin(n), g(n) = cos(n)"')
    score_parser.add_argument("--sample-size", type=int, default=200, help="Sample size")
    score_parser.add_argument("--fitness-config", default=None, help="JSON file with fitness weights")
    score_parser.add_argument("--seed", type=int, default=None, help="Seed for the random baseline")
    score_parser.add_argument("--verbose", "-v", action="store_true", help="Show debug logging")

    parse_parser = subparsers.add_parser("parse", help="Parse and evaluate an expression")
    parse_parser.add_argument("expression", help="Expression in n")
    parse_parser.add_argument("--count", type=int, default=10, help="Number of values to show")

    runs_parser = subparsers.add_parser("runs", help="List or clean up saved runs")
    runs_parser.add_argument("--type", default=None, help="Filter by run type")
    runs_parser.add_argument("--limit", type=int, default=20, help="Maximum runs to show")
    runs_parser.add_argument("--cleanup", action="store_true", help="Clean up old runs")
    runs_parser.add_argument("--keep", type=int, default=10, help="Runs to keep when cleaning")
    runs_parser.add_argument("--force", action="store_true", help="Actually delete (default is dry-run)")
    runs_parser.add_argument("--output-dir", default=None, help="Base output directory")

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    commands = {
        "search": cmd_search,
        "score": cmd_score,
        "parse": cmd_parse,
        "runs": cmd_runs,
    }

    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
