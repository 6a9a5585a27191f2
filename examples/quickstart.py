"""Quick start example for primefold.

Run this script to parse and score a few known expressions and to run a
short search in each mode.
"""


def main():
    print("primefold - Quick Start Demo")
    print("=" * 50)

    print("\n1. Parsing expressions...")
    from primefold.expression import parse

    for text in ["n^2 + n + 41", "sin(n) * n", "2 ^ 3 ^ 2", "n +* 3", "foo(n)"]:
        result = parse(text)
        if result.ok:
            print(f"   {text!r:<18} -> {result.expr.to_str()}  (f(5) = {result.expr.evaluate(5):g})")
        else:
            print(f"   {text!r:<18} -> error: {result.error.message}")

    print("\n2. Scoring PrimeGen candidates (sample 200)...")
    from primefold.core.sieve import PrimeCache
    from primefold.evaluation import PrimeGenEvaluator
    from primefold.expression import parse_expression

    cache = PrimeCache()
    cache.pre_cache(10_000)
    evaluator = PrimeGenEvaluator(cache, sample_size=200)
    for text in ["n", "n^2 + n + 41", "2 * n + 1", "n^2 - 79 * n + 1601"]:
        score = evaluator.score(parse_expression(text))
        print(f"   {text:<22} hit_ratio={score.total:.3f}  "
              f"unique_primes={score.components['unique_primes']:.0f}")

    print("\n3. Scoring a PrimeFold candidate...")
    from primefold.discovery import Candidate, SearchContext

    context = SearchContext.create(seed=0)
    candidate = Candidate.parse("f(n) = sqrt(n) * cos(n), g(n) = sqrt(n) * sin(n)")
    score = context.create_evaluator(candidate.mode, 200).score(candidate)
    print(f"   {candidate.key}")
    for name, value in score.components.items():
        print(f"     {name}: {value:.4f}")
    print(f"   total: {score.total:.4f}")

    print("\n4. Short searches (100 iterations, seed 1)...")
    from primefold.discovery import SearchConfig, SearchController, SearchMode

    for mode in SearchMode:
        for algorithm in ("lahc", "ga", "sa"):
            controller = SearchController(SearchContext.create(seed=1))
            result = controller.run(SearchConfig(mode=mode, algorithm=algorithm, max_iterations=100))
            total = result.best_score.total if result.best_score else float("nan")
            print(f"   {mode.value:<9} {algorithm:<4} best={total:.4f}  {result.best_expr}")

    print("\n" + "=" * 50)
    print("Quick start complete!")


if __name__ == "__main__":
    main()
