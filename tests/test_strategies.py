"""Tests for the LAHC, genetic and annealing strategies."""

import math
from collections import deque

import pytest

from primefold.discovery.annealing import AnnealingStrategy, acceptance_probability
from primefold.discovery.base import SearchConfig, effective
from primefold.discovery.candidate import SearchMode
from primefold.discovery.context import SearchContext
from primefold.discovery.genetic import GeneticStrategy
from primefold.discovery.lahc import LAHCStrategy, late_acceptance
from primefold.evaluation.fitness import Score

STRATEGY_CLASSES = {"lahc": LAHCStrategy, "ga": GeneticStrategy, "sa": AnnealingStrategy}


def make_strategy(algorithm, mode=SearchMode.PRIME_GEN, seed=0, **overrides):
    settings = dict(mode=mode, algorithm=algorithm, max_iterations=20, sample_size=50)
    settings.update(overrides)
    config = SearchConfig(**settings)
    context = SearchContext.create(seed=seed, pre_cache=2000)
    return STRATEGY_CLASSES[algorithm](config, context)


def track_evaluations(strategy):
    """Wrap the evaluator so every scored key is recorded."""
    scored = list(strategy.seen)
    score = strategy.evaluator.score

    def recording(candidate):
        scored.append(candidate.key)
        return score(candidate)

    strategy.evaluator.score = recording
    return scored


class TestSearchConfig:
    """Tests for SearchConfig validation."""

    def test_defaults(self):
        config = SearchConfig()
        assert config.mode is SearchMode.PRIME_GEN
        assert config.algorithm == "lahc"
        assert config.history_length == 50
        assert config.population_size == 10

    def test_mode_from_string(self):
        assert SearchConfig(mode="primefold").mode is SearchMode.PRIME_FOLD

    @pytest.mark.parametrize("overrides", [
        {"algorithm": "tabu"},
        {"max_iterations": -1},
        {"sample_size": 0},
        {"population_size": 1},
        {"history_length": 0},
        {"cooling_rate": 0},
        {"cooling_rate": 1.5},
        {"start_temperature": 0},
        {"random_rate": 2},
        {"symmetric_rate": -0.1},
    ])
    def test_invalid(self, overrides):
        with pytest.raises(ValueError):
            SearchConfig(**overrides)

    def test_dict_round_trip(self):
        config = SearchConfig(mode="primefold", algorithm="ga", population_size=6)
        data = config.to_dict()
        assert data["mode"] == "primefold"
        assert SearchConfig.from_dict(data) == config


class TestEffective:
    def test_ordering(self):
        assert effective(None) == -math.inf
        assert effective(Score(0.0, valid=False)) == -math.inf
        assert effective(Score(0.3)) == 0.3


class TestLateAcceptance:
    """Tests for the LAHC acceptance rule."""

    def test_improvement_always_accepted(self):
        assert late_acceptance(0.5, 0.4, [0.9])

    def test_accepts_beating_history(self):
        assert late_acceptance(0.28, 0.25, [0.2, 0.3])

    def test_rejects_worse_than_both(self):
        assert not late_acceptance(0.1, 0.25, [0.2, 0.3])

    def test_empty_history(self):
        assert not late_acceptance(0.2, 0.25, [])

    def test_uses_latest_entry(self):
        assert not late_acceptance(0.22, 0.25, [0.2, 0.3])
        assert late_acceptance(0.22, 0.25, [0.3, 0.2])

    def test_accepts_deque_window(self):
        assert late_acceptance(0.22, 0.25, deque([0.9, 0.5, 0.2], maxlen=3))


class TestAcceptanceProbability:
    """Tests for the Metropolis criterion."""

    def test_improvement(self):
        assert acceptance_probability(0.1, 1.0) == 1.0

    def test_worse_move(self):
        assert acceptance_probability(-1.0, 2.0) == pytest.approx(math.exp(-0.5))

    def test_zero_temperature(self):
        assert acceptance_probability(-0.1, 0.0) == 0.0

    def test_equal_move(self):
        assert acceptance_probability(0.0, 1.0) == 1.0


class TestCommonBehaviour:
    """Properties shared by every strategy."""

    @pytest.mark.parametrize("algorithm", ["lahc", "ga", "sa"])
    @pytest.mark.parametrize("mode", list(SearchMode))
    def test_best_never_decreases(self, algorithm, mode):
        strategy = make_strategy(algorithm, mode, max_iterations=10, population_size=4)
        previous = effective(strategy.best_score)
        while not strategy.finished:
            step = strategy.step()
            assert effective(step.best_score) >= previous
            previous = effective(step.best_score)
        assert strategy.iteration == 10

    @pytest.mark.parametrize("algorithm", ["lahc", "ga", "sa"])
    def test_no_candidate_scored_twice(self, algorithm):
        strategy = make_strategy(algorithm, population_size=4)
        scored = track_evaluations(strategy)
        for _ in range(20):
            strategy.step()
        assert len(scored) == len(set(scored))

    @pytest.mark.parametrize("algorithm", ["lahc", "ga", "sa"])
    def test_reproducible(self, algorithm):
        first = make_strategy(algorithm, seed=11, population_size=4)
        second = make_strategy(algorithm, seed=11, population_size=4)
        for _ in range(10):
            a, b = first.step(), second.step()
            assert a.best.key == b.best.key

    @pytest.mark.parametrize("algorithm", ["lahc", "ga", "sa"])
    def test_symmetric_fold_search(self, algorithm):
        strategy = make_strategy(
            algorithm, SearchMode.PRIME_FOLD, max_iterations=5,
            population_size=4, enforce_symmetry=True,
        )
        while not strategy.finished:
            step = strategy.step()
            assert step.best.mode is SearchMode.PRIME_FOLD


class TestLAHCStrategy:
    def test_history_bounded(self):
        strategy = make_strategy("lahc", history_length=5)
        for _ in range(12):
            strategy.step()
        assert len(strategy.history) == 5

    def test_default_symmetric_rate(self):
        assert make_strategy("lahc").symmetric_rate == 0.20
        assert make_strategy("lahc", symmetric_rate=0.5).symmetric_rate == 0.5


class TestAnnealingStrategy:
    def test_temperature_cools_every_step(self):
        strategy = make_strategy("sa", start_temperature=10.0, cooling_rate=0.5)
        strategy.step()
        strategy.step()
        assert strategy.temperature == pytest.approx(2.5)


class TestGeneticStrategy:
    """Tests for the genetic algorithm."""

    def test_initial_population(self):
        strategy = make_strategy("ga", population_size=6)
        assert len(strategy.population) == 6
        assert set(strategy.scores) == {member.key for member in strategy.population}

    @pytest.mark.parametrize("mode", list(SearchMode))
    def test_population_size_constant(self, mode):
        strategy = make_strategy("ga", mode, population_size=5)
        for _ in range(8):
            strategy.step()
            assert len(strategy.population) == 5

    def test_best_stays_in_population(self):
        strategy = make_strategy("ga", population_size=5)
        for _ in range(5):
            elite = strategy.best
            strategy.step()
            keys = {member.key for member in strategy.population}
            assert strategy.population[0].key == elite.key
            assert strategy.best.key in keys

    def test_scores_pruned_to_population(self):
        strategy = make_strategy("ga", population_size=4)
        for _ in range(5):
            strategy.step()
        assert set(strategy.scores) == {member.key for member in strategy.population}

    def test_select_parent_from_population(self):
        strategy = make_strategy("ga", population_size=4)
        keys = {member.key for member in strategy.population}
        for _ in range(20):
            assert strategy.select_parent().key in keys

    def test_terminates_when_proposals_keep_failing(self):
        strategy = make_strategy("ga", population_size=4, max_attempts=1)
        strategy.seen.update(str(i) for i in range(10))
        strategy.evaluate = lambda candidate: None
        step = strategy.step()
        assert len(strategy.population) == 4
        assert step.iteration == 1
