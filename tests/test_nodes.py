"""Tests for expression tree nodes."""

import math

import numpy as np
import pytest

from primefold.expression.nodes import (
    Binary,
    Const,
    Id,
    Mod,
    Unary,
    get_node,
    iter_nodes,
    pick_random_subtree,
    replace_matching,
    replace_node,
    safe_power,
)

N = Id()


class TestEvaluate:
    """Tests for scalar and vectorized evaluation."""

    def test_identity_and_constant(self):
        assert N.evaluate(7) == 7.0
        assert Const(3).evaluate(7) == 3.0

    def test_arithmetic(self):
        expr = Binary("+", Binary("*", N, N), Const(1))
        assert expr.evaluate(3) == 10.0

    def test_vectorized(self):
        expr = Binary("*", Const(2), N)
        np.testing.assert_array_equal(expr.evaluate(np.arange(1, 5)), [2, 4, 6, 8])

    def test_constant_broadcasts_over_arrays(self):
        np.testing.assert_array_equal(Const(5).evaluate(np.arange(3)), [5, 5, 5])

    def test_scalar_returns_float(self):
        assert isinstance(Unary("sin", N).evaluate(1), float)

    def test_degree_trig(self):
        assert Unary("sind", N).evaluate(90) == pytest.approx(1.0)
        assert Unary("cosd", N).evaluate(180) == pytest.approx(-1.0)

    def test_square_and_cube(self):
        assert Unary("square", N).evaluate(-3) == 9.0
        assert Unary("cube", N).evaluate(-3) == -27.0

    def test_floor_ceil_abs(self):
        half = Binary("/", N, Const(2))
        assert Unary("floor", half).evaluate(5) == 2.0
        assert Unary("ceil", half).evaluate(5) == 3.0
        assert Unary("abs", Binary("-", Const(1), N)).evaluate(5) == 4.0


class TestDomainPolicy:
    """Out-of-domain inputs give IEEE values, never exceptions."""

    def test_division_by_zero(self):
        assert Binary("/", N, Const(0)).evaluate(1) == math.inf
        assert math.isnan(Binary("/", Const(0), Const(0)).evaluate(1))

    def test_log_and_sqrt(self):
        assert Unary("log", Const(0)).evaluate(1) == -math.inf
        assert math.isnan(Unary("log", Const(-1)).evaluate(1))
        assert math.isnan(Unary("sqrt", Const(-4)).evaluate(1))

    def test_no_warnings_escape(self):
        with np.errstate(all="raise"):
            Unary("log", Const(-1)).evaluate(np.arange(3))

    def test_mod_by_zero_returns_dividend(self):
        assert Binary("mod", N, Const(0)).evaluate(7) == 7.0

    def test_mod_sign_follows_dividend(self):
        assert Binary("mod", Const(-7), Const(3)).evaluate(1) == -1.0
        assert Mod(Const(-7), 3).evaluate(1) == -1.0
        assert Mod(N, 5).evaluate(12) == 2.0


class TestPower:
    """Tests for the guarded power operator."""

    def test_zero_to_zero(self):
        assert Binary("^", Const(0), Const(0)).evaluate(1) == 1.0

    def test_integer_powers(self):
        assert Binary("^", N, Const(2)).evaluate(5) == 25.0
        assert Binary("^", Const(-2), Const(3)).evaluate(1) == -8.0

    def test_negative_base_fractional_exponent(self):
        assert math.isnan(Binary("^", Const(-2), Const(0.5)).evaluate(1))

    def test_large_operands(self):
        assert math.isnan(Binary("^", Const(2e6), Const(2)).evaluate(1))
        assert math.isnan(Binary("^", Const(2), Const(2e6)).evaluate(1))

    def test_overflow_is_nan(self):
        assert math.isnan(Binary("^", Const(10), Const(400)).evaluate(1))

    def test_zero_to_negative_is_nan(self):
        assert math.isnan(Binary("^", Const(0), Const(-1)).evaluate(1))

    def test_safe_power_vectorized(self):
        result = safe_power(np.array([2.0, -8.0, 3.0]), np.array([3.0, 1.0 / 3.0, 0.0]))
        assert result[0] == 8.0
        assert math.isnan(result[1])
        assert result[2] == 1.0


class TestToStr:
    """Tests for canonical text."""

    def test_leaves(self):
        assert N.to_str() == "n"
        assert Const(3).to_str() == "3"
        assert Const(2.5).to_str() == "2.5"
        assert Const(-3).to_str() == "(-3)"
        assert Const(math.pi).to_str() == "pi"

    def test_outermost_binary_unwrapped(self):
        assert Binary("+", N, Const(1)).to_str() == "n + 1"

    def test_nested_binary_wrapped(self):
        expr = Binary("*", Binary("+", N, Const(1)), N)
        assert expr.to_str() == "(n + 1) * n"

    def test_mod_forms(self):
        assert Mod(N, 7).to_str() == "(n % 7)"
        assert Binary("mod", N, Const(7)).to_str() == "n % 7"

    def test_unary(self):
        assert Unary("sqrt", Binary("+", N, Const(1))).to_str() == "sqrt(n + 1)"

    def test_str_matches_to_str(self):
        expr = Unary("cos", N)
        assert str(expr) == expr.to_str()


class TestStructure:
    """Tests for size, depth and validation."""

    def test_size(self):
        expr = Binary("+", Unary("sin", N), Mod(Const(2), 5))
        assert expr.size() == 5
        assert N.size() == 1

    def test_depth(self):
        assert N.depth() == 1
        assert Binary("+", Unary("sin", N), Const(1)).depth() == 3

    def test_structural_equality(self):
        assert Binary("+", N, Const(1)) == Binary("+", Id(), Const(1.0))
        assert hash(Unary("sin", N)) == hash(Unary("sin", Id()))

    def test_invalid_modulus(self):
        with pytest.raises(ValueError):
            Mod(N, 1)
        with pytest.raises(ValueError):
            Mod(N, 102)

    def test_invalid_operators(self):
        with pytest.raises(ValueError):
            Unary("tan", N)
        with pytest.raises(ValueError):
            Binary("//", N, N)


class TestMutate:
    """Tests for node-level mutation."""

    def test_integer_const_stays_integer(self):
        rng = np.random.default_rng(0)
        for _ in range(50):
            mutated = Const(5).mutate(rng)
            assert mutated.value.is_integer()
            assert 3 <= mutated.value <= 7

    def test_float_const_moves_by_at_most_half(self):
        rng = np.random.default_rng(1)
        for _ in range(50):
            assert abs(Const(2.5).mutate(rng).value - 2.5) <= 0.5

    def test_id_becomes_small_const_or_stays(self):
        rng = np.random.default_rng(2)
        results = [N.mutate(rng) for _ in range(200)]
        consts = [r for r in results if isinstance(r, Const)]
        assert consts
        assert any(r == N for r in results)
        assert all(1 <= c.value <= 10 for c in consts)

    def test_mod_modulus_stays_in_range(self):
        rng = np.random.default_rng(3)
        for modulus in (2, 101):
            for _ in range(50):
                mutated = Mod(N, modulus).mutate(rng)
                if isinstance(mutated, Mod):
                    assert 2 <= mutated.modulus <= 101

    def test_mutation_never_modifies_original(self):
        rng = np.random.default_rng(4)
        expr = Binary("+", Unary("sin", N), Mod(Const(2), 5))
        text = expr.to_str()
        for _ in range(50):
            expr.mutate(rng)
        assert expr.to_str() == text

    def test_size_stays_positive(self):
        rng = np.random.default_rng(5)
        expr = Binary("*", Unary("cos", N), Const(3))
        for _ in range(100):
            expr = expr.mutate(rng)
            assert expr.size() >= 1


class TestPaths:
    """Tests for path-based tree utilities."""

    def setup_method(self):
        self.tree = Binary("+", Unary("sin", N), Const(2))

    def test_iter_nodes_preorder(self):
        paths = [path for path, _ in iter_nodes(self.tree)]
        assert paths == [(), (0,), (0, 0), (1,)]

    def test_get_node(self):
        assert get_node(self.tree, (0, 0)) == N
        assert get_node(self.tree, ()) is self.tree

    def test_replace_node_copies(self):
        replaced = replace_node(self.tree, (1,), Const(9))
        assert replaced.to_str() == "sin(n) + 9"
        assert self.tree.to_str() == "sin(n) + 2"

    def test_replace_root(self):
        assert replace_node(self.tree, (), N) == N

    def test_replace_matching(self):
        tree = Binary("*", Binary("+", N, Const(2)), Const(2))
        replaced = replace_matching(tree, Const(2), Const(5))
        assert replaced.to_str() == "(n + 5) * 5"

    def test_pick_random_subtree_is_valid(self):
        rng = np.random.default_rng(6)
        valid = {path for path, _ in iter_nodes(self.tree)}
        picks = {pick_random_subtree(self.tree, rng) for _ in range(200)}
        assert picks <= valid
        assert () in picks
        assert len(picks) > 1

    def test_pick_random_subtree_leaf(self):
        assert pick_random_subtree(N, np.random.default_rng(0)) == ()
