"""Tests for symmetric transforms between fold coordinates."""

import math

import numpy as np
import pytest

from primefold.expression.nodes import Binary, Const, Id, Unary, iter_nodes
from primefold.expression.parser import parse_expression
from primefold.expression.symmetry import (
    SYMMETRIC_TRANSFORMS,
    TRIG_OPS,
    apply_transform,
    create_symmetric_pair,
    derive_symmetric_pair,
    symmetric_mutation,
)

N = Id()


def transform_named(name):
    return next(t for t in SYMMETRIC_TRANSFORMS if t.name == name)


class TestTransforms:
    """Tests for the transform table."""

    def test_sixteen_transforms(self):
        assert len(SYMMETRIC_TRANSFORMS) == 16
        assert len({t.name for t in SYMMETRIC_TRANSFORMS}) == 16

    def test_every_trig_op_has_four_rules(self):
        for op in TRIG_OPS:
            assert sum(t.source == op for t in SYMMETRIC_TRANSFORMS) == 4

    def test_phase_shift_turns_sin_into_cos(self):
        rewritten = transform_named("sin+phase").rewrite(Unary("sin", N))
        values = np.arange(1, 20)
        np.testing.assert_allclose(rewritten.evaluate(values), np.cos(values), atol=1e-12)

    def test_degree_phase(self):
        rewritten = transform_named("sind+phase").rewrite(Unary("sind", N))
        assert rewritten.evaluate(0) == pytest.approx(1.0)


class TestApplyTransform:
    """Tests for whole-tree derivation."""

    def test_swap_rewrites_every_match(self):
        tree = parse_expression("sin(n) + sin(2 * n)")
        result = apply_transform(tree, transform_named("sin->cos"))
        assert result.to_str() == "cos(n) + cos(2 * n)"

    def test_swap_leaves_other_ops(self):
        tree = parse_expression("cos(n) * n")
        assert apply_transform(tree, transform_named("sin->cos")) == tree

    def test_negation_wraps_whole_function(self):
        tree = parse_expression("n * sin(n)")
        result = apply_transform(tree, transform_named("-sin"))
        assert result == Binary("*", Const(-1), tree)
        assert result.evaluate(3) == pytest.approx(-3 * math.sin(3))

    def test_reciprocal_wraps_whole_function(self):
        tree = parse_expression("cos(n) + 2")
        result = apply_transform(tree, transform_named("1/cos"))
        assert result == Binary("/", Const(1), tree)

    def test_input_unchanged(self):
        tree = parse_expression("sin(n) + sin(n)")
        apply_transform(tree, transform_named("sin->cos"))
        assert tree.to_str() == "sin(n) + sin(n)"

    def test_derive_pair_keeps_base(self):
        rng = np.random.default_rng(0)
        base = parse_expression("sqrt(n) * cos(n)")
        f, g, name = derive_symmetric_pair(base, rng)
        assert f is base
        assert g == apply_transform(base, transform_named(name))


class TestCreatePair:
    """Tests for fresh pair creation."""

    def test_f_is_source_of_base_and_g_is_rewrite(self):
        rng = np.random.default_rng(1)
        for _ in range(30):
            f, g, name = create_symmetric_pair(rng)
            transform = transform_named(name)
            assert isinstance(f, Unary)
            assert f.op == transform.source
            assert g == transform.rewrite(f)

    def test_sin_cos_pair_traces_circle(self):
        rng = np.random.default_rng(2)
        for _ in range(200):
            f, g, name = create_symmetric_pair(rng)
            if name == "sin->cos":
                break
        else:
            pytest.skip("sin->cos not drawn")
        values = np.arange(1, 30)
        radius = f.evaluate(values) ** 2 + g.evaluate(values) ** 2
        finite = np.isfinite(radius)
        np.testing.assert_allclose(radius[finite], 1.0)


class TestSymmetricMutation:
    """Tests for pair mutation."""

    def test_rewrites_matching_nodes(self):
        rng = np.random.default_rng(3)
        f = parse_expression("n * sin(n)")
        g = parse_expression("n * cos(n)")
        changed = 0
        for _ in range(50):
            new_f, new_g, name = symmetric_mutation(f, g, rng)
            assert name in {t.name for t in SYMMETRIC_TRANSFORMS}
            changed += (new_f != f) or (new_g != g)
        assert changed == 50

    def test_without_trig_creates_fresh_pair(self):
        rng = np.random.default_rng(4)
        f, g, name = symmetric_mutation(N, Const(2), rng)
        assert isinstance(f, Unary)
        assert f.op in TRIG_OPS
        assert any(isinstance(node, Unary) for _, node in iter_nodes(g))
