"""
Tests for the stochastic unfolding engine and its estimator.
"""

import numpy as np
import pytest
from mdunfold.datasets import make_unfolding_data, make_restricted_data
from mdunfold.mapping import ultrafast, ultrafast_restricted, UltrafastMDU
from mdunfold.mapping._ultrafast import decay_factor, draw_pairs, draw_quads
from mdunfold.metrics import stress_score


def random_start(n_rows, n_cols, n_dims, seed):
    rng = np.random.default_rng(seed)
    return rng.normal(0, .1, (n_rows, n_dims)), rng.normal(0, .1, (n_cols, n_dims))


class TestSchedule:
    """Test the annealing schedule and index draws."""

    def test_decay_reaches_min_rate(self):
        alpha = decay_factor(100, 0.01)
        assert 0.5 * alpha**100 == pytest.approx(0.01)

    def test_draws_within_range(self):
        rng = np.random.default_rng(0)
        pairs = draw_pairs(rng, 7, 3, 1000)
        assert pairs.shape == (1000, 2)
        assert pairs[:, 0].min() >= 0 and pairs[:, 0].max() < 7
        assert pairs[:, 1].min() >= 0 and pairs[:, 1].max() < 3

        quads = draw_quads(rng, 7, 3, 1000)
        assert quads[:, :2].max() < 7
        assert quads[:, 2:].max() < 3

    def test_different_seeds_differ(self):
        a = draw_pairs(np.random.default_rng(1), 50, 40, 90)
        b = draw_pairs(np.random.default_rng(2), 50, 40, 90)
        assert not np.array_equal(a, b)


class TestUltrafastEngine:
    """Test stochastic unfolding updates."""

    def setup_method(self):
        self.data = make_unfolding_data(n_rows=20, n_cols=10, random_state=0)
        self.x, self.y = random_start(20, 10, 2, 1)

    def test_same_seed_is_reproducible(self):
        x1, y1 = ultrafast(self.data['matrix'], self.x, self.y, n_steps=50, random_state=42)
        x2, y2 = ultrafast(self.data['matrix'], self.x, self.y, n_steps=50, random_state=42)
        assert np.array_equal(x1, x2)
        assert np.array_equal(y1, y2)

    def test_different_seeds_give_different_maps(self):
        x1, _ = ultrafast(self.data['matrix'], self.x, self.y, n_steps=50, random_state=1)
        x2, _ = ultrafast(self.data['matrix'], self.x, self.y, n_steps=50, random_state=2)
        assert not np.array_equal(x1, x2)

    def test_reduces_stress(self):
        before = stress_score(self.x, self.y, self.data['matrix'])
        x, y = ultrafast(self.data['matrix'], self.x, self.y, n_steps=500, random_state=0)
        after = stress_score(x, y, self.data['matrix'])
        assert after < 0.5 * before

    def test_paired_reduces_stress(self):
        before = stress_score(self.x, self.y, self.data['matrix'])
        x, y = ultrafast(self.data['matrix'], self.x, self.y, n_steps=500, random_state=0, paired=True)
        after = stress_score(x, y, self.data['matrix'])
        assert after < before

    def test_zero_steps_returns_copies(self):
        x, y = ultrafast(self.data['matrix'], self.x, self.y, n_steps=0)
        assert np.array_equal(x, self.x) and np.array_equal(y, self.y)
        assert x is not self.x and y is not self.y

    def test_inputs_not_mutated(self):
        x0 = self.x.copy()
        ultrafast(self.data['matrix'], self.x, self.y, n_steps=10, random_state=0)
        assert np.array_equal(self.x, x0)

    def test_fixed_coordinates_are_kept(self):
        fx = np.zeros_like(self.x, dtype=bool)
        fx[:5] = True
        fy = np.zeros_like(self.y, dtype=bool)
        fy[0, 0] = True
        x, y = ultrafast(self.data['matrix'], self.x, self.y, fx=fx, fy=fy, n_steps=50, random_state=0)
        assert np.array_equal(x[:5], self.x[:5])
        assert y[0, 0] == self.y[0, 0]

    @pytest.mark.parametrize("paired", [False, True])
    def test_zero_weight_row_is_untouched(self, paired):
        W = np.ones_like(self.data['matrix'])
        W[4] = 0.0
        x, _ = ultrafast(self.data['matrix'], self.x, self.y, w=W, n_steps=50, random_state=0, paired=paired)
        assert np.array_equal(x[4], self.x[4])

    @pytest.mark.parametrize("min_rate", [0.0, -0.1, 0.6])
    def test_invalid_min_rate(self, min_rate):
        with pytest.raises(ValueError):
            ultrafast(self.data['matrix'], self.x, self.y, min_rate=min_rate)


class TestUltrafastRestricted:
    """Test stochastic unfolding with restricted rows."""

    def setup_method(self):
        self.data = make_restricted_data(n_rows=20, n_cols=10, n_vars=3, random_state=0)
        self.Q = self.data['basis']
        x, self.y = random_start(20, 10, 2, 1)
        self.b = np.linalg.lstsq(self.Q, x, rcond=None)[0]

    def test_shapes_and_reproducibility(self):
        b1, y1 = ultrafast_restricted(self.data['matrix'], self.Q, self.b, self.y, n_steps=30, random_state=3)
        b2, y2 = ultrafast_restricted(self.data['matrix'], self.Q, self.b, self.y, n_steps=30, random_state=3)
        assert b1.shape == (3, 2) and y1.shape == (10, 2)
        assert np.array_equal(b1, b2) and np.array_equal(y1, y2)

    @pytest.mark.parametrize("seed", [0, 1, 2])
    def test_lowers_stress(self, seed):
        before = stress_score(self.Q @ self.b, self.y, self.data['matrix'])
        b, y = ultrafast_restricted(self.data['matrix'], self.Q, self.b, self.y, random_state=seed)

        assert b.shape == self.b.shape
        assert stress_score(self.Q @ b, y, self.data['matrix']) < 0.5 * before

    def test_fixed_columns_are_kept(self):
        fy = np.zeros_like(self.y, dtype=bool)
        fy[1] = True
        _, y = ultrafast_restricted(self.data['matrix'], self.Q, self.b, self.y, fy=fy, n_steps=30, random_state=3)
        assert np.array_equal(y[1], self.y[1])


class TestUltrafastMDU:
    """Test the UltrafastMDU estimator."""

    def test_fit_is_reproducible(self):
        data = make_unfolding_data(n_rows=20, n_cols=10, random_state=5)
        X1, Y1 = UltrafastMDU(n_steps=100, random_state=7).fit_transform(data['matrix'])
        X2, Y2 = UltrafastMDU(n_steps=100, random_state=7).fit_transform(data['matrix'])
        assert np.array_equal(X1, X2) and np.array_equal(Y1, Y2)

    def test_cost_matches_map(self):
        data = make_unfolding_data(n_rows=20, n_cols=10, random_state=5)
        model = UltrafastMDU(n_steps=200, random_state=7).fit(data['matrix'])
        assert model.cost_ == pytest.approx(stress_score(model.X_, model.Y_, data['matrix']))
        assert model.B_row_ is None

    def test_row_basis(self):
        data = make_restricted_data(n_rows=20, n_cols=10, n_vars=3, random_state=5)
        model = UltrafastMDU(n_steps=50, random_state=7).fit(data['matrix'], row_basis=data['basis'])
        assert model.B_row_.shape == (3, 2)
        assert np.allclose(model.X_, data['basis'] @ model.B_row_)

    def test_paired_with_basis_rejected(self):
        data = make_restricted_data(n_rows=20, n_cols=10, n_vars=3, random_state=5)
        with pytest.raises(ValueError):
            UltrafastMDU(paired=True).fit(data['matrix'], row_basis=data['basis'])

    def test_verbose_output(self, capsys):
        data = make_unfolding_data(n_rows=6, n_cols=4, random_state=5)
        UltrafastMDU(n_steps=5, verbose=1, random_state=0).fit(data['matrix'])
        out = capsys.readouterr().out
        assert "[UF-MDU]" in out
        assert "Final stress" in out
