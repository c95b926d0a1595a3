"""
Tests for the batch majorization engine.
"""

import numpy as np
import pytest
from mdunfold.datasets import make_unfolding_data, make_restricted_data
from mdunfold.mapping import majorize, Penalty, SingularMatrixError
from mdunfold.mapping._optim import CRIT, TINY, check_convergence

DELTA = np.array([[0., 2., 4.], [2., 0., 2.], [4., 2., 0.]])
X0 = np.array([[-0.8], [0.1], [0.7]])
Y0 = np.array([[-0.6], [0.0], [0.9]])


def random_start(n_rows, n_cols, n_dims, seed):
    rng = np.random.default_rng(seed)
    return rng.normal(0, .1, (n_rows, n_dims)), rng.normal(0, .1, (n_cols, n_dims))


class TestStoppingRule:
    """Test the shared convergence criterion."""

    def test_divergence_stops(self):
        stop, diverged, lastdif = check_convergence(0.1, 0.1 + 2 * CRIT, 1e-8)
        assert stop and diverged
        assert lastdif < 0

    def test_small_increase_is_not_divergence(self):
        stop, diverged, _ = check_convergence(0.1, 0.1 + CRIT / 2, 1e-8)
        assert stop and not diverged

    def test_large_improvement_continues(self):
        stop, diverged, lastdif = check_convergence(1.0, 0.5, 1e-8)
        assert not stop and not diverged
        assert lastdif == pytest.approx(0.5)

    def test_zero_stress_stops(self):
        stop, diverged, _ = check_convergence(0.0, 0.0, 1e-8)
        assert stop and not diverged


class TestUnrestricted:
    """Test unweighted and weighted unfolding by majorization."""

    def test_three_by_three_perfect_fit(self):
        """The ordered start X0, Y0 within [-1, 1] reaches a perfect fit.

        The start is fixed rather than seeded: uniform random starts on [-1, 1]
        mostly stop in one-dimensional local minima with stress above 0.1.
        """
        result = majorize(DELTA, X0, Y0, n_iter=200, fcrit=1e-6)

        assert result.cost < 1e-3
        assert len(result.history) <= 201
        assert np.all(np.diff(result.history) <= CRIT)
        assert np.allclose(result.d, DELTA, atol=1e-6)

    def test_zero_iterations_returns_input(self):
        result = majorize(DELTA, X0, Y0, n_iter=0)

        assert result.n_iter == 0
        assert result.lastdif == 0.0
        assert np.array_equal(result.x, X0)
        assert np.array_equal(result.y, Y0)
        assert result.cost == result.history[0]

    def test_inputs_not_mutated(self):
        x = X0.copy()
        y = Y0.copy()
        majorize(DELTA, x, y, n_iter=10)
        assert np.array_equal(x, X0)
        assert np.array_equal(y, Y0)

    def test_monotone_stress(self):
        data = make_unfolding_data(n_rows=12, n_cols=8, random_state=0)
        x, y = random_start(12, 8, 2, 1)
        result = majorize(data['matrix'], x, y, n_iter=100, fcrit=1e-12)

        assert np.all(np.diff(result.history) <= CRIT)
        assert result.history[-1] < result.history[0]

    def test_monotone_stress_weighted(self):
        data = make_unfolding_data(n_rows=12, n_cols=8, noise=0.1, random_state=2)
        rng = np.random.default_rng(3)
        W = rng.uniform(0.5, 2.0, data['matrix'].shape)
        x, y = random_start(12, 8, 2, 4)
        result = majorize(data['matrix'], x, y, w=W, n_iter=100, fcrit=1e-12)

        assert np.all(np.diff(result.history) <= CRIT)

    def test_iteration_cap(self):
        data = make_unfolding_data(n_rows=12, n_cols=8, noise=0.2, random_state=5)
        x, y = random_start(12, 8, 2, 6)
        result = majorize(data['matrix'], x, y, n_iter=3, fcrit=0.0)

        assert result.n_iter == 3
        assert len(result.history) == 4

    def test_idempotent_after_convergence(self):
        data = make_unfolding_data(n_rows=10, n_cols=6, noise=0.1, random_state=7)
        x, y = random_start(10, 6, 2, 8)
        first = majorize(data['matrix'], x, y, n_iter=5000, fcrit=1e-10)
        second = majorize(data['matrix'], first.x, first.y, n_iter=10, fcrit=1e-10)

        assert abs(second.cost - first.cost) < 1e-6

    def test_fixed_coordinates_are_kept(self):
        data = make_unfolding_data(n_rows=8, n_cols=5, random_state=9)
        x, y = random_start(8, 5, 2, 10)
        fx = np.zeros_like(x, dtype=bool)
        fx[0] = True
        fy = np.zeros_like(y, dtype=bool)
        fy[2, 1] = True

        result = majorize(data['matrix'], x, y, fx=fx, fy=fy, n_iter=50)

        assert np.array_equal(result.x[0], x[0])
        assert result.y[2, 1] == y[2, 1]

    def test_zero_weight_row_is_untouched(self):
        data = make_unfolding_data(n_rows=8, n_cols=5, random_state=11)
        W = np.ones_like(data['matrix'])
        W[3] = 0.0
        x, y = random_start(8, 5, 2, 12)
        fx = np.zeros_like(x, dtype=bool)
        fx[0, 0] = True  # keeps the result unrotated

        result = majorize(data['matrix'], x, y, w=W, fx=fx, n_iter=20)

        assert np.array_equal(result.x[3], x[3])

    def test_echo_callback(self):
        calls = []
        majorize(DELTA, X0, Y0, n_iter=5, fcrit=0.0, echo=lambda *args: calls.append(args))

        assert calls[0][0] == 0
        assert calls[0][1] == calls[0][3]
        assert [c[0] for c in calls] == list(range(len(calls)))

    def test_echo_prints(self, capsys):
        majorize(DELTA, X0, Y0, n_iter=2, echo=True, verbose=1)
        out = capsys.readouterr().out
        assert "[MDU] Iteration 0" in out
        assert "Final stress" in out


class TestRestricted:
    """Test restricted and penalized restricted unfolding."""

    def setup_method(self):
        self.data = make_restricted_data(n_rows=15, n_cols=8, n_vars=3, random_state=1)
        self.Q = self.data['basis']
        self.x, self.y = random_start(15, 8, 2, 2)
        self.bx = np.linalg.lstsq(self.Q, self.x, rcond=None)[0]

    def test_row_restriction_holds(self):
        result = majorize(self.data['matrix'], y=self.y, qx=self.Q, bx=self.bx, n_iter=200)

        assert np.allclose(result.x, self.Q @ result.bx)
        assert result.by is None
        assert np.all(np.diff(result.history) <= CRIT)

    def test_principal_axes_orientation(self):
        result = majorize(self.data['matrix'], y=self.y, qx=self.Q, bx=self.bx, n_iter=200)

        xc = result.x - result.x.mean(axis=0)
        cov = xc.T @ xc / xc.shape[0]
        assert abs(cov[0, 1]) < 1e-8 * max(1.0, cov[0, 0])
        assert cov[0, 0] >= cov[1, 1]

    def test_column_restriction_holds(self):
        rng = np.random.default_rng(3)
        Qy = rng.normal(0, 1, (8, 3))
        by = np.linalg.lstsq(Qy, self.y, rcond=None)[0]
        result = majorize(self.data['matrix'], x=self.x, qy=Qy, by=by, n_iter=100)

        assert np.allclose(result.y, Qy @ result.by)
        assert np.all(np.diff(result.history) <= CRIT)

    def test_both_sides_restricted(self):
        rng = np.random.default_rng(4)
        Qy = rng.normal(0, 1, (8, 4))
        by = np.linalg.lstsq(Qy, self.y, rcond=None)[0]
        result = majorize(self.data['matrix'], qx=self.Q, bx=self.bx, qy=Qy, by=by, n_iter=100)

        assert np.allclose(result.x, self.Q @ result.bx)
        assert np.allclose(result.y, Qy @ result.by)

    def test_ridge_shrinks_loadings(self):
        free = majorize(self.data['matrix'], y=self.y, qx=self.Q, bx=self.bx, n_iter=200)
        penalized = majorize(self.data['matrix'], y=self.y, qx=self.Q, bx=self.bx,
                             penalty=Penalty(ridge=1e4), n_iter=200)

        assert np.sum(np.abs(penalized.bx)) < 0.25 * np.sum(np.abs(free.bx))

    def test_penalized_monotone(self):
        result = majorize(self.data['matrix'], y=self.y, qx=self.Q, bx=self.bx,
                          penalty=Penalty(ridge=1.0, group=1.0), n_iter=100, fcrit=1e-12)

        assert np.all(np.diff(result.history) <= CRIT)

    @pytest.mark.parametrize("lam", [0.5, 5.0])
    def test_lasso_group_monotone(self, lam):
        result = majorize(self.data['matrix'], y=self.y, qx=self.Q, bx=self.bx,
                          penalty=Penalty(lasso=lam, group=lam), n_iter=100, fcrit=1e-12)

        assert np.all(np.diff(result.history) <= CRIT)
        assert np.allclose(result.x, self.Q @ result.bx)

    def test_lasso_group_shrink_with_weight(self):
        sizes = []
        for lam in [0.5, 5.0, 50.0]:
            result = majorize(self.data['matrix'], y=self.y, qx=self.Q, bx=self.bx,
                              penalty=Penalty(lasso=lam, group=lam), n_iter=200)
            sizes.append(np.sum(np.abs(result.bx)))

        assert sizes[0] > sizes[1] > sizes[2]
        assert sizes[2] < 1e-3 * sizes[0]

    def test_singular_basis_raises(self):
        Q = self.Q.copy()
        Q[:, 1] = 0.0
        with pytest.raises(SingularMatrixError):
            majorize(self.data['matrix'], y=self.y, qx=Q, bx=self.bx, n_iter=10)


class TestValidation:
    """Test input validation of the engine."""

    def test_penalty_requires_restriction(self):
        with pytest.raises(ValueError):
            majorize(DELTA, X0, Y0, penalty=Penalty(ridge=1.0))

    def test_fixed_on_restricted_side(self):
        Q = np.eye(3)
        with pytest.raises(ValueError):
            majorize(DELTA, y=Y0, qx=Q, bx=X0, fx=np.ones((3, 1), dtype=bool))

    def test_negative_dissimilarities(self):
        with pytest.raises(ValueError):
            majorize(-DELTA, X0, Y0)

    def test_nan_dissimilarities(self):
        delta = DELTA.copy()
        delta[0, 1] = np.nan
        with pytest.raises(ValueError):
            majorize(delta, X0, Y0)

    def test_weight_shape_mismatch(self):
        with pytest.raises(ValueError):
            majorize(DELTA, X0, Y0, w=np.ones((2, 3)))

    def test_negative_iterations(self):
        with pytest.raises(ValueError):
            majorize(DELTA, X0, Y0, n_iter=-1)

    def test_dimension_mismatch(self):
        with pytest.raises(ValueError):
            majorize(DELTA, X0, np.zeros((3, 2)))

    def test_zero_scale(self):
        with pytest.raises(ValueError):
            majorize(np.zeros((3, 3)), X0, Y0)

    def test_tiny_constant(self):
        assert 1e-12 < TINY < 1e-11
