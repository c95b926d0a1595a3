"""
Tests for the MDU and RestrictedMDU estimators and their shared interface.
"""

import numpy as np
import pytest
from mdunfold.datasets import make_unfolding_data, make_restricted_data
from mdunfold.mapping import MDU, RestrictedMDU, ClassicalMDU
from mdunfold.mapping._optim import CRIT

DELTA = np.array([[0., 2., 4.], [2., 0., 2.], [4., 2., 0.]])


class TestMDU:
    """Test the unrestricted estimator."""

    def test_fit_attributes(self):
        data = make_unfolding_data(n_rows=12, n_cols=6, random_state=0)
        model = MDU(n_iter=300, random_state=0).fit(data['matrix'])

        assert model.X_.shape == (12, 2)
        assert model.Y_.shape == (6, 2)
        assert model.D_.shape == (12, 6)
        assert 0 < model.n_iter_ <= 300
        assert model.history_[-1] == model.cost_
        assert np.all(np.diff(model.history_) <= CRIT)

    def test_classical_init_exact(self):
        X, Y = MDU(n_dims=1, init='classical').fit_transform(DELTA)
        assert np.allclose(np.abs(X - Y.T), DELTA, atol=1e-6)

    def test_tuple_init(self):
        X0 = np.array([[-0.8], [0.1], [0.7]])
        Y0 = np.array([[-0.6], [0.0], [0.9]])
        model = MDU(n_dims=1, n_iter=200, tol=1e-6, init=(X0, Y0)).fit(DELTA)
        assert model.cost_ < 1e-3

    def test_random_state_reproducible(self):
        data = make_unfolding_data(n_rows=10, n_cols=5, noise=0.1, random_state=1)
        X1, Y1 = MDU(n_iter=50, random_state=3).fit_transform(data['matrix'])
        X2, Y2 = MDU(n_iter=50, random_state=3).fit_transform(data['matrix'])
        assert np.array_equal(X1, X2) and np.array_equal(Y1, Y2)

    def test_fixed_requires_explicit_init(self):
        with pytest.raises(ValueError):
            MDU(n_dims=1).fit(DELTA, fixed_rows=np.ones((3, 1), dtype=bool))

    def test_fixed_rows(self):
        X0 = np.array([[-0.8], [0.1], [0.7]])
        Y0 = np.array([[-0.6], [0.0], [0.9]])
        fixed = np.array([[True], [False], [False]])
        X, _ = MDU(n_dims=1, init=(X0, Y0)).fit_transform(DELTA, fixed_rows=fixed)
        assert X[0, 0] == X0[0, 0]

    def test_invalid_init(self):
        with pytest.raises(ValueError):
            MDU(init='cmds').fit(DELTA)
        with pytest.raises(ValueError):
            MDU(n_dims=2, init=(np.zeros((3, 1)), np.zeros((3, 1)))).fit(DELTA)


class TestRestrictedMDU:
    """Test the restricted estimator."""

    def setup_method(self):
        self.data = make_restricted_data(n_rows=15, n_cols=8, n_vars=3, random_state=2)

    def test_row_basis(self):
        model = RestrictedMDU(n_iter=200, random_state=0).fit(self.data['matrix'], row_basis=self.data['basis'])

        assert model.B_row_.shape == (3, 2)
        assert model.B_col_ is None
        assert np.allclose(model.X_, self.data['basis'] @ model.B_row_)

    def test_col_basis(self):
        rng = np.random.default_rng(0)
        Qy = rng.normal(0, 1, (8, 3))
        model = RestrictedMDU(n_iter=100, random_state=0).fit(self.data['matrix'], col_basis=Qy)

        assert model.B_row_ is None
        assert np.allclose(model.Y_, Qy @ model.B_col_)

    def test_penalty_switches_objective(self):
        data = make_restricted_data(n_rows=15, n_cols=8, n_vars=3, noise=0.3, random_state=4)
        free = RestrictedMDU(n_iter=100, random_state=0).fit(data['matrix'], row_basis=data['basis'])
        penalized = RestrictedMDU(n_iter=100, random_state=0, lasso=1e-6).fit(data['matrix'], row_basis=data['basis'])

        # unnormalized stress is larger than its normalized counterpart here
        assert penalized.cost_ > free.cost_

    def test_requires_basis(self):
        with pytest.raises(ValueError):
            RestrictedMDU().fit(self.data['matrix'])

    def test_negative_penalty(self):
        with pytest.raises(ValueError):
            RestrictedMDU(ridge=-1).fit(self.data['matrix'], row_basis=self.data['basis'])


class TestInterface:
    """Test parameter handling shared by all estimators."""

    def test_get_params(self):
        params = RestrictedMDU(n_dims=3, lasso=0.5).get_params()
        assert params['n_dims'] == 3
        assert params['lasso'] == 0.5
        assert 'method_str' not in params

    def test_set_params(self):
        model = MDU().set_params({'n_iter': 10, 'tol': 1e-4})
        assert model.n_iter == 10
        assert model.tol == 1e-4
        with pytest.raises(ValueError):
            MDU().set_params({'learning_rate': 1})

    def test_str_lists_modified_params(self):
        text = str(MDU(n_dims=3, n_iter=10))
        assert text.startswith("MDU(n_dims=3)")
        assert "n_iter=10" in text
        assert "tol" not in text

    def test_str_defaults(self):
        assert str(MDU()) == "MDU(n_dims=2)"


class TestClassicalMDU:
    """Test the classical (SVD) start."""

    def test_exact_symmetric_case(self):
        X, Y = ClassicalMDU(n_dims=1).fit_transform(DELTA)
        assert np.allclose(np.abs(X - Y.T), DELTA)

    def test_padding(self):
        model = ClassicalMDU(n_dims=5).fit(DELTA)
        assert model.X_.shape == (3, 5)
        assert np.all(model.X_[:, 3:] == 0)
        assert np.all(model.singular_values_[3:] == 0)

    def test_str(self):
        assert str(ClassicalMDU(n_dims=3)) == "ClassicalMDU(n_dims=3)"
