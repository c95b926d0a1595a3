"""
Ultrafast (stochastic) Multidimensional Unfolding for large data.
"""
import numpy as np
from ._core import Unfolding, _initial_loadings
from ._ultrafast import ultrafast, ultrafast_restricted
from ._stress import check_dissimilarities, unfolding_distances, normalized_stress

class UltrafastMDU(Unfolding):
    """Unfolding by randomly drawn pairwise updates with a decaying rate.

    The amount of work is fixed by `n_steps`; every step performs
    n_rows + n_cols updates. Results are reproducible for a fixed
    `random_state`, which seeds both the random start and the drawn pairs.
    """

    def __init__(
        self,
        n_dims = 2,
        n_steps = 1024,
        min_rate = 0.01,
        paired = False,
        init = None,
        verbose = 0,
        random_state = None
    ):
        self.n_dims = n_dims
        self.n_steps = n_steps
        self.min_rate = min_rate
        self.paired = paired
        self.init = init
        self.verbose = verbose
        self.random_state = random_state
        self.method_str = "UF-MDU"

    def fit(self, delta, weights = None, fixed_rows = None, fixed_cols = None, row_basis = None):
        """Fit the model, without returning the configurations.

        See `fit_transform` for the parameters.
        """
        self.fit_transform(delta, weights, fixed_rows, fixed_cols, row_basis)
        return self

    def fit_transform(self, delta, weights = None, fixed_rows = None, fixed_cols = None, row_basis = None):
        """Fit the model and return the row and column configurations.

        Parameters
        ----------
        delta : np.array of shape (n_rows, n_cols)
            Dissimilarities between row and column objects.
        weights : np.array of shape (n_rows, n_cols), optional
            Nonnegative weights; cells with zero weight are never drawn into
            an update, by default None.
        fixed_rows, fixed_cols : np.array of bool, optional
            Fixed coordinates. Fixed rows are not allowed with `row_basis`.
        row_basis : np.array of shape (n_rows, n_row_vars), optional
            Known variables restricting the row configuration.

        Returns
        -------
        np.array of shape (n_rows, n_dims)
            Row configuration.
        np.array of shape (n_cols, n_dims)
            Column configuration.
        """
        delta, W = check_dissimilarities(delta, weights)
        self._validate_fixed(fixed_rows, fixed_cols)
        if row_basis is not None and fixed_rows is not None and np.any(fixed_rows):
            raise ValueError("Fixed coordinates are not supported for restricted row configuration.")
        if row_basis is not None and self.paired:
            raise ValueError("Paired updates are not available for restricted row configuration.")

        rng = np.random.default_rng(self.random_state)
        X0, Y0 = self._initialize(delta, rng)

        if self.verbose > 0:
            print("[{0}] Running {1} steps of {2} updates each".format(
                self.method_str, self.n_steps, sum(delta.shape)))

        if row_basis is None:
            X, Y = ultrafast(
                delta, X0, Y0, w = W, fx = fixed_rows, fy = fixed_cols,
                n_steps = self.n_steps, min_rate = self.min_rate,
                random_state = rng, paired = self.paired)
            self.B_row_ = None
        else:
            B0 = _initial_loadings(row_basis, X0)
            B, Y = ultrafast_restricted(
                delta, row_basis, B0, Y0, w = W, fy = fixed_cols,
                n_steps = self.n_steps, min_rate = self.min_rate,
                random_state = rng)
            X = np.asarray(row_basis, dtype=float) @ B
            self.B_row_ = B

        self.X_ = X
        self.Y_ = Y
        self.cost_ = normalized_stress(delta, unfolding_distances(X, Y), W)
        if self.verbose > 0:
            print("[{0}] Final stress: {1:.6f}".format(self.method_str, self.cost_))
        return self.X_, self.Y_
