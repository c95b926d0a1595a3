"""
Multidimensional Unfolding by majorization (SMACOF), with optional weights,
fixed coordinates, and linear restrictions on either configuration.
"""
import numpy as np
from ._core import Unfolding, _initial_loadings
from ._majorization import majorize, Penalty
from ._stress import check_dissimilarities

class MDU(Unfolding):

    def __init__(
        self,
        n_dims = 2,
        n_iter = 1024,
        tol = 1e-8,
        init = None,
        verbose = 0,
        echo = False,
        random_state = None
    ):
        self.n_dims = n_dims
        self.n_iter = n_iter
        self.tol = tol
        self.init = init
        self.verbose = verbose
        self.echo = echo
        self.random_state = random_state
        self.method_str = "MDU"

    def fit(self, delta, weights = None, fixed_rows = None, fixed_cols = None):
        """Fit the unfolding model to the input data, without returning the
        configurations.

        Parameters
        ----------
        delta : np.array of shape (n_rows, n_cols)
            Dissimilarities between row and column objects.
        weights : np.array of shape (n_rows, n_cols), optional
            Nonnegative weights, zero for missing cells, by default None.
        fixed_rows : np.array of bool, shape (n_rows, n_dims), optional
            Coordinates of the row configuration kept at their initial value.
        fixed_cols : np.array of bool, shape (n_cols, n_dims), optional
            Coordinates of the column configuration kept at their initial value.

        Returns
        -------
        self : object
            The fitted instance.
        """
        self.fit_transform(delta, weights, fixed_rows, fixed_cols)
        return self

    def fit_transform(self, delta, weights = None, fixed_rows = None, fixed_cols = None):
        """Fit the unfolding model and return the row and column configurations.

        Iterates Guttman transforms until the relative decrease of the
        normalized stress falls below `tol`, the stress increases, or `n_iter`
        iterations are used. Without fixed coordinates, the result is rotated
        to the principal axes of the row configuration.

        Parameters
        ----------
        delta : np.array of shape (n_rows, n_cols)
            Dissimilarities between row and column objects.
        weights : np.array of shape (n_rows, n_cols), optional
            Nonnegative weights, zero for missing cells, by default None.
        fixed_rows : np.array of bool, shape (n_rows, n_dims), optional
            Coordinates of the row configuration kept at their initial value.
        fixed_cols : np.array of bool, shape (n_cols, n_dims), optional
            Coordinates of the column configuration kept at their initial value.

        Returns
        -------
        np.array of shape (n_rows, n_dims)
            Row configuration.
        np.array of shape (n_cols, n_dims)
            Column configuration.
        """
        delta, W = check_dissimilarities(delta, weights)
        self._validate_fixed(fixed_rows, fixed_cols)
        rng = np.random.default_rng(self.random_state)
        X0, Y0 = self._initialize(delta, rng)

        result = majorize(
            delta, x = X0, y = Y0, w = W, fx = fixed_rows, fy = fixed_cols,
            n_iter = self.n_iter, fcrit = self.tol, echo = self.echo,
            verbose = self.verbose, method_str = self.method_str)

        self._store_result(result)
        return self.X_, self.Y_

    def _store_result(self, result):
        self.X_ = result.x
        self.Y_ = result.y
        self.D_ = result.d
        self.cost_ = result.cost
        self.n_iter_ = result.n_iter
        self.lastdif_ = result.lastdif
        self.history_ = result.history

class RestrictedMDU(MDU):
    """Unfolding with row and/or column configurations restricted to a
    linear combination of known variables, X = Q_row @ B_row and
    Y = Q_col @ B_col.

    Positive `ridge`, `lasso` or `group_lasso` weights penalize the loadings.
    The penalized model minimizes the unnormalized stress plus penalties,
    so its `cost_` is not comparable to that of an unpenalized fit.
    """

    def __init__(
        self,
        n_dims = 2,
        n_iter = 1024,
        tol = 1e-8,
        init = None,
        verbose = 0,
        echo = False,
        random_state = None,
        ridge = 0,
        lasso = 0,
        group_lasso = 0
    ):
        super().__init__(
            n_dims = n_dims, n_iter = n_iter, tol = tol, init = init,
            verbose = verbose, echo = echo, random_state = random_state)
        self.ridge = ridge
        self.lasso = lasso
        self.group_lasso = group_lasso
        self.method_str = "RES-MDU"

    def _penalty(self):
        if min(self.ridge, self.lasso, self.group_lasso) < 0:
            raise ValueError("Penalty weights must be nonnegative.")
        if self.ridge > 0 or self.lasso > 0 or self.group_lasso > 0:
            return Penalty(self.ridge, self.lasso, self.group_lasso)
        return None

    def fit(self, delta, weights = None, row_basis = None, col_basis = None, fixed_rows = None, fixed_cols = None):
        """Fit the restricted unfolding model, without returning the configurations.

        See `fit_transform` for the parameters.
        """
        self.fit_transform(delta, weights, row_basis, col_basis, fixed_rows, fixed_cols)
        return self

    def fit_transform(self, delta, weights = None, row_basis = None, col_basis = None, fixed_rows = None, fixed_cols = None):
        """Fit the restricted unfolding model and return the configurations.

        Parameters
        ----------
        delta : np.array of shape (n_rows, n_cols)
            Dissimilarities between row and column objects.
        weights : np.array of shape (n_rows, n_cols), optional
            Nonnegative weights, by default None.
        row_basis : np.array of shape (n_rows, n_row_vars), optional
            Known variables restricting the row configuration.
        col_basis : np.array of shape (n_cols, n_col_vars), optional
            Known variables restricting the column configuration.
        fixed_rows, fixed_cols : np.array of bool, optional
            Fixed coordinates, only allowed on an unrestricted side.

        Returns
        -------
        np.array of shape (n_rows, n_dims)
            Row configuration.
        np.array of shape (n_cols, n_dims)
            Column configuration.

        Raises
        ------
        ValueError
            If neither basis is given.
        SingularMatrixError
            If a basis does not have full column rank on the weighted data.
        """
        if row_basis is None and col_basis is None:
            raise ValueError("At least one of row_basis and col_basis is required.")
        delta, W = check_dissimilarities(delta, weights)
        self._validate_fixed(fixed_rows, fixed_cols)
        penalty = self._penalty()
        rng = np.random.default_rng(self.random_state)
        X0, Y0 = self._initialize(delta, rng)

        bx = None if row_basis is None else _initial_loadings(row_basis, X0)
        by = None if col_basis is None else _initial_loadings(col_basis, Y0)

        result = majorize(
            delta, x = X0, y = Y0, w = W, fx = fixed_rows, fy = fixed_cols,
            qx = row_basis, bx = bx, qy = col_basis, by = by, penalty = penalty,
            n_iter = self.n_iter, fcrit = self.tol, echo = self.echo,
            verbose = self.verbose, method_str = self.method_str)

        self._store_result(result)
        self.B_row_ = result.bx
        self.B_col_ = result.by
        return self.X_, self.Y_
