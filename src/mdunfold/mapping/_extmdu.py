"""
External unfolding: place new objects into an existing configuration.
"""
import numpy as np
from ._core import Unfolding
from ._external import external

class ExternalMDU(Unfolding):
    """Fit row points to their dissimilarities with a fixed set of column
    points, e.g., ideal points of new respondents into a known product map.
    """

    def __init__(
        self,
        n_dims = 2,
        n_iter = 1024,
        tol = 1e-8,
        init = None,
        verbose = 0,
        echo = False
    ):
        self.n_dims = n_dims
        self.n_iter = n_iter
        self.tol = tol
        self.init = init
        self.verbose = verbose
        self.echo = echo
        self.method_str = "EXT-MDU"

    def fit(self, delta, fixed, weights = None):
        """Fit the external unfolding model, without returning the configuration.

        See `fit_transform` for the parameters.
        """
        self.fit_transform(delta, fixed, weights)
        return self

    def fit_transform(self, delta, fixed, weights = None):
        """Fit the external unfolding model and return the row configuration.

        Parameters
        ----------
        delta : np.array of shape (n_rows, n_cols)
            Dissimilarities between the new objects and the fixed points.
        fixed : np.array of shape (n_cols, n_dims)
            Known configuration, never changed.
        weights : np.array of shape (n_rows, n_cols), optional
            Nonnegative weights, by default None.

        Returns
        -------
        np.array of shape (n_rows, n_dims)
            Configuration of the new objects.
        """
        fixed = np.asarray(fixed, dtype=float)
        if fixed.ndim != 2 or fixed.shape[1] != self.n_dims:
            raise ValueError("Fixed configuration should have {0} columns, but has shape {1}".format(self.n_dims, fixed.shape))
        if isinstance(self.init, str):
            raise ValueError("Init should be None or an array of shape (n_rows, n_dims), not '{0}'".format(self.init))

        result = external(
            delta, fixed, z = self.init, w = weights, n_iter = self.n_iter,
            fcrit = self.tol, echo = self.echo, verbose = self.verbose,
            method_str = self.method_str)

        self.Z_ = result.z
        self.D_ = result.d
        self.cost_ = result.cost
        self.n_iter_ = result.n_iter
        self.lastdif_ = result.lastdif
        return self.Z_
