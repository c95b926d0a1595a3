"""
Classical (SVD-based) unfolding, the two-set analogue of Torgerson's
classical scaling:

Schönemann, P.H. On metric multidimensional unfolding. Psychometrika 35, 349-366 (1970).

Used as a deterministic starting configuration for the iterative engines.
"""
import numpy as np

class ClassicalMDU():

    def __init__(self, n_dims = 2):
        self.n_dims = n_dims

    def __str__(self):
        """Create a string representation of the ClassicalMDU instance."""
        result = f"ClassicalMDU(n_dims={self.n_dims})"
        return result

    @staticmethod
    def _cunfold(delta, n_dims):
        """Perform classical unfolding on a rectangular dissimilarity matrix.

        Squared dissimilarities are double centered, rows by the row means
        and columns by the column means, and decomposed by a singular value
        decomposition. Rows and columns share the square roots of the
        singular values.

        Parameters
        ----------
        delta : np.array of shape (n_rows, n_cols)
            Dissimilarities between row and column objects.
        n_dims : int
            Number of dimensions of the configurations.

        Returns
        -------
        X : np.array of shape (n_rows, n_dims)
            Row configuration.
        Y : np.array of shape (n_cols, n_dims)
            Column configuration.
        s : np.array of shape (n_dims,)
            Singular values of the leading dimensions, zero for padded ones.
        """
        n_rows, n_cols = delta.shape

        # Centering matrices for both sets
        J_rows = np.eye(n_rows) - np.ones((n_rows, n_rows)) / n_rows
        J_cols = np.eye(n_cols) - np.ones((n_cols, n_cols)) / n_cols

        B = -J_rows @ (delta**2) @ J_cols / 2

        U, s, Vt = np.linalg.svd(B, full_matrices=False)
        V = Vt.T

        # Enforce consistent sign, flipping both sides together
        k = min(n_dims, s.shape[0])
        for i in range(k):
            max_idx = np.argmax(np.abs(U[:, i]))
            if U[max_idx, i] < 0:
                U[:, i] *= -1
                V[:, i] *= -1

        L = np.sqrt(s[:k])
        X = np.zeros((n_rows, n_dims))
        Y = np.zeros((n_cols, n_dims))
        X[:, :k] = U[:, :k] * L
        Y[:, :k] = V[:, :k] * L
        s_out = np.zeros(n_dims)
        s_out[:k] = s[:k]

        return X, Y, s_out

    def fit(self, delta):
        """Fit the classical unfolding model to a dissimilarity matrix.

        Parameters
        ----------
        delta : np.array of shape (n_rows, n_cols)
            Dissimilarities between row and column objects.

        Returns
        -------
        self : object
            Returns the instance itself, with configurations `X_`, `Y_` and
            singular values `singular_values_` stored as attributes.
        """
        delta = np.asarray(delta, dtype=float)
        if delta.ndim != 2:
            raise ValueError("Dissimilarities should be a matrix of shape (n_rows, n_cols).")
        self.X_, self.Y_, self.singular_values_ = self._cunfold(delta, self.n_dims)
        return self

    def fit_transform(self, delta):
        """Fit the model and return the row and column configurations."""
        self.fit(delta)
        return self.X_, self.Y_
