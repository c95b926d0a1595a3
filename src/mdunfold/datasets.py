"""
Sample data for demonstration purpose.
"""
import numpy as np
from scipy.spatial.distance import cdist

def make_unfolding_data(n_rows=20, n_cols=10, n_dims=2, noise=0.0, random_state=None):
    """ Generate random row and column points and the dissimilarities
    between them.

    Parameters
    ----------
    n_rows : int, optional
        Number of row objects, by default 20.
    n_cols : int, optional
        Number of column objects, by default 10.
    n_dims : int, optional
        Dimensionality of the true configuration, by default 2.
    noise : float, optional
        Standard deviation of multiplicative lognormal noise on the
        dissimilarities, by default 0 (exact distances).
    random_state : int or None, optional
        Seed of the random generator, by default None.

    Returns
    -------
    dict
        Dictionary containing the dissimilarity matrix and the true row and
        column configurations.
    """
    rng = np.random.default_rng(random_state)
    X = rng.normal(0, 1, (n_rows, n_dims))
    Y = rng.normal(0, 1, (n_cols, n_dims))
    D = cdist(X, Y)
    if noise > 0:
        D = D * rng.lognormal(0, noise, D.shape)

    data = {
        'matrix': D,
        'X': X,
        'Y': Y}

    return data

def make_restricted_data(n_rows=20, n_cols=10, n_vars=3, n_dims=2, noise=0.0, random_state=None):
    """ Generate unfolding data whose row points are a linear combination of
    known variables, X = Q @ B.

    Parameters
    ----------
    n_rows : int, optional
        Number of row objects, by default 20.
    n_cols : int, optional
        Number of column objects, by default 10.
    n_vars : int, optional
        Number of variables in the basis, by default 3.
    n_dims : int, optional
        Dimensionality of the true configuration, by default 2.
    noise : float, optional
        Standard deviation of multiplicative lognormal noise on the
        dissimilarities, by default 0.
    random_state : int or None, optional
        Seed of the random generator, by default None.

    Returns
    -------
    dict
        Dictionary containing the dissimilarity matrix, the basis, the true
        loadings and the true row and column configurations.
    """
    rng = np.random.default_rng(random_state)
    Q = rng.normal(0, 1, (n_rows, n_vars))
    B = rng.normal(0, 1, (n_vars, n_dims))
    X = Q @ B
    Y = rng.normal(0, 1, (n_cols, n_dims)) * np.std(X, axis=0)
    D = cdist(X, Y)
    if noise > 0:
        D = D * rng.lognormal(0, noise, D.shape)

    data = {
        'matrix': D,
        'basis': Q,
        'loadings': B,
        'X': X,
        'Y': Y}

    return data
