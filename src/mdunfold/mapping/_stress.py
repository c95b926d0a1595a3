"""
Distance and stress model shared by the unfolding engines.
"""
import numpy as np
from scipy.spatial.distance import cdist
from ._optim import TINY

def check_dissimilarities(delta, weights=None):
    """Validate dissimilarities and weights and return them as float arrays.

    Parameters
    ----------
    delta : array-like of shape (n_rows, n_cols)
        Target dissimilarities.
    weights : array-like of shape (n_rows, n_cols), optional
        Nonnegative weights. All ones if None.

    Returns
    -------
    ndarray of shape (n_rows, n_cols)
        Dissimilarities.
    ndarray of shape (n_rows, n_cols)
        Weights.

    Raises
    ------
    ValueError
        If shapes mismatch, or values are negative, NaN or Inf.
    """
    delta = np.asarray(delta, dtype=float)
    if delta.ndim != 2 or delta.size == 0:
        raise ValueError("Dissimilarities should be a non-empty matrix of shape (n_rows, n_cols).")
    if not np.all(np.isfinite(delta)):
        raise ValueError("Input contains NaN or Inf values")
    if np.any(delta < 0):
        raise ValueError("Dissimilarities must be nonnegative")

    if weights is None:
        return delta, np.ones_like(delta)

    weights = np.asarray(weights, dtype=float)
    if weights.shape != delta.shape:
        raise ValueError("Weights should have shape {0}, but have shape {1}".format(delta.shape, weights.shape))
    if not np.all(np.isfinite(weights)):
        raise ValueError("Weights contain NaN or Inf values")
    if np.any(weights < 0):
        raise ValueError("Weights must be nonnegative")
    return delta, weights

def check_configuration(Z, n_samples, name, n_dims=None):
    """Validate a configuration and return a float copy of it."""
    Z = np.array(Z, dtype=float)
    if Z.ndim != 2 or Z.shape[0] != n_samples:
        raise ValueError("Invalid shape for {0}! Should have {1} rows, but has shape {2}".format(name, n_samples, Z.shape))
    if n_dims is not None and Z.shape[1] != n_dims:
        raise ValueError("Invalid shape for {0}! Should have {1} columns, but has shape {2}".format(name, n_dims, Z.shape))
    if not np.all(np.isfinite(Z)):
        raise ValueError("{0} contains NaN or Inf values".format(name))
    return Z

def check_mask(mask, shape, name):
    """Validate a fixed-coordinates mask. Returns None if nothing is fixed."""
    if mask is None:
        return None
    mask = np.asarray(mask)
    if mask.shape != shape:
        raise ValueError("Invalid shape for {0}! Should be {1}, but is {2}".format(name, shape, mask.shape))
    mask = mask.astype(bool)
    if not np.any(mask):
        return None
    return mask

def unfolding_distances(X, Y):
    """Euclidean distances between all rows of X and all rows of Y.

    Parameters
    ----------
    X : ndarray of shape (n_rows, n_dims)
        Row configuration.
    Y : ndarray of shape (n_cols, n_dims)
        Column configuration.

    Returns
    -------
    ndarray of shape (n_rows, n_cols)
    """
    return cdist(X, Y, metric='euclidean')

def guttman_matrix(delta, distances, weights):
    """Guidance matrix of the Guttman transform.

    Entries are `w * delta / d`, and zero wherever the distance is below TINY.
    """
    safe = distances >= TINY
    B = np.zeros_like(distances)
    np.divide(weights * delta, distances, out=B, where=safe)
    return B

def raw_stress(delta, distances, weights):
    """Weighted sum of squared residuals between dissimilarities and distances."""
    return np.sum(weights * (delta - distances)**2)

def normalized_stress(delta, distances, weights, scale=None):
    """Raw stress divided by the weighted sum of squared dissimilarities.

    Parameters
    ----------
    delta : ndarray of shape (n_rows, n_cols)
        Target dissimilarities.
    distances : ndarray of shape (n_rows, n_cols)
        Distances of the current configuration.
    weights : ndarray of shape (n_rows, n_cols)
        Nonnegative weights.
    scale : float, optional
        Normalization constant. Computed from `delta` and `weights` if None.

    Returns
    -------
    float
    """
    if scale is None:
        scale = np.sum(weights * delta**2)
    return raw_stress(delta, distances, weights) / scale

def penalty_value(B, ridge=0.0, lasso=0.0, group=0.0):
    """Ridge, lasso and group-lasso penalty of a loadings matrix.

    Groups are the rows of B, i.e., all dimensions of one basis variable.
    """
    if B is None:
        return 0.0
    f_ridge = np.sum(B**2)
    f_lasso = np.sum(np.abs(B))
    f_group = np.sum(np.sqrt(np.sum(B**2, axis=1)))
    return ridge * f_ridge + lasso * f_lasso + group * f_group
