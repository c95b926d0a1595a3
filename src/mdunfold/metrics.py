"""
Module for evaluating unfolding maps.
"""

import numpy as np
from scipy.spatial.distance import cdist
from .mapping._stress import check_dissimilarities, normalized_stress

def stress_score(X, Y, D, weights=None):
    """
    Calculate the normalized stress of an unfolding map.

    Parameters
    ----------
    X : ndarray of shape (n_rows, n_dims)
        Row configuration.
    Y : ndarray of shape (n_cols, n_dims)
        Column configuration.
    D : ndarray of shape (n_rows, n_cols)
        Input dissimilarities.
    weights : ndarray of shape (n_rows, n_cols), optional
        Nonnegative weights, by default None.

    Returns
    -------
    float
        Weighted sum of squared residuals divided by the weighted sum of
        squared dissimilarities, bounded within [0, inf).
        Lower values indicate better fit.
    """
    D, W = check_dissimilarities(D, weights)
    X = np.asarray(X, dtype=float)
    Y = np.asarray(Y, dtype=float)
    if X.shape[0] != D.shape[0] or Y.shape[0] != D.shape[1]:
        raise ValueError("Map of shapes {0} and {1} does not match data of shape {2}".format(X.shape, Y.shape, D.shape))
    scale = np.sum(W * D**2)
    if scale <= 0:
        raise ValueError("Weighted sum of squared dissimilarities is zero; stress is undefined.")
    return normalized_stress(D, cdist(X, Y), W, scale)

def hitrate_score(X, Y, D, n_neighbors=10, input_format='dissimilarity'):
    """
    Calculate the Hitrate of nearest neighbor recovery for an unfolding map.

    For every row object, the n_neighbors closest column objects in the input
    data are compared to its n_neighbors closest column points on the map.
    The score is averaged across all row objects.

    Parameters
    ----------
    X : ndarray of shape (n_rows, n_dims)
        Row configuration.
    Y : ndarray of shape (n_cols, n_dims)
        Column configuration.
    D : ndarray of shape (n_rows, n_cols)
        Input data, either similarities or dissimilarities between row and
        column objects.
    n_neighbors : int, optional
        Number of neighbors considered when calculating the hitrate, by default 10.
    input_format : str, optional
        One of 'similarity' or 'dissimilarity', by default 'dissimilarity'.

    Returns
    -------
    float
        Hitrate of nearest neighbor recovery, bounded within [0,1].
        Higher values indicate better recovery.

    Raises
    ------
    ValueError
        If the input dimensions mismatch or unsupported input format is provided.
    """
    X = np.asarray(X, dtype=float)
    Y = np.asarray(Y, dtype=float)
    D = np.asarray(D, dtype=float)
    if n_neighbors < 1:
        raise ValueError('Number of neighbors must be at least 1.')
    if not input_format in ['similarity', 'dissimilarity']:
        raise ValueError('Input format should be "similarity" or "dissimilarity".')
    n_rows, n_cols = D.shape
    if X.shape[0] != n_rows or Y.shape[0] != n_cols:
        raise ValueError("Map of shapes {0} and {1} does not match data of shape {2}".format(X.shape, Y.shape, D.shape))
    n_neighbors = min(n_neighbors, n_cols)

    Dist_map = cdist(X, Y, 'sqeuclidean')

    hit_rate = 0
    for i in range(n_rows):
        if input_format == 'dissimilarity':
            nearest_original = np.argsort(D[i, :], kind='stable')[:n_neighbors]
        else:
            nearest_original = np.argsort(-D[i, :], kind='stable')[:n_neighbors]

        nearest_map = np.argsort(Dist_map[i, :], kind='stable')[:n_neighbors]
        hit_rate += len(np.intersect1d(nearest_original, nearest_map))

    return hit_rate / (n_neighbors * n_rows)
