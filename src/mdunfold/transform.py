"""
Module for transforming lower-dimensional maps post-creation, i.e., rotation
to principal axes.
"""

import numpy as np

def principal_axes(Z):
    """
    Compute the rotation of a configuration to its principal axes.

    Parameters
    ----------
    Z : ndarray
        Map coordinates, shape (n_samples, n_dims)

    Returns
    -------
    ndarray
        Rotation matrix, shape (n_dims, n_dims). Columns are the eigenvectors
        of the covariance matrix of Z, ordered by decreasing eigenvalue.
    ndarray
        Eigenvalues in non-increasing order, shape (n_dims,)
    """
    Z = np.asarray(Z, dtype=float)
    if Z.ndim != 2 or Z.shape[0] == 0:
        raise ValueError("Input map must be a non-empty 2D array.")
    Z_meaned = Z - np.mean(Z, axis=0)
    cov_mat = Z_meaned.T @ Z_meaned / Z.shape[0]
    eigen_values, eigen_vectors = np.linalg.eigh(cov_mat)
    sorted_indices = np.argsort(eigen_values)[::-1]
    eigen_values = eigen_values[sorted_indices]
    eigen_vectors = eigen_vectors[:, sorted_indices]

    # Enforce consistent sign for each eigenvector
    for i in range(eigen_vectors.shape[1]):
        max_idx = np.argmax(np.abs(eigen_vectors[:, i]))
        if eigen_vectors[max_idx, i] < 0:
            eigen_vectors[:, i] *= -1

    return eigen_vectors, eigen_values

def rotate_to_principal_axes(Z, *others):
    """
    Rotate a map to its principal axes and apply the same rotation to any
    number of matrices sharing its coordinate system (e.g., the second set
    of an unfolding solution, or loadings of a restricted configuration).

    Parameters
    ----------
    Z : ndarray
        Map determining the rotation, shape (n_samples, n_dims)
    *others : ndarray or None
        Further matrices with n_dims columns. None entries are passed through.

    Returns
    -------
    list of ndarray
        The rotated map followed by the rotated other matrices, in input order.
    """
    R, _ = principal_axes(Z)
    rotated = [np.asarray(Z, dtype=float) @ R]
    for other in others:
        rotated.append(None if other is None else np.asarray(other, dtype=float) @ R)
    return rotated
