"""
Module for data pre-processing, including transformations between different
data formats of two-mode (rows by columns) relationship data.
"""

import numpy as np
import pandas as pd
from scipy.sparse import coo_matrix

def sim2diss(sim_mat, transformation='inverse', eps=1e-4):
    """
    Transform a rectangular similarity matrix to a dissimilarity matrix.

    Parameters
    ----------
    sim_mat : ndarray of shape (n_rows, n_cols)
        Similarities between row and column objects, e.g., preference ratings.
    transformation : str, optional
        Transformation function, either 'inverse' or 'mirror', by default 'inverse'.
        'inverse' - Transforms by taking the reciprocal of the similarity scores.
        'mirror' - Subtracts the similarities from their maximum.
    eps : float, optional
        Incremental constant to avoid division by zero, by default 1e-4

    Returns
    -------
    ndarray of shape (n_rows, n_cols)
        Dissimilarities between row and column objects.
    """
    sim_mat = np.asarray(sim_mat, dtype=float)
    if sim_mat.ndim != 2:
        raise ValueError("Similarity matrix must be two-dimensional.")

    if transformation == 'inverse':
        # Ensure no similarity value is less than eps to avoid division by zero
        sim_mat_clipped = np.maximum(sim_mat, eps)
        diss_mat = 1 / sim_mat_clipped
    elif transformation == 'mirror':
        diss_mat = np.max(sim_mat) - sim_mat
    else:
        raise ValueError(f'Unknown transformation type "{transformation}". Valid options are "inverse" or "mirror".')

    return diss_mat

def edgelist2matrix(df, score_var, row_var, col_var, fill_value=np.nan):
    """
    Transform an edgelist to a rectangular relationship matrix.

    Parameters
    ----------
    df : DataFrame
        Data containing the edgelist. Each row should include a (row object,
        column object) pair and its score.
    score_var : string
        The score variable.
    row_var : string
        The id variable of the row objects.
    col_var : string
        The id variable of the column objects.
    fill_value : float, optional
        Value of pairs absent from the edgelist, by default NaN (missing).

    Returns
    -------
    S : ndarray of shape (n_rows, n_cols)
        A matrix of relationships between row and column objects.
    row_ids : ndarray
        Identifiers of the rows of S.
    col_ids : ndarray
        Identifiers of the columns of S.

    Raises
    ------
    ValueError:
        If required columns are missing in the DataFrame, or a pair occurs
        more than once.
    """
    required_columns = {score_var, row_var, col_var}
    if not required_columns.issubset(df.columns):
        missing_cols = required_columns - set(df.columns)
        raise ValueError(f"DataFrame is missing required columns: {missing_cols}")
    if df.duplicated(subset=[row_var, col_var]).any():
        raise ValueError("Edgelist contains duplicate (row, column) pairs.")

    row_ids = np.unique(df[row_var])
    col_ids = np.unique(df[col_var])
    row_index = pd.Series(np.arange(len(row_ids)), index=row_ids)
    col_index = pd.Series(np.arange(len(col_ids)), index=col_ids)

    row_indices = df[row_var].map(row_index).values
    col_indices = df[col_var].map(col_index).values
    scores = df[score_var].values.astype(np.float64)

    # Observed pairs are marked separately, so that zero scores survive densification
    shape = (len(row_ids), len(col_ids))
    S = coo_matrix((scores, (row_indices, col_indices)), shape=shape, dtype=np.float64).toarray()
    observed = coo_matrix((np.ones_like(scores), (row_indices, col_indices)), shape=shape).toarray() > 0
    S[~observed] = fill_value

    return S, row_ids, col_ids

def missing2weights(D):
    """
    Split a dissimilarity matrix with missing values into dissimilarities and
    weights: missing cells get weight zero and dissimilarity zero.

    Parameters
    ----------
    D : ndarray of shape (n_rows, n_cols)
        Dissimilarities, NaN marks a missing cell.

    Returns
    -------
    ndarray of shape (n_rows, n_cols)
        Dissimilarities without missing values.
    ndarray of shape (n_rows, n_cols)
        Weights, 1 for observed and 0 for missing cells.
    """
    D = np.array(D, dtype=float)
    missing = np.isnan(D)
    W = (~missing).astype(float)
    D[missing] = 0.0
    return D, W

def normalize_diss_mat(D, weights=None):
    """
    Normalize a dissimilarity matrix such that its weighted sum of squares
    equals the total weight, i.e., the mean squared dissimilarity is one.

    Parameters
    ----------
    D : ndarray of shape (n_rows, n_cols)
        A dissimilarity matrix.
    weights : ndarray of shape (n_rows, n_cols), optional
        Nonnegative weights, by default None.

    Returns
    -------
    ndarray of shape (n_rows, n_cols)
        Normalized dissimilarity matrix.

    Raises
    ------
    ValueError
        If the weighted sum of squares is zero.
    """
    D = np.asarray(D, dtype=float)
    W = np.ones_like(D) if weights is None else np.asarray(weights, dtype=float)
    ssq = np.sum(W * D**2)
    if ssq == 0:
        raise ValueError("Weighted sum of squared dissimilarities is zero, normalization cannot be performed.")

    return D * np.sqrt(np.sum(W) / ssq)
