"""
Guarded linear algebra kernels used by the restricted update steps.
"""
import numpy as np
from ._optim import EPS, SingularMatrixError

def inverse(a):
    """Invert a square matrix, refusing singular or near-singular input.

    Parameters
    ----------
    a : ndarray of shape (h, h)
        Matrix to invert.

    Returns
    -------
    ndarray of shape (h, h)
        The inverse of `a`.

    Raises
    ------
    SingularMatrixError
        If `a` is singular or its condition number exceeds 1 / EPS.
    """
    a = np.asarray(a, dtype=float)
    if a.ndim != 2 or a.shape[0] != a.shape[1]:
        raise ValueError("Matrix must be square, got shape {0}".format(a.shape))
    if not np.all(np.isfinite(a)):
        raise SingularMatrixError("Matrix contains non-finite values")

    # Symmetric diagonal scaling leaves the inverse unchanged but keeps large
    # penalty terms on the diagonal from inflating the condition number
    diag = np.diag(a)
    if np.all(diag > 0):
        s = 1.0 / np.sqrt(diag)
    else:
        s = np.ones(a.shape[0])
    a_scaled = s[:, None] * a * s[None, :]
    if np.linalg.cond(a_scaled) > 1.0 / EPS:
        raise SingularMatrixError("Matrix is (nearly) singular")
    try:
        a_inv = np.linalg.inv(a_scaled)
    except np.linalg.LinAlgError as e:
        raise SingularMatrixError(str(e))
    return s[:, None] * a_inv * s[None, :]
