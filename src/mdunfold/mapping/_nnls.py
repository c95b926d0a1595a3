"""
Nonnegative least squares: minimize ||A x - b||^2 subject to x >= 0.

Four solvers are available:

1. 'nnls': active-set method of Lawson and Hanson (scipy.optimize.nnls).
2. 'nnals': projected gradient with fixed step 1 / ||A||_2^2.
3. 'fastnnls': active-set method on the normal equations (Bro and de Jong).
4. 'nnccd': cyclic coordinate descent on the normal equations.

All solvers refuse rank-deficient systems. A failure is reported through
`status = 1` and `x = None` instead of an exception.
"""
import numpy as np
from collections import namedtuple
from numba import njit
from scipy.optimize import nnls
from ._optim import TINY

NNLSResult = namedtuple('NNLSResult', ['x', 'n_iter', 'tol', 'status'])

METHODS = {'nnls': 1, 'nnals': 2, 'fastnnls': 3, 'nnccd': 4}

def _failure(n_iter=0):
    return NNLSResult(x=None, n_iter=n_iter, tol=0.0, status=1)

def _relative_improvement(fold, fnew):
    denom = fold + fnew
    if denom < TINY:
        return 0.0
    return 2.0 * (fold - fnew) / denom

def _rss(A, b, x):
    r = A @ x - b
    return float(r @ r)

def _lawson_hanson(A, b, n_iter):
    """Active-set NNLS working on A directly.

    scipy does not report its iteration count, so `n_iter` is None. Raises
    RuntimeError when the iteration cap is exhausted.
    """
    x, _ = nnls(A, b, maxiter=n_iter)
    grad = A.T @ (b - A @ x)
    return x, None, float(np.max(grad))

def _fast_active_set(AtA, Atb, n_iter):
    """Active-set NNLS on precomputed normal equations."""
    n = AtA.shape[0]
    crit = 10 * np.finfo(float).eps * np.linalg.norm(AtA, 1) * n
    passive = np.zeros(n, dtype=bool)
    x = np.zeros(n)
    grad = Atb.copy()
    iter = 0
    while not np.all(passive) and np.max(np.where(passive, -np.inf, grad)) > crit:
        passive[np.argmax(np.where(passive, -np.inf, grad))] = True
        while np.any(passive):
            iter += 1
            if iter > n_iter:
                return x, n_iter, float(np.max(grad))
            z = np.zeros(n)
            z[passive] = np.linalg.solve(AtA[np.ix_(passive, passive)], Atb[passive])
            if np.all(z[passive] > 0):
                x = z
                break
            # step back to the boundary of the feasible region
            blocking = passive & (z <= 0)
            denom = x[blocking] - z[blocking]
            ratios = np.zeros_like(denom)
            np.divide(x[blocking], denom, out=ratios, where=denom > 0)
            x = x + np.min(ratios) * (z - x)
            passive &= x > crit
            x[~passive] = 0.0
        grad = Atb - AtA @ x
    return x, iter, float(np.max(grad))

def _projected_gradient(A, b, x, n_iter, tol):
    step = 1.0 / np.linalg.norm(A, 2)**2
    fold = _rss(A, b, x)
    fdif = 0.0
    iter = 0
    for iter in range(1, n_iter + 1):
        x = np.maximum(x - step * (A.T @ (A @ x - b)), 0.0)
        fnew = _rss(A, b, x)
        fdif = _relative_improvement(fold, fnew)
        if fdif <= tol:
            break
        fold = fnew
    return x, iter, fdif

@njit
def _ccd_sweep(AtA, Atb, x):
    """One cycle of exact coordinate minimization, projected onto x >= 0."""
    n = x.shape[0]
    for k in range(n):
        g = Atb[k]
        for l in range(n):
            g -= AtA[k, l] * x[l]
        x_new = x[k] + g / AtA[k, k]
        if x_new < 0.0:
            x_new = 0.0
        x[k] = x_new

def _coordinate_descent(A, b, x, n_iter, tol):
    AtA = A.T @ A
    Atb = A.T @ b
    fold = _rss(A, b, x)
    fdif = 0.0
    iter = 0
    for iter in range(1, n_iter + 1):
        _ccd_sweep(AtA, Atb, x)
        fnew = _rss(A, b, x)
        fdif = _relative_improvement(fold, fnew)
        if fdif <= tol:
            break
        fold = fnew
    return x, iter, fdif

def nnls_solve(A, b, x0=None, method=1, n_iter=1024, tol=1e-8):
    """Solve a nonnegative least squares problem.

    Parameters
    ----------
    A : ndarray of shape (n_samples, n_features)
        Design matrix, must have full column rank.
    b : ndarray of shape (n_samples,)
        Target vector.
    x0 : ndarray of shape (n_features,), optional
        Starting point of the iterative methods ('nnals', 'nnccd'), negative
        entries are clipped. Zeros if None. Ignored by the active-set methods.
    method : int or str, optional
        1 / 'nnls', 2 / 'nnals', 3 / 'fastnnls' or 4 / 'nnccd', by default 1.
    n_iter : int, optional
        Maximum number of iterations, by default 1024.
    tol : float, optional
        Threshold on the relative improvement of the residual sum of squares
        for the iterative methods, by default 1e-8.

    Returns
    -------
    NNLSResult
        Fields x (None on failure), n_iter (iterations used, None for
        'nnls'), tol (last relative improvement, or the largest remaining
        gradient entry for the active-set methods) and status (0 on success, 1
        on failure or when 'nnls' exhausts `n_iter`).
    """
    if isinstance(method, str):
        if method not in METHODS:
            raise ValueError("Unknown NNLS method '{0}'. Choose from {1}".format(method, list(METHODS)))
        method = METHODS[method]
    if method not in (1, 2, 3, 4):
        raise ValueError("NNLS method must be 1, 2, 3 or 4, not {0}".format(method))

    A = np.asarray(A, dtype=float)
    b = np.asarray(b, dtype=float).ravel()
    if A.ndim != 2 or A.shape[0] != b.shape[0]:
        raise ValueError("Shapes of A {0} and b {1} are incompatible".format(A.shape, b.shape))
    if not (np.all(np.isfinite(A)) and np.all(np.isfinite(b))):
        raise ValueError("Input contains NaN or Inf values")

    n = A.shape[1]
    if np.linalg.matrix_rank(A) < n:
        return _failure()

    if x0 is None:
        x = np.zeros(n)
    else:
        x = np.maximum(np.array(x0, dtype=float).ravel(), 0.0)
        if x.shape[0] != n:
            raise ValueError("Starting point should have {0} entries, not {1}".format(n, x.shape[0]))

    if method == 1:
        try:
            x, iter, fdif = _lawson_hanson(A, b, n_iter)
        except RuntimeError:
            return _failure(n_iter)
        return NNLSResult(x=x, n_iter=iter, tol=fdif, status=0)

    try:
        if method == 2:
            x, iter, fdif = _projected_gradient(A, b, x, n_iter, tol)
        elif method == 3:
            x, iter, fdif = _fast_active_set(A.T @ A, A.T @ b, n_iter)
        else:
            x, iter, fdif = _coordinate_descent(A, b, x, n_iter, tol)
    except np.linalg.LinAlgError:
        return _failure()

    return NNLSResult(x=x, n_iter=iter, tol=fdif, status=0)
