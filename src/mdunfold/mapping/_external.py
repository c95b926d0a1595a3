"""
External unfolding: fit one set of points against a fixed, known set.
"""
import numpy as np
from collections import namedtuple
from ._optim import EPS, TOL, TINY, check_convergence, make_echo, report_final_status
from ._stress import check_dissimilarities, check_configuration, unfolding_distances

ExternalResult = namedtuple('ExternalResult', ['z', 'd', 'cost', 'n_iter', 'lastdif'])

def _distance_probabilities(delta_row):
    """Probabilities inversely related to dissimilarities, summing to one."""
    m = delta_row.shape[0]
    total = np.sum(delta_row) + m * TOL
    r = total / (delta_row + TOL)
    alpha = np.sum(r)
    if abs(alpha) < EPS:
        alpha = TOL
    return r / alpha

def _fit_point(delta_row, w_row, fixed, z, n_iter, fcrit, echo_fn):
    """Fit a single point to its dissimilarities with all fixed points.

    Returns the new point, its distances, final stress, iterations used, the
    final stress improvement and the stopping status.
    """
    dwork = delta_row.copy()
    sumw = np.sum(w_row)
    scale = np.sum(w_row * dwork**2)
    wf = w_row @ fixed

    d = unfolding_distances(z[None, :], fixed)[0]
    fold = np.sum(w_row * (dwork - d)**2) / scale
    fnew = fold
    lastdif = 0.0
    if echo_fn is not None:
        echo_fn(0, fold, fold, fold)

    status = 'max_iter'
    iter = 0
    for iter in range(1, n_iter + 1):

        # least-squares optimal scaling of the dissimilarities
        lower = np.sum(w_row * dwork**2)
        upper = np.sum(w_row * dwork * d)
        alpha = 1.0 if lower < EPS else upper / lower
        dwork *= alpha

        # single point Guttman transform
        b = np.zeros_like(d)
        np.divide(w_row * dwork, d, out=b, where=d >= TINY)
        z = (np.sum(b) * z - b @ fixed + wf) / sumw

        d = unfolding_distances(z[None, :], fixed)[0]
        fnew = np.sum(w_row * (dwork - d)**2) / scale
        if echo_fn is not None:
            echo_fn(iter, fold, fold, fnew)

        stop, diverged, lastdif = check_convergence(fold, fnew, fcrit)
        if stop:
            status = 'diverged' if diverged else 'converged'
            break
        fold = fnew

    return z, d, fnew, iter, lastdif, status

def external(
    delta,
    fixed,
    z = None,
    w = None,
    n_iter = 1024,
    fcrit = 1e-8,
    echo = False,
    verbose = 0,
    method_str = "EXTERNAL"):
    """External unfolding: fit row points to dissimilarities with fixed column points.

    Every row is fit independently. Rows whose initial coordinates are all
    zero start at a probability weighted average of the fixed points, with
    probabilities inversely related to the dissimilarities.

    Parameters
    ----------
    delta : ndarray of shape (n_rows, n_cols)
        Dissimilarities between the points to fit and the fixed points.
    fixed : ndarray of shape (n_cols, n_dims)
        Known column configuration, never updated.
    z : ndarray of shape (n_rows, n_dims), optional
        Initial row configuration, zeros if None.
    w : ndarray of shape (n_rows, n_cols), optional
        Nonnegative weights, all ones if None.
    n_iter : int, optional
        Maximum number of iterations per row, by default 1024.
    fcrit : float, optional
        Threshold on the relative stress improvement, by default 1e-8.
    echo : bool or callable, optional
        Per-iteration progress reporting, by default False.
    verbose : int, optional
        Verbosity level, by default 0.
    method_str : str, optional
        Identifier used in printed output, by default "EXTERNAL".

    Returns
    -------
    ExternalResult
        Fields z, d, cost (sum of the rows' final stress), n_iter (summed over
        rows) and lastdif (of the last fitted row).
    """
    delta, W = check_dissimilarities(delta, w)
    n_rows, n_cols = delta.shape
    if n_iter < 0:
        raise ValueError("Number of iterations must be nonnegative, not {0}".format(n_iter))
    fixed = check_configuration(fixed, n_cols, "fixed configuration")
    n_dims = fixed.shape[1]
    if z is None:
        z = np.zeros((n_rows, n_dims))
    else:
        z = check_configuration(z, n_rows, "row configuration", n_dims)

    echo_fn = make_echo(echo, method_str)
    d = unfolding_distances(z, fixed)
    cost = 0.0
    total_iter = 0
    lastdif = 0.0
    status = 'converged'
    for i in range(n_rows):
        w_row = W[i]
        if np.sum(w_row) <= 0 or np.sum(w_row * delta[i]**2) <= 0:
            if verbose > 0:
                print("[{0}] Row {1} skipped: no positive weighted dissimilarities.".format(method_str, i))
            continue

        if np.sum(z[i]**2) < EPS:
            z[i] = _distance_probabilities(delta[i]) @ fixed

        z[i], d[i], f_i, iter_i, lastdif, row_status = _fit_point(
            delta[i], w_row, fixed, z[i].copy(), n_iter, fcrit, echo_fn)
        cost += f_i
        total_iter += iter_i
        if verbose > 1:
            print("[{0}] Row {1} -- Iterations: {2} -- Stress: {3:.6f}".format(method_str, i, iter_i, f_i))
        if row_status == 'diverged' or (row_status == 'max_iter' and status == 'converged'):
            status = row_status

    report_final_status(method_str, total_iter, cost, status, verbose)

    return ExternalResult(z=z, d=d, cost=cost, n_iter=total_iter, lastdif=lastdif)
