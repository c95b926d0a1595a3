"""
Batch majorization (Guttman transform / SMACOF) for multidimensional unfolding.

A single engine covers the unrestricted, weighted, anchored, row restricted,
column restricted, doubly restricted and penalized restricted problems. Each
side of the problem (rows or columns) is either a free configuration, possibly
with fixed coordinates, or a configuration restricted to Q @ B for a fixed
basis Q and loadings B.
"""
import numpy as np
from collections import namedtuple
from ._optim import TINY, N_ITER_CHECK, check_convergence, make_echo, report_optim_progress, report_final_status
from ._linalg import inverse
from ._stress import (
    check_dissimilarities, check_configuration, check_mask,
    unfolding_distances, guttman_matrix, raw_stress, penalty_value)
from ..transform import rotate_to_principal_axes

Penalty = namedtuple('Penalty', ['ridge', 'lasso', 'group'], defaults=[0.0, 0.0, 0.0])

MajorizationResult = namedtuple(
    'MajorizationResult',
    ['x', 'y', 'bx', 'by', 'd', 'cost', 'n_iter', 'lastdif', 'history'])

class _Side():
    """One configuration of the unfolding problem."""

    def __init__(self, z=None, fixed=None, basis=None, loadings=None):
        self.fixed = fixed
        self.basis = basis
        self.loadings = loadings
        self.z = z if basis is None else basis @ loadings
        self.info = None
        self.info_inv = None

    @property
    def restricted(self):
        return self.basis is not None

    def prepare(self, wsum, penalty):
        """Precompute the information matrix Q' diag(wsum) Q of a restricted side."""
        if not self.restricted:
            return
        info = self.basis.T @ (wsum[:, None] * self.basis)
        if penalty is None:
            self.info_inv = inverse(info)
        else:
            self.info = info + penalty.ridge * np.eye(info.shape[0])

    def update(self, rhs, wsum, penalty):
        """Minimize the majorizing function over this side, given `rhs`."""
        if self.restricted:
            hhp = self.basis.T @ rhs
            if penalty is None:
                self.loadings = self.info_inv @ hhp
            else:
                self.loadings = _penalized_loadings(self.info, hhp, self.loadings, penalty)
            self.z = self.basis @ self.loadings
            return

        z_new = self.z.copy()
        active = wsum > 0
        z_new[active] = rhs[active] / wsum[active, None]
        if self.fixed is not None:
            z_new[self.fixed] = self.z[self.fixed]
        self.z = z_new

    def penalty(self, penalty):
        if penalty is None or not self.restricted:
            return 0.0
        return penalty_value(self.loadings, penalty.ridge, penalty.lasso, penalty.group)

def _penalized_loadings(info, hhp, B, penalty):
    """Solve the reweighted ridge / lasso / group-lasso system column by column.

    The lasso and group-lasso terms are majorized by quadratics at the
    current loadings B, which adds `0.5 * lambda / |b|` to the diagonal.
    """
    n_dims = B.shape[1]
    group_norms = np.sqrt(np.sum(B**2, axis=1))
    group_diag = 0.5 * penalty.group / np.maximum(group_norms, TINY)
    B_new = np.empty_like(B)
    for k in range(n_dims):
        lasso_diag = 0.5 * penalty.lasso / np.maximum(np.abs(B[:, k]), TINY)
        A = info + np.diag(lasso_diag + group_diag)
        B_new[:, k] = inverse(A) @ hhp[:, k]
    return B_new

def _make_side(z, fixed, basis, loadings, n_samples, name):
    if basis is None:
        if z is None:
            raise ValueError("Either a configuration or a basis with loadings is required for the {0}.".format(name))
        z = check_configuration(z, n_samples, name)
        fixed = check_mask(fixed, z.shape, "fixed " + name)
        return _Side(z=z, fixed=fixed)

    if fixed is not None and np.any(fixed):
        raise ValueError("Fixed coordinates are not supported for restricted {0}.".format(name))
    basis = check_configuration(basis, n_samples, "basis of " + name)
    if loadings is None:
        raise ValueError("Loadings are required for restricted {0}.".format(name))
    loadings = check_configuration(loadings, basis.shape[1], "loadings of " + name)
    return _Side(basis=basis, loadings=loadings)

def majorize(
    delta,
    x = None,
    y = None,
    w = None,
    fx = None,
    fy = None,
    qx = None,
    bx = None,
    qy = None,
    by = None,
    penalty = None,
    n_iter = 1024,
    fcrit = 1e-8,
    echo = False,
    verbose = 0,
    method_str = "MDU"):
    """Fit row and column configurations to dissimilarities by majorization.

    Parameters
    ----------
    delta : ndarray of shape (n_rows, n_cols)
        Target dissimilarities.
    x : ndarray of shape (n_rows, n_dims), optional
        Initial row configuration. Ignored if `qx` is given.
    y : ndarray of shape (n_cols, n_dims), optional
        Initial column configuration. Ignored if `qy` is given.
    w : ndarray of shape (n_rows, n_cols), optional
        Nonnegative weights, all ones if None.
    fx, fy : ndarray of bool, optional
        Masks of fixed coordinates for free row / column configurations.
    qx, bx : ndarray, optional
        Basis (n_rows, h) and initial loadings (h, n_dims) restricting the
        row configuration to qx @ bx.
    qy, by : ndarray, optional
        Basis (n_cols, h) and initial loadings (h, n_dims) restricting the
        column configuration to qy @ by.
    penalty : Penalty, optional
        Ridge, lasso and group-lasso weights on the loadings. Switches to the
        unnormalized penalized stress. Requires at least one restricted side.
    n_iter : int, optional
        Maximum number of iterations, by default 1024.
    fcrit : float, optional
        Threshold on the relative stress improvement, by default 1e-8.
    echo : bool or callable, optional
        Per-iteration progress reporting, by default False.
    verbose : int, optional
        Verbosity level, by default 0.
    method_str : str, optional
        Identifier used in printed output, by default "MDU".

    Returns
    -------
    MajorizationResult
        Fields x, y, bx, by (None for free sides), d, cost, n_iter, lastdif
        and history (stress before the first and after every iteration).

    Raises
    ------
    SingularMatrixError
        If the linear system of a restricted side cannot be inverted.
    """
    delta, W = check_dissimilarities(delta, w)
    n_rows, n_cols = delta.shape
    if n_iter < 0:
        raise ValueError("Number of iterations must be nonnegative, not {0}".format(n_iter))

    row = _make_side(x, fx, qx, bx, n_rows, "row configuration")
    col = _make_side(y, fy, qy, by, n_cols, "column configuration")
    if row.z.shape[1] != col.z.shape[1]:
        raise ValueError("Row and column configurations have different dimensionality.")
    if penalty is not None:
        if not (row.restricted or col.restricted):
            raise ValueError("A penalty requires a restricted row or column configuration.")
        penalty = Penalty(*penalty)

    wr = W.sum(axis=1)
    wc = W.sum(axis=0)
    scale = np.sum(W * delta**2)
    if penalty is None and scale <= 0:
        raise ValueError("Weighted sum of squared dissimilarities is zero; stress is undefined.")

    row.prepare(wr, penalty)
    col.prepare(wc, penalty)

    def objective(d):
        if penalty is None:
            return raw_stress(delta, d, W) / scale
        return raw_stress(delta, d, W) + row.penalty(penalty) + col.penalty(penalty)

    echo_fn = make_echo(echo, method_str)

    # update distances and calculate stress
    d = unfolding_distances(row.z, col.z)
    fold = objective(d)
    fnew = fold
    lastdif = 0.0
    history = [fold]
    if echo_fn is not None:
        echo_fn(0, fold, fold, fold)

    status = 'max_iter'
    iter = 0
    for iter in range(1, n_iter + 1):
        B = guttman_matrix(delta, d, W)

        # preliminary updates from the previous configurations
        x_old = row.z
        y_old = col.z
        xtilde = B.sum(axis=1)[:, None] * x_old - B @ y_old
        ytilde = B.sum(axis=0)[:, None] * y_old - B.T @ x_old

        row.update(xtilde + W @ y_old, wr, penalty)
        col.update(ytilde + W.T @ row.z, wc, penalty)

        d = unfolding_distances(row.z, col.z)
        fnew = objective(d)
        history.append(fnew)
        if echo_fn is not None:
            echo_fn(iter, fold, fold, fnew)
        elif verbose > 1 and iter % N_ITER_CHECK == 0:
            report_optim_progress(iter, method_str, fold, fold, fnew)

        stop, diverged, lastdif = check_convergence(fold, fnew, fcrit)
        if stop:
            status = 'diverged' if diverged else 'converged'
            break
        fold = fnew

    # rotate to principal axes of the row configuration
    if iter > 0 and row.fixed is None and col.fixed is None:
        x_rot, y_rot, bx_rot, by_rot = rotate_to_principal_axes(row.z, col.z, row.loadings, col.loadings)
        row.z, col.z, row.loadings, col.loadings = x_rot, y_rot, bx_rot, by_rot

    report_final_status(method_str, iter, fnew, status, verbose)

    return MajorizationResult(
        x=row.z, y=col.z, bx=row.loadings, by=col.loadings, d=d, cost=fnew,
        n_iter=iter, lastdif=lastdif, history=np.array(history))
