"""
Stochastic ("ultrafast") multidimensional unfolding.

Instead of full batch updates, every outer step performs n_rows + n_cols
micro-updates, each moving one randomly drawn (row, column) pair towards
its target dissimilarity. The mixing rate mu decays geometrically from 0.5
to `min_rate` over the run. There is no convergence test; the amount of work
is fixed by `n_steps`.
"""
import numpy as np
from numba import njit
from ._optim import TINY
from ._stress import check_dissimilarities, check_configuration, check_mask

MAX_RATE = 0.5

def _check_schedule(n_steps, min_rate):
    if n_steps < 0:
        raise ValueError("Number of steps must be nonnegative, not {0}".format(n_steps))
    if not 0 < min_rate <= MAX_RATE:
        raise ValueError("Minimum rate must lie in (0, {0}], not {1}".format(MAX_RATE, min_rate))

def decay_factor(n_steps, min_rate):
    """Factor by which mu shrinks per step to go from 0.5 to `min_rate`."""
    return (min_rate / MAX_RATE) ** (1.0 / n_steps)

def draw_pairs(rng, n_rows, n_cols, n_draws):
    """Draw (row, column) index pairs, shape (n_draws, 2)."""
    return rng.integers(0, [n_rows, n_cols], size=(n_draws, 2))

def draw_quads(rng, n_rows, n_cols, n_draws):
    """Draw (row, row, column, column) index quadruples, shape (n_draws, 4)."""
    return rng.integers(0, [n_rows, n_rows, n_cols, n_cols], size=(n_draws, 4))

@njit
def _pair_updates(delta, weights, x, fx, y, fy, pairs, mu):
    """Apply the single pair micro-updates of one step in place."""
    n_dims = x.shape[1]
    cmu = 1.0 - mu
    for s in range(pairs.shape[0]):
        i = pairs[s, 0]
        j = pairs[s, 1]
        if weights[i, j] == 0.0:
            continue
        dist = 0.0
        for k in range(n_dims):
            diff = x[i, k] - y[j, k]
            dist += diff * diff
        dist = np.sqrt(dist)
        if dist < TINY:
            continue
        b = delta[i, j] / dist
        for k in range(n_dims):
            xk = x[i, k]
            yk = y[j, k]
            t = b * (xk - yk)
            if not fx[i, k]:
                x[i, k] = cmu * xk + mu * (t + yk)
            if not fy[j, k]:
                y[j, k] = cmu * yk + mu * (xk - t)

@njit
def _guidance(delta, weights, x, y, i, j):
    dist = 0.0
    for k in range(x.shape[1]):
        diff = x[i, k] - y[j, k]
        dist += diff * diff
    dist = np.sqrt(dist)
    if dist < TINY:
        return 0.0
    return weights[i, j] * delta[i, j] / dist

@njit
def _quad_updates(delta, weights, x, fx, y, fy, quads, mu):
    """Apply the paired micro-updates of one step in place.

    Each update combines the four pairwise terms between two rows and two
    columns into one joint majorization step for all four points.
    """
    n_dims = x.shape[1]
    cmu = 1.0 - mu
    for s in range(quads.shape[0]):
        i1 = quads[s, 0]
        i2 = quads[s, 1]
        j1 = quads[s, 2]
        j2 = quads[s, 3]
        w11 = weights[i1, j1]
        w12 = weights[i1, j2]
        w21 = weights[i2, j1]
        w22 = weights[i2, j2]
        r1 = w11 + w12
        r2 = w21 + w22
        c1 = w11 + w21
        c2 = w12 + w22
        b11 = _guidance(delta, weights, x, y, i1, j1)
        b12 = _guidance(delta, weights, x, y, i1, j2)
        b21 = _guidance(delta, weights, x, y, i2, j1)
        b22 = _guidance(delta, weights, x, y, i2, j2)
        p1 = b11 + b12
        p2 = b21 + b22
        q1 = b11 + b21
        q2 = b12 + b22
        for k in range(n_dims):
            x1 = x[i1, k]
            x2 = x[i2, k]
            y1 = y[j1, k]
            y2 = y[j2, k]
            if r1 > 0.0 and not fx[i1, k]:
                x[i1, k] = cmu * x1 + mu * (p1 * x1 - b11 * y1 - b12 * y2 + w11 * y1 + w12 * y2) / r1
            if r2 > 0.0 and not fx[i2, k]:
                x[i2, k] = cmu * x2 + mu * (p2 * x2 - b21 * y1 - b22 * y2 + w21 * y1 + w22 * y2) / r2
            if c1 > 0.0 and not fy[j1, k]:
                y[j1, k] = cmu * y1 + mu * (q1 * y1 - b11 * x1 - b21 * x2 + w11 * x1 + w21 * x2) / c1
            if c2 > 0.0 and not fy[j2, k]:
                y[j2, k] = cmu * y2 + mu * (q2 * y2 - b12 * x1 - b22 * x2 + w12 * x1 + w22 * x2) / c2

@njit
def _restricted_updates(delta, weights, q, b, y, fy, pairs, mu, lr):
    """Apply the micro-updates of one step with rows restricted to q @ b.

    Row coordinates are rebuilt from the loadings for every drawn pair. The
    loadings follow a running average of least-squares corrections towards
    the row target, with learning rate `lr`.
    """
    n_dims = y.shape[1]
    n_basis = q.shape[1]
    cmu = 1.0 - mu
    x = np.zeros(n_dims)
    target = np.zeros(n_dims)
    for s in range(pairs.shape[0]):
        i = pairs[s, 0]
        j = pairs[s, 1]
        if weights[i, j] == 0.0:
            continue
        for k in range(n_dims):
            work = 0.0
            for l in range(n_basis):
                work += q[i, l] * b[l, k]
            x[k] = work
        dist = 0.0
        for k in range(n_dims):
            diff = x[k] - y[j, k]
            dist += diff * diff
        dist = np.sqrt(dist)
        if dist < TINY:
            continue
        g = delta[i, j] / dist
        for k in range(n_dims):
            yk = y[j, k]
            t = g * (x[k] - yk)
            target[k] = t + yk
            if not fy[j, k]:
                y[j, k] = cmu * yk + mu * (x[k] - t)
        qq = 0.0
        for l in range(n_basis):
            qq += q[i, l] * q[i, l]
        if qq < TINY:
            continue
        for k in range(n_dims):
            resid = (target[k] - x[k]) / qq
            for l in range(n_basis):
                b[l, k] += lr * q[i, l] * resid

def _prepare(delta, w, x, fx, y, fy):
    delta, W = check_dissimilarities(delta, w)
    n_rows, n_cols = delta.shape
    y = check_configuration(y, n_cols, "column configuration")
    fy = check_mask(fy, y.shape, "fixed column configuration")
    fy = np.zeros(y.shape, dtype=np.bool_) if fy is None else fy
    if x is not None:
        x = check_configuration(x, n_rows, "row configuration", y.shape[1])
        fx = check_mask(fx, x.shape, "fixed row configuration")
        fx = np.zeros(x.shape, dtype=np.bool_) if fx is None else fx
    return delta, W, x, fx, y, fy

def ultrafast(
    delta,
    x,
    y,
    w = None,
    fx = None,
    fy = None,
    n_steps = 1024,
    min_rate = 0.01,
    random_state = None,
    paired = False):
    """Stochastic unfolding with randomly drawn pairwise updates.

    Parameters
    ----------
    delta : ndarray of shape (n_rows, n_cols)
        Target dissimilarities.
    x : ndarray of shape (n_rows, n_dims)
        Initial row configuration.
    y : ndarray of shape (n_cols, n_dims)
        Initial column configuration.
    w : ndarray of shape (n_rows, n_cols), optional
        Weights. Pairs with zero weight are never updated. For single pair
        updates only zero / nonzero matters; paired updates use the values.
    fx, fy : ndarray of bool, optional
        Masks of fixed row / column coordinates.
    n_steps : int, optional
        Number of outer steps, by default 1024.
    min_rate : float, optional
        Final value of the mixing rate mu, in (0, 0.5], by default 0.01.
    random_state : int, numpy.random.Generator or None, optional
        Seed or generator for the drawn indices. The same seed reproduces the
        same result exactly.
    paired : bool, optional
        If True, draw two rows and two columns per update, by default False.

    Returns
    -------
    ndarray of shape (n_rows, n_dims)
        Updated row configuration.
    ndarray of shape (n_cols, n_dims)
        Updated column configuration.
    """
    _check_schedule(n_steps, min_rate)
    if x is None:
        raise ValueError("An initial row configuration is required.")
    delta, W, x, fx, y, fy = _prepare(delta, w, x, fx, y, fy)
    if n_steps == 0:
        return x, y

    rng = np.random.default_rng(random_state)
    n_rows, n_cols = delta.shape
    n_subsets = n_rows + n_cols
    alpha = decay_factor(n_steps, min_rate)

    mu = MAX_RATE
    for _ in range(n_steps):
        if paired:
            quads = draw_quads(rng, n_rows, n_cols, n_subsets)
            _quad_updates(delta, W, x, fx, y, fy, quads, mu)
        else:
            pairs = draw_pairs(rng, n_rows, n_cols, n_subsets)
            _pair_updates(delta, W, x, fx, y, fy, pairs, mu)
        mu *= alpha

    return x, y

def ultrafast_restricted(
    delta,
    q,
    b,
    y,
    w = None,
    fy = None,
    n_steps = 1024,
    min_rate = 0.01,
    random_state = None):
    """Stochastic unfolding with the row configuration restricted to q @ b.

    The column points follow the mixing rate mu, the loadings follow a
    running average with the smaller rate mu / (1000 + step).

    Parameters
    ----------
    delta : ndarray of shape (n_rows, n_cols)
        Target dissimilarities.
    q : ndarray of shape (n_rows, n_basis)
        Fixed basis of the row configuration.
    b : ndarray of shape (n_basis, n_dims)
        Initial loadings.
    y : ndarray of shape (n_cols, n_dims)
        Initial column configuration.
    w : ndarray of shape (n_rows, n_cols), optional
        Weights, pairs with zero weight are never updated.
    fy : ndarray of bool, optional
        Mask of fixed column coordinates.
    n_steps : int, optional
        Number of outer steps, by default 1024.
    min_rate : float, optional
        Final value of the mixing rate mu, in (0, 0.5], by default 0.01.
    random_state : int, numpy.random.Generator or None, optional
        Seed or generator for the drawn indices.

    Returns
    -------
    ndarray of shape (n_basis, n_dims)
        Updated loadings.
    ndarray of shape (n_cols, n_dims)
        Updated column configuration.
    """
    _check_schedule(n_steps, min_rate)
    delta, W, _, _, y, fy = _prepare(delta, w, None, None, y, fy)
    n_rows, n_cols = delta.shape
    q = check_configuration(q, n_rows, "basis of row configuration")
    b = check_configuration(b, q.shape[1], "loadings of row configuration", y.shape[1])
    if n_steps == 0:
        return b, y

    rng = np.random.default_rng(random_state)
    n_subsets = n_rows + n_cols
    alpha = decay_factor(n_steps, min_rate)

    mu = MAX_RATE
    for step in range(1, n_steps + 1):
        pairs = draw_pairs(rng, n_rows, n_cols, n_subsets)
        _restricted_updates(delta, W, q, b, y, fy, pairs, mu, mu / (1000.0 + step))
        mu *= alpha

    return b, y
