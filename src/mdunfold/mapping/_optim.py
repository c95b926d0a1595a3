"""
Core functions shared within mapping module. Numerical constants, exceptions,
the stopping rule and progress reporting used by all unfolding engines.
"""
import numpy as np

EPS = np.finfo(float).eps                                  # 2.2204460492503131e-16
TOL = np.sqrt(EPS)                                         # 1.4901161193847656e-08
CRIT = np.sqrt(TOL)                                        # 0.00012207031250000000
TINY = 10.0 ** ((np.log10(EPS) + np.log10(TOL)) / 2.0)     # 1.8189894035458617e-12

N_ITER_CHECK = 50                                          # progress report interval for verbose > 1

class Error(Exception):
    """Base class for other exceptions"""
    pass

class SingularMatrixError(Error):
    """Raised when a linear system of the update step cannot be inverted"""
    pass

def check_convergence(fold, fnew, fcrit):
    """Apply the stopping rule of the majorization engines.

    Parameters
    ----------
    fold : float
        Stress value before the current iteration.
    fnew : float
        Stress value after the current iteration.
    fcrit : float
        Threshold for the relative improvement.

    Returns
    -------
    bool
        True if the iterations should stop.
    bool
        True if the stop is caused by an increase of the stress.
    float
        The improvement `fold - fnew`.
    """
    lastdif = fold - fnew
    if lastdif <= -1.0 * CRIT:
        return True, True, lastdif
    denom = fold + fnew
    fdif = 2.0 * lastdif / denom if denom > TINY else 0.0
    return fdif <= fcrit, False, lastdif

def make_echo(echo, method_str=""):
    """Turn the `echo` argument of an engine into a callable or None.

    Parameters
    ----------
    echo : bool or callable
        If True, progress is printed. A callable receives
        `(iteration, fold, fhalf, fnew)` after every iteration.
    method_str : str, optional
        Identifier used as prefix of printed progress, by default "".

    Returns
    -------
    callable or None
    """
    if callable(echo):
        return echo
    if echo:
        def _echo(iter, fold, fhalf, fnew):
            report_optim_progress(iter, method_str, fold, fhalf, fnew)
        return _echo
    return None

def report_optim_progress(iter, method_str, fold, fhalf, fnew):
    """Print the progress of the optimization during iterative updates.

    Parameters
    ----------
    iter : int
        The current iteration, 0 for the initial configuration.
    method_str : str
        A string identifier for the method being used.
    fold : float
        Stress value before the iteration.
    fhalf : float
        Stress value halfway the iteration.
    fnew : float
        Stress value after the iteration.
    """
    if fnew < 1e3:
        outstr = "[{0}] Iteration {1} -- Stress: {2:.6f} -- Prior: {3:.6f} -- Halfway: {4:.6f}".format(
            method_str, iter, fnew, fold, fhalf)
    else:
        outstr = "[{0}] Iteration {1} -- Stress: {2:.6e} -- Prior: {3:.6e} -- Halfway: {4:.6e}".format(
            method_str, iter, fnew, fold, fhalf)

    print(outstr)

def report_final_status(method_str, n_iter, cost, status, verbose):
    """Print why an engine stopped, if `verbose` > 0.

    `status` is one of 'converged', 'diverged' or 'max_iter'.
    """
    if verbose < 1:
        return
    if status == 'diverged':
        print("[{0}] Iteration {1}: diverging stress. Final stress: {2:.6f}".format(method_str, n_iter, cost))
    elif status == 'max_iter':
        print("[{0}] Maximum number of iterations reached. Final stress: {1:.6f}".format(method_str, cost))
    else:
        print("[{0}] Iteration {1}: stress converged. Final stress: {2:.6f}".format(method_str, n_iter, cost))
