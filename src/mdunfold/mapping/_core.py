"""
Core functions shared by all unfolding estimators.
"""

import numpy as np
import inspect
from ._classical import ClassicalMDU

class Unfolding():
    """ Unfolding Interface. Implements default functions shared by all
    estimators in its child classes.
    """
    method_str = "" # Overriden by child class

    def __str__(self):
        """Create a string representation of the estimator. Displays its name
        and all parameters modified by the user.

        Returns
        -------
        str
            A summary of the estimator, including modified parameters.
        """
        result = f"{self.__class__.__name__}(n_dims={self.n_dims})"

        signature = inspect.signature(self.__init__)
        defaults = {k: v.default for k, v in signature.parameters.items() if v.default is not inspect.Parameter.empty}

        # Collect all attributes that differ from the default
        changed_attrs = []
        for attr, default_val in defaults.items():
            if attr == 'n_dims':
                continue
            current_val = getattr(self, attr)
            if isinstance(current_val, (np.ndarray, tuple, list)):
                changed_attrs.append(f"{attr}=<user-supplied>")
            elif current_val != default_val:
                changed_attrs.append(f"{attr}={current_val}")

        if changed_attrs:
            result += "\nUser-modified attributes: " + ", ".join(changed_attrs)

        return result

    def get_params(self):
        """Get model parameters."""
        signature = inspect.signature(self.__init__)
        return {k: getattr(self, k) for k in signature.parameters}

    def set_params(self, params):
        """Set model parameters."""
        valid = self.get_params()
        for key, value in params.items():
            if key not in valid:
                raise ValueError("Invalid parameter {0} for {1}".format(key, self.__class__.__name__))
            setattr(self, key, value)
        return self

    def _initialize(self, delta, rng):
        """Create initial row and column configurations.

        Parameters
        ----------
        delta : ndarray of shape (n_rows, n_cols)
            Input dissimilarities.
        rng : numpy.random.Generator
            Generator used for random starts.

        Returns
        -------
        ndarray of shape (n_rows, n_dims)
            Initial row configuration.
        ndarray of shape (n_cols, n_dims)
            Initial column configuration.
        """
        n_rows, n_cols = delta.shape
        if self.init is None or (isinstance(self.init, str) and self.init == 'random'):
            X0 = rng.normal(0, .1, (n_rows, self.n_dims))
            Y0 = rng.normal(0, .1, (n_cols, self.n_dims))
        elif isinstance(self.init, str) and self.init == 'classical':
            X0, Y0 = ClassicalMDU(n_dims=self.n_dims).fit_transform(delta)
        elif isinstance(self.init, str):
            raise ValueError("Init should be 'random', 'classical' or a tuple (X0, Y0), not '{0}'".format(self.init))
        else:
            if len(self.init) != 2:
                raise ValueError('Invalid input type for init! Should be a tuple (X0, Y0).')
            X0 = np.array(self.init[0], dtype=float)
            Y0 = np.array(self.init[1], dtype=float)
            if X0.shape != (n_rows, self.n_dims):
                raise ValueError('Invalid shape for initial row configuration! Should be {0}, but has shape {1}'.format((n_rows, self.n_dims), X0.shape))
            if Y0.shape != (n_cols, self.n_dims):
                raise ValueError('Invalid shape for initial column configuration! Should be {0}, but has shape {1}'.format((n_cols, self.n_dims), Y0.shape))

        return X0, Y0

    def _validate_fixed(self, fixed_rows, fixed_cols):
        """Fixed coordinates are only meaningful for a user-supplied start."""
        has_fixed = any(f is not None and np.any(f) for f in (fixed_rows, fixed_cols))
        if has_fixed and (self.init is None or isinstance(self.init, str)):
            raise ValueError("Fixed coordinates require an explicit initial configuration, init=(X0, Y0).")

def _initial_loadings(basis, Z):
    """Least-squares loadings B such that basis @ B approximates Z."""
    basis = np.asarray(basis, dtype=float)
    if basis.ndim != 2 or basis.shape[0] != Z.shape[0]:
        raise ValueError("Invalid shape for basis! Should have {0} rows, but has shape {1}".format(Z.shape[0], basis.shape))
    return np.linalg.lstsq(basis, Z, rcond=None)[0]
