from ._classical import ClassicalMDU
from ._mdu import MDU, RestrictedMDU
from ._extmdu import ExternalMDU
from ._ufmdu import UltrafastMDU
from ._majorization import majorize, Penalty
from ._external import external
from ._ultrafast import ultrafast, ultrafast_restricted
from ._nnls import nnls_solve
from ._optim import Error, SingularMatrixError

__all__ = [
    'ClassicalMDU', 'MDU', 'RestrictedMDU', 'ExternalMDU', 'UltrafastMDU',
    'majorize', 'Penalty', 'external', 'ultrafast', 'ultrafast_restricted',
    'nnls_solve', 'Error', 'SingularMatrixError']
