"""
SciPy-compatible API for lrnufft plans.

this module exposes NUFFT plans through scipy.sparse.linalg.LinearOperator,
so they can be handed directly to SciPy's iterative solvers (cg, lsqr, gmres)
to invert a nonuniform transform.
"""

import numpy as np
from scipy.sparse.linalg import LinearOperator

from .errors import InvalidArgument


def aslinearoperator(plan) -> LinearOperator:
    """
    Wrap a NUFFT plan as a SciPy LinearOperator.

    Parameters
    ----------
    plan : NUFFT1Plan or NUFFT2Plan
        A built plan.

    Returns
    -------
    op : LinearOperator
        Operator of shape (N, N) and dtype complex128 whose matvec applies
        the plan and whose rmatvec applies its conjugate transpose.
    """
    if not (hasattr(plan, "apply") and hasattr(plan, "apply_adjoint")):
        raise InvalidArgument(f"expected a NUFFT plan, got {type(plan).__name__}")

    def matvec(c):
        return plan.apply(np.ravel(c))

    def rmatvec(d):
        return plan.apply_adjoint(np.ravel(d))

    return LinearOperator(shape=plan.shape, matvec=matvec, rmatvec=rmatvec,
                          dtype=np.complex128)
