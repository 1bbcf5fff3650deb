"""Linear solves shared by the tangency solver and the alpha/beta regression."""

import logging
import warnings

import numpy as np
from scipy import linalg

from portfolio_optimizer.config import REGULARIZATION

logger = logging.getLogger(__name__)


def solve_with_regularization(
    a: np.ndarray,
    b: np.ndarray,
    ridge: float = REGULARIZATION
) -> np.ndarray:
    """
    Solve ``a x = b``, retrying once with ``a + ridge * I`` on singularity.

    The first attempt treats an ill-conditioned matrix (scipy's LinAlgWarning)
    or a non-finite solution the same as an exactly singular one. The
    regularised retry is final: if it fails too, the LinAlgError propagates.
    NaN/Inf in the inputs yields an all-NaN solution.

    Args:
        a: Square coefficient matrix
        b: Right-hand side vector
        ridge: Diagonal damping term for the retry

    Returns:
        Solution vector x

    Raises:
        numpy.linalg.LinAlgError: If the regularised system is still singular
    """
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    if not (np.all(np.isfinite(a)) and np.all(np.isfinite(b))):
        return np.full(b.shape, np.nan)

    try:
        with warnings.catch_warnings():
            warnings.simplefilter('error', linalg.LinAlgWarning)
            x = linalg.solve(a, b)
        if not np.all(np.isfinite(x)):
            raise linalg.LinAlgError("Solution is not finite")
        return x
    except (linalg.LinAlgError, linalg.LinAlgWarning) as e:
        logger.debug(f"Singular system ({e}); retrying with ridge={ridge}")

    regularized = a + np.eye(a.shape[0]) * ridge
    x = linalg.solve(regularized, b)
    if not np.all(np.isfinite(x)):
        raise linalg.LinAlgError("Regularized system has no finite solution")
    return x
