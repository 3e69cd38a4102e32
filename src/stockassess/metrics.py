from __future__ import annotations

import warnings
from typing import TYPE_CHECKING, Sequence

import numpy as np
import pandas as pd
from scipy.stats import norm

if TYPE_CHECKING:
    from .fitting import FitResult
    from .objective import ObjectiveFunction


def max_abs_gradient(gradient: np.ndarray) -> float:
    """Largest absolute gradient component (0 for an empty gradient)."""
    gradient = np.asarray(gradient, dtype=float)
    return float(np.max(np.abs(gradient))) if gradient.size else 0.0


def is_positive_definite(hessian: np.ndarray) -> bool:
    """True if the Hessian admits a Cholesky factorization."""
    hessian = np.asarray(hessian, dtype=float)
    if hessian.ndim != 2 or hessian.shape[0] != hessian.shape[1]:
        raise ValueError("hessian must be a square 2D array")
    if hessian.size == 0:
        return True
    try:
        np.linalg.cholesky(hessian)
    except np.linalg.LinAlgError:
        return False
    return True


def standard_errors(hessian: np.ndarray) -> np.ndarray:
    """Square roots of the diagonal of the inverse Hessian.

    Parameters
    ----------
    hessian:
        Hessian of the negative log-likelihood at the estimate.

    Returns
    -------
    np.ndarray
        Standard errors, all NaN when the Hessian is not positive definite.
    """
    hessian = np.asarray(hessian, dtype=float)
    if hessian.size == 0:
        return np.zeros(0)
    if not is_positive_definite(hessian):
        warnings.warn("Hessian is not positive definite; standard errors are NaN")
        return np.full(hessian.shape[0], np.nan)
    covariance = np.linalg.inv(hessian)
    return np.sqrt(np.diag(covariance))


def wald_intervals(
    estimates: np.ndarray, se: np.ndarray, level: float = 0.95
) -> tuple[np.ndarray, np.ndarray]:
    """Normal-approximation confidence intervals ``estimate ± z * se``."""
    if not 0 < level < 1:
        raise ValueError("level must be in (0, 1)")
    estimates = np.asarray(estimates, dtype=float)
    se = np.asarray(se, dtype=float)
    z = norm.ppf(0.5 + level / 2.0)
    return estimates - z * se, estimates + z * se


def summarize_fit(
    objective: "ObjectiveFunction",
    result: "FitResult",
    level: float = 0.95,
    labels: Sequence[str] | None = None,
) -> pd.DataFrame:
    """Estimate, standard error and Wald interval per free parameter element."""
    labels = list(labels) if labels is not None else objective.layout.labels()
    hessian = objective.he(result.x)
    se = standard_errors(hessian)
    lower, upper = wald_intervals(result.x, se, level)
    return pd.DataFrame(
        {
            "estimate": result.x,
            "se": se,
            "lower": lower,
            "upper": upper,
            "gradient": result.gradient,
        },
        index=pd.Index(labels, name="parameter"),
    )
