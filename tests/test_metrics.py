import numpy as np
import pytest

from stockassess.config import FitConfig
from stockassess.fitting import Fitter
from stockassess.metrics import (
    is_positive_definite,
    max_abs_gradient,
    standard_errors,
    summarize_fit,
    wald_intervals,
)
from stockassess.objective import ObjectiveFunction


def test_max_abs_gradient():
    assert max_abs_gradient([0.1, -0.3, 0.2]) == pytest.approx(0.3)
    assert max_abs_gradient([]) == 0.0


def test_positive_definite():
    assert is_positive_definite(np.diag([2.0, 1.0]))
    assert not is_positive_definite(np.array([[1.0, 2.0], [2.0, 1.0]]))
    assert is_positive_definite(np.zeros((0, 0)))
    with pytest.raises(ValueError):
        is_positive_definite(np.ones(3))


def test_standard_errors():
    np.testing.assert_allclose(standard_errors(np.diag([4.0, 1.0])), [0.5, 1.0])


def test_standard_errors_singular_hessian():
    with pytest.warns(UserWarning, match="not positive definite"):
        se = standard_errors(np.zeros((2, 2)))
    assert np.isnan(se).all()


def test_wald_intervals():
    lower, upper = wald_intervals(np.array([0.0, 1.0]), np.array([1.0, 0.5]), level=0.95)
    np.testing.assert_allclose(lower, [-1.959964, 1.0 - 0.979982], atol=1e-5)
    np.testing.assert_allclose(upper, [1.959964, 1.0 + 0.979982], atol=1e-5)

    with pytest.raises(ValueError):
        wald_intervals(np.zeros(1), np.ones(1), level=1.5)


def test_summarize_fit(quadratic_registry, quadratic_data, quadratic_parameters):
    objective = ObjectiveFunction(quadratic_data, quadratic_parameters, registry=quadratic_registry)
    result = Fitter(objective, FitConfig(verbose=False)).fit()

    summary = summarize_fit(objective, result)

    assert list(summary.index) == ["theta[0]", "theta[1]"]
    assert list(summary.columns) == ["estimate", "se", "lower", "upper", "gradient"]
    np.testing.assert_allclose(summary["estimate"], [1.5, -2.0], atol=1e-6)
    # Hessian of 0.5 * sum((theta - target)**2) is the identity
    np.testing.assert_allclose(summary["se"], [1.0, 1.0])
    assert (summary["lower"] < summary["estimate"]).all()
    assert (summary["upper"] > summary["estimate"]).all()
