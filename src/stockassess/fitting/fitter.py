"""
Fitting loop for objective functions.

This module provides a Fitter class that handles:
- Minimization with torch.optim (L-BFGS with line search, or Adam)
- Gradient clipping (Adam)
- Convergence checks on the objective and the gradient
- Progress logging
- Callbacks (early stopping, saving estimates)

The fitter is model-agnostic: it only needs an ObjectiveFunction, whose
branch is selected from the ``"model"`` data entry on every evaluation.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
import torch
from tqdm.auto import tqdm

from ..config import FitConfig
from ..objective import ObjectiveFunction
from .callbacks import Callback, EarlyStopping

logger = logging.getLogger(__name__)


@dataclass
class FitResult:
    """Outcome of ``Fitter.fit``."""

    model: str
    x: np.ndarray
    estimates: Dict[str, np.ndarray]
    objective: float
    gradient: np.ndarray
    iterations: int
    converged: bool
    message: str
    elapsed: float = 0.0
    history: Dict[str, List[float]] = field(default_factory=dict)

    @property
    def max_gradient(self) -> float:
        return float(np.max(np.abs(self.gradient))) if self.gradient.size else 0.0

    def history_frame(self) -> pd.DataFrame:
        frame = pd.DataFrame(self.history)
        frame.index = pd.RangeIndex(1, len(frame) + 1, name="iteration")
        return frame

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "objective": self.objective,
            "converged": self.converged,
            "message": self.message,
            "iterations": self.iterations,
            "max_gradient": self.max_gradient,
            "elapsed": self.elapsed,
            "estimates": {k: np.asarray(v).tolist() for k, v in self.estimates.items()},
        }


class Fitter:
    """
    Minimizes an ObjectiveFunction over its free parameter vector.

    Parameters
    ----------
    objective : ObjectiveFunction
        Objective to minimize
    config : FitConfig, optional
        Optimizer settings (defaults to FitConfig())
    callbacks : list of Callback, optional
        List of callback objects. EarlyStopping with ``config.patience``
        is added when none is given.

    Example
    -------
    >>> objective = ObjectiveFunction(data, parameters)
    >>> fitter = Fitter(objective, FitConfig(optimizer="lbfgs", max_iter=50))
    >>> result = fitter.fit()
    >>> result.estimates["log_q"]
    """

    def __init__(
        self,
        objective: ObjectiveFunction,
        config: Optional[FitConfig] = None,
        callbacks: Optional[List[Callback]] = None,
    ):
        self.objective = objective
        self.config = config or FitConfig()
        self.config.validate()
        self.callbacks = callbacks or []

        self.current_iter = 0
        self.history: Dict[str, List[float]] = {}

    def _build_optimizer(self, x: torch.Tensor) -> torch.optim.Optimizer:
        if self.config.optimizer == "lbfgs":
            return torch.optim.LBFGS(
                [x],
                lr=self.config.learning_rate,
                max_iter=20,
                history_size=self.config.history_size,
                tolerance_grad=self.config.grad_tol,
                tolerance_change=self.config.tolerance,
                line_search_fn="strong_wolfe",
            )
        return torch.optim.Adam([x], lr=self.config.learning_rate)

    def _fit_callbacks(self) -> List[Callback]:
        # Fresh early stopping per fit, driven by config.patience
        callbacks = list(self.callbacks)
        if not any(isinstance(cb, EarlyStopping) for cb in callbacks):
            callbacks.append(
                EarlyStopping(patience=self.config.patience, verbose=self.config.verbose)
            )
        return callbacks

    def fit(self, x0: Any = None) -> FitResult:
        """
        Minimize the objective starting from ``x0`` (initial values if None).

        Algorithm
        ---------
        For each iteration:
            1. Optimizer step (closure re-evaluates objective + gradient)
            2. Evaluate objective and gradient at the new point
            3. Store history, execute callbacks
            4. Stop on small gradient, small objective change,
               or a callback request

        Returns
        -------
        result : FitResult
        """
        start_time = time.time()
        x = self.objective.as_vector(x0).detach().clone().requires_grad_(True)
        self.history = {"objective": [], "grad_norm": [], "lr": []}

        if self.config.verbose:
            print(f"\n{'='*80}")
            print("FIT STARTED")
            print(f"{'='*80}")
            print(f"Model: {self.objective.identifier}")
            print(f"Free parameters: {self.objective.layout.size}")
            print(f"Optimizer: {self.config.optimizer}")
            print(f"Max iterations: {self.config.max_iter}")
            print(f"{'='*80}\n")

        value, grad = self.objective.fn_gr(x.detach())
        if self.objective.layout.size == 0:
            return self._result(x, value, grad, 0, True, "no free parameters", start_time)

        optimizer = self._build_optimizer(x)
        callbacks = self._fit_callbacks()

        def closure():
            optimizer.zero_grad()
            loss = self.objective(x)
            if loss.requires_grad:
                loss.backward()
            return loss

        converged = False
        message = "maximum iterations reached"
        iterations = 0

        pbar = tqdm(
            range(self.config.max_iter),
            desc="Fitting",
            leave=False,
            disable=not self.config.verbose,
        )
        for iteration in pbar:
            self.current_iter = iteration
            previous = value

            if self.config.optimizer == "lbfgs":
                optimizer.step(closure)
            else:
                closure()
                if self.config.grad_clip is not None:
                    torch.nn.utils.clip_grad_norm_([x], self.config.grad_clip)
                optimizer.step()

            value, grad = self.objective.fn_gr(x.detach())
            iterations = iteration + 1

            self.history["objective"].append(value)
            self.history["grad_norm"].append(float(np.linalg.norm(grad)))
            self.history["lr"].append(optimizer.param_groups[0]["lr"])

            for callback in callbacks:
                callback.on_iteration_end(
                    iteration=iteration,
                    value=value,
                    x=x,
                    objective=self.objective,
                    history=self.history,
                )

            pbar.set_postfix({"objective": value})

            if np.max(np.abs(grad)) <= self.config.grad_tol:
                converged, message = True, "gradient below tolerance"
                break
            change = abs(previous - value)
            if change <= self.config.tolerance * max(abs(previous), 1.0):
                converged, message = True, "relative objective change below tolerance"
                break
            if any(getattr(cb, "should_stop", False) for cb in callbacks):
                message = f"early stopping at iteration {iterations}"
                # Callback may have restored a better point
                value, grad = self.objective.fn_gr(x.detach())
                break

        return self._result(x, value, grad, iterations, converged, message, start_time)

    def _result(
        self,
        x: torch.Tensor,
        value: float,
        grad: np.ndarray,
        iterations: int,
        converged: bool,
        message: str,
        start_time: float,
    ) -> FitResult:
        estimates = {
            name: tensor.numpy() for name, tensor in self.objective.report(x).items()
        }
        result = FitResult(
            model=self.objective.identifier,
            x=x.detach().numpy().copy(),
            estimates=estimates,
            objective=value,
            gradient=grad,
            iterations=iterations,
            converged=converged,
            message=message,
            elapsed=time.time() - start_time,
            history={k: list(v) for k, v in self.history.items()},
        )

        if self.config.verbose:
            print(f"\n{'='*80}")
            print("FIT COMPLETED")
            print(f"{'='*80}")
            print(f"Iterations: {result.iterations}")
            print(f"Objective: {result.objective:.6f}")
            print(f"Max |gradient|: {result.max_gradient:.2e}")
            print(f"Converged: {result.converged} ({result.message})")
            print(f"{'='*80}\n")

        logger.info(
            "Fit of %s finished after %d iteration(s): objective=%.6f converged=%s (%s)",
            result.model,
            result.iterations,
            result.objective,
            result.converged,
            result.message,
        )
        return result
