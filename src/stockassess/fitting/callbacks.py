"""
Callback system for the fitting loop.

Callbacks are objects that execute custom logic at the end of every
optimizer iteration. They enable:
- Early stopping (stop when the objective stops improving)
- Saving the best estimates found so far
- Custom logging

All callbacks inherit from the base Callback class and implement
on_iteration_end().
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Optional

import numpy as np
import torch

if TYPE_CHECKING:
    from ..objective import ObjectiveFunction


class Callback:
    """Base class for fitting callbacks."""

    def on_iteration_end(
        self,
        iteration: int,
        value: float,
        x: torch.Tensor,
        objective: "ObjectiveFunction",
        history: Dict,
    ):
        """Called at the end of each iteration."""
        pass


class EarlyStopping(Callback):
    """
    Stop fitting when the objective stops improving.

    Algorithm
    ---------
    If the objective hasn't decreased by more than `min_delta` for
    `patience` iterations:
        → Stop fitting (set `should_stop = True`)

    Parameters
    ----------
    patience : int, default=10
        Iterations with no improvement before stopping
    min_delta : float, default=1e-8
        Minimum decrease to qualify as improvement
    restore_best : bool, default=True
        Copy the best vector back into `x` when stopping
    verbose : bool, default=True
        Print when stopping

    Example
    -------
    >>> early_stop = EarlyStopping(patience=5, min_delta=1e-6)
    >>> fitter = Fitter(objective, callbacks=[early_stop])
    """

    def __init__(
        self,
        patience: int = 10,
        min_delta: float = 1e-8,
        restore_best: bool = True,
        verbose: bool = True,
    ):
        self.patience = patience
        self.min_delta = min_delta
        self.restore_best = restore_best
        self.verbose = verbose

        self.best_value = float("inf")
        self.best_x: Optional[torch.Tensor] = None
        self.best_iteration = -1
        self.wait = 0
        self.should_stop = False

    def on_iteration_end(
        self,
        iteration: int,
        value: float,
        x: torch.Tensor,
        objective: "ObjectiveFunction",
        history: Dict,
    ):
        """Check if fitting should stop."""
        if (self.best_value - value) > self.min_delta:
            self.best_value = value
            self.best_iteration = iteration
            self.best_x = x.detach().clone()
            self.wait = 0
            return

        self.wait += 1
        if self.wait < self.patience:
            return

        self.should_stop = True
        if self.verbose:
            print(f"\n⚠️  Early stopping: no improvement for {self.patience} iterations")
            print(f"    Best objective: {self.best_value:.6f}")

        if self.restore_best and self.best_x is not None:
            with torch.no_grad():
                x.copy_(self.best_x)
            if self.verbose:
                print(f"    Restored best estimates (iteration {self.best_iteration + 1})")


class EstimateCheckpoint(Callback):
    """
    Save the best estimates and the fit history during fitting.

    Saved Files
    -----------
    best_estimates.json: Named parameter values at the lowest objective
    fit_history.json: Full fit history

    Parameters
    ----------
    save_dir : Path
        Directory to save files
    verbose : bool, default=False
        Print when saving
    """

    def __init__(self, save_dir: Path, verbose: bool = False):
        self.save_dir = Path(save_dir)
        self.save_dir.mkdir(parents=True, exist_ok=True)
        self.verbose = verbose

        self.best_value = float("inf")
        self.best_iteration = -1

    def on_iteration_end(
        self,
        iteration: int,
        value: float,
        x: torch.Tensor,
        objective: "ObjectiveFunction",
        history: Dict,
    ):
        """Write files if the objective improved."""
        if value < self.best_value:
            self.best_value = value
            self.best_iteration = iteration
            estimates = {
                name: tensor.tolist() for name, tensor in objective.report(x).items()
            }
            payload = {
                "model": objective.identifier,
                "iteration": iteration,
                "objective": value,
                "estimates": estimates,
            }
            best_path = self.save_dir / "best_estimates.json"
            with open(best_path, "w") as f:
                json.dump(payload, f, indent=2)
            if self.verbose:
                print(f"✓ Saved best estimates: objective={value:.6f} (iteration {iteration+1})")

        history_path = self.save_dir / "fit_history.json"
        with open(history_path, "w") as f:
            serializable_history = {
                key: [None if np.isnan(v) else float(v) for v in values]
                for key, values in history.items()
            }
            json.dump(serializable_history, f, indent=2)
