"""
Visualization utilities for model fitting.

This module provides plotting functions for:
- Fit history (objective and gradient norm over iterations)
- Parameter estimates with confidence intervals
"""

import matplotlib.pyplot as plt
import seaborn as sns
import numpy as np
import pandas as pd
from pathlib import Path
from typing import Dict, List, Optional, Tuple


def plot_fit_history(
    history: Dict[str, List[float]],
    save_path: Optional[Path] = None,
    figsize: Tuple[int, int] = (12, 5),
):
    """
    Plot objective value and gradient norm over iterations.

    Creates a 1×2 subplot grid:
    - Left: Objective value
    - Right: Gradient norm (log scale)

    Parameters
    ----------
    history : dict
        Fit history from Fitter.fit() (FitResult.history)
        Expected keys: 'objective', 'grad_norm'
    save_path : Path, optional
        Path to save figure
    figsize : tuple, default=(12, 5)
        Figure size

    Example
    -------
    >>> result = fitter.fit()
    >>> plot_fit_history(result.history, save_path='outputs/history.png')
    """
    if not history.get("objective"):
        raise ValueError("history has no iterations to plot")

    fig, axes = plt.subplots(1, 2, figsize=figsize)
    iterations = np.arange(1, len(history["objective"]) + 1)

    # PLOT 1: Objective
    ax = axes[0]
    ax.plot(iterations, history["objective"], marker="o", markersize=3, alpha=0.8)
    best = int(np.argmin(history["objective"]))
    ax.scatter(
        [iterations[best]],
        [history["objective"][best]],
        color="red",
        s=100,
        zorder=5,
        marker="*",
        label=f"Best (iteration {iterations[best]})",
    )
    ax.set_xlabel("Iteration", fontweight="bold")
    ax.set_ylabel("Objective", fontweight="bold")
    ax.set_title("Objective Value", fontweight="bold", fontsize=14)
    ax.legend()
    ax.grid(alpha=0.3)

    # PLOT 2: Gradient norm
    ax = axes[1]
    grad_norm = np.asarray(history.get("grad_norm", []), dtype=float)
    if grad_norm.size:
        # Log scale cannot show exact zeros
        ax.plot(
            iterations[: grad_norm.size],
            np.clip(grad_norm, 1e-16, None),
            color="purple",
            marker="o",
            markersize=3,
        )
        ax.set_yscale("log")
    ax.set_xlabel("Iteration", fontweight="bold")
    ax.set_ylabel("‖gradient‖", fontweight="bold")
    ax.set_title("Gradient Norm", fontweight="bold", fontsize=14)
    ax.grid(alpha=0.3)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches="tight")
        print(f"✓ Saved fit history plot: {save_path}")
    else:
        plt.show()

    plt.close(fig)


def plot_estimates(
    summary: pd.DataFrame,
    save_path: Optional[Path] = None,
    figsize: Tuple[int, int] = (8, 6),
):
    """
    Plot parameter estimates with their confidence intervals.

    Parameters
    ----------
    summary : pd.DataFrame
        Output of metrics.summarize_fit (columns 'estimate', 'lower', 'upper')
    save_path : Path, optional
        Path to save figure
    figsize : tuple, default=(8, 6)
        Figure size
    """
    if summary.empty:
        raise ValueError("summary has no parameters to plot")

    fig, ax = plt.subplots(figsize=figsize)
    positions = np.arange(len(summary))
    colors = sns.color_palette("viridis", len(summary))

    estimate = summary["estimate"].to_numpy(dtype=float)
    lower = summary["lower"].to_numpy(dtype=float)
    upper = summary["upper"].to_numpy(dtype=float)
    # NaN intervals (singular Hessian) are drawn without error bars
    xerr = np.vstack(
        [np.nan_to_num(estimate - lower), np.nan_to_num(upper - estimate)]
    )

    ax.errorbar(
        estimate,
        positions,
        xerr=xerr,
        fmt="none",
        ecolor="black",
        capsize=4,
        alpha=0.7,
    )
    ax.scatter(estimate, positions, c=colors, s=60, zorder=5, edgecolor="black")
    ax.set_yticks(positions)
    ax.set_yticklabels([str(label) for label in summary.index])
    ax.axvline(0, color="black", linestyle="--", alpha=0.3)
    ax.set_xlabel("Estimate", fontweight="bold")
    ax.set_title("Parameter Estimates", fontweight="bold", fontsize=14)
    ax.invert_yaxis()
    ax.grid(axis="x", alpha=0.3)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches="tight")
        print(f"✓ Saved estimates plot: {save_path}")
    else:
        plt.show()

    plt.close(fig)


def set_plot_style():
    """Set consistent matplotlib style for all plots."""
    plt.style.use("seaborn-v0_8-darkgrid")
    sns.set_palette("husl")
    plt.rcParams["figure.facecolor"] = "white"
    plt.rcParams["axes.facecolor"] = "white"
    plt.rcParams["font.size"] = 11
    plt.rcParams["axes.labelsize"] = 12
    plt.rcParams["axes.titlesize"] = 13
