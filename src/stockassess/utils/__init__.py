"""Utility functions."""

from .visualization import (
    plot_fit_history,
    plot_estimates,
    set_plot_style,
)

__all__ = [
    "plot_fit_history",
    "plot_estimates",
    "set_plot_style",
]
