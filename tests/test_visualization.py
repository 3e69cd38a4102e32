from pathlib import Path

import numpy as np
import pandas as pd
import pytest

import matplotlib.pyplot as plt

from stockassess.utils import plot_estimates, plot_fit_history, set_plot_style


def test_plot_fit_history(tmp_path: Path):
    history = {"objective": [3.1, 0.4, 0.0], "grad_norm": [2.5, 0.3, 0.0], "lr": [1.0] * 3}
    out = tmp_path / "history.png"

    plot_fit_history(history, save_path=out)

    assert out.exists()


def test_plot_fit_history_needs_iterations(tmp_path: Path):
    with pytest.raises(ValueError):
        plot_fit_history({"objective": [], "grad_norm": []}, save_path=tmp_path / "x.png")


def test_plot_estimates_with_missing_intervals(tmp_path: Path):
    summary = pd.DataFrame(
        {
            "estimate": [0.5, -1.0],
            "se": [0.1, np.nan],
            "lower": [0.3, np.nan],
            "upper": [0.7, np.nan],
            "gradient": [0.0, 0.0],
        },
        index=pd.Index(["log_q", "log_sigma"], name="parameter"),
    )
    out = tmp_path / "estimates.png"

    plot_estimates(summary, save_path=out)

    assert out.exists()


def test_plot_estimates_needs_rows(tmp_path: Path):
    empty = pd.DataFrame(columns=["estimate", "se", "lower", "upper", "gradient"])
    with pytest.raises(ValueError):
        plot_estimates(empty, save_path=tmp_path / "x.png")


def test_set_plot_style():
    set_plot_style()

    assert plt.rcParams["font.size"] == 11
    assert plt.rcParams["axes.facecolor"] == "white"
