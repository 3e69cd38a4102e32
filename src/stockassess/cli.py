"""
Command line entry point.

    stockassess run CONFIG.json        fit a model, write outputs
    stockassess evaluate INPUT.json    print the objective at the initial values

INPUT files are JSON objects ``{"data": {...}, "parameters": {...}}`` where
``data["model"]`` names the model ("DD" or "DD_SS").
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import torch

from .config import FitConfig, RunConfig, load_run_config
from .errors import StockAssessError, UnrecognizedModelError
from .logging_config import setup_logging
from .models import ModelRegistry, default_registry, load_fragment
from .objective import ObjectiveFunction
from .selector import parse_model_name

logger = logging.getLogger(__name__)


def load_inputs(path: Path | str) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Read ``(data, parameters)`` from a JSON input file."""
    path = Path(path)
    if not path.exists():
        raise SystemExit(f"Input file not found: {path}")
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict) or not isinstance(payload.get("data"), dict):
        raise SystemExit(f"{path}: expected an object with a 'data' object")
    parameters = payload.get("parameters", {})
    if not isinstance(parameters, dict):
        raise SystemExit(f"{path}: 'parameters' must be an object")
    return payload["data"], parameters


def build_registry(fragments: Mapping[str, str]) -> ModelRegistry:
    """Fresh default registry with the given fragments included."""
    registry = default_registry()
    for identifier, fragment_path in fragments.items():
        registry.include(identifier, load_fragment(fragment_path))
    return registry


def _parse_fragment_args(values: Sequence[str]) -> Dict[str, str]:
    fragments = {}
    for value in values:
        identifier, sep, path = value.partition("=")
        if not sep or not path:
            raise SystemExit(f"--fragment expects NAME=package.module:callable, got {value!r}")
        fragments[identifier] = path
    return fragments


def run(config: RunConfig, verbose: bool = True) -> Dict[str, Path]:
    """Fit the configured model and write its outputs. Returns written paths."""
    from .fitting import Fitter
    from .metrics import summarize_fit

    torch.manual_seed(config.random_seed)

    data, parameters = load_inputs(config.input_path)
    if config.model is not None:
        data["model"] = parse_model_name(config.model).value

    registry = build_registry(config.fragments)
    objective = ObjectiveFunction(data, parameters, registry=registry, fixed=config.fixed)

    fit_options = dict(config.fit)
    fit_options.setdefault("verbose", verbose)
    fitter = Fitter(objective, FitConfig.from_dict(fit_options))
    result = fitter.fit()

    output_dir = Path(config.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    written = {}

    written["estimates"] = output_dir / "estimates.json"
    written["estimates"].write_text(json.dumps(result.to_dict(), indent=2), encoding="utf-8")

    summary = summarize_fit(objective, result)
    written["summary"] = output_dir / "summary.csv"
    summary.to_csv(written["summary"])

    written["history"] = output_dir / "history.csv"
    result.history_frame().to_csv(written["history"])

    if config.plot and result.history.get("objective"):
        import matplotlib

        matplotlib.use("Agg")
        from .utils.visualization import plot_estimates, plot_fit_history, set_plot_style

        set_plot_style()
        written["history_plot"] = output_dir / "history.png"
        plot_fit_history(result.history, save_path=written["history_plot"])
        if not summary.empty:
            written["estimates_plot"] = output_dir / "estimates.png"
            plot_estimates(summary, save_path=written["estimates_plot"])

    logger.info("Outputs written to %s", output_dir)
    return written


def evaluate(input_path: Path, fragments: Mapping[str, str], model: Optional[str] = None) -> float:
    data, parameters = load_inputs(input_path)
    if model is not None:
        data["model"] = parse_model_name(model).value
    objective = ObjectiveFunction(data, parameters, registry=build_registry(fragments))
    return objective.fn()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stockassess",
        description="Fit delay-difference stock assessment models.",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default: from config or INFO).")
    parser.add_argument("--log-file", default=None, help="Optional: also write logs to this file.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Fit a model described by a JSON run config.")
    run_parser.add_argument("config", type=Path, help="Run config (JSON).")
    run_parser.add_argument("--no-plot", action="store_true", help="Skip figures.")
    run_parser.add_argument("--quiet", action="store_true", help="No banners or progress bar.")

    eval_parser = subparsers.add_parser("evaluate", help="Print the objective at the initial parameters.")
    eval_parser.add_argument("input", type=Path, help="Input file (JSON with 'data' and 'parameters').")
    eval_parser.add_argument("--model", default=None, help="Override data['model'] (DD or DD_SS).")
    eval_parser.add_argument(
        "--fragment",
        action="append",
        default=[],
        metavar="NAME=MODULE:CALLABLE",
        help="Include a model-definition fragment (repeatable).",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == "run":
            config = load_run_config(args.config)
            setup_logging(args.log_level or config.log_level, args.log_file)
            if args.no_plot:
                config = replace(config, plot=False)
            written = run(config, verbose=not args.quiet)
            for name, path in written.items():
                print(f"{name}: {path}")
        else:
            setup_logging(args.log_level or "WARNING", args.log_file)
            fragments = _parse_fragment_args(args.fragment)
            print(f"{evaluate(args.input, fragments, args.model):.10g}")
    except UnrecognizedModelError as exc:
        print(f"error: unrecognized model identifier: {exc}", file=sys.stderr)
        return 2
    except (StockAssessError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0
