from __future__ import annotations

import json
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

OPTIMIZERS = ("lbfgs", "adam")

# Default step size per optimizer
DEFAULT_LEARNING_RATES = {"lbfgs": 1.0, "adam": 1e-2}


@dataclass(frozen=True)
class RunConfig:
    input_path: Path
    output_dir: Path = Path("outputs")

    # Overrides data["model"] when set
    model: Optional[str] = None

    fragments: Dict[str, str] = field(default_factory=dict)
    fixed: tuple[str, ...] = ()
    fit: Dict[str, Any] = field(default_factory=dict)

    log_level: str = "INFO"
    random_seed: int = 42
    plot: bool = True


def as_tuple(values: Iterable[str]) -> tuple[str, ...]:
    return tuple(str(v).strip() for v in values if str(v).strip())


def load_run_config(path: Path | str) -> RunConfig:
    """Read a ``RunConfig`` from JSON. Relative paths resolve against the file."""
    path = Path(path)
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"{path}: expected a JSON object")

    known = set(RunConfig.__dataclass_fields__)
    unknown = sorted(set(payload) - known)
    if unknown:
        raise ValueError(f"{path}: unknown config keys {unknown}")
    if "input_path" not in payload:
        raise ValueError(f"{path}: 'input_path' is required")

    model = payload.get("model")
    if model is not None and not isinstance(model, str):
        raise ValueError(f"{path}: 'model' must be a string")
    fixed = payload.get("fixed", [])
    if not isinstance(fixed, list):
        raise ValueError(f"{path}: 'fixed' must be a list of names")
    for key in ("fragments", "fit"):
        if not isinstance(payload.get(key, {}), dict):
            raise ValueError(f"{path}: {key!r} must be a JSON object")

    base = path.resolve().parent
    input_path = Path(payload["input_path"])
    output_dir = Path(payload.get("output_dir", "outputs"))

    return RunConfig(
        input_path=input_path if input_path.is_absolute() else base / input_path,
        output_dir=output_dir if output_dir.is_absolute() else base / output_dir,
        model=model,
        fragments=dict(payload.get("fragments", {})),
        fixed=as_tuple(fixed),
        fit=dict(payload.get("fit", {})),
        log_level=str(payload.get("log_level", "INFO")),
        random_seed=int(payload.get("random_seed", 42)),
        plot=bool(payload.get("plot", True)),
    )


class FitConfig:
    """
    Configuration container for the fitting driver.
    """

    def __init__(
        self,
        optimizer: str = "lbfgs",
        learning_rate: Optional[float] = None,
        max_iter: int = 100,
        tolerance: float = 1e-10,
        grad_tol: float = 1e-6,
        grad_clip: Optional[float] = None,
        patience: int = 10,
        history_size: int = 10,
        verbose: bool = True,
    ):
        """
        Parameters
        ----------
        optimizer : str
            "lbfgs" (line search, default) or "adam"
        learning_rate : float, optional
            Step size; 1.0 for L-BFGS and 1e-2 for Adam when omitted
        max_iter : int
            Maximum outer iterations
        tolerance : float
            Relative objective change below which the fit has converged
        grad_tol : float
            Max absolute gradient below which the fit has converged
        grad_clip : float, optional
            Global gradient norm clip (Adam only)
        patience : int
            Iterations without improvement before early stopping
        history_size : int
            L-BFGS memory
        verbose : bool
            Print banners and show a progress bar
        """
        self.optimizer = optimizer
        self.learning_rate = (
            learning_rate
            if learning_rate is not None
            else DEFAULT_LEARNING_RATES.get(optimizer, 1.0)
        )
        self.max_iter = max_iter
        self.tolerance = tolerance
        self.grad_tol = grad_tol
        self.grad_clip = grad_clip
        self.patience = patience
        self.history_size = history_size
        self.verbose = verbose

    def to_dict(self) -> Dict:
        """Convert config to dictionary for logging."""
        return {k: v for k, v in self.__dict__.items()}

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "FitConfig":
        try:
            config = cls(**values)
        except TypeError as exc:
            raise ValueError(f"Invalid fit options: {exc}") from exc
        config.validate()
        return config

    def validate(self):
        """Validate configuration parameters."""
        if self.optimizer not in OPTIMIZERS:
            raise ValueError(
                f"Unknown optimizer: {self.optimizer}. Choose one of {OPTIMIZERS}"
            )
        if self.learning_rate <= 0:
            raise ValueError("learning_rate must be positive")
        if self.max_iter <= 0:
            raise ValueError("max_iter must be positive")
        if self.tolerance < 0:
            raise ValueError("tolerance must be non-negative")
        if self.grad_tol < 0:
            raise ValueError("grad_tol must be non-negative")
        if self.grad_clip is not None and self.grad_clip <= 0:
            raise ValueError("grad_clip must be positive")
        if self.patience <= 0:
            raise ValueError("patience must be positive")
        if self.history_size <= 0:
            raise ValueError("history_size must be positive")

        if self.grad_clip is not None and self.optimizer == "lbfgs":
            warnings.warn("grad_clip is ignored by the lbfgs optimizer")
