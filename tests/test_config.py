import json
import logging
from pathlib import Path

import pytest

from stockassess.config import FitConfig, RunConfig, as_tuple, load_run_config
from stockassess.logging_config import setup_logging


def _write(path: Path, payload) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_load_run_config_resolves_paths(tmp_path: Path):
    config_path = _write(
        tmp_path / "run.json",
        {
            "input_path": "inputs.json",
            "output_dir": "out",
            "model": "DD_SS",
            "fragments": {"DD_SS": "sample_fragments:quadratic_nll"},
            "fixed": ["log_sigma", " "],
            "fit": {"max_iter": 5},
            "random_seed": 7,
            "plot": False,
        },
    )

    config = load_run_config(config_path)

    assert isinstance(config, RunConfig)
    assert config.input_path == tmp_path.resolve() / "inputs.json"
    assert config.output_dir == tmp_path.resolve() / "out"
    assert config.model == "DD_SS"
    assert config.fragments == {"DD_SS": "sample_fragments:quadratic_nll"}
    assert config.fixed == ("log_sigma",)
    assert config.fit == {"max_iter": 5}
    assert config.random_seed == 7
    assert config.plot is False


def test_defaults(tmp_path: Path):
    config = load_run_config(_write(tmp_path / "run.json", {"input_path": "/data/in.json"}))

    assert config.input_path == Path("/data/in.json")
    assert config.model is None
    assert config.fixed == ()
    assert config.log_level == "INFO"


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {},
        {"input_path": "in.json", "modle": "DD"},
        {"input_path": "in.json", "model": 1},
        {"input_path": "in.json", "fixed": "log_q"},
        {"input_path": "in.json", "fragments": ["sample_fragments:quadratic_nll"]},
        {"input_path": "in.json", "fit": 5},
    ],
)
def test_invalid_run_configs(tmp_path: Path, payload):
    with pytest.raises(ValueError):
        load_run_config(_write(tmp_path / "run.json", payload))


def test_as_tuple():
    assert as_tuple(["a", " b ", "", "  "]) == ("a", "b")


class TestFitConfig:
    def test_default_learning_rates(self):
        assert FitConfig().learning_rate == 1.0
        assert FitConfig(optimizer="adam").learning_rate == 1e-2
        assert FitConfig(optimizer="adam", learning_rate=0.3).learning_rate == 0.3

    def test_to_dict(self):
        values = FitConfig(max_iter=7).to_dict()
        assert values["max_iter"] == 7
        assert values["optimizer"] == "lbfgs"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"optimizer": "sgd"},
            {"learning_rate": -1.0},
            {"max_iter": 0},
            {"tolerance": -1.0},
            {"grad_tol": -1.0},
            {"optimizer": "adam", "grad_clip": 0.0},
            {"patience": 0},
            {"history_size": 0},
        ],
    )
    def test_validate(self, kwargs):
        with pytest.raises(ValueError):
            FitConfig(**kwargs).validate()

    def test_from_dict_rejects_unknown_options(self):
        with pytest.raises(ValueError, match="Invalid fit options"):
            FitConfig.from_dict({"epochs": 3})

    def test_grad_clip_with_lbfgs_warns(self):
        with pytest.warns(UserWarning):
            FitConfig(grad_clip=1.0).validate()


class TestLogging:
    def test_setup_is_idempotent(self, tmp_path: Path):
        log_file = tmp_path / "run.log"
        setup_logging(logging.DEBUG, str(log_file))
        logger = setup_logging("debug", str(log_file))

        assert logger.name == "stockassess"
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 2

        logging.getLogger("stockassess.selector").debug("selected DD")
        for handler in logger.handlers:
            handler.flush()
        assert "selected DD" in log_file.read_text(encoding="utf-8")

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            setup_logging("LOUD")
