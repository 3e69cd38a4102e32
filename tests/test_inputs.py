import numpy as np
import pytest
import torch

from stockassess.errors import InputTypeError, MissingInputError
from stockassess.inputs import ModelInputs, ParameterLayout


@pytest.fixture
def inputs():
    data = {
        "model": "DD",
        "ny": 3,
        "k": np.int64(2),
        "S0": 0.85,
        "C_hist": [10.0, 12.0, 9.5],
        "I_hist": np.array([1.0, 0.9, 0.8]),
        "wt": [[0.1, 0.2], [0.3, 0.4]],
        "flag": True,
    }
    parameters = {"log_q": 0.5, "log_rec_dev": [0.0, 0.1, -0.1]}
    return ModelInputs(data, parameters)


class TestDataAccess:
    def test_string(self, inputs):
        assert inputs.data_string("model") == "DD"

    def test_string_rejects_numbers(self, inputs):
        with pytest.raises(InputTypeError):
            inputs.data_string("S0")

    def test_missing_entry(self, inputs):
        with pytest.raises(MissingInputError, match="'E_hist'"):
            inputs.data_vector("E_hist")

    def test_missing_entry_is_a_key_error(self, inputs):
        with pytest.raises(KeyError):
            inputs.data_string("nothing")

    def test_scalar(self, inputs):
        value = inputs.data_scalar("S0")
        assert value.shape == torch.Size([])
        assert value.dtype == torch.float64
        assert value.item() == pytest.approx(0.85)

    def test_scalar_rejects_vectors(self, inputs):
        with pytest.raises(InputTypeError):
            inputs.data_scalar("C_hist")

    def test_integer(self, inputs):
        assert inputs.data_integer("ny") == 3
        assert inputs.data_integer("k") == 2

    @pytest.mark.parametrize("name", ["S0", "flag", "model"])
    def test_integer_rejects_other_kinds(self, inputs, name):
        with pytest.raises(InputTypeError):
            inputs.data_integer(name)

    def test_vector(self, inputs):
        catch = inputs.data_vector("C_hist")
        assert catch.tolist() == [10.0, 12.0, 9.5]
        assert inputs.data_vector("I_hist").dtype == torch.float64

    def test_vector_rejects_matrix(self, inputs):
        with pytest.raises(InputTypeError):
            inputs.data_vector("wt")

    def test_matrix(self, inputs):
        assert inputs.data_matrix("wt").shape == torch.Size([2, 2])

    def test_numeric_accessors_reject_strings(self, inputs):
        with pytest.raises(InputTypeError):
            inputs.data_vector("model")

    def test_ragged_data_rejected(self):
        with pytest.raises(InputTypeError):
            ModelInputs({"bad": [[1.0], [1.0, 2.0]]}).data_matrix("bad")

    def test_zero(self, inputs):
        zero = inputs.zero()
        assert zero.item() == 0.0
        assert zero.dtype == torch.float64

    def test_float32(self):
        inputs = ModelInputs({"x": [1.0]}, dtype=torch.float32)
        assert inputs.data_vector("x").dtype == torch.float32
        assert inputs.zero().dtype == torch.float32


class TestParameterAccess:
    def test_scalar_parameter(self, inputs):
        assert inputs.parameter("log_q").item() == pytest.approx(0.5)

    def test_vector_parameter(self, inputs):
        assert inputs.parameter_vector("log_rec_dev").shape == torch.Size([3])

    def test_wrong_shapes(self, inputs):
        with pytest.raises(InputTypeError):
            inputs.parameter("log_rec_dev")
        with pytest.raises(InputTypeError):
            inputs.parameter_vector("log_q")

    def test_missing_parameter(self, inputs):
        with pytest.raises(MissingInputError):
            inputs.parameter("log_sigma")

    def test_parameter_keeps_graph(self):
        theta = torch.tensor([1.0, 2.0], dtype=torch.float64, requires_grad=True)
        inputs = ModelInputs({}, {"theta": theta})
        value = (inputs.parameter_vector("theta") ** 2).sum()
        value.backward()
        assert theta.grad.tolist() == [2.0, 4.0]

    def test_names(self, inputs):
        assert "model" in inputs.data_names
        assert inputs.parameter_names == ("log_q", "log_rec_dev")


class TestParameterLayout:
    @pytest.fixture
    def layout(self):
        return ParameterLayout(
            {"log_q": 0.5, "log_rec_dev": [0.0, 0.1, -0.1], "log_sigma": -1.0},
            fixed=["log_sigma"],
        )

    def test_free_vector(self, layout):
        assert layout.free_names == ["log_q", "log_rec_dev"]
        assert layout.size == 4
        assert layout.initial_vector().tolist() == pytest.approx([0.5, 0.0, 0.1, -0.1])

    def test_unflatten_restores_shapes_and_fixed(self, layout):
        values = layout.unflatten(torch.tensor([1.0, 2.0, 3.0, 4.0], dtype=torch.float64))

        assert values["log_q"].shape == torch.Size([])
        assert values["log_q"].item() == 1.0
        assert values["log_rec_dev"].tolist() == [2.0, 3.0, 4.0]
        assert values["log_sigma"].item() == -1.0

    def test_unflatten_rejects_wrong_length(self, layout):
        with pytest.raises(InputTypeError):
            layout.unflatten(torch.zeros(3, dtype=torch.float64))

    def test_flatten_rejects_wrong_shape(self, layout):
        with pytest.raises(InputTypeError):
            layout.flatten({"log_q": 0.0, "log_rec_dev": [0.0, 0.0]})

    def test_flatten_requires_free_names(self, layout):
        with pytest.raises(MissingInputError):
            layout.flatten({"log_q": 0.0})

    def test_unknown_fixed_name(self):
        with pytest.raises(MissingInputError):
            ParameterLayout({"log_q": 0.0}, fixed=["log_r"])

    def test_labels(self, layout):
        assert layout.labels() == ["log_q", "log_rec_dev[0]", "log_rec_dev[1]", "log_rec_dev[2]"]

    def test_everything_fixed(self):
        layout = ParameterLayout({"log_q": 0.0}, fixed=["log_q"])
        assert layout.size == 0
        assert layout.initial_vector().shape == torch.Size([0])
        assert layout.unflatten(torch.zeros(0, dtype=torch.float64))["log_q"].item() == 0.0

    def test_initial_values_are_copied(self):
        theta = torch.tensor([1.0, 2.0], dtype=torch.float64)
        layout = ParameterLayout({"theta": theta})
        theta[0] = 99.0
        assert layout.initial["theta"].tolist() == [1.0, 2.0]
