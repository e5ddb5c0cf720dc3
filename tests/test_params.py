from dataclasses import replace

import pytest

from twopool.errors import ConfigurationError
from twopool.params import (
    PARAMETER_NAMES,
    REFERENCE_PARAMETERS,
    ModelParameters,
    SimulationInputs,
    validate_inputs,
)


def _baseline_inputs() -> SimulationInputs:
    return SimulationInputs(
        parameters=ModelParameters(*REFERENCE_PARAMETERS),
        infusion_start=0.0,
        infusion_end=10.0,
        infusion_compartment=0,
        infusion_rate=7.0,
        observation_start=0.0,
        observation_step=1.0,
        repeat_count=9,
    )


def test_validate_inputs_accepts_baseline() -> None:
    validate_inputs(_baseline_inputs())


def test_default_inputs_follow_csv_variant() -> None:
    inputs = SimulationInputs()
    assert inputs.repeat_count == 19
    assert inputs.parameters.as_vector() == REFERENCE_PARAMETERS
    assert inputs.channel_names == ("QA", "QB", "QT")
    assert inputs.output_path == "predictions.csv"


def test_from_vector_binds_positional_roles() -> None:
    params = ModelParameters.from_vector([20, 25, 18, 13, 8, 0.32, 0.36, 0.31])
    assert params.sa == 20.0
    assert params.sb == 25.0
    assert params.vbo == 8.0
    assert params.kbo == 0.31
    assert list(params.as_dict()) == list(PARAMETER_NAMES)


def test_from_vector_rejects_wrong_length() -> None:
    with pytest.raises(ConfigurationError) as exc:
        ModelParameters.from_vector([1.0, 2.0, 3.0])
    assert "must have 8 values, got 3" in str(exc.value)


def test_validate_inputs_rejects_zero_pool_size() -> None:
    inputs = _baseline_inputs()
    invalid = replace(inputs, parameters=replace(inputs.parameters, sa=0.0))
    with pytest.raises(ConfigurationError) as exc:
        validate_inputs(invalid)
    assert "SA must be > 0, got 0.0" in str(exc.value)


def test_validate_inputs_rejects_negative_pool_size() -> None:
    inputs = _baseline_inputs()
    invalid = replace(inputs, parameters=replace(inputs.parameters, sb=-1.0))
    with pytest.raises(ConfigurationError) as exc:
        validate_inputs(invalid)
    assert "SB must be > 0, got -1.0" in str(exc.value)


def test_validate_inputs_rejects_negative_rate_constant() -> None:
    inputs = _baseline_inputs()
    invalid = replace(inputs, parameters=replace(inputs.parameters, kab=-0.1))
    with pytest.raises(ConfigurationError) as exc:
        validate_inputs(invalid)
    assert "KAB must be >= 0" in str(exc.value)


def test_validate_inputs_accepts_zero_max_flux() -> None:
    inputs = _baseline_inputs()
    validate_inputs(replace(inputs, parameters=replace(inputs.parameters, vbo=0.0)))


def test_validate_inputs_rejects_non_finite_parameter() -> None:
    inputs = _baseline_inputs()
    invalid = replace(inputs, parameters=replace(inputs.parameters, vab=float("nan")))
    with pytest.raises(ConfigurationError) as exc:
        validate_inputs(invalid)
    assert "VAB must be finite" in str(exc.value)


def test_validate_inputs_rejects_reversed_infusion_window() -> None:
    invalid = replace(_baseline_inputs(), infusion_start=5.0, infusion_end=1.0)
    with pytest.raises(ConfigurationError) as exc:
        validate_inputs(invalid)
    assert "infusion_end must be >= infusion_start" in str(exc.value)


def test_validate_inputs_rejects_unknown_compartment() -> None:
    invalid = replace(_baseline_inputs(), infusion_compartment=3)
    with pytest.raises(ConfigurationError) as exc:
        validate_inputs(invalid)
    assert "infusion_compartment must be between 0 and 2" in str(exc.value)


def test_validate_inputs_rejects_non_positive_step() -> None:
    invalid = replace(_baseline_inputs(), observation_step=0.0)
    with pytest.raises(ConfigurationError) as exc:
        validate_inputs(invalid)
    assert "observation_step must be > 0" in str(exc.value)


def test_validate_inputs_rejects_negative_repeat_count() -> None:
    invalid = replace(_baseline_inputs(), repeat_count=-1)
    with pytest.raises(ConfigurationError) as exc:
        validate_inputs(invalid)
    assert "repeat_count must be >= 0" in str(exc.value)


def test_validate_inputs_rejects_channel_outside_model() -> None:
    invalid = replace(_baseline_inputs(), channels=(0, 1, 3))
    with pytest.raises(ConfigurationError) as exc:
        validate_inputs(invalid)
    assert "channel 3 is outside 0..2" in str(exc.value)


def test_validate_inputs_rejects_channel_name_mismatch() -> None:
    invalid = replace(_baseline_inputs(), channel_names=("QA", "QB"))
    with pytest.raises(ConfigurationError) as exc:
        validate_inputs(invalid)
    assert "channel_names must have 3 entries" in str(exc.value)


def test_validate_inputs_rejects_unknown_solver() -> None:
    invalid = replace(_baseline_inputs(), method="Euler")
    with pytest.raises(ConfigurationError) as exc:
        validate_inputs(invalid)
    assert "method must be one of" in str(exc.value)


def test_validate_inputs_reports_every_problem() -> None:
    inputs = _baseline_inputs()
    invalid = replace(
        inputs,
        parameters=replace(inputs.parameters, sa=0.0, sb=0.0),
        rtol=0.0,
    )
    with pytest.raises(ConfigurationError) as exc:
        validate_inputs(invalid)
    msg = str(exc.value)
    assert "SA must be > 0" in msg
    assert "SB must be > 0" in msg
    assert "rtol must be > 0" in msg


def test_configuration_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        validate_inputs(replace(_baseline_inputs(), atol=-1.0))


@pytest.mark.parametrize("field", ["rtol", "atol"])
@pytest.mark.parametrize("value", [float("nan"), float("inf"), 0.0, -1e-8])
def test_validate_inputs_rejects_invalid_tolerance(field, value) -> None:
    invalid = replace(_baseline_inputs(), **{field: value})
    with pytest.raises(ConfigurationError) as exc:
        validate_inputs(invalid)
    assert f"{field} must be > 0" in str(exc.value)
