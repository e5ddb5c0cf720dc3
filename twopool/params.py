"""Input schema and validation for the two-pool model."""

from collections.abc import Sequence
from dataclasses import astuple, dataclass, fields
import math

from .errors import ConfigurationError

PARAMETER_NAMES = ("SA", "SB", "VAB", "VBA", "VBO", "KAB", "KBA", "KBO")
REFERENCE_PARAMETERS = (20.0, 25.0, 18.0, 13.0, 8.0, 0.32, 0.36, 0.31)
DEFAULT_CHANNEL_NAMES = ("QA", "QB", "QT")
SOLVER_METHODS = ("RK45", "RK23", "DOP853", "Radau", "BDF", "LSODA")
N_STATES = 3
N_OUTPUTS = 3


@dataclass(frozen=True, slots=True)
class ModelParameters:
    sa: float
    sb: float
    vab: float
    vba: float
    vbo: float
    kab: float
    kba: float
    kbo: float

    @classmethod
    def from_vector(cls, values: Sequence[float]) -> "ModelParameters":
        """Bind a positional vector ordered as SA, SB, VAB, VBA, VBO, KAB, KBA, KBO."""

        values = list(values)
        if len(values) != len(PARAMETER_NAMES):
            raise ConfigurationError(
                f"parameter vector must have {len(PARAMETER_NAMES)} values, got {len(values)}"
            )
        return cls(*(float(v) for v in values))

    def as_vector(self) -> tuple[float, ...]:
        return astuple(self)

    def as_dict(self) -> dict[str, float]:
        return dict(zip(PARAMETER_NAMES, self.as_vector()))


@dataclass(frozen=True, slots=True)
class SimulationInputs:
    parameters: ModelParameters = ModelParameters(*REFERENCE_PARAMETERS)
    infusion_start: float = 0.0
    infusion_end: float = 10.0
    infusion_compartment: int = 0
    infusion_rate: float = 7.0
    observation_start: float = 0.0
    observation_step: float = 1.0
    # The CSV-writing program observes 20 points (repeat 19); earlier dumps used 9.
    repeat_count: int = 19
    channels: tuple[int, ...] = (0, 1, 2)
    channel_names: tuple[str, ...] = DEFAULT_CHANNEL_NAMES
    method: str = "LSODA"
    rtol: float = 1e-8
    atol: float = 1e-10
    output_path: str = "predictions.csv"


def validate_parameters(parameters: ModelParameters) -> list[str]:
    errors: list[str] = []
    for field in fields(parameters):
        value = getattr(parameters, field.name)
        name = field.name.upper()
        if not math.isfinite(value):
            errors.append(f"{name} must be finite, got {value}")
        elif name in ("SA", "SB") and value <= 0.0:
            errors.append(f"{name} must be > 0, got {value}")
        elif value < 0.0:
            errors.append(f"{name} must be >= 0, got {value}")
    return errors


def validate_inputs(inputs: SimulationInputs) -> None:
    """Validate simulation inputs and raise ConfigurationError on failures."""

    errors = validate_parameters(inputs.parameters)

    if not (math.isfinite(inputs.infusion_start) and math.isfinite(inputs.infusion_end)):
        errors.append("infusion window must be finite")
    elif inputs.infusion_end < inputs.infusion_start:
        errors.append(
            f"infusion_end must be >= infusion_start, got [{inputs.infusion_start}, {inputs.infusion_end}]"
        )
    if not (0 <= inputs.infusion_compartment < N_STATES):
        errors.append(f"infusion_compartment must be between 0 and {N_STATES - 1}, got {inputs.infusion_compartment}")
    if not math.isfinite(inputs.infusion_rate) or inputs.infusion_rate < 0.0:
        errors.append(f"infusion_rate must be >= 0, got {inputs.infusion_rate}")

    if not math.isfinite(inputs.observation_start):
        errors.append("observation_start must be finite")
    if not math.isfinite(inputs.observation_step) or inputs.observation_step <= 0.0:
        errors.append(f"observation_step must be > 0, got {inputs.observation_step}")
    if inputs.repeat_count < 0:
        errors.append(f"repeat_count must be >= 0, got {inputs.repeat_count}")

    if not inputs.channels:
        errors.append("channels must not be empty")
    if len(set(inputs.channels)) != len(inputs.channels):
        errors.append(f"channels must be unique, got {list(inputs.channels)}")
    for channel in inputs.channels:
        if not (0 <= channel < N_OUTPUTS):
            errors.append(f"channel {channel} is outside 0..{N_OUTPUTS - 1}")
    if len(inputs.channel_names) != N_OUTPUTS:
        errors.append(f"channel_names must have {N_OUTPUTS} entries, got {len(inputs.channel_names)}")

    if inputs.method not in SOLVER_METHODS:
        errors.append(f"method must be one of {', '.join(SOLVER_METHODS)}, got {inputs.method!r}")
    if not math.isfinite(inputs.rtol) or inputs.rtol <= 0.0:
        errors.append(f"rtol must be > 0, got {inputs.rtol}")
    if not math.isfinite(inputs.atol) or inputs.atol <= 0.0:
        errors.append(f"atol must be > 0, got {inputs.atol}")

    if errors:
        raise ConfigurationError("; ".join(errors))
