"""Two-pool saturating-flux compartmental model simulator."""

from .errors import ConfigurationError, NumericalError, OutputWriteError, TwoPoolError
from .params import ModelParameters, SimulationInputs, validate_inputs
from .model import (
    TWO_POOL_MODEL,
    OdeModel,
    compute_fluxes,
    initial_state,
    observe,
    saturating_flux,
    two_pool_rate,
    two_pool_rhs,
)
from .schedule import DosingSchedule, Infusion, ObservationSeries, ScheduleBuilder, schedule_from_inputs
from .results import (
    Prediction,
    PredictionTable,
    SimulationOutputs,
    export_csv,
    export_metadata_json,
    format_csv,
    reshape_predictions,
)
from .solver import integrate, simulate
from .pipeline import main, run

__all__ = [
    "TwoPoolError",
    "ConfigurationError",
    "NumericalError",
    "OutputWriteError",
    "ModelParameters",
    "SimulationInputs",
    "validate_inputs",
    "TWO_POOL_MODEL",
    "OdeModel",
    "compute_fluxes",
    "initial_state",
    "observe",
    "saturating_flux",
    "two_pool_rate",
    "two_pool_rhs",
    "DosingSchedule",
    "Infusion",
    "ObservationSeries",
    "ScheduleBuilder",
    "schedule_from_inputs",
    "Prediction",
    "PredictionTable",
    "SimulationOutputs",
    "export_csv",
    "export_metadata_json",
    "format_csv",
    "reshape_predictions",
    "integrate",
    "simulate",
    "main",
    "run",
]
