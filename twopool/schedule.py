"""Dosing and observation schedule for a single simulated subject."""

from collections.abc import Iterator
from dataclasses import dataclass, field

import numpy as np

from .errors import ConfigurationError
from .params import SimulationInputs


@dataclass(frozen=True, slots=True)
class Infusion:
    start: float
    end: float
    compartment: int
    rate: float

    def is_active(self, t: float) -> bool:
        """Infusions cover the closed interval [start, end]."""

        return self.start <= t <= self.end


@dataclass(frozen=True, slots=True)
class ObservationSeries:
    start: float
    outeq: int
    step: float = 1.0
    repeat: int = 0
    value: float = 0.0

    def times(self) -> Iterator[float]:
        for k in range(self.repeat + 1):
            yield self.start + k * self.step


@dataclass(frozen=True, slots=True)
class DosingSchedule:
    subject_id: str
    infusions: tuple[Infusion, ...] = ()
    observations: tuple[ObservationSeries, ...] = ()

    def infusion_rates(self, t: float, n_states: int) -> np.ndarray:
        rates = np.zeros(n_states, dtype=float)
        for infusion in self.infusions:
            if infusion.is_active(t):
                rates[infusion.compartment] += infusion.rate
        return rates

    def observation_times(self) -> list[float]:
        return sorted({t for series in self.observations for t in series.times()})

    def breakpoints(self) -> list[float]:
        edges = {infusion.start for infusion in self.infusions}
        edges.update(infusion.end for infusion in self.infusions)
        return sorted(edges)

    @property
    def start_time(self) -> float:
        candidates = [0.0, *self.observation_times(), *(i.start for i in self.infusions)]
        return min(candidates)

    @property
    def end_time(self) -> float:
        times = self.observation_times()
        return times[-1] if times else self.start_time


@dataclass
class ScheduleBuilder:
    """Fluent builder mirroring the usual subject/dosing DSL."""

    subject_id: str = "1"
    _infusions: list[Infusion] = field(default_factory=list)
    _observations: list[ObservationSeries] = field(default_factory=list)

    def infusion(self, start: float, end: float, compartment: int, rate: float) -> "ScheduleBuilder":
        self._infusions.append(Infusion(start=start, end=end, compartment=compartment, rate=rate))
        return self

    def observation(self, time: float, value: float, outeq: int) -> "ScheduleBuilder":
        self._observations.append(ObservationSeries(start=time, outeq=outeq, value=value))
        return self

    def repeat(self, count: int, step: float) -> "ScheduleBuilder":
        """Repeat the most recent observation `count` more times, `step` apart."""

        if not self._observations:
            raise ConfigurationError("repeat() requires a preceding observation()")
        if count < 0:
            raise ConfigurationError(f"repeat count must be >= 0, got {count}")
        if step <= 0.0:
            raise ConfigurationError(f"repeat step must be > 0, got {step}")
        last = self._observations.pop()
        self._observations.append(
            ObservationSeries(start=last.start, outeq=last.outeq, step=step, repeat=count, value=last.value)
        )
        return self

    def build(self) -> DosingSchedule:
        return DosingSchedule(
            subject_id=self.subject_id,
            infusions=tuple(self._infusions),
            observations=tuple(self._observations),
        )


def schedule_from_inputs(inputs: SimulationInputs) -> DosingSchedule:
    builder = ScheduleBuilder().infusion(
        inputs.infusion_start,
        inputs.infusion_end,
        inputs.infusion_compartment,
        inputs.infusion_rate,
    )
    for channel in inputs.channels:
        builder.observation(inputs.observation_start, 0.0, channel).repeat(
            inputs.repeat_count, inputs.observation_step
        )
    return builder.build()


def validate_schedule(schedule: DosingSchedule, dims: tuple[int, int]) -> None:
    """Check that the schedule addresses compartments and outputs the model has."""

    n_states, n_outputs = dims
    errors: list[str] = []
    for infusion in schedule.infusions:
        if not (0 <= infusion.compartment < n_states):
            errors.append(f"infusion compartment {infusion.compartment} is outside 0..{n_states - 1}")
        if infusion.end < infusion.start:
            errors.append(f"infusion window [{infusion.start}, {infusion.end}] ends before it starts")
    for series in schedule.observations:
        if not (0 <= series.outeq < n_outputs):
            errors.append(f"observation outeq {series.outeq} is outside 0..{n_outputs - 1}")
    if not schedule.observations:
        errors.append("schedule has no observations")
    if errors:
        raise ConfigurationError("; ".join(errors))
