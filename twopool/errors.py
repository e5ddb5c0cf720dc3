"""Error types raised by the two-pool simulator."""

from collections.abc import Sequence
from pathlib import Path


class TwoPoolError(Exception):
    """Base class for all simulator failures."""


class ConfigurationError(TwoPoolError, ValueError):
    """Invalid parameters or schedule, detected before integration."""


class NumericalError(TwoPoolError, ArithmeticError):
    """Integration failed or produced an unusable state."""

    def __init__(self, message: str, time: float, state: Sequence[float]) -> None:
        self.time = float(time)
        self.state = tuple(float(v) for v in state)
        formatted = ", ".join(f"{v:.6g}" for v in self.state)
        super().__init__(f"{message} at t={self.time:.6g} (state=[{formatted}])")


class OutputWriteError(TwoPoolError, OSError):
    """Output file could not be written."""

    def __init__(self, path: str | Path, reason: str) -> None:
        self.path = Path(path)
        super().__init__(f"Failed to write {self.path}: {reason}")
