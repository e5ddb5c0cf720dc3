"""Two-pool compartmental model with saturating (Michaelis-Menten) fluxes."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
import math

import numpy as np

from .errors import NumericalError
from .params import ModelParameters

RateFunction = Callable[[Sequence[float], ModelParameters, float, Sequence[float], Sequence[float]], np.ndarray]
InitFunction = Callable[[ModelParameters, float, Sequence[float]], np.ndarray]
OutputFunction = Callable[[Sequence[float], ModelParameters, float, Sequence[float]], np.ndarray]

INITIAL_QA = 6.0
INITIAL_QB = 9.0
INITIAL_QT = 15.0


def saturating_flux(vmax: float, k_half: float, concentration: float) -> float:
    """Hyperbolic flux approaching vmax as concentration grows past k_half.

    At or below zero concentration the flux takes its limit of 0.
    """

    if concentration <= 0.0:
        return 0.0
    return vmax / (1.0 + (k_half / concentration))


def compute_fluxes(state: Sequence[float], params: ModelParameters) -> tuple[float, float, float]:
    """Return (F_AB, F_BA, F_BO) for the given pool quantities."""

    con_a = state[0] / params.sa
    con_b = state[1] / params.sb
    f_ab = saturating_flux(params.vab, params.kab, con_a)
    f_ba = saturating_flux(params.vba, params.kba, con_b)
    f_bo = saturating_flux(params.vbo, params.kbo, con_b)
    return f_ab, f_ba, f_bo


def two_pool_rate(
    x: Sequence[float],
    params: ModelParameters,
    t: float,
    rateiv: Sequence[float],
    cov: Sequence[float] = (),
) -> np.ndarray:
    """Derivatives of (QA, QB, QT); rateiv[0] is the infusion into pool A.

    Used by the integrator, whose trial stages may step just below zero near an
    emptied pool. Fluxes out of such a pool are 0.
    """

    _ = cov
    if not all(math.isfinite(v) for v in x):
        raise NumericalError("state is not finite", t, x)

    f_ab, f_ba, f_bo = compute_fluxes(x, params)
    return np.array(
        [
            rateiv[0] + f_ba - f_ab,
            f_ab - f_ba - f_bo,
            rateiv[0] - f_bo,
        ],
        dtype=float,
    )


def two_pool_rhs(
    x: Sequence[float],
    params: ModelParameters,
    t: float,
    rateiv: Sequence[float],
    cov: Sequence[float] = (),
) -> np.ndarray:
    """Same as two_pool_rate, but rejects empty or negative pools."""

    qa, qb = x[0], x[1]
    if not (math.isfinite(qa) and math.isfinite(qb)) or qa <= 0.0 or qb <= 0.0:
        raise NumericalError("pool quantities must stay positive", t, x)
    return two_pool_rate(x, params, t, rateiv, cov)


def initial_state(params: ModelParameters, t: float, cov: Sequence[float] = ()) -> np.ndarray:
    _ = params, t, cov
    return np.array([INITIAL_QA, INITIAL_QB, INITIAL_QT], dtype=float)


def observe(x: Sequence[float], params: ModelParameters, t: float, cov: Sequence[float] = ()) -> np.ndarray:
    _ = params, t, cov
    return np.array([x[0], x[1], x[2]], dtype=float)


@dataclass(frozen=True, slots=True)
class OdeModel:
    name: str
    rhs: RateFunction
    init: InitFunction
    output: OutputFunction
    dims: tuple[int, int]
    # States that must stay positive on accepted solver output.
    positive_states: tuple[int, ...] = ()


TWO_POOL_MODEL = OdeModel(
    name="two_pool_saturating",
    rhs=two_pool_rate,
    init=initial_state,
    output=observe,
    dims=(3, 3),
    positive_states=(0, 1),
)


def mass_balance_residual(state: Sequence[float]) -> float:
    """Drift of QT away from QA + QB, relative to the initial offset.

    QT integrates net external input minus loss to the outside, so with the
    rate law above it should track QA + QB up to the initial offset.
    """

    initial_offset = INITIAL_QT - (INITIAL_QA + INITIAL_QB)
    return float(state[2] - (state[0] + state[1]) - initial_offset)
