"""Prediction records, wide-table reshaping and file export."""

from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass
import csv
import io
import json
import logging
import os
from pathlib import Path
import tempfile
from typing import Any

from .errors import OutputWriteError
from .params import DEFAULT_CHANNEL_NAMES, SimulationInputs

logger = logging.getLogger(__name__)

TIME_TOLERANCE = 1e-10


@dataclass(frozen=True, slots=True)
class Prediction:
    time: float
    outeq: int
    value: float
    observation: float = 0.0


@dataclass(frozen=True, slots=True)
class PredictionTable:
    times: tuple[float, ...]
    channel_count: int
    values: tuple[tuple[float | None, ...], ...]

    def column(self, outeq: int) -> list[float | None]:
        return [row[outeq] for row in self.values]


@dataclass(frozen=True, slots=True)
class SimulationOutputs:
    predictions: tuple[Prediction, ...]
    table: PredictionTable
    csv_text: str
    metadata: dict[str, Any]


def reshape_predictions(
    predictions: Iterable[Prediction],
    tolerance: float = TIME_TOLERANCE,
) -> PredictionTable:
    """Group predictions into one row per distinct time and one column per outeq.

    Times closer than `tolerance` share a row. Within a row the first record
    (in time, then outeq order) for a channel wins; channels with no record
    stay None.
    """

    ordered = sorted(predictions, key=lambda p: (p.time, p.outeq))
    if not ordered:
        return PredictionTable(times=(), channel_count=0, values=())
    channel_count = max(p.outeq for p in ordered) + 1

    times: list[float] = []
    rows: list[list[float | None]] = []
    for pred in ordered:
        if not times or abs(pred.time - times[-1]) >= tolerance:
            times.append(pred.time)
            rows.append([None] * channel_count)
        row = rows[-1]
        if row[pred.outeq] is None:
            row[pred.outeq] = pred.value

    return PredictionTable(
        times=tuple(times),
        channel_count=channel_count,
        values=tuple(tuple(row) for row in rows),
    )


def header_for(channel_count: int, channel_names: Sequence[str] | None = None) -> list[str]:
    if channel_names is not None and len(channel_names) == channel_count:
        names = list(channel_names)
    elif channel_count == len(DEFAULT_CHANNEL_NAMES):
        names = list(DEFAULT_CHANNEL_NAMES)
    else:
        names = [f"Y{idx}" for idx in range(channel_count)]
    return ["Time", *names]


def format_csv(table: PredictionTable, channel_names: Sequence[str] | None = None) -> str:
    """Render the table with 4-decimal times and 6-decimal values."""

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header_for(table.channel_count, channel_names))
    for time, row in zip(table.times, table.values):
        writer.writerow([f"{time:.4f}", *("" if value is None else f"{value:.6f}" for value in row)])
    return buffer.getvalue()


def _write_atomic(path: Path, text: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", newline="", encoding="utf-8") as handle:
                handle.write(text)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as exc:
        raise OutputWriteError(path, exc.strerror or str(exc)) from exc


def export_csv(outputs: SimulationOutputs, path: str | Path) -> None:
    """Write the prediction table to CSV, replacing any existing file in one step."""

    output_path = Path(path)
    _write_atomic(output_path, outputs.csv_text)
    logger.info("wrote %d rows to %s", len(outputs.table.times), output_path)


def export_metadata_json(
    inputs: SimulationInputs,
    outputs: SimulationOutputs,
    path: str | Path,
) -> None:
    """Export simulation inputs/results metadata to JSON."""

    final_values = outputs.table.values[-1] if outputs.table.values else ()
    payload: dict[str, Any] = {
        "inputs": asdict(inputs),
        "outputs_summary": {
            "n_rows": len(outputs.table.times),
            "n_channels": outputs.table.channel_count,
            "n_predictions": len(outputs.predictions),
            "final_time": outputs.table.times[-1] if outputs.table.times else None,
            "final_values": list(final_values),
        },
        "metadata": outputs.metadata,
    }
    _write_atomic(Path(path), json.dumps(payload, indent=2, sort_keys=True))
