"""Console entry point: simulate, write predictions.csv and echo it."""

from collections.abc import Sequence
import logging
import sys

from .errors import TwoPoolError
from .params import SimulationInputs
from .results import SimulationOutputs, export_csv
from .solver import simulate

logger = logging.getLogger(__name__)


def run(inputs: SimulationInputs) -> SimulationOutputs:
    return simulate(inputs)


def main(argv: Sequence[str] | None = None, inputs: SimulationInputs | None = None) -> int:
    # No flags are accepted; argv is kept for console-script symmetry.
    _ = argv
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    inputs = inputs if inputs is not None else SimulationInputs()

    try:
        outputs = run(inputs)
        export_csv(outputs, inputs.output_path)
    except TwoPoolError as exc:
        logger.error("%s", exc)
        return 1

    print(f"\nPredictions saved to {inputs.output_path}")
    print(f"\nCSV Output:\n{outputs.csv_text}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
