"""Streamlit UI for the two-pool model."""

from __future__ import annotations

from dataclasses import asdict
import io
import json

import altair as alt
import pandas as pd
import streamlit as st

from twopool import (
    ModelParameters,
    SimulationInputs,
    SimulationOutputs,
    TwoPoolError,
    simulate,
)
from twopool.params import PARAMETER_NAMES, REFERENCE_PARAMETERS
from twopool.results import header_for


def _default_inputs() -> SimulationInputs:
    return SimulationInputs(
        parameters=ModelParameters(*REFERENCE_PARAMETERS),
        infusion_start=0.0,
        infusion_end=10.0,
        infusion_compartment=0,
        infusion_rate=7.0,
        observation_start=0.0,
        observation_step=1.0,
        repeat_count=19,
    )


def _predictions_frame(outputs: SimulationOutputs, channel_names: tuple[str, ...]) -> pd.DataFrame:
    """Long-form frame (time, series, value) used for plotting; blanks are dropped."""

    rows = []
    for time, values in zip(outputs.table.times, outputs.table.values):
        for outeq, value in enumerate(values):
            if value is None:
                continue
            name = channel_names[outeq] if outeq < len(channel_names) else f"Y{outeq}"
            rows.append({"time": float(time), "series": name, "value": float(value)})
    return pd.DataFrame(rows, columns=["time", "series", "value"])


def _wide_frame(outputs: SimulationOutputs, channel_names: tuple[str, ...]) -> pd.DataFrame:
    """One row per time, one column per channel, matching the CSV layout."""

    columns = header_for(outputs.table.channel_count, channel_names)
    rows = [[time, *values] for time, values in zip(outputs.table.times, outputs.table.values)]
    return pd.DataFrame(rows, columns=columns, dtype=float)


def _build_excel_bytes(wide: pd.DataFrame) -> bytes:
    """Build XLSX export bytes with the wide prediction table."""

    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        wide.to_excel(writer, sheet_name="predictions", index=False)
    return output.getvalue()


def main() -> None:
    st.set_page_config(page_title="TwoPool", layout="wide")
    st.title("TwoPool - saturating two-compartment model")
    st.caption("Pool A receives a constant-rate infusion; fluxes A->B, B->A and B->out follow Michaelis-Menten kinetics.")

    defaults = _default_inputs()

    with st.sidebar:
        st.header("Parameters")
        values = []
        for name, default in zip(PARAMETER_NAMES, defaults.parameters.as_vector()):
            values.append(
                st.number_input(
                    name,
                    min_value=0.0,
                    value=float(default),
                    step=0.01 if name.startswith("K") else 1.0,
                    format="%.4f",
                    help="Pool size (concentration divisor)." if name.startswith("S") else None,
                )
            )

        st.header("Infusion")
        infusion_start = st.number_input("start", value=defaults.infusion_start, step=1.0)
        infusion_end = st.number_input("end", value=defaults.infusion_end, step=1.0)
        infusion_rate = st.number_input("rate", min_value=0.0, value=defaults.infusion_rate, step=0.5)

        st.header("Observations")
        observation_step = st.number_input(
            "step", min_value=0.001, value=defaults.observation_step, step=0.5
        )
        repeat_count = int(
            st.number_input(
                "repeat count",
                min_value=0,
                value=defaults.repeat_count,
                step=1,
                help="Number of additional observations after the first one.",
            )
        )
        run = st.button("Run Simulation", type="primary")

    inputs = SimulationInputs(
        parameters=ModelParameters.from_vector(values),
        infusion_start=infusion_start,
        infusion_end=infusion_end,
        infusion_compartment=defaults.infusion_compartment,
        infusion_rate=infusion_rate,
        observation_start=defaults.observation_start,
        observation_step=observation_step,
        repeat_count=repeat_count,
    )

    if run or "last_outputs" not in st.session_state:
        try:
            outputs = simulate(inputs)
        except TwoPoolError as exc:
            st.error(str(exc))
            return
        st.session_state["last_inputs"] = inputs
        st.session_state["last_outputs"] = outputs

    inputs = st.session_state["last_inputs"]
    outputs = st.session_state["last_outputs"]
    frame = _predictions_frame(outputs, inputs.channel_names)

    chart = (
        alt.Chart(frame)
        .mark_line(point=True)
        .encode(
            x=alt.X("time:Q", title="Time"),
            y=alt.Y("value:Q", title="Quantity"),
            color=alt.Color("series:N", title="Pool"),
        )
        .properties(height=360)
    )
    st.altair_chart(chart, use_container_width=True)
    wide = _wide_frame(outputs, inputs.channel_names)
    st.dataframe(wide, hide_index=True, use_container_width=True)

    st.markdown("### Export")
    metadata_json = json.dumps(
        {"inputs": asdict(inputs), "metadata": outputs.metadata},
        indent=2,
        sort_keys=True,
    )
    c1, c2, c3 = st.columns(3)
    c1.download_button(
        "Download CSV",
        data=outputs.csv_text,
        file_name="predictions.csv",
        mime="text/csv",
    )
    c2.download_button(
        "Download Excel",
        data=_build_excel_bytes(wide),
        file_name="predictions.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
    c3.download_button(
        "Download Metadata JSON",
        data=metadata_json,
        file_name="predictions_metadata.json",
        mime="application/json",
    )

    st.markdown("### Summary")
    col1, col2 = st.columns(2)
    final = outputs.table.values[-1]
    for idx, name in enumerate(inputs.channel_names):
        target = col1 if idx % 2 == 0 else col2
        target.metric(f"final {name}", f"{final[idx]:.6f}" if final[idx] is not None else "-")
    col2.metric("rhs evaluations", f"{int(outputs.metadata['nfev'])}")
    col1.metric("max |QT - (QA + QB)| drift", f"{float(outputs.metadata['max_mass_balance_residual']):.3e}")


if __name__ == "__main__":
    main()
