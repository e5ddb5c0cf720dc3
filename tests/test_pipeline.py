from dataclasses import replace

from twopool import pipeline
from twopool.params import SimulationInputs


def test_main_writes_csv_and_echoes_it(tmp_path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)

    assert pipeline.main([]) == 0

    written = (tmp_path / "predictions.csv").read_text(encoding="utf-8")
    out = capsys.readouterr().out
    assert out == f"\nPredictions saved to predictions.csv\n\nCSV Output:\n{written}\n"
    assert written.splitlines()[0] == "Time,QA,QB,QT"
    assert written.splitlines()[1] == "0.0000,6.000000,9.000000,15.000000"
    assert len(written.splitlines()) == 21


def test_main_honours_configured_output_path(tmp_path, capsys) -> None:
    target = tmp_path / "out" / "short.csv"
    inputs = SimulationInputs(repeat_count=9, output_path=str(target))

    assert pipeline.main([], inputs=inputs) == 0

    assert len(target.read_text(encoding="utf-8").splitlines()) == 11
    assert f"Predictions saved to {target}" in capsys.readouterr().out


def test_main_fails_fast_on_bad_configuration(tmp_path, capsys) -> None:
    base = SimulationInputs(output_path=str(tmp_path / "predictions.csv"))
    inputs = replace(base, parameters=replace(base.parameters, sb=0.0))

    assert pipeline.main([], inputs=inputs) == 1

    assert not (tmp_path / "predictions.csv").exists()
    assert capsys.readouterr().out == ""


def test_main_reports_unwritable_output(tmp_path, capsys) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    inputs = SimulationInputs(repeat_count=2, output_path=str(blocker / "predictions.csv"))

    assert pipeline.main([], inputs=inputs) == 1
    assert capsys.readouterr().out == ""


def test_run_is_repeatable() -> None:
    inputs = SimulationInputs(repeat_count=9)
    assert pipeline.run(inputs).csv_text == pipeline.run(inputs).csv_text
