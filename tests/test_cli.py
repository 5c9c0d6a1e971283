"""
Tests for the command-line entry point.
"""

import csv

from surveyquant.cli import main
from surveyquant.examples import build_example_policy, build_example_registry
from surveyquant.serialization import config_to_dict

import yaml


DATA = (
    "ResponseId,Finished,Q15,Q10,Q3_1,Q3_2,Q3_3,Q3_4\n"
    "Response ID,Finished,Overall satisfaction,Response time,Residency,Staff,Locum,Transfer\n"
    "R_1,True,Somewhat satisfied,30–60 minutes,,Staff,,\n"
    "R_2,False,,,,,,\n"
    "R_3,True,Totally thrilled,Not applicable,Residency,,,\n"
)


def _write_inputs(tmp_path):
    registry_path = tmp_path / "registry.yaml"
    registry_path.write_text(
        yaml.safe_dump(config_to_dict(build_example_registry(), build_example_policy()), allow_unicode=True),
        encoding="utf-8",
    )
    data_path = tmp_path / "responses.csv"
    data_path.write_text(DATA, encoding="utf-8")
    return str(registry_path), str(data_path)


def test_cli_writes_sheets(tmp_path, capsys):
    registry_path, data_path = _write_inputs(tmp_path)
    out_dir = tmp_path / "out"

    code = main([registry_path, data_path, "--out", str(out_dir), "--skip-rows", "1"])

    assert code == 0
    with open(out_dir / "data.csv", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert [r["ResponseId"] for r in rows] == ["R_1", "R_3"]
    assert rows[0]["Q10_ResponseTime_Minutes"] == "45"
    assert rows[0]["VascularCoverage_Staff"] == "1"
    assert rows[1]["Q15_Satisfaction_Scalar"] == ""

    out = capsys.readouterr().out
    assert "Raw records: 3" in out
    assert "Eligible: 2" in out
    assert "Unexpected values: 1" in out


def test_cli_configuration_error(tmp_path):
    registry_path = tmp_path / "registry.yaml"
    registry_path.write_text("tables:\n  - name: T\n  - name: T\n", encoding="utf-8")
    data_path = tmp_path / "responses.csv"
    data_path.write_text("Q1\nx\n", encoding="utf-8")

    assert main([str(registry_path), str(data_path), "--out", str(tmp_path / "out")]) == 2


def test_cli_missing_data_file(tmp_path):
    registry_path, _ = _write_inputs(tmp_path)
    assert main([registry_path, str(tmp_path / "missing.csv"), "--out", str(tmp_path / "out")]) == 1


def test_cli_undecodable_data_file(tmp_path):
    registry_path, _ = _write_inputs(tmp_path)
    data_path = tmp_path / "responses.csv"
    data_path.write_bytes(b"ResponseId,Finished\n\xff\xfe,True\n")
    assert main([registry_path, str(data_path), "--out", str(tmp_path / "out")]) == 1
