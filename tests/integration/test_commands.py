from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, Dict, List

import pytest

from gf_cli.__main__ import app
from gf_cli.core.api import APIError
from gf_cli.core.auth import AuthError


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("GF_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("GF_TOKEN_STORE", str(tmp_path / "data" / "token.json"))
    monkeypatch.delenv("GF_CLIENT_SECRET", raising=False)
    monkeypatch.delenv("GF_OUTPUT_DIR", raising=False)


def _config(tmp_path: Path) -> List[str]:
    return ["--config", str(tmp_path / "config.toml")]


class DummyPostResponse:
    def __init__(self, payload: Dict[str, Any]) -> None:
        self.status_code = 200
        self._payload = payload
        self.text = json.dumps(payload)

    def json(self) -> Dict[str, Any]:
        return self._payload


def test_global_json_plain_conflict(runner) -> None:
    result = runner.invoke(app, ["--json", "--plain", "fetch"])
    assert result.exit_code == 2
    assert "--json" in result.stdout
    assert "--plain" in result.stdout


def test_invalid_config_exits_2(runner, tmp_path: Path) -> None:
    path = tmp_path / "broken.toml"
    path.write_text("[api\n")
    result = runner.invoke(app, ["--config", str(path), "logout"])
    assert result.exit_code == 2
    assert "Config error" in result.stdout


def test_chart_writes_svg_file(runner, tmp_path: Path, records_file: Path) -> None:
    out = tmp_path / "charts" / "miles.svg"
    result = runner.invoke(
        app, [*_config(tmp_path), "chart", "--input", str(records_file), "--output", str(out)]
    )
    assert result.exit_code == 0, result.output
    assert b"<svg" in out.read_bytes()
    assert "Charted 1 of 2 activities, 10.00 mi total" in result.stdout


def test_chart_writes_svg_to_stdout(runner, tmp_path: Path, records_file: Path) -> None:
    result = runner.invoke(app, [*_config(tmp_path), "chart", "--input", str(records_file)])
    assert result.exit_code == 0, result.output
    assert b"<svg" in result.stdout_bytes
    assert "Charted 1 of 2 activities" in result.output


def test_chart_json_format(runner, tmp_path: Path, records_file: Path) -> None:
    result = runner.invoke(
        app, [*_config(tmp_path), "--plain", "chart", "--input", str(records_file), "--format", "json"]
    )
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    chart = payload["chart"]
    assert chart["series"]["y"] == [10.0]
    assert chart["series"]["x"] == [1577880000.0]
    assert [tick["label"] for tick in chart["x_axis"]["ticks"]][:2] == ["2020-01", "2020-02"]
    assert len(chart["x_axis"]["ticks"]) == 13
    assert [tick["label"] for tick in chart["y_axis"]["ticks"]] == [str(v) for v in range(0, 1001, 100)]
    assert [activity["name"] for activity in payload["activities"]] == ["Morning Ride", "Spin Class"]


def test_chart_axis_options_and_json_file(runner, tmp_path: Path, records_file: Path) -> None:
    out = tmp_path / "chart.json"
    result = runner.invoke(
        app,
        [
            *_config(tmp_path),
            "chart",
            "--input",
            str(records_file),
            "--anchor",
            "2019-11-01",
            "--months",
            "3",
            "--y-max",
            "50",
            "--y-step",
            "25",
            "--format",
            "json",
            "--output",
            str(out),
        ],
    )
    assert result.exit_code == 0, result.output
    chart = json.loads(out.read_text())["chart"]
    assert [tick["label"] for tick in chart["x_axis"]["ticks"]] == ["2019-11", "2019-12", "2020-01", "2020-02"]
    assert [tick["label"] for tick in chart["y_axis"]["ticks"]] == ["0", "25", "50"]


def test_chart_anchor_from_config(runner, tmp_path: Path, records_file: Path, write_temp_toml) -> None:
    cfg = write_temp_toml("gf.toml", '[chart]\nanchor_date = "2020-06-01"\nmonths = 2')
    result = runner.invoke(
        app, ["--config", str(cfg), "--plain", "chart", "--input", str(records_file), "--format", "json"]
    )
    assert result.exit_code == 0, result.output
    labels = [tick["label"] for tick in json.loads(result.stdout)["chart"]["x_axis"]["ticks"]]
    assert labels == ["2020-06", "2020-07", "2020-08"]


def test_chart_rejects_bad_parameters(runner, tmp_path: Path, records_file: Path) -> None:
    for args in (["--months", "0"], ["--y-step", "0"], ["--format", "png"]):
        result = runner.invoke(app, [*_config(tmp_path), "chart", "--input", str(records_file), *args])
        assert result.exit_code == 2


def test_chart_missing_input_exits_1(runner, tmp_path: Path) -> None:
    result = runner.invoke(app, [*_config(tmp_path), "chart", "--input", str(tmp_path / "missing.json")])
    assert result.exit_code == 1
    assert "Cannot read record file" in result.output
    assert b"<svg" not in result.stdout_bytes


def test_activities_malformed_input_exits_1(runner, tmp_path: Path, write_temp_json) -> None:
    path = write_temp_json("bad.json", {"records": [{"session": ["x"], "buckets": [1]}]})
    result = runner.invoke(app, [*_config(tmp_path), "--plain", "activities", "--input", str(path)])
    assert result.exit_code == 1
    assert "records[0].session must be an object" in result.stdout


def test_chart_without_login_exits_1(runner, tmp_path: Path) -> None:
    result = runner.invoke(app, [*_config(tmp_path), "--json", "chart"])
    assert result.exit_code == 1
    payload = json.loads(result.stdout)
    assert payload["status"] == "error"
    assert "gf login" in payload["message"]


def test_activities_plain_output(runner, tmp_path: Path, records_file: Path) -> None:
    result = runner.invoke(app, [*_config(tmp_path), "--plain", "activities", "--input", str(records_file)])
    assert result.exit_code == 0, result.output
    assert result.stdout.splitlines() == [
        "timestamp\ttype\tname\tduration_min\tmiles\tcumulative",
        "2020-01-01T12:00:00+00:00\t1\tMorning Ride\t60\t10.00\t10.00",
        "2020-01-02T12:00:00+00:00\t17\tSpin Class\t60\t0.00\t-",
        "total\t2",
    ]


def test_activities_json_output(runner, tmp_path: Path, records_file: Path) -> None:
    result = runner.invoke(app, [*_config(tmp_path), "--json", "activities", "--input", str(records_file)])
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["total_miles"] == 10.0
    assert payload["activities"][0]["description"] == "Lakeshore loop"
    assert payload["activities"][0]["cumulative_miles"] == 10.0
    assert payload["activities"][1]["cumulative_miles"] is None


def test_activities_rich_table(runner, tmp_path: Path, records_file: Path) -> None:
    result = runner.invoke(app, [*_config(tmp_path), "activities", "--input", str(records_file)])
    assert result.exit_code == 0, result.output
    assert "Activities (2 total)" in result.stdout
    assert "Total distance: 10.00 mi over 1 activities" in result.stdout


def test_fetch_saves_records_and_csv(
    monkeypatch, runner, tmp_path: Path, sample_records: List[Any]
) -> None:
    monkeypatch.setattr("gf_cli.commands.fetch.authenticate", lambda state: object())
    monkeypatch.setattr("gf_cli.commands.fetch.fetch_session_records", lambda **_: sample_records)
    out = tmp_path / "records.json"
    csv_out = tmp_path / "activities.csv"

    result = runner.invoke(
        app,
        [
            *_config(tmp_path),
            "--plain",
            "fetch",
            "--year",
            "2020",
            "--output",
            str(out),
            "--csv",
            str(csv_out),
        ],
    )
    assert result.exit_code == 0, result.output
    lines = result.stdout.splitlines()
    assert "sessions\t3" in lines
    assert "activities\t2" in lines
    assert "total_miles\t10.0" in lines

    saved = json.loads(out.read_text())
    assert saved["range"] == {"start": "2020-01-01", "end": "2020-12-31"}
    assert saved["activity_types"] == [1, 15, 16, 17, 18, 19, 8, 7, 35, 93]
    assert len(saved["records"]) == 3
    assert csv_out.read_text().startswith("timestamp,name,activity_class")


def test_fetch_default_output_uses_output_dir(
    monkeypatch, runner, tmp_path: Path, sample_records: List[Any]
) -> None:
    monkeypatch.setenv("GF_OUTPUT_DIR", str(tmp_path / "exports"))
    monkeypatch.setattr("gf_cli.commands.fetch.authenticate", lambda state: object())
    monkeypatch.setattr("gf_cli.commands.fetch.fetch_session_records", lambda **_: sample_records)

    result = runner.invoke(app, [*_config(tmp_path), "--json", "fetch", "--activity-type", "1"])
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["sessions"] == 3
    assert payload["records_file"] == str((tmp_path / "exports" / "gf-records.json").resolve())
    assert json.loads((tmp_path / "exports" / "gf-records.json").read_text())["activity_types"] == [1]


def test_fetch_auth_error_exits_1(monkeypatch, runner, tmp_path: Path) -> None:
    def fail(state):  # type: ignore[no-untyped-def]
        raise AuthError("Not logged in. Run `gf login` first.")

    monkeypatch.setattr("gf_cli.commands.fetch.authenticate", fail)
    result = runner.invoke(app, [*_config(tmp_path), "--plain", "fetch"])
    assert result.exit_code == 1
    assert "message\tNot logged in" in result.stdout


def test_fetch_api_error_writes_nothing(monkeypatch, runner, tmp_path: Path) -> None:
    def fail(**_):  # type: ignore[no-untyped-def]
        raise APIError("API request failed for POST /dataset:aggregate: 500")

    monkeypatch.setattr("gf_cli.commands.fetch.authenticate", lambda state: object())
    monkeypatch.setattr("gf_cli.commands.fetch.fetch_session_records", fail)
    out = tmp_path / "records.json"

    result = runner.invoke(app, [*_config(tmp_path), "fetch", "--output", str(out)])
    assert result.exit_code == 1
    assert "API request failed" in result.stdout
    assert not out.exists()


def test_login_with_code_saves_token_and_config(
    monkeypatch, runner, tmp_path: Path, client_secret_file: Path
) -> None:
    monkeypatch.setattr(
        "gf_cli.core.auth.requests.post",
        lambda *args, **kwargs: DummyPostResponse(
            {"access_token": "a1", "refresh_token": "r1", "expires_in": 3600}
        ),
    )
    result = runner.invoke(
        app,
        [*_config(tmp_path), "--plain", "login", "--client-secret", str(client_secret_file), "--code", "4/abc"],
    )
    assert result.exit_code == 0, result.output
    assert "status\tsuccess" in result.stdout
    assert "reused_token\tfalse" in result.stdout
    token = json.loads((tmp_path / "data" / "token.json").read_text())
    assert token["refresh_token"] == "r1"
    assert str(client_secret_file.resolve()) in (tmp_path / "config.toml").read_text()


def test_login_prompts_for_code(monkeypatch, runner, tmp_path: Path, client_secret_file: Path) -> None:
    monkeypatch.setattr(
        "gf_cli.core.auth.requests.post",
        lambda *args, **kwargs: DummyPostResponse({"access_token": "a1", "refresh_token": "r1"}),
    )
    result = runner.invoke(
        app,
        [*_config(tmp_path), "--plain", "login", "--client-secret", str(client_secret_file), "--force"],
        input="4/abc\n",
    )
    assert result.exit_code == 0, result.output
    assert "accounts.google.com/o/oauth2/auth" in result.output
    assert "status\tsuccess" in result.output


def test_login_reuses_cached_token(runner, tmp_path: Path, client_secret_file: Path) -> None:
    token_path = tmp_path / "data" / "token.json"
    token_path.parent.mkdir(parents=True)
    token_path.write_text(json.dumps({"access_token": "cached", "expires_at": time.time() + 3600}))

    result = runner.invoke(
        app, [*_config(tmp_path), "--plain", "login", "--client-secret", str(client_secret_file)]
    )
    assert result.exit_code == 0, result.output
    assert "reused_token\ttrue" in result.stdout
    assert not (tmp_path / "config.toml").exists()


def test_login_missing_client_file_fails(runner, tmp_path: Path) -> None:
    result = runner.invoke(
        app,
        [*_config(tmp_path), "--json", "login", "--client-secret", str(tmp_path / "nope.json"), "--code", "x"],
    )
    assert result.exit_code == 1
    payload = json.loads(result.stdout)
    assert payload["status"] == "error"
    assert "Client secret file not found" in payload["message"]


def test_logout_plain_output(runner, tmp_path: Path) -> None:
    token_path = tmp_path / "data" / "token.json"
    token_path.parent.mkdir(parents=True)
    token_path.write_text("{}")

    result = runner.invoke(app, [*_config(tmp_path), "--plain", "logout"])
    assert result.exit_code == 0
    assert "logged_out\ttrue" in result.stdout
    assert not token_path.exists()

    result = runner.invoke(app, [*_config(tmp_path), "--plain", "logout"])
    assert "logged_out\tfalse" in result.stdout
