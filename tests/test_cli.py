from __future__ import annotations

from typer.testing import CliRunner

from casino.cli.main import app

runner = CliRunner()


def test_segment_reports_base_build() -> None:
    result = runner.invoke(app, ["segment", "2", "3", "5"])

    assert result.exit_code == 0
    assert "base" in result.output


def test_segment_rejects_out_of_range_values() -> None:
    result = runner.invoke(app, ["segment", "12", "3"])

    assert result.exit_code != 0


def test_deal_renders_table() -> None:
    result = runner.invoke(app, ["deal", "--seed", "7"])

    assert result.exit_code == 0
    assert "Round" in result.output


def test_simulate_prints_scoreboard() -> None:
    result = runner.invoke(app, ["simulate", "--games", "2", "--seed", "1"])

    assert result.exit_code == 0
    assert "Match Summary" in result.output
