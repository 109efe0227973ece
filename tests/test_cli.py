"""End-to-end tests for the command line interface."""

import json

import pandas as pd
import pytest

from power_ratings.main import main


@pytest.fixture
def workspace(tmp_path):
    roster = tmp_path / "roster.json"
    roster.write_text(
        json.dumps(
            {
                "teams": [
                    {"teamName": "TeamA", "ratingSeed": 20.0},
                    {"teamName": "TeamB", "ratingSeed": 15.0},
                    {"teamName": "Connecticut", "ratingSeed": 18.0},
                ]
            }
        )
    )
    games = tmp_path / "games.json"
    games.write_text(
        json.dumps(
            {
                "games": [
                    {"gameId": "g1", "date": "2026-01-03", "homeTeamRawName": "TeamA",
                     "awayTeamRawName": "TeamB", "isNeutralSite": False, "closingSpread": -10.0},
                    {"gameId": "g2", "date": "2026-01-04", "homeTeamRawName": "UConn",
                     "awayTeamRawName": "TeamB", "isNeutralSite": False, "closingSpread": -4.0},
                ]
            }
        )
    )
    return {
        "db": str(tmp_path / "ratings.sqlite"),
        "overrides": str(tmp_path / "overrides.json"),
        "roster": str(roster),
        "games": str(games),
        "tmp": tmp_path,
    }


def _run(ws, *args):
    return main(["--db", ws["db"], "--overrides", ws["overrides"], "--season", "2026", *args])


def test_full_workflow(workspace, capsys):
    assert _run(workspace, "init", "--roster", workspace["roster"]) == 0
    assert _run(workspace, "init", "--roster", workspace["roster"]) == 1

    report = workspace["tmp"] / "report.json"
    assert _run(workspace, "process", "--games", workspace["games"], "--output", str(report)) == 0
    out = capsys.readouterr().out
    assert "Processed: 1" in out
    assert "UConn" in out
    assert json.loads(report.read_text())["by_reason"] == {"home_not_found": 1}

    assert _run(workspace, "overrides", "add", "UConn", "Connecticut") == 0
    assert _run(workspace, "process", "--games", workspace["games"]) == 0
    out = capsys.readouterr().out
    assert "already_processed: 1" in out

    assert _run(workspace, "rating", "TeamA") == 0
    assert "TeamA: +21.25" in capsys.readouterr().out

    assert _run(workspace, "project", "TeamA", "TeamB", "--neutral") == 0
    assert "Projected spread: TeamA" in capsys.readouterr().out

    assert _run(workspace, "verify") == 0
    assert "Ledger consistent (2 adjustments)" in capsys.readouterr().out

    csv_path = workspace["tmp"] / "history.csv"
    assert _run(workspace, "history", "--team", "TeamB", "--csv", str(csv_path)) == 0
    assert pd.read_csv(csv_path)["game_id"].tolist() == ["g1", "g2"]

    assert _run(workspace, "snapshot", "--top", "2") == 0
    assert "2 games processed" in capsys.readouterr().out


def test_resolve_and_overrides_list(workspace, capsys):
    _run(workspace, "init", "--roster", workspace["roster"])
    _run(workspace, "overrides", "add", "Huskies of Storrs", "Connecticut", "--notes", "scraped feed")
    capsys.readouterr()

    assert _run(workspace, "resolve", "teama", "Huskies of Storrs", "Nowhere") == 0
    out = capsys.readouterr().out
    assert "[case_insensitive]" in out
    assert "[override]" in out
    assert "[unresolved]" in out

    assert _run(workspace, "overrides", "list") == 0
    assert "Huskies of Storrs" in capsys.readouterr().out

    assert _run(workspace, "overrides", "remove", "Huskies of Storrs") == 0
    assert _run(workspace, "overrides", "remove", "Huskies of Storrs") == 1


def test_unknown_team(workspace):
    _run(workspace, "init", "--roster", workspace["roster"])
    assert _run(workspace, "rating", "Nowhere") == 1
    assert _run(workspace, "project", "TeamA", "Nowhere") == 1


def test_no_command_prints_help(workspace):
    assert _run(workspace) == 1
