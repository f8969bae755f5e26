import json
from pathlib import Path

from penal_code_calculator.cli import main

FIXTURES = Path(__file__).parent / "fixtures"
CATALOG = str(FIXTURES / "penal_code.json")


def test_parse_command(capsys):
    exit_code = main(["parse", "--fine", "up to $5,000", "--jail", "6 months - 3 years imprisonment"])
    output = capsys.readouterr().out
    assert exit_code == 0
    assert "$0 - $5,000" in output
    assert "6 months - 3 years" in output


def test_calculate_command_json(capsys):
    exit_code = main(["calculate", "--catalog", CATALOG, "--json", "title-1-103", "2 01"])
    data = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert data["selected_offense_ids"] == ["title-1-103", "title-2-201"]
    assert data["total_fine_max"] == 25000
    assert data["total_jail_max_days"] == 2920


def test_calculate_command_table(capsys):
    exit_code = main(["calculate", "--catalog", CATALOG, "Burglary", "Burglary"])
    output = capsys.readouterr().out
    assert exit_code == 0
    assert "already selected" in output
    assert "Total fine:" in output


def test_calculate_command_unknown_offense(capsys):
    exit_code = main(["calculate", "--catalog", CATALOG, "zzzz"])
    assert exit_code == 1
    assert "No offense matches" in capsys.readouterr().out


def test_audit_command_lists_recognition_gaps(capsys):
    exit_code = main(["audit", "--catalog", CATALOG])
    output = capsys.readouterr().out
    assert exit_code == 0
    assert "Robbery" in output
    assert "0 issues, 1 warnings" in output


def test_missing_catalog(capsys):
    exit_code = main(["audit", "--catalog", str(FIXTURES / "missing.json")])
    assert exit_code == 1
    assert "Catalog not found" in capsys.readouterr().out
