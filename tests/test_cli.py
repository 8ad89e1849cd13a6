import json

import pytest
from openpyxl import load_workbook

import trip_ledger_cli
from trip_ledger_cli import main


@pytest.fixture
def cli(tmp_path, capsys):
    def run(*argv):
        code = main(["--home", str(tmp_path / "data"), *argv])
        out, err = capsys.readouterr()
        return code, out, err

    return run


def test_full_flow(cli, tmp_path):
    code, out, _ = cli("new", "Bali", "--destination", "Indonesia")
    assert code == 0
    ledger_id = out.strip()

    assert cli("add", "Villa", "600", "--payer", "family 1", "--date", "2024-01-02",
               "--category", "Accommodation")[0] == 0

    code, out, _ = cli("show")
    assert code == 0
    assert out.startswith("Bali (Indonesia)")
    assert "Family 2 -> Family 1: IDR 200" in out

    md_path = tmp_path / "bali.md"
    assert cli("export", "-f", "markdown", "-o", str(md_path))[0] == 0
    assert "**Family 2** pays **Family 1**: IDR 200" in md_path.read_text(encoding="utf-8")

    xlsx_path = tmp_path / "bali.xlsx"
    assert cli("export", "-f", "excel", "-o", str(xlsx_path))[0] == 0
    assert load_workbook(str(xlsx_path))["Transfers"]["A2"].value == "Family 2"

    json_path = tmp_path / "bali.json"
    assert cli("--ledger", ledger_id, "export", "-f", "json", "-o", str(json_path))[0] == 0
    assert json.loads(json_path.read_text(encoding="utf-8"))["expenses"][0]["amount"] == 600


def test_invalid_input_reports_error(cli):
    cli("new", "Trip")
    code, _, err = cli("add", "Dinner", "-3", "--payer", "f1")
    assert code == 1
    assert "error: Amount must be a positive number." in err


def test_no_ledger_yet(cli):
    code, _, err = cli("show")
    assert code == 1
    assert "No ledger yet" in err


def test_groups_and_rate(cli, monkeypatch):
    cli("new", "Trip")
    code, out, _ = cli("group-add", "--name", "Cousins", "--count", "3")
    assert code == 0
    assert cli("group-update", "Cousins", "--count", "1")[0] == 0
    assert cli("group-remove", "Cousins")[0] == 0
    assert cli("group-remove", "f1")[0] == 1

    code, out, _ = cli("rate", "2100")
    assert out.strip() == "1 CNY = 2100 IDR"

    monkeypatch.setattr(trip_ledger_cli, "fetch_rate", lambda base, dest, url: 2250.0)
    code, out, _ = cli("rate", "--fetch")
    assert out.strip() == "1 CNY = 2250 IDR"

    monkeypatch.setattr(trip_ledger_cli, "fetch_rate", lambda base, dest, url: None)
    assert cli("rate", "--fetch")[0] == 1


def test_import_json_backup(cli, tmp_path):
    backup = tmp_path / "old.json"
    backup.write_text(json.dumps({"ledgerName": "Legacy", "family1Count": 1, "family2Count": 1,
                                  "expenses": [{"amountIDR": 100, "payer": "Family 1", "date": 1}]}),
                      encoding="utf-8")
    code, out, _ = cli("import", str(backup))
    assert code == 0
    code, out, _ = cli("--ledger", out.strip(), "show")
    assert "Family 2 -> Family 1: IDR 50" in out


def test_import_rejects_wrong_shape(cli, tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"name": "x", "expenses": [1]}), encoding="utf-8")
    code, _, err = cli("import", str(bad))
    assert code == 1
    assert "expenses must be a list of objects" in err
