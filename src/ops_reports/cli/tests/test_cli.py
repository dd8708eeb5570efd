import json

import pytest
from typer.testing import CliRunner

from ops_reports.cli import main as cli_main

runner = CliRunner()

SNAPSHOT = {
    "orders": [
        {
            "id": "o1", "vendorId": "V1", "customerId": "C1", "status": "Delivered", "total": 500,
            "deliveryAddress": "12 Lane, Koramangala, 560034",
            "createdAt": "2024-01-01T10:00:00Z", "deliveredAt": "2024-01-01T10:25:00Z",
        },
        {"id": "o2", "vendorId": "V1", "status": "Cancelled", "createdAt": "2024-01-02T18:00:00Z"},
    ],
    "vendors": [{"id": "V1", "shopName": "Spice Hub"}],
    "customers": [{"id": "C1", "fullName": "Meera Iyer"}],
}


@pytest.fixture
def snapshot_file(tmp_path):
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(SNAPSHOT), encoding="utf-8")
    return path


@pytest.fixture
def file_db(tmp_path, monkeypatch):
    """Points the CLI at a throwaway SQLite file shared across invocations."""
    config = {
        **cli_main.TORTOISE_ORM_CONFIG,
        "connections": {"default": f"sqlite://{tmp_path / 'cli.sqlite3'}"},
    }
    monkeypatch.setattr(cli_main, "TORTOISE_ORM_CONFIG", config)
    return config


def test_advanced_report_from_snapshot_file(snapshot_file, tmp_path):
    output = tmp_path / "report.json"

    result = runner.invoke(cli_main.app, ["advanced-report", "--snapshot", str(snapshot_file), "--output", str(output)])

    assert result.exit_code == 0, result.output
    report = json.loads(output.read_text(encoding="utf-8"))
    assert report["revenueByVendor"][0]["vendorName"] == "Spice Hub"
    assert report["revenueByVendor"][0]["totalOrders"] == 2
    assert report["cancellationAnalysis"]["cancellationRate"] == 50.0
    assert report["customerRetention"]["topCustomers"][0]["customerName"] == "Meera Iyer"


def test_advanced_report_rejects_invalid_snapshot(tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")

    result = runner.invoke(cli_main.app, ["advanced-report", "--snapshot", str(bad)])

    assert result.exit_code == 1
    assert "not valid JSON" in result.output


def test_advanced_report_rejects_misshapen_snapshot(tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"orders": {"o1": {}}}), encoding="utf-8")

    result = runner.invoke(cli_main.app, ["advanced-report", "--snapshot", str(bad)])

    assert result.exit_code == 1
    assert "'orders'" in result.output


def test_load_snapshot_then_report_from_database(snapshot_file, file_db, tmp_path):
    loaded = runner.invoke(cli_main.app, ["load-snapshot", str(snapshot_file)])
    assert loaded.exit_code == 0, loaded.output
    assert "orders: 2 document(s) imported." in loaded.output

    counted = runner.invoke(cli_main.app, ["test-db-connection"])
    assert counted.exit_code == 0, counted.output
    assert "Found 2 document(s) in 'orders'." in counted.output
    assert "Found 1 document(s) in 'customers'." in counted.output

    output = tmp_path / "report.json"
    reported = runner.invoke(cli_main.app, ["advanced-report", "--output", str(output)])
    assert reported.exit_code == 0, reported.output
    report = json.loads(output.read_text(encoding="utf-8"))
    assert report["deliveryTimeAnalysis"]["averageDeliveryTime"] == 25


def test_load_snapshot_missing_file(tmp_path):
    result = runner.invoke(cli_main.app, ["load-snapshot", str(tmp_path / "missing.json")])

    assert result.exit_code == 1
    assert "Could not read snapshot" in result.output
