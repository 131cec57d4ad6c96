"""
Tests for the command-line audit in scripts/run_audit.py.

Order lists and delivery notes are generated into tmp_path; settings and
logging setup are replaced so runs never touch the repository.
"""

import io
import json

import fitz
import pytest
from openpyxl import Workbook

import scripts.run_audit as run_audit_script
from core.config import EngineSettings
from core.storage.snapshots import SnapshotStore, SqliteRecordStore
from scripts.run_audit import main


# =============================================================================
# Fixtures
# =============================================================================

def write_workbook(path, rows):
    wb = Workbook()
    ws = wb.active
    for row in rows:
        ws.append(row)
    buffer = io.BytesIO()
    wb.save(buffer)
    path.write_bytes(buffer.getvalue())
    return path


def write_pdf(path, entries):
    doc = fitz.open()
    page = doc.new_page()
    for x, y, text in entries:
        page.insert_text((x, y), text, fontsize=10)
    path.write_bytes(doc.tobytes())
    doc.close()
    return path


@pytest.fixture
def settings(tmp_path) -> EngineSettings:
    return EngineSettings(
        db_path=tmp_path / "default.db",
        reports_dir=tmp_path / "reports",
    )


@pytest.fixture
def logging_calls(monkeypatch, settings):
    calls = []
    monkeypatch.setattr(run_audit_script, "get_settings", lambda: settings)
    monkeypatch.setattr(run_audit_script, "configure_logging", lambda **kwargs: calls.append(kwargs))
    return calls


@pytest.fixture
def order_file(tmp_path):
    return write_workbook(tmp_path / "bestellijst.xlsx", [
        ["Artikel", "Omschrijving", None, None, None, None, None, None, None, "Aantal"],
        [1001, "Laken 160x260", None, None, None, None, None, None, None, 10],
        [1022, "Theedoek", None, None, None, None, None, None, None, 20],
    ])


@pytest.fixture
def delivery_file(tmp_path):
    return write_pdf(tmp_path / "pakbon.pdf", [
        (72, 90, "Leverdatum: 12-03-2024"),
        (72, 140, "1001 Laken 160x260 8"),
        (72, 160, "1022 Theedoek 20"),
        (72, 180, "1050 Kussensloop 4"),
    ])


def base_args(order_file, delivery_file):
    return ["--order", str(order_file), "--delivery", str(delivery_file)]


# =============================================================================
# Console Output
# =============================================================================

class TestConsoleReport:

    def test_prints_table(self, logging_calls, order_file, delivery_file, capsys):
        code = main(base_args(order_file, delivery_file))

        out = capsys.readouterr().out
        assert code == 0
        assert "LINEN DELIVERY AUDIT" in out
        assert "Delivery date: 12-03-2024" in out
        assert "TEKORT" in out
        assert "OVERSCHOT" in out
        assert "Onbekend Artikel" in out
        assert "WARNINGS" not in out

    def test_unreadable_delivery_listed_as_warning(self, logging_calls, tmp_path, order_file, delivery_file, capsys):
        broken = tmp_path / "kapot.pdf"
        broken.write_bytes(b"not a pdf at all")

        code = main(["--order", str(order_file), "--delivery", str(delivery_file), str(broken)])

        out = capsys.readouterr().out
        assert code == 0
        assert "WARNINGS (1):" in out
        assert "kapot.pdf" in out

    def test_json_logs_flag(self, logging_calls, order_file, delivery_file):
        main(base_args(order_file, delivery_file) + ["--json-logs"])
        assert logging_calls[-1]["json_format"] is True
        assert logging_calls[-1]["force"] is True

    def test_log_format_from_settings(self, logging_calls, order_file, delivery_file):
        main(base_args(order_file, delivery_file))
        assert logging_calls[-1]["json_format"] is False


# =============================================================================
# Failures
# =============================================================================

class TestFailures:

    def test_order_list_without_rows(self, logging_calls, tmp_path, delivery_file, capsys):
        empty = write_workbook(tmp_path / "leeg.xlsx", [["Artikel", "Omschrijving"]])

        code = main(base_args(empty, delivery_file))

        assert code == 1
        assert "Audit failed: no valid order rows found" in capsys.readouterr().err

    def test_order_list_not_a_workbook(self, logging_calls, tmp_path, delivery_file, capsys):
        bogus = tmp_path / "bestellijst.xlsx"
        bogus.write_bytes(b"plain text")

        code = main(base_args(bogus, delivery_file))

        assert code == 1
        assert "could not be read" in capsys.readouterr().err

    def test_missing_order_list(self, logging_calls, tmp_path, delivery_file, capsys):
        code = main(base_args(tmp_path / "weg.xlsx", delivery_file))

        assert code == 1
        assert "Cannot read order list" in capsys.readouterr().err


# =============================================================================
# Report Export
# =============================================================================

class TestOutput:

    def test_json_file(self, logging_calls, tmp_path, order_file, delivery_file, capsys):
        target = tmp_path / "out" / "maart.json"

        code = main(base_args(order_file, delivery_file) + ["--output", str(target)])

        assert code == 0
        payload = json.loads(target.read_text())
        assert payload["delivery_date"] == "12-03-2024"
        assert [item["article_id"] for item in payload["items"]] == ["1001", "1022", "1050"]
        assert "Report written to" in capsys.readouterr().out

    def test_directory(self, logging_calls, tmp_path, order_file, delivery_file):
        target = tmp_path / "exports"

        code = main(base_args(order_file, delivery_file) + ["--output", str(target)])

        assert code == 0
        assert (target / "audit-12032024.json").exists()

    def test_no_value_uses_reports_dir(self, logging_calls, settings, order_file, delivery_file):
        code = main(base_args(order_file, delivery_file) + ["--output"])

        assert code == 0
        assert [p.name for p in settings.reports_dir.iterdir()] == ["audit-12032024.json"]

    def test_no_output_writes_nothing(self, logging_calls, settings, order_file, delivery_file):
        main(base_args(order_file, delivery_file))
        assert not settings.reports_dir.exists()

    def test_undated_delivery(self, logging_calls, tmp_path, order_file):
        undated = write_pdf(tmp_path / "zonder.pdf", [(72, 140, "1001 Laken 160x260 8")])
        target = tmp_path / "exports"

        main(base_args(order_file, undated) + ["--output", str(target)])

        assert (target / "audit-undated.json").exists()


# =============================================================================
# Snapshots
# =============================================================================

class TestSave:

    def test_explicit_db(self, logging_calls, settings, tmp_path, order_file, delivery_file, capsys):
        db = tmp_path / "audits.db"

        code = main(base_args(order_file, delivery_file) + ["--save", "--db", str(db)])

        snapshots = SnapshotStore(SqliteRecordStore(db)).list()
        assert code == 0
        assert len(snapshots) == 1
        assert snapshots[0].delivery_date == "12-03-2024"
        assert f"Snapshot saved: {snapshots[0].id}" in capsys.readouterr().out
        assert not settings.db_path.exists()

    def test_default_db(self, logging_calls, settings, order_file, delivery_file):
        main(base_args(order_file, delivery_file) + ["--save"])
        main(base_args(order_file, delivery_file) + ["--save"])

        assert len(SnapshotStore(SqliteRecordStore(settings.db_path)).list()) == 2

    def test_export_named_after_snapshot(self, logging_calls, settings, order_file, delivery_file):
        main(base_args(order_file, delivery_file) + ["--save", "--output"])

        snapshot = SnapshotStore(SqliteRecordStore(settings.db_path)).list()[0]
        assert (settings.reports_dir / f"audit-{snapshot.id}.json").exists()
