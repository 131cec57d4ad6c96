"""
Reconciliation Tests

Merging ordered and delivered quantities, name overrides and exclusions,
report totals and the full audit run.
"""

import io

import fitz
import pytest
from openpyxl import Workbook

from core.errors import ParsingError
from core.models.canonical import AuditStatus, DeliveryFacts, OrderLine
from core.models.refs import DeliveryBatch, ProcessingWarning, WarningKind
from core.observability.metrics import get_metrics
from extraction.runner import DeliveryDocument
from reconciliation.engine import merge_audit_items, reconcile, run_audit
from reconciliation.rules import UNKNOWN_ARTICLE_NAME, display_name, is_excluded


def orders_of(**quantities):
    """Order map from keyword pairs like a1001=(name, qty)."""
    return {
        key[1:]: OrderLine(article_id=key[1:], name=name, ordered_qty=qty)
        for key, (name, qty) in quantities.items()
    }


# =============================================================================
# Rules
# =============================================================================

class TestRules:

    def test_override_wins_over_source_name(self):
        assert display_name("8821", "Handdoek") == "Baddoek 50x100"

    def test_unknown_name_when_missing(self):
        assert display_name("1003") == UNKNOWN_ARTICLE_NAME
        assert display_name("1003", "Sloop") == "Sloop"

    def test_exclusion_is_case_insensitive(self):
        assert is_excluded("SCHOONLOOPMAT groot")
        assert is_excluded("Schoonloopmat 85x150")
        assert not is_excluded("Laken 160x260")


# =============================================================================
# Merge
# =============================================================================

class TestMergeAuditItems:

    def test_ordered_and_unordered_articles(self):
        orders = orders_of(a1001=("Laken", 10), a1002=("Sloop", 5))
        items = merge_audit_items(orders, {"1001": 8, "1003": 2})

        assert [i.article_id for i in items] == ["1001", "1002", "1003"]
        assert [i.status for i in items] == [
            AuditStatus.SHORTFALL,
            AuditStatus.SHORTFALL,
            AuditStatus.SURPLUS,
        ]
        assert items[0].difference == -2
        assert items[1].delivered == 0
        assert items[2].ordered == 0
        assert items[2].name == UNKNOWN_ARTICLE_NAME

    def test_exact_delivery_is_correct(self):
        items = merge_audit_items(orders_of(a1001=("Laken", 4)), {"1001": 4})
        assert items[0].status == AuditStatus.CORRECT
        assert items[0].difference == 0

    def test_inputs_not_modified(self):
        orders = orders_of(a1001=("Laken", 10))
        delivered = {"1001": 8, "1003": 2}
        merge_audit_items(orders, delivered)
        assert delivered == {"1001": 8, "1003": 2}
        assert orders["1001"].ordered_qty == 10

    def test_name_override_applied(self):
        items = merge_audit_items(orders_of(a8821=("Handdoek", 3)), {"8821": 3})
        assert items[0].name == "Baddoek 50x100"

    def test_excluded_articles_dropped(self):
        orders = orders_of(
            a8400=("Mat", 2),
            a1050=("Schoonloopmat klein", 1),
            a1001=("Laken", 1),
        )
        items = merge_audit_items(orders, {"8400": 2, "1050": 1, "1001": 1})
        assert [i.article_id for i in items] == ["1001"]

    def test_excluded_unordered_article_dropped(self):
        # Delivered-only ids get the override name first, then the exclusion
        items = merge_audit_items(orders_of(a1001=("Laken", 1)), {"8400": 6, "8821": 2})
        assert [i.article_id for i in items] == ["1001", "8821"]
        assert items[1].name == "Baddoek 50x100"
        assert items[1].ordered == 0

    def test_sorted_as_text(self):
        orders = orders_of(a999=("Washand", 1), a1001=("Laken", 1))
        items = merge_audit_items(orders, {"20001": 1})
        assert [i.article_id for i in items] == ["1001", "20001", "999"]

    def test_empty_inputs(self):
        assert merge_audit_items({}, {}) == []


# =============================================================================
# Report
# =============================================================================

class TestReconcile:

    def test_totals_and_counts(self):
        orders = orders_of(a1001=("Laken", 10), a1002=("Sloop", 5), a1004=("Handdoek", 2))
        batch = DeliveryBatch(
            facts=DeliveryFacts(quantities={"1001": 8, "1003": 2, "1004": 2}, delivery_date="12-03-2024"),
            documents_processed=2,
        )
        report = reconcile(orders, batch)

        assert report.total_ordered == 17
        assert report.total_delivered == 12
        assert report.net_difference == -5
        assert report.delivery_date == "12-03-2024"
        assert report.status_counts == {
            AuditStatus.SHORTFALL: 2,
            AuditStatus.SURPLUS: 1,
            AuditStatus.CORRECT: 1,
        }
        assert report.documents_processed == 2
        assert not report.has_warnings

    def test_warnings_carried_over(self):
        coercion = ProcessingWarning(kind=WarningKind.COERCION, source="row 4", message="x")
        skipped = ProcessingWarning(kind=WarningKind.DOCUMENT_DECODE, source="kapot.pdf", message="y")
        batch = DeliveryBatch(warnings=[skipped], documents_skipped=1)

        report = reconcile(orders_of(a1001=("Laken", 1)), batch, warnings=[coercion])

        assert [w.source for w in report.warnings] == ["row 4", "kapot.pdf"]
        assert report.delivery_date is None


# =============================================================================
# Full Run
# =============================================================================

def make_order_workbook(rows) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.append(["Artikel", "Omschrijving", None, None, None, None, None, None, None, "Aantal"])
    for article_id, name, qty in rows:
        ws.append([article_id, name, None, None, None, None, None, None, None, qty])
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def make_delivery_pdf(lines) -> bytes:
    doc = fitz.open()
    page = doc.new_page()
    for index, text in enumerate(lines):
        page.insert_text((72, 80 + index * 20), text, fontsize=10)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def order_data() -> bytes:
    return make_order_workbook([
        (1001, "Laken 160x260", 10),
        (1002, "Kussensloop", 5),
        (8400, "Mat", 2),
    ])


class TestRunAudit:

    def test_one_corrupt_document_out_of_three(self, order_data):
        documents = [
            DeliveryDocument("bon-1.pdf", make_delivery_pdf(["Leverdatum: 12-03-2024", "1001 Laken 6"])),
            DeliveryDocument("bon-2.pdf", b"\x00\x01 broken"),
            DeliveryDocument("bon-3.pdf", make_delivery_pdf(["1001 Laken 2", "1003 Badmat 2", "8400 Mat 2"])),
        ]

        report = run_audit(order_data, documents)

        by_id = {item.article_id: item for item in report.items}
        assert set(by_id) == {"1001", "1002", "1003"}
        assert by_id["1001"].delivered == 8
        assert by_id["1002"].delivered == 0
        assert by_id["1003"].ordered == 0
        assert report.delivery_date == "12-03-2024"
        assert report.documents_processed == 2
        assert [w.source for w in report.warnings] == ["bon-2.pdf"]

    def test_caller_warnings_come_first(self, order_data):
        missing = ProcessingWarning(kind=WarningKind.DOCUMENT_DECODE, source="weg.pdf", message="File could not be read")
        report = run_audit(order_data, [], warnings=[missing])

        assert report.warnings == [missing]
        assert report.total_delivered == 0
        assert all(item.status == AuditStatus.SHORTFALL for item in report.items)

    def test_order_coercion_warning_in_report(self):
        data = make_order_workbook([(1001, "Laken", "veel")])
        report = run_audit(data, [])
        assert report.warnings[0].kind == WarningKind.COERCION

    def test_invalid_order_list_is_fatal(self):
        failed_before = get_metrics().get_summary()["runs"]["failed"]

        with pytest.raises(ParsingError):
            run_audit(make_order_workbook([]), [])

        assert get_metrics().get_summary()["runs"]["failed"] == failed_before + 1

    def test_completed_run_recorded(self, order_data):
        completed_before = get_metrics().get_summary()["runs"]["completed"]
        run_audit(order_data, [])
        assert get_metrics().get_summary()["runs"]["completed"] == completed_before + 1
