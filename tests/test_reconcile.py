# tests/test_reconcile.py

"""
Tests for the reconciliation pipeline and its statistics.
"""

import pytest

from receipt_recon.models import RECEIPT_SCHEMA_VERSION
from receipt_recon.core.pipeline import (
    ReconciliationResult,
    reconcile,
    sort_receipts,
    parse_transaction_datetime,
)
from receipt_recon.core.schema import normalize
from receipt_recon.core.errors import IdentityError, RecordShapeError


# ============================================
# Test Data
# ============================================

def make_receipt(
    barcode: str,
    member: str = "M1",
    when: str = "2023-01-01T00:00:00Z",
    **fields,
) -> dict:
    receipt = {
        "membershipNumber": member,
        "transactionBarcode": barcode,
        "transactionDateTime": when,
        "warehouseNumber": 1343,
        "registerNumber": 5,
        "transactionNumber": 186,
    }
    receipt.update(fields)
    return receipt


def barcodes(result) -> list[str]:
    return [r.transactionBarcode for r in result.records]


# ============================================
# End-to-end
# ============================================

class TestReconciliation:
    """The full pipeline."""

    def test_incoming_null_does_not_erase(self):
        existing = [{
            "membershipNumber": "M1",
            "transactionBarcode": "B1",
            "transactionDateTime": "2023-01-01T00:00:00Z",
            "total": 10,
        }]
        fetched = [{
            "membershipNumber": "M1",
            "transactionBarcode": "B1",
            "transactionDateTime": "2023-01-01T00:00:00Z",
            "total": None,
            "itemArray": [{"itemNumber": "X"}],
        }]

        result = reconcile(existing, fetched)

        assert len(result.records) == 1
        assert result.duplicates_removed == 1
        record = result.records[0]
        assert record.total == 10
        assert len(record.itemArray) == 1
        assert record.itemArray[0].itemNumber == "X"
        assert record.to_dict()["itemArray"][0]["itemUPCNumber"] is None
        assert record.schema_version == RECEIPT_SCHEMA_VERSION

    def test_fetched_side_wins_conflicts(self):
        result = reconcile(
            [make_receipt("B1", total=10, warehouseCity="Ottawa")],
            [make_receipt("B1", total=12)],
        )

        assert result.records[0].total == 12
        assert result.records[0].warehouseCity == "Ottawa"

    def test_later_fetched_sighting_wins(self):
        result = reconcile([], [
            make_receipt("B1", total=1),
            make_receipt("B1", total=2),
        ])

        assert result.records[0].total == 2

    def test_merges_against_previously_normalized_file(self):
        saved = normalize(make_receipt(
            "B1",
            total=10,
            itemArray=[{"itemNumber": "1"}, {"itemNumber": "2"}],
            subTaxes={"aTaxAmount": 0.5},
        )).to_dict()
        fetched = make_receipt("B1", total=None, itemArray=[], subTaxes={"bTaxAmount": 0.7})

        record = reconcile([saved], [fetched]).records[0]

        assert record.total == 10
        assert [i.itemNumber for i in record.itemArray] == ["1", "2"]
        assert record.subTaxes.aTaxAmount == 0.5
        assert record.subTaxes.bTaxAmount == 0.7

    def test_diagnostic_fields_survive_merge(self):
        fetched = {"membershipNumber": "M1", "transactionBarcode": "B1", "total": 5}

        record = reconcile([make_receipt("B1")], [fetched]).records[0]

        assert record.warehouseNumber == 1343
        assert record.registerNumber == 5
        assert record.transactionNumber == 186

    def test_dedup_count(self):
        fetched = [
            make_receipt("B1"),
            make_receipt("B2"),
            make_receipt("B1"),
            make_receipt("B3"),
            make_receipt("B2"),
        ]

        result = reconcile([], fetched)

        assert len(result.records) == 3
        assert result.duplicates_removed == len(fetched) - 3
        assert result.summary.total_input == 5
        assert result.summary.unique_records == 3

    def test_same_barcode_other_member_kept(self):
        result = reconcile([make_receipt("B1", member="M1")], [make_receipt("B1", member="M2")])

        assert len(result.records) == 2
        assert result.duplicates_removed == 0

    def test_missing_member_grouped_under_sentinel(self):
        result = reconcile(
            [make_receipt("B1", member=None)],
            [make_receipt("B1", member="", total=3)],
        )

        assert len(result.records) == 1
        assert result.records[0].total == 3

    def test_empty_run(self):
        result = reconcile([], [])

        assert result.is_empty
        assert result.records == []
        assert result.summary.unique_records == 0
        assert result.duplicates_removed == 0

    def test_no_existing_file(self):
        result = reconcile(None, [make_receipt("B1")])

        assert barcodes(result) == ["B1"]
        assert result.summary.total_existing == 0

    def test_inputs_not_modified(self):
        existing = [make_receipt("B1", total=10)]
        fetched = [make_receipt("B1", total=None)]

        reconcile(existing, fetched)

        assert existing[0]["total"] == 10
        assert fetched[0]["total"] is None
        assert "__schemaVersion" not in existing[0]

    def test_to_dict(self):
        payload = reconcile([make_receipt("B1")], [make_receipt("B2")]).to_dict()

        assert payload["summary"]["unique_records"] == 2
        assert payload["records"][0]["__schemaVersion"] == RECEIPT_SCHEMA_VERSION
        assert payload["members"]["M1"]["total_saved"] == 2
        assert payload["anomalies"] == []

    def test_fresh_result_has_no_stats(self):
        result = ReconciliationResult()

        assert result.stats is None
        assert result.to_dict()["members"] == {}
        assert result.to_dict()["summary"] is None


# ============================================
# Identity Failure
# ============================================

class TestIdentityFailureHaltsPipeline:
    """One receipt without a barcode aborts the whole run."""

    @pytest.mark.parametrize("position", [0, 1, 2])
    def test_fetched_any_position(self, position):
        fetched = [make_receipt("B1"), make_receipt("B2"), make_receipt("B3")]
        fetched[position]["transactionBarcode"] = ""

        with pytest.raises(IdentityError) as exc_info:
            reconcile([make_receipt("B0")], fetched)

        assert exc_info.value.source == "fetched"
        assert exc_info.value.index == position

    def test_existing_side_reported(self):
        broken = make_receipt("B9")
        del broken["transactionBarcode"]

        with pytest.raises(IdentityError) as exc_info:
            reconcile([make_receipt("B1"), broken], [make_receipt("B2")])

        assert exc_info.value.source == "existing"
        assert exc_info.value.index == 1
        assert exc_info.value.diagnostics["registerNumber"] == 5


# ============================================
# Malformed Nested Entries
# ============================================

class TestMalformedNestedEntries:
    """Null array entries are default rows; other non-objects abort the run."""

    def test_null_item_becomes_default_row(self):
        result = reconcile([], [make_receipt("B1", itemArray=[None])])

        assert len(result.records[0].itemArray) == 1
        assert result.records[0].to_dict()["itemArray"][0]["itemNumber"] is None

    def test_non_object_item_aborts(self):
        with pytest.raises(RecordShapeError) as exc_info:
            reconcile([make_receipt("B1")], [make_receipt("B2", itemArray=[{"itemNumber": "X"}, 7])])

        assert exc_info.value.collection == "itemArray"
        assert exc_info.value.index == 1
        assert exc_info.value.barcode == "B2"

    def test_fetched_list_replaces_malformed_existing_one(self):
        result = reconcile(
            [make_receipt("B1", tenderArray=["cash"])],
            [make_receipt("B1", tenderArray=[{"tenderTypeCode": "061"}])],
        )

        assert result.records[0].tenderArray[0].tenderTypeCode == "061"


# ============================================
# Ordering
# ============================================

class TestOrdering:
    """Stable ascending sort by transactionDateTime."""

    def test_ascending_and_stable(self):
        fetched = [
            make_receipt("B1", when="2024-03-01T10:00:00Z"),
            make_receipt("B2", when="2023-01-01T00:00:00Z"),
            make_receipt("B3", when="2023-01-01T00:00:00Z"),
        ]

        assert barcodes(reconcile([], fetched)) == ["B2", "B3", "B1"]

    def test_offsets_compared_as_instants(self):
        fetched = [
            make_receipt("LATE", when="2023-01-01T00:00:00-05:00"),
            make_receipt("EARLY", when="2023-01-01T03:00:00Z"),
        ]

        assert barcodes(reconcile([], fetched)) == ["EARLY", "LATE"]

    def test_naive_timestamps(self):
        fetched = [
            make_receipt("B1", when="2024-04-01T11:25:00"),
            make_receipt("B2", when="2024-04-01T09:00:00"),
        ]

        assert barcodes(reconcile([], fetched)) == ["B2", "B1"]

    def test_undated_receipts_last(self):
        fetched = [
            make_receipt("NODATE", when=None),
            make_receipt("B1", when="2024-01-01T00:00:00Z"),
            make_receipt("BAD", when="not a date"),
            make_receipt("B0", when="2020-01-01T00:00:00Z"),
        ]

        assert barcodes(reconcile([], fetched)) == ["B0", "B1", "NODATE", "BAD"]

    def test_sort_receipts_helper(self):
        records = [normalize(make_receipt(b, when=w)) for b, w in [
            ("B1", "2022-05-05T00:00:00Z"),
            ("B2", "2021-05-05T00:00:00Z"),
        ]]

        assert [r.transactionBarcode for r in sort_receipts(records)] == ["B2", "B1"]

    def test_parse_transaction_datetime(self):
        assert parse_transaction_datetime("2024-01-01T00:00:00Z").tzinfo is not None
        assert parse_transaction_datetime("2024-01-01").year == 2024
        assert parse_transaction_datetime("") is None
        assert parse_transaction_datetime(None) is None
        assert parse_transaction_datetime(20240101) is None

    @pytest.mark.parametrize("value, micros", [
        ("2023-01-01T10:00:00.5Z", 500000),
        ("2023-01-01T10:00:00.12Z", 120000),
        ("2023-01-01T10:00:00.1234567+00:00", 123456),
        ("2023-01-01T10:00:00.123", 123000),
    ])
    def test_any_fraction_length(self, value, micros):
        parsed = parse_transaction_datetime(value)

        assert parsed is not None
        assert parsed.microsecond == micros
        assert parsed.hour == 10

    def test_short_fraction_sorts_by_instant(self):
        result = reconcile([], [
            make_receipt("B1", when="2023-01-01T00:00:00.5Z"),
            make_receipt("B2", when="2023-01-01T00:00:00.25Z"),
            make_receipt("B3", when=None),
        ])

        assert barcodes(result) == ["B2", "B1", "B3"]


# ============================================
# Statistics
# ============================================

class TestStatistics:
    """Per-member counters mirror the grouping decisions."""

    def make_run(self):
        existing = [make_receipt("B1"), make_receipt("B2")]
        fetched = [
            make_receipt("B1"),
            make_receipt("B3"),
            make_receipt("B3"),
            make_receipt("C1", member="M2"),
        ]
        return reconcile(existing, fetched, repeated_threshold=0)

    def test_counters(self):
        result = self.make_run()
        m1 = result.stats.get("M1")
        m2 = result.stats.get("M2")

        assert (m1.existing, m1.new, m1.unique, m1.repeated) == (2, 3, 1, 1)
        assert (m2.existing, m2.new, m2.unique, m2.repeated) == (0, 1, 1, 0)

    def test_derived_values(self):
        m1 = self.make_run().stats.get("M1")

        assert m1.duplicates_in_fetch == 2
        assert m1.final_saved == 3

    def test_totals_match_output(self):
        result = self.make_run()
        totals = result.stats.totals

        assert totals == {"members": 2, "existing": 2, "fetched": 4, "new_merged": 2}
        assert len(result.records) == 4
        assert totals["existing"] + totals["new_merged"] == len(result.records)
        assert result.summary.members == 2
        assert result.summary.new_merged == 2

    def test_repeated_keys_reported_as_anomaly(self):
        result = self.make_run()

        assert len(result.anomalies) == 1
        assert result.anomalies[0].partition_key == "M1"
        assert result.anomalies[0].repeated == 1

    def test_anomaly_threshold(self):
        existing = [make_receipt("B1")]
        fetched = [make_receipt("B2"), make_receipt("B2")]

        assert reconcile(existing, fetched, repeated_threshold=1).anomalies == []

    def test_unknown_member_not_attributed(self):
        result = reconcile([], [make_receipt("B1", member=None)])

        assert result.stats.partitions == {}
        assert len(result.records) == 1

    def test_stats_do_not_leak_between_runs(self):
        reconcile([], [make_receipt("B1")])
        second = reconcile([], [make_receipt("B2", member="M3")])

        assert list(second.stats.partitions) == ["M3"]
