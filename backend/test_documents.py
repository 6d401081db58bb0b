"""
Canonical Documents - Test Suite

Tests the document builder between detection and serialization:
1. Per-item documents with metadata preambles
2. Large table splitting
3. Sheet name sanitization, truncation and de-duplication
4. Combined single-sheet documents
5. Size and time estimates

Run with: python -m pytest test_documents.py -v
"""

import sys

import pytest

from export_engine.exceptions.export_exceptions import EmptySelectionError
from export_engine.schema.export_config import ExportConfiguration, ExportFormat, ExportSelection
from export_engine.services.detection.models import DetectionResult, TabularBlock
from export_engine.services.export.documents import DocumentBuilder
from export_engine.services.export.estimates import estimate, estimate_export_time, format_bytes


def make_table(table_id, name, rows, headers=None):
    return TabularBlock(
        id=table_id,
        name=name,
        headers=headers or ["Studio", "Members"],
        rows=rows,
        source_location="members-section",
    )


def all_of(result):
    return ExportSelection(
        tables=[t.id for t in result.tables],
        metrics=[m.id for m in result.metrics],
        charts=[c.id for c in result.charts],
        rankings=[r.id for r in result.rankings],
    )


def test_per_item_documents(sample_result, fixed_clock):
    """Tables, then metrics, rankings and charts, each with a preamble."""
    print("\n" + "="*70)
    print("TEST: Per-item documents")
    print("="*70)

    builder = DocumentBuilder(clock=fixed_clock)
    documents = builder.build(sample_result, all_of(sample_result), ExportConfiguration(format=ExportFormat.CSV))

    names = [d.sheet_name for d in documents]
    assert names == ["Studio Revenue", "Class Attendance", "Metrics", "Top Instructors", "Charts"]
    print(f"   ✓ Documents: {names}")

    revenue = documents[0]
    assert revenue.header_row == ["Name", "Revenue", "Date"]
    assert revenue.row_count == 3
    assert revenue.rows[1] == ["Bruno", 950.5, "2024-01-06"]
    assert revenue.source_ids == ["table-4-0"]
    assert revenue.metadata_preamble == [
        ["Export", "Studio Revenue"],
        ["Generated", "2024-03-01 09:30:15"],
        ["Location", "sales-section"],
        ["Includes", "Studio Revenue: 3 rows x 3 columns"],
        ["Units", "Revenue=currency:USD"],
    ]
    print("   ✓ Table preamble lists title, time, location, manifest and units")

    metrics = documents[2]
    assert metrics.header_row == DocumentBuilder.METRIC_HEADERS
    assert metrics.rows == [["Total Revenue", 12500, "currency", "currency:USD", "up", "↑ 12%", "financial"]]

    ranking = documents[3]
    assert ranking.rows == [[1, "Maya", "98"], [2, "Leo", "91"]]

    charts = documents[4]
    assert charts.rows == [["Attendance Trend", "container", 10, 20, 400, 300, "charts-section"]]
    print("   ✓ Metric, ranking and chart rows")

    print("\n✅ Per-item documents test PASSED")


def test_headers_and_metadata_toggles(sample_result, fixed_clock):
    builder = DocumentBuilder(clock=fixed_clock)
    config = ExportConfiguration(format=ExportFormat.CSV, include_headers=False, include_metadata=False)
    documents = builder.build(sample_result, ExportSelection(tables=["table-4-1"]), config)

    assert len(documents) == 1
    assert documents[0].header_row is None
    assert documents[0].metadata_preamble is None
    assert documents[0].column_count == 3


def test_metadata_manifest(sample_result, fixed_clock):
    builder = DocumentBuilder(clock=fixed_clock)
    resolved = builder.resolve(sample_result, all_of(sample_result))
    metadata = builder.build_metadata(sample_result, resolved)

    assert metadata.source_location == "sales-section"
    assert [e.kind for e in metadata.manifest] == ["table", "table", "metrics", "ranking", "charts"]
    assert metadata.units == {
        "Studio Revenue": {"Revenue": "currency:USD"},
        "Class Attendance": {"Fill Rate": "percent"},
    }

    as_dict = metadata.to_dict()
    assert as_dict["generatedAt"] == "2024-03-01T09:30:15"
    assert as_dict["view"] == "studio"
    assert as_dict["items"][0] == {"name": "Studio Revenue", "kind": "table", "rowCount": 3, "columnCount": 3}


def test_split_large_table(fixed_clock):
    """150,000 rows with a 100,000 row limit become two parts."""
    print("\n" + "="*70)
    print("TEST: Large table split")
    print("="*70)

    rows = [[f"Studio {i}", i] for i in range(150000)]
    result = DetectionResult(tables=[make_table("table-1-0", "Member Log", rows)], view_name="members")
    selection = ExportSelection(tables=["table-1-0"])
    builder = DocumentBuilder(clock=fixed_clock)

    config = ExportConfiguration(format=ExportFormat.WORKBOOK, split_large_files=True, max_rows_per_sheet=100000)
    documents = builder.build(result, selection, config)

    assert [d.row_count for d in documents] == [100000, 50000]
    assert [d.sheet_name for d in documents] == ["Member Log (Part 1)", "Member Log (Part 2)"]
    assert documents[1].rows[0] == ["Studio 100000", 100000]
    assert documents[0].header_row == documents[1].header_row == ["Studio", "Members"]
    assert (documents[0].part, documents[0].part_count) == (1, 2)
    print("   ✓ 100000 + 50000 rows, headers repeated on each part")

    unsplit = builder.build(result, selection, ExportConfiguration(format=ExportFormat.WORKBOOK))
    assert len(unsplit) == 1
    assert unsplit[0].row_count == 150000
    print("   ✓ Without split_large_files every row stays in one document")

    print("\n✅ Large table split test PASSED")


def test_part_names_keep_suffix(fixed_clock):
    long_name = "Quarterly Membership Retention By Studio"
    rows = [[f"Studio {i}", i] for i in range(5)]
    result = DetectionResult(tables=[make_table("table-1-0", long_name, rows)])
    config = ExportConfiguration(format=ExportFormat.WORKBOOK, split_large_files=True, max_rows_per_sheet=3)

    documents = DocumentBuilder(clock=fixed_clock).build(result, ExportSelection(tables=["table-1-0"]), config)

    assert len(documents) == 2
    for part, document in enumerate(documents, start=1):
        assert len(document.sheet_name) <= 31
        assert document.sheet_name.endswith(f" (Part {part})")
        assert document.sheet_name.startswith("Quarterly Membership")


def test_empty_selection_rejected(sample_result, fixed_clock):
    """Nothing selected, or only unknown ids, is an error."""
    print("\n" + "="*70)
    print("TEST: Empty selection")
    print("="*70)

    builder = DocumentBuilder(clock=fixed_clock)
    config = ExportConfiguration()

    with pytest.raises(EmptySelectionError):
        builder.build(sample_result, ExportSelection(), config)
    with pytest.raises(EmptySelectionError):
        builder.build(sample_result, ExportSelection(tables=["table-9-9"]), config)
    print("   ✓ EmptySelectionError raised")

    # unknown ids next to known ones are ignored
    documents = builder.build(sample_result, ExportSelection(tables=["table-9-9", "table-4-0"]), config)
    assert [d.sheet_name for d in documents] == ["Studio Revenue"]
    print("   ✓ Unknown ids ignored when others resolve")

    print("\n✅ Empty selection test PASSED")


def test_sheet_name_sanitization(fixed_clock):
    print("\n" + "="*70)
    print("TEST: Sheet names")
    print("="*70)

    builder = DocumentBuilder(clock=fixed_clock)
    name = "Revenue: Q1/Q2 [draft] by studio and instructor"
    cleaned = builder.sanitize_sheet_name(name, 31)
    assert len(cleaned) <= 31
    assert not any(ch in cleaned for ch in ':\\/?*[]')
    assert cleaned.startswith("Revenue_ Q1_Q2 _draft_")
    print(f"   ✓ '{name}' -> '{cleaned}'")

    assert builder.sanitize_sheet_name("", 31) == "Sheet"
    assert builder.sanitize_sheet_name("'quoted'", 31) == "quoted"
    assert builder.name_limit(ExportFormat.WORKBOOK) == 31
    assert builder.name_limit(ExportFormat.CSV) == 100

    print("\n✅ Sheet names test PASSED")


def test_duplicate_sheet_names(fixed_clock):
    result = DetectionResult(tables=[
        make_table("table-1-0", "Sales", [["A", 1]]),
        make_table("table-1-1", "sales", [["B", 2]]),
        make_table("table-1-2", "Sales", [["C", 3]]),
    ])
    selection = ExportSelection(tables=["table-1-0", "table-1-1", "table-1-2"])

    documents = DocumentBuilder(clock=fixed_clock).build(result, selection, ExportConfiguration(format=ExportFormat.CSV))

    assert [d.sheet_name for d in documents] == ["Sales", "sales (2)", "Sales (3)"]


def test_summary_name_reserved_in_workbooks(fixed_clock):
    result = DetectionResult(tables=[make_table("table-1-0", "Summary", [["A", 1]])])
    selection = ExportSelection(tables=["table-1-0"])
    builder = DocumentBuilder(clock=fixed_clock)

    workbook = builder.build(result, selection, ExportConfiguration(format=ExportFormat.WORKBOOK))
    assert workbook[0].sheet_name == "Summary (2)"

    without_metadata = builder.build(
        result, selection, ExportConfiguration(format=ExportFormat.WORKBOOK, include_metadata=False)
    )
    assert without_metadata[0].sheet_name == "Summary"

    csv = builder.build(result, selection, ExportConfiguration(format=ExportFormat.CSV))
    assert csv[0].sheet_name == "Summary"


def test_combined_document(sample_result, fixed_clock):
    """Selected items stacked under title rows, separated by blank rows."""
    print("\n" + "="*70)
    print("TEST: Combined document")
    print("="*70)

    config = ExportConfiguration(format=ExportFormat.CSV, combine_into_single_sheet=True, include_metadata=False)
    selection = ExportSelection(tables=["table-4-0"], metrics=["metric-3-0"])
    documents = DocumentBuilder(clock=fixed_clock).build(sample_result, selection, config)

    assert len(documents) == 1
    combined = documents[0]
    assert combined.sheet_name == "Combined Export"
    assert combined.header_row is None
    assert combined.rows[0] == ["Studio Revenue"]
    assert combined.rows[1] == ["Name", "Revenue", "Date"]
    assert combined.rows[5] == []
    assert combined.rows[6] == ["Metrics"]
    assert combined.rows[7] == DocumentBuilder.METRIC_HEADERS
    assert len(combined.rows) == 9
    assert combined.units == {"Studio Revenue / Revenue": "currency:USD"}
    assert combined.source_ids == ["table-4-0", "metric-3-0"]
    print(f"   ✓ {len(combined.rows)} rows in one sheet")

    with_metadata = DocumentBuilder(clock=fixed_clock).build(
        sample_result, selection, ExportConfiguration(format=ExportFormat.CSV, combine_into_single_sheet=True)
    )[0]
    includes = [line[1] for line in with_metadata.metadata_preamble[3:5]]
    assert includes == ["Studio Revenue: 3 rows x 3 columns", "Metrics: 1 rows x 7 columns"]
    print("   ✓ Preamble lists every included item")

    print("\n✅ Combined document test PASSED")


def test_estimates(fixed_clock):
    print("\n" + "="*70)
    print("TEST: Estimates")
    print("="*70)

    rows = [[f"Studio {i}", i, i * 2, i * 3] for i in range(100)]
    table = make_table("table-1-0", "Members", rows, headers=["Studio", "A", "B", "C"])
    result = DetectionResult(tables=[table])
    documents = DocumentBuilder(clock=fixed_clock).build(
        result, ExportSelection(tables=["table-1-0"]), ExportConfiguration()
    )

    result_estimate = estimate(documents)
    assert result_estimate.rows == 100
    assert result_estimate.columns == 4
    assert result_estimate.sizes[ExportFormat.CSV] == 3200
    assert result_estimate.sizes[ExportFormat.WORKBOOK] == 4800
    assert result_estimate.sizes[ExportFormat.PDF] == 10000
    assert result_estimate.seconds == 0.5
    print(f"   ✓ {result_estimate.to_dict()}")

    assert estimate_export_time(1000, 5) == pytest.approx(1.05)
    assert estimate_export_time(0, 0) == 0.5

    assert format_bytes(0) == "0 Bytes"
    assert format_bytes(500) == "500 Bytes"
    assert format_bytes(1536) == "1.5 KB"
    assert format_bytes(3670016) == "3.5 MB"
    print("   ✓ Byte formatting")

    print("\n✅ Estimates test PASSED")


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
