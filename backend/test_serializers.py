"""
Serializers - Test Suite

Renders canonical documents into every export format and reads the
output back with the library that understands it:
1. Workbook (openpyxl)
2. CSV, single file and zipped
3. JSON render and parse
4. PDF pagination, watermark and images (pypdf)
5. Markdown clipboard preview
6. Archive bundles and filenames

Run with: python -m pytest test_serializers.py -v
"""

import csv
import io
import json
import sys
import zipfile

import pytest
from openpyxl import load_workbook
from PIL import Image
from pypdf import PdfReader

from export_engine.exceptions.export_exceptions import SerializationFault
from export_engine.schema.export_config import (
    ColorOverrides,
    ExportConfiguration,
    ExportFormat,
    ExportSelection,
    Styling,
    ThemeName,
    Watermark,
)
from export_engine.services.detection.models import DetectionResult, TabularBlock
from export_engine.services.export.documents import CanonicalDocument, DocumentBuilder
from export_engine.services.export.filenames import FilenameAllocator, export_base_name, slugify
from export_engine.services.export.serializers import (
    ArchiveBundler,
    BaseSerializer,
    JsonSerializer,
    MarkdownSerializer,
    PdfSerializer,
    RenderContext,
    SerializedFile,
    WorkbookSerializer,
    get_serializer,
)
from export_engine.services.export.themes import THEMES, hex_to_argb, resolve_palette


def render(result, selection, config, clock, images=None, serializer=None):
    builder = DocumentBuilder(clock=clock)
    metadata = builder.build_metadata(result, builder.resolve(result, selection))
    documents = builder.build(result, selection, config, metadata)
    context = RenderContext(
        base_name="studio-export",
        metadata=metadata,
        images=images or {},
        allocator=FilenameAllocator(clock=clock),
    )
    return (serializer or get_serializer(config.format)).serialize(documents, config, context)


def png_bytes(width=120, height=80):
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), (63, 131, 248)).save(buffer, format="PNG")
    return buffer.getvalue()


TABLES = ExportSelection(tables=["table-4-0", "table-4-1"])


# =============================================================================
# WORKBOOK
# =============================================================================

def test_workbook_two_tables_with_summary(sample_result, fixed_clock):
    """Two long table names become distinct 31-character sheets after Summary."""
    print("\n" + "="*70)
    print("TEST: Workbook with two tables")
    print("="*70)

    sample_result.tables[0].name = "Studio Revenue Performance Analysis Q1"
    sample_result.tables[1].name = "Studio Revenue Performance Analysis Q2"

    file = render(sample_result, TABLES, ExportConfiguration(format=ExportFormat.WORKBOOK), fixed_clock)

    assert file.filename == "studio-export-2024-03-01.xlsx"
    assert file.media_type == WorkbookSerializer.MEDIA_TYPE
    print(f"   ✓ {file.filename} ({file.size} bytes)")

    workbook = load_workbook(io.BytesIO(file.content))
    assert workbook.sheetnames == ["Summary", "Studio Revenue Performance Anal", "Studio Revenue Performance (2)"]
    assert all(len(name) <= 31 for name in workbook.sheetnames)
    print(f"   ✓ Sheets: {workbook.sheetnames}")

    summary = workbook["Summary"]
    assert summary["A1"].value == "Export Summary"
    assert summary["B2"].value == "2024-03-01 09:30:15"
    assert summary["B3"].value == "sales-section"
    assert summary["A8"].value == "Studio Revenue Performance Anal"
    assert summary["B8"].value == "3 rows x 3 columns"
    print("   ✓ Summary sheet lists every sheet")

    revenue = workbook["Studio Revenue Performance Anal"]
    assert [c.value for c in revenue[1]] == ["Name", "Revenue", "Date"]
    assert revenue["A1"].font.b
    assert revenue.freeze_panes == "A2"
    assert revenue.max_row == 4
    assert revenue["B2"].value == 1200
    assert revenue["B3"].value == 950.5
    print("   ✓ Bold frozen header and numeric cells")

    print("\n✅ Workbook test PASSED")


def test_workbook_without_metadata_and_custom_colors(sample_result, fixed_clock):
    config = ExportConfiguration(
        format=ExportFormat.WORKBOOK,
        include_metadata=False,
        styling=Styling(theme=ThemeName.DARK, colors=ColorOverrides(header_fill="112233")),
    )
    file = render(sample_result, ExportSelection(tables=["table-4-1"]), config, fixed_clock)

    workbook = load_workbook(io.BytesIO(file.content))
    assert workbook.sheetnames == ["Class Attendance"]
    header = workbook["Class Attendance"]["A1"]
    assert header.fill.fgColor.rgb == "FF112233"
    assert header.font.color.rgb == hex_to_argb(THEMES[ThemeName.DARK].header_text)


def test_workbook_row_limit(sample_result, fixed_clock, monkeypatch):
    """A sheet larger than the workbook limit fails instead of truncating."""
    monkeypatch.setattr(WorkbookSerializer, "MAX_SHEET_ROWS", 3)

    with pytest.raises(SerializationFault) as exc_info:
        render(sample_result, ExportSelection(tables=["table-4-0"]), ExportConfiguration(), fixed_clock)
    assert "split_large_files" in exc_info.value.detail


# =============================================================================
# CSV
# =============================================================================

def test_csv_single_document(sample_result, fixed_clock):
    print("\n" + "="*70)
    print("TEST: CSV single document")
    print("="*70)

    config = ExportConfiguration(format=ExportFormat.CSV)
    file = render(sample_result, ExportSelection(tables=["table-4-0"]), config, fixed_clock)

    assert file.filename == "studio-export-2024-03-01.csv"
    assert file.media_type == "text/csv"

    text = file.content.decode("utf-8")
    lines = text.split("\r\n")
    assert lines[0] == "Export,Studio Revenue"
    assert lines[4] == "Units,Revenue=currency:USD"
    assert lines[5] == ""
    assert lines[6] == "Name,Revenue,Date"
    assert lines[7] == "Alice,1200,2024-01-05"
    assert lines[8] == "Bruno,950.5,2024-01-06"
    print("   ✓ Preamble, blank row, header, data")

    print("\n✅ CSV single document test PASSED")


def test_csv_quoting():
    document = CanonicalDocument(
        sheet_name="Notes",
        header_row=["Member", "Note"],
        rows=[["Smith, Jo", 'Said "great class"'], ["Lee", "line one\nline two"]],
    )
    file = get_serializer(ExportFormat.CSV).serialize(
        [document], ExportConfiguration(format=ExportFormat.CSV, include_metadata=False)
    )

    rows = list(csv.reader(io.StringIO(file.content.decode("utf-8"), newline="")))
    assert rows == [["Member", "Note"], ["Smith, Jo", 'Said "great class"'], ["Lee", "line one\nline two"]]
    assert '"Smith, Jo"' in file.content.decode("utf-8")


def test_csv_multiple_documents_zipped(sample_result, fixed_clock):
    config = ExportConfiguration(format=ExportFormat.CSV)
    file = render(sample_result, TABLES, config, fixed_clock)

    assert file.filename == "studio-export-2024-03-01.zip"
    assert file.media_type == "application/zip"

    with zipfile.ZipFile(io.BytesIO(file.content)) as archive:
        assert archive.namelist() == ["studio-revenue-2024-03-01.csv", "class-attendance-2024-03-01.csv"]
        attendance = archive.read("class-attendance-2024-03-01.csv").decode("utf-8")
    assert "Class,Attendees,Fill Rate" in attendance
    assert "Spin,18,90" in attendance


# =============================================================================
# JSON
# =============================================================================

def test_json_render_and_parse(sample_result, fixed_clock):
    print("\n" + "="*70)
    print("TEST: JSON")
    print("="*70)

    config = ExportConfiguration(format=ExportFormat.JSON)
    file = render(sample_result, TABLES, config, fixed_clock)

    payload = json.loads(file.content)
    assert payload["metadata"]["generatedAt"] == "2024-03-01T09:30:15"
    assert payload["metadata"]["view"] == "studio"
    assert [t["name"] for t in payload["tables"]] == ["Studio Revenue", "Class Attendance"]

    revenue = payload["tables"][0]
    assert revenue["headers"] == ["Name", "Revenue", "Date"]
    assert revenue["rows"][0] == ["Alice", 1200.0, "2024-01-05"]
    assert revenue["rowCount"] == 3
    assert revenue["columnCount"] == 3
    assert revenue["units"] == {"Revenue": "currency:USD"}
    assert revenue["location"] == "sales-section"
    print("   ✓ Numbers stay numbers, units kept beside them")

    documents = JsonSerializer().parse(file.content)
    assert [d.sheet_name for d in documents] == ["Studio Revenue", "Class Attendance"]
    assert documents[1].rows == [["Spin", 18, 90], ["Barre", 12, 60]]
    assert documents[1].units == {"Fill Rate": "percent"}
    print("   ✓ Parsed back into documents")

    without_metadata = render(
        sample_result, TABLES, ExportConfiguration(format=ExportFormat.JSON, include_metadata=False), fixed_clock
    )
    assert "metadata" not in json.loads(without_metadata.content)

    print("\n✅ JSON test PASSED")


def test_json_parse_rejects_other_content():
    with pytest.raises(SerializationFault):
        JsonSerializer().parse(b"not json")
    with pytest.raises(SerializationFault):
        JsonSerializer().parse(b'{"items": []}')


# =============================================================================
# PDF
# =============================================================================

def test_pdf_pagination_and_watermark(fixed_clock):
    print("\n" + "="*70)
    print("TEST: PDF")
    print("="*70)

    rows = [[f"Member {i}", i * 10] for i in range(25)]
    table = TabularBlock(id="table-1-0", name="Check-ins", headers=["Member", "Visits"], rows=rows)
    result = DetectionResult(tables=[table], view_name="studio")
    config = ExportConfiguration(
        format=ExportFormat.PDF,
        watermark=Watermark(enabled=True, text="CONFIDENTIAL"),
    )

    file = render(result, ExportSelection(tables=["table-1-0"]), config, fixed_clock, serializer=PdfSerializer(rows_per_page=10))
    assert file.filename == "studio-export-2024-03-01.pdf"
    assert file.content.startswith(b"%PDF")

    reader = PdfReader(io.BytesIO(file.content))
    assert len(reader.pages) == 3
    print(f"   ✓ 25 rows at 10 per page -> {len(reader.pages)} pages")

    first = reader.pages[0].extract_text()
    assert "Data Export Report" in first
    assert "Member 0" in first
    assert "(continued)" in reader.pages[1].extract_text()
    assert "Member 24" in reader.pages[2].extract_text()

    for page in reader.pages:
        assert b"CONFIDENTIAL" in page.get_contents().get_data()
    print("   ✓ Watermark on every page")

    print("\n✅ PDF test PASSED")


def test_pdf_includes_chart_images(sample_result, fixed_clock):
    config = ExportConfiguration(format=ExportFormat.PDF, include_images=True)
    selection = ExportSelection(tables=["table-4-1"], charts=["chart-3-0"])

    file = render(sample_result, selection, config, fixed_clock, images={"chart-3-0": ("Attendance Trend", png_bytes())})

    reader = PdfReader(io.BytesIO(file.content))
    last = reader.pages[-1]
    assert "/XObject" in last["/Resources"]
    assert "Attendance Trend" in last.extract_text()


# =============================================================================
# MARKDOWN
# =============================================================================

def test_markdown_preview_is_capped(sample_result, fixed_clock):
    print("\n" + "="*70)
    print("TEST: Markdown preview")
    print("="*70)

    config = ExportConfiguration(format=ExportFormat.CLIPBOARD)
    file = render(
        sample_result,
        ExportSelection(tables=["table-4-0"]),
        config,
        fixed_clock,
        serializer=MarkdownSerializer(preview_rows=2),
    )

    assert file.filename == "studio-export-2024-03-01.md"
    text = file.content.decode("utf-8")
    lines = text.splitlines()
    assert lines[0] == "# sales-section - studio Data Export"
    assert "Generated: 2024-03-01 09:30:15" in lines
    assert "## Studio Revenue" in lines
    assert "| Name | Revenue | Date |" in lines
    assert "| Alice | 1200 | 2024-01-05 |" in lines
    assert "| Chen | 2100 | 2024-01-07 |" not in lines
    assert "*... and 1 more rows*" in lines
    print("   ✓ Two rows shown, the rest summarized")

    print("\n✅ Markdown preview test PASSED")


def test_markdown_escapes_pipes():
    document = CanonicalDocument(sheet_name="Notes", header_row=["Note"], rows=[["a|b"]])
    text = MarkdownSerializer().render_text([document], ExportConfiguration(), RenderContext())
    assert "| a\\|b |" in text
    assert text.startswith("# Data Export")


# =============================================================================
# ARCHIVE AND FILENAMES
# =============================================================================

def test_archive_format(sample_result, fixed_clock):
    config = ExportConfiguration(format=ExportFormat.ARCHIVE, include_images=True)
    selection = ExportSelection(tables=["table-4-0"], charts=["chart-3-0"])

    file = render(sample_result, selection, config, fixed_clock, images={"chart-3-0": ("Attendance Trend", png_bytes())})
    assert file.filename == "studio-export-2024-03-01.zip"

    with zipfile.ZipFile(io.BytesIO(file.content)) as archive:
        names = archive.namelist()
        metadata = json.loads(archive.read("metadata.json"))
    assert names == [
        "studio-revenue-2024-03-01.csv",
        "charts-2024-03-01.csv",
        "metadata.json",
        "attendance-trend-2024-03-01.png",
    ]
    assert [item["kind"] for item in metadata["items"]] == ["table", "charts"]


def test_archive_bundler_renames_collisions(fixed_clock):
    files = [
        SerializedFile("sales.csv", b"a", "text/csv"),
        SerializedFile("sales.csv", b"b", "text/csv"),
        SerializedFile("Sales.csv", b"c", "text/csv"),
    ]
    bundle = ArchiveBundler().bundle(files, "sales-export", FilenameAllocator(clock=fixed_clock))

    with zipfile.ZipFile(io.BytesIO(bundle.content)) as archive:
        assert archive.namelist() == ["sales.csv", "sales-093015.csv", "Sales-093015-2.csv"]
        assert archive.read("sales-093015.csv") == b"b"

    with pytest.raises(SerializationFault):
        ArchiveBundler().bundle([], "sales-export", FilenameAllocator(clock=fixed_clock))


def test_filenames(fixed_clock):
    print("\n" + "="*70)
    print("TEST: Filenames")
    print("="*70)

    assert slugify("Month on Month: Sales") == "month-on-month-sales"
    assert slugify("  ") == "export"
    assert export_base_name(ExportConfiguration(), "Studio") == "studio-export"
    assert export_base_name(ExportConfiguration(custom_file_name="Q1 Report"), "Studio") == "q1-report"

    allocator = FilenameAllocator(existing=["sales-2024-03-01.xlsx"], clock=fixed_clock)
    assert allocator.allocate("sales", "xlsx") == "sales-2024-03-01-093015.xlsx"
    assert allocator.allocate("sales", "xlsx") == "sales-2024-03-01-093015-2.xlsx"
    assert allocator.allocate("sales", "csv") == "sales-2024-03-01.csv"
    print("   ✓ Collisions get a time suffix, then a counter")

    print("\n✅ Filenames test PASSED")


# =============================================================================
# CONTRACT
# =============================================================================

class ExplodingSerializer(BaseSerializer):
    FORMAT = ExportFormat.CSV
    EXTENSION = "csv"

    def render(self, documents, configuration, context):
        raise RuntimeError("disk on fire")


def test_render_errors_become_serialization_faults():
    document = CanonicalDocument(sheet_name="Sales", header_row=["A"], rows=[[1]])

    with pytest.raises(SerializationFault) as exc_info:
        ExplodingSerializer().serialize([document], ExportConfiguration())
    assert "disk on fire" in exc_info.value.detail

    with pytest.raises(SerializationFault):
        get_serializer(ExportFormat.JSON).serialize([], ExportConfiguration())


def test_palette_overrides():
    palette = resolve_palette(Styling(theme=ThemeName.MODERN, colors=ColorOverrides(header_text="#abcdef")))
    assert palette.header_text == "#ABCDEF"
    assert palette.header_fill == THEMES[ThemeName.MODERN].header_fill
    assert hex_to_argb("#3f83f8") == "FF3F83F8"


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
