"""
Value Parser - Test Suite

Tests cell classification and normalization without a page snapshot:
1. Currency, percentage, number, date and text classification
2. Locale-aware number parsing
3. Column type inference by majority vote
4. Column summaries

Run with: python -m pytest test_value_parser.py -v
"""

import sys

import pytest

from export_engine.services.detection.models import ValueType
from export_engine.services.detection.value_parser import NumberLocale, ValueParser, summarize_column


def test_classification_priority():
    """Currency beats percentage beats number beats date beats text."""
    print("\n" + "="*70)
    print("TEST: Classification priority")
    print("="*70)

    parser = ValueParser(NumberLocale.EN)

    parsed = parser.parse("$1,234.50")
    assert parsed.type == ValueType.CURRENCY
    assert parsed.value == 1234.5
    assert parsed.unit == "currency:USD"
    print(f"   ✓ '$1,234.50' -> {parsed.value} ({parsed.unit})")

    parsed = parser.parse("£90,000")
    assert parsed.type == ValueType.CURRENCY
    assert parsed.value == 90000
    assert parsed.unit == "currency:GBP"

    parsed = parser.parse("12.5%")
    assert parsed.type == ValueType.PERCENTAGE
    assert parsed.value == 12.5
    assert parsed.unit == "percent"
    print(f"   ✓ '12.5%' -> {parsed.value} ({parsed.unit})")

    parsed = parser.parse("1,024")
    assert parsed.type == ValueType.NUMBER
    assert parsed.value == 1024
    assert isinstance(parsed.value, int)

    parsed = parser.parse("2024-01-15", header="Date")
    assert parsed.type == ValueType.DATE
    assert parsed.value == "2024-01-15"
    print(f"   ✓ '2024-01-15' under 'Date' -> {parsed.value}")

    parsed = parser.parse("Morning Yoga")
    assert parsed.type == ValueType.TEXT
    assert parsed.value == "Morning Yoga"

    parsed = parser.parse("   ")
    assert parsed.type == ValueType.TEXT
    assert parsed.is_empty

    print("\n✅ Classification priority test PASSED")


def test_header_hints():
    """Header names steer bare numbers to currency and strings to dates."""
    print("\n" + "="*70)
    print("TEST: Header hints")
    print("="*70)

    parser = ValueParser(NumberLocale.EN)

    parsed = parser.parse("1,200", header="Revenue")
    assert parsed.type == ValueType.CURRENCY
    assert parsed.unit == "currency"
    print("   ✓ bare number under 'Revenue' is currency")

    # a currency header wins over a percent sign
    parsed = parser.parse("15%", header="Revenue growth")
    assert parsed.type == ValueType.CURRENCY
    assert parsed.value == 15
    assert parser.parse("15%", header="Growth").type == ValueType.PERCENTAGE
    print("   ✓ currency header outranks a percent sign")

    parsed = parser.parse("Jan 15, 2024", header="Created")
    assert parsed.type == ValueType.DATE
    assert parsed.value == "2024-01-15"

    parsed = parser.parse("01/15/2024 14:30", header="Updated time")
    assert parsed.type == ValueType.DATE
    assert parsed.value == "2024-01-15T14:30:00"
    print("   ✓ timestamps keep their time of day")

    # without a date-like header the same text stays text
    parsed = parser.parse("Jan 15, 2024", header="Class")
    assert parsed.type == ValueType.TEXT

    print("\n✅ Header hints test PASSED")


def test_negative_numbers():
    print("\n" + "="*70)
    print("TEST: Negative numbers")
    print("="*70)

    parser = ValueParser(NumberLocale.EN)

    assert parser.parse_number("-42") == -42
    assert parser.parse_number("(1,234.50)") == -1234.5
    assert parser.parse_number("−7") == -7
    assert parser.parse_number("+3.5") == 3.5
    assert parser.parse("$-12").value == -12
    assert parser.parse("-$12").value == -12
    print("   ✓ leading signs and accounting parentheses")

    print("\n✅ Negative numbers test PASSED")


@pytest.mark.parametrize("locale, expected", [
    (NumberLocale.EN, None),
    (NumberLocale.EU, 1.5),
    (NumberLocale.PLAIN, None),
])
def test_ambiguous_separator(locale, expected):
    """'1,5' is only a number where the locale says the comma is decimal."""
    parser = ValueParser(locale)
    assert parser.parse_number("1,5") == expected


def test_locale_grouping():
    print("\n" + "="*70)
    print("TEST: Locale grouping")
    print("="*70)

    en = ValueParser(NumberLocale.EN)
    eu = ValueParser(NumberLocale.EU)
    plain = ValueParser(NumberLocale.PLAIN)

    assert en.parse_number("1,234,567.89") == 1234567.89
    assert eu.parse_number("1.234.567,89") == 1234567.89
    assert eu.parse("€1.234,50").value == 1234.5
    assert plain.parse_number("1234.5") == 1234.5
    assert plain.parse_number("1,234") is None
    # malformed grouping is not a number
    assert en.parse_number("12,34") is None
    print("   ✓ grouping separators are validated per locale")

    print("\n✅ Locale grouping test PASSED")


def test_infer_column_type():
    print("\n" + "="*70)
    print("TEST: Column type inference")
    print("="*70)

    parser = ValueParser(NumberLocale.EN)

    assert parser.infer_column_type(["$10", "$20", "n/a", "$5"]) == ValueType.CURRENCY
    assert parser.infer_column_type(["10", "20", "", ""]) == ValueType.NUMBER
    assert parser.infer_column_type([]) == ValueType.TEXT
    assert parser.infer_column_type(["", "  "]) == ValueType.TEXT
    print("   ✓ majority vote ignores empty cells")

    # one currency and one number: the tie goes to currency
    assert parser.infer_column_type(["$10", "20"]) == ValueType.CURRENCY

    # only the sample is inspected
    values = ["a", "b", "c"] + ["1"] * 10
    assert parser.infer_column_type(values, sample_size=3) == ValueType.TEXT

    print("\n✅ Column type inference test PASSED")


def test_normalize_to_column_type():
    print("\n" + "="*70)
    print("TEST: Normalization")
    print("="*70)

    parser = ValueParser(NumberLocale.EN)

    assert parser.normalize("$1,200", "Revenue", ValueType.CURRENCY).value == 1200
    # a stray text cell in a numeric column keeps its text
    stray = parser.normalize("pending", "Revenue", ValueType.CURRENCY)
    assert stray.value == "pending"
    assert stray.type == ValueType.TEXT
    # numbers in a text column stay as written
    assert parser.normalize(" 0042 ", "Code", ValueType.TEXT).value == "0042"
    print("   ✓ cells that do not fit the column keep their text")

    print("\n✅ Normalization test PASSED")


def test_summarize_column():
    print("\n" + "="*70)
    print("TEST: Column summaries")
    print("="*70)

    numeric = summarize_column([10, 20, "", 30.5], ValueType.NUMBER)
    assert numeric == {"count": 3, "min": 10, "max": 30.5, "avg": 20.1667}

    empty = summarize_column(["", ""], ValueType.CURRENCY)
    assert empty["count"] == 0
    assert empty["avg"] is None

    text = summarize_column(["Yoga", "Pilates", "Yoga", ""], ValueType.TEXT)
    assert text == {"total_values": 3, "unique_values": 2, "most_common": "Yoga"}
    print("   ✓ numeric and text summaries")

    print("\n✅ Column summaries test PASSED")


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
