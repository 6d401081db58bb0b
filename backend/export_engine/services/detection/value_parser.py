"""
Value Parser

Classifies raw cell text and normalizes it to a typed value.

Classification priority:
    currency -> percentage -> number -> date -> text

Numeric parsing is locale-aware. The locale is never guessed from the
text: "1,5" is text under ``en``, 1.5 under ``eu`` and text under
``plain``.
"""

from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union
import re
import logging

from .models import ValueType

logger = logging.getLogger(__name__)

Number = Union[int, float]


class NumberLocale(str, Enum):
    EN = "en"        # 1,234.56
    EU = "eu"        # 1.234,56
    PLAIN = "plain"  # 1234.56, no grouping accepted


@dataclass
class ParsedValue:
    """One classified cell."""
    raw: str
    value: Any
    type: ValueType
    unit: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.value == "" or self.value is None

    @property
    def is_numeric(self) -> bool:
        return self.type in NUMERIC_TYPES


NUMERIC_TYPES = (ValueType.CURRENCY, ValueType.PERCENTAGE, ValueType.NUMBER)

TYPE_PRIORITY = [
    ValueType.CURRENCY,
    ValueType.PERCENTAGE,
    ValueType.NUMBER,
    ValueType.DATE,
    ValueType.TEXT,
]


class ValueParser:
    """
    Parses dashboard cell text.

    Usage:
        parser = ValueParser(NumberLocale.EN)
        parser.parse("$1,234.50", header="Revenue")
        # ParsedValue(value=1234.5, type=CURRENCY, unit="currency:USD")
    """

    CURRENCY_SYMBOLS = {
        '$': 'USD',
        '€': 'EUR',
        '£': 'GBP',
        '₹': 'INR',
        '¥': 'JPY',
    }

    CURRENCY_HINTS = ('price', 'revenue', 'cost', 'amount')
    DATE_HINTS = ('date', 'time', 'created', 'updated')

    SORT_GLYPHS = re.compile(r'[↑↓▲▼⇅⇵]')
    WHITESPACE = re.compile(r'\s+')

    NUMBER_PATTERNS = {
        NumberLocale.EN: re.compile(r'^(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d+)?$|^\.\d+$'),
        NumberLocale.EU: re.compile(r'^(?:\d{1,3}(?:\.\d{3})+|\d+)(?:,\d+)?$|^,\d+$'),
        NumberLocale.PLAIN: re.compile(r'^\d+(?:\.\d+)?$|^\.\d+$'),
    }

    ISO_FORMATS = [
        '%Y-%m-%dT%H:%M:%S',
        '%Y-%m-%d %H:%M:%S',
        '%Y-%m-%dT%H:%M',
        '%Y-%m-%d %H:%M',
        '%Y-%m-%d',
        '%Y/%m/%d',
    ]

    LOCALE_DATE_FORMATS = {
        NumberLocale.EN: ['%m/%d/%Y %H:%M', '%m/%d/%Y', '%d/%m/%Y', '%m-%d-%Y'],
        NumberLocale.EU: ['%d/%m/%Y %H:%M', '%d/%m/%Y', '%d.%m.%Y', '%m/%d/%Y', '%d-%m-%Y'],
        NumberLocale.PLAIN: ['%m/%d/%Y', '%d/%m/%Y'],
    }

    TEXT_DATE_FORMATS = [
        '%b %d, %Y',
        '%B %d, %Y',
        '%d %b %Y',
        '%d %B %Y',
        '%b %Y',
        '%B %Y',
        '%b-%y',
        '%b-%Y',
    ]

    def __init__(self, locale: Union[NumberLocale, str] = NumberLocale.EN):
        self.locale = NumberLocale(locale)

    # =========================================================================
    # CLASSIFICATION
    # =========================================================================

    def parse(self, text: Optional[str], header: Optional[str] = None) -> ParsedValue:
        """
        Classify and normalize one value.

        Args:
            text: Raw cell text
            header: Column header (or metric label) used as a type hint

        Returns:
            ParsedValue with the normalized value, type and unit tag
        """
        raw = text or ""
        cleaned = self.clean(raw)
        if not cleaned:
            return ParsedValue(raw=raw, value="", type=ValueType.TEXT)

        number = self.parse_number(cleaned)
        symbol = self.currency_symbol(cleaned)

        if number is not None:
            if symbol is not None:
                return ParsedValue(raw, number, ValueType.CURRENCY, f"currency:{self.CURRENCY_SYMBOLS[symbol]}")
            if self.hints_currency(header):
                return ParsedValue(raw, number, ValueType.CURRENCY, "currency")
            if '%' in cleaned:
                return ParsedValue(raw, number, ValueType.PERCENTAGE, "percent")
            return ParsedValue(raw, number, ValueType.NUMBER)

        if self.hints_date(header):
            iso = self.parse_date(cleaned)
            if iso is not None:
                return ParsedValue(raw, iso, ValueType.DATE)

        return ParsedValue(raw, cleaned, ValueType.TEXT)

    def clean(self, text: str) -> str:
        text = self.SORT_GLYPHS.sub('', text)
        text = self.WHITESPACE.sub(' ', text)
        return text.strip()

    def currency_symbol(self, text: str) -> Optional[str]:
        for symbol in self.CURRENCY_SYMBOLS:
            if symbol in text:
                return symbol
        return None

    def hints_currency(self, header: Optional[str]) -> bool:
        header_lower = (header or "").lower()
        return any(hint in header_lower for hint in self.CURRENCY_HINTS)

    def hints_date(self, header: Optional[str]) -> bool:
        header_lower = (header or "").lower()
        return any(hint in header_lower for hint in self.DATE_HINTS)

    # =========================================================================
    # NUMBERS
    # =========================================================================

    def parse_number(self, text: str) -> Optional[Number]:
        """
        Parse a number in the configured locale.

        Currency glyphs and a percent sign are stripped; a leading sign or
        accounting parentheses make the value negative. Returns an int when
        there is no fractional part written.
        """
        s = text.strip()
        for symbol in self.CURRENCY_SYMBOLS:
            s = s.replace(symbol, '')
        s = s.replace('%', '')
        s = self.WHITESPACE.sub('', s)
        if not s:
            return None

        negative = False
        if s.startswith('(') and s.endswith(')'):
            negative = True
            s = s[1:-1]
        # "$-12" and "-$12" both arrive here as "-12"
        if s[:1] in ('-', '−'):
            negative = True
            s = s[1:]
        elif s[:1] == '+':
            s = s[1:]

        if not s or not self.NUMBER_PATTERNS[self.locale].match(s):
            return None

        if self.locale == NumberLocale.EU:
            s = s.replace('.', '').replace(',', '.')
        else:
            s = s.replace(',', '')

        try:
            value: Number = float(s) if '.' in s else int(s)
        except ValueError:
            return None

        return -value if negative else value

    # =========================================================================
    # DATES
    # =========================================================================

    def parse_date(self, text: str) -> Optional[str]:
        """
        Parse a date and return it as ISO 8601.

        Date-only input gives YYYY-MM-DD; input with a time of day gives
        YYYY-MM-DDTHH:MM:SS.
        """
        s = text.strip()
        formats = self.ISO_FORMATS + self.LOCALE_DATE_FORMATS[self.locale] + self.TEXT_DATE_FORMATS

        for fmt in formats:
            try:
                parsed = datetime.strptime(s, fmt)
            except ValueError:
                continue
            if '%H' in fmt:
                return parsed.isoformat(timespec='seconds')
            return parsed.date().isoformat()

        return None

    # =========================================================================
    # COLUMNS
    # =========================================================================

    def infer_column_type(self, values: List[str], header: Optional[str] = None,
                          sample_size: int = 20) -> ValueType:
        """
        Majority vote over a sample of non-empty values.

        Ties go to the type that comes first in the classification priority.
        """
        sample = [v for v in values if self.clean(v or "")][:sample_size]
        if not sample:
            return ValueType.TEXT

        votes = Counter(self.parse(v, header).type for v in sample)
        best = max(votes.values())
        for value_type in TYPE_PRIORITY:
            if votes.get(value_type) == best:
                return value_type
        return ValueType.TEXT

    def normalize(self, text: Optional[str], header: Optional[str],
                  column_type: ValueType) -> ParsedValue:
        """
        Normalize a cell to its column's type.

        Cells that do not parse as the column type keep their cleaned text.
        """
        parsed = self.parse(text, header)
        if parsed.is_empty:
            return parsed

        if column_type == ValueType.TEXT:
            return ParsedValue(parsed.raw, self.clean(parsed.raw), ValueType.TEXT)

        if column_type in NUMERIC_TYPES and parsed.is_numeric:
            return parsed

        if column_type == ValueType.DATE and parsed.type == ValueType.DATE:
            return parsed

        return ParsedValue(parsed.raw, self.clean(parsed.raw), ValueType.TEXT)

    def column_unit(self, parsed: List[ParsedValue], column_type: ValueType) -> Optional[str]:
        """Most common unit tag of a currency or percentage column."""
        if column_type == ValueType.PERCENTAGE:
            return "percent"
        if column_type != ValueType.CURRENCY:
            return None

        units = Counter(p.unit for p in parsed if p.unit and p.unit.startswith("currency"))
        if not units:
            return "currency"
        return units.most_common(1)[0][0]


def summarize_column(values: List[Any], column_type: ValueType) -> Dict[str, Any]:
    """
    Summary statistics for one column.

    Numeric columns: count, min, max, avg.
    Other columns: total_values, unique_values, most_common.
    """
    if column_type in NUMERIC_TYPES:
        numbers = [v for v in values if isinstance(v, (int, float)) and not isinstance(v, bool)]
        if not numbers:
            return {"count": 0, "min": None, "max": None, "avg": None}
        return {
            "count": len(numbers),
            "min": min(numbers),
            "max": max(numbers),
            "avg": round(sum(numbers) / len(numbers), 4),
        }

    texts = [str(v) for v in values if v != "" and v is not None]
    counts = Counter(texts)
    return {
        "total_values": len(texts),
        "unique_values": len(counts),
        "most_common": counts.most_common(1)[0][0] if counts else None,
    }
