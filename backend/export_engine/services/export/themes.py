"""
Export Themes

Header and stripe colors per styling theme, used by the workbook and PDF
serializers.
"""

from dataclasses import dataclass
from typing import Dict

from export_engine.schema.export_config import Styling, ThemeName


@dataclass(frozen=True)
class ThemePalette:
    header_fill: str
    header_text: str
    stripe_fill: str
    body_text: str = "#1F2937"
    grid: str = "#D1D5DB"


THEMES: Dict[ThemeName, ThemePalette] = {
    ThemeName.PROFESSIONAL: ThemePalette(header_fill="#3F83F8", header_text="#FFFFFF", stripe_fill="#F3F6FB"),
    ThemeName.MODERN: ThemePalette(header_fill="#7C3AED", header_text="#FFFFFF", stripe_fill="#F5F3FF"),
    ThemeName.MINIMAL: ThemePalette(header_fill="#F3F4F6", header_text="#111827", stripe_fill="#FFFFFF"),
    ThemeName.COLORFUL: ThemePalette(header_fill="#F97316", header_text="#FFFFFF", stripe_fill="#FFF7ED"),
    ThemeName.DARK: ThemePalette(
        header_fill="#111827",
        header_text="#F9FAFB",
        stripe_fill="#E5E7EB",
        grid="#4B5563",
    ),
}


def resolve_palette(styling: Styling) -> ThemePalette:
    """Theme palette with any explicit header color overrides applied."""
    base = THEMES[styling.theme]
    return ThemePalette(
        header_fill=styling.colors.header_fill or base.header_fill,
        header_text=styling.colors.header_text or base.header_text,
        stripe_fill=base.stripe_fill,
        body_text=base.body_text,
        grid=base.grid,
    )


def hex_to_argb(value: str) -> str:
    """#3F83F8 -> FF3F83F8, the form openpyxl fills expect."""
    return "FF" + value.lstrip("#").upper()
