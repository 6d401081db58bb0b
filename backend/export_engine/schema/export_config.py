"""
Export Configuration Schemas

Pydantic models for the user's export choices. Validated once at the
boundary; everything downstream reads the model.
"""

from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from enum import Enum
import re

from export_engine.core.config import settings


# =============================================================================
# ENUMS
# =============================================================================

class ExportFormat(str, Enum):
    WORKBOOK = "workbook"
    CSV = "csv"
    JSON = "json"
    PDF = "pdf"
    ARCHIVE = "archive"
    CLIPBOARD = "clipboard"


class ThemeName(str, Enum):
    PROFESSIONAL = "professional"
    MODERN = "modern"
    MINIMAL = "minimal"
    COLORFUL = "colorful"
    DARK = "dark"


HEX_COLOR = re.compile(r'^#[0-9a-fA-F]{6}$')
UNSAFE_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]+')


# =============================================================================
# STYLING
# =============================================================================

class ColorOverrides(BaseModel):
    """Optional hex colors replacing the theme's header colors."""
    header_fill: Optional[str] = None
    header_text: Optional[str] = None

    @field_validator("header_fill", "header_text")
    @classmethod
    def validate_hex(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        if not value.startswith("#"):
            value = f"#{value}"
        if not HEX_COLOR.match(value):
            raise ValueError(f"Invalid hex color: {value}")
        return value.upper()


class FontOptions(BaseModel):
    family: str = "Helvetica"
    size: int = Field(default=10, ge=6, le=24)


class Styling(BaseModel):
    theme: ThemeName = ThemeName.PROFESSIONAL
    colors: ColorOverrides = Field(default_factory=ColorOverrides)
    fonts: FontOptions = Field(default_factory=FontOptions)


class Watermark(BaseModel):
    enabled: bool = False
    text: str = ""

    @property
    def active(self) -> bool:
        return self.enabled and bool(self.text.strip())


# =============================================================================
# CONFIGURATION
# =============================================================================

class ExportConfiguration(BaseModel):
    format: ExportFormat = ExportFormat.WORKBOOK

    include_headers: bool = True
    include_metadata: bool = True
    include_images: bool = False

    compression: bool = False
    split_large_files: bool = False
    combine_into_single_sheet: bool = False
    max_rows_per_sheet: int = Field(default_factory=lambda: settings.DEFAULT_MAX_ROWS_PER_SHEET, ge=1)

    custom_file_name: Optional[str] = None

    styling: Styling = Field(default_factory=Styling)
    watermark: Optional[Watermark] = None

    # Accepted, never enforced
    password_placeholder: Optional[str] = None
    schedule_export: bool = False
    email_export: bool = False

    @field_validator("custom_file_name")
    @classmethod
    def sanitize_file_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = UNSAFE_FILENAME_CHARS.sub("-", value).strip(" .-")
        return cleaned or None

    @property
    def declared_only_flags(self) -> List[str]:
        """Names of set options that have no implementation behind them."""
        flags = []
        if self.password_placeholder:
            flags.append("password_placeholder")
        if self.schedule_export:
            flags.append("schedule_export")
        if self.email_export:
            flags.append("email_export")
        return flags


class ExportSelection(BaseModel):
    """Ids of the detected items to export."""
    tables: List[str] = Field(default_factory=list)
    metrics: List[str] = Field(default_factory=list)
    charts: List[str] = Field(default_factory=list)
    rankings: List[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.tables or self.metrics or self.charts or self.rankings)
