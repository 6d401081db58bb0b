"""
Universal View Export Engine

Discovers tables, KPI metrics, charts and rankings inside an already
rendered dashboard view and exports the selected content as CSV, JSON,
XLSX, PDF, ZIP or clipboard markdown.
"""

__version__ = "0.1.0"
