"""Export modules for person records."""
from __future__ import annotations

from kinship.export.json_export import build_export, export_json
from kinship.export.table_export import HEADERS, export_table

__all__ = ["HEADERS", "build_export", "export_json", "export_table"]
