"""Market scanner: screening pipeline and report rendering."""

from .market_scanner import MarketScanner
from .models import ScanResult, ScanReport
from .universe import top_by_volume
from .report import describe_filters, report_to_dict, render_json, render_table, format_price

__all__ = [
    "MarketScanner",
    "ScanResult",
    "ScanReport",
    "top_by_volume",
    "describe_filters",
    "report_to_dict",
    "render_json",
    "render_table",
    "format_price",
]
