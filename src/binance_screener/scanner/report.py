"""Rendering of scan reports and filter descriptions."""

import json
from typing import Any, Dict, List

from ..filters.criteria import FilterCriteria
from .models import ScanReport, ScanResult

TABLE_ROWS = 20
RULE = "=" * 63
THIN_RULE = "-" * 59


def format_price(price: float) -> str:
    """Format a price with precision that depends on its magnitude."""
    value = float(price)
    if value >= 1000:
        return f"{value:,.2f}"
    if value >= 1:
        return f"{value:.2f}"
    if value >= 0.01:
        return f"{value:.4f}"
    return f"{value:.8f}"


def describe_filters(criteria: FilterCriteria) -> str:
    """Human-readable summary of the active filters."""
    parts: List[str] = []

    if criteria.rsi:
        if criteria.rsi.below is not None:
            parts.append(f"RSI < {criteria.rsi.below:g}")
        if criteria.rsi.above is not None:
            parts.append(f"RSI > {criteria.rsi.above:g}")
        if criteria.rsi.between is not None:
            low, high = criteria.rsi.between
            parts.append(f"RSI between {low:g}-{high:g}")

    if criteria.macd:
        if criteria.macd.bullish:
            parts.append("MACD bullish cross")
        if criteria.macd.bearish:
            parts.append("MACD bearish cross")
        if criteria.macd.histogram_positive is not None:
            parts.append("MACD histogram " + ("positive" if criteria.macd.histogram_positive else "non-positive"))

    if criteria.ma:
        if criteria.ma.golden_cross:
            parts.append("MA golden cross")
        if criteria.ma.death_cross:
            parts.append("MA death cross")
        if criteria.ma.above is not None:
            parts.append(f"Price above MA{int(criteria.ma.above)}")
        if criteria.ma.below is not None:
            parts.append(f"Price below MA{int(criteria.ma.below)}")

    if criteria.bollinger:
        bb = criteria.bollinger
        if bb.below_lower:
            parts.append("Price below BB lower")
        if bb.above_upper:
            parts.append("Price above BB upper")
        if bb.touch_lower:
            parts.append("Price touching BB lower")
        if bb.touch_upper:
            parts.append("Price touching BB upper")
        if bb.narrow:
            parts.append("Narrow BB")
        if bb.wide:
            parts.append("Wide BB")

    if criteria.price:
        if criteria.price.min is not None:
            parts.append(f"Price >= ${criteria.price.min:g}")
        if criteria.price.max is not None:
            parts.append(f"Price <= ${criteria.price.max:g}")

    return ", ".join(parts) if parts else "No filters"


def _result_to_dict(result: ScanResult) -> Dict[str, Any]:
    snapshot = result.indicators
    return {
        "symbol": result.symbol,
        "price": result.price,
        "indicators": {
            "rsi": snapshot.rsi,
            "macd": snapshot.macd.model_dump(),
            "ma20": snapshot.ma20,
            "ma50": snapshot.ma50,
            "bollinger": snapshot.bollinger.model_dump(),
        },
    }


def report_to_dict(report: ScanReport) -> Dict[str, Any]:
    """Wire shape of a report: results in score order, camelCase counters."""
    return {
        "timestamp": report.timestamp.isoformat(),
        "interval": report.interval,
        "filters": report.filters.to_dict(),
        "results": [_result_to_dict(r) for r in report.results],
        "totalScanned": report.total_scanned,
        "matchedCount": report.matched_count,
    }


def render_json(report: ScanReport) -> str:
    return json.dumps(report_to_dict(report), indent=2)


def render_table(report: ScanReport) -> str:
    lines = [
        "",
        RULE,
        f"  Screener Results - {report.interval} | {describe_filters(report.filters)}",
        RULE,
        f"  Scanned: {report.total_scanned} | Matched: {report.matched_count}",
        RULE,
    ]

    if not report.results:
        lines += ["  No matches found", RULE, ""]
        return "\n".join(lines)

    for r in report.results[:TABLE_ROWS]:
        s = r.indicators
        lines += [
            "",
            f"  {r.symbol}",
            f"  {THIN_RULE}",
            f"  Price:    ${format_price(r.price)}",
            f"  RSI(14):  {s.rsi:.1f}",
            f"  MACD:     {s.macd.value:.2f} | Signal: {s.macd.signal:.2f} | Hist: {s.macd.histogram:.2f}",
            f"  MA20:     ${format_price(s.ma20)} | MA50: ${format_price(s.ma50)}",
            f"  BB:       Upper: ${format_price(s.bollinger.upper)} | "
            f"Mid: ${format_price(s.bollinger.middle)} | Lower: ${format_price(s.bollinger.lower)}",
            f"  Score:    {r.score:.1f}",
        ]
        signals = r.crosses.active()
        if signals:
            lines.append(f"  Signals:  {', '.join(signals)}")

    if len(report.results) > TABLE_ROWS:
        lines += ["", f"  ... and {len(report.results) - TABLE_ROWS} more"]

    lines += ["", RULE, ""]
    return "\n".join(lines)
