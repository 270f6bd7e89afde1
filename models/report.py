from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Tuple

GROUP_BY_FIELDS = ("product", "date", "paymentMethod", "deliveryMethod", "buyerName")

GROUP_BY_LABELS = {
    "product": "Producto",
    "date": "Fecha",
    "paymentMethod": "Medio de Pago",
    "deliveryMethod": "Método de Entrega",
    "buyerName": "Cliente",
}

_RECORD_FIELDS = ("price", "cost", "profit")
_SUMMARY_FIELDS = ("totalSales", "totalCost", "totalProfit")

def _dec(value) -> Decimal:
    # str() of a cent-rounded float is its exact decimal text
    return Decimal(str(value if value is not None else 0))

def _fold(items: Iterable[Dict], fields: Tuple[str, str, str], count: Callable[[Dict], int] = lambda item: 1) -> Dict:
    """Sum in Decimal and convert once, so regrouping never changes a total."""
    n = 0
    sums = [Decimal(0), Decimal(0), Decimal(0)]
    for item in items:
        n += count(item)
        for i, field in enumerate(fields):
            sums[i] += _dec(item.get(field))
    return {
        "count": n,
        "totalSales": float(sums[0]),
        "totalCost": float(sums[1]),
        "totalProfit": float(sums[2]),
    }

def aggregate(records: Iterable[Dict], group_by: str) -> List[Dict]:
    """Group sales by one field and rank the groups by total sales.

    Keys are the raw field values: no trimming or case folding, so
    "Ana" and "Ana " end up in different groups. A missing value groups
    under "". Groups tied on totalSales keep the order they were first
    seen in ``records``.
    """
    if group_by not in GROUP_BY_FIELDS:
        raise ValueError(f"Cannot group by {group_by!r}; expected one of {', '.join(GROUP_BY_FIELDS)}")

    groups: Dict[str, List[Dict]] = {}
    for r in records:
        key = r.get(group_by)
        key = "" if key is None else str(key)
        groups.setdefault(key, []).append(r)

    rows = [{"key": key, **_fold(members, _RECORD_FIELDS)} for key, members in groups.items()]
    # stable sort: ties keep first-seen order
    return sorted(rows, key=lambda g: g["totalSales"], reverse=True)

def grand_totals(summaries: Iterable[Dict]) -> Dict:
    return _fold(summaries, _SUMMARY_FIELDS, count=lambda s: s["count"])

def summarize(records: Iterable[Dict]) -> Dict:
    """Totals straight over the records, as shown on the stats cards."""
    return _fold(records, _RECORD_FIELDS)

def margin(summary: Dict) -> float:
    sales = summary.get("totalSales", 0)
    if sales <= 0:
        return 0.0
    return summary.get("totalProfit", 0) / sales * 100

def bar_widths(summaries: List[Dict]) -> List[float]:
    if not summaries:
        return []
    peak = max(s["totalSales"] for s in summaries)
    if peak <= 0:
        return [0.0 for _ in summaries]
    return [s["totalSales"] / peak * 100 for s in summaries]

def top(summaries: List[Dict], n: int = 3) -> List[Dict]:
    return summaries[:n]

def build_report(records: Iterable[Dict], group_by: str) -> Dict:
    """Everything the pivot view needs for one grouping, rounded for display."""
    rows = aggregate(records, group_by)
    widths = bar_widths(rows)
    totals = grand_totals(rows)
    display = [
        {
            "key": row["key"],
            "count": row["count"],
            "totalSales": round(row["totalSales"], 2),
            "totalCost": round(row["totalCost"], 2),
            "totalProfit": round(row["totalProfit"], 2),
            "margin": round(margin(row), 1),
            "barWidth": round(width, 2),
        }
        for row, width in zip(rows, widths)
    ]
    return {
        "groupBy": group_by,
        "label": GROUP_BY_LABELS[group_by],
        "rows": display,
        "top": top(display),
        "totals": {k: round(v, 2) if isinstance(v, float) else v for k, v in totals.items()},
    }
