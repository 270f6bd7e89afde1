import logging
import math
import re
import time
import uuid
from datetime import date
from typing import Dict, List, Optional
from utils.file_manager import SALES_FILE, read_json, write_json

LOG = logging.getLogger(__name__)

PAYMENT_METHODS = ("Efectivo", "Yape", "Plin")
DELIVERY_METHODS = ("Recojo", "Yango", "InDriver")
ALL = "all"

_PHONE_RE = re.compile(r"^\d{9}$")

def _sales() -> List[Dict]:
    try:
        data = read_json(SALES_FILE)
    except (OSError, ValueError):
        # fail open to an empty ledger
        LOG.exception("Error loading sales")
        return []
    if not isinstance(data, list):
        LOG.error("Sales store holds %s instead of a list, treating as empty", type(data).__name__)
        return []
    return data

def _save_sales(s):
    write_json(SALES_FILE, s)

def _amount(value, field: str) -> float:
    if value in (None, ""):
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{field} must be a number")
    if not math.isfinite(amount):
        raise ValueError(f"{field} must be a finite number")
    if amount < 0:
        raise ValueError(f"{field} must not be negative")
    return round(amount, 2)

def build_sale(data: Dict) -> Dict:
    """Turn a submitted form into a storable sale record.

    Assigns ``id`` and ``timestamp`` for new sales and keeps them on edits.
    ``profit`` is always derived from ``price - cost``; a submitted value is ignored.
    Raises ValueError when the form does not pass the basic field checks.
    """
    buyer_name = str(data.get("buyerName") or "")
    product = str(data.get("product") or "")
    if not buyer_name.strip():
        raise ValueError("buyerName is required")
    if not product.strip():
        raise ValueError("product is required")

    phone = str(data.get("buyerPhone") or "")
    if phone and not _PHONE_RE.match(phone):
        raise ValueError("El teléfono debe tener 9 dígitos")

    cost = _amount(data.get("cost"), "cost")
    price = _amount(data.get("price"), "price")
    if not price:
        raise ValueError("price is required")

    sale_date = data.get("date") or date.today().isoformat()
    try:
        sale_date = date.fromisoformat(sale_date).isoformat()
    except (TypeError, ValueError):
        raise ValueError(f"Invalid date: {sale_date}")

    payment = data.get("paymentMethod") or PAYMENT_METHODS[0]
    if payment not in PAYMENT_METHODS:
        raise ValueError(f"Unknown payment method: {payment}")
    delivery = data.get("deliveryMethod") or DELIVERY_METHODS[0]
    if delivery not in DELIVERY_METHODS:
        raise ValueError(f"Unknown delivery method: {delivery}")

    return {
        "id": data.get("id") or str(uuid.uuid4()),
        "date": sale_date,
        "buyerName": buyer_name,
        "buyerPhone": phone,
        "product": product,
        "cost": cost,
        "price": price,
        "profit": round(price - cost, 2),
        "paymentMethod": payment,
        "deliveryMethod": delivery,
        "notes": data.get("notes") or "",
        "timestamp": int(data.get("timestamp") or time.time() * 1000),
    }

def save_sale(sale: Dict) -> List[Dict]:
    """Upsert by id: replace in place when known, otherwise add to the top."""
    s = _sales()
    for i, existing in enumerate(s):
        if existing.get("id") == sale["id"]:
            s[i] = sale
            break
    else:
        s.insert(0, sale)
    _save_sales(s)
    LOG.info("Saved sale %s", sale["id"])
    return s

def delete_sale(sale_id: str) -> List[Dict]:
    s = [r for r in _sales() if r.get("id") != sale_id]
    _save_sales(s)
    LOG.info("Deleted sale %s", sale_id)
    return s

def get_sale(sale_id: str) -> Optional[Dict]:
    for r in _sales():
        if r.get("id") == sale_id:
            return r
    return None

def all_sales() -> List[Dict]:
    return _sales()

def unique_customers() -> List[str]:
    seen = {}
    for r in _sales():
        seen.setdefault(r.get("buyerName", ""), None)
    return list(seen)

def _month_of(value) -> Optional[str]:
    try:
        return date.fromisoformat(str(value)[:10]).isoformat()[:7]
    except ValueError:
        return None

def filter_sales(sales: List[Dict], month: Optional[str] = None, payment: Optional[str] = ALL) -> List[Dict]:
    """Keep sales in ``month`` (YYYY-MM) paid with ``payment``.

    ``None``, ``""`` and ``"all"`` are wildcards for both selectors. Sales with a
    missing or unparseable date never match a concrete month.
    """
    out = []
    for r in sales:
        if month and month != ALL:
            sale_month = _month_of(r.get("date")) if r.get("date") else None
            if sale_month is None or not sale_month.startswith(month):
                continue
        if payment and payment != ALL and r.get("paymentMethod") != payment:
            continue
        out.append(r)
    return out

def sort_recent(sales: List[Dict]) -> List[Dict]:
    """Newest first by date, then by creation timestamp."""
    return sorted(
        sales,
        key=lambda r: (r.get("date") or "", r.get("timestamp") or 0),
        reverse=True,
    )
