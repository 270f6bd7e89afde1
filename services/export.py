from typing import Dict, List

CSV_HEADER = "ID,Fecha,Cliente,Teléfono,Producto,Costo,Precio,Utilidad,Pago,Entrega,Notas"
TSV_HEADER = ("Fecha", "Cliente", "Teléfono", "Producto", "Costo", "Precio", "Utilidad", "Pago", "Entrega", "Notas")
BOM = "\ufeff"

def _quote(value) -> str:
    text = "" if value is None else str(value)
    return '"' + text.replace('"', '""') + '"'

def _number(value) -> str:
    # 50.0 -> "50", 12.5 -> "12.5"
    n = float(value or 0)
    return str(int(n)) if n.is_integer() else repr(n)

def to_csv(sales: List[Dict]) -> str:
    """CSV for spreadsheet download: BOM prefix, quoted text, bare numbers."""
    rows = [CSV_HEADER]
    for s in sales:
        rows.append(",".join([
            _quote(s.get("id")),
            _quote(s.get("date")),
            _quote(s.get("buyerName")),
            _quote(s.get("buyerPhone")),
            _quote(s.get("product")),
            _number(s.get("cost")),
            _number(s.get("price")),
            _number(s.get("profit")),
            _quote(s.get("paymentMethod")),
            _quote(s.get("deliveryMethod")),
            _quote(s.get("notes")),
        ]))
    return BOM + "\n".join(rows)

def to_tsv(sales: List[Dict]) -> str:
    """Tab separated text ready to paste into Google Sheets."""
    rows = ["\t".join(TSV_HEADER)]
    for s in sales:
        notes = (s.get("notes") or "").replace("\r\n", " ").replace("\n", " ")
        rows.append("\t".join([
            s.get("date") or "",
            s.get("buyerName") or "",
            s.get("buyerPhone") or "",
            s.get("product") or "",
            f"{float(s.get('cost') or 0):.2f}",
            f"{float(s.get('price') or 0):.2f}",
            f"{float(s.get('profit') or 0):.2f}",
            s.get("paymentMethod") or "",
            s.get("deliveryMethod") or "",
            notes,
        ]))
    return "\n".join(rows)

def export_filename(month: str, app_slug: str = "boom_art") -> str:
    return f"{app_slug}_ventas_{month}.csv"
