import pytest
import utils.file_manager as fm
from models.sales import (
    build_sale,
    save_sale,
    delete_sale,
    get_sale,
    all_sales,
    unique_customers,
)

def setup_env(tmp_path, monkeypatch):
    monkeypatch.setattr(fm, "_DATA_DIR", tmp_path / "data")
    fm.ensure_defaults()

def form(**overrides):
    data = {
        "date": "2024-01-15",
        "buyerName": "Juan Pérez",
        "buyerPhone": "987654321",
        "product": "Vase",
        "cost": "20",
        "price": "50",
        "paymentMethod": "Yape",
        "deliveryMethod": "Yango",
        "notes": "Color rojo",
    }
    data.update(overrides)
    return data

def test_build_sale_derives_profit_and_assigns_identity():
    sale = build_sale(form(profit=999))
    assert sale["profit"] == 30.0
    assert sale["cost"] == 20.0 and sale["price"] == 50.0
    assert sale["id"]
    assert isinstance(sale["timestamp"], int) and sale["timestamp"] > 0

def test_build_sale_keeps_existing_id_and_timestamp():
    sale = build_sale(form(id="abc", timestamp=1700000000000, price=80))
    assert sale["id"] == "abc"
    assert sale["timestamp"] == 1700000000000
    assert sale["profit"] == 60.0

def test_build_sale_defaults_methods():
    sale = build_sale(form(paymentMethod=None, deliveryMethod=""))
    assert sale["paymentMethod"] == "Efectivo"
    assert sale["deliveryMethod"] == "Recojo"

@pytest.mark.parametrize("overrides", [
    {"buyerPhone": "12345678"},
    {"buyerPhone": "98765432a"},
    {"buyerName": "  "},
    {"product": ""},
    {"price": 0},
    {"cost": -1},
    {"price": "abc"},
    {"price": "nan"},
    {"price": "inf"},
    {"cost": "-inf"},
    {"cost": float("nan")},
    {"paymentMethod": "Visa"},
    {"deliveryMethod": "Drone"},
    {"date": "2024-13-01"},
])
def test_build_sale_rejects_bad_forms(overrides):
    with pytest.raises(ValueError):
        build_sale(form(**overrides))

def test_blank_phone_is_allowed():
    assert build_sale(form(buyerPhone=""))["buyerPhone"] == ""

def test_non_text_names_are_stored_as_text():
    sale = build_sale(form(buyerName=123, product=4.5))
    assert sale["buyerName"] == "123"
    assert sale["product"] == "4.5"

def test_save_then_reload_round_trip(tmp_path, monkeypatch):
    setup_env(tmp_path, monkeypatch)
    sale = build_sale(form())
    save_sale(sale)

    stored = get_sale(sale["id"])
    assert stored == sale
    assert stored["profit"] == stored["price"] - stored["cost"]

def test_upsert_replaces_in_place_and_inserts_at_top(tmp_path, monkeypatch):
    setup_env(tmp_path, monkeypatch)
    first = build_sale(form(product="Vase"))
    second = build_sale(form(product="Cup"))
    save_sale(first)
    save_sale(second)
    assert [s["product"] for s in all_sales()] == ["Cup", "Vase"]

    edited = build_sale({**first, "price": 70})
    rows = save_sale(edited)
    assert [s["product"] for s in rows] == ["Cup", "Vase"]
    assert get_sale(first["id"])["profit"] == 50.0
    assert len(all_sales()) == 2

def test_delete_sale(tmp_path, monkeypatch):
    setup_env(tmp_path, monkeypatch)
    a = build_sale(form())
    b = build_sale(form(product="Cup"))
    save_sale(a)
    save_sale(b)

    rows = delete_sale(a["id"])
    assert [s["id"] for s in rows] == [b["id"]]
    assert get_sale(a["id"]) is None
    # unknown ids are a no-op
    assert len(delete_sale("missing")) == 1

def test_corrupted_store_reads_as_empty(tmp_path, monkeypatch):
    setup_env(tmp_path, monkeypatch)
    with open(fm.data_path("sales.json"), "w", encoding="utf-8") as f:
        f.write("{not json")
    assert all_sales() == []

def test_unique_customers_keeps_exact_names(tmp_path, monkeypatch):
    setup_env(tmp_path, monkeypatch)
    save_sale(build_sale(form(buyerName="Ana")))
    save_sale(build_sale(form(buyerName="Luis")))
    save_sale(build_sale(form(buyerName="Ana")))
    save_sale(build_sale(form(buyerName="Ana ")))
    assert unique_customers() == ["Ana ", "Ana", "Luis"]
