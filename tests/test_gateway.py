import json

import pytest

import cart
import ledger
from catalog import MOCK_ADMIN, MOCK_USER
from errors import NotFoundError, PersistenceError
from gateway import MemoryGateway, build_gateway
from config import Settings
from schemas import OrderStatus


def test_seeded_catalog(store):
    products = store.list_products()
    assert [p.id for p in products] == ["1", "2", "3", "4", "5", "6"]
    assert [r.id for r in store.get_product("1").reviews] == ["r1", "r2"]


def test_unseeded_store_and_seed():
    store = MemoryGateway(seed=False)
    assert store.list_products() == []
    assert store.seed() == 6
    assert store.seed() == 6


def test_get_missing_product(store):
    with pytest.raises(NotFoundError):
        store.get_product("nope")


def test_returned_models_are_copies(store):
    product = store.get_product("2")
    product.price = 1
    product.reviews.clear()
    assert store.get_product("2").price == 18500000


def test_delete_product(store):
    store.delete_product("6")
    store.delete_product("6")
    assert "6" not in [p.id for p in store.list_products()]


def test_patch_order_status_missing(store):
    with pytest.raises(NotFoundError):
        store.patch_order_status("missing", OrderStatus.SHIPPED)


def test_session_slot(store):
    assert store.get_session() is None
    store.set_session(MOCK_ADMIN)
    assert store.get_session() == MOCK_ADMIN
    store.set_session(None)
    assert store.get_session() is None


def test_file_backed_store_survives_restart(tmp_path, empty_cart):
    path = tmp_path / "store.json"
    first = MemoryGateway(path=str(path))
    ledger.append_review(first, "4", "user-1", "John Doe", 4, "Punchy toms.")
    cart.add(empty_cart, first.get_product("4"))
    placed = ledger.place_order(first, MOCK_USER, empty_cart, "cod")[0]
    first.set_session(MOCK_USER)

    assert path.exists()
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["orders"][0]["totalAmount"] == 6200000

    second = MemoryGateway(path=str(path))
    assert second.list_orders() == [placed]
    assert second.get_product("4").rating == 4.0
    assert second.get_session() == MOCK_USER


def test_failed_file_write_rolls_back(tmp_path):
    path = tmp_path / "missing-dir" / "store.json"
    store = MemoryGateway(path=str(path))
    before = store.get_product("1")
    with pytest.raises(PersistenceError):
        ledger.append_review(store, "1", "user-1", "John Doe", 1, "Broke.")
    assert store.get_product("1") == before
    with pytest.raises(PersistenceError):
        store.set_session(MOCK_USER)
    assert store.get_session() is None


def test_corrupt_store_file(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(PersistenceError):
        MemoryGateway(path=str(path))


def test_build_gateway_memory(tmp_path):
    gw = build_gateway(Settings(storage_backend="memory", store_path=str(tmp_path / "s.json")))
    assert isinstance(gw, MemoryGateway)
    assert gw.describe()["backend"] == "memory"


def test_seeded_ratings_match_reviews(store):
    for product in store.list_products():
        if product.reviews:
            assert product.rating == ledger.average_rating([r.rating for r in product.reviews])
    assert store.get_product("1").rating == 4.5
