import cart
from catalog import initial_products


def products():
    return {p.id: p for p in initial_products()}


def test_add_new_product_snapshots_fields(empty_cart):
    strat = products()["1"]
    cart.add(empty_cart, strat)
    assert len(empty_cart.items) == 1
    item = empty_cart.items[0]
    assert item.product_id == "1"
    assert item.name == strat.name
    assert item.price == strat.price
    assert item.category == strat.category
    assert item.image == strat.image
    assert item.quantity == 1


def test_add_existing_increments_without_duplicating(empty_cart):
    strat = products()["1"]
    cart.add(empty_cart, strat)
    cart.add(empty_cart, strat)
    assert len(empty_cart.items) == 1
    assert empty_cart.items[0].quantity == 2


def test_insertion_order_is_kept(empty_cart):
    p = products()
    for pid in ["3", "1", "5", "1"]:
        cart.add(empty_cart, p[pid])
    assert [i.product_id for i in empty_cart.items] == ["3", "1", "5"]


def test_remove_present_and_absent(empty_cart):
    p = products()
    cart.add(empty_cart, p["1"])
    cart.add(empty_cart, p["2"])
    cart.remove(empty_cart, "1")
    assert [i.product_id for i in empty_cart.items] == ["2"]
    cart.remove(empty_cart, "does-not-exist")
    assert [i.product_id for i in empty_cart.items] == ["2"]


def test_update_quantity_applies_positive_result(empty_cart):
    cart.add(empty_cart, products()["4"])
    cart.update_quantity(empty_cart, "4", 3)
    assert empty_cart.items[0].quantity == 4
    cart.update_quantity(empty_cart, "4", -2)
    assert empty_cart.items[0].quantity == 2


def test_update_quantity_never_drops_to_zero(empty_cart):
    cart.add(empty_cart, products()["4"])
    cart.add(empty_cart, products()["4"])
    cart.update_quantity(empty_cart, "4", -2)
    assert empty_cart.items[0].quantity == 2
    cart.update_quantity(empty_cart, "4", -10)
    assert empty_cart.items[0].quantity == 2


def test_update_quantity_unknown_id_is_noop(empty_cart):
    cart.add(empty_cart, products()["4"])
    cart.update_quantity(empty_cart, "nope", 1)
    assert [(i.product_id, i.quantity) for i in empty_cart.items] == [("4", 1)]


def test_total_and_count_follow_items(empty_cart):
    p = products()
    cart.add(empty_cart, p["1"])
    cart.add(empty_cart, p["1"])
    cart.add(empty_cart, p["6"])
    cart.update_quantity(empty_cart, "6", 2)
    cart.add(empty_cart, p["3"])
    cart.remove(empty_cart, "3")
    cart.update_quantity(empty_cart, "1", -5)

    assert cart.total(empty_cart) == sum(i.price * i.quantity for i in empty_cart.items)
    assert cart.total(empty_cart) == 2 * 6500000 + 3 * 4800000
    assert cart.count(empty_cart) == 5


def test_empty_cart_totals(empty_cart):
    assert cart.total(empty_cart) == 0
    assert cart.count(empty_cart) == 0


def test_clear(empty_cart):
    cart.add(empty_cart, products()["2"])
    cart.clear(empty_cart)
    assert empty_cart.items == []
