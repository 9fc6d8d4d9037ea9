"""
Unit tests for CartAggregate: merge policy, handles, and the totals
invariant after every mutation.
"""
from decimal import Decimal

import pytest

from storefront.domain.cart import (
    CartAggregate,
    CartLine,
    InvalidProductSnapshot,
    InvalidQuantity,
)

SHIRT = {"id": 1, "title": "Shirt", "price": 20000, "images": ["a.jpg"]}
CAP = {"id": 2, "title": "Cap", "price": "7.35", "images": []}


def assert_totals_consistent(cart: CartAggregate):
    assert cart.total_products == sum(line.quantity for line in cart.items)
    assert cart.total_price == sum(
        (line.price * line.quantity for line in cart.items), Decimal("0")
    )


class TestAddItem:
    def test_first_add_creates_line_with_snapshot(self):
        cart = CartAggregate(user_id="u1")

        line = cart.add_item(SHIRT, 2, "L")

        assert len(cart.items) == 1
        assert line.product_id == 1
        assert line.quantity == 2
        assert line.size == "L"
        assert line.title == "Shirt"
        assert line.price == Decimal("20000.00")
        assert line.image == "a.jpg"
        assert line.handle
        assert cart.total_products == 2
        assert cart.total_price == Decimal("40000.00")

    def test_same_product_and_size_merges(self):
        cart = CartAggregate(user_id="u1")

        cart.add_item(SHIRT, 2, "M")
        cart.add_item(SHIRT, 3, "M")

        assert len(cart.items) == 1
        assert cart.items[0].quantity == 5
        assert_totals_consistent(cart)

    def test_null_size_and_named_size_are_distinct_lines(self):
        cart = CartAggregate(user_id="u1")

        cart.add_item({**SHIRT, "id": 5})
        cart.add_item({**SHIRT, "id": 5}, 1, "M")

        assert len(cart.items) == 2
        assert {line.size for line in cart.items} == {None, "M"}

    def test_default_quantity_is_one(self):
        cart = CartAggregate(user_id="u1")
        cart.add_item(CAP)
        assert cart.total_products == 1

    def test_product_without_images_snapshots_none(self):
        cart = CartAggregate(user_id="u1")
        line = cart.add_item(CAP)
        assert line.image is None

    def test_snapshot_is_not_refreshed_by_later_adds(self):
        cart = CartAggregate(user_id="u1")
        cart.add_item(SHIRT, 1)

        cart.add_item({**SHIRT, "price": 99999, "title": "Renamed"}, 1)

        assert cart.items[0].price == Decimal("20000.00")
        assert cart.items[0].title == "Shirt"
        assert cart.total_price == Decimal("40000.00")

    def test_accepts_objects_with_attributes(self):
        class Row:
            id = 9
            title = "Mug"
            price = Decimal("3.50")
            images = ["mug.png", "mug2.png"]

        cart = CartAggregate(user_id="u1")
        line = cart.add_item(Row(), 2)

        assert line.image == "mug.png"
        assert cart.total_price == Decimal("7.00")

    def test_decimal_totals_do_not_drift(self):
        cart = CartAggregate(user_id="u1")
        for _ in range(3):
            cart.add_item({"id": 3, "title": "Pen", "price": 0.1, "images": []})

        assert cart.total_price == Decimal("0.30")

    @pytest.mark.parametrize("quantity", [0, -1, -10])
    def test_non_positive_quantity_rejected_without_mutation(self, quantity):
        cart = CartAggregate(user_id="u1")
        cart.add_item(SHIRT, 1)
        before = cart.to_payload()

        with pytest.raises(InvalidQuantity):
            cart.add_item(SHIRT, quantity)

        assert cart.to_payload() == before

    @pytest.mark.parametrize("quantity", [1.5, "2", True])
    def test_non_integer_quantity_rejected(self, quantity):
        cart = CartAggregate(user_id="u1")
        with pytest.raises(InvalidQuantity):
            cart.add_item(SHIRT, quantity)
        assert cart.items == []

    @pytest.mark.parametrize(
        "product",
        [
            {"title": "No id", "price": 1, "images": []},
            {"id": 1, "title": "No price", "images": []},
            {"id": 1, "title": "Negative", "price": -1, "images": []},
            {"id": 1, "title": "Garbage", "price": "abc", "images": []},
        ],
    )
    def test_invalid_snapshot_rejected(self, product):
        cart = CartAggregate(user_id="u1")
        with pytest.raises(InvalidProductSnapshot):
            cart.add_item(product, 1)
        assert cart.items == []
        assert cart.total_products == 0

    def test_totals_hold_after_every_add(self):
        cart = CartAggregate(user_id="u1")
        steps = [(SHIRT, 2, "L"), (CAP, 3, None), (SHIRT, 1, "S"), (CAP, 4, None)]
        for product, quantity, size in steps:
            cart.add_item(product, quantity, size)
            assert_totals_consistent(cart)
        assert cart.total_products == 10


class TestRemoveAndUpdate:
    def test_remove_unknown_handle_is_noop(self):
        cart = CartAggregate(user_id="u1")
        cart.add_item(SHIRT, 2)
        before = cart.to_payload()

        cart.remove_item("does-not-exist")

        assert cart.to_payload() == before

    def test_remove_drops_line_and_recomputes(self):
        cart = CartAggregate(user_id="u1")
        shirt = cart.add_item(SHIRT, 2)
        cart.add_item(CAP, 1)

        cart.remove_item(shirt.handle)

        assert [line.product_id for line in cart.items] == [2]
        assert cart.total_price == Decimal("7.35")

    def test_remove_drops_every_line_sharing_a_handle(self):
        cart = CartAggregate(user_id="u1")
        cart.add_item(SHIRT, 1)
        cart.add_item(CAP, 1)
        cart.items[1].handle = cart.items[0].handle

        cart.remove_item(cart.items[0].handle)

        assert cart.items == []
        assert cart.total_products == 0

    def test_handles_are_unique_even_for_rapid_adds(self):
        cart = CartAggregate(user_id="u1")
        for product_id in range(50):
            cart.add_item({"id": product_id, "title": "x", "price": 1, "images": []})
        assert len({line.handle for line in cart.items}) == 50

    def test_update_quantity_overwrites(self):
        cart = CartAggregate(user_id="u1")
        line = cart.add_item(SHIRT, 2)

        cart.update_quantity(line.handle, 5)

        assert cart.items[0].quantity == 5
        assert cart.total_price == Decimal("100000.00")

    @pytest.mark.parametrize("quantity", [0, -3])
    def test_update_to_non_positive_removes_line(self, quantity):
        cart = CartAggregate(user_id="u1")
        line = cart.add_item(SHIRT, 2)
        cart.add_item(CAP, 1)

        cart.update_quantity(line.handle, quantity)

        assert [l.product_id for l in cart.items] == [2]
        assert_totals_consistent(cart)

    def test_update_unknown_handle_is_noop(self):
        cart = CartAggregate(user_id="u1")
        cart.add_item(SHIRT, 2)
        before = cart.to_payload()

        cart.update_quantity("nope", 7)

        assert cart.to_payload() == before

    def test_clear_resets_everything(self):
        cart = CartAggregate(user_id="u1")
        cart.add_item(SHIRT, 2)
        cart.add_item(CAP, 1)

        cart.clear()

        assert cart.items == []
        assert cart.total_products == 0
        assert cart.total_price == 0
        assert cart.is_empty


def test_walkthrough_add_merge_update_remove():
    cart = CartAggregate(user_id="u1")

    cart.add_item(SHIRT, 2, "L")
    assert len(cart.items) == 1
    assert cart.total_products == 2
    assert cart.total_price == Decimal("40000")

    cart.add_item(SHIRT, 1, "L")
    assert cart.items[0].quantity == 3
    assert cart.total_price == Decimal("60000")

    handle = cart.items[0].handle
    cart.update_quantity(handle, 1)
    assert cart.items[0].quantity == 1
    assert cart.total_price == Decimal("20000")

    cart.remove_item(handle)
    assert cart.items == []
    assert cart.total_products == 0
    assert cart.total_price == 0


class TestPayload:
    def test_round_trip_keeps_lines_and_order(self):
        cart = CartAggregate(user_id="u1")
        cart.add_item(SHIRT, 2, "L")
        cart.add_item(CAP, 1)

        restored = CartAggregate.from_payload("u1", cart.to_payload())

        assert [l.handle for l in restored.items] == [l.handle for l in cart.items]
        assert restored.total_products == cart.total_products
        assert restored.total_price == cart.total_price

    def test_totals_recomputed_from_lines(self):
        line = CartLine(product_id=1, quantity=4, title="Shirt", price=Decimal("2.50"))
        stored = [line.to_payload()]

        restored = CartAggregate.from_payload(
            "u1", {"items": stored, "total_products": 99, "total_price": "1.00"}
        )

        assert restored.total_products == 4
        assert restored.total_price == Decimal("10.00")

    def test_price_is_stored_as_decimal_string(self):
        cart = CartAggregate(user_id="u1")
        cart.add_item(CAP, 1)
        payload = cart.to_payload()
        assert payload["items"][0]["price"] == "7.35"
        assert payload["total_price"] == "7.35"

    def test_missing_payload_gives_empty_cart(self):
        assert CartAggregate.from_payload("u1", None).is_empty
        assert CartAggregate.from_payload("u1", {}).total_price == 0
