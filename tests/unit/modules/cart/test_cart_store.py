"""Unit tests for the cart store."""

import pytest

from tap2eat.modules.Cart.cart_store import CartItem, CartStore


@pytest.fixture
def cart() -> CartStore:
    return CartStore()


class TestCartStore:

    def test_empty_cart(self, cart):
        assert cart.items == []
        assert cart.total_items == 0
        assert cart.total_price == 0

    def test_add_from_menu_item(self, cart, burger):
        added = cart.add_item(CartItem.from_menu_item(burger))

        assert added.id == "m1"
        assert added.quantity == 1
        assert added.image_url == burger.image_url
        assert cart.total_items == 1

    def test_adding_same_item_merges(self, cart, burger):
        cart.add_item(CartItem.from_menu_item(burger))
        merged = cart.add_item(CartItem.from_menu_item(burger, quantity=2))

        assert merged.quantity == 3
        assert len(cart.items) == 1
        assert cart.total_price == pytest.approx(29.97)

    def test_totals_across_items(self, cart, burger, fries):
        cart.add_item(CartItem.from_menu_item(burger))
        cart.add_item(CartItem.from_menu_item(fries, quantity=3))

        assert cart.total_items == 4
        assert cart.total_price == 19.74
        assert [item.id for item in cart.items] == ["m1", "m2"]

    def test_rejects_zero_quantity(self, cart, burger):
        with pytest.raises(ValueError):
            cart.add_item(CartItem.from_menu_item(burger, quantity=0))

    def test_increase_and_decrease(self, cart, burger):
        cart.add_item(CartItem.from_menu_item(burger))

        assert cart.increase_quantity("m1").quantity == 2
        assert cart.decrease_quantity("m1").quantity == 1
        assert cart.decrease_quantity("m1") is None
        assert cart.get("m1") is None

    def test_unknown_ids(self, cart):
        assert cart.increase_quantity("nope") is None
        assert cart.decrease_quantity("nope") is None
        assert cart.remove_item("nope") is False

    def test_remove_and_clear(self, cart, burger, fries):
        cart.add_item(CartItem.from_menu_item(burger))
        cart.add_item(CartItem.from_menu_item(fries))

        assert cart.remove_item("m1") is True
        assert [item.id for item in cart.items] == ["m2"]
        cart.clear()
        assert cart.total_items == 0

    def test_subtotal(self):
        assert CartItem("m1", "Burger", 9.99, quantity=2).subtotal == pytest.approx(19.98)
