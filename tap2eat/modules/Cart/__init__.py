"""Shopping cart."""

from .cart_store import CartItem, CartStore

__all__ = ["CartItem", "CartStore"]
