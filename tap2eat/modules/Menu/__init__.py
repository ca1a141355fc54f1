"""Menu items, the lookup contract, and local/remote catalogs."""

from .models import MenuItem, MenuItemNotFound, MenuLookupError, MenuLookupService
from .catalog import MenuCatalog, load_menu_catalog
from .remote import RemoteMenuLookup

__all__ = [
    "MenuItem",
    "MenuItemNotFound",
    "MenuLookupError",
    "MenuLookupService",
    "MenuCatalog",
    "load_menu_catalog",
    "RemoteMenuLookup",
]
