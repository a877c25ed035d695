"""
Module types and item kinds.

Every line item, status, category and tag belongs to exactly one module
(a domain area of event production).  Event-scoped modules hang off an
event; pool modules (vendors, materials, staff) also exist outside events.

Statuses are further split by item kind so that top-level items and
sub-items draw their defaults from disjoint pools.
"""

from enum import Enum

from costing_kernel.exceptions import UnknownModuleTypeError


class ModuleType(str, Enum):
    """Domain area a line item belongs to."""

    ARTISTS = "artists"
    PRODUCTION = "production"
    FOOD_BEVERAGE = "food_beverage"
    COMMUNICATION_MARKETING = "communication_marketing"
    SPONSORS = "sponsors"
    VENDORS_SUPPLIERS = "vendors_suppliers"
    MATERIALS_STOCK = "materials_stock"
    STAFF_POOL = "staff_pool"

    @property
    def display_name(self) -> str:
        return MODULE_DISPLAY_NAMES[self]


MODULE_DISPLAY_NAMES: dict[ModuleType, str] = {
    ModuleType.ARTISTS: "Artists",
    ModuleType.PRODUCTION: "Production",
    ModuleType.FOOD_BEVERAGE: "Food & Beverages",
    ModuleType.COMMUNICATION_MARKETING: "Communication & Marketing",
    ModuleType.SPONSORS: "Sponsors & Partners",
    ModuleType.VENDORS_SUPPLIERS: "Vendors & Suppliers",
    ModuleType.MATERIALS_STOCK: "Materials & Stock",
    ModuleType.STAFF_POOL: "Staff Pool",
}


class ItemKind(str, Enum):
    """Top-level item (``main``) or sub-item (``sub``)."""

    MAIN = "main"
    SUB = "sub"

    @classmethod
    def for_parent(cls, parent_id) -> "ItemKind":
        """Kind of an item given its (possibly null) parent reference."""
        return cls.SUB if parent_id is not None else cls.MAIN


def parse_module_type(value: "ModuleType | str") -> ModuleType:
    """
    Coerce a raw module type to ModuleType.

    Raises:
        UnknownModuleTypeError: value is not a known module type.
    """
    if isinstance(value, ModuleType):
        return value
    try:
        return ModuleType(value)
    except ValueError:
        raise UnknownModuleTypeError(str(value)) from None
