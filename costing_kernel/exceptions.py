"""
Typed Exception Hierarchy for the Costing Kernel.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from CostingKernelError:

    CostingKernelError (base)
    |
    +-- LineItemError
    |   +-- LineItemNotFoundError
    |   +-- InvalidLineItemFieldError
    |   +-- UnknownModuleTypeError
    |
    +-- HierarchyError
    |   +-- SelfParentError
    |   +-- ParentNotFoundError
    |   +-- HierarchyDepthError
    |
    +-- TaxonomyError
    |   +-- TaxonomyNotFoundError
    |   +-- InvalidItemTypeError
    |   +-- DuplicateStatusError
    |   +-- DuplicateCategoryError
    |   +-- DuplicateTagError
    |
    +-- EventError
        +-- EventNotFoundError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Line item       | LINE_ITEM_NOT_FOUND         | Line item ID doesn't exist
                | INVALID_LINE_ITEM_FIELD     | Update names a field that can't be set
                | UNKNOWN_MODULE_TYPE         | Module type is not a known ModuleType
----------------|-----------------------------|-----------------------------------------
Hierarchy       | SELF_PARENT                 | Item names itself as its parent
                | PARENT_NOT_FOUND            | Parent ID doesn't exist
                | HIERARCHY_DEPTH_EXCEEDED    | Write would nest deeper than one level
----------------|-----------------------------|-----------------------------------------
Taxonomy        | TAXONOMY_NOT_FOUND          | Status/category/tag ID doesn't exist
                | INVALID_ITEM_TYPE           | Status item type is not main/sub
                | DUPLICATE_STATUS            | (module, item type, name) already taken
                | DUPLICATE_CATEGORY          | (module, name) already taken
                | DUPLICATE_TAG               | (module, name) already taken
----------------|-----------------------------|-----------------------------------------
Event           | EVENT_NOT_FOUND             | Event ID doesn't exist

Cost arithmetic never raises: null costs count as zero, empty rollups are
all-zero summaries, and a missing parent during recalculation is a no-op.
"""


class CostingKernelError(Exception):
    """
    Base exception for all costing kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "COSTING_KERNEL_ERROR"


# Line item exceptions


class LineItemError(CostingKernelError):
    """Base exception for line-item errors."""

    code: str = "LINE_ITEM_ERROR"


class LineItemNotFoundError(LineItemError):
    """Line item with given ID was not found."""

    code: str = "LINE_ITEM_NOT_FOUND"

    def __init__(self, line_item_id: str):
        self.line_item_id = line_item_id
        super().__init__(f"Line item not found: {line_item_id}")


class InvalidLineItemFieldError(LineItemError):
    """An update named a field that is not user-settable."""

    code: str = "INVALID_LINE_ITEM_FIELD"

    def __init__(self, field_names: list[str]):
        self.field_names = field_names
        super().__init__(
            f"Line item field(s) cannot be updated: {', '.join(field_names)}"
        )


class UnknownModuleTypeError(LineItemError):
    """Module type is not one of the known ModuleType values."""

    code: str = "UNKNOWN_MODULE_TYPE"

    def __init__(self, module_type: str):
        self.module_type = module_type
        super().__init__(f"Unknown module type: {module_type}")


# Hierarchy exceptions


class HierarchyError(CostingKernelError):
    """Base exception for parent/sub-item structure violations."""

    code: str = "HIERARCHY_ERROR"


class SelfParentError(HierarchyError):
    """An item was given itself as parent."""

    code: str = "SELF_PARENT"

    def __init__(self, line_item_id: str):
        self.line_item_id = line_item_id
        super().__init__(f"Line item {line_item_id} cannot be its own parent")


class ParentNotFoundError(HierarchyError):
    """Referenced parent line item does not exist."""

    code: str = "PARENT_NOT_FOUND"

    def __init__(self, parent_id: str):
        self.parent_id = parent_id
        super().__init__(f"Parent line item not found: {parent_id}")


class HierarchyDepthError(HierarchyError):
    """
    Write would create a sub-item of a sub-item.

    Raised both when the chosen parent is itself a sub-item and when an
    item that already has sub-items is moved under another parent.
    """

    code: str = "HIERARCHY_DEPTH_EXCEEDED"

    def __init__(self, line_item_id: str | None, parent_id: str, reason: str):
        self.line_item_id = line_item_id
        self.parent_id = parent_id
        self.reason = reason
        super().__init__(
            f"Cannot nest line item {line_item_id or '<new>'} under {parent_id}: {reason}"
        )


# Taxonomy exceptions


class TaxonomyError(CostingKernelError):
    """Base exception for status/category/tag errors."""

    code: str = "TAXONOMY_ERROR"


class TaxonomyNotFoundError(TaxonomyError):
    """Status, category or tag with given ID was not found."""

    code: str = "TAXONOMY_NOT_FOUND"

    def __init__(self, kind: str, taxonomy_id: str):
        self.kind = kind
        self.taxonomy_id = taxonomy_id
        super().__init__(f"{kind.capitalize()} not found: {taxonomy_id}")


class InvalidItemTypeError(TaxonomyError):
    """Status item type must be 'main' or 'sub'."""

    code: str = "INVALID_ITEM_TYPE"

    def __init__(self, item_type: str | None):
        self.item_type = item_type
        super().__init__(
            f'itemType must be either "main" or "sub", got: {item_type}'
        )


class DuplicateStatusError(TaxonomyError):
    """A status with this (module type, item type, name) already exists."""

    code: str = "DUPLICATE_STATUS"

    def __init__(self, module_type: str, item_type: str, name: str):
        self.module_type = module_type
        self.item_type = item_type
        self.name = name
        super().__init__(
            f"Status '{name}' already exists for {module_type}/{item_type}"
        )


class DuplicateCategoryError(TaxonomyError):
    """A category with this (module type, name) already exists."""

    code: str = "DUPLICATE_CATEGORY"

    def __init__(self, module_type: str, name: str):
        self.module_type = module_type
        self.name = name
        super().__init__(f"Category '{name}' already exists for {module_type}")


class DuplicateTagError(TaxonomyError):
    """A tag with this (module type, name) already exists."""

    code: str = "DUPLICATE_TAG"

    def __init__(self, module_type: str, name: str):
        self.module_type = module_type
        self.name = name
        super().__init__(f"Tag '{name}' already exists for {module_type}")


# Event exceptions


class EventError(CostingKernelError):
    """Base exception for event errors."""

    code: str = "EVENT_ERROR"


class EventNotFoundError(EventError):
    """Event with given ID was not found."""

    code: str = "EVENT_NOT_FOUND"

    def __init__(self, event_id: str):
        self.event_id = event_id
        super().__init__(f"Event not found: {event_id}")
