"""
Costing Kernel

Persistence and consistency core for event-production cost tracking:
- Line items in a two-level parent/sub-item hierarchy
- Parent total recalculation from sub-items
- Default status resolution per module and item kind
- Module-scoped statuses, categories and tags
"""

__version__ = "0.1.0"
