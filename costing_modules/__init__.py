"""
Costing Modules.

Transaction-owning service facades over the costing kernel and engines:
- line_items: create/update/delete/read line items with parent recalculation
- taxonomy: statuses, categories and tags
- finance: cross-event and per-event rollups

``bootstrap`` wires configuration, logging and the database engine.
"""
