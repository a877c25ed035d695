"""
Line Item Module Service (``costing_modules.line_items.service``).

Responsibility
--------------
Create, update, delete and read line items.  Every write runs the price
derivation, the default status resolver where a status is missing or
cleared, and the parent total recalculation for every parent the write
touched.

Architecture position
---------------------
**Modules layer** -- ``LineItemService`` is the sole public entry point for
line item writes.  Pure calculations come from ``costing_engines.pricing``;
recalculation and status resolution are kernel services sharing this
service's session.

Invariants enforced
-------------------
* Each public write method owns the transaction boundary (``commit`` on
  success, ``rollback`` and re-raise on any exception), so an item write and
  the recalculations it triggers commit together.
* Hierarchy depth is at most one: a parent must be a top-level item, an
  item cannot be its own parent, and an item with sub-items cannot become
  a sub-item.
* A sub-item never receives a ``main`` default status.
* ``planned_cost_manual`` is True exactly when the user last wrote a
  positive planned cost on the item.

Failure modes
-------------
* ``LineItemNotFoundError`` -- update/delete/get of an unknown id.
* ``InvalidLineItemFieldError`` -- update names a non-updatable field.
* ``UnknownModuleTypeError`` -- draft module type is not a ModuleType.
* ``SelfParentError`` / ``ParentNotFoundError`` / ``HierarchyDepthError``.
* ``TaxonomyNotFoundError`` -- referenced status/category/tag is missing.
* ``EventNotFoundError`` -- referenced event is missing.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from costing_config.schema import CostingConfig
from costing_engines.pricing import (
    PRICE_FIELDS,
    PriceInputs,
    derive_total_price,
    touches_price,
)
from costing_kernel.domain.clock import Clock, SystemClock
from costing_kernel.domain.metadata import parse_metadata, serialize_metadata
from costing_kernel.domain.modules import ItemKind, ModuleType, parse_module_type
from costing_kernel.exceptions import (
    EventNotFoundError,
    HierarchyDepthError,
    InvalidLineItemFieldError,
    LineItemNotFoundError,
    ParentNotFoundError,
    SelfParentError,
    TaxonomyNotFoundError,
)
from costing_kernel.logging_config import LogContext, get_logger
from costing_kernel.models.event import Event
from costing_kernel.models.line_item import LineItem
from costing_kernel.models.taxonomy import Category, Status, Tag
from costing_kernel.selectors.line_item_selector import LineItemSelector
from costing_kernel.services.recalculation_service import TotalRecalculationService
from costing_kernel.services.status_resolver import DefaultStatusResolver, StatusScope
from costing_modules.line_items.models import (
    UPDATABLE_FIELDS,
    LineItemDraft,
    LineItemView,
    ParentSummary,
    TaxonomyRef,
)

logger = get_logger("modules.line_items.service")

_PLAIN_FIELDS = ("name", "description", "quantity", "unit_price", "actual_cost")


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


class LineItemService:
    """
    Line item lifecycle facade.

    Contract
    --------
    * Writes return a ``LineItemView`` of the item as committed (delete
      returns the ids it removed, children first).
    * Reads never commit.

    Non-goals
    ---------
    * Input validation (numeric ranges, required names) is done by the
      caller before values reach this service.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: CostingConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or CostingConfig()
        self._selector = LineItemSelector(session)
        self._recalculator = TotalRecalculationService(session, self._clock)
        self._status_resolver = DefaultStatusResolver(session)

    @property
    def _preserve_planned_cost(self) -> bool:
        return self._config.recalculation.preserve_planned_cost

    # =========================================================================
    # Writes
    # =========================================================================

    def create_line_item(self, draft: LineItemDraft, actor_id: UUID) -> LineItemView:
        """Create a line item and recalculate its parent, if any."""
        try:
            module_type = parse_module_type(draft.module_type)

            parent = None
            if draft.parent_id is not None:
                parent = self._require_parent(draft.parent_id, item_id=None)

            event_id = draft.event_id
            if event_id is None and parent is not None:
                event_id = parent.event_id
            if event_id is not None:
                self._require_event(event_id)

            with LogContext.bind(actor_id=actor_id, event_id=event_id):
                total_price = derive_total_price(None, {
                    "quantity": draft.quantity,
                    "unit_price": draft.unit_price,
                    "planned_cost": draft.planned_cost,
                })

                status_id = draft.status_id
                if status_id is None:
                    status_id = self._status_resolver.resolve(StatusScope(
                        module_type=module_type,
                        item_kind=ItemKind.for_parent(draft.parent_id),
                        event_id=event_id,
                    ))
                else:
                    self._require_status(status_id)

                if draft.category_id is not None:
                    self._require_category(draft.category_id)

                now = self._clock.now()
                item = LineItem(
                    id=uuid4(),
                    module_type=module_type.value,
                    event_id=event_id,
                    parent_id=draft.parent_id,
                    name=draft.name,
                    description=draft.description,
                    quantity=draft.quantity,
                    unit_price=draft.unit_price,
                    total_price=total_price,
                    planned_cost=draft.planned_cost,
                    actual_cost=draft.actual_cost,
                    planned_cost_manual=(
                        draft.planned_cost is not None and draft.planned_cost > 0
                    ),
                    status_id=status_id,
                    category_id=draft.category_id,
                    metadata_json=serialize_metadata(draft.metadata),
                    created_at=now,
                    updated_at=now,
                    created_by_id=actor_id,
                )
                item.tags = self._load_tags(draft.tag_ids)
                self._session.add(item)
                self._session.flush()

                if parent is not None:
                    self._recalculator.recalculate_parent(
                        parent.id, self._preserve_planned_cost, actor_id=actor_id,
                    )

                view = self._to_view(item)
                self._session.commit()

            logger.info(
                "line_item_created",
                extra={
                    "line_item_id": str(item.id),
                    "module_type": module_type.value,
                    "parent_id": str(parent.id) if parent else None,
                    "total_price": view.total_price,
                    "status_id": str(status_id) if status_id else None,
                },
            )
            return view
        except Exception:
            self._session.rollback()
            raise

    def update_line_item(
        self,
        item_id: UUID,
        changes: Mapping[str, Any],
        actor_id: UUID,
    ) -> LineItemView:
        """
        Apply a partial update.

        Absent keys are untouched; a key present with ``None`` clears the
        field.  A cleared ``status_id`` is replaced by the default status.
        """
        try:
            unknown = sorted(set(changes) - UPDATABLE_FIELDS)
            if unknown:
                raise InvalidLineItemFieldError(unknown)

            item = self._selector.get(item_id)
            if item is None:
                raise LineItemNotFoundError(str(item_id))

            with LogContext.bind(actor_id=actor_id, line_item_id=item_id):
                old_parent_id = item.parent_id

                if "parent_id" in changes:
                    self._check_reparent(item, changes["parent_id"])

                if touches_price(changes):
                    item.total_price = derive_total_price(
                        PriceInputs.of(item),
                        {k: v for k, v in changes.items() if k in PRICE_FIELDS},
                    )

                for name in _PLAIN_FIELDS:
                    if name in changes:
                        setattr(item, name, changes[name])

                if "planned_cost" in changes:
                    planned = changes["planned_cost"]
                    item.planned_cost = planned
                    item.planned_cost_manual = planned is not None and planned > 0

                if "parent_id" in changes:
                    item.parent_id = changes["parent_id"]

                if "category_id" in changes:
                    category_id = changes["category_id"]
                    if category_id is not None:
                        self._require_category(category_id)
                    item.category_id = category_id

                if "status_id" in changes:
                    status_id = changes["status_id"]
                    if _is_blank(status_id):
                        status_id = self._status_resolver.resolve(StatusScope(
                            module_type=ModuleType(item.module_type),
                            item_kind=ItemKind.for_parent(item.parent_id),
                            event_id=item.event_id,
                        ))
                    else:
                        self._require_status(status_id)
                    item.status_id = status_id

                if "tag_ids" in changes:
                    item.tags = self._load_tags(changes["tag_ids"] or ())

                if "metadata" in changes:
                    item.metadata_json = serialize_metadata(changes["metadata"])

                item.updated_at = self._clock.now()
                item.updated_by_id = actor_id
                self._session.flush()
                # FK columns changed above; reload the related rows on access.
                self._session.expire(item, ["status", "category", "parent"])

                recalculated = self._recalculate_after_update(
                    item, old_parent_id, actor_id,
                )

                view = self._to_view(item)
                self._session.commit()

            logger.info(
                "line_item_updated",
                extra={
                    "line_item_id": str(item_id),
                    "fields": sorted(changes),
                    "recalculated_parents": [str(p) for p in recalculated],
                },
            )
            return view
        except Exception:
            self._session.rollback()
            raise

    def delete_line_item(self, item_id: UUID, actor_id: UUID) -> tuple[UUID, ...]:
        """
        Delete an item and its sub-items, then repair the item's parent.

        Returns:
            Every deleted id, sub-items first.
        """
        try:
            item = self._selector.get(item_id)
            if item is None:
                raise LineItemNotFoundError(str(item_id))

            with LogContext.bind(actor_id=actor_id, line_item_id=item_id):
                deleted: list[UUID] = []
                for child in self._selector.list_sub_items(item.id):
                    self._session.delete(child)
                    deleted.append(child.id)
                self._session.flush()

                parent_id = item.parent_id
                self._session.delete(item)
                self._session.flush()
                deleted.append(item_id)

                if parent_id is not None:
                    self._recalculator.recalculate_parent(
                        parent_id, self._preserve_planned_cost, actor_id=actor_id,
                    )

                self._session.commit()

            logger.info(
                "line_item_deleted",
                extra={
                    "line_item_id": str(item_id),
                    "deleted_sub_items": len(deleted) - 1,
                    "parent_id": str(parent_id) if parent_id else None,
                },
            )
            return tuple(deleted)
        except Exception:
            self._session.rollback()
            raise

    # =========================================================================
    # Reads
    # =========================================================================

    def get_line_item(self, item_id: UUID) -> LineItemView:
        item = self._selector.get(item_id)
        if item is None:
            raise LineItemNotFoundError(str(item_id))
        return self._to_view(item)

    def list_event_line_items(self, event_id: UUID) -> list[LineItemView]:
        """Top-level items of an event, newest first, each with its sub-items."""
        self._require_event(event_id)
        parents = self._selector.list_top_level_for_event(event_id)
        subs = self._selector.list_sub_items_for_parents(p.id for p in parents)
        return [self._to_view(p, subs.get(p.id, [])) for p in parents]

    # =========================================================================
    # Helpers
    # =========================================================================

    def _require_parent(self, parent_id: UUID, item_id: UUID | None) -> LineItem:
        if item_id is not None and parent_id == item_id:
            raise SelfParentError(str(item_id))
        parent = self._selector.get(parent_id)
        if parent is None:
            raise ParentNotFoundError(str(parent_id))
        if parent.parent_id is not None:
            raise HierarchyDepthError(
                str(item_id) if item_id else None,
                str(parent_id),
                "parent is itself a sub-item",
            )
        return parent

    def _check_reparent(self, item: LineItem, new_parent_id: UUID | None) -> None:
        if new_parent_id is None:
            return
        if new_parent_id == item.id:
            raise SelfParentError(str(item.id))
        if new_parent_id == item.parent_id:
            return
        self._require_parent(new_parent_id, item_id=item.id)
        if self._selector.count_sub_items(item.id) > 0:
            raise HierarchyDepthError(
                str(item.id), str(new_parent_id), "item has sub-items",
            )

    def _recalculate_after_update(
        self,
        item: LineItem,
        old_parent_id: UUID | None,
        actor_id: UUID,
    ) -> list[UUID]:
        targets: list[UUID] = []
        for parent_id in (old_parent_id, item.parent_id):
            if parent_id is not None and parent_id not in targets:
                targets.append(parent_id)
        if item.parent_id is None and self._selector.count_sub_items(item.id) > 0:
            targets.append(item.id)

        for target in targets:
            self._recalculator.recalculate_parent(
                target, self._preserve_planned_cost, actor_id=actor_id,
            )
        return targets

    def _require_event(self, event_id: UUID) -> Event:
        event = self._session.get(Event, event_id)
        if event is None:
            raise EventNotFoundError(str(event_id))
        return event

    def _require_status(self, status_id: UUID) -> Status:
        status = self._session.get(Status, status_id)
        if status is None:
            raise TaxonomyNotFoundError("status", str(status_id))
        return status

    def _require_category(self, category_id: UUID) -> Category:
        category = self._session.get(Category, category_id)
        if category is None:
            raise TaxonomyNotFoundError("category", str(category_id))
        return category

    def _load_tags(self, tag_ids: Iterable[UUID]) -> list[Tag]:
        ids = list(dict.fromkeys(tag_ids))
        if not ids:
            return []
        found = {
            tag.id: tag
            for tag in self._session.execute(
                select(Tag).where(Tag.id.in_(ids))
            ).scalars()
        }
        for tag_id in ids:
            if tag_id not in found:
                raise TaxonomyNotFoundError("tag", str(tag_id))
        return [found[tag_id] for tag_id in ids]

    def _to_view(
        self,
        item: LineItem,
        sub_items: list[LineItem] | None = None,
    ) -> LineItemView:
        if sub_items is None and item.parent_id is None:
            sub_items = self._selector.list_sub_items(item.id)
        return LineItemView(
            id=item.id,
            module_type=ModuleType(item.module_type),
            name=item.name,
            event_id=item.event_id,
            parent_id=item.parent_id,
            description=item.description,
            quantity=item.quantity,
            unit_price=item.unit_price,
            total_price=item.total_price,
            planned_cost=item.planned_cost,
            actual_cost=item.actual_cost,
            planned_cost_manual=item.planned_cost_manual,
            status=(
                TaxonomyRef(item.status.id, item.status.name, item.status.color)
                if item.status is not None else None
            ),
            category=(
                TaxonomyRef(item.category.id, item.category.name, item.category.color)
                if item.category is not None else None
            ),
            tags=tuple(TaxonomyRef(t.id, t.name, t.color) for t in item.tags),
            metadata=parse_metadata(item.metadata_json),
            parent=(
                ParentSummary(item.parent.id, item.parent.name)
                if item.parent is not None else None
            ),
            sub_items=tuple(self._to_view(s, []) for s in (sub_items or [])),
            created_at=item.created_at,
            updated_at=item.updated_at,
        )
