"""
Taxonomy Module Service (``costing_modules.taxonomy.service``).

Responsibility
--------------
Manage the module-scoped statuses, categories and tags that line items
reference and the finance rollup groups by.

Invariants enforced
-------------------
* Each public write method owns the transaction boundary.
* Status names are unique per (module type, item type); category and tag
  names are unique per module type.
* At most one default status per (module type, item type, event) pool:
  flagging a status as default clears the flag on its siblings.
* Deleting a status or category detaches it from line items (their
  reference becomes NULL); deleting a tag removes its associations only.
  No line item is ever deleted by a taxonomy operation.

Failure modes
-------------
* ``DuplicateStatusError`` / ``DuplicateCategoryError`` / ``DuplicateTagError``.
* ``InvalidItemTypeError`` -- status item type other than main/sub.
* ``TaxonomyNotFoundError`` -- update/delete of an unknown id.
* ``UnknownModuleTypeError`` -- module type is not a ModuleType.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from costing_kernel.domain.clock import Clock, SystemClock
from costing_kernel.domain.modules import ItemKind, ModuleType, parse_module_type
from costing_kernel.exceptions import (
    DuplicateCategoryError,
    DuplicateStatusError,
    DuplicateTagError,
    InvalidItemTypeError,
    TaxonomyError,
    TaxonomyNotFoundError,
)
from costing_kernel.logging_config import get_logger
from costing_kernel.models.line_item import LineItem
from costing_kernel.models.taxonomy import DEFAULT_COLOR, Category, Status, Tag
from costing_modules.taxonomy.models import (
    LABEL_UPDATABLE_FIELDS,
    STATUS_UPDATABLE_FIELDS,
    LabelInfo,
    StatusInfo,
)

logger = get_logger("modules.taxonomy.service")


def _parse_item_type(value: ItemKind | str | None) -> ItemKind:
    try:
        return ItemKind(value)
    except ValueError:
        raise InvalidItemTypeError(value) from None


def _status_info(status: Status) -> StatusInfo:
    return StatusInfo(
        id=status.id,
        module_type=ModuleType(status.module_type),
        item_type=ItemKind(status.item_type),
        name=status.name,
        color=status.color,
        sort_order=status.sort_order,
        is_default=status.is_default,
        event_id=status.event_id,
    )


def _label_info(row: Category | Tag) -> LabelInfo:
    return LabelInfo(
        id=row.id,
        module_type=ModuleType(row.module_type),
        name=row.name,
        description=row.description,
        color=row.color,
        event_id=row.event_id,
    )


class TaxonomyService:
    """Status, category and tag management."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()

    # =========================================================================
    # Statuses
    # =========================================================================

    def create_status(
        self,
        module_type: ModuleType | str,
        item_type: ItemKind | str,
        name: str,
        actor_id: UUID,
        color: str | None = None,
        sort_order: int = 0,
        is_default: bool = False,
        event_id: UUID | None = None,
    ) -> StatusInfo:
        try:
            module = parse_module_type(module_type)
            kind = _parse_item_type(item_type)
            self._check_status_name_free(module, kind, name)

            now = self._clock.now()
            status = Status(
                id=uuid4(),
                module_type=module.value,
                item_type=kind.value,
                event_id=event_id,
                name=name,
                color=color or DEFAULT_COLOR,
                sort_order=sort_order,
                is_default=is_default,
                created_at=now,
                updated_at=now,
                created_by_id=actor_id,
            )
            self._session.add(status)
            self._session.flush()
            if is_default:
                self._clear_other_defaults(status)

            info = _status_info(status)
            self._session.commit()
            logger.info(
                "status_created",
                extra={
                    "status_id": str(info.id),
                    "module_type": module.value,
                    "item_type": kind.value,
                    "is_default": is_default,
                },
            )
            return info
        except Exception:
            self._session.rollback()
            raise

    def update_status(
        self,
        status_id: UUID,
        changes: Mapping[str, Any],
        actor_id: UUID,
    ) -> StatusInfo:
        try:
            self._check_fields(changes, STATUS_UPDATABLE_FIELDS)
            status = self._require(Status, "status", status_id)

            new_name = changes.get("name", status.name)
            if new_name != status.name:
                self._check_status_name_free(
                    ModuleType(status.module_type), ItemKind(status.item_type), new_name,
                )

            for field_name in STATUS_UPDATABLE_FIELDS:
                if field_name in changes:
                    value = changes[field_name]
                    if field_name == "color" and value is None:
                        value = DEFAULT_COLOR
                    setattr(status, field_name, value)
            status.updated_at = self._clock.now()
            status.updated_by_id = actor_id
            self._session.flush()
            if changes.get("is_default"):
                self._clear_other_defaults(status)

            info = _status_info(status)
            self._session.commit()
            logger.info(
                "status_updated",
                extra={"status_id": str(status_id), "fields": sorted(changes)},
            )
            return info
        except Exception:
            self._session.rollback()
            raise

    def delete_status(self, status_id: UUID, actor_id: UUID) -> int:
        """Delete a status; returns the number of line items detached from it."""
        try:
            status = self._require(Status, "status", status_id)
            detached = self._session.execute(
                update(LineItem)
                .where(LineItem.status_id == status_id)
                .values(status_id=None)
            ).rowcount
            self._session.delete(status)
            self._session.flush()
            self._session.commit()
            logger.info(
                "status_deleted",
                extra={
                    "status_id": str(status_id),
                    "detached_line_items": detached,
                    "actor_id": str(actor_id),
                },
            )
            return detached
        except Exception:
            self._session.rollback()
            raise

    def list_statuses(
        self,
        module_type: ModuleType | str,
        item_type: ItemKind | str | None = None,
    ) -> list[StatusInfo]:
        """Global statuses of a module, ordered by sort_order then name."""
        module = parse_module_type(module_type)
        stmt = (
            select(Status)
            .where(Status.module_type == module.value)
            .where(Status.event_id.is_(None))
        )
        if item_type is not None:
            stmt = stmt.where(Status.item_type == _parse_item_type(item_type).value)
        stmt = stmt.order_by(Status.sort_order.asc(), Status.name.asc())
        return [_status_info(s) for s in self._session.execute(stmt).scalars()]

    # =========================================================================
    # Categories
    # =========================================================================

    def create_category(
        self,
        module_type: ModuleType | str,
        name: str,
        actor_id: UUID,
        description: str | None = None,
        color: str | None = None,
        event_id: UUID | None = None,
    ) -> LabelInfo:
        return self._create_label(
            Category, "category", DuplicateCategoryError, module_type, name, actor_id,
            description, color, event_id,
        )

    def update_category(
        self, category_id: UUID, changes: Mapping[str, Any], actor_id: UUID,
    ) -> LabelInfo:
        return self._update_label(
            Category, "category", DuplicateCategoryError, category_id, changes, actor_id,
        )

    def delete_category(self, category_id: UUID, actor_id: UUID) -> int:
        """Delete a category; returns the number of line items detached from it."""
        try:
            category = self._require(Category, "category", category_id)
            detached = self._session.execute(
                update(LineItem)
                .where(LineItem.category_id == category_id)
                .values(category_id=None)
            ).rowcount
            self._session.delete(category)
            self._session.flush()
            self._session.commit()
            logger.info(
                "category_deleted",
                extra={
                    "category_id": str(category_id),
                    "detached_line_items": detached,
                    "actor_id": str(actor_id),
                },
            )
            return detached
        except Exception:
            self._session.rollback()
            raise

    def list_categories(self, module_type: ModuleType | str) -> list[LabelInfo]:
        return self._list_labels(Category, module_type)

    # =========================================================================
    # Tags
    # =========================================================================

    def create_tag(
        self,
        module_type: ModuleType | str,
        name: str,
        actor_id: UUID,
        description: str | None = None,
        color: str | None = None,
        event_id: UUID | None = None,
    ) -> LabelInfo:
        return self._create_label(
            Tag, "tag", DuplicateTagError, module_type, name, actor_id,
            description, color, event_id,
        )

    def update_tag(
        self, tag_id: UUID, changes: Mapping[str, Any], actor_id: UUID,
    ) -> LabelInfo:
        return self._update_label(
            Tag, "tag", DuplicateTagError, tag_id, changes, actor_id,
        )

    def delete_tag(self, tag_id: UUID, actor_id: UUID) -> None:
        try:
            tag = self._require(Tag, "tag", tag_id)
            # Association rows go with the tag; the line items stay.
            tag.line_items.clear()
            self._session.delete(tag)
            self._session.flush()
            self._session.commit()
            logger.info(
                "tag_deleted",
                extra={"tag_id": str(tag_id), "actor_id": str(actor_id)},
            )
        except Exception:
            self._session.rollback()
            raise

    def list_tags(self, module_type: ModuleType | str) -> list[LabelInfo]:
        return self._list_labels(Tag, module_type)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _require(self, model, kind: str, row_id: UUID):
        row = self._session.get(model, row_id)
        if row is None:
            raise TaxonomyNotFoundError(kind, str(row_id))
        return row

    @staticmethod
    def _check_fields(changes: Mapping[str, Any], allowed: frozenset[str]) -> None:
        unknown = sorted(set(changes) - allowed)
        if unknown:
            raise TaxonomyError(f"Fields cannot be updated: {', '.join(unknown)}")

    def _check_status_name_free(
        self, module: ModuleType, kind: ItemKind, name: str,
    ) -> None:
        existing = self._session.execute(
            select(Status.id)
            .where(Status.module_type == module.value)
            .where(Status.item_type == kind.value)
            .where(Status.name == name)
        ).first()
        if existing is not None:
            raise DuplicateStatusError(module.value, kind.value, name)

    def _clear_other_defaults(self, status: Status) -> None:
        pool = (
            update(Status)
            .where(Status.module_type == status.module_type)
            .where(Status.item_type == status.item_type)
            .where(Status.id != status.id)
            .where(Status.is_default.is_(True))
        )
        if status.event_id is None:
            pool = pool.where(Status.event_id.is_(None))
        else:
            pool = pool.where(Status.event_id == status.event_id)
        self._session.execute(pool.values(is_default=False))

    def _check_label_name_free(self, model, dup_error, module: ModuleType, name: str) -> None:
        existing = self._session.execute(
            select(model.id)
            .where(model.module_type == module.value)
            .where(model.name == name)
        ).first()
        if existing is not None:
            raise dup_error(module.value, name)

    def _create_label(
        self, model, kind, dup_error, module_type, name, actor_id,
        description, color, event_id,
    ) -> LabelInfo:
        try:
            module = parse_module_type(module_type)
            self._check_label_name_free(model, dup_error, module, name)
            now = self._clock.now()
            row = model(
                id=uuid4(),
                module_type=module.value,
                event_id=event_id,
                name=name,
                description=description,
                color=color,
                created_at=now,
                updated_at=now,
                created_by_id=actor_id,
            )
            self._session.add(row)
            self._session.flush()
            info = _label_info(row)
            self._session.commit()
            logger.info(
                f"{kind}_created",
                extra={"id": str(info.id), "module_type": module.value},
            )
            return info
        except Exception:
            self._session.rollback()
            raise

    def _update_label(
        self, model, kind, dup_error, row_id, changes, actor_id,
    ) -> LabelInfo:
        try:
            self._check_fields(changes, LABEL_UPDATABLE_FIELDS)
            row = self._require(model, kind, row_id)
            new_name = changes.get("name", row.name)
            if new_name != row.name:
                self._check_label_name_free(
                    model, dup_error, ModuleType(row.module_type), new_name,
                )
            for field_name in LABEL_UPDATABLE_FIELDS:
                if field_name in changes:
                    setattr(row, field_name, changes[field_name])
            row.updated_at = self._clock.now()
            row.updated_by_id = actor_id
            self._session.flush()
            info = _label_info(row)
            self._session.commit()
            logger.info(
                f"{kind}_updated",
                extra={"id": str(row_id), "fields": sorted(changes)},
            )
            return info
        except Exception:
            self._session.rollback()
            raise

    def _list_labels(self, model, module_type) -> list[LabelInfo]:
        module = parse_module_type(module_type)
        stmt = (
            select(model)
            .where(model.module_type == module.value)
            .order_by(model.name.asc())
        )
        return [_label_info(r) for r in self._session.execute(stmt).scalars()]
