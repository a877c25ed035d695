"""
DefaultStatusResolver -- picks the status a line item starts in.

Responsibility:
    Invoked when a line item is created without a status, or updated with
    its status explicitly cleared.  Resolution order within the scope's pool:

        1. the status flagged ``is_default``;
        2. otherwise the status with the lowest ``sort_order``;
        3. otherwise no status (status is optional).

Architecture position:
    Kernel > Services.  Read-only in practice; it never writes.

Invariants enforced:
    - Pool separation: the scope names the item kind, and only statuses of
      that kind are considered, so a sub-item never receives a ``main``
      default.
    - Global statuses (event_id NULL) are always in the pool; statuses
      bound to the scope's event are added to it and win ties.
"""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from costing_kernel.domain.modules import ItemKind, ModuleType
from costing_kernel.logging_config import get_logger
from costing_kernel.models.taxonomy import Status
from costing_kernel.services.base import BaseService

logger = get_logger("services.status_resolver")


@dataclass(frozen=True)
class StatusScope:
    """The status pool a line item draws from."""

    module_type: ModuleType
    item_kind: ItemKind
    event_id: UUID | None = None


class DefaultStatusResolver(BaseService[Status]):
    """Resolves the default status for a (module type, item kind) pool."""

    def __init__(self, session: Session):
        super().__init__(session)

    def resolve(self, scope: StatusScope) -> UUID | None:
        pool = (
            select(Status.id)
            .where(Status.module_type == ModuleType(scope.module_type).value)
            .where(Status.item_type == ItemKind(scope.item_kind).value)
        )
        if scope.event_id is not None:
            pool = pool.where(
                or_(Status.event_id.is_(None), Status.event_id == scope.event_id)
            )
        else:
            pool = pool.where(Status.event_id.is_(None))

        # Event-bound statuses sort before global ones.
        ordering = (
            Status.event_id.is_(None).asc(),
            Status.sort_order.asc(),
            Status.name.asc(),
        )

        status_id = self.session.execute(
            pool.where(Status.is_default.is_(True)).order_by(*ordering).limit(1)
        ).scalar_one_or_none()
        source = "is_default"

        if status_id is None:
            status_id = self.session.execute(
                pool.order_by(Status.sort_order.asc(), *ordering).limit(1)
            ).scalar_one_or_none()
            source = "lowest_order"

        if status_id is None:
            source = "none"

        logger.debug(
            "default_status_resolved",
            extra={
                "module_type": ModuleType(scope.module_type).value,
                "item_kind": ItemKind(scope.item_kind).value,
                "status_id": str(status_id) if status_id else None,
                "source": source,
            },
        )
        return status_id
