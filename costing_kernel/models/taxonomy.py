"""
Module-scoped taxonomy: statuses, categories and tags.

Invariants enforced
-------------------
* Status uniqueness: (module_type, item_type, name).
* Category and tag uniqueness: (module_type, name).
* Statuses with ``event_id`` NULL form the global pool used by the default
  status resolver.
"""

from uuid import UUID

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from costing_kernel.db.base import Base, TrackedBase, UUIDString

DEFAULT_COLOR = "#6B7280"


line_item_tags = Table(
    "line_item_tags",
    Base.metadata,
    Column(
        "line_item_id",
        UUIDString(),
        ForeignKey("line_items.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "tag_id",
        UUIDString(),
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Status(TrackedBase):
    """
    A named, coloured, ordered workflow state for one module and item kind.

    ``is_default`` marks the status assigned to new items of that kind;
    when no default is flagged the lowest ``sort_order`` wins.
    """

    __tablename__ = "statuses"

    __table_args__ = (
        UniqueConstraint(
            "module_type", "item_type", "name",
            name="uq_status_module_item_type_name",
        ),
        Index("idx_status_scope", "module_type", "item_type"),
    )

    module_type: Mapped[str] = mapped_column(String(50), nullable=False)
    item_type: Mapped[str] = mapped_column(String(10), nullable=False, default="main")
    event_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"), nullable=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str] = mapped_column(String(20), nullable=False, default=DEFAULT_COLOR)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<Status {self.module_type}/{self.item_type} {self.name}>"


class Category(TrackedBase):
    """A named grouping of line items within a module."""

    __tablename__ = "categories"

    __table_args__ = (
        UniqueConstraint("module_type", "name", name="uq_category_module_name"),
    )

    module_type: Mapped[str] = mapped_column(String(50), nullable=False)
    event_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"), nullable=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    color: Mapped[str | None] = mapped_column(String(20), nullable=True)

    def __repr__(self) -> str:
        return f"<Category {self.module_type} {self.name}>"


class Tag(TrackedBase):
    """A free-form label attachable to many line items."""

    __tablename__ = "tags"

    __table_args__ = (
        UniqueConstraint("module_type", "name", name="uq_tag_module_name"),
    )

    module_type: Mapped[str] = mapped_column(String(50), nullable=False)
    event_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"), nullable=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    color: Mapped[str | None] = mapped_column(String(20), nullable=True)

    line_items: Mapped[list["LineItem"]] = relationship(  # noqa: F821
        "LineItem",
        secondary=line_item_tags,
        back_populates="tags",
    )

    def __repr__(self) -> str:
        return f"<Tag {self.module_type} {self.name}>"
