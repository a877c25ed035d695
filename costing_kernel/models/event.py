"""
Event model.

An event is the production (festival, concert, conference) that owns
event-scoped line items.  The finance rollup filters on its date span and
labels event groups with its name.
"""

from datetime import date

from sqlalchemy import CheckConstraint, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from costing_kernel.db.base import TrackedBase


class Event(TrackedBase):
    """A scheduled production that line items are budgeted against."""

    __tablename__ = "events"

    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="ck_event_span"),
        Index("idx_event_dates", "start_date", "end_date"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    start_date: Mapped[date] = mapped_column(nullable=False)
    end_date: Mapped[date] = mapped_column(nullable=False)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<Event {self.name} {self.start_date}..{self.end_date}>"
