"""
ORM round-trip tests for events, line items and taxonomy tables.

Verifies that each model can be persisted and queried back with all fields
intact, that table constraints hold, and that foreign key actions behave.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError

from costing_kernel.models.event import Event
from costing_kernel.models.line_item import LineItem
from costing_kernel.models.taxonomy import DEFAULT_COLOR, Category, Status, Tag, line_item_tags


def _make_event(session, test_actor_id, **overrides):
    fields = {
        "id": uuid4(),
        "name": "Harbour Nights",
        "start_date": date(2024, 6, 1),
        "end_date": date(2024, 6, 2),
        "created_by_id": test_actor_id,
    }
    fields.update(overrides)
    event = Event(**fields)
    session.add(event)
    session.flush()
    return event


def _make_status(session, test_actor_id, **overrides):
    fields = {
        "id": uuid4(),
        "module_type": "production",
        "item_type": "main",
        "name": "Pending",
        "created_by_id": test_actor_id,
    }
    fields.update(overrides)
    status = Status(**fields)
    session.add(status)
    session.flush()
    return status


def _make_line_item(session, test_actor_id, **overrides):
    fields = {
        "id": uuid4(),
        "module_type": "production",
        "name": "Stage",
        "created_by_id": test_actor_id,
    }
    fields.update(overrides)
    item = LineItem(**fields)
    session.add(item)
    session.flush()
    return item


class TestEventModel:
    def test_round_trip(self, session, test_actor_id):
        event = _make_event(session, test_actor_id, location="Pier 4")
        session.expire_all()

        queried = session.get(Event, event.id)
        assert queried.name == "Harbour Nights"
        assert queried.start_date == date(2024, 6, 1)
        assert queried.location == "Pier 4"
        assert queried.created_at is not None

    def test_end_before_start_rejected(self, session, test_actor_id):
        with pytest.raises(IntegrityError):
            _make_event(
                session, test_actor_id,
                start_date=date(2024, 6, 2), end_date=date(2024, 6, 1),
            )


class TestLineItemModel:
    def test_round_trip_preserves_decimals(self, session, test_actor_id):
        item = _make_line_item(
            session, test_actor_id,
            quantity=Decimal("2.5"),
            unit_price=Decimal("1234.123456789"),
            metadata_json='{"rider": "none"}',
        )
        session.expire_all()

        queried = session.get(LineItem, item.id)
        assert queried.quantity == Decimal("2.5")
        assert queried.unit_price == Decimal("1234.123456789")
        assert queried.metadata_json == '{"rider": "none"}'
        assert queried.is_sub_item is False

    def test_metadata_column_name(self):
        # "metadata" is reserved on declarative classes
        assert LineItem.metadata_json.property.columns[0].name == "metadata"

    @pytest.mark.parametrize(
        "planned,expected",
        [(None, False), (Decimal("0"), False), (Decimal("10"), True)],
    )
    def test_planned_cost_manual_default(self, session, test_actor_id, planned, expected):
        item = _make_line_item(session, test_actor_id, planned_cost=planned)
        session.expire_all()
        assert session.get(LineItem, item.id).planned_cost_manual is expected

    def test_parent_relationship(self, session, test_actor_id):
        parent = _make_line_item(session, test_actor_id)
        child = _make_line_item(session, test_actor_id, name="Truss", parent_id=parent.id)
        session.expire_all()

        queried = session.get(LineItem, child.id)
        assert queried.parent.id == parent.id
        assert queried.is_sub_item is True

    def test_missing_parent_rejected(self, session, test_actor_id):
        with pytest.raises(IntegrityError):
            _make_line_item(session, test_actor_id, parent_id=uuid4())

    def test_created_by_required(self, session):
        with pytest.raises(IntegrityError):
            _make_line_item(session, None)

    def test_event_delete_cascades(self, session, test_actor_id):
        event = _make_event(session, test_actor_id)
        item = _make_line_item(session, test_actor_id, event_id=event.id)
        session.commit()
        item_id = item.id

        session.execute(Event.__table__.delete().where(Event.id == event.id))
        session.commit()

        assert session.execute(
            select(LineItem.id).where(LineItem.id == item_id)
        ).first() is None

    def test_status_delete_sets_null(self, session, test_actor_id):
        status = _make_status(session, test_actor_id)
        item = _make_line_item(session, test_actor_id, status_id=status.id)
        session.commit()

        session.execute(Status.__table__.delete().where(Status.id == status.id))
        session.commit()

        assert session.get(LineItem, item.id).status_id is None


class TestTaxonomyModels:
    def test_status_defaults(self, session, test_actor_id):
        status = _make_status(session, test_actor_id)
        session.expire_all()

        queried = session.get(Status, status.id)
        assert queried.color == DEFAULT_COLOR
        assert queried.sort_order == 0
        assert queried.is_default is False

    def test_status_unique_per_module_and_kind(self, session, test_actor_id):
        _make_status(session, test_actor_id)
        _make_status(session, test_actor_id, item_type="sub")
        with pytest.raises(IntegrityError):
            _make_status(session, test_actor_id)

    def test_category_unique_per_module(self, session, test_actor_id):
        session.add(Category(
            id=uuid4(), module_type="artists", name="Headliners", created_by_id=test_actor_id,
        ))
        session.flush()
        session.add(Category(
            id=uuid4(), module_type="artists", name="Headliners", created_by_id=test_actor_id,
        ))
        with pytest.raises(IntegrityError):
            session.flush()

    def test_tag_association(self, session, test_actor_id):
        tag = Tag(id=uuid4(), module_type="production", name="rental", created_by_id=test_actor_id)
        session.add(tag)
        item = _make_line_item(session, test_actor_id)
        item.tags.append(tag)
        session.flush()
        session.expire_all()

        assert [t.name for t in session.get(LineItem, item.id).tags] == ["rental"]
        assert [i.id for i in session.get(Tag, tag.id).line_items] == [item.id]

    def test_tag_delete_removes_association_rows(self, session, test_actor_id):
        tag_id = uuid4()
        session.add(Tag(id=tag_id, module_type="production", name="rental",
                        created_by_id=test_actor_id))
        item = _make_line_item(session, test_actor_id)
        session.execute(insert(line_item_tags).values(line_item_id=item.id, tag_id=tag_id))
        session.commit()

        session.execute(Tag.__table__.delete().where(Tag.id == tag_id))
        session.commit()

        assert session.execute(select(line_item_tags)).all() == []
        assert session.get(LineItem, item.id) is not None
