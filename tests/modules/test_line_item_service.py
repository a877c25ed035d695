"""
Tests for LineItemService.

Covers:
- Price derivation on create and update
- Parent recalculation after sub-item create, update, move and delete
- Manual planned cost preservation on parents
- Hierarchy rules (self-parent, missing parent, depth)
- Default status assignment and clearing
- Tags, categories and metadata
- Listing order and cascade deletes
- Transaction rollback on failure
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from costing_kernel.domain.modules import ItemKind, ModuleType
from costing_kernel.exceptions import (
    EventNotFoundError,
    HierarchyDepthError,
    InvalidLineItemFieldError,
    LineItemNotFoundError,
    ParentNotFoundError,
    SelfParentError,
    TaxonomyNotFoundError,
    UnknownModuleTypeError,
)
from costing_kernel.models.line_item import LineItem
from costing_modules.line_items import LineItemDraft


# =============================================================================
# Create
# =============================================================================


class TestCreate:
    def test_price_is_quantity_times_unit_price(self, create_item):
        item = create_item("Speakers", quantity=2, unit_price=1500)
        assert item.total_price == Decimal("3000")

    def test_price_falls_back_to_planned_cost(self, create_item):
        item = create_item("Generator", planned_cost=750)
        assert item.total_price == Decimal("750")
        assert item.planned_cost_manual is True

    def test_no_price_inputs(self, create_item):
        item = create_item("Placeholder")
        assert item.total_price is None
        assert item.planned_cost_manual is False

    def test_zero_planned_cost_is_not_manual(self, create_item):
        assert create_item("Stage", planned_cost=0).planned_cost_manual is False

    def test_module_type_string_is_accepted(self, create_item):
        item = create_item("Headliner", module_type="artists")
        assert item.module_type is ModuleType.ARTISTS

    def test_unknown_module_type(self, create_item):
        with pytest.raises(UnknownModuleTypeError) as exc_info:
            create_item("Bad", module_type="catering")
        assert exc_info.value.code == "UNKNOWN_MODULE_TYPE"

    def test_unknown_event(self, create_item):
        with pytest.raises(EventNotFoundError):
            create_item("Orphan", event_id=uuid4())

    def test_global_item_without_event(self, create_item):
        item = create_item("Stock Chairs", module_type=ModuleType.MATERIALS_STOCK, event_id=None)
        assert item.event_id is None

    def test_creation_is_logged(self, create_item, captured_logs):
        item = create_item("Lights", planned_cost=100)
        created = [r for r in captured_logs() if r["message"] == "line_item_created"]
        assert created[0]["line_item_id"] == str(item.id)
        assert created[0]["module_type"] == "production"


# =============================================================================
# Sub-items and parent recalculation
# =============================================================================


class TestParentRecalculation:
    """Parent totals always equal the sums over their sub-items."""

    def test_budget_follows_sub_items_end_to_end(self, create_item, line_items, test_actor_id):
        parent = create_item("Stage Build", planned_cost=0)
        sub_a = create_item("Truss", parent_id=parent.id, planned_cost=1000)
        create_item("Deck", parent_id=parent.id, planned_cost=2000)

        view = line_items.get_line_item(parent.id)
        assert view.planned_cost == Decimal("3000")
        assert view.total_price == Decimal("3000")
        assert view.actual_cost is None
        assert len(view.sub_items) == 2

        line_items.delete_line_item(sub_a.id, test_actor_id)

        view = line_items.get_line_item(parent.id)
        assert view.planned_cost == Decimal("2000")
        assert view.total_price == Decimal("2000")
        assert [s.name for s in view.sub_items] == ["Deck"]

    def test_actual_cost_rolls_up(self, create_item, line_items, test_actor_id):
        parent = create_item("Catering")
        sub = create_item("Lunch", parent_id=parent.id, planned_cost=400)
        line_items.update_line_item(
            sub.id, {"actual_cost": Decimal("450")}, test_actor_id,
        )

        view = line_items.get_line_item(parent.id)
        assert view.actual_cost == Decimal("450")
        assert view.planned_cost == Decimal("400")

    def test_manual_parent_budget_is_kept(self, create_item, line_items):
        parent = create_item("Lighting", planned_cost=5000)
        create_item("Fixtures", parent_id=parent.id, planned_cost=1200, actual_cost=1100)

        view = line_items.get_line_item(parent.id)
        assert view.planned_cost == Decimal("5000")
        assert view.actual_cost == Decimal("1100")
        assert view.total_price == Decimal("1200")

    def test_clearing_manual_budget_resumes_tracking(self, create_item, line_items, test_actor_id):
        parent = create_item("Lighting", planned_cost=5000)
        create_item("Fixtures", parent_id=parent.id, planned_cost=1200)

        line_items.update_line_item(parent.id, {"planned_cost": None}, test_actor_id)

        view = line_items.get_line_item(parent.id)
        assert view.planned_cost == Decimal("1200")
        assert view.planned_cost_manual is False

    def test_sub_item_price_change_updates_parent(self, create_item, line_items, test_actor_id):
        parent = create_item("Backline")
        sub = create_item("Amps", parent_id=parent.id, quantity=2, unit_price=1500)
        assert line_items.get_line_item(parent.id).total_price == Decimal("3000")

        updated = line_items.update_line_item(
            sub.id, {"quantity": Decimal("3")}, test_actor_id,
        )

        assert updated.total_price == Decimal("4500")
        assert line_items.get_line_item(parent.id).total_price == Decimal("4500")

    def test_moving_sub_item_recalculates_both_parents(
        self, create_item, line_items, test_actor_id,
    ):
        old_parent = create_item("Old")
        new_parent = create_item("New")
        sub = create_item("Moving", parent_id=old_parent.id, planned_cost=300)

        line_items.update_line_item(sub.id, {"parent_id": new_parent.id}, test_actor_id)

        assert line_items.get_line_item(old_parent.id).planned_cost is None
        assert line_items.get_line_item(new_parent.id).planned_cost == Decimal("300")

    def test_promoting_sub_item_to_top_level(self, create_item, line_items, test_actor_id):
        parent = create_item("Parent")
        sub = create_item("Child", parent_id=parent.id, actual_cost=80)

        view = line_items.update_line_item(sub.id, {"parent_id": None}, test_actor_id)

        assert view.is_sub_item is False
        assert line_items.get_line_item(parent.id).actual_cost is None

    def test_sub_item_inherits_parent_event(self, create_item, event_id):
        parent = create_item("Parent")
        sub = create_item("Child", parent_id=parent.id, event_id=None)
        assert sub.event_id == event_id
        assert sub.parent.name == "Parent"


# =============================================================================
# Hierarchy rules
# =============================================================================


class TestHierarchy:
    def test_missing_parent(self, create_item):
        with pytest.raises(ParentNotFoundError):
            create_item("Child", parent_id=uuid4())

    def test_sub_item_cannot_be_parent(self, create_item):
        parent = create_item("Parent")
        sub = create_item("Child", parent_id=parent.id)
        with pytest.raises(HierarchyDepthError):
            create_item("Grandchild", parent_id=sub.id)

    def test_self_parent(self, create_item, line_items, test_actor_id):
        item = create_item("Loop")
        with pytest.raises(SelfParentError):
            line_items.update_line_item(item.id, {"parent_id": item.id}, test_actor_id)

    def test_item_with_sub_items_cannot_become_sub_item(
        self, create_item, line_items, test_actor_id,
    ):
        parent = create_item("Parent")
        create_item("Child", parent_id=parent.id)
        other = create_item("Other")

        with pytest.raises(HierarchyDepthError) as exc_info:
            line_items.update_line_item(parent.id, {"parent_id": other.id}, test_actor_id)
        assert exc_info.value.reason == "item has sub-items"

    def test_failed_update_leaves_item_unchanged(self, create_item, line_items, test_actor_id):
        item = create_item("Stable", planned_cost=10)
        with pytest.raises(ParentNotFoundError):
            line_items.update_line_item(
                item.id,
                {"parent_id": uuid4(), "name": "Changed"},
                test_actor_id,
            )
        assert line_items.get_line_item(item.id).name == "Stable"


# =============================================================================
# Update
# =============================================================================


class TestUpdate:
    def test_unknown_item(self, line_items, test_actor_id):
        with pytest.raises(LineItemNotFoundError):
            line_items.update_line_item(uuid4(), {"name": "x"}, test_actor_id)

    def test_non_updatable_field(self, create_item, line_items, test_actor_id):
        item = create_item("Item")
        with pytest.raises(InvalidLineItemFieldError) as exc_info:
            line_items.update_line_item(
                item.id, {"module_type": "artists", "total_price": 1}, test_actor_id,
            )
        assert exc_info.value.field_names == ["module_type", "total_price"]

    def test_non_price_update_keeps_total(self, create_item, line_items, test_actor_id):
        item = create_item("Item", quantity=2, unit_price=10)
        view = line_items.update_line_item(
            item.id, {"name": "Renamed", "actual_cost": Decimal("5")}, test_actor_id,
        )
        assert view.total_price == Decimal("20")
        assert view.name == "Renamed"

    def test_clearing_price_inputs_keeps_previous_total(
        self, create_item, line_items, test_actor_id,
    ):
        item = create_item("Item", quantity=2, unit_price=10)
        view = line_items.update_line_item(
            item.id, {"quantity": None, "unit_price": None}, test_actor_id,
        )
        assert view.total_price == Decimal("20")

    def test_update_stamps_actor(self, create_item, line_items, session, clock):
        item = create_item("Item")
        editor = uuid4()
        clock.advance(30)
        line_items.update_line_item(item.id, {"description": "notes"}, editor)

        row = session.get(LineItem, item.id)
        assert row.updated_by_id == editor
        assert row.description == "notes"


# =============================================================================
# Statuses
# =============================================================================


class TestDefaultStatus:
    def test_new_item_gets_default(self, create_item, make_status):
        pending = make_status("Pending", is_default=True)
        item = create_item("Item")
        assert item.status_id == pending.id
        assert item.status.name == "Pending"

    def test_explicit_status_is_kept(self, create_item, make_status):
        make_status("Pending", is_default=True)
        booked = make_status("Booked", sort_order=2)
        assert create_item("Item", status_id=booked.id).status_id == booked.id

    def test_unknown_status(self, create_item):
        with pytest.raises(TaxonomyNotFoundError) as exc_info:
            create_item("Item", status_id=uuid4())
        assert exc_info.value.kind == "status"

    def test_sub_item_uses_sub_pool(self, create_item, make_status):
        make_status("Main Default", is_default=True)
        sub_default = make_status("Sub Default", item_type=ItemKind.SUB, is_default=True)

        parent = create_item("Parent")
        sub = create_item("Child", parent_id=parent.id)

        assert sub.status_id == sub_default.id

    def test_sub_item_without_sub_pool_has_no_status(self, create_item, make_status):
        make_status("Main Default", is_default=True)
        parent = create_item("Parent")
        assert create_item("Child", parent_id=parent.id).status is None

    @pytest.mark.parametrize("cleared", [None, ""])
    def test_clearing_status_reassigns_default(
        self, create_item, make_status, line_items, test_actor_id, cleared,
    ):
        pending = make_status("Pending", is_default=True)
        paid = make_status("Paid", sort_order=9)
        item = create_item("Item", status_id=paid.id)

        view = line_items.update_line_item(item.id, {"status_id": cleared}, test_actor_id)

        assert view.status_id == pending.id
        assert view.status.name == "Pending"

    def test_changing_status_refreshes_view(
        self, create_item, make_status, line_items, test_actor_id,
    ):
        make_status("Pending", is_default=True)
        paid = make_status("Paid", color="#10B981")
        item = create_item("Item")

        view = line_items.update_line_item(item.id, {"status_id": paid.id}, test_actor_id)

        assert view.status.name == "Paid"
        assert view.status.color == "#10B981"


# =============================================================================
# Categories, tags and metadata
# =============================================================================


class TestLabels:
    def test_category_and_tags(self, create_item, taxonomy, test_actor_id):
        category = taxonomy.create_category(ModuleType.PRODUCTION, "Sound", test_actor_id)
        loud = taxonomy.create_tag(ModuleType.PRODUCTION, "loud", test_actor_id)
        rental = taxonomy.create_tag(ModuleType.PRODUCTION, "rental", test_actor_id)

        item = create_item(
            "PA", category_id=category.id, tag_ids=(rental.id, loud.id),
        )

        assert item.category.name == "Sound"
        assert {t.name for t in item.tags} == {"loud", "rental"}

    def test_unknown_tag(self, create_item):
        with pytest.raises(TaxonomyNotFoundError) as exc_info:
            create_item("PA", tag_ids=(uuid4(),))
        assert exc_info.value.kind == "tag"

    def test_replacing_tags(self, create_item, taxonomy, line_items, test_actor_id):
        loud = taxonomy.create_tag(ModuleType.PRODUCTION, "loud", test_actor_id)
        quiet = taxonomy.create_tag(ModuleType.PRODUCTION, "quiet", test_actor_id)
        item = create_item("PA", tag_ids=(loud.id,))

        line_items.update_line_item(item.id, {"tag_ids": [quiet.id]}, test_actor_id)
        assert [t.name for t in line_items.get_line_item(item.id).tags] == ["quiet"]

        line_items.update_line_item(item.id, {"tag_ids": None}, test_actor_id)
        assert line_items.get_line_item(item.id).tags == ()

    def test_metadata_round_trip(self, create_item, line_items):
        item = create_item("Headliner", metadata={"rider": "still water", "crew": 4})
        assert line_items.get_line_item(item.id).metadata == {
            "rider": "still water",
            "crew": 4,
        }

    def test_corrupt_metadata_reads_as_empty(self, create_item, line_items, session):
        item = create_item("Headliner", metadata={"rider": "x"})
        session.get(LineItem, item.id).metadata_json = "{not json"
        session.commit()

        view = line_items.get_line_item(item.id)
        assert view.metadata == {}
        assert view.to_dict()["metadata"] == {}


# =============================================================================
# Reads and deletes
# =============================================================================


class TestListAndDelete:
    def test_event_listing_order(self, create_item, line_items, event_id):
        first = create_item("First")
        create_item("First / a", parent_id=first.id)
        create_item("First / b", parent_id=first.id)
        create_item("Second")

        listing = line_items.list_event_line_items(event_id)

        assert [v.name for v in listing] == ["Second", "First"]
        assert [s.name for s in listing[1].sub_items] == ["First / a", "First / b"]

    def test_listing_unknown_event(self, line_items):
        with pytest.raises(EventNotFoundError):
            line_items.list_event_line_items(uuid4())

    def test_listing_excludes_other_events(self, create_item, line_items, make_event, event_id):
        other = make_event("Winter Gala")
        create_item("Mine")
        create_item("Theirs", event_id=other)
        assert [v.name for v in line_items.list_event_line_items(event_id)] == ["Mine"]

    def test_delete_parent_removes_sub_items(self, create_item, line_items, test_actor_id, session):
        parent = create_item("Parent")
        a = create_item("A", parent_id=parent.id)
        b = create_item("B", parent_id=parent.id)

        deleted = line_items.delete_line_item(parent.id, test_actor_id)

        assert set(deleted[:2]) == {a.id, b.id}
        assert deleted[-1] == parent.id
        assert session.get(LineItem, a.id) is None
        with pytest.raises(LineItemNotFoundError):
            line_items.get_line_item(parent.id)

    def test_delete_unknown(self, line_items, test_actor_id):
        with pytest.raises(LineItemNotFoundError):
            line_items.delete_line_item(uuid4(), test_actor_id)

    def test_to_dict_shape(self, create_item):
        item = create_item("Speakers", quantity=2, unit_price=1500)
        payload = item.to_dict()
        assert payload["totalPrice"] == "3000"
        assert payload["moduleType"] == "production"
        assert payload["parentLineItemId"] is None
        assert payload["subLineItems"] == []


class TestRollback:
    def test_failed_create_persists_nothing(self, create_item, line_items, event_id):
        create_item("Kept")
        with pytest.raises(TaxonomyNotFoundError):
            create_item("Dropped", category_id=uuid4())

        assert [v.name for v in line_items.list_event_line_items(event_id)] == ["Kept"]

    def test_failed_sub_item_create_leaves_parent_totals(
        self, create_item, line_items,
    ):
        parent = create_item("Parent")
        create_item("Child", parent_id=parent.id, planned_cost=100)
        with pytest.raises(TaxonomyNotFoundError):
            create_item("Broken", parent_id=parent.id, planned_cost=900, status_id=uuid4())

        assert line_items.get_line_item(parent.id).planned_cost == Decimal("100")

    def test_draft_is_frozen(self):
        draft = LineItemDraft(module_type=ModuleType.PRODUCTION, name="x")
        with pytest.raises(AttributeError):
            draft.name = "y"
