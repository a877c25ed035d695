"""
Tests for the price derivation engine.

Covers:
- quantity x unit price
- planned cost fallback
- preservation of the previous total on update
- explicit clearing of inputs
"""

from decimal import Decimal

from costing_engines.pricing import PriceInputs, derive_total_price, touches_price


class TestCreateDerivation:
    """Derivation with no stored state."""

    def test_quantity_times_unit_price(self):
        total = derive_total_price(None, {
            "quantity": Decimal("2"),
            "unit_price": Decimal("1500"),
        })
        assert total == Decimal("3000")

    def test_product_wins_over_planned_cost(self):
        total = derive_total_price(None, {
            "quantity": Decimal("2"),
            "unit_price": Decimal("10"),
            "planned_cost": Decimal("999"),
        })
        assert total == Decimal("20")

    def test_planned_cost_fallback(self):
        total = derive_total_price(None, {
            "quantity": Decimal("2"),
            "unit_price": None,
            "planned_cost": Decimal("750"),
        })
        assert total == Decimal("750")

    def test_nothing_known_is_none(self):
        assert derive_total_price(None, {}) is None
        assert derive_total_price(None, {"quantity": Decimal("3")}) is None

    def test_zero_quantity_is_a_real_value(self):
        total = derive_total_price(None, {
            "quantity": Decimal("0"),
            "unit_price": Decimal("40"),
            "planned_cost": Decimal("100"),
        })
        assert total == Decimal("0")


class TestUpdateDerivation:
    """Derivation against a stored item."""

    def setup_method(self):
        self.current = PriceInputs(
            quantity=Decimal("2"),
            unit_price=Decimal("1500"),
            planned_cost=None,
            total_price=Decimal("3000"),
        )

    def test_quantity_change_uses_stored_unit_price(self):
        total = derive_total_price(self.current, {"quantity": Decimal("3")})
        assert total == Decimal("4500")

    def test_clearing_unit_price_falls_back_to_planned(self):
        total = derive_total_price(self.current, {
            "unit_price": None,
            "planned_cost": Decimal("2800"),
        })
        assert total == Decimal("2800")

    def test_clearing_everything_keeps_previous_total(self):
        total = derive_total_price(self.current, {
            "quantity": None,
            "unit_price": None,
        })
        assert total == Decimal("3000")

    def test_stored_planned_cost_is_used_when_product_breaks(self):
        current = PriceInputs(
            quantity=Decimal("1"),
            unit_price=Decimal("10"),
            planned_cost=Decimal("55"),
            total_price=Decimal("10"),
        )
        assert derive_total_price(current, {"quantity": None}) == Decimal("55")


class TestTouchesPrice:
    def test_price_fields(self):
        assert touches_price({"quantity": 1})
        assert touches_price({"unit_price": None})
        assert touches_price({"planned_cost": Decimal("1"), "name": "x"})

    def test_other_fields(self):
        assert not touches_price({"name": "x", "actual_cost": Decimal("5")})
        assert not touches_price({})
