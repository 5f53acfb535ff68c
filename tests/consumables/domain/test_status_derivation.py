"""Tests for stock status derivation."""

import itertools

import pytest
from consumables.stock.consumable import Consumable, StockStatus, derive_status


class TestDeriveStatus:
    def test_archived_wins_over_everything(self):
        assert derive_status(0, 0, 10, archived=True) == StockStatus.ARCHIVED.value
        assert derive_status(50, 0, 10, archived=True) == StockStatus.ARCHIVED.value

    def test_zero_quantity_is_out_of_stock(self):
        assert derive_status(0, 0, 0) == StockStatus.OUT_OF_STOCK.value

    def test_out_of_stock_checked_before_reserved(self):
        # reserved >= quantity also holds at zero, but empty stock is reported first
        assert derive_status(0, 0, 5) == StockStatus.OUT_OF_STOCK.value

    def test_fully_reserved_stock_is_reserved(self):
        assert derive_status(4, 4, 5) == StockStatus.RESERVED.value

    def test_reserved_checked_before_low_stock(self):
        assert derive_status(3, 3, 10) == StockStatus.RESERVED.value

    def test_at_safety_stock_is_low_stock(self):
        assert derive_status(5, 0, 5) == StockStatus.LOW_STOCK.value

    def test_below_safety_stock_is_low_stock(self):
        assert derive_status(4, 1, 5) == StockStatus.LOW_STOCK.value

    def test_zero_safety_stock_never_low(self):
        assert derive_status(1, 0, 0) == StockStatus.IN_STOCK.value

    def test_above_safety_stock_is_in_stock(self):
        assert derive_status(20, 0, 5) == StockStatus.IN_STOCK.value

    @pytest.mark.parametrize(
        "quantity,reserved,safety,archived",
        list(itertools.product([0, 1, 5, 20], [0, 1, 5], [0, 5], [False, True])),
    )
    def test_same_inputs_always_give_same_status(self, quantity, reserved, safety, archived):
        first = derive_status(quantity, reserved, safety, archived)
        assert first == derive_status(quantity, reserved, safety, archived)
        assert first in {s.value for s in StockStatus}


class TestConsumableStatusMatchesDerivation:
    def test_registered_status_is_derived(self):
        consumable = Consumable.register(
            name="Toner",
            category="Office",
            company_code="HQ",
            unit="cartridge",
            keeper="alice",
            location="Cabinet 2",
            safety_stock=5,
            quantity=3,
        )
        assert consumable.status == StockStatus.LOW_STOCK.value
        assert consumable.status == derive_status(3, 0, 5)
