"""
Property-based tests for sale recording.

Boundaries fuzzed here:
- Line totals: any positive quantity with up to 9 decimal places times any
  unit price rounds half-up to the nearest minor unit
- Quantity parsing: valid decimal text parses exactly, malformed text is
  always rejected
- Recording: N valid lines produce exactly one sale, N lines and N outbound
  movements that mirror them
- Rejection: an invalid line anywhere in the request writes nothing

The database persists across the examples of one test, so assertions are
made per recorded sale or on row-count deltas.
"""

from decimal import Decimal

import pytest
from hypothesis import HealthCheck, assume, given, settings
from hypothesis import strategies as st

from inventauri.db.engine import session_scope
from inventauri.domain.quantities import (
    compute_line_total,
    outbound_quantity,
    parse_quantity,
    sale_quantity,
)
from inventauri.exceptions import InvalidQuantityError, ValidationError
from inventauri.selectors import SaleSelector

TENANT_A = "tenant-a"

DB_SETTINGS = settings(
    max_examples=40,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture, HealthCheck.too_slow],
)

quantities = st.decimals(
    min_value=Decimal("0.000000001"),
    max_value=Decimal("99999999"),
    places=9,
    allow_nan=False,
    allow_infinity=False,
)

unit_prices = st.integers(min_value=0, max_value=10_000_000)

line_specs = st.tuples(st.sampled_from(["sku-1", "sku-2"]), quantities, unit_prices)


class TestLineTotalProperties:
    @given(quantity=quantities, price=unit_prices)
    @settings(max_examples=300)
    def test_total_is_nearest_with_halves_up(self, quantity, price):
        total = compute_line_total(quantity, price)
        exact = quantity * price

        assert isinstance(total, int)
        assert Decimal("-0.5") < Decimal(total) - exact <= Decimal("0.5")

    @given(quantity=quantities, price=unit_prices)
    @settings(max_examples=200)
    def test_total_is_monotonic_in_price(self, quantity, price):
        assert compute_line_total(quantity, price) <= compute_line_total(quantity, price + 1)

    @given(whole=st.integers(min_value=1, max_value=10**6), price=unit_prices)
    def test_whole_quantities_are_exact(self, whole, price):
        assert compute_line_total(Decimal(whole), price) == whole * price


class TestQuantityParsingProperties:
    @given(quantity=quantities)
    def test_decimal_text_parses_exactly(self, quantity):
        assert parse_quantity(str(quantity)) == quantity
        assert sale_quantity(f"  {quantity} ") == quantity

    @given(quantity=quantities)
    def test_outbound_is_negated_magnitude(self, quantity):
        assert outbound_quantity(quantity) == -quantity
        assert outbound_quantity(-quantity) == -quantity

    @given(text=st.text(alphabet="abcxyz!@#,; ", min_size=1, max_size=12))
    def test_non_numeric_text_rejected(self, text):
        with pytest.raises(InvalidQuantityError):
            parse_quantity(text)

    @given(quantity=quantities)
    def test_negative_sale_quantity_rejected_by_default(self, quantity):
        with pytest.raises(InvalidQuantityError):
            sale_quantity(-quantity)


class TestRecordingProperties:
    @given(lines=st.lists(line_specs, min_size=1, max_size=8))
    @DB_SETTINGS
    def test_lines_and_movements_mirror_request(
        self, recorder, session_factory, seeded_items, lines
    ):
        record = recorder.record_sale(
            TENANT_A,
            {
                "items": [
                    {"itemId": item_id, "qty": str(qty), "unitPriceCents": price}
                    for item_id, qty, price in lines
                ]
            },
        )

        with session_scope(session_factory) as session:
            selector = SaleSelector(session)
            stored_lines = selector.list_lines(TENANT_A, record.id)
            movements = selector.movements_for_sale(TENANT_A, record.id)

        assert len(stored_lines) == len(movements) == len(lines)
        for (item_id, qty, price), line, movement in zip(lines, stored_lines, movements):
            assert line.item_id == item_id
            assert line.quantity == qty
            assert line.unit_price_cents == price
            assert line.line_total_cents == compute_line_total(qty, price)
            assert movement.sale_line_id == line.id
            assert movement.item_id == item_id
            assert movement.quantity == -qty

    @given(
        lines=st.lists(line_specs, min_size=1, max_size=5),
        bad_qty=st.sampled_from(
            ["0", "-1", "abc", "", "1e400", "0.0000000001", "NaN", "1000000000"]
        ),
        position=st.integers(min_value=0, max_value=5),
    )
    @DB_SETTINGS
    def test_invalid_line_writes_nothing(
        self, recorder, seeded_items, row_counts, lines, bad_qty, position
    ):
        assume(position <= len(lines))
        items = [
            {"itemId": item_id, "qty": str(qty), "unitPriceCents": price}
            for item_id, qty, price in lines
        ]
        items.insert(position, {"itemId": "sku-1", "qty": bad_qty, "unitPriceCents": 100})
        before = row_counts()

        with pytest.raises(ValidationError) as exc_info:
            recorder.record_sale(TENANT_A, {"items": items})

        assert exc_info.value.line_index == position
        assert row_counts() == before
