"""Stock predicates are pure functions of stored product/variant state."""

import pytest

from shopadmin import stock


@pytest.mark.parametrize(
    "quantity,expected",
    [(0, (False, False)), (3, (True, True)), (5, (True, True)), (6, (True, False)), (10, (True, False))],
)
def test_simple_product(quantity, expected):
    result = (
        stock.is_in_stock(has_variants=False, quantity=quantity, variants=[]),
        stock.is_low_stock(has_variants=False, quantity=quantity, threshold=5, variants=[]),
    )
    assert result == expected


def test_variant_stock_uses_active_variants_only():
    variants = [(0, True), (50, False)]
    assert not stock.is_in_stock(has_variants=True, quantity=100, variants=variants)
    assert not stock.is_low_stock(has_variants=True, quantity=100, threshold=5, variants=variants)

    variants.append((2, True))
    assert stock.is_in_stock(has_variants=True, quantity=0, variants=variants)
    assert stock.is_low_stock(has_variants=True, quantity=0, threshold=5, variants=variants)


def test_flag_without_rows_falls_back_to_product_quantity():
    assert stock.is_in_stock(has_variants=True, quantity=4, variants=[])
    assert stock.is_low_stock(has_variants=True, quantity=4, threshold=5, variants=[])
    assert not stock.uses_variant_stock(True, [])


def test_rows_ignored_when_flag_is_false():
    assert not stock.is_in_stock(has_variants=False, quantity=0, variants=[(9, True)])


@pytest.mark.parametrize("threshold", [0, 1, 5, 20])
@pytest.mark.parametrize("quantity", [0, 1, 5, 21])
def test_low_stock_implies_in_stock(quantity, threshold):
    for has_variants, variants in ((False, []), (True, [(quantity, True), (0, False)])):
        low = stock.is_low_stock(has_variants=has_variants, quantity=quantity, threshold=threshold, variants=variants)
        in_stock = stock.is_in_stock(has_variants=has_variants, quantity=quantity, variants=variants)
        assert not low or in_stock
