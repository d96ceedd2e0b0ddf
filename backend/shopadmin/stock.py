"""
Stock state derivation for products.

Pure functions of stored state: nothing here touches the session, and
nothing derived here is ever persisted. The product model properties,
the list filters and the stats aggregate all go through these predicates
so they cannot disagree.
"""
from __future__ import annotations

from typing import Iterable, Tuple

# (quantity, is_active) for one variant
VariantStock = Tuple[int, bool]


def _in_stock_quantity(quantity: int | None) -> bool:
    return (quantity or 0) > 0


def _low_quantity(quantity: int | None, threshold: int) -> bool:
    # Zero is out of stock, never low stock
    return _in_stock_quantity(quantity) and quantity <= threshold


def uses_variant_stock(has_variants: bool, variants: Iterable[VariantStock]) -> bool:
    return bool(has_variants) and any(True for _ in variants)


def is_in_stock(*, has_variants: bool, quantity: int, variants: list[VariantStock]) -> bool:
    if uses_variant_stock(has_variants, variants):
        return any(active and _in_stock_quantity(qty) for qty, active in variants)
    return _in_stock_quantity(quantity)


def is_low_stock(*, has_variants: bool, quantity: int, threshold: int, variants: list[VariantStock]) -> bool:
    """The product's threshold applies to each active variant; there is no per-variant threshold."""
    if uses_variant_stock(has_variants, variants):
        return any(active and _low_quantity(qty, threshold) for qty, active in variants)
    return _low_quantity(quantity, threshold)
