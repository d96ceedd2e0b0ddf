# Overview: Service-layer operations for products and their variants.

"""
Products and the simple/variant stock duality.

has_variants is stored, not computed. It is recomputed at every variant
add/remove so that it always equals "this product has at least one variant
row". Clients cannot set it directly.

A product created with nested variants is written in one transaction:
either the product and all its variants are committed, or nothing is.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import and_, exists, not_, or_

from ..enums import ProductStatus
from ..extensions import db
from ..models import Category, Product, ProductVariant
from ..validation import ConflictError, NotFoundError, ValidationError
from .persistence import commit_or_conflict, flush_or_conflict
from .query_service import ListQuery, Visibility, apply_sort, apply_visibility, paginate, run_bulk


SLUG_CONFLICT = "Product with this slug already exists"
SKU_CONFLICT = "Product with this SKU already exists"
VARIANT_SKU_CONFLICT = "Variant with this SKU already exists"

PRODUCT_SORT_FIELDS = {
    "created_at": Product.created_at,
    "updated_at": Product.updated_at,
    "name": Product.name,
    "price": Product.price,
    "quantity": Product.quantity,
    "sku": Product.sku,
}


# -- stock predicates as SQL (mirror shopadmin.stock) --

def _variant_exists(*criteria):
    return exists().where(ProductVariant.product_id == Product.id, *criteria)


def _uses_variant_stock():
    return and_(Product.has_variants.is_(True), _variant_exists())


def in_stock_clause():
    return or_(
        and_(
            _uses_variant_stock(),
            _variant_exists(ProductVariant.is_active.is_(True), ProductVariant.quantity > 0),
        ),
        and_(not_(_uses_variant_stock()), Product.quantity > 0),
    )


def low_stock_clause():
    return or_(
        and_(
            _uses_variant_stock(),
            _variant_exists(
                ProductVariant.is_active.is_(True),
                ProductVariant.quantity > 0,
                ProductVariant.quantity <= Product.low_stock_threshold,
            ),
        ),
        and_(
            not_(_uses_variant_stock()),
            Product.quantity > 0,
            Product.quantity <= Product.low_stock_threshold,
        ),
    )


# -- lookups --

def _product_field_taken(column, value, *, exclude_id: str | None = None) -> bool:
    query = db.session.query(Product.id).filter(column == value)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    return query.first() is not None


def _variant_sku_taken(sku: str, *, exclude_id: str | None = None) -> bool:
    query = db.session.query(ProductVariant.id).filter(ProductVariant.sku == sku)
    if exclude_id is not None:
        query = query.filter(ProductVariant.id != exclude_id)
    return query.first() is not None


def _require_category(category_id: str) -> Category:
    category = (
        db.session.query(Category)
        .filter(Category.id == category_id, Category.deleted_at.is_(None))
        .first()
    )
    if not category:
        raise ValidationError("Category not found")
    return category


def get_product(product_id: str, *, visibility: str = Visibility.EXCLUDE) -> Product:
    query = db.session.query(Product).filter(Product.id == product_id)
    product = apply_visibility(query, Product, visibility).first()
    if not product:
        raise NotFoundError("Product not found")
    return product


def _get_variant(product: Product, variant_id: str) -> ProductVariant:
    variant = (
        db.session.query(ProductVariant)
        .filter(ProductVariant.id == variant_id, ProductVariant.product_id == product.id)
        .first()
    )
    if not variant:
        raise NotFoundError("Variant not found")
    return variant


def _sync_has_variants(product: Product) -> None:
    product.has_variants = len(product.variants) > 0


# -- products --

def create_product(*, patch: dict, variants: list[dict] | None = None, metadata: dict | None = None) -> Product:
    """
    Slug and SKU are checked independently against all products, deleted
    ones included. Nested variants go through the same checks as add_variant.
    """
    if _product_field_taken(Product.slug, patch["slug"]):
        raise ConflictError(SLUG_CONFLICT)
    if _product_field_taken(Product.sku, patch["sku"]):
        raise ConflictError(SKU_CONFLICT)
    if patch.get("category_id"):
        _require_category(patch["category_id"])

    variants = variants or []
    seen_skus: set[str] = set()
    for variant_patch in variants:
        sku = variant_patch["sku"]
        if sku in seen_skus or _variant_sku_taken(sku):
            raise ConflictError(f'Variant with SKU "{sku}" already exists')
        seen_skus.add(sku)

    product = Product(**patch)
    product.meta_data = metadata
    db.session.add(product)
    flush_or_conflict("Product with this slug or SKU already exists")

    for variant_patch in variants:
        product.variants.append(ProductVariant(**variant_patch))
    _sync_has_variants(product)

    commit_or_conflict("Product or variant SKU already exists")
    return product


def update_product(*, product_id: str, patch: dict, metadata=None, set_metadata: bool = False) -> Product:
    product = get_product(product_id)

    if "slug" in patch and patch["slug"] != product.slug:
        if _product_field_taken(Product.slug, patch["slug"], exclude_id=product.id):
            raise ConflictError(SLUG_CONFLICT)
    if "sku" in patch and patch["sku"] != product.sku:
        if _product_field_taken(Product.sku, patch["sku"], exclude_id=product.id):
            raise ConflictError(SKU_CONFLICT)
    if patch.get("category_id") and patch["category_id"] != product.category_id:
        _require_category(patch["category_id"])

    for key, value in patch.items():
        setattr(product, key, value)
    if set_metadata:
        product.meta_data = metadata

    commit_or_conflict("Product with this slug or SKU already exists")
    return product


def delete_product(*, product_id: str) -> None:
    product = get_product(product_id)
    product.mark_deleted()
    db.session.commit()


def restore_product(*, product_id: str) -> Product:
    product = get_product(product_id, visibility=Visibility.INCLUDE)
    if not product.is_deleted:
        raise ValidationError("Product is not deleted")
    product.mark_restored()
    db.session.commit()
    return product


def bulk_delete_products(ids: list[str]) -> dict:
    return run_bulk(ids, lambda product_id: delete_product(product_id=product_id))


def bulk_restore_products(ids: list[str]) -> dict:
    return run_bulk(ids, lambda product_id: restore_product(product_id=product_id))


def list_products(
    q: ListQuery,
    *,
    status: str | None = None,
    category_id: str | None = None,
    min_price: Decimal | None = None,
    max_price: Decimal | None = None,
    has_variants: bool | None = None,
    in_stock: bool | None = None,
    low_stock: bool | None = None,
    created_after: datetime | None = None,
    created_before: datetime | None = None,
) -> dict:
    query = db.session.query(Product)
    if q.search:
        like = f"%{q.search}%"
        query = query.filter(
            or_(
                Product.name.ilike(like),
                Product.slug.ilike(like),
                Product.sku.ilike(like),
                Product.description.ilike(like),
            )
        )
    if status:
        query = query.filter(Product.status == status)
    if category_id:
        query = query.filter(Product.category_id == category_id)
    # Both bounds inclusive
    if min_price is not None:
        query = query.filter(Product.price >= min_price)
    if max_price is not None:
        query = query.filter(Product.price <= max_price)
    if has_variants is not None:
        query = query.filter(Product.has_variants.is_(has_variants))
    if in_stock is not None:
        query = query.filter(in_stock_clause() if in_stock else not_(in_stock_clause()))
    if low_stock is not None:
        query = query.filter(low_stock_clause() if low_stock else not_(low_stock_clause()))
    if created_after is not None:
        query = query.filter(Product.created_at >= created_after)
    if created_before is not None:
        query = query.filter(Product.created_at <= created_before)

    query = apply_visibility(query, Product, q.visibility)
    query = apply_sort(query, q, PRODUCT_SORT_FIELDS, "created_at")
    return paginate(query, q, lambda p: p.to_dict())


def product_stats() -> dict:
    """Counts over non-deleted products; low_stock uses the stock predicate."""
    live = db.session.query(Product).filter(Product.deleted_at.is_(None))
    by_status = {status: 0 for status in ProductStatus.ALL}
    rows = live.with_entities(Product.status, db.func.count(Product.id)).group_by(Product.status).all()
    for status, count in rows:
        by_status[status] = count
    return {
        "total": live.count(),
        "by_status": by_status,
        "low_stock": live.filter(low_stock_clause()).count(),
        "in_stock": live.filter(in_stock_clause()).count(),
    }


# -- variants --

def list_variants(*, product_id: str) -> list[ProductVariant]:
    product = get_product(product_id)
    return list(product.variants)


def add_variant(*, product_id: str, patch: dict) -> ProductVariant:
    """Variant SKUs are unique across every product, not just this one."""
    product = get_product(product_id)
    if _variant_sku_taken(patch["sku"]):
        raise ConflictError(VARIANT_SKU_CONFLICT)

    variant = ProductVariant(**patch)
    product.variants.append(variant)
    _sync_has_variants(product)

    commit_or_conflict(VARIANT_SKU_CONFLICT)
    return variant


def update_variant(*, product_id: str, variant_id: str, patch: dict) -> ProductVariant:
    product = get_product(product_id)
    variant = _get_variant(product, variant_id)

    if "sku" in patch and patch["sku"] != variant.sku:
        if _variant_sku_taken(patch["sku"], exclude_id=variant.id):
            raise ConflictError(VARIANT_SKU_CONFLICT)

    for key, value in patch.items():
        setattr(variant, key, value)

    commit_or_conflict(VARIANT_SKU_CONFLICT)
    return variant


def remove_variant(*, product_id: str, variant_id: str) -> Product:
    """Hard-delete the variant; the last one out clears has_variants."""
    product = get_product(product_id)
    variant = _get_variant(product, variant_id)

    product.variants.remove(variant)
    _sync_has_variants(product)

    db.session.commit()
    return product
