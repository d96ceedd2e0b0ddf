# Overview: Flask API routes for products and variants; parses input and returns JSON responses.

"""
Product management routes.

has_variants is derived from the product's variant rows and cannot be set
by clients; a has_variants key in a payload is ignored.

SECURITY: admin and super_admin only, with the matching products.* permission.
"""
from flask import Blueprint, request

from ..decorators import require_auth, require_permission, require_staff
from ..enums import ProductStatus
from ..models import Product, ProductVariant
from ..request_utils import body_ids, body_metadata, json_payload, raise_if_errors
from ..responses import success
from ..services import product_service
from ..services.query_service import (
    parse_bool_arg,
    parse_choice_arg,
    parse_datetime_arg,
    parse_decimal_arg,
    parse_id_arg,
    parse_list_query,
)
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_product,
    enforce_rules_variant,
    validate_payload,
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "slug", "sku", "description", "short_description",
        "price", "compare_at_price", "cost_price",
        "quantity", "low_stock_threshold", "weight",
        "status", "images", "category_id",
    },
    required_on_create={"name", "slug", "sku", "price"},
    extra_fields={"variants", "metadata", "has_variants"},
)

VARIANT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "sku", "price", "quantity", "attributes", "image", "is_active"},
    required_on_create={"name", "sku", "price"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/admin/products")


def _validated_variant(payload, *, partial: bool) -> dict:
    patch = validate_payload(model=ProductVariant, payload=payload, policy=VARIANT_POLICY, partial=partial)
    enforce_rules_variant(patch)
    return patch


def _nested_variants(payload: dict) -> list[dict]:
    """Validate every nested variant, reporting errors as variants[i].<message>."""
    raw = payload.get("variants")
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError("Validation failed", ["variants must be an array"])

    variants, errors = [], []
    for index, item in enumerate(raw):
        try:
            variants.append(_validated_variant(item, partial=False))
        except ValidationError as e:
            errors.extend(f"variants[{index}].{msg}" for msg in (e.errors or [str(e)]))
    raise_if_errors(errors)
    return variants


@products_bp.post("")
@require_auth
@require_staff
@require_permission("products.create")
def create_product_route():
    """
    Create a product, optionally with nested variants in the same request.
    Product and variants are written together or not at all.
    """
    payload = json_payload()
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)
    variants = _nested_variants(payload)
    metadata, _ = body_metadata(payload)

    product = product_service.create_product(patch=patch, variants=variants, metadata=metadata)
    return success(product.to_dict(), "Product created successfully", 201)


@products_bp.get("")
@require_auth
@require_staff
@require_permission("products.read")
def list_products_route():
    """
    Query params: page, limit, sort_by, sort_order, search, status,
    category_id, min_price, max_price, has_variants, in_stock, low_stock,
    created_after, created_before, include_deleted, only_deleted.
    """
    args = request.args
    errors = []
    q = parse_list_query(args, errors)
    status = parse_choice_arg(args, "status", ProductStatus.ALL, errors)
    category_id = parse_id_arg(args, "category_id", errors)
    min_price = parse_decimal_arg(args, "min_price", errors)
    max_price = parse_decimal_arg(args, "max_price", errors)
    has_variants = parse_bool_arg(args, "has_variants", errors)
    in_stock = parse_bool_arg(args, "in_stock", errors)
    low_stock = parse_bool_arg(args, "low_stock", errors)
    created_after = parse_datetime_arg(args, "created_after", errors)
    created_before = parse_datetime_arg(args, "created_before", errors)
    raise_if_errors(errors)

    result = product_service.list_products(
        q,
        status=status,
        category_id=category_id,
        min_price=min_price,
        max_price=max_price,
        has_variants=has_variants,
        in_stock=in_stock,
        low_stock=low_stock,
        created_after=created_after,
        created_before=created_before,
    )
    return success(result, "Products retrieved successfully")


@products_bp.get("/stats")
@require_auth
@require_staff
@require_permission("products.read")
def product_stats_route():
    return success(product_service.product_stats(), "Product statistics retrieved successfully")


@products_bp.post("/bulk/delete")
@require_auth
@require_staff
@require_permission("products.delete")
def bulk_delete_products_route():
    ids = body_ids(json_payload())
    return success(product_service.bulk_delete_products(ids), "Bulk delete completed")


@products_bp.post("/bulk/restore")
@require_auth
@require_staff
@require_permission("products.update")
def bulk_restore_products_route():
    ids = body_ids(json_payload())
    return success(product_service.bulk_restore_products(ids), "Bulk restore completed")


@products_bp.get("/<product_id>")
@require_auth
@require_staff
@require_permission("products.read")
def get_product_route(product_id: str):
    return success(product_service.get_product(product_id).to_dict(), "Product retrieved successfully")


@products_bp.patch("/<product_id>")
@require_auth
@require_staff
@require_permission("products.update")
def update_product_route(product_id: str):
    payload = json_payload()
    if "variants" in payload:
        raise ValidationError("Validation failed", ["variants are managed through the variants endpoints"])
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    enforce_rules_product(patch)
    metadata, has_metadata = body_metadata(payload)

    product = product_service.update_product(
        product_id=product_id, patch=patch, metadata=metadata, set_metadata=has_metadata
    )
    return success(product.to_dict(), "Product updated successfully")


@products_bp.delete("/<product_id>")
@require_auth
@require_staff
@require_permission("products.delete")
def delete_product_route(product_id: str):
    product_service.delete_product(product_id=product_id)
    return success(None, "Product deleted successfully")


@products_bp.patch("/<product_id>/restore")
@require_auth
@require_staff
@require_permission("products.update")
def restore_product_route(product_id: str):
    product = product_service.restore_product(product_id=product_id)
    return success(product.to_dict(), "Product restored successfully")


# -- variants --

@products_bp.get("/<product_id>/variants")
@require_auth
@require_staff
@require_permission("products.read")
def list_variants_route(product_id: str):
    variants = product_service.list_variants(product_id=product_id)
    return success([v.to_dict() for v in variants], "Variants retrieved successfully")


@products_bp.post("/<product_id>/variants")
@require_auth
@require_staff
@require_permission("products.update")
def add_variant_route(product_id: str):
    patch = _validated_variant(json_payload(), partial=False)
    variant = product_service.add_variant(product_id=product_id, patch=patch)
    return success(variant.to_dict(), "Variant added successfully", 201)


@products_bp.patch("/<product_id>/variants/<variant_id>")
@require_auth
@require_staff
@require_permission("products.update")
def update_variant_route(product_id: str, variant_id: str):
    patch = _validated_variant(json_payload(), partial=True)
    variant = product_service.update_variant(product_id=product_id, variant_id=variant_id, patch=patch)
    return success(variant.to_dict(), "Variant updated successfully")


@products_bp.delete("/<product_id>/variants/<variant_id>")
@require_auth
@require_staff
@require_permission("products.update")
def remove_variant_route(product_id: str, variant_id: str):
    product = product_service.remove_variant(product_id=product_id, variant_id=variant_id)
    return success(product.to_dict(), "Variant removed successfully")
