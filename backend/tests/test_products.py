"""
Product and variant tests.

Verifies:
- Stock derivation on simple and variant products
- has_variants follows the variant rows through add/remove
- Slug/SKU conflicts, global variant SKU uniqueness, category validation
- Nested variant creation is all-or-nothing
- Bulk delete/restore accounting, stats and list filters
"""

from decimal import Decimal

import pytest

from shopadmin.enums import ProductStatus
from shopadmin.models import Product, ProductVariant
from shopadmin.services import category_service, product_service
from shopadmin.services.query_service import ListQuery, Visibility
from shopadmin.validation import ConflictError, NotFoundError, ValidationError


MISSING_ID = "00000000-0000-4000-8000-000000000000"


def _product(sku="A1", **extra):
    patch = {
        "name": f"Product {sku}",
        "slug": sku.lower(),
        "sku": sku,
        "price": Decimal("1000"),
        **extra,
    }
    return product_service.create_product(patch=patch)


def _variant(product, sku, **extra):
    patch = {"name": f"Variant {sku}", "sku": sku, "price": Decimal("1200"), **extra}
    return product_service.add_variant(product_id=product.id, patch=patch)


class TestStockScenario:

    def test_simple_product_thresholds(self, db_session):
        product = _product("A1", quantity=0, low_stock_threshold=5)
        assert (product.is_in_stock, product.is_low_stock) == (False, False)

        product = product_service.update_product(product_id=product.id, patch={"quantity": 3})
        assert (product.is_in_stock, product.is_low_stock) == (True, True)

        product = product_service.update_product(product_id=product.id, patch={"quantity": 10})
        assert (product.is_in_stock, product.is_low_stock) == (True, False)

    def test_quantity_at_threshold_is_low(self, db_session):
        product = _product("A1", quantity=5, low_stock_threshold=5)
        assert product.is_low_stock

    def test_variant_stock_ignores_product_quantity(self, db_session):
        product = _product("A1", quantity=100, low_stock_threshold=5)
        _variant(product, "V1", quantity=0)
        _variant(product, "V2", quantity=50, is_active=False)

        db_session.refresh(product)
        assert product.has_variants
        assert not product.is_in_stock
        assert not product.is_low_stock

        _variant(product, "V3", quantity=2)
        db_session.refresh(product)
        assert product.is_in_stock
        assert product.is_low_stock


class TestHasVariants:

    def test_scenario_add_then_remove(self, db_session):
        product = _product("A1")
        assert product.has_variants is False

        variant = _variant(product, "V1")
        assert product_service.get_product(product.id).has_variants is True

        product = product_service.remove_variant(product_id=product.id, variant_id=variant.id)
        assert product.has_variants is False
        assert db_session.query(ProductVariant).count() == 0

    def test_flag_tracks_row_count(self, db_session):
        product = _product("A1")
        v1 = _variant(product, "V1")
        v2 = _variant(product, "V2")

        product = product_service.remove_variant(product_id=product.id, variant_id=v1.id)
        assert product.has_variants is True
        product = product_service.remove_variant(product_id=product.id, variant_id=v2.id)
        assert product.has_variants is False

    def test_create_with_nested_variants(self, db_session):
        product = product_service.create_product(
            patch={"name": "Shirt", "slug": "shirt", "sku": "SHIRT", "price": Decimal("500")},
            variants=[
                {"name": "Small", "sku": "SHIRT-S", "price": Decimal("500"), "attributes": {"size": "S"}},
                {"name": "Large", "sku": "SHIRT-L", "price": Decimal("550"), "attributes": {"size": "L"}},
            ],
        )
        assert product.has_variants is True
        assert sorted(v.sku for v in product.variants) == ["SHIRT-L", "SHIRT-S"]

    def test_nested_variant_conflict_writes_nothing(self, db_session):
        other = _product("OTHER")
        _variant(other, "TAKEN")

        with pytest.raises(ConflictError):
            product_service.create_product(
                patch={"name": "Shirt", "slug": "shirt", "sku": "SHIRT", "price": Decimal("500")},
                variants=[
                    {"name": "Small", "sku": "SHIRT-S", "price": Decimal("500")},
                    {"name": "Large", "sku": "TAKEN", "price": Decimal("550")},
                ],
            )
        assert db_session.query(Product).filter_by(sku="SHIRT").count() == 0
        assert db_session.query(ProductVariant).filter_by(sku="SHIRT-S").count() == 0

    def test_duplicate_sku_within_nested_variants(self, db_session):
        with pytest.raises(ConflictError):
            product_service.create_product(
                patch={"name": "Shirt", "slug": "shirt", "sku": "SHIRT", "price": Decimal("500")},
                variants=[
                    {"name": "Small", "sku": "SAME", "price": Decimal("500")},
                    {"name": "Large", "sku": "SAME", "price": Decimal("550")},
                ],
            )


class TestConflictsAndReferences:

    def test_slug_and_sku_checked_independently(self, db_session):
        _product("A1")
        with pytest.raises(ConflictError) as exc:
            product_service.create_product(patch={"name": "X", "slug": "a1", "sku": "NEW", "price": 1})
        assert str(exc.value) == "Product with this slug already exists"
        with pytest.raises(ConflictError) as exc:
            product_service.create_product(patch={"name": "X", "slug": "new", "sku": "A1", "price": 1})
        assert str(exc.value) == "Product with this SKU already exists"

    def test_deleted_product_still_holds_sku(self, db_session):
        product = _product("A1")
        product_service.delete_product(product_id=product.id)
        with pytest.raises(ConflictError):
            product_service.create_product(patch={"name": "X", "slug": "fresh", "sku": "A1", "price": 1})

    def test_variant_sku_is_global(self, db_session):
        first = _product("A1")
        second = _product("B1")
        _variant(first, "V1")
        with pytest.raises(ConflictError):
            _variant(second, "V1")

    def test_update_variant_rechecks_sku(self, db_session):
        product = _product("A1")
        v1 = _variant(product, "V1")
        _variant(product, "V2")

        same = product_service.update_variant(product_id=product.id, variant_id=v1.id, patch={"sku": "V1", "quantity": 4})
        assert same.quantity == 4
        with pytest.raises(ConflictError):
            product_service.update_variant(product_id=product.id, variant_id=v1.id, patch={"sku": "V2"})

    def test_variant_must_belong_to_product(self, db_session):
        first = _product("A1")
        second = _product("B1")
        variant = _variant(first, "V1")
        with pytest.raises(NotFoundError):
            product_service.update_variant(product_id=second.id, variant_id=variant.id, patch={"quantity": 1})
        with pytest.raises(NotFoundError):
            product_service.add_variant(product_id=MISSING_ID, patch={"name": "V", "sku": "V9", "price": 1})

    def test_unknown_category_is_invalid_input(self, db_session):
        with pytest.raises(ValidationError):
            _product("A1", category_id=MISSING_ID)

        category = category_service.create_category(patch={"name": "Shoes", "slug": "shoes"})
        product = _product("B1", category_id=category.id)
        assert product.category.slug == "shoes"

        with pytest.raises(ValidationError):
            product_service.update_product(product_id=product.id, patch={"category_id": MISSING_ID})


class TestBulk:

    def test_scenario_bulk_delete_accounting(self, db_session):
        p1 = _product("A1")
        p3 = _product("C1")

        result = product_service.bulk_delete_products([p1.id, MISSING_ID, p3.id])
        assert result == {"success": 2, "failed": 1, "failed_ids": [MISSING_ID]}

        assert product_service.list_products(ListQuery())["meta"]["total"] == 0

    def test_bulk_restore_counts_live_rows_as_failures(self, db_session):
        p1 = _product("A1")
        p2 = _product("B1")
        product_service.delete_product(product_id=p1.id)

        result = product_service.bulk_restore_products([p2.id, p1.id])
        assert result == {"success": 1, "failed": 1, "failed_ids": [p2.id]}


class TestListAndStats:

    def test_filters(self, db_session):
        _product("A1", price=Decimal("100"), quantity=0, status=ProductStatus.ACTIVE)
        _product("B1", price=Decimal("500"), quantity=3, status=ProductStatus.ACTIVE)
        _product("C1", price=Decimal("900"), quantity=40)
        varied = _product("D1", price=Decimal("500"), quantity=0)
        _variant(varied, "D1-V", quantity=2)

        def skus(**filters):
            return sorted(p["sku"] for p in product_service.list_products(ListQuery(), **filters)["data"])

        assert skus(status=ProductStatus.ACTIVE) == ["A1", "B1"]
        assert skus(min_price=Decimal("500"), max_price=Decimal("500")) == ["B1", "D1"]
        assert skus(has_variants=True) == ["D1"]
        assert skus(in_stock=True) == ["B1", "C1", "D1"]
        assert skus(in_stock=False) == ["A1"]
        assert skus(low_stock=True) == ["B1", "D1"]

    def test_sql_filters_agree_with_properties(self, db_session):
        rows = [
            _product("A1", quantity=0),
            _product("B1", quantity=1),
            _product("C1", quantity=10),
        ]
        variant_product = _product("D1", quantity=99, low_stock_threshold=2)
        _variant(variant_product, "D1-A", quantity=0)
        _variant(variant_product, "D1-B", quantity=7, is_active=False)
        rows.append(variant_product)

        in_stock = {p["sku"] for p in product_service.list_products(ListQuery(), in_stock=True)["data"]}
        low_stock = {p["sku"] for p in product_service.list_products(ListQuery(), low_stock=True)["data"]}
        for product in rows:
            db_session.refresh(product)
            assert (product.sku in in_stock) == product.is_in_stock
            assert (product.sku in low_stock) == product.is_low_stock

    def test_search_sort_and_pagination(self, db_session):
        for sku in ("A1", "B1", "C1"):
            _product(sku, price=Decimal(ord(sku[0]) * 10))

        page = product_service.list_products(ListQuery(page=1, limit=2, sort_by="price", sort_order="ASC"))
        assert [p["sku"] for p in page["data"]] == ["A1", "B1"]
        assert page["meta"] == {
            "total": 3, "page": 1, "limit": 2, "total_pages": 2,
            "has_next_page": True, "has_previous_page": False,
        }
        assert product_service.list_products(ListQuery(search="product c1"))["meta"]["total"] == 1

    def test_stats(self, db_session):
        _product("A1", quantity=2, status=ProductStatus.ACTIVE)
        _product("B1", quantity=0)
        gone = _product("C1", quantity=1)
        product_service.delete_product(product_id=gone.id)

        stats = product_service.product_stats()
        assert stats["total"] == 2
        assert stats["by_status"][ProductStatus.ACTIVE] == 1
        assert stats["by_status"][ProductStatus.DRAFT] == 1
        assert stats["low_stock"] == 1
        assert stats["in_stock"] == 1

    def test_restore_round_trip(self, db_session):
        product = _product("A1", quantity=4)
        product_service.delete_product(product_id=product.id)
        assert product_service.list_products(ListQuery(visibility=Visibility.ONLY))["meta"]["total"] == 1

        restored = product_service.restore_product(product_id=product.id)
        assert restored.deleted_at is None
        assert restored.quantity == 4
        with pytest.raises(ValidationError):
            product_service.restore_product(product_id=product.id)


class TestProductApi:

    def test_create_with_variants_over_http(self, client, admin_headers):
        resp = client.post(
            "/api/admin/products",
            json={
                "name": "Shirt", "slug": "shirt", "sku": "SHIRT", "price": 500,
                "has_variants": False,
                "metadata": {"origin": "PT"},
                "variants": [{"name": "Small", "sku": "SHIRT-S", "price": 500, "quantity": 2}],
            },
            headers=admin_headers,
        )
        assert resp.status_code == 201
        data = resp.json["data"]
        assert data["has_variants"] is True
        assert data["price"] == 500
        assert data["metadata"] == {"origin": "PT"}
        assert data["is_low_stock"] is True
        assert data["variants"][0]["sku"] == "SHIRT-S"

    def test_nested_variant_errors_are_indexed(self, client, admin_headers):
        resp = client.post(
            "/api/admin/products",
            json={
                "name": "Shirt", "slug": "shirt", "sku": "SHIRT", "price": 500,
                "variants": [{"name": "Small", "sku": "S", "price": 1}, {"name": "Large", "price": -1}],
            },
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert "variants[1].sku is required" in resp.json["errors"]

    def test_fractional_price_rejected(self, client, admin_headers):
        resp = client.post(
            "/api/admin/products",
            json={"name": "Mug", "slug": "mug", "sku": "MUG", "price": 10.5},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert "price must be a whole amount" in resp.json["errors"]

    def test_blank_category_id_rejected(self, client, admin_headers, db_session):
        body = {"name": "Shoe", "slug": "shoe", "sku": "S1", "price": 100, "category_id": ""}
        resp = client.post("/api/admin/products", json=body, headers=admin_headers)
        assert resp.status_code == 400
        assert "category_id must be a UUID" in resp.json["errors"]
        assert db_session.query(Product).count() == 0

        del body["category_id"]
        product_id = client.post("/api/admin/products", json=body, headers=admin_headers).json["data"]["id"]
        resp = client.patch(f"/api/admin/products/{product_id}", json={"category_id": ""}, headers=admin_headers)
        assert resp.status_code == 400
        assert db_session.get(Product, product_id).category_id is None

    def test_conflict_is_409(self, client, admin_headers):
        body = {"name": "Mug", "slug": "mug", "sku": "MUG", "price": 10}
        assert client.post("/api/admin/products", json=body, headers=admin_headers).status_code == 201
        resp = client.post("/api/admin/products", json=body, headers=admin_headers)
        assert resp.status_code == 409
        assert resp.json["message"] == "Product with this slug already exists"

    def test_variant_routes(self, client, admin_headers):
        product_id = client.post(
            "/api/admin/products",
            json={"name": "Mug", "slug": "mug", "sku": "MUG", "price": 10},
            headers=admin_headers,
        ).json["data"]["id"]

        resp = client.post(
            f"/api/admin/products/{product_id}/variants",
            json={"name": "Blue", "sku": "MUG-B", "price": 12, "attributes": {"color": "blue"}},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        variant_id = resp.json["data"]["id"]

        resp = client.patch(
            f"/api/admin/products/{product_id}/variants/{variant_id}",
            json={"quantity": 9},
            headers=admin_headers,
        )
        assert resp.json["data"]["quantity"] == 9

        listed = client.get(f"/api/admin/products/{product_id}/variants", headers=admin_headers).json["data"]
        assert [v["id"] for v in listed] == [variant_id]

        resp = client.delete(f"/api/admin/products/{product_id}/variants/{variant_id}", headers=admin_headers)
        assert resp.json["data"]["has_variants"] is False

    def test_list_query_params_validated(self, client, admin_headers):
        resp = client.get("/api/admin/products?limit=500&in_stock=maybe&status=gone", headers=admin_headers)
        assert resp.status_code == 400
        errors = resp.json["errors"]
        assert "limit must not be greater than 100" in errors
        assert "in_stock must be a boolean" in errors
        assert any(e.startswith("status must be one of") for e in errors)

    def test_bulk_over_http(self, client, admin_headers):
        product_id = client.post(
            "/api/admin/products",
            json={"name": "Mug", "slug": "mug", "sku": "MUG", "price": 10},
            headers=admin_headers,
        ).json["data"]["id"]

        resp = client.post("/api/admin/products/bulk/delete", json={"ids": [product_id, MISSING_ID]}, headers=admin_headers)
        assert resp.json["data"] == {"success": 1, "failed": 1, "failed_ids": [MISSING_ID]}

        resp = client.post("/api/admin/products/bulk/delete", json={"ids": []}, headers=admin_headers)
        assert resp.status_code == 400
