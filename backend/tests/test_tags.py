"""
Tag CRUD and product-tag association tests.

Verifies:
- assign replaces the product's tag set and only takes live, active tags
- remove ignores ids the product does not carry
- name and slug uniqueness, slug format, bulk accounting, stats
"""

from decimal import Decimal

import pytest

from shopadmin.services import product_service, tag_service
from shopadmin.validation import ConflictError, NotFoundError, ValidationError


MISSING_ID = "00000000-0000-4000-8000-000000000000"


def _tag(slug, **extra):
    patch = {"name": slug.replace("-", " ").title(), "slug": slug, **extra}
    return tag_service.create_tag(patch=patch)


@pytest.fixture
def product(db_session):
    return product_service.create_product(
        patch={"name": "Sneaker", "slug": "sneaker", "sku": "SNK-1", "price": Decimal("100")}
    )


class TestAssignAndRemove:

    def test_assign_is_full_replace(self, db_session, product):
        sale, new, hot = _tag("sale"), _tag("new"), _tag("hot")

        tag_service.assign_tags(product_id=product.id, tag_ids=[sale.id, new.id])
        assert {t["slug"] for t in tag_service.product_tag_list(product_id=product.id)} == {"sale", "new"}

        tag_service.assign_tags(product_id=product.id, tag_ids=[hot.id])
        assert [t["slug"] for t in tag_service.product_tag_list(product_id=product.id)] == ["hot"]

        tag_service.assign_tags(product_id=product.id, tag_ids=[])
        assert tag_service.product_tag_list(product_id=product.id) == []

    def test_inactive_tag_rejects_whole_assignment(self, db_session, product):
        sale = _tag("sale")
        hidden = _tag("hidden", is_active=False)
        tag_service.assign_tags(product_id=product.id, tag_ids=[sale.id])

        with pytest.raises(ValidationError) as exc:
            tag_service.assign_tags(product_id=product.id, tag_ids=[sale.id, hidden.id])
        assert str(exc.value) == "Some tags were not found or are inactive"
        assert [t["slug"] for t in tag_service.product_tag_list(product_id=product.id)] == ["sale"]

    def test_deleted_or_unknown_tag_rejected(self, db_session, product):
        gone = _tag("gone")
        tag_service.delete_tag(tag_id=gone.id)
        with pytest.raises(ValidationError):
            tag_service.assign_tags(product_id=product.id, tag_ids=[gone.id])
        with pytest.raises(ValidationError):
            tag_service.assign_tags(product_id=product.id, tag_ids=[MISSING_ID])

    def test_duplicate_ids_collapse(self, db_session, product):
        sale = _tag("sale")
        updated = tag_service.assign_tags(product_id=product.id, tag_ids=[sale.id, sale.id])
        assert [t.slug for t in updated.tags] == ["sale"]

    def test_remove_ignores_absent_ids(self, db_session, product):
        sale, new, other = _tag("sale"), _tag("new"), _tag("other")
        tag_service.assign_tags(product_id=product.id, tag_ids=[sale.id, new.id])

        tag_service.remove_tags(product_id=product.id, tag_ids=[sale.id, other.id, MISSING_ID])
        assert [t["slug"] for t in tag_service.product_tag_list(product_id=product.id)] == ["new"]

    def test_unknown_product(self, db_session):
        with pytest.raises(NotFoundError):
            tag_service.assign_tags(product_id=MISSING_ID, tag_ids=[])

    def test_tag_products_skips_deleted(self, db_session, product):
        sale = _tag("sale")
        other = product_service.create_product(
            patch={"name": "Boot", "slug": "boot", "sku": "BOOT-1", "price": Decimal("100")}
        )
        tag_service.assign_tags(product_id=product.id, tag_ids=[sale.id])
        tag_service.assign_tags(product_id=other.id, tag_ids=[sale.id])
        product_service.delete_product(product_id=other.id)

        assert [p["sku"] for p in tag_service.tag_products(tag_id=sale.id)] == ["SNK-1"]


class TestTagCrud:

    def test_name_and_slug_checked_independently(self, db_session):
        _tag("summer-sale")
        with pytest.raises(ConflictError) as exc:
            tag_service.create_tag(patch={"name": "Summer Sale", "slug": "other"})
        assert str(exc.value) == "Tag with this name already exists"
        with pytest.raises(ConflictError) as exc:
            tag_service.create_tag(patch={"name": "Other", "slug": "summer-sale"})
        assert str(exc.value) == "Tag with this slug already exists"

    def test_deleted_tag_keeps_its_slug(self, db_session):
        tag = _tag("sale")
        tag_service.delete_tag(tag_id=tag.id)
        with pytest.raises(ConflictError):
            tag_service.create_tag(patch={"name": "Sale Again", "slug": "sale"})

    def test_update_conflicts(self, db_session):
        _tag("sale")
        new = _tag("new")
        with pytest.raises(ConflictError):
            tag_service.update_tag(tag_id=new.id, patch={"slug": "sale"})
        assert tag_service.update_tag(tag_id=new.id, patch={"slug": "new", "sort_order": 3}).sort_order == 3

    def test_restore_requires_deleted(self, db_session):
        tag = _tag("sale")
        with pytest.raises(ValidationError):
            tag_service.restore_tag(tag_id=tag.id)
        tag_service.delete_tag(tag_id=tag.id)
        with pytest.raises(NotFoundError):
            tag_service.get_tag_by_slug("sale")
        assert tag_service.restore_tag(tag_id=tag.id).deleted_at is None

    def test_bulk(self, db_session):
        a, b = _tag("aa"), _tag("bb")
        assert tag_service.bulk_delete_tags([a.id, MISSING_ID, b.id]) == {
            "success": 2, "failed": 1, "failed_ids": [MISSING_ID],
        }
        assert tag_service.bulk_restore_tags([a.id]) == {"success": 1, "failed": 0, "failed_ids": []}

    def test_stats_and_simple(self, db_session, product):
        sale = _tag("sale", sort_order=2)
        _tag("new", sort_order=1)
        _tag("hidden", is_active=False)
        gone = _tag("gone")
        tag_service.delete_tag(tag_id=gone.id)
        tag_service.assign_tags(product_id=product.id, tag_ids=[sale.id])

        assert tag_service.tag_stats() == {"total": 3, "active": 2, "inactive": 1, "with_products": 1}
        assert [t["slug"] for t in tag_service.list_tags_simple()] == ["new", "sale"]


class TestTagApi:

    @pytest.mark.parametrize("slug", ["Summer_Sale", "summer--sale", "-sale", "sale-", "Sale"])
    def test_bad_slug(self, client, admin_headers, slug):
        resp = client.post("/api/admin/tags", json={"name": "Summer Sale", "slug": slug}, headers=admin_headers)
        assert resp.status_code == 400
        assert "Slug must be lowercase with hyphens only (e.g., summer-sale)" in resp.json["errors"]

    def test_assign_over_http(self, client, admin_headers, product):
        tag_id = client.post(
            "/api/admin/tags", json={"name": "Summer Sale", "slug": "summer-sale"}, headers=admin_headers
        ).json["data"]["id"]

        resp = client.patch(
            f"/api/admin/tags/product/{product.id}/assign", json={"tag_ids": [tag_id]}, headers=admin_headers
        )
        assert resp.status_code == 200
        assert [t["slug"] for t in resp.json["data"]["tags"]] == ["summer-sale"]

        resp = client.get("/api/admin/tags/slug/summer-sale", headers=admin_headers)
        assert resp.json["data"]["id"] == tag_id

        resp = client.get(f"/api/admin/tags/{tag_id}/products", headers=admin_headers)
        assert [p["id"] for p in resp.json["data"]] == [product.id]

        resp = client.patch(
            f"/api/admin/tags/product/{product.id}/remove", json={"tag_ids": [tag_id]}, headers=admin_headers
        )
        assert resp.json["data"]["tags"] == []

    def test_assign_limits(self, client, admin_headers, product):
        resp = client.patch(f"/api/admin/tags/product/{product.id}/assign", json={}, headers=admin_headers)
        assert resp.status_code == 400
        assert "tag_ids is required" in resp.json["errors"]

        too_many = [MISSING_ID] * 51
        resp = client.patch(
            f"/api/admin/tags/product/{product.id}/assign", json={"tag_ids": too_many}, headers=admin_headers
        )
        assert resp.status_code == 400
        assert "tag_ids must contain no more than 50 elements" in resp.json["errors"]

    def test_inactive_assignment_is_400(self, client, admin_headers, product):
        hidden = _tag("hidden", is_active=False)
        resp = client.patch(
            f"/api/admin/tags/product/{product.id}/assign", json={"tag_ids": [hidden.id]}, headers=admin_headers
        )
        assert resp.status_code == 400
        assert resp.json["message"] == "Some tags were not found or are inactive"
