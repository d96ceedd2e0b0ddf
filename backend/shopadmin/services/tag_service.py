# Overview: Service-layer operations for tags and product-tag assignment.

from __future__ import annotations

from ..extensions import db
from ..models import Product, Tag, product_tags
from ..validation import ConflictError, NotFoundError, ValidationError
from .persistence import commit_or_conflict
from .product_service import get_product
from .query_service import ListQuery, Visibility, apply_sort, apply_visibility, paginate, run_bulk


NAME_CONFLICT = "Tag with this name already exists"
SLUG_CONFLICT = "Tag with this slug already exists"

TAG_SORT_FIELDS = {
    "sort_order": Tag.sort_order,
    "name": Tag.name,
    "created_at": Tag.created_at,
    "updated_at": Tag.updated_at,
}


def _taken(column, value, *, exclude_id: str | None = None, visibility: str = Visibility.INCLUDE) -> bool:
    query = db.session.query(Tag.id).filter(column == value)
    if exclude_id is not None:
        query = query.filter(Tag.id != exclude_id)
    return apply_visibility(query, Tag, visibility).first() is not None


def get_tag(tag_id: str, *, visibility: str = Visibility.EXCLUDE) -> Tag:
    query = db.session.query(Tag).filter(Tag.id == tag_id)
    tag = apply_visibility(query, Tag, visibility).first()
    if not tag:
        raise NotFoundError("Tag not found")
    return tag


def get_tag_by_slug(slug: str) -> Tag:
    tag = db.session.query(Tag).filter(Tag.slug == slug, Tag.deleted_at.is_(None)).first()
    if not tag:
        raise NotFoundError("Tag not found")
    return tag


def create_tag(*, patch: dict) -> Tag:
    """Name and slug are checked independently, deleted tags included."""
    if _taken(Tag.name, patch["name"]):
        raise ConflictError(NAME_CONFLICT)
    if _taken(Tag.slug, patch["slug"]):
        raise ConflictError(SLUG_CONFLICT)

    tag = Tag(**patch)
    db.session.add(tag)
    commit_or_conflict("Tag with this name or slug already exists")
    return tag


def update_tag(*, tag_id: str, patch: dict) -> Tag:
    tag = get_tag(tag_id)

    if "name" in patch and patch["name"] != tag.name:
        if _taken(Tag.name, patch["name"], exclude_id=tag.id):
            raise ConflictError(NAME_CONFLICT)
    if "slug" in patch and patch["slug"] != tag.slug:
        if _taken(Tag.slug, patch["slug"], exclude_id=tag.id):
            raise ConflictError(SLUG_CONFLICT)

    for key, value in patch.items():
        setattr(tag, key, value)

    commit_or_conflict("Tag with this name or slug already exists")
    return tag


def delete_tag(*, tag_id: str) -> None:
    tag = get_tag(tag_id)
    tag.mark_deleted()
    db.session.commit()


def restore_tag(*, tag_id: str) -> Tag:
    tag = get_tag(tag_id, visibility=Visibility.INCLUDE)
    if not tag.is_deleted:
        raise ValidationError("Tag is not deleted")
    tag.mark_restored()
    db.session.commit()
    return tag


def bulk_delete_tags(ids: list[str]) -> dict:
    return run_bulk(ids, lambda tag_id: delete_tag(tag_id=tag_id))


def bulk_restore_tags(ids: list[str]) -> dict:
    return run_bulk(ids, lambda tag_id: restore_tag(tag_id=tag_id))


def list_tags(q: ListQuery, *, is_active: bool | None = None) -> dict:
    query = db.session.query(Tag)
    if q.search:
        like = f"%{q.search}%"
        query = query.filter(db.or_(Tag.name.ilike(like), Tag.slug.ilike(like), Tag.description.ilike(like)))
    if is_active is not None:
        query = query.filter(Tag.is_active.is_(is_active))
    query = apply_visibility(query, Tag, q.visibility)
    query = apply_sort(query, q, TAG_SORT_FIELDS, "sort_order", tiebreak=Tag.name.asc())
    return paginate(query, q, lambda t: t.to_dict())


def list_tags_simple() -> list[dict]:
    tags = (
        db.session.query(Tag)
        .filter(Tag.is_active.is_(True), Tag.deleted_at.is_(None))
        .order_by(Tag.sort_order.asc(), Tag.name.asc())
        .all()
    )
    return [{"id": t.id, "name": t.name, "slug": t.slug} for t in tags]


def tag_stats() -> dict:
    live = db.session.query(Tag).filter(Tag.deleted_at.is_(None))
    with_products = (
        live.filter(db.exists().where(product_tags.c.tag_id == Tag.id))
        .count()
    )
    return {
        "total": live.count(),
        "active": live.filter(Tag.is_active.is_(True)).count(),
        "inactive": live.filter(Tag.is_active.is_(False)).count(),
        "with_products": with_products,
    }


# -- product associations --

def assign_tags(*, product_id: str, tag_ids: list[str]) -> Product:
    """
    Replace the product's tag set with exactly `tag_ids`.
    Every id must be a live, active tag; inactive tags cannot be newly assigned.
    """
    product = get_product(product_id)
    unique_ids = list(dict.fromkeys(tag_ids))
    tags = []
    if unique_ids:
        tags = (
            db.session.query(Tag)
            .filter(Tag.id.in_(unique_ids), Tag.is_active.is_(True), Tag.deleted_at.is_(None))
            .all()
        )
    if len(tags) != len(unique_ids):
        raise ValidationError("Some tags were not found or are inactive")

    product.tags = tags
    db.session.commit()
    return product


def remove_tags(*, product_id: str, tag_ids: list[str]) -> Product:
    """Drop the given ids from the product's tags; ids not present are ignored."""
    product = get_product(product_id)
    to_remove = set(tag_ids)
    product.tags = [t for t in product.tags if t.id not in to_remove]
    db.session.commit()
    return product


def product_tag_list(*, product_id: str) -> list[dict]:
    product = get_product(product_id)
    tags = sorted(product.tags, key=lambda t: (t.sort_order, t.name))
    return [{"id": t.id, "name": t.name, "slug": t.slug} for t in tags]


def tag_products(*, tag_id: str) -> list[dict]:
    tag = get_tag(tag_id)
    return [p.to_dict(include_relations=False) for p in tag.products if p.deleted_at is None]
