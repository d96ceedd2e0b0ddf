# Overview: Service-layer operations for the category forest.

"""
Category tree manager.

Only parent_id is stored; children are always a query. Reparenting is
checked by a depth-first walk over the node's current descendants: if the
candidate parent shows up, the change would close a cycle and is refused
before anything is written.

Soft-deleting a category leaves its children linked to it.
"""
from __future__ import annotations

from ..extensions import db
from ..models import Category
from ..validation import ConflictError, NotFoundError, ValidationError
from .persistence import commit_or_conflict
from .query_service import ListQuery, Visibility, apply_sort, apply_visibility, paginate


SLUG_CONFLICT = "Category with this slug already exists"
TREE_DEPTH = 2

CATEGORY_SORT_FIELDS = {
    "sort_order": Category.sort_order,
    "name": Category.name,
    "created_at": Category.created_at,
    "updated_at": Category.updated_at,
}


def slug_taken(slug: str, *, exclude_id: str | None = None, visibility: str = Visibility.INCLUDE) -> bool:
    """
    Slug lookup. Writes check with INCLUDE: the unique constraint covers
    soft-deleted rows, so a deleted category's slug stays reserved.
    """
    query = db.session.query(Category.id).filter(Category.slug == slug)
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    return apply_visibility(query, Category, visibility).first() is not None


def get_category(category_id: str, *, visibility: str = Visibility.EXCLUDE) -> Category:
    query = db.session.query(Category).filter(Category.id == category_id)
    category = apply_visibility(query, Category, visibility).first()
    if not category:
        raise NotFoundError("Category not found")
    return category


def _require_parent(parent_id: str) -> Category:
    parent = (
        db.session.query(Category)
        .filter(Category.id == parent_id, Category.deleted_at.is_(None))
        .first()
    )
    if not parent:
        raise ValidationError("Parent category not found")
    return parent


def _child_ids(parent_id: str) -> list[str]:
    # Soft-deleted children still hold their parent link, so they count
    rows = db.session.query(Category.id).filter(Category.parent_id == parent_id).all()
    return [row.id for row in rows]


def is_descendant(candidate_id: str, category_id: str) -> bool:
    """True if candidate_id sits anywhere below category_id."""
    stack = _child_ids(category_id)
    seen: set[str] = set()
    while stack:
        node_id = stack.pop()
        if node_id == candidate_id:
            return True
        if node_id in seen:
            continue
        seen.add(node_id)
        stack.extend(_child_ids(node_id))
    return False


def create_category(*, patch: dict) -> Category:
    if slug_taken(patch["slug"]):
        raise ConflictError(SLUG_CONFLICT)

    parent_id = patch.get("parent_id")
    if parent_id:
        _require_parent(parent_id)

    category = Category(**patch)
    db.session.add(category)
    commit_or_conflict(SLUG_CONFLICT)
    return category


def update_category(*, category_id: str, patch: dict) -> Category:
    category = get_category(category_id)

    if "slug" in patch and patch["slug"] != category.slug:
        if slug_taken(patch["slug"], exclude_id=category.id):
            raise ConflictError(SLUG_CONFLICT)

    if "parent_id" in patch and patch["parent_id"] != category.parent_id:
        parent_id = patch["parent_id"]
        if parent_id:
            if parent_id == category.id:
                raise ValidationError("Category cannot be its own parent")
            _require_parent(parent_id)
            if is_descendant(parent_id, category.id):
                raise ValidationError("Cannot set a child category as parent (circular reference)")

    for key, value in patch.items():
        setattr(category, key, value)

    commit_or_conflict(SLUG_CONFLICT)
    return category


def delete_category(*, category_id: str) -> None:
    category = get_category(category_id)
    category.mark_deleted()
    db.session.commit()


def restore_category(*, category_id: str) -> Category:
    category = get_category(category_id, visibility=Visibility.INCLUDE)
    if not category.is_deleted:
        raise ValidationError("Category is not deleted")
    category.mark_restored()
    db.session.commit()
    return category


def _active_children(parent_ids: list[str]) -> dict[str, list[Category]]:
    grouped: dict[str, list[Category]] = {pid: [] for pid in parent_ids}
    if not parent_ids:
        return grouped
    children = (
        db.session.query(Category)
        .filter(
            Category.parent_id.in_(parent_ids),
            Category.is_active.is_(True),
            Category.deleted_at.is_(None),
        )
        .order_by(Category.sort_order.asc(), Category.name.asc())
        .all()
    )
    for child in children:
        grouped[child.parent_id].append(child)
    return grouped


def _attach(nodes: list[Category], depth: int) -> list[dict]:
    if depth == 0:
        return [dict(n.to_dict(), children=[]) for n in nodes]
    children = _active_children([n.id for n in nodes])
    return [dict(n.to_dict(), children=_attach(children[n.id], depth - 1)) for n in nodes]


def category_tree() -> list[dict]:
    """Active roots with up to two levels of active children, by sort order."""
    roots = (
        db.session.query(Category)
        .filter(
            Category.parent_id.is_(None),
            Category.is_active.is_(True),
            Category.deleted_at.is_(None),
        )
        .order_by(Category.sort_order.asc(), Category.name.asc())
        .all()
    )
    return _attach(roots, TREE_DEPTH)


def category_detail(category_id: str) -> dict:
    category = get_category(category_id)
    parent = None
    if category.parent_id:
        parent = (
            db.session.query(Category)
            .filter(Category.id == category.parent_id, Category.deleted_at.is_(None))
            .first()
        )
    children = (
        db.session.query(Category)
        .filter(Category.parent_id == category.id, Category.deleted_at.is_(None))
        .order_by(Category.sort_order.asc(), Category.name.asc())
        .all()
    )
    data = category.to_dict()
    data["parent"] = parent.to_dict() if parent else None
    data["children"] = [c.to_dict() for c in children]
    return data


def list_categories(
    q: ListQuery,
    *,
    is_active: bool | None = None,
    parent_id: str | None = None,
    root_only: bool = False,
) -> dict:
    query = db.session.query(Category)
    if q.search:
        like = f"%{q.search}%"
        query = query.filter(
            db.or_(Category.name.ilike(like), Category.slug.ilike(like), Category.description.ilike(like))
        )
    if is_active is not None:
        query = query.filter(Category.is_active.is_(is_active))
    if parent_id:
        query = query.filter(Category.parent_id == parent_id)
    if root_only:
        query = query.filter(Category.parent_id.is_(None))

    query = apply_visibility(query, Category, q.visibility)
    query = apply_sort(query, q, CATEGORY_SORT_FIELDS, "sort_order", tiebreak=Category.name.asc())
    return paginate(query, q, lambda c: c.to_dict())


def list_categories_simple() -> list[dict]:
    categories = (
        db.session.query(Category)
        .filter(Category.is_active.is_(True), Category.deleted_at.is_(None))
        .order_by(Category.sort_order.asc(), Category.name.asc())
        .all()
    )
    return [{"id": c.id, "name": c.name, "slug": c.slug, "parent_id": c.parent_id} for c in categories]


def category_stats() -> dict:
    return {"total": db.session.query(Category).filter(Category.deleted_at.is_(None)).count()}
