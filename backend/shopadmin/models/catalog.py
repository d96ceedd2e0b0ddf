from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from shopadmin import stock
from .base import EntityMixin


DEFAULT_LOW_STOCK_THRESHOLD = 5

product_tags = db.Table(
    "product_tags",
    db.Column("product_id", db.String(36), db.ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
    db.Column("tag_id", db.String(36), db.ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


def money(value) -> int | None:
    """Prices carry no fractional digits; expose them as plain integers."""
    if value is None:
        return None
    return int(Decimal(value))


class Category(EntityMixin, db.Model):
    """
    Node in the category forest.

    Only the parent link is stored. Children are always a query on parent_id,
    so the ORM never holds a cyclic object graph. Soft-deleting a parent leaves
    its children pointing at it.
    """
    __tablename__ = "categories"

    name = db.Column(db.String(100), nullable=False)
    slug = db.Column(db.String(120), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    image = db.Column(db.String(500), nullable=True)
    parent_id = db.Column(db.String(36), db.ForeignKey("categories.id"), nullable=True, index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<Category {self.slug!r} parent={self.parent_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "image": self.image,
            "parent_id": self.parent_id,
            "is_active": self.is_active,
            "sort_order": self.sort_order,
            **self.timestamps_dict(),
        }


class Product(EntityMixin, db.Model):
    """
    Sellable product.

    quantity only counts when has_variants is false. has_variants is stored,
    and the product service keeps it equal to "has at least one variant row"
    at every variant add/remove.
    """
    __tablename__ = "products"

    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), nullable=False, unique=True)
    sku = db.Column(db.String(100), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    short_description = db.Column(db.String(500), nullable=True)

    price = db.Column(db.Numeric(12, 0), nullable=False, default=0)
    compare_at_price = db.Column(db.Numeric(12, 0), nullable=True)
    cost_price = db.Column(db.Numeric(12, 0), nullable=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    low_stock_threshold = db.Column(db.Integer, nullable=False, default=DEFAULT_LOW_STOCK_THRESHOLD)
    weight = db.Column(db.Numeric(10, 2), nullable=True)

    status = db.Column(db.String(32), nullable=False, default="draft", index=True)
    images = db.Column(db.JSON, nullable=True)
    category_id = db.Column(db.String(36), db.ForeignKey("categories.id"), nullable=True, index=True)
    has_variants = db.Column(db.Boolean, nullable=False, default=False)
    meta_data = db.Column("metadata", db.JSON, nullable=True)

    category = db.relationship("Category", lazy="joined")
    variants = db.relationship(
        "ProductVariant",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductVariant.created_at",
        lazy="selectin",
    )
    tags = db.relationship("Tag", secondary=product_tags, back_populates="products", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Product sku={self.sku!r} name={self.name!r}>"

    def _variant_stock(self) -> list[stock.VariantStock]:
        return [(v.quantity, bool(v.is_active)) for v in self.variants]

    @property
    def is_in_stock(self) -> bool:
        return stock.is_in_stock(
            has_variants=self.has_variants,
            quantity=self.quantity,
            variants=self._variant_stock(),
        )

    @property
    def is_low_stock(self) -> bool:
        return stock.is_low_stock(
            has_variants=self.has_variants,
            quantity=self.quantity,
            threshold=self.low_stock_threshold,
            variants=self._variant_stock(),
        )

    def to_dict(self, include_relations: bool = True) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "sku": self.sku,
            "description": self.description,
            "short_description": self.short_description,
            "price": money(self.price),
            "compare_at_price": money(self.compare_at_price),
            "cost_price": money(self.cost_price),
            "quantity": self.quantity,
            "low_stock_threshold": self.low_stock_threshold,
            "weight": float(self.weight) if self.weight is not None else None,
            "status": self.status,
            "images": list(self.images or []),
            "category_id": self.category_id,
            "has_variants": self.has_variants,
            "is_in_stock": self.is_in_stock,
            "is_low_stock": self.is_low_stock,
            "metadata": self.meta_data,
            **self.timestamps_dict(),
        }
        if include_relations:
            data["category"] = self.category.to_dict() if self.category else None
            data["variants"] = [v.to_dict() for v in self.variants]
            data["tags"] = [t.to_dict() for t in sorted(self.tags, key=lambda t: (t.sort_order, t.name))]
        return data


class ProductVariant(EntityMixin, db.Model):
    """Purchasable configuration of a product. SKUs are unique across all variants."""
    __tablename__ = "product_variants"

    product_id = db.Column(
        db.String(36),
        db.ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = db.Column(db.String(255), nullable=False)
    sku = db.Column(db.String(100), nullable=False, unique=True)
    price = db.Column(db.Numeric(12, 0), nullable=False, default=0)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    attributes = db.Column(db.JSON, nullable=True)
    image = db.Column(db.String(500), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    product = db.relationship("Product", back_populates="variants")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "name": self.name,
            "sku": self.sku,
            "price": money(self.price),
            "quantity": self.quantity,
            "attributes": self.attributes or {},
            "image": self.image,
            "is_active": self.is_active,
            **self.timestamps_dict(),
        }


class Tag(EntityMixin, db.Model):
    __tablename__ = "tags"

    name = db.Column(db.String(100), nullable=False, unique=True)
    slug = db.Column(db.String(120), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    products = db.relationship("Product", secondary=product_tags, back_populates="tags", lazy="select")

    def __repr__(self) -> str:
        return f"<Tag {self.slug!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "is_active": self.is_active,
            "sort_order": self.sort_order,
            **self.timestamps_dict(),
        }
