from datetime import datetime, timezone
from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, Float, ForeignKey, Index, Integer, String, and_
)
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import relationship, validates
from database import Base

ROLES = ("admin", "staff")
CATALOG_TYPES = ("product", "service")
TRANSACTION_TYPES = ("sale", "purchase", "adjustment")

DEFAULT_REORDER_THRESHOLD = 5


def utcnow():
    return datetime.now(timezone.utc)


def fold_name(name):
    return name.casefold() if name is not None else None


class TimestampMixin:
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class User(TimestampMixin, Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String(10), nullable=False, default="staff")

    __table_args__ = (
        CheckConstraint("role IN ('admin', 'staff')", name="ck_users_role"),
    )

    @property
    def is_admin(self):
        return self.role == "admin"


class Category(TimestampMixin, Base):
    __tablename__ = "categories"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)
    # casefolded copy of name; SQLite lower() only folds ASCII
    name_key = Column(String, unique=True, nullable=False)
    type = Column(String(10), nullable=False)
    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    creator = relationship("User")
    products = relationship("Product", back_populates="category")

    __table_args__ = (
        CheckConstraint("type IN ('product', 'service')", name="ck_categories_type"),
        Index("ix_categories_name_type", "name", "type"),
    )

    @validates("name")
    def _sync_name_key(self, key, value):
        self.name_key = fold_name(value)
        return value


class Supplier(TimestampMixin, Base):
    __tablename__ = "suppliers"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    contact_person = Column(String(50), nullable=False)
    phone = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    address = Column(String(200), nullable=False)

    products = relationship("Product", back_populates="supplier")


class Product(TimestampMixin, Base):
    """A catalog entry: either a stocked product or a service.

    Services never carry stock, so their quantity is always 0.
    """
    __tablename__ = "products"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    description = Column(String(500))
    price = Column(Float, nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=0, index=True)
    type = Column(String(10), nullable=False)
    reorder_threshold = Column(Integer, nullable=False, default=DEFAULT_REORDER_THRESHOLD)

    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=True, index=True)

    category = relationship("Category", back_populates="products")
    supplier = relationship("Supplier", back_populates="products")
    transactions = relationship(
        "InventoryTransaction", back_populates="product", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        CheckConstraint("quantity >= 0", name="ck_products_quantity_non_negative"),
        CheckConstraint("reorder_threshold >= 0", name="ck_products_reorder_non_negative"),
        CheckConstraint("type IN ('product', 'service')", name="ck_products_type"),
    )

    @hybrid_property
    def is_low_stock(self):
        return self.type == "product" and self.quantity <= self.reorder_threshold

    @is_low_stock.expression
    def is_low_stock(cls):
        return and_(cls.type == "product", cls.quantity <= cls.reorder_threshold)

    @hybrid_property
    def is_out_of_stock(self):
        return self.type == "product" and self.quantity == 0

    @is_out_of_stock.expression
    def is_out_of_stock(cls):
        return and_(cls.type == "product", cls.quantity == 0)


class InventoryTransaction(Base):
    """Audit entry for a single change of a product's stock level."""
    __tablename__ = "inventory_transactions"
    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(12), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    previous_quantity = Column(Integer, nullable=False)
    new_quantity = Column(Integer, nullable=False)
    notes = Column(String(200))
    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    product = relationship("Product", back_populates="transactions")
    creator = relationship("User")

    __table_args__ = (
        CheckConstraint("quantity <> 0", name="ck_transactions_quantity_non_zero"),
        CheckConstraint("previous_quantity >= 0", name="ck_transactions_previous_non_negative"),
        CheckConstraint("new_quantity >= 0", name="ck_transactions_new_non_negative"),
        CheckConstraint("type IN ('sale', 'purchase', 'adjustment')", name="ck_transactions_type"),
        Index("ix_transactions_product_created", "product_id", "created_at"),
    )
