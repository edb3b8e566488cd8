from datetime import datetime
from typing import Annotated, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from models import DEFAULT_REORDER_THRESHOLD
from validators import MIN_PASSWORD_LENGTH, coerce_identifier, is_valid_email, is_valid_phone

CatalogType = Literal["product", "service"]
Role = Literal["admin", "staff"]
TransactionType = Literal["sale", "purchase", "adjustment"]


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""
    class Config:
        from_attributes = True
        populate_by_name = True
        alias_generator = to_camel
        str_strip_whitespace = True


def _reference(value, entity, optional=False):
    if optional and (value is None or value == ""):
        return None
    record_id = coerce_identifier(value)
    if record_id is None:
        raise PydanticCustomError("invalid_id", "Invalid {entity} ID", {"entity": entity})
    return record_id


def _email(value):
    if value is None:
        return value
    value = value.strip().lower()
    if not is_valid_email(value):
        raise PydanticCustomError("invalid_email", "Please enter a valid email")
    return value


def _password(value):
    if value is not None and len(value) < MIN_PASSWORD_LENGTH:
        raise PydanticCustomError(
            "password_too_short",
            "Password must be at least {min_length} characters long",
            {"min_length": MIN_PASSWORD_LENGTH},
        )
    return value


Email = Annotated[str, AfterValidator(_email)]
Password = Annotated[str, AfterValidator(_password)]


def changed_fields(payload: BaseModel, nullable=()) -> dict:
    """Fields the caller actually sent; nulls are dropped unless the column accepts them."""
    return {
        key: value
        for key, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or key in nullable
    }


# --- Shared summaries ---
class UserSummary(CamelModel):
    id: int
    name: str
    email: str

class CategorySummary(CamelModel):
    id: int
    name: str
    type: CatalogType

class SupplierSummary(CamelModel):
    id: int
    name: str
    contact_person: str

class SupplierContact(SupplierSummary):
    phone: str
    email: str

class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    has_next_page: bool
    has_prev_page: bool


# --- Auth / User Schemas ---
class UserCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=50)
    email: Email
    password: Password
    role: Role = "staff"

class UserUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[Email] = None
    password: Optional[Password] = None
    role: Optional[Role] = None

class LoginInput(CamelModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value):
        return value.strip().lower()

class UserPublic(CamelModel):
    id: int
    name: str
    email: str
    role: Role
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class AuthPayload(CamelModel):
    token: str
    user: UserPublic


# --- Category Schemas ---
class CategoryCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=50)
    type: CatalogType

class CategoryUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    type: Optional[CatalogType] = None

class CategoryPublic(CamelModel):
    id: int
    name: str
    type: CatalogType
    is_active: bool
    created_by: Optional[UserSummary] = None
    created_at: datetime
    updated_at: datetime


# --- Supplier Schemas ---
class SupplierCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    contact_person: str = Field(..., min_length=1, max_length=50)
    phone: str
    email: Email
    address: str = Field(..., min_length=1, max_length=200)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value):
        if value is not None and not is_valid_phone(value):
            raise PydanticCustomError("invalid_phone", "Please enter a valid phone number")
        return value

class SupplierUpdate(SupplierCreate):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    contact_person: Optional[str] = Field(None, min_length=1, max_length=50)
    phone: Optional[str] = None
    email: Optional[Email] = None
    address: Optional[str] = Field(None, min_length=1, max_length=200)

class SupplierPublic(CamelModel):
    id: int
    name: str
    contact_person: str
    phone: str
    email: str
    address: str
    created_at: datetime
    updated_at: datetime

class SupplierStats(CamelModel):
    total_products: int
    total_services: int
    low_stock_products: int
    out_of_stock_products: int
    total_items: int

class LinkProductInput(CamelModel):
    supplier_id: int
    product_id: int

    @field_validator("supplier_id", mode="before")
    @classmethod
    def check_supplier(cls, value):
        return _reference(value, "supplier")

    @field_validator("product_id", mode="before")
    @classmethod
    def check_product(cls, value):
        return _reference(value, "product")


# --- Product Schemas ---
class ProductCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    category: int
    description: Optional[str] = Field(None, max_length=500)
    price: float = Field(..., ge=0)
    quantity: int = Field(0, ge=0)
    type: CatalogType
    supplier: Optional[int] = None
    reorder_threshold: int = Field(DEFAULT_REORDER_THRESHOLD, ge=0)

    @field_validator("category", mode="before")
    @classmethod
    def check_category(cls, value):
        return _reference(value, "category")

    @field_validator("supplier", mode="before")
    @classmethod
    def check_supplier(cls, value):
        return _reference(value, "supplier", optional=True)

    @model_validator(mode="after")
    def services_hold_no_stock(self):
        if self.type == "service":
            self.quantity = 0
        return self

class ProductUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    category: Optional[int] = None
    description: Optional[str] = Field(None, max_length=500)
    price: Optional[float] = Field(None, ge=0)
    quantity: Optional[int] = Field(None, ge=0)
    type: Optional[CatalogType] = None
    supplier: Optional[int] = None
    reorder_threshold: Optional[int] = Field(None, ge=0)

    @field_validator("category", mode="before")
    @classmethod
    def check_category(cls, value):
        return _reference(value, "category", optional=True)

    @field_validator("supplier", mode="before")
    @classmethod
    def check_supplier(cls, value):
        return _reference(value, "supplier", optional=True)

class ProductPublic(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    price: float
    quantity: int
    type: CatalogType
    reorder_threshold: int
    is_low_stock: bool
    is_out_of_stock: bool
    category: Optional[CategorySummary] = None
    supplier: Optional[SupplierSummary] = None
    created_at: datetime
    updated_at: datetime

class ProductDetail(ProductPublic):
    supplier: Optional[SupplierContact] = None


# --- Inventory Schemas ---
class StockMovement(CamelModel):
    type: TransactionType
    quantity: int
    notes: Optional[str] = Field(None, max_length=200)

    @model_validator(mode="after")
    def check_quantity(self):
        if self.quantity == 0:
            raise PydanticCustomError("zero_quantity", "Quantity cannot be zero")
        if self.type in ("sale", "purchase") and self.quantity < 0:
            raise PydanticCustomError(
                "negative_quantity", "Quantity must be positive for a {type}", {"type": self.type}
            )
        return self

    @property
    def delta(self):
        return -self.quantity if self.type == "sale" else self.quantity

class TransactionPublic(CamelModel):
    id: int
    product_id: int
    type: TransactionType
    quantity: int
    previous_quantity: int
    new_quantity: int
    notes: Optional[str] = None
    created_by: Optional[UserSummary] = None
    created_at: datetime


# --- Dashboard Schemas ---
class LowStockAlert(CamelModel):
    id: int
    name: str
    quantity: int
    reorder_threshold: int

class DashboardStats(CamelModel):
    total_products: int
    total_services: int
    total_categories: int
    total_users: int
    total_suppliers: int
    out_of_stock_products: int
    low_stock_products: int
    low_stock_alerts: List[LowStockAlert]
