"""
Database Schemas for the Marketplace

Each stored-document model represents a collection in the database.
Model name is converted to lowercase for the collection name:
- Category -> "category"
- User -> "user"
- Product -> "product"
- Review -> "review"

The *In models are the request bodies. Their fields are all optional so that
missing values reach check(), which reports them with the endpoint's own message.
"""

from typing import Annotated, Any, Literal, Optional

from bson import ObjectId
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from errors import ValidationError

Role = Literal["client", "admin"]


def _to_object_id(value: Any) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    raise ValueError(f'Cast to ObjectId failed for value "{value}"')


# Reference to another document, stored as an ObjectId
ObjectIdRef = Annotated[Any, BeforeValidator(_to_object_id)]


class Category(BaseModel):
    name: str = Field(..., min_length=1, description="Category name")


class User(BaseModel):
    username: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    role: Role = Field("client")


class Product(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, description="Product name")
    price: float = Field(..., ge=0, description="Unit price")
    stock: float = Field(..., ge=0, description="Units in stock")
    category_ref: ObjectIdRef = Field(..., alias="categoryRef", description="Reference to category _id")


class Review(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    comment: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=5)
    product_ref: ObjectIdRef = Field(..., alias="productRef", description="Reference to product _id")
    author_ref: ObjectIdRef = Field(..., alias="authorRef", description="Reference to user _id")


DOCUMENT_SCHEMAS = {schema.__name__.lower(): schema for schema in (Category, User, Product, Review)}


# Request bodies

class CategoryIn(BaseModel):
    name: Optional[str] = None

    def check(self):
        if not self.name:
            raise ValidationError("name is required")


class UserIn(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None

    def check(self):
        if not self.username or not self.email:
            raise ValidationError("username and email are required")


class ProductIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    price: Optional[float] = None
    stock: Optional[float] = None
    category_ref: Optional[str] = Field(None, alias="categoryRef")

    def check(self):
        if not self.name or self.price is None or self.stock is None or not self.category_ref:
            raise ValidationError("Missing fields")
        if self.price <= 0:
            raise ValidationError("Price must be positive")


class ReviewIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    comment: Optional[str] = None
    rating: Optional[int] = None
    product_ref: Optional[str] = Field(None, alias="productRef")
    author_ref: Optional[str] = Field(None, alias="authorRef")

    def check(self):
        if not self.comment or self.rating is None or not self.product_ref or not self.author_ref:
            raise ValidationError("Missing fields")
        if self.rating < 1 or self.rating > 5:
            raise ValidationError("rating must be between 1 and 5")
