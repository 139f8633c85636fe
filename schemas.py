"""
Database schemas and request bodies for the shop API.

Each collection model corresponds to a MongoDB collection. The collection
name is the lowercase of the class name.

Example: class User -> collection "user"

Fields are snake_case in Python and camelCase on the wire and in storage
(userId, totalStock, ...), via the shared alias generator.
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

ORDER_STATUSES = (
    "pending",
    "capturing",
    "confirmed",
    "failed",
    "inProcess",
    "inShipping",
    "delivered",
    "rejected",
)
AdminOrderStatus = Literal["pending", "confirmed", "inProcess", "inShipping", "delivered", "rejected"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Collection models

class User(CamelModel):
    user_name: str
    email: EmailStr
    password: str = Field(..., description="bcrypt hash")
    role: Literal["user", "admin"] = "user"


class Product(CamelModel):
    image: Optional[str] = None
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    price: float = Field(..., ge=0)
    sale_price: float = Field(0, ge=0)
    total_stock: int = Field(0, ge=0)
    average_review: float = Field(0, ge=0, le=5)
    review_count: int = 0
    review_total: float = 0


class CartItem(CamelModel):
    product_id: str
    quantity: int = Field(..., gt=0)


class Cart(CamelModel):
    user_id: str
    items: List[CartItem] = Field(default_factory=list)


class OrderItem(CamelModel):
    product_id: str
    title: str
    image: Optional[str] = None
    price: float = Field(..., ge=0)
    quantity: int = Field(..., gt=0)


class AddressInfo(CamelModel):
    address_id: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    pincode: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None


class Order(CamelModel):
    user_id: str
    cart_id: str
    cart_items: List[OrderItem]
    address_info: AddressInfo
    order_status: str = Field("pending", description="|".join(ORDER_STATUSES))
    payment_method: str = "paypal"
    payment_status: str = Field("pending", description="pending|paid")
    total_amount: float
    order_date: datetime
    order_update_date: datetime
    payment_id: Optional[str] = None
    payer_id: Optional[str] = None
    payment_executed_at: Optional[datetime] = None


class Address(CamelModel):
    user_id: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    pincode: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    notes: str = Field(..., min_length=1)


class Review(CamelModel):
    product_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    user_name: Optional[str] = None
    review_message: Optional[str] = None
    review_value: int = Field(..., ge=1, le=5)


class Feature(CamelModel):
    image: str = Field(..., min_length=1)


# Request bodies

class RegisterRequest(CamelModel):
    user_name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=1)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ProductUpdate(CamelModel):
    image: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    sale_price: Optional[float] = Field(None, ge=0)
    total_stock: Optional[int] = Field(None, ge=0)


class CartItemRequest(CamelModel):
    user_id: str = Field(..., min_length=1)
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)


class AddressUpdate(CamelModel):
    address: Optional[str] = None
    city: Optional[str] = None
    pincode: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None


class CreateOrderRequest(CamelModel):
    user_id: str = Field(..., min_length=1)
    cart_id: str = Field(..., min_length=1)
    cart_items: List[OrderItem] = Field(..., min_length=1)
    address_info: AddressInfo
    payment_method: str = "paypal"
    total_amount: float = Field(..., ge=0)


class CapturePaymentRequest(CamelModel):
    order_id: str = Field(..., min_length=1)
    payment_id: str = Field(..., min_length=1)
    payer_id: str = Field(..., min_length=1)


class OrderStatusUpdate(CamelModel):
    order_status: AdminOrderStatus
