"""
Record schemas for GOAT Grids

Each persisted model maps to one JSON collection under DATA_PATH:
- User -> "users" (staff accounts)
- Product -> "products"
- GalleryImage -> "gallery"
- Order -> "orders"
- Member -> "members"
- TravelPost -> "travel-posts"

Attributes are snake_case in Python; on the wire and on disk they are camelCase.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


OrderStatus = Literal["pending", "confirmed", "shipped", "delivered", "cancelled"]
PaymentStatus = Literal["unpaid", "paid"]

ORDER_STATUSES = ("pending", "confirmed", "shipped", "delivered", "cancelled")


# -----------------------------
# STAFF
# -----------------------------
class User(Record):
    id: str
    username: str
    password: str = Field(..., description="bcrypt hash")


class LoginRequest(Record):
    username: Optional[str] = None
    password: Optional[str] = None


class ChangePasswordRequest(Record):
    current_password: Optional[str] = None
    new_password: Optional[str] = None


# -----------------------------
# CATALOG
# -----------------------------
class Product(Record):
    id: str
    name: Optional[str] = None
    tag: str = ""
    tag_icon: str = "fas fa-star"
    description: Optional[str] = None
    price: float = Field(0, ge=0, description="Price in South African Rand")
    image: str = Field("", description="Relative upload path")
    specs: List[str] = Field(default_factory=list, description="Ordered spec lines")
    badge: str = ""
    badge_type: str = "bestseller"
    in_stock: bool = True
    created_at: str


class GalleryImage(Record):
    id: str
    image: str
    alt: str = "Gallery image"
    order: int = Field(..., ge=0, description="Display position, contiguous from 0")


class GalleryReorderItem(Record):
    id: str
    order: int


class GalleryReorderRequest(Record):
    items: Optional[List[GalleryReorderItem]] = None


class GalleryUpdate(Record):
    alt: Optional[str] = None


# -----------------------------
# ORDERS
# -----------------------------
class OrderItem(Record):
    """One unit of a product; quantity is expressed by repeating entries."""

    model_config = ConfigDict(extra="allow")

    name: str = ""
    price: float


class ShippingAddress(Record):
    model_config = ConfigDict(extra="allow")

    street_address: Optional[str] = None
    suburb: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    province: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None


class ShippingService(Record):
    model_config = ConfigDict(extra="allow")

    service_code: Optional[str] = None
    service_name: Optional[str] = None
    price: Optional[float] = None
    estimated_delivery: Optional[str] = None


class Order(Record):
    id: str
    order_number: str
    items: List[OrderItem]
    subtotal: float
    shipping_cost: float = 0
    total: float
    customer_name: str = "Customer"
    customer_email: str = ""
    customer_phone: str = ""
    shipping_address: Optional[ShippingAddress] = None
    shipping_service: Optional[ShippingService] = None
    shipment_id: Optional[str] = None
    tracking_number: Optional[str] = None
    notes: str = ""
    status: OrderStatus = "pending"
    payment_status: PaymentStatus = "unpaid"
    yoco_checkout_id: Optional[str] = Field(None, description="Payment provider checkout reference")
    created_at: str
    paid_at: Optional[str] = None


class OrderIn(Record):
    items: Optional[List[OrderItem]] = None
    total: Optional[float] = None
    subtotal: Optional[float] = None
    shipping_cost: Optional[float] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    shipping_address: Optional[ShippingAddress] = None
    shipping_service: Optional[ShippingService] = None
    notes: Optional[str] = None


class OrderStatusUpdate(Record):
    status: Optional[str] = None


# -----------------------------
# SHIPPING
# -----------------------------
class ShippingQuoteRequest(Record):
    street_address: Optional[str] = None
    suburb: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    province: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    item_count: int = 1


class ShippingRate(Record):
    """A priced courier service option. Not persisted."""

    service_code: str = "STD"
    service_name: str = "Standard"
    description: str = ""
    price: float = 0
    price_ex_vat: float = 0
    estimated_delivery: str = "TBC"
    delivery_date_from: Optional[str] = None
    delivery_date_to: Optional[str] = None


class ShipmentRequest(Record):
    order_id: Optional[str] = None
    service_code: Optional[str] = None


# -----------------------------
# MEMBERS
# -----------------------------
class Member(Record):
    id: str
    email: str = Field(..., description="Stored lowercased, unique")
    password: str = Field(..., description="bcrypt hash")
    display_name: str
    bio: str = ""
    avatar_image: Optional[str] = None
    created_at: str
    updated_at: str


class MemberRegister(Record):
    email: Optional[str] = None
    password: Optional[str] = None
    display_name: Optional[str] = None


class MemberLogin(Record):
    email: Optional[str] = None
    password: Optional[str] = None


class ProfileUpdate(Record):
    display_name: Optional[str] = None
    bio: Optional[str] = None


# -----------------------------
# TRAVEL POSTS
# -----------------------------
class Location(Record):
    lat: float
    lng: float
    place_name: str = ""
    formatted_address: str = ""


class TravelPost(Record):
    id: str
    member_id: str
    description: str
    photos: List[str] = Field(..., min_length=1, max_length=5)
    location: Location
    created_at: str
    updated_at: str


class TravelPostUpdate(Record):
    description: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    place_name: Optional[str] = None
    formatted_address: Optional[str] = None
