import json
import logging
import os
import re
import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

import courier
import payments
from auth import (
    check_password,
    ensure_admin_user,
    hash_password,
    issue_member_token,
    issue_staff_token,
    require_member,
    require_staff,
)
from database import COLLECTIONS, StoreError, create_document, db, find_index, get_documents, save_documents
from errors import Conflict, Forbidden, NotFound, Unauthenticated, ValidationError
from schemas import (
    ORDER_STATUSES,
    ChangePasswordRequest,
    GalleryImage,
    GalleryReorderRequest,
    GalleryUpdate,
    Location,
    LoginRequest,
    Member,
    MemberLogin,
    MemberRegister,
    Order,
    OrderIn,
    OrderStatusUpdate,
    Product,
    ProfileUpdate,
    ShipmentRequest,
    ShippingQuoteRequest,
    TravelPost,
    TravelPostUpdate,
)
from uploads import save_upload, save_uploads

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    db.init()
    ensure_admin_user()
    yield


app = FastAPI(title="GOAT Grids API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error("Record store failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Server error"})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid request", "errors": jsonable_encoder(exc.errors())},
    )


# -----------------------------
# Helpers
# -----------------------------
def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _base36(n: int) -> str:
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    out = ""
    while n:
        n, r = divmod(n, 36)
        out = digits[r] + out
    return out or "0"


def order_number() -> str:
    return f"GG-{_base36(int(time.time() * 1000)).upper()}"


def without_password(doc: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in doc.items() if k != "password"}


def request_base_url(request: Request) -> str:
    base = os.getenv("BASE_URL")
    if base:
        return base
    proto = request.headers.get("x-forwarded-proto") or request.url.scheme
    host = request.headers.get("host") or request.url.netloc
    return f"{proto}://{host}"


def _get_or_404(collection: str, record_id: str, label: str):
    docs = get_documents(collection)
    index = find_index(docs, record_id)
    if index == -1:
        raise NotFound(f"{label} not found")
    return docs, index


# -----------------------------
# Basic routes
# -----------------------------
@app.get("/")
def read_root():
    return {"message": "GOAT Grids backend running"}


@app.get("/test")
def test_store():
    response = {
        "backend": "✅ Running",
        "store": "❌ Not Available",
        "data_path": str(db.root),
        "collections": [],
        "yoco": "✅ Configured" if os.getenv("YOCO_SECRET_KEY") else "⚠️ Missing YOCO_SECRET_KEY",
        "courier": "✅ Configured" if os.getenv("TCG_API_KEY") else "⚠️ Missing TCG_API_KEY",
    }
    try:
        response["collections"] = {name: len(db.load(name)) for name in COLLECTIONS}
        response["store"] = "✅ Available"
    except StoreError as e:
        response["store"] = f"⚠️ Error: {str(e)[:80]}"
    return response


# -----------------------------
# Staff auth
# -----------------------------
@app.post("/api/auth/login")
def staff_login(payload: LoginRequest):
    if not payload.username or not payload.password:
        raise ValidationError("Username and password required")
    users = get_documents("users")
    user = next((u for u in users if u.get("username") == payload.username), None)
    if not user or not check_password(payload.password, user.get("password", "")):
        raise Unauthenticated("Invalid credentials")
    return {
        "token": issue_staff_token(user),
        "user": {"id": user["id"], "username": user["username"]},
    }


@app.get("/api/auth/verify")
def staff_verify(staff: dict = Depends(require_staff)):
    return {"valid": True, "user": staff}


@app.post("/api/auth/change-password")
def staff_change_password(payload: ChangePasswordRequest, staff: dict = Depends(require_staff)):
    if not payload.current_password or not payload.new_password:
        raise ValidationError("Current and new password required")
    users, index = _get_or_404("users", staff.get("id"), "User")
    if not check_password(payload.current_password, users[index].get("password", "")):
        raise Unauthenticated("Current password is incorrect")
    users[index]["password"] = hash_password(payload.new_password)
    save_documents("users", users)
    return {"message": "Password changed successfully"}


# -----------------------------
# Product endpoints
# -----------------------------
def _parse_specs(specs: Optional[str]) -> List[str]:
    try:
        value = json.loads(specs)
    except ValueError:
        raise ValidationError("specs must be a JSON array")
    if not isinstance(value, list):
        raise ValidationError("specs must be a JSON array")
    return [str(s) for s in value]


def _form_bool(value: Optional[str]) -> bool:
    return str(value).lower() == "true"


@app.get("/api/products")
def list_products():
    return get_documents("products")


@app.get("/api/products/{product_id}")
def get_product(product_id: str):
    products, index = _get_or_404("products", product_id, "Product")
    return products[index]


@app.post("/api/products", status_code=201, dependencies=[Depends(require_staff)])
def create_product(
    name: Optional[str] = Form(None),
    price: Optional[float] = Form(None),
    description: Optional[str] = Form(None),
    tag: Optional[str] = Form(None),
    tag_icon: Optional[str] = Form(None, alias="tagIcon"),
    specs: Optional[str] = Form(None),
    badge: Optional[str] = Form(None),
    badge_type: Optional[str] = Form(None, alias="badgeType"),
    in_stock: Optional[str] = Form(None, alias="inStock"),
    image: Optional[UploadFile] = File(None),
):
    if not name or price is None:
        raise ValidationError("Name and price are required")
    if price < 0:
        raise ValidationError("Price must not be negative")
    product = Product(
        id=str(uuid.uuid4()),
        name=name,
        price=price,
        description=description,
        tag=tag or "",
        tag_icon=tag_icon or "fas fa-star",
        specs=_parse_specs(specs) if specs else [],
        badge=badge or "",
        badge_type=badge_type or "bestseller",
        in_stock=_form_bool(in_stock),
        image=save_upload(image, "product") if image else "",
        created_at=now_iso(),
    )
    return create_document("products", product)


@app.put("/api/products/{product_id}", dependencies=[Depends(require_staff)])
def update_product(
    product_id: str,
    name: Optional[str] = Form(None),
    price: Optional[float] = Form(None),
    description: Optional[str] = Form(None),
    tag: Optional[str] = Form(None),
    tag_icon: Optional[str] = Form(None, alias="tagIcon"),
    specs: Optional[str] = Form(None),
    badge: Optional[str] = Form(None),
    badge_type: Optional[str] = Form(None, alias="badgeType"),
    in_stock: Optional[str] = Form(None, alias="inStock"),
    image: Optional[UploadFile] = File(None),
):
    products, index = _get_or_404("products", product_id, "Product")
    changes: Dict[str, Any] = {
        "name": name,
        "price": price,
        "description": description,
        "tag": tag,
        "tagIcon": tag_icon,
        "specs": _parse_specs(specs) if specs else None,
        "badge": badge,
        "badgeType": badge_type,
        "inStock": _form_bool(in_stock) if in_stock is not None else None,
    }
    if image:
        changes["image"] = save_upload(image, "product")
    product = products[index]
    product.update({k: v for k, v in changes.items() if v is not None})
    product["updatedAt"] = now_iso()
    save_documents("products", products)
    return product


@app.delete("/api/products/{product_id}", dependencies=[Depends(require_staff)])
def delete_product(product_id: str):
    products, index = _get_or_404("products", product_id, "Product")
    deleted = products.pop(index)
    save_documents("products", products)
    return {"message": "Product deleted", "product": deleted}


@app.patch("/api/products/{product_id}/stock", dependencies=[Depends(require_staff)])
def toggle_stock(product_id: str):
    products, index = _get_or_404("products", product_id, "Product")
    products[index]["inStock"] = not products[index].get("inStock", False)
    products[index]["updatedAt"] = now_iso()
    save_documents("products", products)
    return products[index]


# -----------------------------
# Gallery endpoints
# -----------------------------
def _renumber(gallery: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Sort by display order and rewrite it as 0..n-1."""
    gallery.sort(key=lambda g: g.get("order", 0))
    for i, item in enumerate(gallery):
        item["order"] = i
    return gallery


@app.get("/api/gallery")
def list_gallery():
    return sorted(get_documents("gallery"), key=lambda g: g.get("order", 0))


@app.post("/api/gallery", status_code=201, dependencies=[Depends(require_staff)])
def add_gallery_image(
    image: Optional[UploadFile] = File(None),
    alt: Optional[str] = Form(None),
):
    if not image:
        raise ValidationError("Image file required")
    path = save_upload(image, "gallery")
    gallery = get_documents("gallery")
    new_image = GalleryImage(
        id=str(uuid.uuid4()),
        image=path,
        alt=alt or "Gallery image",
        order=len(gallery),
    ).model_dump(by_alias=True)
    gallery.append(new_image)
    save_documents("gallery", gallery)
    return new_image


@app.put("/api/gallery/reorder", dependencies=[Depends(require_staff)])
def reorder_gallery(payload: GalleryReorderRequest):
    if payload.items is None:
        raise ValidationError("Items array required")
    gallery = get_documents("gallery")
    for item in payload.items:
        index = find_index(gallery, item.id)
        if index != -1:
            gallery[index]["order"] = item.order
    _renumber(gallery)
    save_documents("gallery", gallery)
    return gallery


@app.put("/api/gallery/{image_id}", dependencies=[Depends(require_staff)])
def update_gallery_image(image_id: str, payload: GalleryUpdate):
    gallery, index = _get_or_404("gallery", image_id, "Gallery image")
    if payload.alt:
        gallery[index]["alt"] = payload.alt
    save_documents("gallery", gallery)
    return gallery[index]


@app.delete("/api/gallery/{image_id}", dependencies=[Depends(require_staff)])
def delete_gallery_image(image_id: str):
    gallery, index = _get_or_404("gallery", image_id, "Gallery image")
    deleted = gallery.pop(index)
    _renumber(gallery)
    save_documents("gallery", gallery)
    return {"message": "Gallery image deleted", "image": deleted}


# -----------------------------
# Order endpoints
# -----------------------------
@app.get("/api/orders", dependencies=[Depends(require_staff)])
def list_orders():
    orders = get_documents("orders")
    return sorted(orders, key=lambda o: o.get("createdAt", ""), reverse=True)


@app.get("/api/orders/{order_id}", dependencies=[Depends(require_staff)])
def get_order(order_id: str):
    orders, index = _get_or_404("orders", order_id, "Order")
    return orders[index]


@app.post("/api/orders", status_code=201)
def create_order(payload: OrderIn):
    if not payload.items:
        raise ValidationError("Order items required")

    items_total = sum(i.price for i in payload.items)
    shipping = payload.shipping_cost or 0
    subtotal = payload.subtotal or items_total
    total = payload.total or (subtotal + shipping)

    order = Order(
        id=str(uuid.uuid4()),
        order_number=order_number(),
        items=payload.items,
        subtotal=round(subtotal, 2),
        shipping_cost=round(shipping, 2),
        total=round(total, 2),
        customer_name=payload.customer_name or "Customer",
        customer_email=payload.customer_email or "",
        customer_phone=payload.customer_phone or "",
        shipping_address=payload.shipping_address,
        shipping_service=payload.shipping_service,
        notes=payload.notes or "",
        created_at=now_iso(),
    )
    doc = create_document("orders", order)
    logger.info(
        "Order created: %s - Total: R%.2f (incl. R%.2f shipping)",
        doc["orderNumber"], doc["total"], doc["shippingCost"],
    )
    return doc


@app.patch("/api/orders/{order_id}/status", dependencies=[Depends(require_staff)])
def update_order_status(order_id: str, payload: OrderStatusUpdate):
    orders, index = _get_or_404("orders", order_id, "Order")
    if payload.status not in ORDER_STATUSES:
        raise ValidationError("Invalid status")
    orders[index]["status"] = payload.status
    orders[index]["updatedAt"] = now_iso()
    save_documents("orders", orders)
    return orders[index]


@app.delete("/api/orders/{order_id}", dependencies=[Depends(require_staff)])
def delete_order(order_id: str):
    orders, index = _get_or_404("orders", order_id, "Order")
    deleted = orders.pop(index)
    save_documents("orders", orders)
    return {"message": "Order deleted", "order": deleted}


@app.get("/api/orders/{order_id}/status")
def get_order_status(order_id: str):
    orders, index = _get_or_404("orders", order_id, "Order")
    order = orders[index]
    return {
        "id": order["id"],
        "orderNumber": order.get("orderNumber"),
        "items": order.get("items", []),
        "total": order.get("total"),
        "status": order.get("status"),
        "paymentStatus": order.get("paymentStatus") or "unpaid",
        "createdAt": order.get("createdAt"),
    }


@app.post("/api/orders/{order_id}/payment-link")
def create_payment_link(order_id: str, request: Request):
    payments.secret_key()
    orders, index = _get_or_404("orders", order_id, "Order")
    order = orders[index]
    if order.get("paymentStatus") == "paid":
        raise Conflict("Order already paid")

    checkout = payments.create_checkout(order, request_base_url(request))

    orders[index]["yocoCheckoutId"] = checkout.get("id")
    save_documents("orders", orders)
    return {"paymentUrl": checkout.get("redirectUrl")}


# -----------------------------
# Payment webhook
# -----------------------------
def apply_payment_event(event: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Mark the order behind a succeeded checkout as paid.

    The order is found by the id embedded in the checkout metadata, falling
    back to the stored checkout reference. Returns the updated order, or None
    when the event is not a success or matches no order.
    """
    if event.get("type") != "checkout.succeeded":
        return None
    payload = event.get("payload") or {}
    checkout_id = payload.get("id")
    order_id = (payload.get("metadata") or {}).get("orderId")
    logger.info("Payment succeeded for checkout: %s, orderId: %s", checkout_id, order_id)

    orders = get_documents("orders")
    index = find_index(orders, order_id) if order_id else -1
    if index == -1 and checkout_id:
        index = find_index(orders, checkout_id, key="yocoCheckoutId")
        if index != -1:
            logger.info("Order %s matched by checkout id", orders[index]["id"])
    if index == -1:
        logger.warning("No order found for checkout %s (orderId %s)", checkout_id, order_id)
        return None

    orders[index]["paymentStatus"] = "paid"
    orders[index]["paidAt"] = now_iso()
    save_documents("orders", orders)
    logger.info("Order %s marked as paid", orders[index]["id"])
    return orders[index]


@app.post("/api/webhooks/yoco")
async def yoco_webhook(request: Request):
    payload = await request.body()
    try:
        event = json.loads(payload)
        logger.info("Yoco webhook received: %s", event.get("type"))
        apply_payment_event(event)
    except Exception:
        # Acknowledge anyway so the provider does not retry
        logger.exception("Webhook processing error")
    return PlainTextResponse("OK")


# -----------------------------
# Shipping endpoints
# -----------------------------
@app.post("/api/shipping/quote")
def shipping_quote(payload: ShippingQuoteRequest):
    courier.api_key()
    if not payload.street_address or not payload.city or not payload.postal_code:
        raise ValidationError("Address details required (streetAddress, city, postalCode)")
    rates = courier.get_rates(
        street_address=payload.street_address,
        suburb=payload.suburb,
        city=payload.city,
        postal_code=payload.postal_code,
        province=payload.province,
        item_count=payload.item_count,
    )
    return {
        "success": True,
        "rates": [r.model_dump(by_alias=True) for r in rates],
        "itemCount": payload.item_count,
        "deliveryAddress": {
            "streetAddress": payload.street_address,
            "suburb": payload.suburb,
            "city": payload.city,
            "postalCode": payload.postal_code,
            "province": courier.province_code(payload.province),
        },
    }


@app.post("/api/shipping/create-shipment", dependencies=[Depends(require_staff)])
def create_shipment(payload: ShipmentRequest):
    if not payload.order_id:
        raise ValidationError("orderId required")
    orders, index = _get_or_404("orders", payload.order_id, "Order")
    order = orders[index]
    if not order.get("shippingAddress"):
        raise ValidationError("Order has no shipping address")
    service_code = payload.service_code or (order.get("shippingService") or {}).get("serviceCode")
    if not service_code:
        raise ValidationError("Missing required shipment details")

    shipment = courier.create_shipment(order, service_code)

    order["shipmentId"] = shipment["shipmentId"]
    order["trackingNumber"] = shipment["waybillNumber"]
    order["updatedAt"] = now_iso()
    save_documents("orders", orders)
    return {"success": True, **shipment}


@app.get("/api/shipping/track/{waybill}")
def track_shipment(waybill: str):
    return {"success": True, **courier.track_shipment(waybill)}


# -----------------------------
# Member endpoints
# -----------------------------
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6


def _find_member_by_email(members: List[Dict[str, Any]], email: str) -> int:
    email = email.lower()
    for i, m in enumerate(members):
        if m.get("email", "").lower() == email:
            return i
    return -1


@app.post("/api/members/register", status_code=201)
def register_member(payload: MemberRegister):
    if not payload.email or not payload.password or not payload.display_name:
        raise ValidationError("Email, password, and display name are required")
    if not EMAIL_RE.match(payload.email):
        raise ValidationError("Invalid email format")
    if len(payload.password) < MIN_PASSWORD_LENGTH:
        raise ValidationError("Password must be at least 6 characters")

    members = get_documents("members")
    if _find_member_by_email(members, payload.email) != -1:
        raise ValidationError("Email already registered")

    now = now_iso()
    member = Member(
        id=str(uuid.uuid4()),
        email=payload.email.lower(),
        password=hash_password(payload.password),
        display_name=payload.display_name,
        created_at=now,
        updated_at=now,
    ).model_dump(by_alias=True)
    members.append(member)
    save_documents("members", members)
    return {"message": "Registration successful", "member": without_password(member)}


@app.post("/api/members/login")
def member_login(payload: MemberLogin):
    if not payload.email or not payload.password:
        raise ValidationError("Email and password required")
    members = get_documents("members")
    index = _find_member_by_email(members, payload.email)
    if index == -1 or not check_password(payload.password, members[index].get("password", "")):
        raise Unauthenticated("Invalid credentials")
    member = members[index]
    return {"token": issue_member_token(member), "member": without_password(member)}


@app.get("/api/members/verify")
def member_verify(identity: dict = Depends(require_member)):
    members, index = _get_or_404("members", identity.get("id"), "Member")
    return {"valid": True, "member": without_password(members[index])}


@app.post("/api/members/change-password")
def member_change_password(payload: ChangePasswordRequest, identity: dict = Depends(require_member)):
    if not payload.current_password or not payload.new_password:
        raise ValidationError("Current and new password required")
    if len(payload.new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationError("New password must be at least 6 characters")
    members, index = _get_or_404("members", identity.get("id"), "Member")
    if not check_password(payload.current_password, members[index].get("password", "")):
        raise Unauthenticated("Current password is incorrect")
    members[index]["password"] = hash_password(payload.new_password)
    members[index]["updatedAt"] = now_iso()
    save_documents("members", members)
    return {"message": "Password changed successfully"}


@app.get("/api/members/profile")
def get_profile(identity: dict = Depends(require_member)):
    members, index = _get_or_404("members", identity.get("id"), "Member")
    return without_password(members[index])


@app.put("/api/members/profile")
def update_profile(payload: ProfileUpdate, identity: dict = Depends(require_member)):
    members, index = _get_or_404("members", identity.get("id"), "Member")
    if payload.display_name:
        members[index]["displayName"] = payload.display_name
    if payload.bio is not None:
        members[index]["bio"] = payload.bio
    members[index]["updatedAt"] = now_iso()
    save_documents("members", members)
    return without_password(members[index])


@app.post("/api/members/profile/avatar")
def upload_avatar(image: Optional[UploadFile] = File(None), identity: dict = Depends(require_member)):
    if not image:
        raise ValidationError("Image file required")
    members, index = _get_or_404("members", identity.get("id"), "Member")
    members[index]["avatarImage"] = save_upload(image, "avatar", "avatars")
    members[index]["updatedAt"] = now_iso()
    save_documents("members", members)
    return without_password(members[index])


@app.get("/api/members/{member_id}/public")
def get_public_profile(member_id: str):
    members, index = _get_or_404("members", member_id, "Member")
    member = members[index]
    return {
        "id": member["id"],
        "displayName": member.get("displayName"),
        "bio": member.get("bio", ""),
        "avatarImage": member.get("avatarImage"),
        "createdAt": member.get("createdAt"),
    }


# -----------------------------
# Travel post endpoints
# -----------------------------
def author_info(member_id: str) -> Optional[Dict[str, Any]]:
    """Public subset of a post's author, read fresh from the members collection."""
    members = get_documents("members")
    index = find_index(members, member_id)
    if index == -1:
        return None
    member = members[index]
    return {
        "id": member["id"],
        "displayName": member.get("displayName"),
        "avatarImage": member.get("avatarImage"),
    }


def _newest_first(posts: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(posts, key=lambda p: p.get("createdAt", ""), reverse=True)


@app.get("/api/travels")
def list_travel_posts():
    posts = _newest_first(get_documents("travel-posts"))
    return [{**post, "member": author_info(post.get("memberId"))} for post in posts]


@app.get("/api/travels/map")
def travel_map():
    pins = []
    for post in get_documents("travel-posts"):
        location = post.get("location") or {}
        if location.get("lat") is None or location.get("lng") is None:
            continue
        author = author_info(post.get("memberId"))
        photos = post.get("photos") or []
        pins.append({
            "id": post["id"],
            "location": location,
            "thumbnail": photos[0] if photos else None,
            "memberName": author["displayName"] if author else "Unknown",
        })
    return pins


@app.get("/api/travels/member/{member_id}")
def member_travel_posts(member_id: str):
    posts = [p for p in get_documents("travel-posts") if p.get("memberId") == member_id]
    return {"member": author_info(member_id), "posts": _newest_first(posts)}


@app.get("/api/travels/{post_id}")
def get_travel_post(post_id: str):
    posts, index = _get_or_404("travel-posts", post_id, "Post")
    post = posts[index]
    return {**post, "member": author_info(post.get("memberId"))}


@app.post("/api/travels", status_code=201)
def create_travel_post(
    photos: Optional[List[UploadFile]] = File(None),
    description: Optional[str] = Form(None),
    lat: Optional[float] = Form(None),
    lng: Optional[float] = Form(None),
    place_name: Optional[str] = Form(None, alias="placeName"),
    formatted_address: Optional[str] = Form(None, alias="formattedAddress"),
    identity: dict = Depends(require_member),
):
    if not photos:
        raise ValidationError("At least one photo is required")
    if not description:
        raise ValidationError("Description is required")
    if lat is None or lng is None:
        raise ValidationError("Location is required")

    now = now_iso()
    post = TravelPost(
        id=str(uuid.uuid4()),
        member_id=identity["id"],
        description=description,
        photos=save_uploads(photos, "travel", "travels"),
        location=Location(
            lat=lat,
            lng=lng,
            place_name=place_name or "",
            formatted_address=formatted_address or "",
        ),
        created_at=now,
        updated_at=now,
    )
    doc = create_document("travel-posts", post)
    return {**doc, "member": author_info(identity["id"])}


def _owned_post(post_id: str, identity: Dict[str, Any], action: str):
    posts, index = _get_or_404("travel-posts", post_id, "Post")
    if posts[index].get("memberId") != identity.get("id"):
        raise Forbidden(f"Not authorized to {action} this post")
    return posts, index


@app.put("/api/travels/{post_id}")
def update_travel_post(post_id: str, payload: TravelPostUpdate, identity: dict = Depends(require_member)):
    posts, index = _owned_post(post_id, identity, "edit")
    post = posts[index]
    if payload.description:
        post["description"] = payload.description
    if payload.lat is not None and payload.lng is not None:
        current = post.get("location") or {}
        post["location"] = Location(
            lat=payload.lat,
            lng=payload.lng,
            place_name=payload.place_name or current.get("placeName", ""),
            formatted_address=payload.formatted_address or current.get("formattedAddress", ""),
        ).model_dump(by_alias=True)
    post["updatedAt"] = now_iso()
    save_documents("travel-posts", posts)
    return {**post, "member": author_info(identity["id"])}


@app.delete("/api/travels/{post_id}")
def delete_travel_post(post_id: str, identity: dict = Depends(require_member)):
    posts, index = _owned_post(post_id, identity, "delete")
    deleted = posts.pop(index)
    save_documents("travel-posts", posts)
    return {"message": "Post deleted", "post": deleted}


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
