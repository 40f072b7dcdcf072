"""
The Courier Guy (ShipLogic) client: rate quotes, shipments and tracking.

Calls are synchronous, carry no timeout and are never retried; any failure is
reported to the caller as an UpstreamError.
"""

import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import requests

from errors import ConfigError, NotFound, UpstreamError
from schemas import ShippingRate

logger = logging.getLogger(__name__)

API_BASE = "https://api.shiplogic.com/v2"

# Where orders ship from
COLLECTION_ADDRESS = {
    "type": "business",
    "company": "GOAT Grids",
    "street_address": "Cape Town",
    "local_area": "Cape Town",
    "city": "Cape Town",
    "code": "8001",
    "zone": "WC",
    "country": "ZA",
}

COLLECTION_CONTACT = {
    "name": "GOAT Grids",
    "email": "goatgrids@gmail.com",
    "mobile_number": "+27674077001",
}

# Default parcel: one braai grid box
PARCEL_LENGTH_CM = 60
PARCEL_WIDTH_CM = 45
PARCEL_HEIGHT_CM = 10
KG_PER_ITEM = 3

PROVINCE_CODES = {
    "gauteng": "GP",
    "western cape": "WC",
    "eastern cape": "EC",
    "kwazulu-natal": "KZN",
    "kzn": "KZN",
    "free state": "FS",
    "north west": "NW",
    "mpumalanga": "MP",
    "limpopo": "LP",
    "northern cape": "NC",
}

# Used when a delivery address has no coordinates (Johannesburg)
DEFAULT_LAT = -26.2041
DEFAULT_LNG = 28.0473


def province_code(province: Optional[str]) -> str:
    if not province:
        return "GP"
    return PROVINCE_CODES.get(province.strip().lower()) or province.upper()[:2]


def parcel_weight(item_count: int) -> int:
    return max(KG_PER_ITEM, item_count * KG_PER_ITEM)


def api_key() -> str:
    key = os.getenv("TCG_API_KEY")
    if not key:
        raise ConfigError("Courier service not configured")
    return key


def _post(path: str, body: Dict[str, Any], what: str) -> Dict[str, Any]:
    try:
        response = requests.post(
            f"{API_BASE}{path}",
            json=body,
            headers={"Authorization": f"Bearer {api_key()}"},
        )
    except requests.RequestException as e:
        logger.error("Courier %s request failed: %s", what, e)
        raise UpstreamError(f"Failed to {what}")
    if not response.ok:
        logger.error("Courier %s error: %s %s", what, response.status_code, response.text)
        raise UpstreamError(f"Failed to {what}")
    return response.json()


def _format_delivery_date(value: Optional[str]) -> str:
    if not value:
        return "TBC"
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return "TBC"
    return f"{dt:%a}, {dt.day} {dt:%b}"


def _to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def normalize_rate(raw: Dict[str, Any]) -> ShippingRate:
    level = raw.get("service_level") or {}
    return ShippingRate(
        service_code=level.get("code") or "STD",
        service_name=level.get("name") or "Standard",
        description=level.get("description") or "",
        price=_to_float(raw.get("rate")),
        price_ex_vat=_to_float(raw.get("rate_excluding_vat")),
        estimated_delivery=_format_delivery_date(level.get("delivery_date_from")),
        delivery_date_from=level.get("delivery_date_from"),
        delivery_date_to=level.get("delivery_date_to"),
    )


# -----------------------------
# Rates
# -----------------------------
def get_rates(
    street_address: str,
    suburb: Optional[str],
    city: str,
    postal_code: str,
    province: Optional[str],
    item_count: int = 1,
) -> List[ShippingRate]:
    """Quote every service level for one parcel, cheapest first."""
    api_key()
    body = {
        "collection_address": COLLECTION_ADDRESS,
        "delivery_address": {
            "type": "residential",
            "street_address": street_address,
            "local_area": suburb or city,
            "city": city,
            "code": postal_code,
            "zone": province_code(province),
            "country": "ZA",
        },
        "parcels": [
            {
                "submitted_length_cm": PARCEL_LENGTH_CM,
                "submitted_width_cm": PARCEL_WIDTH_CM,
                "submitted_height_cm": PARCEL_HEIGHT_CM,
                "submitted_weight_kg": parcel_weight(item_count),
            }
        ],
    }
    logger.debug("Courier rate request: %s", body)
    data = _post("/rates", body, "get shipping quote")
    rates = [normalize_rate(r) for r in data.get("rates") or []]
    rates.sort(key=lambda r: r.price)
    return rates


# -----------------------------
# Shipments
# -----------------------------
def build_shipment(order: Dict[str, Any], service_code: str) -> Dict[str, Any]:
    address = order.get("shippingAddress") or {}
    suburb = address.get("suburb") or address.get("city")
    entered = ", ".join(
        p for p in (address.get("streetAddress"), address.get("suburb"), address.get("city"),
                    address.get("postalCode"), "South Africa") if p
    )
    items = order.get("items") or []
    now = datetime.now(timezone.utc)
    return {
        "collection_min_date": now.isoformat(),
        "collection_address": COLLECTION_ADDRESS,
        "special_instructions_collection": f"Order: {order.get('orderNumber') or order.get('id')}",
        "collection_contact": COLLECTION_CONTACT,
        "delivery_min_date": (now + timedelta(days=2)).isoformat(),
        "delivery_address": {
            "lat": address.get("lat") or DEFAULT_LAT,
            "lng": address.get("lng") or DEFAULT_LNG,
            "street_address": address.get("streetAddress"),
            "local_area": suburb,
            "suburb": suburb,
            "city": address.get("city"),
            "code": address.get("postalCode"),
            "zone": province_code(address.get("province")),
            "country": "South Africa",
            "entered_address": entered,
            "type": "residential",
        },
        "delivery_contact": {
            "name": order.get("customerName"),
            "email": order.get("customerEmail"),
            "mobile_number": order.get("customerPhone"),
        },
        "parcels": [
            {
                "submitted_length_cm": str(PARCEL_LENGTH_CM),
                "submitted_width_cm": str(PARCEL_WIDTH_CM),
                "submitted_height_cm": str(PARCEL_HEIGHT_CM),
                "submitted_weight_kg": str(parcel_weight(len(items) or 1)),
                "parcel_description": ", ".join(i.get("name", "") for i in items) or "Braai Grid",
            }
        ],
        "opt_in_rates": [],
        "opt_in_time_based_rates": [],
        "service_level_code": service_code,
    }


def create_shipment(order: Dict[str, Any], service_code: str) -> Dict[str, Any]:
    api_key()
    shipment = _post("/shipments", build_shipment(order, service_code), "create shipment")
    logger.info("Shipment %s created for order %s", shipment.get("id"), order.get("orderNumber"))
    return {
        "shipmentId": shipment.get("id"),
        "trackingReference": shipment.get("custom_tracking_reference"),
        "waybillNumber": shipment.get("custom_tracking_reference"),
        "status": shipment.get("status"),
        "estimatedCollection": shipment.get("estimated_collection"),
        "estimatedDelivery": shipment.get("estimated_delivery_from"),
    }


def track_shipment(waybill: str) -> Dict[str, Any]:
    key = api_key()
    try:
        response = requests.get(
            f"{API_BASE}/tracking/shipments/public",
            params={"waybill": waybill, "api_key": key},
        )
    except requests.RequestException as e:
        logger.error("Courier tracking request failed: %s", e)
        raise UpstreamError("Failed to track shipment")
    if not response.ok:
        raise NotFound("Shipment not found")
    tracking = response.json()
    return {
        "trackingReference": tracking.get("custom_tracking_reference"),
        "status": tracking.get("status"),
        "events": tracking.get("tracking_events") or [],
    }
