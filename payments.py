"""
Yoco checkout client.
"""

import logging
import os
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict

import requests

from errors import ConfigError, UpstreamError

logger = logging.getLogger(__name__)

CHECKOUTS_URL = "https://payments.yoco.com/api/checkouts"
CURRENCY = "ZAR"


def secret_key() -> str:
    key = os.getenv("YOCO_SECRET_KEY")
    if not key:
        raise ConfigError("Payment gateway not configured")
    return key


def to_cents(amount: float) -> int:
    """Rand amount to integer cents, rounding halves up."""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def redirect_urls(base_url: str, order_id: str) -> Dict[str, str]:
    page = f"{base_url.rstrip('/')}/order-confirmation.html?orderId={order_id}"
    return {
        "successUrl": f"{page}&status=success",
        "cancelUrl": f"{page}&status=cancelled",
        "failureUrl": f"{page}&status=failed",
    }


def create_checkout(order: Dict[str, Any], base_url: str) -> Dict[str, Any]:
    """Open a hosted checkout for an order and return the provider's response.

    The response carries the checkout `id` (stored on the order so the
    webhook can find it again) and the `redirectUrl` for the customer.
    """
    key = secret_key()
    body = {
        "amount": to_cents(order["total"]),
        "currency": CURRENCY,
        "metadata": {"orderId": order["id"], "orderNumber": order.get("orderNumber")},
        **redirect_urls(base_url, order["id"]),
    }
    try:
        response = requests.post(CHECKOUTS_URL, json=body, headers={"Authorization": f"Bearer {key}"})
    except requests.RequestException as e:
        logger.error("Yoco request failed: %s", e)
        raise UpstreamError("Failed to create payment link")
    if not response.ok:
        logger.error("Yoco API error: %s %s", response.status_code, response.text)
        raise UpstreamError("Failed to create payment link")
    return response.json()
