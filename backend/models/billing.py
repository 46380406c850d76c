from typing import Optional

from .common import CamelModel


class CheckoutRequest(CamelModel):
    # Falls back to STRIPE_PRICE_ID
    price_id: Optional[str] = None


class CheckoutResponse(CamelModel):
    url: str


class StripeConfigResponse(CamelModel):
    publishable_key: str
