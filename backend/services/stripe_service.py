"""
Stripe Service for HyperLocal
Thin wrapper over the stripe SDK plus the process-wide credential cache.

Credentials are resolved once per process. Concurrent first callers all
await the same in-flight load instead of each starting their own.
"""
import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Optional, Callable, Awaitable

import stripe

from services.errors import PaymentsNotConfiguredError

logger = logging.getLogger(__name__)

PLACEHOLDER_KEYS = {"", "your-stripe-api-key-here"}

PRO_PRODUCT_NAME = "Pro Subscription"
PRO_PRODUCT_DESCRIPTION = "HyperLocal AI Market Intelligence Subscription"
PRO_PRICE_CENTS = 500


@dataclass(frozen=True)
class StripeCredentials:
    secret_key: str
    publishable_key: Optional[str] = None


def _first_env(*names: str) -> str:
    for name in names:
        value = os.environ.get(name, "").strip()
        if value:
            return value
    return ""


async def load_stripe_credentials_from_env() -> StripeCredentials:
    secret_key = _first_env("STRIPE_SECRET_KEY", "STRIPE_SECRET", "STRIPE_API_KEY")
    if secret_key in PLACEHOLDER_KEYS:
        logger.warning("Stripe secret key is not configured")
        raise PaymentsNotConfiguredError()

    publishable_key = _first_env("STRIPE_PUBLISHABLE_KEY", "STRIPE_PUBLIC_KEY") or None
    return StripeCredentials(secret_key=secret_key, publishable_key=publishable_key)


class StripeCredentialCache:
    """Lazily loaded, read-only-after-load credential holder"""

    def __init__(self, loader: Callable[[], Awaitable[StripeCredentials]] = None):
        self._loader = loader or load_stripe_credentials_from_env
        self._credentials: Optional[StripeCredentials] = None
        self._pending: Optional[asyncio.Task] = None

    async def get(self) -> StripeCredentials:
        if self._credentials is not None:
            return self._credentials

        if self._pending is None:
            self._pending = asyncio.ensure_future(self._load())
        pending = self._pending
        try:
            return await asyncio.shield(pending)
        finally:
            # A failed load is retried by the next caller
            if pending.done() and (pending.cancelled() or pending.exception() is not None):
                if self._pending is pending:
                    self._pending = None

    async def _load(self) -> StripeCredentials:
        credentials = await self._loader()
        self._credentials = credentials
        logger.info("Stripe credentials loaded")
        return credentials

    def reset(self):
        self._credentials = None
        self._pending = None


_credential_cache: Optional[StripeCredentialCache] = None


def get_stripe_credential_cache() -> StripeCredentialCache:
    global _credential_cache
    if _credential_cache is None:
        _credential_cache = StripeCredentialCache()
    return _credential_cache


async def get_stripe_credentials() -> StripeCredentials:
    return await get_stripe_credential_cache().get()


async def get_stripe_publishable_key() -> str:
    credentials = await get_stripe_credentials()
    if not credentials.publishable_key:
        raise PaymentsNotConfiguredError("Stripe publishable key is not configured")
    return credentials.publishable_key


class StripeService:
    """Customer, checkout and portal operations against the Stripe API"""

    async def _api_key(self) -> str:
        credentials = await get_stripe_credentials()
        return credentials.secret_key

    async def create_customer(self, email: Optional[str], user_id: str):
        api_key = await self._api_key()
        return stripe.Customer.create(
            api_key=api_key,
            email=email,
            metadata={"user_id": user_id}
        )

    async def create_checkout_session(
        self,
        customer_id: str,
        price_id: str,
        success_url: str,
        cancel_url: str
    ):
        api_key = await self._api_key()
        return stripe.checkout.Session.create(
            api_key=api_key,
            customer=customer_id,
            payment_method_types=["card"],
            line_items=[{"price": price_id, "quantity": 1}],
            mode="subscription",
            success_url=success_url,
            cancel_url=cancel_url
        )

    async def create_customer_portal_session(self, customer_id: str, return_url: str):
        api_key = await self._api_key()
        return stripe.billing_portal.Session.create(
            api_key=api_key,
            customer=customer_id,
            return_url=return_url
        )

    async def get_subscription(self, subscription_id: str):
        api_key = await self._api_key()
        return stripe.Subscription.retrieve(subscription_id, api_key=api_key)

    async def ensure_subscription_product(
        self,
        name: str = PRO_PRODUCT_NAME,
        description: str = PRO_PRODUCT_DESCRIPTION,
        unit_amount: int = PRO_PRICE_CENTS,
        currency: str = "usd",
        interval: str = "month"
    ):
        """
        Find the product by exact name, or create it with a recurring price.

        Returns (product, price, created). price is the product's first
        active price when the product already existed, and may be None.
        """
        api_key = await self._api_key()

        found = stripe.Product.search(api_key=api_key, query=f'name:"{name}"', limit=1)
        if found.data:
            product = found.data[0]
            prices = stripe.Price.list(api_key=api_key, product=product.id, active=True, limit=1)
            price = prices.data[0] if prices.data else None
            return product, price, False

        product = stripe.Product.create(api_key=api_key, name=name, description=description)
        price = stripe.Price.create(
            api_key=api_key,
            product=product.id,
            unit_amount=unit_amount,
            currency=currency,
            recurring={"interval": interval}
        )
        logger.info(f"Created Stripe product {product.id} with price {price.id}")
        return product, price, True


_stripe_service: Optional[StripeService] = None


def get_stripe_service() -> StripeService:
    global _stripe_service
    if _stripe_service is None:
        _stripe_service = StripeService()
    return _stripe_service
