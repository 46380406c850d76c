from fastapi import APIRouter, HTTPException, Request, Depends
import json
import logging
import os
import stripe

from sqlalchemy.ext.asyncio import AsyncSession

from db import get_db
from db.models import User
from models.billing import CheckoutRequest, CheckoutResponse, StripeConfigResponse
from models.user import UserResponse, StripeInfoUpdate
from routes.auth import current_user_id
from services.errors import AuthError, PaymentsNotConfiguredError
from services.stripe_service import get_stripe_service, get_stripe_publishable_key
from services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["billing"])

SUBSCRIPTION_EVENTS = {
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.deleted",
}


def _app_url(request: Request, path: str) -> str:
    return f"{str(request.base_url).rstrip('/')}{path}"


def user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        profile_image_url=user.profile_image_url,
        stripe_customer_id=user.stripe_customer_id,
        stripe_subscription_id=user.stripe_subscription_id
    )


async def _require_user(session: AsyncSession, user_id: str) -> User:
    user = await UserService(session).get_user(user_id)
    if not user:
        raise AuthError("User not found")
    return user


@router.get("/stripe/config", response_model=StripeConfigResponse)
async def get_stripe_config():
    """Publishable key for the browser checkout flow"""
    return StripeConfigResponse(publishable_key=await get_stripe_publishable_key())


@router.post("/checkout", response_model=CheckoutResponse)
async def create_checkout(
    request: Request,
    body: CheckoutRequest,
    user_id: str = Depends(current_user_id),
    session: AsyncSession = Depends(get_db)
):
    """Start a subscription checkout, creating the Stripe customer on first use"""
    price_id = body.price_id or os.environ.get("STRIPE_PRICE_ID")
    if not price_id:
        raise HTTPException(status_code=400, detail="priceId is required")

    user = await _require_user(session, user_id)
    stripe_service = get_stripe_service()

    try:
        customer_id = user.stripe_customer_id
        if not customer_id:
            customer = await stripe_service.create_customer(user.email, user.id)
            customer_id = customer.id
            await UserService(session).update_stripe_info(user.id, stripe_customer_id=customer_id)

        checkout_session = await stripe_service.create_checkout_session(
            customer_id,
            price_id,
            success_url=_app_url(request, "/settings?payment=success"),
            cancel_url=_app_url(request, "/settings?payment=cancelled")
        )
    except stripe.StripeError as e:
        logger.error(f"Stripe checkout creation failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to create checkout session")

    return CheckoutResponse(url=checkout_session.url)


@router.post("/checkout/portal", response_model=CheckoutResponse)
async def create_portal_session(
    request: Request,
    user_id: str = Depends(current_user_id),
    session: AsyncSession = Depends(get_db)
):
    user = await _require_user(session, user_id)
    if not user.stripe_customer_id:
        raise HTTPException(status_code=400, detail="No customer ID found")

    try:
        portal_session = await get_stripe_service().create_customer_portal_session(
            user.stripe_customer_id,
            _app_url(request, "/settings")
        )
    except stripe.StripeError as e:
        logger.error(f"Stripe portal creation failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to create portal session")

    return CheckoutResponse(url=portal_session.url)


@router.patch("/user/stripe-info", response_model=UserResponse)
async def update_stripe_info(
    body: StripeInfoUpdate,
    user_id: str = Depends(current_user_id),
    session: AsyncSession = Depends(get_db)
):
    user = await UserService(session).update_stripe_info(
        user_id,
        stripe_customer_id=body.stripe_customer_id,
        stripe_subscription_id=body.stripe_subscription_id
    )
    return user_to_response(user)


@router.get("/subscription")
async def get_subscription(
    user_id: str = Depends(current_user_id),
    session: AsyncSession = Depends(get_db)
):
    """The caller's Stripe subscription, or null when there is none or Stripe is unavailable"""
    user = await _require_user(session, user_id)
    if not user.stripe_subscription_id:
        return {"subscription": None}

    try:
        subscription = await get_stripe_service().get_subscription(user.stripe_subscription_id)
    except (stripe.StripeError, PaymentsNotConfiguredError) as e:
        logger.error(f"Subscription fetch error: {e}")
        return {"subscription": None}

    return {"subscription": {
        "id": subscription.id,
        "status": subscription.status,
        "customer": subscription.customer,
    }}


@router.post("/stripe/webhook")
async def stripe_webhook(request: Request, session: AsyncSession = Depends(get_db)):
    """Apply subscription lifecycle events to the user row"""
    payload = await request.body()
    webhook_secret = os.environ.get("STRIPE_WEBHOOK_SECRET")

    if webhook_secret:
        signature = request.headers.get("Stripe-Signature")
        try:
            stripe.Webhook.construct_event(payload, signature, webhook_secret)
        except (stripe.SignatureVerificationError, ValueError) as e:
            logger.error(f"Webhook signature verification failed: {e}")
            raise HTTPException(status_code=400, detail="Invalid signature")

    try:
        event = json.loads(payload)
        event_type = event["type"]
        obj = event["data"]["object"]
    except (ValueError, KeyError, TypeError) as e:
        logger.error(f"Malformed webhook payload: {e}")
        raise HTTPException(status_code=400, detail="Webhook processing failed")

    users = UserService(session)
    if event_type in SUBSCRIPTION_EVENTS:
        subscription_id = None if event_type.endswith(".deleted") else obj.get("id")
        await users.apply_subscription(obj.get("customer"), subscription_id)
    elif event_type == "checkout.session.completed" and obj.get("subscription"):
        await users.apply_subscription(obj.get("customer"), obj.get("subscription"))
    else:
        logger.info(f"Ignoring webhook event {event_type}")

    return {"received": True}
