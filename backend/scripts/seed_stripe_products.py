#!/usr/bin/env python3
"""
HyperLocal Stripe product seeding

Creates the "Pro Subscription" product and its $5/month price when they do
not exist yet, then prints the price id to use as STRIPE_PRICE_ID.
Without Stripe credentials it logs and exits cleanly.

Usage:
    python scripts/seed_stripe_products.py
"""
import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

# Add backend to path
BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, BACKEND_DIR)
load_dotenv(os.path.join(BACKEND_DIR, ".env"))

from services.errors import PaymentsNotConfiguredError  # noqa: E402
from services.logging_service import setup_logging  # noqa: E402
from services.stripe_service import get_stripe_service, PRO_PRODUCT_NAME  # noqa: E402

logger = logging.getLogger("seed_stripe_products")


async def seed_products() -> int:
    try:
        product, price, created = await get_stripe_service().ensure_subscription_product()
    except PaymentsNotConfiguredError:
        logger.info("Stripe not configured. Skipping product seeding.")
        return 0

    if created:
        logger.info(f"Created product {product.id} with price {price.id}")
    else:
        logger.info(f'"{PRO_PRODUCT_NAME}" already exists: {product.id}')

    if price is not None:
        print(f"STRIPE_PRICE_ID={price.id}")
    else:
        logger.warning(f"Product {product.id} has no active price")
    return 0


def main() -> int:
    setup_logging(json_format=False)
    try:
        return asyncio.run(seed_products())
    except Exception as e:
        logger.error(f"Product seeding failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
