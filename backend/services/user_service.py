"""
User Service for HyperLocal
Users are created from identity-provider claims; the id is the "sub" claim.
"""
import logging
from typing import Optional, Dict, Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import User
from services.errors import ValidationError, NotFoundError, PersistenceError

logger = logging.getLogger(__name__)


class UserService:
    """Service for User management"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_user(self, user_id: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def upsert_from_claims(self, claims: Dict[str, Any]) -> User:
        """Create or refresh a user from identity-provider claims"""
        user_id = claims.get("sub")
        if not user_id:
            raise ValidationError("sub is required")

        user = await self.get_user(user_id)
        if user is None:
            user = User(id=user_id)
            self.session.add(user)
            logger.info(f"Creating user {user_id}")

        user.email = claims.get("email")
        user.first_name = claims.get("first_name")
        user.last_name = claims.get("last_name")
        user.profile_image_url = claims.get("profile_image_url")

        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to upsert user {user_id}: {e}")
            raise PersistenceError("Failed to save user")
        await self.session.refresh(user)
        return user

    async def ensure_user(self, user_id: str, email: Optional[str] = None) -> User:
        """Get a user, creating a bare row when missing"""
        user = await self.get_user(user_id)
        if user is not None:
            return user
        return await self.upsert_from_claims({"sub": user_id, "email": email})

    async def update_stripe_info(
        self,
        user_id: str,
        stripe_customer_id: Optional[str] = None,
        stripe_subscription_id: Optional[str] = None
    ) -> User:
        """Set whichever Stripe ids are given; None leaves a field unchanged"""
        user = await self.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")

        if stripe_customer_id is not None:
            user.stripe_customer_id = stripe_customer_id
        if stripe_subscription_id is not None:
            user.stripe_subscription_id = stripe_subscription_id

        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to update Stripe info for {user_id}: {e}")
            raise PersistenceError("Failed to update user")
        await self.session.refresh(user)
        return user

    async def find_by_stripe_customer(self, customer_id: str) -> Optional[User]:
        result = await self.session.execute(
            select(User).where(User.stripe_customer_id == customer_id)
        )
        return result.scalars().first()

    async def apply_subscription(self, customer_id: str, subscription_id: Optional[str]) -> Optional[User]:
        """Record (or clear, with None) the subscription of the customer's user"""
        user = await self.find_by_stripe_customer(customer_id)
        if user is None:
            logger.warning(f"No user for Stripe customer {customer_id}")
            return None

        user.stripe_subscription_id = subscription_id
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to apply subscription for {user.id}: {e}")
            raise PersistenceError("Failed to update user")
        return user
