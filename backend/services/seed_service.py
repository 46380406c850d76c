"""
Startup seeding: gives the demo account one report to look at.
"""
import logging
import os

from sqlalchemy.ext.asyncio import AsyncSession

from services.report_service import ReportService
from services.user_service import UserService

logger = logging.getLogger(__name__)


def get_demo_user_id() -> str:
    return os.environ.get("DEMO_USER_ID", "demo-user")


async def seed_demo_data(session: AsyncSession, user_id: str = None) -> bool:
    """Ensure the demo user exists and owns the demonstration report"""
    user_id = user_id or get_demo_user_id()
    await UserService(session).ensure_user(user_id)
    return await ReportService(session).seed_demo_report(user_id)
