"""
Report Service for HyperLocal
Owner-scoped persistence for market-analysis reports.

Every statement that targets a single report filters on id AND user_id in
the same query, so ownership is never checked separately from the action.
"""
import logging
from typing import Optional, List, Union

from sqlalchemy import select, update, func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Report
from models.report import AnalysisData
from services.errors import NotFoundError, PersistenceError
from services.logging_service import log_operation

logger = logging.getLogger(__name__)

DEMO_SEED_KEY = "demo-report-v1"
DEMO_ADDRESS = "123 Main Street, Austin, TX 78701"
DEMO_BUSINESS_TYPE = "Coffee Shop"

DEMO_ANALYSIS = {
    "marketSize": {
        "tam": {"value": 48000000, "description": "Estimated annual coffee and cafe spending by roughly 320,000 residents and commuters within 5 miles of downtown Austin."},
        "sam": {"value": 14500000, "description": "Specialty and third-wave coffee spending from higher-income professionals, students and visitors in the central business district."},
        "som": {"value": 580000, "description": "Realistic first-year revenue at a 4% share of the serviceable market given dense competition and strong foot traffic."},
    },
    "demographics": {
        "population": 320000,
        "medianIncome": 78500,
        "ageGroups": [
            {"range": "18-24", "percentage": 18},
            {"range": "25-34", "percentage": 31},
            {"range": "35-44", "percentage": 21},
            {"range": "45-54", "percentage": 14},
            {"range": "55+", "percentage": 16},
        ],
        "description": "A young, highly educated urban core with a large share of tech workers, university students and downtown office employees.",
    },
    "psychographics": {
        "interests": ["Live music", "Local food scene", "Fitness and outdoor recreation", "Technology and startups"],
        "lifestyle": "Busy professionals and creatives who value convenience, local character and places to work remotely.",
        "buyingBehavior": "Willing to pay premium prices for quality and sustainability; loyal to cafes with strong ambience and reliable Wi-Fi.",
    },
    "weather": {
        "seasonalTrends": "Long hot summers with frequent 100F days, mild winters and short rainy periods in spring and fall.",
        "impactOnBusiness": "Iced and cold brew drinks dominate from May to September; patio seating drives traffic in spring and fall.",
    },
    "traffic": {
        "typicalTraffic": "Heavy pedestrian traffic on weekdays from office workers, with strong weekend tourist and event crowds.",
        "challenges": ["Limited street parking", "Congestion during festivals and events", "Construction detours downtown"],
        "peakHours": "7:00-10:00 AM weekdays and 10:00 AM-2:00 PM weekends",
    },
}


def _ordered_newest_first(stmt):
    return stmt.order_by(Report.created_at.desc(), Report.id.desc())


class ReportService:
    """Service for Report persistence"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_report(
        self,
        user_id: str,
        address: str,
        business_type: str,
        data: Union[AnalysisData, dict],
        name: Optional[str] = None
    ) -> Report:
        """Insert a report owned by user_id; data is stored as opaque JSON"""
        if isinstance(data, AnalysisData):
            data = data.model_dump(by_alias=True)

        report = Report(
            user_id=user_id,
            name=name,
            address=address,
            business_type=business_type,
            data=data
        )
        self.session.add(report)
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to create report for user {user_id}: {e}")
            raise PersistenceError("Failed to save report")
        await self.session.refresh(report)
        return report

    async def get_report(self, report_id: int, user_id: str) -> Optional[Report]:
        """Get a report iff it exists and belongs to user_id"""
        try:
            result = await self.session.execute(
                select(Report).where(Report.id == report_id, Report.user_id == user_id)
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch report {report_id}: {e}")
            raise PersistenceError("Failed to fetch report")
        return result.scalar_one_or_none()

    async def list_reports(self, user_id: str) -> List[Report]:
        """All reports owned by user_id, newest first"""
        try:
            result = await self.session.execute(
                _ordered_newest_first(select(Report).where(Report.user_id == user_id))
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to list reports for user {user_id}: {e}")
            raise PersistenceError("Failed to fetch reports")
        return list(result.scalars().all())

    async def rename_report(self, report_id: int, user_id: str, name: Optional[str]) -> Report:
        """Set the display name; raises NotFoundError when nothing matched"""
        try:
            result = await self.session.execute(
                update(Report)
                .where(Report.id == report_id, Report.user_id == user_id)
                .values(name=name)
                .returning(Report)
            )
            report = result.scalar_one_or_none()
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to rename report {report_id}: {e}")
            raise PersistenceError("Failed to update report")

        if report is None:
            raise NotFoundError("Report not found")
        return report

    async def count_reports(self, user_id: str) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(Report).where(Report.user_id == user_id)
        )
        return result.scalar_one()

    @log_operation("seed_demo_report")
    async def seed_demo_report(self, user_id: str) -> bool:
        """
        Insert the demonstration report when user_id has no reports yet.

        The insert is keyed on the unique seed_key, so concurrent startups
        racing past the emptiness check still produce a single row.
        Returns True if a row was inserted.
        """
        if await self.count_reports(user_id) > 0:
            return False

        insert_fn = pg_insert if self.session.get_bind().dialect.name == "postgresql" else sqlite_insert
        stmt = (
            insert_fn(Report)
            .values(
                user_id=user_id,
                address=DEMO_ADDRESS,
                business_type=DEMO_BUSINESS_TYPE,
                data=DEMO_ANALYSIS,
                seed_key=DEMO_SEED_KEY
            )
            .on_conflict_do_nothing(index_elements=["seed_key"])
        )
        try:
            result = await self.session.execute(stmt)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to seed demo report: {e}")
            raise PersistenceError("Failed to seed demo report")

        inserted = result.rowcount == 1
        if inserted:
            logger.info(f"Seeded demo report for {user_id}")
        return inserted
