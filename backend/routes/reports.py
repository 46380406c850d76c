"""
Report API Routes for HyperLocal
Market analysis generation, history, renaming and live insights.
"""
from fastapi import APIRouter, Depends, Path, Request
from typing import List
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from db import get_db
from db.models import Report
from models.report import AnalyzeReportRequest, RenameReportRequest, ReportResponse, LiveInsight
from models.common import MAX_ROW_ID
from routes.auth import current_user_id
from services import market_analysis_service
from services.errors import NotFoundError
from services.rate_limit import limit_ai
from services.report_service import ReportService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["reports"])


def report_to_response(report: Report) -> ReportResponse:
    """Convert a Report row to its wire contract"""
    return ReportResponse(
        id=report.id,
        user_id=report.user_id,
        name=report.name,
        address=report.address,
        business_type=report.business_type,
        data=report.data,
        created_at=report.created_at
    )


@router.post("/reports/analyze", response_model=ReportResponse, status_code=201)
@limit_ai()
async def analyze_report(
    request: Request,
    body: AnalyzeReportRequest,
    user_id: str = Depends(current_user_id),
    session: AsyncSession = Depends(get_db)
):
    """Generate a market analysis for an address and save it as a report"""
    analysis = await market_analysis_service.generate_market_analysis(
        body.address, body.business_type
    )
    report = await ReportService(session).create_report(
        user_id=user_id,
        address=body.address,
        business_type=body.business_type,
        data=analysis
    )
    logger.info(f"Created report {report.id} for {body.business_type}")
    return report_to_response(report)


@router.get("/reports", response_model=List[ReportResponse])
async def list_reports(
    user_id: str = Depends(current_user_id),
    session: AsyncSession = Depends(get_db)
):
    """List the caller's reports, newest first"""
    reports = await ReportService(session).list_reports(user_id)
    return [report_to_response(r) for r in reports]


@router.get("/reports/{report_id}", response_model=ReportResponse)
async def get_report(
    report_id: int = Path(..., gt=0, le=MAX_ROW_ID),
    user_id: str = Depends(current_user_id),
    session: AsyncSession = Depends(get_db)
):
    report = await ReportService(session).get_report(report_id, user_id)
    if not report:
        raise NotFoundError("Report not found")
    return report_to_response(report)


@router.patch("/reports/{report_id}", response_model=ReportResponse)
async def rename_report(
    body: RenameReportRequest,
    report_id: int = Path(..., gt=0, le=MAX_ROW_ID),
    user_id: str = Depends(current_user_id),
    session: AsyncSession = Depends(get_db)
):
    """Set or clear a report's display name"""
    report = await ReportService(session).rename_report(report_id, user_id, body.name)
    return report_to_response(report)


@router.get("/live-insights/{report_id}", response_model=LiveInsight)
@limit_ai()
async def get_live_insights(
    request: Request,
    report_id: int = Path(..., gt=0, le=MAX_ROW_ID),
    user_id: str = Depends(current_user_id),
    session: AsyncSession = Depends(get_db)
):
    """Current weather, traffic and news for a report's location; never stored"""
    report = await ReportService(session).get_report(report_id, user_id)
    if not report:
        raise NotFoundError("Report not found")

    return await market_analysis_service.generate_live_insights(
        report.address, report.business_type
    )
