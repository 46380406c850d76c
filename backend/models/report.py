from pydantic import Field
from typing import Optional, List, Dict, Any, Union
from datetime import datetime

from .common import CamelModel, NonEmptyStr, Number


# ============================================
# AnalysisData (embedded in Report.data)
# ============================================

class MarketFigure(CamelModel):
    value: Number
    description: str


class MarketSize(CamelModel):
    tam: MarketFigure
    sam: MarketFigure
    som: MarketFigure


class AgeGroup(CamelModel):
    range: str
    percentage: Number


class Demographics(CamelModel):
    population: Number
    median_income: Number
    age_groups: List[AgeGroup]
    description: str


class Psychographics(CamelModel):
    interests: List[str]
    lifestyle: str
    buying_behavior: str


class WeatherOutlook(CamelModel):
    seasonal_trends: str
    impact_on_business: str


class TrafficOutlook(CamelModel):
    typical_traffic: str
    challenges: List[str]
    peak_hours: str


class AnalysisData(CamelModel):
    """Five-section hyperlocal market analysis produced by the LLM"""
    market_size: MarketSize
    demographics: Demographics
    psychographics: Psychographics
    weather: WeatherOutlook
    traffic: TrafficOutlook


# ============================================
# LiveInsight (ephemeral, never persisted)
# ============================================

class ForecastDay(CamelModel):
    date: str
    high: Union[str, Number]
    low: Union[str, Number]
    condition: str


class LiveWeather(CamelModel):
    temp: Union[str, Number]
    condition: str
    impact: str
    forecast: List[ForecastDay] = Field(default_factory=list)


class LiveTraffic(CamelModel):
    status: str
    delay: str
    notable_patterns: str


class NewsItem(CamelModel):
    title: str
    source: str
    summary: str
    date: str
    category: str
    url: Optional[str] = None


class LiveInsight(CamelModel):
    weather: LiveWeather
    traffic: LiveTraffic
    news: List[NewsItem] = Field(default_factory=list)


# ============================================
# Request/Response contracts
# ============================================

class AnalyzeReportRequest(CamelModel):
    address: NonEmptyStr
    business_type: NonEmptyStr


class RenameReportRequest(CamelModel):
    # Required key; null clears the label
    name: Optional[str]


class ReportResponse(CamelModel):
    id: int
    user_id: str
    name: Optional[str] = None
    address: str
    business_type: str
    # Stored as opaque JSON; use analysis() for the typed view
    data: Dict[str, Any]
    created_at: Optional[datetime] = None

    def analysis(self) -> AnalysisData:
        return AnalysisData.model_validate(self.data)
