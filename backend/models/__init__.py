from .common import CamelModel, NonEmptyStr, Number, ErrorResponse, MAX_ROW_ID
from .report import (
    AnalysisData, LiveInsight, AnalyzeReportRequest,
    RenameReportRequest, ReportResponse
)
from .brand import (
    BrandKind, BRAND_KINDS, BRAND_KINDS_BY_KEY, get_brand_kind,
    GenerateStatementRequest
)
from .prompt_template import PromptTemplate, MARKET_ANALYSIS_PROMPT, LIVE_INSIGHTS_PROMPT, BRAND_PROMPTS
from .user import UserResponse, StripeInfoUpdate
from .billing import CheckoutRequest, CheckoutResponse, StripeConfigResponse
