"""
Market Analysis Service for HyperLocal
Turns (address, business type) into a validated AnalysisData or LiveInsight.

Both generators are side-effect free apart from the outbound model call:
they never touch the database and never retry.
"""
import logging
from datetime import datetime, timezone

from pydantic import ValidationError as SchemaValidationError

from models.prompt_template import MARKET_ANALYSIS_PROMPT, LIVE_INSIGHTS_PROMPT
from models.report import AnalysisData, LiveInsight
from services.errors import GenerationError
from services.llm_service import LLMService, get_llm_service, parse_json_response

logger = logging.getLogger(__name__)


async def generate_market_analysis(
    address: str,
    business_type: str,
    llm: LLMService = None
) -> AnalysisData:
    """Generate a 5-mile radius market analysis, validated against AnalysisData"""
    llm = llm or get_llm_service()

    values = {"address": address, "business_type": business_type}
    content = await llm.complete(
        system_prompt=MARKET_ANALYSIS_PROMPT.render_system(**values),
        user_prompt=MARKET_ANALYSIS_PROMPT.render_user(**values),
        json_output=MARKET_ANALYSIS_PROMPT.json_output,
        temperature=MARKET_ANALYSIS_PROMPT.temperature,
        generation_type=MARKET_ANALYSIS_PROMPT.key
    )

    parsed = parse_json_response(content)
    try:
        return AnalysisData.model_validate(parsed)
    except SchemaValidationError as e:
        logger.error(f"Market analysis failed schema validation: {e.error_count()} errors")
        raise GenerationError("Model returned an analysis that does not match the expected shape")


async def generate_live_insights(
    address: str,
    business_type: str,
    llm: LLMService = None,
    now: datetime = None
) -> LiveInsight:
    """Generate current weather, traffic and news for a report's location"""
    llm = llm or get_llm_service()
    now = now or datetime.now(timezone.utc)

    values = {
        "address": address,
        "business_type": business_type,
        "current_date": now.strftime("%A, %B %d, %Y"),
        "current_time": now.strftime("%I:%M %p %Z"),
    }
    content = await llm.complete(
        system_prompt=LIVE_INSIGHTS_PROMPT.render_system(**values),
        user_prompt=LIVE_INSIGHTS_PROMPT.render_user(**values),
        json_output=LIVE_INSIGHTS_PROMPT.json_output,
        temperature=LIVE_INSIGHTS_PROMPT.temperature,
        generation_type=LIVE_INSIGHTS_PROMPT.key
    )

    parsed = parse_json_response(content)
    try:
        return LiveInsight.model_validate(parsed)
    except SchemaValidationError as e:
        logger.error(f"Live insights failed schema validation: {e.error_count()} errors")
        raise GenerationError("Model returned live insights that do not match the expected shape")
