"""
Brand-strategy statement generation.

One implementation serves all five kinds; the per-kind differences live in
BRAND_PROMPTS. The named wrappers below are what the rest of the code calls.
"""
import re

from models.prompt_template import BRAND_PROMPTS
from services.errors import GenerationError
from services.llm_service import LLMService, get_llm_service


def clean_statement(text: str) -> str:
    """Strip markdown emphasis and wrapping quotes from a model reply"""
    cleaned = text.strip().replace("**", "")
    cleaned = re.sub(r'^"|"$', "", cleaned)
    return cleaned.strip()


async def generate_brand_statement(kind_key: str, user_input: str, llm: LLMService = None) -> str:
    template = BRAND_PROMPTS.get(kind_key)
    if template is None:
        raise ValueError(f"Unknown brand kind: {kind_key}")

    llm = llm or get_llm_service()
    content = await llm.complete(
        system_prompt=template.render_system(),
        user_prompt=template.render_user(input=user_input),
        json_output=template.json_output,
        temperature=template.temperature,
        generation_type=f"brand_{kind_key}"
    )

    statement = clean_statement(content)
    if not statement:
        raise GenerationError("Model returned an empty statement")
    return statement


async def generate_mission_statement(user_input: str, llm: LLMService = None) -> str:
    return await generate_brand_statement("mission", user_input, llm)


async def generate_vision_statement(user_input: str, llm: LLMService = None) -> str:
    return await generate_brand_statement("vision", user_input, llm)


async def generate_value_proposition(user_input: str, llm: LLMService = None) -> str:
    return await generate_brand_statement("value", user_input, llm)


async def generate_target_market(user_input: str, llm: LLMService = None) -> str:
    return await generate_brand_statement("target", user_input, llm)


async def generate_background(user_input: str, llm: LLMService = None) -> str:
    return await generate_brand_statement("background", user_input, llm)


GENERATORS = {
    "mission": generate_mission_statement,
    "vision": generate_vision_statement,
    "value": generate_value_proposition,
    "target": generate_target_market,
    "background": generate_background,
}
