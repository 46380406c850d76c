from typing import Optional
import asyncio
import httpx
import json
import logging
import os
import re
import time

from services.errors import GenerationError
from services.logging_service import log_ai_generation

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o"
DEFAULT_TIMEOUT_SECONDS = 60.0


class LLMService:
    """Chat-completion client for an OpenAI-compatible endpoint"""

    def __init__(
        self,
        api_key: str = None,
        base_url: str = None,
        model: str = None,
        timeout: float = None,
        transport: httpx.AsyncBaseTransport = None
    ):
        self.api_key = api_key if api_key is not None else (
            os.environ.get("AI_INTEGRATIONS_OPENAI_API_KEY") or os.environ.get("OPENAI_API_KEY", "")
        )
        self.base_url = (base_url or os.environ.get("AI_INTEGRATIONS_OPENAI_BASE_URL") or DEFAULT_BASE_URL).rstrip("/")
        self.model = model or os.environ.get("OPENAI_MODEL", DEFAULT_MODEL)
        self.timeout = timeout if timeout is not None else float(
            os.environ.get("LLM_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)
        )
        # Injected in tests (httpx.MockTransport)
        self.transport = transport

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        json_output: bool = False,
        temperature: float = None,
        generation_type: str = "general"
    ) -> str:
        """
        Run one chat completion and return the text payload.

        The whole call (connect, send, wait, read) is bounded by self.timeout.
        Any failure is raised as GenerationError; nothing is retried here.
        """
        if not self.api_key:
            raise GenerationError("LLM provider not configured. Set OPENAI_API_KEY.")

        start_time = time.time()
        try:
            content = await asyncio.wait_for(
                self._chat_completion(system_prompt, user_prompt, json_output, temperature),
                timeout=self.timeout
            )
        except asyncio.TimeoutError:
            self._log(generation_type, start_time, success=False, error="timeout")
            raise GenerationError(f"Model call timed out after {self.timeout:g}s")
        except httpx.HTTPError as e:
            self._log(generation_type, start_time, success=False, error=type(e).__name__)
            raise GenerationError(f"Model call failed: {type(e).__name__}")
        except GenerationError as e:
            self._log(generation_type, start_time, success=False, error=e.message)
            raise

        self._log(generation_type, start_time, success=True)
        return content

    async def _chat_completion(
        self,
        system_prompt: str,
        user_prompt: str,
        json_output: bool,
        temperature: Optional[float]
    ) -> str:
        request_body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }
        if json_output:
            request_body["response_format"] = {"type": "json_object"}
        if temperature is not None:
            request_body["temperature"] = temperature

        async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
            response = await client.post(
                f"{self.base_url}/chat/completions",
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json"
                },
                json=request_body
            )

        if response.status_code != 200:
            logger.error(f"LLM API error {response.status_code}: {response.text[:500]}")
            raise GenerationError(f"Model API returned status {response.status_code}")

        try:
            payload = response.json()
            content = payload["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError):
            raise GenerationError("Malformed response from model API")

        if not content or not content.strip():
            raise GenerationError("No content received from model")
        return content

    def _log(self, generation_type: str, start_time: float, success: bool, error: str = None):
        log_ai_generation(
            generation_type=generation_type,
            model=self.model,
            duration_ms=round((time.time() - start_time) * 1000, 2),
            success=success,
            error=error
        )


def parse_json_response(content: str) -> dict:
    """
    Parse a JSON object out of model output.

    JSON mode normally returns a bare object; fenced or prefixed output is
    tolerated by extracting the outermost {...} block.
    """
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError:
        match = re.search(r'\{[\s\S]*\}', content)
        if not match:
            raise GenerationError("Model did not return JSON")
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError:
            raise GenerationError("Model returned malformed JSON")

    if not isinstance(parsed, dict):
        raise GenerationError("Model returned JSON that is not an object")
    return parsed


# Singleton instance
_llm_service = None

def get_llm_service() -> LLMService:
    global _llm_service
    if _llm_service is None:
        _llm_service = LLMService()
    return _llm_service
