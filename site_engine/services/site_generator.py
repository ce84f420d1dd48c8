"""
Site generation service using an OpenAI-compatible chat-completion API.
Turns a free-text prompt into a SiteArtifact.
"""
import httpx
import json
import time
from typing import Any, Dict, List, Optional
from pydantic import ValidationError

from site_engine.logging_config import logger
from site_engine.config import settings
from site_engine.services.builder_system_prompt import BUILDER_SYSTEM_PROMPT
from site_engine.services.errors import (
    ConfigurationError,
    MalformedOutputError,
    UpstreamUnavailableError,
)
from site_engine.services.llm_response_handler import LLMResponseHandler
from site_engine.services.site_artifact import SiteArtifact


def parse_site_artifact(raw: str) -> SiteArtifact:
    """
    Parse model output into a SiteArtifact.

    The reply must be a JSON object whose html, css and js values are strings.
    Raises MalformedOutputError carrying ``raw`` unchanged otherwise.
    """
    text = LLMResponseHandler.strip_code_fences(raw)

    try:
        data = json.loads(text)
    except ValueError as e:
        raise MalformedOutputError(raw, reason=f"Reply is not valid JSON: {e}")

    if not isinstance(data, dict):
        raise MalformedOutputError(raw, reason="Reply is not a JSON object")

    try:
        return SiteArtifact.model_validate(data)
    except ValidationError as e:
        missing = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        raise MalformedOutputError(
            raw,
            reason=f"Reply needs string values for html, css and js (bad: {', '.join(missing)})"
        )


class SiteGenerator:
    """Single round-trip website generator"""

    def __init__(
        self,
        api_key: str = None,
        model: str = None,
        api_url: str = None,
        temperature: float = None,
        timeout: float = None,
        json_mode: bool = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """Initialize completion API client settings"""
        self.api_key = api_key or settings.OPENAI_API_KEY
        if not self.api_key:
            raise ConfigurationError("OPENAI_API_KEY not configured")
        self.model = model or settings.OPENAI_MODEL
        self.api_url = api_url or settings.OPENAI_API_URL
        self.temperature = settings.LLM_TEMPERATURE if temperature is None else temperature
        self.timeout = settings.LLM_TIMEOUT if timeout is None else timeout
        self.json_mode = settings.LLM_JSON_MODE if json_mode is None else json_mode
        self._transport = transport

    def _build_payload(self, prompt: str) -> Dict[str, Any]:
        messages: List[Dict[str, str]] = [
            {"role": "system", "content": BUILDER_SYSTEM_PROMPT},
            {"role": "user", "content": prompt}
        ]
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature
        }
        if self.json_mode:
            payload["response_format"] = {"type": "json_object"}
        return payload

    async def _call_completion_api(self, prompt: str) -> str:
        """POST the prompt and return the assistant message content"""
        logger.info("Calling completion API", model=self.model, prompt_length=len(prompt))

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.api_url,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json"
                    },
                    json=self._build_payload(prompt)
                )
        except httpx.TimeoutException as e:
            logger.error("Completion API timed out", model=self.model, timeout=self.timeout)
            raise UpstreamUnavailableError(
                "Completion API timed out",
                details=f"No response within {self.timeout}s: {e}"
            )
        except httpx.RequestError as e:
            logger.error(f"Completion API request failed: {str(e)}")
            raise UpstreamUnavailableError("Could not reach completion API", details=str(e))

        if not response.is_success:
            logger.error(
                "Completion API returned an error",
                status_code=response.status_code,
                body=response.text[:500]
            )
            raise UpstreamUnavailableError(
                f"Completion API returned HTTP {response.status_code}",
                details=response.text
            )

        try:
            result = response.json()
            content = result["choices"][0]["message"].get("content")
        except (ValueError, KeyError, IndexError, TypeError, AttributeError):
            logger.error("Unexpected completion API response", body=response.text[:500])
            raise UpstreamUnavailableError(
                "Unexpected response from completion API",
                details=response.text
            )

        return LLMResponseHandler.content_to_text(content)

    async def generate(self, prompt: str) -> SiteArtifact:
        """Generate html/css/js for a prompt"""
        start_time = time.time()

        raw = await self._call_completion_api(prompt)

        try:
            artifact = parse_site_artifact(raw)
        except MalformedOutputError as e:
            logger.warning("Model output rejected", reason=e.details, raw_length=len(raw))
            raise

        logger.info(
            "Site generated",
            model=self.model,
            html_size=len(artifact.html),
            css_size=len(artifact.css),
            js_size=len(artifact.js),
            execution_time=round(time.time() - start_time, 3)
        )
        return artifact
