"""
Scope service - forwards a free-text service request to a model provider.

`generate_scenario` asks OpenAI for a complete Scenario JSON document and
validates it; `stream_narrative` streams a plain-text work order from
Anthropic. Provider calls are never retried; failures surface as ScopeError
subclasses.
"""
from dataclasses import dataclass, field
from typing import AsyncIterator, Optional

import anthropic
import openai
import structlog
from anthropic import AsyncAnthropic
from openai import AsyncOpenAI
from pydantic import ValidationError

from ..config.settings import Settings, get_settings
from ..data.reference_data import ReferenceData, get_reference_data
from ..data.schemas import Scenario
from ..engine.pricing_engine import audit
from .errors import (
    InvalidModelOutputError,
    ProviderNotConfiguredError,
    UpstreamProviderError,
    truncate_detail,
)
from .prompts import build_narrative_prompt, build_scenario_prompt

logger = structlog.get_logger(__name__)


@dataclass
class ScopeResult:
    """A validated scenario plus consistency warnings on its work order."""
    scenario: Scenario
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = self.scenario.to_wire()
        data["auditWarnings"] = list(self.warnings)
        return data


class ScopeService:
    """Model-backed scoping of customer service requests."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        reference: Optional[ReferenceData] = None,
        openai_client: Optional[AsyncOpenAI] = None,
        anthropic_client: Optional[AsyncAnthropic] = None,
    ):
        self.settings = settings or get_settings()
        self.reference = reference or get_reference_data()
        self._openai_client = openai_client
        self._anthropic_client = anthropic_client

    @property
    def openai_client(self) -> AsyncOpenAI:
        if self._openai_client is None:
            if not self.settings.openai_api_key:
                raise ProviderNotConfiguredError("OPENAI_API_KEY not configured")
            self._openai_client = AsyncOpenAI(api_key=self.settings.openai_api_key)
        return self._openai_client

    @property
    def anthropic_client(self) -> AsyncAnthropic:
        if self._anthropic_client is None:
            if not self.settings.anthropic_api_key:
                raise ProviderNotConfiguredError("ANTHROPIC_API_KEY not configured")
            self._anthropic_client = AsyncAnthropic(api_key=self.settings.anthropic_api_key)
        return self._anthropic_client

    def _truncate(self, text: str) -> str:
        return truncate_detail(text, self.settings.error_detail_limit)

    async def generate_scenario(self, prompt: str) -> ScopeResult:
        """Ask OpenAI for a Scenario document and validate it against the schema."""
        client = self.openai_client
        model = self.settings.openai_model
        logger.info("scope_request", provider="openai", model=model, prompt_length=len(prompt))

        try:
            response = await client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": build_scenario_prompt(self.reference)},
                    {"role": "user", "content": prompt},
                ],
                response_format={"type": "json_object"},
            )
        except openai.APIStatusError as e:
            logger.error("scope_upstream_error", provider="openai", status=e.status_code)
            raise UpstreamProviderError(
                "OpenAI API error", upstream_status=e.status_code, detail=self._truncate(e.message)
            ) from e
        except openai.APIError as e:
            logger.error("scope_upstream_error", provider="openai", error=str(e))
            raise UpstreamProviderError("OpenAI API error", detail=self._truncate(str(e))) from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise InvalidModelOutputError("No content in OpenAI response")

        try:
            scenario = Scenario.model_validate_json(content)
        except ValidationError as e:
            logger.warning("scope_invalid_output", provider="openai", errors=e.error_count())
            raise InvalidModelOutputError(
                "OpenAI response does not match the Scenario schema", detail=self._truncate(str(e))
            ) from e

        warnings = audit(scenario.stages.work_order.to_work_order())
        logger.info(
            "scope_completed",
            provider="openai",
            scenario_id=scenario.id,
            work_order_id=scenario.stages.work_order.id,
            warnings=len(warnings),
        )
        return ScopeResult(scenario=scenario, warnings=warnings)

    async def stream_narrative(self, prompt: str) -> AsyncIterator[str]:
        """Text chunks of a narrative work order, as Anthropic produces them."""
        client = self.anthropic_client
        model = self.settings.anthropic_model
        logger.info("scope_request", provider="anthropic", model=model, prompt_length=len(prompt))

        chunks = 0
        try:
            async with client.messages.stream(
                model=model,
                max_tokens=self.settings.anthropic_max_tokens,
                system=build_narrative_prompt(self.reference),
                messages=[{"role": "user", "content": prompt}],
            ) as stream:
                async for text in stream.text_stream:
                    chunks += 1
                    yield text
        except anthropic.APIStatusError as e:
            logger.error("scope_upstream_error", provider="anthropic", status=e.status_code)
            raise UpstreamProviderError(
                "Anthropic API error", upstream_status=e.status_code, detail=self._truncate(e.message)
            ) from e
        except anthropic.APIError as e:
            logger.error("scope_upstream_error", provider="anthropic", error=str(e))
            raise UpstreamProviderError("Anthropic API error", detail=self._truncate(str(e))) from e

        logger.info("scope_stream_completed", provider="anthropic", chunks=chunks)


_service: Optional[ScopeService] = None


def get_scope_service() -> ScopeService:
    """Shared service instance for the HTTP layer."""
    global _service
    if _service is None:
        _service = ScopeService()
    return _service
