"""
Tests for the model-backed scope service. Provider clients are mocked; no
network I/O happens here.
"""
import asyncio
import json
from dataclasses import replace
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import openai
import pytest

from dockmaster.llm.errors import (
    InvalidModelOutputError,
    ProviderNotConfiguredError,
    UpstreamProviderError,
    truncate_detail,
)
from dockmaster.llm.prompts import build_narrative_prompt, build_scenario_prompt
from dockmaster.llm.scope_service import ScopeService


def completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def mock_openai_client():
    """Mock OpenAI client."""
    mock = MagicMock()
    mock.chat.completions.create = AsyncMock()
    return mock


class FakeStream:
    """Stands in for the Anthropic message stream context manager."""

    def __init__(self, chunks=(), error=None):
        self.chunks = list(chunks)
        self.error = error

    async def __aenter__(self):
        if self.error:
            raise self.error
        return self

    async def __aexit__(self, *exc):
        return False

    @property
    def text_stream(self):
        async def gen():
            for chunk in self.chunks:
                yield chunk
        return gen()


def anthropic_client(stream):
    mock = MagicMock()
    mock.messages.stream = MagicMock(return_value=stream)
    return mock


def collect(service, prompt):
    async def run():
        return [chunk async for chunk in service.stream_narrative(prompt)]
    return asyncio.run(run())


def test_generate_scenario(settings, reference, mock_openai_client):
    content = reference.get_scenario("scenario-electrical").model_dump_json(by_alias=True)
    mock_openai_client.chat.completions.create.return_value = completion(content)
    service = ScopeService(settings, reference, openai_client=mock_openai_client)

    result = asyncio.run(service.generate_scenario("Maria's batteries keep dying"))

    assert result.scenario.id == "scenario-electrical"
    assert result.warnings == []
    kwargs = mock_openai_client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == settings.openai_model
    assert kwargs["response_format"] == {"type": "json_object"}
    assert kwargs["messages"][1] == {"role": "user", "content": "Maria's batteries keep dying"}
    assert "Labor rate: $165/hour" in kwargs["messages"][0]["content"]


def test_generate_scenario_attaches_audit_warnings(settings, reference, mock_openai_client):
    content = reference.get_scenario("scenario-engine").model_dump_json(by_alias=True)
    mock_openai_client.chat.completions.create.return_value = completion(content)
    service = ScopeService(settings, reference, openai_client=mock_openai_client)

    result = asyncio.run(service.generate_scenario("rough idle"))

    assert len(result.warnings) == 3
    assert result.to_dict()["auditWarnings"] == result.warnings
    assert result.to_dict()["stages"]["workOrder"]["tax"] == 164.0


def test_zero_quantity_in_model_output_is_reported_not_rejected(settings, reference, mock_openai_client):
    data = reference.get_scenario("scenario-electrical").model_dump(mode="json", by_alias=True)
    data["stages"]["workOrder"]["lineItems"][0]["quantity"] = 0
    mock_openai_client.chat.completions.create.return_value = completion(json.dumps(data))
    service = ScopeService(settings, reference, openai_client=mock_openai_client)

    result = asyncio.run(service.generate_scenario("batteries"))

    assert result.scenario.stages.work_order.line_items[0].quantity == 0
    assert any("quantity 0 is below 1" in w for w in result.warnings)


@pytest.mark.parametrize("content", [None, "", "not json", '{"id": "scenario-x"}'])
def test_invalid_model_output(settings, reference, mock_openai_client, content):
    mock_openai_client.chat.completions.create.return_value = completion(content)
    service = ScopeService(settings, reference, openai_client=mock_openai_client)

    with pytest.raises(InvalidModelOutputError) as exc_info:
        asyncio.run(service.generate_scenario("hello"))
    assert exc_info.value.status_code == 502


def test_upstream_status_error_is_truncated(settings, reference, mock_openai_client):
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    mock_openai_client.chat.completions.create.side_effect = openai.APIStatusError(
        "x" * 50, response=httpx.Response(503, request=request), body=None
    )
    service = ScopeService(replace(settings, error_detail_limit=10), reference, openai_client=mock_openai_client)

    with pytest.raises(UpstreamProviderError) as exc_info:
        asyncio.run(service.generate_scenario("hello"))

    error = exc_info.value
    assert error.upstream_status == 503
    assert error.detail == "x" * 10 + "..."
    assert str(error) == "OpenAI API error: 503 - " + "x" * 10 + "..."


def test_connection_error_maps_to_upstream(settings, reference, mock_openai_client):
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    mock_openai_client.chat.completions.create.side_effect = openai.APIConnectionError(request=request)
    service = ScopeService(settings, reference, openai_client=mock_openai_client)

    with pytest.raises(UpstreamProviderError) as exc_info:
        asyncio.run(service.generate_scenario("hello"))
    assert exc_info.value.upstream_status is None


def test_missing_openai_key(settings, reference):
    service = ScopeService(settings, reference)

    with pytest.raises(ProviderNotConfiguredError, match="OPENAI_API_KEY"):
        asyncio.run(service.generate_scenario("hello"))


def test_stream_narrative(settings, reference):
    client = anthropic_client(FakeStream(["Work order", " for Sea Breeze", "\nTotal: $1,200"]))
    service = ScopeService(settings, reference, anthropic_client=client)

    chunks = collect(service, "impeller job")

    assert "".join(chunks) == "Work order for Sea Breeze\nTotal: $1,200"
    kwargs = client.messages.stream.call_args.kwargs
    assert kwargs["model"] == settings.anthropic_model
    assert kwargs["max_tokens"] == settings.anthropic_max_tokens
    assert kwargs["messages"] == [{"role": "user", "content": "impeller job"}]


def test_stream_upstream_error(settings, reference):
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    error = anthropic.APIStatusError("overloaded", response=httpx.Response(529, request=request), body=None)
    service = ScopeService(settings, reference, anthropic_client=anthropic_client(FakeStream(error=error)))

    with pytest.raises(UpstreamProviderError) as exc_info:
        collect(service, "impeller job")
    assert exc_info.value.upstream_status == 529


def test_missing_anthropic_key(settings, reference):
    service = ScopeService(settings, reference)

    with pytest.raises(ProviderNotConfiguredError, match="ANTHROPIC_API_KEY"):
        collect(service, "hello")


def test_prompts_list_known_entities(reference):
    scenario_prompt = build_scenario_prompt(reference)
    narrative_prompt = build_narrative_prompt(reference)

    for prompt in (scenario_prompt, narrative_prompt):
        assert "Bayshore Marina" in prompt
        assert "Coastal Runner" in prompt
        assert "Robert Chen" in prompt
    assert 'customerId "cust-001" and vesselId "vessel-001"' in scenario_prompt
    assert "Tax: 7% on subtotal" in scenario_prompt


def test_truncate_detail():
    assert truncate_detail("  short  ", 10) == "short"
    assert truncate_detail("abcdef", 3) == "abc..."
    assert truncate_detail(None, 3) == ""
