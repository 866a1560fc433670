"""
Shared fixtures for the ads agent service tests

- store/engine/registry seeded from the StylePlus mock account with a fixed clock
- scripted model client standing in for Gemini in orchestrator and HTTP tests
"""

from datetime import date
from typing import Any, Dict, List, Optional

import pytest

from analytics_engine import AnalyticsEngine
from campaign_store import CampaignStore
from conversation_orchestrator import ConversationOrchestrator
from function_registry import FunctionCall, FunctionRegistry
from gemini_service import ModelResponse

FIXED_TODAY = date(2024, 12, 28)


class ScriptedModelClient:
    """Returns queued responses in order; queued exceptions are raised instead"""

    def __init__(self, responses: List[Any]):
        self.responses = list(responses)
        self.requests: List[Dict[str, Any]] = []

    async def generate(self, history, system_prompt, function_declarations=None, task='GENERATE'):
        self.requests.append({
            'history': history,
            'system_prompt': system_prompt,
            'function_declarations': function_declarations,
            'task': task,
        })
        if not self.responses:
            raise AssertionError("Model client called more times than scripted")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def text_response(text: str) -> ModelResponse:
    return ModelResponse(text=text, processing_time_ms=5, model_name='fake-model')


def call_response(calls: List[tuple], text: str = '') -> ModelResponse:
    return ModelResponse(
        text=text,
        function_calls=[FunctionCall(name=name, args=args) for name, args in calls],
        processing_time_ms=5,
        model_name='fake-model',
    )


@pytest.fixture
def store() -> CampaignStore:
    return CampaignStore(today=lambda: FIXED_TODAY)


@pytest.fixture
def engine(store) -> AnalyticsEngine:
    return AnalyticsEngine(store, today=lambda: FIXED_TODAY)


@pytest.fixture
def registry(store, engine) -> FunctionRegistry:
    return FunctionRegistry(store, engine)


@pytest.fixture
def make_orchestrator(registry):
    """Factory: scripted responses -> (orchestrator, client)"""
    def _make(responses: List[Any], business_context: Optional[Any] = None):
        client = ScriptedModelClient(responses)
        return ConversationOrchestrator(client, registry, business_context), client
    return _make


@pytest.fixture
def responses():
    """Builders for scripted model responses"""
    class Builders:
        text = staticmethod(text_response)
        calls = staticmethod(call_response)
    return Builders
