"""
Unit tests for the Gemini client wrapper
SDK model objects are replaced with fakes; no network access
"""

from types import SimpleNamespace

import pytest

import gemini_service
from errors import UpstreamError
from function_registry import FUNCTION_DECLARATIONS
from gemini_service import GeminiService, sanitize_history, to_gemini_schema, to_gemini_tools, to_plain


def text_part(text):
    return SimpleNamespace(text=text, function_call=None)


def call_part(name, args):
    return SimpleNamespace(text='', function_call=SimpleNamespace(name=name, args=args))


def fake_response(*parts):
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=list(parts)))])


class FakeModel:
    """Stands in for genai.GenerativeModel"""
    instances = []
    reply = None

    def __init__(self, model_name, system_instruction=None, tools=None):
        self.model_name = model_name
        self.system_instruction = system_instruction
        self.tools = tools
        self.contents = None
        FakeModel.instances.append(self)

    async def generate_content_async(self, contents, generation_config=None, stream=False):
        self.contents = contents
        if isinstance(FakeModel.reply, Exception):
            raise FakeModel.reply
        return FakeModel.reply


@pytest.fixture
def service(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setattr(gemini_service.genai, "GenerativeModel", FakeModel)
    FakeModel.instances = []
    FakeModel.reply = None

    svc = GeminiService()
    svc.configured = True
    monkeypatch.setattr(svc, "_generation_config", lambda max_output_tokens=None: {})
    return svc


class TestSchemaTranslation:
    """Test declaration translation to Gemini's schema dialect"""

    def test_types_upper_cased(self):
        schema = to_gemini_schema({
            'type': 'object',
            'properties': {'campaignIds': {'type': 'array', 'items': {'type': 'string'}}},
            'required': ['campaignIds'],
        })
        assert schema['type'] == 'OBJECT'
        assert schema['properties']['campaignIds']['type'] == 'ARRAY'
        assert schema['properties']['campaignIds']['items']['type'] == 'STRING'
        assert schema['required'] == ['campaignIds']

    def test_empty_required_dropped(self):
        assert 'required' not in to_gemini_schema({'type': 'object', 'properties': {}, 'required': []})

    def test_tools_omit_empty_parameters(self):
        tools = to_gemini_tools(FUNCTION_DECLARATIONS)
        declarations = {d['name']: d for d in tools[0]['function_declarations']}

        assert len(declarations) == 9
        assert 'parameters' not in declarations['getCompetitorInsights']
        assert declarations['getOptimizationPlan']['parameters']['required'] == ['campaignId']
        assert FUNCTION_DECLARATIONS[0]['parameters']['type'] == 'object'

    def test_no_tools(self):
        assert to_gemini_tools(None) is None
        assert to_gemini_tools([]) is None


class TestPlainValues:
    """Test proto-to-plain conversion and history sanitizing"""

    def test_nested_containers(self):
        assert to_plain({'ids': ('camp_001', 'camp_002'), 'budget': 225.0}) == {
            'ids': ['camp_001', 'camp_002'],
            'budget': 225.0,
        }

    def test_sanitize_history_stringifies_unknown_values(self):
        from datetime import date
        history = [{'role': 'user', 'parts': [{'function_response': {'name': 'x', 'response': {'day': date(2024, 12, 28)}}}]}]
        sanitized = sanitize_history(history)
        assert sanitized[0]['parts'][0]['function_response']['response']['day'] == '2024-12-28'


class TestGenerate:
    """Test generate against a fake model"""

    @pytest.mark.asyncio
    async def test_text_and_calls_parsed(self, service):
        FakeModel.reply = fake_response(
            text_part("Checking your campaigns."),
            call_part('getCampaigns', {'status': 'ENABLED'}),
        )

        response = await service.generate(
            [{'role': 'user', 'parts': [{'text': 'hi'}]}],
            "system",
            FUNCTION_DECLARATIONS,
            task='FIRST_PASS',
        )

        assert response.text == "Checking your campaigns."
        assert response.function_calls[0].name == 'getCampaigns'
        assert response.function_calls[0].args == {'status': 'ENABLED'}
        model = FakeModel.instances[0]
        assert model.system_instruction == "system"
        assert len(model.tools[0]['function_declarations']) == 9

    @pytest.mark.asyncio
    async def test_no_candidates(self, service):
        FakeModel.reply = SimpleNamespace(candidates=[])
        response = await service.generate([], "system")
        assert response.text == ''
        assert response.function_calls == []

    @pytest.mark.asyncio
    async def test_sdk_errors_mapped(self, service):
        FakeModel.reply = RuntimeError("429 RATE_LIMIT_EXCEEDED")
        with pytest.raises(UpstreamError, match="rate limit exceeded"):
            await service.generate([], "system")

        FakeModel.reply = RuntimeError("API key not valid")
        with pytest.raises(UpstreamError, match="Invalid Gemini API key"):
            await service.generate([], "system")

    @pytest.mark.asyncio
    async def test_not_configured(self, service):
        service.configured = False
        with pytest.raises(UpstreamError, match="not configured"):
            await service.generate([], "system")
        assert await service.validate_connection() is False

    @pytest.mark.asyncio
    async def test_validate_connection_swallows_errors(self, service):
        FakeModel.reply = RuntimeError("connection reset")
        assert await service.validate_connection() is False

        FakeModel.reply = fake_response(text_part("OK"))
        assert await service.validate_connection() is True
