"""
Google Gemini API service wrapper for Python backend
Generation with function calling, streaming and a reachability probe
"""

import google.generativeai as genai
import os
import json
import time
import logging
from dataclasses import dataclass, field
from typing import AsyncIterator, Optional, Dict, Any, List, Tuple

from errors import UpstreamError
from function_registry import FunctionCall
from logging_metrics import LLMMetrics

logger = logging.getLogger(__name__)

DEFAULT_MODEL = 'gemini-2.5-flash'
TOP_P = 0.8
TOP_K = 40


@dataclass(frozen=True)
class ModelRequest:
    """One model pass; built fresh for every call and never mutated"""
    history: Tuple[Dict[str, Any], ...]
    system_prompt: str
    function_declarations: Optional[Tuple[Dict[str, Any], ...]] = None
    task: str = 'FIRST_PASS'


@dataclass
class ModelResponse:
    text: str
    function_calls: List[FunctionCall] = field(default_factory=list)
    processing_time_ms: int = 0
    model_name: str = DEFAULT_MODEL


def to_gemini_schema(schema: Dict[str, Any]) -> Dict[str, Any]:
    """Translate a JSON-schema style declaration into Gemini's dialect (upper-case type names)"""
    translated = {}
    for key, value in schema.items():
        if key == 'type' and isinstance(value, str):
            translated[key] = value.upper()
        elif key == 'properties' and isinstance(value, dict):
            translated[key] = {name: to_gemini_schema(prop) for name, prop in value.items()}
        elif key == 'items' and isinstance(value, dict):
            translated[key] = to_gemini_schema(value)
        elif key == 'required' and not value:
            continue
        else:
            translated[key] = value
    return translated


def to_gemini_tools(function_declarations: Optional[List[Dict[str, Any]]]) -> Optional[List[Dict[str, Any]]]:
    if not function_declarations:
        return None

    declarations = []
    for declaration in function_declarations:
        entry = {'name': declaration['name'], 'description': declaration.get('description', '')}
        parameters = declaration.get('parameters') or {}
        # Gemini rejects OBJECT schemas without properties
        if parameters.get('properties'):
            entry['parameters'] = to_gemini_schema(parameters)
        declarations.append(entry)
    return [{'function_declarations': declarations}]


def to_plain(value: Any) -> Any:
    """Convert proto map/repeated containers from the SDK into plain dicts and lists"""
    if isinstance(value, (str, bytes, int, float, bool)) or value is None:
        return value
    if hasattr(value, 'items'):
        return {key: to_plain(item) for key, item in value.items()}
    if hasattr(value, '__iter__'):
        return [to_plain(item) for item in value]
    return value


def sanitize_history(history: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """JSON round-trip so dataclass-free payloads with dates or enums reach the SDK as plain values"""
    return json.loads(json.dumps(list(history), default=str))


class GeminiService:
    """Wrapper for Google Gemini API"""

    def __init__(self):
        self.api_key = os.getenv("GEMINI_API_KEY")
        self.model_name = os.getenv("GEMINI_MODEL", DEFAULT_MODEL)
        self.temperature = float(os.getenv("LLM_TEMPERATURE", "0.7"))
        self.max_output_tokens = int(os.getenv("LLM_MAX_OUTPUT_TOKENS", "2048"))
        self.configured = False
        self._configure()

    def _configure(self):
        """Configure the Gemini API client"""
        if not self.api_key or self.api_key == "your-gemini-api-key-here":
            logger.warning("⚠️ Gemini API key not configured. Chat turns will fail until GEMINI_API_KEY is set.")
            return

        try:
            genai.configure(api_key=self.api_key)
            self.configured = True
            logger.info(f"✅ Gemini service initialized with model: {self.model_name}")
        except Exception as e:
            logger.error(f"❌ Failed to initialize Gemini service: {e}")
            self.configured = False

    def is_configured(self) -> bool:
        """Check if Gemini is properly configured"""
        return self.configured

    def _generation_config(self, max_output_tokens: Optional[int] = None):
        return genai.types.GenerationConfig(
            temperature=self.temperature,
            max_output_tokens=max_output_tokens or self.max_output_tokens,
            top_p=TOP_P,
            top_k=TOP_K,
        )

    def _model(self, system_prompt: Optional[str], function_declarations: Optional[List[Dict[str, Any]]] = None):
        return genai.GenerativeModel(
            self.model_name,
            system_instruction=system_prompt or None,
            tools=to_gemini_tools(function_declarations),
        )

    @staticmethod
    def _map_error(e: Exception) -> UpstreamError:
        message = str(e)
        if "API_KEY_INVALID" in message or "API key not valid" in message:
            return UpstreamError("Invalid Gemini API key. Please check your GEMINI_API_KEY.")
        if "QUOTA_EXCEEDED" in message or "quota" in message.lower():
            return UpstreamError("Gemini API quota exceeded. Please check your usage limits.")
        if "RATE_LIMIT_EXCEEDED" in message or "429" in message:
            return UpstreamError("Gemini API rate limit exceeded. Please wait and try again.")
        return UpstreamError(f"Gemini API error: {message}")

    @staticmethod
    def _parse_response(response) -> Tuple[str, List[FunctionCall]]:
        """Walk candidate parts; response.text raises on function-call-only replies"""
        text_parts = []
        function_calls = []

        candidates = getattr(response, 'candidates', None) or []
        if not candidates:
            return '', []

        content = getattr(candidates[0], 'content', None)
        for part in getattr(content, 'parts', None) or []:
            function_call = getattr(part, 'function_call', None)
            if function_call is not None and getattr(function_call, 'name', ''):
                function_calls.append(FunctionCall(
                    name=function_call.name,
                    args=to_plain(function_call.args) or {},
                ))
                continue
            text = getattr(part, 'text', '')
            if text:
                text_parts.append(text)

        return ''.join(text_parts), function_calls

    async def generate(
        self,
        history: List[Dict[str, Any]],
        system_prompt: str,
        function_declarations: Optional[List[Dict[str, Any]]] = None,
        task: str = 'GENERATE'
    ) -> ModelResponse:
        """
        Generate a reply for a conversation history

        Args:
            history: Gemini contents ({role, parts} dicts, roles 'user'/'model')
            system_prompt: System instruction for context
            function_declarations: Optional function catalogue the model may call
            task: Label for metrics logging

        Returns:
            ModelResponse with text and any requested function calls
        """
        if not self.is_configured():
            raise UpstreamError("Gemini API not configured. Please set GEMINI_API_KEY environment variable.")

        start_time = time.time()
        contents = sanitize_history(history)
        prompt_length = len(system_prompt or '') + len(json.dumps(contents))

        logger.info(f"🤖 [{task}] Gemini request: {len(contents)} messages, " +
                    f"{len(function_declarations or [])} functions")

        try:
            model = self._model(system_prompt, function_declarations)
            response = await model.generate_content_async(
                contents,
                generation_config=self._generation_config(),
            )
            text, function_calls = self._parse_response(response)

        except Exception as e:
            latency_ms = int((time.time() - start_time) * 1000)
            LLMMetrics.log_llm_call(
                task=task,
                provider='gemini',
                model=self.model_name,
                temperature=self.temperature,
                latency_ms=latency_ms,
                prompt_length=prompt_length,
                response_length=0,
                success=False,
                error=str(e)
            )
            logger.error(f"❌ Gemini API error: {e}")
            raise self._map_error(e) from e

        latency_ms = int((time.time() - start_time) * 1000)
        LLMMetrics.log_llm_call(
            task=task,
            provider='gemini',
            model=self.model_name,
            temperature=self.temperature,
            latency_ms=latency_ms,
            prompt_length=prompt_length,
            response_length=len(text),
            success=True,
            function_calls_count=len(function_calls)
        )
        logger.info(f"✅ [{task}] Gemini response: {len(text)} characters, {len(function_calls)} function calls")

        return ModelResponse(
            text=text,
            function_calls=function_calls,
            processing_time_ms=latency_ms,
            model_name=self.model_name,
        )

    async def generate_stream(
        self,
        history: List[Dict[str, Any]],
        system_prompt: str
    ) -> AsyncIterator[str]:
        """Yield incremental text chunks; no function calling on this path"""
        if not self.is_configured():
            raise UpstreamError("Gemini API not configured. Please set GEMINI_API_KEY environment variable.")

        start_time = time.time()
        contents = sanitize_history(history)
        response_length = 0

        try:
            model = self._model(system_prompt)
            response = await model.generate_content_async(
                contents,
                generation_config=self._generation_config(),
                stream=True,
            )
            async for chunk in response:
                text, _ = self._parse_response(chunk)
                if text:
                    response_length += len(text)
                    yield text

        except Exception as e:
            LLMMetrics.log_llm_call(
                task='STREAM',
                provider='gemini',
                model=self.model_name,
                temperature=self.temperature,
                latency_ms=int((time.time() - start_time) * 1000),
                prompt_length=len(system_prompt or ''),
                response_length=response_length,
                success=False,
                error=str(e)
            )
            logger.error(f"❌ Gemini streaming error: {e}")
            raise self._map_error(e) from e

        LLMMetrics.log_llm_call(
            task='STREAM',
            provider='gemini',
            model=self.model_name,
            temperature=self.temperature,
            latency_ms=int((time.time() - start_time) * 1000),
            prompt_length=len(system_prompt or ''),
            response_length=response_length,
            success=True
        )

    async def validate_connection(self) -> bool:
        """Cheap reachability probe; never raises"""
        if not self.is_configured():
            return False

        try:
            model = self._model(None)
            response = await model.generate_content_async(
                'Reply with OK.',
                generation_config=self._generation_config(max_output_tokens=8),
            )
            text, _ = self._parse_response(response)
            logger.info(f"✅ Gemini connection validated ({len(text)} characters)")
            return True
        except Exception as e:
            logger.warning(f"⚠️ Gemini connection check failed: {e}")
            return False
