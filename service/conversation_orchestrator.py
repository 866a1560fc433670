"""
Conversation Orchestrator
Runs one conversational turn: prompt assembly, first model pass, parallel
function dispatch, second model pass and context update

The orchestrator keeps no session state. Callers pass the current
ConversationContext in and thread the returned one into the next turn.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Any, Optional

from campaign_models import BusinessContext
from conversation_context import ConversationContext
from errors import TurnError
from function_registry import FunctionCall, FunctionCallResult, FunctionRegistry
from gemini_service import ModelRequest, ModelResponse
from heuristic_classifier import HeuristicClassifier
from logging_metrics import LLMMetrics

logger = logging.getLogger(__name__)


class TurnState(str, Enum):
    IDLE = 'IDLE'
    AWAITING_MODEL_FIRST_PASS = 'AWAITING_MODEL_FIRST_PASS'
    AWAITING_FUNCTION_RESULTS = 'AWAITING_FUNCTION_RESULTS'
    AWAITING_MODEL_SECOND_PASS = 'AWAITING_MODEL_SECOND_PASS'


@dataclass
class FunctionCallInfo:
    name: str
    arguments: Dict[str, Any]
    status: str
    result: Any = None
    execution_time: int = 0
    error: Optional[str] = None

    @classmethod
    def from_result(cls, call: FunctionCall, result: FunctionCallResult) -> 'FunctionCallInfo':
        return cls(
            name=call.name,
            arguments=dict(call.args),
            status='success' if result.success else 'error',
            result=result.data,
            execution_time=result.execution_time_ms,
            error=result.error,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'arguments': self.arguments,
            'result': self.result,
            'status': self.status,
            'execution_time': self.execution_time,
            'error': self.error,
        }


@dataclass
class AssistantMessage:
    id: str
    content: str
    timestamp: datetime
    function_calls: List[FunctionCallInfo] = field(default_factory=list)
    data_visualization: Optional[Dict[str, Any]] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    role: str = 'assistant'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'role': self.role,
            'content': self.content,
            'timestamp': self.timestamp.isoformat(),
            'function_calls': [info.to_dict() for info in self.function_calls],
            'data_visualization': self.data_visualization,
            'metadata': dict(self.metadata),
        }


@dataclass
class TurnResult:
    message: AssistantMessage
    context: ConversationContext
    states: List[TurnState] = field(default_factory=list)


def new_message_id() -> str:
    return f"msg_{uuid.uuid4().hex[:12]}"


def _call_message(call: FunctionCall) -> Dict[str, Any]:
    return {'role': 'model', 'parts': [{'function_call': {'name': call.name, 'args': dict(call.args)}}]}


def _response_message(call: FunctionCall, result: FunctionCallResult) -> Dict[str, Any]:
    return {'role': 'user', 'parts': [{'function_response': FunctionRegistry.create_function_response(call, result)}]}


RESPONSE_GUIDELINES = """
- Use a strategic, consultative tone and speak to the numbers
- Structure replies as: Data/Analysis (from function results), Strategic Insight, Next Actions
- End every response with 2-3 specific follow-up options
- Offer drill-down analysis: campaign, then ad group, then keyword, then search term
- Never explain lack of data access; call a function instead
- Ask for confirmation before executing budget changes or campaign actions"""

EXPERTISE_GUIDELINES = """
- Provide expert-level Google Ads knowledge
- Understand e-commerce seasonality and the urgency of peak periods
- Calculate ROI and impact with precision
- Consider mobile vs desktop performance differences
- Factor in competitor activity and market conditions"""


class ConversationOrchestrator:
    """Drives a single turn between the user, the model and the function registry"""

    def __init__(self, model_client, registry: FunctionRegistry, business_context: Optional[BusinessContext] = None):
        """
        Initialize the orchestrator

        Args:
            model_client: Object exposing async generate(history, system_prompt, function_declarations, task)
            registry: FunctionRegistry used to dispatch function calls
            business_context: Advertiser context for the system prompt (defaults to the registry store's)
        """
        self.model_client = model_client
        self.registry = registry
        self.business = business_context or registry.store.business_context

    # ------------------------------------------------------------------
    # Prompt assembly
    # ------------------------------------------------------------------

    def _format_business_context(self) -> str:
        business = self.business
        issues = '\n'.join(f"• {issue}" for issue in business.urgent_issues)
        goals = '\n'.join(f"• {goal}" for goal in business.business_goals)
        return (
            f"- Industry: {business.industry}\n"
            f"- Company: {business.company_name}\n"
            f"- Current Season: {business.seasonality}\n"
            f"- Target ROAS: {business.target_roas}x\n"
            f"- Average Order Value: ${business.avg_order_value}\n"
            f"- Target CPA: ${business.target_cpa}\n"
            f"- Key Competitors: {', '.join(business.competitors)}\n"
            f"\nCURRENT URGENT ISSUES:\n{issues}\n"
            f"\nBUSINESS GOALS:\n{goals}"
        )

    def _format_available_functions(self, declarations: List[Dict[str, Any]]) -> str:
        lines = [f"- {d['name']}: {d['description']}" for d in declarations]
        return "AVAILABLE FUNCTIONS:\n" + '\n'.join(lines)

    def build_system_prompt(self, context: ConversationContext) -> str:
        declarations = self.registry.get_function_declarations()
        return (
            f"You are an expert Google Ads manager for {self.business.company_name}, "
            f"a {self.business.industry} business.\n\n"
            f"BUSINESS CONTEXT:\n{self._format_business_context()}\n\n"
            f"CONVERSATION CONTEXT:\n{context.to_prompt_summary()}\n\n"
            f"{self._format_available_functions(declarations)}\n\n"
            f"RESPONSE GUIDELINES:{RESPONSE_GUIDELINES}\n\n"
            f"EXPERTISE LEVEL:{EXPERTISE_GUIDELINES}\n\n"
            "CRITICAL INSTRUCTIONS:\n"
            "- ALWAYS call functions for any question about campaigns, performance, budgets or competitors\n"
            "- Use function results as the only source of campaign numbers\n"
            "- Present results conversationally with strategic insights and follow-up options"
        )

    # ------------------------------------------------------------------
    # Turn execution
    # ------------------------------------------------------------------

    async def _generate(self, request: ModelRequest) -> ModelResponse:
        try:
            return await self.model_client.generate(
                list(request.history),
                request.system_prompt,
                list(request.function_declarations) if request.function_declarations else None,
                task=request.task,
            )
        except Exception as e:
            logger.error(f"❌ [TURN] Model call failed during {request.task}: {e}")
            raise TurnError(str(e), cause=e) from e

    async def run_turn(
        self,
        user_message: str,
        context: ConversationContext,
        session_id: Optional[str] = None
    ) -> TurnResult:
        """
        Run one conversational turn

        Args:
            user_message: The user's text
            context: Current conversation context (not modified)
            session_id: Optional session identifier for logging

        Returns:
            TurnResult with the assistant message and the next context

        Raises:
            TurnError: when either model pass fails or every dispatched function call fails
        """
        start_time = time.time()
        states = [TurnState.IDLE]

        history = context.history_messages()
        history.append({'role': 'user', 'parts': [{'text': user_message}]})

        system_prompt = self.build_system_prompt(context)
        declarations = tuple(self.registry.get_function_declarations())

        logger.info(f"💬 [TURN] Starting turn: {user_message[:80]!r} " +
                    f"(history={len(history)} messages, session={session_id or '-'})")

        states.append(TurnState.AWAITING_MODEL_FIRST_PASS)
        first = await self._generate(ModelRequest(
            history=tuple(history),
            system_prompt=system_prompt,
            function_declarations=declarations,
            task='FIRST_PASS',
        ))

        final_text = first.text
        calls: List[FunctionCall] = list(first.function_calls)
        call_infos: List[FunctionCallInfo] = []
        processing_time_ms = first.processing_time_ms

        if calls:
            states.append(TurnState.AWAITING_FUNCTION_RESULTS)
            logger.info(f"🔧 [TURN] Model requested {len(calls)} function calls: {[c.name for c in calls]}")
            results = await self.registry.execute_batch(calls)
            call_infos = [FunctionCallInfo.from_result(c, r) for c, r in zip(calls, results)]

            failed = [info.name for info in call_infos if info.status == 'error']
            if failed:
                logger.warning(f"⚠️ [TURN] {len(failed)}/{len(calls)} function calls failed: {failed}")

            if not any(result.success for result in results):
                errors = '; '.join(f"{info.name}: {info.error}" for info in call_infos)
                logger.error(f"❌ [TURN] All function calls failed, halting turn: {errors}")
                raise TurnError(f"All function calls failed ({errors})")

            extended = list(history)
            for call, result in zip(calls, results):
                extended.append(_call_message(call))
                extended.append(_response_message(call, result))

            states.append(TurnState.AWAITING_MODEL_SECOND_PASS)
            second = await self._generate(ModelRequest(
                history=tuple(extended),
                system_prompt=system_prompt,
                function_declarations=declarations,
                task='SECOND_PASS',
            ))
            processing_time_ms += second.processing_time_ms

            if second.function_calls:
                logger.warning(f"⚠️ [TURN] Ignoring {len(second.function_calls)} function calls " +
                               f"requested in second pass: {[c.name for c in second.function_calls]}")

            if second.text:
                final_text = second.text
            else:
                logger.warning("⚠️ [TURN] Second pass returned no text, keeping first-pass text")

        states.append(TurnState.IDLE)

        response_time_ms = int((time.time() - start_time) * 1000)
        recommendation_level = HeuristicClassifier.recommendation_level(final_text)
        confidence = HeuristicClassifier.calculate_confidence(final_text, bool(calls))

        message = AssistantMessage(
            id=new_message_id(),
            content=final_text,
            timestamp=datetime.now(timezone.utc),
            function_calls=call_infos,
            data_visualization=HeuristicClassifier.select_visualization(call_infos),
            metadata={
                'tokens_used': HeuristicClassifier.estimate_tokens(history, final_text),
                'response_time_ms': response_time_ms,
                'model_time_ms': processing_time_ms,
                'confidence': confidence,
                'function_calls_count': len(call_infos),
                'recommendation_level': recommendation_level,
            },
        )

        LLMMetrics.log_turn(
            turn_id=message.id,
            latency_ms=response_time_ms,
            function_calls_count=len(call_infos),
            failed_calls_count=len([i for i in call_infos if i.status == 'error']),
            second_pass=bool(calls),
            recommendation_level=recommendation_level,
            confidence=confidence,
            session_id=session_id,
        )

        return TurnResult(
            message=message,
            context=context.updated(user_message, final_text, calls),
            states=states,
        )
