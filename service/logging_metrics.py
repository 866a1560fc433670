"""
LLM Metrics Logging
Observability for model calls, function dispatch and conversation turns
"""

import logging
from typing import Dict, Any, List, Optional
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class LLMMetrics:
    """Structured log lines for the agent's LLM round trips"""

    @staticmethod
    def log_llm_call(
        task: str,
        provider: str,
        model: str,
        temperature: float,
        latency_ms: int,
        prompt_length: int,
        response_length: int,
        success: bool,
        function_calls_count: int = 0,
        error: Optional[str] = None
    ):
        """
        Log individual LLM API call metrics

        Args:
            task: Pass name (FIRST_PASS, SECOND_PASS, STREAM, VALIDATE)
            provider: Provider name (gemini)
            model: Model name
            temperature: Temperature used
            latency_ms: Call latency in milliseconds
            prompt_length: Prompt character count
            response_length: Response character count
            success: Whether call succeeded
            function_calls_count: Function calls requested by the model
            error: Error message if failed
        """
        log_data = {
            'event': 'LLM_CALL',
            'task': task,
            'provider': provider,
            'model': model,
            'temperature': temperature,
            'latency_ms': latency_ms,
            'prompt_length': prompt_length,
            'response_length': response_length,
            'function_calls_count': function_calls_count,
            'success': success,
            'error': error,
            'timestamp': _timestamp()
        }

        status = '✅' if success else '❌'
        logger.debug(f"{status} LLM_CALL | task={task} | {provider}:{model} | " +
                     f"temp={temperature} | latency={latency_ms}ms | " +
                     f"prompt={prompt_length}ch | response={response_length}ch | " +
                     f"calls={function_calls_count}" +
                     (f" | error={error}" if error else ""))

        return log_data

    @staticmethod
    def log_function_call(
        function_name: str,
        arguments: List[str],
        latency_ms: int,
        success: bool,
        error: Optional[str] = None
    ):
        """
        Log a single dispatched function call

        Args:
            function_name: Declared function name
            arguments: Argument names the model supplied
            latency_ms: Handler latency in milliseconds
            success: Whether the handler produced data
            error: Error message if failed
        """
        log_data = {
            'event': 'FUNCTION_CALL',
            'function_name': function_name,
            'arguments': arguments,
            'latency_ms': latency_ms,
            'success': success,
            'error': error,
            'timestamp': _timestamp()
        }

        status = '✅' if success else '⚠️'
        logger.info(f"{status} FUNCTION_CALL | fn={function_name} | " +
                    f"args={','.join(arguments) or '-'} | latency={latency_ms}ms" +
                    (f" | error={error}" if error else ""))

        return log_data

    @staticmethod
    def log_turn(
        turn_id: str,
        latency_ms: int,
        function_calls_count: int,
        failed_calls_count: int,
        second_pass: bool,
        recommendation_level: str,
        confidence: float,
        session_id: Optional[str] = None
    ):
        """
        Log a completed conversation turn

        Args:
            turn_id: Assistant message identifier
            latency_ms: End-to-end turn latency
            function_calls_count: Calls dispatched during the turn
            failed_calls_count: Calls that returned a failure result
            second_pass: Whether a second model pass ran
            recommendation_level: Urgency label attached to the reply
            confidence: Heuristic confidence score (0-1)
            session_id: Optional chat session identifier
        """
        log_data = {
            'event': 'TURN',
            'turn_id': turn_id,
            'session_id': session_id,
            'latency_ms': latency_ms,
            'function_calls_count': function_calls_count,
            'failed_calls_count': failed_calls_count,
            'second_pass': second_pass,
            'recommendation_level': recommendation_level,
            'confidence': round(confidence, 2),
            'timestamp': _timestamp()
        }

        logger.info(f"💬 TURN | turn={turn_id[:8]} | latency={latency_ms}ms | " +
                    f"calls={function_calls_count} (failed={failed_calls_count}) | " +
                    f"second_pass={'yes' if second_pass else 'no'} | " +
                    f"level={recommendation_level} | confidence={confidence:.2f}")

        return log_data

    @staticmethod
    def calculate_aggregate_metrics(logs: list) -> Dict[str, Any]:
        """
        Calculate aggregate metrics from log dictionaries

        Args:
            logs: List of log dicts returned by the log_* methods

        Returns:
            dict with aggregate statistics
        """
        if not logs:
            return {}

        llm_calls = [entry for entry in logs if entry.get('event') == 'LLM_CALL']
        function_calls = [entry for entry in logs if entry.get('event') == 'FUNCTION_CALL']
        turns = [entry for entry in logs if entry.get('event') == 'TURN']

        aggregates = {
            'total_events': len(logs),
            'llm_calls': len(llm_calls),
            'function_calls': len(function_calls),
            'turns': len(turns),
            'avg_latency_ms': sum(entry.get('latency_ms', 0) for entry in logs) / len(logs),
            'llm_metrics': {},
            'function_metrics': {},
            'turn_metrics': {}
        }

        if llm_calls:
            aggregates['llm_metrics'] = {
                'success_rate': sum(1 for c in llm_calls if c.get('success')) / len(llm_calls),
                'avg_latency_ms': sum(c.get('latency_ms', 0) for c in llm_calls) / len(llm_calls),
                'avg_response_length': sum(c.get('response_length', 0) for c in llm_calls) / len(llm_calls)
            }

        if function_calls:
            by_name: Dict[str, int] = {}
            for call in function_calls:
                by_name[call['function_name']] = by_name.get(call['function_name'], 0) + 1
            aggregates['function_metrics'] = {
                'success_rate': sum(1 for c in function_calls if c.get('success')) / len(function_calls),
                'avg_latency_ms': sum(c.get('latency_ms', 0) for c in function_calls) / len(function_calls),
                'calls_by_function': by_name
            }

        if turns:
            aggregates['turn_metrics'] = {
                'avg_function_calls': sum(t.get('function_calls_count', 0) for t in turns) / len(turns),
                'second_pass_rate': sum(1 for t in turns if t.get('second_pass')) / len(turns),
                'avg_confidence': sum(t.get('confidence', 0) for t in turns) / len(turns)
            }

        logger.info(f"📊 AGGREGATE_METRICS | events={aggregates['total_events']} | " +
                    f"avg_latency={aggregates['avg_latency_ms']:.0f}ms | " +
                    f"llm={len(llm_calls)} | functions={len(function_calls)} | turns={len(turns)}")

        return aggregates
