"""
Unit tests for structured metric log lines
"""

from logging_metrics import LLMMetrics


class TestLogLines:
    """Test the dicts returned by each log call"""

    def test_llm_call(self):
        entry = LLMMetrics.log_llm_call(
            task='FIRST_PASS', provider='gemini', model='gemini-2.5-flash', temperature=0.7,
            latency_ms=420, prompt_length=1200, response_length=300, success=True, function_calls_count=2,
        )
        assert entry['event'] == 'LLM_CALL'
        assert entry['function_calls_count'] == 2
        assert entry['error'] is None

    def test_turn_rounds_confidence(self):
        entry = LLMMetrics.log_turn(
            turn_id='msg_abc', latency_ms=900, function_calls_count=1, failed_calls_count=0,
            second_pass=True, recommendation_level='high', confidence=0.6666,
        )
        assert entry['confidence'] == 0.67
        assert entry['session_id'] is None


class TestAggregates:
    """Test aggregation over collected log dicts"""

    def test_empty(self):
        assert LLMMetrics.calculate_aggregate_metrics([]) == {}

    def test_mixed_events(self):
        logs = [
            LLMMetrics.log_llm_call('FIRST_PASS', 'gemini', 'm', 0.7, 100, 10, 20, True),
            LLMMetrics.log_llm_call('SECOND_PASS', 'gemini', 'm', 0.7, 300, 10, 40, False, error='boom'),
            LLMMetrics.log_function_call('getCampaigns', [], 2, True),
            LLMMetrics.log_function_call('getCampaigns', ['status'], 4, True),
            LLMMetrics.log_function_call('getOptimizationPlan', [], 0, False, error='Missing required parameter: campaignId'),
            LLMMetrics.log_turn('msg_1', 600, 3, 1, True, 'high', 1.0),
        ]

        aggregates = LLMMetrics.calculate_aggregate_metrics(logs)

        assert aggregates['total_events'] == 6
        assert aggregates['llm_metrics']['success_rate'] == 0.5
        assert aggregates['llm_metrics']['avg_latency_ms'] == 200
        assert aggregates['function_metrics']['calls_by_function'] == {'getCampaigns': 2, 'getOptimizationPlan': 1}
        assert aggregates['function_metrics']['avg_latency_ms'] == 2
        assert aggregates['turn_metrics']['second_pass_rate'] == 1.0
