"""
Unit tests for the conversation orchestrator turn loop
Uses a scripted model client in place of Gemini
"""

import pytest

from conversation_context import ConversationContext
from conversation_orchestrator import TurnState
from errors import TurnError, UpstreamError


class TestTextOnlyTurn:
    """Turns where the model answers without calling functions"""

    @pytest.mark.asyncio
    async def test_single_pass(self, make_orchestrator, responses):
        orchestrator, client = make_orchestrator([responses.text("Hi! Ask me about your campaigns.")])
        result = await orchestrator.run_turn("hello", ConversationContext())

        assert len(client.requests) == 1
        assert client.requests[0]['task'] == 'FIRST_PASS'
        assert client.requests[0]['history'] == [{'role': 'user', 'parts': [{'text': 'hello'}]}]
        assert result.message.content == "Hi! Ask me about your campaigns."
        assert result.message.function_calls == []
        assert result.message.data_visualization is None
        assert result.message.metadata['recommendation_level'] == 'low'
        assert result.message.metadata['confidence'] == 0.5
        assert result.states == [TurnState.IDLE, TurnState.AWAITING_MODEL_FIRST_PASS, TurnState.IDLE]
        assert len(result.context.history) == 2

    @pytest.mark.asyncio
    async def test_prior_history_is_sent(self, make_orchestrator, responses):
        context = ConversationContext().updated("first question", "first answer")
        orchestrator, client = make_orchestrator([responses.text("second answer")])

        await orchestrator.run_turn("second question", context)

        sent = client.requests[0]['history']
        assert [m['role'] for m in sent] == ['user', 'model', 'user']
        assert sent[-1]['parts'][0]['text'] == 'second question'

    @pytest.mark.asyncio
    async def test_system_prompt_carries_business_and_context(self, make_orchestrator, responses):
        context = ConversationContext().updated("How is Performance Max?", "Strong")
        orchestrator, client = make_orchestrator([responses.text("ok")])

        await orchestrator.run_turn("and now?", context)

        prompt = client.requests[0]['system_prompt']
        assert 'StylePlus' in prompt
        assert 'Target ROAS: 4.2x' in prompt
        assert 'Recently mentioned campaigns: Performance Max' in prompt
        assert '- getCampaigns: Retrieve all Google Ads campaigns' in prompt
        assert 'ALWAYS call functions' in prompt
        assert len(client.requests[0]['function_declarations']) == 9


class TestFunctionCallingTurn:
    """Turns where the model requests functions"""

    @pytest.mark.asyncio
    async def test_valid_and_invalid_calls(self, make_orchestrator, responses):
        orchestrator, client = make_orchestrator([
            responses.calls([
                ('getCampaigns', {'status': 'ENABLED'}),
                ('getOptimizationPlan', {}),
            ]),
            responses.text("Your Performance Max is at 5.2x ROAS. I recommend raising its budget."),
        ])
        context = ConversationContext()

        result = await orchestrator.run_turn("How are my campaigns?", context)

        assert [r['task'] for r in client.requests] == ['FIRST_PASS', 'SECOND_PASS']
        second_history = client.requests[1]['history']
        assert len(second_history) == 5
        assert second_history[1] == {
            'role': 'model',
            'parts': [{'function_call': {'name': 'getCampaigns', 'args': {'status': 'ENABLED'}}}],
        }
        failed_response = second_history[4]['parts'][0]['function_response']
        assert failed_response['name'] == 'getOptimizationPlan'
        assert failed_response['response']['success'] is False
        assert failed_response['response']['error'] == 'Missing required parameter: campaignId'

        message = result.message
        assert [i.status for i in message.function_calls] == ['success', 'error']
        assert message.function_calls[0].result['total_campaigns'] == 4
        assert message.data_visualization['type'] == 'campaign-cards'
        assert message.metadata['function_calls_count'] == 2
        assert message.metadata['recommendation_level'] == 'high'
        assert message.metadata['confidence'] == 1.0
        assert result.states == [
            TurnState.IDLE,
            TurnState.AWAITING_MODEL_FIRST_PASS,
            TurnState.AWAITING_FUNCTION_RESULTS,
            TurnState.AWAITING_MODEL_SECOND_PASS,
            TurnState.IDLE,
        ]

        assert result.context.actions_taken.to_list() == ['getCampaigns(status)', 'getOptimizationPlan()']
        assert result.context.mentioned_campaigns.to_list() == ['Performance Max']
        assert len(context.actions_taken) == 0

    @pytest.mark.asyncio
    async def test_partial_failure_still_runs_second_pass(self, make_orchestrator, responses):
        orchestrator, client = make_orchestrator([
            responses.calls([
                ('getOptimizationPlan', {'campaignId': 'nope'}),
                ('getCompetitorInsights', {}),
            ]),
            responses.text("Nike holds 28.5% share; I couldn't find campaign nope."),
        ])
        result = await orchestrator.run_turn("optimize nope and show competitors", ConversationContext())

        assert len(client.requests) == 2
        assert result.message.function_calls[0].error == 'Campaign nope not found'
        assert result.message.function_calls[1].status == 'success'

    @pytest.mark.asyncio
    async def test_second_pass_calls_ignored(self, make_orchestrator, responses):
        orchestrator, client = make_orchestrator([
            responses.calls([('getCompetitorInsights', {})]),
            responses.calls([('getCampaigns', {})], text="Nike holds 28.5% share."),
        ])
        result = await orchestrator.run_turn("competitors?", ConversationContext())

        assert len(client.requests) == 2
        assert result.message.content == "Nike holds 28.5% share."
        assert [i.name for i in result.message.function_calls] == ['getCompetitorInsights']
        assert result.message.data_visualization['type'] == 'insights-list'

    @pytest.mark.asyncio
    async def test_empty_second_pass_keeps_first_text(self, make_orchestrator, responses):
        orchestrator, _ = make_orchestrator([
            responses.calls([('getCampaigns', {})], text="Let me pull your campaigns."),
            responses.text(""),
        ])
        result = await orchestrator.run_turn("campaigns", ConversationContext())
        assert result.message.content == "Let me pull your campaigns."

    @pytest.mark.asyncio
    async def test_budget_execution_mutates_store(self, make_orchestrator, responses, store):
        orchestrator, _ = make_orchestrator([
            responses.calls([('executeBudgetChange', {'campaignId': 'camp_002', 'newBudget': 225})]),
            responses.text("Done - Performance Max now runs at $225/day."),
        ])
        await orchestrator.run_turn("Set Performance Max to 225", ConversationContext())
        assert store.get_campaign_by_id('camp_002').budget == 225


class TestTurnFailures:
    """Model failures halt the turn"""

    @pytest.mark.asyncio
    async def test_first_pass_failure(self, make_orchestrator):
        orchestrator, _ = make_orchestrator([UpstreamError("Gemini API quota exceeded. Please check your usage limits.")])
        context = ConversationContext()

        with pytest.raises(TurnError, match="quota exceeded") as excinfo:
            await orchestrator.run_turn("hello", context)

        assert isinstance(excinfo.value.cause, UpstreamError)
        assert len(context.history) == 0

    @pytest.mark.asyncio
    async def test_second_pass_failure(self, make_orchestrator, responses):
        orchestrator, client = make_orchestrator([
            responses.calls([('getCampaigns', {})]),
            UpstreamError("Gemini API error: connection reset"),
        ])

        with pytest.raises(TurnError, match="connection reset"):
            await orchestrator.run_turn("campaigns", ConversationContext())
        assert len(client.requests) == 2

    @pytest.mark.asyncio
    async def test_all_calls_failing_halts_turn(self, make_orchestrator, responses):
        orchestrator, client = make_orchestrator([
            responses.calls([
                ('getOptimizationPlan', {'campaignId': 'nope'}),
                ('bogus', {}),
            ]),
            responses.text("unused second pass"),
        ])
        context = ConversationContext()

        with pytest.raises(TurnError) as excinfo:
            await orchestrator.run_turn("optimize campaign nope", context)

        assert len(client.requests) == 1
        assert 'Campaign nope not found' in str(excinfo.value)
        assert 'Unknown function: bogus' in str(excinfo.value)
        assert len(context.actions_taken) == 0


class TestContextBoundsAcrossTurns:
    """Context buffers stay bounded when threaded through many turns"""

    @pytest.mark.asyncio
    async def test_twenty_turns(self, make_orchestrator, responses):
        keywords = ['Performance Max', 'Brand Awareness', 'Display Retargeting',
                    'Competitor Targeting', 'Shopping', 'Holiday Fashion', 'Winter Collection']
        scripted = []
        for turn in range(20):
            scripted.append(responses.calls([('getCampaigns', {}), ('getCompetitorInsights', {})]))
            scripted.append(responses.text(f"Turn {turn}: {keywords[turn % len(keywords)]} looks steady."))
        orchestrator, client = make_orchestrator(scripted)

        context = ConversationContext()
        for turn in range(20):
            result = await orchestrator.run_turn(f"Question {turn} about {keywords[(turn + 3) % len(keywords)]}", context)
            context = result.context

            assert len(context.history) <= 10
            assert len(context.history) == min(2 * (turn + 1), 10)
            mentions = context.mentioned_campaigns.to_list()
            assert len(mentions) <= 5
            assert len(set(mentions)) == len(mentions)
            assert len(context.actions_taken) <= 10

        assert len(client.requests) == 40
        assert context.history_messages()[0]['parts'][0]['text'].startswith('Question 15')
        assert len(context.actions_taken) == 10
