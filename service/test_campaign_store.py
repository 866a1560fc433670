"""
Unit tests for the campaign store
"""

from dataclasses import replace

import pytest

from campaign_models import CampaignStatus, CampaignType
from campaign_store import CampaignFilters, CampaignStore
from errors import NotFoundError


class TestCampaignFilters:
    """Test filter predicates and lookups"""

    def test_no_filters_returns_all_in_order(self, store):
        campaigns = store.get_campaigns()
        assert [c.id for c in campaigns] == ['camp_001', 'camp_002', 'camp_003', 'camp_004', 'camp_005']

    def test_status_filter(self, store):
        paused = store.get_campaigns(CampaignFilters(status=CampaignStatus.PAUSED))
        assert [c.id for c in paused] == ['camp_003']

    def test_filters_are_anded(self, store):
        filters = CampaignFilters(status=CampaignStatus.ENABLED, type=CampaignType.SEARCH, min_roas=4.5)
        assert [c.id for c in store.get_campaigns(filters)] == ['camp_001']

    def test_min_roas_is_inclusive(self, store):
        assert [c.id for c in store.get_campaigns(CampaignFilters(min_roas=4.8))] == ['camp_001', 'camp_002']

    def test_max_cpa_filter(self, store):
        cheap = store.get_campaigns(CampaignFilters(max_cpa=7.0))
        assert [c.id for c in cheap] == ['camp_001', 'camp_002']

    def test_applied_only_lists_provided_filters(self):
        filters = CampaignFilters(status=CampaignStatus.ENABLED, max_cpa=10)
        assert filters.applied() == {'status': 'ENABLED', 'maxCPA': 10}

    def test_returned_list_is_a_copy(self, store):
        campaigns = store.get_campaigns()
        campaigns.clear()
        assert len(store.get_campaigns()) == 5

    def test_get_by_id_attaches_insights(self, store):
        campaign = store.get_campaign_by_id('camp_002')
        assert [i.title for i in campaign.insights] == ['Scale Opportunity']
        assert store.get_campaign_by_id('camp_001').insights[0].title == 'Quality Score Excellence'

    def test_get_by_id_unknown(self, store):
        assert store.get_campaign_by_id('nope') is None

    def test_by_type(self, store):
        assert [c.id for c in store.get_campaigns_by_type(CampaignType.SEARCH)] == ['camp_001', 'camp_004']


class TestTopPerforming:
    """Test ranking of enabled campaigns"""

    def test_top_three_by_roas(self, store):
        assert [c.id for c in store.get_top_performing()] == ['camp_002', 'camp_001', 'camp_004']

    def test_paused_campaigns_excluded(self, store):
        ids = [c.id for c in store.get_top_performing(10)]
        assert 'camp_003' not in ids
        assert len(ids) == 4

    def test_ties_keep_store_order(self, store):
        tied = [replace(c, roas=3.0, status=CampaignStatus.ENABLED) for c in store.all()]
        tied_store = CampaignStore(campaigns=tied)
        assert [c.id for c in tied_store.get_top_performing(5)] == [c.id for c in tied]


class TestPerformanceAndInsights:
    """Test daily metrics and portfolio insights"""

    def test_trailing_days(self, store):
        metrics = store.get_campaign_performance('camp_001', days=3)
        assert [m.date for m in metrics] == ['2024-12-26', '2024-12-27', '2024-12-28']

    def test_unknown_campaign_raises(self, store):
        with pytest.raises(NotFoundError, match="Campaign nope not found"):
            store.get_campaign_performance('nope')

    def test_critical_insights(self, store):
        titles = [i.title for i in store.get_critical_insights()]
        assert titles == ['Q4 Holiday Revenue Acceleration', 'Holiday Season Urgency']


class TestSimulatedWrites:
    """Test budget/status write-back"""

    def test_set_budget_stamps_updated_at(self, store):
        assert store.set_budget('camp_002', 225) is True
        campaign = store.get_campaign_by_id('camp_002')
        assert campaign.budget == 225
        assert campaign.updated_at == '2024-12-28'

    def test_set_budget_unknown_campaign(self, store):
        assert store.set_budget('nope', 10) is False

    def test_pausing_zeroes_daily_spend(self, store):
        assert store.set_status('camp_001', CampaignStatus.PAUSED) is True
        campaign = store.get_campaign_by_id('camp_001')
        assert campaign.status == CampaignStatus.PAUSED
        assert campaign.daily_spend == 0

    def test_stores_do_not_share_state(self, store):
        store.set_budget('camp_001', 999)
        assert CampaignStore().get_campaign_by_id('camp_001').budget == 75
