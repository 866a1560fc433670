"""
Campaign Store
In-memory campaign records for the connected Google Ads account

Writes (budget, status) only simulate the ads platform; nothing leaves the
process and a restart loses every mutation.
"""

import logging
import os
from dataclasses import dataclass, replace
from datetime import date
from typing import Callable, Dict, List, Any, Optional

from campaign_insights import generate_campaign_insights
from campaign_models import (
    BusinessContext,
    Campaign,
    CampaignInsight,
    CampaignStatus,
    CampaignType,
    InsightPriority,
    PerformanceMetric,
    UrgencyLevel,
)
from errors import NotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CampaignFilters:
    """Optional predicates, ANDed together"""
    status: Optional[CampaignStatus] = None
    type: Optional[CampaignType] = None
    min_roas: Optional[float] = None
    max_cpa: Optional[float] = None

    def matches(self, campaign: Campaign) -> bool:
        if self.status is not None and campaign.status != self.status:
            return False
        if self.type is not None and campaign.type != self.type:
            return False
        if self.min_roas is not None and campaign.roas < self.min_roas:
            return False
        if self.max_cpa is not None and campaign.cost_per_conversion > self.max_cpa:
            return False
        return True

    def applied(self) -> Dict[str, Any]:
        """Only the filters that were actually provided"""
        applied = {}
        if self.status is not None:
            applied['status'] = self.status.value
        if self.type is not None:
            applied['type'] = self.type.value
        if self.min_roas is not None:
            applied['minROAS'] = self.min_roas
        if self.max_cpa is not None:
            applied['maxCPA'] = self.max_cpa
        return applied


class CampaignStore:
    """Owns the canonical campaign list and answers lookups against it"""

    def __init__(
        self,
        campaigns: Optional[List[Campaign]] = None,
        business_context: Optional[BusinessContext] = None,
        portfolio_insights: Optional[List[CampaignInsight]] = None,
        today: Optional[Callable[[], date]] = None
    ):
        """
        Initialize the store

        Args:
            campaigns: Seed campaigns (defaults to the mock account)
            business_context: Advertiser targets (defaults to the mock account)
            portfolio_insights: Account-level insights (defaults to the mock account)
            today: Clock used for updated_at stamps
        """
        from mock_data import BUSINESS_CONTEXT, PORTFOLIO_INSIGHTS, build_campaigns

        self.use_mock = os.getenv("GOOGLE_ADS_USE_MOCK", "true").lower() == "true"
        if not self.use_mock:
            logger.warning("⚠️ Live Google Ads access is not available - serving mock campaign data")

        self._campaigns: List[Campaign] = list(campaigns) if campaigns is not None else build_campaigns()
        self.business_context = business_context or BUSINESS_CONTEXT
        self._portfolio_insights = list(portfolio_insights) if portfolio_insights is not None else list(PORTFOLIO_INSIGHTS)
        self._today = today or date.today

        logger.info(f"📦 CampaignStore loaded {len(self._campaigns)} campaigns for {self.business_context.company_name}")

    def _with_insights(self, campaign: Campaign) -> Campaign:
        return replace(campaign, insights=generate_campaign_insights(campaign, self.business_context))

    def _find(self, campaign_id: str) -> Optional[Campaign]:
        for campaign in self._campaigns:
            if campaign.id == campaign_id:
                return campaign
        return None

    def all(self) -> List[Campaign]:
        """Raw snapshot without generated insights"""
        return list(self._campaigns)

    def get_campaigns(self, filters: Optional[CampaignFilters] = None) -> List[Campaign]:
        filters = filters or CampaignFilters()
        result = [self._with_insights(c) for c in self._campaigns if filters.matches(c)]
        logger.debug(f"[STORE] get_campaigns filters={filters.applied()} -> {len(result)} campaigns")
        return result

    def get_campaign_by_id(self, campaign_id: str) -> Optional[Campaign]:
        campaign = self._find(campaign_id)
        if campaign is None:
            return None
        return self._with_insights(campaign)

    def get_campaigns_by_status(self, status: CampaignStatus) -> List[Campaign]:
        return [c for c in self._campaigns if c.status == status]

    def get_campaigns_by_type(self, campaign_type: CampaignType) -> List[Campaign]:
        return [c for c in self._campaigns if c.type == campaign_type]

    def get_top_performing(self, limit: int = 3) -> List[Campaign]:
        """ENABLED campaigns by ROAS, highest first; ties keep store order"""
        enabled = self.get_campaigns_by_status(CampaignStatus.ENABLED)
        return sorted(enabled, key=lambda c: c.roas, reverse=True)[:max(limit, 0)]

    def get_campaign_performance(self, campaign_id: str, days: int = 7) -> List[PerformanceMetric]:
        campaign = self._find(campaign_id)
        if campaign is None:
            raise NotFoundError(campaign_id)
        if days <= 0:
            return []
        return list(campaign.performance_7day[-days:])

    def get_portfolio_insights(self) -> List[CampaignInsight]:
        return list(self._portfolio_insights)

    def get_critical_insights(self) -> List[CampaignInsight]:
        return [
            insight for insight in self._portfolio_insights
            if insight.priority == InsightPriority.CRITICAL or insight.urgency == UrgencyLevel.IMMEDIATE
        ]

    def _replace(self, campaign_id: str, **changes) -> bool:
        for index, campaign in enumerate(self._campaigns):
            if campaign.id == campaign_id:
                self._campaigns[index] = replace(campaign, updated_at=self._today().isoformat(), **changes)
                return True
        logger.warning(f"⚠️ [STORE] Campaign {campaign_id} not found for update")
        return False

    def set_budget(self, campaign_id: str, budget: float) -> bool:
        """Simulated budget write-back; False when the campaign is unknown"""
        updated = self._replace(campaign_id, budget=budget)
        if updated:
            logger.info(f"💰 [STORE] {campaign_id} budget set to ${budget}/day")
        return updated

    def set_status(self, campaign_id: str, status: CampaignStatus) -> bool:
        """Simulated status write-back; non-enabled campaigns stop spending"""
        campaign = self._find(campaign_id)
        if campaign is None:
            logger.warning(f"⚠️ [STORE] Campaign {campaign_id} not found for status change")
            return False
        daily_spend = campaign.daily_spend if status == CampaignStatus.ENABLED else 0
        self._replace(campaign_id, status=status, daily_spend=daily_spend)
        logger.info(f"🔁 [STORE] {campaign_id} status set to {status.value}")
        return True
