"""
Campaign-specific insight rules
Threshold checks against the advertiser's ROAS/CPA targets
"""

import logging
from typing import List

from campaign_models import (
    BusinessContext,
    Campaign,
    CampaignInsight,
    CampaignStatus,
    ConfidenceLevel,
    EstimatedImpact,
    ImpactType,
    InsightCategory,
    InsightPriority,
    InsightType,
    UrgencyLevel,
)

logger = logging.getLogger(__name__)

SCALE_ROAS_MULTIPLIER = 1.2
HIGH_CPA_MULTIPLIER = 1.5
EXCELLENT_QUALITY_SCORE = 8


def generate_campaign_insights(campaign: Campaign, business: BusinessContext) -> List[CampaignInsight]:
    """
    Derive insights for a single campaign

    Args:
        campaign: Campaign snapshot
        business: Advertiser targets

    Returns:
        List of CampaignInsight, possibly empty
    """
    insights = []

    if campaign.roas > business.target_roas * SCALE_ROAS_MULTIPLIER:
        insights.append(CampaignInsight(
            type=InsightType.PERFORMANCE,
            priority=InsightPriority.HIGH,
            title="Scale Opportunity",
            description=f"Campaign exceeding target ROAS ({campaign.roas}x vs {business.target_roas}x target)",
            recommendation="Increase budget by 50-100% to capture more volume at this performance level",
            estimated_impact=EstimatedImpact(
                type=ImpactType.REVENUE_INCREASE,
                value=campaign.revenue * 0.5,
                confidence=ConfidenceLevel.HIGH,
                timeframe="Next 7 days",
            ),
            urgency=UrgencyLevel.THIS_WEEK,
            category=InsightCategory.OPPORTUNITY,
        ))

    if campaign.quality_score >= EXCELLENT_QUALITY_SCORE:
        insights.append(CampaignInsight(
            type=InsightType.PERFORMANCE,
            priority=InsightPriority.MEDIUM,
            title="Quality Score Excellence",
            description=f"High quality score of {campaign.quality_score} indicates strong ad relevance",
            recommendation="Use this campaign structure as template for other campaigns",
            estimated_impact=EstimatedImpact(
                type=ImpactType.COST_REDUCTION,
                value=15,
                confidence=ConfidenceLevel.HIGH,
                timeframe="Ongoing",
            ),
            urgency=UrgencyLevel.THIS_MONTH,
            category=InsightCategory.OPTIMIZATION,
        ))

    if campaign.cost_per_conversion > business.target_cpa * HIGH_CPA_MULTIPLIER:
        insights.append(CampaignInsight(
            type=InsightType.PERFORMANCE,
            priority=InsightPriority.HIGH,
            title="High Cost Per Conversion",
            description=f"CPA of ${campaign.cost_per_conversion} exceeds target of ${business.target_cpa}",
            recommendation="Optimize targeting, improve ad copy, or pause underperforming keywords",
            estimated_impact=EstimatedImpact(
                type=ImpactType.COST_REDUCTION,
                value=(campaign.cost_per_conversion - business.target_cpa) * campaign.conversions,
                confidence=ConfidenceLevel.MEDIUM,
                timeframe="2-3 weeks",
            ),
            urgency=UrgencyLevel.THIS_WEEK,
            category=InsightCategory.WARNING,
        ))

    logger.debug(f"[INSIGHTS] {campaign.id}: {len(insights)} insights generated")
    return insights


def generate_campaign_recommendations(campaign: Campaign, business: BusinessContext) -> List[str]:
    """Short textual next steps for a single campaign"""
    recommendations = []

    if campaign.status == CampaignStatus.PAUSED:
        recommendations.append(f"Reactivate {campaign.name} with optimized targeting to capture holiday traffic")

    if campaign.roas > business.target_roas:
        recommendations.append(
            f"Scale {campaign.name} budget by ${round(campaign.budget * 0.5)} to maximize profitable traffic"
        )

    if campaign.conversion_rate > 5:
        recommendations.append(f"Expand {campaign.name} audience targeting to similar demographics")

    if campaign.quality_score < 7:
        recommendations.append(
            f"Improve {campaign.name} ad copy and landing page relevance to boost quality score"
        )

    return recommendations
