"""
Mock Google Ads account for the StylePlus demo
Seed data for CampaignStore while live platform access is feature-flagged off
"""

from typing import List

from campaign_models import (
    BusinessContext,
    Campaign,
    CampaignInsight,
    CampaignStatus,
    CampaignType,
    ConfidenceLevel,
    EstimatedImpact,
    ImpactType,
    InsightCategory,
    InsightPriority,
    InsightType,
    PerformanceMetric,
    UrgencyLevel,
)

BUSINESS_CONTEXT = BusinessContext(
    company_name="StylePlus",
    industry="Fashion E-commerce",
    avg_order_value=85.50,
    target_roas=4.2,
    target_cpa=22.50,
    seasonality="Q4 Holiday Peak",
    competitors=["Nike", "Adidas", "Under Armour", "H&M", "Zara"],
    urgent_issues=[
        "Display campaign burning $45/day at high CPA",
        "Performance Max ready to scale (4.66% conv rate)",
        "Missing competitor keyword opportunities",
        "Mobile conversion rate 15% below desktop",
    ],
    business_goals=[
        "Scale holiday sales by 40%",
        "Improve overall ROAS to 4.5x",
        "Reduce cost per acquisition",
        "Increase mobile conversions",
        "Capture more competitor traffic",
    ],
)

WEEK = ["2024-12-22", "2024-12-23", "2024-12-24", "2024-12-25",
        "2024-12-26", "2024-12-27", "2024-12-28"]


def _week(rows: List[tuple]) -> List[PerformanceMetric]:
    """Build 7 daily metrics from (impr, clicks, conv, cost, revenue, roas, cpa, cvr) rows"""
    return [PerformanceMetric(day, *row) for day, row in zip(WEEK, rows)]


def build_campaigns() -> List[Campaign]:
    """Fresh copy of the seeded campaigns"""
    return [
        Campaign(
            id="camp_001",
            name="Brand Awareness - StylePlus Fashion",
            status=CampaignStatus.ENABLED,
            type=CampaignType.SEARCH,
            budget=75,
            daily_spend=68.50,
            impressions=15420,
            clicks=892,
            conversions=67,
            conversion_rate=3.62,
            cost_per_conversion=6.21,
            cost_per_click=1.85,
            click_through_rate=5.78,
            quality_score=8.2,
            roas=4.8,
            revenue=5733.50,
            created_at="2024-10-15",
            updated_at="2024-12-28",
            target_audience=["Fashion enthusiasts", "Young professionals", "Style conscious"],
            keywords=["stylish clothing", "fashion trends", "professional wear"],
            performance_7day=_week([
                (2180, 125, 9, 231.25, 769.50, 3.3, 25.69, 7.2),
                (2350, 142, 11, 262.70, 940.50, 3.6, 23.88, 7.7),
                (1980, 118, 8, 218.30, 684.00, 3.1, 27.29, 6.8),
                (1420, 78, 5, 144.30, 427.50, 3.0, 28.86, 6.4),
                (2680, 168, 14, 310.80, 1197.00, 3.9, 22.20, 8.3),
                (2590, 155, 12, 286.75, 1026.00, 3.6, 23.90, 7.7),
                (2220, 134, 10, 247.80, 855.00, 3.4, 24.78, 7.5),
            ]),
        ),
        Campaign(
            id="camp_002",
            name="Performance Max - Holiday Fashion Sale",
            status=CampaignStatus.ENABLED,
            type=CampaignType.PERFORMANCE_MAX,
            budget=150,
            daily_spend=143.20,
            impressions=28640,
            clicks=1820,
            conversions=198,
            conversion_rate=4.66,
            cost_per_conversion=6.40,
            cost_per_click=2.12,
            click_through_rate=6.35,
            quality_score=7.8,
            roas=5.2,
            revenue=16929.00,
            created_at="2024-11-01",
            updated_at="2024-12-28",
            target_audience=["Holiday shoppers", "Gift buyers", "Fashion lovers"],
            keywords=["holiday fashion", "winter sale", "fashion gifts", "holiday outfits"],
            performance_7day=_week([
                (4180, 265, 28, 561.80, 2394.00, 4.3, 20.06, 10.6),
                (4520, 295, 32, 625.40, 2736.00, 4.4, 19.54, 10.8),
                (3890, 248, 25, 525.76, 2137.50, 4.1, 21.03, 10.1),
                (2980, 185, 19, 392.20, 1624.50, 4.1, 20.64, 10.3),
                (5120, 338, 38, 716.56, 3249.00, 4.5, 18.86, 11.2),
                (4860, 312, 35, 661.44, 2992.50, 4.5, 18.90, 11.2),
                (4090, 268, 31, 568.16, 2652.50, 4.7, 18.33, 11.6),
            ]),
        ),
        Campaign(
            id="camp_003",
            name="Display Retargeting - Cart Abandoners",
            status=CampaignStatus.PAUSED,
            type=CampaignType.DISPLAY,
            budget=45,
            daily_spend=0,
            impressions=12580,
            clicks=356,
            conversions=24,
            conversion_rate=2.70,
            cost_per_conversion=18.41,
            cost_per_click=3.24,
            click_through_rate=2.83,
            quality_score=6.4,
            roas=2.1,
            revenue=2052.00,
            created_at="2024-09-20",
            updated_at="2024-12-26",
            target_audience=["Cart abandoners", "Previous visitors", "Product viewers"],
            performance_7day=_week([(0, 0, 0, 0, 0, 0, 0, 0)] * 7),
        ),
        Campaign(
            id="camp_004",
            name="Competitor Targeting - Nike Keywords",
            status=CampaignStatus.ENABLED,
            type=CampaignType.SEARCH,
            budget=35,
            daily_spend=31.80,
            impressions=8940,
            clicks=428,
            conversions=18,
            conversion_rate=4.21,
            cost_per_conversion=7.92,
            cost_per_click=1.68,
            click_through_rate=4.79,
            quality_score=7.1,
            roas=4.1,
            revenue=1539.00,
            created_at="2024-11-15",
            updated_at="2024-12-28",
            target_audience=["Nike customers", "Athletic wear buyers", "Competitor traffic"],
            keywords=["nike alternatives", "athletic wear sale", "sports fashion"],
            performance_7day=_week([
                (1280, 62, 3, 104.16, 256.50, 2.5, 34.72, 4.8),
                (1420, 69, 3, 115.92, 256.50, 2.2, 38.64, 4.3),
                (1180, 54, 2, 90.72, 171.00, 1.9, 45.36, 3.7),
                (890, 41, 2, 68.88, 171.00, 2.5, 34.44, 4.9),
                (1520, 75, 4, 126.00, 342.00, 2.7, 31.50, 5.3),
                (1380, 68, 3, 114.24, 256.50, 2.2, 38.08, 4.4),
                (1270, 59, 3, 99.12, 256.50, 2.6, 33.04, 5.1),
            ]),
        ),
        Campaign(
            id="camp_005",
            name="Shopping - Winter Collection",
            status=CampaignStatus.ENABLED,
            type=CampaignType.SHOPPING,
            budget=90,
            daily_spend=82.40,
            impressions=18750,
            clicks=1250,
            conversions=89,
            conversion_rate=7.12,
            cost_per_conversion=10.34,
            cost_per_click=1.45,
            click_through_rate=6.67,
            quality_score=7.6,
            roas=3.8,
            revenue=7609.50,
            created_at="2024-10-01",
            updated_at="2024-12-28",
            target_audience=["Winter fashion shoppers", "Cold weather clothing", "Seasonal buyers"],
            keywords=["winter coats", "warm clothing", "winter fashion", "cold weather gear"],
            performance_7day=_week([
                (2680, 178, 13, 258.10, 1111.50, 4.3, 19.85, 7.3),
                (2890, 195, 15, 282.75, 1282.50, 4.5, 18.85, 7.7),
                (2420, 162, 11, 234.90, 940.50, 4.0, 21.35, 6.8),
                (1890, 125, 8, 181.25, 684.00, 3.8, 22.66, 6.4),
                (3120, 218, 17, 316.10, 1453.50, 4.6, 18.59, 7.8),
                (2980, 205, 16, 297.25, 1368.00, 4.6, 18.58, 7.8),
                (2770, 187, 14, 271.15, 1197.00, 4.4, 19.37, 7.5),
            ]),
        ),
    ]


PORTFOLIO_INSIGHTS: List[CampaignInsight] = [
    CampaignInsight(
        type=InsightType.OPPORTUNITY,
        priority=InsightPriority.CRITICAL,
        title="Q4 Holiday Revenue Acceleration",
        description="Performance Max campaign shows exceptional performance metrics, ready for immediate scaling during peak holiday shopping period",
        recommendation="Increase Performance Max budget from $150 to $225/day to capture remaining holiday traffic. Expected additional revenue: $2,800-3,500",
        estimated_impact=EstimatedImpact(ImpactType.REVENUE_INCREASE, 3200, ConfidenceLevel.HIGH, "Next 7 days"),
        urgency=UrgencyLevel.IMMEDIATE,
        category=InsightCategory.OPPORTUNITY,
    ),
    CampaignInsight(
        type=InsightType.COMPETITIVE,
        priority=InsightPriority.HIGH,
        title="Competitor Keyword Gap",
        description="Missing visibility on high-value competitor keywords during holiday season when competitor traffic is 40% higher",
        recommendation="Launch expanded competitor targeting campaigns for Adidas and Under Armour keywords with $25/day budget each",
        estimated_impact=EstimatedImpact(ImpactType.TRAFFIC_INCREASE, 25, ConfidenceLevel.MEDIUM, "Weekly increase"),
        urgency=UrgencyLevel.THIS_WEEK,
        category=InsightCategory.OPPORTUNITY,
    ),
    CampaignInsight(
        type=InsightType.BUDGET,
        priority=InsightPriority.MEDIUM,
        title="Budget Reallocation Opportunity",
        description="Paused Display campaign budget ($45/day) can be reallocated to high-performing campaigns for better ROI",
        recommendation="Redistribute Display budget: $30 to Performance Max, $15 to Competitor Targeting for optimal holiday performance",
        estimated_impact=EstimatedImpact(ImpactType.ROAS_IMPROVEMENT, 1.2, ConfidenceLevel.HIGH, "Immediate"),
        urgency=UrgencyLevel.THIS_WEEK,
        category=InsightCategory.OPTIMIZATION,
    ),
    CampaignInsight(
        type=InsightType.CREATIVE,
        priority=InsightPriority.MEDIUM,
        title="Mobile Conversion Optimization",
        description="Mobile conversion rates 15% below desktop across all campaigns, indicating creative or landing page issues",
        recommendation="Implement mobile-optimized landing pages and test mobile-specific ad creatives with stronger calls-to-action",
        estimated_impact=EstimatedImpact(ImpactType.CONVERSION_INCREASE, 18, ConfidenceLevel.MEDIUM, "2-3 weeks"),
        urgency=UrgencyLevel.THIS_MONTH,
        category=InsightCategory.OPTIMIZATION,
    ),
    CampaignInsight(
        type=InsightType.SEASONAL,
        priority=InsightPriority.HIGH,
        title="Holiday Season Urgency",
        description="Only 4 days remaining in peak holiday shopping period. Current performance trends show opportunity for 40% revenue increase",
        recommendation="Execute emergency scaling plan: increase total daily budget from $350 to $475 across top-performing campaigns",
        estimated_impact=EstimatedImpact(ImpactType.REVENUE_INCREASE, 4200, ConfidenceLevel.HIGH, "Remaining holiday period"),
        urgency=UrgencyLevel.IMMEDIATE,
        category=InsightCategory.ALERT,
    ),
]
