"""
Campaign data model
Enums and dataclasses for campaigns, insights, plans and proposals
"""

from dataclasses import dataclass, field, asdict, is_dataclass
from enum import Enum
from typing import Dict, List, Any, Optional, Union


class CampaignStatus(str, Enum):
    ENABLED = 'ENABLED'
    PAUSED = 'PAUSED'
    REMOVED = 'REMOVED'
    ENDED = 'ENDED'


class CampaignType(str, Enum):
    SEARCH = 'SEARCH'
    DISPLAY = 'DISPLAY'
    SHOPPING = 'SHOPPING'
    VIDEO = 'VIDEO'
    PERFORMANCE_MAX = 'PERFORMANCE_MAX'
    APP = 'APP'
    DISCOVERY = 'DISCOVERY'
    LOCAL = 'LOCAL'


class InsightType(str, Enum):
    PERFORMANCE = 'PERFORMANCE'
    BUDGET = 'BUDGET'
    TARGETING = 'TARGETING'
    CREATIVE = 'CREATIVE'
    KEYWORD = 'KEYWORD'
    AUDIENCE = 'AUDIENCE'
    SEASONAL = 'SEASONAL'
    COMPETITIVE = 'COMPETITIVE'
    OPPORTUNITY = 'OPPORTUNITY'
    ALERT = 'ALERT'


class InsightPriority(str, Enum):
    CRITICAL = 'CRITICAL'
    HIGH = 'HIGH'
    MEDIUM = 'MEDIUM'
    LOW = 'LOW'


class UrgencyLevel(str, Enum):
    IMMEDIATE = 'IMMEDIATE'
    THIS_WEEK = 'THIS_WEEK'
    THIS_MONTH = 'THIS_MONTH'
    NEXT_QUARTER = 'NEXT_QUARTER'


class InsightCategory(str, Enum):
    OPTIMIZATION = 'OPTIMIZATION'
    ALERT = 'ALERT'
    OPPORTUNITY = 'OPPORTUNITY'
    WARNING = 'WARNING'


class ImpactType(str, Enum):
    REVENUE_INCREASE = 'REVENUE_INCREASE'
    COST_REDUCTION = 'COST_REDUCTION'
    CONVERSION_INCREASE = 'CONVERSION_INCREASE'
    ROAS_IMPROVEMENT = 'ROAS_IMPROVEMENT'
    TRAFFIC_INCREASE = 'TRAFFIC_INCREASE'


class ConfidenceLevel(str, Enum):
    HIGH = 'HIGH'
    MEDIUM = 'MEDIUM'
    LOW = 'LOW'


class RiskLevel(str, Enum):
    LOW = 'LOW'
    MEDIUM = 'MEDIUM'
    HIGH = 'HIGH'


class OptimizationPriority(str, Enum):
    CRITICAL = 'CRITICAL'
    HIGH = 'HIGH'
    MEDIUM = 'MEDIUM'
    LOW = 'LOW'


class ActionType(str, Enum):
    BUDGET_INCREASE = 'BUDGET_INCREASE'
    BUDGET_DECREASE = 'BUDGET_DECREASE'
    BID_ADJUSTMENT = 'BID_ADJUSTMENT'
    KEYWORD_ADD = 'KEYWORD_ADD'
    KEYWORD_REMOVE = 'KEYWORD_REMOVE'
    AD_CREATIVE_UPDATE = 'AD_CREATIVE_UPDATE'
    AUDIENCE_ADJUSTMENT = 'AUDIENCE_ADJUSTMENT'
    CAMPAIGN_PAUSE = 'CAMPAIGN_PAUSE'
    CAMPAIGN_ENABLE = 'CAMPAIGN_ENABLE'
    LANDING_PAGE_UPDATE = 'LANDING_PAGE_UPDATE'


class ComplexityLevel(str, Enum):
    LOW = 'LOW'
    MEDIUM = 'MEDIUM'
    HIGH = 'HIGH'


@dataclass(frozen=True)
class PerformanceMetric:
    """One day of campaign performance"""
    date: str
    impressions: int
    clicks: int
    conversions: int
    cost: float
    revenue: float
    roas: float
    cost_per_conversion: float
    conversion_rate: float


@dataclass(frozen=True)
class EstimatedImpact:
    type: ImpactType
    value: float
    confidence: ConfidenceLevel
    timeframe: str


@dataclass(frozen=True)
class CampaignInsight:
    type: InsightType
    priority: InsightPriority
    title: str
    description: str
    recommendation: str
    estimated_impact: EstimatedImpact
    urgency: UrgencyLevel
    category: InsightCategory


@dataclass(frozen=True)
class Campaign:
    """
    A Google Ads campaign with aggregate and daily performance

    Ratios (conversion_rate, cost_per_conversion, ...) are trusted inputs
    and are never recomputed from the raw counts.
    """
    id: str
    name: str
    status: CampaignStatus
    type: CampaignType
    budget: float
    daily_spend: float
    impressions: int
    clicks: int
    conversions: int
    conversion_rate: float
    cost_per_conversion: float
    cost_per_click: float
    click_through_rate: float
    quality_score: float
    roas: float
    revenue: float
    created_at: str
    updated_at: str
    target_audience: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)
    performance_7day: List[PerformanceMetric] = field(default_factory=list)
    insights: List[CampaignInsight] = field(default_factory=list)


@dataclass(frozen=True)
class BusinessContext:
    """Advertiser profile, read-only for the lifetime of the process"""
    company_name: str
    industry: str
    avg_order_value: float
    target_roas: float
    target_cpa: float
    seasonality: str
    competitors: List[str]
    urgent_issues: List[str]
    business_goals: List[str]


@dataclass(frozen=True)
class OptimizationAction:
    type: ActionType
    description: str
    recommended_value: Union[float, str]
    reason: str
    risk: RiskLevel
    current_value: Optional[Union[float, str]] = None


@dataclass(frozen=True)
class OptimizationPlan:
    campaign_id: str
    priority: OptimizationPriority
    actions: List[OptimizationAction]
    estimated_impact: EstimatedImpact
    implementation_complexity: ComplexityLevel
    timeline: str


@dataclass(frozen=True)
class BudgetProposal:
    campaign_id: str
    current_budget: float
    proposed_budget: float
    reason: str
    estimated_impact: EstimatedImpact
    risk_level: RiskLevel
    timeframe: str


def to_dict(value: Any) -> Any:
    """Convert dataclasses, enums and containers into plain JSON-ready values"""
    if is_dataclass(value) and not isinstance(value, type):
        return to_dict(asdict(value))
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(k): to_dict(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_dict(v) for v in value]
    return value


def safe_divide(numerator: float, denominator: float) -> float:
    """Ratio that reports 0 instead of NaN/infinity for a zero denominator"""
    if not denominator:
        return 0.0
    return numerator / denominator
