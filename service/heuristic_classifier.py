"""
Heuristic Classifier
Keyword rules applied to conversation text: recommendation urgency, user
preferences, campaign mentions, visualization choice and response confidence

Every table is ordered and first match wins.
"""

import logging
from typing import Dict, List, Any, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

Rule = Tuple[str, Tuple[str, ...]]

RECOMMENDATION_LEVEL_RULES: List[Rule] = [
    ('critical', ('critical', 'urgent', 'immediate')),
    ('high', ('recommend', 'should', 'optimize')),
    ('medium', ('consider', 'might', 'could')),
]
DEFAULT_RECOMMENDATION_LEVEL = 'low'

COMMUNICATION_STYLE_RULES: List[Rule] = [
    ('concise', ('quick', 'summary', 'brief')),
    ('detailed', ('detail', 'explain', 'thorough')),
    ('technical', ('technical', 'deep dive')),
]

VISUALIZATION_PREFERENCE_RULES: List[Rule] = [
    ('charts', ('chart', 'graph')),
    ('tables', ('table', 'spreadsheet')),
    ('cards', ('card',)),
]

NOTIFICATION_LEVEL_RULES: List[Rule] = [
    ('critical-only', ('urgent', 'critical', 'immediate')),
    ('all', ('all', 'everything')),
    ('minimal', ('minimal', 'less')),
]

# Preference field -> rule table
PREFERENCE_RULES: List[Tuple[str, List[Rule]]] = [
    ('communication_style', COMMUNICATION_STYLE_RULES),
    ('data_visualization_preference', VISUALIZATION_PREFERENCE_RULES),
    ('notification_level', NOTIFICATION_LEVEL_RULES),
]

CAMPAIGN_KEYWORDS = [
    'Performance Max',
    'Brand Awareness',
    'Display Retargeting',
    'Competitor Targeting',
    'Shopping',
    'Holiday Fashion',
    'Winter Collection',
]

# Function name -> (visualization type, config); order is priority
VISUALIZATION_RULES: List[Tuple[Tuple[str, ...], str, Dict[str, Any]]] = [
    (('getCampaigns',), 'campaign-cards', {
        'title': 'Campaign Performance',
        'show_trends': True,
        'highlight_thresholds': True,
    }),
    (('analyzeCampaignPerformance',), 'performance-chart', {
        'title': 'Performance Analysis',
        'timeframe': '7 days',
        'chart_type': 'line',
        'metrics': ['ROAS', 'Conversion Rate', 'CPA'],
    }),
    (('generatePerformanceReport',), 'metrics-table', {
        'title': 'Performance Report',
        'metrics': ['Spend', 'Revenue', 'ROAS', 'Conversions'],
    }),
    (('getOptimizationPlan', 'getCompetitorInsights'), 'insights-list', {
        'title': 'Recommendations',
    }),
]

BASE_CONFIDENCE = 0.5
SPECIFIC_DATA_BONUS = 0.2
RECOMMENDATION_BONUS = 0.2
FUNCTION_CALL_BONUS = 0.3


def first_match(text: str, rules: Sequence[Rule]) -> Optional[str]:
    """Label of the first rule with any keyword present in text (case-insensitive)"""
    lowered = text.lower()
    for label, keywords in rules:
        if any(keyword in lowered for keyword in keywords):
            return label
    return None


class HeuristicClassifier:
    """Keyword classification over user and assistant messages"""

    @staticmethod
    def recommendation_level(text: str) -> str:
        return first_match(text, RECOMMENDATION_LEVEL_RULES) or DEFAULT_RECOMMENDATION_LEVEL

    @staticmethod
    def extract_preferences(user_message: str) -> Dict[str, str]:
        """
        Preference updates inferred from a user message

        Args:
            user_message: Raw user text

        Returns:
            dict of preference field -> value, only for fields that matched
        """
        preferences = {}
        for field_name, rules in PREFERENCE_RULES:
            label = first_match(user_message, rules)
            if label is not None:
                preferences[field_name] = label

        if preferences:
            logger.debug(f"[HEURISTIC] Inferred preferences: {preferences}")
        return preferences

    @staticmethod
    def extract_campaign_mentions(text: str) -> List[str]:
        lowered = text.lower()
        return [keyword for keyword in CAMPAIGN_KEYWORDS if keyword.lower() in lowered]

    @staticmethod
    def select_visualization(function_results: List[Any]) -> Optional[Dict[str, Any]]:
        """
        Pick a visualization from the turn's function results

        Args:
            function_results: FunctionCallInfo-like objects with name, status and result

        Returns:
            {type, data, config} or None when nothing displayable succeeded
        """
        for names, visualization_type, config in VISUALIZATION_RULES:
            for info in function_results:
                if info.name in names and info.status == 'success' and info.result:
                    return {
                        'type': visualization_type,
                        'data': info.result,
                        'config': dict(config),
                    }
        return None

    @staticmethod
    def calculate_confidence(text: str, has_function_calls: bool) -> float:
        lowered = text.lower()
        confidence = BASE_CONFIDENCE

        if '$' in text or '%' in text:
            confidence += SPECIFIC_DATA_BONUS
        if 'recommend' in lowered or 'suggest' in lowered:
            confidence += RECOMMENDATION_BONUS
        if has_function_calls:
            confidence += FUNCTION_CALL_BONUS

        return min(round(confidence, 2), 1.0)

    @staticmethod
    def estimate_tokens(history: List[Dict[str, Any]], response_text: str) -> int:
        """Rough estimate at one token per four characters of text parts"""
        input_chars = sum(
            len(part.get('text') or '')
            for message in history
            for part in message.get('parts', [])
            if isinstance(part, dict)
        )
        total = input_chars + len(response_text)
        return -(-total // 4)
