"""
Function Registry
The seam between model-emitted function calls and the campaign backend

Declares the function catalogue handed to the model, turns each call's raw
argument mapping into a typed argument object, dispatches it, and wraps the
outcome into a FunctionCallResult. Nothing raises past execute_function_call.
"""

import asyncio
import copy
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Any, Optional, Tuple, Type

from analytics_engine import AnalyticsEngine, TIMEFRAME_DAYS
from campaign_models import CampaignStatus, CampaignType, to_dict
from campaign_store import CampaignFilters, CampaignStore
from errors import NotFoundError, UnknownFunctionError, ValidationError
from logging_metrics import LLMMetrics

logger = logging.getLogger(__name__)


FUNCTION_DECLARATIONS: List[Dict[str, Any]] = [
    {
        "name": "getCampaigns",
        "description": "Retrieve all Google Ads campaigns with performance metrics and insights",
        "parameters": {
            "type": "object",
            "properties": {
                "status": {
                    "type": "string",
                    "description": "Filter by campaign status",
                    "enum": ["ENABLED", "PAUSED", "REMOVED", "ENDED"]
                },
                "type": {
                    "type": "string",
                    "description": "Filter by campaign type",
                    "enum": ["SEARCH", "DISPLAY", "SHOPPING", "VIDEO", "PERFORMANCE_MAX", "APP", "DISCOVERY", "LOCAL"]
                },
                "minROAS": {
                    "type": "number",
                    "description": "Minimum ROAS threshold for filtering"
                },
                "maxCPA": {
                    "type": "number",
                    "description": "Maximum cost per acquisition for filtering"
                }
            },
            "required": []
        }
    },
    {
        "name": "analyzeCampaignPerformance",
        "description": "Analyze performance metrics for specific campaign or entire portfolio",
        "parameters": {
            "type": "object",
            "properties": {
                "campaignId": {
                    "type": "string",
                    "description": "Specific campaign ID to analyze (optional - if not provided, analyzes all campaigns)"
                }
            },
            "required": []
        }
    },
    {
        "name": "getOptimizationPlan",
        "description": "Generate specific optimization recommendations for a campaign",
        "parameters": {
            "type": "object",
            "properties": {
                "campaignId": {
                    "type": "string",
                    "description": "Campaign ID to generate optimization plan for"
                }
            },
            "required": ["campaignId"]
        }
    },
    {
        "name": "proposeBudgetChange",
        "description": "Calculate impact and propose budget changes for campaigns",
        "parameters": {
            "type": "object",
            "properties": {
                "campaignId": {
                    "type": "string",
                    "description": "Campaign ID to modify budget for"
                },
                "newBudget": {
                    "type": "number",
                    "description": "Proposed new daily budget amount"
                },
                "reason": {
                    "type": "string",
                    "description": "Reason for budget change"
                }
            },
            "required": ["campaignId", "newBudget", "reason"]
        }
    },
    {
        "name": "executeCampaignAction",
        "description": "Execute campaign management actions (enable, pause, remove)",
        "parameters": {
            "type": "object",
            "properties": {
                "campaignId": {
                    "type": "string",
                    "description": "Campaign ID to perform action on"
                },
                "action": {
                    "type": "string",
                    "description": "Action to perform",
                    "enum": ["enable", "pause", "remove"]
                },
                "reason": {
                    "type": "string",
                    "description": "Reason for the action"
                }
            },
            "required": ["campaignId", "action"]
        }
    },
    {
        "name": "getCompetitorInsights",
        "description": "Analyze competitor landscape and identify opportunities",
        "parameters": {
            "type": "object",
            "properties": {},
            "required": []
        }
    },
    {
        "name": "generatePerformanceReport",
        "description": "Generate comprehensive performance report for specified timeframe",
        "parameters": {
            "type": "object",
            "properties": {
                "timeframe": {
                    "type": "string",
                    "description": "Report timeframe",
                    "enum": ["7d", "14d", "30d"]
                },
                "campaignIds": {
                    "type": "array",
                    "description": "Specific campaign IDs to include (optional)",
                    "items": {
                        "type": "string",
                        "description": "Campaign ID string"
                    }
                }
            },
            "required": []
        }
    },
    {
        "name": "getCampaignPerformance",
        "description": "Get detailed performance metrics for a specific campaign over time",
        "parameters": {
            "type": "object",
            "properties": {
                "campaignId": {
                    "type": "string",
                    "description": "Campaign ID to get performance data for"
                },
                "days": {
                    "type": "number",
                    "description": "Number of days of historical data to retrieve (default: 7)"
                }
            },
            "required": ["campaignId"]
        }
    },
    {
        "name": "executeBudgetChange",
        "description": "Execute approved budget changes for campaigns",
        "parameters": {
            "type": "object",
            "properties": {
                "campaignId": {
                    "type": "string",
                    "description": "Campaign ID to update budget for"
                },
                "newBudget": {
                    "type": "number",
                    "description": "New daily budget amount"
                }
            },
            "required": ["campaignId", "newBudget"]
        }
    },
]

CAMPAIGN_ACTION_STATUS = {
    'enable': CampaignStatus.ENABLED,
    'pause': CampaignStatus.PAUSED,
    'remove': CampaignStatus.REMOVED,
}


@dataclass(frozen=True)
class FunctionCall:
    """A structured call emitted by the model"""
    name: str
    args: Dict[str, Any] = field(default_factory=dict)


@dataclass
class FunctionCallResult:
    success: bool
    data: Any = None
    error: Optional[str] = None
    execution_time_ms: int = 0
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'data': self.data,
            'error': self.error,
            'execution_time_ms': self.execution_time_ms,
            'metadata': self.metadata,
        }


# ----------------------------------------------------------------------
# Argument coercion helpers
# ----------------------------------------------------------------------

def _require(args: Dict[str, Any], name: str) -> Any:
    value = args.get(name)
    if value is None or value == '':
        raise ValidationError(f"Missing required parameter: {name}")
    return value


def _as_str(value: Any, name: str) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"Parameter {name} should be a string, got {type(value).__name__}")
    return value


def _as_number(value: Any, name: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"Parameter {name} should be a number, got bool")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip().lstrip('$'))
        except ValueError:
            pass
    raise ValidationError(f"Parameter {name} should be a number, got {type(value).__name__}")


def _as_enum(value: Any, name: str, enum_type):
    text = _as_str(value, name).upper()
    try:
        return enum_type(text)
    except ValueError:
        allowed = ', '.join(e.value for e in enum_type)
        raise ValidationError(f"Parameter {name} must be one of: {allowed}")


def _optional(args: Dict[str, Any], name: str, convert: Callable, *extra) -> Any:
    value = args.get(name)
    if value is None:
        return None
    return convert(value, name, *extra)


# ----------------------------------------------------------------------
# Typed argument variants, one per declared function
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class GetCampaignsArgs:
    filters: CampaignFilters

    @classmethod
    def from_args(cls, args: Dict[str, Any]) -> 'GetCampaignsArgs':
        return cls(filters=CampaignFilters(
            status=_optional(args, 'status', _as_enum, CampaignStatus),
            type=_optional(args, 'type', _as_enum, CampaignType),
            min_roas=_optional(args, 'minROAS', _as_number),
            max_cpa=_optional(args, 'maxCPA', _as_number),
        ))


@dataclass(frozen=True)
class AnalyzeCampaignPerformanceArgs:
    campaign_id: Optional[str] = None

    @classmethod
    def from_args(cls, args: Dict[str, Any]) -> 'AnalyzeCampaignPerformanceArgs':
        return cls(campaign_id=_optional(args, 'campaignId', _as_str) or None)


@dataclass(frozen=True)
class GetOptimizationPlanArgs:
    campaign_id: str

    @classmethod
    def from_args(cls, args: Dict[str, Any]) -> 'GetOptimizationPlanArgs':
        return cls(campaign_id=_as_str(_require(args, 'campaignId'), 'campaignId'))


@dataclass(frozen=True)
class ProposeBudgetChangeArgs:
    campaign_id: str
    new_budget: float
    reason: str

    @classmethod
    def from_args(cls, args: Dict[str, Any]) -> 'ProposeBudgetChangeArgs':
        campaign_id = _as_str(_require(args, 'campaignId'), 'campaignId')
        new_budget = _as_number(_require(args, 'newBudget'), 'newBudget')
        reason = _as_str(_require(args, 'reason'), 'reason')
        if new_budget < 0:
            raise ValidationError("Parameter newBudget must not be negative")
        return cls(campaign_id=campaign_id, new_budget=new_budget, reason=reason)


@dataclass(frozen=True)
class ExecuteCampaignActionArgs:
    campaign_id: str
    action: str
    reason: Optional[str] = None

    @classmethod
    def from_args(cls, args: Dict[str, Any]) -> 'ExecuteCampaignActionArgs':
        campaign_id = _as_str(_require(args, 'campaignId'), 'campaignId')
        action = _as_str(_require(args, 'action'), 'action').lower()
        if action not in CAMPAIGN_ACTION_STATUS:
            raise ValidationError(f"Parameter action must be one of: {', '.join(CAMPAIGN_ACTION_STATUS)}")
        return cls(campaign_id=campaign_id, action=action, reason=_optional(args, 'reason', _as_str))


@dataclass(frozen=True)
class GetCompetitorInsightsArgs:

    @classmethod
    def from_args(cls, args: Dict[str, Any]) -> 'GetCompetitorInsightsArgs':
        return cls()


@dataclass(frozen=True)
class GeneratePerformanceReportArgs:
    timeframe: str = '7d'
    campaign_ids: Optional[Tuple[str, ...]] = None

    @classmethod
    def from_args(cls, args: Dict[str, Any]) -> 'GeneratePerformanceReportArgs':
        timeframe = _optional(args, 'timeframe', _as_str) or '7d'
        if timeframe not in TIMEFRAME_DAYS:
            raise ValidationError(f"Parameter timeframe must be one of: {', '.join(TIMEFRAME_DAYS)}")

        campaign_ids = args.get('campaignIds')
        if campaign_ids is not None:
            if not isinstance(campaign_ids, (list, tuple)):
                raise ValidationError(
                    f"Parameter campaignIds should be an array, got {type(campaign_ids).__name__}"
                )
            campaign_ids = tuple(_as_str(cid, 'campaignIds') for cid in campaign_ids)
        return cls(timeframe=timeframe, campaign_ids=campaign_ids)


@dataclass(frozen=True)
class GetCampaignPerformanceArgs:
    campaign_id: str
    days: int = 7

    @classmethod
    def from_args(cls, args: Dict[str, Any]) -> 'GetCampaignPerformanceArgs':
        campaign_id = _as_str(_require(args, 'campaignId'), 'campaignId')
        days = _optional(args, 'days', _as_number)
        return cls(campaign_id=campaign_id, days=int(days) if days is not None else 7)


@dataclass(frozen=True)
class ExecuteBudgetChangeArgs:
    campaign_id: str
    new_budget: float

    @classmethod
    def from_args(cls, args: Dict[str, Any]) -> 'ExecuteBudgetChangeArgs':
        campaign_id = _as_str(_require(args, 'campaignId'), 'campaignId')
        new_budget = _as_number(_require(args, 'newBudget'), 'newBudget')
        if new_budget < 0:
            raise ValidationError("Parameter newBudget must not be negative")
        return cls(campaign_id=campaign_id, new_budget=new_budget)


class FunctionRegistry:
    """Validates and dispatches model function calls"""

    def __init__(self, store: CampaignStore, engine: Optional[AnalyticsEngine] = None):
        self.store = store
        self.engine = engine or AnalyticsEngine(store)

        self._handlers: Dict[str, Tuple[Type, Callable[[Any], Any]]] = {
            'getCampaigns': (GetCampaignsArgs, self._get_campaigns),
            'analyzeCampaignPerformance': (AnalyzeCampaignPerformanceArgs, self._analyze_campaign_performance),
            'getOptimizationPlan': (GetOptimizationPlanArgs, self._get_optimization_plan),
            'proposeBudgetChange': (ProposeBudgetChangeArgs, self._propose_budget_change),
            'executeCampaignAction': (ExecuteCampaignActionArgs, self._execute_campaign_action),
            'getCompetitorInsights': (GetCompetitorInsightsArgs, self._get_competitor_insights),
            'generatePerformanceReport': (GeneratePerformanceReportArgs, self._generate_performance_report),
            'getCampaignPerformance': (GetCampaignPerformanceArgs, self._get_campaign_performance),
            'executeBudgetChange': (ExecuteBudgetChangeArgs, self._execute_budget_change),
        }
        self._call_counts: Dict[str, int] = {}
        self._total_time_ms: Dict[str, int] = {}

    def get_function_declarations(self) -> List[Dict[str, Any]]:
        """The catalogue handed to the model, as a fresh copy"""
        return copy.deepcopy(FUNCTION_DECLARATIONS)

    def get_function_names(self) -> List[str]:
        return [d['name'] for d in FUNCTION_DECLARATIONS]

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_function_call(self, call: FunctionCall) -> Dict[str, Any]:
        """
        Structural pre-check against the declared schema

        Args:
            call: Function call to check

        Returns:
            dict with 'valid' flag and list of 'errors'
        """
        errors = []
        declaration = next((d for d in FUNCTION_DECLARATIONS if d['name'] == call.name), None)

        if declaration is None:
            errors.append(f"Unknown function: {call.name}")
            return {'valid': False, 'errors': errors}

        parameters = declaration['parameters']
        for required in parameters.get('required', []):
            if required not in call.args:
                errors.append(f"Missing required parameter: {required}")

        properties = parameters.get('properties', {})
        for name, value in call.args.items():
            prop_schema = properties.get(name)
            if prop_schema is None:
                continue
            expected = prop_schema['type']
            if not _matches_type(value, expected):
                article = 'an' if expected[0] in 'aeiou' else 'a'
                errors.append(f"Parameter {name} should be {article} {expected}, got {_type_name(value)}")

        if errors:
            logger.warning(f"⚠️ [VALIDATE] {call.name}: {errors}")
        return {'valid': len(errors) == 0, 'errors': errors}

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def execute_function_call(self, call: FunctionCall) -> FunctionCallResult:
        start_time = time.time()
        argument_keys = list(call.args.keys())
        logger.info(f"🔧 [FUNCTION] Executing {call.name} with args: {call.args}")

        try:
            entry = self._handlers.get(call.name)
            if entry is None:
                raise UnknownFunctionError(call.name)

            args_type, handler = entry
            typed_args = args_type.from_args(dict(call.args))
            data = to_dict(handler(typed_args))

            execution_time_ms = int((time.time() - start_time) * 1000)
            self._record(call.name, execution_time_ms)
            LLMMetrics.log_function_call(call.name, argument_keys, execution_time_ms, success=True)

            return FunctionCallResult(
                success=True,
                data=data,
                execution_time_ms=execution_time_ms,
                metadata={
                    'function_name': call.name,
                    'arguments_provided': argument_keys,
                    'data_type': type(data).__name__,
                },
            )

        except Exception as e:
            execution_time_ms = int((time.time() - start_time) * 1000)
            if isinstance(e, (ValidationError, NotFoundError, UnknownFunctionError)):
                logger.warning(f"⚠️ [FUNCTION] {call.name} failed: {e}")
            else:
                logger.error(f"❌ [FUNCTION] {call.name} raised unexpectedly: {e}", exc_info=True)
            LLMMetrics.log_function_call(call.name, argument_keys, execution_time_ms, success=False, error=str(e))

            return FunctionCallResult(
                success=False,
                error=str(e) or 'Unknown error occurred',
                execution_time_ms=execution_time_ms,
                metadata={
                    'function_name': call.name,
                    'arguments_provided': argument_keys,
                    'error_type': type(e).__name__,
                },
            )

    async def execute_batch(self, calls: List[FunctionCall]) -> List[FunctionCallResult]:
        """Run calls concurrently; results line up with the input order"""
        logger.info(f"⚡ [FUNCTION] Dispatching batch of {len(calls)} calls")
        return list(await asyncio.gather(*(self.execute_function_call(call) for call in calls)))

    @staticmethod
    def create_function_response(call: FunctionCall, result: FunctionCallResult) -> Dict[str, Any]:
        """Function-response part in the shape the model expects on the second pass"""
        return {
            'name': call.name,
            'response': {
                'result': result.data,
                'success': result.success,
                'error': result.error,
            },
        }

    def get_usage_stats(self) -> Dict[str, Any]:
        most_used = sorted(self._call_counts, key=lambda name: self._call_counts[name], reverse=True)
        return {
            'functions_available': len(FUNCTION_DECLARATIONS),
            'most_used_functions': most_used[:3],
            'call_counts': dict(self._call_counts),
            'average_execution_time_ms': {
                name: self._total_time_ms[name] / self._call_counts[name] for name in self._call_counts
            },
        }

    def _record(self, name: str, execution_time_ms: int):
        self._call_counts[name] = self._call_counts.get(name, 0) + 1
        self._total_time_ms[name] = self._total_time_ms.get(name, 0) + execution_time_ms

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _get_campaigns(self, args: GetCampaignsArgs) -> Dict[str, Any]:
        campaigns = self.store.get_campaigns(args.filters)
        applied = args.filters.applied()
        return {
            'campaigns': campaigns,
            'total_campaigns': len(campaigns),
            'applied_filters': applied,
            'summary': f"Retrieved {len(campaigns)} campaigns{' with applied filters' if applied else ''}",
        }

    def _analyze_campaign_performance(self, args: AnalyzeCampaignPerformanceArgs):
        return self.engine.analyze_campaign_performance(args.campaign_id)

    def _get_optimization_plan(self, args: GetOptimizationPlanArgs):
        return self.engine.get_optimization_plan(args.campaign_id)

    def _propose_budget_change(self, args: ProposeBudgetChangeArgs):
        return self.engine.propose_budget_change(args.campaign_id, args.new_budget, args.reason)

    def _execute_campaign_action(self, args: ExecuteCampaignActionArgs) -> Dict[str, Any]:
        success = self.store.set_status(args.campaign_id, CAMPAIGN_ACTION_STATUS[args.action])
        past_tense = {'enable': 'enabled', 'pause': 'paused', 'remove': 'removed'}[args.action]
        return {
            'success': success,
            'campaign_id': args.campaign_id,
            'action': args.action,
            'reason': args.reason,
            'message': (f"Successfully {past_tense} campaign {args.campaign_id}" if success
                        else f"Failed to {args.action} campaign {args.campaign_id}"),
        }

    def _get_competitor_insights(self, args: GetCompetitorInsightsArgs):
        return self.engine.get_competitor_insights()

    def _generate_performance_report(self, args: GeneratePerformanceReportArgs):
        campaign_ids = list(args.campaign_ids) if args.campaign_ids is not None else None
        return self.engine.generate_performance_report(args.timeframe, campaign_ids)

    def _get_campaign_performance(self, args: GetCampaignPerformanceArgs) -> Dict[str, Any]:
        performance = self.store.get_campaign_performance(args.campaign_id, args.days)
        return {
            'campaign_id': args.campaign_id,
            'days': args.days,
            'performance': performance,
            'data_points': len(performance),
            'summary': f"{len(performance)} days of performance data for campaign {args.campaign_id}",
        }

    def _execute_budget_change(self, args: ExecuteBudgetChangeArgs) -> Dict[str, Any]:
        success = self.store.set_budget(args.campaign_id, args.new_budget)
        return {
            'success': success,
            'campaign_id': args.campaign_id,
            'new_budget': args.new_budget,
            'message': (f"Successfully updated budget for campaign {args.campaign_id} to ${args.new_budget:g}/day"
                        if success else f"Failed to update budget for campaign {args.campaign_id}"),
        }


def _matches_type(value: Any, expected: str) -> bool:
    if expected == 'number':
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if expected == 'string':
        return isinstance(value, str)
    if expected == 'array':
        return isinstance(value, (list, tuple))
    if expected == 'boolean':
        return isinstance(value, bool)
    if expected == 'object':
        return isinstance(value, dict)
    return True


def _type_name(value: Any) -> str:
    if isinstance(value, bool):
        return 'boolean'
    if isinstance(value, (int, float)):
        return 'number'
    if isinstance(value, str):
        return 'string'
    if isinstance(value, (list, tuple)):
        return 'array'
    if isinstance(value, dict):
        return 'object'
    if value is None:
        return 'null'
    return type(value).__name__
