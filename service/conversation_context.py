"""
Conversation Context
Per-session memory threaded through conversation turns

A context is never changed in place: updated() returns the next context and
the previous one stays valid, so a failed turn simply keeps the old value.
"""

from collections import deque
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, Iterator, List, Any, Optional, Tuple

from heuristic_classifier import HeuristicClassifier

HISTORY_CAPACITY = 10
MENTIONS_CAPACITY = 5
ACTIONS_CAPACITY = 10
PROMPT_HISTORY_SLICE = 3
PROMPT_QUERY_CHARS = 100


class BoundedBuffer:
    """Fixed-capacity ring buffer; oldest entries fall off the front"""

    def __init__(self, capacity: int, items: Iterable[Any] = ()):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._items = deque(items, maxlen=capacity)

    def extended(self, items: Iterable[Any]) -> 'BoundedBuffer':
        buffer = self.__class__(self.capacity, self._items)
        for item in items:
            buffer._append(item)
        return buffer

    def _append(self, item: Any):
        self._items.append(item)

    def to_list(self) -> List[Any]:
        return list(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other) -> bool:
        return (isinstance(other, BoundedBuffer) and self.capacity == other.capacity
                and list(self._items) == list(other._items))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.capacity}, {list(self._items)!r})"


class UniqueBoundedBuffer(BoundedBuffer):
    """Ring buffer with set semantics; a repeated entry keeps its original position"""

    def __init__(self, capacity: int, items: Iterable[Any] = ()):
        super().__init__(capacity)
        for item in items:
            self._append(item)

    def _append(self, item: Any):
        if item not in self._items:
            self._items.append(item)


@dataclass(frozen=True)
class UserPreferences:
    communication_style: str = 'business-focused'
    data_visualization_preference: str = 'mixed'
    notification_level: str = 'critical-only'
    auto_execute_recommendations: bool = False
    preferred_metrics: Tuple[str, ...] = ('ROAS', 'CPA', 'Conversion Rate')

    def merged(self, updates: Dict[str, Any]) -> 'UserPreferences':
        """Apply inferred updates; fields not mentioned keep their value"""
        known = {k: v for k, v in updates.items() if k in self.__dataclass_fields__}
        return replace(self, **known) if known else self

    def describe(self) -> str:
        parts = [
            f"Communication: {self.communication_style}",
            f"Visualization: {self.data_visualization_preference}",
            f"Notifications: {self.notification_level}",
        ]
        if self.preferred_metrics:
            parts.append(f"Metrics: {', '.join(self.preferred_metrics)}")
        return '; '.join(parts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'communication_style': self.communication_style,
            'data_visualization_preference': self.data_visualization_preference,
            'notification_level': self.notification_level,
            'auto_execute_recommendations': self.auto_execute_recommendations,
            'preferred_metrics': list(self.preferred_metrics),
        }


def _text_message(role: str, text: str) -> Dict[str, Any]:
    return {'role': role, 'parts': [{'text': text}]}


def encode_action(name: str, args: Dict[str, Any]) -> str:
    return f"{name}({', '.join(args.keys())})"


@dataclass(frozen=True)
class ConversationContext:
    history: BoundedBuffer = field(default_factory=lambda: BoundedBuffer(HISTORY_CAPACITY))
    mentioned_campaigns: UniqueBoundedBuffer = field(default_factory=lambda: UniqueBoundedBuffer(MENTIONS_CAPACITY))
    actions_taken: BoundedBuffer = field(default_factory=lambda: BoundedBuffer(ACTIONS_CAPACITY))
    user_preferences: UserPreferences = field(default_factory=UserPreferences)

    def updated(
        self,
        user_message: str,
        assistant_text: str,
        function_calls: Optional[List[Any]] = None
    ) -> 'ConversationContext':
        """
        Context after a completed turn

        Args:
            user_message: The user's text for this turn
            assistant_text: Final assistant text
            function_calls: Calls dispatched during the turn (objects with name and args)

        Returns:
            A new ConversationContext; self is left untouched
        """
        mentions = HeuristicClassifier.extract_campaign_mentions(f"{user_message} {assistant_text}")
        actions = [encode_action(call.name, call.args) for call in function_calls or []]
        preferences = HeuristicClassifier.extract_preferences(user_message)

        return ConversationContext(
            history=self.history.extended([
                _text_message('user', user_message),
                _text_message('model', assistant_text),
            ]),
            mentioned_campaigns=self.mentioned_campaigns.extended(mentions),
            actions_taken=self.actions_taken.extended(actions),
            user_preferences=self.user_preferences.merged(preferences),
        )

    def history_messages(self) -> List[Dict[str, Any]]:
        """Copy of the history in model contents shape"""
        return [
            {'role': message['role'], 'parts': [dict(part) for part in message['parts']]}
            for message in self.history
        ]

    def recent_queries(self) -> List[str]:
        queries = []
        for message in self.history.to_list()[-PROMPT_HISTORY_SLICE:]:
            if message['role'] != 'user':
                continue
            text = (message['parts'][0].get('text') or '') if message['parts'] else ''
            queries.append(f"User asked about: {text[:PROMPT_QUERY_CHARS]}")
        return queries

    def to_prompt_summary(self) -> str:
        queries = self.recent_queries()
        return '\n'.join([
            f"- Previous queries discussed: {', '.join(queries) if queries else 'None'}",
            f"- Recently mentioned campaigns: {', '.join(self.mentioned_campaigns) or 'None'}",
            f"- User preferences: {self.user_preferences.describe()}",
            f"- Actions taken this session: {', '.join(self.actions_taken) or 'None'}",
        ])

    def to_dict(self) -> Dict[str, Any]:
        return {
            'history': self.history_messages(),
            'mentioned_campaigns': self.mentioned_campaigns.to_list(),
            'actions_taken': self.actions_taken.to_list(),
            'user_preferences': self.user_preferences.to_dict(),
        }
