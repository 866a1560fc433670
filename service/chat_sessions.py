"""
Chat Sessions
In-memory chat sessions that gate turns and render fallback replies
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Any, Optional

from conversation_context import ConversationContext
from conversation_orchestrator import AssistantMessage, ConversationOrchestrator, new_message_id
from errors import SessionBusyError, TurnError, ValidationError

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def fallback_message(error: Exception) -> AssistantMessage:
    """Assistant reply shown when a turn could not complete"""
    return AssistantMessage(
        id=new_message_id(),
        content=(f"I apologize, but I encountered an error processing your request: {error}. "
                 "Please try again or rephrase your question."),
        timestamp=_now(),
        metadata={
            'confidence': 0,
            'response_time_ms': 0,
            'recommendation_level': 'low',
        },
    )


@dataclass
class ChatSession:
    session_id: str
    context: ConversationContext = field(default_factory=ConversationContext)
    messages: List[Dict[str, Any]] = field(default_factory=list)
    is_loading: bool = False
    created_at: datetime = field(default_factory=_now)
    last_activity: datetime = field(default_factory=_now)

    def summary(self) -> Dict[str, Any]:
        return {
            'session_id': self.session_id,
            'is_loading': self.is_loading,
            'message_count': len(self.messages),
            'created_at': self.created_at.isoformat(),
            'last_activity': self.last_activity.isoformat(),
            'context': self.context.to_dict(),
        }


class SessionManager:
    """Owns chat sessions; one turn at a time per session"""

    def __init__(self, orchestrator: ConversationOrchestrator):
        self.orchestrator = orchestrator
        self._sessions: Dict[str, ChatSession] = {}

    def welcome_message(self) -> AssistantMessage:
        business = self.orchestrator.business
        return AssistantMessage(
            id=new_message_id(),
            content=(
                f"Hello! I'm your Google Ads expert for {business.company_name}. "
                f"I can help you optimize your {business.seasonality} campaigns, analyze performance, "
                f"and scale your {business.industry.lower()} business.\n\n"
                "What would you like to know about your campaigns today?"
            ),
            timestamp=_now(),
            metadata={'recommendation_level': 'medium'},
        )

    def create_session(self, session_id: Optional[str] = None) -> ChatSession:
        session_id = session_id or f"session_{uuid.uuid4().hex}"
        session = ChatSession(session_id=session_id)
        session.messages.append(self.welcome_message().to_dict())
        self._sessions[session_id] = session
        logger.info(f"🆕 [SESSION] Created {session_id}")
        return session

    def get_session(self, session_id: str) -> Optional[ChatSession]:
        return self._sessions.get(session_id)

    def get_or_create(self, session_id: Optional[str]) -> ChatSession:
        if session_id and session_id in self._sessions:
            return self._sessions[session_id]
        return self.create_session(session_id)

    def delete_session(self, session_id: str) -> bool:
        removed = self._sessions.pop(session_id, None) is not None
        if removed:
            logger.info(f"🗑️ [SESSION] Deleted {session_id}")
        return removed

    def list_sessions(self) -> List[str]:
        return list(self._sessions.keys())

    async def submit(self, session_id: str, text: str) -> AssistantMessage:
        """
        Run a turn for a session

        Args:
            session_id: Target session (created when unknown)
            text: User message

        Returns:
            The assistant reply, or a fallback reply when the turn failed

        Raises:
            ValidationError: blank message
            SessionBusyError: a turn is already in flight for this session
        """
        if not text or not text.strip():
            raise ValidationError("Message must not be empty")

        session = self.get_or_create(session_id)
        if session.is_loading:
            logger.warning(f"⚠️ [SESSION] {session.session_id} busy, rejecting message")
            raise SessionBusyError(f"Session {session.session_id} is already processing a message")

        session.is_loading = True
        session.last_activity = _now()
        session.messages.append({
            'id': new_message_id(),
            'role': 'user',
            'content': text,
            'timestamp': session.last_activity.isoformat(),
        })

        try:
            result = await self.orchestrator.run_turn(text, session.context, session_id=session.session_id)
            session.context = result.context
            reply = result.message
        except TurnError as e:
            logger.error(f"❌ [SESSION] Turn failed for {session.session_id}: {e}")
            reply = fallback_message(e)
        finally:
            session.is_loading = False

        session.messages.append(reply.to_dict())
        session.last_activity = _now()
        return reply
