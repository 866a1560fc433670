from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask
from starlette.middleware.base import BaseHTTPMiddleware
from pydantic import BaseModel
import uvicorn
import os
from dotenv import load_dotenv
import json
from typing import Optional
import logging
import time

load_dotenv()

# Configure logging with debug level for LLM interactions
logging.basicConfig(
    level=logging.DEBUG if os.getenv("DEBUG_LLM", "false").lower() == "true" else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(),
        logging.FileHandler('/tmp/ads_agent_service.log', mode='a') if os.path.exists('/tmp') else logging.NullHandler()
    ]
)

logger = logging.getLogger(__name__)
gemini_logger = logging.getLogger('gemini_service')
orchestrator_logger = logging.getLogger('conversation_orchestrator')

if os.getenv("DEBUG_LLM", "false").lower() == "true":
    gemini_logger.setLevel(logging.DEBUG)
    orchestrator_logger.setLevel(logging.DEBUG)
    logger.info("🔍 DEBUG_LLM enabled - Full LLM request/response logging activated")
else:
    logger.info("ℹ️ Standard logging level - Set DEBUG_LLM=true for detailed LLM logging")

from analytics_engine import AnalyticsEngine
from campaign_models import to_dict
from campaign_store import CampaignStore
from chat_sessions import SessionManager
from conversation_orchestrator import ConversationOrchestrator
from errors import SessionBusyError, ValidationError
from function_registry import FunctionRegistry, GetCampaignsArgs
from gemini_service import GeminiService

app = FastAPI(title="Google Ads Agent Service", version="1.0.0")


# HTTP request/response logging middleware
class HTTPLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        logger.info(f"🌐 [HTTP IN] {request.method} {request.url.path}")

        try:
            response = await call_next(request)
            duration = (time.time() - start_time) * 1000
            logger.info(f"🌐 [HTTP OUT] {request.method} {request.url.path} → {response.status_code} ({duration:.0f}ms)")
            return response
        except Exception as e:
            duration = (time.time() - start_time) * 1000
            logger.error(f"❌ [HTTP MIDDLEWARE] Exception in middleware: {e}")
            logger.error(f"🔍 [HTTP MIDDLEWARE] Request: {request.method} {request.url.path} ({duration:.0f}ms)")
            raise

app.add_middleware(HTTPLoggingMiddleware)

# CORS middleware for the chat frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:3001",
        "https://*.vercel.app",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global instances
store = CampaignStore()
engine = AnalyticsEngine(store)
registry = FunctionRegistry(store, engine)
gemini_service = GeminiService()
orchestrator = ConversationOrchestrator(gemini_service, registry)
sessions = SessionManager(orchestrator)


class ChatRequest(BaseModel):
    message: str
    session_id: Optional[str] = None


def require_auth(request: Request):
    """Presence check only; token verification belongs to the auth provider"""
    if os.getenv("AUTH_REQUIRED", "false").lower() != "true":
        return

    token = request.cookies.get("auth-token")
    authorization = request.headers.get("authorization", "")
    if not token and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()

    if not token:
        logger.warning(f"🔒 [AUTH] Unauthenticated request to {request.url.path}")
        raise HTTPException(status_code=401, detail="Authentication required")


@app.get("/")
async def root():
    return {"message": "Google Ads Agent Service", "status": "running"}


@app.get("/health")
async def health(check_connection: bool = False):
    """Service health, optionally probing the Gemini API"""
    result = {
        "status": "healthy",
        "gemini_configured": gemini_service.is_configured(),
        "model": gemini_service.model_name,
        "campaigns_loaded": len(store.all()),
        "active_sessions": len(sessions.list_sessions()),
    }
    if check_connection:
        result["gemini_reachable"] = await gemini_service.validate_connection()
        if not result["gemini_reachable"]:
            result["status"] = "degraded"
    return result


@app.post("/chat", dependencies=[Depends(require_auth)])
async def chat(request: ChatRequest):
    """Run one conversation turn and return the assistant reply"""
    logger.info(f"💬 [ENDPOINT] /chat session={request.session_id or 'new'}")
    if not request.message or not request.message.strip():
        raise HTTPException(status_code=400, detail="Message must not be empty")

    try:
        session = sessions.get_or_create(request.session_id)
        reply = await sessions.submit(session.session_id, request.message)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SessionBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return {
        "session_id": session.session_id,
        "message": reply.to_dict(),
        "context": session.context.to_dict(),
    }


@app.post("/chat/stream", dependencies=[Depends(require_auth)])
async def chat_stream(request: ChatRequest):
    """Stream a plain-text reply via SSE; function calling is not available on this path"""
    if not request.message or not request.message.strip():
        raise HTTPException(status_code=400, detail="Message must not be empty")

    session = sessions.get_or_create(request.session_id)
    if session.is_loading:
        raise HTTPException(status_code=409, detail=f"Session {session.session_id} is already processing a message")

    history = session.context.history_messages()
    history.append({"role": "user", "parts": [{"text": request.message}]})
    system_prompt = orchestrator.build_system_prompt(session.context)
    session.is_loading = True
    logger.info(f"📡 [ENDPOINT] Streaming reply for session {session.session_id}")

    def release():
        session.is_loading = False

    async def event_generator():
        chunks = []
        try:
            async for chunk in gemini_service.generate_stream(history, system_prompt):
                chunks.append(chunk)
                yield f"data: {json.dumps({'session_id': session.session_id, 'text': chunk})}\n\n"
            session.context = session.context.updated(request.message, ''.join(chunks))
            yield f"data: {json.dumps({'session_id': session.session_id, 'done': True})}\n\n"
        except Exception as e:
            logger.error(f"❌ [ENDPOINT] Streaming failed for {session.session_id}: {e}")
            yield f"data: {json.dumps({'session_id': session.session_id, 'error': str(e)})}\n\n"
        finally:
            release()

    # The generator never starts if the client disconnects before the first send
    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no"
        },
        background=BackgroundTask(release)
    )


@app.get("/sessions/{session_id}", dependencies=[Depends(require_auth)])
async def get_session(session_id: str):
    session = sessions.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return {**session.summary(), "messages": session.messages}


@app.delete("/sessions/{session_id}", dependencies=[Depends(require_auth)])
async def delete_session(session_id: str):
    if not sessions.delete_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"success": True, "session_id": session_id}


@app.get("/functions", dependencies=[Depends(require_auth)])
async def list_functions():
    return {
        "functions": registry.get_function_declarations(),
        "usage": registry.get_usage_stats(),
    }


@app.get("/campaigns", dependencies=[Depends(require_auth)])
async def list_campaigns(
    status: Optional[str] = None,
    type: Optional[str] = None,
    min_roas: Optional[float] = None,
    max_cpa: Optional[float] = None
):
    """Campaign snapshot with the same filters the model can use"""
    try:
        args = GetCampaignsArgs.from_args({
            "status": status,
            "type": type,
            "minROAS": min_roas,
            "maxCPA": max_cpa,
        })
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    campaigns = store.get_campaigns(args.filters)
    return {
        "campaigns": to_dict(campaigns),
        "total_campaigns": len(campaigns),
        "applied_filters": args.filters.applied(),
    }


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", 8000)))
