from fastapi import FastAPI
from contextlib import asynccontextmanager
import logging

from .models import SessionEndRequest, SessionEndResponse
from .config import get_settings
from .openrouter_client import OpenRouterClient
from .workspace import WorkspaceResolver
from . import reflector

# Configure logging
logging.basicConfig(
    level=getattr(logging, get_settings().log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown"""
    # Startup
    logger.info("Starting Reflector")
    settings = get_settings()
    try:
        workspace = WorkspaceResolver()
        reflector.init_reflector(OpenRouterClient(), workspace=workspace)
        logger.info(f"Reflector initialized (workspace={workspace.workspace_root})")
    except Exception as e:
        logger.error(f"Failed to initialize services: {e}")
        raise

    yield

    # Shutdown
    logger.info("Shutting down Reflector")
    await reflector.get_reflector().wait_for_pending(settings.shutdown_grace_seconds)


# Create FastAPI app with lifespan
app = FastAPI(
    title="Reflector",
    version="1.0.0",
    lifespan=lifespan
)


@app.get("/health")
async def health():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "pending": reflector.get_reflector().pending,
    }


@app.post("/hooks/session-end", response_model=SessionEndResponse)
async def session_end(request: SessionEndRequest):
    """
    Session-end hook.

    Only ``command:new`` events are handled. Returns as soon as the transcript
    has been validated; summary generation continues in the background.
    """
    if request.type != "command" or request.action != "new":
        return SessionEndResponse(status="ignored", reason="unsupported_event")

    instance = reflector.get_reflector()
    config = reflector.resolve_config(env=request.env)

    try:
        task = await instance.schedule(
            request.sessionFile,
            config=config,
            agent_id=request.agentId
        )
    except Exception as e:
        logger.error(f"Session-end hook failed for {request.sessionId or request.sessionFile}: {e}")
        return SessionEndResponse(status="skipped", reason="error", sessionFile=request.sessionFile)

    if task is None:
        reason = "no_session_file" if not request.sessionFile else "nothing_to_summarize"
        return SessionEndResponse(status="skipped", reason=reason, sessionFile=request.sessionFile)

    return SessionEndResponse(status="scheduled", sessionFile=request.sessionFile)
