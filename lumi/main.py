"""
Lumi Learning Coach API - Main Application
MCP HTTP bridge plus transactional email endpoints
FILE: lumi/main.py
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
import time

from lumi import __version__
from lumi.core.config import load_coach_settings
from lumi.core.errors import ConfigurationError
from lumi.db.supabase import connect_to_supabase, close_supabase_connection, get_supabase
from lumi.api.email import router as email_router
from lumi.mcp_server.routes import router as mcp_router
from lumi.mcp_server.server import build_coach_service, create_server, set_mcp_server

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    # Startup
    logger.info("🚀 Starting Lumi Learning Coach API...")

    try:
        settings = load_coach_settings()
    except ConfigurationError as e:
        settings = None
        logger.warning(f"⚠ Coach settings unavailable, serving email endpoints only: {e}")

    if settings is not None:
        await connect_to_supabase(settings)
        logger.info("✓ Supabase connected")

        service = build_coach_service(settings=settings, store=get_supabase())
        set_mcp_server(create_server(service=service), service)
        logger.info("✓ MCP tools ready")

    logger.info("✓ Startup complete")

    yield

    # Shutdown
    logger.info("🛑 Shutting down Lumi Learning Coach API...")

    try:
        set_mcp_server(None, None)
        await close_supabase_connection()
        logger.info("✓ Cleanup complete")
    except Exception as e:
        logger.error(f"❌ Shutdown error: {e}")


app = FastAPI(
    title="Lumi Learning Coach API",
    description="""
    AI learning coach backed by Supabase and Gemini.

    ## Features
    - **Lessons**: Generate structured lessons and award XP
    - **Quizzes**: Build quizzes from saved lessons
    - **Tutor Chat**: Persona-driven tutoring replies, logged to chat history
    - **Email**: Verification, password reset and friend invitation emails

    ## Endpoints
    - **MCP**: `/mcp/status`, `/mcp/tools`, `/mcp/request`
    - **Email**: `/send-verification`, `/send-password-reset`, `/send-friend-invitation`, `/test-email`
    - **Health**: `/health`
    """,
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",  # Vite dev server
        "http://localhost:4000",
        "http://localhost:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request timing middleware
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add processing time to response headers"""
    start_time = time.time()
    response = await call_next(request)
    process_time = (time.time() - start_time) * 1000  # Convert to ms
    response.headers["X-Process-Time-Ms"] = str(round(process_time, 2))
    return response


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all incoming requests"""
    logger.info(f"📨 {request.method} {request.url.path}")
    response = await call_next(request)
    logger.info(
        f"📤 {request.method} {request.url.path} - "
        f"Status: {response.status_code}"
    )
    return response


# ==================== INCLUDE ROUTERS ====================

app.include_router(mcp_router)
app.include_router(email_router)


# ==================== ROOT ENDPOINTS ====================

@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information"""
    return {
        "message": "Lumi Learning Coach API",
        "version": __version__,
        "status": "operational",
        "endpoints": {
            "docs": "/docs",
            "redoc": "/redoc",
            "mcp_status": "/mcp/status",
            "mcp_tools": "/mcp/tools",
            "mcp_request": "/mcp/request",
            "send_verification": "/send-verification",
            "send_password_reset": "/send-password-reset",
            "send_friend_invitation": "/send-friend-invitation",
            "test_email": "/test-email",
            "health": "/health"
        }
    }


# ==================== RUN APPLICATION ====================

def run():
    import uvicorn

    uvicorn.run(
        "lumi.main:app",
        host="0.0.0.0",
        port=8080,
        log_level="info"
    )


if __name__ == "__main__":
    run()
