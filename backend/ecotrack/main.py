from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from ecotrack.routers import approvals, alerts
from ecotrack.config import settings
from ecotrack.errors import ApprovalError
import logging
import sys

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)

# Log startup information
logger.info("="*60)
logger.info("Starting EcoTrack Approvals API")
logger.info("="*60)
logger.info(f"AI insight service configured: {bool(settings.ai_api_key)}")
logger.info(f"AI model: {settings.ai_model}")
logger.info("="*60)

# Create tables (in production, use migrations)
# Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="EcoTrack Approvals API",
    description="Role-scoped manager approvals and spoilage alerts",
    version="1.0.0"
)


def parse_cors_origins(origins_str: str) -> list:
    """Parse CORS origins string into a list."""
    return [origin.strip() for origin in origins_str.split(",") if origin.strip()]


cors_origins = parse_cors_origins(settings.cors_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Include routers
app.include_router(approvals.router)
app.include_router(alerts.router)


@app.get("/")
def root():
    return {"message": "EcoTrack Approvals API", "version": "1.0.0"}


@app.get("/health")
def health_check():
    return {"status": "healthy"}


@app.exception_handler(ApprovalError)
async def approval_error_handler(request: Request, exc: ApprovalError):
    """Map service error kinds to their HTTP status"""
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.kind}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.kind},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logging.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": f"Internal server error: {str(exc)}"},
    )
