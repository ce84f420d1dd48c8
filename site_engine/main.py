"""
Main FastAPI application for the prompt-to-website engine
"""
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
import shlex
import shutil

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from site_engine import __version__
from site_engine.config import settings, validate_required_config
from site_engine.dependencies import limiter
from site_engine.logging_config import logger
from site_engine.services.errors import SiteEngineError

# Import routers
from site_engine.routers import deploy, generate_site, workspace

STATIC_DIR = Path(__file__).parent / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Starting site engine", environment=settings.ENVIRONMENT)

    # Validate required configuration
    validate_required_config()

    # Initialize Sentry if DSN provided
    if settings.SENTRY_DSN:
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            environment=settings.SENTRY_ENVIRONMENT,
            traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
            integrations=[FastApiIntegration()],
        )
        logger.info("Sentry initialized")

    if not _deploy_cli_available():
        logger.warning("Deploy command not found on PATH", command=settings.NETLIFY_COMMAND)

    logger.info(
        "Site engine started",
        model=settings.OPENAI_MODEL,
        deploy_concurrency=settings.DEPLOY_CONCURRENCY
    )

    yield

    logger.info("Shutting down site engine")


def _deploy_cli_available() -> bool:
    parts = shlex.split(settings.NETLIFY_COMMAND)
    return bool(parts) and shutil.which(parts[0]) is not None


# Create FastAPI app
app = FastAPI(
    title="Prompt Site Engine",
    description="Generate websites from prompts and deploy them to Netlify",
    version=__version__,
    lifespan=lifespan
)

# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware - Configure from environment
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in settings.CORS_ORIGINS.split(",")
    if origin.strip()
]

# In development, allow all origins for easier testing
if settings.ENVIRONMENT == "development" or settings.DEBUG:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,  # Cannot use credentials with wildcard origins
        allow_methods=["*"],
        allow_headers=["*"],
    )
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": "Prompt Site Engine",
        "version": __version__,
        "status": "running",
        "studio": "/studio/"
    }


@app.get("/health")
async def health_check():
    """Configuration health check"""
    health = {
        "status": "healthy",
        "version": __version__,
        "timestamp": datetime.utcnow().isoformat(),
        "checks": {
            "completion_api": {
                "configured": bool(settings.OPENAI_API_KEY),
                "status": "ok" if settings.OPENAI_API_KEY else "missing"
            },
            "netlify_site": {
                "configured": bool(settings.NETLIFY_SITE_ID),
                "status": "ok" if settings.NETLIFY_SITE_ID else "missing"
            },
            "deploy_cli": {
                "status": "ok" if _deploy_cli_available() else "missing"
            }
        }
    }

    all_ok = all(check["status"] == "ok" for check in health["checks"].values())
    health["status"] = "healthy" if all_ok else "degraded"

    return health


# Include routers
app.include_router(generate_site.router, tags=["Website Generation"])
app.include_router(deploy.router, tags=["Deploy"])
app.include_router(workspace.router, prefix="/api", tags=["Workspace"])

app.mount("/studio", StaticFiles(directory=STATIC_DIR, html=True), name="studio")


# Error handlers
@app.exception_handler(SiteEngineError)
async def site_engine_error_handler(request: Request, exc: SiteEngineError):
    """Render gateway errors with their kind and diagnostics"""
    logger.warning(
        "Request failed",
        kind=exc.kind.value,
        error=exc.message,
        path=request.url.path
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler with Sentry integration"""
    logger.error(
        "Unhandled exception",
        error=str(exc),
        path=request.url.path,
        exc_info=True
    )

    if settings.SENTRY_DSN:
        sentry_sdk.capture_exception(exc)

    return JSONResponse(
        status_code=500,
        content={
            "error": "Something went wrong",
            "detail": str(exc) if settings.ENVIRONMENT == "development" else None
        }
    )


if __name__ == "__main__":
    import uvicorn
    reload_enabled = settings.ENVIRONMENT == "development" or settings.DEBUG
    if reload_enabled:
        uvicorn.run("site_engine.main:app", host="0.0.0.0", port=settings.PORT, reload=True)
    else:
        uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
