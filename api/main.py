"""
FastAPI Backend for SEALANE maritime route configuration.

Provides REST API endpoints for:
- Route synthesis between ports and curve smoothing
- Sea-route generation on the maritime network
- Versioned route segment persistence
- Port catalog search
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
import uvicorn

from api.config import API_VERSION, settings
from api.database import init_db
from api.middleware import setup_middleware
from api.rate_limit import limiter
from api.routers import ports, routes, segments, system

# Configure logging; request logs are JSON lines and self-contained
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(message)s',
)
logger = logging.getLogger(__name__)


# =============================================================================
# Application Factory
# =============================================================================

def create_app() -> FastAPI:
    """
    Application factory for SEALANE API.

    Returns:
        FastAPI: Configured application instance
    """
    application = FastAPI(
        title="SEALANE API",
        description="""
## Maritime Route Configuration API

Generate sea routes between ports, edit and smooth them, and save them as
versioned segments.

### Rate Limiting
- 60 requests per minute per client
        """,
        version=API_VERSION,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    setup_middleware(
        application,
        debug=settings.debug,
        enable_hsts=settings.is_production,
    )

    # CORS middleware - use configured origins only (NO WILDCARDS)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=settings.cors_credentials,
        allow_methods=[m.strip() for m in settings.cors_methods.split(",")],
        allow_headers=["*"],
    )

    application.state.limiter = limiter

    @application.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return JSONResponse(
            status_code=429,
            content={
                "error": "Rate limit exceeded",
                "detail": str(exc.detail),
                "retry_after": getattr(exc, 'retry_after', 60),
            },
            headers={"Retry-After": str(getattr(exc, 'retry_after', 60))},
        )

    application.include_router(system.router)
    application.include_router(routes.router)
    application.include_router(segments.router)
    application.include_router(ports.router)

    @application.on_event("startup")
    async def startup_event():
        init_db()
        logger.info(f"SEALANE API {API_VERSION} started ({settings.environment})")

    return application


# Create the application
app = create_app()


# ============================================================================
# Run Server
# ============================================================================

if __name__ == "__main__":
    uvicorn.run(
        "api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
        log_level=settings.log_level,
    )
