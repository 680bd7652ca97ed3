"""
FastAPI Application Entry Point

Integrates:
  - Sentiment analysis router
  - Metrics scraping (Prometheus text + JSON snapshot)
  - Recent span inspection
  - Health checks
  - Middleware for logging & error handling

Run: uvicorn main:app --reload --host 0.0.0.0 --port 8080
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST

from analyzer.api import get_infra, router as sentiment_router
from analyzer.tracing import get_tracer_config
from config import Config
from infra import InfraBootstrap, bootstrap_infrastructure

# Setup logging
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL, logging.INFO),
    format=Config.LOG_FORMAT,
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan: startup and shutdown handlers.
    """
    # Startup
    infra = bootstrap_infrastructure()
    logger.info("=" * 60)
    logger.info("AI Sentiment Analyzer starting up...")
    logger.info(f"Environment: {Config.ENVIRONMENT}")
    logger.info(f"Infrastructure: {infra!r}")
    logger.info("=" * 60)

    yield

    # Shutdown
    logger.info("AI Sentiment Analyzer shutting down...")
    await infra.shutdown()


# Create FastAPI app
app = FastAPI(
    title="AI Sentiment Analyzer",
    description="Instrumented sentiment analysis over an LLM API",
    version="1.0.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Middleware for logging
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests."""
    logger.debug(f"{request.method} {request.url.path}")
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        logger.error(f"Request error: {str(e)}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )


# Include routers
app.include_router(sentiment_router)


@app.get("/metrics")
async def metrics(infra: InfraBootstrap = Depends(get_infra)):
    """Prometheus scrape endpoint."""
    payload = infra.get_metrics().render_prometheus()
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


@app.get("/metrics/snapshot")
async def metrics_snapshot(infra: InfraBootstrap = Depends(get_infra)):
    """Current counters and duration summary as JSON."""
    return infra.get_metrics().snapshot().to_dict()


@app.get("/traces/recent")
async def recent_traces(limit: int = 50, infra: InfraBootstrap = Depends(get_infra)):
    """Recently closed spans (metadata only)."""
    store = infra.get_store()
    return {
        "tracer": get_tracer_config(),
        "stats": store.get_stats(),
        "spans": store.get_recent_spans(limit),
    }


# Health check endpoints
@app.get("/health/live")
async def health_live():
    """Live health check (Kubernetes liveness probe)."""
    return {"status": "alive"}


@app.get("/health/ready")
async def health_ready():
    """Readiness health check (Kubernetes readiness probe)."""
    if Config.validate():
        return {"status": "ready"}
    return JSONResponse(status_code=503, content={"status": "not_ready", "reason": "missing configuration"})


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "AI Sentiment Analyzer",
        "version": "1.0.0",
        "status": "running",
        "endpoints": {
            "analyze": "POST /api/sentiment/analyze",
            "sentiment_health": "GET /api/sentiment/health",
            "metrics": "GET /metrics",
            "metrics_snapshot": "GET /metrics/snapshot",
            "recent_traces": "GET /traces/recent",
            "health_live": "GET /health/live",
            "health_ready": "GET /health/ready",
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=Config.APP_PORT,
        reload=Config.ENVIRONMENT == "development",
    )
